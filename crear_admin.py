# crear_admin.py
# Crea (o resetea) el usuario administrador de la barbería.
#   ADMIN_EMAIL=... ADMIN_PASSWORD=... python crear_admin.py
import logging
import os

from sqlmodel import Session, select

from barberia_core.db.conexion import engine, guardar_cambios, init_db
from barberia_core.db.modelos import Perfil, Role, Usuario
from barberia_core.security import get_password_hash

logger = logging.getLogger("crear_admin")


def asegurar_admin(session: Session, email: str, password: str, nombre: str = "Administrador") -> Usuario:
    """
    Deja un admin activo con esa clave y su perfil. Devuelve el usuario.
    """
    email = email.strip().lower()
    admin = session.exec(select(Usuario).where(Usuario.email == email)).first()
    if admin is None:
        admin = Usuario(email=email, nombre=nombre, password_hash="")
        logger.info("Creando admin %s", email)
    else:
        logger.info("Reseteando clave y rol de %s", email)

    admin.password_hash = get_password_hash(password)
    admin.rol = Role.admin
    admin.activo = True
    session.add(admin)
    session.flush()

    if not session.exec(select(Perfil).where(Perfil.usuario_id == admin.id)).first():
        session.add(Perfil(usuario_id=admin.id, nombre_completo=admin.nombre or nombre))

    guardar_cambios(session, "crear admin")
    return admin


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(name)s: %(message)s")
    init_db()
    with Session(engine, expire_on_commit=False) as session:
        usuario = asegurar_admin(
            session,
            os.getenv("ADMIN_EMAIL", "admin@barberia.com"),
            os.getenv("ADMIN_PASSWORD", "admin"),
            os.getenv("ADMIN_NOMBRE", "Administrador"),
        )
    print(f"Admin listo: id={usuario.id}, email={usuario.email}")
