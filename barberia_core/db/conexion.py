# barberia_core/db/conexion.py
from typing import Generator
import logging
import os

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import SQLModel, Session, create_engine

from barberia_core.errores import ErrorBackend

logger = logging.getLogger(__name__)

# URL de la base de datos de la barbería.
# Puedes sobreescribirla con la variable de entorno BARBERIA_DB_URL
DB_URL = os.getenv("BARBERIA_DB_URL", "sqlite:///./datos_barberia.db")

# Necesario para SQLite en modo multi-hilo
connect_args = {"check_same_thread": False} if DB_URL.startswith("sqlite") else {}

engine = create_engine(DB_URL, echo=False, connect_args=connect_args)


def init_db() -> None:
    """
    Crea todas las tablas definidas en db.modelos si no existen.
    """
    # Import tardío para registrar los modelos antes de create_all
    from barberia_core.db import modelos  # noqa: F401

    SQLModel.metadata.create_all(engine)
    logger.info("Base de datos lista en %s", engine.url.render_as_string(hide_password=True))


def get_session() -> Generator[Session, None, None]:
    """
    Devuelve una sesión de SQLModel para usar con Depends() en FastAPI.
    Usa expire_on_commit=False para que los objetos sigan legibles tras commit.
    """
    with Session(engine, expire_on_commit=False) as session:
        yield session


def guardar_cambios(session: Session, operacion: str) -> None:
    """
    Hace commit de todo lo pendiente en la sesión como una sola transacción.
    Si falla, hace rollback y lo reporta como ErrorBackend.
    """
    try:
        session.commit()
    except SQLAlchemyError as exc:
        session.rollback()
        logger.exception("Falló la operación '%s' en la base de datos", operacion)
        raise ErrorBackend(f"No se pudo completar: {operacion}") from exc
