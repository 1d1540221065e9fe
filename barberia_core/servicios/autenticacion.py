# barberia_core/servicios/autenticacion.py
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from pydantic import BaseModel
from sqlmodel import Session, select

from barberia_core.db.conexion import get_session, guardar_cambios
from barberia_core.db.modelos import Usuario, Perfil, Role
from barberia_core.errores import ErrorValidacion
from barberia_core.security import (
    ContextoSesion,
    create_access_token,
    get_contexto_sesion,
    get_password_hash,
    revocar_token,
    verify_password,
)

logger = logging.getLogger(__name__)

router = APIRouter()


class RegistroIn(BaseModel):
    email: str
    password: str
    nombre_completo: str
    rol: Role = Role.usuario


@router.post("/registro", status_code=status.HTTP_201_CREATED)
def registro(
    body: RegistroIn,
    session: Session = Depends(get_session),
):
    """
    Crea el usuario y su perfil en una sola transacción.
    """
    email = body.email.strip().lower()
    if not email or "@" not in email:
        raise ErrorValidacion("Email inválido")
    if len(body.password) < 6:
        raise ErrorValidacion("La contraseña debe tener al menos 6 caracteres")
    if not body.nombre_completo.strip():
        raise ErrorValidacion("Por favor ingresa tu nombre completo")

    existente = session.exec(
        select(Usuario).where(Usuario.email == email)
    ).first()
    if existente:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Este correo ya está registrado",
        )

    # Solo el primer admin se registra solo; los demás los crea crear_admin.py
    if body.rol == Role.admin:
        admin = session.exec(select(Usuario).where(Usuario.rol == Role.admin)).first()
        if admin:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Ya existe un administrador; usa crear_admin.py",
            )

    user = Usuario(
        email=email,
        nombre=body.nombre_completo.strip(),
        password_hash=get_password_hash(body.password),
        rol=body.rol,
    )
    session.add(user)
    session.flush()  # para tener user.id

    session.add(Perfil(usuario_id=user.id, nombre_completo=body.nombre_completo.strip()))
    guardar_cambios(session, "registrar usuario")
    session.refresh(user)

    logger.info("Usuario registrado: %s (%s)", user.email, user.rol.value)
    return {
        "id": user.id,
        "email": user.email,
        "nombre": user.nombre,
        "rol": user.rol,
    }


@router.post("/login")
def login(
    form: OAuth2PasswordRequestForm = Depends(),
    session: Session = Depends(get_session),
):
    user = session.exec(
        select(Usuario).where(Usuario.email == form.username.strip().lower())
    ).first()
    if not user or not verify_password(form.password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Credenciales inválidas",
        )
    if not user.activo:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Usuario inactivo",
        )

    token = create_access_token(user.email)
    return {"access_token": token, "token_type": "bearer"}


@router.post("/logout")
def logout(
    ctx: ContextoSesion = Depends(get_contexto_sesion),
):
    revocar_token(ctx.token)
    logger.info("Sesión cerrada: %s", ctx.email)
    return {"ok": True}


@router.get("/me")
def leer_perfil(
    ctx: ContextoSesion = Depends(get_contexto_sesion),
):
    return {
        "id": ctx.usuario_id,
        "email": ctx.email,
        "nombre_completo": ctx.nombre_completo,
        "rol": ctx.rol,
        "barbero_id": ctx.barbero_id,
    }
