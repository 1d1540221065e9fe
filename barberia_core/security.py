# barberia_core/security.py
# Claves (pbkdf2), tokens JWT y contexto de sesión de la barbería

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Dict, Optional, Set
import logging
import os
import uuid

from jose import jwt, JWTError
from passlib.context import CryptContext
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlmodel import Session, select

from barberia_core.db.modelos import Usuario, Perfil, Role
from barberia_core.db.conexion import get_session

logger = logging.getLogger(__name__)

SECRET_KEY = os.getenv("SECRET_KEY", "CHANGE_ME_SUPER_SECRET")
ALGO = "HS256"
ACCESS_MIN = int(os.getenv("ACCESS_MINUTES", "720"))  # 12h

pwd = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

oauth2 = OAuth2PasswordBearer(tokenUrl="/api/auth/login")

# jti de los tokens cerrados con /logout (memoria del proceso)
_tokens_revocados: Set[str] = set()

NO_AUTENTICADO = "No autenticado"


def get_password_hash(clave: str) -> str:
    return pwd.hash(clave)


def verify_password(clave: str, hash_guardado: str) -> bool:
    return pwd.verify(clave, hash_guardado)


def create_access_token(email: str, minutes: int = ACCESS_MIN) -> str:
    """
    Token firmado con el email como `sub`. Cada token lleva un `jti` propio
    para poder revocarlo sin afectar a otras sesiones del mismo usuario.
    """
    ahora = datetime.utcnow()
    claims = {
        "sub": email,
        "iat": ahora,
        "exp": ahora + timedelta(minutes=minutes),
        "jti": uuid.uuid4().hex,
    }
    return jwt.encode(claims, SECRET_KEY, algorithm=ALGO)


def leer_token(token: str) -> Dict:
    """
    Decodifica y valida el token. 401 si es inválido, expiró o fue revocado.
    """
    try:
        claims = jwt.decode(token, SECRET_KEY, algorithms=[ALGO])
    except JWTError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=NO_AUTENTICADO)

    if not claims.get("sub") or claims.get("jti") in _tokens_revocados:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=NO_AUTENTICADO)
    return claims


def revocar_token(token: str) -> None:
    jti = leer_token(token)["jti"]
    _tokens_revocados.add(jti)
    logger.info("Token revocado (%d en memoria)", len(_tokens_revocados))


def get_current_user(
    token: str = Depends(oauth2),
    session: Session = Depends(get_session),
) -> Usuario:
    email: Optional[str] = leer_token(token)["sub"]
    user = session.exec(
        select(Usuario).where(Usuario.email == email)
    ).first()
    if not user or not user.activo:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=NO_AUTENTICADO)
    return user


def require_role(*roles: Role) -> Callable:
    def dep(user: Usuario = Depends(get_current_user)) -> Usuario:
        if roles and user.rol not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Sin permisos para esta operación",
            )
        return user

    return dep


# =========================
# Contexto de sesión
# =========================

@dataclass(frozen=True)
class ContextoSesion:
    """
    Identidad del usuario logueado, armada en cada request a partir del token.
    Se obtiene al iniciar sesión o al restaurarla con un token vigente y deja
    de existir cuando el token se revoca con /logout.
    """
    usuario_id: int
    email: str
    rol: Role
    nombre_completo: Optional[str]
    barbero_id: Optional[int]
    token: str

    @property
    def es_admin(self) -> bool:
        return self.rol == Role.admin


def get_contexto_sesion(
    token: str = Depends(oauth2),
    user: Usuario = Depends(get_current_user),
    session: Session = Depends(get_session),
) -> ContextoSesion:
    perfil = session.exec(
        select(Perfil).where(Perfil.usuario_id == user.id)
    ).first()
    return ContextoSesion(
        usuario_id=user.id,
        email=user.email,
        rol=user.rol,
        nombre_completo=perfil.nombre_completo if perfil else user.nombre,
        barbero_id=perfil.barbero_id if perfil else None,
        token=token,
    )
