# barberia_core/servicios/perfiles.py
# Vínculo entre usuarios y barberos
from typing import List, Optional
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel
from sqlmodel import Session, select

from barberia_core.db.conexion import get_session, guardar_cambios
from barberia_core.db.modelos import Barbero, Perfil, Role, Usuario
from barberia_core.security import require_role

logger = logging.getLogger(__name__)

router = APIRouter()


class PerfilOut(BaseModel):
    id: int
    usuario_id: int
    email: str
    nombre_completo: str
    barbero_id: Optional[int]
    barbero: Optional[str]


class VinculoIn(BaseModel):
    # None para desvincular
    barbero_id: Optional[int] = None


@router.get("/", response_model=List[PerfilOut])
def listar_perfiles(
    session: Session = Depends(get_session),
    _user=Depends(require_role(Role.admin)),
):
    barberos = {b.id: b.nombre for b in session.exec(select(Barbero)).all()}
    filas = session.exec(
        select(Perfil, Usuario)
        .where(Perfil.usuario_id == Usuario.id)
        .order_by(Perfil.nombre_completo.asc())
    ).all()
    return [
        PerfilOut(
            id=perfil.id,
            usuario_id=perfil.usuario_id,
            email=usuario.email,
            nombre_completo=perfil.nombre_completo,
            barbero_id=perfil.barbero_id,
            barbero=barberos.get(perfil.barbero_id, "Desconocido") if perfil.barbero_id else None,
        )
        for perfil, usuario in filas
    ]


@router.put("/{perfil_id}/barbero", response_model=Perfil)
def vincular_barbero(
    perfil_id: int,
    body: VinculoIn,
    session: Session = Depends(get_session),
    _user=Depends(require_role(Role.admin)),
):
    perfil = session.get(Perfil, perfil_id)
    if not perfil:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Perfil no encontrado",
        )

    if body.barbero_id is not None and not session.get(Barbero, body.barbero_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Barbero no encontrado",
        )

    perfil.barbero_id = body.barbero_id
    session.add(perfil)
    guardar_cambios(session, "vincular barbero")
    session.refresh(perfil)

    if body.barbero_id is None:
        logger.info("Perfil %s desvinculado", perfil_id)
    else:
        logger.info("Perfil %s vinculado con barbero %s", perfil_id, body.barbero_id)
    return perfil
