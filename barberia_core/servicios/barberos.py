# barberia_core/servicios/barberos.py
from typing import List, Optional
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel
from sqlmodel import Session, select

from barberia_core.db.conexion import get_session, guardar_cambios
from barberia_core.db.modelos import (
    Barbero,
    DescuentoBarbero,
    Perfil,
    Role,
    Servicio,
)
from barberia_core.errores import ErrorValidacion
from barberia_core.security import require_role

logger = logging.getLogger(__name__)

router = APIRouter()


class BarberoIn(BaseModel):
    nombre: str
    telefono: Optional[str] = None
    foto_url: Optional[str] = None


class BarberoUpdate(BaseModel):
    nombre: Optional[str] = None
    telefono: Optional[str] = None
    foto_url: Optional[str] = None


def obtener_barbero_o_404(session: Session, barbero_id: int) -> Barbero:
    barbero = session.get(Barbero, barbero_id)
    if not barbero:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Barbero no encontrado",
        )
    return barbero


@router.get("/", response_model=List[Barbero])
def listar_barberos(
    session: Session = Depends(get_session),
    _user=Depends(require_role(Role.admin, Role.usuario)),
):
    return session.exec(select(Barbero).order_by(Barbero.nombre.asc())).all()


@router.get("/{barbero_id}", response_model=Barbero)
def obtener_barbero(
    barbero_id: int,
    session: Session = Depends(get_session),
    _user=Depends(require_role(Role.admin, Role.usuario)),
):
    return obtener_barbero_o_404(session, barbero_id)


@router.post("/", response_model=Barbero, status_code=status.HTTP_201_CREATED)
def crear_barbero(
    body: BarberoIn,
    session: Session = Depends(get_session),
    _user=Depends(require_role(Role.admin)),
):
    if not body.nombre.strip():
        raise ErrorValidacion("El nombre del barbero es obligatorio")

    nuevo = Barbero(
        nombre=body.nombre.strip(),
        telefono=body.telefono or None,
        foto_url=body.foto_url or None,
    )
    session.add(nuevo)
    guardar_cambios(session, "crear barbero")
    session.refresh(nuevo)
    logger.info("Barbero creado: %s (id=%s)", nuevo.nombre, nuevo.id)
    return nuevo


@router.put("/{barbero_id}", response_model=Barbero)
def actualizar_barbero(
    barbero_id: int,
    body: BarberoUpdate,
    session: Session = Depends(get_session),
    _user=Depends(require_role(Role.admin)),
):
    barbero = obtener_barbero_o_404(session, barbero_id)

    update_data = body.model_dump(exclude_unset=True)
    if "nombre" in update_data and not (update_data["nombre"] or "").strip():
        raise ErrorValidacion("El nombre del barbero es obligatorio")
    for campo, valor in update_data.items():
        setattr(barbero, campo, valor)

    session.add(barbero)
    guardar_cambios(session, "actualizar barbero")
    session.refresh(barbero)
    return barbero


@router.delete("/{barbero_id}", status_code=status.HTTP_204_NO_CONTENT)
def eliminar_barbero(
    barbero_id: int,
    session: Session = Depends(get_session),
    _user=Depends(require_role(Role.admin)),
):
    """
    Elimina el barbero con sus servicios y descuentos, y desvincula los perfiles.
    Todo en una transacción.
    """
    barbero = obtener_barbero_o_404(session, barbero_id)

    for servicio in session.exec(select(Servicio).where(Servicio.barbero_id == barbero_id)).all():
        session.delete(servicio)
    for descuento in session.exec(
        select(DescuentoBarbero).where(DescuentoBarbero.barbero_id == barbero_id)
    ).all():
        session.delete(descuento)
    for perfil in session.exec(select(Perfil).where(Perfil.barbero_id == barbero_id)).all():
        perfil.barbero_id = None
        session.add(perfil)
    session.flush()

    session.delete(barbero)
    guardar_cambios(session, "eliminar barbero")
    logger.info("Barbero eliminado: %s (id=%s)", barbero.nombre, barbero_id)
    return
