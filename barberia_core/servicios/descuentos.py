# barberia_core/servicios/descuentos.py
from __future__ import annotations

from typing import List, Optional
from datetime import date, datetime
from decimal import Decimal
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel
from sqlmodel import Session, select

from barberia_core.calculos.descuentos import ResumenDescuentos, netear_descuentos
from barberia_core.calculos.semana import a_hora_local, ahora, hoy, ventana_semana
from barberia_core.db.conexion import get_session, guardar_cambios
from barberia_core.db.modelos import Barbero, DescuentoBarbero, Role
from barberia_core.errores import ErrorValidacion
from barberia_core.security import require_role

logger = logging.getLogger(__name__)

router = APIRouter()


class DescuentoIn(BaseModel):
    barbero_id: Optional[int] = None
    # Positivo = descuento, negativo = bono
    monto: Optional[Decimal] = None
    concepto: Optional[str] = None
    fecha_hora: Optional[datetime] = None


class DescuentoOut(BaseModel):
    id: int
    barbero_id: int
    barbero: str
    monto: Decimal
    concepto: str
    created_at: datetime


def _nombres(session: Session) -> dict:
    return {b.id: b.nombre for b in session.exec(select(Barbero)).all()}


def _descuentos_semana(session: Session, fecha: Optional[date], barbero_id: Optional[int]):
    ventana = ventana_semana(fecha or hoy())
    q = (
        select(DescuentoBarbero)
        .where(DescuentoBarbero.created_at >= ventana.inicio)
        .where(DescuentoBarbero.created_at <= ventana.fin)
    )
    if barbero_id:
        q = q.where(DescuentoBarbero.barbero_id == barbero_id)
    return session.exec(q.order_by(DescuentoBarbero.created_at.desc(), DescuentoBarbero.id.desc())).all()


@router.get("/", response_model=List[DescuentoOut])
def listar_descuentos(
    fecha: Optional[date] = None,
    barbero_id: Optional[int] = None,
    session: Session = Depends(get_session),
    _user=Depends(require_role(Role.admin)),
):
    nombres = _nombres(session)
    return [
        DescuentoOut(
            id=d.id,
            barbero_id=d.barbero_id,
            barbero=nombres.get(d.barbero_id, "Sin barbero"),
            monto=d.monto,
            concepto=d.concepto,
            created_at=d.created_at,
        )
        for d in _descuentos_semana(session, fecha, barbero_id)
    ]


@router.get("/resumen", response_model=ResumenDescuentos)
def resumen_descuentos(
    fecha: Optional[date] = None,
    barbero_id: Optional[int] = None,
    session: Session = Depends(get_session),
    _user=Depends(require_role(Role.admin)),
):
    return netear_descuentos(
        _descuentos_semana(session, fecha, barbero_id),
        _nombres(session),
    )


@router.post("/", response_model=DescuentoBarbero, status_code=status.HTTP_201_CREATED)
def registrar_descuento(
    body: DescuentoIn,
    session: Session = Depends(get_session),
    _user=Depends(require_role(Role.admin)),
):
    if not body.barbero_id or body.monto is None or not (body.concepto or "").strip():
        raise ErrorValidacion("Por favor completa todos los campos")
    if body.monto == 0:
        raise ErrorValidacion("El monto no puede ser 0")

    barbero = session.get(Barbero, body.barbero_id)
    if not barbero:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Barbero no encontrado",
        )

    movimiento = DescuentoBarbero(
        barbero_id=barbero.id,
        monto=body.monto,
        concepto=body.concepto.strip(),
        created_at=(a_hora_local(body.fecha_hora) if body.fecha_hora else ahora()),
    )
    session.add(movimiento)
    guardar_cambios(session, "registrar descuento")
    session.refresh(movimiento)

    if body.monto >= 0:
        logger.info("Se descontó %s a %s", body.monto, barbero.nombre)
    else:
        logger.info("Bono de %s para %s", -body.monto, barbero.nombre)
    return movimiento


@router.delete("/{descuento_id}", status_code=status.HTTP_204_NO_CONTENT)
def eliminar_descuento(
    descuento_id: int,
    session: Session = Depends(get_session),
    _user=Depends(require_role(Role.admin)),
):
    movimiento = session.get(DescuentoBarbero, descuento_id)
    if not movimiento:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Descuento no encontrado",
        )
    session.delete(movimiento)
    guardar_cambios(session, "eliminar descuento")
    return
