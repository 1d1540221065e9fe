# barberia_core/servicios/registro_servicios.py
from __future__ import annotations

from typing import List, Optional
from datetime import datetime, date, time
from decimal import Decimal
import logging

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status
from pydantic import BaseModel
from sqlmodel import Session, select

from barberia_core import almacenamiento
from barberia_core.calculos.clasificacion import (
    CATALOGO_GANANCIAS,
    TIPO_COMBO,
    a_decimal,
    columna_contador,
    ganancia_sugerida,
)
from barberia_core.calculos.semana import a_hora_local, ahora, hoy
from barberia_core.db.conexion import get_session, guardar_cambios
from barberia_core.db.modelos import Barbero, MetodoPago, Role, Servicio
from barberia_core.errores import ErrorValidacion
from barberia_core.security import require_role

logger = logging.getLogger(__name__)

router = APIRouter()


# --------- Esquemas de entrada ---------

class ServicioCreate(BaseModel):
    barbero_id: Optional[int] = None
    tipo_servicio: Optional[str] = None
    # Si no viene, se usa la ganancia sugerida del catálogo
    ganancia_barbero: Optional[Decimal] = None
    propina: Decimal = Decimal("0")
    metodo_pago: MetodoPago = MetodoPago.efectivo
    nombre_cliente: Optional[str] = None
    fecha_hora: Optional[datetime] = None
    # Solo para el combo: el segundo barbero recibe su propia fila
    barbero_secundario_id: Optional[int] = None
    ganancia_secundaria: Decimal = Decimal("0")


# --------- Helpers ---------

def _ensure_fecha_hora(fecha_hora: Optional[datetime]) -> datetime:
    if fecha_hora:
        return a_hora_local(fecha_hora)
    return ahora()


def _ajustar_contador(barbero: Barbero, tipo_servicio: str, delta: int) -> None:
    columna = columna_contador(tipo_servicio)
    actual = getattr(barbero, columna) or 0
    setattr(barbero, columna, max(actual + delta, 0))


def _validar(body: ServicioCreate) -> Decimal:
    if not body.barbero_id or not (body.tipo_servicio or "").strip():
        raise ErrorValidacion("Por favor selecciona barbero y servicio")
    if body.propina < 0:
        raise ErrorValidacion("La propina no puede ser negativa")

    base = body.ganancia_barbero
    if base is None:
        base = ganancia_sugerida(body.tipo_servicio)
    if base is None:
        raise ErrorValidacion(
            f"'{body.tipo_servicio}' no está en el catálogo: indica la ganancia del barbero"
        )
    if base < 0:
        raise ErrorValidacion("La ganancia no puede ser negativa")

    if body.barbero_secundario_id is not None:
        if body.tipo_servicio != TIPO_COMBO:
            raise ErrorValidacion(f"Solo el servicio {TIPO_COMBO} admite un segundo barbero")
        if body.barbero_secundario_id == body.barbero_id:
            raise ErrorValidacion("El segundo barbero debe ser distinto al primero")
        if body.ganancia_secundaria < 0:
            raise ErrorValidacion("La ganancia no puede ser negativa")

    return base + body.propina


def _obtener_barbero(session: Session, barbero_id: int) -> Barbero:
    barbero = session.get(Barbero, barbero_id)
    if not barbero:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Barbero no encontrado (id={barbero_id})",
        )
    return barbero


# --------- Endpoints ---------

@router.get("/catalogo")
def catalogo(
    _user=Depends(require_role(Role.admin, Role.usuario)),
):
    return [
        {"nombre": nombre, "ganancia": ganancia, "combo": nombre == TIPO_COMBO}
        for nombre, ganancia in CATALOGO_GANANCIAS
    ]


@router.get("/", response_model=List[Servicio])
def listar_servicios(
    barbero_id: Optional[int] = None,
    fecha_inicio: Optional[date] = None,
    fecha_fin: Optional[date] = None,
    limite: int = 200,
    session: Session = Depends(get_session),
    _user=Depends(require_role(Role.admin, Role.usuario)),
):
    q = select(Servicio)
    if barbero_id:
        q = q.where(Servicio.barbero_id == barbero_id)
    if fecha_inicio:
        q = q.where(Servicio.created_at >= datetime.combine(fecha_inicio, time.min))
    if fecha_fin:
        q = q.where(Servicio.created_at <= datetime.combine(fecha_fin, time.max))

    q = q.order_by(Servicio.created_at.desc(), Servicio.id.desc()).limit(max(1, min(limite, 1000)))
    return session.exec(q).all()


@router.get("/hoy")
def ganancias_hoy(
    session: Session = Depends(get_session),
    _user=Depends(require_role(Role.admin, Role.usuario)),
):
    dia = hoy()
    servicios = session.exec(
        select(Servicio)
        .where(Servicio.created_at >= datetime.combine(dia, time.min))
        .where(Servicio.created_at <= datetime.combine(dia, time.max))
    ).all()
    return {
        "fecha": dia.isoformat(),
        "cantidad": len(servicios),
        "ganancias": sum((a_decimal(s.ganancia_barbero) for s in servicios), Decimal("0")),
    }


@router.post("/", response_model=List[Servicio], status_code=status.HTTP_201_CREATED)
def registrar_servicio(
    body: ServicioCreate,
    session: Session = Depends(get_session),
    _user=Depends(require_role(Role.admin, Role.usuario)),
):
    """
    Registra el servicio y suma el contador del barbero en la misma transacción.
    El combo con segundo barbero genera dos filas con el mismo timestamp.
    """
    ganancia = _validar(body)

    barbero = _obtener_barbero(session, body.barbero_id)
    secundario = None
    if body.barbero_secundario_id is not None:
        secundario = _obtener_barbero(session, body.barbero_secundario_id)

    momento = _ensure_fecha_hora(body.fecha_hora)
    tipo = body.tipo_servicio.strip()

    creados = [
        Servicio(
            barbero_id=barbero.id,
            tipo_servicio=tipo,
            ganancia_barbero=ganancia,
            propina=body.propina,
            metodo_pago=body.metodo_pago,
            nombre_cliente=body.nombre_cliente or None,
            created_at=momento,
        )
    ]
    _ajustar_contador(barbero, tipo, +1)
    session.add(barbero)

    if secundario is not None:
        creados.append(
            Servicio(
                barbero_id=secundario.id,
                tipo_servicio=tipo,
                ganancia_barbero=body.ganancia_secundaria,
                metodo_pago=body.metodo_pago,
                nombre_cliente=body.nombre_cliente or None,
                created_at=momento,
            )
        )
        _ajustar_contador(secundario, tipo, +1)
        session.add(secundario)

    for s in creados:
        session.add(s)
    guardar_cambios(session, "registrar servicio")
    for s in creados:
        session.refresh(s)

    if body.propina > 0:
        logger.info("Servicio %s registrado para %s con propina de %s", tipo, barbero.nombre, body.propina)
    else:
        logger.info("Servicio %s registrado para %s", tipo, barbero.nombre)
    return creados


@router.delete("/{servicio_id}", status_code=status.HTTP_204_NO_CONTENT)
def eliminar_servicio(
    servicio_id: int,
    session: Session = Depends(get_session),
    _user=Depends(require_role(Role.admin, Role.usuario)),
):
    servicio = session.get(Servicio, servicio_id)
    if not servicio:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Servicio no encontrado",
        )

    barbero = session.get(Barbero, servicio.barbero_id)
    if barbero:
        _ajustar_contador(barbero, servicio.tipo_servicio, -1)
        session.add(barbero)

    comprobante = servicio.comprobante_url
    session.delete(servicio)
    guardar_cambios(session, "eliminar servicio")

    if comprobante:
        almacenamiento.eliminar_imagen(comprobante)
    logger.info("Servicio eliminado (id=%s)", servicio_id)
    return


@router.post("/{servicio_id}/comprobante", response_model=Servicio)
async def subir_comprobante(
    servicio_id: int,
    archivo: UploadFile = File(...),
    session: Session = Depends(get_session),
    _user=Depends(require_role(Role.admin, Role.usuario)),
):
    servicio = session.get(Servicio, servicio_id)
    if not servicio:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Servicio no encontrado",
        )

    contenido = await archivo.read()
    url = almacenamiento.guardar_imagen(contenido, archivo.content_type)

    anterior = servicio.comprobante_url
    servicio.comprobante_url = url
    session.add(servicio)
    guardar_cambios(session, "guardar comprobante")
    session.refresh(servicio)

    if anterior:
        almacenamiento.eliminar_imagen(anterior)
    return servicio
