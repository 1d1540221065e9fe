# barberia_core/servicios/datos.py
# Borrado total de datos con doble confirmación
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, Optional
import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel
from sqlmodel import Session, select

from barberia_core.almacenamiento import eliminar_imagen
from barberia_core.db.conexion import get_session, guardar_cambios
from barberia_core.db.modelos import (
    ArticuloInventario,
    Barbero,
    DescuentoBarbero,
    Perfil,
    Role,
    Servicio,
    TransaccionInventario,
    Usuario,
    VentaInventario,
)
from barberia_core.calculos.semana import ahora
from barberia_core.errores import ErrorBarberia
from barberia_core.security import require_role

logger = logging.getLogger(__name__)

router = APIRouter()


class EstadoBorrado(str, Enum):
    inactivo = "inactivo"
    pendiente_confirmacion = "pendiente_confirmacion"
    pendiente_confirmacion_final = "pendiente_confirmacion_final"
    ejecutando = "ejecutando"
    completado = "completado"
    fallido = "fallido"


# Estado actual -> estado al que lleva cada acción
TRANSICIONES = {
    ("confirmar", EstadoBorrado.pendiente_confirmacion): EstadoBorrado.pendiente_confirmacion_final,
    ("confirmar-final", EstadoBorrado.pendiente_confirmacion_final): EstadoBorrado.ejecutando,
    ("cancelar", EstadoBorrado.pendiente_confirmacion): EstadoBorrado.inactivo,
    ("cancelar", EstadoBorrado.pendiente_confirmacion_final): EstadoBorrado.inactivo,
}


class TransicionInvalida(ErrorBarberia):
    status_code = 409


@dataclass
class SolicitudBorrado:
    solicitado_por: int
    token: str = field(default_factory=lambda: uuid.uuid4().hex)
    estado: EstadoBorrado = EstadoBorrado.pendiente_confirmacion
    creado: datetime = field(default_factory=ahora)
    eliminados: Dict[str, int] = field(default_factory=dict)
    error: Optional[str] = None

    def avanzar(self, accion: str) -> EstadoBorrado:
        siguiente = TRANSICIONES.get((accion, self.estado))
        if siguiente is None:
            raise TransicionInvalida(
                f"No se puede '{accion}' un borrado en estado {self.estado.value}"
            )
        self.estado = siguiente
        return siguiente


class SolicitudOut(BaseModel):
    token: str
    estado: EstadoBorrado
    mensaje: str
    eliminados: Dict[str, int] = {}
    error: Optional[str] = None


_solicitudes: Dict[str, SolicitudBorrado] = {}


def _out(solicitud: SolicitudBorrado, mensaje: str) -> SolicitudOut:
    return SolicitudOut(
        token=solicitud.token,
        estado=solicitud.estado,
        mensaje=mensaje,
        eliminados=solicitud.eliminados,
        error=solicitud.error,
    )


def _solicitud_o_404(token: str) -> SolicitudBorrado:
    solicitud = _solicitudes.get(token)
    if not solicitud:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Solicitud de borrado no encontrada",
        )
    return solicitud


def borrar_todo(session: Session) -> Dict[str, int]:
    """
    Elimina todos los datos de negocio en una sola transacción.
    Primero los registros dependientes, después los barberos.
    Los usuarios y sus perfiles se conservan; solo se rompe el vínculo.
    """
    eliminados: Dict[str, int] = {}

    def _borrar(modelo, clave: str) -> None:
        filas = session.exec(select(modelo)).all()
        for fila in filas:
            session.delete(fila)
        session.flush()
        eliminados[clave] = len(filas)

    _borrar(VentaInventario, "ventas_inventario")
    _borrar(TransaccionInventario, "transacciones_inventario")
    comprobantes = [
        s.comprobante_url
        for s in session.exec(select(Servicio)).all()
        if s.comprobante_url
    ]
    _borrar(Servicio, "servicios")
    _borrar(DescuentoBarbero, "descuentos")
    _borrar(ArticuloInventario, "articulos_inventario")

    vinculados = session.exec(select(Perfil).where(Perfil.barbero_id.is_not(None))).all()
    for perfil in vinculados:
        perfil.barbero_id = None
        session.add(perfil)
    session.flush()
    eliminados["vinculos_perfiles"] = len(vinculados)

    _borrar(Barbero, "barberos")

    guardar_cambios(session, "borrar todos los datos")

    for url in comprobantes:
        eliminar_imagen(url)
    return eliminados



# =========================
# Endpoints
# =========================

@router.post("/borrado", response_model=SolicitudOut, status_code=status.HTTP_201_CREATED)
def solicitar_borrado(
    user: Usuario = Depends(require_role(Role.admin)),
):
    """
    Primer paso: abre una solicitud. Nada se borra hasta las dos confirmaciones.
    """
    solicitud = SolicitudBorrado(solicitado_por=user.id)
    _solicitudes[solicitud.token] = solicitud
    logger.warning("Borrado total solicitado por %s", user.email)
    return _out(
        solicitud,
        "¿Estás seguro de que deseas borrar todos los datos? Esta acción no se puede deshacer.",
    )


@router.post("/borrado/{token}/confirmar", response_model=SolicitudOut)
def confirmar_borrado(
    token: str,
    _user=Depends(require_role(Role.admin)),
):
    solicitud = _solicitud_o_404(token)
    solicitud.avanzar("confirmar")
    return _out(
        solicitud,
        "Esta es la última confirmación. Se borrarán servicios, inventario, "
        "descuentos y barberos.",
    )


@router.post("/borrado/{token}/confirmar-final", response_model=SolicitudOut)
def ejecutar_borrado(
    token: str,
    session: Session = Depends(get_session),
    user: Usuario = Depends(require_role(Role.admin)),
):
    solicitud = _solicitud_o_404(token)
    solicitud.avanzar("confirmar-final")

    try:
        solicitud.eliminados = borrar_todo(session)
    except ErrorBarberia as exc:
        solicitud.estado = EstadoBorrado.fallido
        solicitud.error = exc.detalle
        _solicitudes.pop(token, None)
        raise

    # Terminada: el token ya no sirve
    solicitud.estado = EstadoBorrado.completado
    _solicitudes.pop(token, None)
    logger.warning("Borrado total ejecutado por %s: %s", user.email, solicitud.eliminados)
    return _out(solicitud, "Todos los datos han sido eliminados")


@router.delete("/borrado/{token}", response_model=SolicitudOut)
def cancelar_borrado(
    token: str,
    _user=Depends(require_role(Role.admin)),
):
    solicitud = _solicitud_o_404(token)
    solicitud.avanzar("cancelar")
    _solicitudes.pop(token, None)
    logger.info("Borrado total cancelado")
    return _out(solicitud, "Borrado cancelado")


@router.get("/borrado/{token}", response_model=SolicitudOut)
def estado_borrado(
    token: str,
    _user=Depends(require_role(Role.admin)),
):
    solicitud = _solicitud_o_404(token)
    return _out(solicitud, solicitud.estado.value)
