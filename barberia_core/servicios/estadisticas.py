# barberia_core/servicios/estadisticas.py
from __future__ import annotations

from typing import Dict, List, Optional
from datetime import date, datetime
from decimal import Decimal
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import StreamingResponse
from pydantic import BaseModel
from sqlmodel import Session, select

from barberia_core.calculos.agregacion import (
    ResumenBarbero,
    TotalTipo,
    agregar_por_barbero,
    agregar_semana,
    resumir_por_tipo,
)
from barberia_core.calculos.clasificacion import (
    COMISION_JEFE_PALABRA_CLAVE,
    ClasificacionPalabraClave,
    obtener_estrategia,
    precio_por_palabra_clave,
)
from barberia_core.calculos.inventario import (
    ResumenVentas,
    costo_entradas,
    resumir_ventas,
    stock_bajo,
)
from barberia_core.calculos.semana import VentanaSemana, hoy, ventana_semana
from barberia_core.calculos.tarifa_especial import (
    ResumenTarifaEspecial,
    recalcular_tarifa_especial,
)
from barberia_core.db.conexion import get_session
from barberia_core.db.modelos import (
    ArticuloInventario,
    Barbero,
    Role,
    Servicio,
    TransaccionInventario,
    VentaInventario,
)
from barberia_core.errores import BarberoNoVinculado, ErrorValidacion
from barberia_core.exportacion import FORMATOS, TablaExportable, exportar
from barberia_core.security import ContextoSesion, get_contexto_sesion, require_role

logger = logging.getLogger(__name__)

router = APIRouter()


# =========================
# Esquemas de respuesta
# =========================

class DiaOut(BaseModel):
    fecha: date
    dia: str


class SemanaOut(BaseModel):
    inicio: datetime
    fin: datetime
    etiqueta: str
    dias: List[DiaOut]


class ManuelOut(ResumenTarifaEspecial):
    inicio: datetime
    fin: datetime
    ventas_inventario: ResumenVentas


class SemanalBarberoOut(BaseModel):
    barbero_id: int
    nombre: str
    cantidad_servicios: int
    ganancias: Decimal
    servicios: List[TotalTipo]


class JefeOut(BaseModel):
    ganancias: Decimal
    servicios: List[TotalTipo]


class InventarioResumenOut(BaseModel):
    total_articulos: int
    stock_bajo: int
    # Entradas de la semana valorizadas al costo actual
    costo_entradas: Decimal


class SemanalOut(BaseModel):
    inicio: datetime
    fin: datetime
    barberos: List[SemanalBarberoOut]
    jefe: JefeOut
    inventario: InventarioResumenOut


# =========================
# Helpers
# =========================

def _servicios_semana(
    session: Session,
    ventana: VentanaSemana,
    barbero_id: Optional[int] = None,
) -> List[Servicio]:
    q = (
        select(Servicio)
        .where(Servicio.created_at >= ventana.inicio)
        .where(Servicio.created_at <= ventana.fin)
    )
    if barbero_id is not None:
        q = q.where(Servicio.barbero_id == barbero_id)
    return session.exec(q.order_by(Servicio.created_at.desc())).all()


def _estrategia(nombre: str):
    try:
        return obtener_estrategia(nombre)
    except ValueError as exc:
        raise ErrorValidacion(str(exc)) from exc


def _barberos(session: Session) -> List[Barbero]:
    return session.exec(select(Barbero).order_by(Barbero.nombre.asc())).all()


def _respuesta_archivo(tabla: TablaExportable, formato: str, nombre: str) -> StreamingResponse:
    contenido = exportar(tabla, formato)
    logger.info("Exportando %s.%s (%d filas)", nombre, formato, len(tabla.filas))
    return StreamingResponse(
        contenido,
        media_type=FORMATOS[formato],
        headers={"Content-Disposition": f'attachment; filename="{nombre}.{formato}"'},
    )


def tabla_admin(resumenes: List[ResumenBarbero], ventana: VentanaSemana) -> TablaExportable:
    categorias = resumenes[0].resumen.categorias if resumenes else []
    filas = []
    for rb in resumenes:
        for d in rb.resumen.dias:
            filas.append(
                [rb.nombre, d.dia]
                + [d.conteos[c] for c in categorias]
                + [d.total_servicios, d.ganancias]
            )
        t = rb.resumen.total
        filas.append(
            [rb.nombre, "Total semana"]
            + [t.conteos[c] for c in categorias]
            + [t.total_servicios, t.ganancias]
        )
    return TablaExportable(
        titulo=f"Servicios por barbero {ventana.etiqueta()}",
        encabezados=["Barbero", "Día"] + list(categorias) + ["Total", "Ganancias"],
        filas=filas,
    )


def tabla_manuel(resultado: ResumenTarifaEspecial, ventana: VentanaSemana) -> TablaExportable:
    filas = [
        [
            f"{s.created_at:%d/%m/%Y}",
            f"{s.created_at:%I:%M %p}",
            s.tipo_servicio,
            s.metodo_pago,
            s.barbero,
            s.comision,
        ]
        for s in resultado.servicios
    ]
    filas.append(["Total", "", "", "", "", resultado.total])
    return TablaExportable(
        titulo=f"Ganancias Manuel {ventana.etiqueta()}",
        encabezados=["Fecha", "Hora", "Servicio", "Método de Pago", "Nombre", "Total"],
        filas=filas,
    )


def _resultado_manuel(session: Session, ventana: VentanaSemana) -> ResumenTarifaEspecial:
    nombres = {b.id: b.nombre for b in session.exec(select(Barbero)).all()}
    return recalcular_tarifa_especial(
        _servicios_semana(session, ventana),
        ventana,
        nombres_barberos=nombres,
    )


# =========================
# Endpoints
# =========================

@router.get("/semana", response_model=SemanaOut)
def semana(
    fecha: Optional[date] = None,
    _user=Depends(require_role(Role.admin, Role.usuario)),
):
    ventana = ventana_semana(fecha or hoy())
    return SemanaOut(
        inicio=ventana.inicio,
        fin=ventana.fin,
        etiqueta=ventana.etiqueta(),
        dias=[
            DiaOut(fecha=d.fecha, dia=d.dia)
            for d in agregar_semana([], ventana).dias
        ],
    )


@router.get("/admin", response_model=List[ResumenBarbero])
def estadisticas_admin(
    fecha: Optional[date] = None,
    estrategia: str = "catalogo",
    session: Session = Depends(get_session),
    _user=Depends(require_role(Role.admin)),
):
    """
    Tabla lunes-sábado de cada barbero para la semana de `fecha`.
    """
    ventana = ventana_semana(fecha or hoy())
    return agregar_por_barbero(
        _barberos(session),
        _servicios_semana(session, ventana),
        ventana,
        _estrategia(estrategia),
    )


@router.get("/admin/exportar")
def exportar_admin(
    formato: str = "xlsx",
    fecha: Optional[date] = None,
    estrategia: str = "catalogo",
    session: Session = Depends(get_session),
    _user=Depends(require_role(Role.admin)),
):
    if formato not in FORMATOS:
        raise ErrorValidacion(f"Formato no soportado: {formato} (usa xlsx o pdf)")
    ventana = ventana_semana(fecha or hoy())
    resumenes = agregar_por_barbero(
        _barberos(session),
        _servicios_semana(session, ventana),
        ventana,
        _estrategia(estrategia),
    )
    return _respuesta_archivo(
        tabla_admin(resumenes, ventana), formato, f"servicios_{ventana.inicio:%Y%m%d}",
    )


@router.get("/barbero/{barbero_id}", response_model=ResumenBarbero)
def estadisticas_barbero(
    barbero_id: int,
    fecha: Optional[date] = None,
    session: Session = Depends(get_session),
    _user=Depends(require_role(Role.admin)),
):
    barbero = session.get(Barbero, barbero_id)
    if not barbero:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Barbero no encontrado",
        )
    ventana = ventana_semana(fecha or hoy())
    return ResumenBarbero(
        barbero_id=barbero.id,
        nombre=barbero.nombre,
        resumen=agregar_semana(_servicios_semana(session, ventana, barbero.id), ventana),
    )


@router.get("/mi-semana", response_model=ResumenBarbero)
def mi_semana(
    fecha: Optional[date] = None,
    session: Session = Depends(get_session),
    ctx: ContextoSesion = Depends(get_contexto_sesion),
):
    """
    Estadísticas del barbero vinculado al usuario de la sesión.
    """
    if ctx.barbero_id is None:
        raise BarberoNoVinculado(ctx.usuario_id)
    barbero = session.get(Barbero, ctx.barbero_id)
    if not barbero:
        raise BarberoNoVinculado(ctx.usuario_id)

    ventana = ventana_semana(fecha or hoy())
    return ResumenBarbero(
        barbero_id=barbero.id,
        nombre=barbero.nombre,
        resumen=agregar_semana(_servicios_semana(session, ventana, barbero.id), ventana),
    )


@router.get("/manuel", response_model=ManuelOut)
def estadisticas_manuel(
    fecha: Optional[date] = None,
    session: Session = Depends(get_session),
    _user=Depends(require_role(Role.admin)),
):
    ventana = ventana_semana(fecha or hoy())
    resultado = _resultado_manuel(session, ventana)
    ventas = session.exec(
        select(VentaInventario)
        .where(VentaInventario.created_at >= ventana.inicio)
        .where(VentaInventario.created_at <= ventana.fin)
    ).all()
    return ManuelOut(
        inicio=ventana.inicio,
        fin=ventana.fin,
        servicios=resultado.servicios,
        resumen=resultado.resumen,
        total=resultado.total,
        ventas_inventario=resumir_ventas(ventas),
    )


@router.get("/manuel/exportar")
def exportar_manuel(
    formato: str = "xlsx",
    fecha: Optional[date] = None,
    session: Session = Depends(get_session),
    _user=Depends(require_role(Role.admin)),
):
    if formato not in FORMATOS:
        raise ErrorValidacion(f"Formato no soportado: {formato} (usa xlsx o pdf)")
    ventana = ventana_semana(fecha or hoy())
    return _respuesta_archivo(
        tabla_manuel(_resultado_manuel(session, ventana), ventana),
        formato,
        f"manuel_{ventana.inicio:%Y%m%d}",
    )


@router.get("/semanal", response_model=SemanalOut)
def resumen_semanal(
    fecha: Optional[date] = None,
    session: Session = Depends(get_session),
    _user=Depends(require_role(Role.admin)),
):
    """
    Resumen con la clasificación por palabra clave (corte/barba/ceja) y la
    tabla de precios fija anterior al catálogo. También muestra la comisión
    del jefe y el estado del inventario.
    """
    ventana = ventana_semana(fecha or hoy())
    servicios = _servicios_semana(session, ventana)

    por_barbero: Dict[int, List[Servicio]] = {}
    for s in servicios:
        por_barbero.setdefault(s.barbero_id, []).append(s)

    barberos_out = []
    for b in _barberos(session):
        propios = por_barbero.get(b.id, [])
        barberos_out.append(
            SemanalBarberoOut(
                barbero_id=b.id,
                nombre=b.nombre,
                cantidad_servicios=len(propios),
                ganancias=sum(
                    (precio_por_palabra_clave(s.tipo_servicio) for s in propios),
                    Decimal("0"),
                ),
                servicios=resumir_por_tipo(propios, precio_por_palabra_clave),
            )
        )

    def comision_jefe(tipo: str) -> Decimal:
        return precio_por_palabra_clave(tipo, COMISION_JEFE_PALABRA_CLAVE)

    jefe_servicios = resumir_por_tipo(servicios, comision_jefe)
    articulos = session.exec(select(ArticuloInventario)).all()
    entradas = session.exec(
        select(TransaccionInventario)
        .where(TransaccionInventario.created_at >= ventana.inicio)
        .where(TransaccionInventario.created_at <= ventana.fin)
    ).all()

    return SemanalOut(
        inicio=ventana.inicio,
        fin=ventana.fin,
        barberos=barberos_out,
        jefe=JefeOut(
            ganancias=sum((t.total for t in jefe_servicios), Decimal("0")),
            servicios=jefe_servicios,
        ),
        inventario=InventarioResumenOut(
            total_articulos=sum(a.cantidad for a in articulos),
            stock_bajo=len(stock_bajo(articulos)),
            costo_entradas=costo_entradas(
                entradas, {a.id: a.precio_unitario for a in articulos}
            ),
        ),
    )


@router.get("/semanal/categorias", response_model=List[ResumenBarbero])
def semanal_por_categoria(
    fecha: Optional[date] = None,
    session: Session = Depends(get_session),
    _user=Depends(require_role(Role.admin)),
):
    """
    Tabla diaria con las columnas Cortes/Barbas/Cejas de la clasificación por palabra clave.
    """
    ventana = ventana_semana(fecha or hoy())
    return agregar_por_barbero(
        _barberos(session),
        _servicios_semana(session, ventana),
        ventana,
        ClasificacionPalabraClave(),
    )
