# barberia_core/calculos/agregacion.py

from __future__ import annotations

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from pydantic import BaseModel

from barberia_core.calculos.clasificacion import (
    ClasificacionCatalogo,
    EstrategiaClasificacion,
    a_decimal,
)
from barberia_core.calculos.semana import VentanaSemana, nombre_dia

logger = logging.getLogger(__name__)


# =========================
# Esquemas de salida
# =========================

class FilaDia(BaseModel):
    fecha: date
    dia: str
    conteos: Dict[str, int]
    total_servicios: int
    ganancias: Decimal


class FilaTotalSemana(BaseModel):
    conteos: Dict[str, int]
    total_servicios: int
    ganancias: Decimal
    # Registros de la semana, incluso los que no caen en ninguna categoría
    total_registros: int


class ResumenSemanal(BaseModel):
    inicio: datetime
    fin: datetime
    categorias: List[str]
    dias: List[FilaDia]
    total: FilaTotalSemana


class ResumenBarbero(BaseModel):
    barbero_id: int
    nombre: str
    resumen: ResumenSemanal


# =========================
# Helpers
# =========================

def fecha_registro(registro) -> date:
    """
    Fecha (sin hora) de un registro. Acepta datetime o texto ISO.
    """
    momento = registro.created_at
    if isinstance(momento, datetime):
        return momento.date()
    if isinstance(momento, date):
        return momento
    return date.fromisoformat(str(momento)[:10])


def ganancia_guardada(registro) -> Decimal:
    return a_decimal(registro.ganancia_barbero)


# =========================
# Agregador
# =========================

def agregar_semana(
    registros: Iterable,
    ventana: VentanaSemana,
    estrategia: Optional[EstrategiaClasificacion] = None,
    ganancia: Callable[[object], Decimal] = ganancia_guardada,
) -> ResumenSemanal:
    """
    Arma la tabla lunes-sábado de una lista de servicios ya filtrada.

    Por cada día cuenta los servicios de cada categoría de la estrategia y suma
    la ganancia de todos los registros del día. El total del día es la suma de
    los conteos por categoría, no la cantidad de registros: un tipo fuera del
    catálogo suma ganancia pero no aparece en los conteos.
    """
    estrategia = estrategia or ClasificacionCatalogo()
    categorias = list(estrategia.categorias)

    por_fecha: Dict[date, List] = {}
    for r in registros:
        por_fecha.setdefault(fecha_registro(r), []).append(r)

    total_conteos = {c: 0 for c in categorias}
    total_ganancias = Decimal("0")
    total_registros = 0
    filas: List[FilaDia] = []

    for dia in ventana.dias():
        del_dia = por_fecha.get(dia, [])
        conteos = {c: 0 for c in categorias}
        ganancias_dia = Decimal("0")

        for r in del_dia:
            for categoria in estrategia.clasificar(r.tipo_servicio):
                conteos[categoria] += 1
            ganancias_dia += ganancia(r)

        for c in categorias:
            total_conteos[c] += conteos[c]
        total_ganancias += ganancias_dia
        total_registros += len(del_dia)

        filas.append(
            FilaDia(
                fecha=dia,
                dia=nombre_dia(dia),
                conteos=conteos,
                total_servicios=sum(conteos.values()),
                ganancias=ganancias_dia,
            )
        )

    logger.debug(
        "Semana %s: %d registros, ganancias=%s",
        ventana.etiqueta(), total_registros, total_ganancias,
    )

    return ResumenSemanal(
        inicio=ventana.inicio,
        fin=ventana.fin,
        categorias=categorias,
        dias=filas,
        total=FilaTotalSemana(
            conteos=total_conteos,
            total_servicios=sum(total_conteos.values()),
            ganancias=total_ganancias,
            total_registros=total_registros,
        ),
    )


def agregar_por_barbero(
    barberos: Sequence,
    registros: Iterable,
    ventana: VentanaSemana,
    estrategia: Optional[EstrategiaClasificacion] = None,
) -> List[ResumenBarbero]:
    """
    Un resumen semanal por barbero, en el orden de `barberos`.
    Los servicios de barberos que no están en la lista se ignoran.
    """
    por_barbero: Dict[int, List] = {b.id: [] for b in barberos}
    for r in registros:
        if r.barbero_id in por_barbero:
            por_barbero[r.barbero_id].append(r)

    return [
        ResumenBarbero(
            barbero_id=b.id,
            nombre=b.nombre,
            resumen=agregar_semana(por_barbero[b.id], ventana, estrategia),
        )
        for b in barberos
    ]


# =========================
# Resumen por tipo (vista semanal histórica)
# =========================

class TotalTipo(BaseModel):
    tipo_servicio: str
    cantidad: int
    total: Decimal


def resumir_por_tipo(
    registros: Iterable,
    precio: Callable[[str], Decimal],
) -> List[TotalTipo]:
    """
    Agrupa por el tipo tal como está guardado (sin catálogo) y valoriza
    cada servicio con `precio`. Orden de primera aparición.
    """
    acumulado: Dict[str, Dict] = {}
    for r in registros:
        datos = acumulado.setdefault(r.tipo_servicio, {"cantidad": 0, "total": Decimal("0")})
        datos["cantidad"] += 1
        datos["total"] += precio(r.tipo_servicio)
    return [
        TotalTipo(tipo_servicio=tipo, cantidad=d["cantidad"], total=d["total"])
        for tipo, d in acumulado.items()
    ]
