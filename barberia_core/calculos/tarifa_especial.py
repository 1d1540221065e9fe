# barberia_core/calculos/tarifa_especial.py
# Ganancias de Manuel: comisión fija por tipo de servicio sobre todos los
# servicios de la barbería, sin mirar la ganancia guardada en cada registro.

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from pydantic import BaseModel

from barberia_core.calculos.agregacion import ResumenSemanal, agregar_semana
from barberia_core.calculos.clasificacion import TIPO_COMBO, ClasificacionCatalogo
from barberia_core.calculos.semana import VentanaSemana


TARIFAS_MANUEL: Dict[str, Decimal] = {
    "Corte": Decimal("3.4"),
    "Barba Sencilla": Decimal("1"),
    "Barba Premium": Decimal("2"),
    "Cejas": Decimal("0.5"),
    "Afeitado": Decimal("1"),
    "Facial Primera Vez": Decimal("3"),
    "Facial": Decimal("3"),
    "Corte+Barba Premium": Decimal("4"),
    "Mascarilla Completa": Decimal("0.5"),
}


class FilaServicioEspecial(BaseModel):
    id: Optional[int]
    created_at: datetime
    tipo_servicio: str
    metodo_pago: str
    barbero: str
    comision: Decimal


class ResumenTarifaEspecial(BaseModel):
    servicios: List[FilaServicioEspecial]
    resumen: ResumenSemanal
    total: Decimal


def deduplicar_combo(registros: Iterable, tipo_combo: str = TIPO_COMBO) -> List:
    """
    El combo se guarda como dos filas con el mismo timestamp; para comisionar
    se deja una sola por (created_at, tipo). Los demás tipos pasan intactos.
    """
    vistos = set()
    resultado = []
    for r in registros:
        if r.tipo_servicio == tipo_combo:
            clave = (r.created_at, r.tipo_servicio)
            if clave in vistos:
                continue
            vistos.add(clave)
        resultado.append(r)
    return resultado


def comision(tipo_servicio: str, tarifas: Dict[str, Decimal] = TARIFAS_MANUEL) -> Decimal:
    return tarifas.get(tipo_servicio, Decimal("0"))


def recalcular_tarifa_especial(
    registros: Iterable,
    ventana: VentanaSemana,
    tarifas: Dict[str, Decimal] = TARIFAS_MANUEL,
    tipo_combo: str = TIPO_COMBO,
    nombres_barberos: Optional[Dict[int, str]] = None,
) -> ResumenTarifaEspecial:
    unicos = deduplicar_combo(registros, tipo_combo)
    nombres_barberos = nombres_barberos or {}

    resumen = agregar_semana(
        unicos,
        ventana,
        ClasificacionCatalogo(),
        ganancia=lambda r: comision(r.tipo_servicio, tarifas),
    )

    filas = [
        FilaServicioEspecial(
            id=r.id,
            created_at=r.created_at,
            tipo_servicio=r.tipo_servicio,
            metodo_pago=getattr(r.metodo_pago, "value", r.metodo_pago) or "efectivo",
            barbero=nombres_barberos.get(r.barbero_id, "Sin barbero"),
            comision=comision(r.tipo_servicio, tarifas),
        )
        for r in sorted(unicos, key=lambda r: r.created_at, reverse=True)
        if ventana.contiene(r.created_at)
    ]

    return ResumenTarifaEspecial(
        servicios=filas,
        resumen=resumen,
        total=resumen.total.ganancias,
    )
