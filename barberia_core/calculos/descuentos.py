# barberia_core/calculos/descuentos.py

from __future__ import annotations

from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from pydantic import BaseModel

from barberia_core.calculos.clasificacion import a_decimal


class NetoBarbero(BaseModel):
    barbero_id: int
    nombre: str
    descuentos: Decimal
    bonos: Decimal
    # bonos - descuentos; puede ser negativo
    neto: Decimal
    cantidad_movimientos: int


class ResumenDescuentos(BaseModel):
    barberos: List[NetoBarbero]
    total_descuentos: Decimal
    total_bonos: Decimal
    neto: Decimal


def separar_monto(monto) -> tuple:
    """
    (descuento, bono) de un movimiento. monto >= 0 es descuento,
    monto < 0 es bono por su valor absoluto.
    """
    monto = a_decimal(monto)
    if monto >= 0:
        return monto, Decimal("0")
    return Decimal("0"), -monto


def netear_descuentos(
    movimientos: Iterable,
    nombres_barberos: Optional[Dict[int, str]] = None,
) -> ResumenDescuentos:
    """
    Recalcula desde cero los totales por barbero y de toda la barbería.
    """
    nombres_barberos = nombres_barberos or {}
    acumulado: Dict[int, Dict] = {}

    for m in movimientos:
        datos = acumulado.setdefault(
            m.barbero_id,
            {"descuentos": Decimal("0"), "bonos": Decimal("0"), "cantidad": 0},
        )
        descuento, bono = separar_monto(m.monto)
        datos["descuentos"] += descuento
        datos["bonos"] += bono
        datos["cantidad"] += 1

    filas = [
        NetoBarbero(
            barbero_id=barbero_id,
            nombre=nombres_barberos.get(barbero_id, "Sin barbero"),
            descuentos=datos["descuentos"],
            bonos=datos["bonos"],
            neto=datos["bonos"] - datos["descuentos"],
            cantidad_movimientos=datos["cantidad"],
        )
        for barbero_id, datos in sorted(acumulado.items())
    ]

    total_descuentos = sum((f.descuentos for f in filas), Decimal("0"))
    total_bonos = sum((f.bonos for f in filas), Decimal("0"))

    return ResumenDescuentos(
        barberos=filas,
        total_descuentos=total_descuentos,
        total_bonos=total_bonos,
        neto=total_bonos - total_descuentos,
    )
