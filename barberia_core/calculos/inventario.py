# barberia_core/calculos/inventario.py

from __future__ import annotations

from decimal import Decimal
from typing import Dict, Iterable, List

from pydantic import BaseModel

from barberia_core.calculos.clasificacion import a_decimal
from barberia_core.errores import ErrorValidacion, StockInsuficiente


class ProductoVendido(BaseModel):
    nombre: str
    cantidad: int
    ingresos: Decimal
    ganancia: Decimal


class ResumenVentas(BaseModel):
    productos: List[ProductoVendido]
    cantidad_total: int
    ingresos_totales: Decimal
    ganancia_total: Decimal


def ganancia_venta(precio_venta, costo_unitario, cantidad: int) -> Decimal:
    """
    (precio_venta - costo_unitario) * cantidad. Puede ser negativa:
    vender a pérdida está permitido.
    """
    return (a_decimal(precio_venta) - a_decimal(costo_unitario)) * cantidad


def validar_salida(articulo, cantidad: int) -> None:
    """
    Rechaza una salida o venta que dejaría el stock en negativo.
    """
    if cantidad is None or cantidad <= 0:
        raise ErrorValidacion("La cantidad debe ser mayor a 0")
    if cantidad > articulo.cantidad:
        raise StockInsuficiente(articulo.nombre, articulo.cantidad, cantidad)


def resumir_ventas(ventas: Iterable) -> ResumenVentas:
    """
    Agrupa las ventas por nombre de producto, en orden de primera aparición.
    """
    por_producto: Dict[str, Dict] = {}
    for v in ventas:
        datos = por_producto.setdefault(
            v.nombre_producto,
            {"cantidad": 0, "ingresos": Decimal("0"), "ganancia": Decimal("0")},
        )
        datos["cantidad"] += v.cantidad
        datos["ingresos"] += a_decimal(v.precio_venta) * v.cantidad
        datos["ganancia"] += a_decimal(v.ganancia)

    productos = [
        ProductoVendido(nombre=nombre, **datos)
        for nombre, datos in por_producto.items()
    ]
    return ResumenVentas(
        productos=productos,
        cantidad_total=sum(p.cantidad for p in productos),
        ingresos_totales=sum((p.ingresos for p in productos), Decimal("0")),
        ganancia_total=sum((p.ganancia for p in productos), Decimal("0")),
    )


def costo_entradas(transacciones: Iterable, costos: Dict[int, Decimal]) -> Decimal:
    """
    Valor de las entradas de inventario al costo actual de cada artículo.
    """
    total = Decimal("0")
    for t in transacciones:
        if getattr(t.tipo, "value", t.tipo) != "entrada":
            continue
        total += costos.get(t.articulo_id, Decimal("0")) * t.cantidad
    return total


def stock_bajo(articulos: Iterable) -> List:
    return [a for a in articulos if a.cantidad <= a.stock_minimo]
