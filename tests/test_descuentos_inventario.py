from decimal import Decimal
from types import SimpleNamespace

import pytest

from barberia_core.calculos.descuentos import netear_descuentos, separar_monto
from barberia_core.calculos.inventario import (
    costo_entradas,
    ganancia_venta,
    resumir_ventas,
    stock_bajo,
    validar_salida,
)
from barberia_core.errores import ErrorValidacion, StockInsuficiente


def mov(barbero_id, monto):
    return SimpleNamespace(barbero_id=barbero_id, monto=Decimal(monto))


def test_separar_monto():
    assert separar_monto(Decimal("5")) == (Decimal("5"), Decimal("0"))
    assert separar_monto(Decimal("-3")) == (Decimal("0"), Decimal("3"))


def test_neto_puede_ser_negativo():
    r = netear_descuentos(
        [mov(1, "10"), mov(1, "-4"), mov(2, "-2.5")],
        {1: "Luis", 2: "Ana"},
    )
    luis, ana = r.barberos
    assert luis.nombre == "Luis"
    assert luis.descuentos == Decimal("10")
    assert luis.bonos == Decimal("4")
    assert luis.neto == Decimal("-6")
    assert luis.cantidad_movimientos == 2
    assert ana.neto == Decimal("2.5")
    assert r.total_descuentos == Decimal("10")
    assert r.total_bonos == Decimal("6.5")
    assert r.neto == Decimal("-3.5")


def test_sin_movimientos():
    r = netear_descuentos([])
    assert r.barberos == []
    assert r.neto == Decimal("0")


def test_ganancia_venta_puede_ser_perdida():
    assert ganancia_venta(Decimal("8"), Decimal("5"), 3) == Decimal("9")
    assert ganancia_venta(Decimal("4"), Decimal("5"), 2) == Decimal("-2")


def test_validar_salida_no_modifica_el_articulo():
    articulo = SimpleNamespace(nombre="Cera", cantidad=2)
    with pytest.raises(StockInsuficiente) as exc:
        validar_salida(articulo, 3)
    assert exc.value.disponible == 2
    assert articulo.cantidad == 2
    with pytest.raises(ErrorValidacion):
        validar_salida(articulo, 0)
    validar_salida(articulo, 2)


def test_resumir_ventas_agrupa_por_producto():
    ventas = [
        SimpleNamespace(nombre_producto="Cera", cantidad=2, precio_venta=Decimal("8"), ganancia=Decimal("6")),
        SimpleNamespace(nombre_producto="Gel", cantidad=1, precio_venta=Decimal("5"), ganancia=Decimal("1")),
        SimpleNamespace(nombre_producto="Cera", cantidad=1, precio_venta=Decimal("8"), ganancia=Decimal("3")),
    ]
    r = resumir_ventas(ventas)
    assert [p.nombre for p in r.productos] == ["Cera", "Gel"]
    assert r.productos[0].cantidad == 3
    assert r.cantidad_total == 4
    assert r.ingresos_totales == Decimal("29")
    assert r.ganancia_total == Decimal("10")


def test_stock_bajo_y_costo_entradas():
    articulos = [
        SimpleNamespace(id=1, cantidad=2, stock_minimo=2),
        SimpleNamespace(id=2, cantidad=5, stock_minimo=1),
    ]
    assert [a.id for a in stock_bajo(articulos)] == [1]

    transacciones = [
        SimpleNamespace(articulo_id=1, tipo="entrada", cantidad=3),
        SimpleNamespace(articulo_id=1, tipo="salida", cantidad=1),
    ]
    assert costo_entradas(transacciones, {1: Decimal("2.5")}) == Decimal("7.5")
