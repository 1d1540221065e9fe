from decimal import Decimal

import pytest
from openpyxl import load_workbook

from barberia_core.errores import ErrorValidacion
from barberia_core.exportacion import TablaExportable, exportar, nombre_hoja


def test_titulo_con_fechas_genera_excel():
    tabla = TablaExportable(
        titulo="Ganancias Manuel 03/06/2024 - 08/06/2024",
        encabezados=["Día", "Ganancia"],
        filas=[["Lunes", Decimal("12.50")]],
    )
    buffer = exportar(tabla, "xlsx")
    assert buffer.getvalue().startswith(b"PK")

    ws = load_workbook(buffer).active
    assert "/" not in ws.title
    assert len(ws.title) <= 31
    assert ws.cell(row=1, column=1).value == "Día"


@pytest.mark.parametrize(
    "titulo,esperado",
    [
        ("a/b[c]", "a-b-c-"),
        ("Hoja: 1?*", "Hoja- 1--"),
        ("   ", "Reporte"),
        ("x" * 40, "x" * 31),
    ],
)
def test_nombre_hoja(titulo, esperado):
    assert nombre_hoja(titulo) == esperado


def test_formato_no_soportado():
    tabla = TablaExportable(titulo="T", encabezados=["A"], filas=[[1]])
    with pytest.raises(ErrorValidacion):
        exportar(tabla, "csv")
