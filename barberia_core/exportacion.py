# barberia_core/exportacion.py
# Exportación de tablas {titulo, encabezados, filas} a Excel o PDF.

from __future__ import annotations

from decimal import Decimal
from typing import List, Union
import io
import re

from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill, Border, Side
from openpyxl.utils import get_column_letter
from pydantic import BaseModel

from barberia_core.errores import ErrorValidacion

Celda = Union[str, int, float, Decimal, None]


class TablaExportable(BaseModel):
    titulo: str
    encabezados: List[str]
    filas: List[List[Celda]]


FORMATOS = {
    "xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "pdf": "application/pdf",
}


def _texto(valor: Celda) -> str:
    if valor is None:
        return ""
    if isinstance(valor, Decimal):
        return f"{valor:.2f}"
    return str(valor)


# =========================
# Excel
# =========================

def nombre_hoja(titulo: str) -> str:
    """
    Excel no acepta / \\ ? * [ ] : en el nombre de la hoja y lo limita a 31 caracteres.
    """
    limpio = re.sub(r"[\\/*?:\[\]]", "-", titulo or "").strip()[:31]
    return limpio or "Reporte"


def exportar_excel(tabla: TablaExportable) -> io.BytesIO:
    wb = Workbook()
    ws = wb.active
    ws.title = nombre_hoja(tabla.titulo)

    borde = Border(
        left=Side(style="thin"), right=Side(style="thin"),
        top=Side(style="thin"), bottom=Side(style="thin"),
    )
    fill_header = PatternFill("solid", fgColor="3B82F6")
    font_header = Font(bold=True, color="FFFFFF")

    ws.append(tabla.encabezados)
    for cell in ws[1]:
        cell.fill = fill_header
        cell.font = font_header
        cell.border = borde

    for fila in tabla.filas:
        ws.append([float(v) if isinstance(v, Decimal) else v for v in fila])

    for idx, encabezado in enumerate(tabla.encabezados, start=1):
        largo = max(
            [len(_texto(encabezado))]
            + [len(_texto(f[idx - 1])) for f in tabla.filas if len(f) >= idx]
        )
        ws.column_dimensions[get_column_letter(idx)].width = min(largo + 2, 50)

    output = io.BytesIO()
    wb.save(output)
    output.seek(0)
    return output


# =========================
# PDF mínimo (Helvetica, texto plano paginado)
# =========================

PDF_PAGE_WIDTH = 612
PDF_PAGE_HEIGHT = 792
PDF_MARGIN = 54


def _pdf_escape(text: str) -> str:
    return text.replace("\\", "\\\\").replace("(", "\\(").replace(")", "\\)")


def _lineas_tabla(tabla: TablaExportable) -> List[str]:
    columnas = len(tabla.encabezados)
    anchos = [len(h) for h in tabla.encabezados]
    for fila in tabla.filas:
        for i in range(min(columnas, len(fila))):
            anchos[i] = max(anchos[i], len(_texto(fila[i])))

    def formatear(valores) -> str:
        celdas = [_texto(valores[i]) if i < len(valores) else "" for i in range(columnas)]
        return "  ".join(c.ljust(anchos[i]) for i, c in enumerate(celdas))

    lineas = [formatear(tabla.encabezados)]
    lineas.append("-" * len(lineas[0]))
    lineas.extend(formatear(f) for f in tabla.filas)
    return lineas


def _paginas(titulo: str, lineas: List[str]) -> List[str]:
    start_y = PDF_PAGE_HEIGHT - PDF_MARGIN
    y = start_y
    commands: List[str] = []
    pages: List[str] = []

    if titulo:
        commands.extend([
            "BT", "/F1 16 Tf", f"{PDF_MARGIN} {y:.2f} Td",
            f"({_pdf_escape(titulo)}) Tj", "ET",
        ])
        y -= 28

    for line in lineas:
        if y < PDF_MARGIN:
            pages.append("\n".join(commands))
            commands = []
            y = start_y
        commands.extend([
            "BT", "/F2 9 Tf", f"{PDF_MARGIN} {y:.2f} Td",
            f"({_pdf_escape(line)}) Tj", "ET",
        ])
        y -= 13

    pages.append("\n".join(commands))
    return pages


def exportar_pdf(tabla: TablaExportable) -> io.BytesIO:
    page_streams = _paginas(tabla.titulo, _lineas_tabla(tabla))
    total_pages = len(page_streams)
    first_content_obj = 5

    buffer = io.BytesIO()
    buffer.write(b"%PDF-1.4\n%\xe2\xe3\xcf\xd3\n")
    offsets: List[int] = []

    def write_obj(obj_num: int, body: bytes) -> None:
        offsets.append(buffer.tell())
        buffer.write(f"{obj_num} 0 obj\n".encode("ascii"))
        buffer.write(body)
        buffer.write(b"\nendobj\n")

    write_obj(1, b"<< /Type /Catalog /Pages 2 0 R >>")

    page_numbers = [first_content_obj + (i * 2) + 1 for i in range(total_pages)]
    kids = " ".join(f"{n} 0 R" for n in page_numbers)
    write_obj(2, f"<< /Type /Pages /Kids [{kids}] /Count {total_pages} >>".encode("ascii"))
    write_obj(3, b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica-Bold /Encoding /WinAnsiEncoding >>")
    write_obj(4, b"<< /Type /Font /Subtype /Type1 /BaseFont /Courier /Encoding /WinAnsiEncoding >>")

    current = first_content_obj
    for stream in page_streams:
        content = stream.encode("cp1252", errors="replace")
        write_obj(
            current,
            f"<< /Length {len(content)} >>\n".encode("ascii")
            + b"stream\n" + content + b"\nendstream",
        )
        write_obj(
            current + 1,
            (
                f"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 {PDF_PAGE_WIDTH} {PDF_PAGE_HEIGHT}] "
                f"/Resources << /Font << /F1 3 0 R /F2 4 0 R >> >> /Contents {current} 0 R >>"
            ).encode("ascii"),
        )
        current += 2

    xref_offset = buffer.tell()
    total_objects = 4 + total_pages * 2
    buffer.write(f"xref\n0 {total_objects + 1}\n".encode("ascii"))
    buffer.write(b"0000000000 65535 f \n")
    for offset in offsets:
        buffer.write(f"{offset:010d} 00000 n \n".encode("ascii"))
    buffer.write(f"trailer\n<< /Size {total_objects + 1} /Root 1 0 R >>\n".encode("ascii"))
    buffer.write(f"startxref\n{xref_offset}\n%%EOF".encode("ascii"))
    buffer.seek(0)
    return buffer


def exportar(tabla: TablaExportable, formato: str) -> io.BytesIO:
    if formato == "xlsx":
        return exportar_excel(tabla)
    if formato == "pdf":
        return exportar_pdf(tabla)
    raise ErrorValidacion(f"Formato no soportado: {formato} (usa xlsx o pdf)")
