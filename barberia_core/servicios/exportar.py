# barberia_core/servicios/exportar.py
import logging
import re

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from barberia_core.db.modelos import Role
from barberia_core.exportacion import FORMATOS, TablaExportable, exportar
from barberia_core.security import require_role

logger = logging.getLogger(__name__)

router = APIRouter()


def nombre_archivo(titulo: str, formato: str) -> str:
    base = re.sub(r"[^A-Za-z0-9_-]+", "_", titulo).strip("_") or "reporte"
    return f"{base.lower()}.{formato}"


@router.post("/{formato}")
def exportar_tabla(
    formato: str,
    tabla: TablaExportable,
    _user=Depends(require_role(Role.admin, Role.usuario)),
):
    """
    Convierte cualquier tabla {titulo, encabezados, filas} en xlsx o pdf.
    """
    contenido = exportar(tabla, formato)
    logger.info("Exportando '%s' (%d filas) a %s", tabla.titulo, len(tabla.filas), formato)
    return StreamingResponse(
        contenido,
        media_type=FORMATOS[formato],
        headers={
            "Content-Disposition": f'attachment; filename="{nombre_archivo(tabla.titulo, formato)}"'
        },
    )
