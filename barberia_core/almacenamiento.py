# barberia_core/almacenamiento.py
# Almacenamiento de fotos de comprobantes en un directorio local servido en /media

from pathlib import Path
import logging
import os
import uuid

from barberia_core.errores import ErrorBackend, ErrorValidacion

logger = logging.getLogger(__name__)

MEDIA_DIR = Path(os.getenv("BARBERIA_MEDIA_DIR", "./media"))
MEDIA_URL = "/media"

EXTENSIONES_IMAGEN = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
    "image/gif": "gif",
}

MAX_BYTES = 5 * 1024 * 1024


def asegurar_directorio() -> Path:
    MEDIA_DIR.mkdir(parents=True, exist_ok=True)
    return MEDIA_DIR


def guardar_imagen(contenido: bytes, content_type: str, carpeta: str = "comprobantes") -> str:
    """
    Guarda la imagen con un nombre generado y devuelve su URL pública.
    """
    extension = EXTENSIONES_IMAGEN.get((content_type or "").lower())
    if extension is None:
        raise ErrorValidacion("El comprobante debe ser una imagen (jpg, png, webp o gif)")
    if not contenido:
        raise ErrorValidacion("El archivo está vacío")
    if len(contenido) > MAX_BYTES:
        raise ErrorValidacion("La imagen supera los 5 MB")

    ruta_relativa = f"{carpeta}/{uuid.uuid4().hex}.{extension}"
    destino = asegurar_directorio() / ruta_relativa
    try:
        destino.parent.mkdir(parents=True, exist_ok=True)
        destino.write_bytes(contenido)
    except OSError as exc:
        logger.exception("No se pudo guardar la imagen en %s", destino)
        raise ErrorBackend("No se pudo guardar la imagen") from exc

    logger.info("Imagen guardada en %s", destino)
    return f"{MEDIA_URL}/{ruta_relativa}"


def eliminar_imagen(url: str) -> None:
    """
    Borra el archivo de una URL devuelta por guardar_imagen. Si no existe, no hace nada.
    """
    if not url or not url.startswith(MEDIA_URL + "/"):
        return
    ruta = MEDIA_DIR / url[len(MEDIA_URL) + 1:]
    try:
        ruta.unlink()
    except FileNotFoundError:
        return
    except OSError:
        logger.exception("No se pudo borrar la imagen %s", ruta)
