# barberia_core/core_app.py
import logging
import os

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import SQLAlchemyError

from barberia_core import almacenamiento
from barberia_core.db.conexion import init_db
from barberia_core.errores import ErrorBarberia
from barberia_core.servicios import (
    autenticacion,
    barberos,
    datos,
    descuentos,
    estadisticas,
    exportar,
    inventario,
    perfiles,
    registro_servicios,
)

logging.basicConfig(
    level=os.getenv("BARBERIA_LOG_LEVEL", "INFO").upper(),
    format="[%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


app = FastAPI(title="Barbería API")


# ---------- CORS ----------

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],          # En producción se puede restringir al dominio del front
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------- Errores ----------

@app.exception_handler(ErrorBarberia)
def manejar_error_barberia(request: Request, exc: ErrorBarberia):
    if exc.status_code >= 500:
        logger.error("%s %s: %s", request.method, request.url.path, exc.detalle)
    else:
        logger.info("%s %s rechazado: %s", request.method, request.url.path, exc.detalle)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detalle})


@app.exception_handler(SQLAlchemyError)
def manejar_error_db(request: Request, exc: SQLAlchemyError):
    logger.exception("Error de base de datos en %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=503,
        content={"detail": "No se pudo conectar con la base de datos"},
    )


# ---------- Eventos de arranque ----------

@app.on_event("startup")
def on_startup() -> None:
    """
    Inicializa la base de datos y la carpeta de comprobantes al arrancar la app.
    """
    init_db()
    almacenamiento.asegurar_directorio()


# Comprobantes de pago subidos
app.mount(
    almacenamiento.MEDIA_URL,
    StaticFiles(directory=str(almacenamiento.asegurar_directorio())),
    name="media",
)

app.include_router(
    autenticacion.router,
    prefix="/api/auth",
    tags=["Autenticacion"],
)
app.include_router(
    barberos.router,
    prefix="/api/barberos",
    tags=["Barberos"],
)
app.include_router(
    registro_servicios.router,
    prefix="/api/servicios",
    tags=["Servicios"],
)
app.include_router(
    inventario.router,
    prefix="/api/inventario",
    tags=["Inventario"],
)
app.include_router(
    descuentos.router,
    prefix="/api/descuentos",
    tags=["Descuentos"],
)
app.include_router(
    perfiles.router,
    prefix="/api/perfiles",
    tags=["Perfiles"],
)
app.include_router(
    estadisticas.router,
    prefix="/api/estadisticas",
    tags=["Estadisticas"],
)
app.include_router(
    exportar.router,
    prefix="/api/exportar",
    tags=["Exportar"],
)
app.include_router(
    datos.router,
    prefix="/api/datos",
    tags=["Datos"],
)


# ---------- Endpoint de salud básico ----------

@app.get("/api/salud")
def check_salud():
    """
    Endpoint de prueba para verificar que la API está corriendo.
    """
    return {
        "estado": "ok",
        "mensaje": "API Barbería funcionando",
    }
