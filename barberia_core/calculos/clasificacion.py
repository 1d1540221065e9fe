# barberia_core/calculos/clasificacion.py

from __future__ import annotations

from decimal import Decimal
from typing import Dict, List, Optional, Tuple


# =========================
# Catálogo de servicios
# =========================

# (etiqueta, ganancia sugerida del barbero). El orden es el de los reportes.
CATALOGO_GANANCIAS: Tuple[Tuple[str, Decimal], ...] = (
    ("Corte", Decimal("4.5")),
    ("Barba Sencilla", Decimal("1")),
    ("Barba Premium", Decimal("2")),
    ("Cejas", Decimal("0.5")),
    ("Afeitado", Decimal("1")),
    ("Facial Primera Vez", Decimal("4")),
    ("Facial", Decimal("5")),
    ("Corte+Barba Premium", Decimal("6.5")),
    ("Mascarilla Completa", Decimal("0.5")),
)

CATALOGO_SERVICIOS: Tuple[str, ...] = tuple(nombre for nombre, _ in CATALOGO_GANANCIAS)

# Promo que se guarda como dos filas (una por barbero) con el mismo timestamp
TIPO_COMBO = "Corte+Barba Premium"


def ganancia_sugerida(tipo_servicio: str) -> Optional[Decimal]:
    for nombre, ganancia in CATALOGO_GANANCIAS:
        if nombre == tipo_servicio:
            return ganancia
    return None


def a_decimal(valor) -> Decimal:
    """
    Normaliza montos que pueden venir como float, int, str o None.
    """
    if valor is None:
        return Decimal("0")
    if isinstance(valor, Decimal):
        return valor
    return Decimal(str(valor))


# =========================
# Estrategias de clasificación
# =========================

class EstrategiaClasificacion:
    """
    Decide en qué categorías de reporte cae un tipo de servicio.
    `categorias` es la lista ordenada de columnas que produce.
    """
    nombre: str = ""
    categorias: Tuple[str, ...] = ()

    def clasificar(self, tipo_servicio: str) -> List[str]:
        raise NotImplementedError


class ClasificacionCatalogo(EstrategiaClasificacion):
    """
    Coincidencia exacta (sensible a mayúsculas) contra el catálogo.
    Un tipo fuera del catálogo no cae en ninguna categoría.
    """
    nombre = "catalogo"

    def __init__(self, catalogo: Tuple[str, ...] = CATALOGO_SERVICIOS):
        self.categorias = tuple(catalogo)
        self._conjunto = frozenset(self.categorias)

    def clasificar(self, tipo_servicio: str) -> List[str]:
        if tipo_servicio in self._conjunto:
            return [tipo_servicio]
        return []


class ClasificacionPalabraClave(EstrategiaClasificacion):
    """
    Clasificación histórica: busca "corte", "barba" o "ceja" dentro del tipo,
    sin importar mayúsculas. "Corte+Barba Premium" cuenta como corte y como barba.
    """
    nombre = "palabra_clave"

    PALABRAS: Tuple[Tuple[str, str], ...] = (
        ("corte", "Cortes"),
        ("barba", "Barbas"),
        ("ceja", "Cejas"),
    )

    def __init__(self):
        self.categorias = tuple(categoria for _, categoria in self.PALABRAS)

    def clasificar(self, tipo_servicio: str) -> List[str]:
        tipo = (tipo_servicio or "").lower()
        return [categoria for palabra, categoria in self.PALABRAS if palabra in tipo]


ESTRATEGIAS: Dict[str, EstrategiaClasificacion] = {
    ClasificacionCatalogo.nombre: ClasificacionCatalogo(),
    ClasificacionPalabraClave.nombre: ClasificacionPalabraClave(),
}


def obtener_estrategia(nombre: str) -> EstrategiaClasificacion:
    try:
        return ESTRATEGIAS[nombre]
    except KeyError:
        raise ValueError(f"Estrategia de clasificación desconocida: {nombre}")


# =========================
# Contadores del barbero
# =========================

def columna_contador(tipo_servicio: str) -> str:
    """
    Columna de Barbero que se incrementa al registrar un servicio.
    Gana la primera palabra encontrada; lo que no es corte ni barba va a cejas.
    """
    tipo = (tipo_servicio or "").lower()
    if "corte" in tipo:
        return "cantidad_cortes"
    if "barba" in tipo:
        return "cantidad_barbas"
    return "cantidad_cejas"


# =========================
# Tablas históricas del resumen semanal
# =========================

PRECIOS_PALABRA_CLAVE: Tuple[Tuple[str, Decimal], ...] = (
    ("corte", Decimal("3.5")),
    ("barba", Decimal("1.5")),
    ("ceja", Decimal("1.0")),
)

COMISION_JEFE_PALABRA_CLAVE: Tuple[Tuple[str, Decimal], ...] = (
    ("corte", Decimal("2.5")),
    ("barba", Decimal("1.5")),
)


def precio_por_palabra_clave(tipo_servicio: str, tabla=PRECIOS_PALABRA_CLAVE) -> Decimal:
    tipo = (tipo_servicio or "").lower()
    for palabra, precio in tabla:
        if palabra in tipo:
            return precio
    return Decimal("0")
