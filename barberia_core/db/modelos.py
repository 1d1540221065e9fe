# barberia_core/db/modelos.py
from __future__ import annotations

from typing import Optional
from datetime import datetime
from decimal import Decimal
from enum import Enum

from sqlalchemy import DateTime
from sqlmodel import SQLModel, Field

from barberia_core.calculos.semana import ahora


# Fechas: hora local sin zona (naive), la misma que usa el reloj de la
# barbería para agrupar por día. DateTime explícito para que la columna
# acepte valores naive.

# =========================
# Enums base
# =========================

class Role(str, Enum):
    """
    Roles de usuario: el admin ve todo, el usuario solo sus estadísticas.
    """
    admin = "admin"
    usuario = "usuario"


class MetodoPago(str, Enum):
    """
    Medios de pago aceptados en la barbería.
    """
    efectivo = "efectivo"
    transferencia = "transferencia"
    pago_movil = "pago_movil"
    punto = "punto"


class TipoTransaccion(str, Enum):
    entrada = "entrada"
    salida = "salida"


# =========================
# Usuarios y perfiles
# =========================

class Usuario(SQLModel, table=True):
    """
    Usuario del sistema (para login y permisos).
    """
    __tablename__ = "usuarios"

    id: Optional[int] = Field(default=None, primary_key=True)
    email: str = Field(index=True, unique=True)
    nombre: Optional[str] = Field(
        default=None,
        description="Nombre visible del usuario"
    )
    password_hash: str = Field(description="Hash de la contraseña")
    rol: Role = Field(default=Role.usuario)
    activo: bool = Field(default=True)


class Perfil(SQLModel, table=True):
    """
    Datos adicionales del usuario y su vínculo opcional con un barbero.
    Sin barbero vinculado el usuario no tiene estadísticas propias.
    """
    __tablename__ = "perfiles"

    id: Optional[int] = Field(default=None, primary_key=True)
    usuario_id: int = Field(
        foreign_key="usuarios.id",
        index=True,
        unique=True,
    )
    nombre_completo: str
    barbero_id: Optional[int] = Field(
        default=None,
        foreign_key="barberos.id",
        index=True,
        description="Barbero vinculado (nullable)"
    )


# =========================
# Barberos y servicios
# =========================

class Barbero(SQLModel, table=True):
    __tablename__ = "barberos"

    id: Optional[int] = Field(default=None, primary_key=True)
    nombre: str = Field(index=True)
    telefono: Optional[str] = None
    foto_url: Optional[str] = None

    # Contadores acumulados: caché best-effort, no se recalculan
    # a partir de los servicios.
    cantidad_cortes: int = Field(default=0)
    cantidad_barbas: int = Field(default=0)
    cantidad_cejas: int = Field(default=0)

    created_at: datetime = Field(default_factory=ahora, sa_type=DateTime)


class Servicio(SQLModel, table=True):
    """
    Un servicio realizado. No se edita: solo se crea o se elimina.
    """
    __tablename__ = "servicios"

    id: Optional[int] = Field(default=None, primary_key=True)
    barbero_id: int = Field(
        foreign_key="barberos.id",
        index=True,
        description="Barbero que realizó el servicio"
    )
    tipo_servicio: str = Field(
        index=True,
        description="Etiqueta del catálogo (ej: Corte, Barba Premium)"
    )
    ganancia_barbero: Decimal = Field(
        default=Decimal("0"),
        max_digits=10,
        decimal_places=2,
        description="Lo que gana el barbero (incluye propina)"
    )
    propina: Decimal = Field(
        default=Decimal("0"),
        max_digits=10,
        decimal_places=2,
    )
    metodo_pago: MetodoPago = Field(default=MetodoPago.efectivo)
    nombre_cliente: Optional[str] = None
    comprobante_url: Optional[str] = Field(
        default=None,
        description="URL pública de la foto del comprobante de pago"
    )
    created_at: datetime = Field(
        default_factory=ahora,
        sa_type=DateTime,
        index=True,
    )


# =========================
# Inventario
# =========================

class ArticuloInventario(SQLModel, table=True):
    """
    Producto o snack en inventario.
    """
    __tablename__ = "articulos_inventario"

    id: Optional[int] = Field(default=None, primary_key=True)
    nombre: str = Field(index=True)
    categoria: str
    cantidad: int = Field(default=0, ge=0)
    stock_minimo: int = Field(default=0, ge=0)
    precio_unitario: Decimal = Field(
        default=Decimal("0"),
        max_digits=10,
        decimal_places=2,
        description="Costo unitario del artículo"
    )
    proveedor: Optional[str] = None
    descripcion: Optional[str] = None
    created_at: datetime = Field(default_factory=ahora, sa_type=DateTime)
    updated_at: datetime = Field(default_factory=ahora, sa_type=DateTime)


class TransaccionInventario(SQLModel, table=True):
    """
    Movimiento de entrada o salida de un artículo.
    """
    __tablename__ = "transacciones_inventario"

    id: Optional[int] = Field(default=None, primary_key=True)
    articulo_id: int = Field(
        foreign_key="articulos_inventario.id",
        index=True,
    )
    tipo: TipoTransaccion
    cantidad: int = Field(gt=0)
    notas: Optional[str] = None
    created_by: Optional[int] = Field(default=None, foreign_key="usuarios.id")
    created_at: datetime = Field(default_factory=ahora, sa_type=DateTime, index=True)


class VentaInventario(SQLModel, table=True):
    """
    Venta de un artículo del inventario.
    El costo se copia del artículo al momento de vender.
    """
    __tablename__ = "ventas_inventario"

    id: Optional[int] = Field(default=None, primary_key=True)
    articulo_id: Optional[int] = Field(
        default=None,
        foreign_key="articulos_inventario.id",
        index=True,
        description="Queda en NULL si el artículo se elimina"
    )
    nombre_producto: str
    cantidad: int = Field(gt=0)
    costo_unitario: Decimal = Field(max_digits=10, decimal_places=2)
    precio_venta: Decimal = Field(max_digits=10, decimal_places=2)
    ganancia: Decimal = Field(
        max_digits=12,
        decimal_places=2,
        description="(precio_venta - costo_unitario) * cantidad"
    )
    nombre_cliente: Optional[str] = None
    metodo_pago: MetodoPago = Field(default=MetodoPago.efectivo)
    created_at: datetime = Field(default_factory=ahora, sa_type=DateTime, index=True)


# =========================
# Descuentos y bonos
# =========================

class DescuentoBarbero(SQLModel, table=True):
    """
    Ajuste con signo: monto >= 0 es descuento, monto < 0 es bono.
    """
    __tablename__ = "descuentos_barberos"

    id: Optional[int] = Field(default=None, primary_key=True)
    barbero_id: int = Field(
        foreign_key="barberos.id",
        index=True,
    )
    monto: Decimal = Field(max_digits=10, decimal_places=2)
    concepto: str
    created_at: datetime = Field(default_factory=ahora, sa_type=DateTime, index=True)
