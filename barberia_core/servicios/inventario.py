# barberia_core/servicios/inventario.py
from __future__ import annotations

from typing import List, Optional
from datetime import date, datetime
from decimal import Decimal
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel
from sqlmodel import Session, select

from barberia_core.calculos.inventario import (
    ResumenVentas,
    ganancia_venta,
    resumir_ventas,
    stock_bajo,
    validar_salida,
)
from barberia_core.calculos.semana import a_hora_local, ahora, hoy, ventana_semana
from barberia_core.db.conexion import get_session, guardar_cambios
from barberia_core.db.modelos import (
    ArticuloInventario,
    MetodoPago,
    Role,
    TipoTransaccion,
    TransaccionInventario,
    Usuario,
    VentaInventario,
)
from barberia_core.errores import ErrorValidacion
from barberia_core.security import require_role

logger = logging.getLogger(__name__)

router = APIRouter()


# =========================
# Esquemas
# =========================

class ArticuloIn(BaseModel):
    nombre: str
    categoria: str
    cantidad: int = 0
    stock_minimo: int = 0
    precio_unitario: Decimal
    proveedor: Optional[str] = None
    descripcion: Optional[str] = None


class ArticuloUpdate(BaseModel):
    nombre: Optional[str] = None
    categoria: Optional[str] = None
    stock_minimo: Optional[int] = None
    precio_unitario: Optional[Decimal] = None
    proveedor: Optional[str] = None
    descripcion: Optional[str] = None


class TransaccionIn(BaseModel):
    articulo_id: Optional[int] = None
    tipo: TipoTransaccion = TipoTransaccion.entrada
    cantidad: Optional[int] = None
    notas: Optional[str] = None


class VentaIn(BaseModel):
    articulo_id: Optional[int] = None
    cantidad: Optional[int] = None
    precio_venta: Optional[Decimal] = None
    nombre_cliente: Optional[str] = None
    metodo_pago: MetodoPago = MetodoPago.efectivo
    fecha_hora: Optional[datetime] = None


class VentasSemanaOut(BaseModel):
    inicio: datetime
    fin: datetime
    ventas: List[VentaInventario]
    resumen: ResumenVentas


# =========================
# Helpers
# =========================

def _articulo_o_404(session: Session, articulo_id: int) -> ArticuloInventario:
    articulo = session.get(ArticuloInventario, articulo_id)
    if not articulo:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Artículo no encontrado",
        )
    return articulo


# =========================
# Artículos
# =========================

@router.get("/", response_model=List[ArticuloInventario])
def listar_articulos(
    categoria: Optional[str] = None,
    session: Session = Depends(get_session),
    _user=Depends(require_role(Role.admin, Role.usuario)),
):
    q = select(ArticuloInventario)
    if categoria:
        q = q.where(ArticuloInventario.categoria == categoria)
    return session.exec(q.order_by(ArticuloInventario.created_at.desc(), ArticuloInventario.id.desc())).all()


@router.get("/stock-bajo", response_model=List[ArticuloInventario])
def articulos_stock_bajo(
    session: Session = Depends(get_session),
    _user=Depends(require_role(Role.admin, Role.usuario)),
):
    return stock_bajo(session.exec(select(ArticuloInventario).order_by(ArticuloInventario.nombre.asc())).all())


@router.get("/categorias", response_model=List[str])
def listar_categorias(
    session: Session = Depends(get_session),
    _user=Depends(require_role(Role.admin, Role.usuario)),
):
    return sorted({a.categoria for a in session.exec(select(ArticuloInventario)).all()})


@router.post("/", response_model=ArticuloInventario, status_code=status.HTTP_201_CREATED)
def crear_articulo(
    body: ArticuloIn,
    session: Session = Depends(get_session),
    _user=Depends(require_role(Role.admin)),
):
    if not body.nombre.strip() or not body.categoria.strip():
        raise ErrorValidacion("Por favor completa todos los campos obligatorios")
    if body.cantidad < 0 or body.stock_minimo < 0 or body.precio_unitario < 0:
        raise ErrorValidacion("Cantidades y precio no pueden ser negativos")

    nuevo = ArticuloInventario(
        nombre=body.nombre.strip(),
        categoria=body.categoria.strip(),
        cantidad=body.cantidad,
        stock_minimo=body.stock_minimo,
        precio_unitario=body.precio_unitario,
        proveedor=body.proveedor or None,
        descripcion=body.descripcion or None,
    )
    session.add(nuevo)
    guardar_cambios(session, "crear artículo")
    session.refresh(nuevo)
    logger.info("Artículo agregado al inventario: %s", nuevo.nombre)
    return nuevo


@router.put("/{articulo_id}", response_model=ArticuloInventario)
def actualizar_articulo(
    articulo_id: int,
    body: ArticuloUpdate,
    session: Session = Depends(get_session),
    _user=Depends(require_role(Role.admin)),
):
    """
    La cantidad no se edita aquí: solo cambia con entradas, salidas y ventas.
    """
    articulo = _articulo_o_404(session, articulo_id)

    update_data = body.model_dump(exclude_unset=True)
    if update_data.get("stock_minimo") is not None and update_data["stock_minimo"] < 0:
        raise ErrorValidacion("El stock mínimo no puede ser negativo")
    if update_data.get("precio_unitario") is not None and update_data["precio_unitario"] < 0:
        raise ErrorValidacion("El precio no puede ser negativo")
    for campo, valor in update_data.items():
        setattr(articulo, campo, valor)
    articulo.updated_at = ahora()

    session.add(articulo)
    guardar_cambios(session, "actualizar artículo")
    session.refresh(articulo)
    return articulo


@router.delete("/{articulo_id}", status_code=status.HTTP_204_NO_CONTENT)
def eliminar_articulo(
    articulo_id: int,
    session: Session = Depends(get_session),
    _user=Depends(require_role(Role.admin)),
):
    """
    Borra el artículo y sus movimientos. Las ventas quedan como histórico
    sin artículo asociado.
    """
    articulo = _articulo_o_404(session, articulo_id)

    for t in session.exec(
        select(TransaccionInventario).where(TransaccionInventario.articulo_id == articulo_id)
    ).all():
        session.delete(t)
    for v in session.exec(
        select(VentaInventario).where(VentaInventario.articulo_id == articulo_id)
    ).all():
        v.articulo_id = None
        session.add(v)
    session.flush()

    session.delete(articulo)
    guardar_cambios(session, "eliminar artículo")
    logger.info("Artículo eliminado: %s", articulo.nombre)
    return


# =========================
# Entradas y salidas
# =========================

@router.get("/transacciones", response_model=List[TransaccionInventario])
def listar_transacciones(
    articulo_id: Optional[int] = None,
    limite: int = 10,
    session: Session = Depends(get_session),
    _user=Depends(require_role(Role.admin, Role.usuario)),
):
    q = select(TransaccionInventario)
    if articulo_id:
        q = q.where(TransaccionInventario.articulo_id == articulo_id)
    q = q.order_by(TransaccionInventario.created_at.desc(), TransaccionInventario.id.desc())
    return session.exec(q.limit(max(1, min(limite, 500)))).all()


@router.post("/transacciones", response_model=TransaccionInventario, status_code=status.HTTP_201_CREATED)
def registrar_transaccion(
    body: TransaccionIn,
    session: Session = Depends(get_session),
    user: Usuario = Depends(require_role(Role.admin, Role.usuario)),
):
    if not body.articulo_id or not body.cantidad:
        raise ErrorValidacion("Por favor completa todos los campos obligatorios")
    if body.cantidad <= 0:
        raise ErrorValidacion("La cantidad debe ser mayor a 0")

    articulo = _articulo_o_404(session, body.articulo_id)

    if body.tipo == TipoTransaccion.salida:
        validar_salida(articulo, body.cantidad)
        articulo.cantidad -= body.cantidad
    else:
        articulo.cantidad += body.cantidad
    articulo.updated_at = ahora()

    transaccion = TransaccionInventario(
        articulo_id=articulo.id,
        tipo=body.tipo,
        cantidad=body.cantidad,
        notas=body.notas or None,
        created_by=user.id,
    )
    session.add(articulo)
    session.add(transaccion)
    guardar_cambios(session, "registrar movimiento de inventario")
    session.refresh(transaccion)

    logger.info(
        "%s de %d %s (stock=%d)",
        body.tipo.value.capitalize(), body.cantidad, articulo.nombre, articulo.cantidad,
    )
    return transaccion


# =========================
# Ventas
# =========================

@router.get("/ventas", response_model=VentasSemanaOut)
def listar_ventas(
    fecha: Optional[date] = None,
    session: Session = Depends(get_session),
    _user=Depends(require_role(Role.admin, Role.usuario)),
):
    ventana = ventana_semana(fecha or hoy())
    ventas = session.exec(
        select(VentaInventario)
        .where(VentaInventario.created_at >= ventana.inicio)
        .where(VentaInventario.created_at <= ventana.fin)
        .order_by(VentaInventario.created_at.desc(), VentaInventario.id.desc())
    ).all()
    return VentasSemanaOut(
        inicio=ventana.inicio,
        fin=ventana.fin,
        ventas=ventas,
        resumen=resumir_ventas(ventas),
    )


@router.post("/ventas", response_model=VentaInventario, status_code=status.HTTP_201_CREATED)
def registrar_venta(
    body: VentaIn,
    session: Session = Depends(get_session),
    _user=Depends(require_role(Role.admin, Role.usuario)),
):
    """
    Descuenta el stock y guarda la venta en la misma transacción.
    El costo queda congelado con el precio unitario actual del artículo.
    """
    if not body.articulo_id or body.cantidad is None or body.precio_venta is None:
        raise ErrorValidacion("Completa todos los campos")
    if body.precio_venta < 0:
        raise ErrorValidacion("El precio de venta no puede ser negativo")

    articulo = _articulo_o_404(session, body.articulo_id)
    validar_salida(articulo, body.cantidad)

    costo = articulo.precio_unitario
    venta = VentaInventario(
        articulo_id=articulo.id,
        nombre_producto=articulo.nombre,
        cantidad=body.cantidad,
        costo_unitario=costo,
        precio_venta=body.precio_venta,
        ganancia=ganancia_venta(body.precio_venta, costo, body.cantidad),
        nombre_cliente=body.nombre_cliente or None,
        metodo_pago=body.metodo_pago,
        created_at=(a_hora_local(body.fecha_hora) if body.fecha_hora else ahora()),
    )
    articulo.cantidad -= body.cantidad
    articulo.updated_at = ahora()

    session.add(articulo)
    session.add(venta)
    guardar_cambios(session, "registrar venta")
    session.refresh(venta)

    logger.info("Venta de %d %s, ganancia=%s", venta.cantidad, venta.nombre_producto, venta.ganancia)
    return venta


@router.delete("/ventas/{venta_id}", status_code=status.HTTP_204_NO_CONTENT)
def eliminar_venta(
    venta_id: int,
    session: Session = Depends(get_session),
    _user=Depends(require_role(Role.admin)),
):
    """
    Elimina la venta y devuelve la cantidad al artículo si todavía existe.
    """
    venta = session.get(VentaInventario, venta_id)
    if not venta:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Venta no encontrada",
        )

    articulo = session.get(ArticuloInventario, venta.articulo_id) if venta.articulo_id else None
    if articulo:
        articulo.cantidad += venta.cantidad
        articulo.updated_at = ahora()
        session.add(articulo)

    session.delete(venta)
    guardar_cambios(session, "eliminar venta")
    logger.info(
        "Venta eliminada (id=%s), stock %s",
        venta_id, "restaurado" if articulo else "sin artículo asociado",
    )
    return
