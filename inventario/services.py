# inventario/services.py
"""
Servicios de la app 'inventario' (acceso a la API remota).

Propósito:
    Centralizar las llamadas HTTP de productos, proveedores, lotes, sublotes y
    movimientos, dejando a las vistas como orquestadoras delgadas.

Responsabilidades:
    - Listados paginados/filtrados (normalizados a `Pagina`).
    - Lecturas de apoyo para selects (tipos de producto, ubicaciones, "todos").
    - Mutaciones (crear/editar/descontinuar/eliminar) + invalidación de caché.
    - Stock de un producto = suma de `cantidadActual` de sus sublotes.

Dependencias/Assume:
    - servicios.api.api: cliente HTTP compartido.
    - servicios.cache: caché de lecturas con invalidación por prefijo.

Notas:
    - Los cálculos de inventario (ROP, EOQ, ABC) NO se hacen aquí; los entrega
      el backend ya calculados.
"""
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal
from typing import Iterable

from django.conf import settings

from servicios import cache
from servicios.api import api, ApiError
from servicios.formato import parsear_monto
from servicios.paginacion import (
    Pagina,
    extraer_contenido,
    normalizar_pagina,
    parametros_listado,
)

logger = logging.getLogger(__name__)

# Movimientos que suman stock (el resto se muestran como salidas).
TIPOS_INGRESO = ("ENTRADA", "COMPRA")


def _listar(prefijo: str, endpoint: str, filtros: dict, page: int) -> Pagina:
    """
    Listado genérico: `/buscar` con filtros (sin paginar) o página `page` sin filtros.
    """
    hay_filtros, params = parametros_listado(filtros, page)
    ruta = f"{endpoint}/buscar" if hay_filtros else endpoint
    clave = (prefijo, *[filtros.get(k, "") for k in sorted(filtros)], page)
    data = cache.consultar(clave, lambda: api.get(ruta, params=params))
    return normalizar_pagina(data, page)


def _todos(prefijo: str, endpoint: str) -> list:
    """Todos los registros de un recurso para poblar selects (page=0, size grande)."""
    data = cache.consultar(
        (prefijo,),
        lambda: api.get(endpoint, params={"page": 0, "size": settings.API_LOOKUP_SIZE}),
    )
    return extraer_contenido(data)


# ─────────────────────────────────────────────────────────────────────────────
# PRODUCTOS
# ─────────────────────────────────────────────────────────────────────────────
def producto_id(producto: dict) -> str:
    """El backend identifica productos por `productoId` y, a veces, por `id`."""
    valor = producto.get("productoId") or producto.get("id")
    return str(valor) if valor not in (None, "") else ""


def listar_productos(nombre: str = "", tipo_producto_id: str = "", page: int = 0) -> Pagina:
    return _listar(
        "productos", "/productos",
        {"nombre": nombre, "tipoProductoId": tipo_producto_id},
        page,
    )


def todos_los_productos() -> list:
    return _todos("productos-all", "/productos")


def tipos_producto() -> list:
    return cache.consultar(("tiposProducto",), lambda: api.get("/productos/tipos")) or []


def obtener_producto(pk) -> dict:
    """Producto completo (incluye tipoProductoId). Sin caché: se usa para editar."""
    return api.get(f"/productos/{pk}")


def crear_producto(datos: dict):
    respuesta = api.post("/productos", datos)
    cache.invalidar("productos", "productos-all")
    return respuesta


def actualizar_producto(pk, datos: dict):
    respuesta = api.put(f"/productos/{pk}", datos)
    cache.invalidar("productos", "productos-all")
    return respuesta


def alternar_descontinuado(pk) -> bool:
    """
    Descontinúa o reactiva un producto.

    Flujo:
        1) Obtiene el producto completo (para no perder tipoProductoId).
        2) Reenvía sus datos con `descontinuado` invertido.

    Returns:
        bool: nuevo valor de `descontinuado`.
    """
    if not pk:
        raise ApiError("ID de producto no encontrado")
    actual = obtener_producto(pk)
    nuevo_estado = not bool(actual.get("descontinuado"))
    actualizar_producto(pk, {
        "nombre": actual.get("nombre"),
        "precio": float(parsear_monto(actual.get("precio"))),
        "descripcion": actual.get("descripcion"),
        "tipoProductoId": actual.get("tipoProductoId"),
        "descontinuado": nuevo_estado,
    })
    return nuevo_estado


def sublotes_de_producto(pk) -> list:
    return cache.consultar(
        ("sublotes-producto", str(pk)),
        lambda: api.get(f"/productos/{pk}/sublotes"),
    ) or []


def calcular_stock_total(sublotes: Iterable[dict]) -> Decimal:
    """Σ cantidadActual de los sublotes (valores ausentes cuentan como 0)."""
    return sum((parsear_monto(s.get("cantidadActual") or "0") for s in sublotes or []), Decimal("0"))


def _stock_seguro(pid: str) -> Decimal:
    try:
        return calcular_stock_total(sublotes_de_producto(pid))
    except ApiError as exc:
        logger.error("Error al cargar stock del producto %s: %s", pid, exc)
        return Decimal("0")


def stocks_por_producto(productos: Iterable[dict]) -> dict[str, Decimal]:
    """
    Stock actual de cada producto, {productoId: stock}.

    Un producto cuyo detalle de sublotes falla cuenta con stock 0 (se registra
    el error y se sigue con el resto).
    """
    ids = [pid for pid in (producto_id(p) for p in productos or []) if pid]
    if not ids:
        return {}
    with ThreadPoolExecutor(max_workers=8) as pool:
        stocks = list(pool.map(_stock_seguro, ids))
    return dict(zip(ids, stocks))


# ─────────────────────────────────────────────────────────────────────────────
# PROVEEDORES
# ─────────────────────────────────────────────────────────────────────────────
def listar_proveedores(nombre: str = "", nit: str = "") -> list:
    """Proveedores (el backend los devuelve sin paginar)."""
    filtros = {k: v for k, v in {"nombre": nombre, "nit": nit}.items() if v}
    ruta = "/proveedor/buscar" if filtros else "/proveedor"
    data = cache.consultar(
        ("proveedores", nombre, nit),
        lambda: api.get(ruta, params=filtros or None),
    )
    return extraer_contenido(data)


def todos_los_proveedores() -> list:
    return _todos("proveedores-all", "/proveedor")


def obtener_proveedor(pk) -> dict:
    """
    Proveedor para precargar la edición.

    La API no expone `GET /proveedor/{id}`: se busca en el listado completo.
    """
    for proveedor in listar_proveedores():
        if str(proveedor.get("id")) == str(pk):
            return proveedor
    raise ApiError("Proveedor no encontrado", status_code=404)


def crear_proveedor(datos: dict):
    respuesta = api.post("/proveedor", datos)
    cache.invalidar("proveedores", "proveedores-all")
    return respuesta


def actualizar_proveedor(pk, datos: dict):
    respuesta = api.put(f"/proveedor/{pk}", datos)
    cache.invalidar("proveedores", "proveedores-all")
    return respuesta


def eliminar_proveedor(pk):
    respuesta = api.delete(f"/proveedor/{pk}")
    cache.invalidar("proveedores", "proveedores-all")
    return respuesta


def ubicaciones() -> list:
    return cache.consultar(("ubicaciones",), lambda: api.get("/ubicaciones")) or []


# ─────────────────────────────────────────────────────────────────────────────
# LOTES / SUBLOTES / MOVIMIENTOS (solo lectura)
# ─────────────────────────────────────────────────────────────────────────────
def listar_lotes(compra_id: str = "", fecha_inicio: str = "", fecha_fin: str = "", page: int = 0) -> Pagina:
    return _listar(
        "lotes", "/lotes",
        {"compraId": compra_id, "fechaInicio": fecha_inicio, "fechaFin": fecha_fin},
        page,
    )


def listar_sublotes(producto_id: str = "", estado: str = "", page: int = 0) -> Pagina:
    return _listar(
        "sublotes", "/sublotes",
        {"productoId": producto_id, "estado": estado},
        page,
    )


def todos_los_sublotes() -> list:
    return extraer_contenido(cache.consultar(("sublotes-all",), lambda: api.get("/sublotes")))


def listar_movimientos(tipo: str = "", fecha_inicio: str = "", fecha_fin: str = "",
                       sublote_id: str = "", page: int = 0) -> Pagina:
    return _listar(
        "movimientos", "/movimientos",
        {"tipo": tipo, "fechaInicio": fecha_inicio, "fechaFin": fecha_fin, "subloteId": sublote_id},
        page,
    )


def buscar_en_pagina(pagina: Pagina, campo: str, valor) -> dict | None:
    """Fila del listado cuyo `campo` coincide con `valor` (comparando como texto)."""
    for fila in pagina.content:
        if str(fila.get(campo)) == str(valor):
            return fila
    return None
