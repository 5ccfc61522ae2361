# ventas/services.py
"""
Servicios de la app 'ventas' (ventas y clientes contra la API remota).

Propósito:
    Centralizar las llamadas HTTP y los pequeños cálculos de presentación
    (total estimado del formulario, niveles de fidelidad disponibles).

Responsabilidades:
    - Ventas: listado filtrado/paginado, alta con N líneas, detalle con respaldo, baja.
    - Clientes: listado filtrado/paginado, alta/edición/baja.
    - Niveles de fidelidad: se derivan de los clientes existentes (no hay endpoint propio).

Notas:
    - El total estimado es solo informativo: el total real lo calcula el backend.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Iterable

from django.conf import settings

from inventario.services import producto_id
from servicios import cache
from servicios.api import api, ApiError
from servicios.formato import parsear_monto
from servicios.paginacion import Pagina, extraer_contenido, normalizar_pagina, parametros_listado

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────────────────────
# VENTAS
# ─────────────────────────────────────────────────────────────────────────────
def listar_ventas(cliente_id: str = "", fecha_inicio: str = "", fecha_fin: str = "", page: int = 0) -> Pagina:
    filtros = {"clienteId": cliente_id, "fechaInicio": fecha_inicio, "fechaFin": fecha_fin}
    hay_filtros, params = parametros_listado(filtros, page)
    ruta = "/ventas/buscar" if hay_filtros else "/ventas"
    data = cache.consultar(
        ("ventas", cliente_id, fecha_inicio, fecha_fin, page),
        lambda: api.get(ruta, params=params),
    )
    return normalizar_pagina(data, page)


def metodos_pago() -> list:
    return cache.consultar(("metodosPago",), lambda: api.get("/ventas/metodos-pago")) or []


def crear_venta(payload: dict):
    respuesta = api.post("/ventas", payload)
    cache.invalidar("ventas")
    return respuesta


def eliminar_venta(pk):
    respuesta = api.delete(f"/ventas/{pk}")
    cache.invalidar("ventas")
    return respuesta


def detalle_venta(pk, respaldo: dict | None = None) -> dict:
    """Detalle completo; si la API falla y hay fila del listado, se usa como respaldo."""
    try:
        return api.get(f"/ventas/{pk}")
    except ApiError as exc:
        if respaldo is None:
            raise
        logger.error("Error al obtener detalle de venta %s: %s", pk, exc)
        return respaldo


def total_estimado(detalles: Iterable[dict], productos: Iterable[dict]) -> Decimal:
    """
    Σ(precio × cantidad − descuento) de las líneas del formulario.

    El precio sale del catálogo de productos ("12.50 Bs" → 12.50); un producto
    desconocido cuenta con precio 0.
    """
    precios = {producto_id(p): parsear_monto(p.get("precio")) for p in productos or []}
    total = Decimal("0")
    for linea in detalles or []:
        precio = precios.get(str(linea.get("productoId") or ""), Decimal("0"))
        cantidad = parsear_monto(linea.get("cantidad"))
        descuento = parsear_monto(linea.get("descuento"))
        total += precio * cantidad - descuento
    return total


# ─────────────────────────────────────────────────────────────────────────────
# CLIENTES
# ─────────────────────────────────────────────────────────────────────────────
def listar_clientes(nombre: str = "", apellido: str = "", page: int = 0) -> Pagina:
    filtros = {"nombre": nombre, "apellido": apellido}
    hay_filtros, params = parametros_listado(filtros, page)
    ruta = "/clientes/buscar" if hay_filtros else "/clientes"
    data = cache.consultar(
        ("clientes", nombre, apellido, page),
        lambda: api.get(ruta, params=params),
    )
    return normalizar_pagina(data, page)


def todos_los_clientes() -> list:
    data = cache.consultar(
        ("clientes-all",),
        lambda: api.get("/clientes", params={"page": 0, "size": settings.API_LOOKUP_SIZE}),
    )
    return extraer_contenido(data)


def nombre_cliente(cliente: dict) -> str:
    """`nombreCompleto` si la API lo trae; si no, "nombre apellido"."""
    return cliente.get("nombreCompleto") or f"{cliente.get('nombre', '')} {cliente.get('apellido', '')}".strip()


def niveles_fidelidad(clientes: Iterable[dict]) -> list[dict]:
    """
    Niveles de fidelidad únicos presentes en los clientes, ordenados por id.

    Solo cuentan los clientes que traen ambos datos (id y nombre del nivel).
    """
    niveles: dict = {}
    for cliente in clientes or []:
        nivel_id = cliente.get("nivelFidelidadId")
        nombre = cliente.get("nivelFidelidad")
        if nivel_id and nombre:
            niveles[nivel_id] = {"id": nivel_id, "nombre": nombre}
    return sorted(niveles.values(), key=lambda n: n["id"])


def obtener_cliente(pk) -> dict:
    """Cliente para precargar la edición (se busca en el listado completo)."""
    for cliente in todos_los_clientes():
        if str(cliente.get("id")) == str(pk):
            return cliente
    raise ApiError("Cliente no encontrado", status_code=404)


def crear_cliente(datos: dict):
    respuesta = api.post("/clientes", datos)
    cache.invalidar("clientes", "clientes-all")
    return respuesta


def actualizar_cliente(pk, datos: dict):
    respuesta = api.put(f"/clientes/{pk}", datos)
    cache.invalidar("clientes", "clientes-all")
    return respuesta


def eliminar_cliente(pk):
    respuesta = api.delete(f"/clientes/{pk}")
    cache.invalidar("clientes", "clientes-all")
    return respuesta
