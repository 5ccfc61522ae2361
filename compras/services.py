# compras/services.py
"""
Servicios de la app 'compras' (acceso a la API remota).

Propósito:
    Mantener a views/forms como capas delgadas: aquí viven las llamadas HTTP de
    compras y la invalidación de caché tras cada mutación.

Responsabilidades:
    - Listado filtrado/paginado de compras.
    - Alta (cabecera + N detalles) y baja de compras.
    - Detalle con respaldo en la fila del listado si `GET /compras/{id}` falla.

Notas:
    - Totales, costos netos y lotes los calcula el backend; aquí solo se leen.
"""

from __future__ import annotations

import logging

from servicios import cache
from servicios.api import api, ApiError
from servicios.paginacion import Pagina, extraer_contenido, normalizar_pagina, parametros_listado

logger = logging.getLogger(__name__)


def listar_compras(proveedor_id: str = "", fecha_inicio: str = "", fecha_fin: str = "", page: int = 0) -> Pagina:
    """
    Compras filtradas por proveedor y rango de fechas.

    Sin filtros se pide la página `page` (size=10); con filtros se usa
    `/compras/buscar` y el backend responde sin paginar.
    """
    filtros = {"proveedorId": proveedor_id, "fechaInicio": fecha_inicio, "fechaFin": fecha_fin}
    hay_filtros, params = parametros_listado(filtros, page)
    ruta = "/compras/buscar" if hay_filtros else "/compras"
    data = cache.consultar(
        ("compras", proveedor_id, fecha_inicio, fecha_fin, page),
        lambda: api.get(ruta, params=params),
    )
    return normalizar_pagina(data, page)


def todas_las_compras() -> list:
    """Compras para selects (filtro de lotes)."""
    return extraer_contenido(cache.consultar(("compras",), lambda: api.get("/compras")))


def crear_compra(payload: dict):
    respuesta = api.post("/compras", payload)
    cache.invalidar("compras")
    return respuesta


def eliminar_compra(pk):
    respuesta = api.delete(f"/compras/{pk}")
    cache.invalidar("compras")
    return respuesta


def detalle_compra(pk, respaldo: dict | None = None) -> dict:
    """
    Detalle completo de una compra.

    Si la API falla y se tiene la fila del listado (`respaldo`), se muestra esa
    información (sin líneas de detalle). Sin respaldo, el error se propaga.
    """
    try:
        return api.get(f"/compras/{pk}")
    except ApiError as exc:
        if respaldo is None:
            raise
        logger.error("Error al obtener detalle de compra %s: %s", pk, exc)
        return respaldo
