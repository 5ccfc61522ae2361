# dashboard/services.py
"""
Servicios del dashboard (lecturas agregadas y acciones sobre pedidos sugeridos).

Propósito:
    Reunir las consultas que alimentan el panel general y el análisis de
    inventario, y preparar los payloads que consumen los templates/charts.

Responsabilidades:
    - Panel: KPIs (ventas, clientes, productos, bajo stock, compras, por vencer),
      top de stock para charts y tablas de recientes/próximos a vencer.
    - Análisis de inventario: KPIs ABC/EOQ/ROP, alertas, pedidos pendientes y
      consolidación por proveedor (calculados por el backend; aquí solo se cuentan).
    - Aprobar/rechazar pedidos sugeridos y exportar el Excel de inventario.

Notas:
    - Las consultas del análisis de inventario no se cachean (`ttl=0`): siempre
      reflejan el estado actual de los pedidos.
"""
from __future__ import annotations

import logging
from decimal import Decimal
from typing import Iterable

from django.utils import timezone

from servicios import cache
from servicios.api import api
from servicios.formato import acortar, parsear_monto
from servicios.paginacion import extraer_contenido

logger = logging.getLogger(__name__)

UMBRAL_BAJO_STOCK = 10
DIAS_POR_VENCER = 30
ESTADOS_PEDIDO = ("APROBADO", "RECHAZADO")
PESTANAS = ("kpis", "alertas", "pedidos", "consolidacion")


# ─────────────────────────────────────────────────────────────────────────────
# Panel general
# ─────────────────────────────────────────────────────────────────────────────
def _leer(clave, ruta, params=None):
    return cache.consultar(clave, lambda: api.get(ruta, params=params))


def total_ventas(ventas: Iterable[dict]) -> Decimal:
    """Σ totalNeto (textos tipo "125.50 Bs"; inválidos cuentan 0)."""
    return sum((parsear_monto(v.get("totalNeto")) for v in ventas or []), Decimal("0"))


def top_stock(productos_stock: Iterable[dict], cantidad: int, largo: int) -> list[dict]:
    """Los `cantidad` productos con más stock, con el nombre acortado a `largo`."""
    ordenados = sorted(productos_stock or [], key=lambda p: p.get("cantidadTotal") or 0, reverse=True)
    return [
        {"nombre": acortar(p.get("nombre", ""), largo), "cantidad": p.get("cantidadTotal") or 0}
        for p in ordenados[:cantidad]
    ]


def datos_panel() -> dict:
    """
    Arma KPIs, tablas y payload de charts del panel.

    Returns:
        dict con:
            - kpis: total_ventas, transacciones, clientes, productos, bajo_stock,
              compras, por_vencer.
            - ventas_recientes / proximos_vencer: 5 filas cada una.
            - chart: {"top_stock": [...], "distribucion": [...]} para json_script.
    """
    productos_count = _leer(("productos-count",), "/productos/count") or 0
    productos_stock = _leer(("productos-stock-total",), "/productos/stock-total") or []
    por_vencer = extraer_contenido(
        _leer(("sublotes-proximos-vencer",), "/sublotes/proximos-vencer", {"dias": DIAS_POR_VENCER})
    )
    ventas = extraer_contenido(_leer(("ventas",), "/ventas"))
    compras = extraer_contenido(_leer(("compras",), "/compras"))
    clientes = extraer_contenido(_leer(("clientes",), "/clientes"))

    bajo_stock = sum(1 for p in productos_stock if (p.get("cantidadTotal") or 0) < UMBRAL_BAJO_STOCK)
    top5 = top_stock(productos_stock, 5, 20)
    top6 = top_stock(productos_stock, 6, 15)

    return {
        "kpis": {
            "total_ventas": total_ventas(ventas),
            "transacciones": len(ventas),
            "clientes": len(clientes),
            "productos": productos_count,
            "bajo_stock": bajo_stock,
            "compras": len(compras),
            "por_vencer": len(por_vencer),
        },
        "ventas_recientes": ventas[:5],
        "proximos_vencer": por_vencer[:5],
        "chart": {
            "top_stock": {
                "labels": [p["nombre"] for p in top5],
                "data": [float(p["cantidad"]) for p in top5],
            },
            "distribucion": {
                "labels": [p["nombre"] for p in top6],
                "data": [float(p["cantidad"]) for p in top6],
            },
        },
    }


# ─────────────────────────────────────────────────────────────────────────────
# Análisis de inventario
# ─────────────────────────────────────────────────────────────────────────────
def kpis_inventario() -> list:
    return cache.consultar(("inventory-kpis",), lambda: api.get("/dashboard/inventory-kpis"), ttl=0) or []


def alertas_rop() -> list:
    alertas = cache.consultar(("alertas-rop",), lambda: api.get("/dashboard/alertas-rop"), ttl=0) or []
    return [
        dict(a, deficit=(a.get("puntoReorden") or 0) - (a.get("stockActual") or 0))
        for a in alertas
    ]


def pedidos_pendientes() -> list:
    return cache.consultar(
        ("pedidos-sugeridos", "PENDIENTE"),
        lambda: api.get("/pedidos-sugeridos/estado/PENDIENTE"),
        ttl=0,
    ) or []


def aglomeracion() -> dict:
    return cache.consultar(("aglomeracion",), lambda: api.get("/dashboard/aglomeracion"), ttl=0) or {}


def resumen_kpis(kpis: Iterable[dict]) -> dict:
    kpis = list(kpis or [])
    return {
        "total": len(kpis),
        "reordenar": sum(1 for k in kpis if k.get("estadoReposicion") == "REORDENAR"),
        "ok": sum(1 for k in kpis if k.get("estadoReposicion") == "OK"),
        "clase_a": sum(1 for k in kpis if k.get("clasificacionABC") == "A"),
    }


def cambiar_estado_pedido(pedido_id, estado: str):
    """PATCH /pedidos-sugeridos/{id}/estado?estado=APROBADO|RECHAZADO."""
    if estado not in ESTADOS_PEDIDO:
        raise ValueError(f"Estado de pedido no válido: {estado}")
    respuesta = api.patch(f"/pedidos-sugeridos/{pedido_id}/estado", params={"estado": estado})
    cache.invalidar("pedidos-sugeridos", "aglomeracion")
    return respuesta


def pedidos_de_proveedor(proveedor_id, pedidos: Iterable[dict], consolidacion: dict) -> list:
    """
    Pedidos pendientes cuyo producto figura en la consolidación del proveedor.
    """
    productos: set = set()
    for grupo in consolidacion.get("consolidados") or []:
        if str(grupo.get("proveedorId")) == str(proveedor_id):
            productos.update(str(p.get("productoId")) for p in grupo.get("productos") or [])
    return [p for p in pedidos or [] if str(p.get("productoId")) in productos]


def aprobar_consolidacion(proveedor_id) -> int:
    """
    Aprueba todos los pedidos pendientes consolidados para un proveedor.

    Returns:
        int: cantidad de pedidos aprobados.
    """
    pedidos = pedidos_de_proveedor(proveedor_id, pedidos_pendientes(), aglomeracion())
    for pedido in pedidos:
        cambiar_estado_pedido(pedido.get("id"), "APROBADO")
    logger.info("Consolidación del proveedor %s aprobada (%d pedidos)", proveedor_id, len(pedidos))
    return len(pedidos)


def exportar_excel() -> tuple[str, bytes]:
    """Descarga el Excel de inventario continuo. Returns: (nombre_archivo, contenido)."""
    contenido = api.descargar("/inventario/export/excel")
    marca = timezone.now().strftime("%Y-%m-%dT%H-%M-%S")
    return f"Inventario_Continuo_{marca}.xlsx", contenido
