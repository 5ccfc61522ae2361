from typing import Dict, List

from django.http import HttpRequest
from django.urls import reverse

# (etiqueta, nombre de url, icono)
NAV_ITEMS = [
    ("Dashboard", "dashboard:panel", "layout-dashboard"),
    ("KPIs Inventario", "dashboard:inventario_kpis", "bar-chart-3"),
    ("Productos", "inventario:listar_productos", "package"),
    ("Ventas", "ventas:ver_ventas", "shopping-cart"),
    ("Compras", "compras:ver_compras", "shopping-bag"),
    ("Clientes", "ventas:listar_clientes", "users"),
    ("Proveedores", "inventario:listar_proveedores", "truck"),
    ("Lotes", "inventario:listar_lotes", "layers"),
    ("Sublotes", "inventario:listar_sublotes", "box"),
    ("Movimientos", "inventario:listar_movimientos", "activity"),
]


def navegacion(request: HttpRequest) -> Dict[str, object]:
    """
    Inyecta el menú lateral y el título de la página en TODOS los templates.
    - El ítem activo es el que coincide exactamente con la ruta actual.
    - Si ninguno coincide, el título es 'Dashboard'.
    """
    items: List[dict] = []
    titulo = "Dashboard"
    for etiqueta, nombre, icono in NAV_ITEMS:
        url = reverse(nombre)
        activo = request.path == url
        if activo:
            titulo = etiqueta
        items.append({"label": etiqueta, "url": url, "icono": icono, "activo": activo})
    return {"nav_items": items, "titulo_pagina": titulo, "nombre_negocio": "Aqua de Belén"}
