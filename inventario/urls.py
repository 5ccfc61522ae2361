"""
URLs del módulo Inventario.

Propósito:
    Rutas con namespace propio para Productos y Proveedores (CRUD contra la API)
    y para los listados de solo lectura de Lotes, Sublotes y Movimientos.

Diseño/Notas:
    - `app_name = "inventario"` evita colisiones en {% url %}/reverse().
    - Los IDs del backend remoto son enteros (`<int:pk>`); cualquier otro valor da 404 sin llamar a la API.
"""
from django.urls import path
from . import views

app_name = "inventario"

urlpatterns = [
    # ─────────────────────────────────────────────────────────────────────────
    # PRODUCTOS
    # ─────────────────────────────────────────────────────────────────────────
    path("productos/", views.listar_productos, name="listar_productos"),
    path("productos/agregar/", views.agregar_producto, name="agregar_producto"),
    path("productos/<int:pk>/editar/", views.editar_producto, name="editar_producto"),
    path("productos/<int:pk>/descontinuar/", views.descontinuar_producto, name="descontinuar_producto"),
    path("productos/<int:pk>/stock/", views.stock_producto, name="stock_producto"),

    # ─────────────────────────────────────────────────────────────────────────
    # PROVEEDORES
    # ─────────────────────────────────────────────────────────────────────────
    path("proveedores/", views.listar_proveedores, name="listar_proveedores"),
    path("proveedores/nuevo/", views.agregar_proveedor, name="agregar_proveedor"),
    path("proveedores/<int:pk>/editar/", views.editar_proveedor, name="editar_proveedor"),
    path("proveedores/<int:pk>/eliminar/", views.eliminar_proveedor, name="eliminar_proveedor"),

    # ─────────────────────────────────────────────────────────────────────────
    # SOLO LECTURA
    # ─────────────────────────────────────────────────────────────────────────
    path("lotes/", views.listar_lotes, name="listar_lotes"),
    path("sublotes/", views.listar_sublotes, name="listar_sublotes"),
    path("movimientos/", views.listar_movimientos, name="listar_movimientos"),
]
