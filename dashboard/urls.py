"""
URLs del módulo Dashboard.

Responsabilidades:
- Panel principal en '/'.
- Análisis de inventario y sus acciones (pedidos, consolidación, Excel).

Diseño:
- Namespace propio (`app_name = "dashboard"`) para evitar colisiones.
"""

# dashboard/urls.py
from django.urls import path
from . import views

app_name = "dashboard"

urlpatterns = [
    path("", views.panel, name="panel"),
    path("inventario-kpis/", views.inventario_kpis, name="inventario_kpis"),
    path("inventario-kpis/pedidos/<int:pk>/estado/", views.cambiar_estado_pedido, name="cambiar_estado_pedido"),
    path(
        "inventario-kpis/consolidacion/<int:proveedor_id>/aprobar/",
        views.aprobar_consolidacion,
        name="aprobar_consolidacion",
    ),
    path("inventario-kpis/exportar/", views.exportar_excel, name="exportar_excel"),
]
