# compras/urls.py
"""
Rutas de la app 'compras' (namespace "compras").

- ""                  → listado con filtros
- "crear/"            → alta de compra con N líneas
- "<pk>/"             → detalle solo-lectura
- "<pk>/eliminar/"    → confirmación + baja
"""
from django.urls import path
from . import views

app_name = "compras"

urlpatterns = [
    path("", views.ver_compras, name="ver_compras"),
    path("crear/", views.crear_compra, name="crear_compra"),
    path("<int:pk>/", views.detalle_compra, name="detalle_compra"),
    path("<int:pk>/eliminar/", views.eliminar_compra, name="eliminar_compra"),
]
