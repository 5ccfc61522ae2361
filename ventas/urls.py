from django.urls import path
from . import views

app_name = "ventas"

urlpatterns = [
    # Clientes (antes que "<pk>/" para que "clientes/" no se tome como ID de venta)
    path("clientes/", views.listar_clientes, name="listar_clientes"),
    path("clientes/nuevo/", views.agregar_cliente, name="agregar_cliente"),
    path("clientes/<int:pk>/editar/", views.editar_cliente, name="editar_cliente"),
    path("clientes/<int:pk>/eliminar/", views.eliminar_cliente, name="eliminar_cliente"),

    # Ventas
    path("", views.ver_ventas, name="ver_ventas"),
    path("crear/", views.crear_venta, name="crear_venta"),
    path("<int:pk>/", views.detalle_venta, name="detalle_venta"),
    path("<int:pk>/eliminar/", views.eliminar_venta, name="eliminar_venta"),
]
