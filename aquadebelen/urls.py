"""
Rutas del proyecto.

Decisiones:
- El dashboard general vive en '/' y el análisis de inventario en '/inventario-kpis/'.
- Cada app con su namespace para reverses claros.
- Auth de Django en '/accounts/' (login/logout).
"""

from django.contrib import admin
from django.urls import path, include

urlpatterns = [
    # Admin (gestión de usuarios del panel)
    path("admin/", admin.site.urls),

    # Apps
    path("", include(("dashboard.urls", "dashboard"), namespace="dashboard")),
    path("compras/", include(("compras.urls", "compras"), namespace="compras")),
    path("inventario/", include(("inventario.urls", "inventario"), namespace="inventario")),
    path("ventas/", include(("ventas.urls", "ventas"), namespace="ventas")),

    # Auth (login/logout/password reset…)
    path("accounts/", include("django.contrib.auth.urls")),
]
