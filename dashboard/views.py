"""
Vistas del panel (dashboard) y del análisis de inventario.

Propósito:
    Renderizar el dashboard principal y la pantalla de KPIs de inventario con
    datos ya calculados por el backend, preparando payloads listos para
    templates.

Responsabilidades:
    - panel: KPIs, charts de stock y tablas de ventas recientes / por vencer.
    - inventario_kpis: pestañas KPIs, alertas ROP, pedidos sugeridos y consolidación.
    - Acciones: aprobar/rechazar pedidos, aprobar consolidación, exportar Excel.

Diseño/Notas:
    - Los datos de los gráficos viajan como `chart` y el template los serializa con json_script.
    - El análisis de inventario nunca usa caché.
"""
import logging

from django.contrib import messages
from django.contrib.auth.decorators import login_required
from django.http import HttpResponse
from django.shortcuts import redirect, render
from django.urls import reverse
from django.views.decorators.http import require_POST

from servicios.api import ApiError

from . import services

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────────────────────
# VISTA: panel
# ─────────────────────────────────────────────────────────────────────────────
@login_required
def panel(request):
    """
    Dashboard general.

    Contexto:
        - kpis, ventas_recientes, proximos_vencer, chart (ver services.datos_panel).
        - hay_error: True si la API no respondió; la página se muestra con ceros.
    """
    try:
        contexto = services.datos_panel()
        contexto["hay_error"] = False
    except ApiError as exc:
        messages.error(request, f"Error al cargar el dashboard: {exc.mensaje_servidor}")
        contexto = {
            "kpis": {},
            "ventas_recientes": [],
            "proximos_vencer": [],
            "chart": {"top_stock": {"labels": [], "data": []}, "distribucion": {"labels": [], "data": []}},
            "hay_error": True,
        }
    return render(request, "dashboard/panel.html", contexto)


# ─────────────────────────────────────────────────────────────────────────────
# VISTA: inventario_kpis
# ─────────────────────────────────────────────────────────────────────────────
def _url_pestana(tab: str) -> str:
    return f"{reverse('dashboard:inventario_kpis')}?tab={tab}"


@login_required
def inventario_kpis(request):
    """
    Análisis de inventario en pestañas (`?tab=kpis|alertas|pedidos|consolidacion`).

    Flujo:
        1) KPIs: si fallan, la página entera muestra "Error al cargar datos".
        2) Alertas, pedidos y consolidación: si fallan, se muestran vacíos con aviso.
    """
    tab = request.GET.get("tab", "kpis")
    if tab not in services.PESTANAS:
        tab = "kpis"

    try:
        kpis = services.kpis_inventario()
    except ApiError as exc:
        logger.error("Error al cargar KPIs de inventario: %s", exc)
        return render(request, "dashboard/inventario_kpis.html", {"error": True, "tab": tab})

    contexto = {
        "error": False,
        "tab": tab,
        "kpis": kpis,
        "resumen": services.resumen_kpis(kpis),
    }
    for clave, consulta, vacio in (
        ("alertas", services.alertas_rop, []),
        ("pedidos", services.pedidos_pendientes, []),
        ("aglomeracion", services.aglomeracion, {}),
    ):
        try:
            contexto[clave] = consulta()
        except ApiError as exc:
            logger.error("Error al cargar %s: %s", clave, exc)
            messages.warning(request, f"No se pudo cargar {clave}")
            contexto[clave] = vacio
    return render(request, "dashboard/inventario_kpis.html", contexto)


@login_required
@require_POST
def cambiar_estado_pedido(request, pk):
    """Aprueba o rechaza un pedido sugerido (`estado` en el POST)."""
    estado = request.POST.get("estado", "")
    try:
        services.cambiar_estado_pedido(pk, estado)
    except ValueError:
        messages.error(request, "Estado de pedido no válido.")
    except ApiError as exc:
        messages.error(request, f"Error al actualizar el pedido: {exc.mensaje_servidor}")
    else:
        accion = "aprobado" if estado == "APROBADO" else "rechazado"
        messages.success(request, f"Pedido {accion} correctamente.")
    return redirect(_url_pestana("pedidos"))


@login_required
@require_POST
def aprobar_consolidacion(request, proveedor_id):
    """Aprueba todos los pedidos pendientes consolidados para el proveedor."""
    try:
        aprobados = services.aprobar_consolidacion(proveedor_id)
    except ApiError as exc:
        messages.error(request, f"Error al aprobar la consolidación: {exc.mensaje_servidor}")
    else:
        messages.success(request, f"Se aprobaron {aprobados} pedidos del proveedor.")
    return redirect(_url_pestana("consolidacion"))


@login_required
def exportar_excel(request):
    """Descarga del Excel de inventario continuo generado por el backend."""
    try:
        nombre, contenido = services.exportar_excel()
    except ApiError as exc:
        logger.error("Error al descargar Excel: %s", exc)
        messages.error(request, "Error al descargar el archivo Excel")
        return redirect(_url_pestana(request.GET.get("tab", "kpis")))
    respuesta = HttpResponse(
        contenido,
        content_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    )
    respuesta["Content-Disposition"] = f'attachment; filename="{nombre}"'
    return respuesta
