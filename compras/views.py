# compras/views.py
"""
Vistas de la app 'compras'.

Flujos cubiertos:
- Listar compras con filtros (proveedor, rango de fechas) y paginación.
- Crear compra (cabecera + N líneas vía formset).
- Ver detalle solo-lectura.
- Eliminar compra con confirmación.

Notas de diseño:
- La validación de datos de entrada vive en `forms`/`formsets`; aquí solo orquestamos.
- Las llamadas HTTP y la invalidación de caché viven en `services`.
"""
import logging

from django.contrib import messages
from django.contrib.auth.decorators import login_required
from django.http import Http404
from django.shortcuts import redirect, render

from inventario import services as inventario_services
from servicios.api import ApiError
from servicios.paginacion import Pagina, leer_pagina

from . import services
from .forms import CompraForm, DetalleCompraFormSet, armar_payload, opciones_producto

logger = logging.getLogger(__name__)

FORMS_PREFIX = "lineas"


def _proveedores(request):
    try:
        return inventario_services.todos_los_proveedores()
    except ApiError as exc:
        logger.error("Error al cargar proveedores: %s", exc)
        messages.warning(request, "No se pudieron cargar los proveedores")
        return []


# ─────────────────────────────────────────────────────────────────────────────
# LISTAR
# ─────────────────────────────────────────────────────────────────────────────
@login_required
def ver_compras(request):
    """
    Listado de compras.

    Filtros (GET): proveedorId, fechaInicio, fechaFin. `?page=` en base 0.
    """
    filtros = {
        "proveedorId": request.GET.get("proveedorId", "").strip(),
        "fechaInicio": request.GET.get("fechaInicio", "").strip(),
        "fechaFin": request.GET.get("fechaFin", "").strip(),
    }
    page = leer_pagina(request)
    try:
        pagina = services.listar_compras(filtros["proveedorId"], filtros["fechaInicio"], filtros["fechaFin"], page)
    except ApiError as exc:
        messages.error(request, f"Error al cargar compras: {exc.mensaje_servidor}")
        pagina = Pagina(number=page, first=page == 0)

    return render(request, "compras/ver_compras.html", {
        "pagina": pagina,
        "compras": pagina.content,
        "proveedores": _proveedores(request),
        "filtros": filtros,
    })


# ─────────────────────────────────────────────────────────────────────────────
# CREAR
# ─────────────────────────────────────────────────────────────────────────────
@login_required
def crear_compra(request):
    """
    Crea una compra con sus líneas (POST /compras).

    Flujo:
    - GET: cabecera vacía + 1 línea.
    - POST: valida cabecera y formset; si todo es válido envía a la API y hace PRG.
      Los errores de la API se muestran como "Error al crear la compra: {mensaje}".
    """
    proveedores = _proveedores(request)
    try:
        productos = inventario_services.todos_los_productos()
    except ApiError as exc:
        logger.error("Error al cargar productos: %s", exc)
        messages.warning(request, "No se pudieron cargar los productos")
        productos = []
    choices = opciones_producto(productos, inventario_services.stocks_por_producto(productos))

    if request.method == "POST":
        form = CompraForm(request.POST, proveedores=proveedores)
        formset = DetalleCompraFormSet(
            request.POST, prefix=FORMS_PREFIX, form_kwargs={"productos_choices": choices},
        )
        if form.is_valid() and formset.is_valid():
            try:
                services.crear_compra(armar_payload(form, formset))
            except ApiError as exc:
                messages.error(request, f"Error al crear la compra: {exc.mensaje_servidor}")
            else:
                messages.success(request, "Compra registrada correctamente.")
                return redirect("compras:ver_compras")
        else:
            messages.error(request, "Revisa los errores del formulario.")
    else:
        form = CompraForm(proveedores=proveedores)
        formset = DetalleCompraFormSet(prefix=FORMS_PREFIX, form_kwargs={"productos_choices": choices})

    return render(request, "compras/crear_compra.html", {"form": form, "formset": formset})


# ─────────────────────────────────────────────────────────────────────────────
# DETALLE
# ─────────────────────────────────────────────────────────────────────────────
@login_required
def detalle_compra(request, pk):
    """
    Detalle de una compra.

    Si `GET /compras/{id}` falla se usa la fila del listado (página `?page=`)
    como respaldo; si tampoco está ahí, 404.
    """
    page = leer_pagina(request)
    try:
        respaldo = inventario_services.buscar_en_pagina(services.listar_compras(page=page), "id", pk)
    except ApiError:
        respaldo = None
    try:
        compra = services.detalle_compra(pk, respaldo)
    except ApiError as exc:
        if exc.no_encontrado:
            raise Http404("Compra no encontrada")
        messages.error(request, f"Error al cargar la compra: {exc.mensaje_servidor}")
        return redirect("compras:ver_compras")
    return render(request, "compras/detalle_compra.html", {
        "compra": compra,
        "detalles": compra.get("detalles") or [],
    })


# ─────────────────────────────────────────────────────────────────────────────
# ELIMINAR
# ─────────────────────────────────────────────────────────────────────────────
@login_required
def eliminar_compra(request, pk):
    """
    Elimina una compra previa confirmación.

    GET  → "¿Estás seguro de eliminar esta compra?"
    POST → DELETE /compras/{id} y vuelta al listado.
    """
    if request.method == "POST":
        try:
            services.eliminar_compra(pk)
        except ApiError as exc:
            logger.error("Error al eliminar compra %s: %s", pk, exc)
            messages.error(request, "Error al eliminar compra")
        else:
            messages.success(request, "Compra eliminada correctamente.")
        return redirect("compras:ver_compras")
    return render(request, "compras/eliminar_compra.html", {"pk": pk})
