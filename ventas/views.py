# ventas/views.py
"""
Vistas de la app 'ventas': Ventas y Clientes.

Responsabilidades:
- Ventas: listar con filtros, crear (cabecera + formset de líneas), ver detalle, eliminar.
- Clientes: listar con filtros, crear, editar, eliminar.

Diseño:
- Las llamadas a la API viven en `services`; aquí solo se orquesta y se informa.
- PRG tras cada mutación con flash messages.
- El "total estimado" del formulario es informativo (el backend fija el total real).
"""
import logging

from django.contrib import messages
from django.contrib.auth.decorators import login_required
from django.http import Http404
from django.shortcuts import redirect, render

from compras.forms import opciones_producto
from inventario import services as inventario_services
from servicios.api import ApiError
from servicios.formato import parsear_monto
from servicios.paginacion import Pagina, leer_pagina

from . import services
from .forms import ClienteForm, DetalleVentaFormSet, VentaForm, armar_payload

logger = logging.getLogger(__name__)

FORMS_PREFIX = "lineas"


def _cargar(request, consulta, mensaje):
    try:
        return consulta()
    except ApiError as exc:
        logger.error("%s: %s", mensaje, exc)
        messages.warning(request, mensaje)
        return []


def _lineas_enviadas(formset) -> list:
    """
    Líneas tal como llegaron en el POST (aunque el formset no sea válido).

    Se recorren los formularios del formset, acotados por `absolute_max`, y no
    el TOTAL_FORMS declarado por el cliente.
    """
    lineas = []
    for linea in formset.forms:
        if linea.data.get(linea.add_prefix("DELETE")):
            continue
        lineas.append({
            campo: linea.data.get(linea.add_prefix(campo))
            for campo in ("productoId", "cantidad", "descuento")
        })
    return lineas


def _con_nombre(clientes):
    return [dict(c, nombre_mostrar=services.nombre_cliente(c)) for c in clientes or []]


# ─────────────────────────────────────────────────────────────────────────────
# VENTAS
# ─────────────────────────────────────────────────────────────────────────────
@login_required
def ver_ventas(request):
    """
    Listado de ventas.

    Filtros (GET): clienteId, fechaInicio, fechaFin. `?page=` en base 0.
    """
    filtros = {
        "clienteId": request.GET.get("clienteId", "").strip(),
        "fechaInicio": request.GET.get("fechaInicio", "").strip(),
        "fechaFin": request.GET.get("fechaFin", "").strip(),
    }
    page = leer_pagina(request)
    try:
        pagina = services.listar_ventas(filtros["clienteId"], filtros["fechaInicio"], filtros["fechaFin"], page)
    except ApiError as exc:
        messages.error(request, f"Error al cargar ventas: {exc.mensaje_servidor}")
        pagina = Pagina(number=page, first=page == 0)

    return render(request, "ventas/ver_ventas.html", {
        "pagina": pagina,
        "ventas": pagina.content,
        "clientes": _con_nombre(_cargar(request, services.todos_los_clientes, "No se pudieron cargar los clientes")),
        "filtros": filtros,
    })


@login_required
def crear_venta(request):
    """
    Registra una venta (POST /ventas).

    Contexto extra:
    - precios: {productoId: precio} para recalcular el total estimado en el navegador.
    - total_estimado: Σ(precio × cantidad − descuento) de las líneas enviadas.
    """
    clientes = _cargar(request, services.todos_los_clientes, "No se pudieron cargar los clientes")
    metodos = _cargar(request, services.metodos_pago, "No se pudieron cargar los métodos de pago")
    productos = _cargar(request, inventario_services.todos_los_productos, "No se pudieron cargar los productos")
    choices = opciones_producto(productos, inventario_services.stocks_por_producto(productos))

    if request.method == "POST":
        form = VentaForm(request.POST, clientes=clientes, metodos=metodos)
        formset = DetalleVentaFormSet(
            request.POST, prefix=FORMS_PREFIX, form_kwargs={"productos_choices": choices},
        )
        if form.is_valid() and formset.is_valid():
            try:
                services.crear_venta(armar_payload(form, formset))
            except ApiError as exc:
                messages.error(request, f"Error al crear la venta: {exc.mensaje_servidor}")
            else:
                messages.success(request, "Venta registrada correctamente.")
                return redirect("ventas:ver_ventas")
        else:
            messages.error(request, "Revisa los errores del formulario.")
        total = services.total_estimado(_lineas_enviadas(formset), productos)
    else:
        form = VentaForm(clientes=clientes, metodos=metodos)
        formset = DetalleVentaFormSet(prefix=FORMS_PREFIX, form_kwargs={"productos_choices": choices})
        total = 0

    precios = {
        inventario_services.producto_id(p): str(parsear_monto(p.get("precio")))
        for p in productos
    }
    return render(request, "ventas/crear_venta.html", {
        "form": form,
        "formset": formset,
        "precios": precios,
        "total_estimado": total,
    })


@login_required
def detalle_venta(request, pk):
    """Detalle de una venta; si la API falla se usa la fila del listado (`?page=`)."""
    page = leer_pagina(request)
    try:
        respaldo = inventario_services.buscar_en_pagina(services.listar_ventas(page=page), "ventaId", pk)
    except ApiError:
        respaldo = None
    try:
        venta = services.detalle_venta(pk, respaldo)
    except ApiError as exc:
        if exc.no_encontrado:
            raise Http404("Venta no encontrada")
        messages.error(request, f"Error al cargar la venta: {exc.mensaje_servidor}")
        return redirect("ventas:ver_ventas")
    return render(request, "ventas/detalle_venta.html", {
        "venta": venta,
        "detalles": [
            dict(d, costo=d.get("costoUnitario") or d.get("precioUnitario") or "")
            for d in venta.get("detalles") or []
        ],
    })


@login_required
def eliminar_venta(request, pk):
    if request.method == "POST":
        try:
            services.eliminar_venta(pk)
        except ApiError as exc:
            logger.error("Error al eliminar venta %s: %s", pk, exc)
            messages.error(request, "Error al eliminar venta")
        else:
            messages.success(request, "Venta eliminada correctamente.")
        return redirect("ventas:ver_ventas")
    return render(request, "ventas/eliminar_venta.html", {"pk": pk})


# ─────────────────────────────────────────────────────────────────────────────
# CLIENTES
# ─────────────────────────────────────────────────────────────────────────────
@login_required
def listar_clientes(request):
    """
    Clientes filtrados por nombre/apellido.

    Template:
    ventas/clientes/listar_clientes.html
    """
    nombre = request.GET.get("nombre", "").strip()
    apellido = request.GET.get("apellido", "").strip()
    page = leer_pagina(request)
    try:
        pagina = services.listar_clientes(nombre, apellido, page)
    except ApiError as exc:
        messages.error(request, f"Error al cargar clientes: {exc.mensaje_servidor}")
        pagina = Pagina(number=page, first=page == 0)
    return render(request, "ventas/clientes/listar_clientes.html", {
        "pagina": pagina,
        "clientes": _con_nombre(pagina.content),
        "filtros": {"nombre": nombre, "apellido": apellido},
    })


def _opciones_cliente(request):
    """Niveles de fidelidad (derivados de todos los clientes) y ubicaciones."""
    todos = _cargar(request, services.todos_los_clientes, "No se pudieron cargar los niveles de fidelidad")
    ubicaciones = _cargar(request, inventario_services.ubicaciones, "No se pudieron cargar las ubicaciones")
    return {"niveles": services.niveles_fidelidad(todos), "ubicaciones": ubicaciones}


@login_required
def agregar_cliente(request):
    opciones = _opciones_cliente(request)
    if request.method == "POST":
        form = ClienteForm(request.POST, **opciones)
        if form.is_valid():
            try:
                services.crear_cliente(form.a_payload())
            except ApiError as exc:
                logger.error("Error al crear cliente: %s", exc)
                messages.error(request, "Error al crear cliente")
            else:
                messages.success(request, "Cliente creado correctamente.")
                return redirect("ventas:listar_clientes")
        else:
            messages.error(request, "Revisa los errores del formulario.")
    else:
        form = ClienteForm(**opciones)
    return render(request, "ventas/clientes/form_cliente.html", {"form": form, "modo": "crear"})


@login_required
def editar_cliente(request, pk):
    """
    Edita un cliente (PUT /clientes/{id}).

    El formulario se precarga con los datos del cliente tal como vienen en el listado.
    """
    opciones = _opciones_cliente(request)
    if request.method == "POST":
        form = ClienteForm(request.POST, **opciones)
        if form.is_valid():
            try:
                services.actualizar_cliente(pk, form.a_payload())
            except ApiError as exc:
                logger.error("Error al actualizar cliente %s: %s", pk, exc)
                messages.error(request, "Error al actualizar cliente")
            else:
                messages.success(request, "Cliente actualizado correctamente.")
                return redirect("ventas:listar_clientes")
        else:
            messages.error(request, "Revisa los errores del formulario.")
    else:
        try:
            cliente = services.obtener_cliente(pk)
        except ApiError as exc:
            if exc.no_encontrado:
                raise Http404("Cliente no encontrado")
            messages.error(request, "No se pudo cargar el cliente.")
            return redirect("ventas:listar_clientes")
        form = ClienteForm(initial=ClienteForm.inicial_desde_api(cliente), **opciones)
    return render(request, "ventas/clientes/form_cliente.html", {"form": form, "modo": "editar", "pk": pk})


@login_required
def eliminar_cliente(request, pk):
    if request.method == "POST":
        try:
            services.eliminar_cliente(pk)
        except ApiError as exc:
            logger.error("Error al eliminar cliente %s: %s", pk, exc)
            messages.error(request, "Error al eliminar cliente")
        else:
            messages.success(request, "Cliente eliminado correctamente.")
        return redirect("ventas:listar_clientes")
    return render(request, "ventas/clientes/eliminar_cliente.html", {
        "pk": pk,
        "nombre": request.GET.get("nombre", ""),
    })
