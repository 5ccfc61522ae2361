"""
Vistas de Inventario: Productos, Proveedores, Lotes, Sublotes y Movimientos.

Responsabilidades:
- Productos: listar/filtrar, agregar, editar, descontinuar/reactivar, ver stock.
- Proveedores: listar/filtrar, agregar, editar, eliminar.
- Lotes, Sublotes y Movimientos: listados de solo lectura con filtros.

Diseño:
- Sin ORM: todo se lee/escribe vía `inventario.services` (API remota).
- PRG tras cada mutación, con flash messages para éxito/error.
- `ApiError` se captura en el borde de la vista: los listados que fallan se
  muestran vacíos con un mensaje, nunca como 500.
"""

import logging

from django.contrib import messages
from django.contrib.auth.decorators import login_required
from django.http import Http404
from django.shortcuts import redirect, render

from servicios.api import ApiError
from servicios.paginacion import Pagina, leer_pagina

from . import services
from .forms import ProductoForm, ProveedorForm

logger = logging.getLogger(__name__)


def _pagina_vacia(page: int) -> Pagina:
    return Pagina(content=[], number=page, first=page == 0)


def _lookup(request, consulta, mensaje):
    """Datos de apoyo para selects; si fallan, la pantalla sigue con la lista vacía."""
    try:
        return consulta()
    except ApiError as exc:
        logger.error("%s: %s", mensaje, exc)
        messages.warning(request, mensaje)
        return []


# ─────────────────────────────────────────────────────────────────────────────
# PRODUCTOS
# ─────────────────────────────────────────────────────────────────────────────
@login_required
def listar_productos(request):
    """
    Lista de productos con filtros `nombre` y `tipoProductoId`.

    Con algún filtro activo se usa `/productos/buscar` (sin paginar); sin filtros
    se pagina en base 0 con `?page=`.

    Template:
    inventario/productos/listar_productos.html
    """
    nombre = request.GET.get("nombre", "").strip()
    tipo = request.GET.get("tipoProductoId", "").strip()
    page = leer_pagina(request)

    try:
        pagina = services.listar_productos(nombre, tipo, page)
    except ApiError as exc:
        messages.error(request, f"Error al cargar productos: {exc.mensaje_servidor}")
        pagina = _pagina_vacia(page)

    tipos = _lookup(request, services.tipos_producto, "No se pudieron cargar los tipos de producto")
    return render(request, "inventario/productos/listar_productos.html", {
        "pagina": pagina,
        "productos": [dict(p, pk=services.producto_id(p)) for p in pagina.content],
        "tipos": tipos,
        "filtros": {"nombre": nombre, "tipoProductoId": tipo},
    })


@login_required
def agregar_producto(request):
    """
    Crea un producto (POST /productos).

    Flujo:
    - GET: formulario vacío.
    - POST: valida; si la API acepta → PRG al listado; si no, se re-renderiza con el error.
    """
    tipos = _lookup(request, services.tipos_producto, "No se pudieron cargar los tipos de producto")
    if request.method == "POST":
        form = ProductoForm(request.POST, tipos=tipos)
        if form.is_valid():
            try:
                services.crear_producto(form.a_payload())
            except ApiError as exc:
                messages.error(request, f"Error al crear producto: {exc.mensaje_servidor}")
            else:
                messages.success(request, "Producto creado correctamente.")
                return redirect("inventario:listar_productos")
        else:
            messages.error(request, "Revisa los errores del formulario.")
    else:
        form = ProductoForm(tipos=tipos)
    return render(request, "inventario/productos/form_producto.html", {"form": form, "modo": "crear"})


@login_required
def editar_producto(request, pk):
    """
    Edita un producto.

    El formulario se precarga con el producto completo (`GET /productos/{id}`)
    para conservar `tipoProductoId`, que el listado no trae.
    """
    tipos = _lookup(request, services.tipos_producto, "No se pudieron cargar los tipos de producto")
    if request.method == "POST":
        form = ProductoForm(request.POST, tipos=tipos)
        if form.is_valid():
            try:
                services.actualizar_producto(pk, form.a_payload())
            except ApiError as exc:
                messages.error(request, f"Error al actualizar producto: {exc.mensaje_servidor}")
            else:
                messages.success(request, "Producto actualizado correctamente.")
                return redirect("inventario:listar_productos")
        else:
            messages.error(request, "Revisa los errores del formulario.")
    else:
        try:
            producto = services.obtener_producto(pk)
        except ApiError as exc:
            if exc.no_encontrado:
                raise Http404("Producto no encontrado")
            messages.error(request, "No se pudieron cargar los detalles del producto. Intente nuevamente.")
            return redirect("inventario:listar_productos")
        form = ProductoForm(initial=ProductoForm.inicial_desde_api(producto), tipos=tipos)
    return render(request, "inventario/productos/form_producto.html", {
        "form": form, "modo": "editar", "pk": pk,
    })


@login_required
def descontinuar_producto(request, pk):
    """
    Descontinúa o reactiva un producto, previa confirmación.

    GET  → pantalla de confirmación ("¿Descontinuar producto?" / "¿Reactivar producto?").
    POST → invierte `descontinuado` y vuelve al listado.
    """
    if request.method == "POST":
        try:
            descontinuado = services.alternar_descontinuado(pk)
        except ApiError as exc:
            messages.error(request, f"Error al cambiar el estado del producto: {exc.mensaje_servidor}")
        else:
            if descontinuado:
                messages.success(request, "Producto descontinuado correctamente.")
            else:
                messages.success(request, "Producto reactivado correctamente.")
        return redirect("inventario:listar_productos")

    try:
        producto = services.obtener_producto(pk)
    except ApiError as exc:
        if exc.no_encontrado:
            raise Http404("Producto no encontrado")
        messages.error(request, "No se pudieron cargar los detalles del producto. Intente nuevamente.")
        return redirect("inventario:listar_productos")
    return render(request, "inventario/productos/confirmar_descontinuar.html", {
        "producto": producto,
        "pk": pk,
        "titulo": "¿Reactivar producto?" if producto.get("descontinuado") else "¿Descontinuar producto?",
    })


@login_required
def stock_producto(request, pk):
    """Sublotes de un producto y su stock total (Σ cantidadActual)."""
    try:
        sublotes = services.sublotes_de_producto(pk)
    except ApiError as exc:
        if exc.no_encontrado:
            raise Http404("Producto no encontrado")
        messages.error(request, f"Error al cargar el stock: {exc.mensaje_servidor}")
        sublotes = []
    return render(request, "inventario/productos/stock_producto.html", {
        "pk": pk,
        "nombre": request.GET.get("nombre", ""),
        "sublotes": sublotes,
        "stock_total": services.calcular_stock_total(sublotes),
    })


# ─────────────────────────────────────────────────────────────────────────────
# PROVEEDORES
# ─────────────────────────────────────────────────────────────────────────────
@login_required
def listar_proveedores(request):
    """Proveedores filtrados por `nombre` y/o `nit` (la API no pagina este recurso)."""
    nombre = request.GET.get("nombre", "").strip()
    nit = request.GET.get("nit", "").strip()
    try:
        proveedores = services.listar_proveedores(nombre, nit)
    except ApiError as exc:
        messages.error(request, f"Error al cargar proveedores: {exc.mensaje_servidor}")
        proveedores = []
    return render(request, "inventario/proveedores/listar_proveedores.html", {
        "proveedores": [
            dict(p, ubicacion_nombre=p.get("ubicacion") or p.get("ciudad") or "")
            for p in proveedores
        ],
        "filtros": {"nombre": nombre, "nit": nit},
    })


@login_required
def agregar_proveedor(request):
    ubicaciones = _lookup(request, services.ubicaciones, "No se pudieron cargar las ubicaciones")
    if request.method == "POST":
        form = ProveedorForm(request.POST, ubicaciones=ubicaciones)
        if form.is_valid():
            try:
                services.crear_proveedor(form.a_payload())
            except ApiError as exc:
                logger.error("Error al crear proveedor: %s", exc)
                messages.error(request, "Error al crear proveedor")
            else:
                messages.success(request, "Proveedor creado correctamente.")
                return redirect("inventario:listar_proveedores")
        else:
            messages.error(request, "Revisa los errores del formulario.")
    else:
        form = ProveedorForm(ubicaciones=ubicaciones)
    return render(request, "inventario/proveedores/form_proveedor.html", {"form": form, "modo": "crear"})


@login_required
def editar_proveedor(request, pk):
    """
    Edita un proveedor existente (PUT /proveedor/{id}).

    Flujo:
    - GET: precarga buscando el proveedor en el listado (si no existe → Http404).
    - POST: valida, envía y redirige al listado (PRG).
    """
    ubicaciones = _lookup(request, services.ubicaciones, "No se pudieron cargar las ubicaciones")
    if request.method == "POST":
        form = ProveedorForm(request.POST, ubicaciones=ubicaciones)
        if form.is_valid():
            try:
                services.actualizar_proveedor(pk, form.a_payload())
            except ApiError as exc:
                logger.error("Error al actualizar proveedor %s: %s", pk, exc)
                messages.error(request, "Error al actualizar proveedor")
            else:
                messages.success(request, "Proveedor actualizado correctamente.")
                return redirect("inventario:listar_proveedores")
        else:
            messages.error(request, "Revisa los errores del formulario.")
    else:
        try:
            proveedor = services.obtener_proveedor(pk)
        except ApiError as exc:
            if exc.no_encontrado:
                raise Http404("Proveedor no encontrado")
            messages.error(request, "No se pudo cargar el proveedor.")
            return redirect("inventario:listar_proveedores")
        form = ProveedorForm(initial=ProveedorForm.inicial_desde_api(proveedor), ubicaciones=ubicaciones)
    return render(request, "inventario/proveedores/form_proveedor.html", {
        "form": form, "modo": "editar", "pk": pk,
    })


@login_required
def eliminar_proveedor(request, pk):
    """
    Elimina un proveedor previa confirmación.

    Template GET:
    inventario/proveedores/eliminar_proveedor.html
    """
    if request.method == "POST":
        try:
            services.eliminar_proveedor(pk)
        except ApiError as exc:
            logger.error("Error al eliminar proveedor %s: %s", pk, exc)
            messages.error(request, "Error al eliminar proveedor")
        else:
            messages.success(request, "Proveedor eliminado correctamente.")
        return redirect("inventario:listar_proveedores")

    return render(request, "inventario/proveedores/eliminar_proveedor.html", {
        "pk": pk,
        "nombre": request.GET.get("nombre", ""),
    })


# ─────────────────────────────────────────────────────────────────────────────
# LOTES / SUBLOTES / MOVIMIENTOS (solo lectura)
# ─────────────────────────────────────────────────────────────────────────────
@login_required
def listar_lotes(request):
    """
    Lotes filtrados por compra y rango de fechas.

    `?ver=<id>` abre el detalle del lote dentro de la misma página.
    """
    # Import local: compras depende de inventario, no al revés.
    from compras import services as compras_services

    filtros = {
        "compraId": request.GET.get("compraId", "").strip(),
        "fechaInicio": request.GET.get("fechaInicio", "").strip(),
        "fechaFin": request.GET.get("fechaFin", "").strip(),
    }
    page = leer_pagina(request)
    try:
        pagina = services.listar_lotes(filtros["compraId"], filtros["fechaInicio"], filtros["fechaFin"], page)
    except ApiError as exc:
        messages.error(request, f"Error al cargar lotes: {exc.mensaje_servidor}")
        pagina = _pagina_vacia(page)

    compras = _lookup(request, compras_services.todas_las_compras, "No se pudieron cargar las compras")
    ver = request.GET.get("ver")
    return render(request, "inventario/lotes/listar_lotes.html", {
        "pagina": pagina,
        "lotes": pagina.content,
        "compras": compras,
        "filtros": filtros,
        "seleccionado": services.buscar_en_pagina(pagina, "id", ver) if ver else None,
    })


@login_required
def listar_sublotes(request):
    """Sublotes filtrados por producto y estado (DISPONIBLE / AGOTADO)."""
    filtros = {
        "productoId": request.GET.get("productoId", "").strip(),
        "estado": request.GET.get("estado", "").strip(),
    }
    page = leer_pagina(request)
    try:
        pagina = services.listar_sublotes(filtros["productoId"], filtros["estado"], page)
    except ApiError as exc:
        messages.error(request, f"Error al cargar sublotes: {exc.mensaje_servidor}")
        pagina = _pagina_vacia(page)

    productos = _lookup(request, services.todos_los_productos, "No se pudieron cargar los productos")
    ver = request.GET.get("ver")
    return render(request, "inventario/sublotes/listar_sublotes.html", {
        "pagina": pagina,
        "sublotes": pagina.content,
        "productos": [
            {"id": services.producto_id(p), "nombre": p.get("nombre", "")} for p in productos
        ],
        "filtros": filtros,
        "estados": ("DISPONIBLE", "AGOTADO"),
        "seleccionado": services.buscar_en_pagina(pagina, "id", ver) if ver else None,
    })


@login_required
def listar_movimientos(request):
    """Movimientos de inventario; ENTRADA/COMPRA se muestran como ingresos."""
    filtros = {
        "tipo": request.GET.get("tipo", "").strip(),
        "fechaInicio": request.GET.get("fechaInicio", "").strip(),
        "fechaFin": request.GET.get("fechaFin", "").strip(),
        "subloteId": request.GET.get("subloteId", "").strip(),
    }
    page = leer_pagina(request)
    try:
        pagina = services.listar_movimientos(
            filtros["tipo"], filtros["fechaInicio"], filtros["fechaFin"], filtros["subloteId"], page,
        )
    except ApiError as exc:
        messages.error(request, f"Error al cargar movimientos: {exc.mensaje_servidor}")
        pagina = _pagina_vacia(page)

    sublotes = _lookup(request, services.todos_los_sublotes, "No se pudieron cargar los sublotes")
    movimientos = [
        dict(m, es_ingreso=str(m.get("tipo", "")).upper() in services.TIPOS_INGRESO)
        for m in pagina.content
    ]
    return render(request, "inventario/movimientos/listar_movimientos.html", {
        "pagina": pagina,
        "movimientos": movimientos,
        "sublotes": sublotes,
        "filtros": filtros,
        "tipos": ("COMPRA", "VENTA"),
    })
