# compras/forms.py
"""
Formularios de la app 'compras'.

Propósito:
    Validar la cabecera de la compra (proveedor) y sus líneas antes de armar el
    JSON para `POST /compras`.

Responsabilidades:
    - CompraForm: cabecera (proveedorId > 0).
    - DetalleCompraForm: línea (producto, costo unitario, cantidad, descuento, vencimiento).
    - DetalleCompraFormSet: N líneas, al menos una.

Diseño/UX:
    - Descuento vacío se envía como 0; vencimiento vacío se envía como null.
    - Las opciones de producto muestran el stock actual ("Nombre (Stock: 12)").
"""
from decimal import Decimal

from django import forms
from django.forms import formset_factory

from inventario.forms import opciones
from inventario.services import producto_id


def opciones_producto(productos, stocks=None):
    """Choices de producto con el stock actual en la etiqueta."""
    stocks = stocks or {}
    resultado = [("", "Seleccione un producto")]
    for producto in productos or []:
        pid = producto_id(producto)
        if not pid:
            continue
        stock = stocks.get(pid, 0)
        resultado.append((pid, f"{producto.get('nombre', pid)} (Stock: {stock:g})"))
    return resultado


# ─────────────────────────────────────────────────────────────────────────────
# Formulario de cabecera
# ─────────────────────────────────────────────────────────────────────────────
class CompraForm(forms.Form):
    proveedorId = forms.TypedChoiceField(
        label="Proveedor",
        coerce=int,
        error_messages={"required": "Seleccione un proveedor"},
    )

    def __init__(self, *args, proveedores=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields["proveedorId"].choices = opciones(proveedores, "id", "nombre", "Seleccione un proveedor")

    def clean_proveedorId(self):
        valor = self.cleaned_data["proveedorId"]
        if valor <= 0:
            raise forms.ValidationError("ID de proveedor inválido")
        return valor


# ─────────────────────────────────────────────────────────────────────────────
# Formulario de línea (detalle)
# ─────────────────────────────────────────────────────────────────────────────
class DetalleCompraForm(forms.Form):
    """
    Línea de compra.

    Qué valida:
        - productoId > 0
        - costoUnitario >= 0
        - cantidad >= 1
        - descuento >= 0 (vacío → 0)
    """
    productoId = forms.TypedChoiceField(
        label="Producto",
        coerce=int,
        error_messages={"required": "Seleccione un producto"},
    )
    costoUnitario = forms.DecimalField(
        label="Costo unitario",
        min_value=0,
        decimal_places=2,
        error_messages={"min_value": "El costo unitario no puede ser negativo."},
    )
    cantidad = forms.IntegerField(
        min_value=1,
        initial=1,
        error_messages={"min_value": "La cantidad debe ser al menos 1."},
    )
    descuento = forms.DecimalField(
        min_value=0,
        decimal_places=2,
        required=False,
        initial=0,
        error_messages={"min_value": "El descuento no puede ser negativo."},
    )
    vencimiento = forms.DateField(
        required=False,
        widget=forms.DateInput(attrs={"type": "date"}),
        input_formats=["%Y-%m-%d"],
    )

    def __init__(self, *args, productos_choices=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields["productoId"].choices = productos_choices or [("", "Seleccione un producto")]

    def clean_productoId(self):
        valor = self.cleaned_data["productoId"]
        if valor <= 0:
            raise forms.ValidationError("Hay productos seleccionados inválidos (ID 0 o vacío)")
        return valor

    def clean_descuento(self):
        valor = self.cleaned_data.get("descuento")
        return Decimal("0") if valor is None else valor

    def a_payload(self) -> dict:
        datos = self.cleaned_data
        vencimiento = datos.get("vencimiento")
        return {
            "productoId": datos["productoId"],
            "costoUnitario": float(datos["costoUnitario"]),
            "cantidad": datos["cantidad"],
            "descuento": float(datos["descuento"]),
            "vencimiento": vencimiento.isoformat() if vencimiento else None,
        }


# ─────────────────────────────────────────────────────────────────────────────
# Formset (líneas de compra)
# ─────────────────────────────────────────────────────────────────────────────
DetalleCompraFormSet = formset_factory(
    DetalleCompraForm,
    extra=0,
    min_num=1,          # Al menos 1 línea por compra
    validate_min=True,
    can_delete=True,
)


def armar_payload(form: CompraForm, formset) -> dict:
    """JSON de `POST /compras` a partir de cabecera + líneas válidas (ignora las borradas)."""
    detalles = [
        linea.a_payload()
        for linea in formset.forms
        if linea.cleaned_data and not linea.cleaned_data.get("DELETE")
    ]
    return {"proveedorId": form.cleaned_data["proveedorId"], "detalles": detalles}
