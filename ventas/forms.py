# ventas/forms.py
"""
Formularios de Ventas y Clientes.

Propósito:
    Validar cabecera y líneas de una venta, y los datos de un cliente, antes de
    armar el JSON que espera la API.

Responsabilidades:
    - VentaForm: cliente, método de pago y si se emite factura.
    - DetalleVentaForm / DetalleVentaFormSet: N líneas (producto, cantidad, descuento).
    - ClienteForm: alta/edición de clientes.

Diseño/Notas:
    - Descuento vacío → 0.
    - El precio de cada línea lo fija el backend según el producto.
"""
from decimal import Decimal

from django import forms
from django.forms import formset_factory

from inventario.forms import opciones

from .services import nombre_cliente


def opciones_cliente(clientes):
    resultado = [("", "Seleccione un cliente")]
    for cliente in clientes or []:
        if cliente.get("id") is None:
            continue
        nombre = nombre_cliente(cliente)
        resultado.append((str(cliente["id"]), nombre))
    return resultado


# ─────────────────────────────────────────────────────────────────────────────
# FORM: Venta (cabecera)
# ─────────────────────────────────────────────────────────────────────────────
class VentaForm(forms.Form):
    """
    Cabecera de la venta.

    Validación:
        - clienteId > 0 → si no, "Seleccione un cliente válido".
        - metodoDePagoId > 0 → si no, "Seleccione un método de pago válido".
    """
    clienteId = forms.TypedChoiceField(
        label="Cliente",
        coerce=int,
        error_messages={"required": "Seleccione un cliente"},
    )
    metodoDePagoId = forms.TypedChoiceField(
        label="Método de pago",
        coerce=int,
        error_messages={"required": "Seleccione un método de pago"},
    )
    conFactura = forms.BooleanField(label="Emitir Factura", required=False)

    def __init__(self, *args, clientes=None, metodos=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields["clienteId"].choices = opciones_cliente(clientes)
        self.fields["metodoDePagoId"].choices = opciones(metodos, "id", "metodo", "Seleccione un método de pago")

    def clean_clienteId(self):
        valor = self.cleaned_data["clienteId"]
        if valor <= 0:
            raise forms.ValidationError("Seleccione un cliente válido")
        return valor

    def clean_metodoDePagoId(self):
        valor = self.cleaned_data["metodoDePagoId"]
        if valor <= 0:
            raise forms.ValidationError("Seleccione un método de pago válido")
        return valor


# ─────────────────────────────────────────────────────────────────────────────
# FORM: Línea de venta
# ─────────────────────────────────────────────────────────────────────────────
class DetalleVentaForm(forms.Form):
    productoId = forms.TypedChoiceField(
        label="Producto",
        coerce=int,
        error_messages={"required": "Seleccione un producto"},
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

    def __init__(self, *args, productos_choices=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields["productoId"].choices = productos_choices or [("", "Seleccione un producto")]

    def clean_productoId(self):
        valor = self.cleaned_data["productoId"]
        if valor <= 0:
            raise forms.ValidationError("Hay productos seleccionados inválidos")
        return valor

    def clean_descuento(self):
        valor = self.cleaned_data.get("descuento")
        return Decimal("0") if valor is None else valor

    def a_payload(self) -> dict:
        datos = self.cleaned_data
        return {
            "productoId": datos["productoId"],
            "cantidad": datos["cantidad"],
            "descuento": float(datos["descuento"]),
        }


DetalleVentaFormSet = formset_factory(
    DetalleVentaForm,
    extra=0,
    min_num=1,
    validate_min=True,
    can_delete=True,
)


def lineas_validas(formset) -> list:
    return [
        linea.a_payload()
        for linea in formset.forms
        if linea.cleaned_data and not linea.cleaned_data.get("DELETE")
    ]


def armar_payload(form: VentaForm, formset) -> dict:
    datos = form.cleaned_data
    return {
        "clienteId": datos["clienteId"],
        "metodoDePagoId": datos["metodoDePagoId"],
        "conFactura": bool(datos.get("conFactura")),
        "detalles": lineas_validas(formset),
    }


# ─────────────────────────────────────────────────────────────────────────────
# FORM: Cliente
# ─────────────────────────────────────────────────────────────────────────────
class ClienteForm(forms.Form):
    """
    Cliente (POST /clientes, PUT /clientes/{id}).

    Obligatorios: nombre, apellido, nivel de fidelidad y ubicación.
    """
    nombre = forms.CharField(max_length=100, error_messages={"required": "El nombre es requerido"})
    apellido = forms.CharField(max_length=100, error_messages={"required": "El apellido es requerido"})
    telefono = forms.CharField(label="Teléfono", max_length=30, required=False)
    nitCi = forms.CharField(label="NIT/CI", max_length=30, required=False)
    direccion = forms.CharField(label="Dirección", max_length=200, required=False)
    nivelFidelidadId = forms.TypedChoiceField(
        label="Nivel de fidelidad",
        coerce=int,
        error_messages={"required": "El nivel de fidelidad es requerido"},
    )
    ubicacionId = forms.TypedChoiceField(
        label="Ubicación",
        coerce=int,
        error_messages={"required": "La ubicación es requerida"},
    )

    def __init__(self, *args, niveles=None, ubicaciones=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields["nivelFidelidadId"].choices = opciones(niveles, "id", "nombre", "Seleccione un nivel")
        self.fields["ubicacionId"].choices = opciones(ubicaciones, "id", "ubicacion", "Seleccione una ubicación")

    def a_payload(self) -> dict:
        datos = self.cleaned_data
        return {
            "nombre": datos["nombre"],
            "apellido": datos["apellido"],
            "telefono": datos.get("telefono") or "",
            "nitCi": datos.get("nitCi") or "",
            "direccion": datos.get("direccion") or "",
            "nivelFidelidadId": datos["nivelFidelidadId"],
            "ubicacionId": datos["ubicacionId"],
        }

    @staticmethod
    def inicial_desde_api(cliente: dict) -> dict:
        campos = ("nombre", "apellido", "telefono", "nitCi", "direccion", "nivelFidelidadId", "ubicacionId")
        return {campo: cliente.get(campo) for campo in campos}
