"""
Formularios de Inventario (Producto y Proveedor).

Propósito:
    Validar en el servidor lo que la UI envía antes de reenviarlo a la API remota.
    No hay modelos locales: son `forms.Form` planos cuyo `cleaned_data` se
    convierte en el JSON que espera el backend (`a_payload()`).

Responsabilidades:
    - ProductoForm: nombre obligatorio; precio y tipo de producto >= 0.
    - ProveedorForm: nombre y ubicación obligatorios; NIT/teléfono/correo opcionales.

Diseño/Notas:
    - Las opciones de los selects (tipos, ubicaciones) llegan de la API; la vista
      las pasa al construir el form (`tipos=`, `ubicaciones=`).
"""

from django import forms

from servicios.formato import parsear_monto


def opciones(filas, campo_id, campo_nombre, vacio="Seleccione..."):
    """Convierte filas de la API en choices [(id, nombre)] con opción vacía."""
    resultado = [("", vacio)]
    for fila in filas or []:
        if fila.get(campo_id) is None:
            continue
        resultado.append((str(fila.get(campo_id)), fila.get(campo_nombre) or str(fila.get(campo_id))))
    return resultado


# ─────────────────────────────────────────────────────────────────────────────
# FORM: ProductoForm
# Propósito: alta/edición de productos (POST /productos, PUT /productos/{id}).
# ─────────────────────────────────────────────────────────────────────────────
class ProductoForm(forms.Form):
    """
    Formulario de Producto.

    Reglas:
        - nombre: obligatorio.
        - precio: obligatorio, no negativo.
        - tipoProductoId: obligatorio, no negativo (se elige de /productos/tipos).
    """
    nombre = forms.CharField(
        max_length=150,
        error_messages={"required": "El nombre es requerido"},
        widget=forms.TextInput(attrs={"placeholder": "Ej: Botellón 20L"}),
    )
    precio = forms.DecimalField(
        min_value=0,
        decimal_places=2,
        error_messages={
            "required": "El precio es requerido",
            "min_value": "El precio debe ser mayor o igual a 0",
        },
    )
    tipoProductoId = forms.TypedChoiceField(
        label="Tipo de producto",
        coerce=int,
        error_messages={"required": "El tipo de producto es requerido"},
    )
    descripcion = forms.CharField(
        required=False,
        widget=forms.Textarea(attrs={"rows": 3, "placeholder": "Detalle opcional"}),
    )

    def __init__(self, *args, tipos=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields["tipoProductoId"].choices = opciones(tipos, "id", "nombre")

    def clean_tipoProductoId(self):
        valor = self.cleaned_data["tipoProductoId"]
        if valor < 0:
            raise forms.ValidationError("El tipo de producto debe ser mayor o igual a 0")
        return valor

    def a_payload(self) -> dict:
        datos = self.cleaned_data
        return {
            "nombre": datos["nombre"],
            "precio": float(datos["precio"]),
            "descripcion": datos.get("descripcion") or "",
            "tipoProductoId": datos["tipoProductoId"],
        }

    @staticmethod
    def inicial_desde_api(producto: dict) -> dict:
        """Valores iniciales a partir del producto completo devuelto por la API."""
        return {
            "nombre": producto.get("nombre", ""),
            "precio": parsear_monto(producto.get("precio")),
            "tipoProductoId": producto.get("tipoProductoId"),
            "descripcion": producto.get("descripcion") or "",
        }


# ─────────────────────────────────────────────────────────────────────────────
# FORM: ProveedorForm
# Propósito: alta/edición de proveedores (POST /proveedor, PUT /proveedor/{id}).
# ─────────────────────────────────────────────────────────────────────────────
class ProveedorForm(forms.Form):
    nombre = forms.CharField(max_length=150, error_messages={"required": "El nombre es requerido"})
    nit = forms.CharField(label="NIT", max_length=30, required=False)
    telefono = forms.CharField(label="Teléfono", max_length=30, required=False)
    correo = forms.EmailField(required=False)
    ubicacionId = forms.TypedChoiceField(
        label="Ubicación",
        coerce=int,
        error_messages={"required": "La ubicación es requerida"},
    )

    def __init__(self, *args, ubicaciones=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields["ubicacionId"].choices = opciones(ubicaciones, "id", "ubicacion", "Seleccione una ubicación")

    def a_payload(self) -> dict:
        datos = self.cleaned_data
        return {
            "nombre": datos["nombre"],
            "correo": datos.get("correo") or "",
            "telefono": datos.get("telefono") or "",
            "nit": datos.get("nit") or "",
            "ubicacionId": datos["ubicacionId"],
        }

    @staticmethod
    def inicial_desde_api(proveedor: dict) -> dict:
        return {
            "nombre": proveedor.get("nombre", ""),
            "nit": proveedor.get("nit") or "",
            "telefono": proveedor.get("telefono") or "",
            "correo": proveedor.get("correo") or "",
            "ubicacionId": proveedor.get("ubicacionId"),
        }
