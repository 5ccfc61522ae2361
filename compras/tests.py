"""
Pruebas de la app 'compras'.

Cubre el armado del payload de `POST /compras` (cabecera + líneas del
formset) y los flujos de listado, alta, detalle con respaldo y eliminación.
"""
from unittest import mock

from django.test import SimpleTestCase, TestCase
from django.urls import reverse

from inventario.tests import ConUsuarioMixin, rutas
from servicios.api import ApiError, api

from .forms import CompraForm, DetalleCompraFormSet, armar_payload, opciones_producto

PROVEEDORES = [{"id": 1, "nombre": "Envases SRL"}]
PRODUCTOS = [{"productoId": 10, "nombre": "Botellón 20L"}, {"productoId": 11, "nombre": "Tapa"}]
CHOICES = opciones_producto(PRODUCTOS, {"10": 12, "11": 0})


def datos_formset(lineas, prefix="lineas"):
    """POST de un formset de líneas con su management form."""
    data = {
        f"{prefix}-TOTAL_FORMS": str(len(lineas)),
        f"{prefix}-INITIAL_FORMS": "0",
        f"{prefix}-MIN_NUM_FORMS": "1",
        f"{prefix}-MAX_NUM_FORMS": "1000",
    }
    for i, linea in enumerate(lineas):
        for campo, valor in linea.items():
            data[f"{prefix}-{i}-{campo}"] = valor
    return data


class OpcionesProductoTests(SimpleTestCase):

    def test_etiqueta_con_stock(self):
        self.assertEqual(CHOICES[1], ("10", "Botellón 20L (Stock: 12)"))
        self.assertEqual(CHOICES[2], ("11", "Tapa (Stock: 0)"))

    def test_sin_stock_conocido_muestra_cero(self):
        self.assertEqual(opciones_producto([{"id": 3, "nombre": "Hielo"}])[1], ("3", "Hielo (Stock: 0)"))


class CompraFormsetTests(SimpleTestCase):
    """Cabecera + líneas: reglas de validación y forma del JSON enviado."""

    def _formset(self, lineas):
        return DetalleCompraFormSet(
            datos_formset(lineas), prefix="lineas", form_kwargs={"productos_choices": CHOICES},
        )

    def test_payload_ignora_lineas_borradas(self):
        form = CompraForm({"proveedorId": "1"}, proveedores=PROVEEDORES)
        formset = self._formset([
            {"productoId": "10", "costoUnitario": "4.50", "cantidad": "20", "descuento": "", "vencimiento": "2025-06-30"},
            {"productoId": "11", "costoUnitario": "1", "cantidad": "5", "DELETE": "on"},
        ])
        self.assertTrue(form.is_valid(), form.errors)
        self.assertTrue(formset.is_valid(), formset.errors)
        self.assertEqual(armar_payload(form, formset), {
            "proveedorId": 1,
            "detalles": [{
                "productoId": 10, "costoUnitario": 4.5, "cantidad": 20,
                "descuento": 0.0, "vencimiento": "2025-06-30",
            }],
        })

    def test_vencimiento_vacio_es_null(self):
        formset = self._formset([{"productoId": "10", "costoUnitario": "1", "cantidad": "1"}])
        self.assertTrue(formset.is_valid(), formset.errors)
        self.assertIsNone(formset.forms[0].a_payload()["vencimiento"])

    def test_cantidad_y_costo_invalidos(self):
        formset = self._formset([{"productoId": "10", "costoUnitario": "-1", "cantidad": "0"}])
        self.assertFalse(formset.is_valid())
        errores = formset.errors[0]
        self.assertIn("La cantidad debe ser al menos 1.", errores["cantidad"])
        self.assertIn("El costo unitario no puede ser negativo.", errores["costoUnitario"])

    def test_requiere_al_menos_una_linea(self):
        formset = self._formset([])
        self.assertFalse(formset.is_valid())

    def test_proveedor_cero_es_invalido(self):
        form = CompraForm({"proveedorId": "0"}, proveedores=[{"id": 0, "nombre": "Ninguno"}])
        self.assertFalse(form.is_valid())
        self.assertIn("ID de proveedor inválido", form.errors["proveedorId"])


class CompraViewsTests(ConUsuarioMixin, TestCase):
    """Listado, creación, detalle y eliminación de compras."""

    def _api_base(self, extra=None):
        respuestas = {
            "/proveedor": PROVEEDORES,
            "/productos": PRODUCTOS,
            "/productos/10/sublotes": [{"cantidadActual": 12}],
            "/productos/11/sublotes": [],
        }
        respuestas.update(extra or {})
        return rutas(respuestas)

    def test_listado_filtrado_usa_buscar(self):
        get = self._api_base({"/compras/buscar": [{"id": 5, "proveedor": "Envases SRL", "totalNeto": "90 Bs"}]})
        with mock.patch.object(api, "get", side_effect=get) as mock_get:
            resp = self.client.get(reverse("compras:ver_compras"), {"proveedorId": "1"})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(len(resp.context["compras"]), 1)
        mock_get.assert_any_call("/compras/buscar", params={"proveedorId": "1"})

    def test_crear_compra_envia_payload_y_redirige(self):
        data = {"proveedorId": "1"}
        data.update(datos_formset([{"productoId": "10", "costoUnitario": "3", "cantidad": "2", "descuento": "1"}]))
        with mock.patch.object(api, "get", side_effect=self._api_base()), \
                mock.patch.object(api, "post", return_value={"id": 9}) as post:
            resp = self.client.post(reverse("compras:crear_compra"), data)
        self.assertRedirects(resp, reverse("compras:ver_compras"), fetch_redirect_response=False)
        post.assert_called_once_with("/compras", {
            "proveedorId": 1,
            "detalles": [{"productoId": 10, "costoUnitario": 3.0, "cantidad": 2, "descuento": 1.0, "vencimiento": None}],
        })

    def test_crear_compra_muestra_mensaje_del_servidor(self):
        data = {"proveedorId": "1"}
        data.update(datos_formset([{"productoId": "10", "costoUnitario": "3", "cantidad": "2"}]))
        error = ApiError("x", status_code=400, payload={"message": "Proveedor inactivo"})
        with mock.patch.object(api, "get", side_effect=self._api_base()), \
                mock.patch.object(api, "post", side_effect=error):
            resp = self.client.post(reverse("compras:crear_compra"), data)
        self.assertEqual(resp.status_code, 200)
        self.assertContains(resp, "Error al crear la compra: Proveedor inactivo")

    def test_detalle_usa_fila_del_listado_si_falla(self):
        get = self._api_base({
            "/compras": [{"id": 5, "proveedor": "Envases SRL", "totalNeto": "90 Bs"}],
            "/compras/5": ApiError("caído", status_code=500),
        })
        with mock.patch.object(api, "get", side_effect=get):
            with self.assertLogs("compras.services", level="ERROR"):
                resp = self.client.get(reverse("compras:detalle_compra", args=["5"]))
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.context["compra"]["proveedor"], "Envases SRL")
        self.assertEqual(resp.context["detalles"], [])

    def test_detalle_inexistente_es_404(self):
        with mock.patch.object(api, "get", side_effect=self._api_base({"/compras": []})):
            resp = self.client.get(reverse("compras:detalle_compra", args=["99"]))
        self.assertEqual(resp.status_code, 404)

    def test_eliminar_invalida_listado(self):
        get = self._api_base({"/compras": [{"id": 5}]})
        with mock.patch.object(api, "get", side_effect=get) as mock_get, \
                mock.patch.object(api, "delete", return_value=None) as delete:
            self.client.get(reverse("compras:ver_compras"))
            llamadas = mock_get.call_count
            self.client.post(reverse("compras:eliminar_compra", args=["5"]))
            self.client.get(reverse("compras:ver_compras"))
        delete.assert_called_once_with("/compras/5")
        self.assertGreater(mock_get.call_count, llamadas)
