"""
Pruebas de la app 'ventas': total estimado, niveles de fidelidad, formularios
y vistas de ventas y clientes contra la API simulada.
"""
from decimal import Decimal
from unittest import mock

from django.test import SimpleTestCase, TestCase
from django.urls import reverse

from compras.tests import datos_formset
from inventario.tests import ConUsuarioMixin, rutas
from servicios.api import ApiError, api

from . import services
from .forms import ClienteForm, DetalleVentaFormSet, VentaForm
from .views import _lineas_enviadas

CLIENTES = [
    {"id": 1, "nombre": "Ana", "apellido": "Quispe", "nivelFidelidadId": 2, "nivelFidelidad": "Oro", "ubicacionId": 1},
    {"id": 2, "nombre": "Luis", "apellido": "Mamani", "nivelFidelidadId": 1, "nivelFidelidad": "Bronce"},
    {"id": 3, "nombre": "Eva", "apellido": "Flores", "nivelFidelidadId": 2, "nivelFidelidad": "Oro"},
    {"id": 4, "nombre": "Sin nivel", "apellido": "X", "nivelFidelidadId": None},
]
METODOS = [{"id": 1, "metodo": "Efectivo"}, {"id": 2, "metodo": "QR"}]
PRODUCTOS = [
    {"productoId": 10, "nombre": "Botellón 20L", "precio": "25.00 Bs"},
    {"productoId": 11, "nombre": "Bolsa de hielo", "precio": 8},
]


class TotalEstimadoTests(SimpleTestCase):

    def test_suma_precio_por_cantidad_menos_descuento(self):
        lineas = [
            {"productoId": "10", "cantidad": "2", "descuento": "5"},
            {"productoId": 11, "cantidad": 3, "descuento": ""},
        ]
        self.assertEqual(services.total_estimado(lineas, PRODUCTOS), Decimal("69.00"))

    def test_producto_desconocido_cuenta_cero(self):
        self.assertEqual(services.total_estimado([{"productoId": "99", "cantidad": "4"}], PRODUCTOS), Decimal("0"))

    def test_lineas_enviadas_omite_borradas(self):
        data = datos_formset([
            {"productoId": "10", "cantidad": "1"},
            {"productoId": "11", "cantidad": "2", "DELETE": "on"},
        ])
        formset = DetalleVentaFormSet(data, prefix="lineas")
        self.assertEqual([l["productoId"] for l in _lineas_enviadas(formset)], ["10"])

    def test_lineas_enviadas_respeta_el_maximo_del_formset(self):
        data = datos_formset([{"productoId": "10", "cantidad": "1"}])
        data["lineas-TOTAL_FORMS"] = "3000000"
        formset = DetalleVentaFormSet(data, prefix="lineas")
        lineas = _lineas_enviadas(formset)
        self.assertLessEqual(len(lineas), formset.absolute_max)
        self.assertEqual(lineas[0]["productoId"], "10")


class NivelesFidelidadTests(SimpleTestCase):

    def test_unicos_y_ordenados_por_id(self):
        self.assertEqual(services.niveles_fidelidad(CLIENTES), [
            {"id": 1, "nombre": "Bronce"},
            {"id": 2, "nombre": "Oro"},
        ])

    def test_sin_clientes(self):
        self.assertEqual(services.niveles_fidelidad([]), [])


class VentaFormTests(SimpleTestCase):

    def test_metodo_cero_es_invalido(self):
        form = VentaForm(
            {"clienteId": "1", "metodoDePagoId": "0"},
            clientes=CLIENTES, metodos=[{"id": 0, "metodo": "Ninguno"}],
        )
        self.assertFalse(form.is_valid())
        self.assertIn("Seleccione un método de pago válido", form.errors["metodoDePagoId"])

    def test_cliente_usa_nombre_completo(self):
        form = VentaForm(clientes=CLIENTES, metodos=METODOS)
        self.assertIn(("1", "Ana Quispe"), form.fields["clienteId"].choices)


class ClienteFormTests(SimpleTestCase):

    def test_payload(self):
        form = ClienteForm(
            {"nombre": "Ana", "apellido": "Quispe", "nivelFidelidadId": "2", "ubicacionId": "1"},
            niveles=[{"id": 2, "nombre": "Oro"}],
            ubicaciones=[{"id": 1, "ubicacion": "Tarija"}],
        )
        self.assertTrue(form.is_valid(), form.errors)
        self.assertEqual(form.a_payload(), {
            "nombre": "Ana", "apellido": "Quispe", "telefono": "", "nitCi": "",
            "direccion": "", "nivelFidelidadId": 2, "ubicacionId": 1,
        })

    def test_apellido_requerido(self):
        form = ClienteForm({"nombre": "Ana"}, niveles=[], ubicaciones=[])
        self.assertFalse(form.is_valid())
        self.assertIn("El apellido es requerido", form.errors["apellido"])


class VentaViewsTests(ConUsuarioMixin, TestCase):
    """Creación (con total estimado), detalle con respaldo y eliminación."""

    def _api(self, extra=None):
        respuestas = {
            "/clientes": CLIENTES,
            "/ventas/metodos-pago": METODOS,
            "/productos": PRODUCTOS,
            "/productos/10/sublotes": [{"cantidadActual": 40}],
            "/productos/11/sublotes": [{"cantidadActual": 15}],
        }
        respuestas.update(extra or {})
        return rutas(respuestas)

    def test_formulario_inicial(self):
        with mock.patch.object(api, "get", side_effect=self._api()):
            resp = self.client.get(reverse("ventas:crear_venta"))
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.context["precios"], {"10": "25.00", "11": "8"})
        self.assertContains(resp, "Botellón 20L (Stock: 40)")

    def test_crear_venta_envia_payload(self):
        data = {"clienteId": "1", "metodoDePagoId": "2", "conFactura": "on"}
        data.update(datos_formset([{"productoId": "10", "cantidad": "2", "descuento": ""}]))
        with mock.patch.object(api, "get", side_effect=self._api()), \
                mock.patch.object(api, "post", return_value={"ventaId": 7}) as post:
            resp = self.client.post(reverse("ventas:crear_venta"), data)
        self.assertRedirects(resp, reverse("ventas:ver_ventas"), fetch_redirect_response=False)
        post.assert_called_once_with("/ventas", {
            "clienteId": 1, "metodoDePagoId": 2, "conFactura": True,
            "detalles": [{"productoId": 10, "cantidad": 2, "descuento": 0.0}],
        })

    def test_stock_insuficiente_rerenderiza_con_total(self):
        data = {"clienteId": "1", "metodoDePagoId": "1"}
        data.update(datos_formset([{"productoId": "11", "cantidad": "3", "descuento": "4"}]))
        error = ApiError("x", status_code=400, payload={"message": "Stock insuficiente"})
        with mock.patch.object(api, "get", side_effect=self._api()), \
                mock.patch.object(api, "post", side_effect=error):
            resp = self.client.post(reverse("ventas:crear_venta"), data)
        self.assertEqual(resp.status_code, 200)
        self.assertContains(resp, "Error al crear la venta: Stock insuficiente")
        self.assertEqual(resp.context["total_estimado"], Decimal("20"))

    def test_detalle_usa_respaldo_por_venta_id(self):
        get = self._api({
            "/ventas": [{"ventaId": 7, "cliente": "Ana Quispe", "totalNeto": "50 Bs"}],
            "/ventas/7": ApiError("Network Error"),
        })
        with mock.patch.object(api, "get", side_effect=get):
            with self.assertLogs("ventas.services", level="ERROR"):
                resp = self.client.get(reverse("ventas:detalle_venta", args=["7"]))
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.context["venta"]["cliente"], "Ana Quispe")

    def test_detalle_con_precio_unitario_sin_costo(self):
        get = self._api({
            "/ventas": [],
            "/ventas/7": {"ventaId": 7, "detalles": [
                {"producto": "Botellón 20L", "cantidad": 2, "precioUnitario": "25.00 Bs", "subtotal": "50.00 Bs"},
            ]},
        })
        with mock.patch.object(api, "get", side_effect=get):
            resp = self.client.get(reverse("ventas:detalle_venta", args=["7"]))
        self.assertEqual(resp.status_code, 200)
        self.assertContains(resp, "25.00 Bs")

    def test_listado_con_venta_sin_id_no_rompe(self):
        get = self._api({"/ventas": [{"cliente": "Ana Quispe", "totalNeto": "50 Bs"}]})
        with mock.patch.object(api, "get", side_effect=get):
            resp = self.client.get(reverse("ventas:ver_ventas"))
        self.assertEqual(resp.status_code, 200)
        self.assertContains(resp, "Ana Quispe")

    def test_id_no_numerico_es_404_sin_llamar_a_la_api(self):
        with mock.patch.object(api, "delete") as delete:
            resp = self.client.post("/ventas/abc/eliminar/")
        self.assertEqual(resp.status_code, 404)
        delete.assert_not_called()

    def test_eliminar_venta(self):
        with mock.patch.object(api, "delete", return_value=None) as delete:
            resp = self.client.post(reverse("ventas:eliminar_venta", args=["7"]))
        delete.assert_called_once_with("/ventas/7")
        self.assertRedirects(resp, reverse("ventas:ver_ventas"), fetch_redirect_response=False)


class ClienteViewsTests(ConUsuarioMixin, TestCase):

    def _api(self, extra=None):
        respuestas = {"/clientes": CLIENTES, "/ubicaciones": [{"id": 1, "ubicacion": "Tarija"}]}
        respuestas.update(extra or {})
        return rutas(respuestas)

    def test_ruta_de_clientes_no_se_confunde_con_detalle_de_venta(self):
        with mock.patch.object(api, "get", side_effect=self._api()):
            resp = self.client.get(reverse("ventas:listar_clientes"))
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.resolver_match.url_name, "listar_clientes")

    def test_listado_filtrado(self):
        get = self._api({"/clientes/buscar": [CLIENTES[0]]})
        with mock.patch.object(api, "get", side_effect=get) as mock_get:
            resp = self.client.get(reverse("ventas:listar_clientes"), {"apellido": "Quispe"})
        self.assertEqual(len(resp.context["clientes"]), 1)
        mock_get.assert_any_call("/clientes/buscar", params={"apellido": "Quispe"})

    def test_listado_sin_nombre_completo(self):
        get = self._api({"/clientes": [CLIENTES[0], {"id": 9, "apellido": "Vargas"}]})
        with mock.patch.object(api, "get", side_effect=get):
            resp = self.client.get(reverse("ventas:listar_clientes"))
        self.assertEqual(resp.status_code, 200)
        self.assertContains(resp, "Ana Quispe")
        self.assertEqual(resp.context["clientes"][1]["nombre_mostrar"], "Vargas")

    def test_editar_precarga_y_ofrece_niveles(self):
        with mock.patch.object(api, "get", side_effect=self._api()):
            resp = self.client.get(reverse("ventas:editar_cliente", args=["1"]))
        form = resp.context["form"]
        self.assertEqual(form.initial["apellido"], "Quispe")
        self.assertEqual(
            form.fields["nivelFidelidadId"].choices,
            [("", "Seleccione un nivel"), ("1", "Bronce"), ("2", "Oro")],
        )

    def test_editar_inexistente_es_404(self):
        with mock.patch.object(api, "get", side_effect=self._api()):
            resp = self.client.get(reverse("ventas:editar_cliente", args=["999"]))
        self.assertEqual(resp.status_code, 404)

    def test_actualizar_invalida_cache_de_clientes(self):
        data = {"nombre": "Ana", "apellido": "Quispe", "nivelFidelidadId": "2", "ubicacionId": "1"}
        with mock.patch.object(api, "get", side_effect=self._api()) as mock_get, \
                mock.patch.object(api, "put", return_value=None) as put:
            self.client.get(reverse("ventas:listar_clientes"))
            antes = mock_get.call_count
            resp = self.client.post(reverse("ventas:editar_cliente", args=["1"]), data)
            self.client.get(reverse("ventas:listar_clientes"))
        put.assert_called_once()
        self.assertEqual(put.call_args.args[0], "/clientes/1")
        self.assertRedirects(resp, reverse("ventas:listar_clientes"), fetch_redirect_response=False)
        self.assertGreater(mock_get.call_count, antes + 2)
