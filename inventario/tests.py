"""
Pruebas de la app 'inventario' contra una API simulada.

Se parchea `servicios.api.api` (get/post/put/delete) con respuestas por ruta,
de modo que servicios, formularios y vistas corren completos sin red.
"""
from decimal import Decimal
from unittest import mock

from django.contrib.auth import get_user_model
from django.contrib.messages import get_messages
from django.core.cache import cache
from django.test import SimpleTestCase, TestCase
from django.urls import reverse

from servicios.api import ApiError, api
from servicios.paginacion import Pagina

from . import services
from .forms import ProductoForm, ProveedorForm


def rutas(respuestas):
    """
    Fabrica un `side_effect` para api.get que responde según la ruta.

    Un valor que sea excepción se lanza; una ruta desconocida da 404.
    """
    def _get(path, params=None):
        valor = respuestas.get(path, ApiError("Not Found", status_code=404))
        if isinstance(valor, Exception):
            raise valor
        return valor
    return _get


class ConUsuarioMixin:
    """Usuario logueado y caché limpia antes de cada prueba."""

    def setUp(self):
        cache.clear()
        self.user = get_user_model().objects.create_user(username="operador", password="secreto123")
        self.client.force_login(self.user)


# ─────────────────────────────────────────────────────────────────────────────
# Servicios
# ─────────────────────────────────────────────────────────────────────────────
class StockServiceTests(SimpleTestCase):
    """Cálculo de stock: suma de sublotes y tolerancia a fallos por producto."""

    def setUp(self):
        cache.clear()

    def test_stock_total_suma_cantidades_actuales(self):
        sublotes = [{"cantidadActual": "10.5"}, {"cantidadActual": 4}, {"cantidadActual": None}, {}]
        self.assertEqual(services.calcular_stock_total(sublotes), Decimal("14.5"))

    def test_stock_total_sin_sublotes_es_cero(self):
        self.assertEqual(services.calcular_stock_total([]), Decimal("0"))

    def test_producto_id_prefiere_producto_id(self):
        self.assertEqual(services.producto_id({"productoId": 7, "id": 3}), "7")
        self.assertEqual(services.producto_id({"id": 3}), "3")
        self.assertEqual(services.producto_id({}), "")

    def test_stocks_por_producto_falla_uno_cuenta_cero(self):
        get = rutas({
            "/productos/1/sublotes": [{"cantidadActual": 5}, {"cantidadActual": 2}],
            "/productos/2/sublotes": ApiError("caído", status_code=500),
        })
        with mock.patch.object(api, "get", side_effect=get):
            with self.assertLogs("inventario.services", level="ERROR"):
                stocks = services.stocks_por_producto([{"productoId": 1}, {"productoId": 2}, {"nombre": "sin id"}])
        self.assertEqual(stocks, {"1": Decimal("7"), "2": Decimal("0")})


class ListadoServiceTests(SimpleTestCase):

    def setUp(self):
        cache.clear()

    def test_sin_filtros_pide_pagina(self):
        with mock.patch.object(api, "get", return_value=[{"id": 1}]) as get:
            pagina = services.listar_productos(page=2)
        get.assert_called_once_with("/productos", params={"page": 2, "size": 10})
        self.assertEqual(pagina.number, 2)
        self.assertTrue(pagina.last)

    def test_con_filtros_usa_buscar(self):
        with mock.patch.object(api, "get", return_value=[]) as get:
            services.listar_productos(nombre="agua")
        get.assert_called_once_with("/productos/buscar", params={"nombre": "agua"})

    def test_listado_se_cachea_hasta_mutar(self):
        with mock.patch.object(api, "get", return_value=[{"id": 1}]) as get, \
                mock.patch.object(api, "post", return_value={"id": 2}):
            services.listar_productos()
            services.listar_productos()
            self.assertEqual(get.call_count, 1)
            services.crear_producto({"nombre": "Nuevo"})
            services.listar_productos()
        self.assertEqual(get.call_count, 2)

    def test_obtener_proveedor_inexistente_es_404(self):
        with mock.patch.object(api, "get", return_value=[{"id": 1, "nombre": "Envases SRL"}]):
            with self.assertRaises(ApiError) as ctx:
                services.obtener_proveedor(99)
        self.assertTrue(ctx.exception.no_encontrado)


class AlternarDescontinuadoTests(SimpleTestCase):

    def setUp(self):
        cache.clear()

    def test_reenvia_producto_completo_con_estado_invertido(self):
        producto = {
            "productoId": 5, "nombre": "Botellón", "precio": "25.00 Bs",
            "descripcion": "20L", "tipoProductoId": 2, "descontinuado": False,
        }
        with mock.patch.object(api, "get", return_value=producto), \
                mock.patch.object(api, "put", return_value=None) as put:
            nuevo = services.alternar_descontinuado(5)
        self.assertTrue(nuevo)
        put.assert_called_once_with("/productos/5", {
            "nombre": "Botellón", "precio": 25.0, "descripcion": "20L",
            "tipoProductoId": 2, "descontinuado": True,
        })

    def test_sin_id_no_llama_a_la_api(self):
        with mock.patch.object(api, "get") as get:
            with self.assertRaises(ApiError):
                services.alternar_descontinuado("")
        get.assert_not_called()


# ─────────────────────────────────────────────────────────────────────────────
# Formularios
# ─────────────────────────────────────────────────────────────────────────────
class ProductoFormTests(SimpleTestCase):
    TIPOS = [{"id": 1, "nombre": "Agua"}, {"id": 2, "nombre": "Hielo"}]

    def test_payload_convierte_tipos(self):
        form = ProductoForm({"nombre": "Bolsa hielo", "precio": "8.50", "tipoProductoId": "2"}, tipos=self.TIPOS)
        self.assertTrue(form.is_valid(), form.errors)
        self.assertEqual(form.a_payload(), {
            "nombre": "Bolsa hielo", "precio": 8.5, "descripcion": "", "tipoProductoId": 2,
        })

    def test_precio_negativo_y_nombre_vacio(self):
        form = ProductoForm({"nombre": "", "precio": "-1", "tipoProductoId": "1"}, tipos=self.TIPOS)
        self.assertFalse(form.is_valid())
        self.assertIn("El nombre es requerido", form.errors["nombre"])
        self.assertIn("El precio debe ser mayor o igual a 0", form.errors["precio"])

    def test_inicial_desde_api_parsea_precio(self):
        inicial = ProductoForm.inicial_desde_api({"nombre": "X", "precio": "12.00 Bs", "tipoProductoId": 1})
        self.assertEqual(inicial["precio"], Decimal("12.00"))


class ProveedorFormTests(SimpleTestCase):

    def test_ubicacion_requerida(self):
        form = ProveedorForm({"nombre": "Envases SRL"}, ubicaciones=[{"id": 1, "ubicacion": "El Alto"}])
        self.assertFalse(form.is_valid())
        self.assertIn("ubicacionId", form.errors)

    def test_payload_rellena_opcionales(self):
        form = ProveedorForm(
            {"nombre": "Envases SRL", "ubicacionId": "1"},
            ubicaciones=[{"id": 1, "ubicacion": "El Alto"}],
        )
        self.assertTrue(form.is_valid(), form.errors)
        self.assertEqual(form.a_payload(), {
            "nombre": "Envases SRL", "correo": "", "telefono": "", "nit": "", "ubicacionId": 1,
        })


# ─────────────────────────────────────────────────────────────────────────────
# Vistas
# ─────────────────────────────────────────────────────────────────────────────
class ProductoViewsTests(ConUsuarioMixin, TestCase):
    """Listado, alta, edición y descontinuación de productos vía la API simulada."""

    TIPOS = [{"id": 1, "nombre": "Agua"}]

    def test_requiere_login(self):
        self.client.logout()
        resp = self.client.get(reverse("inventario:listar_productos"))
        self.assertEqual(resp.status_code, 302)
        self.assertIn("/accounts/login/", resp["Location"])

    def test_listado_muestra_productos(self):
        get = rutas({
            "/productos": [{"productoId": 1, "nombre": "Botellón 20L", "precio": "25 Bs"}],
            "/productos/tipos": self.TIPOS,
        })
        with mock.patch.object(api, "get", side_effect=get):
            resp = self.client.get(reverse("inventario:listar_productos"))
        self.assertEqual(resp.status_code, 200)
        self.assertContains(resp, "Botellón 20L")
        self.assertIsInstance(resp.context["pagina"], Pagina)
        self.assertContains(resp, reverse("inventario:editar_producto", args=[1]))

    def test_listado_con_filas_sin_id(self):
        get = rutas({
            "/productos": [
                {"id": 2, "nombre": "Bolsa de hielo", "precio": 8},
                {"nombre": "Tapa", "precio": "1 Bs"},
            ],
            "/productos/tipos": self.TIPOS,
        })
        with mock.patch.object(api, "get", side_effect=get):
            resp = self.client.get(reverse("inventario:listar_productos"))
        self.assertEqual(resp.status_code, 200)
        self.assertContains(resp, "Tapa")
        self.assertContains(resp, reverse("inventario:stock_producto", args=[2]))
        self.assertEqual([p["pk"] for p in resp.context["productos"]], ["2", ""])

    def test_listado_con_api_caida_muestra_vacio_y_mensaje(self):
        get = rutas({"/productos": ApiError("Network Error"), "/productos/tipos": self.TIPOS})
        with mock.patch.object(api, "get", side_effect=get):
            resp = self.client.get(reverse("inventario:listar_productos"))
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.context["productos"], [])
        mensajes = [str(m) for m in resp.context["messages"]]
        self.assertIn("Error al cargar productos: Network Error", mensajes)

    def test_agregar_producto_prg(self):
        with mock.patch.object(api, "get", side_effect=rutas({"/productos/tipos": self.TIPOS})), \
                mock.patch.object(api, "post", return_value={"productoId": 9}) as post:
            resp = self.client.post(reverse("inventario:agregar_producto"), {
                "nombre": "Botellón", "precio": "25", "tipoProductoId": "1",
            })
        self.assertRedirects(resp, reverse("inventario:listar_productos"), fetch_redirect_response=False)
        post.assert_called_once()
        self.assertEqual(post.call_args.args[0], "/productos")

    def test_agregar_producto_error_api_rerenderiza(self):
        error = ApiError("x", status_code=400, payload={"message": "Nombre duplicado"})
        with mock.patch.object(api, "get", side_effect=rutas({"/productos/tipos": self.TIPOS})), \
                mock.patch.object(api, "post", side_effect=error):
            resp = self.client.post(reverse("inventario:agregar_producto"), {
                "nombre": "Botellón", "precio": "25", "tipoProductoId": "1",
            })
        self.assertEqual(resp.status_code, 200)
        self.assertContains(resp, "Nombre duplicado")

    def test_editar_producto_inexistente_es_404(self):
        with mock.patch.object(api, "get", side_effect=rutas({"/productos/tipos": self.TIPOS})):
            resp = self.client.get(reverse("inventario:editar_producto", args=["77"]))
        self.assertEqual(resp.status_code, 404)

    def test_editar_producto_con_error_de_red_redirige(self):
        get = rutas({"/productos/tipos": self.TIPOS, "/productos/3": ApiError("Network Error")})
        with mock.patch.object(api, "get", side_effect=get):
            resp = self.client.get(reverse("inventario:editar_producto", args=["3"]))
        self.assertRedirects(resp, reverse("inventario:listar_productos"), fetch_redirect_response=False)

    def test_descontinuar_get_confirma_y_post_alterna(self):
        producto = {"productoId": 3, "nombre": "Hielo", "precio": 5, "tipoProductoId": 1, "descontinuado": True}
        with mock.patch.object(api, "get", side_effect=rutas({"/productos/3": producto})), \
                mock.patch.object(api, "put", return_value=None) as put:
            resp = self.client.get(reverse("inventario:descontinuar_producto", args=["3"]))
            self.assertContains(resp, "¿Reactivar producto?")
            put.assert_not_called()
            resp = self.client.post(reverse("inventario:descontinuar_producto", args=["3"]))
        self.assertRedirects(resp, reverse("inventario:listar_productos"), fetch_redirect_response=False)
        self.assertFalse(put.call_args.args[1]["descontinuado"])

    def test_stock_producto_suma_sublotes(self):
        get = rutas({"/productos/4/sublotes": [{"id": 1, "cantidadActual": 3}, {"id": 2, "cantidadActual": 4}]})
        with mock.patch.object(api, "get", side_effect=get):
            resp = self.client.get(reverse("inventario:stock_producto", args=["4"]))
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.context["stock_total"], Decimal("7"))

    def test_stock_producto_sin_sublotes(self):
        with mock.patch.object(api, "get", side_effect=rutas({"/productos/4/sublotes": []})):
            resp = self.client.get(reverse("inventario:stock_producto", args=["4"]))
        self.assertEqual(resp.status_code, 200)
        self.assertContains(resp, "No hay sublotes disponibles para este producto")

    def test_id_no_numerico_es_404(self):
        with mock.patch.object(api, "get") as get:
            resp = self.client.get("/inventario/productos/abc/stock/")
        self.assertEqual(resp.status_code, 404)
        get.assert_not_called()


class ProveedorViewsTests(ConUsuarioMixin, TestCase):

    UBICACIONES = [{"id": 1, "ubicacion": "El Alto"}]

    def test_editar_precarga_desde_listado(self):
        get = rutas({
            "/ubicaciones": self.UBICACIONES,
            "/proveedor": [{"id": 4, "nombre": "Envases SRL", "nit": "123", "ubicacionId": 1}],
        })
        with mock.patch.object(api, "get", side_effect=get):
            resp = self.client.get(reverse("inventario:editar_proveedor", args=["4"]))
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.context["form"].initial["nombre"], "Envases SRL")

    def test_eliminar_get_no_borra_y_post_borra(self):
        with mock.patch.object(api, "delete", return_value=None) as delete:
            resp = self.client.get(reverse("inventario:eliminar_proveedor", args=["4"]))
            self.assertEqual(resp.status_code, 200)
            delete.assert_not_called()
            resp = self.client.post(reverse("inventario:eliminar_proveedor", args=["4"]))
        delete.assert_called_once_with("/proveedor/4")
        self.assertRedirects(resp, reverse("inventario:listar_proveedores"), fetch_redirect_response=False)

    def test_eliminar_con_error_informa(self):
        with mock.patch.object(api, "delete", side_effect=ApiError("conflicto", status_code=409)):
            with self.assertLogs("inventario.views", level="ERROR"):
                resp = self.client.post(reverse("inventario:eliminar_proveedor", args=["4"]), follow=False)
        self.assertEqual(resp.status_code, 302)
        mensajes = [str(m) for m in get_messages(resp.wsgi_request)]
        self.assertIn("Error al eliminar proveedor", mensajes)

    def test_eliminar_con_id_no_numerico_es_404(self):
        with mock.patch.object(api, "delete") as delete:
            resp = self.client.post("/inventario/proveedores/abc/eliminar/")
        self.assertEqual(resp.status_code, 404)
        delete.assert_not_called()

    def test_listado_ubicacion_o_ciudad(self):
        get = rutas({"/proveedor": [
            {"id": 4, "nombre": "Envases SRL", "ciudad": "Tarija"},
            {"id": 5, "nombre": "Tapas Bolivia"},
        ]})
        with mock.patch.object(api, "get", side_effect=get):
            resp = self.client.get(reverse("inventario:listar_proveedores"))
        self.assertEqual(resp.status_code, 200)
        self.assertEqual([p["ubicacion_nombre"] for p in resp.context["proveedores"]], ["Tarija", ""])


class MovimientosViewsTests(ConUsuarioMixin, TestCase):

    def test_marca_ingresos(self):
        get = rutas({
            "/movimientos": [{"id": 1, "tipo": "COMPRA"}, {"id": 2, "tipo": "VENTA"}],
            "/sublotes": [],
        })
        with mock.patch.object(api, "get", side_effect=get):
            resp = self.client.get(reverse("inventario:listar_movimientos"))
        self.assertEqual([m["es_ingreso"] for m in resp.context["movimientos"]], [True, False])

    def test_sublotes_ver_selecciona_fila(self):
        get = rutas({
            "/sublotes": [{"id": 8, "codigoSublote": "SL-8"}, {"id": 9, "codigoSublote": "SL-9"}],
            "/productos": [],
        })
        with mock.patch.object(api, "get", side_effect=get):
            resp = self.client.get(reverse("inventario:listar_sublotes"), {"ver": "9"})
        self.assertEqual(resp.context["seleccionado"]["codigoSublote"], "SL-9")
