"""
Pruebas de la infraestructura compartida: cliente HTTP, paginación, caché y formato.
"""
from decimal import Decimal
from unittest import mock

import requests
from django.core.cache import cache as django_cache
from django.template import Context, Template
from django.test import RequestFactory, SimpleTestCase, override_settings
from django.utils import translation

from servicios import cache
from servicios.api import ApiClient, ApiError, _registrar_error
from servicios.context_processors import navegacion
from servicios.formato import acortar, formatear_fecha, formatear_moneda, parsear_monto
from servicios.paginacion import (
    Pagina,
    extraer_contenido,
    leer_pagina,
    normalizar_pagina,
    parametros_listado,
)


def _respuesta(status_code=200, data=None, content=None):
    respuesta = mock.Mock(status_code=status_code)
    respuesta.content = content if content is not None else (b"{}" if data is not None else b"")
    respuesta.json.return_value = data
    respuesta.text = str(data)
    return respuesta


# ─────────────────────────────────────────────────────────────────────────────
# Cliente HTTP
# ─────────────────────────────────────────────────────────────────────────────
class ApiClientTests(SimpleTestCase):
    """ApiClient: URL base, limpieza de params y traducción de errores a ApiError."""

    def setUp(self):
        self.client_api = ApiClient(base_url="http://api.test/v1/", timeout=3)

    def test_url_une_base_y_ruta(self):
        self.assertEqual(self.client_api.url("/productos"), "http://api.test/v1/productos")

    def test_session_envia_json_y_registra_hook(self):
        session = self.client_api.session
        self.assertEqual(session.headers["Content-Type"], "application/json")
        self.assertIn(_registrar_error, session.hooks["response"])

    def test_get_descarta_params_vacios(self):
        with mock.patch.object(self.client_api.session, "request", return_value=_respuesta(data=[1])) as req:
            datos = self.client_api.get("/productos/buscar", params={"nombre": "agua", "tipo": "", "x": None})
        self.assertEqual(datos, [1])
        req.assert_called_once_with(
            "GET", "http://api.test/v1/productos/buscar", params={"nombre": "agua"}, timeout=3,
        )

    def test_respuesta_vacia_devuelve_none(self):
        with mock.patch.object(self.client_api.session, "request", return_value=_respuesta(status_code=204)):
            self.assertIsNone(self.client_api.delete("/proveedor/1"))

    def test_error_http_lleva_status_y_mensaje_del_servidor(self):
        respuesta = _respuesta(status_code=400, data={"message": "Stock insuficiente"})
        with mock.patch.object(self.client_api.session, "request", return_value=respuesta):
            with self.assertRaises(ApiError) as ctx:
                self.client_api.post("/ventas", {"clienteId": 1})
        self.assertEqual(ctx.exception.status_code, 400)
        self.assertEqual(ctx.exception.mensaje_servidor, "Stock insuficiente")
        self.assertFalse(ctx.exception.no_encontrado)

    def test_mensaje_servidor_usa_error_y_luego_el_texto(self):
        self.assertEqual(ApiError("x", payload={"error": "Bad Request"}).mensaje_servidor, "Bad Request")
        self.assertEqual(ApiError("Network Error").mensaje_servidor, "Network Error")

    def test_error_de_red_se_convierte_en_api_error(self):
        with mock.patch.object(self.client_api.session, "request", side_effect=requests.ConnectionError("caído")):
            with self.assertLogs("servicios.api", level="ERROR"):
                with self.assertRaises(ApiError):
                    self.client_api.get("/productos")

    def test_patch_envia_estado_como_query(self):
        with mock.patch.object(self.client_api.session, "request", return_value=_respuesta(data={})) as req:
            self.client_api.patch("/pedidos-sugeridos/5/estado", params={"estado": "APROBADO"})
        args, kwargs = req.call_args
        self.assertEqual(args[0], "PATCH")
        self.assertEqual(kwargs["params"], {"estado": "APROBADO"})
        self.assertIsNone(kwargs["json"])

    def test_hook_registra_respuestas_con_error(self):
        respuesta = mock.Mock(status_code=500, url="http://api.test/v1/x", text="boom")
        respuesta.request.method = "GET"
        with self.assertLogs("servicios.api", level="ERROR") as logs:
            self.assertIs(_registrar_error(respuesta), respuesta)
        self.assertIn("API Error", logs.output[0])


# ─────────────────────────────────────────────────────────────────────────────
# Paginación
# ─────────────────────────────────────────────────────────────────────────────
class PaginacionTests(SimpleTestCase):

    def test_sobre_de_pagina_se_respeta(self):
        data = {
            "content": [{"id": 1}], "totalPages": 4, "totalElements": 31,
            "size": 10, "number": 2, "first": False, "last": False, "empty": False,
        }
        pagina = normalizar_pagina(data, 2)
        self.assertEqual(pagina.total_pages, 4)
        self.assertEqual(pagina.total_elements, 31)
        self.assertEqual(pagina.numero_visible, 3)

    def test_lista_llena_supone_una_pagina_mas(self):
        pagina = normalizar_pagina(list(range(10)), 0, size=10)
        self.assertEqual(pagina.total_pages, 2)
        self.assertFalse(pagina.last)
        self.assertTrue(pagina.tiene_siguiente)

    def test_lista_incompleta_es_la_ultima(self):
        pagina = normalizar_pagina([1, 2, 3], 1, size=10)
        self.assertEqual(pagina.total_pages, 2)
        self.assertTrue(pagina.last)
        self.assertFalse(pagina.tiene_siguiente)
        self.assertEqual(pagina.anterior, 0)

    def test_respuesta_no_lista_queda_vacia(self):
        pagina = normalizar_pagina(None, 0)
        self.assertEqual(pagina.content, [])
        self.assertTrue(pagina.empty)
        self.assertFalse(pagina.mostrar)

    def test_extraer_contenido(self):
        self.assertEqual(extraer_contenido({"content": [1]}), [1])
        self.assertEqual(extraer_contenido([2]), [2])
        self.assertEqual(extraer_contenido({"otro": 1}), [])

    def test_leer_pagina_invalida_es_cero(self):
        factory = RequestFactory()
        self.assertEqual(leer_pagina(factory.get("/", {"page": "3"})), 3)
        self.assertEqual(leer_pagina(factory.get("/", {"page": "-2"})), 0)
        self.assertEqual(leer_pagina(factory.get("/", {"page": "abc"})), 0)

    def test_parametros_listado(self):
        self.assertEqual(parametros_listado({"nombre": ""}, 2, 10), (False, {"page": 2, "size": 10}))
        self.assertEqual(parametros_listado({"nombre": "agua", "tipo": ""}, 2), (True, {"nombre": "agua"}))


# ─────────────────────────────────────────────────────────────────────────────
# Caché
# ─────────────────────────────────────────────────────────────────────────────
@override_settings(API_CACHE_TTL=300)
class CacheTests(SimpleTestCase):
    """consultar(): HIT/MISS, reintento único, invalidación por prefijo y ttl=0."""

    def setUp(self):
        django_cache.clear()

    def test_segunda_lectura_sale_de_cache(self):
        fetch = mock.Mock(return_value=[1, 2])
        self.assertEqual(cache.consultar(("productos", "", 0), fetch), [1, 2])
        self.assertEqual(cache.consultar(("productos", "", 0), fetch), [1, 2])
        fetch.assert_called_once()

    def test_invalidar_prefijo_fuerza_nueva_lectura(self):
        fetch = mock.Mock(side_effect=[["viejo"], ["nuevo"]])
        cache.consultar(("clientes", 0), fetch)
        cache.invalidar("clientes")
        self.assertEqual(cache.consultar(("clientes", 0), fetch), ["nuevo"])

    def test_invalidar_otro_prefijo_no_afecta(self):
        fetch = mock.Mock(return_value=["x"])
        cache.consultar(("ventas",), fetch)
        cache.invalidar("compras")
        cache.consultar(("ventas",), fetch)
        fetch.assert_called_once()

    def test_invalidaciones_sucesivas_suman_version(self):
        self.assertEqual(cache.version_prefijo("compras"), 1)
        cache.invalidar("compras")
        cache.invalidar("compras")
        self.assertEqual(cache.version_prefijo("compras"), 3)

    def test_invalidar_prefijo_sin_version_previa(self):
        cache.invalidar("proveedores")
        self.assertEqual(cache.version_prefijo("proveedores"), 2)

    def test_reintenta_una_vez(self):
        fetch = mock.Mock(side_effect=[ApiError("timeout"), ["ok"]])
        self.assertEqual(cache.consultar(("lotes",), fetch), ["ok"])
        self.assertEqual(fetch.call_count, 2)

    def test_error_persistente_se_propaga(self):
        fetch = mock.Mock(side_effect=ApiError("caído", status_code=500))
        with self.assertRaises(ApiError):
            cache.consultar(("lotes",), fetch)
        self.assertEqual(fetch.call_count, 2)

    def test_404_no_se_reintenta(self):
        fetch = mock.Mock(side_effect=ApiError("no", status_code=404))
        with self.assertRaises(ApiError):
            cache.consultar(("productos",), fetch)
        fetch.assert_called_once()

    def test_ttl_cero_no_cachea(self):
        fetch = mock.Mock(return_value=[1])
        cache.consultar(("inventory-kpis",), fetch, ttl=0)
        cache.consultar(("inventory-kpis",), fetch, ttl=0)
        self.assertEqual(fetch.call_count, 2)


# ─────────────────────────────────────────────────────────────────────────────
# Formato y filtros de template
# ─────────────────────────────────────────────────────────────────────────────
class FormatoTests(SimpleTestCase):

    def test_parsear_monto(self):
        self.assertEqual(parsear_monto("125.50 Bs"), Decimal("125.50"))
        self.assertEqual(parsear_monto("Bs -3"), Decimal("-3"))
        self.assertEqual(parsear_monto("abc"), Decimal("0"))
        self.assertEqual(parsear_monto(None), Decimal("0"))
        self.assertEqual(parsear_monto(7), Decimal("7"))

    def test_formatear_moneda(self):
        self.assertEqual(formatear_moneda(1234.5), "Bs 1.234,50")
        self.assertEqual(formatear_moneda("12.5 Bs"), "Bs 12,50")
        self.assertEqual(formatear_moneda("x"), "Bs 0,00")
        self.assertEqual(formatear_moneda("-1234567.005"), "-Bs 1.234.567,01")
        self.assertEqual(formatear_moneda(999), "Bs 999,00")

    def test_formatear_fecha(self):
        self.assertEqual(formatear_fecha("2024-03-05"), "5 de marzo de 2024")
        self.assertEqual(formatear_fecha("2024-12-31T10:00:00"), "31 de diciembre de 2024")
        self.assertEqual(formatear_fecha(""), "")
        self.assertEqual(formatear_fecha("pronto"), "pronto")

    def test_formato_no_depende_del_idioma_activo(self):
        with translation.override("en"):
            self.assertEqual(formatear_fecha("2024-08-15"), "15 de agosto de 2024")
            self.assertEqual(formatear_moneda(1000), "Bs 1.000,00")

    def test_acortar(self):
        self.assertEqual(acortar("Botellón de agua 20 litros", 15), "Botellón de agu...")
        self.assertEqual(acortar("Agua", 15), "Agua")

    def test_filtros_de_template(self):
        html = Template(
            "{% load formato %}{{ m|moneda }}|{{ f|fecha }}|{{ d|get_item:5 }}"
        ).render(Context({"m": "10", "f": "2024-01-02", "d": {"5": "cinco"}}))
        self.assertEqual(html, "Bs 10,00|2 de enero de 2024|cinco")


class NavegacionTests(SimpleTestCase):

    def test_item_activo_define_el_titulo(self):
        request = RequestFactory().get("/inventario/productos/")
        contexto = navegacion(request)
        activos = [i for i in contexto["nav_items"] if i["activo"]]
        self.assertEqual([i["label"] for i in activos], ["Productos"])
        self.assertEqual(contexto["titulo_pagina"], "Productos")

    def test_ruta_desconocida_titula_dashboard(self):
        contexto = navegacion(RequestFactory().get("/no-existe/"))
        self.assertEqual(contexto["titulo_pagina"], "Dashboard")
        self.assertEqual(len(contexto["nav_items"]), 10)


# Ayuda compartida por las pruebas de las apps
class PaginaVaciaTests(SimpleTestCase):

    def test_pagina_por_defecto(self):
        pagina = Pagina()
        self.assertEqual(pagina.content, [])
        self.assertFalse(pagina.mostrar)
