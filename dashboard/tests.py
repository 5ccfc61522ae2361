"""
Pruebas del dashboard: agregados del panel, pestañas de análisis de inventario
y acciones sobre pedidos sugeridos.
"""
from decimal import Decimal
from unittest import mock

from django.core.cache import cache
from django.test import SimpleTestCase, TestCase
from django.urls import reverse

from inventario.tests import ConUsuarioMixin, rutas
from servicios.api import ApiError, api

from . import services

PRODUCTOS_STOCK = [
    {"nombre": "Botellón de agua purificada 20L", "cantidadTotal": 120},
    {"nombre": "Bolsa de hielo", "cantidadTotal": 4},
    {"nombre": "Tapa", "cantidadTotal": 0},
    {"nombre": "Dispensador", "cantidadTotal": 30},
]

PANEL = {
    "/productos/count": 4,
    "/productos/stock-total": PRODUCTOS_STOCK,
    "/sublotes/proximos-vencer": [{"codigoSublote": "SL-1", "fechaVencimiento": "2025-01-10"}],
    "/ventas": {"content": [{"ventaId": 1, "totalNeto": "100.50 Bs"}, {"ventaId": 2, "totalNeto": "x"}]},
    "/compras": [{"id": 1}],
    "/clientes": [{"id": 1}, {"id": 2}, {"id": 3}],
}

CONSOLIDACION = {
    "consolidados": [
        {"proveedorId": 1, "productos": [{"productoId": 10}, {"productoId": 11}]},
        {"proveedorId": 2, "productos": [{"productoId": 12}]},
    ]
}
PEDIDOS = [
    {"id": 100, "productoId": 10},
    {"id": 101, "productoId": 11},
    {"id": 102, "productoId": 12},
]


class PanelServiceTests(SimpleTestCase):

    def setUp(self):
        cache.clear()

    def test_total_ventas_ignora_montos_invalidos(self):
        self.assertEqual(services.total_ventas(PANEL["/ventas"]["content"]), Decimal("100.50"))

    def test_top_stock_ordena_y_acorta(self):
        top = services.top_stock(PRODUCTOS_STOCK, 2, 10)
        self.assertEqual(top, [
            {"nombre": "Botellón d...", "cantidad": 120},
            {"nombre": "Dispensado...", "cantidad": 30},
        ])

    def test_datos_panel(self):
        with mock.patch.object(api, "get", side_effect=rutas(PANEL)):
            datos = services.datos_panel()
        kpis = datos["kpis"]
        self.assertEqual(kpis["total_ventas"], Decimal("100.50"))
        self.assertEqual(kpis["transacciones"], 2)
        self.assertEqual(kpis["clientes"], 3)
        self.assertEqual(kpis["productos"], 4)
        self.assertEqual(kpis["bajo_stock"], 2)
        self.assertEqual(kpis["compras"], 1)
        self.assertEqual(kpis["por_vencer"], 1)
        self.assertEqual(datos["chart"]["top_stock"]["data"], [120.0, 30.0, 4.0, 0.0])


class PedidosServiceTests(SimpleTestCase):
    """Aprobación individual y consolidada de pedidos sugeridos."""

    def test_estado_invalido_no_llama_a_la_api(self):
        with mock.patch.object(api, "patch") as patch:
            with self.assertRaises(ValueError):
                services.cambiar_estado_pedido(1, "PENDIENTE")
        patch.assert_not_called()

    def test_cambiar_estado_envia_query(self):
        with mock.patch.object(api, "patch", return_value=None) as patch:
            services.cambiar_estado_pedido(5, "RECHAZADO")
        patch.assert_called_once_with("/pedidos-sugeridos/5/estado", params={"estado": "RECHAZADO"})

    def test_pedidos_de_proveedor(self):
        pedidos = services.pedidos_de_proveedor("1", PEDIDOS, CONSOLIDACION)
        self.assertEqual([p["id"] for p in pedidos], [100, 101])

    def test_aprobar_consolidacion_aprueba_cada_pedido(self):
        get = rutas({
            "/pedidos-sugeridos/estado/PENDIENTE": PEDIDOS,
            "/dashboard/aglomeracion": CONSOLIDACION,
        })
        with mock.patch.object(api, "get", side_effect=get), \
                mock.patch.object(api, "patch", return_value=None) as patch:
            aprobados = services.aprobar_consolidacion(2)
        self.assertEqual(aprobados, 1)
        patch.assert_called_once_with("/pedidos-sugeridos/102/estado", params={"estado": "APROBADO"})

    def test_resumen_kpis(self):
        kpis = [
            {"estadoReposicion": "REORDENAR", "clasificacionABC": "A"},
            {"estadoReposicion": "OK", "clasificacionABC": "B"},
            {"estadoReposicion": "OK", "clasificacionABC": "A"},
        ]
        self.assertEqual(services.resumen_kpis(kpis), {"total": 3, "reordenar": 1, "ok": 2, "clase_a": 2})


class DashboardViewsTests(ConUsuarioMixin, TestCase):

    KPIS = [{"productoId": 10, "nombre": "Botellón", "estadoReposicion": "REORDENAR", "clasificacionABC": "A"}]

    def test_panel(self):
        with mock.patch.object(api, "get", side_effect=rutas(PANEL)):
            resp = self.client.get(reverse("dashboard:panel"))
        self.assertEqual(resp.status_code, 200)
        self.assertFalse(resp.context["hay_error"])
        self.assertContains(resp, 'id="chart-data"')
        self.assertContains(resp, "Hay 2 productos con menos de 10 unidades en stock.")

    def test_panel_un_producto_con_stock_bajo(self):
        panel = dict(PANEL, **{"/productos/stock-total": PRODUCTOS_STOCK[:2]})
        with mock.patch.object(api, "get", side_effect=rutas(panel)):
            resp = self.client.get(reverse("dashboard:panel"))
        self.assertContains(resp, "Hay 1 producto con menos de 10 unidades en stock.")

    def test_panel_sin_stock_bajo_no_muestra_alerta(self):
        panel = dict(PANEL, **{"/productos/stock-total": PRODUCTOS_STOCK[:1]})
        with mock.patch.object(api, "get", side_effect=rutas(panel)):
            resp = self.client.get(reverse("dashboard:panel"))
        self.assertNotContains(resp, "Alerta de Stock Bajo")

    def test_panel_con_api_caida(self):
        with mock.patch.object(api, "get", side_effect=ApiError("Network Error")):
            resp = self.client.get(reverse("dashboard:panel"))
        self.assertEqual(resp.status_code, 200)
        self.assertTrue(resp.context["hay_error"])

    def test_kpis_pestana_desconocida_vuelve_a_kpis(self):
        get = rutas({
            "/dashboard/inventory-kpis": self.KPIS,
            "/dashboard/alertas-rop": [{"puntoReorden": 50, "stockActual": 20}],
            "/pedidos-sugeridos/estado/PENDIENTE": PEDIDOS,
            "/dashboard/aglomeracion": CONSOLIDACION,
        })
        with mock.patch.object(api, "get", side_effect=get):
            resp = self.client.get(reverse("dashboard:inventario_kpis"), {"tab": "otra"})
        self.assertEqual(resp.context["tab"], "kpis")
        self.assertEqual(resp.context["alertas"][0]["deficit"], 30)
        self.assertEqual(resp.context["resumen"]["reordenar"], 1)

    def test_kpis_con_error_muestra_estado_de_error(self):
        with mock.patch.object(api, "get", side_effect=ApiError("caído", status_code=500)):
            with self.assertLogs("dashboard.views", level="ERROR"):
                resp = self.client.get(reverse("dashboard:inventario_kpis"))
        self.assertTrue(resp.context["error"])
        self.assertContains(resp, "Error al cargar datos")

    def test_secciones_secundarias_fallan_por_separado(self):
        get = rutas({"/dashboard/inventory-kpis": self.KPIS, "/dashboard/alertas-rop": []})
        with mock.patch.object(api, "get", side_effect=get):
            with self.assertLogs("dashboard.views", level="ERROR"):
                resp = self.client.get(reverse("dashboard:inventario_kpis"))
        self.assertFalse(resp.context["error"])
        self.assertEqual(resp.context["pedidos"], [])
        self.assertEqual(resp.context["aglomeracion"], {})

    def test_cambiar_estado_solo_por_post(self):
        url = reverse("dashboard:cambiar_estado_pedido", args=["5"])
        self.assertEqual(self.client.get(url).status_code, 405)
        with mock.patch.object(api, "patch", return_value=None) as patch:
            resp = self.client.post(url, {"estado": "APROBADO"})
        patch.assert_called_once()
        self.assertEqual(resp.status_code, 302)
        self.assertTrue(resp["Location"].endswith("?tab=pedidos"))

    def test_pedido_con_id_no_numerico_es_404(self):
        with mock.patch.object(api, "patch") as patch:
            resp = self.client.post("/inventario-kpis/pedidos/abc/estado/", {"estado": "APROBADO"})
        self.assertEqual(resp.status_code, 404)
        patch.assert_not_called()

    def test_exportar_excel(self):
        with mock.patch.object(api, "descargar", return_value=b"PK\x03\x04") as descargar:
            resp = self.client.get(reverse("dashboard:exportar_excel"))
        descargar.assert_called_once_with("/inventario/export/excel")
        self.assertEqual(resp.content, b"PK\x03\x04")
        self.assertIn('filename="Inventario_Continuo_', resp["Content-Disposition"])
        self.assertTrue(resp["Content-Disposition"].endswith('.xlsx"'))

    def test_exportar_excel_con_error_redirige(self):
        with mock.patch.object(api, "descargar", side_effect=ApiError("caído")):
            with self.assertLogs("dashboard.views", level="ERROR"):
                resp = self.client.get(reverse("dashboard:exportar_excel"))
        self.assertEqual(resp.status_code, 302)
