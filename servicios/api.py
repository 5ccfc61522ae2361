# servicios/api.py
"""
Cliente HTTP compartido contra la API REST de Aqua de Belén.

Propósito:
    Ser el único punto de salida hacia el backend remoto. Todas las pantallas
    (inventario, compras, ventas, dashboard) leen y escriben a través de `api`.

Responsabilidades:
    - Una sola `requests.Session` con URL base fija y cabecera JSON.
    - Interceptor de respuestas: registra en el log cualquier error HTTP.
    - Traducir fallos de red y respuestas >= 400 a `ApiError`.
    - Decodificar JSON (cuerpo vacío → None) o devolver bytes para descargas.

Diseño:
    - La configuración se lee de settings en cada petición (tests pueden
      sobreescribir API_BASE_URL con override_settings).
    - El interceptor solo registra; la decisión de qué mostrar al usuario
      queda en las vistas.
"""
from __future__ import annotations

import logging
from typing import Any

import requests
from django.conf import settings

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────────────────────
# Excepción
# ─────────────────────────────────────────────────────────────────────────────
class ApiError(Exception):
    """
    Error al hablar con la API.

    Atributos:
        status_code (int | None): código HTTP (None si no hubo respuesta).
        payload (Any): cuerpo JSON de la respuesta de error, si lo hubo.
    """

    def __init__(self, mensaje: str, status_code: int | None = None, payload: Any = None):
        super().__init__(mensaje)
        self.status_code = status_code
        self.payload = payload

    @property
    def mensaje_servidor(self) -> str:
        """Mensaje para el usuario: payload.message → payload.error → texto de la excepción."""
        if isinstance(self.payload, dict):
            for clave in ("message", "error"):
                valor = self.payload.get(clave)
                if valor:
                    return str(valor)
        return str(self)

    @property
    def no_encontrado(self) -> bool:
        return self.status_code == 404


# ─────────────────────────────────────────────────────────────────────────────
# Interceptor de respuestas
# ─────────────────────────────────────────────────────────────────────────────
def _registrar_error(response: requests.Response, *args, **kwargs) -> requests.Response:
    """Hook de `requests`: deja constancia de las respuestas con error y las devuelve intactas."""
    if response.status_code >= 400:
        logger.error(
            "API Error: %s %s -> %s %s",
            response.request.method,
            response.url,
            response.status_code,
            response.text[:500],
        )
    return response


# ─────────────────────────────────────────────────────────────────────────────
# Cliente
# ─────────────────────────────────────────────────────────────────────────────
class ApiClient:
    """Envoltorio fino sobre `requests.Session` con la URL base del backend."""

    def __init__(self, base_url: str | None = None, timeout: float | None = None):
        self._base_url = base_url
        self._timeout = timeout
        self._session: requests.Session | None = None

    @property
    def base_url(self) -> str:
        return (self._base_url or settings.API_BASE_URL).rstrip("/")

    @property
    def timeout(self) -> float:
        return self._timeout or settings.API_TIMEOUT

    @property
    def session(self) -> requests.Session:
        if self._session is None:
            session = requests.Session()
            session.headers.update({"Content-Type": "application/json"})
            session.hooks["response"].append(_registrar_error)
            self._session = session
        return self._session

    def url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    # ---------------------------------------------------------------------
    def _request(self, method: str, path: str, **kwargs) -> requests.Response:
        """
        Ejecuta la petición y normaliza los errores a `ApiError`.

        Raises:
            ApiError: fallo de red/timeout o respuesta con status >= 400.
        """
        kwargs.setdefault("timeout", self.timeout)
        try:
            response = self.session.request(method, self.url(path), **kwargs)
        except requests.RequestException as exc:
            logger.error("API Error: %s %s -> %s", method, path, exc)
            raise ApiError(str(exc)) from exc

        if response.status_code >= 400:
            try:
                payload = response.json()
            except ValueError:
                payload = None
            raise ApiError(
                f"Request failed with status code {response.status_code}",
                status_code=response.status_code,
                payload=payload,
            )
        return response

    @staticmethod
    def _decodificar(response: requests.Response) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return response.text

    @staticmethod
    def _limpiar_params(params: dict | None) -> dict | None:
        # Los filtros vacíos no viajan al backend
        if not params:
            return None
        return {k: v for k, v in params.items() if v not in (None, "")}

    # ---------------------------------------------------------------------
    def get(self, path: str, params: dict | None = None) -> Any:
        return self._decodificar(self._request("GET", path, params=self._limpiar_params(params)))

    def post(self, path: str, json: Any = None) -> Any:
        return self._decodificar(self._request("POST", path, json=json))

    def put(self, path: str, json: Any = None) -> Any:
        return self._decodificar(self._request("PUT", path, json=json))

    def patch(self, path: str, params: dict | None = None, json: Any = None) -> Any:
        return self._decodificar(
            self._request("PATCH", path, params=self._limpiar_params(params), json=json)
        )

    def delete(self, path: str) -> Any:
        return self._decodificar(self._request("DELETE", path))

    def descargar(self, path: str, params: dict | None = None) -> bytes:
        """GET binario (exportaciones). Devuelve el cuerpo crudo."""
        return self._request("GET", path, params=self._limpiar_params(params)).content


api = ApiClient()
