"""
Caché de consultas a la API (lecturas) con invalidación por prefijo.

Cada consulta se identifica por una clave-tupla cuyo primer elemento es el
prefijo del recurso, p. ej. ("productos", nombre, tipo, page). Las mutaciones
invalidan prefijos completos: ("productos",) deja obsoletas todas las
variantes de filtros/páginas de productos.

La invalidación usa un contador de versión por prefijo guardado en la misma
caché, así funciona igual con LocMemCache que con Redis (no hace falta SCAN).
"""
import hashlib
import logging

from django.conf import settings
from django.core.cache import cache

from .api import ApiError

logger = logging.getLogger(__name__)

# Reintentos de una lectura fallida antes de propagar el error
REINTENTOS = 1


def _clave_version(prefijo):
    return f"api:version:{prefijo}"


def version_prefijo(prefijo):
    return cache.get_or_set(_clave_version(prefijo), 1, None)


def make_cache_key(clave):
    """Clave estable y corta a partir de la clave-tupla de la consulta."""
    prefijo = str(clave[0])
    datos = f"{prefijo}:{clave[1:]!r}"
    digest = hashlib.md5(datos.encode()).hexdigest()
    return f"api:{prefijo}:v{version_prefijo(prefijo)}:{digest}"


def _con_reintento(fetch):
    intentos = 0
    while True:
        try:
            return fetch()
        except ApiError as exc:
            if intentos >= REINTENTOS or exc.no_encontrado:
                raise
            intentos += 1
            logger.warning("Reintentando consulta a la API tras error: %s", exc)


def consultar(clave, fetch, ttl=None):
    """
    Devuelve el resultado cacheado de `fetch()` para `clave`.

    Args:
        clave (tuple): clave-tupla; clave[0] es el prefijo invalidable.
        fetch (callable): función sin argumentos que llama a la API.
        ttl (int | None): segundos de frescura; None → settings.API_CACHE_TTL,
            0 → sin caché (siempre se vuelve a pedir).
    """
    if ttl is None:
        ttl = settings.API_CACHE_TTL
    if ttl == 0:
        return _con_reintento(fetch)

    cache_key = make_cache_key(clave)
    datos = cache.get(cache_key)
    if datos is not None:
        logger.debug("Cache HIT %s", cache_key)
        return datos

    logger.debug("Cache MISS %s", cache_key)
    datos = _con_reintento(fetch)
    if datos is not None:
        cache.set(cache_key, datos, ttl)
    return datos


def invalidar(*prefijos):
    """
    Deja obsoletas todas las consultas cacheadas bajo los prefijos dados.

    El contador sube con `incr`: invalidaciones concurrentes nunca se pierden.
    """
    for prefijo in prefijos:
        clave = _clave_version(prefijo)
        cache.add(clave, 1, None)
        cache.incr(clave)
        logger.info("Invalidada caché de '%s'", prefijo)
