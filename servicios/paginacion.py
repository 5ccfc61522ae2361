# servicios/paginacion.py
"""
Normalización de páginas devueltas por la API.

El backend a veces responde con un sobre de página (`{"content": [...],
"totalPages": ...}`) y a veces con una lista plana. Las vistas siempre
trabajan con `Pagina`; cuando la API no trae metadatos se fabrican.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from django.conf import settings


@dataclass
class Pagina:
    content: list = field(default_factory=list)
    total_pages: int = 0
    total_elements: int = 0
    size: int = 10
    number: int = 0
    first: bool = True
    last: bool = True
    empty: bool = True

    # Helpers para el partial de paginación
    @property
    def mostrar(self) -> bool:
        return self.total_pages > 1

    @property
    def numero_visible(self) -> int:
        return self.number + 1

    @property
    def tiene_anterior(self) -> bool:
        return self.number > 0

    @property
    def tiene_siguiente(self) -> bool:
        return self.number < self.total_pages - 1

    @property
    def anterior(self) -> int:
        return max(0, self.number - 1)

    @property
    def siguiente(self) -> int:
        return min(self.total_pages - 1, self.number + 1)


def tamano_pagina() -> int:
    return getattr(settings, "API_PAGE_SIZE", 10)


def es_sobre_pagina(data: Any) -> bool:
    return isinstance(data, dict) and "content" in data


def normalizar_pagina(data: Any, page: int, size: int | None = None) -> Pagina:
    """
    Convierte la respuesta de un listado en `Pagina`.

    - Sobre de página: se respetan sus metadatos.
    - Lista plana: si vino una página llena se asume que hay al menos una más
      (total_pages = page + 2), si no, esta es la última (page + 1).
    - Cualquier otra cosa: página vacía.
    """
    size = size or tamano_pagina()

    if es_sobre_pagina(data):
        content = data.get("content") or []
        return Pagina(
            content=content,
            total_pages=int(data.get("totalPages") or 0),
            total_elements=int(data.get("totalElements") or 0),
            size=int(data.get("size") or size),
            number=int(data.get("number") or 0),
            first=bool(data.get("first", page == 0)),
            last=bool(data.get("last", True)),
            empty=bool(data.get("empty", not content)),
        )

    es_lista = isinstance(data, list)
    cantidad = len(data) if es_lista else 0
    return Pagina(
        content=data if es_lista else [],
        total_pages=page + 2 if cantidad == size else page + 1,
        total_elements=0,
        size=size,
        number=page,
        first=page == 0,
        last=cantidad < size,
        empty=not data or cantidad == 0,
    )


def extraer_contenido(data: Any) -> list:
    """Lista de elementos tanto si la API devolvió un sobre como una lista plana."""
    if es_sobre_pagina(data):
        return data.get("content") or []
    if isinstance(data, list):
        return data
    return []


def leer_pagina(request) -> int:
    """Lee `?page=` (base 0). Valores inválidos o negativos → 0."""
    try:
        page = int(request.GET.get("page", 0))
    except (TypeError, ValueError):
        return 0
    return max(page, 0)


def parametros_listado(filtros: dict, page: int, size: int | None = None) -> tuple[bool, dict]:
    """
    Decide endpoint y parámetros de un listado.

    Returns:
        (hay_filtros, params): con filtros se consulta `/buscar` sin paginar;
        sin filtros se pide la página `page` de tamaño `size`.
    """
    activos = {k: v for k, v in filtros.items() if v not in (None, "")}
    if activos:
        return True, activos
    return False, {"page": page, "size": size or tamano_pagina()}
