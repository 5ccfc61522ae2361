"""
Formato de importes y fechas para mostrar en pantalla (es-BO).

La API entrega muchos números como texto ("125.50 Bs", "1250.00"); aquí se
interpretan y se formatean sin tocar la lógica de negocio.
"""
import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from django.utils import numberformat, translation
from django.utils.formats import date_format

FORMATO_FECHA = r"j \d\e F \d\e Y"

_NO_NUMERICO = re.compile(r"[^\d.-]")


def parsear_monto(valor) -> Decimal:
    """
    Convierte un importe de la API a Decimal.

    Acepta números o textos con sufijos/prefijos ("125.50 Bs"). Todo lo que no
    sea dígito, punto o signo se descarta; si no queda un número válido → 0.
    """
    if valor is None:
        return Decimal("0")
    if isinstance(valor, Decimal):
        return valor
    if isinstance(valor, (int, float)):
        return Decimal(str(valor))
    limpio = _NO_NUMERICO.sub("", str(valor))
    try:
        return Decimal(limpio)
    except InvalidOperation:
        return Decimal("0")


def formatear_moneda(valor) -> str:
    """Moneda boliviana al estilo es-BO: 1234.5 → 'Bs 1.234,50'."""
    importe = parsear_monto(valor).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    signo = "-" if importe < 0 else ""
    cifra = numberformat.format(
        abs(importe), ",", decimal_pos=2, grouping=3, thousand_sep=".", force_grouping=True,
    )
    return f"{signo}Bs {cifra}"


def formatear_fecha(valor) -> str:
    """'2024-03-05' → '5 de marzo de 2024'. Vacío → ''. Si no se reconoce, se devuelve tal cual."""
    if not valor:
        return ""
    if isinstance(valor, datetime):
        valor = valor.date()
    if not isinstance(valor, date):
        texto = str(valor)
        try:
            valor = date.fromisoformat(texto[:10])
        except ValueError:
            return texto
    with translation.override("es"):
        return date_format(valor, FORMATO_FECHA)


def acortar(texto, largo: int) -> str:
    texto = "" if texto is None else str(texto)
    return texto[:largo] + "..." if len(texto) > largo else texto
