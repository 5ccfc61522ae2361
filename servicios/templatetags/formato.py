from django import template

from servicios import formato as _formato

register = template.Library()


@register.filter
def moneda(valor):
    return _formato.formatear_moneda(valor)


@register.filter
def fecha(valor):
    return _formato.formatear_fecha(valor)


@register.filter
def monto(valor):
    return _formato.parsear_monto(valor)


@register.filter
def acortar(valor, largo=20):
    return _formato.acortar(valor, int(largo))


@register.filter
def get_item(diccionario, clave):
    """Acceso a dict por clave variable en templates: {{ stocks|get_item:pid }}."""
    if not diccionario:
        return None
    return diccionario.get(str(clave))
