from decimal import Decimal, InvalidOperation

from babel.numbers import format_currency as babel_format_currency
from django import template
from django.conf import settings

register = template.Library()

@register.filter(name='format_currency')
def format_currency(value):
    """
    Formats a number in the lab's invoice currency.
    e.g., 1234.5 -> JOD 1,234.500
    """
    if value is None or value == '':
        return ''
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return value
    return babel_format_currency(amount, settings.INVOICE_CURRENCY, locale=settings.CURRENCY_LOCALE)
