# billing/calculator.py

"""
Invoice aggregation over dental lab cases.

Everything in this module is pure: it works on any objects exposing the
``DentalCase`` attributes (``dentist_name``, ``is_deleted``, ``created_at``,
``tooth_numbers``, ``material``) and never touches the database.
"""

from datetime import datetime, time
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from django.utils import timezone


# Price per tooth, in display order.
DEFAULT_MATERIAL_PRICES = {
    'Zolid': Decimal('25'),
    'Zirconia': Decimal('30'),
    'Nickel Free': Decimal('20'),
    'N-Guard': Decimal('15'),
    'Implant': Decimal('50'),
    'MookUp': Decimal('10'),
}
MATERIAL_NAMES = list(DEFAULT_MATERIAL_PRICES)
MATERIAL_CHOICES = [(name, name) for name in MATERIAL_NAMES]

NO_CASES_MESSAGE = "No cases found for the selected date range."

# Amounts are held in fils (three decimal places); typed amounts stay below MAX_AMOUNT.
MONEY_QUANTUM = Decimal('0.001')
MAX_AMOUNT = Decimal('1000000000')


def count_teeth(tooth_numbers):
    """Number of non-blank comma-separated tokens, e.g. "11, 12,,13" -> 3."""
    return len([token for token in (tooth_numbers or '').split(',') if token.strip()])


def split_materials(material):
    return [token.strip() for token in (material or '').split(',') if token.strip()]


def start_of_day(day):
    return timezone.make_aware(datetime.combine(day, time.min))


def end_of_day(day):
    return timezone.make_aware(datetime.combine(day, time.max))


def to_money(value):
    return value.quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP)


def resolve_price(raw, previous):
    """
    Parses an amount typed by the user and rounds it to fils. Input that is
    not a finite number, or whose size reaches ``MAX_AMOUNT``, is ignored
    and ``previous`` is returned unchanged.
    """
    if raw is None or isinstance(raw, bool):
        return previous
    if isinstance(raw, Decimal):
        value = raw
    else:
        try:
            value = Decimal(str(raw).strip())
        except (InvalidOperation, ValueError):
            return previous
    if not value.is_finite() or abs(value) >= MAX_AMOUNT:
        return previous
    return to_money(value)


def build_price_table(raw_prices=None, base=None):
    table = {
        material: to_money(price)
        for material, price in (DEFAULT_MATERIAL_PRICES if base is None else base).items()
    }
    for material, raw in (raw_prices or {}).items():
        if material in table:
            table[material] = resolve_price(raw, table[material])
    return table


def filter_cases(cases, dentist_name, from_date=None, to_date=None):
    """
    Keeps the dentist's non-deleted cases created inside
    [start_of_day(from_date), end_of_day(to_date)]. A missing bound is open.
    """
    lower = start_of_day(from_date) if from_date else None
    upper = end_of_day(to_date) if to_date else None

    selected = []
    for case in cases:
        if case.dentist_name != dentist_name or case.is_deleted:
            continue
        if case.created_at is None:
            continue
        if lower and case.created_at < lower:
            continue
        if upper and case.created_at > upper:
            continue
        selected.append(case)
    return selected


def summarize_materials(cases, prices):
    """
    Per-material tooth counts and totals for the fixed material set.

    A case listing several materials credits its full tooth count to each
    of them; counts are never split between materials.
    """
    summary = {
        material: {'tooth_count': 0, 'price': to_money(prices.get(material) or Decimal('0')), 'total': Decimal('0')}
        for material in MATERIAL_NAMES
    }
    for case in cases:
        teeth = count_teeth(case.tooth_numbers)
        for material in split_materials(case.material):
            if material in summary:
                summary[material]['tooth_count'] += teeth

    for entry in summary.values():
        entry['total'] = entry['tooth_count'] * entry['price']
    return summary


def summary_as_rows(summary):
    """Summary entries as a list, each carrying its material name."""
    return [dict(entry, material=material) for material, entry in summary.items()]


def compute_invoice(cases, dentist_name, from_date=None, to_date=None, prices=None, paid_amount=None):
    """
    Builds the invoice for ``dentist_name`` over the date range, or returns
    ``None`` when no case falls inside it.
    """
    included = filter_cases(cases, dentist_name, from_date, to_date)
    if not included:
        return None

    price_table = build_price_table(base=prices) if prices is not None else build_price_table()
    summary = summarize_materials(included, price_table)
    subtotal = sum((entry['total'] for entry in summary.values()), Decimal('0'))
    paid = resolve_price(paid_amount, Decimal('0'))

    return {
        'dentist_name': dentist_name,
        'from_date': from_date,
        'to_date': to_date,
        'summary': summary,
        'subtotal': subtotal,
        'paid_amount': paid,
        'grand_total': subtotal - paid,
        'cases': included,
    }


def snapshot_case(case):
    """Frozen, JSON-ready copy of a case as it stood when invoiced."""
    return {
        'id': case.pk,
        'patient_name': case.patient_name,
        'dentist_name': case.dentist_name,
        'tooth_numbers': case.tooth_numbers,
        'tooth_count': count_teeth(case.tooth_numbers),
        'prosthesis_type': case.prosthesis_type,
        'material': case.material,
        'shade': case.shade,
        'created_at': case.created_at.isoformat() if case.created_at else None,
        'delivery_date': case.delivery_date.isoformat() if case.delivery_date else None,
        'notes': case.notes or '',
        'unit_price': str(case.unit_price) if case.unit_price is not None else None,
    }
