"""
Money math for payments: VAT, card commission and net settlement amounts.

Products are computed on binary floats in the same order as the amounts
already stored by the institution API. Every field is then rounded on its own
to two decimals, half away from zero, on the exact value of the float.

Inputs are not validated here; zero or negative amounts and rates pass
straight through.
"""

from decimal import ROUND_HALF_UP, Decimal, localcontext
from typing import Iterable, Union

from .models import CommissionBreakdown, NetAmountBreakdown, VatBreakdown, Weekday
from .recurrence import count_weekday_occurrences_in_month

Number = Union[int, float, Decimal]

CENT = Decimal("0.01")


def round_money(value: Number) -> Decimal:
    """
    Round to cents, half away from zero, on the exact value given.

    NaN and infinities are returned unrounded.
    """
    exact = Decimal(value)
    if not exact.is_finite():
        return exact
    with localcontext() as context:
        context.prec = max(context.prec, exact.adjusted() + 3)
        return exact.quantize(CENT, rounding=ROUND_HALF_UP)


def calculate_vat(amount: Number, vat_rate: Number) -> VatBreakdown:
    """VAT added on top of ``amount``."""
    amount = float(amount)
    vat = amount * float(vat_rate) / 100
    total = amount + vat
    return VatBreakdown(
        amount=round_money(amount),
        vat=round_money(vat),
        total=round_money(total),
    )


def calculate_commission(amount: Number, commission_rate: Number) -> CommissionBreakdown:
    """Card commission added on top of ``amount``."""
    amount = float(amount)
    commission = amount * float(commission_rate) / 100
    total = amount + commission
    return CommissionBreakdown(
        amount=round_money(amount),
        commission=round_money(commission),
        total=round_money(total),
    )


def calculate_net_amount(
    gross_amount: Number,
    commission_rate: Number = 0,
    vat_rate: Number = 0,
    is_invoiced: bool = False,
) -> NetAmountBreakdown:
    """
    What the institution keeps of a gross payment.

    Commission is deducted whenever a positive rate is given. VAT only
    applies to invoiced payments; for others it stays zero even when a
    rate is supplied.
    """
    gross_amount = float(gross_amount)
    commission = 0.0
    vat = 0.0

    if float(commission_rate) > 0:
        commission = gross_amount * float(commission_rate) / 100

    if is_invoiced and float(vat_rate) > 0:
        vat = gross_amount * float(vat_rate) / 100

    net_amount = gross_amount - commission - vat

    return NetAmountBreakdown(
        gross_amount=round_money(gross_amount),
        commission=round_money(commission),
        vat=round_money(vat),
        net_amount=round_money(net_amount),
    )


def per_lesson_fee(monthly_fee: Number, year: int, month: int, weekdays: Iterable[int]) -> Decimal:
    """
    Share of a monthly fee per lesson held in that month.

    ``weekdays`` are the days the course meets on; ``month`` is 0-based.
    A month without any lesson yields zero.
    """
    lesson_count = sum(
        count_weekday_occurrences_in_month(year, month, weekday)
        for weekday in {Weekday(day) for day in weekdays}
    )
    if lesson_count == 0:
        return round_money(0)
    return round_money(float(monthly_fee) / lesson_count)
