"""
Read-only access to business settings: the monthly condo fee (USD)
and the dated exchange-rate table (Bs. per USD).
"""
from decimal import Decimal

from .models import BillingSettings, ExchangeRate
from .money import to_decimal, to_money


def get_condo_fee() -> Decimal:
    return to_money(BillingSettings.load().condo_fee)


def applicable_rate(on_date):
    """Most recent rate with date <= on_date, or None."""
    rate = (ExchangeRate.objects.filter(date__lte=on_date)
            .order_by('-date', '-created_at').first())
    return to_decimal(rate.rate) if rate else None


def active_rate():
    """The rate flagged active, else the most recent one, else None."""
    rate = ExchangeRate.objects.filter(active=True).order_by('-date', '-created_at').first()
    if rate is None:
        rate = ExchangeRate.objects.order_by('-date', '-created_at').first()
    return to_decimal(rate.rate) if rate else None
