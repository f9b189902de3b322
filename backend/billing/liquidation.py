"""
CondoSys — Liquidation engine

Pure allocation of received money plus existing credit against an owner's
pending dues (oldest period first), whole prepaid periods, and the residual
credit. No database access here; the services feed it plain values.
"""
from dataclasses import dataclass
from decimal import Decimal

from .money import ZERO, to_decimal, to_money, usd_to_local


@dataclass(frozen=True)
class PendingDue:
    id: object
    amount_usd: Decimal
    year: int
    month: int


@dataclass(frozen=True)
class LiquidationResult:
    dues_settled: tuple
    periods_prepaid: int
    new_credit_balance: Decimal


def liquidate(received_amount, prior_credit, pending_dues, period_fee_local,
              exchange_rate) -> LiquidationResult:
    """
    Settle dues oldest-first while the money covers a whole due, then prepay
    floor(available / fee) periods when the fee is known. A due is either
    fully settled or left untouched; settlement stops at the first due that
    cannot be covered.
    """
    received = to_money(received_amount)
    credit = to_money(prior_credit)
    if received < ZERO or credit < ZERO:
        raise ValueError('received_amount and prior_credit must be >= 0')

    available = received + credit
    settled = []
    for due in sorted(pending_dues, key=lambda d: (d.year, d.month)):
        due_local = usd_to_local(due.amount_usd, exchange_rate)
        if to_money(available) < due_local:
            break
        available -= due_local
        settled.append(due)

    fee = to_money(period_fee_local)
    prepaid = 0
    if fee > ZERO and available >= fee:
        prepaid = int(available // fee)
        available -= fee * prepaid

    return LiquidationResult(
        dues_settled=tuple(settled),
        periods_prepaid=prepaid,
        new_credit_balance=to_money(available),
    )


def allocated_total(result: LiquidationResult, exchange_rate, period_fee_local) -> Decimal:
    """Money accounted for by a result: settled dues + prepaid periods + credit."""
    settled = sum((usd_to_local(d.amount_usd, exchange_rate) for d in result.dues_settled), ZERO)
    return settled + to_money(period_fee_local) * result.periods_prepaid + result.new_credit_balance


def period_after(year, month):
    if month == 12:
        return (year + 1, 1)
    return (year, month + 1)


def advance_periods(properties, count, occupied, latest_paid, today):
    """
    Pick `count` future periods for prepaid dues, round-robin over
    `properties` (list of (street, house) in the owner's order).

    Each property's cursor starts right after `latest_paid[property]`
    (a (year, month) tuple) or at today's month when it has none, and skips
    every (street, house, year, month) present in `occupied`.
    Returns a list of (street, house, year, month).
    """
    if count <= 0 or not properties:
        return []

    taken = set(occupied)
    cursors = {}
    for prop in properties:
        last = latest_paid.get(prop)
        cursors[prop] = period_after(*last) if last else (today.year, today.month)

    out = []
    i = 0
    while len(out) < count:
        prop = properties[i % len(properties)]
        year, month = cursors[prop]
        while (prop[0], prop[1], year, month) in taken:
            year, month = period_after(year, month)
        slot = (prop[0], prop[1], year, month)
        taken.add(slot)
        out.append(slot)
        cursors[prop] = period_after(year, month)
        i += 1
    return out


def to_pending_dues(debts):
    """Adapt Debt rows (or anything with id/amount_usd/year/month) to PendingDue."""
    return [PendingDue(id=d.id, amount_usd=to_decimal(d.amount_usd), year=d.year, month=d.month)
            for d in debts]
