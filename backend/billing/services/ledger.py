"""
Ledger primitives shared by approval, reconciliation and debt generation.
Everything here runs inside a ledger transaction with the owner row locked.
"""
from django.conf import settings
from django.utils import timezone

from ..exceptions import ConcurrencyConflict
from ..liquidation import advance_periods
from ..models import Debt, Payment
from ..money import to_money
from ..receipts import next_receipt_number


SYSTEM_BANK_CREDIT = 'Sistema (Saldo a Favor)'
SYSTEM_BANK_ADVANCE = 'Sistema (Adelanto por Saldo)'


def advance_description():
    return getattr(settings, 'BILLING_ADVANCE_DESCRIPTION', 'Cuota de Condominio (Adelantado)')


def pending_debts(owner):
    """Unpaid dues (pending or vencida), oldest period first."""
    return list(
        Debt.objects.filter(owner=owner, status__in=Debt.UNPAID_STATUSES)
        .order_by('year', 'month', 'created_at')
    )


def mark_paid(debt, payment):
    """
    Settle `debt` in full. The write only applies while the row still holds
    the status and face value that were read; otherwise the caller's
    transaction is retried with fresh reads.
    """
    updated = (
        Debt.objects
        .filter(pk=debt.pk, status__in=Debt.UNPAID_STATUSES, amount_usd=debt.amount_usd)
        .update(status=Debt.STATUS_PAID, paid_amount_usd=debt.amount_usd,
                payment_date=payment.payment_date, payment=payment, updated_at=timezone.now())
    )
    if not updated:
        raise ConcurrencyConflict(f'La deuda {debt.year}-{debt.month:02d} cambió durante la operación.')
    debt.status = Debt.STATUS_PAID
    debt.paid_amount_usd = debt.amount_usd
    debt.payment_date = payment.payment_date
    debt.payment = payment


def mark_unpaid(debt):
    debt.status = Debt.STATUS_PENDING
    debt.paid_amount_usd = None
    debt.payment_date = None
    debt.payment = None
    debt.save(update_fields=['status', 'paid_amount_usd', 'payment_date', 'payment', 'updated_at'])


def advance_targets(owner, street='', house=''):
    """Properties that receive prepaid periods, as (street, house) tuples."""
    if street and house and owner.owns_property(street, house):
        return [(street, house)]
    return [(p['street'], p['house']) for p in owner.property_list()]


def plan_advance_slots(owner, count, targets, today=None):
    """Free (street, house, year, month) slots for `count` prepaid periods."""
    if count <= 0 or not targets:
        return []
    occupied = set()
    latest_paid = {}
    rows = Debt.objects.filter(owner=owner).values_list(
        'property_street', 'property_house', 'year', 'month', 'status')
    for street, house, year, month, status in rows:
        occupied.add((street, house, year, month))
        if status == Debt.STATUS_PAID:
            key = (street, house)
            if key not in latest_paid or (year, month) > latest_paid[key]:
                latest_paid[key] = (year, month)
    return advance_periods(targets, count, occupied, latest_paid, today or timezone.localdate())


def create_advance_debt(owner, slot, amount_usd, payment, description=None):
    street, house, year, month = slot
    return Debt.objects.create(
        owner=owner,
        property_street=street,
        property_house=house,
        year=year,
        month=month,
        amount_usd=amount_usd,
        description=description or advance_description(),
        status=Debt.STATUS_PAID,
        paid_amount_usd=amount_usd,
        payment_date=payment.payment_date,
        payment=payment,
        is_advance=True,
    )


def create_system_payment(owner, amount_local, rate, bank, reference, street='', house='',
                          observations=''):
    """
    An approved `conciliacion` payment funded from the owner's credit,
    with its own receipt number.
    """
    amount_local = to_money(amount_local)
    beneficiary = {'ownerId': str(owner.pk), 'ownerName': owner.name, 'amount': str(amount_local)}
    if street and house:
        beneficiary.update(street=street, house=house)
    return Payment.objects.create(
        beneficiaries=[beneficiary],
        total_amount=amount_local,
        exchange_rate=rate,
        payment_date=timezone.localdate(),
        reported_by=owner,
        payment_method=Payment.METHOD_RECONCILIATION,
        bank=bank,
        reference=reference,
        status=Payment.STATUS_APPROVED,
        observations=observations,
        receipt_numbers={str(owner.pk): next_receipt_number(owner)},
    )


def save_balance(owner, balance):
    owner.balance = to_money(balance)
    owner.save(update_fields=['balance', 'updated_at'])
