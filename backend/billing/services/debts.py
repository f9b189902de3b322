"""
CondoSys — Debt generation and maintenance.

Generators check for existing dues of the period under the owner row lock
and create only the missing ones, so running them twice creates nothing new.
New dues are settled right away when the owner's credit covers them.
"""
import logging

from django.db.models import Q
from django.utils import timezone

from ..exceptions import ConfigurationError, NotFoundError, PaymentValidationError
from ..models import Debt, HistoricalPayment, Owner
from ..money import ZERO, to_money, usd_to_local
from ..notifications import admin_owner_id
from ..settings_provider import active_rate, get_condo_fee
from .reconciliation import settle_with_credit
from .transactions import ledger_transaction, lock_owner, lock_owners, parse_id, run_with_retry


logger = logging.getLogger(__name__)

MONTHLY_DESCRIPTION = 'Cuota de Condominio'


def _validate_period(year, month):
    try:
        year, month = int(year), int(month)
    except (TypeError, ValueError):
        raise PaymentValidationError('Período inválido.')
    if not 1 <= month <= 12 or year < 1:
        raise PaymentValidationError(f'Período inválido: {year}-{month}.')
    return year, month


def _periods(from_period, to_period):
    year, month = from_period
    while (year, month) <= to_period:
        yield year, month
        year, month = (year + 1, 1) if month == 12 else (year, month + 1)


# ═══════════════════════════════════════════════════════════
#  MONTHLY / MASS GENERATION
# ═══════════════════════════════════════════════════════════

def generate_monthly_debts(year, month):
    """Create the period's condo-fee due for every owner property that lacks one."""
    year, month = _validate_period(year, month)
    return run_with_retry(_generate_monthly_debts, year, month)


def _generate_monthly_debts(year, month):
    fee_usd = get_condo_fee()
    if fee_usd <= ZERO:
        raise ConfigurationError('La cuota de condominio no está configurada o es cero.')
    rate = active_rate()

    excluded = admin_owner_id()
    created = []
    with ledger_transaction():
        ids = (Owner.objects.exclude(role=Owner.ROLE_ADMIN)
               .values_list('pk', flat=True))
        owners = lock_owners([pk for pk in ids if str(pk) != excluded])
        existing = set(
            Debt.objects.filter(owner__in=owners.values(), year=year, month=month)
            .values_list('owner_id', 'property_street', 'property_house')
        )

        for owner in owners.values():
            new_debts = []
            for prop in owner.property_list():
                if (owner.pk, prop['street'], prop['house']) in existing:
                    continue
                new_debts.append(Debt.objects.create(
                    owner=owner, property_street=prop['street'], property_house=prop['house'],
                    year=year, month=month, amount_usd=fee_usd,
                    description=MONTHLY_DESCRIPTION, status=Debt.STATUS_PENDING,
                ))
            if new_debts and rate and rate > 0 and owner.balance > ZERO:
                settle_with_credit(owner, new_debts, rate)
            created.extend(new_debts)

    logger.info('Generated %d debts for %d-%02d (fee %s USD)', len(created), year, month, fee_usd)
    return created


def generate_mass_debt(owner_id, property, description, amount_usd, from_period, to_period):
    """Create dues for one property over [from_period, to_period], skipping occupied periods."""
    description = (description or '').strip()
    if not description:
        raise PaymentValidationError('La descripción es obligatoria.')
    amount_usd = to_money(amount_usd)
    if amount_usd <= ZERO:
        raise PaymentValidationError('El monto debe ser mayor a cero.')
    street = str((property or {}).get('street') or '').strip()
    house = str((property or {}).get('house') or '').strip()
    if not street or not house:
        raise PaymentValidationError('Debe indicar la propiedad (calle y casa).')
    from_period = _validate_period(*from_period)
    to_period = _validate_period(*to_period)
    if from_period > to_period:
        raise PaymentValidationError('La fecha "Desde" no puede ser posterior a la fecha "Hasta".')
    return run_with_retry(_generate_mass_debt, owner_id, street, house, description,
                          amount_usd, from_period, to_period)


def _generate_mass_debt(owner_id, street, house, description, amount_usd, from_period, to_period):
    rate = active_rate()
    if rate is None or rate <= 0:
        raise ConfigurationError('No hay una tasa de cambio activa o registrada configurada.')

    with ledger_transaction():
        owner = lock_owner(owner_id)
        occupied = set(
            Debt.objects.filter(owner=owner, property_street=street, property_house=house)
            .values_list('year', 'month')
        )
        occupied |= set(
            HistoricalPayment.objects.filter(owner=owner, property_street=street, property_house=house)
            .values_list('reference_year', 'reference_month')
        )

        created = []
        for year, month in _periods(from_period, to_period):
            if (year, month) in occupied:
                continue
            created.append(Debt.objects.create(
                owner=owner, property_street=street, property_house=house,
                year=year, month=month, amount_usd=amount_usd,
                description=description, status=Debt.STATUS_PENDING,
            ))
        if created and owner.balance > ZERO:
            settle_with_credit(owner, created, rate)

    logger.info('Mass debt for owner %s %s-%s: %d created', owner.pk, street, house, len(created))
    return created


# ═══════════════════════════════════════════════════════════
#  SINGLE DEBT MAINTENANCE
# ═══════════════════════════════════════════════════════════

def _debt_owner_id(debt_id):
    try:
        return Debt.objects.values_list('owner_id', flat=True).get(pk=parse_id(debt_id, 'deuda'))
    except Debt.DoesNotExist:
        raise NotFoundError(f'No se encontró la deuda {debt_id}.')


def _lock_debt(debt_id):
    try:
        return Debt.objects.select_for_update().get(pk=parse_id(debt_id, 'deuda'))
    except Debt.DoesNotExist:
        raise NotFoundError(f'No se encontró la deuda {debt_id}.')


def update_debt(debt_id, description=None, amount_usd=None):
    """Edit the description or face value of an unpaid due."""
    return run_with_retry(_update_debt, debt_id, description, amount_usd)


def _update_debt(debt_id, description, amount_usd):
    with ledger_transaction():
        lock_owner(_debt_owner_id(debt_id))
        debt = _lock_debt(debt_id)
        if debt.is_paid:
            raise PaymentValidationError('No se puede editar una deuda pagada.')
        if description is not None:
            description = description.strip()
            if not description:
                raise PaymentValidationError('La descripción es obligatoria.')
            debt.description = description
        if amount_usd is not None:
            amount_usd = to_money(amount_usd)
            if amount_usd <= ZERO:
                raise PaymentValidationError('El monto debe ser mayor a cero.')
            debt.amount_usd = amount_usd
        debt.save(update_fields=['description', 'amount_usd', 'updated_at'])
    logger.info('Debt %s updated: amount=%s USD', debt.pk, debt.amount_usd)
    return debt


def delete_debt(debt_id):
    """
    Delete a due. A paid due gives its value back to the owner as credit at
    the active rate, and its payment goes too when it backed only this due.
    """
    return run_with_retry(_delete_debt, debt_id)


def _delete_debt(debt_id):
    with ledger_transaction():
        owner = lock_owner(_debt_owner_id(debt_id))
        debt = _lock_debt(debt_id)

        credited = ZERO
        if debt.is_paid:
            rate = active_rate()
            if rate is None or rate <= 0:
                raise ConfigurationError('No hay una tasa de cambio activa para devolver el monto pagado.')
            credited = usd_to_local(debt.paid_amount_usd or debt.amount_usd, rate)
            owner.balance = to_money(owner.balance + credited)
            owner.save(update_fields=['balance', 'updated_at'])

            payment = debt.payment
            if payment is not None and not payment.debts.exclude(pk=debt.pk).exists():
                payment.delete()

        debt.delete()

    logger.info('Debt %s deleted; credited Bs. %s to owner %s', debt_id, credited, owner.pk)
    return {'debt': str(debt_id), 'credited': str(credited), 'balance': str(owner.balance)}


def mark_overdue_debts(today=None):
    """Pending dues of periods before the current month become `vencida`."""
    today = today or timezone.localdate()
    with ledger_transaction():
        count = (Debt.objects.filter(status=Debt.STATUS_PENDING)
                 .filter(Q(year__lt=today.year) | Q(year=today.year, month__lt=today.month))
                 .update(status=Debt.STATUS_OVERDUE))
    logger.info('Marked %d debts as overdue (before %d-%02d)', count, today.year, today.month)
    return count
