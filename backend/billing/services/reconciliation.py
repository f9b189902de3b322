"""
CondoSys — Reconciliation with credit balance ("conciliación").

Applies idle credit to pending dues (oldest first) and then to prepaid
periods, one transaction per owner. Every due paid this way is backed by its
own system payment so the audit trail matches manual approvals.
"""
import logging

from ..exceptions import ConfigurationError
from ..liquidation import liquidate, to_pending_dues
from ..models import Owner
from ..money import ZERO, usd_to_local
from ..notifications import admin_owner_id, queue_owner_notification
from ..settings_provider import active_rate, get_condo_fee
from .ledger import (
    SYSTEM_BANK_ADVANCE, SYSTEM_BANK_CREDIT, advance_targets, create_advance_debt,
    create_system_payment, mark_paid, pending_debts, plan_advance_slots, save_balance,
)
from .transactions import ledger_transaction, lock_owner, run_with_retry


logger = logging.getLogger(__name__)


def require_active_rate():
    rate = active_rate()
    if rate is None or rate <= 0:
        raise ConfigurationError('No hay una tasa de cambio activa registrada.')
    return rate


def settle_with_credit(owner, dues, rate, fee_usd=ZERO, targets=()):
    """
    Liquidate `dues` and, when `fee_usd` > 0, prepaid periods for `targets`
    against the owner's credit alone. Returns (settled Debts, advance Debts).
    """
    by_id = {d.id: d for d in dues}
    fee_local = usd_to_local(fee_usd, rate) if targets else ZERO
    result = liquidate(ZERO, owner.balance, to_pending_dues(dues), fee_local, rate)

    settled = []
    for due in result.dues_settled:
        debt = by_id[due.id]
        payment = create_system_payment(
            owner, usd_to_local(debt.amount_usd, rate), rate, SYSTEM_BANK_CREDIT,
            f'CONC-{debt.year}-{debt.month}', debt.property_street, debt.property_house,
            observations='Pago conciliado con saldo a favor.',
        )
        mark_paid(debt, payment)
        settled.append(debt)

    advances = []
    for slot in plan_advance_slots(owner, result.periods_prepaid, list(targets)):
        street, house, year, month = slot
        payment = create_system_payment(
            owner, fee_local, rate, SYSTEM_BANK_ADVANCE, f'CONC-ADV-{year}-{month}',
            street, house, observations='Adelanto pagado con saldo a favor.',
        )
        advances.append(create_advance_debt(owner, slot, fee_usd, payment))

    save_balance(owner, result.new_credit_balance)
    return settled, advances


def reconcile_owner(owner_id):
    return run_with_retry(_reconcile_owner, owner_id)


def _reconcile_owner(owner_id):
    rate = require_active_rate()
    fee_usd = get_condo_fee()

    with ledger_transaction():
        owner = lock_owner(owner_id)
        before = owner.balance
        if before <= ZERO:
            return {'owner': str(owner.pk), 'settled': 0, 'advances': 0, 'balance': str(before)}

        settled, advances = settle_with_credit(
            owner, pending_debts(owner), rate,
            fee_usd, advance_targets(owner),
        )
        if settled or advances:
            queue_owner_notification(
                owner.pk, 'Saldo a Favor Aplicado',
                f'Se aplicaron Bs. {before - owner.balance} de tu saldo a favor.',
                href='/owner/dashboard',
            )

    logger.info('Reconciled owner %s: settled=%d advances=%d balance %s -> %s',
                owner.pk, len(settled), len(advances), before, owner.balance)
    return {'owner': str(owner.pk), 'settled': len(settled), 'advances': len(advances),
            'balance': str(owner.balance)}


def reconcile_all():
    """
    Reconcile every owner with credit. A failing owner is logged and skipped;
    the others still commit.
    """
    require_active_rate()
    excluded = admin_owner_id()
    candidates = list(Owner.objects.filter(balance__gt=0)
                      .exclude(role=Owner.ROLE_ADMIN)
                      .order_by('pk')
                      .values_list('pk', flat=True))

    summary = {'processed': 0, 'reconciled': 0, 'failed': []}
    for owner_pk in candidates:
        if excluded and str(owner_pk) == excluded:
            continue
        summary['processed'] += 1
        try:
            result = reconcile_owner(owner_pk)
        except Exception as exc:
            logger.exception('Reconciliation failed for owner %s', owner_pk)
            summary['failed'].append({'owner': str(owner_pk),
                                      'detail': getattr(exc, 'message', str(exc))})
            continue
        if result['settled'] or result['advances']:
            summary['reconciled'] += 1

    logger.info('Reconciliation sweep: processed=%d reconciled=%d failed=%d',
                summary['processed'], summary['reconciled'], len(summary['failed']))
    return summary
