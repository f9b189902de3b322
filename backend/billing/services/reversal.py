"""
CondoSys — Payment deletion / reversal.

Deleting an approved payment undoes its ledger effects in one transaction:
advance dues it created are deleted, dues it settled return to pending, and
each owner's balance gives back the surplus the payment left as credit.
"""
import logging
from collections import defaultdict

from django.conf import settings

from ..exceptions import ReversalConflictError
from ..models import Debt, Payment
from ..money import ZERO, to_money, usd_to_local
from .approval import beneficiary_shares, lock_payment
from .ledger import mark_unpaid, save_balance
from .transactions import ledger_transaction, lock_owners, parse_id, run_with_retry


logger = logging.getLogger(__name__)


def funded_by_owner(payment):
    """New money the payment brought per owner. Credit-funded payments bring none."""
    funded = defaultdict(lambda: ZERO)
    for owner_id, amount, _, _ in beneficiary_shares(payment):
        key = str(parse_id(owner_id, 'propietario'))
        funded[key] += ZERO if payment.is_credit_funded else amount
    return funded


def delete_payment(payment_id):
    return run_with_retry(_delete_payment, payment_id)


def _delete_payment(payment_id):
    strict = bool(getattr(settings, 'BILLING_STRICT_REVERSAL', False))

    with ledger_transaction():
        payment = lock_payment(payment_id)
        payment_pk = payment.pk

        if payment.status != Payment.STATUS_APPROVED:
            payment.delete()
            logger.info('Payment %s (%s) deleted without ledger effects', payment_pk, payment.status)
            return {'payment': str(payment_pk), 'reverted': 0, 'deleted_advances': 0, 'balances': {}}

        funded = funded_by_owner(payment)
        debts = list(Debt.objects.filter(payment=payment))
        owner_ids = set(funded) | {str(d.owner_id) for d in debts}
        owners = lock_owners(owner_ids)

        applied = defaultdict(lambda: ZERO)
        reverted = deleted = 0
        for debt in debts:
            applied[str(debt.owner_id)] += usd_to_local(debt.paid_amount_usd or ZERO,
                                                        payment.exchange_rate)
            if debt.is_advance:
                debt.delete()
                deleted += 1
            else:
                mark_unpaid(debt)
                reverted += 1

        balances = {}
        for owner_id, owner in owners.items():
            surplus = funded[owner_id] - applied[owner_id]
            target = to_money(owner.balance) - surplus
            if target < ZERO:
                if strict:
                    raise ReversalConflictError(
                        f'El saldo de {owner.name} (Bs. {owner.balance}) no alcanza para '
                        f'revertir Bs. {surplus}.')
                logger.warning('Reversal of payment %s clamps owner %s at 0; Bs. %s not recovered',
                               payment_pk, owner_id, -target)
                target = ZERO
            save_balance(owner, target)
            balances[owner_id] = str(owner.balance)

        payment.delete()

    logger.info('Payment %s reversed: %d dues reopened, %d advances deleted',
                payment_pk, reverted, deleted)
    return {'payment': str(payment_pk), 'reverted': reverted, 'deleted_advances': deleted,
            'balances': balances}
