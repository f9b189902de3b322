"""
CondoSys — Payment approval and rejection.

Approval runs the liquidation engine once per beneficiary inside one
transaction: settled dues become paid, prepaid periods become paid advance
dues, the remainder becomes the owner's credit, and a receipt number is
stored per owner. Any failure leaves the ledger untouched.
"""
import logging
from decimal import Decimal, InvalidOperation

from django.utils import timezone

from ..exceptions import (
    AlreadyProcessedError, ConfigurationError, NotFoundError, PaymentValidationError,
)
from ..liquidation import liquidate, to_pending_dues
from ..models import Payment
from ..money import ZERO, to_decimal, to_money, usd_to_local
from ..notifications import queue_owner_notification
from ..receipts import next_receipt_number
from ..settings_provider import applicable_rate, get_condo_fee
from .ledger import (
    advance_targets, create_advance_debt, mark_paid, pending_debts, plan_advance_slots,
    save_balance,
)
from .transactions import ledger_transaction, lock_owners, parse_id, run_with_retry


logger = logging.getLogger(__name__)


def lock_payment(payment_id):
    pk = parse_id(payment_id, 'pago')
    try:
        return Payment.objects.select_for_update().get(pk=pk)
    except Payment.DoesNotExist:
        raise NotFoundError(f'No se encontró el pago {payment_id}.')


def beneficiary_shares(payment):
    """[(owner_id, amount, street, house)] in the payment's order."""
    entries = payment.beneficiaries or []
    shares = []
    for b in entries:
        owner_id = str(b.get('ownerId') or '').strip()
        if not owner_id:
            raise PaymentValidationError('Cada beneficiario debe tener un propietario.')
        raw = b.get('amount')
        if raw in (None, '') and len(entries) == 1:
            raw = payment.total_amount
        try:
            amount = to_money(raw)
        except (InvalidOperation, ValueError):
            raise PaymentValidationError(f'Monto inválido para el beneficiario {owner_id}.')
        if amount < ZERO:
            raise PaymentValidationError(f'Monto inválido para el beneficiario {owner_id}.')
        shares.append((owner_id, amount, str(b.get('street') or ''), str(b.get('house') or '')))
    if not shares:
        raise PaymentValidationError('El pago no tiene beneficiarios.')
    return shares


def resolve_rate(payment, fee_usd):
    rate = applicable_rate(payment.payment_date)
    if payment.payment_method == Payment.METHOD_ADVANCE:
        if rate is None or rate <= 0:
            stored = to_decimal(payment.exchange_rate)
            rate = stored if stored > 0 else Decimal('1')
        return rate
    if fee_usd <= ZERO:
        raise ConfigurationError('La cuota de condominio no está configurada.')
    if rate is None or rate <= 0:
        raise ConfigurationError(
            f'No hay una tasa de cambio registrada para la fecha {payment.payment_date}.')
    return rate


def approve_payment(payment_id):
    return run_with_retry(_approve_payment, payment_id)


def _approve_payment(payment_id):
    with ledger_transaction():
        payment = lock_payment(payment_id)
        if payment.status == Payment.STATUS_APPROVED:
            raise AlreadyProcessedError('Este pago ya fue aprobado.')

        fee_usd = get_condo_fee()
        rate = resolve_rate(payment, fee_usd)
        fee_local = usd_to_local(fee_usd, rate)

        shares = beneficiary_shares(payment)
        owners = lock_owners([s[0] for s in shares])
        for owner_id, *_ in shares:
            if str(parse_id(owner_id, 'propietario')) not in owners:
                raise NotFoundError(f'No se encontró el propietario {owner_id}.')

        payment.exchange_rate = rate
        receipts = dict(payment.receipt_numbers or {})
        today = timezone.localdate()

        for owner_id, amount, street, house in shares:
            owner = owners[str(parse_id(owner_id))]
            debts = pending_debts(owner)
            by_id = {d.id: d for d in debts}
            targets = advance_targets(owner, street, house)
            result = liquidate(
                amount, owner.balance, to_pending_dues(debts),
                fee_local if targets else ZERO, rate,
            )

            for due in result.dues_settled:
                mark_paid(by_id[due.id], payment)
            for slot in plan_advance_slots(owner, result.periods_prepaid, targets, today):
                create_advance_debt(owner, slot, fee_usd, payment)

            save_balance(owner, result.new_credit_balance)

            key = str(owner.pk)
            if key not in receipts:
                receipts[key] = next_receipt_number(owner)

            queue_owner_notification(
                owner.pk,
                'Pago Aprobado',
                f'Tu pago de Bs. {amount} ha sido aprobado y aplicado.',
                href='/owner/dashboard',
                payment_id=payment.pk,
            )
            logger.info(
                'Payment %s owner=%s amount=%s settled=%d prepaid=%d balance=%s',
                payment.pk, owner.pk, amount, len(result.dues_settled),
                result.periods_prepaid, result.new_credit_balance,
            )

        payment.status = Payment.STATUS_APPROVED
        payment.receipt_numbers = receipts
        note = f'Pago aprobado. Tasa aplicada: Bs. {rate}.'
        payment.observations = f'{note} {payment.observations}'.strip() if payment.observations else note
        payment.save(update_fields=['status', 'exchange_rate', 'receipt_numbers', 'observations',
                                    'updated_at'])

    logger.info('Payment %s approved at rate %s', payment.pk, rate)
    return payment


def reject_payment(payment_id, reason):
    reason = (reason or '').strip()
    if not reason:
        raise PaymentValidationError('Debe indicar el motivo del rechazo.')
    return run_with_retry(_reject_payment, payment_id, reason)


def _reject_payment(payment_id, reason):
    with ledger_transaction():
        payment = lock_payment(payment_id)
        if payment.status == Payment.STATUS_APPROVED:
            raise AlreadyProcessedError('No se puede rechazar un pago aprobado.')
        payment.status = Payment.STATUS_REJECTED
        payment.observations = reason
        payment.save(update_fields=['status', 'observations', 'updated_at'])
    logger.info('Payment %s rejected: %s', payment.pk, reason)
    return payment
