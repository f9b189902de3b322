"""
CondoSys — Payment intake.

`report_payment` validates a reported payment at the boundary and stores it
as `pendiente`; nothing touches the ledger until it is approved.
`register_advance_payment` records an admin-registered prepayment in USD.
"""
import logging
from datetime import date
from decimal import InvalidOperation

from django.utils import timezone
from django.utils.dateparse import parse_date

from ..exceptions import PaymentValidationError
from ..models import Debt, Owner, Payment
from ..money import TWOPLACES, ZERO, to_money
from ..notifications import notify_admin, queue_owner_notification
from ..receipts import next_receipt_number
from ..settings_provider import applicable_rate
from .ledger import create_advance_debt
from .transactions import ledger_transaction, lock_owner, parse_id, run_with_retry


logger = logging.getLogger(__name__)

REPORTABLE_METHODS = ('transferencia', 'movil', 'efectivo', 'zelle')
ADVANCE_DESCRIPTION = 'Cuota de Condominio (Pagada por adelantado)'


def _money_or_error(value, message):
    try:
        return to_money(value)
    except (InvalidOperation, ValueError, TypeError):
        raise PaymentValidationError(message)


def _date_or_error(value):
    if isinstance(value, date):
        return value
    parsed = parse_date(str(value or ''))
    if parsed is None:
        raise PaymentValidationError('La fecha del pago es obligatoria.')
    return parsed


def report_payment(*, beneficiaries, total_amount, payment_date, payment_method, bank, reference,
                   receipt_url='', observations='', reported_by=None):
    reference = (reference or '').strip()
    bank = (bank or '').strip()
    if payment_method not in REPORTABLE_METHODS:
        raise PaymentValidationError('Método de pago inválido.')
    if not bank or not reference:
        raise PaymentValidationError('Por favor, complete todos los campos obligatorios.')
    if len(reference) < 4:
        raise PaymentValidationError('La referencia debe tener al menos 4 dígitos.')
    payment_date = _date_or_error(payment_date)
    total = _money_or_error(total_amount, 'El monto total es inválido.')
    if total <= ZERO:
        raise PaymentValidationError('El monto total debe ser mayor a cero.')

    if not beneficiaries:
        raise PaymentValidationError('Debe indicar al menos un beneficiario.')
    cleaned = []
    assigned = ZERO
    for b in beneficiaries:
        owner_id = str(b.get('ownerId') or '').strip()
        amount = _money_or_error(b.get('amount'), 'Cada beneficiario debe tener un monto válido.')
        if not owner_id or amount <= ZERO:
            raise PaymentValidationError('Cada beneficiario debe tener un propietario y un monto mayor a cero.')
        try:
            owner = Owner.objects.get(pk=parse_id(owner_id, 'propietario'))
        except Owner.DoesNotExist:
            raise PaymentValidationError(f'El propietario {owner_id} no existe.')
        entry = {'ownerId': str(owner.pk), 'ownerName': owner.name, 'amount': str(amount)}
        if b.get('street') and b.get('house'):
            entry.update(street=str(b['street']), house=str(b['house']))
        cleaned.append(entry)
        assigned += amount

    if abs(assigned - total) > TWOPLACES:
        raise PaymentValidationError(
            f'La suma de los montos asignados (Bs. {assigned}) no coincide con el monto total (Bs. {total}).')

    if Payment.objects.filter(reference=reference, total_amount=total, payment_date=payment_date).exists():
        raise PaymentValidationError(
            'Ya existe un pago registrado con esta misma referencia, monto y fecha.')

    rate = applicable_rate(payment_date)
    with ledger_transaction():
        payment = Payment.objects.create(
            beneficiaries=cleaned,
            total_amount=total,
            exchange_rate=rate or ZERO,
            payment_date=payment_date,
            reported_at=timezone.now(),
            reported_by=reported_by,
            payment_method=payment_method,
            bank=bank,
            reference=reference,
            status=Payment.STATUS_PENDING,
            receipt_url=receipt_url or '',
            observations=observations or '',
        )
        who = reported_by.name if reported_by else cleaned[0]['ownerName']
        notify_admin(
            'Nuevo Pago Reportado',
            f'{who} ha reportado un pago de Bs. {total}.',
            href='/admin/payments/verify',
            payment_id=payment.pk,
        )

    logger.info('Payment %s reported: ref=%s total=%s', payment.pk, reference, total)
    return payment


def register_advance_payment(owner_id, property, periods, total_usd, observations='',
                             payment_date=None):
    """
    Record an owner's prepayment of `periods` [(year, month), ...] for one
    property, paid in USD. Creates paid advance dues and one approved
    `adelanto` payment (rate 1), reversible with `delete_payment`.
    """
    street = str((property or {}).get('street') or '').strip()
    house = str((property or {}).get('house') or '').strip()
    total_usd = _money_or_error(total_usd, 'El monto es inválido.')
    try:
        periods = sorted({(int(y), int(m)) for y, m in periods or []})
    except (TypeError, ValueError):
        raise PaymentValidationError('Período inválido.')
    if not street or not house or not periods or total_usd <= ZERO:
        raise PaymentValidationError(
            'Debe seleccionar un propietario, al menos un mes y un monto válido.')
    if any(not 1 <= m <= 12 for _, m in periods):
        raise PaymentValidationError('Período inválido.')
    return run_with_retry(_register_advance_payment, owner_id, street, house, periods,
                          total_usd, observations, payment_date or timezone.localdate())


def _register_advance_payment(owner_id, street, house, periods, total_usd, observations,
                              payment_date):
    with ledger_transaction():
        owner = lock_owner(owner_id)
        if not owner.owns_property(street, house):
            raise PaymentValidationError(f'{owner.name} no tiene la propiedad {street}-{house}.')

        taken = sorted(
            (y, m) for y, m in Debt.objects.filter(
                owner=owner, property_street=street, property_house=house,
            ).values_list('year', 'month')
            if (y, m) in periods
        )
        if taken:
            labels = ', '.join(f'{y}-{m:02d}' for y, m in taken)
            raise PaymentValidationError(f'Los meses {labels} ya tienen una deuda registrada.')

        share = to_money(total_usd / len(periods))
        amounts = [share] * len(periods)
        amounts[-1] = total_usd - share * (len(periods) - 1)

        payment = Payment.objects.create(
            beneficiaries=[{'ownerId': str(owner.pk), 'ownerName': owner.name,
                            'street': street, 'house': house, 'amount': str(total_usd)}],
            total_amount=total_usd,
            exchange_rate=1,
            payment_date=payment_date,
            reported_by=owner,
            payment_method=Payment.METHOD_ADVANCE,
            bank='N/A',
            reference='Adelanto ' + ', '.join(f'{y}-{m:02d}' for y, m in periods),
            status=Payment.STATUS_APPROVED,
            observations=observations or '',
            receipt_numbers={str(owner.pk): next_receipt_number(owner)},
        )
        for (year, month), amount in zip(periods, amounts):
            create_advance_debt(owner, (street, house, year, month), amount, payment,
                                description=ADVANCE_DESCRIPTION)

        queue_owner_notification(
            owner.pk, 'Pago por Adelantado Registrado',
            f'Se registró el pago de {len(periods)} meses para {street}-{house}.',
            href='/owner/dashboard', payment_id=payment.pk,
        )

    logger.info('Advance payment %s for owner %s: %d periods, %s USD',
                payment.pk, owner.pk, len(periods), total_usd)
    return payment
