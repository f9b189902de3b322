"""
Payment approval and rejection against the ledger.
"""
from datetime import date
from decimal import Decimal
from unittest import mock

from django.db import DatabaseError, OperationalError
from django.test import override_settings

from billing.exceptions import (
    AlreadyProcessedError, ConcurrencyConflict, ConfigurationError, NotFoundError,
    PaymentValidationError,
)
from billing.models import BillingSettings, Debt, ExchangeRate, Notification, Payment
from billing.services import approval, approve_payment, reject_payment, update_debt
from .base import BaseTestCase


class ApprovePaymentTests(BaseTestCase):

    def test_settles_due_and_keeps_surplus(self):
        jan = self.make_debt(2024, 1)
        payment = self.make_payment('1200')

        approve_payment(payment.pk)

        jan.refresh_from_db()
        self.owner.refresh_from_db()
        payment.refresh_from_db()
        self.assertEqual(jan.status, Debt.STATUS_PAID)
        self.assertEqual(jan.paid_amount_usd, Decimal('25.00'))
        self.assertEqual(jan.payment_id, payment.pk)
        self.assertEqual(jan.payment_date, date(2024, 1, 15))
        self.assertEqual(self.owner.balance, Decimal('200.00'))
        self.assertEqual(payment.status, Payment.STATUS_APPROVED)
        self.assertFalse(Debt.objects.filter(is_advance=True).exists())

    def test_surplus_prepays_next_period(self):
        self.make_debt(2024, 1)
        payment = self.make_payment('2200')

        approve_payment(payment.pk)

        advance = Debt.objects.get(is_advance=True)
        self.assertEqual((advance.year, advance.month), (2024, 2))
        self.assertEqual(advance.status, Debt.STATUS_PAID)
        self.assertIn('(Adelantado)', advance.description)
        self.assertEqual(advance.payment_id, payment.pk)
        self.owner.refresh_from_db()
        self.assertEqual(self.owner.balance, Decimal('200.00'))

    def test_partial_payment_settles_only_oldest(self):
        jan = self.make_debt(2024, 1)
        feb = self.make_debt(2024, 2)
        payment = self.make_payment('1000')

        approve_payment(payment.pk)

        jan.refresh_from_db()
        feb.refresh_from_db()
        self.owner.refresh_from_db()
        self.assertEqual(jan.status, Debt.STATUS_PAID)
        self.assertEqual(feb.status, Debt.STATUS_PENDING)
        self.assertIsNone(feb.paid_amount_usd)
        self.assertEqual(self.owner.balance, Decimal('0.00'))
        self.assertFalse(Debt.objects.filter(is_advance=True).exists())

    def test_overdue_dues_are_settled_like_pending(self):
        old = self.make_debt(2023, 12, status=Debt.STATUS_OVERDUE)
        approve_payment(self.make_payment('1000').pk)
        old.refresh_from_db()
        self.assertEqual(old.status, Debt.STATUS_PAID)

    def test_existing_credit_joins_the_payment(self):
        self.set_balance(self.owner, '500')
        jan = self.make_debt(2024, 1)
        approve_payment(self.make_payment('500').pk)
        jan.refresh_from_db()
        self.owner.refresh_from_db()
        self.assertEqual(jan.status, Debt.STATUS_PAID)
        self.assertEqual(self.owner.balance, Decimal('0.00'))

    def test_observations_rate_and_receipt(self):
        self.make_debt(2024, 1)
        payment = self.make_payment('1000')

        approve_payment(payment.pk)

        payment.refresh_from_db()
        self.assertTrue(payment.observations.startswith('Pago aprobado. Tasa aplicada: Bs. 40'))
        self.assertEqual(payment.exchange_rate, Decimal('40.0000'))
        self.assertEqual(payment.receipt_numbers, {str(self.owner.pk): 'REC-A-101-00001'})
        self.owner.refresh_from_db()
        self.assertEqual(self.owner.receipt_counter, 1)

    def test_applicable_rate_is_latest_on_or_before_payment_date(self):
        ExchangeRate.objects.create(date=date(2024, 2, 1), rate=Decimal('50'))
        self.make_debt(2024, 1)
        payment = self.make_payment('1250', payment_date=date(2024, 2, 10))

        approve_payment(payment.pk)

        payment.refresh_from_db()
        self.owner.refresh_from_db()
        self.assertEqual(payment.exchange_rate, Decimal('50.0000'))
        self.assertEqual(self.owner.balance, Decimal('0.00'))

    def test_notification_sent_after_commit(self):
        self.make_debt(2024, 1)
        payment = self.make_payment('1000')

        with self.captureOnCommitCallbacks(execute=True):
            approve_payment(payment.pk)

        note = Notification.objects.get(owner=self.owner)
        self.assertEqual(note.title, 'Pago Aprobado')
        self.assertEqual(note.href, '/owner/dashboard')
        self.assertEqual(note.payment_id, payment.pk)

    def test_second_approval_raises_and_changes_nothing(self):
        self.make_debt(2024, 1)
        payment = self.make_payment('1200')
        approve_payment(payment.pk)
        self.owner.refresh_from_db()
        balance = self.owner.balance

        with self.assertRaises(AlreadyProcessedError):
            approve_payment(payment.pk)

        self.owner.refresh_from_db()
        self.assertEqual(self.owner.balance, balance)
        self.assertEqual(Debt.objects.filter(status=Debt.STATUS_PAID).count(), 1)

    def test_missing_fee_is_configuration_error(self):
        BillingSettings.objects.filter(pk=1).update(condo_fee=0)
        jan = self.make_debt(2024, 1)
        with self.assertRaises(ConfigurationError):
            approve_payment(self.make_payment('1000').pk)
        jan.refresh_from_db()
        self.assertEqual(jan.status, Debt.STATUS_PENDING)

    def test_missing_rate_for_date_is_configuration_error(self):
        payment = self.make_payment('1000', payment_date=date(2023, 6, 1))
        with self.assertRaises(ConfigurationError):
            approve_payment(payment.pk)
        payment.refresh_from_db()
        self.assertEqual(payment.status, Payment.STATUS_PENDING)

    def test_advance_method_is_exempt_from_rate(self):
        ExchangeRate.objects.all().delete()
        payment = self.make_payment('100', method=Payment.METHOD_ADVANCE,
                                    payment_date=date(2023, 6, 1))
        approve_payment(payment.pk)
        payment.refresh_from_db()
        self.assertEqual(payment.status, Payment.STATUS_APPROVED)
        self.assertEqual(payment.exchange_rate, Decimal('40.0000'))

    def test_unknown_payment(self):
        with self.assertRaises(NotFoundError):
            approve_payment('00000000-0000-0000-0000-000000000000')

    def test_unknown_beneficiary_rolls_back(self):
        jan = self.make_debt(2024, 1)
        payment = self.make_payment('1000')
        payment.beneficiaries = payment.beneficiaries + [
            {'ownerId': '00000000-0000-0000-0000-000000000001', 'amount': '10'}]
        payment.save()

        with self.assertRaises(NotFoundError):
            approve_payment(payment.pk)

        jan.refresh_from_db()
        payment.refresh_from_db()
        self.assertEqual(jan.status, Debt.STATUS_PENDING)
        self.assertEqual(payment.status, Payment.STATUS_PENDING)


class MultiBeneficiaryTests(BaseTestCase):

    def test_each_beneficiary_uses_its_share(self):
        other = self.make_owner('A-102', 'María López', [{'street': 'Calle 1', 'house': 'Casa 2'}])
        mine = self.make_debt(2024, 1)
        theirs = self.make_debt(2024, 1, owner=other, house='Casa 2')
        payment = Payment.objects.create(
            beneficiaries=[
                {'ownerId': str(self.owner.pk), 'ownerName': self.owner.name, 'amount': '1000'},
                {'ownerId': str(other.pk), 'ownerName': other.name, 'amount': '1100'},
            ],
            total_amount=Decimal('2100'), payment_date=date(2024, 1, 15),
            payment_method='transferencia', bank='Banesco', reference='998877',
        )

        approve_payment(payment.pk)

        mine.refresh_from_db()
        theirs.refresh_from_db()
        other.refresh_from_db()
        payment.refresh_from_db()
        self.assertEqual(mine.status, Debt.STATUS_PAID)
        self.assertEqual(theirs.status, Debt.STATUS_PAID)
        self.assertEqual(other.balance, Decimal('100.00'))
        self.assertEqual(set(payment.receipt_numbers), {str(self.owner.pk), str(other.pk)})
        self.assertEqual(payment.receipt_numbers[str(other.pk)], 'REC-A-102-00001')


class AdvanceAllocationTests(BaseTestCase):

    def setUp(self):
        super().setUp()
        self.owner.properties = [{'street': 'Calle 1', 'house': 'Casa 1'},
                                 {'street': 'Calle 2', 'house': 'Casa 7'}]
        self.owner.save()
        self.make_debt(2024, 1, status=Debt.STATUS_PAID)
        self.make_debt(2024, 3, street='Calle 2', house='Casa 7', status=Debt.STATUS_PAID)

    def advance_slots(self):
        return list(Debt.objects.filter(is_advance=True)
                    .order_by('created_at')
                    .values_list('property_street', 'property_house', 'year', 'month'))

    def test_round_robin_in_property_order(self):
        approve_payment(self.make_payment('3000').pk)
        self.assertEqual(sorted(self.advance_slots()), sorted([
            ('Calle 1', 'Casa 1', 2024, 2),
            ('Calle 2', 'Casa 7', 2024, 4),
            ('Calle 1', 'Casa 1', 2024, 3),
        ]))
        self.owner.refresh_from_db()
        self.assertEqual(self.owner.balance, Decimal('0.00'))

    def test_named_property_takes_every_period(self):
        approve_payment(self.make_payment('3000', street='Calle 2', house='Casa 7').pk)
        self.assertEqual(sorted(self.advance_slots()), [
            ('Calle 2', 'Casa 7', 2024, 4),
            ('Calle 2', 'Casa 7', 2024, 5),
            ('Calle 2', 'Casa 7', 2024, 6),
        ])

    def test_occupied_period_is_skipped(self):
        self.owner.properties = [{'street': 'Calle 1', 'house': 'Casa 1'}]
        self.owner.save()
        # unaffordable pending due in March blocks that slot
        self.make_debt(2024, 3, amount='1000')
        approve_payment(self.make_payment('2000').pk)
        self.assertEqual(sorted(self.advance_slots()), [
            ('Calle 1', 'Casa 1', 2024, 2),
            ('Calle 1', 'Casa 1', 2024, 4),
        ])

    def test_owner_without_properties_keeps_credit(self):
        self.owner.properties = []
        self.owner.save()
        approve_payment(self.make_payment('3000').pk)
        self.assertEqual(self.advance_slots(), [])
        self.owner.refresh_from_db()
        self.assertEqual(self.owner.balance, Decimal('3000.00'))


class RejectPaymentTests(BaseTestCase):

    def test_reject_pending(self):
        jan = self.make_debt(2024, 1)
        payment = self.make_payment('1000')

        reject_payment(payment.pk, 'reference mismatch')

        payment.refresh_from_db()
        jan.refresh_from_db()
        self.owner.refresh_from_db()
        self.assertEqual(payment.status, Payment.STATUS_REJECTED)
        self.assertEqual(payment.observations, 'reference mismatch')
        self.assertEqual(jan.status, Debt.STATUS_PENDING)
        self.assertEqual(self.owner.balance, Decimal('0.00'))

    def test_reason_required(self):
        payment = self.make_payment('1000')
        with self.assertRaises(PaymentValidationError):
            reject_payment(payment.pk, '   ')

    def test_cannot_reject_approved(self):
        payment = self.make_payment('1000')
        approve_payment(payment.pk)
        with self.assertRaises(AlreadyProcessedError):
            reject_payment(payment.pk, 'late')

    def test_unknown_payment(self):
        with self.assertRaises(NotFoundError):
            reject_payment('not-a-uuid', 'x')


class ApprovalConcurrencyTests(BaseTestCase):

    def test_lock_failure_is_retried_with_fresh_reads(self):
        jan = self.make_debt(2024, 1)
        payment = self.make_payment('1000')

        with mock.patch.object(approval, 'get_condo_fee',
                               side_effect=[OperationalError('database is locked'), Decimal('25.00')]):
            approve_payment(payment.pk)

        jan.refresh_from_db()
        payment.refresh_from_db()
        self.assertEqual(jan.status, Debt.STATUS_PAID)
        self.assertEqual(payment.status, Payment.STATUS_APPROVED)

    @override_settings(BILLING_LEDGER_RETRIES=2)
    def test_persistent_lock_failure_is_concurrency_conflict(self):
        jan = self.make_debt(2024, 1)
        payment = self.make_payment('1000')

        with mock.patch.object(approval, 'get_condo_fee',
                               side_effect=OperationalError('database is locked')) as fee:
            with self.assertRaises(ConcurrencyConflict):
                approve_payment(payment.pk)

        self.assertEqual(fee.call_count, 2)
        jan.refresh_from_db()
        payment.refresh_from_db()
        self.assertEqual(jan.status, Debt.STATUS_PENDING)
        self.assertEqual(payment.status, Payment.STATUS_PENDING)

    def test_due_edited_after_read_is_settled_at_its_face_value(self):
        jan = self.make_debt(2024, 1)
        payment = self.make_payment('1000')
        real_pending = approval.pending_debts
        reads = []

        def edit_after_read(owner):
            debts = real_pending(owner)
            if not reads:
                update_debt(jan.pk, amount_usd='50')
            reads.append(owner.pk)
            return debts

        with mock.patch.object(approval, 'pending_debts', side_effect=edit_after_read):
            approve_payment(payment.pk)

        self.assertEqual(len(reads), 2)
        jan.refresh_from_db()
        self.assertEqual(jan.status, Debt.STATUS_PAID)
        self.assertEqual(jan.paid_amount_usd, jan.amount_usd)

    def test_failed_notification_does_not_undo_approval(self):
        self.make_debt(2024, 1)
        payment = self.make_payment('1000')

        with mock.patch.object(Notification.objects, 'create',
                               side_effect=DatabaseError('disk full')):
            with self.assertLogs('billing.notifications', level='WARNING'):
                with self.captureOnCommitCallbacks(execute=True):
                    approve_payment(payment.pk)

        payment.refresh_from_db()
        self.assertEqual(payment.status, Payment.STATUS_APPROVED)
        self.assertFalse(Notification.objects.exists())
