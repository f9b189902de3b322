"""
Payment reporting (boundary validation) and admin-registered advance payments.
"""
from datetime import date
from decimal import Decimal

from django.test import override_settings

from billing.exceptions import PaymentValidationError
from billing.models import Debt, Notification, Payment
from billing.services import delete_payment, register_advance_payment, report_payment
from .base import BaseTestCase


class ReportPaymentTests(BaseTestCase):

    def report(self, **overrides):
        data = {
            'beneficiaries': [{'ownerId': str(self.owner.pk), 'amount': '1000'}],
            'total_amount': '1000',
            'payment_date': date(2024, 1, 15),
            'payment_method': 'transferencia',
            'bank': 'Banco de Venezuela',
            'reference': '12345678',
        }
        data.update(overrides)
        return report_payment(**data)

    def test_creates_pending_payment(self):
        payment = self.report(reported_by=self.owner)
        self.assertEqual(payment.status, Payment.STATUS_PENDING)
        self.assertEqual(payment.total_amount, Decimal('1000.00'))
        self.assertEqual(payment.beneficiaries[0]['ownerName'], 'Carlos Rodríguez')
        self.assertEqual(payment.exchange_rate, Decimal('40'))
        self.assertFalse(Debt.objects.exists())

    def test_notifies_configured_admin(self):
        admin = self.make_owner('ADM', 'Administración', [])
        with override_settings(BILLING_ADMIN_OWNER_ID=str(admin.pk)):
            with self.captureOnCommitCallbacks(execute=True):
                self.report(reported_by=self.owner)
        note = Notification.objects.get(owner=admin)
        self.assertEqual(note.title, 'Nuevo Pago Reportado')

    def test_short_reference(self):
        with self.assertRaises(PaymentValidationError):
            self.report(reference='123')

    def test_missing_bank(self):
        with self.assertRaises(PaymentValidationError):
            self.report(bank='')

    def test_unknown_method(self):
        with self.assertRaises(PaymentValidationError):
            self.report(payment_method='conciliacion')

    def test_beneficiaries_must_sum_to_total(self):
        with self.assertRaises(PaymentValidationError):
            self.report(total_amount='1200')

    def test_beneficiary_amount_must_be_positive(self):
        with self.assertRaises(PaymentValidationError):
            self.report(beneficiaries=[{'ownerId': str(self.owner.pk), 'amount': '0'}],
                        total_amount='0.01')

    def test_unknown_beneficiary(self):
        with self.assertRaises(PaymentValidationError):
            self.report(beneficiaries=[{'ownerId': '00000000-0000-0000-0000-000000000009',
                                        'amount': '1000'}])

    def test_duplicate_reference_amount_and_date(self):
        self.report()
        with self.assertRaises(PaymentValidationError):
            self.report()
        self.assertEqual(Payment.objects.count(), 1)

    def test_same_reference_other_date_is_accepted(self):
        self.report()
        self.report(payment_date=date(2024, 1, 16))
        self.assertEqual(Payment.objects.count(), 2)


class AdvancePaymentTests(BaseTestCase):
    prop = {'street': 'Calle 1', 'house': 'Casa 1'}

    def test_creates_paid_advance_dues_and_payment(self):
        payment = register_advance_payment(self.owner.pk, self.prop,
                                           [(2024, 3), (2024, 4), (2024, 5)], '100')

        self.assertEqual(payment.status, Payment.STATUS_APPROVED)
        self.assertEqual(payment.payment_method, Payment.METHOD_ADVANCE)
        self.assertEqual(payment.exchange_rate, 1)
        self.assertEqual(payment.reference, 'Adelanto 2024-03, 2024-04, 2024-05')
        debts = list(Debt.objects.filter(payment=payment).order_by('month'))
        self.assertEqual([d.month for d in debts], [3, 4, 5])
        self.assertTrue(all(d.is_advance and d.is_paid for d in debts))
        self.assertEqual(sum(d.paid_amount_usd for d in debts), Decimal('100.00'))
        self.assertEqual(debts[0].paid_amount_usd, Decimal('33.33'))
        self.assertEqual(debts[-1].paid_amount_usd, Decimal('33.34'))

    def test_rejects_periods_with_debts(self):
        self.make_debt(2024, 4)
        with self.assertRaises(PaymentValidationError):
            register_advance_payment(self.owner.pk, self.prop, [(2024, 3), (2024, 4)], '50')
        self.assertFalse(Payment.objects.exists())

    def test_rejects_foreign_property(self):
        with self.assertRaises(PaymentValidationError):
            register_advance_payment(self.owner.pk, {'street': 'Calle 9', 'house': 'Casa 9'},
                                     [(2024, 3)], '25')

    def test_requires_periods_and_amount(self):
        with self.assertRaises(PaymentValidationError):
            register_advance_payment(self.owner.pk, self.prop, [], '25')
        with self.assertRaises(PaymentValidationError):
            register_advance_payment(self.owner.pk, self.prop, [(2024, 3)], '0')

    def test_reversible(self):
        self.set_balance(self.owner, '300')
        payment = register_advance_payment(self.owner.pk, self.prop, [(2024, 3), (2024, 4)], '50')

        delete_payment(payment.pk)

        self.assertFalse(Debt.objects.exists())
        self.owner.refresh_from_db()
        self.assertEqual(self.owner.balance, Decimal('300.00'))
