"""
Shared fixture for the billing tests: condo fee 25 USD, active rate
40 Bs./USD, one owner with one property, and helpers for dues and payments.
"""
from datetime import date
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase
from rest_framework.test import APIClient

from billing.models import BillingSettings, Debt, ExchangeRate, Owner, Payment


class BaseTestCase(TestCase):
    """Setup shared ledger data."""

    def setUp(self):
        self.client = APIClient()

        BillingSettings.objects.update_or_create(pk=1, defaults={'condo_fee': Decimal('25.00')})
        self.rate = ExchangeRate.objects.create(date=date(2024, 1, 1), rate=Decimal('40'),
                                                active=True)

        User = get_user_model()
        self.admin_user = User.objects.create_user(username='admin', password='Admin123',
                                                   is_staff=True)
        self.owner_user = User.objects.create_user(username='carlos', password='Owner123')

        self.owner = Owner.objects.create(
            code='A-101', name='Carlos Rodríguez', email='carlos@email.com',
            user=self.owner_user,
            properties=[{'street': 'Calle 1', 'house': 'Casa 1'}],
        )

    def login_as(self, username, password):
        """Helper to obtain a JWT and set the bearer header."""
        response = self.client.post('/api/auth/token/',
                                    {'username': username, 'password': password}, format='json')
        if response.status_code == 200:
            self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {response.data['access']}")
        return response

    def make_owner(self, code, name, properties, balance='0', role=Owner.ROLE_OWNER):
        return Owner.objects.create(code=code, name=name, properties=properties,
                                    balance=Decimal(balance), role=role)

    def make_debt(self, year, month, owner=None, amount='25', street='Calle 1', house='Casa 1',
                  status=Debt.STATUS_PENDING):
        owner = owner or self.owner
        debt = Debt.objects.create(
            owner=owner, property_street=street, property_house=house, year=year, month=month,
            amount_usd=Decimal(amount), description='Cuota de Condominio', status=status,
        )
        if status == Debt.STATUS_PAID:
            debt.paid_amount_usd = debt.amount_usd
            debt.payment_date = date(year, month, 1)
            debt.save()
        return debt

    def make_payment(self, amount, owner=None, payment_date=date(2024, 1, 15), reference='123456',
                     street='', house='', method='transferencia', status=Payment.STATUS_PENDING):
        owner = owner or self.owner
        beneficiary = {'ownerId': str(owner.pk), 'ownerName': owner.name, 'amount': str(amount)}
        if street and house:
            beneficiary.update(street=street, house=house)
        return Payment.objects.create(
            beneficiaries=[beneficiary], total_amount=Decimal(amount), exchange_rate=Decimal('40'),
            payment_date=payment_date, reported_by=owner, payment_method=method,
            bank='Banco de Venezuela', reference=reference, status=status,
        )

    def set_balance(self, owner, amount):
        owner.balance = Decimal(amount)
        owner.save()
        return owner
