"""
CondoSys — Seed Demo Data
Creates an admin, a handful of owners, the condo fee and an active rate.
Usage: python manage.py seed_data
"""
from datetime import date
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from billing.models import Owner, BillingSettings, ExchangeRate, HistoricalPayment


class Command(BaseCommand):
    help = 'Seed database with CondoSys demo data'

    def handle(self, *args, **options):
        self.stdout.write('🌱 Seeding CondoSys demo data...\n')
        User = get_user_model()

        # ── Admin user ──────────────────────────
        admin_user, created = User.objects.get_or_create(
            username='admin',
            defaults={'email': 'admin@condosys.app', 'is_staff': True, 'is_superuser': True},
        )
        if created:
            admin_user.set_password('Admin123')
            admin_user.save()
            self.stdout.write(self.style.SUCCESS('  ✓ Admin user created'))
        else:
            self.stdout.write('  · Admin user already exists')

        admin_owner, _ = Owner.objects.get_or_create(
            code='ADM',
            defaults={'name': 'Administración', 'email': 'admin@condosys.app',
                      'user': admin_user, 'role': Owner.ROLE_ADMIN},
        )

        # ── Settings ─────────────────────────────
        settings_row = BillingSettings.load()
        if settings_row.condo_fee <= 0:
            settings_row.condo_fee = Decimal('25.00')
            settings_row.save()
        if not ExchangeRate.objects.exists():
            ExchangeRate.objects.create(date=date.today().replace(day=1), rate=Decimal('40.0000'),
                                        active=True)
        self.stdout.write(self.style.SUCCESS(f'  ✓ Fee {settings_row.condo_fee} USD, active rate set'))

        # ── Owners ───────────────────────────────
        owners_data = [
            {'code': 'A-101', 'name': 'Carlos Rodríguez', 'email': 'carlos@email.com',
             'properties': [{'street': 'Calle 1', 'house': 'Casa 1'}]},
            {'code': 'A-102', 'name': 'María López', 'email': 'maria@email.com',
             'properties': [{'street': 'Calle 1', 'house': 'Casa 2'},
                            {'street': 'Calle 2', 'house': 'Casa 7'}]},
            {'code': 'A-103', 'name': 'Ana García', 'email': 'ana@email.com',
             'properties': [{'street': 'Calle 3', 'house': 'Casa 4'}],
             'balance': Decimal('1500.00')},
        ]
        for data in owners_data:
            owner, o_created = Owner.objects.get_or_create(code=data['code'], defaults=data)
            if o_created:
                self.stdout.write(self.style.SUCCESS(f'  ✓ Owner {owner}'))
            else:
                self.stdout.write(f'  · Owner {owner.code} already exists')

        # ── Historical payment ──────────────────
        carlos = Owner.objects.get(code='A-101')
        HistoricalPayment.objects.get_or_create(
            owner=carlos, property_street='Calle 1', property_house='Casa 1',
            reference_year=2023, reference_month=12,
            defaults={'amount_usd': Decimal('25.00')},
        )

        self.stdout.write(self.style.SUCCESS(
            f'\n✅ Seed complete. Set BILLING_ADMIN_OWNER_ID={admin_owner.pk} to route admin notifications.'))
