"""
Generate the condo-fee due of a period for every owner property.
Usage: python manage.py generate_monthly_debts [--year 2024 --month 6]
"""
from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone

from billing.exceptions import BillingError
from billing.services import generate_monthly_debts


class Command(BaseCommand):
    help = 'Generate monthly debts (defaults to the current month)'

    def add_arguments(self, parser):
        parser.add_argument('--year', type=int)
        parser.add_argument('--month', type=int)

    def handle(self, *args, **options):
        today = timezone.localdate()
        year = options['year'] or today.year
        month = options['month'] or today.month
        try:
            created = generate_monthly_debts(year, month)
        except BillingError as exc:
            raise CommandError(exc.message)

        if created:
            self.stdout.write(self.style.SUCCESS(
                f'Created {len(created)} debts for {year}-{month:02d}.'))
        else:
            self.stdout.write(f'Every property already has a debt for {year}-{month:02d}.')
