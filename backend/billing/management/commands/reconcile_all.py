"""
Apply every owner's credit balance to pending dues and prepaid periods.
Usage: python manage.py reconcile_all
"""
from django.core.management.base import BaseCommand, CommandError

from billing.exceptions import BillingError
from billing.services import reconcile_all


class Command(BaseCommand):
    help = 'Reconcile all owners with credit balance (conciliación)'

    def handle(self, *args, **options):
        try:
            summary = reconcile_all()
        except BillingError as exc:
            raise CommandError(exc.message)

        self.stdout.write(self.style.SUCCESS(
            f"Processed {summary['processed']} owners, reconciled {summary['reconciled']}."))
        for failure in summary['failed']:
            self.stderr.write(f"  ✗ {failure['owner']}: {failure['detail']}")
