"""
Flag pending dues of past periods as vencida.
Usage: python manage.py mark_overdue_debts
"""
from django.core.management.base import BaseCommand

from billing.services import mark_overdue_debts


class Command(BaseCommand):
    help = 'Mark pending debts from previous months as overdue'

    def handle(self, *args, **options):
        count = mark_overdue_debts()
        self.stdout.write(self.style.SUCCESS(f'{count} debts marked as vencida.'))
