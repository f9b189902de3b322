"""
Best-effort owner notifications. Writes happen after the ledger transaction
commits; a failed write is logged and never breaks the caller.
"""
import logging

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import DatabaseError, transaction

from .models import Notification


logger = logging.getLogger(__name__)


def notify_owner(owner_id, title, body, href='', payment_id=None):
    try:
        return Notification.objects.create(
            owner_id=owner_id, title=title, body=body, href=href, payment_id=payment_id,
        )
    except (DatabaseError, ValidationError, ValueError):
        logger.warning('Notification write failed owner=%s title=%r', owner_id, title, exc_info=True)
        return None


def queue_owner_notification(owner_id, title, body, href='', payment_id=None):
    """Schedule `notify_owner` for when the current transaction commits."""
    transaction.on_commit(
        lambda: notify_owner(owner_id, title, body, href=href, payment_id=payment_id)
    )


def admin_owner_id():
    return (getattr(settings, 'BILLING_ADMIN_OWNER_ID', '') or '').strip()


def notify_admin(title, body, href='', payment_id=None):
    owner_id = admin_owner_id()
    if not owner_id:
        logger.debug('No BILLING_ADMIN_OWNER_ID configured; dropping %r', title)
        return
    queue_owner_notification(owner_id, title, body, href=href, payment_id=payment_id)
