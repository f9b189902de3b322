"""
Transaction boundary shared by every ledger operation.

`ledger_transaction()` is `transaction.atomic()` that reports lock and
serialization failures as ConcurrencyConflict. `run_with_retry()` reruns the
whole operation (fresh reads) up to BILLING_LEDGER_RETRIES times.
"""
import logging
import uuid
from contextlib import contextmanager

from django.conf import settings
from django.db import OperationalError, transaction

from ..exceptions import ConcurrencyConflict, NotFoundError, ReversalConflictError
from ..models import Owner


logger = logging.getLogger(__name__)


@contextmanager
def ledger_transaction():
    try:
        with transaction.atomic():
            yield
    except OperationalError as exc:
        raise ConcurrencyConflict() from exc


def run_with_retry(fn, *args, **kwargs):
    attempts = max(1, int(getattr(settings, 'BILLING_LEDGER_RETRIES', 3)))
    for attempt in range(1, attempts + 1):
        try:
            return fn(*args, **kwargs)
        except ReversalConflictError:
            raise
        except ConcurrencyConflict:
            if attempt == attempts:
                raise
            logger.warning('%s conflicted (attempt %d/%d); retrying',
                           getattr(fn, '__name__', fn), attempt, attempts)


def parse_id(value, label='registro'):
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError):
        raise NotFoundError(f'No se encontró el {label} {value}.')


def lock_owners(owner_ids):
    """select_for_update the given owners in primary-key order. Returns {str(pk): Owner}."""
    ids = sorted({parse_id(i, 'propietario') for i in owner_ids})
    owners = Owner.objects.select_for_update().filter(pk__in=ids).order_by('pk')
    return {str(o.pk): o for o in owners}


def lock_owner(owner_id):
    owners = lock_owners([owner_id])
    owner = owners.get(str(parse_id(owner_id, 'propietario')))
    if owner is None:
        raise NotFoundError(f'No se encontró el propietario {owner_id}.')
    return owner
