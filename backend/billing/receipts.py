def next_receipt_number(owner):
    """
    Allocate the owner's next receipt number, e.g. REC-A-101-00007.
    The caller must hold the owner row lock; numbers are stored on the
    payment and never regenerated.
    """
    owner.receipt_counter += 1
    owner.save(update_fields=['receipt_counter', 'updated_at'])
    return f'REC-{owner.code}-{owner.receipt_counter:05d}'
