"""
CondoSys — Data Models (PostgreSQL optimized)

Model hierarchy:
  Owner (propietario, credit balance + ordered properties)
  ├── Debt (one due per property per (year, month))
  ├── HistoricalPayment (migrated legacy payments per period)
  └── Notification (per-owner inbox)
  Payment (reported / system-generated, split among beneficiaries)
  BillingSettings (singleton: monthly condo fee in USD)
  ExchangeRate (dated local-currency-per-USD rates)
"""

import uuid
from django.conf import settings
from django.db import models
from django.core.validators import MinValueValidator, MaxValueValidator
from django.utils import timezone


# ═══════════════════════════════════════════════════════════
#  OWNER
# ═══════════════════════════════════════════════════════════

class Owner(models.Model):
    """
    A condominium owner. Holds the credit balance ("saldo a favor") in local
    currency and an ordered list of properties ({street, house}).
    """
    ROLE_OWNER = 'propietario'
    ROLE_ADMIN = 'administrador'
    ROLE_CHOICES = [
        (ROLE_OWNER, 'Propietario'),
        (ROLE_ADMIN, 'Administrador'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    code = models.CharField(max_length=20, unique=True,
                            help_text='Short code used in receipt numbers, e.g. A-101')
    name = models.CharField(max_length=200, db_index=True)
    email = models.EmailField(blank=True, default='')
    user = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL,
                                null=True, blank=True, related_name='owner_profile')
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default=ROLE_OWNER)
    balance = models.DecimalField(max_digits=14, decimal_places=2, default=0,
                                  validators=[MinValueValidator(0)])
    properties = models.JSONField(default=list, blank=True,
                                  help_text='Ordered list: [{"street": "...", "house": "..."}]')
    receipt_counter = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'owners'
        ordering = ['name']

    def __str__(self):
        return f'{self.code} — {self.name}'

    def property_list(self):
        """Properties with both street and house set, in their stored order."""
        out = []
        for prop in self.properties or []:
            if not isinstance(prop, dict):
                continue
            street = str(prop.get('street') or '').strip()
            house = str(prop.get('house') or '').strip()
            if street and house:
                out.append({'street': street, 'house': house})
        return out

    def owns_property(self, street, house):
        return {'street': street, 'house': house} in self.property_list()


# ═══════════════════════════════════════════════════════════
#  PAYMENT
# ═══════════════════════════════════════════════════════════

class Payment(models.Model):
    """
    A reported or system-generated payment in local currency.
    `beneficiaries` splits `total_amount` among owners:
      [{"ownerId", "ownerName", "street"?, "house"?, "amount"}]
    """
    STATUS_PENDING = 'pendiente'
    STATUS_APPROVED = 'aprobado'
    STATUS_REJECTED = 'rechazado'
    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pendiente'),
        (STATUS_APPROVED, 'Aprobado'),
        (STATUS_REJECTED, 'Rechazado'),
    ]
    METHOD_ADVANCE = 'adelanto'
    METHOD_RECONCILIATION = 'conciliacion'
    METHOD_CHOICES = [
        ('transferencia', 'Transferencia'),
        ('movil', 'Pago Móvil'),
        ('efectivo', 'Efectivo'),
        ('zelle', 'Zelle'),
        (METHOD_ADVANCE, 'Adelanto'),
        (METHOD_RECONCILIATION, 'Conciliación'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    beneficiaries = models.JSONField(default=list, blank=True)
    total_amount = models.DecimalField(max_digits=14, decimal_places=2,
                                       validators=[MinValueValidator(0)])
    exchange_rate = models.DecimalField(max_digits=14, decimal_places=4, default=0)
    payment_date = models.DateField()
    reported_at = models.DateTimeField(default=timezone.now)
    reported_by = models.ForeignKey(Owner, on_delete=models.SET_NULL, null=True, blank=True,
                                    related_name='reported_payments')
    payment_method = models.CharField(max_length=15, choices=METHOD_CHOICES)
    bank = models.CharField(max_length=100, blank=True, default='')
    reference = models.CharField(max_length=100, db_index=True)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES,
                              default=STATUS_PENDING, db_index=True)
    receipt_url = models.TextField(blank=True, default='')
    observations = models.TextField(blank=True, default='')
    receipt_numbers = models.JSONField(default=dict, blank=True,
                                       help_text='{ownerId: receipt number}')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'payments'
        ordering = ['-payment_date', '-reported_at']
        indexes = [
            models.Index(fields=['reference', 'total_amount', 'payment_date'],
                         name='payments_ref_amount_date_idx'),
        ]

    def __str__(self):
        return f'{self.reference} — {self.total_amount} ({self.status})'

    @property
    def is_credit_funded(self):
        """System payments created from an owner's existing credit, not new money."""
        return self.payment_method == self.METHOD_RECONCILIATION


# ═══════════════════════════════════════════════════════════
#  DEBT (monthly due per property)
# ═══════════════════════════════════════════════════════════

class Debt(models.Model):
    """
    One period's obligation for one property. At most one per
    (owner, property, year, month); creation paths check before writing.
    """
    STATUS_PENDING = 'pending'
    STATUS_PAID = 'paid'
    STATUS_OVERDUE = 'vencida'
    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pendiente'),
        (STATUS_PAID, 'Pagada'),
        (STATUS_OVERDUE, 'Vencida'),
    ]
    UNPAID_STATUSES = (STATUS_PENDING, STATUS_OVERDUE)

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    owner = models.ForeignKey(Owner, on_delete=models.CASCADE, related_name='debts')
    property_street = models.CharField(max_length=100)
    property_house = models.CharField(max_length=50)
    year = models.PositiveSmallIntegerField()
    month = models.PositiveSmallIntegerField(validators=[MinValueValidator(1),
                                                         MaxValueValidator(12)])
    amount_usd = models.DecimalField(max_digits=12, decimal_places=2,
                                     validators=[MinValueValidator(0)])
    description = models.CharField(max_length=300)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES,
                              default=STATUS_PENDING, db_index=True)
    paid_amount_usd = models.DecimalField(max_digits=12, decimal_places=2,
                                          null=True, blank=True)
    payment_date = models.DateField(null=True, blank=True)
    payment = models.ForeignKey(Payment, on_delete=models.SET_NULL, null=True, blank=True,
                                related_name='debts')
    is_advance = models.BooleanField(default=False,
                                     help_text='Created and paid in advance by its payment')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'debts'
        ordering = ['year', 'month']
        indexes = [
            models.Index(fields=['owner', 'year', 'month'], name='debts_owner_period_idx'),
            models.Index(fields=['owner', 'status'], name='debts_owner_status_idx'),
            models.Index(fields=['year', 'month'], name='debts_period_idx'),
        ]

    def __str__(self):
        return f'{self.owner_id} {self.property_street}-{self.property_house} {self.year}-{self.month:02d} ({self.status})'

    @property
    def period(self):
        return (self.year, self.month)

    @property
    def is_paid(self):
        return self.status == self.STATUS_PAID


# ═══════════════════════════════════════════════════════════
#  HISTORICAL PAYMENT (migrated)
# ═══════════════════════════════════════════════════════════

class HistoricalPayment(models.Model):
    """
    Legacy payment imported from the previous system.
    A period covered here counts as occupied for debt generation.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    owner = models.ForeignKey(Owner, on_delete=models.CASCADE, related_name='historical_payments')
    property_street = models.CharField(max_length=100)
    property_house = models.CharField(max_length=50)
    reference_year = models.PositiveSmallIntegerField()
    reference_month = models.PositiveSmallIntegerField(validators=[MinValueValidator(1),
                                                                   MaxValueValidator(12)])
    amount_usd = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'historical_payments'
        ordering = ['reference_year', 'reference_month']
        indexes = [
            models.Index(fields=['owner', 'property_street', 'property_house'],
                         name='hist_owner_property_idx'),
        ]

    def __str__(self):
        return f'Histórico {self.owner_id} {self.reference_year}-{self.reference_month:02d}'


# ═══════════════════════════════════════════════════════════
#  NOTIFICATION
# ═══════════════════════════════════════════════════════════

class Notification(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    owner = models.ForeignKey(Owner, on_delete=models.CASCADE, related_name='notifications')
    title = models.CharField(max_length=200)
    body = models.TextField()
    href = models.CharField(max_length=300, blank=True, default='')
    read = models.BooleanField(default=False)
    payment = models.ForeignKey(Payment, on_delete=models.SET_NULL, null=True, blank=True,
                                related_name='notifications')
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'notifications'
        ordering = ['-created_at']

    def __str__(self):
        return f'{self.title} → {self.owner_id}'


# ═══════════════════════════════════════════════════════════
#  SETTINGS / EXCHANGE RATES
# ═══════════════════════════════════════════════════════════

class BillingSettings(models.Model):
    """Singleton row (pk=1) with the monthly condo fee in USD."""
    condo_fee = models.DecimalField(max_digits=12, decimal_places=2, default=0,
                                    validators=[MinValueValidator(0)])
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'billing_settings'

    def __str__(self):
        return f'Cuota: {self.condo_fee} USD'

    @classmethod
    def load(cls):
        obj, _ = cls.objects.get_or_create(pk=1)
        return obj


class ExchangeRate(models.Model):
    """Local currency per USD, valid from `date` onward."""
    date = models.DateField(db_index=True)
    rate = models.DecimalField(max_digits=14, decimal_places=4,
                               validators=[MinValueValidator(0)])
    active = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'exchange_rates'
        ordering = ['-date', '-created_at']

    def __str__(self):
        return f'{self.date}: {self.rate}'
