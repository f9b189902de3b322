import uuid

import django.core.validators
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):
    """Owners, debts, payments, historical payments, notifications and billing settings."""

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='BillingSettings',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('condo_fee', models.DecimalField(decimal_places=2, default=0, max_digits=12,
                                                  validators=[django.core.validators.MinValueValidator(0)])),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'db_table': 'billing_settings',
            },
        ),
        migrations.CreateModel(
            name='ExchangeRate',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('date', models.DateField(db_index=True)),
                ('rate', models.DecimalField(decimal_places=4, max_digits=14,
                                             validators=[django.core.validators.MinValueValidator(0)])),
                ('active', models.BooleanField(default=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'db_table': 'exchange_rates',
                'ordering': ['-date', '-created_at'],
            },
        ),
        migrations.CreateModel(
            name='Owner',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('code', models.CharField(help_text='Short code used in receipt numbers, e.g. A-101',
                                          max_length=20, unique=True)),
                ('name', models.CharField(db_index=True, max_length=200)),
                ('email', models.EmailField(blank=True, default='', max_length=254)),
                ('role', models.CharField(choices=[('propietario', 'Propietario'), ('administrador', 'Administrador')],
                                          default='propietario', max_length=20)),
                ('balance', models.DecimalField(decimal_places=2, default=0, max_digits=14,
                                                validators=[django.core.validators.MinValueValidator(0)])),
                ('properties', models.JSONField(blank=True, default=list,
                                                help_text='Ordered list: [{"street": "...", "house": "..."}]')),
                ('receipt_counter', models.PositiveIntegerField(default=0)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('user', models.OneToOneField(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL,
                                              related_name='owner_profile', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'owners',
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='Payment',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('beneficiaries', models.JSONField(blank=True, default=list)),
                ('total_amount', models.DecimalField(decimal_places=2, max_digits=14,
                                                     validators=[django.core.validators.MinValueValidator(0)])),
                ('exchange_rate', models.DecimalField(decimal_places=4, default=0, max_digits=14)),
                ('payment_date', models.DateField()),
                ('reported_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('payment_method', models.CharField(choices=[
                    ('transferencia', 'Transferencia'),
                    ('movil', 'Pago Móvil'),
                    ('efectivo', 'Efectivo'),
                    ('zelle', 'Zelle'),
                    ('adelanto', 'Adelanto'),
                    ('conciliacion', 'Conciliación'),
                ], max_length=15)),
                ('bank', models.CharField(blank=True, default='', max_length=100)),
                ('reference', models.CharField(db_index=True, max_length=100)),
                ('status', models.CharField(choices=[('pendiente', 'Pendiente'), ('aprobado', 'Aprobado'),
                                                     ('rechazado', 'Rechazado')],
                                            db_index=True, default='pendiente', max_length=10)),
                ('receipt_url', models.TextField(blank=True, default='')),
                ('observations', models.TextField(blank=True, default='')),
                ('receipt_numbers', models.JSONField(blank=True, default=dict, help_text='{ownerId: receipt number}')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('reported_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL,
                                                  related_name='reported_payments', to='billing.owner')),
            ],
            options={
                'db_table': 'payments',
                'ordering': ['-payment_date', '-reported_at'],
                'indexes': [models.Index(fields=['reference', 'total_amount', 'payment_date'],
                                         name='payments_ref_amount_date_idx')],
            },
        ),
        migrations.CreateModel(
            name='Notification',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('title', models.CharField(max_length=200)),
                ('body', models.TextField()),
                ('href', models.CharField(blank=True, default='', max_length=300)),
                ('read', models.BooleanField(default=False)),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('owner', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE,
                                            related_name='notifications', to='billing.owner')),
                ('payment', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL,
                                              related_name='notifications', to='billing.payment')),
            ],
            options={
                'db_table': 'notifications',
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='HistoricalPayment',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('property_street', models.CharField(max_length=100)),
                ('property_house', models.CharField(max_length=50)),
                ('reference_year', models.PositiveSmallIntegerField()),
                ('reference_month', models.PositiveSmallIntegerField(validators=[
                    django.core.validators.MinValueValidator(1),
                    django.core.validators.MaxValueValidator(12),
                ])),
                ('amount_usd', models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('owner', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE,
                                            related_name='historical_payments', to='billing.owner')),
            ],
            options={
                'db_table': 'historical_payments',
                'ordering': ['reference_year', 'reference_month'],
                'indexes': [models.Index(fields=['owner', 'property_street', 'property_house'],
                                         name='hist_owner_property_idx')],
            },
        ),
        migrations.CreateModel(
            name='Debt',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('property_street', models.CharField(max_length=100)),
                ('property_house', models.CharField(max_length=50)),
                ('year', models.PositiveSmallIntegerField()),
                ('month', models.PositiveSmallIntegerField(validators=[
                    django.core.validators.MinValueValidator(1),
                    django.core.validators.MaxValueValidator(12),
                ])),
                ('amount_usd', models.DecimalField(decimal_places=2, max_digits=12,
                                                   validators=[django.core.validators.MinValueValidator(0)])),
                ('description', models.CharField(max_length=300)),
                ('status', models.CharField(choices=[('pending', 'Pendiente'), ('paid', 'Pagada'),
                                                     ('vencida', 'Vencida')],
                                            db_index=True, default='pending', max_length=10)),
                ('paid_amount_usd', models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ('payment_date', models.DateField(blank=True, null=True)),
                ('is_advance', models.BooleanField(default=False,
                                                   help_text='Created and paid in advance by its payment')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('owner', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE,
                                            related_name='debts', to='billing.owner')),
                ('payment', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL,
                                              related_name='debts', to='billing.payment')),
            ],
            options={
                'db_table': 'debts',
                'ordering': ['year', 'month'],
                'indexes': [
                    models.Index(fields=['owner', 'year', 'month'], name='debts_owner_period_idx'),
                    models.Index(fields=['owner', 'status'], name='debts_owner_status_idx'),
                    models.Index(fields=['year', 'month'], name='debts_period_idx'),
                ],
            },
        ),
    ]
