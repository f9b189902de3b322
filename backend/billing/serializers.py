"""
CondoSys — REST API Serializers
Model serializers for reads; plain serializers validate action input
before it reaches the billing services.
"""
from rest_framework import serializers

from .models import (
    Owner, Debt, Payment, Notification, BillingSettings, ExchangeRate,
)


# ═══════════════════════════════════════════════════════════
#  OWNERS
# ═══════════════════════════════════════════════════════════

class PropertySerializer(serializers.Serializer):
    street = serializers.CharField(max_length=100)
    house = serializers.CharField(max_length=50)


class OwnerSerializer(serializers.ModelSerializer):
    properties = serializers.JSONField(required=False)

    class Meta:
        model = Owner
        fields = ['id', 'code', 'name', 'email', 'user', 'role', 'balance',
                  'properties', 'receipt_counter', 'created_at', 'updated_at']
        read_only_fields = ['id', 'balance', 'receipt_counter', 'created_at', 'updated_at']

    def validate_properties(self, value):
        if not isinstance(value, list):
            raise serializers.ValidationError('Debe ser una lista de propiedades.')
        serializer = PropertySerializer(data=value, many=True)
        serializer.is_valid(raise_exception=True)
        return [dict(p) for p in serializer.validated_data]


# ═══════════════════════════════════════════════════════════
#  DEBTS
# ═══════════════════════════════════════════════════════════

class DebtSerializer(serializers.ModelSerializer):
    owner_name = serializers.CharField(source='owner.name', read_only=True)

    class Meta:
        model = Debt
        fields = ['id', 'owner', 'owner_name', 'property_street', 'property_house',
                  'year', 'month', 'amount_usd', 'description', 'status',
                  'paid_amount_usd', 'payment_date', 'payment', 'is_advance',
                  'created_at', 'updated_at']
        read_only_fields = fields


class DebtUpdateSerializer(serializers.Serializer):
    description = serializers.CharField(max_length=300, required=False)
    amount_usd = serializers.DecimalField(max_digits=12, decimal_places=2, required=False)


class PeriodSerializer(serializers.Serializer):
    year = serializers.IntegerField(min_value=1)
    month = serializers.IntegerField(min_value=1, max_value=12)


class MonthlyDebtSerializer(PeriodSerializer):
    pass


class MassDebtSerializer(serializers.Serializer):
    owner = serializers.UUIDField()
    property = PropertySerializer()
    description = serializers.CharField(max_length=300)
    amount_usd = serializers.DecimalField(max_digits=12, decimal_places=2)
    from_period = PeriodSerializer()
    to_period = PeriodSerializer()


# ═══════════════════════════════════════════════════════════
#  PAYMENTS
# ═══════════════════════════════════════════════════════════

class PaymentSerializer(serializers.ModelSerializer):
    reported_by_name = serializers.CharField(source='reported_by.name', read_only=True, default=None)

    class Meta:
        model = Payment
        fields = ['id', 'beneficiaries', 'total_amount', 'exchange_rate', 'payment_date',
                  'reported_at', 'reported_by', 'reported_by_name', 'payment_method', 'bank',
                  'reference', 'status', 'receipt_url', 'observations', 'receipt_numbers',
                  'created_at', 'updated_at']
        read_only_fields = fields


class BeneficiarySerializer(serializers.Serializer):
    ownerId = serializers.CharField()
    street = serializers.CharField(required=False, allow_blank=True)
    house = serializers.CharField(required=False, allow_blank=True)
    amount = serializers.DecimalField(max_digits=14, decimal_places=2)


class PaymentReportSerializer(serializers.Serializer):
    beneficiaries = BeneficiarySerializer(many=True)
    total_amount = serializers.DecimalField(max_digits=14, decimal_places=2)
    payment_date = serializers.DateField()
    payment_method = serializers.CharField(max_length=15)
    bank = serializers.CharField(max_length=100, allow_blank=True)
    reference = serializers.CharField(max_length=100, allow_blank=True)
    receipt_url = serializers.CharField(required=False, allow_blank=True, default='')
    observations = serializers.CharField(required=False, allow_blank=True, default='')


class RejectSerializer(serializers.Serializer):
    reason = serializers.CharField(allow_blank=True, default='')


class AdvancePaymentSerializer(serializers.Serializer):
    owner = serializers.UUIDField()
    property = PropertySerializer()
    periods = PeriodSerializer(many=True)
    total_usd = serializers.DecimalField(max_digits=12, decimal_places=2)
    observations = serializers.CharField(required=False, allow_blank=True, default='')
    payment_date = serializers.DateField(required=False, allow_null=True, default=None)


# ═══════════════════════════════════════════════════════════
#  SETTINGS / NOTIFICATIONS
# ═══════════════════════════════════════════════════════════

class BillingSettingsSerializer(serializers.ModelSerializer):
    class Meta:
        model = BillingSettings
        fields = ['condo_fee', 'updated_at']
        read_only_fields = ['updated_at']


class ExchangeRateSerializer(serializers.ModelSerializer):
    class Meta:
        model = ExchangeRate
        fields = ['id', 'date', 'rate', 'active', 'created_at']
        read_only_fields = ['id', 'created_at']


class NotificationSerializer(serializers.ModelSerializer):
    class Meta:
        model = Notification
        fields = ['id', 'title', 'body', 'href', 'read', 'payment', 'created_at']
        read_only_fields = fields
