from django.contrib import admin
from .models import (
    Owner, Debt, Payment, HistoricalPayment, Notification, BillingSettings, ExchangeRate,
)

@admin.register(Owner)
class OwnerAdmin(admin.ModelAdmin):
    list_display = ['code', 'name', 'role', 'balance', 'receipt_counter']
    search_fields = ['code', 'name', 'email']
    list_filter = ['role']
    readonly_fields = ['balance', 'receipt_counter']

@admin.register(Debt)
class DebtAdmin(admin.ModelAdmin):
    list_display = ['owner', 'property_street', 'property_house', 'year', 'month',
                    'amount_usd', 'status', 'is_advance']
    list_filter = ['status', 'is_advance', 'year']
    search_fields = ['owner__name', 'owner__code', 'property_street', 'property_house']

@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ['reference', 'payment_date', 'total_amount', 'payment_method', 'status']
    list_filter = ['status', 'payment_method']
    search_fields = ['reference', 'bank']

@admin.register(HistoricalPayment)
class HistoricalPaymentAdmin(admin.ModelAdmin):
    list_display = ['owner', 'property_street', 'property_house',
                    'reference_year', 'reference_month', 'amount_usd']
    list_filter = ['reference_year']

@admin.register(ExchangeRate)
class ExchangeRateAdmin(admin.ModelAdmin):
    list_display = ['date', 'rate', 'active']
    list_filter = ['active']

admin.site.register(Notification)
admin.site.register(BillingSettings)
