"""
CondoSys — API Views
Thin DRF layer over billing.services; domain errors become
{"detail", "code"} responses.
"""
from django.db import transaction
from rest_framework import viewsets, mixins, status, permissions
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.views import APIView

from . import services
from .exceptions import (
    BillingError, AlreadyProcessedError, ConcurrencyConflict, NotFoundError,
)
from .models import Owner, Debt, Payment, Notification, BillingSettings, ExchangeRate
from .permissions import IsBillingAdmin, IsBillingAdminOrReadOnly, is_billing_admin, owner_for
from .serializers import (
    OwnerSerializer, DebtSerializer, DebtUpdateSerializer, MonthlyDebtSerializer,
    MassDebtSerializer, PaymentSerializer, PaymentReportSerializer, RejectSerializer,
    AdvancePaymentSerializer, BillingSettingsSerializer, ExchangeRateSerializer,
    NotificationSerializer,
)


def error_status(exc):
    if isinstance(exc, NotFoundError):
        return status.HTTP_404_NOT_FOUND
    if isinstance(exc, (AlreadyProcessedError, ConcurrencyConflict)):
        return status.HTTP_409_CONFLICT
    return status.HTTP_400_BAD_REQUEST


class BillingErrorMixin:
    """Render BillingError subclasses with their code and a matching status."""

    def handle_exception(self, exc):
        if isinstance(exc, BillingError):
            return Response({'detail': exc.message, 'code': exc.code}, status=error_status(exc))
        return super().handle_exception(exc)


# ═══════════════════════════════════════════════════════════
#  OWNERS
# ═══════════════════════════════════════════════════════════

class OwnerViewSet(BillingErrorMixin, viewsets.ModelViewSet):
    """CRUD /api/owners/"""
    queryset = Owner.objects.all()
    serializer_class = OwnerSerializer
    permission_classes = [IsBillingAdmin]
    http_method_names = ['get', 'post', 'patch', 'head', 'options']
    filterset_fields = ['role']
    search_fields = ['code', 'name', 'email']

    @action(detail=True, methods=['post'])
    def reconcile(self, request, pk=None):
        """POST /api/owners/{id}/reconcile/"""
        return Response(services.reconcile_owner(pk))


# ═══════════════════════════════════════════════════════════
#  DEBTS
# ═══════════════════════════════════════════════════════════

class DebtViewSet(BillingErrorMixin,
                  mixins.ListModelMixin,
                  mixins.RetrieveModelMixin,
                  viewsets.GenericViewSet):
    """/api/debts/ — owners see their own; admins see and manage all."""
    serializer_class = DebtSerializer
    permission_classes = [IsBillingAdminOrReadOnly]
    filterset_fields = ['owner', 'status', 'year', 'month', 'is_advance']
    ordering_fields = ['year', 'month', 'created_at']

    def get_queryset(self):
        qs = Debt.objects.select_related('owner').order_by('year', 'month', 'property_street',
                                                          'property_house')
        if is_billing_admin(self.request.user):
            return qs
        owner = owner_for(self.request.user)
        return qs.filter(owner=owner) if owner else qs.none()

    def partial_update(self, request, pk=None):
        """PATCH /api/debts/{id}/"""
        serializer = DebtUpdateSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        debt = services.update_debt(pk, **serializer.validated_data)
        return Response(DebtSerializer(debt).data)

    def destroy(self, request, pk=None):
        """DELETE /api/debts/{id}/"""
        return Response(services.delete_debt(pk))

    @action(detail=False, methods=['post'], url_path='generate-monthly')
    def generate_monthly(self, request):
        """POST /api/debts/generate-monthly/ {year, month}"""
        serializer = MonthlyDebtSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        created = services.generate_monthly_debts(data['year'], data['month'])
        return Response({'created': len(created), 'debts': DebtSerializer(created, many=True).data},
                        status=status.HTTP_201_CREATED if created else status.HTTP_200_OK)

    @action(detail=False, methods=['post'])
    def mass(self, request):
        """POST /api/debts/mass/"""
        serializer = MassDebtSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        created = services.generate_mass_debt(
            data['owner'], data['property'], data['description'], data['amount_usd'],
            (data['from_period']['year'], data['from_period']['month']),
            (data['to_period']['year'], data['to_period']['month']),
        )
        return Response({'created': len(created), 'debts': DebtSerializer(created, many=True).data},
                        status=status.HTTP_201_CREATED if created else status.HTTP_200_OK)

    @action(detail=False, methods=['post'], url_path='mark-overdue')
    def mark_overdue(self, request):
        """POST /api/debts/mark-overdue/"""
        return Response({'updated': services.mark_overdue_debts()})


# ═══════════════════════════════════════════════════════════
#  PAYMENTS
# ═══════════════════════════════════════════════════════════

class PaymentViewSet(BillingErrorMixin,
                     mixins.ListModelMixin,
                     mixins.RetrieveModelMixin,
                     viewsets.GenericViewSet):
    """/api/payments/ — report, approve, reject, delete (reverse)."""
    serializer_class = PaymentSerializer
    filterset_fields = ['status', 'payment_method']
    search_fields = ['reference', 'bank']

    def get_queryset(self):
        qs = Payment.objects.select_related('reported_by')
        if is_billing_admin(self.request.user):
            return qs
        owner = owner_for(self.request.user)
        return qs.filter(reported_by=owner) if owner else qs.none()

    def get_permissions(self):
        if self.action in ['list', 'retrieve', 'create']:
            return [permissions.IsAuthenticated()]
        return [IsBillingAdmin()]

    def create(self, request):
        """POST /api/payments/ — report a payment (stays pendiente)."""
        serializer = PaymentReportSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        payment = services.report_payment(reported_by=owner_for(request.user),
                                          **serializer.validated_data)
        return Response(PaymentSerializer(payment).data, status=status.HTTP_201_CREATED)

    def destroy(self, request, pk=None):
        """DELETE /api/payments/{id}/ — reverses an approved payment."""
        return Response(services.delete_payment(pk))

    @action(detail=True, methods=['post'])
    def approve(self, request, pk=None):
        """POST /api/payments/{id}/approve/"""
        payment = services.approve_payment(pk)
        return Response(PaymentSerializer(payment).data)

    @action(detail=True, methods=['post'])
    def reject(self, request, pk=None):
        """POST /api/payments/{id}/reject/ {reason}"""
        serializer = RejectSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        payment = services.reject_payment(pk, serializer.validated_data['reason'])
        return Response(PaymentSerializer(payment).data)

    @action(detail=False, methods=['post'])
    def advance(self, request):
        """POST /api/payments/advance/ — admin-registered prepayment in USD."""
        serializer = AdvancePaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        payment = services.register_advance_payment(
            data['owner'], data['property'],
            [(p['year'], p['month']) for p in data['periods']],
            data['total_usd'], data['observations'], data['payment_date'],
        )
        return Response(PaymentSerializer(payment).data, status=status.HTTP_201_CREATED)


class ReconciliationView(BillingErrorMixin, APIView):
    """POST /api/reconciliation/ — apply every owner's credit."""
    permission_classes = [IsBillingAdmin]

    def post(self, request):
        return Response(services.reconcile_all())


# ═══════════════════════════════════════════════════════════
#  SETTINGS / EXCHANGE RATES
# ═══════════════════════════════════════════════════════════

class BillingSettingsView(APIView):
    """GET/PUT /api/settings/"""
    permission_classes = [IsBillingAdminOrReadOnly]

    def get(self, request):
        return Response(BillingSettingsSerializer(BillingSettings.load()).data)

    def put(self, request):
        serializer = BillingSettingsSerializer(BillingSettings.load(), data=request.data)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response(serializer.data)


class ExchangeRateViewSet(mixins.ListModelMixin,
                          mixins.CreateModelMixin,
                          viewsets.GenericViewSet):
    """GET/POST /api/exchange-rates/"""
    queryset = ExchangeRate.objects.all()
    serializer_class = ExchangeRateSerializer
    permission_classes = [IsBillingAdminOrReadOnly]

    @transaction.atomic
    def perform_create(self, serializer):
        rate = serializer.save()
        if rate.active:
            ExchangeRate.objects.exclude(pk=rate.pk).update(active=False)


# ═══════════════════════════════════════════════════════════
#  NOTIFICATIONS
# ═══════════════════════════════════════════════════════════

class NotificationViewSet(mixins.ListModelMixin, viewsets.GenericViewSet):
    """GET /api/notifications/ — the caller's own inbox."""
    serializer_class = NotificationSerializer
    filterset_fields = ['read']

    def get_queryset(self):
        owner = owner_for(self.request.user)
        if owner is None:
            return Notification.objects.none()
        return Notification.objects.filter(owner=owner)

    @action(detail=True, methods=['post'])
    def read(self, request, pk=None):
        """POST /api/notifications/{id}/read/"""
        notification = self.get_object()
        notification.read = True
        notification.save(update_fields=['read'])
        return Response(NotificationSerializer(notification).data)
