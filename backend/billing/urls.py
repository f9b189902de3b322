"""
CondoSys — API URL Configuration
"""
from django.urls import path, include
from rest_framework.routers import DefaultRouter
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView
from . import views

router = DefaultRouter()
router.register(r'owners', views.OwnerViewSet, basename='owners')
router.register(r'debts', views.DebtViewSet, basename='debts')
router.register(r'payments', views.PaymentViewSet, basename='payments')
router.register(r'exchange-rates', views.ExchangeRateViewSet, basename='exchange-rates')
router.register(r'notifications', views.NotificationViewSet, basename='notifications')

urlpatterns = [
    # Auth
    path('auth/token/', TokenObtainPairView.as_view(), name='token-obtain'),
    path('auth/token/refresh/', TokenRefreshView.as_view(), name='token-refresh'),

    # Batch / settings
    path('reconciliation/', views.ReconciliationView.as_view(), name='reconciliation'),
    path('settings/', views.BillingSettingsView.as_view(), name='billing-settings'),

    path('', include(router.urls)),
]
