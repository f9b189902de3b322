"""
CondoSys — Custom Permissions
Billing writes belong to staff users or owners with the administrador role.
"""
from rest_framework.permissions import BasePermission, SAFE_METHODS

from .models import Owner


def owner_for(user):
    if not user or not user.is_authenticated:
        return None
    return Owner.objects.filter(user=user).first()


def is_billing_admin(user):
    if not user or not user.is_authenticated:
        return False
    if user.is_staff:
        return True
    return Owner.objects.filter(user=user, role=Owner.ROLE_ADMIN).exists()


class IsBillingAdmin(BasePermission):
    """Staff user OR owner with role administrador."""
    def has_permission(self, request, view):
        return is_billing_admin(request.user)


class IsBillingAdminOrReadOnly(BasePermission):
    """Any authenticated user may read; writes need a billing admin."""
    def has_permission(self, request, view):
        if not request.user or not request.user.is_authenticated:
            return False
        if request.method in SAFE_METHODS:
            return True
        return is_billing_admin(request.user)
