"""
Custom permission classes for the iYaya admin API.
"""

from rest_framework import permissions


class IsActiveAccount(permissions.BasePermission):
    """
    Permission class that allows only authenticated accounts in good standing.

    Suspended, banned, inactive and deleted accounts are refused.

    Usage:
        class MyView(APIView):
            permission_classes = [IsAuthenticated, IsActiveAccount]
    """

    message = 'Your account is not active.'

    def has_permission(self, request, view):
        """
        Check that the user is authenticated and active.

        Args:
            request: HTTP request object
            view: View being accessed

        Returns:
            bool: True if the account is active, False otherwise
        """
        user = request.user
        if not user or not user.is_authenticated:
            return False

        return getattr(user, 'status', None) == 'active' and getattr(user, 'deleted_at', None) is None


class IsAdminRole(IsActiveAccount):
    """
    Permission class that allows only active admin or superadmin accounts.

    Usage:
        class MyView(APIView):
            permission_classes = [IsAuthenticated, IsAdminRole]
    """

    message = 'You do not have permission to perform this action. Admin privileges required.'

    def has_permission(self, request, view):
        if not super().has_permission(request, view):
            return False

        return request.user.role in ('admin', 'superadmin')
