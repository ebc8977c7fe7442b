# api/permissions/payments.py
import logging
from rest_framework import permissions
from users.models import UserType

logger = logging.getLogger(__name__)


class IsArtistUser(permissions.BasePermission):
    """
    Only authenticated users with user_type='artist' may access the view.
    """
    message = 'Access denied. Only authenticated artists are permitted.'

    def has_permission(self, request, view):
        if not request.user.is_authenticated:
            logger.error("Permission denied: User not authenticated.")
            return False

        if getattr(request.user, 'user_type', None) != UserType.ARTIST:
            logger.warning(f"Permission denied: User {request.user} is not an 'artist' (Type: {getattr(request.user, 'user_type', None)}).")
            return False

        return True


class IsLedgerAdmin(permissions.BasePermission):
    """
    Superusers and admin/staff accounts review withdrawals.
    """
    message = 'Access denied. Only administrators may review withdrawals.'

    def has_permission(self, request, view):
        if not request.user.is_authenticated:
            return False
        if not request.user.is_ledger_admin:
            logger.warning(f"Permission denied: User {request.user} is not a ledger admin.")
            return False
        return True
