from rest_framework.permissions import BasePermission, SAFE_METHODS

ROUTE_DENIED = "Not authorized to access this route"


def _signed_in(request):
    return bool(request.user and request.user.is_authenticated)


class IsAdmin(BasePermission):
    """Admin role only."""
    message = ROUTE_DENIED

    def has_permission(self, request, view):
        return _signed_in(request) and request.user.is_admin


class IsAdminOrMerchant(BasePermission):
    """Roles allowed to sell: merchants and admins."""
    message = ROUTE_DENIED

    def has_permission(self, request, view):
        return _signed_in(request) and request.user.can_sell()


class ReadOnlyOrAdminOrMerchant(IsAdminOrMerchant):
    """Public reads; catalog writes need a selling role."""

    def has_permission(self, request, view):
        return request.method in SAFE_METHODS or super().has_permission(request, view)


class ReadOnlyOrAdmin(IsAdmin):
    """Public reads; writes need an admin."""

    def has_permission(self, request, view):
        return request.method in SAFE_METHODS or super().has_permission(request, view)


class IsProductOwnerOrAdmin(BasePermission):
    """
    Admins may change any product; merchants only the ones they own.
    Unowned (seeded) products are admin-only.
    """
    message = "Not authorized to modify this product"

    def has_object_permission(self, request, view, obj):
        if request.method in SAFE_METHODS or request.user.is_admin:
            return True
        return obj.merchant_id is not None and obj.merchant_id == request.user.id
