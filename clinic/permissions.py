"""
Custom permission classes for role based access control.

Each dashboard of the front end is gated by one role; these classes are
the server side of those route guards.
"""
from rest_framework.exceptions import PermissionDenied
from rest_framework.permissions import BasePermission


def _role(request):
    user = getattr(request, "user", None)
    if not (user and user.is_authenticated):
        return None
    return getattr(user, "role", None)


class HasRole(BasePermission):
    """Allow access to users whose role is in ``roles``.

    Use :meth:`of` to build a concrete class:
    ``permission_classes([IsAuthenticated, HasRole.of('admin', 'staff')])``.
    """
    roles: frozenset = frozenset()

    @classmethod
    def of(cls, *roles: str):
        return type(f"HasRole_{'_'.join(roles)}", (cls,), {"roles": frozenset(roles)})

    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return _role(request) in self.roles


class IsAdmin(BasePermission):
    """Allow access only to administrators."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return _role(request) == "admin"


class IsDoctor(BasePermission):
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return _role(request) == "doctor"


class IsStaff(BasePermission):
    """Hospital staff (front desk, nursing, accounts)."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return _role(request) == "staff"


def require_role(request, *roles: str) -> None:
    """Per-method role check for views that serve several verbs."""
    if _role(request) not in roles:
        raise PermissionDenied('You do not have permission to perform this action.')
