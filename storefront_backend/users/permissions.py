# users/permissions.py

from rest_framework.permissions import BasePermission

from users.models import User


# ---------------- BASE ROLE PERMISSION ----------------
class HasRole(BasePermission):
    """
    Base permission to check user role safely.
    """

    allowed_roles = set()

    def has_permission(self, request, view):
        user = request.user
        return bool(
            user
            and user.is_authenticated
            and getattr(user, "role", None) in self.allowed_roles
        )


# ---------------- ROLE PERMISSIONS ----------------
class IsAdmin(HasRole):
    allowed_roles = {User.ROLE_ADMIN}


class IsStaff(HasRole):
    """
    Any back-office member:
    - admin
    - staff
    """

    allowed_roles = set(User.STAFF_ROLES)


def actor_role_for(user) -> str:
    """Role used by the order state machine for this caller."""
    if user is None or not getattr(user, "is_authenticated", False):
        return User.ROLE_CUSTOMER
    return getattr(user, "role", None) or User.ROLE_CUSTOMER
