# Overview: Role to permission mapping.
# Roles are plain strings on User.role; there are no role tables.

from ..models.auth import ROLE_ADMIN, ROLE_CASHIER, ROLE_STOCK, ROLE_SUPER_ADMIN, ROLE_WAITER
from .definitions import PERMISSION_DEFINITIONS, SYSTEM_PERMISSIONS


_ALL_CODES = frozenset(perm[0] for perm in PERMISSION_DEFINITIONS)
_SYSTEM_CODES = frozenset(perm[0] for perm in SYSTEM_PERMISSIONS)


ROLE_PERMISSIONS = {
    # Super-admins bypass permission checks; listed for completeness
    ROLE_SUPER_ADMIN: _ALL_CODES,

    # Everything inside the restaurant
    ROLE_ADMIN: _ALL_CODES - _SYSTEM_CODES,

    ROLE_CASHIER: frozenset({
        "VIEW_PRODUCTS",
        "CREATE_SALE",
        "VIEW_SALES",
        "EDIT_SALE",
        "PRINT_RECEIPT",
        "VIEW_DASHBOARD",
    }),

    ROLE_STOCK: frozenset({
        "VIEW_PRODUCTS",
        "MANAGE_PRODUCTS",
        "VIEW_STOCK",
        "MANAGE_STOCK",
        "VIEW_DASHBOARD",
    }),

    # Waiters take orders; their history is limited to their own sales
    ROLE_WAITER: frozenset({
        "VIEW_PRODUCTS",
        "CREATE_SALE",
        "VIEW_SALES",
        "VIEW_DASHBOARD",
    }),
}


def permissions_for_role(role: str | None) -> frozenset[str]:
    return ROLE_PERMISSIONS.get(role or "", frozenset())
