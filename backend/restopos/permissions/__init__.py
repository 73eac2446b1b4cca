# Overview: Permission system package.
# Re-exports the public API so callers import from restopos.permissions.

from .categories import PermissionCategory
from .definitions import (
    PERMISSION_DEFINITIONS,
    PRODUCT_PERMISSIONS,
    STOCK_PERMISSIONS,
    SALES_PERMISSIONS,
    PRINTER_PERMISSIONS,
    USER_PERMISSIONS,
    REPORT_PERMISSIONS,
    RESTAURANT_PERMISSIONS,
    SYSTEM_PERMISSIONS,
)
from .roles import ROLE_PERMISSIONS, permissions_for_role

__all__ = [
    "PermissionCategory",
    "PERMISSION_DEFINITIONS",
    "PRODUCT_PERMISSIONS",
    "STOCK_PERMISSIONS",
    "SALES_PERMISSIONS",
    "PRINTER_PERMISSIONS",
    "USER_PERMISSIONS",
    "REPORT_PERMISSIONS",
    "RESTAURANT_PERMISSIONS",
    "SYSTEM_PERMISSIONS",
    "ROLE_PERMISSIONS",
    "permissions_for_role",
]
