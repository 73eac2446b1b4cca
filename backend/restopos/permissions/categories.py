# Overview: Permission category constants for grouping related permissions.


class PermissionCategory:
    """Permission categories for organization and UI display."""
    PRODUCTS = "PRODUCTS"
    STOCK = "STOCK"
    SALES = "SALES"
    PRINTERS = "PRINTERS"
    USERS = "USERS"
    REPORTS = "REPORTS"
    RESTAURANT = "RESTAURANT"
    SYSTEM = "SYSTEM"
