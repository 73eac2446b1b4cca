# Overview: All permission definitions organized by category.
# Each permission is defined as: (code, name, description, category)

from .categories import PermissionCategory


# -- PRODUCTS --

PRODUCT_PERMISSIONS = [
    (
        "VIEW_PRODUCTS",
        "Voir les produits",
        "View the product catalogue and prices",
        PermissionCategory.PRODUCTS,
    ),
    (
        "MANAGE_PRODUCTS",
        "Gérer les produits",
        "Create, edit and delete products",
        PermissionCategory.PRODUCTS,
    ),
]


# -- STOCK --

STOCK_PERMISSIONS = [
    (
        "VIEW_STOCK",
        "Voir le stock",
        "View on-hand quantities and stock movements",
        PermissionCategory.STOCK,
    ),
    (
        "MANAGE_STOCK",
        "Mouvements de stock",
        "Record stock entries, exits and count adjustments",
        PermissionCategory.STOCK,
    ),
]


# -- SALES --

SALES_PERMISSIONS = [
    (
        "CREATE_SALE",
        "Nouvelle vente",
        "Create sales at the point of sale",
        PermissionCategory.SALES,
    ),
    (
        "VIEW_SALES",
        "Historique des ventes",
        "View sales history and sale details",
        PermissionCategory.SALES,
    ),
    (
        "EDIT_SALE",
        "Modifier une vente",
        "Edit the lines and payment of an existing sale",
        PermissionCategory.SALES,
    ),
    (
        "PRINT_RECEIPT",
        "Imprimer un ticket",
        "Render and print sale receipts",
        PermissionCategory.SALES,
    ),
]


# -- PRINTERS --

PRINTER_PERMISSIONS = [
    (
        "MANAGE_PRINTERS",
        "Gérer les imprimantes",
        "Create, edit, delete printers and choose the default one",
        PermissionCategory.PRINTERS,
    ),
]


# -- USERS --

USER_PERMISSIONS = [
    (
        "MANAGE_USERS",
        "Gérer les utilisateurs",
        "Create, edit and deactivate restaurant users",
        PermissionCategory.USERS,
    ),
    (
        "MANAGE_WAITERS",
        "Gérer les serveurs",
        "Create and delete PIN-based waiter accounts",
        PermissionCategory.USERS,
    ),
]


# -- REPORTS --

REPORT_PERMISSIONS = [
    (
        "VIEW_DASHBOARD",
        "Tableau de bord",
        "View the role dashboard",
        PermissionCategory.REPORTS,
    ),
    (
        "VIEW_REPORTS",
        "Rapports",
        "View daily, weekly, monthly and yearly sales reports",
        PermissionCategory.REPORTS,
    ),
]


# -- RESTAURANT --

RESTAURANT_PERMISSIONS = [
    (
        "MANAGE_CUSTOMIZATION",
        "Personnalisation",
        "Edit the restaurant's branding, receipt header and typography",
        PermissionCategory.RESTAURANT,
    ),
]


# -- SYSTEM --

SYSTEM_PERMISSIONS = [
    (
        "MANAGE_RESTAURANTS",
        "Gérer les restaurants",
        "Create, suspend, delete and restore restaurants (super-admin)",
        PermissionCategory.SYSTEM,
    ),
    (
        "MANAGE_SUBSCRIPTIONS",
        "Gérer les abonnements",
        "Change a restaurant's subscription plan (super-admin)",
        PermissionCategory.SYSTEM,
    ),
]


PERMISSION_DEFINITIONS = (
    PRODUCT_PERMISSIONS
    + STOCK_PERMISSIONS
    + SALES_PERMISSIONS
    + PRINTER_PERMISSIONS
    + USER_PERMISSIONS
    + REPORT_PERMISSIONS
    + RESTAURANT_PERMISSIONS
    + SYSTEM_PERMISSIONS
)
