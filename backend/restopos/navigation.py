# Overview: Role-filtered navigation menus served to the dashboard.

"""
Navigation entries and their role filters.

Two filtering rules are in use:

- settings menu (filter_nav_for_role): entries without roles are shown to
  everyone; restricted entries only to admins and super-admins.
- main sidebar (sidebar_items_for_role): an entry is shown when the user's
  role is listed in its roles. A missing role is treated as "caisse".
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from .models.auth import ROLE_ADMIN, ROLE_CASHIER, ROLE_STOCK, ROLE_SUPER_ADMIN


DEFAULT_SIDEBAR_ROLE = ROLE_CASHIER
ADMIN_ROLES = (ROLE_ADMIN, ROLE_SUPER_ADMIN)


@dataclass(frozen=True)
class NavItem:
    title: str
    href: str
    icon: Optional[str] = None
    roles: Optional[tuple[str, ...]] = None

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "href": self.href,
            "icon": self.icon,
            "roles": list(self.roles) if self.roles is not None else None,
        }


MAIN_NAV_ITEMS = (
    NavItem("Dashboard", "/dashboard", "layout-grid", (ROLE_ADMIN, ROLE_CASHIER, ROLE_STOCK)),
    NavItem("Vente", "/ventes/create", "shopping-cart", (ROLE_ADMIN, ROLE_CASHIER)),
    NavItem("Historique", "/ventes", "history", (ROLE_ADMIN, ROLE_CASHIER)),
    NavItem("Stock", "/stock", "package", (ROLE_ADMIN, ROLE_STOCK)),
    NavItem("Rapports", "/rapports", "bar-chart-3", (ROLE_ADMIN,)),
    NavItem("Imprimantes", "/printers", "printer", (ROLE_ADMIN,)),
    NavItem("Utilisateurs", "/users", "users", (ROLE_ADMIN,)),
    NavItem("Restaurants", "/restaurants", "building-2", (ROLE_SUPER_ADMIN,)),
    NavItem("Serveurs", "/serveurs", "user-plus", (ROLE_ADMIN,)),
    NavItem("Personnalisation", "/restaurant/customization/edit", "palette", (ROLE_ADMIN,)),
)

FOOTER_NAV_ITEMS = (
    NavItem("Aide & Support", "/aide", "help-circle"),
    NavItem("À propos", "#", "info"),
)

SETTINGS_NAV_ITEMS = (
    NavItem("Profil", "/settings/profile"),
    NavItem("Mot de passe", "/settings/password"),
    NavItem("Authentification à deux facteurs", "/settings/two-factor", roles=ADMIN_ROLES),
    NavItem("Apparence", "/settings/appearance", roles=ADMIN_ROLES),
)


def filter_nav_for_role(items: Iterable[NavItem], role: Optional[str]) -> list[NavItem]:
    """Admins see everything; anyone else only entries without a role restriction."""
    if role in ADMIN_ROLES:
        return list(items)
    return [item for item in items if not item.roles]


def sidebar_items_for_role(items: Iterable[NavItem], role: Optional[str]) -> list[NavItem]:
    role = role or DEFAULT_SIDEBAR_ROLE
    return [item for item in items if role in (item.roles or ())]


def navigation_for_role(role: Optional[str]) -> dict:
    return {
        "main": [item.to_dict() for item in sidebar_items_for_role(MAIN_NAV_ITEMS, role)],
        "footer": [item.to_dict() for item in FOOTER_NAV_ITEMS],
        "settings": [item.to_dict() for item in filter_nav_for_role(SETTINGS_NAV_ITEMS, role)],
    }
