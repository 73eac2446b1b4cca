# Overview: Locale string tables and lookup helpers (French by default).

"""
Translations are nested dicts keyed by locale, then group, then key.
Lookups use dotted keys: translate("auth.roles.admin").

Placeholders are written ":name" and substituted from keyword arguments:
    translate("auth.throttle", seconds=42)
"""

from __future__ import annotations

import re

from flask import current_app, has_app_context


FALLBACK_LOCALE = "fr"

TRANSLATIONS: dict[str, dict] = {
    "fr": {
        "auth": {
            "email": "Adresse email",
            "failed": "Ces identifiants ne correspondent pas à nos enregistrements.",
            "forgot_password": "Mot de passe oublié ?",
            "login": "Connexion",
            "logout": "Déconnexion",
            "name": "Nom",
            "password": "Mot de passe",
            "password_incorrect": "Le mot de passe est incorrect",
            "password_confirmation": "Confirmation du mot de passe",
            "register": "Inscription",
            "remember_me": "Se souvenir de moi",
            "reset_password": "Réinitialiser le mot de passe",
            "role": "Rôle",
            "roles": {
                "admin": "Administrateur",
                "caisse": "Caissier",
                "stock": "Gestionnaire de stock",
            },
            "throttle": "Tentatives de connexion trop nombreuses. Veuillez essayer de nouveau dans :seconds secondes.",
            "unauthenticated": "Non authentifié",
            "unauthenticated_message": "Vous devez être connecté pour accéder à cette page.",
            "unauthorized": "Non autorisé",
            "unauthorized_message": "Vous n'avez pas les permissions nécessaires pour accéder à cette ressource.",
        },
    },
    "en": {
        "auth": {
            "email": "Email address",
            "failed": "These credentials do not match our records.",
            "login": "Log in",
            "logout": "Log out",
            "password": "Password",
            "throttle": "Too many login attempts. Please try again in :seconds seconds.",
        },
    },
}

# Roles with no entry in auth.roles
_EXTRA_ROLE_LABELS = {
    "super-admin": "Super administrateur",
    "serveur": "Serveur",
}

_PLACEHOLDER_RE = re.compile(r":([a-zA-Z_]+)")


def default_locale() -> str:
    if has_app_context():
        return current_app.config.get("DEFAULT_LOCALE") or FALLBACK_LOCALE
    return FALLBACK_LOCALE


def _lookup(table: dict, key: str):
    node = table
    for part in key.split("."):
        if not isinstance(node, dict) or part not in node:
            return None
        node = node[part]
    return node


def translate(key: str, locale: str | None = None, **replacements) -> str:
    """
    Resolve a dotted key in `locale`, then the default locale, then the
    fallback locale. Unknown keys come back unchanged.
    """
    candidates = [locale, default_locale(), FALLBACK_LOCALE]
    value = None
    for candidate in candidates:
        if not candidate or candidate not in TRANSLATIONS:
            continue
        value = _lookup(TRANSLATIONS[candidate], key)
        if isinstance(value, str):
            break
        value = None

    if value is None:
        return key

    if replacements:
        value = _PLACEHOLDER_RE.sub(
            lambda m: str(replacements[m.group(1)]) if m.group(1) in replacements else m.group(0),
            value,
        )
    return value


def translations_for(group: str, locale: str | None = None) -> dict:
    """Whole group (e.g. "auth") for the page payload, default locale filled in."""
    base = dict(TRANSLATIONS.get(FALLBACK_LOCALE, {}).get(group, {}))
    chosen = TRANSLATIONS.get(locale or default_locale(), {}).get(group, {})
    base.update(chosen)
    return base


def role_label(role: str | None, locale: str | None = None) -> str:
    if not role:
        return ""
    key = f"auth.roles.{role}"
    label = translate(key, locale)
    if label != key:
        return label
    return _EXTRA_ROLE_LABELS.get(role, role)
