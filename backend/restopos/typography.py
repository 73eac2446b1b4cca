# Overview: Typography preference resolution (restaurant settings, stored preference, default).

"""
Typography settings.

Three layers, first match wins:

1. server  - the restaurant's customization (font_family / font_size).
             When present, each field comes from it if truthy, else from the
             default. The local layer is then ignored entirely.
2. local   - the user's stored preference (JSON object under STORAGE_KEY),
             merged over the default.
3. default - Instrument Sans, normal.

A stored preference that is not valid JSON, or not a JSON object, reads as
the default.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, replace
from typing import Any, Mapping, Optional


FONT_SIZES = ("small", "normal", "large")
STORAGE_KEY = "restaurant_typography"

SOURCE_SERVER = "server"
SOURCE_LOCAL = "local"
SOURCE_DEFAULT = "default"


@dataclass(frozen=True)
class TypographySettings:
    font_family: str
    font_size: str

    def to_dict(self) -> dict:
        return asdict(self)


DEFAULT_TYPOGRAPHY = TypographySettings(font_family="Instrument Sans", font_size="normal")

_FIELDS = ("font_family", "font_size")


def _merge(base: TypographySettings, layer: Mapping[str, Any]) -> TypographySettings:
    changes = {k: layer[k] for k in _FIELDS if layer.get(k) is not None}
    return replace(base, **changes)


def resolve_typography_with_source(
    server: Optional[Mapping[str, Any]] = None,
    local: Optional[Mapping[str, Any]] = None,
    default: TypographySettings = DEFAULT_TYPOGRAPHY,
) -> tuple[TypographySettings, str]:
    if server is not None:
        return (
            TypographySettings(
                font_family=server.get("font_family") or default.font_family,
                font_size=server.get("font_size") or default.font_size,
            ),
            SOURCE_SERVER,
        )

    if local is not None:
        return _merge(default, local), SOURCE_LOCAL

    return default, SOURCE_DEFAULT


def resolve_typography(
    server: Optional[Mapping[str, Any]] = None,
    local: Optional[Mapping[str, Any]] = None,
    default: TypographySettings = DEFAULT_TYPOGRAPHY,
) -> TypographySettings:
    settings, _ = resolve_typography_with_source(server, local, default)
    return settings


def _load_object(raw: str) -> Optional[dict]:
    try:
        parsed = json.loads(raw)
    except (TypeError, ValueError):
        return None
    return parsed if isinstance(parsed, dict) else None


def parse_stored_typography(raw: Optional[str]) -> Optional[dict]:
    """
    None for a missing/empty value; the default for malformed content;
    the stored object otherwise.
    """
    if not raw:
        return None
    parsed = _load_object(raw)
    return parsed if parsed is not None else DEFAULT_TYPOGRAPHY.to_dict()


def typography_from_storage(storage: Optional[Mapping[str, str]]) -> Optional[dict]:
    """
    The stored preference as a local layer, read from any mapping (cookies,
    a dict). Missing or malformed content gives None, so resolution reports
    the default source.
    """
    if not storage or not storage.get(STORAGE_KEY):
        return None
    return _load_object(storage[STORAGE_KEY])


def update_typography(current: TypographySettings, patch: Mapping[str, Any]) -> tuple[TypographySettings, str]:
    """
    Merge a partial update. Returns the new settings and the JSON string to
    store under STORAGE_KEY.

    Raises ValueError for an unknown font size or an empty font family.
    """
    if "font_size" in patch and patch["font_size"] not in FONT_SIZES:
        raise ValueError(f"font_size must be one of {', '.join(FONT_SIZES)}")
    if "font_family" in patch:
        family = patch["font_family"]
        if not isinstance(family, str) or not family.strip():
            raise ValueError("font_family must be a non-empty string")
        patch = {**patch, "font_family": family.strip()}

    updated = _merge(current, patch)
    return updated, json.dumps(updated.to_dict())
