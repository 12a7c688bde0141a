"""
Archetype classification for the build lab.
Pacts and weapons carry free-text identity fields; these are mapped to a closed set
of style keys by keyword matching so the metrics formula never sees raw text.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping

# ---------- Style keys ----------


class PactStyle(str, Enum):
    DEFENDER = "defender"
    VANGUARD = "vanguard"
    MYSTIC = "mystic"
    NEUTRAL = "neutral"


class WeaponStyle(str, Enum):
    SWORD_SHIELD = "sword_shield"
    HEAVY = "heavy"
    SPIRIT = "spirit"
    FINESSE = "finesse"
    RANGED = "ranged"
    BALANCED = "balanced"


# ---------- Keyword groups (checked in order; first match wins) ----------

PACT_KEYWORDS: tuple[tuple[PactStyle, tuple[str, ...]], ...] = (
    (PactStyle.DEFENDER, ("defend", "warden", "tank")),
    (PactStyle.VANGUARD, ("vanguard", "aggress", "assault")),
    (PactStyle.MYSTIC, ("mystic", "spirit", "caster")),
)

WEAPON_KEYWORDS: tuple[tuple[WeaponStyle, tuple[str, ...]], ...] = (
    (WeaponStyle.SPIRIT, ("staff", "wand", "spirit", "rod")),
    (WeaponStyle.FINESSE, ("rapier", "dagger", "finesse", "duelist")),
    (WeaponStyle.RANGED, ("bow", "ranged", "crossbow")),
    (WeaponStyle.HEAVY, ("greatsword", "heavy", "hammer", "axe")),
    (WeaponStyle.SWORD_SHIELD, ("shield", "sword & shield", "sword_shield")),
)

# Field priority for building the search text.
PACT_FIELDS = ("role", "name", "id")
WEAPON_FIELDS = ("type", "category", "role", "name", "id")


@dataclass(frozen=True)
class ArchetypeFields:
    """Identity fields of a pact or weapon. Every field is optional."""
    id: str | None = None
    name: str | None = None
    role: str | None = None
    type: str | None = None
    category: str | None = None

    @classmethod
    def from_source(cls, source: Any) -> ArchetypeFields:
        """Build from a JSON mapping or any object exposing the same attribute names."""
        if isinstance(source, ArchetypeFields):
            return source
        values: dict[str, str | None] = {}
        for key in WEAPON_FIELDS:
            if isinstance(source, Mapping):
                raw = source.get(key)
            else:
                raw = getattr(source, key, None)
            values[key] = _as_text(raw)
        return cls(**values)

    def first_present(self, priority: tuple[str, ...]) -> str:
        for key in priority:
            value = getattr(self, key)
            if value:
                return value
        return ""


def _as_text(raw: Any) -> str | None:
    # Falsy values (None, "", 0) count as absent, like the site's `a || b` lookups.
    if not raw:
        return None
    return raw if isinstance(raw, str) else str(raw)


def _search_text(source: Any, priority: tuple[str, ...]) -> str:
    return ArchetypeFields.from_source(source).first_present(priority).lower()


def classify_pact(pact: Any) -> PactStyle:
    """Pact -> style key. None (no pact selected) is neutral."""
    if pact is None:
        return PactStyle.NEUTRAL
    text = _search_text(pact, PACT_FIELDS)
    for style, keywords in PACT_KEYWORDS:
        if any(k in text for k in keywords):
            return style
    return PactStyle.NEUTRAL


def classify_weapon(weapon: Any) -> WeaponStyle:
    """Weapon -> style key. None (no weapon selected) is balanced."""
    if weapon is None:
        return WeaponStyle.BALANCED
    text = _search_text(weapon, WEAPON_FIELDS)
    for style, keywords in WEAPON_KEYWORDS:
        if any(k in text for k in keywords):
            return style
    return WeaponStyle.BALANCED


def parse_pact_style(value: str | None) -> PactStyle | None:
    """Parse a style key string; None if invalid or empty."""
    if not value:
        return None
    try:
        return PactStyle(value.strip().lower())
    except ValueError:
        return None


def parse_weapon_style(value: str | None) -> WeaponStyle | None:
    if not value:
        return None
    try:
        return WeaponStyle(value.strip().lower())
    except ValueError:
        return None
