"""
Style modifier tables.
Each style key adds a fixed vector to the base metrics; values may be negative.
Tweaking a style's feel means editing these tables only, never the formula.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .archetypes import PactStyle, WeaponStyle


@dataclass(frozen=True)
class ModifierVector:
    damage: float = 0.0
    defense: float = 0.0
    mobility: float = 0.0
    control: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "damage": self.damage,
            "defense": self.defense,
            "mobility": self.mobility,
            "control": self.control,
        }


ZERO_MODIFIER = ModifierVector()

PACT_MODIFIERS: dict[PactStyle, ModifierVector] = {
    PactStyle.DEFENDER: ModifierVector(damage=-0.4, defense=1.3, mobility=-0.4, control=0.3),
    PactStyle.VANGUARD: ModifierVector(damage=1.0, defense=-0.6, mobility=0.4, control=0.0),
    PactStyle.MYSTIC: ModifierVector(damage=0.4, defense=-0.4, mobility=0.0, control=1.0),
    PactStyle.NEUTRAL: ZERO_MODIFIER,
}

WEAPON_MODIFIERS: dict[WeaponStyle, ModifierVector] = {
    WeaponStyle.SWORD_SHIELD: ModifierVector(damage=-0.1, defense=0.7, mobility=-0.3, control=0.0),
    WeaponStyle.HEAVY: ModifierVector(damage=0.7, defense=0.0, mobility=-0.5, control=-0.1),
    WeaponStyle.SPIRIT: ModifierVector(damage=0.4, defense=-0.5, mobility=0.0, control=0.8),
    WeaponStyle.FINESSE: ModifierVector(damage=0.2, defense=-0.2, mobility=0.5, control=0.3),
    WeaponStyle.RANGED: ModifierVector(damage=0.4, defense=-0.3, mobility=0.2, control=0.4),
    WeaponStyle.BALANCED: ZERO_MODIFIER,
}


def pact_modifier(style: PactStyle | str | None) -> ModifierVector:
    # Plain strings resolve through the enum's value lookup; anything unknown is zero.
    return PACT_MODIFIERS.get(style, ZERO_MODIFIER)  # type: ignore[arg-type]


def weapon_modifier(style: WeaponStyle | str | None) -> ModifierVector:
    return WEAPON_MODIFIERS.get(style, ZERO_MODIFIER)  # type: ignore[arg-type]


def list_styles() -> dict[str, list[dict[str, Any]]]:
    """For API/frontend: every style key with its modifier vector."""
    return {
        "pact_styles": [{"id": s.value, "modifiers": PACT_MODIFIERS[s].to_dict()} for s in PactStyle],
        "weapon_styles": [{"id": s.value, "modifiers": WEAPON_MODIFIERS[s].to_dict()} for s in WeaponStyle],
    }
