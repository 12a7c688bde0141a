"""
Build metrics: virtue triple + pact style + weapon style -> five bounded ratings.

Pure and stateless. Inputs are coerced rather than rejected, so partial or malformed
build data degrades to a neutral calculation instead of failing:
- missing or non-numeric virtues count as 0, numeric strings are accepted;
- a missing pact/weapon classifies as neutral/balanced.

Complexity is derived from virtue dispersion and is inverse: an even spread rates 5,
a single-virtue focus rates lower, as on the published build lab.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Mapping

from .archetypes import PactStyle, WeaponStyle, classify_pact, classify_weapon
from .modifiers import pact_modifier, weapon_modifier

# ---------- Scales ----------
VIRTUE_MIN = 0.0
VIRTUE_MAX = 100.0
METRIC_MIN = 0.0
METRIC_MAX = 5.0
COMPLEXITY_MIN = 1
COMPLEXITY_MAX = 5
COMPLEXITY_SPREAD_STEP = 20  # one complexity point per 20 virtue points of mean deviation

# Default virtues for a preset build that doesn't declare any.
DEFAULT_PRESET_VIRTUES = {"courage": 40, "grace": 30, "spirit": 30}


# ---------- Axis weights (courage, grace, spirit) ----------
DEFENSE_WEIGHTS = (0.7, 0.1, 0.2)
MOBILITY_WEIGHTS = (0.1, 0.75, 0.15)
CONTROL_WEIGHTS = (0.15, 0.35, 0.5)

DAMAGE_WEIGHTS: dict[WeaponStyle, tuple[float, float, float]] = {
    WeaponStyle.HEAVY: (0.6, 0.1, 0.3),
    WeaponStyle.SWORD_SHIELD: (0.6, 0.1, 0.3),
    WeaponStyle.FINESSE: (0.4, 0.4, 0.2),
    WeaponStyle.RANGED: (0.4, 0.4, 0.2),
    WeaponStyle.SPIRIT: (0.15, 0.15, 0.7),
}
DEFAULT_DAMAGE_WEIGHTS = (0.45, 0.2, 0.35)


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def round_half_up(value: float) -> int:
    """Round .5 upward (Python's round() would send 2.5 to 2)."""
    return int(math.floor(value + 0.5))


def coerce_virtue(raw: Any) -> float:
    """Virtue value as a number; anything non-numeric (or NaN) is 0."""
    if isinstance(raw, bool) or raw is None:
        return 0.0
    if isinstance(raw, (int, float)):
        value = float(raw)
    elif isinstance(raw, str):
        try:
            value = float(raw.strip())
        except ValueError:
            return 0.0
    else:
        return 0.0
    if math.isnan(value):
        return 0.0
    return value


@dataclass(frozen=True)
class VirtueProfile:
    courage: float = 0.0
    grace: float = 0.0
    spirit: float = 0.0

    @classmethod
    def coerce(cls, source: Any) -> VirtueProfile:
        """From a mapping, another profile, or None. Unknown shapes give all zeros."""
        if isinstance(source, VirtueProfile):
            return source
        if isinstance(source, Mapping):
            return cls(
                courage=coerce_virtue(source.get("courage")),
                grace=coerce_virtue(source.get("grace")),
                spirit=coerce_virtue(source.get("spirit")),
            )
        if source is None:
            return cls()
        return cls(
            courage=coerce_virtue(getattr(source, "courage", None)),
            grace=coerce_virtue(getattr(source, "grace", None)),
            spirit=coerce_virtue(getattr(source, "spirit", None)),
        )

    def clamped(self) -> VirtueProfile:
        return VirtueProfile(
            courage=clamp(coerce_virtue(self.courage), VIRTUE_MIN, VIRTUE_MAX),
            grace=clamp(coerce_virtue(self.grace), VIRTUE_MIN, VIRTUE_MAX),
            spirit=clamp(coerce_virtue(self.spirit), VIRTUE_MIN, VIRTUE_MAX),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"courage": self.courage, "grace": self.grace, "spirit": self.spirit}


@dataclass(frozen=True)
class Metrics:
    """Four 0-5 combat ratings plus a 1-5 complexity rating."""
    damage: float
    defense: float
    mobility: float
    control: float
    complexity: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "damage": self.damage,
            "defense": self.defense,
            "mobility": self.mobility,
            "control": self.control,
            "complexity": self.complexity,
        }


def damage_weights(weapon_style: WeaponStyle | str | None) -> tuple[float, float, float]:
    return DAMAGE_WEIGHTS.get(weapon_style, DEFAULT_DAMAGE_WEIGHTS)  # type: ignore[arg-type]


def _weighted(weights: tuple[float, float, float], c: float, g: float, s: float) -> float:
    wc, wg, ws = weights
    return METRIC_MAX * (wc * c + wg * g + ws * s)


def base_metrics(virtues: VirtueProfile, weapon_style: WeaponStyle | str | None) -> dict[str, float]:
    """Axis values before modifiers and before the final clamp (0-5 scale)."""
    v = virtues.clamped()
    c, g, s = v.courage / VIRTUE_MAX, v.grace / VIRTUE_MAX, v.spirit / VIRTUE_MAX
    return {
        "damage": _weighted(damage_weights(weapon_style), c, g, s),
        "defense": _weighted(DEFENSE_WEIGHTS, c, g, s),
        "mobility": _weighted(MOBILITY_WEIGHTS, c, g, s),
        "control": _weighted(CONTROL_WEIGHTS, c, g, s),
    }


def complexity_rating(virtues: VirtueProfile) -> int:
    v = virtues.clamped()
    c, g, s = v.courage, v.grace, v.spirit
    total = (c + g + s) or 1
    avg = total / 3
    spread = (abs(c - avg) + abs(g - avg) + abs(s - avg)) / 3
    rating = COMPLEXITY_MAX - round_half_up(spread / COMPLEXITY_SPREAD_STEP)
    return int(clamp(rating, COMPLEXITY_MIN, COMPLEXITY_MAX))


def compute_metrics(
    virtues: VirtueProfile | Mapping[str, Any] | None,
    pact_style: PactStyle | str | None,
    weapon_style: WeaponStyle | str | None,
) -> Metrics:
    """
    Compute build metrics. Never raises for numeric/absent inputs; the result is a new
    value on every call.
    """
    profile = VirtueProfile.coerce(virtues)
    base = base_metrics(profile, weapon_style)
    pact_mod = pact_modifier(pact_style)
    weapon_mod = weapon_modifier(weapon_style)

    damage = base["damage"] + pact_mod.damage + weapon_mod.damage
    defense = base["defense"] + pact_mod.defense + weapon_mod.defense
    mobility = base["mobility"] + pact_mod.mobility + weapon_mod.mobility
    control = base["control"] + pact_mod.control + weapon_mod.control

    return Metrics(
        damage=clamp(damage, METRIC_MIN, METRIC_MAX),
        defense=clamp(defense, METRIC_MIN, METRIC_MAX),
        mobility=clamp(mobility, METRIC_MIN, METRIC_MAX),
        control=clamp(control, METRIC_MIN, METRIC_MAX),
        complexity=complexity_rating(profile),
    )


def compute_build_metrics(virtues: Any, pact: Any, weapon: Any) -> Metrics:
    """Classify raw pact/weapon records, then compute."""
    return compute_metrics(virtues, classify_pact(pact), classify_weapon(weapon))
