"""
Build catalog (builds.json) and the build lab session view-model.

The catalog is plain input data: named preset builds plus the pacts and weapons they
reference. The session holds what the build lab page is currently showing so that the
calculator itself only ever receives explicit arguments.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .archetypes import ArchetypeFields, classify_pact, classify_weapon
from .metrics import (
    DEFAULT_PRESET_VIRTUES,
    Metrics,
    VirtueProfile,
    compute_metrics,
)

BUILDS_FILENAME = "builds.json"
NO_LABEL = "–"


class BuildMode(str, Enum):
    PRESET = "preset"
    CUSTOM = "custom"


def _string_list(value: Any) -> list[str]:
    # A bare string or number is dropped, not split.
    if not isinstance(value, list):
        return []
    return [str(v) for v in value if v is not None]


@dataclass
class Build:
    """One preset build from builds.json."""
    id: str
    name: str
    summary: str = ""
    tags: list[str] = field(default_factory=list)
    tips: list[str] = field(default_factory=list)
    pact_id: str | None = None
    weapon_id: str | None = None
    virtues: VirtueProfile | None = None

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Build:
        virtues = d.get("virtues")
        return cls(
            id=str(d["id"]),
            name=d.get("name") or str(d["id"]),
            summary=d.get("summary") or "",
            tags=_string_list(d.get("tags")),
            tips=_string_list(d.get("tips")),
            pact_id=d.get("pactId") or d.get("pact_id"),
            weapon_id=d.get("weaponId") or d.get("weapon_id"),
            virtues=VirtueProfile.coerce(virtues) if virtues else None,
        )

    def preset_virtues(self) -> VirtueProfile:
        return self.virtues or VirtueProfile.coerce(DEFAULT_PRESET_VIRTUES)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "summary": self.summary,
            "tags": self.tags,
            "tips": self.tips,
            "pact_id": self.pact_id,
            "weapon_id": self.weapon_id,
            "virtues": self.preset_virtues().to_dict(),
        }


def pact_label(pact: Any) -> str:
    if pact is None:
        return NO_LABEL
    return ArchetypeFields.from_source(pact).first_present(("role", "name")) or NO_LABEL


def weapon_label(weapon: Any) -> str:
    if weapon is None:
        return NO_LABEL
    return ArchetypeFields.from_source(weapon).first_present(("type", "category", "name")) or NO_LABEL


class BuildCatalog:
    """
    Builds, pacts and weapons keyed by id.
    Pacts and weapons stay as raw dicts; only the classifier reads their text fields.
    """

    def __init__(
        self,
        builds: list[Build] | None = None,
        pacts: list[dict[str, Any]] | None = None,
        weapons: list[dict[str, Any]] | None = None,
    ) -> None:
        self.builds: list[Build] = list(builds or [])
        self.pacts: list[dict[str, Any]] = list(pacts or [])
        self.weapons: list[dict[str, Any]] = list(weapons or [])

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> BuildCatalog:
        builds = [Build.from_dict(b) for b in data.get("builds") or [] if isinstance(b, dict) and "id" in b]
        pacts = [p for p in data.get("pacts") or [] if isinstance(p, dict)]
        weapons = [w for w in data.get("weapons") or [] if isinstance(w, dict)]
        return cls(builds=builds, pacts=pacts, weapons=weapons)

    def find_build(self, build_id: str | None) -> Build | None:
        return next((b for b in self.builds if b.id == build_id), None)

    def find_pact(self, pact_id: str | None) -> dict[str, Any] | None:
        if not pact_id:
            return None
        return next((p for p in self.pacts if p.get("id") == pact_id), None)

    def find_weapon(self, weapon_id: str | None) -> dict[str, Any] | None:
        if not weapon_id:
            return None
        return next((w for w in self.weapons if w.get("id") == weapon_id), None)

    def metrics_for(self, virtues: Any, pact_id: str | None, weapon_id: str | None) -> Metrics:
        """Unknown ids behave like no selection (neutral pact, balanced weapon)."""
        pact_style = classify_pact(self.find_pact(pact_id))
        weapon_style = classify_weapon(self.find_weapon(weapon_id))
        return compute_metrics(virtues, pact_style, weapon_style)

    def to_dict(self) -> dict[str, Any]:
        return {
            "builds": [b.to_dict() for b in self.builds],
            "pacts": [
                {"id": p.get("id"), "name": p.get("name"), "style": classify_pact(p).value, "label": pact_label(p)}
                for p in self.pacts
            ],
            "weapons": [
                {"id": w.get("id"), "name": w.get("name"), "style": classify_weapon(w).value, "label": weapon_label(w)}
                for w in self.weapons
            ],
        }


# ---------- Session (view-model) ----------


@dataclass
class BuildLabSession:
    """
    What the build lab is showing: active preset, mode, virtues, pact and weapon.
    Preset mode locks virtues to the active build; custom mode accepts slider input.
    """
    catalog: BuildCatalog
    active_build_id: str | None = None
    mode: BuildMode = BuildMode.PRESET
    virtues: VirtueProfile = field(default_factory=VirtueProfile)
    pact_id: str | None = None
    weapon_id: str | None = None

    @classmethod
    def start(cls, catalog: BuildCatalog) -> BuildLabSession:
        """Open on the first build in preset mode (empty session if there are none)."""
        session = cls(catalog=catalog)
        if catalog.builds:
            session.select_build(catalog.builds[0].id)
        return session

    def select_build(self, build_id: str) -> Build:
        build = self.catalog.find_build(build_id)
        if build is None:
            raise KeyError(f"Build not found: {build_id}")
        self.active_build_id = build.id
        self.pact_id = build.pact_id
        self.weapon_id = build.weapon_id
        self.virtues = build.preset_virtues().clamped()
        return build

    def set_mode(self, mode: BuildMode | str) -> None:
        try:
            self.mode = BuildMode(mode)
        except ValueError:
            raise ValueError(f"mode must be 'preset' or 'custom', got {mode!r}") from None
        if self.mode == BuildMode.PRESET and self.active_build_id:
            self.select_build(self.active_build_id)

    def set_virtues(self, virtues: Any) -> bool:
        """Apply slider values. Returns False (no change) outside custom mode."""
        if self.mode != BuildMode.CUSTOM:
            return False
        self.virtues = VirtueProfile.coerce(virtues).clamped()
        return True

    def select_pact(self, pact_id: str | None) -> None:
        self.pact_id = pact_id or None

    def select_weapon(self, weapon_id: str | None) -> None:
        self.weapon_id = weapon_id or None

    def metrics(self) -> Metrics:
        return self.catalog.metrics_for(self.virtues, self.pact_id, self.weapon_id)

    def snapshot(self) -> dict[str, Any]:
        pact = self.catalog.find_pact(self.pact_id)
        weapon = self.catalog.find_weapon(self.weapon_id)
        return {
            "build_id": self.active_build_id,
            "mode": self.mode.value,
            "virtues": self.virtues.to_dict(),
            "pact_id": self.pact_id,
            "weapon_id": self.weapon_id,
            "pact_label": pact_label(pact),
            "weapon_label": weapon_label(weapon),
            "pact_style": classify_pact(pact).value,
            "weapon_style": classify_weapon(weapon).value,
            "metrics": self.metrics().to_dict(),
        }
