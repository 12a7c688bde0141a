"""
Build lab: archetype classification, modifier tables and the metrics formula.
Pure functions only; loading builds.json is the caller's job.
"""
from .archetypes import PactStyle, WeaponStyle, classify_pact, classify_weapon
from .catalog import Build, BuildCatalog, BuildLabSession, BuildMode
from .metrics import Metrics, VirtueProfile, compute_build_metrics, compute_metrics
from .modifiers import ModifierVector, pact_modifier, weapon_modifier

__all__ = [
    "PactStyle",
    "WeaponStyle",
    "classify_pact",
    "classify_weapon",
    "Build",
    "BuildCatalog",
    "BuildLabSession",
    "BuildMode",
    "Metrics",
    "VirtueProfile",
    "compute_build_metrics",
    "compute_metrics",
    "ModifierVector",
    "pact_modifier",
    "weapon_modifier",
]
