"""
Build lab calculator tests: archetype classification, modifier tables, metrics formula.
"""
from __future__ import annotations

import itertools
import sys
from pathlib import Path
from types import SimpleNamespace

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent.parent))

from atlas.build_lab import (
    Metrics,
    PactStyle,
    VirtueProfile,
    WeaponStyle,
    classify_pact,
    classify_weapon,
    compute_build_metrics,
    compute_metrics,
    pact_modifier,
    weapon_modifier,
)
from atlas.build_lab.archetypes import parse_pact_style, parse_weapon_style
from atlas.build_lab.metrics import base_metrics, complexity_rating, damage_weights, round_half_up
from atlas.build_lab.modifiers import ZERO_MODIFIER, list_styles


class TestPactClassifier:
    def test_none_is_neutral(self):
        assert classify_pact(None) == PactStyle.NEUTRAL

    def test_empty_record_is_neutral(self):
        assert classify_pact({}) == PactStyle.NEUTRAL

    @pytest.mark.parametrize(
        "pact, expected",
        [
            ({"role": "Tank"}, PactStyle.DEFENDER),
            ({"role": "Warden of the Gate"}, PactStyle.DEFENDER),
            ({"role": "Defender support"}, PactStyle.DEFENDER),
            ({"role": "Defensive support"}, PactStyle.NEUTRAL),
            ({"name": "Vanguard Oath"}, PactStyle.VANGUARD),
            ({"role": "Aggressive duelist"}, PactStyle.VANGUARD),
            ({"id": "assault-pact"}, PactStyle.VANGUARD),
            ({"role": "Caster"}, PactStyle.MYSTIC),
            ({"name": "Spirit Bond"}, PactStyle.MYSTIC),
            ({"name": "Pact of Tides"}, PactStyle.NEUTRAL),
        ],
    )
    def test_keywords(self, pact, expected):
        assert classify_pact(pact) == expected

    def test_role_checked_before_name(self):
        assert classify_pact({"role": "Tank", "name": "Vanguard"}) == PactStyle.DEFENDER

    def test_empty_role_falls_back_to_name(self):
        assert classify_pact({"role": "", "name": "Mystic Circle"}) == PactStyle.MYSTIC

    def test_only_first_present_field_is_searched(self):
        # role has no keyword; name would match but is never consulted
        assert classify_pact({"role": "Support", "name": "Tank Pact"}) == PactStyle.NEUTRAL

    def test_group_order_first_match_wins(self):
        # contains both "tank" and "spirit": defender group is checked first
        assert classify_pact({"role": "Spirit tank"}) == PactStyle.DEFENDER

    def test_case_insensitive(self):
        assert classify_pact({"role": "VANGUARD"}) == PactStyle.VANGUARD

    def test_attribute_object(self):
        assert classify_pact(SimpleNamespace(role="warden")) == PactStyle.DEFENDER

    def test_non_string_id(self):
        assert classify_pact({"id": 7}) == PactStyle.NEUTRAL


class TestWeaponClassifier:
    def test_none_is_balanced(self):
        assert classify_weapon(None) == WeaponStyle.BALANCED

    @pytest.mark.parametrize(
        "weapon, expected",
        [
            ({"type": "Staff"}, WeaponStyle.SPIRIT),
            ({"name": "Oak Wand"}, WeaponStyle.SPIRIT),
            ({"category": "Rod"}, WeaponStyle.SPIRIT),
            ({"type": "Rapier"}, WeaponStyle.FINESSE),
            ({"role": "Duelist"}, WeaponStyle.FINESSE),
            ({"type": "Bow"}, WeaponStyle.RANGED),
            ({"type": "Crossbow"}, WeaponStyle.RANGED),
            ({"type": "Greatsword"}, WeaponStyle.HEAVY),
            ({"name": "War Hammer"}, WeaponStyle.HEAVY),
            ({"type": "Axe"}, WeaponStyle.HEAVY),
            ({"type": "Sword & Shield"}, WeaponStyle.SWORD_SHIELD),
            ({"id": "sword_shield"}, WeaponStyle.SWORD_SHIELD),
            ({"type": "Longsword"}, WeaponStyle.BALANCED),
        ],
    )
    def test_keywords(self, weapon, expected):
        assert classify_weapon(weapon) == expected

    def test_type_checked_before_name(self):
        assert classify_weapon({"type": "Staff", "name": "Hammer of Dawn"}) == WeaponStyle.SPIRIT

    def test_category_used_when_type_missing(self):
        assert classify_weapon({"category": "Dagger", "name": "Greataxe"}) == WeaponStyle.FINESSE

    def test_spirit_group_before_heavy(self):
        assert classify_weapon({"name": "Spirit Hammer"}) == WeaponStyle.SPIRIT


class TestStyleParsing:
    def test_parse_known(self):
        assert parse_pact_style(" Defender ") == PactStyle.DEFENDER
        assert parse_weapon_style("sword_shield") == WeaponStyle.SWORD_SHIELD

    def test_parse_unknown_or_empty(self):
        assert parse_pact_style("tank") is None
        assert parse_pact_style(None) is None
        assert parse_weapon_style("") is None


class TestModifierTables:
    def test_pact_table(self):
        m = pact_modifier(PactStyle.DEFENDER)
        assert (m.damage, m.defense, m.mobility, m.control) == (-0.4, 1.3, -0.4, 0.3)
        assert pact_modifier(PactStyle.NEUTRAL) == ZERO_MODIFIER

    def test_weapon_table(self):
        m = weapon_modifier(WeaponStyle.FINESSE)
        assert (m.damage, m.defense, m.mobility, m.control) == (0.2, -0.2, 0.5, 0.3)
        assert weapon_modifier(WeaponStyle.BALANCED) == ZERO_MODIFIER

    def test_plain_string_keys(self):
        assert pact_modifier("vanguard") == pact_modifier(PactStyle.VANGUARD)
        assert weapon_modifier("heavy") == weapon_modifier(WeaponStyle.HEAVY)

    def test_unknown_key_is_zero(self):
        assert pact_modifier("unknown") == ZERO_MODIFIER
        assert weapon_modifier(None) == ZERO_MODIFIER

    def test_list_styles_covers_every_key(self):
        styles = list_styles()
        assert [s["id"] for s in styles["pact_styles"]] == [s.value for s in PactStyle]
        assert [s["id"] for s in styles["weapon_styles"]] == [s.value for s in WeaponStyle]


class TestMetricsFormula:
    def test_all_zero_defaults(self):
        m = compute_metrics({"courage": 0, "grace": 0, "spirit": 0}, classify_pact(None), classify_weapon(None))
        assert (m.damage, m.defense, m.mobility, m.control) == (0, 0, 0, 0)
        assert m.complexity == 5

    def test_concrete_vanguard_balanced(self):
        m = compute_metrics({"courage": 40, "grace": 30, "spirit": 30}, PactStyle.VANGUARD, WeaponStyle.BALANCED)
        # 5 * (0.18 + 0.06 + 0.105) = 1.725, plus 1.0 from the vanguard pact
        assert m.damage == pytest.approx(2.725)

    def test_base_axes(self):
        base = base_metrics(VirtueProfile(courage=40, grace=30, spirit=30), WeaponStyle.BALANCED)
        assert base["damage"] == pytest.approx(1.725)
        assert base["defense"] == pytest.approx(5 * (0.28 + 0.03 + 0.06))
        assert base["mobility"] == pytest.approx(5 * (0.04 + 0.225 + 0.045))
        assert base["control"] == pytest.approx(5 * (0.06 + 0.105 + 0.15))

    def test_damage_weights_by_weapon(self):
        assert damage_weights(WeaponStyle.HEAVY) == (0.6, 0.1, 0.3)
        assert damage_weights(WeaponStyle.SWORD_SHIELD) == (0.6, 0.1, 0.3)
        assert damage_weights(WeaponStyle.RANGED) == (0.4, 0.4, 0.2)
        assert damage_weights(WeaponStyle.SPIRIT) == (0.15, 0.15, 0.7)
        assert damage_weights(WeaponStyle.BALANCED) == (0.45, 0.2, 0.35)
        for weights in (damage_weights(s) for s in WeaponStyle):
            assert sum(weights) == pytest.approx(1.0)

    def test_weapon_style_sensitivity(self):
        v = VirtueProfile(courage=100, grace=0, spirit=0)
        spirit = base_metrics(v, WeaponStyle.SPIRIT)["damage"]
        heavy = base_metrics(v, WeaponStyle.HEAVY)["damage"]
        assert spirit == pytest.approx(0.75)
        assert heavy == pytest.approx(3.0)
        assert spirit < heavy

    def test_defender_pact_shift(self):
        v = {"courage": 50, "grace": 50, "spirit": 50}
        neutral = compute_metrics(v, PactStyle.NEUTRAL, WeaponStyle.BALANCED)
        defender = compute_metrics(v, PactStyle.DEFENDER, WeaponStyle.BALANCED)
        assert defender.defense - neutral.defense == pytest.approx(1.3)
        assert neutral.damage - defender.damage == pytest.approx(0.4)

    def test_metrics_clamped_high(self):
        m = compute_metrics({"courage": 100, "grace": 100, "spirit": 100}, PactStyle.DEFENDER, WeaponStyle.SWORD_SHIELD)
        assert m.defense == 5.0

    def test_metrics_clamped_low(self):
        m = compute_metrics({"courage": 0, "grace": 0, "spirit": 0}, PactStyle.DEFENDER, WeaponStyle.HEAVY)
        assert m.damage == pytest.approx(0.3)
        assert m.mobility == 0.0
        assert m.control == pytest.approx(0.2)

    def test_virtues_clamped_to_100(self):
        over = compute_metrics({"courage": 250, "grace": -40, "spirit": 100}, PactStyle.NEUTRAL, WeaponStyle.BALANCED)
        capped = compute_metrics({"courage": 100, "grace": 0, "spirit": 100}, PactStyle.NEUTRAL, WeaponStyle.BALANCED)
        assert over == capped

    def test_non_numeric_virtues_count_as_zero(self):
        m = compute_metrics({"courage": "lots", "grace": None, "spirit": "50"}, PactStyle.NEUTRAL, WeaponStyle.BALANCED)
        expected = compute_metrics({"courage": 0, "grace": 0, "spirit": 50}, PactStyle.NEUTRAL, WeaponStyle.BALANCED)
        assert m == expected

    def test_missing_virtues(self):
        assert compute_metrics(None, None, None) == compute_metrics({}, PactStyle.NEUTRAL, WeaponStyle.BALANCED)

    def test_idempotent(self):
        v = {"courage": 33, "grace": 71, "spirit": 12}
        first = compute_metrics(v, PactStyle.MYSTIC, WeaponStyle.RANGED)
        second = compute_metrics(v, PactStyle.MYSTIC, WeaponStyle.RANGED)
        assert first == second
        assert v == {"courage": 33, "grace": 71, "spirit": 12}

    def test_bounds_over_grid(self):
        values = (0, 25, 50, 100)
        for c, g, s in itertools.product(values, repeat=3):
            for pact in PactStyle:
                for weapon in WeaponStyle:
                    m = compute_metrics({"courage": c, "grace": g, "spirit": s}, pact, weapon)
                    for axis in (m.damage, m.defense, m.mobility, m.control):
                        assert 0.0 <= axis <= 5.0
                    assert isinstance(m.complexity, int)
                    assert 1 <= m.complexity <= 5

    def test_compute_build_metrics_classifies(self):
        v = {"courage": 40, "grace": 30, "spirit": 30}
        m = compute_build_metrics(v, {"role": "Assault"}, {"type": "Longsword"})
        assert m == compute_metrics(v, PactStyle.VANGUARD, WeaponStyle.BALANCED)

    def test_to_dict(self):
        m = Metrics(damage=1.0, defense=2.0, mobility=3.0, control=4.0, complexity=2)
        assert m.to_dict() == {"damage": 1.0, "defense": 2.0, "mobility": 3.0, "control": 4.0, "complexity": 2}


class TestComplexity:
    def test_even_spread_is_five(self):
        assert complexity_rating(VirtueProfile(courage=50, grace=50, spirit=50)) == 5

    def test_single_focus_is_lower(self):
        # avg 33.3, mean deviation 44.4 -> 5 - round(2.22) = 3
        assert complexity_rating(VirtueProfile(courage=100, grace=0, spirit=0)) == 3

    def test_half_rounds_up(self):
        # mean deviation exactly 10 -> 10/20 = 0.5 -> rounds to 1
        assert complexity_rating(VirtueProfile(courage=45, grace=15, spirit=30)) == 4

    def test_round_half_up(self):
        assert round_half_up(0.5) == 1
        assert round_half_up(2.5) == 3
        assert round_half_up(2.49) == 2
        assert round_half_up(0.0) == 0
