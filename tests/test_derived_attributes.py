"""Tests for derived character statistics."""

import pytest

from ddb_foundry.importers.dndbeyond.derived import (
    ability_modifier,
    current_hit_points,
    encumbrance_capacity,
    max_hit_points,
    proficiency_bonus,
    spell_save_dc,
    total_level,
    xp_for_next_level,
)


class TestAbilityModifier:
    @pytest.mark.parametrize("score,expected", [
        (1, -5), (8, -1), (9, -1), (10, 0), (11, 0), (16, 3), (20, 5), (30, 10),
    ])
    def test_standard_scores(self, score, expected):
        assert ability_modifier(score) == expected

    def test_implausible_scores_pass_through(self):
        """Scores are not range checked; the formula still applies."""
        assert ability_modifier(-2) == -6
        assert ability_modifier(0) == -5


class TestProficiencyBonus:
    @pytest.mark.parametrize("level,expected", [
        (1, 2), (4, 2), (5, 3), (8, 3), (9, 4), (13, 5), (17, 6), (20, 6),
    ])
    def test_by_level(self, level, expected):
        assert proficiency_bonus(level) == expected

    def test_never_below_two(self):
        assert proficiency_bonus(0) == 2


class TestTotalLevel:
    def test_sums_classes(self):
        assert total_level([{"level": 3}, {"level": 2}]) == 5

    def test_no_classes_is_level_one(self):
        assert total_level([]) == 1
        assert total_level(None) == 1

    def test_missing_levels(self):
        assert total_level([{"level": None}, {}]) == 1

    def test_string_and_junk_levels(self):
        assert total_level([{"level": "3"}, {"level": 2}]) == 5
        assert total_level([{"level": "three"}, {"level": [4]}]) == 1


class TestHitPoints:
    def test_formula_without_override(self):
        """base + con * level + bonus."""
        assert max_hit_points(10, 2, 5) == 20
        assert max_hit_points(10, 2, 5, bonus=3) == 23

    def test_override_wins(self):
        assert max_hit_points(10, 2, 5, bonus=7, override=5) == 5

    def test_zero_override_is_honoured(self):
        """An override of 0 is a value, not an absent override."""
        assert max_hit_points(10, 2, 5, override=0) == 0

    def test_negative_con(self):
        assert max_hit_points(8, -1, 3) == 5

    def test_current_hit_points(self):
        assert current_hit_points(20, 5) == 15
        assert current_hit_points(20, 25) == 0


class TestOtherDerived:
    def test_spell_save_dc(self):
        assert spell_save_dc(3, 3) == 14

    def test_encumbrance_capacity(self):
        assert encumbrance_capacity(15) == 225
        assert encumbrance_capacity(0) == 0

    @pytest.mark.parametrize("level,expected", [
        (0, 300), (1, 300), (5, 14000), (19, 355000), (20, 355000),
    ])
    def test_xp_for_next_level(self, level, expected):
        assert xp_for_next_level(level) == expected
