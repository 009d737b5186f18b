"""Tests for D&D Beyond → Foundry enumeration mapping."""

import pytest

from ddb_foundry.importers.dndbeyond.enums import (
    ENUM_CATEGORIES,
    ability_from_name,
    map_activation,
    map_enum,
)
from ddb_foundry.importers.dndbeyond.schema import (
    DAMAGE_TYPE_MAP,
    ENUM_DEFAULTS,
    SPELL_SCHOOL_MAP,
)


class TestNumericCategories:
    """Categories keyed by DDB integer codes."""

    @pytest.mark.parametrize("code,expected", [
        (1, "str"), (2, "dex"), (3, "con"), (4, "int"), (5, "wis"), (6, "cha"),
    ])
    def test_ability_ids(self, code, expected):
        assert map_enum("ability", code) == expected

    def test_alignment_ids_in_order(self):
        """Alignment ids 1..9 follow the lawful-good → chaotic-evil grid."""
        tokens = [map_enum("alignment", code) for code in range(1, 10)]
        assert tokens == ["lg", "ng", "cg", "ln", "tn", "cn", "le", "ne", "ce"]

    def test_alignment_default(self):
        assert map_enum("alignment", None) == "tn"
        assert map_enum("alignment", 42) == "tn"

    def test_damage_types_are_distinct(self):
        """Every damage id maps to exactly one token and no two ids share one."""
        tokens = [map_enum("damageType", code) for code in range(1, 14)]
        assert len(set(tokens)) == 13
        assert tokens[0] == "acid"
        assert tokens[-1] == "thunder"

    def test_damage_type_unknown_id(self):
        assert map_enum("damageType", 99) == "bludgeoning"

    def test_damage_type_by_name(self):
        """Spell definitions name their damage types instead of using ids."""
        assert map_enum("damageType", "Radiant") == "radiant"
        assert map_enum("damageType", "cosmic") == "bludgeoning"

    def test_numeric_strings_accepted(self):
        assert map_enum("ability", "5") == "wis"
        assert map_enum("damageType", "4") == "fire"

    @pytest.mark.parametrize("code,expected", [
        (1, "short-rest"), (2, "long-rest"), (3, "day"), (4, "charges"),
    ])
    def test_recovery_types(self, code, expected):
        assert map_enum("recoveryType", code) == expected

    def test_recovery_unknown_is_empty(self):
        assert map_enum("recoveryType", 7) == ""

    def test_size_ids(self):
        assert map_enum("size", 3) == "sm"
        assert map_enum("size", 7) == "grg"

    def test_category_scoped_ids(self):
        """The same numeric id means different things in different categories."""
        assert map_enum("ability", 4) == "int"
        assert map_enum("damageType", 4) == "fire"
        assert map_enum("alignment", 4) == "ln"


class TestTextCategories:
    """Categories keyed by DDB names (case-insensitive)."""

    def test_school_case_insensitive(self):
        assert map_enum("school", "Necromancy") == "necromancy"
        assert map_enum("school", "ABJURATION") == "abjuration"

    def test_school_unknown(self):
        assert map_enum("school", "Unknown") == "evocation"

    def test_every_school_maps_to_itself(self):
        for name, token in SPELL_SCHOOL_MAP.items():
            assert map_enum("school", name.title()) == token

    @pytest.mark.parametrize("name,expected", [
        ("Instantaneous", "instantaneous"),
        ("Round", "round"),
        ("Hour", "hour"),
        ("Time", "minute"),
        ("Concentration", "minute"),
        ("Until Dispelled", "permanent"),
        ("Until Dispelled or Triggered", "permanent"),
        ("Special", "special"),
    ])
    def test_duration_synonyms(self, name, expected):
        assert map_enum("durationType", name) == expected

    def test_duration_unknown(self):
        assert map_enum("durationType", "Forever-ish") == "instantaneous"

    @pytest.mark.parametrize("name,expected", [
        ("Self", "self"), ("Touch", "touch"), ("Ranged", "ft"),
        ("Sight", "special"), ("Unlimited", "any"), ("Elsewhere", "ft"),
    ])
    def test_range_origins(self, name, expected):
        assert map_enum("rangeOrigin", name) == expected

    @pytest.mark.parametrize("name,expected", [
        ("Weapon", "weapon"),
        ("Armor", "equipment"),
        ("Shield", "equipment"),
        ("Gear", "loot"),
        ("Tool", "tool"),
        ("Potion", "consumable"),
        ("Wondrous item", "equipment"),
        ("Mystery Box", "loot"),
    ])
    def test_item_types(self, name, expected):
        assert map_enum("itemType", name) == expected

    def test_size_names(self):
        assert map_enum("size", "Medium") == "med"
        assert map_enum("size", "Gargantuan") == "grg"
        assert map_enum("size", "Colossal") == "med"


class TestTotality:
    """map_enum never raises."""

    @pytest.mark.parametrize("category", sorted(ENUM_CATEGORIES))
    def test_garbage_input_returns_default(self, category):
        for garbage in (None, object(), [], {}, 3.5, True, "not-a-code"):
            assert map_enum(category, garbage) == ENUM_DEFAULTS[category]

    def test_unknown_category(self):
        assert map_enum("favouriteColour", 1) == ""

    def test_tables_are_read_only(self):
        with pytest.raises(TypeError):
            DAMAGE_TYPE_MAP[99] = "sonic"  # type: ignore[index]


class TestActivation:
    """Activation codes including the "Special" policy."""

    @pytest.mark.parametrize("code,expected", [
        (1, "action"), (2, "bonus"), (3, "reaction"), (4, "minute"), (5, "hour"), (7, "day"),
    ])
    def test_standard_codes(self, code, expected):
        assert map_activation(code) == expected

    def test_special_defaults_to_minute(self):
        assert map_activation(6) == "minute"

    def test_special_policy_override(self):
        assert map_activation(6, "special") == "special"

    def test_unknown_code(self):
        assert map_activation(99) == "action"
        assert map_activation(None) == "action"


class TestAbilityFromName:
    def test_full_and_short_names(self):
        assert ability_from_name("Wisdom") == "wis"
        assert ability_from_name("dex") == "dex"

    def test_unknown(self):
        assert ability_from_name("Luck") == ""
        assert ability_from_name(None) == ""
