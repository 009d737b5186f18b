"""Tests for the D&D Beyond → Foundry actor mapper."""

import copy

import pytest

from ddb_foundry.config import TransformConfig
from ddb_foundry.importers.dndbeyond.mapper import (
    map_abilities,
    map_attributes,
    map_currency,
    map_ddb_to_actor,
    map_details,
    map_spell_slots,
    spellcasting_ability,
)
from ddb_foundry.importers.dndbeyond.schema import (
    ABILITY_KEYS,
    ACTOR_ICON,
    PROVENANCE_KEY,
    SKILL_ABILITIES,
)
from ddb_foundry.models import ImportOptions


@pytest.fixture
def result(ddb_sample):
    return map_ddb_to_actor(ddb_sample)


@pytest.fixture
def system(result):
    return result.actor["system"]


class TestMapAbilities:
    """Test ability score assembly."""

    def test_racial_bonuses_applied(self, ddb_sample):
        abilities, warnings = map_abilities(ddb_sample)
        assert abilities["str"]["value"] == 12
        assert abilities["con"]["value"] == 15
        assert abilities["wis"] == {
            "value": 16, "mod": 3, "proficient": 0,
            "bonuses": {"check": "", "save": ""}, "min": 3,
        }
        assert abilities["cha"]["mod"] == -1
        assert warnings == []

    def test_override_wins(self, ddb_sample):
        ddb = copy.deepcopy(ddb_sample)
        ddb["overrideStats"][4]["value"] = 11
        abilities, _ = map_abilities(ddb)
        assert abilities["wis"]["value"] == 11

    def test_set_modifier_is_a_floor(self, ddb_sample):
        ddb = copy.deepcopy(ddb_sample)
        ddb["modifiers"]["item"] = [{"type": "set", "subType": "strength-score", "value": 19}]
        abilities, _ = map_abilities(ddb)
        assert abilities["str"]["value"] == 19

        ddb["modifiers"]["item"] = [{"type": "set", "subType": "strength-score", "value": 9}]
        abilities, _ = map_abilities(ddb)
        assert abilities["str"]["value"] == 12

    def test_partial_scores(self):
        abilities, warnings = map_abilities({"stats": [{"id": 1, "value": 14}]})
        assert abilities["str"]["value"] == 14
        assert abilities["dex"]["value"] == 10
        assert len(warnings) == 1
        assert "dex" in warnings[0]


class TestMapDetails:
    def test_identity(self, ddb_sample):
        details, warnings = map_details(ddb_sample, ImportOptions(), 5)
        assert details["race"] == "Hill Dwarf"
        assert details["background"] == "Acolyte"
        assert details["alignment"] == "lg"
        assert details["classes"] == {"cleric": {"levels": 5, "subclass": "Life Domain", "hitDie": "d8"}}
        assert details["originalClass"] == "cleric"
        assert details["xp"] == {"value": 7200, "max": 14000, "pct": 51}
        assert details["trait"].startswith("I quote sacred texts")
        assert details["weight"] == "150"
        assert warnings == []

    def test_biography_can_be_skipped(self, ddb_sample):
        details, _ = map_details(ddb_sample, ImportOptions(import_biography=False), 5)
        assert details["biography"]["value"] == ""

    def test_hit_die_from_class_name(self):
        ddb = {"classes": [{"level": 2, "definition": {"name": "Barbarian"}}]}
        details, _ = map_details(ddb, ImportOptions(), 2)
        assert details["classes"]["barbarian"]["hitDie"] == "d12"


class TestMapAttributes:
    def test_hit_points(self, system):
        hp = system["attributes"]["hp"]
        assert hp["max"] == 43
        assert hp["value"] == 37

    def test_hit_point_override(self, ddb_sample):
        ddb = copy.deepcopy(ddb_sample)
        ddb["overrideHitPoints"] = 0
        abilities, _ = map_abilities(ddb)
        attributes, _ = map_attributes(ddb, abilities, 5)
        assert attributes["hp"]["max"] == 0
        assert attributes["hp"]["value"] == 0

    def test_casting_and_proficiency(self, system):
        attributes = system["attributes"]
        assert attributes["prof"] == 3
        assert attributes["spellcasting"] == "wis"
        assert attributes["spelldc"] == 14

    def test_movement_and_senses(self, system):
        attributes = system["attributes"]
        assert attributes["movement"]["walk"] == 25
        assert attributes["movement"]["units"] == "ft"
        assert attributes["senses"]["darkvision"] == 60

    def test_encumbrance_and_hit_dice(self, system):
        attributes = system["attributes"]
        assert attributes["encumbrance"]["value"] == 49.0
        assert attributes["encumbrance"]["max"] == 180
        assert attributes["encumbrance"]["encumbered"] is False
        assert attributes["hd"] == 4
        assert attributes["inspiration"] is True

    def test_non_caster_dc(self):
        abilities, _ = map_abilities({})
        ddb = {"classes": [{"level": 1, "definition": {"name": "Fighter"}}]}
        attributes, _ = map_attributes(ddb, abilities, 1)
        assert attributes["spellcasting"] == ""
        assert attributes["spelldc"] == 10

    def test_exhaustion(self):
        abilities, _ = map_abilities({})
        attributes, _ = map_attributes({"conditions": [{"id": 4, "level": 2}]}, abilities, 1)
        assert attributes["exhaustion"] == 2

    def test_spellcasting_ability_by_name(self):
        ddb = {"classes": [
            {"level": 2, "definition": {"name": "Wizard"}},
            {"level": 3, "definition": {"name": "Sorcerer"}},
        ]}
        assert spellcasting_ability(ddb) == "cha"


class TestMapTraitsAndSkills:
    def test_saves_and_skills(self, system):
        assert system["abilities"]["wis"]["proficient"] == 1
        assert system["abilities"]["cha"]["proficient"] == 1
        assert system["abilities"]["str"]["proficient"] == 0
        ranked = {key for key, skill in system["skills"].items() if skill["value"]}
        assert ranked == {"med", "per", "ins", "rel"}
        assert system["skills"]["prc"]["ability"] == "wis"

    def test_traits(self, system):
        traits = system["traits"]
        assert traits["size"] == "med"
        assert traits["languages"]["value"] == ["Common", "Dwarvish", "Celestial", "Elvish"]
        assert traits["dr"]["value"] == ["poison"]
        assert traits["armorProf"]["value"] == ["Light Armor", "Medium Armor", "Shields"]
        assert traits["weaponProf"]["value"] == ["Simple Weapons"]

    def test_currency(self, system):
        assert system["currency"] == {"pp": 0, "gp": 85, "ep": 0, "sp": 30, "cp": 12}

    def test_negative_currency_clamped(self):
        assert map_currency({"currencies": {"gp": -5}})["gp"] == 0


class TestMapSpellSlots:
    def test_cleric_slots(self, system):
        spells = system["spells"]
        assert spells["spell1"] == {"value": 3, "override": None, "max": 4}
        assert spells["spell2"]["max"] == 3
        assert spells["spell3"]["max"] == 2
        assert spells["spell4"]["max"] == 0
        assert spells["pact"]["max"] == 0

    def test_warlock_pact_slots(self):
        ddb = {
            "classes": [{"level": 5, "definition": {"name": "Warlock"}}],
            "pactMagic": [{"level": 3, "used": 1}],
        }
        block, _ = map_spell_slots(ddb, TransformConfig())
        assert block["pact"] == {"value": 1, "override": None, "max": 2, "level": 3}
        assert block["spell3"]["max"] == 0


class TestMapDdbToActor:
    """End-to-end transformation."""

    def test_actor_shape(self, result):
        actor = result.actor
        assert actor["name"] == "Sister Maren Ashvale"
        assert actor["type"] == "character"
        assert actor["effects"] == []
        assert set(actor["system"]) >= {
            "abilities", "attributes", "details", "traits", "currency",
            "skills", "spells", "resources", "bonuses",
        }
        assert actor["flags"][PROVENANCE_KEY]["characterId"] == 48213377

    def test_item_counts(self, result):
        assert result.item_counts == {"equipment": 2, "spells": 2, "features": 7}
        assert len(result.items) == 11
        types = [item["type"] for item in result.items]
        assert types[:2] == ["weapon", "equipment"]
        assert types[2:4] == ["spell", "spell"]
        assert set(types[4:]) == {"feat"}

    def test_warnings_and_fields(self, result):
        assert result.source_id == 48213377
        assert result.unmapped_fields == []
        assert "classes" in result.mapped_fields
        assert len(result.warnings) == 1
        assert "7003" in result.warnings[0]

    def test_envelope_accepted(self, ddb_envelope, ddb_sample):
        assert map_ddb_to_actor(ddb_envelope) == map_ddb_to_actor(ddb_sample)

    def test_deterministic(self, ddb_sample):
        first = map_ddb_to_actor(ddb_sample)
        second = map_ddb_to_actor(ddb_sample)
        assert first == second
        assert len({item["_id"] for item in first.items}) == len(first.items)

    def test_source_not_mutated(self, ddb_sample):
        before = copy.deepcopy(ddb_sample)
        map_ddb_to_actor(ddb_sample)
        assert ddb_sample == before

    def test_empty_input_still_builds_actor(self):
        result = map_ddb_to_actor({})
        system = result.actor["system"]
        assert result.actor["name"] == "Unknown Character"
        assert system["details"]["level"] == 1
        assert system["abilities"]["str"]["value"] == 10
        assert system["attributes"]["hp"]["max"] == 0
        assert system["attributes"]["movement"]["walk"] == 30
        assert result.items == []
        assert result.unmapped_fields == ["classes"]
        assert any("No classes found" in w for w in result.warnings)

    def test_options_dict(self, ddb_sample):
        result = map_ddb_to_actor(ddb_sample, {"importSpells": False, "preparationMode": "pact"})
        assert result.item_counts["spells"] == 0
        assert "spells" not in result.mapped_fields

    def test_preparation_mode_applied(self, ddb_sample):
        result = map_ddb_to_actor(ddb_sample, ImportOptions(preparation_mode="always"))
        spells = [item for item in result.items if item["type"] == "spell"]
        assert {spell["system"]["preparation"]["mode"] for spell in spells} == {"always"}

    def test_update_existing_flag(self, ddb_sample):
        result = map_ddb_to_actor(ddb_sample, {"updateExisting": True})
        assert result.actor["flags"][PROVENANCE_KEY]["updateExisting"] is True

    def test_keep_raw_source(self, ddb_sample):
        result = map_ddb_to_actor(ddb_sample, config=TransformConfig(keep_raw_source=True))
        source = result.actor["flags"][PROVENANCE_KEY]["source"]
        assert source == ddb_sample
        assert source is not ddb_sample

    def test_raw_source_off_by_default(self, result):
        assert "source" not in result.actor["flags"][PROVENANCE_KEY]


class TestMalformedSource:
    """Oddly shaped source data degrades instead of aborting the character."""

    @pytest.mark.parametrize("collection", [
        "classes", "race", "inventory", "stats", "modifiers",
        "spells", "classSpells", "background", "decorations",
    ])
    def test_every_key_present_without_collection(self, ddb_sample, collection):
        ddb = copy.deepcopy(ddb_sample)
        ddb.pop(collection, None)
        system = map_ddb_to_actor(ddb).actor["system"]
        assert set(system["abilities"]) == set(ABILITY_KEYS)
        assert set(system["skills"]) == set(SKILL_ABILITIES)
        assert set(system["spells"]) == {f"spell{n}" for n in range(1, 10)} | {"pact"}
        assert system["details"]["level"] >= 1

    @pytest.mark.parametrize("collection", ["classes", "inventory", "stats", "modifiers"])
    def test_every_key_present_with_empty_collection(self, ddb_sample, collection):
        ddb = copy.deepcopy(ddb_sample)
        ddb[collection] = []
        system = map_ddb_to_actor(ddb).actor["system"]
        assert set(system["abilities"]) == set(ABILITY_KEYS)
        assert set(system["skills"]) == set(SKILL_ABILITIES)

    def test_string_class_levels(self):
        ddb = {"classes": [{"level": "5", "definition": {"name": "Cleric"}}]}
        result = map_ddb_to_actor(ddb)
        system = result.actor["system"]
        assert system["details"]["level"] == 5
        assert system["details"]["classes"]["cleric"]["levels"] == 5
        assert system["attributes"]["prof"] == 3
        assert system["spells"]["spell3"]["max"] == 2

    def test_decorations_not_an_object(self):
        result = map_ddb_to_actor({"decorations": [{"avatarUrl": "x"}]})
        assert result.actor["img"] == ACTOR_ICON

    def test_decorations_avatar_used(self):
        result = map_ddb_to_actor({"decorations": {"avatarUrl": "https://example.test/a.png"}})
        assert result.actor["img"] == "https://example.test/a.png"
