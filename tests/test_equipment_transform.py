"""Tests for inventory → Foundry item mapping."""

import pytest

from ddb_foundry.config import TransformConfig
from ddb_foundry.importers.dndbeyond.equipment import (
    attunement_state,
    item_price,
    item_type,
    item_weight,
    transform_item,
    transform_items,
)
from ddb_foundry.importers.dndbeyond.schema import PROVENANCE_KEY


@pytest.fixture
def inventory(ddb_sample):
    return ddb_sample["inventory"]


class TestItemHelpers:
    def test_shield_is_equipment(self):
        assert item_type({"armorTypeId": 4, "filterType": "Weapon"}) == "equipment"

    def test_unknown_type_is_loot(self):
        assert item_type({"filterType": "Trinket"}) == "loot"
        assert item_type({}) == "loot"

    def test_price_forms(self):
        assert item_price({"cost": 5}) == 5.0
        assert item_price({"cost": {"quantity": 50}}) == 50.0
        assert item_price({"cost": None}) == 0.0

    def test_weight_multiplier(self):
        assert item_weight({"weight": 2, "weightMultiplier": 3}) == 6.0
        assert item_weight({"weight": 45}) == 45.0
        assert item_weight({}) == 0.0

    def test_attunement(self):
        assert attunement_state({}, {}) == 0
        assert attunement_state({"isAttuned": False}, {"canAttune": True}) == 1
        assert attunement_state({"isAttuned": True}, {"requiresAttunement": True}) == 2


class TestWeapons:
    def test_mace(self, inventory):
        item = transform_item(inventory[0], character_id=48213377)
        system = item["system"]
        assert item["type"] == "weapon"
        assert item["name"] == "Mace"
        assert system["type"] == {"value": "simpleM", "baseItem": "mace"}
        assert system["damage"]["parts"] == [["1d6", "bludgeoning"]]
        assert system["actionType"] == "mwak"
        assert system["range"]["value"] == 5
        assert system["equipped"] is True
        assert system["price"] == {"value": 5.0, "denomination": "gp"}
        assert system["source"] == "PHB 149"

    def test_versatile_and_properties(self):
        entry = {"id": 1, "definition": {
            "id": 2,
            "name": "Longsword",
            "filterType": "Weapon",
            "categoryId": 2,
            "attackType": 1,
            "damage": {"diceCount": 1, "diceValue": 8},
            "damageType": "Slashing",
            "properties": [{"name": "Versatile", "notes": "1d10"}, {"name": ""}],
        }}
        system = transform_item(entry)["system"]
        assert system["type"]["value"] == "martialM"
        assert system["damage"]["versatile"] == "1d10"
        assert system["properties"] == ["versatile"]

    def test_ranged_weapon(self):
        entry = {"id": 1, "definition": {
            "id": 3, "name": "Longbow", "filterType": "Weapon", "categoryId": 2,
            "attackType": 2, "range": 150, "longRange": 600,
        }}
        system = transform_item(entry)["system"]
        assert system["type"]["value"] == "martialR"
        assert system["actionType"] == "rwak"
        assert system["range"] == {"value": 150, "long": 600, "units": "ft"}


class TestArmorAndOthers:
    def test_scale_mail(self, inventory):
        system = transform_item(inventory[1])["system"]
        assert system["armor"] == {"type": "medium", "value": 14, "dex": 2}
        assert system["stealth"] is True
        assert system["strength"] is None
        assert system["weight"] == 45.0
        assert system["price"]["value"] == 50.0

    def test_shield(self):
        entry = {"id": 1, "definition": {"id": 9, "name": "Shield", "filterType": "Armor", "armorTypeId": 4, "armorClass": 2}}
        item = transform_item(entry)
        assert item["type"] == "equipment"
        assert item["system"]["armor"] == {"type": "shield", "value": 2, "dex": None}

    def test_potion_is_consumable(self):
        entry = {"id": 1, "quantity": 3, "definition": {"id": 5, "name": "Potion of Healing", "filterType": "Potion"}}
        system = transform_item(entry)["system"]
        assert system["type"]["value"] == "potion"
        assert system["uses"]["max"] == 3
        assert system["quantity"] == 3

    def test_tool(self):
        entry = {"id": 1, "definition": {"id": 6, "name": "Thieves' Tools", "filterType": "Tool"}}
        item = transform_item(entry)
        assert item["type"] == "tool"
        assert item["system"]["ability"] == "int"

    def test_icons(self):
        entry = {"id": 1, "definition": {"id": 7, "name": "Arrows", "filterType": "Ammunition"}}
        config = TransformConfig(icon_fallback="icons/custom.svg")
        assert transform_item(entry, config=config)["img"].startswith("icons/consumables/")

        entry["definition"]["avatarUrl"] = "https://example.invalid/arrows.png"
        assert transform_item(entry, config=config)["img"] == "https://example.invalid/arrows.png"


class TestInventoryBatch:
    def test_missing_definition_is_skipped(self, inventory):
        assert transform_item(inventory[2]) is None
        items, warnings = transform_items(inventory, character_id=48213377)
        assert [item["name"] for item in items] == ["Mace", "Scale Mail"]
        assert len(warnings) == 1
        assert "7003" in warnings[0]

    def test_provenance(self, inventory):
        items, _ = transform_items(inventory, character_id=48213377)
        flags = items[0]["flags"][PROVENANCE_KEY]
        assert flags["ddbCharacterId"] == 48213377
        assert flags["ddbId"] == 7001
        assert flags["definitionId"] == 4001
        assert flags["isHomebrew"] is False

    def test_ids_unique_and_stable(self, inventory):
        first, _ = transform_items(inventory, character_id=1)
        second, _ = transform_items(inventory, character_id=1)
        assert [item["_id"] for item in first] == [item["_id"] for item in second]
        assert len({item["_id"] for item in first}) == len(first)

    def test_empty_inventory(self):
        assert transform_items(None) == ([], [])
