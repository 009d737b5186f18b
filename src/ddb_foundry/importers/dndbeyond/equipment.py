"""
Inventory → Foundry item documents.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable

from ...config import TransformConfig
from .common import as_float, as_int, dice_formula, document_id, provenance, source_label
from .enums import map_enum
from .schema import ITEM_ICONS

logger = logging.getLogger("ddb-foundry.equipment")

# Dex bonus cap by armor type; None means uncapped
ARMOR_DEX_CAP: dict[str, int | None] = {
    "light": None,
    "medium": 2,
    "heavy": 0,
    "shield": None,
}

SHIELD_ARMOR_TYPE_ID = 4
STEALTH_DISADVANTAGE = 2


def item_type(definition: dict[str, Any]) -> str:
    """Foundry item type for a DDB item definition (defaults to "loot")."""
    if definition.get("armorTypeId") == SHIELD_ARMOR_TYPE_ID:
        return "equipment"
    filter_type = definition.get("filterType") or definition.get("type")
    return map_enum("itemType", filter_type)


def item_price(definition: dict[str, Any]) -> float:
    """Price in gp; DDB exports either a bare number or a ``{quantity}`` block."""
    cost = definition.get("cost")
    if isinstance(cost, dict):
        return as_float(cost.get("quantity"))
    return as_float(cost)


def item_weight(definition: dict[str, Any]) -> float:
    multiplier = definition.get("weightMultiplier")
    if multiplier is None:
        multiplier = 1
    return as_float(definition.get("weight")) * as_float(multiplier, 1.0)


def attunement_state(item: dict[str, Any], definition: dict[str, Any]) -> int:
    """0 = not required, 1 = required, 2 = attuned."""
    if not definition.get("canAttune") and not definition.get("requiresAttunement"):
        return 0
    return 2 if item.get("isAttuned") else 1


def _weapon_system(definition: dict[str, Any]) -> dict[str, Any]:
    parts: list[list[str]] = []
    formula = dice_formula(definition.get("damage"))
    if formula:
        parts.append([formula, map_enum("damageType", definition.get("damageType"))])

    properties: list[str] = []
    versatile = ""
    for prop in definition.get("properties") or []:
        name = ((prop or {}).get("name") or "").strip().lower()
        if not name:
            continue
        properties.append(name)
        if name == "versatile" and prop.get("notes"):
            versatile = str(prop["notes"])

    return {
        "type": {
            "value": ("martial" if definition.get("categoryId") == 2 else "simple")
            + ("R" if definition.get("attackType") == 2 else "M"),
            "baseItem": (definition.get("baseItemName") or definition.get("type") or "").lower(),
        },
        "damage": {"parts": parts, "versatile": versatile},
        "range": {
            "value": definition.get("range") or 5,
            "long": definition.get("longRange") or None,
            "units": "ft",
        },
        "properties": properties,
        "actionType": map_enum("weaponAttackType", definition.get("attackType")),
        "proficient": True,
    }


def _armor_system(definition: dict[str, Any]) -> dict[str, Any]:
    armor_type = map_enum("armorType", definition.get("armorTypeId"))
    return {
        "type": {
            "value": armor_type,
            "baseItem": (definition.get("baseArmorName") or "").lower(),
        },
        "armor": {
            "type": armor_type,
            "value": as_int(definition.get("armorClass"), 10),
            "dex": ARMOR_DEX_CAP.get(armor_type),
        },
        "strength": as_int(definition.get("strengthRequirement")) or None,
        "stealth": definition.get("stealthCheck") == STEALTH_DISADVANTAGE,
        "proficient": True,
    }


def _consumable_system(item: dict[str, Any], definition: dict[str, Any]) -> dict[str, Any]:
    quantity = as_int(item.get("quantity"), 1)
    return {
        "type": {
            "value": map_enum("consumableType", definition.get("filterType") or definition.get("type")),
            "subtype": definition.get("subType") or "",
        },
        "uses": {
            "value": quantity,
            "max": quantity,
            "per": "charges",
            "autoDestroy": True,
        },
    }


def _tool_system(definition: dict[str, Any]) -> dict[str, Any]:
    return {
        "type": {"value": "tool", "baseItem": (definition.get("baseItemName") or "").lower()},
        "ability": "int",
        "proficient": 0,
    }


def transform_item(
    item: dict[str, Any],
    character_id: Any = None,
    config: TransformConfig | None = None,
    position: int = 0,
) -> dict[str, Any] | None:
    """Map one inventory entry to a Foundry item document.

    Args:
        item: DDB inventory entry (``{id, quantity, equipped, definition, ...}``).
        character_id: Source character id stamped into the provenance flags.
        config: Engine policies (icon fallback).
        position: Index of the entry in its collection, used for stable ids.

    Returns:
        The item document, or None when the entry has no definition.
    """
    definition = item.get("definition")
    if not definition:
        return None
    config = config or TransformConfig()

    kind = item_type(definition)
    system: dict[str, Any] = {
        "description": {
            "value": definition.get("description") or "",
            "chat": definition.get("snippet") or "",
            "unidentified": "",
        },
        "source": source_label(definition),
        "quantity": as_int(item.get("quantity"), 1),
        "weight": item_weight(definition),
        "price": {"value": item_price(definition), "denomination": "gp"},
        "attunement": attunement_state(item, definition),
        "attuned": bool(item.get("isAttuned", False)),
        "equipped": bool(item.get("equipped", False)),
        "rarity": (definition.get("rarity") or "common").lower(),
        "identified": True,
    }

    if kind == "weapon":
        system.update(_weapon_system(definition))
    elif kind == "equipment":
        system.update(_armor_system(definition))
    elif kind == "consumable":
        system.update(_consumable_system(item, definition))
    elif kind == "tool":
        system.update(_tool_system(definition))

    return {
        "_id": document_id(character_id, "item", item.get("id"), definition.get("id"), position),
        "name": definition.get("name") or "Unknown Item",
        "type": kind,
        "img": definition.get("avatarUrl") or ITEM_ICONS.get(kind, config.icon_fallback),
        "system": system,
        "effects": [],
        "flags": provenance(
            character_id,
            ddbId=item.get("id"),
            definitionId=definition.get("id"),
            ddbType=definition.get("filterType") or definition.get("type"),
            isHomebrew=bool(definition.get("isHomebrew", False)),
            containerId=item.get("containerEntityId"),
        ),
    }


def transform_items(
    inventory: Iterable[dict[str, Any]] | None,
    character_id: Any = None,
    config: TransformConfig | None = None,
) -> tuple[list[dict[str, Any]], list[str]]:
    """Map a whole inventory, dropping entries that cannot be parsed.

    Returns:
        Tuple of (item_documents, warnings).
    """
    items: list[dict[str, Any]] = []
    warnings: list[str] = []

    for position, entry in enumerate(inventory or []):
        try:
            document = transform_item(entry or {}, character_id, config, position)
        except Exception as e:
            name = ((entry or {}).get("definition") or {}).get("name", "Unknown")
            logger.warning(f"Failed to parse item {name}: {e}")
            warnings.append(f"Skipped inventory item '{name}': {e}")
            continue
        if document is None:
            logger.warning(f"Inventory item {(entry or {}).get('id')} has no definition, skipping")
            warnings.append(f"Skipped inventory item {(entry or {}).get('id')}: missing definition")
            continue
        items.append(document)

    logger.debug(f"Parsed {len(items)} equipment items")
    return items, warnings
