"""
Class features, racial traits, feats and backgrounds → Foundry "feat" items.

Every origin category goes through the same ``transform_feature`` and gets
the same sub-structures as a spell (activation, duration, target, range,
uses, save, damage), so the host never branches on where a feature came from.
"""

from __future__ import annotations

import logging
from typing import Any, Iterator

from ...config import TransformConfig
from .common import (
    as_int,
    dice_formula,
    document_id,
    limited_uses,
    provenance,
    source_label,
    unwrap_character,
)
from .derived import total_level
from .enums import map_activation, map_enum
from .schema import FEATURE_ICONS
from .text import strip_html

logger = logging.getLogger("ddb-foundry.features")

CHAT_PREVIEW_LENGTH = 200


def feature_subtype(category: str, class_id: Any = None) -> str:
    """``class-<id>`` for class features with a known class, else the category."""
    if category == "class":
        return f"class-{class_id}" if class_id else "class"
    return category


def feature_icon(category: str, definition: dict[str, Any], config: TransformConfig) -> str:
    return definition.get("avatarUrl") or FEATURE_ICONS.get(category, config.icon_fallback)


def _description(definition: dict[str, Any]) -> str:
    return strip_html(definition.get("description") or definition.get("snippet"))


def _chat(definition: dict[str, Any]) -> str:
    if definition.get("snippet"):
        return definition["snippet"]
    text = _description(definition)
    if len(text) <= CHAT_PREVIEW_LENGTH:
        return text
    return text[:CHAT_PREVIEW_LENGTH] + "..."


def _activation(definition: dict[str, Any], config: TransformConfig) -> dict[str, Any]:
    activation = definition.get("activation") or {}
    code = activation.get("activationType")
    return {
        "type": map_activation(code, config.special_activation) if code else "",
        "cost": activation.get("activationTime") or 1,
        "condition": activation.get("activationCondition") or definition.get("activationCondition") or "",
    }


def _duration(definition: dict[str, Any]) -> dict[str, Any]:
    duration = definition.get("duration") or {}
    return {
        "value": duration.get("durationInterval") or None,
        "units": map_enum("featureDurationType", duration.get("durationType")),
        "concentration": bool(definition.get("concentration", False)),
    }


def _target(definition: dict[str, Any]) -> dict[str, Any]:
    feature_range = definition.get("range") or {}
    return {
        "value": feature_range.get("aoeValue") or None,
        "width": None,
        "units": "ft" if feature_range.get("aoeValue") else "",
        "type": map_enum("featureTargetType", feature_range.get("aoeType")),
    }


def _range(definition: dict[str, Any]) -> dict[str, Any]:
    feature_range = definition.get("range") or {}
    return {
        "value": feature_range.get("range") or None,
        "long": feature_range.get("longRange") or None,
        "units": map_enum("featureRangeOrigin", feature_range.get("origin")),
    }


def _damage(definition: dict[str, Any]) -> dict[str, Any]:
    damage = definition.get("damage") or []
    if isinstance(damage, dict):
        damage = [damage]
    parts = []
    for entry in damage:
        if not isinstance(entry, dict):
            continue
        formula = dice_formula(entry.get("dice") or entry)
        if formula:
            parts.append([formula, map_enum("damageType", entry.get("damageTypeId"))])
    return {"parts": parts, "versatile": ""}


def _save(definition: dict[str, Any]) -> dict[str, Any]:
    save_type = definition.get("saveType")
    return {
        "ability": map_enum("saveAbility", save_type) if save_type else "",
        "dc": definition.get("saveDc") or None,
        "scaling": "spell",
    }


def _action_type(definition: dict[str, Any]) -> str:
    if definition.get("attackType"):
        return map_enum("weaponAttackType", definition["attackType"])
    if definition.get("saveType"):
        return "save"
    return "other"


def _requirements(definition: dict[str, Any]) -> str:
    requirements: list[str] = []
    prerequisite = definition.get("prerequisite")
    if isinstance(prerequisite, str) and prerequisite:
        requirements.append(prerequisite)
    for entry in definition.get("prerequisites") or []:
        text = (entry or {}).get("description") if isinstance(entry, dict) else entry
        if isinstance(text, str) and text and text not in requirements:
            requirements.append(text)
    return ", ".join(requirements)


def transform_feature(
    entry: dict[str, Any],
    category: str,
    config: TransformConfig | None = None,
    character_id: Any = None,
    class_id: Any = None,
    position: int = 0,
) -> dict[str, Any] | None:
    """Map one feature entry to a Foundry "feat" item.

    Args:
        entry: Feature entry (``{definition, classId, componentId, ...}``).
        category: One of "class", "race", "feat", "background".
        config: Engine policies (icon fallback, activation code 6 handling).
        character_id: Source character id stamped into the provenance flags.
        class_id: Owning class id for class features; overrides ``entry["classId"]``.
        position: Index of the feature within the character, used for stable ids.

    Returns:
        The feature item, or None when the entry has no definition.
    """
    definition = entry.get("definition")
    if not definition:
        return None
    config = config or TransformConfig()
    class_id = class_id or entry.get("classId")

    ability_id = definition.get("spellCastingAbilityId")
    uses = limited_uses(definition.get("limitedUse") or entry.get("limitedUse"))

    return {
        "_id": document_id(character_id, "feat", category, definition.get("id"), position),
        "name": definition.get("name") or "Unknown Feature",
        "type": "feat",
        "img": feature_icon(category, definition, config),
        "system": {
            "type": {"value": category, "subtype": feature_subtype(category, class_id)},
            "description": {
                "value": _description(definition),
                "chat": _chat(definition),
                "unidentified": "",
            },
            "source": source_label(definition),
            "activation": _activation(definition, config),
            "duration": _duration(definition),
            "target": _target(definition),
            "range": _range(definition),
            "uses": uses,
            "consume": {"type": "", "target": "", "amount": None},
            "ability": map_enum("spellcastingAbility", ability_id) or None,
            "actionType": _action_type(definition),
            "attackBonus": str(definition.get("attackBonus") or ""),
            "chatFlavor": definition.get("snippet") or "",
            "critical": {"threshold": None, "damage": ""},
            "damage": _damage(definition),
            "formula": definition.get("formula") or "",
            "save": _save(definition),
            "requirements": _requirements(definition),
            "recharge": {"value": None, "charged": True},
        },
        "effects": [],
        "flags": provenance(
            character_id,
            ddbId=definition.get("id"),
            type=category,
            classId=class_id,
            componentId=entry.get("componentId"),
            componentTypeId=entry.get("componentTypeId"),
            requiredLevel=definition.get("requiredLevel"),
        ),
    }


def _as_entry(raw: Any) -> dict[str, Any]:
    """Subclass features are listed as bare definitions; wrap them."""
    if not isinstance(raw, dict):
        return {}
    if "definition" in raw:
        return raw
    if "name" in raw:
        return {"definition": raw}
    return raw


def _required_level(entry: dict[str, Any]) -> int:
    definition = entry.get("definition") or {}
    return as_int(definition.get("requiredLevel", entry.get("requiredLevel")))


def iter_feature_entries(ddb: dict[str, Any]) -> Iterator[tuple[str, dict[str, Any], Any]]:
    """Yield ``(category, entry, class_id)`` for every feature on a character.

    Class and subclass features above the owning class's current level are
    skipped. Top-level features of an unknown class are bounded by the total
    character level instead.
    """
    classes = [cls for cls in ddb.get("classes") or [] if isinstance(cls, dict)]
    class_levels: dict[Any, int] = {}
    saw_class_features = False
    for cls in classes:
        level = as_int(cls.get("level"))
        class_id = (cls.get("definition") or {}).get("id") or cls.get("id")
        class_levels[class_id] = level
        subclass = cls.get("subclassDefinition") or {}
        for raw in [*(cls.get("classFeatures") or []), *(subclass.get("classFeatures") or [])]:
            saw_class_features = True
            entry = _as_entry(raw)
            if _required_level(entry) > level:
                continue
            yield "class", entry, class_id

    if not saw_class_features:
        character_level = total_level(classes)
        for raw in ddb.get("classFeatures") or []:
            entry = _as_entry(raw)
            class_id = entry.get("classId")
            if _required_level(entry) > class_levels.get(class_id, character_level):
                continue
            yield "class", entry, class_id

    for raw in ddb.get("optionalClassFeatures") or []:
        entry = _as_entry(raw)
        yield "class", entry, entry.get("classId")

    for raw in (ddb.get("race") or {}).get("racialTraits") or []:
        yield "race", _as_entry(raw), None

    background = ddb.get("background") or {}
    background_def = background.get("definition") or {}
    if background_def.get("featureName"):
        yield "background", {
            "definition": {
                "id": background_def.get("id"),
                "name": background_def["featureName"],
                "description": background_def.get("featureDescription") or "",
                "sources": background_def.get("sources") or [],
            }
        }, None
    custom = background.get("customBackground") or {}
    for raw in custom.get("featuresBackground") or []:
        yield "background", _as_entry(raw), None

    for raw in ddb.get("feats") or []:
        yield "feat", _as_entry(raw), None


def transform_features(
    ddb: dict[str, Any],
    config: TransformConfig | None = None,
) -> tuple[list[dict[str, Any]], list[str]]:
    """Map every feature of a character.

    A feature listed twice under the same category (e.g. a subclass feature
    also present in the class list) is emitted once.

    Returns:
        Tuple of (feature_items, warnings).
    """
    ddb = unwrap_character(ddb)
    config = config or TransformConfig()
    character_id = ddb.get("id")

    items: list[dict[str, Any]] = []
    warnings: list[str] = []
    seen: set[tuple[str, Any]] = set()

    for position, (category, entry, class_id) in enumerate(iter_feature_entries(ddb)):
        definition = entry.get("definition") or {}
        name = definition.get("name", "Unknown")
        if definition.get("id") is not None:
            key = (category, definition["id"])
            if key in seen:
                continue
            seen.add(key)
        try:
            item = transform_feature(entry, category, config, character_id, class_id, position)
        except Exception as e:
            logger.warning(f"Failed to parse {category} feature {name}: {e}")
            warnings.append(f"Skipped {category} feature '{name}': {e}")
            continue
        if item is None:
            logger.warning(f"{category.capitalize()} feature has no definition, skipping")
            warnings.append(f"Skipped {category} feature: missing definition")
            continue
        items.append(item)

    logger.debug(f"Parsed {len(items)} features")
    return items, warnings
