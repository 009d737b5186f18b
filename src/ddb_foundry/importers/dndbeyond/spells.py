"""
Spell definitions → Foundry spell items.

Each ``parse_*`` helper handles one sub-structure of the spell document and
can be tested on its own. ``transform_spell`` never fails on a missing
definition; it returns the "Unknown Spell" placeholder instead.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable

from ...config import TransformConfig
from ...models import ImportOptions
from .common import (
    dice_formula,
    document_id,
    limited_uses,
    no_uses,
    provenance,
    source_label,
)
from .enums import ability_from_name, map_activation, map_enum
from .schema import (
    MODIFIER_SECTIONS,
    SPELL_FALLBACK_ICON,
    SPELL_SCHOOL_ICONS,
    UNKNOWN_SPELL_ICON,
)
from .text import (
    extract_material_cost,
    extract_scaling_formula,
    first_sentences,
    higher_level_text,
    materials_consumed,
)

logger = logging.getLogger("ddb-foundry.spells")

# Component codes in the ``components`` array
COMPONENT_VERBAL = 1
COMPONENT_SOMATIC = 2
COMPONENT_MATERIAL = 3

# Defaults for dice entries that omit count or size
DEFAULT_DICE_COUNT = 1
DEFAULT_DICE_VALUE = 6

# Duration types whose length is expressed by ``durationUnit``
_UNIT_DURATIONS = {"time", "concentration"}


def _block(definition: dict[str, Any], key: str) -> dict[str, Any]:
    """A nested block, falling back to the flattened layout some exports use."""
    value = definition.get(key)
    return value if isinstance(value, dict) else definition


def parse_activation(definition: dict[str, Any], config: TransformConfig | None = None) -> dict[str, Any]:
    config = config or TransformConfig()
    activation = definition.get("activation") or {}
    return {
        "type": map_activation(activation.get("activationType"), config.special_activation),
        "cost": activation.get("activationTime") or 1,
        "condition": activation.get("activationCondition") or "",
    }


def parse_duration(definition: dict[str, Any]) -> dict[str, Any]:
    """Duration ``{value, units}``.

    "Time" and "Concentration" durations carry their real unit in
    ``durationUnit``; without one they fall back to minutes.
    """
    duration = _block(definition, "duration")
    duration_type = duration.get("durationType")
    interval = duration.get("durationInterval")
    unit = duration.get("durationUnit")

    if isinstance(duration_type, str) and duration_type.strip().lower() in _UNIT_DURATIONS and unit:
        units = map_enum("durationType", unit)
    else:
        units = map_enum("durationType", duration_type)

    return {
        "value": interval if isinstance(interval, (int, float)) and not isinstance(interval, bool) else None,
        "units": units,
    }


def parse_range(definition: dict[str, Any]) -> dict[str, Any]:
    spell_range = _block(definition, "range")
    value = spell_range.get("rangeValue")
    return {
        "value": value if isinstance(value, (int, float)) and not isinstance(value, bool) else None,
        "long": None,
        "units": map_enum("rangeOrigin", spell_range.get("origin")),
    }


def parse_target(definition: dict[str, Any]) -> dict[str, Any]:
    """Target shape: the area of effect when typed, else self or creature."""
    spell_range = _block(definition, "range")
    aoe_type = spell_range.get("aoeType")
    aoe_value = spell_range.get("aoeValue")
    origin = (spell_range.get("origin") or "").strip().lower()

    if aoe_type:
        target_type = map_enum("aoeType", aoe_type)
    elif origin == "self":
        target_type = "self"
    else:
        target_type = "creature"

    return {
        "value": aoe_value if isinstance(aoe_value, (int, float)) and not isinstance(aoe_value, bool) else None,
        "width": None,
        "units": "ft",
        "type": target_type,
    }


def parse_components(definition: dict[str, Any]) -> dict[str, bool]:
    """Component flags; accepts the ``[1, 2, 3]`` code list or a flag mapping."""
    components = definition.get("components") or []
    if isinstance(components, dict):
        verbal = bool(components.get("verbal"))
        somatic = bool(components.get("somatic"))
        material = bool(components.get("material"))
    else:
        codes = set(components) if isinstance(components, (list, tuple, set)) else set()
        verbal = COMPONENT_VERBAL in codes
        somatic = COMPONENT_SOMATIC in codes
        material = COMPONENT_MATERIAL in codes

    return {
        "vocal": verbal,
        "somatic": somatic,
        "material": material,
        "ritual": bool(definition.get("ritual", False)),
        "concentration": bool(definition.get("concentration", False)),
    }


def parse_materials(definition: dict[str, Any]) -> dict[str, Any]:
    text = definition.get("componentsDescription") or definition.get("materialComponent") or ""
    return {
        "value": text,
        "consumed": materials_consumed(text),
        "cost": extract_material_cost(text),
        "supply": 0,
    }


def _damage_entries(definition: dict[str, Any]) -> list[tuple[dict[str, Any], str]]:
    """(dice, damage type) pairs from either the parallel lists or damage modifiers."""
    damage_types = definition.get("damageTypes") or []
    dice = definition.get("dice") or []
    if damage_types:
        return [
            (dice[index], damage_type)
            for index, damage_type in enumerate(damage_types)
            if index < len(dice) and dice[index]
        ]

    entries = []
    for mod in definition.get("modifiers") or []:
        if (mod or {}).get("type") == "damage" and mod.get("die"):
            entries.append((mod["die"], mod.get("subType") or ""))
    return entries


def _healing_dice(definition: dict[str, Any]) -> dict[str, Any] | None:
    if definition.get("healingTypes") and definition.get("dice"):
        return definition["dice"][0]
    for mod in definition.get("modifiers") or []:
        if (mod or {}).get("type") == "bonus" and (mod.get("subType") or "") == "hit-points" and mod.get("die"):
            return mod["die"]
    return None


def parse_damage(definition: dict[str, Any]) -> dict[str, Any]:
    parts = []
    for dice, damage_type in _damage_entries(definition):
        formula = dice_formula(dice, DEFAULT_DICE_COUNT, DEFAULT_DICE_VALUE)
        if formula:
            parts.append([formula, map_enum("damageType", damage_type)])
    return {"parts": parts, "versatile": "", "value": ""}


def parse_formula(definition: dict[str, Any]) -> str:
    """Healing formula from the first dice entry, else ""."""
    dice = _healing_dice(definition)
    if not dice:
        return ""
    return dice_formula(dice, DEFAULT_DICE_COUNT, DEFAULT_DICE_VALUE)


def save_ability_for(definition: dict[str, Any]) -> str:
    """Saving throw ability from ``saveDcAbilityId`` or ``saveType``, else ""."""
    code = definition.get("saveDcAbilityId")
    if code is None:
        code = definition.get("saveType")
    if isinstance(code, str) and not code.strip().isdigit():
        return ability_from_name(code)
    return map_enum("saveAbility", code)


def parse_save(definition: dict[str, Any]) -> dict[str, Any]:
    ability = save_ability_for(definition)
    fixed_dc = definition.get("fixedSaveDc") or definition.get("saveDc")
    return {
        "ability": ability,
        "dc": fixed_dc if isinstance(fixed_dc, int) and not isinstance(fixed_dc, bool) else 0,
        "scaling": "flat" if fixed_dc else "spell",
    }


def parse_action_type(definition: dict[str, Any]) -> str:
    """mwak/rwak/msak/rsak/save/heal/other."""
    attack_type = definition.get("attackType")
    if attack_type and definition.get("requiresAttackRoll", True):
        return map_enum("spellAttackType", attack_type)
    if definition.get("requiresSavingThrow") or save_ability_for(definition):
        return "save"
    if _healing_dice(definition) is not None or definition.get("healingTypes"):
        return "heal"
    return "other"


def parse_scaling(definition: dict[str, Any]) -> dict[str, str]:
    """Higher-level scaling; "none" when the text names no dice increment."""
    formula = extract_scaling_formula(higher_level_text(definition))
    if not formula:
        return {"mode": "none", "formula": ""}
    level = definition.get("level") or 0
    return {"mode": "cantrip" if level == 0 else "level", "formula": formula}


def parse_preparation(entry: dict[str, Any], options: ImportOptions | None = None) -> dict[str, Any]:
    """Mode comes from the caller; the prepared flag from the spell entry itself."""
    options = options or ImportOptions()
    return {
        "mode": options.preparation_mode.value,
        "prepared": bool(entry.get("prepared", False)),
    }


def parse_properties(definition: dict[str, Any]) -> list[str]:
    components = parse_components(definition)
    return [
        name
        for name in ("ritual", "concentration", "vocal", "somatic", "material")
        if components[name]
    ]


def parse_description(definition: dict[str, Any]) -> str:
    """Description HTML with a tag line in front and the higher-level text after."""
    description = definition.get("description") or ""
    components = parse_components(definition)

    tags = []
    if components["ritual"]:
        tags.append("Ritual")
    if components["concentration"]:
        tags.append("Concentration")
    if components["material"]:
        tags.append("Material Component")
    if tags:
        description = f"<p><strong>Tags:</strong> {', '.join(tags)}</p>{description}"

    extra = definition.get("higherLevelDescription")
    if extra:
        description += f"<h3>At Higher Levels</h3><p>{extra}</p>"
    return description


def spell_icon(definition: dict[str, Any]) -> str:
    if definition.get("avatarUrl"):
        return definition["avatarUrl"]
    school = (definition.get("school") or "").strip().lower()
    return SPELL_SCHOOL_ICONS.get(school, SPELL_FALLBACK_ICON)


def unknown_spell(
    entry: dict[str, Any] | None = None,
    options: ImportOptions | None = None,
    character_id: Any = None,
    position: int = 0,
) -> dict[str, Any]:
    """Fully-populated placeholder for a spell entry without a definition.

    The preparation block still follows the caller's options.
    """
    return {
        "_id": document_id(character_id, "spell", "unknown", position),
        "name": "Unknown Spell",
        "type": "spell",
        "img": UNKNOWN_SPELL_ICON,
        "system": {
            "description": {"value": "", "chat": "", "unidentified": ""},
            "source": "",
            "activation": {"type": "action", "cost": 1, "condition": ""},
            "duration": {"value": None, "units": "instantaneous"},
            "target": {"value": None, "width": None, "units": "ft", "type": "creature"},
            "range": {"value": None, "long": None, "units": "ft"},
            "uses": no_uses(),
            "consume": {"type": "", "target": "", "amount": 0, "scale": False},
            "ability": None,
            "actionType": "other",
            "attackBonus": "",
            "chatFlavor": "",
            "critical": {"threshold": 20, "damage": ""},
            "damage": {"parts": [], "versatile": "", "value": ""},
            "formula": "",
            "save": {"ability": "", "dc": 0, "scaling": "spell"},
            "level": 0,
            "school": map_enum("school", None),
            "components": {
                "vocal": False,
                "somatic": False,
                "material": False,
                "ritual": False,
                "concentration": False,
            },
            "materials": {"value": "", "consumed": False, "cost": 0, "supply": 0},
            "preparation": parse_preparation(entry or {}, options),
            "scaling": {"mode": "none", "formula": ""},
            "properties": [],
        },
        "effects": [],
        "flags": provenance(character_id),
    }


def transform_spell(
    entry: dict[str, Any],
    options: ImportOptions | None = None,
    config: TransformConfig | None = None,
    character_id: Any = None,
    position: int = 0,
) -> dict[str, Any]:
    """Map one DDB spell entry to a Foundry spell item.

    Args:
        entry: Spell entry (``{id, prepared, limitedUse, definition, ...}``).
        options: Caller options; supplies the preparation mode.
        config: Engine policies (activation code 6 handling).
        character_id: Source character id stamped into the provenance flags.
        position: Index of the entry among the character's spells.

    Returns:
        The spell item. Entries without a definition yield ``unknown_spell()``.
    """
    definition = entry.get("definition")
    if not definition:
        return unknown_spell(entry, options, character_id, position)

    ability_id = entry.get("spellCastingAbilityId")
    system = {
        "description": {
            "value": parse_description(definition),
            "chat": first_sentences(definition.get("description")),
            "unidentified": "",
        },
        "source": source_label(definition),
        "activation": parse_activation(definition, config),
        "duration": parse_duration(definition),
        "target": parse_target(definition),
        "range": parse_range(definition),
        "uses": limited_uses(entry.get("limitedUse")),
        "consume": {"type": "", "target": "", "amount": 0, "scale": False},
        "ability": map_enum("spellcastingAbility", ability_id) or None,
        "actionType": parse_action_type(definition),
        "attackBonus": "",
        "chatFlavor": "",
        "critical": {"threshold": 20, "damage": ""},
        "damage": parse_damage(definition),
        "formula": parse_formula(definition),
        "save": parse_save(definition),
        "level": definition.get("level") or 0,
        "school": map_enum("school", definition.get("school")),
        "components": parse_components(definition),
        "materials": parse_materials(definition),
        "preparation": parse_preparation(entry, options),
        "scaling": parse_scaling(definition),
        "properties": parse_properties(definition),
    }

    cast_at_level = entry.get("castAtLevel")
    return {
        "_id": document_id(character_id, "spell", entry.get("id"), definition.get("id"), position),
        "name": definition.get("name") or "Unknown Spell",
        "type": "spell",
        "img": spell_icon(definition),
        "system": system,
        "effects": [],
        "flags": provenance(
            character_id,
            ddbId=definition.get("id"),
            sourceId=entry.get("id"),
            spellListId=entry.get("spellListId"),
            prepared=bool(entry.get("prepared", False)),
            alwaysPrepared=entry.get("alwaysPrepared") is True,
            usesSpellSlot=entry.get("usesSpellSlot") is not False,
            castAtLevel=cast_at_level if isinstance(cast_at_level, int) else None,
            restriction=entry.get("restriction") or "",
        ),
    }


def collect_spell_entries(ddb: dict[str, Any]) -> list[dict[str, Any]]:
    """Every spell entry on a character.

    Reads the per-source ``spells`` map (race, class, item, feat, ...) in a
    fixed order, then the per-class ``classSpells`` lists.
    """
    entries: list[dict[str, Any]] = []

    spells = ddb.get("spells") or {}
    if isinstance(spells, dict):
        extra = sorted(key for key in spells if key not in MODIFIER_SECTIONS)
        for category in (*MODIFIER_SECTIONS, *extra):
            entries.extend(entry for entry in spells.get(category) or [] if isinstance(entry, dict))
    elif isinstance(spells, list):
        entries.extend(entry for entry in spells if isinstance(entry, dict))

    for class_spells in ddb.get("classSpells") or []:
        entries.extend(
            entry for entry in (class_spells or {}).get("spells") or [] if isinstance(entry, dict)
        )
    return entries


def transform_spells(
    spell_entries: Iterable[dict[str, Any]] | None,
    options: ImportOptions | None = None,
    config: TransformConfig | None = None,
    character_id: Any = None,
) -> tuple[list[dict[str, Any]], list[str]]:
    """Map a list of spell entries.

    Entries without a definition come back as the "Unknown Spell"
    placeholder and are reported in the warnings. Entries that raise are
    dropped.

    Returns:
        Tuple of (spell_items, warnings).
    """
    items: list[dict[str, Any]] = []
    warnings: list[str] = []

    for position, entry in enumerate(spell_entries or []):
        entry = entry or {}
        name = (entry.get("definition") or {}).get("name", "Unknown")
        try:
            items.append(transform_spell(entry, options, config, character_id, position))
        except Exception as e:
            logger.warning(f"Failed to parse spell {name}: {e}")
            warnings.append(f"Skipped spell '{name}': {e}")
            continue
        if not entry.get("definition"):
            logger.warning(f"Spell entry {entry.get('id')} has no definition, using placeholder")
            warnings.append(f"Spell entry {entry.get('id')} has no definition; imported as 'Unknown Spell'")

    logger.debug(f"Parsed {len(items)} spells")
    return items, warnings
