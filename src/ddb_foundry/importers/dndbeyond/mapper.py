"""
Core mapper functions for translating D&D Beyond JSON to a Foundry dnd5e actor.

This module contains the assembly logic that turns DDB's nested JSON into a
single actor document with its items embedded. Each ``map_*`` function
returns a ``(result, warnings)`` tuple so a failing section degrades to its
defaults instead of aborting the character.
"""

from __future__ import annotations

import copy
import logging
from typing import Any

from ...config import TransformConfig
from ...models import ImportOptions
from ..base import TransformResult
from .common import as_int, unwrap_character
from .derived import (
    ability_modifier,
    current_hit_points,
    encumbrance_capacity,
    max_hit_points,
    proficiency_bonus,
    spell_save_dc,
    total_level,
    xp_for_next_level,
)
from .enums import map_enum
from .equipment import item_weight, transform_items
from .features import transform_features
from .modifiers import ProficiencySet, aggregate_modifiers, iter_modifiers
from .schema import (
    ABILITY_ID_MAP,
    ABILITY_KEYS,
    ABILITY_SCORE_SUBTYPES,
    ACTOR_ICON,
    CLASS_HIT_DICE,
    CLASS_SPELLCASTING_ABILITY,
    MODIFIER_TYPE_BONUS,
    MODIFIER_TYPE_SET,
    PROVENANCE_KEY,
    SKILL_ABILITIES,
)
from .spell_slots import character_slots
from .spells import collect_spell_entries, transform_spells
from .text import extract_darkvision

logger = logging.getLogger("ddb-foundry")

CURRENCY_KEYS = ("pp", "gp", "ep", "sp", "cp")
MOVEMENT_KEYS = ("walk", "fly", "swim", "climb", "burrow")
DEFAULT_WALK_SPEED = 30
DEFAULT_ABILITY_SCORE = 10
EXHAUSTION_CONDITION_ID = 4


def _class_list(ddb: dict) -> list[dict]:
    return [cls for cls in ddb.get("classes") or [] if isinstance(cls, dict)]


def _class_name(cls: dict) -> str:
    return ((cls.get("definition") or {}).get("name") or "").strip()


def _stat_map(entries: Any) -> dict[int, Any]:
    """``[{id, value}, ...]`` → ``{id: value}`` for the six ability ids."""
    result: dict[int, Any] = {}
    for entry in entries or []:
        if isinstance(entry, dict) and entry.get("id") in ABILITY_ID_MAP:
            result[entry["id"]] = entry.get("value")
    return result


def _ability_block(score: int) -> dict[str, Any]:
    return {
        "value": score,
        "mod": ability_modifier(score),
        "proficient": 0,
        "bonuses": {"check": "", "save": ""},
        "min": 3,
    }


def default_abilities() -> dict[str, dict[str, Any]]:
    return {key: _ability_block(DEFAULT_ABILITY_SCORE) for key in ABILITY_KEYS}


def map_abilities(ddb: dict) -> tuple[dict[str, dict[str, Any]], list[str]]:
    """Map ability scores from DDB character.

    DDB scatters ability scores across base stats, bonus stats, override
    stats and ``<ability>-score`` modifiers from race/class/items/feats. An
    override wins outright; otherwise the score is base + bonus + modifier
    bonuses, raised to any "set" modifier (e.g. a belt of giant strength).

    Args:
        ddb: Raw D&D Beyond character JSON.

    Returns:
        Tuple of (abilities, warnings). abilities maps every ability key to
        its Foundry block, even when the source omits it.
    """
    warnings: list[str] = []

    base_stats = _stat_map(ddb.get("stats"))
    bonus_stats = _stat_map(ddb.get("bonusStats"))
    override_stats = {k: v for k, v in _stat_map(ddb.get("overrideStats")).items() if v is not None}

    bonuses = {key: 0 for key in ABILITY_KEYS}
    floors = {key: 0 for key in ABILITY_KEYS}
    for mod in iter_modifiers(ddb):
        ability = ABILITY_SCORE_SUBTYPES.get(mod.get("subType") or "")
        if not ability:
            continue
        if mod.get("type") == MODIFIER_TYPE_BONUS:
            bonuses[ability] += as_int(mod.get("value"))
        elif mod.get("type") == MODIFIER_TYPE_SET:
            floors[ability] = max(floors[ability], as_int(mod.get("value")))

    missing = [key for stat_id, key in ABILITY_ID_MAP.items() if stat_id not in base_stats]
    if missing and len(missing) < len(ABILITY_KEYS):
        warnings.append(f"Missing base ability scores for {', '.join(missing)}; defaulting to 10")
    elif missing:
        warnings.append("No ability scores found; all abilities default to 10")

    abilities: dict[str, dict[str, Any]] = {}
    for stat_id, key in ABILITY_ID_MAP.items():
        if stat_id in override_stats:
            score = as_int(override_stats[stat_id], DEFAULT_ABILITY_SCORE)
        else:
            score = (
                as_int(base_stats.get(stat_id), DEFAULT_ABILITY_SCORE)
                + as_int(bonus_stats.get(stat_id))
                + bonuses[key]
            )
            score = max(score, floors[key])
        abilities[key] = _ability_block(score)

    return abilities, warnings


def _hit_die(cls: dict) -> str:
    hit_dice = (cls.get("definition") or {}).get("hitDice")
    if isinstance(hit_dice, int) and hit_dice > 0:
        return f"d{hit_dice}"
    return CLASS_HIT_DICE.get(_class_name(cls).lower(), "d8")


def map_details(ddb: dict, options: ImportOptions, level: int) -> tuple[dict, list[str]]:
    """Map identity and biography fields.

    Args:
        ddb: Raw D&D Beyond character JSON.
        options: Caller options (biography may be skipped).
        level: Total character level.

    Returns:
        Tuple of (details, warnings).
    """
    warnings: list[str] = []
    race = ddb.get("race") or {}
    background = ddb.get("background") or {}
    notes = ddb.get("notes") or {}
    traits = ddb.get("traits") or {}

    classes: dict[str, dict[str, Any]] = {}
    for cls in _class_list(ddb):
        name = _class_name(cls).lower()
        if not name:
            warnings.append("Class entry without a definition skipped")
            continue
        subclass = (cls.get("subclassDefinition") or {}).get("name") or ""
        classes[name] = {
            "levels": as_int(cls.get("level")),
            "subclass": subclass,
            "hitDie": _hit_die(cls),
        }
    original_class = max(classes, key=lambda name: classes[name]["levels"]) if classes else ""

    xp = max(0, as_int(ddb.get("currentXp")))
    xp_max = xp_for_next_level(level)

    biography = ""
    if options.import_biography:
        biography = notes.get("backstory") or ""

    details = {
        "race": race.get("fullName") or race.get("baseName") or "",
        "background": (
            (background.get("definition") or {}).get("name")
            or (background.get("customBackground") or {}).get("name")
            or ""
        ),
        "alignment": map_enum("alignment", ddb.get("alignmentId")),
        "biography": {"value": biography, "public": ""},
        "appearance": traits.get("appearance") or "",
        "trait": traits.get("personalityTraits") or "",
        "ideal": traits.get("ideals") or "",
        "bond": traits.get("bonds") or "",
        "flaw": traits.get("flaws") or "",
        "gender": ddb.get("gender") or "",
        "eyes": ddb.get("eyes") or "",
        "hair": ddb.get("hair") or "",
        "skin": ddb.get("skin") or "",
        "height": ddb.get("height") or "",
        "weight": str(ddb.get("weight") or ""),
        "faith": ddb.get("faith") or "",
        "age": str(ddb.get("age") or ""),
        "xp": {
            "value": xp,
            "max": xp_max,
            "pct": min(100, int(xp * 100 / xp_max)) if xp_max else 100,
        },
        "level": level,
        "classes": classes,
        "originalClass": original_class,
    }
    return details, warnings


def spellcasting_ability(ddb: dict) -> str:
    """Ability key of the highest-level spellcasting class, "" for non-casters."""
    best_level = 0
    best_ability = ""
    for cls in _class_list(ddb):
        definition = cls.get("definition") or {}
        subclass = cls.get("subclassDefinition") or {}
        ability = (
            map_enum("spellcastingAbility", definition.get("spellCastingAbilityId"))
            or map_enum("spellcastingAbility", subclass.get("spellCastingAbilityId"))
            or CLASS_SPELLCASTING_ABILITY.get(_class_name(cls).lower(), "")
            or CLASS_SPELLCASTING_ABILITY.get((subclass.get("name") or "").strip().lower(), "")
        )
        level = as_int(cls.get("level"))
        if ability and level > best_level:
            best_level, best_ability = level, ability
    return best_ability


def _darkvision(ddb: dict) -> int:
    distance = 0
    for mod in iter_modifiers(ddb):
        if (mod.get("subType") or "").lower() == "darkvision":
            distance = max(distance, as_int(mod.get("value")))
    for trait in (ddb.get("race") or {}).get("racialTraits") or []:
        definition = (trait or {}).get("definition") or {}
        if "darkvision" in (definition.get("name") or "").lower():
            distance = max(distance, extract_darkvision(definition.get("description")))
    return distance


def _carried_weight(ddb: dict) -> float:
    total = 0.0
    for entry in ddb.get("inventory") or []:
        definition = (entry or {}).get("definition")
        if definition:
            total += item_weight(definition) * as_int(entry.get("quantity"), 1)
    return round(total, 2)


def map_attributes(
    ddb: dict,
    abilities: dict[str, dict[str, Any]],
    level: int,
) -> tuple[dict, list[str]]:
    """Map hit points, movement, senses, spellcasting and the other attributes.

    Args:
        ddb: Raw D&D Beyond character JSON.
        abilities: Already-computed ability blocks (needed for HP, DC, encumbrance).
        level: Total character level.

    Returns:
        Tuple of (attributes, warnings).
    """
    warnings: list[str] = []

    con_mod = abilities["con"]["mod"]
    hp_per_level = sum(
        as_int(mod.get("value"))
        for mod in iter_modifiers(ddb)
        if mod.get("type") == MODIFIER_TYPE_BONUS and mod.get("subType") == "hit-points-per-level"
    )
    override = ddb.get("overrideHitPoints")
    hp_max = max_hit_points(
        base=as_int(ddb.get("baseHitPoints")),
        con_modifier=con_mod,
        level=level,
        bonus=as_int(ddb.get("bonusHitPoints")) + hp_per_level * level,
        override=as_int(override) if override is not None else None,
    )

    speeds = ((ddb.get("race") or {}).get("weightSpeeds") or {}).get("normal") or {}
    if not speeds:
        warnings.append(f"No race speed found, defaulting to {DEFAULT_WALK_SPEED}")
    movement: dict[str, Any] = {key: as_int(speeds.get(key)) for key in MOVEMENT_KEYS}
    movement["walk"] = movement["walk"] or DEFAULT_WALK_SPEED
    movement.update({"units": "ft", "hover": False})

    prof = proficiency_bonus(level)
    casting = spellcasting_ability(ddb)
    casting_mod = abilities[casting]["mod"] if casting else 0

    carried = _carried_weight(ddb)
    capacity = encumbrance_capacity(abilities["str"]["value"])

    death_saves = ddb.get("deathSaves") or {}
    exhaustion = 0
    for condition in ddb.get("conditions") or []:
        if (condition or {}).get("id") == EXHAUSTION_CONDITION_ID:
            exhaustion = as_int(condition.get("level"))

    hit_dice_used = sum(as_int(cls.get("hitDiceUsed")) for cls in _class_list(ddb))

    attributes = {
        "hp": {
            "value": current_hit_points(hp_max, as_int(ddb.get("removedHitPoints"))),
            "max": hp_max,
            "temp": as_int(ddb.get("temporaryHitPoints")),
            "tempmax": 0,
            "bonuses": {"level": "", "overall": ""},
        },
        "ac": {"flat": None, "calc": "default", "formula": ""},
        "init": {"ability": "dex", "bonus": 0, "mod": abilities["dex"]["mod"]},
        "movement": movement,
        "senses": {
            "darkvision": _darkvision(ddb),
            "blindsight": 0,
            "tremorsense": 0,
            "truesight": 0,
            "units": "ft",
            "special": "",
        },
        "spellcasting": casting,
        "prof": prof,
        "spelldc": spell_save_dc(prof, casting_mod),
        "encumbrance": {
            "value": carried,
            "max": capacity,
            "pct": min(100, round(carried * 100 / capacity)) if capacity > 0 else 0,
            "encumbered": carried > capacity,
        },
        "inspiration": bool(ddb.get("inspiration", False)),
        "death": {
            "success": as_int(death_saves.get("successCount")),
            "failure": as_int(death_saves.get("failCount")),
        },
        "exhaustion": exhaustion,
        "hd": max(0, level - hit_dice_used),
    }
    return attributes, warnings


def _trait(values: list[str]) -> dict[str, Any]:
    return {"value": list(values), "custom": ""}


def map_traits(ddb: dict, proficiencies: ProficiencySet) -> dict:
    race = ddb.get("race") or {}
    size = race.get("size") or race.get("sizeId")
    defenses = proficiencies.defenses
    return {
        "size": map_enum("size", size),
        "languages": _trait(proficiencies.languages),
        "di": _trait(defenses.di),
        "dr": _trait(defenses.dr),
        "dv": _trait(defenses.dv),
        "ci": _trait(defenses.ci),
        "weaponProf": _trait(proficiencies.weapons),
        "armorProf": _trait(proficiencies.armor),
        "toolProf": _trait(proficiencies.tools),
    }


def map_skills(proficiencies: ProficiencySet) -> dict[str, dict[str, Any]]:
    """Every Foundry skill key with its rank (0/1/2) and governing ability."""
    return {
        key: {
            "value": proficiencies.skills.get(key, 0),
            "ability": ability,
            "bonuses": {"check": "", "passive": ""},
        }
        for key, ability in SKILL_ABILITIES.items()
    }


def map_currency(ddb: dict) -> dict[str, int]:
    currencies = ddb.get("currencies") or {}
    return {key: max(0, as_int(currencies.get(key))) for key in CURRENCY_KEYS}


def _slots_used(entries: Any) -> dict[int, int]:
    return {
        as_int(entry.get("level")): as_int(entry.get("used"))
        for entry in entries or []
        if isinstance(entry, dict)
    }


def map_spell_slots(ddb: dict, config: TransformConfig) -> tuple[dict, list[str]]:
    """Build the ``spell1..spell9`` + ``pact`` block.

    Args:
        ddb: Raw D&D Beyond character JSON.
        config: Engine policies (multiclass slot combination).

    Returns:
        Tuple of (spell_slot_block, warnings).
    """
    warnings: list[str] = []
    slots, (pact_count, pact_level) = character_slots(
        _class_list(ddb), combine_multiclass=config.multiclass_slots
    )
    used = _slots_used(ddb.get("spellSlots"))
    pact_used = _slots_used(ddb.get("pactMagic"))

    block: dict[str, dict[str, Any]] = {}
    for spell_level in range(1, 10):
        maximum = slots.get(f"spell{spell_level}", 0)
        block[f"spell{spell_level}"] = {
            "value": max(0, maximum - used.get(spell_level, 0)),
            "override": None,
            "max": maximum,
        }
    block["pact"] = {
        "value": max(0, pact_count - pact_used.get(pact_level, 0)),
        "override": None,
        "max": pact_count,
        "level": pact_level,
    }
    return block, warnings


def default_resources() -> dict:
    return {
        slot: {"value": None, "max": None, "sr": False, "lr": False, "label": ""}
        for slot in ("primary", "secondary", "tertiary")
    }


def default_bonuses() -> dict:
    return {
        "mwak": {"attack": "", "damage": ""},
        "rwak": {"attack": "", "damage": ""},
        "msak": {"attack": "", "damage": ""},
        "rsak": {"attack": "", "damage": ""},
        "abilities": {"check": "", "save": "", "skill": ""},
        "spell": {"dc": ""},
    }


def _default_system() -> dict:
    proficiencies = ProficiencySet()
    block, _ = map_spell_slots({}, TransformConfig())
    return {
        "abilities": default_abilities(),
        "attributes": {},
        "details": {},
        "traits": map_traits({}, proficiencies),
        "currency": {key: 0 for key in CURRENCY_KEYS},
        "skills": map_skills(proficiencies),
        "spells": block,
        "resources": default_resources(),
        "bonuses": default_bonuses(),
    }


def map_ddb_to_actor(
    ddb: dict,
    options: ImportOptions | dict | None = None,
    config: TransformConfig | None = None,
) -> TransformResult:
    """Orchestrate full DDB → Foundry actor mapping.

    Runs the section mappers in a fixed order (abilities, attributes,
    proficiencies, equipment, spells, features), collects warnings, and
    assembles the actor. Always returns a structurally complete actor even
    if some sections fail. No timestamps or random ids are generated, so the
    same input always produces the same document.

    Args:
        ddb: Raw D&D Beyond character JSON, optionally in a ``{"data": ...}`` envelope.
        options: ImportOptions, or a dict of options (camelCase keys accepted).
        config: Engine policies; defaults to ``TransformConfig()``.

    Returns:
        TransformResult with the actor, mapped/unmapped sections, and warnings.
    """
    ddb = unwrap_character(ddb)
    if options is None:
        options = ImportOptions()
    elif isinstance(options, dict):
        options = ImportOptions.model_validate(options)
    config = config or TransformConfig()

    all_warnings: list[str] = []
    mapped_fields: list[str] = []
    unmapped_fields: list[str] = []
    character_id = ddb.get("id")

    system = _default_system()
    items: list[dict[str, Any]] = []
    counts = {"equipment": 0, "spells": 0, "features": 0}

    classes = _class_list(ddb)
    if not classes:
        all_warnings.append("No classes found, defaulting to level 1 with no spellcasting")
        unmapped_fields.append("classes")
    level = total_level(classes)

    # Map identity
    try:
        details, warnings = map_details(ddb, options, level)
        system["details"] = details
        all_warnings.extend(warnings)
        mapped_fields.extend(["name", "race", "background", "alignment"])
        if classes:
            mapped_fields.append("classes")
        if details["biography"]["value"]:
            mapped_fields.append("biography")
    except Exception as e:
        logger.warning(f"Failed to map details: {e}")
        all_warnings.append(f"Failed to map details: {e}")
        unmapped_fields.extend(["race", "background", "alignment"])

    # Map abilities
    try:
        abilities, warnings = map_abilities(ddb)
        system["abilities"] = abilities
        all_warnings.extend(warnings)
        mapped_fields.append("abilities")
    except Exception as e:
        logger.warning(f"Failed to map abilities: {e}")
        all_warnings.append(f"Failed to map abilities: {e}")
        unmapped_fields.append("abilities")

    # Map attributes (requires abilities and level)
    try:
        attributes, warnings = map_attributes(ddb, system["abilities"], level)
        system["attributes"] = attributes
        all_warnings.extend(warnings)
        mapped_fields.append("attributes")
    except Exception as e:
        logger.warning(f"Failed to map attributes: {e}")
        all_warnings.append(f"Failed to map attributes: {e}")
        unmapped_fields.append("attributes")

    # Map proficiencies (save flags go onto the ability blocks)
    try:
        proficiencies, warnings = aggregate_modifiers(ddb)
        for ability in proficiencies.saving_throws:
            system["abilities"][ability]["proficient"] = 1
        system["traits"] = map_traits(ddb, proficiencies)
        system["skills"] = map_skills(proficiencies)
        all_warnings.extend(warnings)
        mapped_fields.extend(["skills", "proficiencies", "languages", "defenses"])
    except Exception as e:
        logger.warning(f"Failed to map proficiencies: {e}")
        all_warnings.append(f"Failed to map proficiencies: {e}")
        unmapped_fields.extend(["skills", "proficiencies", "languages", "defenses"])

    try:
        system["currency"] = map_currency(ddb)
        mapped_fields.append("currency")
    except Exception as e:
        logger.warning(f"Failed to map currency: {e}")
        all_warnings.append(f"Failed to map currency: {e}")
        unmapped_fields.append("currency")

    try:
        slot_block, warnings = map_spell_slots(ddb, config)
        system["spells"] = slot_block
        all_warnings.extend(warnings)
        mapped_fields.append("spell_slots")
    except Exception as e:
        logger.warning(f"Failed to map spell slots: {e}")
        all_warnings.append(f"Failed to map spell slots: {e}")
        unmapped_fields.append("spell_slots")

    if options.import_equipment:
        try:
            equipment, warnings = transform_items(ddb.get("inventory"), character_id, config)
            items.extend(equipment)
            counts["equipment"] = len(equipment)
            all_warnings.extend(warnings)
            mapped_fields.append("equipment")
        except Exception as e:
            logger.warning(f"Failed to map equipment: {e}")
            all_warnings.append(f"Failed to map equipment: {e}")
            unmapped_fields.append("equipment")

    if options.import_spells:
        try:
            spells, warnings = transform_spells(
                collect_spell_entries(ddb), options, config, character_id
            )
            items.extend(spells)
            counts["spells"] = len(spells)
            all_warnings.extend(warnings)
            mapped_fields.append("spells")
        except Exception as e:
            logger.warning(f"Failed to map spells: {e}")
            all_warnings.append(f"Failed to map spells: {e}")
            unmapped_fields.append("spells")

    if options.import_features:
        try:
            features, warnings = transform_features(ddb, config)
            items.extend(features)
            counts["features"] = len(features)
            all_warnings.extend(warnings)
            mapped_fields.append("features")
        except Exception as e:
            logger.warning(f"Failed to map features: {e}")
            all_warnings.append(f"Failed to map features: {e}")
            unmapped_fields.append("features")

    flags: dict[str, Any] = {
        "characterId": character_id,
        "updateExisting": options.update_existing,
    }
    if config.keep_raw_source:
        flags["source"] = copy.deepcopy(ddb)

    decorations = ddb.get("decorations")
    decorations = decorations if isinstance(decorations, dict) else {}
    actor = {
        "name": ddb.get("name") or "Unknown Character",
        "type": "character",
        "img": decorations.get("avatarUrl") or ddb.get("avatarUrl") or ACTOR_ICON,
        "system": system,
        "items": items,
        "effects": [],
        "flags": {PROVENANCE_KEY: flags},
    }

    logger.info(
        f"✅ Mapped {actor['name']} (level {level}): {counts['equipment']} items, "
        f"{counts['spells']} spells, {counts['features']} features, {len(all_warnings)} warnings"
    )

    return TransformResult(
        actor=actor,
        mapped_fields=mapped_fields,
        unmapped_fields=unmapped_fields,
        warnings=all_warnings,
        item_counts=counts,
        source_id=character_id if isinstance(character_id, int) else None,
    )
