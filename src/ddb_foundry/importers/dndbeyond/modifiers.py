"""
Aggregation of DDB's modifier side-channel into proficiency sets.

DDB does not store proficiencies on the character; it emits one modifier
record per grant, bucketed by where the grant came from (race, class,
background, item, feat, ...). This module folds those records into the
sets the actor document needs.
"""

from __future__ import annotations

import logging
from typing import Any, Iterator

from pydantic import BaseModel, Field

from .enums import map_enum
from .schema import (
    ABILITY_KEYS,
    ARMOR_PROFICIENCY_SUBTYPES,
    CLASS_LANGUAGES,
    CONDITION_NAMES,
    DAMAGE_TYPE_NAMES,
    MODIFIER_SECTIONS,
    MODIFIER_TYPE_EXPERTISE,
    MODIFIER_TYPE_IMMUNITY,
    MODIFIER_TYPE_LANGUAGE,
    MODIFIER_TYPE_PROFICIENCY,
    MODIFIER_TYPE_RESISTANCE,
    MODIFIER_TYPE_VULNERABILITY,
    SAVING_THROW_SUBTYPES,
    SKILL_SUBTYPES,
    TOOL_PROFICIENCY_MARKERS,
    WEAPON_PROFICIENCY_SUBTYPES,
)
from .text import extract_languages

logger = logging.getLogger("ddb-foundry.modifiers")


class DefenseSet(BaseModel):
    """Damage/condition defenses collected from modifiers."""
    di: list[str] = Field(default_factory=list, description="Damage immunities")
    dr: list[str] = Field(default_factory=list, description="Damage resistances")
    dv: list[str] = Field(default_factory=list, description="Damage vulnerabilities")
    ci: list[str] = Field(default_factory=list, description="Condition immunities")


class ProficiencySet(BaseModel):
    """Everything the modifier collection says the character is proficient in."""
    saving_throws: list[str] = Field(default_factory=list, description="Ability keys")
    skills: dict[str, int] = Field(
        default_factory=dict,
        description="Skill key → rank (1 proficient, 2 expertise); unlisted skills are 0",
    )
    weapons: list[str] = Field(default_factory=list, description="Weapon proficiency labels, e.g. \"Martial Weapons\"")
    armor: list[str] = Field(default_factory=list, description="Armor proficiency labels, e.g. \"Light Armor\"")
    tools: list[str] = Field(default_factory=list, description="Tool proficiency labels")
    languages: list[str] = Field(default_factory=list, description="Language labels in first-seen order, deduplicated")
    defenses: DefenseSet = Field(default_factory=DefenseSet, description="Immunities, resistances and vulnerabilities")


def iter_modifiers(ddb: dict[str, Any]) -> Iterator[dict[str, Any]]:
    """Yield every modifier record regardless of how the export groups them.

    Known sections come first in a fixed order so results do not depend on
    the key order of the source JSON.
    """
    modifiers = ddb.get("modifiers") or {}
    if isinstance(modifiers, list):
        yield from (mod for mod in modifiers if isinstance(mod, dict))
        return
    if not isinstance(modifiers, dict):
        return

    extra_sections = sorted(key for key in modifiers if key not in MODIFIER_SECTIONS)
    for section_name in (*MODIFIER_SECTIONS, *extra_sections):
        section = modifiers.get(section_name) or []
        if not isinstance(section, list):
            continue
        for mod in section:
            if isinstance(mod, dict):
                yield mod


def _append_unique(target: list[str], value: str | None) -> None:
    if value and value not in target:
        target.append(value)


def _label(mod: dict[str, Any]) -> str:
    return mod.get("friendlySubtypeName") or mod.get("subType") or ""


def skill_key(sub_type: str) -> str | None:
    """Foundry skill key for a DDB skill subtype ("sleight-of-hand", "skill-arcana")."""
    normalized = sub_type.strip().lower()
    if normalized.startswith("skill-"):
        normalized = normalized[len("skill-"):]
    return SKILL_SUBTYPES.get(normalized)


def save_ability(mod: dict[str, Any]) -> str | None:
    """Ability key for a saving-throw proficiency modifier, if it is one."""
    sub_type = (mod.get("subType") or "").lower()
    if sub_type in SAVING_THROW_SUBTYPES:
        return SAVING_THROW_SUBTYPES[sub_type]
    # Older exports: generic subtype with the ability in entityId
    if sub_type == "saving-throws":
        return map_enum("saveAbility", mod.get("entityId")) or None
    return None


def classify_proficiency(sub_type: str) -> str | None:
    """Return "weapon", "armor" or "tool" for an equipment proficiency subtype."""
    normalized = sub_type.strip().lower()
    if not normalized:
        return None
    if normalized in ARMOR_PROFICIENCY_SUBTYPES or "armor" in normalized:
        return "armor"
    if "weapon" in normalized or normalized in WEAPON_PROFICIENCY_SUBTYPES:
        return "weapon"
    if any(normalized.endswith(marker) for marker in TOOL_PROFICIENCY_MARKERS):
        return "tool"
    return None


def _collect_defense(defenses: DefenseSet, mod: dict[str, Any]) -> None:
    mod_type = mod.get("type")
    name = (mod.get("subType") or "").lower()
    if name in CONDITION_NAMES and mod_type == MODIFIER_TYPE_IMMUNITY:
        _append_unique(defenses.ci, name)
    elif name in DAMAGE_TYPE_NAMES:
        bucket = {
            MODIFIER_TYPE_IMMUNITY: defenses.di,
            MODIFIER_TYPE_RESISTANCE: defenses.dr,
            MODIFIER_TYPE_VULNERABILITY: defenses.dv,
        }[mod_type]
        _append_unique(bucket, name)


def _fallback_languages(ddb: dict[str, Any]) -> list[str]:
    """Scan racial trait and background text for language names."""
    texts: list[str] = []
    race = ddb.get("race") or {}
    for trait in race.get("racialTraits") or []:
        definition = (trait or {}).get("definition") or {}
        name = (definition.get("name") or "").lower()
        if "language" in name:
            texts.append(definition.get("description") or "")
    texts.append(race.get("languageDescription") or "")

    background_def = (ddb.get("background") or {}).get("definition") or {}
    texts.append(background_def.get("languagesDescription") or "")
    texts.append(background_def.get("languageDescription") or "")

    found: list[str] = []
    for text in texts:
        for language in extract_languages(text):
            _append_unique(found, language)
    return found


def aggregate_modifiers(ddb: dict[str, Any]) -> tuple[ProficiencySet, list[str]]:
    """Fold all modifier records into a ProficiencySet.

    Skill ranks only ever go up, so an expertise record wins over a
    proficiency record for the same skill whichever comes first.

    Args:
        ddb: Raw D&D Beyond character JSON.

    Returns:
        Tuple of (proficiency_set, warnings).
    """
    warnings: list[str] = []
    result = ProficiencySet()
    saw_language_modifier = False

    for mod in iter_modifiers(ddb):
        mod_type = mod.get("type")
        sub_type = mod.get("subType") or ""

        if mod_type in (MODIFIER_TYPE_PROFICIENCY, MODIFIER_TYPE_EXPERTISE):
            ability = save_ability(mod)
            if ability:
                _append_unique(result.saving_throws, ability)
                continue

            skill = skill_key(sub_type)
            if skill:
                rank = 2 if mod_type == MODIFIER_TYPE_EXPERTISE else 1
                result.skills[skill] = max(result.skills.get(skill, 0), rank)
                continue

            if mod_type != MODIFIER_TYPE_PROFICIENCY:
                continue
            kind = classify_proficiency(sub_type)
            if kind == "weapon":
                _append_unique(result.weapons, _label(mod))
            elif kind == "armor":
                _append_unique(result.armor, _label(mod))
            elif kind == "tool":
                _append_unique(result.tools, _label(mod))
            elif sub_type:
                logger.debug(f"Unclassified proficiency modifier: {sub_type}")

        elif mod_type == MODIFIER_TYPE_LANGUAGE:
            saw_language_modifier = True
            label = mod.get("friendlySubtypeName") or sub_type.replace("-", " ").title()
            _append_unique(result.languages, label)

        elif mod_type in (MODIFIER_TYPE_RESISTANCE, MODIFIER_TYPE_IMMUNITY, MODIFIER_TYPE_VULNERABILITY):
            _collect_defense(result.defenses, mod)

    if not saw_language_modifier:
        for language in _fallback_languages(ddb):
            _append_unique(result.languages, language)
        if result.languages:
            warnings.append(
                "No language modifiers found; languages were read from race/background text"
            )

    for cls in ddb.get("classes") or []:
        class_name = (((cls or {}).get("definition") or {}).get("name") or "").strip().lower()
        language = CLASS_LANGUAGES.get(class_name)
        if language:
            _append_unique(result.languages, language)

    result.saving_throws.sort(key=ABILITY_KEYS.index)
    return result, warnings
