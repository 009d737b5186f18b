"""
Enumeration mapping between D&D Beyond codes and Foundry dnd5e tokens.

``map_enum`` is total: a code with no entry in its category's table resolves
to that category's default from ``ENUM_DEFAULTS``, never to an exception.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Any, Mapping

from .schema import (
    ABILITY_ID_MAP,
    ACTIVATION_SPECIAL_CODE,
    ACTIVATION_TYPE_MAP,
    ALIGNMENT_MAP,
    AOE_TARGET_MAP,
    ARMOR_TYPE_MAP,
    CONSUMABLE_TYPE_MAP,
    DAMAGE_TYPE_MAP,
    DAMAGE_TYPE_NAMES,
    DURATION_TYPE_MAP,
    ENUM_DEFAULTS,
    FEATURE_DURATION_TYPE_MAP,
    FEATURE_RANGE_ORIGIN_MAP,
    FEATURE_TARGET_TYPE_MAP,
    ITEM_FILTER_TYPE_MAP,
    RANGE_ORIGIN_MAP,
    RECOVERY_TYPE_MAP,
    SAVE_ABILITY_ID_MAP,
    SIZE_ID_MAP,
    SIZE_MAP,
    SPELL_ATTACK_TYPE_MAP,
    SPELL_SCHOOL_MAP,
    SPELLCASTING_ABILITY_ID_MAP,
    WEAPON_ATTACK_TYPE_MAP,
)

# Tables keyed by integer codes
_NUMERIC_TABLES: Mapping[str, Mapping[int, str]] = MappingProxyType({
    "ability": ABILITY_ID_MAP,
    "saveAbility": SAVE_ABILITY_ID_MAP,
    "spellcastingAbility": SPELLCASTING_ABILITY_ID_MAP,
    "alignment": ALIGNMENT_MAP,
    "damageType": DAMAGE_TYPE_MAP,
    "activationType": ACTIVATION_TYPE_MAP,
    "featureDurationType": FEATURE_DURATION_TYPE_MAP,
    "featureRangeOrigin": FEATURE_RANGE_ORIGIN_MAP,
    "featureTargetType": FEATURE_TARGET_TYPE_MAP,
    "recoveryType": RECOVERY_TYPE_MAP,
    "armorType": ARMOR_TYPE_MAP,
    "spellAttackType": SPELL_ATTACK_TYPE_MAP,
    "weaponAttackType": WEAPON_ATTACK_TYPE_MAP,
    "size": SIZE_ID_MAP,
})

# Tables keyed by case-insensitive names
_TEXT_TABLES: Mapping[str, Mapping[str, str]] = MappingProxyType({
    "size": SIZE_MAP,
    "school": SPELL_SCHOOL_MAP,
    "durationType": DURATION_TYPE_MAP,
    "rangeOrigin": RANGE_ORIGIN_MAP,
    "aoeType": AOE_TARGET_MAP,
    "itemType": ITEM_FILTER_TYPE_MAP,
    "consumableType": CONSUMABLE_TYPE_MAP,
})

ENUM_CATEGORIES: frozenset[str] = frozenset(ENUM_DEFAULTS)


def _as_int(code: Any) -> int | None:
    if isinstance(code, bool):
        return None
    if isinstance(code, int):
        return code
    if isinstance(code, float) and code.is_integer():
        return int(code)
    if isinstance(code, str) and code.strip().isdigit():
        return int(code.strip())
    return None


def map_enum(category: str, code: Any) -> str:
    """Translate a DDB code into the Foundry token for ``category``.

    Args:
        category: One of ``ENUM_CATEGORIES`` (e.g. "school", "damageType").
        code: The raw DDB value, numeric or textual depending on the category.

    Returns:
        The mapped token, or the category default when the code is unknown,
        missing, or of the wrong kind. Unknown categories yield "".
    """
    default = ENUM_DEFAULTS.get(category, "")
    if code is None:
        return default

    # Spells name their damage types; feature and item blocks use IDs
    if category == "damageType" and isinstance(code, str) and not code.strip().isdigit():
        name = code.strip().lower()
        return name if name in DAMAGE_TYPE_NAMES else default

    numeric_table = _NUMERIC_TABLES.get(category)
    if numeric_table is not None:
        number = _as_int(code)
        if number is not None:
            return numeric_table.get(number, default)

    text_table = _TEXT_TABLES.get(category)
    if text_table is not None and isinstance(code, str):
        return text_table.get(code.strip().lower(), default)

    return default


def map_activation(code: Any, special_policy: str = "minute") -> str:
    """Map an activation-type code, applying the policy for code 6 ("Special").

    DDB uses code 6 for casting times that fit none of the standard units.
    Folding it into "minute" is an approximation; ``special_policy`` lets
    the caller pick another token (e.g. "special").
    """
    if _as_int(code) == ACTIVATION_SPECIAL_CODE:
        return special_policy
    return map_enum("activationType", code)


def ability_from_name(name: str | None) -> str:
    """Resolve a full or abbreviated ability name ("Wisdom", "wis") to its key."""
    if not name:
        return ""
    key = name.strip().lower()[:3]
    return key if key in ABILITY_ID_MAP.values() else ""
