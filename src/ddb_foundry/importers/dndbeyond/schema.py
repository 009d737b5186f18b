"""
D&D Beyond JSON schema constants and lookup tables.

These map DDB's internal IDs and field names to Foundry dnd5e equivalents.
Based on community reverse-engineering of the v5 character-service endpoint.

Numeric DDB codes are only meaningful inside the collection they come from,
so every semantic domain gets its own table even when two tables happen to
hold the same values. All tables are read-only mappings built at import time.
"""

from types import MappingProxyType
from typing import Mapping

# ---------------------------------------------------------------------------
# Flag namespace stamped on every generated document
# ---------------------------------------------------------------------------

PROVENANCE_KEY = "ddb-foundry"

# ---------------------------------------------------------------------------
# Ability IDs (stats arrays)
# ---------------------------------------------------------------------------

ABILITY_KEYS: tuple[str, ...] = ("str", "dex", "con", "int", "wis", "cha")

ABILITY_ID_MAP: Mapping[int, str] = MappingProxyType({
    1: "str",
    2: "dex",
    3: "con",
    4: "int",
    5: "wis",
    6: "cha",
})

# Reverse lookup: ability key → DDB stat ID
ABILITY_KEY_TO_ID: Mapping[str, int] = MappingProxyType(
    {v: k for k, v in ABILITY_ID_MAP.items()}
)

# saveDcAbilityId / saveType on spell and feature definitions
SAVE_ABILITY_ID_MAP: Mapping[int, str] = MappingProxyType({
    1: "str",
    2: "dex",
    3: "con",
    4: "int",
    5: "wis",
    6: "cha",
})

# spellCastingAbilityId on class definitions and spell entries
SPELLCASTING_ABILITY_ID_MAP: Mapping[int, str] = MappingProxyType({
    1: "str",
    2: "dex",
    3: "con",
    4: "int",
    5: "wis",
    6: "cha",
})

# DDB modifier "subType" values for ability score bonuses
ABILITY_SCORE_SUBTYPES: Mapping[str, str] = MappingProxyType({
    "strength-score": "str",
    "dexterity-score": "dex",
    "constitution-score": "con",
    "intelligence-score": "int",
    "wisdom-score": "wis",
    "charisma-score": "cha",
})

# DDB modifier "subType" values for saving throws
SAVING_THROW_SUBTYPES: Mapping[str, str] = MappingProxyType({
    "strength-saving-throws": "str",
    "dexterity-saving-throws": "dex",
    "constitution-saving-throws": "con",
    "intelligence-saving-throws": "int",
    "wisdom-saving-throws": "wis",
    "charisma-saving-throws": "cha",
})

# ---------------------------------------------------------------------------
# Alignment IDs
# ---------------------------------------------------------------------------

ALIGNMENT_MAP: Mapping[int, str] = MappingProxyType({
    1: "lg",
    2: "ng",
    3: "cg",
    4: "ln",
    5: "tn",
    6: "cn",
    7: "le",
    8: "ne",
    9: "ce",
})

# ---------------------------------------------------------------------------
# Creature size
# ---------------------------------------------------------------------------

SIZE_MAP: Mapping[str, str] = MappingProxyType({
    "tiny": "tiny",
    "small": "sm",
    "medium": "med",
    "large": "lg",
    "huge": "huge",
    "gargantuan": "grg",
})

SIZE_ID_MAP: Mapping[int, str] = MappingProxyType({
    2: "tiny",
    3: "sm",
    4: "med",
    5: "lg",
    6: "huge",
    7: "grg",
})

# ---------------------------------------------------------------------------
# Damage types (feature/item damage blocks use IDs, spells use names)
# ---------------------------------------------------------------------------

DAMAGE_TYPE_MAP: Mapping[int, str] = MappingProxyType({
    1: "acid",
    2: "bludgeoning",
    3: "cold",
    4: "fire",
    5: "force",
    6: "lightning",
    7: "necrotic",
    8: "piercing",
    9: "poison",
    10: "psychic",
    11: "radiant",
    12: "slashing",
    13: "thunder",
})

DAMAGE_TYPE_NAMES: frozenset[str] = frozenset(DAMAGE_TYPE_MAP.values())

CONDITION_NAMES: frozenset[str] = frozenset({
    "blinded", "charmed", "deafened", "exhaustion", "frightened", "grappled",
    "incapacitated", "invisible", "paralyzed", "petrified", "poisoned",
    "prone", "restrained", "stunned", "unconscious", "diseased",
})

# ---------------------------------------------------------------------------
# Spell schools
# ---------------------------------------------------------------------------

SPELL_SCHOOL_MAP: Mapping[str, str] = MappingProxyType({
    "abjuration": "abjuration",
    "conjuration": "conjuration",
    "divination": "divination",
    "enchantment": "enchantment",
    "evocation": "evocation",
    "illusion": "illusion",
    "necromancy": "necromancy",
    "transmutation": "transmutation",
})

# ---------------------------------------------------------------------------
# Activation, duration, range, target, recovery
# ---------------------------------------------------------------------------

# Code 6 is DDB's "Special"; see ACTIVATION_SPECIAL_CODE
ACTIVATION_TYPE_MAP: Mapping[int, str] = MappingProxyType({
    1: "action",
    2: "bonus",
    3: "reaction",
    4: "minute",
    5: "hour",
    6: "minute",
    7: "day",
})

ACTIVATION_SPECIAL_CODE = 6

DURATION_TYPE_MAP: Mapping[str, str] = MappingProxyType({
    "instantaneous": "instantaneous",
    "round": "round",
    "minute": "minute",
    "hour": "hour",
    "day": "day",
    "week": "week",
    "month": "month",
    "year": "year",
    "permanent": "permanent",
    "special": "special",
    # synonyms
    "time": "minute",
    "concentration": "minute",
    "until dispelled": "permanent",
    "until dispelled or triggered": "permanent",
})

# Feature definitions carry a numeric duration type instead of a name
FEATURE_DURATION_TYPE_MAP: Mapping[int, str] = MappingProxyType({
    1: "instantaneous",
    2: "turn",
    3: "round",
    4: "minute",
    5: "hour",
    6: "day",
})

RANGE_ORIGIN_MAP: Mapping[str, str] = MappingProxyType({
    "self": "self",
    "touch": "touch",
    "ranged": "ft",
    "sight": "special",
    "unlimited": "any",
})

# Feature definitions use numeric origins; 1 is "Self"
FEATURE_RANGE_ORIGIN_MAP: Mapping[int, str] = MappingProxyType({
    1: "self",
    2: "touch",
    3: "ft",
})

# Feature definitions use numeric target types
FEATURE_TARGET_TYPE_MAP: Mapping[int, str] = MappingProxyType({
    1: "self",
    2: "creature",
    3: "ally",
    4: "enemy",
})

AOE_TARGET_MAP: Mapping[str, str] = MappingProxyType({
    "cone": "cone",
    "cube": "cube",
    "cylinder": "cylinder",
    "line": "line",
    "sphere": "sphere",
    "square": "square",
    "emanation": "radius",
    "point": "space",
})

RECOVERY_TYPE_MAP: Mapping[int, str] = MappingProxyType({
    1: "short-rest",
    2: "long-rest",
    3: "day",
    4: "charges",
})

# attackType on spell definitions
SPELL_ATTACK_TYPE_MAP: Mapping[int, str] = MappingProxyType({
    1: "msak",
    2: "rsak",
})

# ---------------------------------------------------------------------------
# Items
# ---------------------------------------------------------------------------

ITEM_FILTER_TYPE_MAP: Mapping[str, str] = MappingProxyType({
    "weapon": "weapon",
    "armor": "equipment",
    "shield": "equipment",
    "gear": "loot",
    "other gear": "loot",
    "adventuring gear": "loot",
    "tool": "tool",
    "potion": "consumable",
    "scroll": "consumable",
    "ammunition": "consumable",
    "wondrous item": "equipment",
    "ring": "equipment",
    "rod": "equipment",
    "wand": "equipment",
    "staff": "weapon",
})

ARMOR_TYPE_MAP: Mapping[int, str] = MappingProxyType({
    1: "light",
    2: "medium",
    3: "heavy",
    4: "shield",
})

CONSUMABLE_TYPE_MAP: Mapping[str, str] = MappingProxyType({
    "potion": "potion",
    "scroll": "scroll",
    "ammunition": "ammo",
})

# attackType on weapon definitions
WEAPON_ATTACK_TYPE_MAP: Mapping[int, str] = MappingProxyType({
    1: "mwak",
    2: "rwak",
})

# ---------------------------------------------------------------------------
# Fallback defaults for every enum category
# ---------------------------------------------------------------------------

ENUM_DEFAULTS: Mapping[str, str] = MappingProxyType({
    "ability": "",
    "saveAbility": "",
    "spellcastingAbility": "",
    "alignment": "tn",
    "size": "med",
    "damageType": "bludgeoning",
    "school": "evocation",
    "activationType": "action",
    "durationType": "instantaneous",
    "featureDurationType": "instantaneous",
    "rangeOrigin": "ft",
    "featureRangeOrigin": "ft",
    "featureTargetType": "self",
    "aoeType": "creature",
    "recoveryType": "",
    "itemType": "loot",
    "armorType": "clothing",
    "consumableType": "trinket",
    "spellAttackType": "other",
    "weaponAttackType": "mwak",
})

# ---------------------------------------------------------------------------
# Skills: DDB modifier subtype → (Foundry key, governing ability)
# ---------------------------------------------------------------------------

SKILL_SUBTYPES: Mapping[str, str] = MappingProxyType({
    "acrobatics": "acr",
    "animal-handling": "ani",
    "arcana": "arc",
    "athletics": "ath",
    "deception": "dec",
    "history": "his",
    "insight": "ins",
    "intimidation": "itm",
    "investigation": "inv",
    "medicine": "med",
    "nature": "nat",
    "perception": "prc",
    "performance": "prf",
    "persuasion": "per",
    "religion": "rel",
    "sleight-of-hand": "slt",
    "stealth": "ste",
    "survival": "sur",
})

SKILL_ABILITIES: Mapping[str, str] = MappingProxyType({
    "acr": "dex",
    "ani": "wis",
    "arc": "int",
    "ath": "str",
    "dec": "cha",
    "his": "int",
    "ins": "wis",
    "itm": "cha",
    "inv": "int",
    "med": "wis",
    "nat": "int",
    "prc": "wis",
    "prf": "cha",
    "per": "cha",
    "rel": "int",
    "slt": "dex",
    "ste": "dex",
    "sur": "wis",
})

# ---------------------------------------------------------------------------
# Modifier types used in DDB's modifiers sections
# ---------------------------------------------------------------------------

MODIFIER_TYPE_BONUS = "bonus"
MODIFIER_TYPE_PROFICIENCY = "proficiency"
MODIFIER_TYPE_EXPERTISE = "expertise"
MODIFIER_TYPE_LANGUAGE = "language"
MODIFIER_TYPE_SET = "set"
MODIFIER_TYPE_RESISTANCE = "resistance"
MODIFIER_TYPE_IMMUNITY = "immunity"
MODIFIER_TYPE_VULNERABILITY = "vulnerability"

# Proficiency subtypes that name armor categories
ARMOR_PROFICIENCY_SUBTYPES: frozenset[str] = frozenset({
    "light-armor", "medium-armor", "heavy-armor", "shields",
})

# Weapon proficiency subtypes that do not contain the word "weapon"
WEAPON_PROFICIENCY_SUBTYPES: frozenset[str] = frozenset({
    "battleaxe", "blowgun", "club", "dagger", "dart", "flail", "glaive",
    "greataxe", "greatclub", "greatsword", "halberd", "hand-crossbow",
    "handaxe", "heavy-crossbow", "javelin", "lance", "light-crossbow",
    "light-hammer", "longbow", "longsword", "mace", "maul", "morningstar",
    "net", "pike", "quarterstaff", "rapier", "scimitar", "shortbow",
    "shortsword", "sickle", "sling", "spear", "trident", "war-pick",
    "warhammer", "whip", "crossbow-hand", "crossbow-light", "crossbow-heavy",
})

# Suffixes marking tool proficiencies
TOOL_PROFICIENCY_MARKERS: tuple[str, ...] = (
    "tools", "tool", "kit", "supplies", "set", "instrument", "utensils",
    "bagpipes", "drum", "dulcimer", "flute", "lute", "lyre", "horn",
    "pan-flute", "shawm", "viol", "vehicles-land", "vehicles-water",
)

KNOWN_LANGUAGES: tuple[str, ...] = (
    "Common", "Dwarvish", "Elvish", "Giant", "Gnomish", "Goblin", "Halfling",
    "Orc", "Abyssal", "Celestial", "Draconic", "Deep Speech", "Infernal",
    "Primordial", "Sylvan", "Undercommon", "Druidic", "Thieves' Cant",
    "Aquan", "Auran", "Ignan", "Terran", "Gith", "Leonin", "Loxodon",
    "Minotaur", "Vedalken", "Aarakocra", "Gnoll", "Grung", "Sahuagin",
)

# Languages a class grants implicitly when no modifier records them
CLASS_LANGUAGES: Mapping[str, str] = MappingProxyType({
    "druid": "Druidic",
    "rogue": "Thieves' Cant",
})

# Modifier source sections in DDB JSON, scanned in this order
MODIFIER_SECTIONS: tuple[str, ...] = ("race", "class", "background", "item", "feat", "condition")

# ---------------------------------------------------------------------------
# Classes
# ---------------------------------------------------------------------------

CLASS_HIT_DICE: Mapping[str, str] = MappingProxyType({
    "barbarian": "d12",
    "bard": "d8",
    "cleric": "d8",
    "druid": "d8",
    "fighter": "d10",
    "monk": "d8",
    "paladin": "d10",
    "ranger": "d10",
    "rogue": "d8",
    "sorcerer": "d6",
    "warlock": "d8",
    "wizard": "d6",
    "artificer": "d8",
    "blood hunter": "d10",
})

CLASS_SPELLCASTING_ABILITY: Mapping[str, str] = MappingProxyType({
    "artificer": "int",
    "bard": "cha",
    "cleric": "wis",
    "druid": "wis",
    "paladin": "cha",
    "ranger": "wis",
    "sorcerer": "cha",
    "warlock": "cha",
    "wizard": "int",
    "eldritch knight": "int",
    "arcane trickster": "int",
})

# Cumulative XP needed to reach each level (index = level - 1)
XP_THRESHOLDS: tuple[int, ...] = (
    0, 300, 900, 2700, 6500, 14000, 23000, 34000, 48000, 64000,
    85000, 100000, 120000, 140000, 165000, 195000, 225000, 265000, 305000, 355000,
)

# ---------------------------------------------------------------------------
# Icons
# ---------------------------------------------------------------------------

DEFAULT_ICON = "icons/svg/item-bag.svg"
ACTOR_ICON = "icons/svg/mystery-man.svg"
UNKNOWN_SPELL_ICON = "icons/svg/mystery-man.svg"
SPELL_FALLBACK_ICON = "icons/magic/symbols/rune-sigil-black-pink.webp"

ITEM_ICONS: Mapping[str, str] = MappingProxyType({
    "weapon": "icons/weapons/swords/sword-broad-silver.webp",
    "equipment": "icons/equipment/chest/breastplate-scale-grey.webp",
    "loot": "icons/containers/bags/pack-leather-brown.webp",
    "tool": "icons/tools/hand/hammer-and-nail.webp",
    "consumable": "icons/consumables/potions/bottle-round-corked-red.webp",
})

FEATURE_ICONS: Mapping[str, str] = MappingProxyType({
    "class": "icons/skills/melee/blade-tips-triple-steel.webp",
    "race": "icons/environment/people/group.webp",
    "feat": "icons/skills/trades/academics-study-reading.webp",
    "background": "icons/skills/social/diplomacy-handshake.webp",
})

SPELL_SCHOOL_ICONS: Mapping[str, str] = MappingProxyType({
    "abjuration": "icons/magic/defensive/shield-barrier-blue.webp",
    "conjuration": "icons/magic/symbols/elements-air-earth-fire-water.webp",
    "divination": "icons/magic/perception/eye-ringed-glow-yellow.webp",
    "enchantment": "icons/magic/control/hypnosis-mesmerism-swirl.webp",
    "evocation": "icons/magic/lightning/bolt-strike-blue.webp",
    "illusion": "icons/magic/perception/silhouette-stealth-shadow.webp",
    "necromancy": "icons/magic/death/skull-horned-goat-pentagram-red.webp",
    "transmutation": "icons/magic/symbols/question-stone-yellow.webp",
})
