"""
Spell slot progression.

Every caster type is described by data: how its class level converts to an
effective full-caster level, which is then looked up in the single
full-caster slot table. Warlocks use their own pact-magic table. Adding a
class means adding a row to ``CLASS_CASTER_TYPES`` (or
``SUBCLASS_CASTER_TYPES``), not writing a branch.
"""

from __future__ import annotations

import math
from types import MappingProxyType
from typing import Any, Iterable, Mapping, NamedTuple

from .common import as_int


class CasterProgression(NamedTuple):
    """How class levels convert into full-caster levels."""
    divisor: int
    first_level: int            # first class level that grants slots
    multiclass_round_up: bool   # single-class levels always round up


CASTER_PROGRESSIONS: Mapping[str, CasterProgression] = MappingProxyType({
    "full": CasterProgression(divisor=1, first_level=1, multiclass_round_up=False),
    "half": CasterProgression(divisor=2, first_level=2, multiclass_round_up=False),
    "artificer": CasterProgression(divisor=2, first_level=1, multiclass_round_up=True),
    "third": CasterProgression(divisor=3, first_level=3, multiclass_round_up=False),
})

CLASS_CASTER_TYPES: Mapping[str, str] = MappingProxyType({
    "bard": "full",
    "cleric": "full",
    "druid": "full",
    "sorcerer": "full",
    "wizard": "full",
    "paladin": "half",
    "ranger": "half",
    "artificer": "artificer",
    "warlock": "pact",
})

SUBCLASS_CASTER_TYPES: Mapping[str, str] = MappingProxyType({
    "eldritch knight": "third",
    "arcane trickster": "third",
})

# Full-caster slots per effective caster level (index 0 = level 1), spell levels 1..9
FULL_CASTER_SLOTS: tuple[tuple[int, ...], ...] = (
    (2,),
    (3,),
    (4, 2),
    (4, 3),
    (4, 3, 2),
    (4, 3, 3),
    (4, 3, 3, 1),
    (4, 3, 3, 2),
    (4, 3, 3, 3, 1),
    (4, 3, 3, 3, 2),
    (4, 3, 3, 3, 2, 1),
    (4, 3, 3, 3, 2, 1),
    (4, 3, 3, 3, 2, 1, 1),
    (4, 3, 3, 3, 2, 1, 1),
    (4, 3, 3, 3, 2, 1, 1, 1),
    (4, 3, 3, 3, 2, 1, 1, 1),
    (4, 3, 3, 3, 2, 1, 1, 1, 1),
    (4, 3, 3, 3, 3, 1, 1, 1, 1),
    (4, 3, 3, 3, 3, 2, 1, 1, 1),
    (4, 3, 3, 3, 3, 2, 2, 1, 1),
)

# Warlock level → (number of pact slots, pact slot level)
PACT_SLOTS: tuple[tuple[int, int], ...] = (
    (1, 1), (2, 1), (2, 2), (2, 2), (2, 3),
    (2, 3), (2, 4), (2, 4), (2, 5), (2, 5),
    (3, 5), (3, 5), (3, 5), (3, 5), (3, 5),
    (3, 5), (4, 5), (4, 5), (4, 5), (4, 5),
)


def _normalize(name: str | None) -> str:
    return (name or "").strip().lower()


def caster_type(class_name: str | None, subclass_name: str | None = None) -> str:
    """Caster type key for a class/subclass pair, "none" for non-casters."""
    subclass_type = SUBCLASS_CASTER_TYPES.get(_normalize(subclass_name))
    if subclass_type:
        return subclass_type
    return CLASS_CASTER_TYPES.get(_normalize(class_name), "none")


def effective_caster_level(kind: str, level: int, multiclass: bool = False) -> int:
    """Full-caster level equivalent of ``level`` levels in a ``kind`` class."""
    progression = CASTER_PROGRESSIONS.get(kind)
    if progression is None or level < progression.first_level:
        return 0
    if multiclass and not progression.multiclass_round_up:
        return level // progression.divisor
    return math.ceil(level / progression.divisor)


def slots_for_caster_level(caster_level: int) -> dict[str, int]:
    """Sparse slot map (``spell1``..``spell9``) for a full-caster level."""
    if caster_level <= 0:
        return {}
    row = FULL_CASTER_SLOTS[min(caster_level, len(FULL_CASTER_SLOTS)) - 1]
    return {f"spell{index}": count for index, count in enumerate(row, start=1)}


def pact_slots(warlock_level: int) -> tuple[int, int]:
    """(slot count, slot level) for a warlock level; (0, 0) below level 1."""
    if warlock_level <= 0:
        return 0, 0
    return PACT_SLOTS[min(warlock_level, len(PACT_SLOTS)) - 1]


def slots_for_class(class_name: str, level: int, subclass_name: str | None = None) -> dict[str, int]:
    """Spell slots granted by ``level`` levels of a single class.

    The result is sparse: missing ``spellN`` keys mean zero. Warlocks report
    their pact slots at the pact slot level. Non-casters get ``{}``.
    """
    kind = caster_type(class_name, subclass_name)
    if kind == "pact":
        count, slot_level = pact_slots(level)
        return {f"spell{slot_level}": count} if count else {}
    return slots_for_caster_level(effective_caster_level(kind, level))


def _class_entry(cls: dict[str, Any]) -> tuple[str, str, int]:
    definition = cls.get("definition") or {}
    subclass = cls.get("subclassDefinition") or {}
    return definition.get("name") or "", subclass.get("name") or "", as_int(cls.get("level"))


def multiclass_caster_level(classes: Iterable[dict[str, Any]]) -> int:
    """Combined caster level for slot purposes; warlock levels do not count."""
    total = 0
    for cls in classes:
        name, subclass, level = _class_entry(cls)
        kind = caster_type(name, subclass)
        if kind in ("none", "pact"):
            continue
        total += effective_caster_level(kind, level, multiclass=True)
    return total


def character_slots(
    classes: Iterable[dict[str, Any]] | None,
    combine_multiclass: bool = True,
) -> tuple[dict[str, int], tuple[int, int]]:
    """Slots for a whole character.

    Returns:
        Tuple of (sparse spell slot map, (pact slot count, pact slot level)).
    """
    class_list = list(classes or [])
    casters: list[tuple[str, str, int]] = []
    warlock_level = 0
    for cls in class_list:
        name, subclass, level = _class_entry(cls)
        kind = caster_type(name, subclass)
        if kind == "pact":
            warlock_level += level
        elif kind != "none":
            casters.append((name, subclass, level))

    pact = pact_slots(warlock_level)
    if not casters:
        return {}, pact
    if len(casters) == 1 or not combine_multiclass:
        name, subclass, level = max(casters, key=lambda c: c[2])
        return slots_for_class(name, level, subclass), pact
    return slots_for_caster_level(multiclass_caster_level(class_list)), pact
