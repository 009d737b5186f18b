"""
Helpers shared by the item, spell and feature mappers.
"""

from __future__ import annotations

from typing import Any

import shortuuid

from .enums import map_enum
from .schema import PROVENANCE_KEY


def dice_formula(dice: dict[str, Any] | None, default_count: int | None = None,
                 default_value: int | None = None) -> str:
    """Roll formula for a DDB dice block.

    ``{count}d{value}`` followed by a signed fixed bonus, e.g. ``2d6 + 3``.
    A block with only a fixed value yields the bare number. Blocks with
    neither yield "".
    """
    if not dice:
        return ""
    count = dice.get("diceCount") or default_count
    value = dice.get("diceValue") or default_value
    fixed = dice.get("fixedValue") or 0

    if count and value:
        formula = f"{count}d{value}"
    else:
        formula = dice.get("diceString") or ""

    if fixed:
        if formula:
            sign = "+" if fixed >= 0 else "-"
            formula = f"{formula} {sign} {abs(fixed)}"
        else:
            formula = str(fixed)
    return formula


def document_id(*parts: Any) -> str:
    """Stable 16-character id derived from ``parts``.

    Name-based (UUID5) so the same source record always yields the same id.
    """
    name = "/".join("" if part is None else str(part) for part in parts)
    return shortuuid.uuid(name=name)[:16]


def provenance(character_id: Any = None, **fields: Any) -> dict[str, Any]:
    """Flags block linking a generated document back to its DDB source."""
    flags: dict[str, Any] = {}
    if character_id is not None:
        flags["ddbCharacterId"] = character_id
    flags.update(fields)
    return {PROVENANCE_KEY: flags}


def as_int(value: Any, default: int = 0) -> int:
    """Coerce a possibly missing numeric field, falling back to ``default``."""
    if value is None or isinstance(value, bool):
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def as_float(value: Any, default: float = 0.0) -> float:
    if value is None or isinstance(value, bool):
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def source_label(definition: dict[str, Any]) -> str:
    """Short "book page" reference, or ""."""
    if definition.get("sourceBook"):
        return str(definition["sourceBook"])
    sources = definition.get("sources") or []
    if not sources:
        return ""
    source = sources[0] or {}
    book = source.get("sourceBook") or ("PHB" if source.get("sourceId") == 1 else "Supplement")
    page = source.get("pageNumber")
    return f"{book} {page}" if page else book


def no_uses() -> dict[str, Any]:
    return {"value": None, "max": "", "per": None, "recovery": ""}


def limited_uses(limited_use: Any) -> dict[str, Any]:
    """Uses block for a DDB ``limitedUse`` record.

    Feature exports sometimes wrap the record in a one-element list. A
    missing or empty record yields the explicit "no uses" block.
    """
    if isinstance(limited_use, list):
        limited_use = next((entry for entry in limited_use if isinstance(entry, dict)), None)
    if not isinstance(limited_use, dict) or not limited_use:
        return no_uses()

    max_uses = limited_use.get("maxUses")
    if isinstance(max_uses, bool) or not isinstance(max_uses, (int, float)):
        max_uses = None
    else:
        max_uses = int(max_uses)

    reset_type = limited_use.get("resetType")
    per = map_enum("recoveryType", reset_type) if reset_type is not None else ""
    used = as_int(limited_use.get("numberUsed"))

    return {
        "value": None if max_uses is None else max(0, max_uses - used),
        "max": "" if max_uses is None else str(max_uses),
        "per": per or None,
        "recovery": "",
    }


def unwrap_character(payload: Any) -> dict[str, Any]:
    """The character object inside a ``{"data": ...}`` API envelope.

    Also accepts ``{"success": ..., "data": ...}``. Anything that is not a
    mapping becomes ``{}``.
    """
    if not isinstance(payload, dict):
        return {}
    data = payload.get("data")
    if isinstance(data, dict) and "stats" not in payload:
        return data
    return payload
