"""
Load D&D Beyond character exports.

This is the only part of the package that touches the filesystem; the
transformation engine itself works on already-loaded dictionaries.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from ..base import CharacterImportError
from .common import unwrap_character

logger = logging.getLogger("ddb-foundry.loader")

# Collections the assembler iterates. A value of the wrong type is rejected
# here; a missing optional one is not.
REQUIRED_LISTS = ("stats", "classes")
OPTIONAL_LISTS = ("bonusStats", "overrideStats", "inventory", "feats", "customItems")
OPTIONAL_OBJECTS = ("race", "background", "spells", "currencies")


def _type_name(value: Any) -> str:
    return "null" if value is None else type(value).__name__


def validate_character(payload: Any) -> dict[str, Any]:
    """Check that a decoded export looks like a DDB character.

    Accepts a bare character or the character-service envelope. A failed
    service response (``{"success": false, "message": ...}``) is reported with
    the service's own message.

    Raises:
        CharacterImportError: When the payload cannot be mapped.
    """
    if not isinstance(payload, dict):
        raise CharacterImportError(
            f"Expected a character object, got {_type_name(payload)}"
        )
    if payload.get("success") is False:
        message = payload.get("message") or "no message"
        raise CharacterImportError(f"D&D Beyond returned an error response: {message}")

    character = unwrap_character(payload)

    missing = [key for key in REQUIRED_LISTS if key not in character]
    if missing:
        raise CharacterImportError(
            f"Not a D&D Beyond character: missing {', '.join(missing)}"
        )

    problems = [
        f"{key} should be a list, got {_type_name(character[key])}"
        for key in (*REQUIRED_LISTS, *OPTIONAL_LISTS)
        if character.get(key) is not None and not isinstance(character[key], list)
    ]
    problems.extend(
        f"{key} should be an object, got {_type_name(character[key])}"
        for key in OPTIONAL_OBJECTS
        if character.get(key) is not None and not isinstance(character[key], dict)
    )
    if problems:
        raise CharacterImportError("Malformed character export: " + "; ".join(problems))

    return character


def parse_character_json(text: str, origin: str = "<string>") -> dict[str, Any]:
    """Decode export text and validate it (see ``validate_character``)."""
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as e:
        raise CharacterImportError(
            f"{origin} is not valid JSON (line {e.lineno}, column {e.colno}): {e.msg}"
        ) from None
    return validate_character(payload)


def read_character_file(file_path: str | Path) -> dict[str, Any]:
    """
    Read a saved character export from disk.

    Args:
        file_path: Path to a JSON export, bare or wrapped in the API envelope

    Returns:
        The character object, ready for ``map_ddb_to_actor``

    Raises:
        CharacterImportError: If the file is unreadable or not a DDB character
    """
    path = Path(file_path)
    if not path.is_file():
        raise CharacterImportError(f"Character export not found: {path}")

    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise CharacterImportError(f"Could not read {path}: {e}") from None

    character = parse_character_json(text, origin=path.name)
    logger.debug(f"📂 Loaded character {character.get('id')} ({character.get('name')}) from {path}")
    return character
