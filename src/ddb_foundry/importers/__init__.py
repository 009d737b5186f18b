"""
Character import from external platforms.

Currently supports:
- D&D Beyond (character JSON, already fetched or as a local export file)
"""

from .base import CharacterImportError, ImportReport, TransformResult
from .dndbeyond.equipment import transform_items
from .dndbeyond.features import transform_features
from .dndbeyond.loader import parse_character_json, read_character_file, validate_character
from .dndbeyond.mapper import map_ddb_to_actor
from .dndbeyond.spells import transform_spells

__all__ = [
    "read_character_file",
    "parse_character_json",
    "validate_character",
    "map_ddb_to_actor",
    "transform_items",
    "transform_spells",
    "transform_features",
    "TransformResult",
    "ImportReport",
    "CharacterImportError",
]
