"""
D&D Beyond → Foundry VTT (dnd5e) character transformation engine.
"""

from .config import TransformConfig, load_config
from .importers import (
    CharacterImportError,
    TransformResult,
    map_ddb_to_actor,
    read_character_file,
    transform_features,
    transform_items,
    transform_spells,
)
from .models import ImportOptions, PreparationMode

try:
    from importlib.metadata import version as _get_version
    __version__ = _get_version("ddb-foundry")
except Exception:
    __version__ = "0.3.0"  # Fallback if metadata unavailable

__all__ = [
    "CharacterImportError",
    "ImportOptions",
    "PreparationMode",
    "TransformConfig",
    "TransformResult",
    "load_config",
    "map_ddb_to_actor",
    "read_character_file",
    "transform_features",
    "transform_items",
    "transform_spells",
]
