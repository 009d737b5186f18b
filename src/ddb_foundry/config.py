"""
Engine configuration.

Policies that are judgement calls rather than facts about the source data
live here, so a host can change them without patching the mappers.
"""

import logging
import os
from pathlib import Path
from typing import Any, Literal

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger("ddb-foundry")

ENV_PREFIX = "DDB_FOUNDRY_"
CONFIG_PATH_ENV = f"{ENV_PREFIX}CONFIG"


class TransformConfig(BaseModel):
    """Policy settings for the transformation engine."""
    model_config = ConfigDict(frozen=True)

    special_activation: Literal["minute", "special", "action"] = Field(
        default="minute",
        description='Token used for DDB activation code 6 ("Special")',
    )
    multiclass_slots: bool = Field(
        default=True,
        description="Combine spellcasting classes using the multiclass caster table",
    )
    icon_fallback: str = Field(
        default="icons/svg/item-bag.svg",
        description="Icon used when no category icon applies",
    )
    keep_raw_source: bool = Field(
        default=False,
        description="Embed the untouched source record in the actor flags",
    )


def _env_overrides() -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    for name in TransformConfig.model_fields:
        raw = os.getenv(f"{ENV_PREFIX}{name.upper()}")
        if raw is not None:
            overrides[name] = raw
    return overrides


def load_config(path: str | Path | None = None) -> TransformConfig:
    """Build a TransformConfig from a YAML file and ``DDB_FOUNDRY_*`` variables.

    Args:
        path: Optional YAML file. When omitted, ``DDB_FOUNDRY_CONFIG`` may name one.

    Returns:
        Validated configuration; environment variables override file values.

    Raises:
        pydantic.ValidationError: If a value is invalid.
        yaml.YAMLError: If the file is not valid YAML.
    """
    if not load_dotenv():
        logger.debug("No .env file found, reading DDB_FOUNDRY_* settings from the environment only")

    data: dict[str, Any] = {}
    config_path = path or os.getenv(CONFIG_PATH_ENV)
    if config_path:
        config_file = Path(config_path)
        if config_file.exists():
            with config_file.open("r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
            logger.debug(f"📂 Loaded config from {config_file}")
        else:
            logger.warning(f"❌ Config file not found: {config_file}, using defaults")

    data.update(_env_overrides())
    return TransformConfig(**data)
