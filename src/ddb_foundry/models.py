"""
Data models for the D&D Beyond to Foundry transformation.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class PreparationMode(str, Enum):
    """How imported spells are marked as available to the caster."""
    PREPARED = "prepared"
    PACT = "pact"
    ALWAYS = "always"
    AT_WILL = "atwill"
    INNATE = "innate"


class ImportOptions(BaseModel):
    """Per-call switches supplied by the host application."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    preparation_mode: PreparationMode = Field(
        default=PreparationMode.PREPARED,
        alias="preparationMode",
        description="Preparation mode stamped onto every imported spell",
    )
    import_spells: bool = Field(default=True, alias="importSpells")
    import_equipment: bool = Field(default=True, alias="importEquipment")
    import_features: bool = Field(default=True, alias="importFeatures")
    import_biography: bool = Field(default=True, alias="importBiography")
    update_existing: bool = Field(
        default=False,
        alias="updateExisting",
        description="Passed through to the host; merging is the host's job",
    )

    @field_validator("preparation_mode", mode="before")
    @classmethod
    def _normalize_mode(cls, value: Any) -> Any:
        # Accept "atWill", "at-will", "At Will"
        if isinstance(value, str):
            return value.replace("-", "").replace("_", "").replace(" ", "").lower()
        return value
