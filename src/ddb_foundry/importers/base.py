"""
Result models and exceptions for the D&D Beyond → Foundry transformation.
"""

from __future__ import annotations

from typing import Any, Callable, Literal

from pydantic import BaseModel, Field


class CharacterImportError(Exception):
    """Raised when a character export cannot be read.

    Only the loader raises this; the transformation itself reports
    problems as warnings on the result.
    """


ReportStatus = Literal["success", "success_with_warnings", "failed"]


class SectionSummary(BaseModel):
    """One mapped section of the actor, as shown in the report."""

    section: str = Field(description="Mapper section name, e.g. 'attributes'")
    group: str = Field(description="Sheet area the section lands in, e.g. 'Combat'")
    summary: str = Field(default="", description="Short rendering of the mapped value")


class SectionWarning(BaseModel):
    """A transformation warning attributed to the section it concerns."""

    section: str = Field(description="Section the warning was attributed to ('general' if none)")
    message: str = Field(description="The warning as the mapper produced it")
    hint: str = Field(default="", description="What to check on D&D Beyond or the Foundry sheet")


class UnsupportedData(BaseModel):
    """DDB data that has no place on a Foundry actor."""

    source: str = Field(description="DDB data name")
    reason: str = Field(description="Why it is not carried over")


class ImportReport(BaseModel):
    """Human-facing account of one transformed actor."""

    status: ReportStatus = Field(description="Overall outcome of the transformation")
    actor_name: str = Field(description="Name on the produced actor")
    level: int = Field(default=0, description="Total character level (0 when details failed)")
    item_counts: dict[str, int] = Field(
        default_factory=dict,
        description="Embedded items per kind: equipment, spells, features",
    )
    spell_slots: list[str] = Field(
        default_factory=list,
        description="Remaining/maximum per slot level that has any slots, e.g. '1st 3/4'",
    )
    sections: list[SectionSummary] = Field(default_factory=list)
    defaulted: list[str] = Field(
        default_factory=list,
        description="Sections that kept their default values",
    )
    warnings: list[SectionWarning] = Field(default_factory=list)
    unsupported: list[UnsupportedData] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)

    def format(self) -> str:
        """Render the report as plain text for logs or a host dialog."""
        heading = f"{self.actor_name} → Foundry actor"
        if self.level:
            heading += f" (level {self.level})"
        lines = [heading, f"Status: {self.status.replace('_', ' ')}"]

        if self.item_counts:
            lines.append(
                "Embedded items: "
                + ", ".join(f"{count} {kind}" for kind, count in self.item_counts.items())
            )
        if self.spell_slots:
            lines.append(f"Spell slots: {', '.join(self.spell_slots)}")

        grouped: dict[str, list[str]] = {}
        for entry in self.sections:
            if entry.summary:
                grouped.setdefault(entry.group, []).append(entry.summary)
        if grouped:
            width = max(len(group) for group in grouped)
            lines.append("")
            for group, summaries in grouped.items():
                lines.append(f"  {group.ljust(width)}  {'; '.join(summaries)}")

        if self.defaulted:
            lines += ["", f"Defaulted: {', '.join(self.defaulted)}"]

        if self.warnings:
            lines += ["", f"Warnings ({len(self.warnings)}):"]
            for warning in self.warnings:
                line = f"  [{warning.section}] {warning.message}"
                if warning.hint:
                    line += f" → {warning.hint}"
                lines.append(line)

        if self.unsupported:
            lines += ["", f"Not carried over: {', '.join(data.source for data in self.unsupported)}"]

        if self.suggestions:
            lines += ["", "Next steps:"]
            lines.extend(f"  * {suggestion}" for suggestion in self.suggestions)

        return "\n".join(lines)


# DDB data the engine leaves behind
DDB_UNSUPPORTED_FIELDS: dict[str, str] = {
    "characterTheme": "D&D Beyond sheet colours have no Foundry equivalent",
    "decorations": "Only the avatar is used; frames and backdrops are dropped",
    "campaign": "Campaign membership is a host concern",
    "preferences": "D&D Beyond sheet preferences",
    "activeEffects": "Automation effects are not generated",
}

SLOT_ORDINALS = ("1st", "2nd", "3rd", "4th", "5th", "6th", "7th", "8th", "9th")


def _trait_count(traits: dict, *keys: str) -> int:
    return sum(len((traits.get(key) or {}).get("value") or []) for key in keys)


def _class_line(system: dict) -> str:
    classes = (system.get("details") or {}).get("classes") or {}
    return " / ".join(f"{name.title()} {info.get('levels', 0)}" for name, info in classes.items())


def _hp_line(system: dict) -> str:
    attributes = system.get("attributes") or {}
    hp = attributes.get("hp") or {}
    return f"HP {hp.get('value')}/{hp.get('max')}, prof +{attributes.get('prof')}"


def _detail(key: str) -> Callable[[dict], str]:
    return lambda system: str((system.get("details") or {}).get(key) or "")


# section → (sheet group, summary of the mapped system data). Sections whose
# summary is "" are covered by the report header.
SECTION_VIEWS: dict[str, tuple[str, Callable[[dict], str]]] = {
    "name": ("Identity", lambda system: ""),
    "race": ("Identity", _detail("race")),
    "classes": ("Identity", _class_line),
    "background": ("Identity", _detail("background")),
    "alignment": ("Identity", _detail("alignment")),
    "biography": (
        "Identity",
        lambda system: "biography" if ((system.get("details") or {}).get("biography") or {}).get("value") else "",
    ),
    "abilities": (
        "Abilities",
        lambda system: " ".join(
            f"{key.upper()} {block.get('value')}" for key, block in (system.get("abilities") or {}).items()
        ),
    ),
    "attributes": ("Combat", _hp_line),
    "skills": (
        "Proficiencies",
        lambda system: f"{sum(1 for s in (system.get('skills') or {}).values() if s.get('value'))} skills",
    ),
    "proficiencies": (
        "Proficiencies",
        lambda system: f"{_trait_count(system.get('traits') or {}, 'weaponProf', 'armorProf', 'toolProf')} equipment proficiencies",
    ),
    "languages": (
        "Proficiencies",
        lambda system: ", ".join(((system.get("traits") or {}).get("languages") or {}).get("value") or []),
    ),
    "defenses": (
        "Proficiencies",
        lambda system: f"{_trait_count(system.get('traits') or {}, 'di', 'dr', 'dv', 'ci')} defenses",
    ),
    "currency": (
        "Gear",
        lambda system: " ".join(f"{amount}{coin}" for coin, amount in (system.get("currency") or {}).items() if amount),
    ),
    "equipment": ("Gear", lambda system: ""),
    "spell_slots": ("Spells", lambda system: ""),
    "spells": ("Spells", lambda system: ""),
    "features": ("Features", lambda system: ""),
}

# (keywords, section, hint); first match wins
WARNING_RULES: tuple[tuple[tuple[str, ...], str, str], ...] = (
    (("feature", "trait"), "features", ""),
    (("class",), "classes", "Check the class levels on D&D Beyond"),
    (("inventory", "item"), "equipment", "Add the missing items on the Foundry sheet"),
    (("spell",), "spells", "Check the spell list on D&D Beyond"),
    (("language",), "languages", "Check languages on the Foundry sheet"),
    (("abilit",), "abilities", "Check ability scores on the Foundry sheet"),
    (("speed",), "attributes", "Set movement on the Foundry sheet"),
)


def section_group(section: str) -> str:
    """Sheet area for a mapper section ("Other" when unknown)."""
    view = SECTION_VIEWS.get(section)
    return view[0] if view else "Other"


def summarize_section(section: str, system: dict[str, Any]) -> str:
    """Short rendering of a mapped section; "" when there is nothing to add."""
    view = SECTION_VIEWS.get(section)
    if view is None:
        return ""
    try:
        return view[1](system)
    except (AttributeError, TypeError):
        return ""


def classify_warning(text: str) -> SectionWarning:
    """Attribute a mapper warning to a section by its wording."""
    lower = text.lower()
    for keywords, section, hint in WARNING_RULES:
        if any(keyword in lower for keyword in keywords):
            return SectionWarning(section=section, message=text, hint=hint)
    return SectionWarning(section="general", message=text)


def slot_summary(spells: dict[str, Any]) -> list[str]:
    """``["1st 3/4", ..., "pact 2/2 (3rd)"]`` for every slot level with a maximum."""
    lines: list[str] = []
    for spell_level, ordinal in enumerate(SLOT_ORDINALS, start=1):
        slot = spells.get(f"spell{spell_level}") or {}
        if slot.get("max"):
            lines.append(f"{ordinal} {slot.get('value', 0)}/{slot['max']}")
    pact = spells.get("pact") or {}
    if pact.get("max"):
        pact_level = pact.get("level") or 0
        ordinal = SLOT_ORDINALS[pact_level - 1] if 1 <= pact_level <= 9 else "?"
        lines.append(f"pact {pact.get('value', 0)}/{pact['max']} ({ordinal})")
    return lines


class TransformResult(BaseModel):
    """Result of transforming one DDB character into a Foundry actor."""

    actor: dict[str, Any] = Field(description="The Foundry dnd5e actor document, items embedded")
    mapped_fields: list[str] = Field(
        default_factory=list,
        description="Sections that were successfully mapped from the source",
    )
    unmapped_fields: list[str] = Field(
        default_factory=list,
        description="Sections that fell back to defaults (missing or failed)",
    )
    warnings: list[str] = Field(
        default_factory=list,
        description="Non-fatal issues encountered during the transformation",
    )
    item_counts: dict[str, int] = Field(
        default_factory=dict,
        description="Embedded item count per kind: equipment, spells, features",
    )
    source_id: int | None = Field(
        default=None,
        description="D&D Beyond numeric character id",
    )

    @property
    def items(self) -> list[dict[str, Any]]:
        return self.actor.get("items", [])

    @property
    def status(self) -> ReportStatus:
        if self.unmapped_fields and not self.mapped_fields:
            return "failed"
        if self.warnings or self.unmapped_fields:
            return "success_with_warnings"
        return "success"

    def build_report(self) -> ImportReport:
        """Summarize this result for a person reviewing the import."""
        system = self.actor.get("system") or {}
        sections = [
            SectionSummary(
                section=section,
                group=section_group(section),
                summary=summarize_section(section, system),
            )
            for section in self.mapped_fields
        ]
        return ImportReport(
            status=self.status,
            actor_name=self.actor.get("name") or "Unknown",
            level=(system.get("details") or {}).get("level") or 0,
            item_counts=dict(self.item_counts),
            spell_slots=slot_summary(system.get("spells") or {}),
            sections=sections,
            defaulted=list(self.unmapped_fields),
            warnings=[classify_warning(text) for text in self.warnings],
            unsupported=[
                UnsupportedData(source=source, reason=reason)
                for source, reason in DDB_UNSUPPORTED_FIELDS.items()
            ],
            suggestions=suggestions_for(self),
        )


def suggestions_for(result: TransformResult) -> list[str]:
    """Follow-up steps for the Foundry sheet, based on what the mapping lacked."""
    suggestions: list[str] = []
    system = result.actor.get("system") or {}
    details = system.get("details") or {}

    if "classes" in result.unmapped_fields:
        suggestions.append("No class data found; the actor was built as a level 1 character")

    if "abilities" in result.unmapped_fields:
        suggestions.append("Ability scores could not be imported. Set them on the Foundry sheet")

    if result.item_counts.get("spells") and not slot_summary(system.get("spells") or {}):
        suggestions.append(
            "Spells were imported but the actor has no spell slots. "
            "Set them on the Foundry sheet if the character casts with slots"
        )

    if not details.get("background"):
        suggestions.append("No background detected. Set it on the Foundry sheet if needed")

    return suggestions
