"""
Best-effort extraction from DDB free text.

Each helper is a regex scan with an explicit "no match" result (0, "" or an
empty list) so callers never need to guard against exceptions.
"""

from __future__ import annotations

import html
import re

from .schema import KNOWN_LANGUAGES

# ---------------------------------------------------------------------------
# Material component cost
# ---------------------------------------------------------------------------

_AMOUNT = r"(\d{1,3}(?:,\d{3})+|\d+)"

# Ordered; the first pattern that matches decides the cost
MATERIAL_COST_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(_AMOUNT + r"\s*gp\b", re.IGNORECASE),
    re.compile(r"worth at least\s+" + _AMOUNT + r"\s*gp\b", re.IGNORECASE),
    re.compile(r"costing\s+" + _AMOUNT + r"\s*gp\b", re.IGNORECASE),
    re.compile(r"cost\s+" + _AMOUNT + r"\s*gp\b", re.IGNORECASE),
)

_CONSUMED_PATTERN = re.compile(r"\b(?:which the spell consumes|consumed by the spell|is consumed)\b", re.IGNORECASE)


def extract_material_cost(materials: str | None) -> int:
    """Gold-piece cost named in a material component description, else 0.

    >>> extract_material_cost("a diamond worth at least 300 gp")
    300
    >>> extract_material_cost("ruby dust costing 1,000 gp")
    1000
    """
    if not materials:
        return 0
    for pattern in MATERIAL_COST_PATTERNS:
        match = pattern.search(materials)
        if match:
            return int(match.group(1).replace(",", ""))
    return 0


def materials_consumed(materials: str | None) -> bool:
    return bool(materials and _CONSUMED_PATTERN.search(materials))


# ---------------------------------------------------------------------------
# Higher-level scaling
# ---------------------------------------------------------------------------

_DICE = r"(\d+d\d+)"

SCALING_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"increases by\s+" + _DICE, re.IGNORECASE),
    re.compile(r"additional\s+" + _DICE, re.IGNORECASE),
    re.compile(r"extra\s+" + _DICE, re.IGNORECASE),
    re.compile(_DICE + r"\s+additional", re.IGNORECASE),
)

_HIGHER_LEVELS_HEADING = re.compile(r"At Higher Levels\.?", re.IGNORECASE)


def extract_scaling_formula(text: str | None) -> str:
    """Dice increment described in "At Higher Levels" text, else ""."""
    if not text:
        return ""
    for pattern in SCALING_PATTERNS:
        match = pattern.search(text)
        if match:
            return match.group(1)
    return ""


def higher_level_text(definition: dict) -> str:
    """The higher-level paragraph of a spell.

    Older exports carry it in ``higherLevelDescription``; current ones only
    embed it at the end of the description HTML.
    """
    explicit = definition.get("higherLevelDescription")
    if explicit:
        return strip_html(explicit)
    description = definition.get("description") or ""
    match = _HIGHER_LEVELS_HEADING.search(description)
    if not match:
        return ""
    return strip_html(description[match.end():])


# ---------------------------------------------------------------------------
# HTML
# ---------------------------------------------------------------------------

_TAG = re.compile(r"<[^>]*>")
_BLANK_LINES = re.compile(r"\n\s*\n")


def strip_html(text: str | None) -> str:
    if not text:
        return ""
    plain = _TAG.sub("", text)
    plain = html.unescape(plain)
    plain = _BLANK_LINES.sub("\n", plain)
    return plain.strip()


def first_sentences(text: str | None, count: int = 2) -> str:
    """The first ``count`` sentences, with an ellipsis when truncated."""
    plain = strip_html(text)
    sentences = plain.split(".")
    head = ".".join(sentences[:count])
    if len(sentences) > count:
        return head + "..."
    return head


# ---------------------------------------------------------------------------
# Languages and senses
# ---------------------------------------------------------------------------

_LANGUAGE_PATTERN = re.compile(
    r"\b(" + "|".join(re.escape(name) for name in KNOWN_LANGUAGES) + r")\b"
)

# Ordered; the Darkvision trait itself usually only says "within N feet"
_DARKVISION_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"darkvision[^.]*?(\d+)\s*(?:feet|ft)", re.IGNORECASE),
    re.compile(r"within\s+(\d+)\s*(?:feet|ft)", re.IGNORECASE),
)


def extract_languages(text: str | None) -> list[str]:
    """Known language names mentioned in ``text``, in order of appearance."""
    if not text:
        return []
    found: list[str] = []
    for match in _LANGUAGE_PATTERN.finditer(strip_html(text)):
        name = match.group(1)
        if name not in found:
            found.append(name)
    return found


def extract_darkvision(text: str | None) -> int:
    """Darkvision range in feet from a darkvision trait description, else 0."""
    if not text:
        return 0
    plain = strip_html(text)
    for pattern in _DARKVISION_PATTERNS:
        match = pattern.search(plain)
        if match:
            return int(match.group(1))
    return 0
