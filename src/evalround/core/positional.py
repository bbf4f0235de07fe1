"""Positional keys for flat questionnaire rows.

A detail row is addressed by ``(section1, section2)``:
- head row: section2 = "N" (topic ordinal within the section)
- leaf row: section2 = "N.M" (item ordinal M within topic N)

Ordinals are always compared as integers, never as strings, so that
"1.10" sorts after "1.9".
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Union

from evalround.core.errors import MalformedPositionError


@dataclass(frozen=True)
class HeadPosition:
    """A position without an item part: "N"."""

    topic_ordinal: int

    @property
    def item_ordinal(self) -> None:
        return None

    @property
    def is_head(self) -> bool:
        return True


@dataclass(frozen=True)
class LeafPosition:
    """A position with an item part: "N.M"."""

    topic_ordinal: int
    item_ordinal: int

    @property
    def is_head(self) -> bool:
        return False


@dataclass(frozen=True)
class MalformedPosition:
    """A section2 value that is not "N" or "N.M"."""

    raw: str

    @property
    def is_head(self) -> bool:
        return False


Position = Union[HeadPosition, LeafPosition, MalformedPosition]


def format_head(topic_ordinal: int) -> str:
    """Format a head row's section2."""
    return str(topic_ordinal)


def format_leaf(topic_ordinal: int, item_ordinal: int) -> str:
    """Format a leaf row's section2."""
    return f"{topic_ordinal}.{item_ordinal}"


def _ordinal(part: str) -> int | None:
    """Parse a 1-based ordinal, or None if the part is not one."""
    part = part.strip()
    if not (part.isascii() and part.isdigit()):
        return None
    value = int(part)
    return value if value >= 1 else None


def parse(section2: object) -> Position:
    """Parse a stored section2 value.

    A value without a dot is shaped like a head position. Whether such a
    row really is a head is decided by its kind, not by its key.

    Args:
        section2: Stored value (string, or int/float from numeric columns).

    Returns:
        HeadPosition, LeafPosition, or MalformedPosition.
    """
    raw = "" if section2 is None else str(section2).strip()
    parts = raw.split(".")

    if len(parts) == 1:
        topic = _ordinal(parts[0])
        return HeadPosition(topic) if topic is not None else MalformedPosition(raw)

    if len(parts) == 2:
        topic = _ordinal(parts[0])
        item = _ordinal(parts[1])
        if topic is not None and item is not None:
            return LeafPosition(topic, item)

    return MalformedPosition(raw)


def domain_key(section2: object) -> int:
    """Topic ordinal of a row regardless of its kind.

    Equal to floor(numeric value of section2). Tolerates "2.0" style
    values that numeric store columns produce for head rows.

    Raises:
        MalformedPositionError: If section2 is not numeric.
    """
    raw = "" if section2 is None else str(section2).strip()
    try:
        value = float(raw)
    except ValueError:
        raise MalformedPositionError(section2) from None
    if not math.isfinite(value) or value < 1:
        raise MalformedPositionError(section2)
    return math.floor(value)


def sort_key(section1: int, section2: object) -> tuple[int, float, float]:
    """Numeric ordering key: (section1, topic, item).

    Head positions sort before their items, including heads a numeric
    column returned as "2.0". Other malformed positions sort last within
    their section.
    """
    position = parse(section2)
    if isinstance(position, HeadPosition):
        return (section1, position.topic_ordinal, 0)
    if isinstance(position, LeafPosition):
        return (section1, position.topic_ordinal, position.item_ordinal)
    try:
        topic = domain_key(section2)
    except MalformedPositionError:
        return (section1, math.inf, math.inf)
    if float(str(section2).strip()) == topic:
        return (section1, topic, 0)
    return (section1, math.inf, math.inf)
