"""Domain models for evalround.

Pure Python dataclasses representing the questionnaire tree, the flat
rows it is persisted as, and the partial aggregates read for reporting.
These models are independent of SQLAlchemy and used throughout the
application for clean separation from the database layer.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Literal


# ============================================================================
# Row kinds
# ============================================================================


class RowKind(str, Enum):
    """Kind of a persisted detail row.

    The store spells Scale rows as "score"; "scale" is accepted on read.
    """

    HEAD = "head"
    SCALE = "score"
    TEXT = "text"

    @classmethod
    def from_store(cls, value: str) -> RowKind:
        """Map a stored ``type`` value to a RowKind.

        Raises:
            ValueError: If the value is not a known row kind.
        """
        normalized = (value or "").strip().lower()
        if normalized == "scale":
            return cls.SCALE
        return cls(normalized)


class SectionKind(str, Enum):
    """Kind of a top-level section."""

    QUESTIONS = "questions"
    DESCRIPTION = "description"


# ============================================================================
# Round Domain
# ============================================================================


@dataclass
class RoundSettings:
    """Round-level settings, denormalized onto every detail row."""

    round_id: int
    start_date: str | None = None
    end_date: str | None = None
    min_score: int | None = None
    max_score: int | None = None


@dataclass
class SectionRecord:
    """The 1:1 title/body record persisted for every section."""

    round_id: int
    section1: int
    title: str | None = None
    body: str | None = None
    id: int | None = None


@dataclass
class FlatRow:
    """One positionally-addressed detail row.

    ``section2`` is "N" for a head row and "N.M" for a leaf row.
    """

    round_id: int
    section1: int
    section2: str
    kind: str
    text: str
    min_score: int | None = None
    max_score: int | None = None
    start_date: str | None = None
    end_date: str | None = None
    id: int | None = None


# ============================================================================
# Tree Domain
# ============================================================================


@dataclass
class LeafItem:
    """A Scale or Text question under a topic.

    Equality covers shape only; ids and positions are regenerated on save.
    """

    kind: RowKind
    text: str
    min_score: int | None = None
    max_score: int | None = None
    id: int | None = field(default=None, compare=False)
    parent_topic_id: int | None = field(default=None, compare=False)
    section_ordinal: int | None = field(default=None, compare=False)
    position: str | None = field(default=None, compare=False)


@dataclass
class Topic:
    """A group of leaf questions, decoded from a head row."""

    text: str
    items: list[LeafItem] = field(default_factory=list)
    id: int | None = field(default=None, compare=False)
    section_ordinal: int | None = field(default=None, compare=False)
    topic_ordinal: int | None = field(default=None, compare=False)


@dataclass
class Section:
    """A top-level block: either question-bearing or free text."""

    kind: SectionKind
    title: str | None = None
    body: str | None = None
    topics: list[Topic] = field(default_factory=list)
    ordinal: int | None = field(default=None, compare=False)


DropReason = Literal["malformed_position", "orphan_leaf", "unknown_kind"]


@dataclass
class DroppedRow:
    """Diagnostic for a row that could not be placed in the tree."""

    row: FlatRow
    reason: DropReason
    detail: str = ""


@dataclass
class QuestionnaireTree:
    """Decoded questionnaire for one round."""

    round_id: int | None
    sections: list[Section] = field(default_factory=list)
    start_date: str | None = None
    end_date: str | None = None
    min_score: int | None = None
    max_score: int | None = None
    dropped: list[DroppedRow] = field(default_factory=list, compare=False)

    def topics(self) -> list[Topic]:
        """All topics in tree order."""
        return [topic for section in self.sections for topic in section.topics]

    def leaves(self) -> list[LeafItem]:
        """All leaf items in tree order."""
        return [item for topic in self.topics() for item in topic.items]

    def settings(self) -> RoundSettings | None:
        """Round settings carried by the decoded rows."""
        if self.round_id is None:
            return None
        return RoundSettings(
            round_id=self.round_id,
            start_date=self.start_date,
            end_date=self.end_date,
            min_score=self.min_score,
            max_score=self.max_score,
        )


# ============================================================================
# Aggregate Domain
# ============================================================================

EntityDimension = Literal["faculty", "major", "teacher"]


@dataclass
class AggregateRow:
    """Partial sum/count of scores for one question and one entity."""

    question_id: int
    entity_id: int
    total_score: float
    respondent_count: int


@dataclass
class EntityInfo:
    """Directory entry for an organizational entity."""

    entity_id: int
    name: str
    parent_id: int | None = None


@dataclass
class AnswerRow:
    """A single respondent answer."""

    id: int
    round_id: int
    question_id: int
    teacher_id: int | None = None
    student_id: int | None = None
    score_value: float | None = None
    text_value: str | None = None
