"""Questionnaire tree <-> flat row codec.

encode walks the tree and regenerates dense 1-based ordinals from array
order; externally supplied ordinals are never trusted.

decode sorts rows numerically by position, creates a topic per head row,
then folds over the rows attaching each leaf either to the topic named by
its "N.M" key or, failing that, to the most recent head seen in row order.
Rows that cannot be placed are dropped with a diagnostic, never fatal.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from functools import reduce

from evalround.core import positional
from evalround.core.errors import MalformedPositionError
from evalround.core.positional import LeafPosition, MalformedPosition
from evalround.models.domain import (
    DroppedRow,
    FlatRow,
    LeafItem,
    QuestionnaireTree,
    RoundSettings,
    RowKind,
    Section,
    SectionKind,
    SectionRecord,
    Topic,
)

logger = logging.getLogger(__name__)

START_OF_DAY = "00:00:00"
END_OF_DAY = "23:59:59"


# ============================================================================
# Encode
# ============================================================================


def _with_time(date: str | None, time_of_day: str) -> str | None:
    """Append a time of day to a bare YYYY-MM-DD date."""
    if not date:
        return None
    if " " in date or "T" in date:
        return date
    return f"{date} {time_of_day}"


def encode(settings: RoundSettings, sections: list[Section]) -> list[FlatRow]:
    """Encode a questionnaire tree into flat detail rows.

    Description sections produce no rows; their title/body live in the
    section records (see encode_section_records).

    Args:
        settings: Round id, dates, and scale bounds to denormalize.
        sections: Sections in display order.

    Returns:
        Detail rows in (section1, topic, item) order, without ids.
    """
    start = _with_time(settings.start_date, START_OF_DAY)
    end = _with_time(settings.end_date, END_OF_DAY)
    rows: list[FlatRow] = []

    for section1, section in enumerate(sections, start=1):
        if section.kind != SectionKind.QUESTIONS:
            continue

        for topic_ordinal, topic in enumerate(section.topics, start=1):
            rows.append(
                FlatRow(
                    round_id=settings.round_id,
                    section1=section1,
                    section2=positional.format_head(topic_ordinal),
                    kind=RowKind.HEAD.value,
                    text=topic.text,
                    start_date=start,
                    end_date=end,
                )
            )

            for item_ordinal, item in enumerate(topic.items, start=1):
                leaf_kind = RowKind.from_store(item.kind)
                if leaf_kind == RowKind.HEAD:
                    raise ValueError(f"Topic item cannot be a head row: {item.text!r}")
                is_scale = leaf_kind == RowKind.SCALE
                rows.append(
                    FlatRow(
                        round_id=settings.round_id,
                        section1=section1,
                        section2=positional.format_leaf(topic_ordinal, item_ordinal),
                        kind=leaf_kind.value,
                        text=item.text,
                        min_score=settings.min_score if is_scale else None,
                        max_score=settings.max_score if is_scale else None,
                        start_date=start,
                        end_date=end,
                    )
                )

    return rows


def encode_section_records(round_id: int, sections: list[Section]) -> list[SectionRecord]:
    """Build the 1:1 title/body record for every section, in order."""
    return [
        SectionRecord(
            round_id=round_id,
            section1=section1,
            title=section.title,
            body=section.body,
        )
        for section1, section in enumerate(sections, start=1)
    ]


# ============================================================================
# Decode
# ============================================================================


@dataclass
class _ScanState:
    """Accumulator for the leaf-attachment fold.

    last_topic is the most recently created topic in row order, across
    sections. It is only consulted when a leaf's own key does not resolve.
    """

    last_topic: Topic | None = None
    placements: list[tuple[Topic, LeafItem]] = field(default_factory=list)
    dropped: list[DroppedRow] = field(default_factory=list)


def _date_part(value: str | None) -> str | None:
    """Strip the time of day from a stored timestamp."""
    if not value:
        return None
    return value.split("T")[0].split(" ")[0]


def _first_present(rows: list[FlatRow], attr: str):
    """Value of the first row carrying a non-null attribute."""
    for row in rows:
        value = getattr(row, attr)
        if value is not None:
            return value
    return None


def _drop(row: FlatRow, reason: str, detail: str) -> DroppedRow:
    logger.warning(
        f"Dropping row id={row.id} section1={row.section1} "
        f"section2={row.section2!r}: {reason} ({detail})"
    )
    return DroppedRow(row=row, reason=reason, detail=detail)


def _classify(rows: list[FlatRow]) -> tuple[list[tuple[FlatRow, RowKind]], list[DroppedRow]]:
    """Pair rows with their kind, dropping rows of unknown kind."""
    classified: list[tuple[FlatRow, RowKind]] = []
    dropped: list[DroppedRow] = []
    for row in rows:
        try:
            classified.append((row, RowKind.from_store(row.kind)))
        except ValueError:
            dropped.append(_drop(row, "unknown_kind", f"type={row.kind!r}"))
    return classified, dropped


def _build_topics(
    classified: list[tuple[FlatRow, RowKind]],
) -> tuple[dict[int, Topic], dict[tuple[int, int], Topic], list[DroppedRow]]:
    """Pass 1: create a topic for every head row.

    Returns:
        (topic by row index, topic by (section1, topic ordinal), dropped heads)
    """
    by_index: dict[int, Topic] = {}
    by_key: dict[tuple[int, int], Topic] = {}
    dropped: list[DroppedRow] = []

    for index, (row, kind) in enumerate(classified):
        if kind != RowKind.HEAD:
            continue
        try:
            topic_ordinal = positional.domain_key(row.section2)
        except MalformedPositionError as e:
            dropped.append(_drop(row, "malformed_position", str(e)))
            continue

        topic = Topic(
            text=row.text or "",
            id=row.id,
            section_ordinal=row.section1,
            topic_ordinal=topic_ordinal,
        )
        by_index[index] = topic
        by_key[(row.section1, topic_ordinal)] = topic

    return by_index, by_key, dropped


def _attach_step(
    by_index: dict[int, Topic],
    by_key: dict[tuple[int, int], Topic],
):
    """Build the fold step for pass 2."""

    def step(state: _ScanState, entry: tuple[int, tuple[FlatRow, RowKind]]) -> _ScanState:
        index, (row, kind) = entry

        if kind == RowKind.HEAD:
            if index in by_index:
                state.last_topic = by_index[index]
            return state

        position = positional.parse(row.section2)
        if isinstance(position, MalformedPosition):
            state.dropped.append(
                _drop(row, "malformed_position", f"cannot parse {position.raw!r}")
            )
            return state

        parent = None
        if isinstance(position, LeafPosition):
            parent = by_key.get((row.section1, position.topic_ordinal))
        if parent is None:
            parent = state.last_topic
        if parent is None:
            state.dropped.append(_drop(row, "orphan_leaf", "no preceding head row"))
            return state

        leaf = LeafItem(
            kind=kind,
            text=row.text or "",
            min_score=row.min_score,
            max_score=row.max_score,
            id=row.id,
            parent_topic_id=parent.id,
            section_ordinal=row.section1,
            position=str(row.section2),
        )
        state.placements.append((parent, leaf))
        return state

    return step


def _build_sections(
    rows: list[FlatRow],
    topics: list[Topic],
    section_records: list[SectionRecord] | None,
) -> list[Section]:
    """Assemble sections from section records and decoded topics.

    A section with rows in this stream is a question section; a section
    record without rows is a description section.
    """
    row_sections = {row.section1 for row in rows}
    sections: dict[int, Section] = {}

    for record in sorted(section_records or [], key=lambda r: r.section1):
        kind = SectionKind.QUESTIONS if record.section1 in row_sections else SectionKind.DESCRIPTION
        sections[record.section1] = Section(
            kind=kind,
            title=record.title,
            body=record.body,
            ordinal=record.section1,
        )

    for section1 in sorted(row_sections - set(sections)):
        if section_records is not None:
            logger.warning(f"Rows found for section {section1} without a section record")
        sections[section1] = Section(kind=SectionKind.QUESTIONS, ordinal=section1)

    for topic in topics:
        sections[topic.section_ordinal].topics.append(topic)

    return [sections[key] for key in sorted(sections)]


def decode(
    rows: list[FlatRow],
    section_records: list[SectionRecord] | None = None,
    round_id: int | None = None,
) -> QuestionnaireTree:
    """Decode flat detail rows into a questionnaire tree.

    Args:
        rows: Detail rows of one round, in any order.
        section_records: Title/body records for the round's sections. When
            omitted, sections are inferred from the rows alone.
        round_id: Round id to stamp on the tree; defaults to the rows'.

    Returns:
        QuestionnaireTree. Rows that could not be placed are listed in
        ``dropped``.
    """
    ordered = sorted(rows, key=lambda r: positional.sort_key(r.section1, r.section2))

    classified, dropped = _classify(ordered)
    by_index, by_key, dropped_heads = _build_topics(classified)
    dropped.extend(dropped_heads)

    state = reduce(
        _attach_step(by_index, by_key),
        enumerate(classified),
        _ScanState(),
    )
    for topic, leaf in state.placements:
        topic.items.append(leaf)
    dropped.extend(state.dropped)

    if round_id is None and ordered:
        round_id = ordered[0].round_id
    if round_id is None and section_records:
        round_id = section_records[0].round_id

    topics = [by_index[index] for index in sorted(by_index)]

    return QuestionnaireTree(
        round_id=round_id,
        sections=_build_sections(ordered, topics, section_records),
        start_date=_date_part(_first_present(ordered, "start_date")),
        end_date=_date_part(_first_present(ordered, "end_date")),
        min_score=_first_present(ordered, "min_score"),
        max_score=_first_present(ordered, "max_score"),
        dropped=dropped,
    )
