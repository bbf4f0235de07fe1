"""Round orchestration over the row store.

Architecture:
- RoundService: thin façade binding a database session to the codec and
  the rollup
- Structural writes never patch rows: a round is created in one insert,
  or replaced by deleting everything and inserting again

Replace is two-phase and not atomic. Phase 1 (delete) is committed before
phase 2 (insert) starts; a phase 2 failure leaves the round empty and is
raised as ReplaceIncompleteError carrying the unsaved rows.
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError

from evalround.aggregation.feedback import group_feedback
from evalround.aggregation.rollup import compute_statistics, rank_entities
from evalround.codec.questionnaire import decode, encode, encode_section_records
from evalround.core.errors import (
    DuplicateRoundError,
    ReplaceIncompleteError,
    RoundNotFoundError,
    SchemaTypeMismatchError,
    StructuralConflictError,
)
from evalround.db import repo
from evalround.db.repo import DbSession
from evalround.models.domain import (
    AggregateRow,
    EntityDimension,
    EntityInfo,
    FlatRow,
    QuestionnaireTree,
    RoundSettings,
    Section,
    SectionRecord,
)
from evalround.models.types import EntityScore, FeedbackGroup, Participation, RoundStatistics

logger = logging.getLogger(__name__)

DIMENSION_LABELS: dict[str, str] = {
    "faculty": "Faculty",
    "major": "Major",
    "teacher": "Teacher",
}

# Dimension one level down, for the breakdown of a selected entity
CHILD_DIMENSION: dict[str, EntityDimension] = {
    "faculty": "major",
    "major": "teacher",
}


@dataclass
class SaveResult:
    """Outcome of a structural write."""

    round_id: int
    section_count: int
    row_count: int
    answers_cleared: bool = False


def _first_decimal_position(rows: list[FlatRow]) -> str | None:
    for row in rows:
        if "." in row.section2:
            return row.section2
    return None


def _translate_insert_error(
    round_id: int, rows: list[FlatRow], error: SQLAlchemyError
) -> Exception:
    """Map an insert failure to a typed error, or return it unchanged."""
    code = repo.store_error_code(error)
    if code == repo.INVALID_TEXT_REPRESENTATION:
        return SchemaTypeMismatchError(round_id, _first_decimal_position(rows))
    if code == repo.UNIQUE_VIOLATION:
        return DuplicateRoundError(round_id)
    return error


class RoundService:
    """Reads and writes one round's questionnaire and statistics."""

    def __init__(self, session: DbSession):
        """Initialize service.

        Args:
            session: Database session; the service commits its own writes.
        """
        self.session = session

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def load_tree(self, round_id: int) -> QuestionnaireTree:
        """Fetch a round's rows and decode them.

        An unknown round decodes to a tree without sections.
        """
        records = repo.get_section_records(self.session, round_id)
        rows = repo.get_detail_rows(self.session, round_id)
        tree = decode(rows, records, round_id=round_id)
        if tree.dropped:
            logger.warning(f"Round {round_id}: {len(tree.dropped)} row(s) dropped while decoding")
        return tree

    def load_statistics(
        self,
        round_id: int,
        dimension: EntityDimension = "faculty",
        entity_id: int | None = None,
    ) -> RoundStatistics:
        """Compute statistics of a round along one entity dimension.

        With an entity selected, statistics cover that entity only, and
        ``peers`` ranks the entities sharing its parent grouping while
        ``breakdown`` ranks its children (majors of a faculty, teachers of
        a major). ``participation`` counts respondents within the same
        scope.

        Args:
            round_id: Round to report on.
            dimension: "faculty", "major", or "teacher".
            entity_id: Optional entity of that dimension.

        Returns:
            RoundStatistics.
        """
        if dimension not in DIMENSION_LABELS:
            raise ValueError(f"Unknown entity dimension: {dimension}")

        tree = self.load_tree(round_id)
        rows = repo.get_aggregate_rows(self.session, round_id, dimension)
        directory = repo.get_entity_directory(self.session, dimension)
        label = DIMENSION_LABELS[dimension]

        stats = compute_statistics(
            tree,
            rows,
            entity_names={eid: info.name for eid, info in directory.items()},
            entity_label=label,
            entity_id=entity_id,
        )
        stats.dimension = dimension

        if entity_id is not None:
            stats.peers = self._peer_ranking(tree, rows, directory, dimension, entity_id)
            child = CHILD_DIMENSION.get(dimension)
            if child is not None:
                stats.breakdown = self._child_ranking(tree, round_id, child, entity_id)

        stats.participation = self._participation(round_id, dimension, entity_id)
        return stats

    def load_feedback(self, round_id: int, teacher_id: int) -> list[FeedbackGroup]:
        """Group a teacher's open-text answers by question."""
        tree = self.load_tree(round_id)
        answers = repo.get_text_answers(self.session, round_id, teacher_id)
        return group_feedback(tree, answers)

    def _peer_ranking(
        self,
        tree: QuestionnaireTree,
        rows: list[AggregateRow],
        directory: dict[int, EntityInfo],
        dimension: EntityDimension,
        entity_id: int,
    ) -> list[EntityScore]:
        """Rank entities sharing the selected entity's parent."""
        if dimension == "faculty":
            peer_rows = rows
        else:
            info = directory.get(entity_id)
            if info is None or info.parent_id is None:
                return []
            peer_ids = {eid for eid, e in directory.items() if e.parent_id == info.parent_id}
            peer_rows = [row for row in rows if row.entity_id in peer_ids]

        return rank_entities(
            tree,
            peer_rows,
            entity_names={eid: e.name for eid, e in directory.items()},
            entity_label=DIMENSION_LABELS[dimension],
            current_entity_id=entity_id,
        )

    def _child_ranking(
        self,
        tree: QuestionnaireTree,
        round_id: int,
        child: EntityDimension,
        parent_id: int,
    ) -> list[EntityScore]:
        """Rank the child entities grouped under the selected entity."""
        directory = repo.get_entity_directory(self.session, child)
        child_ids = {eid for eid, e in directory.items() if e.parent_id == parent_id}
        rows = [
            row
            for row in repo.get_aggregate_rows(self.session, round_id, child)
            if row.entity_id in child_ids
        ]
        return rank_entities(
            tree,
            rows,
            entity_names={eid: e.name for eid, e in directory.items()},
            entity_label=DIMENSION_LABELS[child],
        )

    def _teacher_scope(self, dimension: EntityDimension, entity_id: int) -> set[int]:
        """Teachers grouped under the selected entity."""
        if dimension == "teacher":
            return {entity_id}
        teachers = repo.get_entity_directory(self.session, "teacher")
        if dimension == "major":
            major_ids = {entity_id}
        else:
            majors = repo.get_entity_directory(self.session, "major")
            major_ids = {mid for mid, m in majors.items() if m.parent_id == entity_id}
        return {tid for tid, t in teachers.items() if t.parent_id in major_ids}

    def _participation(
        self,
        round_id: int,
        dimension: EntityDimension,
        entity_id: int | None,
    ) -> Participation:
        """Count answering teachers and students, scoped to the selected entity."""
        answering = repo.get_participating_teachers(self.session, round_id)
        if entity_id is None:
            scope = None
            teachers_total = len(repo.get_entity_directory(self.session, "teacher"))
        else:
            scope = self._teacher_scope(dimension, entity_id)
            answering &= scope
            teachers_total = len(scope)

        students = repo.get_participating_students(self.session, round_id, scope)
        return Participation(
            teachers_participated=len(answering),
            teachers_total=teachers_total,
            students_participated=len(students),
            students_total=repo.count_students(self.session),
        )

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def save_tree(
        self,
        settings: RoundSettings,
        sections: list[Section],
        *,
        replace: bool = False,
        clear_answers: bool = False,
    ) -> SaveResult:
        """Encode and store a round's questionnaire.

        Args:
            settings: Round id, dates, and scale bounds.
            sections: Sections in display order.
            replace: False to create a new round (rejected if it exists);
                True to replace an existing round's structure wholesale.
            clear_answers: Replace only. Delete every answer of the round
                first. Irreversible; the caller must have confirmed it.

        Returns:
            SaveResult with counts of written records and rows.

        Raises:
            DuplicateRoundError: Create on a round that already exists.
            StructuralConflictError: Answers block deleting old rows.
            SchemaTypeMismatchError: The store rejected a "N.M" section2.
            ReplaceIncompleteError: Old rows deleted, new rows not written.
        """
        records = encode_section_records(settings.round_id, sections)
        rows = encode(settings, sections)

        if replace:
            return self._replace_all(settings.round_id, records, rows, clear_answers)
        return self._create(settings.round_id, records, rows)

    def _create(
        self, round_id: int, records: list[SectionRecord], rows: list[FlatRow]
    ) -> SaveResult:
        if repo.round_exists(self.session, round_id):
            raise DuplicateRoundError(round_id)

        try:
            repo.insert_section_records(self.session, records)
            repo.insert_detail_rows(self.session, rows)
            repo.commit(self.session)
        except SQLAlchemyError as e:
            repo.rollback(self.session)
            logger.error(f"Round {round_id}: insert failed: {e}")
            translated = _translate_insert_error(round_id, rows, e)
            if translated is e:
                raise
            raise translated from e

        logger.info(f"Round {round_id}: created {len(records)} section(s), {len(rows)} row(s)")
        return SaveResult(round_id=round_id, section_count=len(records), row_count=len(rows))

    def _replace_all(
        self,
        round_id: int,
        records: list[SectionRecord],
        rows: list[FlatRow],
        clear_answers: bool,
    ) -> SaveResult:
        # Phase 1: delete answers (if confirmed), detail rows, section records
        table = "assessment_answer"
        try:
            if clear_answers:
                cleared = repo.delete_answers(self.session, round_id)
                logger.info(f"Round {round_id}: deleted {cleared} answer(s)")
            table = "assessment_detail"
            repo.delete_detail_rows(self.session, round_id)
            table = "assessment_head"
            repo.delete_section_records(self.session, round_id)
            repo.commit(self.session)
        except SQLAlchemyError as e:
            repo.rollback(self.session)
            logger.error(f"Round {round_id}: delete from {table} failed: {e}")
            if repo.store_error_code(e) == repo.FOREIGN_KEY_VIOLATION:
                raise StructuralConflictError(round_id, table) from e
            raise

        # Phase 2: insert the new structure
        try:
            repo.insert_section_records(self.session, records)
            repo.insert_detail_rows(self.session, rows)
            repo.commit(self.session)
        except SQLAlchemyError as e:
            repo.rollback(self.session)
            logger.error(f"Round {round_id}: cleared but insert failed: {e}")
            raise ReplaceIncompleteError(
                round_id,
                pending_sections=records,
                pending_rows=rows,
                cause=_translate_insert_error(round_id, rows, e),
            ) from e

        logger.info(f"Round {round_id}: replaced with {len(records)} section(s), {len(rows)} row(s)")
        return SaveResult(
            round_id=round_id,
            section_count=len(records),
            row_count=len(rows),
            answers_cleared=clear_answers,
        )

    def delete_round(self, round_id: int) -> None:
        """Delete a round's structure (detail rows, then section records).

        Raises:
            RoundNotFoundError: Nothing is stored for the round.
            StructuralConflictError: Answers still reference its rows.
        """
        if not repo.round_exists(self.session, round_id):
            raise RoundNotFoundError(round_id)

        table = "assessment_detail"
        try:
            repo.delete_detail_rows(self.session, round_id)
            table = "assessment_head"
            repo.delete_section_records(self.session, round_id)
            repo.commit(self.session)
        except SQLAlchemyError as e:
            repo.rollback(self.session)
            logger.error(f"Round {round_id}: delete from {table} failed: {e}")
            if repo.store_error_code(e) == repo.FOREIGN_KEY_VIOLATION:
                raise StructuralConflictError(round_id, table) from e
            raise

        logger.info(f"Round {round_id}: deleted")

    def clone_round(self, source_round_id: int, target: RoundSettings) -> SaveResult:
        """Create a new round with the questionnaire of an existing one.

        Dates and scale bounds missing from ``target`` are taken from the
        source round.

        Raises:
            RoundNotFoundError: The source round has no sections.
            DuplicateRoundError: The target round already exists.
        """
        tree = self.load_tree(source_round_id)
        if not tree.sections:
            raise RoundNotFoundError(source_round_id)

        settings = dataclasses.replace(
            target,
            start_date=target.start_date or tree.start_date,
            end_date=target.end_date or tree.end_date,
            min_score=target.min_score if target.min_score is not None else tree.min_score,
            max_score=target.max_score if target.max_score is not None else tree.max_score,
        )
        return self.save_tree(settings, tree.sections)
