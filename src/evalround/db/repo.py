"""Repository pattern for database operations.

Encapsulates all SQLAlchemy queries, keeping domain logic pure.
Returns domain models (not SQLAlchemy entities) to external callers.
Filters are issued by around_id only (and id for single lookups);
positional ordering is left to the codec.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

from evalround.db.schema import (
    AssessmentAnswer,
    AssessmentDetail,
    AssessmentHead,
    AvgFaculty,
    AvgMajor,
    AvgTeacher,
    Faculty,
    Major,
    Student,
    Teacher,
)
from evalround.models.domain import (
    AggregateRow,
    AnswerRow,
    EntityDimension,
    EntityInfo,
    FlatRow,
    SectionRecord,
)

if TYPE_CHECKING:
    from sqlalchemy.orm import Session as DbSession
else:
    DbSession = Session

# Re-export for external use
__all__ = ["DbSession"]

# SQLSTATE codes the service distinguishes
FOREIGN_KEY_VIOLATION = "23503"
UNIQUE_VIOLATION = "23505"
INVALID_TEXT_REPRESENTATION = "22P02"

# SQLite reports constraint failures by message only
_SQLITE_ERROR_CODES = {
    "FOREIGN KEY constraint failed": FOREIGN_KEY_VIOLATION,
    "UNIQUE constraint failed": UNIQUE_VIOLATION,
}


def store_error_code(exc: BaseException) -> str | None:
    """SQLSTATE of a store error, if one can be determined.

    Reads ``pgcode`` (psycopg2) or ``sqlstate`` (psycopg) from the DBAPI
    error wrapped by SQLAlchemy, falling back to SQLite's messages.
    """
    orig = getattr(exc, "orig", None) or exc
    for attr in ("pgcode", "sqlstate"):
        code = getattr(orig, attr, None)
        if code:
            return str(code)

    message = str(orig)
    for fragment, code in _SQLITE_ERROR_CODES.items():
        if fragment in message:
            return code
    return None


# ============================================================================
# Converters: SQLAlchemy -> Domain
# ============================================================================


def _head_to_record(head: AssessmentHead) -> SectionRecord:
    """Convert SQLAlchemy AssessmentHead to domain record."""
    return SectionRecord(
        id=head.id,
        round_id=head.around_id,
        section1=head.section1,
        title=head.head_description,
        body=head.description,
    )


def _detail_to_row(detail: AssessmentDetail) -> FlatRow:
    """Convert SQLAlchemy AssessmentDetail to domain row."""
    return FlatRow(
        id=detail.id,
        round_id=detail.around_id,
        section1=detail.section1,
        section2=detail.section2,
        kind=detail.type,
        text=detail.detail or "",
        min_score=detail.min_score,
        max_score=detail.max_score,
        start_date=detail.start_date,
        end_date=detail.end_date,
    )


def _answer_to_entity(answer: AssessmentAnswer) -> AnswerRow:
    """Convert SQLAlchemy AssessmentAnswer to domain entity."""
    return AnswerRow(
        id=answer.id,
        round_id=answer.around_id,
        question_id=answer.question_id,
        teacher_id=answer.teacher_id,
        student_id=answer.student_id,
        score_value=answer.score_value,
        text_value=answer.text_value,
    )


# ============================================================================
# Structure Repository
# ============================================================================


def get_section_records(session: DbSession, round_id: int) -> list[SectionRecord]:
    """Get section records of a round, ordered by section1."""
    heads = (
        session.query(AssessmentHead)
        .filter(AssessmentHead.around_id == round_id)
        .order_by(AssessmentHead.section1)
        .all()
    )
    return [_head_to_record(h) for h in heads]


def get_detail_rows(session: DbSession, round_id: int) -> list[FlatRow]:
    """Get detail rows of a round, ordered by (section1, id)."""
    details = (
        session.query(AssessmentDetail)
        .filter(AssessmentDetail.around_id == round_id)
        .order_by(AssessmentDetail.section1, AssessmentDetail.id)
        .all()
    )
    return [_detail_to_row(d) for d in details]


def round_exists(session: DbSession, round_id: int) -> bool:
    """Whether a round has any section records or detail rows."""
    head = session.query(AssessmentHead.id).filter(AssessmentHead.around_id == round_id).first()
    if head is not None:
        return True
    detail = (
        session.query(AssessmentDetail.id).filter(AssessmentDetail.around_id == round_id).first()
    )
    return detail is not None


def insert_section_records(session: DbSession, records: list[SectionRecord]) -> int:
    """Insert section records and flush so store errors surface here."""
    session.add_all(
        [
            AssessmentHead(
                around_id=r.round_id,
                section1=r.section1,
                head_description=r.title,
                description=r.body,
            )
            for r in records
        ]
    )
    session.flush()
    return len(records)


def insert_detail_rows(session: DbSession, rows: list[FlatRow]) -> int:
    """Insert detail rows and flush so store errors surface here."""
    session.add_all(
        [
            AssessmentDetail(
                around_id=r.round_id,
                section1=r.section1,
                section2=r.section2,
                detail=r.text,
                type=r.kind,
                start_date=r.start_date,
                end_date=r.end_date,
                min_score=r.min_score,
                max_score=r.max_score,
            )
            for r in rows
        ]
    )
    session.flush()
    return len(rows)


def delete_detail_rows(session: DbSession, round_id: int) -> int:
    """Delete all detail rows of a round."""
    return (
        session.query(AssessmentDetail)
        .filter(AssessmentDetail.around_id == round_id)
        .delete(synchronize_session=False)
    )


def delete_section_records(session: DbSession, round_id: int) -> int:
    """Delete all section records of a round."""
    return (
        session.query(AssessmentHead)
        .filter(AssessmentHead.around_id == round_id)
        .delete(synchronize_session=False)
    )


# ============================================================================
# Answer Repository
# ============================================================================


def delete_answers(session: DbSession, round_id: int) -> int:
    """Delete all answers of a round. Irreversible."""
    return (
        session.query(AssessmentAnswer)
        .filter(AssessmentAnswer.around_id == round_id)
        .delete(synchronize_session=False)
    )


def get_text_answers(session: DbSession, round_id: int, teacher_id: int) -> list[AnswerRow]:
    """Get a teacher's answers that carry text."""
    answers = (
        session.query(AssessmentAnswer)
        .filter(
            AssessmentAnswer.around_id == round_id,
            AssessmentAnswer.teacher_id == teacher_id,
            AssessmentAnswer.text_value.is_not(None),
        )
        .order_by(AssessmentAnswer.id)
        .all()
    )
    return [_answer_to_entity(a) for a in answers]


def get_participating_teachers(session: DbSession, round_id: int) -> set[int]:
    """Distinct teachers with at least one answer in a round."""
    results = (
        session.query(AssessmentAnswer.teacher_id)
        .filter(
            AssessmentAnswer.around_id == round_id,
            AssessmentAnswer.teacher_id.is_not(None),
        )
        .distinct()
        .all()
    )
    return {teacher_id for (teacher_id,) in results}


def get_participating_students(
    session: DbSession, round_id: int, teacher_ids: set[int] | None = None
) -> set[int]:
    """Distinct students with a scored answer in a round.

    Args:
        session: Database session.
        round_id: Round to count.
        teacher_ids: Only count answers about these teachers, when given.
    """
    query = session.query(AssessmentAnswer.student_id).filter(
        AssessmentAnswer.around_id == round_id,
        AssessmentAnswer.student_id.is_not(None),
        AssessmentAnswer.score_value.is_not(None),
    )
    if teacher_ids is not None:
        query = query.filter(AssessmentAnswer.teacher_id.in_(sorted(teacher_ids)))
    return {student_id for (student_id,) in query.distinct().all()}


def count_students(session: DbSession) -> int:
    """Number of students in the directory."""
    return session.query(Student).count()


# ============================================================================
# Aggregate Repository
# ============================================================================

_AGGREGATE_TABLES = {
    "faculty": (AvgFaculty, AvgFaculty.faculty_id),
    "major": (AvgMajor, AvgMajor.major_id),
    "teacher": (AvgTeacher, AvgTeacher.teacher_id),
}


def get_aggregate_rows(
    session: DbSession, round_id: int, dimension: EntityDimension
) -> list[AggregateRow]:
    """Get partial aggregates of a round for one entity dimension."""
    table, entity_column = _AGGREGATE_TABLES[dimension]
    results = (
        session.query(table.question_id, entity_column, table.total_score, table.respondent_count)
        .filter(table.around_id == round_id)
        .order_by(table.id)
        .all()
    )
    return [
        AggregateRow(
            question_id=question_id,
            entity_id=entity_id,
            total_score=float(total_score or 0),
            respondent_count=int(respondent_count or 0),
        )
        for question_id, entity_id, total_score, respondent_count in results
    ]


# ============================================================================
# Directory Repository
# ============================================================================


def get_entity_directory(session: DbSession, dimension: EntityDimension) -> dict[int, EntityInfo]:
    """Get names and parent ids of all entities of a dimension.

    Parents: teacher -> major, major -> faculty, faculty -> none.
    """
    if dimension == "faculty":
        query = session.query(Faculty.id, Faculty.faculty_name)
        return {fid: EntityInfo(fid, name) for fid, name in query.all()}
    if dimension == "major":
        query = session.query(Major.id, Major.major_name, Major.faculty_id)
    elif dimension == "teacher":
        query = session.query(Teacher.id, Teacher.teacher_name, Teacher.major_id)
    else:
        raise ValueError(f"Unknown entity dimension: {dimension}")
    return {eid: EntityInfo(eid, name, parent) for eid, name, parent in query.all()}


# ============================================================================
# Batch Operations
# ============================================================================


def commit(session: DbSession) -> None:
    """Commit current transaction."""
    session.commit()


def rollback(session: DbSession) -> None:
    """Roll back current transaction."""
    session.rollback()
