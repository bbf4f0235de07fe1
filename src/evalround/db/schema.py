"""Database schema for evalround.

Questionnaire structure (assessment_head, assessment_detail), answers,
partial aggregates written by the recompute job, and the organizational
directory used for entity names, peer grouping, and participation totals.
"""

from sqlalchemy import (
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class AssessmentHead(Base):
    """Section record: title and body of one section of a round.

    Invariant: UNIQUE(around_id, section1)
    """

    __tablename__ = "assessment_head"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    around_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    section1: Mapped[int] = mapped_column(Integer, nullable=False)
    head_description: Mapped[str | None] = mapped_column(Text, nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        UniqueConstraint("around_id", "section1", name="uq_head_section"),
    )


class AssessmentDetail(Base):
    """Flat positional row: a head, score, or text row of a round.

    section2 is text so that leaf positions such as "1.10" survive intact.
    Ids are never reused, so aggregates written for deleted rows cannot
    match the rows of a replaced structure.
    """

    __tablename__ = "assessment_detail"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    around_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    section1: Mapped[int] = mapped_column(Integer, nullable=False)
    section2: Mapped[str] = mapped_column(String(16), nullable=False)
    detail: Mapped[str | None] = mapped_column(Text, nullable=True)
    type: Mapped[str] = mapped_column(String(16), nullable=False)
    start_date: Mapped[str | None] = mapped_column(String(32), nullable=True)
    end_date: Mapped[str | None] = mapped_column(String(32), nullable=True)
    min_score: Mapped[int | None] = mapped_column(Integer, nullable=True)
    max_score: Mapped[int | None] = mapped_column(Integer, nullable=True)

    __table_args__ = {"sqlite_autoincrement": True}


class AssessmentAnswer(Base):
    """A respondent's answer to one question.

    Answers reference detail rows, which blocks deleting the structure of
    a round while answers exist.
    """

    __tablename__ = "assessment_answer"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    around_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    question_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("assessment_detail.id"), nullable=False
    )
    teacher_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    student_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    score_value: Mapped[float | None] = mapped_column(Float, nullable=True)
    text_value: Mapped[str | None] = mapped_column(Text, nullable=True)


class Faculty(Base):
    """Faculty directory entry."""

    __tablename__ = "faculties"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    faculty_name: Mapped[str] = mapped_column(String(255), nullable=False)


class Major(Base):
    """Major directory entry, grouped under a faculty."""

    __tablename__ = "majors"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    major_name: Mapped[str] = mapped_column(String(255), nullable=False)
    faculty_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("faculties.id"), nullable=True
    )


class Teacher(Base):
    """Teacher directory entry, grouped under a major."""

    __tablename__ = "teachers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    teacher_name: Mapped[str] = mapped_column(String(255), nullable=False)
    major_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("majors.id"), nullable=True)


class Student(Base):
    """Student directory entry, counted for participation."""

    __tablename__ = "students"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    student_name: Mapped[str] = mapped_column(String(255), nullable=False)


class AvgFaculty(Base):
    """Partial aggregate per question per faculty.

    Invariant: UNIQUE(around_id, question_id, faculty_id)
    """

    __tablename__ = "avg_faculty"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    around_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    question_id: Mapped[int] = mapped_column(Integer, nullable=False)
    faculty_id: Mapped[int] = mapped_column(Integer, nullable=False)
    total_score: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    respondent_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    __table_args__ = (
        UniqueConstraint("around_id", "question_id", "faculty_id", name="uq_avg_faculty"),
    )


class AvgMajor(Base):
    """Partial aggregate per question per major.

    Invariant: UNIQUE(around_id, question_id, major_id)
    """

    __tablename__ = "avg_major"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    around_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    question_id: Mapped[int] = mapped_column(Integer, nullable=False)
    major_id: Mapped[int] = mapped_column(Integer, nullable=False)
    total_score: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    respondent_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    __table_args__ = (
        UniqueConstraint("around_id", "question_id", "major_id", name="uq_avg_major"),
    )


class AvgTeacher(Base):
    """Partial aggregate per question per teacher.

    Invariant: UNIQUE(around_id, question_id, teacher_id)
    """

    __tablename__ = "avg_teacher"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    around_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    question_id: Mapped[int] = mapped_column(Integer, nullable=False)
    teacher_id: Mapped[int] = mapped_column(Integer, nullable=False)
    total_score: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    respondent_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    __table_args__ = (
        UniqueConstraint("around_id", "question_id", "teacher_id", name="uq_avg_teacher"),
    )
