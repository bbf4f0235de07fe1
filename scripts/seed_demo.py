#!/usr/bin/env python3
"""Seed a demo evaluation round with directory entries and aggregates.

Usage:
    python scripts/seed_demo.py

This script:
1. Initializes the demo database
2. Seeds faculties, majors, teachers, and students
3. Creates round 2567/1 with a description section and two topics
4. Writes partial aggregates and a few answers
5. Prints the round's statistics
"""

from __future__ import annotations

import sys
from pathlib import Path

# Add src to path for imports
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from evalround.core.round_id import compose_round_id, format_round_label  # noqa: E402
from evalround.db import repo  # noqa: E402
from evalround.db.schema import (  # noqa: E402
    AssessmentAnswer,
    AvgFaculty,
    AvgMajor,
    AvgTeacher,
    Faculty,
    Major,
    Student,
    Teacher,
)
from evalround.db.session import get_db_session, init_db  # noqa: E402
from evalround.models.domain import (  # noqa: E402
    LeafItem,
    RoundSettings,
    RowKind,
    Section,
    SectionKind,
    Topic,
)
from evalround.service.rounds import RoundService  # noqa: E402

# Constants
DEMO_DB_PATH = PROJECT_ROOT / "demo.db"
DEMO_ROUND_ID = compose_round_id(2567, 1)

# (faculty id, name, [(major id, name, [(teacher id, name)])])
DEMO_DIRECTORY = [
    (1, "Science", [(10, "Physics", [(100, "Somchai"), (101, "Suda")]), (11, "Chemistry", [(102, "Anan")])]),
    (2, "Education", [(20, "Early Childhood", [(200, "Malee")])]),
]
DEMO_STUDENT_COUNT = 40

# Per-teacher (total_score, respondent_count) for each Scale question, in order
DEMO_SCORES = {
    100: [(46, 10), (41, 10), (38, 10)],
    101: [(35, 9), (30, 9), (40, 9)],
    102: [(22, 6), (25, 6), (20, 6)],
    200: [(60, 14), (55, 14), (58, 14)],
}


def demo_sections() -> list[Section]:
    """Questionnaire of the demo round."""
    return [
        Section(
            kind=SectionKind.DESCRIPTION,
            title="คำชี้แจง",
            body="Rate each statement from 1 (lowest) to 5 (highest).",
        ),
        Section(
            kind=SectionKind.QUESTIONS,
            title="Teaching",
            topics=[
                Topic(
                    text="Preparation",
                    items=[
                        LeafItem(kind=RowKind.SCALE, text="Prepares lessons in advance"),
                        LeafItem(kind=RowKind.SCALE, text="States learning objectives"),
                    ],
                ),
                Topic(
                    text="Delivery",
                    items=[
                        LeafItem(kind=RowKind.SCALE, text="Explains clearly"),
                        LeafItem(kind=RowKind.TEXT, text="Other comments"),
                    ],
                ),
            ],
        ),
    ]


def seed_directory(session) -> dict[int, tuple[int, int]]:
    """Insert faculties, majors, teachers, and students.

    Returns:
        (major id, faculty id) by teacher id.
    """
    teacher_parents: dict[int, tuple[int, int]] = {}
    for faculty_id, faculty_name, majors in DEMO_DIRECTORY:
        session.add(Faculty(id=faculty_id, faculty_name=faculty_name))
        session.flush()
        for major_id, major_name, teachers in majors:
            session.add(Major(id=major_id, major_name=major_name, faculty_id=faculty_id))
            session.flush()
            for teacher_id, teacher_name in teachers:
                session.add(Teacher(id=teacher_id, teacher_name=teacher_name, major_id=major_id))
                teacher_parents[teacher_id] = (major_id, faculty_id)
    session.add_all(
        [Student(id=sid, student_name=f"Student {sid}") for sid in range(1, DEMO_STUDENT_COUNT + 1)]
    )
    session.flush()
    return teacher_parents


def seed_aggregates(session, teacher_parents: dict[int, tuple[int, int]]) -> None:
    """Write teacher aggregates and roll them up into majors and faculties."""
    rows = repo.get_detail_rows(session, DEMO_ROUND_ID)
    scale_ids = [row.id for row in rows if row.kind == RowKind.SCALE.value]
    text_id = next(row.id for row in rows if row.kind == RowKind.TEXT.value)

    by_major: dict[tuple[int, int], list[float]] = {}
    by_faculty: dict[tuple[int, int], list[float]] = {}

    for teacher_id, scores in DEMO_SCORES.items():
        major_id, faculty_id = teacher_parents[teacher_id]
        for question_id, (total, count) in zip(scale_ids, scores):
            session.add(
                AvgTeacher(
                    around_id=DEMO_ROUND_ID,
                    question_id=question_id,
                    teacher_id=teacher_id,
                    total_score=total,
                    respondent_count=count,
                )
            )
            for key, bucket in (((question_id, major_id), by_major), ((question_id, faculty_id), by_faculty)):
                acc = bucket.setdefault(key, [0.0, 0])
                acc[0] += total
                acc[1] += count

    for (question_id, major_id), (total, count) in by_major.items():
        session.add(
            AvgMajor(
                around_id=DEMO_ROUND_ID,
                question_id=question_id,
                major_id=major_id,
                total_score=total,
                respondent_count=count,
            )
        )
    for (question_id, faculty_id), (total, count) in by_faculty.items():
        session.add(
            AvgFaculty(
                around_id=DEMO_ROUND_ID,
                question_id=question_id,
                faculty_id=faculty_id,
                total_score=total,
                respondent_count=count,
            )
        )

    for student_id, score in enumerate((5, 4, 4, 3, 5, 4), start=1):
        session.add(
            AssessmentAnswer(
                around_id=DEMO_ROUND_ID,
                question_id=scale_ids[0],
                teacher_id=100,
                student_id=student_id,
                score_value=score,
            )
        )
    for student_id, comment in enumerate(("Clear examples", "NULL", "More exercises please"), start=1):
        session.add(
            AssessmentAnswer(
                around_id=DEMO_ROUND_ID,
                question_id=text_id,
                teacher_id=100,
                student_id=student_id,
                text_value=comment,
            )
        )


def seed_database() -> bool:
    """Seed the demo database. Returns False if already seeded."""
    with get_db_session(DEMO_DB_PATH) as session:
        if repo.round_exists(session, DEMO_ROUND_ID):
            print(f"Demo round already exists: {DEMO_ROUND_ID}")
            return False

        print("Creating directory...")
        teacher_parents = seed_directory(session)
        session.commit()

        print("Creating round...")
        settings = RoundSettings(
            round_id=DEMO_ROUND_ID,
            start_date="2024-06-01",
            end_date="2024-09-30",
            min_score=1,
            max_score=5,
        )
        result = RoundService(session).save_tree(settings, demo_sections())
        print(f"  {result.section_count} section(s), {result.row_count} row(s)")

        print("Creating aggregates...")
        seed_aggregates(session, teacher_parents)
        print("Database seeded successfully!")
        return True


def print_statistics() -> None:
    """Print faculty statistics of the demo round."""
    with get_db_session(DEMO_DB_PATH) as session:
        stats = RoundService(session).load_statistics(DEMO_ROUND_ID, "faculty")
        print(f"{format_round_label(DEMO_ROUND_ID)}: overall {stats.overall_average:.2f}")
        for domain in stats.domains:
            print(f"  {domain.label} {domain.name}: {domain.average:.2f}")
        for entity in stats.entity_ranking:
            print(f"  {entity.name}: {entity.average:.2f} ({entity.respondent_count})")
        p = stats.participation
        print(f"  Teachers: {p.teachers_participated}/{p.teachers_total}")
        print(f"  Students: {p.students_participated}/{p.students_total}")


def main() -> int:
    """Main entry point."""
    print("=" * 60)
    print("evalround Demo Seeding Script")
    print("=" * 60)

    print("\n[1/3] Initializing database...")
    init_db(DEMO_DB_PATH)

    print("\n[2/3] Seeding database...")
    seed_database()

    print("\n[3/3] Statistics...")
    print_statistics()

    print("\n" + "=" * 60)
    print(f"Database: {DEMO_DB_PATH}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
