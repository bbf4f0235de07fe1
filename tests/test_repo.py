"""Tests for repository helpers."""

from sqlalchemy.exc import IntegrityError

from evalround.db import repo
from evalround.db.schema import AvgMajor, Faculty, Major, Teacher
from evalround.models.domain import FlatRow, SectionRecord


class _PgError(Exception):
    """Stands in for a DBAPI error exposing a SQLSTATE."""

    def __init__(self, message, pgcode=None, sqlstate=None):
        super().__init__(message)
        self.pgcode = pgcode
        self.sqlstate = sqlstate


def _wrap(orig: Exception) -> IntegrityError:
    return IntegrityError("INSERT ...", {}, orig)


class TestStoreErrorCode:
    """Test SQLSTATE extraction across drivers."""

    def test_psycopg2_pgcode(self):
        assert repo.store_error_code(_wrap(_PgError("bad", pgcode="22P02"))) == "22P02"

    def test_psycopg_sqlstate(self):
        assert repo.store_error_code(_wrap(_PgError("bad", sqlstate="23503"))) == "23503"

    def test_sqlite_foreign_key_message(self):
        error = _wrap(Exception("FOREIGN KEY constraint failed"))
        assert repo.store_error_code(error) == repo.FOREIGN_KEY_VIOLATION

    def test_sqlite_unique_message(self):
        error = _wrap(Exception("UNIQUE constraint failed: assessment_head.around_id"))
        assert repo.store_error_code(error) == repo.UNIQUE_VIOLATION

    def test_unknown_error(self):
        assert repo.store_error_code(_wrap(Exception("disk I/O error"))) is None


class TestStructureRepository:
    """Test round structure reads and writes."""

    def test_insert_and_read_back(self, session):
        repo.insert_section_records(session, [SectionRecord(round_id=1, section1=1, title="T", body="B")])
        repo.insert_detail_rows(
            session,
            [
                FlatRow(round_id=1, section1=1, section2="1", kind="head", text="Topic"),
                FlatRow(round_id=1, section1=1, section2="1.1", kind="score", text="Q", min_score=1, max_score=5),
            ],
        )
        repo.commit(session)

        records = repo.get_section_records(session, 1)
        rows = repo.get_detail_rows(session, 1)

        assert [(r.section1, r.title, r.body) for r in records] == [(1, "T", "B")]
        assert [(r.section2, r.kind, r.max_score) for r in rows] == [("1", "head", None), ("1.1", "score", 5)]
        assert all(r.id is not None for r in rows)

    def test_round_exists(self, session):
        assert not repo.round_exists(session, 1)
        repo.insert_section_records(session, [SectionRecord(round_id=1, section1=1)])
        assert repo.round_exists(session, 1)
        assert not repo.round_exists(session, 2)

    def test_delete_is_scoped_to_round(self, session):
        repo.insert_detail_rows(
            session,
            [
                FlatRow(round_id=1, section1=1, section2="1", kind="head", text="a"),
                FlatRow(round_id=2, section1=1, section2="1", kind="head", text="b"),
            ],
        )
        assert repo.delete_detail_rows(session, 1) == 1
        assert [r.round_id for r in repo.get_detail_rows(session, 2)] == [2]


class TestAggregateRepository:
    """Test aggregate and directory reads."""

    def test_aggregate_rows_by_dimension(self, session):
        session.add(AvgMajor(around_id=1, question_id=10, major_id=3, total_score=8, respondent_count=2))
        session.add(AvgMajor(around_id=2, question_id=10, major_id=3, total_score=1, respondent_count=1))
        session.commit()

        rows = repo.get_aggregate_rows(session, 1, "major")

        assert [(r.question_id, r.entity_id, r.total_score, r.respondent_count) for r in rows] == [
            (10, 3, 8.0, 2)
        ]
        assert repo.get_aggregate_rows(session, 1, "faculty") == []

    def test_entity_directory_parents(self, session):
        session.add(Faculty(id=1, faculty_name="Science"))
        session.flush()
        session.add(Major(id=2, major_name="Physics", faculty_id=1))
        session.flush()
        session.add(Teacher(id=3, teacher_name="Somchai", major_id=2))
        session.commit()

        assert repo.get_entity_directory(session, "faculty")[1].parent_id is None
        assert repo.get_entity_directory(session, "major")[2].parent_id == 1
        teacher = repo.get_entity_directory(session, "teacher")[3]
        assert (teacher.name, teacher.parent_id) == ("Somchai", 2)
