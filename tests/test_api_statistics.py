"""Tests for statistics API endpoints."""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from evalround.db import repo
from evalround.db.schema import AssessmentAnswer, AvgFaculty, AvgTeacher, Base, Faculty
from evalround.db.session import enable_sqlite_foreign_keys
from evalround.models.domain import LeafItem, RoundSettings, RowKind, Section, SectionKind, Topic
from evalround.service.rounds import RoundService

ROUND_ID = 25671


def create_test_app_and_client():
    """Create app with test database and return (client, engine)."""
    from evalround.api.app import create_app, get_db_session

    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(engine)
    Base.metadata.create_all(engine)

    app = create_app()

    def override_get_db():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_db_session] = override_get_db
    client = TestClient(app)

    return client, engine


def setup_test_data(engine) -> dict[str, int]:
    """Store a one-section round with aggregates. Returns ids by position."""
    sections = [
        Section(
            kind=SectionKind.QUESTIONS,
            title="Teaching",
            topics=[
                Topic(
                    text="Preparation",
                    items=[
                        LeafItem(kind=RowKind.SCALE, text="Prepares lessons"),
                        LeafItem(kind=RowKind.SCALE, text="Uses examples"),
                        LeafItem(kind=RowKind.TEXT, text="Comments"),
                    ],
                )
            ],
        )
    ]
    with Session(engine) as session:
        RoundService(session).save_tree(RoundSettings(ROUND_ID, min_score=1, max_score=5), sections)
        ids = {row.section2: row.id for row in repo.get_detail_rows(session, ROUND_ID)}
        session.add_all(
            [
                Faculty(id=1, faculty_name="Science"),
                AvgFaculty(around_id=ROUND_ID, question_id=ids["1.1"], faculty_id=1, total_score=12, respondent_count=3),
                AvgFaculty(around_id=ROUND_ID, question_id=ids["1.2"], faculty_id=1, total_score=4, respondent_count=4),
                AvgTeacher(around_id=ROUND_ID, question_id=ids["1.1"], teacher_id=7, total_score=9, respondent_count=2),
                AssessmentAnswer(around_id=ROUND_ID, question_id=ids["1.3"], teacher_id=7, text_value="Very clear"),
            ]
        )
        session.commit()
    return ids


class TestStatisticsEndpoint:
    """Test GET /api/rounds/{round_id}/statistics."""

    def test_weighted_domain_average(self):
        client, engine = create_test_app_and_client()
        setup_test_data(engine)

        response = client.get(f"/api/rounds/{ROUND_ID}/statistics")

        assert response.status_code == 200
        data = response.json()
        assert data["dimension"] == "faculty"
        assert data["domains"][0]["average"] == pytest.approx(16 / 7)
        assert data["domains"][0]["name"] == "Preparation"
        assert data["entity_ranking"][0]["name"] == "Science"

    def test_strengths_and_weaknesses(self):
        client, engine = create_test_app_and_client()
        ids = setup_test_data(engine)

        data = client.get(f"/api/rounds/{ROUND_ID}/statistics").json()

        assert [q["question_id"] for q in data["strengths"]] == [ids["1.1"], ids["1.2"]]
        assert [q["question_id"] for q in data["weaknesses"]] == [ids["1.2"], ids["1.1"]]

    def test_teacher_dimension_with_unnamed_entity(self):
        client, engine = create_test_app_and_client()
        setup_test_data(engine)

        data = client.get(
            f"/api/rounds/{ROUND_ID}/statistics", params={"dimension": "teacher", "entity_id": 7}
        ).json()

        assert data["overall_average"] == pytest.approx(4.5)
        assert data["entity_ranking"][0]["name"] == "Teacher 7"
        assert data["participation"]["teachers_participated"] == 1
        assert data["participation"]["students_participated"] == 0

    def test_unknown_dimension_returns_422(self):
        client, _ = create_test_app_and_client()
        response = client.get(f"/api/rounds/{ROUND_ID}/statistics", params={"dimension": "campus"})
        assert response.status_code == 422

    def test_unknown_round_has_zero_averages(self):
        client, _ = create_test_app_and_client()

        data = client.get("/api/rounds/99999/statistics").json()

        assert data["overall_average"] == 0.0
        assert data["questions"] == []


class TestFeedbackEndpoint:
    """Test GET /api/rounds/{round_id}/feedback."""

    def test_groups_teacher_comments(self):
        client, engine = create_test_app_and_client()
        setup_test_data(engine)

        response = client.get(f"/api/rounds/{ROUND_ID}/feedback", params={"teacher_id": 7})

        assert response.status_code == 200
        assert response.json() == [
            {
                "question_id": response.json()[0]["question_id"],
                "question_text": "Comments",
                "position": "1.3",
                "comments": ["Very clear"],
            }
        ]

    def test_teacher_id_required(self):
        client, _ = create_test_app_and_client()
        assert client.get(f"/api/rounds/{ROUND_ID}/feedback").status_code == 422
