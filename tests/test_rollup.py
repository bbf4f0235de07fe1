"""Tests for the weighted score rollup.

Every average is sum(total_score) / sum(respondent_count), never a mean
of per-row averages.
"""

import pytest

from evalround.aggregation.rollup import (
    compute_statistics,
    rank_entities,
    split_strengths_weaknesses,
    valid_questions,
    weighted_average,
)
from evalround.codec.questionnaire import decode
from evalround.models.domain import AggregateRow, FlatRow, SectionRecord
from evalround.models.types import QuestionStat

ROUND_ID = 25671


def _row(row_id, section1, section2, kind, text="") -> FlatRow:
    return FlatRow(
        id=row_id,
        round_id=ROUND_ID,
        section1=section1,
        section2=section2,
        kind=kind,
        text=text,
    )


def _agg(question_id, entity_id, total, count) -> AggregateRow:
    return AggregateRow(
        question_id=question_id,
        entity_id=entity_id,
        total_score=total,
        respondent_count=count,
    )


@pytest.fixture
def tree():
    """Two domains: topic 1 (two scale, one text) and topic 2 (one scale)."""
    rows = [
        _row(1, 1, "1", "head", "Teaching"),
        _row(2, 1, "1.1", "score", "Prepares lessons"),
        _row(3, 1, "1.2", "score", "Explains clearly"),
        _row(4, 1, "1.3", "text", "Comments"),
        _row(5, 1, "2", "head", ""),
        _row(6, 1, "2.1", "score", "Punctual"),
    ]
    records = [SectionRecord(round_id=ROUND_ID, section1=1, title="Part A")]
    return decode(rows, records)


class TestWeightedAverage:
    """Test the zero-safe weighted average."""

    def test_divides(self):
        assert weighted_average(9.0, 2) == 4.5

    def test_zero_count_is_zero(self):
        assert weighted_average(0.0, 0) == 0.0


class TestValidQuestions:
    """Only Scale leaves with ids contribute."""

    def test_scale_leaves_only(self, tree):
        assert list(valid_questions(tree)) == [2, 3, 6]


class TestQuestionAndDomainAverages:
    """Test question and domain statistics."""

    def test_domain_average_is_weighted(self, tree):
        """12/3 and 4/4 in one domain average to 16/7, not 2.5."""
        rows = [_agg(2, 10, 12.0, 3), _agg(3, 10, 4.0, 4)]

        stats = compute_statistics(tree, rows)

        assert stats.domain_average(1) == pytest.approx(16 / 7)
        assert stats.domain_average(1) != pytest.approx(2.5)
        assert stats.question_average(2) == pytest.approx(4.0)
        assert stats.question_average(3) == pytest.approx(1.0)

    def test_question_without_rows_is_zero(self, tree):
        stats = compute_statistics(tree, [_agg(2, 10, 12.0, 3)])

        assert stats.question_average(6) == 0.0
        assert stats.domain_average(2) == 0.0
        q6 = next(q for q in stats.questions if q.question_id == 6)
        assert q6.respondent_count == 0

    def test_unknown_question_average_is_zero(self, tree):
        stats = compute_statistics(tree, [])
        assert stats.question_average(999) == 0.0

    def test_text_and_unknown_questions_ignored(self, tree):
        rows = [
            _agg(2, 10, 8.0, 2),
            _agg(4, 10, 100.0, 1),
            _agg(99, 10, 100.0, 1),
        ]
        stats = compute_statistics(tree, rows)

        assert stats.overall_average == pytest.approx(4.0)
        assert stats.respondent_total == 2

    def test_questions_listed_in_tree_order(self, tree):
        stats = compute_statistics(tree, [])
        assert [(q.question_id, q.position, q.domain_key) for q in stats.questions] == [
            (2, "1.1", 1),
            (3, "1.2", 1),
            (6, "2.1", 2),
        ]

    def test_domain_names(self, tree):
        """Head text first, then the section title."""
        stats = compute_statistics(tree, [])

        assert [(d.domain_key, d.name, d.label) for d in stats.domains] == [
            (1, "Teaching", "ด้านที่ 1"),
            (2, "Part A", "ด้านที่ 2"),
        ]

    def test_domain_name_synthesized_without_titles(self):
        tree = decode([_row(1, 1, "3", "head", ""), _row(2, 1, "3.1", "score", "q")])
        stats = compute_statistics(tree, [])
        assert stats.domains[0].name == "ด้านที่ 3"

    def test_domain_key_uses_leaf_position(self):
        """A fallback-attached leaf reports under its own key."""
        rows = [
            _row(1, 1, "1", "head", "First"),
            _row(2, 1, "4.1", "score", "q"),
        ]
        tree = decode(rows)
        stats = compute_statistics(tree, [_agg(2, 1, 3.0, 1)])

        assert [d.domain_key for d in stats.domains] == [4]
        assert stats.domain_average(4) == pytest.approx(3.0)


class TestOverall:
    """Test the overall weighted average."""

    def test_overall_is_weighted(self, tree):
        rows = [_agg(2, 10, 12.0, 3), _agg(3, 10, 4.0, 4), _agg(6, 11, 10.0, 2)]
        stats = compute_statistics(tree, rows)

        assert stats.overall_average == pytest.approx(26 / 9)
        assert stats.total_score == pytest.approx(26.0)
        assert stats.respondent_total == 9

    def test_empty_rows(self, tree):
        stats = compute_statistics(tree, [])
        assert stats.overall_average == 0.0
        assert stats.entity_ranking == []

    def test_entity_filter(self, tree):
        rows = [_agg(2, 10, 12.0, 3), _agg(2, 11, 2.0, 2)]
        stats = compute_statistics(tree, rows, entity_id=11)

        assert stats.entity_id == 11
        assert stats.overall_average == pytest.approx(1.0)
        assert [e.entity_id for e in stats.entity_ranking] == [11]


class TestEntityRanking:
    """Test ranking of entities by weighted average."""

    def test_ties_keep_first_seen_order(self, tree):
        rows = [
            _agg(2, 1, 9.0, 2),
            _agg(2, 2, 6.0, 2),
            _agg(2, 3, 9.0, 2),
        ]
        ranking = rank_entities(
            tree, rows, entity_names={1: "Science", 2: "Arts", 3: "Education"}
        )

        assert [e.average for e in ranking] == [4.5, 4.5, 3.0]
        assert [e.name for e in ranking] == ["Science", "Education", "Arts"]

    def test_entity_average_is_weighted_across_questions(self, tree):
        rows = [_agg(2, 1, 12.0, 3), _agg(6, 1, 4.0, 4)]
        ranking = rank_entities(tree, rows)
        assert ranking[0].average == pytest.approx(16 / 7)
        assert ranking[0].respondent_count == 7

    def test_unnamed_entities_get_synthesized_names(self, tree):
        ranking = rank_entities(tree, [_agg(2, 3, 4.0, 1)], entity_label="Faculty")
        assert ranking[0].name == "Faculty 3"

    def test_current_entity_is_flagged(self, tree):
        rows = [_agg(2, 1, 4.0, 1), _agg(2, 2, 5.0, 1)]
        ranking = rank_entities(tree, rows, current_entity_id=1)
        assert [(e.entity_id, e.is_current) for e in ranking] == [(2, False), (1, True)]

    def test_invalid_questions_do_not_create_entities(self, tree):
        ranking = rank_entities(tree, [_agg(4, 1, 4.0, 1)])
        assert ranking == []


def _question(question_id: int, average: float) -> QuestionStat:
    return QuestionStat(
        question_id=question_id,
        section1=1,
        position=f"1.{question_id}",
        domain_key=1,
        domain="d",
        text=f"q{question_id}",
        average=average,
        total_score=average,
        respondent_count=1,
    )


class TestStrengthsWeaknesses:
    """Test top/bottom question selection."""

    def test_top_and_bottom_three(self):
        questions = [_question(i, avg) for i, avg in enumerate([3.0, 4.8, 2.1, 4.0, 1.5], start=1)]

        strengths, weaknesses = split_strengths_weaknesses(questions)

        assert [q.average for q in strengths] == [4.8, 4.0, 3.0]
        assert [q.average for q in weaknesses] == [1.5, 2.1, 3.0]

    def test_fewer_than_three_not_padded(self):
        questions = [_question(1, 2.0), _question(2, 4.0)]

        strengths, weaknesses = split_strengths_weaknesses(questions)

        assert [q.question_id for q in strengths] == [2, 1]
        assert [q.question_id for q in weaknesses] == [1, 2]

    def test_empty(self):
        assert split_strengths_weaknesses([]) == ([], [])

    def test_statistics_carry_highlights(self, tree):
        rows = [_agg(2, 1, 5.0, 1), _agg(3, 1, 3.0, 1), _agg(6, 1, 4.0, 1)]
        stats = compute_statistics(tree, rows)

        assert [q.question_id for q in stats.strengths] == [2, 6, 3]
        assert [q.question_id for q in stats.weaknesses] == [3, 6, 2]
