"""Weighted score rollup.

Computes question, domain, entity, and overall statistics from partial
aggregate rows. Every average is sum(total_score) / sum(respondent_count)
over contributing rows, never a mean of per-row averages, because rows
carry different respondent counts.

Domain logic is pure - database operations go through repo.
"""

from __future__ import annotations

from dataclasses import dataclass

from evalround.core import positional
from evalround.models.domain import (
    AggregateRow,
    LeafItem,
    QuestionnaireTree,
    RowKind,
)
from evalround.models.types import (
    DomainStat,
    EntityScore,
    QuestionStat,
    RoundStatistics,
)

DOMAIN_LABEL = "ด้านที่ {}"
HIGHLIGHT_COUNT = 3


@dataclass
class _Accumulator:
    """Running (sum of scores, sum of respondents)."""

    total: float = 0.0
    count: int = 0

    def add(self, total: float, count: int) -> None:
        self.total += total
        self.count += count

    @property
    def average(self) -> float:
        return weighted_average(self.total, self.count)


def weighted_average(total: float, count: int) -> float:
    """total / count, or 0 when there are no respondents."""
    return total / count if count > 0 else 0.0


def valid_questions(tree: QuestionnaireTree) -> dict[int, LeafItem]:
    """Scale leaves with a persisted id, keyed by id, in tree order."""
    return {
        leaf.id: leaf
        for leaf in tree.leaves()
        if leaf.kind == RowKind.SCALE and leaf.id is not None
    }


def _leaf_domain_key(leaf: LeafItem) -> int:
    return positional.domain_key(leaf.position)


def _domain_name(tree: QuestionnaireTree, section1: int | None, key: int) -> str:
    """Head text at (section1, key), else section title, else a label."""
    for topic in tree.topics():
        if topic.section_ordinal == section1 and topic.topic_ordinal == key and topic.text:
            return topic.text
    for section in tree.sections:
        if section.ordinal == section1:
            if section.title:
                return section.title
            if section.body:
                return section.body
    return DOMAIN_LABEL.format(key)


def rank_entities(
    tree: QuestionnaireTree,
    rows: list[AggregateRow],
    *,
    entity_names: dict[int, str] | None = None,
    entity_label: str = "Entity",
    current_entity_id: int | None = None,
) -> list[EntityScore]:
    """Rank entities by weighted average, highest first.

    Ties keep the order in which entities first appear in ``rows``.

    Args:
        tree: Decoded questionnaire; only its Scale questions count.
        rows: Aggregate rows of the entities to rank.
        entity_names: Display names by entity id.
        entity_label: Prefix for synthesized names of unnamed entities.
        current_entity_id: Entity to flag with ``is_current``.

    Returns:
        EntityScore list sorted by average descending.
    """
    valid = valid_questions(tree)
    names = entity_names or {}
    by_entity: dict[int, _Accumulator] = {}

    for row in rows:
        if row.question_id not in valid:
            continue
        by_entity.setdefault(row.entity_id, _Accumulator()).add(
            row.total_score, row.respondent_count
        )

    scores = [
        EntityScore(
            entity_id=entity_id,
            name=names.get(entity_id) or f"{entity_label} {entity_id}",
            average=acc.average,
            respondent_count=acc.count,
            is_current=entity_id == current_entity_id,
        )
        for entity_id, acc in by_entity.items()
    ]
    return sorted(scores, key=lambda s: s.average, reverse=True)


def split_strengths_weaknesses(
    questions: list[QuestionStat],
    count: int = HIGHLIGHT_COUNT,
) -> tuple[list[QuestionStat], list[QuestionStat]]:
    """Top ``count`` questions and bottom ``count`` questions.

    Weaknesses are the last entries of the descending ranking, reversed
    so the weakest comes first. Fewer questions are returned unpadded.
    """
    ranked = sorted(questions, key=lambda q: q.average, reverse=True)
    strengths = ranked[:count]
    weaknesses = list(reversed(ranked[-count:])) if ranked else []
    return strengths, weaknesses


def compute_statistics(
    tree: QuestionnaireTree,
    rows: list[AggregateRow],
    *,
    entity_names: dict[int, str] | None = None,
    entity_label: str = "Entity",
    entity_id: int | None = None,
) -> RoundStatistics:
    """Compute round statistics from partial aggregate rows.

    Pure function - no database access.

    Args:
        tree: Decoded questionnaire of the round.
        rows: Aggregate rows of one entity dimension.
        entity_names: Display names by entity id.
        entity_label: Prefix for synthesized entity names.
        entity_id: Restrict to this entity's rows when given.

    Returns:
        RoundStatistics with all averages weighted by respondent count.
    """
    if entity_id is not None:
        rows = [row for row in rows if row.entity_id == entity_id]

    valid = valid_questions(tree)
    domain_of: dict[int, int] = {}
    by_domain: dict[int, _Accumulator] = {}
    domain_names: dict[int, str] = {}

    for question_id, leaf in valid.items():
        key = _leaf_domain_key(leaf)
        domain_of[question_id] = key
        by_domain.setdefault(key, _Accumulator())
        domain_names[key] = _domain_name(tree, leaf.section_ordinal, key)

    by_question: dict[int, _Accumulator] = {}
    overall = _Accumulator()

    for row in rows:
        if row.question_id not in valid:
            continue
        by_question.setdefault(row.question_id, _Accumulator()).add(
            row.total_score, row.respondent_count
        )
        by_domain[domain_of[row.question_id]].add(row.total_score, row.respondent_count)
        overall.add(row.total_score, row.respondent_count)

    questions = []
    for question_id, leaf in valid.items():
        acc = by_question.get(question_id, _Accumulator())
        key = domain_of[question_id]
        questions.append(
            QuestionStat(
                question_id=question_id,
                section1=leaf.section_ordinal or 0,
                position=leaf.position or "",
                domain_key=key,
                domain=domain_names[key],
                text=leaf.text,
                average=acc.average,
                total_score=acc.total,
                respondent_count=acc.count,
            )
        )

    domains = [
        DomainStat(
            domain_key=key,
            name=domain_names[key],
            label=DOMAIN_LABEL.format(key),
            average=by_domain[key].average,
            total_score=by_domain[key].total,
            respondent_count=by_domain[key].count,
        )
        for key in sorted(by_domain)
    ]

    strengths, weaknesses = split_strengths_weaknesses(questions)

    return RoundStatistics(
        round_id=tree.round_id,
        entity_id=entity_id,
        overall_average=overall.average,
        total_score=overall.total,
        respondent_total=overall.count,
        questions=questions,
        domains=domains,
        entity_ranking=rank_entities(
            tree, rows, entity_names=entity_names, entity_label=entity_label
        ),
        strengths=strengths,
        weaknesses=weaknesses,
    )
