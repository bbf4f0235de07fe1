"""Pydantic models for the evalround API.

Statistics payloads are produced by aggregation.rollup; tree payloads
mirror models.domain for request/response bodies.
"""

from typing import Literal

from pydantic import BaseModel, Field


# ============================================================================
# Statistics
# ============================================================================


class QuestionStat(BaseModel):
    """Weighted statistics for one Scale question."""

    question_id: int
    section1: int
    position: str
    domain_key: int
    domain: str
    text: str
    average: float
    total_score: float
    respondent_count: int


class DomainStat(BaseModel):
    """Weighted statistics for one reporting domain (topic ordinal)."""

    domain_key: int
    name: str
    label: str
    average: float
    total_score: float
    respondent_count: int


class EntityScore(BaseModel):
    """Weighted average for one faculty, major, or teacher."""

    entity_id: int
    name: str
    average: float
    respondent_count: int
    is_current: bool = False


class Participation(BaseModel):
    """Respondents who answered, against the directory totals in scope.

    Teachers count with any answer; students only with a scored answer.
    """

    teachers_participated: int = 0
    teachers_total: int = 0
    students_participated: int = 0
    students_total: int = 0


class RoundStatistics(BaseModel):
    """Question, domain, entity, and overall statistics for a round."""

    round_id: int | None
    dimension: Literal["faculty", "major", "teacher"] | None = None
    entity_id: int | None = None
    overall_average: float
    total_score: float
    respondent_total: int
    questions: list[QuestionStat]
    domains: list[DomainStat]
    entity_ranking: list[EntityScore]
    strengths: list[QuestionStat]
    weaknesses: list[QuestionStat]
    peers: list[EntityScore] = Field(default_factory=list)
    breakdown: list[EntityScore] = Field(default_factory=list)
    participation: Participation = Field(default_factory=Participation)

    def question_average(self, question_id: int) -> float:
        """Weighted average of a question; 0 when it has no respondents."""
        for question in self.questions:
            if question.question_id == question_id:
                return question.average
        return 0.0

    def domain_average(self, domain_key: int) -> float:
        """Weighted average of a domain; 0 when it has no respondents."""
        for domain in self.domains:
            if domain.domain_key == domain_key:
                return domain.average
        return 0.0


class FeedbackGroup(BaseModel):
    """Open-text comments grouped under their question."""

    question_id: int
    question_text: str
    position: str
    comments: list[str]


# ============================================================================
# Questionnaire tree
# ============================================================================


class LeafItemPayload(BaseModel):
    """A Scale or Text question."""

    kind: Literal["scale", "text"]
    text: str
    id: int | None = None
    min_score: int | None = None
    max_score: int | None = None


class TopicPayload(BaseModel):
    """A topic with its questions."""

    text: str
    items: list[LeafItemPayload] = Field(default_factory=list)
    id: int | None = None


class SectionPayload(BaseModel):
    """A question-bearing or description section."""

    kind: Literal["questions", "description"]
    title: str | None = None
    body: str | None = None
    topics: list[TopicPayload] = Field(default_factory=list)


class DroppedRowDetail(BaseModel):
    """A stored row that could not be placed in the tree."""

    row_id: int | None
    section1: int
    section2: str
    reason: Literal["malformed_position", "orphan_leaf", "unknown_kind"]
    detail: str


class RoundTree(BaseModel):
    """Decoded questionnaire of a round."""

    round_id: int
    label: str
    start_date: str | None
    end_date: str | None
    min_score: int | None
    max_score: int | None
    sections: list[SectionPayload]
    dropped: list[DroppedRowDetail] = Field(default_factory=list)


class RoundSubmission(BaseModel):
    """Request body for creating or replacing a round's questionnaire.

    Either round_id or (academic_year, term) identifies the round.
    """

    round_id: int | None = None
    academic_year: int | None = None
    term: int | None = None
    start_date: str | None = None
    end_date: str | None = None
    min_score: int | None = 1
    max_score: int | None = 5
    sections: list[SectionPayload]


class CloneRequest(BaseModel):
    """Request body for creating a new round from an existing one."""

    round_id: int | None = None
    academic_year: int | None = None
    term: int | None = None
    start_date: str | None = None
    end_date: str | None = None


class SaveResultDetail(BaseModel):
    """Outcome of a structural write."""

    round_id: int
    section_count: int
    row_count: int
    answers_cleared: bool
