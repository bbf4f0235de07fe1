"""Open-text feedback grouping.

Groups a teacher's non-empty text answers under the question they
answer, ordered by question position.
"""

from __future__ import annotations

from evalround.core import positional
from evalround.models.domain import AnswerRow, QuestionnaireTree
from evalround.models.types import FeedbackGroup

# Legacy rows store the literal string "NULL" for missing text
NULL_TEXT = "NULL"


def group_feedback(tree: QuestionnaireTree, answers: list[AnswerRow]) -> list[FeedbackGroup]:
    """Group text answers by question.

    Args:
        tree: Decoded questionnaire of the round.
        answers: Answer rows, typically of one teacher.

    Returns:
        FeedbackGroup list sorted by (section1, topic, item).
    """
    leaves = {leaf.id: leaf for leaf in tree.leaves() if leaf.id is not None}
    groups: dict[int, FeedbackGroup] = {}
    sections: dict[int, int] = {}

    for answer in answers:
        text = (answer.text_value or "").strip()
        if not text or text == NULL_TEXT:
            continue

        if answer.question_id not in groups:
            leaf = leaves.get(answer.question_id)
            groups[answer.question_id] = FeedbackGroup(
                question_id=answer.question_id,
                question_text=leaf.text if leaf else f"Question {answer.question_id}",
                position=(leaf.position or "-") if leaf else "-",
                comments=[],
            )
            sections[answer.question_id] = (leaf.section_ordinal or 0) if leaf else 0
        groups[answer.question_id].comments.append(text)

    return sorted(
        groups.values(),
        key=lambda g: positional.sort_key(sections[g.question_id], g.position),
    )
