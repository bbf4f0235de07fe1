"""Rounds API endpoints.

GET    /api/rounds/{round_id}/tree  - Get decoded questionnaire
POST   /api/rounds                  - Create a round
PUT    /api/rounds/{round_id}/tree  - Replace a round's questionnaire
DELETE /api/rounds/{round_id}       - Delete a round's questionnaire
POST   /api/rounds/{round_id}/clone - Create a new round from this one
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from evalround.api.app import get_db_session
from evalround.core.errors import (
    DuplicateRoundError,
    ReplaceIncompleteError,
    RoundError,
    RoundNotFoundError,
    SchemaTypeMismatchError,
    StructuralConflictError,
)
from evalround.core.round_id import compose_round_id, format_round_label
from evalround.db.repo import DbSession
from evalround.models.domain import (
    LeafItem,
    QuestionnaireTree,
    RoundSettings,
    RowKind,
    Section,
    SectionKind,
    Topic,
)
from evalround.models.types import (
    CloneRequest,
    DroppedRowDetail,
    LeafItemPayload,
    RoundSubmission,
    RoundTree,
    SaveResultDetail,
    SectionPayload,
    TopicPayload,
)
from evalround.service.rounds import RoundService, SaveResult

router = APIRouter()

_ERROR_STATUS: list[tuple[type[RoundError], int]] = [
    (RoundNotFoundError, 404),
    (DuplicateRoundError, 409),
    (StructuralConflictError, 409),
    (SchemaTypeMismatchError, 422),
    (ReplaceIncompleteError, 500),
]


def _status_code(error: RoundError) -> int:
    for error_type, status_code in _ERROR_STATUS:
        if isinstance(error, error_type):
            return status_code
    return 500


def _http_error(error: RoundError) -> HTTPException:
    """Map a round error to an HTTP error with an actionable message.

    An incomplete replace takes the status of its cause when the cause is
    itself a round error, so a rejected "N.M" position still reads as 422.
    The message always says the round was cleared.
    """
    status_code = _status_code(error)
    if isinstance(error, ReplaceIncompleteError) and isinstance(error.cause, RoundError):
        status_code = _status_code(error.cause)
    return HTTPException(status_code=status_code, detail=str(error))


def _resolve_round_id(
    round_id: int | None, academic_year: int | None, term: int | None
) -> int:
    """Round id from an explicit id or from academic year and term."""
    if round_id is not None:
        return round_id
    if academic_year is None or term is None:
        raise HTTPException(
            status_code=422, detail="Provide round_id or both academic_year and term"
        )
    try:
        return compose_round_id(academic_year, term)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e


# ============================================================================
# Converters: payload <-> domain
# ============================================================================


def _leaf_to_payload(leaf: LeafItem) -> LeafItemPayload:
    return LeafItemPayload(
        kind="scale" if leaf.kind == RowKind.SCALE else "text",
        text=leaf.text,
        id=leaf.id,
        min_score=leaf.min_score,
        max_score=leaf.max_score,
    )


def _tree_to_payload(tree: QuestionnaireTree) -> RoundTree:
    """Build RoundTree from a decoded tree."""
    return RoundTree(
        round_id=tree.round_id,
        label=format_round_label(tree.round_id),
        start_date=tree.start_date,
        end_date=tree.end_date,
        min_score=tree.min_score,
        max_score=tree.max_score,
        sections=[
            SectionPayload(
                kind=section.kind.value,
                title=section.title,
                body=section.body,
                topics=[
                    TopicPayload(
                        text=topic.text,
                        id=topic.id,
                        items=[_leaf_to_payload(leaf) for leaf in topic.items],
                    )
                    for topic in section.topics
                ],
            )
            for section in tree.sections
        ],
        dropped=[
            DroppedRowDetail(
                row_id=d.row.id,
                section1=d.row.section1,
                section2=str(d.row.section2),
                reason=d.reason,
                detail=d.detail,
            )
            for d in tree.dropped
        ],
    )


def _payload_to_sections(payloads: list[SectionPayload]) -> list[Section]:
    """Build domain sections from request payloads."""
    return [
        Section(
            kind=SectionKind(p.kind),
            title=p.title,
            body=p.body,
            topics=[
                Topic(
                    text=t.text,
                    items=[
                        LeafItem(
                            kind=RowKind.SCALE if i.kind == "scale" else RowKind.TEXT,
                            text=i.text,
                        )
                        for i in t.items
                    ],
                )
                for t in p.topics
            ],
        )
        for p in payloads
    ]


def _settings(round_id: int, body: RoundSubmission) -> RoundSettings:
    return RoundSettings(
        round_id=round_id,
        start_date=body.start_date,
        end_date=body.end_date,
        min_score=body.min_score,
        max_score=body.max_score,
    )


def _save_detail(result: SaveResult) -> SaveResultDetail:
    return SaveResultDetail(
        round_id=result.round_id,
        section_count=result.section_count,
        row_count=result.row_count,
        answers_cleared=result.answers_cleared,
    )


# ============================================================================
# Endpoints
# ============================================================================


@router.get("/rounds/{round_id}/tree", response_model=RoundTree)
def get_round_tree(
    round_id: int,
    session: DbSession = Depends(get_db_session),
) -> RoundTree:
    """Get the decoded questionnaire of a round.

    Raises:
        HTTPException: 404 if the round has no sections.
    """
    tree = RoundService(session).load_tree(round_id)
    if not tree.sections:
        raise HTTPException(status_code=404, detail="Round not found")
    return _tree_to_payload(tree)


@router.post("/rounds", response_model=SaveResultDetail, status_code=201)
def create_round(
    body: RoundSubmission,
    session: DbSession = Depends(get_db_session),
) -> SaveResultDetail:
    """Create a round.

    Raises:
        HTTPException: 409 if the round exists, 422 on invalid input or a
            store column that cannot hold "N.M" positions.
    """
    round_id = _resolve_round_id(body.round_id, body.academic_year, body.term)
    try:
        result = RoundService(session).save_tree(
            _settings(round_id, body), _payload_to_sections(body.sections)
        )
    except RoundError as e:
        raise _http_error(e) from e
    return _save_detail(result)


@router.put("/rounds/{round_id}/tree", response_model=SaveResultDetail)
def replace_round_tree(
    round_id: int,
    body: RoundSubmission,
    clear_answers: bool = False,
    session: DbSession = Depends(get_db_session),
) -> SaveResultDetail:
    """Replace a round's questionnaire wholesale.

    ``clear_answers=true`` deletes every answer of the round first.

    Raises:
        HTTPException: 409 if answers block the replace. If the round was
            cleared but not rewritten, 422 when the store rejected the new
            rows as mistyped and 500 otherwise.
    """
    try:
        result = RoundService(session).save_tree(
            _settings(round_id, body),
            _payload_to_sections(body.sections),
            replace=True,
            clear_answers=clear_answers,
        )
    except RoundError as e:
        raise _http_error(e) from e
    return _save_detail(result)


@router.delete("/rounds/{round_id}", status_code=204)
def delete_round(
    round_id: int,
    session: DbSession = Depends(get_db_session),
) -> None:
    """Delete a round's questionnaire."""
    try:
        RoundService(session).delete_round(round_id)
    except RoundError as e:
        raise _http_error(e) from e


@router.post("/rounds/{round_id}/clone", response_model=SaveResultDetail, status_code=201)
def clone_round(
    round_id: int,
    body: CloneRequest,
    session: DbSession = Depends(get_db_session),
) -> SaveResultDetail:
    """Create a new round with this round's questionnaire."""
    target_id = _resolve_round_id(body.round_id, body.academic_year, body.term)
    target = RoundSettings(
        round_id=target_id, start_date=body.start_date, end_date=body.end_date
    )
    try:
        result = RoundService(session).clone_round(round_id, target)
    except RoundError as e:
        raise _http_error(e) from e
    return _save_detail(result)
