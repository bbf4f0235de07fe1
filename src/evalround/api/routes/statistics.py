"""Statistics API endpoints.

GET /api/rounds/{round_id}/statistics - Weighted statistics of a round
GET /api/rounds/{round_id}/feedback   - A teacher's open-text feedback
"""

from __future__ import annotations

from typing import Literal

from fastapi import APIRouter, Depends

from evalround.api.app import get_db_session
from evalround.db.repo import DbSession
from evalround.models.types import FeedbackGroup, RoundStatistics
from evalround.service.rounds import RoundService

router = APIRouter()


@router.get("/rounds/{round_id}/statistics", response_model=RoundStatistics)
def get_round_statistics(
    round_id: int,
    dimension: Literal["faculty", "major", "teacher"] = "faculty",
    entity_id: int | None = None,
    session: DbSession = Depends(get_db_session),
) -> RoundStatistics:
    """Get statistics of a round along one entity dimension.

    An unknown round or a round without aggregates yields zero averages.
    """
    return RoundService(session).load_statistics(round_id, dimension, entity_id)


@router.get("/rounds/{round_id}/feedback", response_model=list[FeedbackGroup])
def get_round_feedback(
    round_id: int,
    teacher_id: int,
    session: DbSession = Depends(get_db_session),
) -> list[FeedbackGroup]:
    """Get a teacher's open-text answers grouped by question."""
    return RoundService(session).load_feedback(round_id, teacher_id)
