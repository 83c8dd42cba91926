from datetime import UTC, datetime

from fastapi import APIRouter, HTTPException, Query, Response

from ..models.review import (
    CardScheduleResponse,
    DirectionSchedule,
    DueCardsResponse,
    DueCountsResponse,
    PracticeDirection,
    ReviewGradeRequest,
    ReviewGradeResponse,
)
from ..srs import is_due
from ..store import store

router = APIRouter(tags=["review"])


@router.post("/grade", response_model=ReviewGradeResponse, summary="採点して次回出題時刻を更新")
async def review_grade(req: ReviewGradeRequest) -> ReviewGradeResponse:
    """Grade a card in one direction and return its next state and due time."""
    outcome = store.apply_review(req.card_id, req.direction, req.difficulty)
    return ReviewGradeResponse(
        card_id=req.card_id,
        direction=req.direction,
        difficulty=outcome.difficulty,
        quality=outcome.quality,
        state=outcome.next_state,
        next_review=outcome.next_review_at,
    )


@router.get("/cards/{card_id}", response_model=CardScheduleResponse, summary="カードの方向別スケジュール")
async def review_card(card_id: str) -> CardScheduleResponse:
    """Return both directions of a card. 未採点の方向は state=None, due=True。"""
    now = datetime.now(UTC)
    schedule = store.get(card_id)
    directions = {
        direction: DirectionSchedule(
            state=schedule.state_for(direction),
            next_review=schedule.next_review_for(direction),
            due=is_due(schedule.next_review_for(direction), now),
        )
        for direction in PracticeDirection
    }
    return CardScheduleResponse(card_id=card_id, directions=directions)


@router.delete("/cards/{card_id}", status_code=204, summary="カードのスケジュールを削除")
async def review_delete_card(card_id: str) -> Response:
    if not store.delete_card(card_id):
        raise HTTPException(status_code=404, detail="card not found")
    return Response(status_code=204)


@router.get("/due", response_model=DueCountsResponse, summary="方向別の出題待ち件数")
async def review_due_counts(card_id: list[str] = Query(default=[])) -> DueCountsResponse:
    """Count due cards per direction among the given card ids."""
    counts = store.due_counts(card_id)
    return DueCountsResponse(counts=counts, total=sum(counts.values()))


@router.get("/due/{direction}", response_model=DueCardsResponse, summary="指定方向の出題待ちカード")
async def review_due_cards(
    direction: PracticeDirection,
    card_id: list[str] = Query(default=[]),
    limit: int | None = Query(default=None, ge=1),
) -> DueCardsResponse:
    """Return due card ids for one direction, in the order they were given."""
    due = store.due_cards(card_id, direction, limit=limit)
    return DueCardsResponse(direction=direction, card_ids=due)
