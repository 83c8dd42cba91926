from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class PracticeDirection(str, Enum):
    """Practice direction of a card.

    - translateTo: 原語 → 訳語 を思い出す
    - translateFrom: 訳語 → 原語 を思い出す
    2 方向のスケジュールは互いに独立して管理する。
    """

    translate_from = "translateFrom"
    translate_to = "translateTo"


class DifficultyLevel(str, Enum):
    """Self-reported recall difficulty chosen by the learner."""

    hard = "hard"
    ok = "ok"
    good = "good"
    perfect = "perfect"


class SchedulingState(BaseModel):
    """SM-2 parameters of one card in one direction.

    - ease_factor: 間隔の伸び率（下限 1.3、初期値 2.5）
    - interval: 直近に計算した復習間隔（日単位、小数可）
    - repetitions: 連続して合格した回数
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    ease_factor: float = Field(default=2.5, alias="easeFactor")
    interval: float = 0.0
    repetitions: int = 0


class ReviewOutcome(BaseModel):
    """Result of grading one card in one direction."""

    model_config = ConfigDict(frozen=True)

    difficulty: DifficultyLevel
    quality: int
    next_state: SchedulingState
    next_review_at: datetime


class CardSchedule(BaseModel):
    """Per-card scheduling record holding both directions side by side.

    ワイヤ形式は単語レコードの `sm2` / `nextReview` 列と同じ形で、
    方向名をキーにした辞書として保存する。片方向の更新は
    `with_outcome` で行い、もう片方の方向には一切触れない。
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    sm2: dict[PracticeDirection, SchedulingState] = Field(default_factory=dict)
    next_review: dict[PracticeDirection, datetime] = Field(
        default_factory=dict, alias="nextReview"
    )

    def state_for(self, direction: PracticeDirection) -> SchedulingState | None:
        return self.sm2.get(direction)

    def next_review_for(self, direction: PracticeDirection) -> datetime | None:
        return self.next_review.get(direction)

    def with_outcome(self, direction: PracticeDirection, outcome: ReviewOutcome) -> CardSchedule:
        sm2 = dict(self.sm2)
        sm2[direction] = outcome.next_state
        next_review = dict(self.next_review)
        next_review[direction] = outcome.next_review_at
        return CardSchedule(sm2=sm2, next_review=next_review)


class ReviewGradeRequest(BaseModel):
    """Request model for grading a card.

    - card_id: 単語カードの ID
    - direction: 練習方向（translateFrom / translateTo）
    - difficulty: hard | ok | good | perfect
    """

    card_id: str = Field(min_length=1, max_length=128)
    direction: PracticeDirection
    difficulty: DifficultyLevel


class ReviewGradeResponse(BaseModel):
    card_id: str
    direction: PracticeDirection
    difficulty: DifficultyLevel
    quality: int
    state: SchedulingState
    next_review: datetime


class DirectionSchedule(BaseModel):
    state: SchedulingState | None = None
    next_review: datetime | None = None
    due: bool


class CardScheduleResponse(BaseModel):
    """Both directions of a card, as seen at request time."""

    card_id: str
    directions: dict[PracticeDirection, DirectionSchedule]


class DueCountsResponse(BaseModel):
    """方向別の出題待ち件数。未採点カードは両方向とも due として数える。"""

    counts: dict[PracticeDirection, int]
    total: int


class DueCardsResponse(BaseModel):
    direction: PracticeDirection
    card_ids: list[str]
