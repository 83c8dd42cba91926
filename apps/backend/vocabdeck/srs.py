"""Spaced-repetition scheduler (SM-2 variant).

難易度ラベル（hard/ok/good/perfect）を 0-5 の品質値へ写像し、
方向ごとの SM-2 パラメータと次回出題時刻を計算する純粋関数群。
現在時刻は引数 `now` で受け取り、時計には一切アクセスしない。

- quality < 3 は lapse（repetitions/interval を 0 に戻す）
- 1 回目・2 回目の合格は固定テーブル、3 回目以降は ease_factor と品質係数で伸長
- ease_factor は lapse を含め毎回更新し、下限 1.3 で床打ち
- hard の場合のみ次回出題を 1 分後に上書き（保存するパラメータは計算値のまま）
"""

from __future__ import annotations

import math
from datetime import UTC, datetime, timedelta
from typing import Any

from .models.review import DifficultyLevel, ReviewOutcome, SchedulingState


DEFAULT_EASE_FACTOR = 2.5
MIN_EASE_FACTOR = 1.3
PASS_THRESHOLD = 3
MAX_QUALITY = 5

MS_PER_DAY = 86_400_000
HARD_RETRY_DELAY_MS = 60_000
LATEST_REVIEW_AT = datetime.max.replace(tzinfo=UTC)

DIFFICULTY_TO_QUALITY: dict[DifficultyLevel, int] = {
    DifficultyLevel.hard: 1,
    DifficultyLevel.ok: 3,
    DifficultyLevel.good: 4,
    DifficultyLevel.perfect: 5,
}

# 合格回数 1 回目・2 回目の間隔（日）。品質値ごとの固定値。
FIRST_PASS_INTERVALS: dict[int, float] = {3: 0.021, 4: 0.083, 5: 0.33}
SECOND_PASS_INTERVALS: dict[int, float] = {3: 0.083, 4: 0.33, 5: 1.0}
QUALITY_FACTORS: dict[int, float] = {3: 0.5, 4: 1.0, 5: 1.5}

DEFAULT_STATE = SchedulingState(
    ease_factor=DEFAULT_EASE_FACTOR, interval=0.0, repetitions=0
)


class UnknownDifficultyError(ValueError):
    """Raised when a difficulty label has no quality mapping."""

    def __init__(self, label: object) -> None:
        super().__init__(f"unknown difficulty label: {label!r}")
        self.label = label


def _normalize_non_negative_int(value: Any) -> int:
    """与えられた値を非負整数に正規化する。"""

    try:
        ivalue = int(value)
    except (TypeError, ValueError):
        return 0
    return ivalue if ivalue >= 0 else 0


def _normalize_non_negative_float(value: Any) -> float:
    try:
        fvalue = float(value)
    except (TypeError, ValueError):
        return 0.0
    if fvalue != fvalue or fvalue < 0:  # NaN or negative
        return 0.0
    return fvalue


def to_difficulty(value: DifficultyLevel | str) -> DifficultyLevel:
    if isinstance(value, DifficultyLevel):
        return value
    try:
        return DifficultyLevel(value)
    except ValueError:
        raise UnknownDifficultyError(value) from None


def quality_for(difficulty: DifficultyLevel | str) -> int:
    """Map a difficulty label onto the 0-5 quality scale."""
    return DIFFICULTY_TO_QUALITY[to_difficulty(difficulty)]


def resolve_state(state: SchedulingState | None) -> SchedulingState:
    """Return the default state for `None`, otherwise a sanitized copy.

    破損したレコード（ease_factor < 1.3 や負の repetitions/interval）は
    計算前に下限へ矯正する。
    """
    if state is None:
        return DEFAULT_STATE
    try:
        ease = float(state.ease_factor)
    except (TypeError, ValueError):
        ease = DEFAULT_EASE_FACTOR
    if not math.isfinite(ease):
        ease = DEFAULT_EASE_FACTOR
    return SchedulingState(
        ease_factor=max(MIN_EASE_FACTOR, ease),
        interval=_normalize_non_negative_float(state.interval),
        repetitions=_normalize_non_negative_int(state.repetitions),
    )


def next_ease_factor(ease_factor: float, quality: int) -> float:
    miss = MAX_QUALITY - quality
    return max(MIN_EASE_FACTOR, ease_factor + (0.1 - miss * (0.08 + miss * 0.02)))


def next_interval(state: SchedulingState, quality: int) -> tuple[float, int]:
    """Return (interval_days, repetitions) after a review of the given quality."""
    if quality < PASS_THRESHOLD:
        return 0.0, 0
    repetitions = state.repetitions + 1
    if repetitions == 1:
        return FIRST_PASS_INTERVALS[quality], repetitions
    if repetitions == 2:
        return SECOND_PASS_INTERVALS[quality], repetitions
    return state.interval * state.ease_factor * QUALITY_FACTORS[quality], repetitions


def _as_utc(now: datetime) -> datetime:
    if now.tzinfo is None:
        return now.replace(tzinfo=UTC)
    return now.astimezone(UTC)


def compute_next_review(
    state: SchedulingState | None,
    difficulty: DifficultyLevel | str,
    now: datetime,
) -> ReviewOutcome:
    """Grade one card in one direction and return its next state and due time.

    `state` が None の場合は初期状態（2.5 / 0 / 0）として扱う。
    naive な `now` は UTC とみなす。
    """
    level = to_difficulty(difficulty)
    quality = DIFFICULTY_TO_QUALITY[level]
    current = resolve_state(state)

    interval, repetitions = next_interval(current, quality)
    ease_factor = next_ease_factor(current.ease_factor, quality)
    next_state = SchedulingState(
        ease_factor=ease_factor, interval=interval, repetitions=repetitions
    )

    reviewed_at = _as_utc(now)
    if level is DifficultyLevel.hard:
        delay_ms = float(HARD_RETRY_DELAY_MS)
    else:
        delay_ms = interval * MS_PER_DAY
    try:
        next_review_at = reviewed_at + timedelta(milliseconds=delay_ms)
    except OverflowError:
        # datetime の表現範囲を超える間隔は上限時刻に丸める
        next_review_at = LATEST_REVIEW_AT

    return ReviewOutcome(
        difficulty=level,
        quality=quality,
        next_state=next_state,
        next_review_at=next_review_at,
    )


def is_due(next_review_at: datetime | None, now: datetime) -> bool:
    """A card with no next review time, or one at/before `now`, is due."""
    if next_review_at is None:
        return True
    return _as_utc(next_review_at) <= _as_utc(now)

