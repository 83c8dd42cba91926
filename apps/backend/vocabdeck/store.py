from __future__ import annotations

import threading
from collections.abc import Iterable
from contextlib import ExitStack
from datetime import UTC, datetime

from .logging import logger
from .models.review import (
    CardSchedule,
    DifficultyLevel,
    PracticeDirection,
    ReviewOutcome,
)
from .srs import compute_next_review, is_due, to_difficulty


class ReviewStateStore:
    """In-process store of per-card, per-direction scheduling records.

    - 読み取り→計算→書き込みは (card_id, direction) 単位のロックで直列化する
    - 片方向の採点はもう片方向のレコードを変更しない
    - 未採点のカードは両方向とも即時出題対象として扱う
    """

    def __init__(self) -> None:
        self._records: dict[str, CardSchedule] = {}
        self._locks: dict[tuple[str, PracticeDirection], threading.Lock] = {}
        self._lock = threading.Lock()

    def _key_lock(self, card_id: str, direction: PracticeDirection) -> threading.Lock:
        with self._lock:
            key = (card_id, direction)
            if key not in self._locks:
                self._locks[key] = threading.Lock()
            return self._locks[key]

    # --- public API ---
    def get(self, card_id: str) -> CardSchedule:
        """Return a detached copy of the card's record; edits do not reach the store."""
        with self._lock:
            schedule = self._records.get(card_id)
            if schedule is None:
                return CardSchedule()
            return schedule.model_copy(deep=True)

    def put(self, card_id: str, schedule: CardSchedule) -> None:
        """Replace a card's record wholesale, e.g. when importing existing data."""
        with self._lock:
            self._records[card_id] = schedule.model_copy(deep=True)

    def apply_review(
        self,
        card_id: str,
        direction: PracticeDirection,
        difficulty: DifficultyLevel | str,
        now: datetime | None = None,
    ) -> ReviewOutcome:
        """Grade a card in one direction and persist the result."""
        level = to_difficulty(difficulty)
        reviewed_at = now or datetime.now(UTC)
        with self._key_lock(card_id, direction):
            current = self.get(card_id)
            outcome = compute_next_review(current.state_for(direction), level, reviewed_at)
            # 最新レコードに対象方向だけを差し込む
            with self._lock:
                latest = self._records.get(card_id) or CardSchedule()
                self._records[card_id] = latest.with_outcome(direction, outcome)
        logger.info(
            "review_graded",
            card_id=card_id,
            direction=direction.value,
            difficulty=level.value,
            quality=outcome.quality,
            interval_days=outcome.next_state.interval,
            repetitions=outcome.next_state.repetitions,
            ease_factor=outcome.next_state.ease_factor,
            next_review_at=outcome.next_review_at.isoformat(),
        )
        return outcome

    def delete_card(self, card_id: str) -> bool:
        """カードの両方向のスケジュールを削除する。存在しない場合 False。

        両方向のロックを PracticeDirection の定義順に保持した状態で削除する。
        ロック順は apply_review と同じ（方向ロック → レジストリロック）。
        """
        key_locks = [self._key_lock(card_id, direction) for direction in PracticeDirection]
        with ExitStack() as stack:
            for key_lock in key_locks:
                stack.enter_context(key_lock)
            with self._lock:
                removed = self._records.pop(card_id, None)
        if removed is not None:
            logger.info("review_card_deleted", card_id=card_id)
        return removed is not None

    # --- due queries ---
    def due_counts(
        self, card_ids: Iterable[str], now: datetime | None = None
    ) -> dict[PracticeDirection, int]:
        at = now or datetime.now(UTC)
        counts = {direction: 0 for direction in PracticeDirection}
        for card_id in card_ids:
            schedule = self.get(card_id)
            for direction in PracticeDirection:
                if is_due(schedule.next_review_for(direction), at):
                    counts[direction] += 1
        return counts

    def due_cards(
        self,
        card_ids: Iterable[str],
        direction: PracticeDirection,
        now: datetime | None = None,
        limit: int | None = None,
    ) -> list[str]:
        """Return due card ids for a direction, preserving input order."""
        at = now or datetime.now(UTC)
        due: list[str] = []
        for card_id in card_ids:
            if limit is not None and len(due) >= limit:
                break
            if is_due(self.get(card_id).next_review_for(direction), at):
                due.append(card_id)
        return due

    def reset(self) -> None:
        with self._lock:
            self._records.clear()
            self._locks.clear()


# module-level singleton store
store = ReviewStateStore()
