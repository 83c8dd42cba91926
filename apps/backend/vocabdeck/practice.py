"""Practice session orchestration.

練習セッションは開始時点で出題対象（due）のカードを固定し、
採点・スキップ・戻る・削除の操作で進捗を管理する。採点結果は
`ReviewStateStore` に書き込まれ、hard のカードは 1 分後に再び due になる。
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import UTC, datetime

from .config import settings
from .logging import logger
from .models.review import DifficultyLevel, PracticeDirection, ReviewOutcome
from .store import ReviewStateStore


class PracticeSessionComplete(RuntimeError):
    """Raised when grading is attempted after the last card."""


class PracticeSession:
    def __init__(
        self,
        deck: Sequence[str],
        store: ReviewStateStore,
        direction: PracticeDirection | None = None,
        *,
        now: datetime | None = None,
        limit: int | None = None,
    ) -> None:
        self.deck = list(deck)
        self.direction = direction or settings.default_direction
        self.store = store
        if limit is None:
            limit = settings.practice_session_limit
        if limit < 0:
            raise ValueError("limit must be >= 0")
        # 0 は無制限
        self.limit = limit or None
        self.cards: list[str] = []
        self.index = 0
        self.completed = 0
        self._processed: list[bool] = []
        self.restart(now=now)

    # --- state ---
    @property
    def total(self) -> int:
        return len(self.cards)

    @property
    def is_complete(self) -> bool:
        return self.index >= len(self.cards)

    @property
    def current(self) -> str | None:
        if self.is_complete:
            return None
        return self.cards[self.index]

    @property
    def progress(self) -> float:
        if not self.cards:
            return 0.0
        return self.completed / len(self.cards)

    # --- operations ---
    def restart(self, now: datetime | None = None) -> None:
        """Take a fresh snapshot of due cards and clear progress."""
        at = now or datetime.now(UTC)
        self.cards = self.store.due_cards(self.deck, self.direction, now=at, limit=self.limit)
        self.index = 0
        self.completed = 0
        self._processed = [False] * len(self.cards)
        logger.info(
            "practice_session_started",
            direction=self.direction.value,
            deck_size=len(self.deck),
            due=len(self.cards),
        )

    def _mark_processed(self) -> None:
        if not self._processed[self.index]:
            self._processed[self.index] = True
            self.completed += 1

    def answer(
        self, difficulty: DifficultyLevel | str, now: datetime | None = None
    ) -> ReviewOutcome:
        card_id = self.current
        if card_id is None:
            raise PracticeSessionComplete("no card left to grade in this session")
        outcome = self.store.apply_review(card_id, self.direction, difficulty, now=now)
        self._mark_processed()
        self.index += 1
        if self.is_complete:
            logger.info(
                "practice_session_complete",
                direction=self.direction.value,
                completed=self.completed,
                total=self.total,
            )
        return outcome

    def skip(self) -> None:
        if self.is_complete:
            return
        self._mark_processed()
        self.index += 1

    def back(self) -> None:
        if self.index == 0:
            return
        self.index -= 1
        if self._processed[self.index]:
            self._processed[self.index] = False
            self.completed = max(0, self.completed - 1)

    def remove_current(self) -> str | None:
        """Drop the current card from the session and delete its schedule."""
        card_id = self.current
        if card_id is None:
            return None
        self.store.delete_card(card_id)
        del self.cards[self.index]
        del self._processed[self.index]
        self.deck = [cid for cid in self.deck if cid != card_id]
        return card_id
