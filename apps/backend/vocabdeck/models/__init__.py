"""Pydantic models shared by the scheduler, store and routers."""

from .review import (
    CardSchedule,
    DifficultyLevel,
    PracticeDirection,
    ReviewOutcome,
    SchedulingState,
)

__all__ = [
    "CardSchedule",
    "DifficultyLevel",
    "PracticeDirection",
    "ReviewOutcome",
    "SchedulingState",
]
