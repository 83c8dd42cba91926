"""Router package exports."""

from . import health, review

__all__ = [
    "health",
    "review",
]
