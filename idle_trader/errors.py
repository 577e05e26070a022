"""Custom exceptions for Idle Trader."""

from __future__ import annotations


class IdleTraderError(Exception):
    """Base error for game failures that callers may recover from."""


class PersistenceError(IdleTraderError):
    """Raised when the persistence gateway cannot load or save a game."""

    def __init__(self, message: str, *, user_id: str | None = None) -> None:
        super().__init__(message)
        self.user_id = user_id


class GameStateCorruptError(PersistenceError):
    """Raised when a stored document cannot be repaired into a valid game state."""
