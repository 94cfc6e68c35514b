"""Errors - exception hierarchy for the geocoin core.

Only ``CorruptStateError`` is expected to reach callers in normal play;
the engine recovers from it by starting a fresh session.
``InsufficientFundsError`` is raised by the low-level counters and
caught at the engine's mutation boundary, where the move is refused.
"""

from __future__ import annotations


class GeocoinError(Exception):
    """Base class for all geocoin errors."""


class CorruptStateError(GeocoinError):
    """A persisted blob does not parse as a saved game."""


class InsufficientFundsError(GeocoinError):
    """A withdrawal would drive a coin counter below zero.

    Attributes:
        requested: Number of coins the caller asked for.
        available: Number of coins actually held.
    """

    def __init__(self, requested: int, available: int) -> None:
        super().__init__(f"requested {requested} coins, only {available} available")
        self.requested = requested
        self.available = available


class UnknownCellError(GeocoinError):
    """A cell was referenced that has no cache or no valid key."""
