"""CacheGenerator - decides where caches are and what they start with.

Generation is pure: it reads only the oracle and its own scaling
constants, so any cell can be regenerated at any time with the same
result.  Player-made changes live in ``CacheStateStore``, never here.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field

from geocoin.state.store import CacheRecord
from geocoin.world.cell import Cell, Token
from geocoin.world.oracle import (
    DeterministicOracle,
    coin_count_key,
    existence_key,
    point_value_key,
)


@dataclass
class CacheGenerator:
    """Oracle-driven cache placement and initial economics.

    Attributes:
        spawn_probability: Chance that any given cell holds a cache.
        point_scale: Point values are ``floor(value * point_scale)``.
        coin_scale: Initial coin counts are ``floor(value * coin_scale)``.
        oracle: Source of reproducible randomness.
    """

    spawn_probability: float = 0.1
    point_scale: int = 100
    coin_scale: int = 10
    oracle: DeterministicOracle = field(default_factory=DeterministicOracle)

    def exists(self, cell: Cell) -> bool:
        """Return True if a cache is anchored at ``cell``."""
        return self.oracle.value(existence_key(cell)) < self.spawn_probability

    def initial_record(self, cell: Cell) -> CacheRecord:
        """Return the freshly generated record for ``cell``.

        Defined for every cell, whether or not ``exists`` holds; callers
        check existence first.
        """
        return CacheRecord(
            cell=cell,
            point_value=math.floor(
                self.oracle.value(point_value_key(cell)) * self.point_scale,
            ),
            coin_count=math.floor(
                self.oracle.value(coin_count_key(cell)) * self.coin_scale,
            ),
        )

    def tokens(self, cell: Cell) -> list[Token]:
        """Return the coins minted at ``cell`` when it was generated.

        Serials run from 0 to the initial coin count.  The economy moves
        counts rather than individual tokens, so this is the identity of
        the original mint only.
        """
        count = self.initial_record(cell).coin_count
        return [Token(cell=cell, serial=serial) for serial in range(count)]
