"""CacheStateStore - the memento of every cache the player has touched.

The generator can always re-derive a cache's *initial* record, so the
store only holds caches whose state may have diverged from it.  Lookups
never fall back to the generator; callers merge explicitly::

    record = store.get(cell) or generator.initial_record(cell)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Iterable

from geocoin.errors import InsufficientFundsError
from geocoin.world.cell import Cell

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheRecord:
    """Current state of one cache.

    Records are immutable; mutations return a new record that the
    caller writes back through ``CacheStateStore.put``.

    Attributes:
        cell: Where the cache is anchored.
        point_value: Points earned per coin collected.  Fixed at
            generation.
        coin_count: Coins currently held by the cache (never negative).
    """

    cell: Cell
    point_value: int
    coin_count: int

    def withdraw(self, n: int) -> CacheRecord:
        """Return a copy with ``n`` fewer coins.

        Raises:
            InsufficientFundsError: If the cache holds fewer than ``n``.
        """
        if n <= 0 or n > self.coin_count:
            raise InsufficientFundsError(n, self.coin_count)
        return replace(self, coin_count=self.coin_count - n)

    def deposit(self, n: int) -> CacheRecord:
        """Return a copy with ``n`` more coins.  There is no upper bound."""
        if n <= 0:
            raise InsufficientFundsError(n, 0)
        return replace(self, coin_count=self.coin_count + n)


@dataclass
class CacheStateStore:
    """Overrides for caches whose state was materialised by play.

    Lives for one session; only ``clear`` (on reset) or ``restore`` (on
    load) discards entries.

    Attributes:
        records: Current records keyed by ``Cell.key``.
    """

    records: dict[str, CacheRecord] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.records)

    def __contains__(self, cell: Cell) -> bool:
        return cell.key in self.records

    def get(self, cell: Cell) -> CacheRecord | None:
        """Return the stored record for ``cell``, or None if untouched."""
        return self.records.get(cell.key)

    def put(self, cell: Cell, record: CacheRecord) -> None:
        """Store ``record`` as the current state of ``cell``."""
        if record.cell != cell:
            msg = f"record for {record.cell.key} stored under {cell.key}"
            raise ValueError(msg)
        self.records[cell.key] = record

    def clear(self) -> None:
        """Forget every override."""
        logger.debug("Clearing %d cache states", len(self.records))
        self.records.clear()

    def entries(self) -> list[tuple[str, CacheRecord]]:
        """Return ``(key, record)`` pairs in insertion order."""
        return list(self.records.items())

    def restore(self, entries: Iterable[tuple[str, CacheRecord]]) -> None:
        """Replace all overrides with ``entries``.

        Args:
            entries: Pairs as produced by ``entries`` or by
                ``PersistenceManager.restore``.
        """
        self.records = dict(entries)
        logger.debug("Restored %d cache states", len(self.records))
