"""WorldScanner - the set of caches visible around the player.

The scanner keeps no results between calls: every player move produces
a fresh scan, and determinism of the generator guarantees the same
window always yields the same caches.
"""

from __future__ import annotations

from dataclasses import dataclass

from geocoin.state.store import CacheRecord, CacheStateStore
from geocoin.world.cell import Cell, CellRegistry
from geocoin.world.generation import CacheGenerator


@dataclass
class WorldScanner:
    """Enumerates cache cells in a square window.

    Attributes:
        registry: Canonical cell registry.
        generator: Decides cache existence and initial records.
        store: Player-modified cache records.
    """

    registry: CellRegistry
    generator: CacheGenerator
    store: CacheStateStore

    def window(self, center: Cell, radius: int) -> list[Cell]:
        """Return every cell within ``radius`` of ``center``.

        The window is square and inclusive, ``(2 * radius + 1) ** 2``
        cells in row-major order.

        Args:
            center: Cell at the middle of the window.
            radius: Half-width of the window in cells.
        """
        cells: list[Cell] = []
        for di in range(-radius, radius + 1):
            for dj in range(-radius, radius + 1):
                cells.append(
                    self.registry.of_cell_index(center.i + di, center.j + dj),
                )
        return cells

    def active_caches(self, player_cell: Cell, radius: int) -> list[Cell]:
        """Return the cells around ``player_cell`` that hold a cache.

        Args:
            player_cell: The player's current cell.
            radius: Half-width of the search window.

        Returns:
            Cache cells in row-major ``(i, j)`` order.
        """
        return [c for c in self.window(player_cell, radius) if self.generator.exists(c)]

    def record_for(self, cell: Cell) -> CacheRecord:
        """Return the live record: the stored override or the initial one."""
        return self.store.get(cell) or self.generator.initial_record(cell)

    def live_records(self, player_cell: Cell, radius: int) -> list[CacheRecord]:
        """Return the live record of every active cache in the window."""
        return [self.record_for(c) for c in self.active_caches(player_cell, radius)]
