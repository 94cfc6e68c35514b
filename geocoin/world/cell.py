"""Cell - canonical grid coordinates and the coins anchored to them.

A ``Cell`` is a discrete tile obtained by flooring a continuous
latitude/longitude divided by the tile size.  The ``CellRegistry`` is a
flyweight cache that hands back the same ``Cell`` object for every
lookup of the same tile, so cells can be compared by identity as well
as by value.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field

from geocoin.errors import UnknownCellError

CELL_KEY_SEPARATOR = ":"


@dataclass(frozen=True)
class LatLng:
    """A continuous geographic coordinate in degrees.

    Attributes:
        lat: Latitude.
        lng: Longitude.
    """

    lat: float
    lng: float

    def offset(self, dlat: float, dlng: float) -> LatLng:
        """Return a new coordinate shifted by ``(dlat, dlng)``."""
        return LatLng(self.lat + dlat, self.lng + dlng)


@dataclass(frozen=True)
class Cell:
    """A single tile in the world grid.

    Attributes:
        i: Row index (latitude axis).
        j: Column index (longitude axis).
    """

    i: int
    j: int

    @property
    def key(self) -> str:
        """Canonical ``"i:j"`` string used by the registry and the store."""
        return cell_key(self.i, self.j)


@dataclass(frozen=True)
class Token:
    """One collectible coin minted by a cache.

    Attributes:
        cell: The cache the coin was generated in.
        serial: Sequence number within that cache, starting at 0.
    """

    cell: Cell
    serial: int

    @property
    def token_id(self) -> str:
        """Stable identifier, e.g. ``"369894:-1220628#2"``."""
        return f"{self.cell.key}#{self.serial}"


def cell_key(i: int, j: int) -> str:
    """Build the canonical key for cell indices ``(i, j)``."""
    return f"{i}{CELL_KEY_SEPARATOR}{j}"


def parse_cell_key(key: str) -> tuple[int, int]:
    """Split a canonical ``"i:j"`` key back into indices.

    Raises:
        UnknownCellError: If ``key`` is not two integers joined by ``:``.
    """
    parts = key.split(CELL_KEY_SEPARATOR)
    if len(parts) != 2:
        msg = f"malformed cell key {key!r}"
        raise UnknownCellError(msg)
    try:
        return int(parts[0]), int(parts[1])
    except ValueError as exc:
        msg = f"malformed cell key {key!r}"
        raise UnknownCellError(msg) from exc


@dataclass
class CellRegistry:
    """Flyweight registry of canonical ``Cell`` objects.

    Lives for the whole process; cells are never evicted.

    Attributes:
        tile_size: Width of one tile in degrees.
        cells: Canonical cells keyed by ``"i:j"``.
    """

    tile_size: float = 1e-4
    cells: dict[str, Cell] = field(default_factory=dict, repr=False)

    def __len__(self) -> int:
        return len(self.cells)

    def of_cell_index(self, i: int, j: int) -> Cell:
        """Return the canonical cell for indices ``(i, j)``."""
        key = cell_key(i, j)
        cell = self.cells.get(key)
        if cell is None:
            cell = Cell(i=i, j=j)
            self.cells[key] = cell
        return cell

    def canonicalize(self, lat: float, lng: float) -> Cell:
        """Return the canonical cell containing ``(lat, lng)``.

        Args:
            lat: Latitude in degrees.
            lng: Longitude in degrees.

        Returns:
            The cell ``(floor(lat / tile_size), floor(lng / tile_size))``.
        """
        return self.of_cell_index(
            math.floor(lat / self.tile_size),
            math.floor(lng / self.tile_size),
        )

    def cell_of(self, location: LatLng) -> Cell:
        """Shorthand for ``canonicalize(location.lat, location.lng)``."""
        return self.canonicalize(location.lat, location.lng)

    def from_key(self, key: str) -> Cell:
        """Return the canonical cell for a ``"i:j"`` key.

        Raises:
            UnknownCellError: If the key is malformed.
        """
        i, j = parse_cell_key(key)
        return self.of_cell_index(i, j)

    def cell_origin(self, cell: Cell) -> LatLng:
        """Return the south-west corner of ``cell``."""
        return LatLng(cell.i * self.tile_size, cell.j * self.tile_size)

    def cell_center(self, cell: Cell) -> LatLng:
        """Return the centre point of ``cell``."""
        half = self.tile_size / 2
        return self.cell_origin(cell).offset(half, half)
