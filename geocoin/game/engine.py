"""GameEngine - owns the session and applies player actions.

Owns all top-level game state and is the only place it changes.  Every
action runs to completion in the same order:

1. Validate the target (cache must exist).
2. Apply the mutation to the session and/or the cache-state store,
   refusing anything that would drive a coin counter negative.
3. Persist the full snapshot to the save slot.

The engine does not remember which caches are on screen; callers ask
for ``live_caches`` after each action and get a fresh scan.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace

from geocoin.errors import CorruptStateError, InsufficientFundsError, UnknownCellError
from geocoin.game.config import GameConfig
from geocoin.game.location import LocationFeed
from geocoin.state.persistence import PersistenceManager
from geocoin.state.session import PlayerSession
from geocoin.state.store import CacheRecord, CacheStateStore
from geocoin.world.cell import Cell, CellRegistry, LatLng
from geocoin.world.generation import CacheGenerator
from geocoin.world.oracle import DeterministicOracle
from geocoin.world.scanner import WorldScanner

logger = logging.getLogger(__name__)

# Unit steps for the four movement buttons, as (di, dj)
DIRECTIONS: dict[str, tuple[int, int]] = {
    "north": (1, 0),
    "south": (-1, 0),
    "east": (0, 1),
    "west": (0, -1),
}


@dataclass
class GameEngine:
    """Drives the game forward one player action at a time.

    Attributes:
        config: Loaded game configuration.
        persistence: Save-slot manager.  Loaded from on construction.
        oracle: Source of world randomness.
        registry: Canonical cell registry.
        generator: Cache placement and initial records.
        store: Player-modified cache records.
        scanner: Neighbourhood scanner.
        session: Player position, wallet and trail.
    """

    config: GameConfig = field(default_factory=GameConfig)
    persistence: PersistenceManager = field(default_factory=PersistenceManager)
    oracle: DeterministicOracle = field(default_factory=DeterministicOracle)
    registry: CellRegistry = field(init=False)
    generator: CacheGenerator = field(init=False)
    store: CacheStateStore = field(init=False)
    scanner: WorldScanner = field(init=False)
    session: PlayerSession = field(init=False)

    def __post_init__(self) -> None:
        """Build the world model from config and load any saved game."""
        self.registry = CellRegistry(tile_size=self.config.tile_size)
        self.generator = CacheGenerator(
            spawn_probability=self.config.spawn_probability,
            point_scale=self.config.point_scale,
            coin_scale=self.config.coin_scale,
            oracle=self.oracle,
        )
        self.store = CacheStateStore()
        self.scanner = WorldScanner(
            registry=self.registry,
            generator=self.generator,
            store=self.store,
        )
        self.session = PlayerSession(location=self.config.home)
        self.load()

    # -- Queries -------------------------------------------------------------

    @property
    def player_cell(self) -> Cell:
        """The cell the player is standing in."""
        return self.registry.cell_of(self.session.location)

    @property
    def status(self) -> str:
        """Status readout for the player's totals."""
        return self.session.status

    def active_caches(self) -> list[Cell]:
        """Cache cells in the player's neighbourhood."""
        return self.scanner.active_caches(self.player_cell, self.config.neighborhood_size)

    def live_caches(self) -> list[CacheRecord]:
        """Live records of every cache in the player's neighbourhood."""
        return self.scanner.live_records(self.player_cell, self.config.neighborhood_size)

    def record_for(self, cell: Cell) -> CacheRecord:
        """Live record for ``cell`` without materialising it.

        Raises:
            UnknownCellError: If no cache exists at ``cell``.
        """
        self._require_cache(cell)
        return self.scanner.record_for(cell)

    # -- Cache actions -------------------------------------------------------

    def open_cache(self, cell: Cell) -> CacheRecord:
        """Open the cache at ``cell``, materialising its state on first visit.

        Raises:
            UnknownCellError: If no cache exists at ``cell``.
        """
        self._require_cache(cell)
        record = self.store.get(cell)
        if record is None:
            record = self.generator.initial_record(cell)
            self.store.put(cell, record)
            logger.debug("Materialised cache %s: %s", cell.key, record)
            self.save()
        return record

    def collect(self, cell: Cell, n: int | None = 1) -> bool:
        """Move ``n`` coins from the cache at ``cell`` into the wallet.

        Each coin earns the cache's point value.  Refused, with no state
        change, when the cache holds fewer than ``n`` coins.

        Args:
            cell: The cache to collect from.
            n: Coins to take, or None for all of them.

        Returns:
            True if the coins moved.

        Raises:
            UnknownCellError: If no cache exists at ``cell``.
        """
        record = self.open_cache(cell)
        amount = record.coin_count if n is None else n
        try:
            updated = record.withdraw(amount)
        except InsufficientFundsError as exc:
            logger.debug("Collect refused at %s: %s", cell.key, exc)
            return False
        self.store.put(cell, updated)
        self.session.earn(amount, amount * record.point_value)
        self.save()
        return True

    def deposit(self, cell: Cell, n: int | None = 1) -> bool:
        """Move ``n`` coins from the wallet into the cache at ``cell``.

        Points are unaffected.  Refused, with no state change, when the
        wallet holds fewer than ``n`` coins.

        Args:
            cell: The cache to deposit into.
            n: Coins to give, or None for the whole wallet.

        Returns:
            True if the coins moved.

        Raises:
            UnknownCellError: If no cache exists at ``cell``.
        """
        record = self.open_cache(cell)
        amount = self.session.coins if n is None else n
        try:
            self.session.spend(amount)
        except InsufficientFundsError as exc:
            logger.debug("Deposit refused at %s: %s", cell.key, exc)
            return False
        self.store.put(cell, record.deposit(amount))
        self.save()
        return True

    # -- Movement ------------------------------------------------------------

    def move_to(self, location: LatLng) -> None:
        """Place the player at ``location``, record it, and persist."""
        self.session.move_to(location)
        logger.debug("Player at %s (cell %s)", location, self.player_cell.key)
        self.save()

    def move(self, di: int, dj: int) -> None:
        """Move the player by ``(di, dj)`` tiles."""
        tile = self.config.tile_size
        self.move_to(self.session.location.offset(di * tile, dj * tile))

    def step(self, direction: str) -> None:
        """Move one tile ``"north"``, ``"south"``, ``"east"`` or ``"west"``.

        Raises:
            KeyError: If ``direction`` is not one of the four.
        """
        di, dj = DIRECTIONS[direction]
        self.move(di, dj)

    def follow(self, feed: LocationFeed) -> None:
        """Subscribe to live location fixes from ``feed``."""
        feed.subscribe(self.move_to)

    # -- Session lifecycle ---------------------------------------------------

    def reset(self) -> None:
        """Erase all progress: cache states, totals and movement history.

        The player keeps their current position.
        """
        self.store.clear()
        self.session.reset(self.session.location)
        logger.info("Game state reset")
        self.save()

    def save(self) -> None:
        """Persist the session.  I/O failures are logged, not raised."""
        try:
            self.persistence.save(self.session, self.store)
        except OSError:
            logger.exception("Failed to save slot %r", self.persistence.slot)

    def load(self) -> bool:
        """Replace the session with the saved one, if any.

        A corrupt or unreadable slot is discarded and a fresh session at
        the configured home location is used instead.

        Returns:
            True if a saved session was restored.
        """
        try:
            loaded = self.persistence.load()
        except CorruptStateError as exc:
            logger.warning("Discarding corrupt save slot %r: %s", self.persistence.slot, exc)
            loaded = None
        except OSError:
            logger.exception("Failed to read slot %r", self.persistence.slot)
            loaded = None

        if loaded is None:
            self.session = PlayerSession(location=self.config.home)
            self.store.clear()
            return False

        session, entries = loaded
        self.session = session
        self.store.restore(
            (key, replace(record, cell=self.registry.from_key(key)))
            for key, record in entries
        )
        logger.info(
            "Restored session: %d points, %d coins, %d cache states",
            session.points,
            session.coins,
            len(self.store),
        )
        return True

    def _require_cache(self, cell: Cell) -> None:
        if not self.generator.exists(cell):
            msg = f"no cache at cell {cell.key}"
            raise UnknownCellError(msg)
