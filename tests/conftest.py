"""Shared fixtures for the geocoin test suite."""

from __future__ import annotations

import pytest

from geocoin.game.config import GameConfig
from geocoin.game.engine import GameEngine
from geocoin.state.persistence import MemorySlot, PersistenceManager
from geocoin.state.store import CacheStateStore
from geocoin.world.cell import CellRegistry
from geocoin.world.generation import CacheGenerator
from geocoin.world.oracle import DeterministicOracle
from geocoin.world.scanner import WorldScanner


class StubOracle(DeterministicOracle):
    """Oracle with pinned answers; every other key answers ``default``."""

    def __init__(self, answers: dict[str, float], default: float = 0.99) -> None:
        self.answers = answers
        self.default = default

    def value(self, key: str) -> float:
        return self.answers.get(key, self.default)


# Two caches next to the origin:
#   (0, 0) worth 42 points per coin, holding 5 coins
#   (0, 1) worth 10 points per coin, holding 2 coins
STUB_ANSWERS: dict[str, float] = {
    "0,0": 0.0,
    "0,0,initialValue": 0.42,
    "0,0,coinCount": 0.5,
    "0,1": 0.05,
    "0,1,initialValue": 0.1,
    "0,1,coinCount": 0.2,
}


@pytest.fixture
def oracle() -> DeterministicOracle:
    """The real hash-seeded oracle."""
    return DeterministicOracle()


@pytest.fixture
def stub_oracle() -> StubOracle:
    """An oracle placing exactly two caches, at (0, 0) and (0, 1)."""
    return StubOracle(STUB_ANSWERS)


@pytest.fixture
def registry() -> CellRegistry:
    """A fresh registry with the default 1e-4 degree tiles."""
    return CellRegistry(tile_size=1e-4)


@pytest.fixture
def store() -> CacheStateStore:
    """An empty cache-state store."""
    return CacheStateStore()


@pytest.fixture
def generator(oracle: DeterministicOracle) -> CacheGenerator:
    """Default generator over the real oracle."""
    return CacheGenerator(oracle=oracle)


@pytest.fixture
def scanner(
    registry: CellRegistry,
    generator: CacheGenerator,
    store: CacheStateStore,
) -> WorldScanner:
    """Scanner wired to fresh registry, generator and store."""
    return WorldScanner(registry=registry, generator=generator, store=store)


@pytest.fixture
def default_config() -> GameConfig:
    """Default game config (no YAML file needed)."""
    return GameConfig()


@pytest.fixture
def persistence() -> PersistenceManager:
    """Persistence backed by an in-memory slot."""
    return PersistenceManager(slot_storage=MemorySlot())


@pytest.fixture
def stub_engine(
    default_config: GameConfig,
    persistence: PersistenceManager,
    stub_oracle: StubOracle,
) -> GameEngine:
    """An engine whose world holds only the two stub caches."""
    return GameEngine(
        config=default_config,
        persistence=persistence,
        oracle=stub_oracle,
    )
