"""DeterministicOracle - reproducible pseudo-random values from string keys.

Every random decision about the world is a question asked of the oracle
with a key string.  The key is hashed with SHA-256 and the digest seeds a
fresh NumPy generator, so the answer depends on nothing but the key:
there is no shared seed state, no call-order dependence, and the result
is stable across processes and platforms.

Keys are built here and only here.  Generation and lookup sites must use
the same builder for the same question or determinism breaks silently.
"""

from __future__ import annotations

import hashlib
from typing import TYPE_CHECKING

import numpy as np
from numpy.random import Generator

if TYPE_CHECKING:
    from geocoin.world.cell import Cell

KEY_SEPARATOR = ","

POINT_VALUE_TAG = "initialValue"
COIN_COUNT_TAG = "coinCount"


def oracle_key(*parts: object) -> str:
    """Join identifying values into a single oracle key.

    Args:
        *parts: Cell indices, purpose tags, or other identifying values.

    Returns:
        The parts rendered with ``str`` and joined by ``KEY_SEPARATOR``.
    """
    return KEY_SEPARATOR.join(str(p) for p in parts)


def existence_key(cell: Cell) -> str:
    """Key deciding whether a cache exists at ``cell``."""
    return oracle_key(cell.i, cell.j)


def point_value_key(cell: Cell) -> str:
    """Key deciding a cache's point value."""
    return oracle_key(cell.i, cell.j, POINT_VALUE_TAG)


def coin_count_key(cell: Cell) -> str:
    """Key deciding a cache's initial coin count."""
    return oracle_key(cell.i, cell.j, COIN_COUNT_TAG)


def _seed_for(key: str) -> int:
    digest = hashlib.sha256(key.encode("utf-8")).digest()
    return int.from_bytes(digest[:8], byteorder="big")


class DeterministicOracle:
    """Pure mapping from key strings to values in ``[0, 1)``.

    Instances hold no state; two oracles always agree.  Tests substitute
    a subclass that overrides ``value`` to pin specific answers.
    """

    def generator(self, key: str) -> Generator:
        """Return a NumPy generator seeded solely from ``key``.

        Useful when a question needs more than one draw, e.g. an
        integer in a fixed range.  Each call returns a fresh generator.
        """
        return np.random.default_rng(_seed_for(key))

    def value(self, key: str) -> float:
        """Return the reproducible value for ``key``.

        Args:
            key: Oracle key, normally built by one of the ``*_key``
                helpers in this module.

        Returns:
            A float in ``[0, 1)``.
        """
        return float(self.generator(key).random())
