"""PersistenceManager - save and restore a session as plain JSON.

The blob layout is::

    {
      "playerLocation": {"lat": 36.9894, "lng": -122.0627},
      "playerPoints": 120,
      "playerCoins": 3,
      "cacheStates": [["369894:-1220628",
                       {"i": 369894, "j": -1220628,
                        "pointValue": 40, "coinCount": 2}]],
      "movementHistory": [{"lat": 36.9895, "lng": -122.0627}]
    }

Python's ``json`` writes floats with ``repr``, so coordinates round-trip
exactly.  Anything that does not match this shape raises
``CorruptStateError``; the engine answers that by starting fresh.
"""

from __future__ import annotations

import json
import logging
import math
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol

from geocoin.errors import CorruptStateError, UnknownCellError
from geocoin.state.session import PlayerSession
from geocoin.state.store import CacheRecord, CacheStateStore
from geocoin.world.cell import Cell, LatLng, parse_cell_key

logger = logging.getLogger(__name__)

DEFAULT_SLOT = "gameState"

MAX_LAT = 90.0
MAX_LNG = 180.0


class SaveSlot(Protocol):
    """Durable key-value storage holding named text blobs."""

    def read(self, name: str) -> str | None: ...

    def write(self, name: str, blob: str) -> None: ...


@dataclass
class MemorySlot:
    """In-process slot storage, mainly for tests and embedding."""

    blobs: dict[str, str] = field(default_factory=dict)

    def read(self, name: str) -> str | None:
        return self.blobs.get(name)

    def write(self, name: str, blob: str) -> None:
        self.blobs[name] = blob


@dataclass
class FileSlot:
    """One ``<name>.json`` file per slot inside ``directory``.

    Writes go to a temporary file that is then renamed over the target,
    so a crash mid-write leaves the previous save intact.
    """

    directory: Path

    def path_for(self, name: str) -> Path:
        return Path(self.directory) / f"{name}.json"

    def read(self, name: str) -> str | None:
        path = self.path_for(name)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except UnicodeDecodeError as exc:
            msg = f"{path} is not UTF-8 text: {exc}"
            raise CorruptStateError(msg) from exc

    def write(self, name: str, blob: str) -> None:
        path = self.path_for(name)
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(blob)
            os.replace(tmp, path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise


# -- Encoding ----------------------------------------------------------------


def _encode_latlng(location: LatLng) -> dict[str, float]:
    return {"lat": location.lat, "lng": location.lng}


def _encode_record(record: CacheRecord) -> dict[str, int]:
    return {
        "i": record.cell.i,
        "j": record.cell.j,
        "pointValue": record.point_value,
        "coinCount": record.coin_count,
    }


# -- Decoding ----------------------------------------------------------------


def _require(data: dict[str, Any], name: str) -> Any:
    if name not in data:
        msg = f"missing field {name!r}"
        raise CorruptStateError(msg)
    return data[name]


def _as_int(value: Any, what: str) -> int:
    # bool is an int subclass but never a valid count
    if isinstance(value, bool) or not isinstance(value, int):
        msg = f"{what} must be an integer, got {value!r}"
        raise CorruptStateError(msg)
    return value


def _as_count(value: Any, what: str) -> int:
    count = _as_int(value, what)
    if count < 0:
        msg = f"{what} is negative"
        raise CorruptStateError(msg)
    return count


def _as_float(
value: Any, what: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        msg = f"{what} must be a number, got {value!r}"
        raise CorruptStateError(msg)
    try:
        number = float(value)
    except OverflowError as exc:
        msg = f"{what} is out of range"
        raise CorruptStateError(msg) from exc
    # json.loads accepts NaN, Infinity and 1e400
    if not math.isfinite(number):
        msg = f"{what} must be finite, got {value!r}"
        raise CorruptStateError(msg)
    return number


def _as_dict(value: Any, what: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        msg = f"{what} must be an object, got {type(value).__name__}"
        raise CorruptStateError(msg)
    return value


def _as_list(value: Any, what: str) -> list[Any]:
    if not isinstance(value, list):
        msg = f"{what} must be an array, got {type(value).__name__}"
        raise CorruptStateError(msg)
    return value


def _decode_latlng(value: Any, what: str) -> LatLng:
    data = _as_dict(value, what)
    lat = _as_float(_require(data, "lat"), f"{what}.lat")
    lng = _as_float(_require(data, "lng"), f"{what}.lng")
    if abs(lat) > MAX_LAT or abs(lng) > MAX_LNG:
        msg = f"{what} ({lat}, {lng}) is off the globe"
        raise CorruptStateError(msg)
    return LatLng(lat=lat, lng=lng)


def _decode_entry(value: Any, index: int) -> tuple[str, CacheRecord]:
    what = f"cacheStates[{index}]"
    pair = _as_list(value, what)
    if len(pair) != 2 or not isinstance(pair[0], str):
        msg = f"{what} must be a [key, record] pair"
        raise CorruptStateError(msg)
    key, raw = pair
    data = _as_dict(raw, f"{what}[1]")
    cell = Cell(
        i=_as_int(_require(data, "i"), f"{what}.i"),
        j=_as_int(_require(data, "j"), f"{what}.j"),
    )
    try:
        keyed = parse_cell_key(key)
    except UnknownCellError as exc:
        raise CorruptStateError(str(exc)) from exc
    if keyed != (cell.i, cell.j):
        msg = f"{what} key {key!r} does not match cell {cell.key!r}"
        raise CorruptStateError(msg)
    record = CacheRecord(
        cell=cell,
        point_value=_as_count(_require(data, "pointValue"), f"{what}.pointValue"),
        coin_count=_as_count(_require(data, "coinCount"), f"{what}.coinCount"),
    )
    return key, record


@dataclass
class PersistenceManager:
    """Serialises sessions to a named slot and back.

    Attributes:
        slot_storage: Where blobs are kept.
        slot: Name of the slot holding this game.
    """

    slot_storage: SaveSlot = field(default_factory=MemorySlot)
    slot: str = DEFAULT_SLOT

    def snapshot(self, session: PlayerSession, store: CacheStateStore) -> str:
        """Serialise the session and every cache override to JSON text."""
        state = {
            "playerLocation": _encode_latlng(session.location),
            "playerPoints": session.points,
            "playerCoins": session.coins,
            "cacheStates": [
                [key, _encode_record(record)] for key, record in store.entries()
            ],
            "movementHistory": [
                _encode_latlng(loc) for loc in session.movement_history
            ],
        }
        return json.dumps(state, allow_nan=False)

    def restore(
        self,
        blob: str,
    ) -> tuple[PlayerSession, list[tuple[str, CacheRecord]]]:
        """Parse a blob produced by ``snapshot``.

        Args:
            blob: JSON text.

        Returns:
            The restored session and the cache-state entries, ready for
            ``CacheStateStore.restore``.

        Raises:
            CorruptStateError: If the blob is not valid JSON or any
                required field is missing or of the wrong type.
        """
        try:
            raw = json.loads(blob)
        except (TypeError, ValueError, RecursionError) as exc:
            msg = f"unparseable save blob: {exc}"
            raise CorruptStateError(msg) from exc

        data = _as_dict(raw, "save blob")
        location = _decode_latlng(_require(data, "playerLocation"), "playerLocation")
        points = _as_count(_require(data, "playerPoints"), "playerPoints")
        coins = _as_count(_require(data, "playerCoins"), "playerCoins")
        entries = [
            _decode_entry(item, n)
            for n, item in enumerate(_as_list(_require(data, "cacheStates"), "cacheStates"))
        ]
        history = [
            _decode_latlng(item, f"movementHistory[{n}]")
            for n, item in enumerate(
                _as_list(_require(data, "movementHistory"), "movementHistory"),
            )
        ]
        session = PlayerSession(
            location=location,
            points=points,
            coins=coins,
            movement_history=history,
        )
        return session, entries

    def save(self, session: PlayerSession, store: CacheStateStore) -> None:
        """Snapshot and write to the slot."""
        self.slot_storage.write(self.slot, self.snapshot(session, store))
        logger.debug("Saved slot %r (%d cache states)", self.slot, len(store))

    def load(self) -> tuple[PlayerSession, list[tuple[str, CacheRecord]]] | None:
        """Read and restore the slot.

        Returns:
            None if the slot is empty, otherwise the result of
            ``restore``.

        Raises:
            CorruptStateError: If the stored blob is malformed.
        """
        blob = self.slot_storage.read(self.slot)
        if blob is None:
            return None
        return self.restore(blob)
