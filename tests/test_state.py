"""Tests for geocoin.state - cache store, session and persistence."""

import json
from pathlib import Path

import pytest

from geocoin.errors import CorruptStateError, InsufficientFundsError
from geocoin.state.persistence import FileSlot, MemorySlot, PersistenceManager
from geocoin.state.session import PlayerSession
from geocoin.state.store import CacheRecord, CacheStateStore
from geocoin.world.cell import Cell, LatLng

HOME = LatLng(36.98949379578401, -122.06277128548504)


def _record(i: int, j: int, points: int = 10, coins: int = 3) -> CacheRecord:
    return CacheRecord(cell=Cell(i=i, j=j), point_value=points, coin_count=coins)


def _valid_state() -> dict:
    return {
        "playerLocation": {"lat": 1.5, "lng": -2.25},
        "playerPoints": 7,
        "playerCoins": 2,
        "cacheStates": [["0:1", {"i": 0, "j": 1, "pointValue": 10, "coinCount": 2}]],
        "movementHistory": [{"lat": 1.5, "lng": -2.25}],
    }


class TestCacheRecord:
    """Tests for immutable cache records."""

    def test_withdraw(self) -> None:
        record = _record(0, 0, coins=5)
        assert record.withdraw(3).coin_count == 2
        assert record.coin_count == 5

    def test_withdraw_everything(self) -> None:
        assert _record(0, 0, coins=5).withdraw(5).coin_count == 0

    @pytest.mark.parametrize("n", [6, 0, -1])
    def test_withdraw_refuses(self, n: int) -> None:
        with pytest.raises(InsufficientFundsError):
            _record(0, 0, coins=5).withdraw(n)

    def test_deposit_has_no_upper_bound(self) -> None:
        assert _record(0, 0, coins=5).deposit(1000).coin_count == 1005

    def test_deposit_requires_positive(self) -> None:
        with pytest.raises(InsufficientFundsError):
            _record(0, 0).deposit(0)

    def test_point_value_survives_mutation(self) -> None:
        record = _record(0, 0, points=42, coins=5).withdraw(2).deposit(7)
        assert record.point_value == 42


class TestCacheStateStore:
    """Tests for the cache-state memento store."""

    def test_absent_is_none(self, store: CacheStateStore) -> None:
        assert store.get(Cell(i=0, j=0)) is None
        assert Cell(i=0, j=0) not in store

    def test_put_and_get(self, store: CacheStateStore) -> None:
        cell = Cell(i=3, j=-4)
        store.put(cell, _record(3, -4))
        assert store.get(cell) == _record(3, -4)
        assert cell in store
        assert len(store) == 1

    def test_put_overwrites(self, store: CacheStateStore) -> None:
        cell = Cell(i=0, j=0)
        store.put(cell, _record(0, 0, coins=3))
        store.put(cell, _record(0, 0, coins=8))
        assert store.get(cell).coin_count == 8
        assert len(store) == 1

    def test_put_rejects_mismatched_cell(self, store: CacheStateStore) -> None:
        with pytest.raises(ValueError):
            store.put(Cell(i=0, j=0), _record(0, 1))

    def test_entries_and_restore(self, store: CacheStateStore) -> None:
        store.put(Cell(i=1, j=1), _record(1, 1))
        store.put(Cell(i=-1, j=2), _record(-1, 2))
        entries = store.entries()
        assert [k for k, _ in entries] == ["1:1", "-1:2"]

        other = CacheStateStore()
        other.put(Cell(i=9, j=9), _record(9, 9))
        other.restore(entries)
        assert other.entries() == entries
        assert Cell(i=9, j=9) not in other

    def test_clear(self, store: CacheStateStore) -> None:
        store.put(Cell(i=1, j=1), _record(1, 1))
        store.clear()
        assert len(store) == 0
        assert store.get(Cell(i=1, j=1)) is None


class TestPlayerSession:
    """Tests for the player's wallet and trail."""

    def test_defaults(self) -> None:
        session = PlayerSession(location=HOME)
        assert session.points == 0
        assert session.coins == 0
        assert session.movement_history == []
        assert session.status == "No points yet..."

    def test_earn_and_status(self) -> None:
        session = PlayerSession(location=HOME)
        session.earn(coins=3, points=126)
        assert session.status == "126 points accumulated, 3 coins collected"

    def test_spend(self) -> None:
        session = PlayerSession(location=HOME, coins=3)
        session.spend(2)
        assert session.coins == 1

    @pytest.mark.parametrize("n", [4, 0, -2])
    def test_spend_refuses(self, n: int) -> None:
        session = PlayerSession(location=HOME, coins=3)
        with pytest.raises(InsufficientFundsError):
            session.spend(n)
        assert session.coins == 3

    def test_move_to_appends_history(self) -> None:
        session = PlayerSession(location=HOME)
        north = HOME.offset(1e-4, 0.0)
        session.move_to(north)
        assert session.location == north
        assert session.movement_history == [north]

    def test_reset(self) -> None:
        session = PlayerSession(location=HOME, points=5, coins=2)
        session.move_to(HOME.offset(1e-4, 0.0))
        session.reset(HOME)
        assert session == PlayerSession(location=HOME)


class TestPersistenceRoundTrip:
    """Snapshot then restore reproduces the session and store."""

    def _round_trip(
        self,
        persistence: PersistenceManager,
        session: PlayerSession,
        store: CacheStateStore,
    ) -> None:
        restored, entries = persistence.restore(persistence.snapshot(session, store))
        assert restored == session
        assert entries == store.entries()

    def test_empty_store(
        self,
        persistence: PersistenceManager,
        store: CacheStateStore,
    ) -> None:
        self._round_trip(persistence, PlayerSession(location=HOME), store)

    def test_single_entry(
        self,
        persistence: PersistenceManager,
        store: CacheStateStore,
    ) -> None:
        store.put(Cell(i=369894, j=-1220628), _record(369894, -1220628, 42, 5))
        session = PlayerSession(location=HOME, points=126, coins=3)
        self._round_trip(persistence, session, store)

    def test_mixed_sign_indices(
        self,
        persistence: PersistenceManager,
        store: CacheStateStore,
    ) -> None:
        for i, j in [(-5, -7), (0, 0), (12, -3), (-1, 40)]:
            store.put(Cell(i=i, j=j), _record(i, j, points=i * i, coins=abs(j)))
        session = PlayerSession(
            location=LatLng(-33.868820, 151.209290),
            points=99,
            coins=0,
            movement_history=[LatLng(-33.8687, 151.2092), LatLng(-33.868820, 151.209290)],
        )
        self._round_trip(persistence, session, store)

    def test_coordinates_keep_full_precision(
        self,
        persistence: PersistenceManager,
        store: CacheStateStore,
    ) -> None:
        loc = HOME.offset(3e-4, -1e-4)
        session = PlayerSession(location=loc, movement_history=[loc])
        restored, _ = persistence.restore(persistence.snapshot(session, store))
        assert restored.location.lat == loc.lat
        assert restored.location.lng == loc.lng

    def test_blob_shape(self, persistence: PersistenceManager, store: CacheStateStore) -> None:
        store.put(Cell(i=0, j=1), _record(0, 1, points=10, coins=2))
        data = json.loads(persistence.snapshot(PlayerSession(location=HOME), store))
        assert set(data) == {
            "playerLocation",
            "playerPoints",
            "playerCoins",
            "cacheStates",
            "movementHistory",
        }
        assert data["cacheStates"] == [
            ["0:1", {"i": 0, "j": 1, "pointValue": 10, "coinCount": 2}],
        ]

    def test_restore_accepts_integer_coordinates(
        self,
        persistence: PersistenceManager,
    ) -> None:
        state = _valid_state()
        state["playerLocation"] = {"lat": 36, "lng": -122}
        session, _ = persistence.restore(json.dumps(state))
        assert session.location == LatLng(36.0, -122.0)


class TestCorruptState:
    """Malformed blobs raise CorruptStateError."""

    def test_valid_state_parses(self, persistence: PersistenceManager) -> None:
        session, entries = persistence.restore(json.dumps(_valid_state()))
        assert session.points == 7
        assert entries == [("0:1", _record(0, 1, points=10, coins=2))]

    @pytest.mark.parametrize(
        "field",
        ["playerLocation", "playerPoints", "playerCoins", "cacheStates", "movementHistory"],
    )
    def test_missing_field(self, persistence: PersistenceManager, field: str) -> None:
        state = _valid_state()
        del state[field]
        with pytest.raises(CorruptStateError):
            persistence.restore(json.dumps(state))

    @pytest.mark.parametrize(
        ("field", "value"),
        [
            ("playerPoints", "7"),
            ("playerCoins", True),
            ("playerCoins", -1),
            ("playerLocation", [1.5, -2.25]),
            ("cacheStates", {"0:1": {}}),
            ("movementHistory", [{"lat": "north"}]),
            ("cacheStates", [["0:1"]]),
            ("cacheStates", [["0:2", {"i": 0, "j": 1, "pointValue": 10, "coinCount": 2}]]),
            ("cacheStates", [["bad", {"i": 0, "j": 1, "pointValue": 10, "coinCount": 2}]]),
            ("cacheStates", [["0:1", {"i": 0, "j": 1, "pointValue": 10, "coinCount": -2}]]),
            ("cacheStates", [["0:1", {"i": 0, "j": 1, "pointValue": 1.5, "coinCount": 2}]]),
            ("cacheStates", [["0:1", {"i": 0, "j": 1, "pointValue": -50, "coinCount": 3}]]),
            ("playerPoints", -5),
            ("playerLocation", {"lat": float("nan"), "lng": 0.0}),
            ("playerLocation", {"lat": 0.0, "lng": float("-inf")}),
            ("playerLocation", {"lat": 91.0, "lng": 0.0}),
            ("movementHistory", [{"lat": 0.0, "lng": 180.5}]),
        ],
    )
    def test_wrong_types(
        self,
        persistence: PersistenceManager,
        field: str,
        value: object,
    ) -> None:
        state = _valid_state()
        state[field] = value
        with pytest.raises(CorruptStateError):
            persistence.restore(json.dumps(state))

    @pytest.mark.parametrize("blob", ["", "not json", "[]", "null", '{"playerPoints": 1'])
    def test_unparseable(self, persistence: PersistenceManager, blob: str) -> None:
        with pytest.raises(CorruptStateError):
            persistence.restore(blob)

    def test_deeply_nested(self, persistence: PersistenceManager) -> None:
        with pytest.raises(CorruptStateError):
            persistence.restore("[" * 100000 + "]" * 100000)

    @pytest.mark.parametrize("lat", ["NaN", "Infinity", "1e400", "1" + "0" * 400])
    def test_non_finite_literals(self, persistence: PersistenceManager, lat: str) -> None:
        blob = json.dumps(_valid_state()).replace('"lat": 1.5', f'"lat": {lat}', 1)
        assert lat in blob
        with pytest.raises(CorruptStateError):
            persistence.restore(blob)

    def test_snapshot_refuses_non_finite(
        self,
        persistence: PersistenceManager,
        store: CacheStateStore,
    ) -> None:
        session = PlayerSession(location=LatLng(float("nan"), 0.0))
        with pytest.raises(ValueError):
            persistence.snapshot(session, store)


class TestSlots:
    """Tests for save-slot backends."""

    def test_load_empty_slot(self, persistence: PersistenceManager) -> None:
        assert persistence.load() is None

    def test_memory_slot_save_and_load(self, store: CacheStateStore) -> None:
        slots = MemorySlot()
        persistence = PersistenceManager(slot_storage=slots, slot="game")
        session = PlayerSession(location=HOME, coins=4)
        persistence.save(session, store)
        assert "game" in slots.blobs
        loaded = persistence.load()
        assert loaded is not None
        assert loaded[0] == session

    def test_file_slot(self, tmp_path: Path, store: CacheStateStore) -> None:
        persistence = PersistenceManager(slot_storage=FileSlot(tmp_path / "saves"))
        store.put(Cell(i=-2, j=2), _record(-2, 2))
        session = PlayerSession(location=HOME, points=3)
        persistence.save(session, store)

        path = tmp_path / "saves" / "gameState.json"
        assert path.exists()
        assert list(path.parent.iterdir()) == [path]

        fresh = PersistenceManager(slot_storage=FileSlot(tmp_path / "saves"))
        loaded = fresh.load()
        assert loaded == (session, store.entries())

    def test_file_slot_overwrites(self, tmp_path: Path, store: CacheStateStore) -> None:
        slot = FileSlot(tmp_path)
        slot.write("a", "first")
        slot.write("a", "second")
        assert slot.read("a") == "second"
        assert slot.read("b") is None

    def test_corrupt_file_raises_on_load(self, tmp_path: Path) -> None:
        (tmp_path / "gameState.json").write_text("{broken", encoding="utf-8")
        persistence = PersistenceManager(slot_storage=FileSlot(tmp_path))
        with pytest.raises(CorruptStateError):
            persistence.load()

    def test_undecodable_file_raises_on_load(self, tmp_path: Path) -> None:
        (tmp_path / "gameState.json").write_bytes(b"\xff\xfe garbage")
        persistence = PersistenceManager(slot_storage=FileSlot(tmp_path))
        with pytest.raises(CorruptStateError):
            persistence.load()
