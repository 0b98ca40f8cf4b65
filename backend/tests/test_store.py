# tests/test_store.py

import datetime

import pytest

from app.core.exceptions import ConflictError, NotFoundError, StorageFault, ValidationError
from app.db.database import build_session_factory
from app.models import PlayerStats
from app.schemas.record import RecordCreate
from app.services.kv_store import RECORDS_PREFIX, KeyValueStore, MemoryHashClient
from app.services.sql_store import SqlStore


def make_record(player_name="Alice", date="2024-01-01", initial=20000, final=15000, add_ons=1, balance=None):
    return RecordCreate(
        player_name=player_name,
        date=date,
        initial_points=initial,
        final_points=final,
        add_ons=add_ons,
        point_balance=balance,
    )


class TestRecords:
    """Saving records and updating stats, run against both backends."""

    def test_save_record_returns_stored_record(self, store):
        stored = store.save_record(make_record(balance=-25000))

        assert stored.id.startswith("record_")
        assert stored.player_name == "Alice"
        assert stored.date == datetime.date(2024, 1, 1)
        assert stored.point_balance == -25000
        assert stored.created_at is not None

    def test_alice_scenario(self, store):
        store.save_record(make_record(final=15000, add_ons=1, balance=-25000))
        stats = store.get_player_stats("Alice")
        assert (stats.total_games, stats.total_balance, stats.best_balance, stats.worst_balance) == \
            (1, -25000, -25000, -25000)
        assert stats.average_balance == pytest.approx(-25000)

        store.save_record(make_record(final=50000, add_ons=0, balance=30000))
        stats = store.get_player_stats("Alice")
        assert stats.total_games == 2
        assert stats.total_balance == 5000
        assert stats.average_balance == pytest.approx(2500)
        assert stats.best_balance == 30000
        assert stats.worst_balance == -25000

    def test_balance_computed_when_omitted(self, store):
        stored = store.save_record(make_record(final=50000, add_ons=0))
        assert stored.point_balance == 30000

    def test_zero_initial_balance_equals_final(self, store):
        stored = store.save_record(make_record(initial=0, final=7000, add_ons=0))
        assert stored.point_balance == 7000

    def test_client_balance_stored_verbatim(self, store):
        stored = store.save_record(make_record(final=50000, add_ons=0, balance=12345))

        assert stored.point_balance == 12345
        assert store.get_player_stats("Alice").total_balance == 12345

    def test_aggregate_over_many_records(self, store):
        balances = [500, -1200, 3000, 0, -50, 800]
        for i, balance in enumerate(balances):
            store.save_record(make_record(date=f"2024-02-{i + 1:02d}", balance=balance))

        stats = store.get_player_stats("Alice")
        assert stats.total_games == len(balances)
        assert stats.total_balance == sum(balances)
        assert stats.average_balance == pytest.approx(sum(balances) / len(balances))
        assert stats.best_balance == max(balances)
        assert stats.worst_balance == min(balances)

    def test_stats_are_per_player(self, store):
        store.save_record(make_record(player_name="Alice", balance=100))
        store.save_record(make_record(player_name="Bob", balance=-100))

        assert store.get_player_stats("Alice").total_balance == 100
        assert store.get_player_stats("Bob").total_balance == -100
        assert store.get_player_stats("Nobody") is None

    def test_list_records_newest_first(self, store):
        store.save_record(make_record(date="2024-01-01", balance=1))
        store.save_record(make_record(date="2024-03-01", balance=3))
        store.save_record(make_record(date="2024-02-01", balance=2))
        store.save_record(make_record(player_name="Bob", date="2024-04-01", balance=4))

        records = store.list_records("Alice")
        assert [r.point_balance for r in records] == [3, 2, 1]

    def test_list_records_for_date_by_player_name(self, store):
        store.save_record(make_record(player_name="Charlie", date="2024-01-05", balance=1))
        store.save_record(make_record(player_name="Alice", date="2024-01-05", balance=2))
        store.save_record(make_record(player_name="Bob", date="2024-01-06", balance=3))

        records = store.list_records_for_date(datetime.date(2024, 1, 5))
        assert [r.player_name for r in records] == ["Alice", "Charlie"]

    def test_list_distinct_dates_descending(self, store):
        for player, date in [("Alice", "2024-01-01"), ("Bob", "2024-01-01"), ("Alice", "2024-03-10"),
                             ("Bob", "2023-12-31")]:
            store.save_record(make_record(player_name=player, date=date, balance=0))

        assert store.list_distinct_dates() == [
            datetime.date(2024, 3, 10),
            datetime.date(2024, 1, 1),
            datetime.date(2023, 12, 31),
        ]

    def test_daily_summary(self, store):
        store.save_record(make_record(player_name="Alice", date="2024-01-05", balance=-25000))
        store.save_record(make_record(player_name="Bob", date="2024-01-05", balance=30000))

        summary = store.daily_summary(datetime.date(2024, 1, 5))
        assert summary.record_count == 2
        assert summary.total_balance == 5000

    def test_empty_reads(self, store):
        assert store.list_records("Alice") == []
        assert store.list_records_for_date(datetime.date(2024, 1, 1)) == []
        assert store.list_distinct_dates() == []
        assert store.list_players() == []


class TestPlayers:

    def test_add_and_list_players(self, store):
        store.add_player("Charlie")
        store.add_player("Alice")

        players = store.list_players()
        assert [p.name for p in players] == ["Alice", "Charlie"]
        assert all(p.id.startswith("player_") for p in players)

    def test_duplicate_name_rejected(self, store):
        store.add_player("Alice")

        with pytest.raises(ConflictError):
            store.add_player("Alice")
        assert [p.name for p in store.list_players()] == ["Alice"]

    def test_delete_player_keeps_records(self, store):
        player = store.add_player("Alice")
        store.save_record(make_record(balance=100))

        store.delete_player(player.id)

        assert store.list_players() == []
        assert len(store.list_records("Alice")) == 1
        assert store.get_player_stats("Alice").total_games == 1

    def test_delete_unknown_player_is_noop(self, store):
        store.add_player("Alice")
        store.delete_player("player_missing")
        assert len(store.list_players()) == 1

    def test_get_player(self, store):
        player = store.add_player("Alice")

        assert store.get_player(player.id).name == "Alice"
        with pytest.raises(NotFoundError):
            store.get_player("player_missing")


class TestSettings:

    def test_default_settings(self, store):
        store.add_player("Bob")
        store.add_player("Alice")

        settings = store.get_settings()
        assert settings.default_initial_points == 20000
        assert settings.players == ["Alice", "Bob"]

    def test_update_default_initial_points(self, store):
        store.set_default_initial_stake(30000)
        assert store.get_settings().default_initial_points == 30000

    @pytest.mark.parametrize("value", [0, -1, None])
    def test_non_positive_rejected(self, store, value):
        with pytest.raises(ValidationError):
            store.set_default_initial_stake(value)
        assert store.get_settings().default_initial_points == 20000


class TestSqlStoreFaults:
    """Storage failures on the relational backend."""

    def test_reads_degrade_to_empty(self, sql_store, engine):
        with engine.begin() as conn:
            conn.exec_driver_sql("DROP TABLE records")
            conn.exec_driver_sql("DROP TABLE stats")

        assert sql_store.list_records("Alice") == []
        assert sql_store.list_distinct_dates() == []
        assert sql_store.get_player_stats("Alice") is None

    def test_stats_failure_keeps_record(self, sql_store, engine):
        with engine.begin() as conn:
            conn.exec_driver_sql("DROP TABLE stats")

        with pytest.raises(StorageFault) as exc_info:
            sql_store.save_record(make_record(balance=-25000))
        assert exc_info.value.message.startswith("统计更新失败")

        records = SqlStore(sql_store.db).list_records("Alice")
        assert [r.point_balance for r in records] == [-25000]

    def test_overflowing_value_becomes_storage_fault(self, sql_store):
        with pytest.raises(StorageFault) as exc_info:
            sql_store.update_player_stats("Alice", 10 ** 20)
        assert exc_info.value.message.startswith("统计更新失败")

        assert sql_store.get_player_stats("Alice") is None

    def test_unreadable_stats_degrade_to_none(self, sql_store, engine):
        sql_store.save_record(make_record(balance=100))
        with engine.begin() as conn:
            conn.exec_driver_sql("UPDATE stats SET total_balance = 1.5")

        fresh = SqlStore(build_session_factory(engine)())
        assert fresh.get_player_stats("Alice") is None
        fresh.db.close()

    def test_concurrent_first_insert_falls_back_to_increment(self, sql_store, engine, monkeypatch):
        original = sql_store._increment_stats
        calls = []

        def increment_after_other_writer(player_name, new_balance):
            calls.append(new_balance)
            if len(calls) > 1:
                return original(player_name, new_balance)
            # another request creates the row between our UPDATE and INSERT
            other = build_session_factory(engine)()
            other.add(PlayerStats(
                player_name=player_name,
                total_games=1,
                total_balance=-25000,
                average_balance=-25000.0,
                best_balance=-25000,
                worst_balance=-25000,
            ))
            other.commit()
            other.close()
            return 0

        monkeypatch.setattr(sql_store, "_increment_stats", increment_after_other_writer)

        stats = sql_store.update_player_stats("Alice", 30000)

        assert calls == [30000, 30000]
        assert stats.total_games == 2
        assert stats.total_balance == 5000
        assert stats.average_balance == pytest.approx(2500)
        assert stats.best_balance == 30000
        assert stats.worst_balance == -25000


class BrokenHashClient(MemoryHashClient):
    """Memory client whose selected operations raise OSError."""

    def __init__(self, failing=()):
        super().__init__()
        self.failing = set(failing)

    def _check(self, operation):
        if operation in self.failing:
            raise OSError(f"{operation} unavailable")

    def get(self, key):
        self._check("get")
        return super().get(key)

    def set(self, key, value):
        self._check("set")
        return super().set(key, value)

    def hgetall(self, key):
        self._check("hgetall")
        return super().hgetall(key)


class TestKeyValueStoreFaults:
    """Storage failures on the key-value backend."""

    def test_reads_degrade_to_empty(self):
        client = BrokenHashClient()
        store = KeyValueStore(client)
        store.save_record(make_record(balance=100))
        store.add_player("Alice")

        client.failing = {"get", "hgetall"}

        assert store.list_records("Alice") == []
        assert store.list_records_for_date(datetime.date(2024, 1, 1)) == []
        assert store.list_distinct_dates() == []
        assert store.list_players() == []
        assert store.get_player_stats("Alice") is None

    def test_stats_failure_keeps_record(self):
        client = BrokenHashClient(failing={"set"})
        store = KeyValueStore(client)

        with pytest.raises(StorageFault) as exc_info:
            store.save_record(make_record(balance=-25000))
        assert exc_info.value.message.startswith("统计更新失败: ")

        stored = client.hgetall(RECORDS_PREFIX + "Alice")
        assert len(stored) == 1
        assert store.get_player_stats("Alice") is None
        assert [r.point_balance for r in store.list_records("Alice")] == [-25000]


class TestMemoryHashClientLocks:

    def test_locks_are_per_client(self):
        first, second = MemoryHashClient(), MemoryHashClient()

        assert first.lock("stats:Alice") is first.lock("stats:Alice")
        assert first.lock("stats:Alice") is not first.lock("stats:Bob")
        assert first.lock("stats:Alice") is not second.lock("stats:Alice")
