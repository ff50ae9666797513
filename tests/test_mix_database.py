import sqlite3
from datetime import datetime, timedelta

from database.mix_database import ArtistIdCache, BlockStore, CooldownStore, get_database


class FrozenClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


class TestBlockList:
    def test_block_and_unblock(self, database):
        assert database.block_track("t1", "Song", "Band")
        assert database.get_blocked_track_ids() == {"t1"}

        blocked = database.get_blocked_tracks()
        assert blocked[0].track_id == "t1"
        assert blocked[0].title == "Song"
        assert blocked[0].artist_name == "Band"
        assert blocked[0].blocked_at is not None

        assert database.unblock_track("t1")
        assert not database.unblock_track("t1")
        assert database.get_blocked_tracks() == []

    def test_block_store_writes_through(self, database):
        store = BlockStore(database)

        store.block("t2")

        assert store.is_blocked("t2")
        assert BlockStore(database).is_blocked("t2")
        store.unblock("t2")
        assert not store.is_blocked("t2")

    def test_failed_unblock_keeps_snapshot(self, database, monkeypatch):
        store = BlockStore(database)
        store.block("t3")

        def locked():
            raise sqlite3.OperationalError("database is locked")

        monkeypatch.setattr(database, "_get_connection", locked)

        assert not store.unblock("t3")
        assert store.is_blocked("t3")


class TestCooldowns:
    def test_recent_tracks_are_restricted(self, database):
        clock = FrozenClock(datetime(2024, 5, 1, 12, 0))
        store = CooldownStore(database, window_days=7, clock=clock)

        store.mark_used(["a", "b"])

        assert store.is_restricted("a")
        assert not store.is_restricted("c")
        assert CooldownStore(database, window_days=7, clock=clock).is_restricted("b")

    def test_window_expires(self, database):
        CooldownStore(database, window_days=7, clock=FrozenClock(datetime(2024, 5, 1))).mark_used(["a"])

        later = CooldownStore(database, window_days=7, clock=FrozenClock(datetime(2024, 5, 9)))

        assert not later.is_restricted("a")

    def test_zero_window_disables_cooldown(self, database):
        store = CooldownStore(database, window_days=0, clock=FrozenClock(datetime(2024, 5, 1)))
        store.mark_used(["a"])

        assert not store.is_restricted("a")

    def test_reuse_refreshes_timestamp(self, database):
        start = datetime(2024, 5, 1)
        CooldownStore(database, clock=FrozenClock(start)).mark_used(["a"])
        CooldownStore(database, clock=FrozenClock(start + timedelta(days=6))).mark_used(["a"])

        store = CooldownStore(database, window_days=7, clock=FrozenClock(start + timedelta(days=10)))

        assert store.is_restricted("a")

    def test_expired_rows_are_pruned(self, database):
        start = datetime(2024, 5, 1)
        CooldownStore(database, clock=FrozenClock(start)).mark_used(["old"])
        CooldownStore(database, clock=FrozenClock(start + timedelta(days=30))).mark_used(["new"])

        assert database.get_statistics()['cooldown_entries'] == 1


class TestArtistCache:
    def test_roundtrip_per_provider(self, database):
        cache = ArtistIdCache(database)

        cache.set("spotify", "avenged sevenfold", "0nmQ")

        assert cache.get("spotify", "avenged sevenfold") == "0nmQ"
        assert cache.get("itunes", "avenged sevenfold") is None


class TestDatabase:
    def test_statistics(self, database):
        database.block_track("t1")
        database.mark_tracks_used(["a", "b"])
        database.cache_artist_id("spotify", "band", "b1")

        stats = database.get_statistics()

        assert stats['blocked_tracks'] == 1
        assert stats['cooldown_entries'] == 2
        assert stats['cached_artists'] == 1

    def test_singleton_per_path(self, tmp_path):
        path = str(tmp_path / "shared.db")
        assert get_database(path) is get_database(path)
