#!/usr/bin/env python3

import sqlite3
import threading
from datetime import datetime, timedelta
from typing import List, Optional, Dict, Any, Iterable
from dataclasses import dataclass
from pathlib import Path
from utils.logging_config import get_logger

logger = get_logger("mix_database")

@dataclass
class BlockedTrack:
    """Track the user never wants in a mix"""
    track_id: str
    title: Optional[str] = None
    artist_name: Optional[str] = None
    blocked_at: Optional[datetime] = None

class MixDatabase:
    """SQLite storage for block list, cooldown history and the artist id cache"""

    def __init__(self, database_path: str = "database/moodmix.db"):
        self.database_path = Path(database_path)
        self.database_path.parent.mkdir(parents=True, exist_ok=True)

        self._initialize_database()

    def _get_connection(self) -> sqlite3.Connection:
        """Get a NEW database connection for each operation (thread-safe)"""
        connection = sqlite3.connect(str(self.database_path), timeout=30.0)
        connection.row_factory = sqlite3.Row
        connection.execute("PRAGMA journal_mode = WAL")
        connection.execute("PRAGMA busy_timeout = 30000")
        return connection

    def _initialize_database(self):
        """Create database tables if they don't exist"""
        conn = self._get_connection()
        try:
            cursor = conn.cursor()

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS blocked_tracks (
                    track_id TEXT PRIMARY KEY,
                    title TEXT,
                    artist_name TEXT,
                    blocked_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)

            # One row per track; last_used is overwritten on every mix
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS track_cooldowns (
                    track_id TEXT PRIMARY KEY,
                    last_used TIMESTAMP NOT NULL
                )
            """)
            cursor.execute("CREATE INDEX IF NOT EXISTS idx_cooldowns_last_used ON track_cooldowns (last_used)")

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS artist_id_cache (
                    provider TEXT NOT NULL,
                    name_key TEXT NOT NULL,
                    artist_id TEXT NOT NULL,
                    resolved_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    PRIMARY KEY (provider, name_key)
                )
            """)

            conn.commit()
            logger.debug(f"Database initialized at {self.database_path}")
        finally:
            conn.close()

    def close(self):
        # Connections are opened per operation; nothing is held open
        pass

    # ==================== Block list ====================

    def block_track(self, track_id: str, title: Optional[str] = None, artist_name: Optional[str] = None) -> bool:
        try:
            with self._get_connection() as conn:
                conn.execute("""
                    INSERT OR REPLACE INTO blocked_tracks (track_id, title, artist_name, blocked_at)
                    VALUES (?, ?, ?, ?)
                """, (track_id, title, artist_name, datetime.now().isoformat()))
            logger.info(f"Blocked track {track_id} ({title or 'unknown title'})")
            return True
        except sqlite3.Error as e:
            logger.error(f"Error blocking track {track_id}: {e}")
            return False

    def unblock_track(self, track_id: str) -> bool:
        try:
            with self._get_connection() as conn:
                cursor = conn.execute("DELETE FROM blocked_tracks WHERE track_id = ?", (track_id,))
                removed = cursor.rowcount > 0
            if removed:
                logger.info(f"Unblocked track {track_id}")
            return removed
        except sqlite3.Error as e:
            logger.error(f"Error unblocking track {track_id}: {e}")
            return False

    def get_blocked_tracks(self) -> List[BlockedTrack]:
        with self._get_connection() as conn:
            rows = conn.execute("""
                SELECT track_id, title, artist_name, blocked_at
                FROM blocked_tracks
                ORDER BY blocked_at DESC
            """).fetchall()
        return [
            BlockedTrack(
                track_id=row['track_id'],
                title=row['title'],
                artist_name=row['artist_name'],
                blocked_at=datetime.fromisoformat(row['blocked_at']) if row['blocked_at'] else None
            )
            for row in rows
        ]

    def get_blocked_track_ids(self) -> set:
        with self._get_connection() as conn:
            rows = conn.execute("SELECT track_id FROM blocked_tracks").fetchall()
        return {row['track_id'] for row in rows}

    # ==================== Cooldowns ====================

    def mark_tracks_used(self, track_ids: Iterable[str], used_at: Optional[datetime] = None) -> int:
        used_at = (used_at or datetime.now()).isoformat()
        rows = [(track_id, used_at) for track_id in track_ids]
        if not rows:
            return 0
        with self._get_connection() as conn:
            conn.executemany("""
                INSERT INTO track_cooldowns (track_id, last_used) VALUES (?, ?)
                ON CONFLICT(track_id) DO UPDATE SET last_used = excluded.last_used
            """, rows)
        return len(rows)

    def get_cooldowns_since(self, since: datetime) -> Dict[str, datetime]:
        with self._get_connection() as conn:
            rows = conn.execute("""
                SELECT track_id, last_used FROM track_cooldowns WHERE last_used >= ?
            """, (since.isoformat(),)).fetchall()
        return {row['track_id']: datetime.fromisoformat(row['last_used']) for row in rows}

    def prune_cooldowns(self, older_than: datetime) -> int:
        with self._get_connection() as conn:
            cursor = conn.execute("DELETE FROM track_cooldowns WHERE last_used < ?", (older_than.isoformat(),))
            removed = cursor.rowcount
        if removed:
            logger.debug(f"Pruned {removed} expired cooldown entries")
        return removed

    def clear_cooldowns(self) -> int:
        with self._get_connection() as conn:
            return conn.execute("DELETE FROM track_cooldowns").rowcount

    # ==================== Artist id cache ====================

    def get_cached_artist_id(self, provider: str, name_key: str) -> Optional[str]:
        with self._get_connection() as conn:
            row = conn.execute("""
                SELECT artist_id FROM artist_id_cache WHERE provider = ? AND name_key = ?
            """, (provider, name_key)).fetchone()
        return row['artist_id'] if row else None

    def cache_artist_id(self, provider: str, name_key: str, artist_id: str):
        with self._get_connection() as conn:
            conn.execute("""
                INSERT OR REPLACE INTO artist_id_cache (provider, name_key, artist_id, resolved_at)
                VALUES (?, ?, ?, ?)
            """, (provider, name_key, artist_id, datetime.now().isoformat()))

    # ==================== Statistics ====================

    def get_statistics(self) -> Dict[str, Any]:
        with self._get_connection() as conn:
            blocked = conn.execute("SELECT COUNT(*) FROM blocked_tracks").fetchone()[0]
            cooldowns = conn.execute("SELECT COUNT(*) FROM track_cooldowns").fetchone()[0]
            artists = conn.execute("SELECT COUNT(*) FROM artist_id_cache").fetchone()[0]
        return {
            'blocked_tracks': blocked,
            'cooldown_entries': cooldowns,
            'cached_artists': artists,
            'database_path': str(self.database_path),
        }


class BlockStore:
    """Block list snapshot; writes go straight through to the database"""

    def __init__(self, database: MixDatabase):
        self.database = database
        self._blocked = database.get_blocked_track_ids()

    def refresh(self):
        self._blocked = self.database.get_blocked_track_ids()

    def is_blocked(self, track_id: str) -> bool:
        return track_id in self._blocked

    def block(self, track_id: str, title: Optional[str] = None, artist_name: Optional[str] = None) -> bool:
        if self.database.block_track(track_id, title, artist_name):
            self._blocked.add(track_id)
            return True
        return False

    def unblock(self, track_id: str) -> bool:
        if self.database.unblock_track(track_id):
            self._blocked.discard(track_id)
            return True
        return False


class CooldownStore:
    """Rolling repeat-avoidance window over recently mixed tracks"""

    def __init__(self, database: MixDatabase, window_days: int = 7, clock=datetime.now):
        self.database = database
        self.window_days = window_days
        self._clock = clock
        self._recent: Optional[Dict[str, datetime]] = None

    @property
    def cutoff(self) -> datetime:
        return self._clock() - timedelta(days=self.window_days)

    def refresh(self):
        self._recent = self.database.get_cooldowns_since(self.cutoff)

    def is_restricted(self, track_id: str) -> bool:
        if self.window_days <= 0:
            return False
        if self._recent is None:
            self.refresh()
        last_used = self._recent.get(track_id)
        return last_used is not None and last_used >= self.cutoff

    def mark_used(self, track_ids: Iterable[str]) -> int:
        now = self._clock()
        track_ids = list(track_ids)
        count = self.database.mark_tracks_used(track_ids, used_at=now)
        if self._recent is not None:
            for track_id in track_ids:
                self._recent[track_id] = now
        self.database.prune_cooldowns(self.cutoff)
        logger.info(f"Marked {count} tracks as used ({self.window_days}-day cooldown)")
        return count


class ArtistIdCache:
    """Name -> catalog artist id lookups kept across runs"""

    def __init__(self, database: MixDatabase):
        self.database = database

    def get(self, provider: str, name_key: str) -> Optional[str]:
        return self.database.get_cached_artist_id(provider, name_key)

    def set(self, provider: str, name_key: str, artist_id: str):
        self.database.cache_artist_id(provider, name_key, artist_id)


# Thread-safe singleton pattern for database access
_database_instances: Dict[str, MixDatabase] = {}
_database_lock = threading.Lock()

def get_database(database_path: str = "database/moodmix.db") -> MixDatabase:
    """Get the shared database instance for a path"""
    with _database_lock:
        if database_path not in _database_instances:
            _database_instances[database_path] = MixDatabase(database_path)
        return _database_instances[database_path]

def close_database():
    """Close database instances (safe to call from any thread)"""
    with _database_lock:
        for db_instance in _database_instances.values():
            db_instance.close()
        _database_instances.clear()
