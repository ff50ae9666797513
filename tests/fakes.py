"""Test doubles for the provider, config store and persistent stores."""

import asyncio
from typing import Dict, List, Optional

from core.mix_models import Track

def make_track(track_id: str, artist: str = "Test Artist", **kwargs) -> Track:
    return Track(id=track_id, title=f"Song {track_id}", artists=[artist], **kwargs)

def make_tracks(prefix: str, count: int, artists: Optional[List[str]] = None, **kwargs) -> List[Track]:
    artists = artists or [f"{prefix} artist"]
    return [make_track(f"{prefix}-{i}", artists[i % len(artists)], **kwargs) for i in range(count)]

def slug(name: str) -> str:
    return name.lower().replace(" ", "-")

class FakeProvider:
    """In-memory catalog speaking the async CatalogProvider interface"""

    def __init__(self, sources: Optional[Dict[str, List[Track]]] = None, name: str = "fake",
                 artist_id_prefix: str = ""):
        self.name = name
        self.artist_id_prefix = artist_id_prefix
        self.sources = sources or {}
        self.failing_sources = set()
        self.slow_sources = set()
        self.search_results: Dict[str, List[Track]] = {}
        self.search_error: Optional[Exception] = None
        self.fetch_calls = []
        self.search_calls = []
        self.artist_calls = []
        self.created = []

    def is_authenticated(self) -> bool:
        return True

    async def fetch_tracks(self, source_id: str, limit: int = 50) -> List[Track]:
        self.fetch_calls.append((source_id, limit))
        if source_id in self.slow_sources:
            await asyncio.sleep(10)
        if source_id in self.failing_sources:
            raise RuntimeError(f"source {source_id} unavailable")
        return list(self.sources.get(source_id, []))[:limit]

    async def search_catalog(self, term: str, types: str = "songs", limit: int = 10) -> List[Track]:
        self.search_calls.append((term, limit))
        if self.search_error is not None:
            raise self.search_error
        if term in self.search_results:
            return list(self.search_results[term])[:limit]
        return make_tracks(f"search-{slug(term)}", limit, artists=[term])

    async def search_artists(self, term: str, limit: int = 3):
        self.artist_calls.append(term)
        return [(f"{self.artist_id_prefix}{slug(term)}", term)][:limit]

    async def create_playlist(self, name: str, track_ids: List[str], description: str = ""):
        self.created.append((name, list(track_ids), description))
        return f"playlist-{len(self.created)}"

    async def get_playback_state(self):
        return None

class FakeConfigStore:
    def __init__(self, linked: Optional[Dict[str, str]] = None, similar_artists=None, intensity=None):
        self.linked = linked or {}
        self.similar_artists = list(similar_artists or [])
        self.intensity = list(intensity or [])

    def get_linked_source_id(self, channel_key: str) -> Optional[str]:
        return self.linked.get(channel_key) or None

    def get_similar_artists(self) -> List[str]:
        return self.similar_artists

    def get_intensity_sources(self) -> List[str]:
        return self.intensity

class FakeBlockStore:
    def __init__(self, blocked=()):
        self.blocked = set(blocked)

    def is_blocked(self, track_id: str) -> bool:
        return track_id in self.blocked

class FakeCooldownStore:
    def __init__(self, restricted=()):
        self.restricted = set(restricted)
        self.marked: List[str] = []

    def is_restricted(self, track_id: str) -> bool:
        return track_id in self.restricted

    def mark_used(self, track_ids) -> int:
        track_ids = list(track_ids)
        self.marked.extend(track_ids)
        return len(track_ids)

class FakeArtistCache:
    def __init__(self):
        self.entries = {}

    def get(self, provider: str, name_key: str):
        return self.entries.get((provider, name_key))

    def set(self, provider: str, name_key: str, artist_id: str):
        self.entries[(provider, name_key)] = artist_id

async def no_sleep(delay):
    return None

