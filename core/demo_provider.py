#!/usr/bin/env python3

"""
Demo Provider - offline catalog for previews and UI testing without API keys.

Every source id maps to a stable pseudo-random set of tracks, so the full
engine (recipe, pools, discovery, interleave) runs exactly as it would
against a real provider.
"""

import random
import zlib
from typing import Any, Dict, List, Optional, Tuple

from core.mix_models import Track
from utils.logging_config import get_logger

logger = get_logger("demo_provider")

DEMO_FEATURED_TRACKS = [
    ("Midnight City", "M83", "Hurry Up, We're Dreaming", 243000),
    ("Through the Fire and Flames", "DragonForce", "Inhuman Rampage", 441000),
    ("Starboy", "The Weeknd", "Starboy", 230000),
    ("Diamonds From Sierra Leone", "Kanye West", "Late Registration", 288000),
    ("Everlong", "Foo Fighters", "The Colour and the Shape", 250000),
]

DEMO_ARTISTS = [
    "Paper Lanterns", "The Quiet Hours", "Northbound", "Violet Static", "Harbor Lights",
    "Glass Orchard", "Low Tide Radio", "Copper Sun", "The Night Shift", "Ember & Ash",
    "Saltwater Saints", "Neon Parish", "Wild Acre", "Ghost Frequency", "Iron Meadow",
]

TITLE_WORDS = [
    "Midnight", "Static", "Golden", "Hollow", "Electric", "River", "Signal", "Paper",
    "Burning", "Satellite", "Velvet", "Winter", "Echo", "Canyon", "Wildfire", "Silver",
]

DEMO_SOURCE_SIZE = 120


def _stable_seed(value: str) -> int:
    return zlib.crc32(value.encode('utf-8'))


def _slug(value: str) -> str:
    return "".join(ch if ch.isalnum() else "_" for ch in value.lower()).strip("_")


class DemoProvider:
    """Deterministic stand-in for a streaming catalog"""

    def __init__(self, source_size: int = DEMO_SOURCE_SIZE):
        self.source_size = source_size
        self.created_playlists: Dict[str, List[str]] = {}
        logger.info("Demo provider active - no external calls will be made")

    def is_authenticated(self) -> bool:
        return True

    def _generate(self, namespace: str, count: int, artists: Optional[List[str]] = None) -> List[Track]:
        rng = random.Random(_stable_seed(namespace))
        artists = artists or DEMO_ARTISTS
        tracks = []
        for index in range(count):
            title = f"{rng.choice(TITLE_WORDS)} {rng.choice(TITLE_WORDS)}"
            artist = rng.choice(artists)
            tracks.append(Track(
                id=f"demo:{_slug(namespace)}:{index}",
                title=title,
                artists=[artist],
                album=f"{rng.choice(TITLE_WORDS)} Sessions",
                duration_ms=rng.randint(150, 330) * 1000,
                explicit=rng.random() < 0.15,
                uri=f"demo:track:{_slug(namespace)}:{index}",
            ))
        return tracks

    def get_tracks(self, source_id: str, limit: int = 50) -> List[Track]:
        tracks = self._generate(source_id, self.source_size)
        if source_id == "liked_songs":
            featured = [
                Track(id=f"demo:featured:{index}", title=title, artists=[artist], album=album,
                      duration_ms=duration, uri=f"demo:track:featured:{index}")
                for index, (title, artist, album, duration) in enumerate(DEMO_FEATURED_TRACKS)
            ]
            tracks = featured + tracks
        return tracks[:limit]

    def search_tracks(self, query: str, limit: int = 20) -> List[Track]:
        return self._generate(f"search:{query}", limit, artists=[query.title()] + DEMO_ARTISTS[:3])

    def search_artist_ids(self, query: str, limit: int = 3) -> List[Tuple[str, str]]:
        return [(f"demo-artist-{_slug(query)}", query)][:limit]

    def create_playlist(self, name: str, track_ids: List[str], description: str = "") -> Optional[str]:
        playlist_id = f"demo_playlist_{len(self.created_playlists) + 1}"
        self.created_playlists[playlist_id] = list(track_ids)
        logger.info(f"[DEMO] Created playlist '{name}' with {len(track_ids)} tracks")
        return playlist_id

    def get_playback_state(self) -> Optional[Dict[str, Any]]:
        title, artist, album, duration = DEMO_FEATURED_TRACKS[0]
        return {
            'is_playing': False,
            'progress_ms': 45000,
            'device': 'Demo Simulator',
            'track': Track(id="demo:featured:0", title=title, artists=[artist], album=album, duration_ms=duration),
        }
