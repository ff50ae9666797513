#!/usr/bin/env python3

"""
MoodMix Database Module

SQLite storage for the state the mix engine keeps between runs:

- Block list (tracks that never appear in a mix)
- Cooldown history (tracks used recently, excluded for a rolling window)
- Artist id cache (artist name -> catalog id, avoids repeat lookups)

Usage:
    from database import get_database, BlockStore, CooldownStore

    db = get_database()
    cooldowns = CooldownStore(db, window_days=7)
"""

from .mix_database import (
    MixDatabase,
    BlockedTrack,
    BlockStore,
    CooldownStore,
    ArtistIdCache,
    get_database,
    close_database
)

__all__ = [
    'MixDatabase',
    'BlockedTrack',
    'BlockStore',
    'CooldownStore',
    'ArtistIdCache',
    'get_database',
    'close_database'
]

__version__ = '1.0.0'
