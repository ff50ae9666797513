import random

import pytest

from database.mix_database import MixDatabase
from tests.fakes import FakeConfigStore, FakeProvider, make_tracks


@pytest.fixture
def rng():
    return random.Random(42)


@pytest.fixture
def full_provider():
    """Every channel linked with plenty of tracks"""
    sources = {
        "liked_songs": make_tracks("liked", 100, artists=[f"Liked Artist {i}" for i in range(10)]),
        "curated-pl": make_tracks("curated", 100),
        "secondary-pl": make_tracks("secondary", 100, artists=[f"Shazam Artist {i}" for i in range(10)]),
        "artist_radio:core-band": make_tracks("core", 80, artists=["Core Band"]),
        "artist_radio:band-a": make_tracks("band-a", 30, artists=["Band A"]),
        "artist_radio:band-b": make_tracks("band-b", 30, artists=["Band B"]),
        "rap-1": make_tracks("rap1", 60),
        "rap-2": make_tracks("rap2", 60),
    }
    return FakeProvider(sources)


@pytest.fixture
def full_config():
    return FakeConfigStore(
        linked={
            'liked': "liked_songs",
            'curated': "curated-pl",
            'secondary': "secondary-pl",
            'artist_station': "core-band",
        },
        similar_artists=["Band A", "Band B"],
        intensity=["rap-1", "rap-2"],
    )


@pytest.fixture
def database(tmp_path):
    return MixDatabase(str(tmp_path / "moodmix.db"))
