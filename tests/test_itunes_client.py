from unittest.mock import MagicMock

import pytest
import requests

from core.itunes_client import iTunesClient, itunes_limiter, track_from_itunes


def itunes_song(track_id, artist="Band", **extra):
    data = {
        'wrapperType': 'track',
        'kind': 'song',
        'trackId': track_id,
        'trackName': f"Song {track_id}",
        'artistName': artist,
        'collectionName': 'Album',
        'artworkUrl100': 'https://img/100x100bb.jpg',
        'trackTimeMillis': 180000,
        'trackExplicitness': 'notExplicit',
    }
    data.update(extra)
    return data


def response(results, status_code=200):
    mock = MagicMock()
    mock.status_code = status_code
    mock.json.return_value = {'results': results}
    if status_code >= 400:
        mock.raise_for_status.side_effect = requests.HTTPError(str(status_code))
    return mock


@pytest.fixture(autouse=True)
def no_rate_limit(monkeypatch):
    monkeypatch.setattr(itunes_limiter, "min_interval", 0)


@pytest.fixture
def client():
    client = iTunesClient(country="US")
    client.session = MagicMock()
    return client


class TestiTunesClient:
    def test_track_normalization(self):
        track = track_from_itunes(itunes_song(42, trackExplicitness='explicit'))

        assert track.id == "42"
        assert track.explicit
        assert track.artwork_url == 'https://img/600x600bb.jpg'
        assert track.uri == "itunes:track:42"

    def test_search_tracks_skips_non_songs(self, client):
        client.session.get.return_value = response([
            itunes_song(1), {'wrapperType': 'collection', 'collectionId': 9}, itunes_song(2)
        ])

        tracks = client.search_tracks("shoegaze", limit=5)

        assert [track.id for track in tracks] == ["1", "2"]
        assert client.session.get.call_args[1]['params']['entity'] == 'song'

    def test_rate_limited_search_returns_empty(self, client):
        client.session.get.return_value = response([], status_code=403)

        assert client.search_tracks("shoegaze") == []

    def test_http_errors_return_empty(self, client):
        client.session.get.return_value = response([], status_code=500)

        assert client.search_tracks("shoegaze") == []
        assert client.search_artist_ids("Slowdive") == []

    def test_search_artist_ids(self, client):
        client.session.get.return_value = response([{'artistId': 77, 'artistName': 'Slowdive'}])

        assert client.search_artist_ids("Slowdive") == [("77", "Slowdive")]

    def test_artist_radio_uses_lookup(self, client):
        client.session.get.return_value = response([
            {'wrapperType': 'artist', 'artistId': 77}, itunes_song(1), itunes_song(2)
        ])

        tracks = client.get_tracks("artist_radio:77", 10)

        assert [track.id for track in tracks] == ["1", "2"]
        assert client.session.get.call_args[0][0] == iTunesClient.LOOKUP_URL

    def test_library_sources_unsupported(self, client):
        assert client.get_tracks("liked_songs", 10) == []
        assert client.create_playlist("Mix", ["1"]) is None
