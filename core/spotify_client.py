import spotipy
from spotipy.oauth2 import SpotifyOAuth
from typing import Dict, List, Optional, Any, Tuple
from utils.logging_config import get_logger
from utils.rate_limit import RateLimiter, rate_limited
from core.mix_models import ARTIST_RADIO_PREFIX, Track

logger = get_logger("spotify_client")

# 100ms between API calls, 1s pause after a 429
spotify_limiter = RateLimiter("Spotify", 0.1)
RATE_LIMIT_BACKOFF = 1.0

LIKED_SONGS_SOURCE = "liked_songs"

SPOTIFY_SCOPE = (
    "user-library-read playlist-read-private playlist-read-collaborative "
    "playlist-modify-private playlist-modify-public user-read-playback-state"
)

def track_from_spotify(track_data: Dict[str, Any], album_data: Optional[Dict[str, Any]] = None) -> Track:
    """Normalize a Spotify track object (album_data for simplified album-track items)"""
    album = album_data or track_data.get('album') or {}
    images = album.get('images') or []

    return Track(
        id=track_data['id'],
        title=track_data.get('name', ''),
        artists=[artist['name'] for artist in track_data.get('artists', []) if artist.get('name')],
        album=album.get('name', ''),
        artwork_url=images[0]['url'] if images else None,
        duration_ms=track_data.get('duration_ms') or 0,
        explicit=bool(track_data.get('explicit')),
        # is_playable is only present when a market is given; absent means playable
        is_playable=track_data.get('is_playable', True) is not False,
        is_local=bool(track_data.get('is_local')),
        uri=track_data.get('uri') or f"spotify:track:{track_data['id']}"
    )

class SpotifyClient:
    def __init__(self, spotify_config: Dict[str, str], cache_path: str = '.spotify_cache'):
        self.sp: Optional[spotipy.Spotify] = None
        self.user_id: Optional[str] = None
        self._setup_client(spotify_config, cache_path)

    def _setup_client(self, config: Dict[str, str], cache_path: str):
        if not config.get('client_id') or not config.get('client_secret'):
            logger.warning("Spotify credentials not configured")
            return

        try:
            auth_manager = SpotifyOAuth(
                client_id=config['client_id'],
                client_secret=config['client_secret'],
                redirect_uri=config.get('redirect_uri') or "http://localhost:8888/callback",
                scope=SPOTIFY_SCOPE,
                cache_path=cache_path
            )

            self.sp = spotipy.Spotify(auth_manager=auth_manager)
            # User info is fetched lazily on the first call that needs it
            self.user_id = None
            logger.info("Spotify client initialized")

        except Exception as e:
            logger.error(f"Failed to authenticate with Spotify: {e}")
            self.sp = None

    def is_authenticated(self) -> bool:
        """Check if Spotify client is set up (fast check, no API calls)"""
        return self.sp is not None

    def _ensure_user_id(self) -> bool:
        """Ensure user_id is loaded (may make API call)"""
        if self.user_id is None and self.sp is not None:
            try:
                user_info = self.sp.current_user()
                self.user_id = user_info['id']
                logger.info(f"Authenticated with Spotify as {user_info.get('display_name') or self.user_id}")
                return True
            except Exception as e:
                logger.error(f"Failed to fetch user info: {e}")
                return False
        return self.user_id is not None

    def _require_client(self):
        if not self.is_authenticated():
            raise RuntimeError("Not authenticated with Spotify")

    def _collect_pages(self, results, limit: int, extract) -> List[Track]:
        tracks = []
        while results and len(tracks) < limit:
            for item in results['items']:
                track_data = extract(item)
                if track_data and track_data.get('id'):
                    tracks.append(track_from_spotify(track_data))
                if len(tracks) >= limit:
                    break
            results = self.sp.next(results) if results.get('next') and len(tracks) < limit else None
        return tracks

    # ==================== Track sources ====================

    def get_tracks(self, source_id: str, limit: int = 50) -> List[Track]:
        """
        Fetch tracks for a linked source.

        source_id is "liked_songs", "artist_radio:<artist id>" or a playlist id.
        API errors propagate to the caller.
        """
        self._require_client()

        if source_id == LIKED_SONGS_SOURCE:
            return self.get_liked_tracks(limit)
        if source_id.startswith(ARTIST_RADIO_PREFIX):
            return self.get_artist_radio(source_id[len(ARTIST_RADIO_PREFIX):], limit)
        return self.get_playlist_tracks(source_id, limit)

    @rate_limited(spotify_limiter, backoff=RATE_LIMIT_BACKOFF)
    def get_liked_tracks(self, limit: int = 200) -> List[Track]:
        results = self.sp.current_user_saved_tracks(limit=min(50, limit), market='from_token')
        tracks = self._collect_pages(results, limit, lambda item: item.get('track'))
        logger.info(f"Retrieved {len(tracks)} liked tracks")
        return tracks

    @rate_limited(spotify_limiter, backoff=RATE_LIMIT_BACKOFF)
    def get_playlist_tracks(self, playlist_id: str, limit: int = 100) -> List[Track]:
        results = self.sp.playlist_items(
            playlist_id,
            limit=min(100, limit),
            additional_types=('track',),
            market='from_token'
        )
        tracks = self._collect_pages(results, limit, lambda item: item.get('track'))
        logger.info(f"Retrieved {len(tracks)} tracks from playlist {playlist_id}")
        return tracks

    @rate_limited(spotify_limiter, backoff=RATE_LIMIT_BACKOFF)
    def get_artist_radio(self, artist_id: str, limit: int = 80) -> List[Track]:
        """Top tracks first, then album cuts until the limit is reached"""
        tracks = [
            track_from_spotify(track_data)
            for track_data in self.sp.artist_top_tracks(artist_id).get('tracks', [])
            if track_data.get('id')
        ][:limit]
        seen = {track.id for track in tracks}

        albums = self.sp.artist_albums(artist_id, album_type='album,single', limit=20)
        for album_data in albums.get('items', []):
            if len(tracks) >= limit:
                break
            album_tracks = self.sp.album_tracks(album_data['id'], limit=50)
            for track_data in album_tracks.get('items', []):
                if not track_data.get('id') or track_data['id'] in seen:
                    continue
                seen.add(track_data['id'])
                tracks.append(track_from_spotify(track_data, album_data=album_data))
                if len(tracks) >= limit:
                    break

        logger.info(f"Retrieved {len(tracks)} artist radio tracks for {artist_id}")
        return tracks

    # ==================== Search ====================

    @rate_limited(spotify_limiter, backoff=RATE_LIMIT_BACKOFF)
    def search_tracks(self, query: str, limit: int = 20) -> List[Track]:
        if not self.is_authenticated():
            return []

        try:
            results = self.sp.search(q=query, type='track', limit=min(50, limit))
            return [
                track_from_spotify(track_data)
                for track_data in results['tracks']['items']
                if track_data and track_data.get('id')
            ]

        except Exception as e:
            logger.error(f"Error searching tracks: {e}")
            return []

    @rate_limited(spotify_limiter, backoff=RATE_LIMIT_BACKOFF)
    def search_artist_ids(self, query: str, limit: int = 3) -> List[Tuple[str, str]]:
        """Search artists, returning (artist id, artist name) pairs"""
        if not self.is_authenticated():
            return []

        try:
            results = self.sp.search(q=query, type='artist', limit=limit)
            return [(artist['id'], artist['name']) for artist in results['artists']['items']]

        except Exception as e:
            logger.error(f"Error searching artists: {e}")
            return []

    # ==================== Library / playback ====================

    def create_playlist(self, name: str, track_ids: List[str], description: str = "Created with MoodMix") -> Optional[str]:
        if not self.is_authenticated() or not self._ensure_user_id():
            logger.error("Cannot create playlist - not authenticated with Spotify")
            return None

        try:
            playlist = self.sp.user_playlist_create(self.user_id, name, public=False, description=description)
            uris = [f"spotify:track:{track_id}" for track_id in track_ids]
            for start in range(0, len(uris), 100):
                self.sp.playlist_add_items(playlist['id'], uris[start:start + 100])
            logger.info(f"Created playlist '{name}' with {len(uris)} tracks")
            return playlist['id']

        except Exception as e:
            logger.error(f"Error creating playlist '{name}': {e}")
            return None

    def get_playback_state(self) -> Optional[Dict[str, Any]]:
        if not self.is_authenticated():
            return None

        try:
            playback = self.sp.current_playback()
            if not playback or not playback.get('item'):
                return playback
            item = playback['item']
            return {
                'is_playing': playback.get('is_playing', False),
                'progress_ms': playback.get('progress_ms'),
                'device': (playback.get('device') or {}).get('name'),
                'track': track_from_spotify(item) if item.get('type', 'track') == 'track' else None,
            }
        except Exception as e:
            logger.error(f"Error fetching playback state: {e}")
            return None
