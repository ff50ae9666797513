import requests
from typing import Dict, List, Optional, Any, Tuple
from utils.logging_config import get_logger
from utils.rate_limit import RateLimiter, rate_limited
from core.mix_models import ARTIST_RADIO_PREFIX, Track

logger = get_logger("itunes_client")

# /search allows ~20 calls per minute
itunes_limiter = RateLimiter("iTunes", 3.0)

def track_from_itunes(track_data: Dict[str, Any]) -> Track:
    artwork_url = None
    if track_data.get('artworkUrl100'):
        # Replace 100x100 with 600x600 for higher quality
        artwork_url = track_data['artworkUrl100'].replace('100x100bb', '600x600bb')

    track_id = str(track_data.get('trackId', ''))
    return Track(
        id=track_id,
        title=track_data.get('trackName', ''),
        artists=[track_data.get('artistName', 'Unknown Artist')],
        album=track_data.get('collectionName', ''),
        artwork_url=artwork_url,
        duration_ms=track_data.get('trackTimeMillis', 0),
        explicit=track_data.get('trackExplicitness') == 'explicit',
        is_playable=track_data.get('isStreamable', True) is not False,
        uri=f"itunes:track:{track_id}"
    )

class iTunesClient:
    """
    iTunes Search API client used as a catalog search backend.

    Free, no authentication required, but it cannot read a user's library or
    playlists: only searches and artist lookups are served.
    Rate limit: ~20 calls/minute on /search, /lookup appears unlimited.
    """

    SEARCH_URL = "https://itunes.apple.com/search"
    LOOKUP_URL = "https://itunes.apple.com/lookup"

    def __init__(self, country: str = "US", timeout: int = 30):
        self.country = country
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({
            'User-Agent': 'MoodMix/1.0',
            'Accept': 'application/json'
        })
        logger.info(f"iTunes client initialized for country: {country}")

    def is_authenticated(self) -> bool:
        return True

    @rate_limited(itunes_limiter)
    def _search(self, term: str, entity: str, limit: int = 50) -> List[Dict[str, Any]]:
        """Generic search method for iTunes API"""
        params = {
            'term': term,
            'country': self.country,
            'media': 'music',
            'entity': entity,
            'limit': min(limit, 200)  # iTunes max is 200
        }

        response = self.session.get(self.SEARCH_URL, params=params, timeout=self.timeout)

        if response.status_code == 403:
            logger.warning("iTunes API rate limit hit")
            return []

        response.raise_for_status()
        results = response.json().get('results', [])
        logger.debug(f"iTunes search for '{term}' ({entity}) returned {len(results)} results")
        return results

    def _lookup(self, **params) -> List[Dict[str, Any]]:
        """Generic lookup method (not rate limited)"""
        params['country'] = self.country
        response = self.session.get(self.LOOKUP_URL, params=params, timeout=self.timeout)
        response.raise_for_status()
        return response.json().get('results', [])

    def get_tracks(self, source_id: str, limit: int = 50) -> List[Track]:
        """Only artist stations can be served from the public catalog"""
        if not source_id.startswith(ARTIST_RADIO_PREFIX):
            logger.warning(f"iTunes cannot fetch library source '{source_id}'")
            return []

        artist_id = source_id[len(ARTIST_RADIO_PREFIX):]
        results = self._lookup(id=artist_id, entity='song', limit=min(limit, 200))
        return [
            track_from_itunes(item) for item in results
            if item.get('wrapperType') == 'track' and item.get('kind') == 'song'
        ][:limit]

    def search_tracks(self, query: str, limit: int = 20) -> List[Track]:
        try:
            results = self._search(query, 'song', limit)
        except Exception as e:
            logger.error(f"Error searching iTunes: {e}")
            return []

        return [
            track_from_itunes(track_data) for track_data in results
            if track_data.get('wrapperType') == 'track' and track_data.get('kind') == 'song'
        ]

    def search_artist_ids(self, query: str, limit: int = 3) -> List[Tuple[str, str]]:
        try:
            results = self._search(query, 'musicArtist', limit)
        except Exception as e:
            logger.error(f"Error searching iTunes artists: {e}")
            return []

        return [
            (str(artist_data.get('artistId', '')), artist_data.get('artistName', ''))
            for artist_data in results
            if artist_data.get('artistId')
        ]

    def create_playlist(self, name: str, track_ids: List[str], description: str = "") -> Optional[str]:
        logger.warning("iTunes Search API cannot create playlists")
        return None

    def get_playback_state(self) -> Optional[Dict[str, Any]]:
        return None
