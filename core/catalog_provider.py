from typing import Any, Dict, List, Optional, Tuple

from core.mix_models import Track
from utils.async_helpers import run_blocking
from utils.logging_config import get_logger

logger = get_logger("catalog_provider")


class CatalogProvider:
    """
    Async face of a blocking catalog client (SpotifyClient, iTunesClient,
    DemoProvider). The mix engine only talks to this interface; the wrapped
    client already returns normalized Track objects.
    """

    def __init__(self, client, name: str):
        self.client = client
        self.name = name

    def is_authenticated(self) -> bool:
        return self.client.is_authenticated()

    async def fetch_tracks(self, source_id: str, limit: int = 50) -> List[Track]:
        return await run_blocking(self.client.get_tracks, source_id, limit)

    async def search_catalog(self, term: str, types: str = "songs", limit: int = 10) -> List[Track]:
        if types != "songs":
            raise ValueError(f"Unsupported catalog search type: {types}")
        return await run_blocking(self.client.search_tracks, term, limit)

    async def search_artists(self, term: str, limit: int = 3) -> List[Tuple[str, str]]:
        return await run_blocking(self.client.search_artist_ids, term, limit)

    async def create_playlist(self, name: str, track_ids: List[str], description: str = "") -> Optional[str]:
        return await run_blocking(self.client.create_playlist, name, track_ids, description)

    async def get_playback_state(self) -> Optional[Dict[str, Any]]:
        return await run_blocking(self.client.get_playback_state)

    def __repr__(self):
        return f"CatalogProvider({self.name})"
