import random
from typing import Any, Dict, List, Optional

from config.settings import ConfigManager, config_manager
from core.catalog_provider import CatalogProvider
from core.demo_provider import DemoProvider
from core.itunes_client import iTunesClient
from core.mix_engine import EngineSettings, MixEngine
from core.mix_models import Channel, RunRequest, RunResult
from core.spotify_client import SpotifyClient
from database.mix_database import ArtistIdCache, BlockedTrack, BlockStore, CooldownStore, get_database
from utils.async_helpers import run_async
from utils.logging_config import get_logger

logger = get_logger("mix_service")

STATION_KINDS = ('intensity', 'artist')


class MixService:
    """
    Wires config, catalog clients and persistent stores into a MixEngine and
    exposes blocking entry points for the CLI.
    """

    def __init__(self, config: Optional[ConfigManager] = None, provider=None, search_provider=None,
                 rng: Optional[random.Random] = None):
        config = config or config_manager
        self.config = config
        self.rng = rng
        self.demo_mode = config.is_demo_mode()
        self.provider = provider or self._create_provider()
        self.search_provider = search_provider or self._create_search_provider()

        self.database = get_database(config.get_database_config().get('path', 'database/moodmix.db'))
        self.block_store = BlockStore(self.database)
        self.artist_cache = ArtistIdCache(self.database)

        self.settings = EngineSettings.from_config(
            config.get_engine_config(),
            config.get_discovery_config(),
            demo_mode=self.demo_mode
        )
        logger.info(f"Mix service ready (provider: {self.provider.name}, search: {self.search_provider.name}, "
                    f"demo: {self.demo_mode})")

    def _create_provider(self) -> CatalogProvider:
        if self.demo_mode:
            return CatalogProvider(DemoProvider(), "demo")

        spotify = SpotifyClient(self.config.get_spotify_config())
        if not spotify.is_authenticated():
            logger.warning("Spotify is not configured - every channel will come back empty")
        return CatalogProvider(spotify, "spotify")

    def _create_search_provider(self) -> CatalogProvider:
        catalog = self.config.get_catalog_config()
        if catalog.get('search_provider') == 'itunes' and not self.demo_mode:
            return CatalogProvider(iTunesClient(country=catalog.get('country', 'US')), "itunes")
        return self.provider

    def _build_engine(self, request: RunRequest) -> MixEngine:
        # A fresh cooldown store per run so the request's window applies
        cooldown_store = CooldownStore(self.database, window_days=request.avoid_repeats_window_days)
        self.block_store.refresh()
        return MixEngine(
            self.provider,
            self.config,
            self.block_store,
            cooldown_store=cooldown_store,
            artist_cache=self.artist_cache,
            search_provider=self.search_provider,
            settings=self.settings,
            rng=self.rng,
        )

    def build_request(self, **overrides) -> RunRequest:
        return RunRequest.from_rules(self.config.get_rules(), **overrides)

    # ==================== Mixes ====================

    def generate_mix(self, request: Optional[RunRequest] = None) -> RunResult:
        request = request or self.build_request()
        return run_async(self._build_engine(request).generate(request))

    def generate_single_source(self, channel: Channel, request: Optional[RunRequest] = None) -> RunResult:
        request = request or self.build_request(option_name=channel.label)
        return run_async(self._build_engine(request).generate_single_source(channel, request))

    def generate_station(self, kind: str, request: Optional[RunRequest] = None) -> RunResult:
        if kind not in STATION_KINDS:
            raise ValueError(f"Unknown station: {kind}")

        if kind == 'intensity':
            request = request or self.build_request(option_name="Intensity Radio")
            return run_async(self._build_engine(request).generate_intensity_station(request))

        request = request or self.build_request(option_name="Artist Radio")
        return run_async(self._build_engine(request).generate_artist_station(request))

    def save_mix(self, result: RunResult, name: Optional[str] = None) -> Optional[str]:
        """Create a playlist on the provider; returns its id or None"""
        name = name or result.playlist_name
        description = f"{result.summary} - made with MoodMix"
        playlist_id = run_async(self.provider.create_playlist(name, result.track_ids, description))
        if playlist_id:
            logger.info(f"Saved '{name}' as playlist {playlist_id}")
        else:
            logger.error(f"Failed to save '{name}' to {self.provider.name}")
        return playlist_id

    def now_playing(self) -> Optional[Dict[str, Any]]:
        return run_async(self.provider.get_playback_state())

    # ==================== Block list ====================

    def block_track(self, track_id: str, title: Optional[str] = None, artist_name: Optional[str] = None) -> bool:
        return self.block_store.block(track_id, title, artist_name)

    def unblock_track(self, track_id: str) -> bool:
        return self.block_store.unblock(track_id)

    def list_blocked(self) -> List[BlockedTrack]:
        return self.database.get_blocked_tracks()

    def statistics(self) -> Dict[str, Any]:
        return self.database.get_statistics()

    def clear_history(self) -> int:
        """Forget every cooldown entry so recently mixed tracks are eligible again"""
        removed = self.database.clear_cooldowns()
        logger.info(f"Cleared {removed} cooldown entries")
        return removed
