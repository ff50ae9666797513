import asyncio
import math
import random
from typing import Dict, List, Optional

from core.mix_models import ARTIST_RADIO_PREFIX, Channel, ChannelPool, Recipe, Track
from core.recipe import round_half_up
from utils.logging_config import get_logger

logger = get_logger("channel_fetcher")

# Minimum candidates requested per channel, regardless of recipe size
DEFAULT_FETCH_LIMITS = {
    Channel.LIKED: 200,
    Channel.SECONDARY: 100,
    Channel.CURATED: 150,
    Channel.ARTIST_STATION: 80,
}
INTENSITY_SOURCE_LIMIT = 60
SIMILAR_ARTIST_MIN_TRACKS = 3
SIMILAR_ARTIST_MAX_TRACKS = 15


def artist_radio_source(artist_id: str) -> str:
    return f"{ARTIST_RADIO_PREFIX}{artist_id}"


class ChannelPoolFetcher:
    """
    Fetches and filters candidate pools for every channel concurrently.

    A failing or unconfigured channel yields an empty pool; it never aborts
    the run. Every pool is de-duplicated and shuffled before it is returned,
    so the order in which channels arrive never biases track order.
    """

    def __init__(self, provider, config_store, track_filter, artist_resolver=None,
                 rng: Optional[random.Random] = None, oversample_factor: int = 4,
                 timeout: Optional[float] = 20.0):
        self.provider = provider
        self.config_store = config_store
        self.track_filter = track_filter
        self.artist_resolver = artist_resolver
        self.rng = rng or random.Random()
        self.oversample_factor = max(1, oversample_factor)
        self.timeout = timeout

    def _limit_for(self, channel: Channel, needed: int) -> int:
        return max(DEFAULT_FETCH_LIMITS.get(channel, INTENSITY_SOURCE_LIMIT), needed * self.oversample_factor)

    async def _fetch_source(self, source_id: str, limit: int) -> List[Track]:
        call = self.provider.fetch_tracks(source_id, limit)
        if self.timeout:
            return await asyncio.wait_for(call, timeout=self.timeout)
        return await call

    async def _fetch_source_safe(self, source_id: str, limit: int, label: str) -> List[Track]:
        """Single source fetch where failure means an empty contribution"""
        try:
            return await self._fetch_source(source_id, limit)
        except asyncio.TimeoutError:
            logger.error(f"{label}: fetch of {source_id} timed out after {self.timeout}s")
        except Exception as e:
            logger.error(f"{label}: fetch of {source_id} failed: {e}")
        return []

    async def _fetch_raw(self, channel: Channel, needed: int, intensity: float) -> List[Track]:
        if channel == Channel.INTENSITY:
            return await self._fetch_intensity(needed)
        if channel == Channel.SIMILAR_ARTISTS:
            return await self._fetch_similar_artists(needed, intensity)

        source_id = self.config_store.get_linked_source_id(channel.value)
        if not source_id:
            logger.info(f"{channel.label}: no linked source, skipping")
            return []
        if channel == Channel.ARTIST_STATION and not source_id.startswith(ARTIST_RADIO_PREFIX):
            source_id = artist_radio_source(source_id)
        return await self._fetch_source(source_id, self._limit_for(channel, needed))

    async def _fetch_intensity(self, needed: int) -> List[Track]:
        sources = self.config_store.get_intensity_sources()
        if not sources:
            logger.info(f"{Channel.INTENSITY.label}: no linked sources, skipping")
            return []

        per_source = max(INTENSITY_SOURCE_LIMIT, math.ceil(needed * self.oversample_factor / len(sources)))
        pools = await asyncio.gather(*[
            self._fetch_source_safe(source_id, per_source, Channel.INTENSITY.label)
            for source_id in sources
        ])
        return [track for pool in pools for track in pool]

    async def _fetch_similar_artists(self, needed: int, intensity: float) -> List[Track]:
        names = self.config_store.get_similar_artists()
        if not names:
            logger.info(f"{Channel.SIMILAR_ARTISTS.label}: no similar artists configured, skipping")
            return []
        if self.artist_resolver is None:
            logger.warning(f"{Channel.SIMILAR_ARTISTS.label}: no artist resolver available, skipping")
            return []

        # Light touch at zen, full force at chaos
        per_artist = max(SIMILAR_ARTIST_MIN_TRACKS, round_half_up(intensity * SIMILAR_ARTIST_MAX_TRACKS))
        per_artist = max(per_artist, math.ceil(needed * self.oversample_factor / len(names)))

        async def fetch_artist(name: str) -> List[Track]:
            try:
                artist_id = await self.artist_resolver.resolve(name)
            except Exception as e:
                logger.error(f"{Channel.SIMILAR_ARTISTS.label}: could not resolve '{name}': {e}")
                return []
            if not artist_id:
                return []
            return await self._fetch_source_safe(artist_radio_source(artist_id), per_artist,
                                                 f"{Channel.SIMILAR_ARTISTS.label} ({name})")

        pools = await asyncio.gather(*[fetch_artist(name) for name in names])
        return [track for pool in pools for track in pool]

    async def fetch_channel(self, channel: Channel, needed: int = 0, intensity: float = 1.0,
                            shuffle: bool = True) -> ChannelPool:
        pool = ChannelPool(channel=channel)
        try:
            pool.tracks = await self._fetch_raw(channel, needed, intensity)
        except asyncio.TimeoutError:
            pool.error = f"timed out after {self.timeout}s"
            logger.error(f"{channel.label}: fetch {pool.error}")
        except Exception as e:
            pool.error = str(e)
            logger.error(f"{channel.label}: fetch failed: {e}")

        unique = []
        seen = set()
        for track in pool.tracks:
            if track.id and track.id not in seen:
                seen.add(track.id)
                unique.append(track)

        pool.filtered = self.track_filter.apply(unique, label=channel.label)
        if shuffle:
            self.rng.shuffle(pool.filtered)
        return pool

    async def fetch_all(self, recipe: Recipe, channels: Optional[List[Channel]] = None) -> Dict[Channel, ChannelPool]:
        """Fetch every channel in parallel; the mood drives similar-artist depth"""
        channels = channels or list(Channel)
        pools = await asyncio.gather(*[
            self.fetch_channel(channel, recipe.count(channel), recipe.mood, shuffle=False)
            for channel in channels
        ])
        result = dict(zip(channels, pools))
        # Shuffled in channel order, independent of arrival order
        for pool in pools:
            self.rng.shuffle(pool.filtered)
        logger.info("Pools: " + ", ".join(
            f"{channel.label} {len(pool.filtered)}/{len(pool.tracks)}" for channel, pool in result.items()
        ))
        return result
