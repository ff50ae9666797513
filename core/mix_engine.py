#!/usr/bin/env python3

"""
Mix Engine - builds Smart Mixes and single-source runs.

MOOD SLIDER (0 -> 1)
    0.00 - 0.33  zen:    liked + curated heavy, artist station light, no intensity
    0.34 - 0.66  focus:  every channel present, intensity enters lightly
    0.67 - 1.00  chaos:  similar artists + intensity heavy, curated gone

DISCOVERY SLIDER (0 -> 1)
    0.00         favorites only, no new tracks
    0.01 - 0.50  familiar territory, seeded from artists in the personal pools
    0.51 - 1.00  outside the norm, seeded from mood-matched genre terms

A Smart Mix run goes through: recipe -> pool fetch (parallel) -> discovery
(when the recipe asks for it) -> interleave -> fallback fill (when short) ->
cooldown recording.
"""

import asyncio
import random
from dataclasses import dataclass
from typing import Dict, List, Optional, Any

from core.batch_scheduler import BatchScheduler
from core.channel_fetcher import ChannelPoolFetcher
from core.discovery_resolver import ArtistResolver, DiscoveryResolver
from core.exceptions import NoEligibleTracksError, SourceNotConfiguredError
from core.mix_assembly import LabeledTrack, fill_from_fallback, interleave, take
from core.mix_models import (
    Channel, ChannelPool, Recipe, RunRequest, RunResult, Track,
    DISCOVERY_LABEL, FALLBACK_LABEL
)
from core.recipe import calculate_mood_recipe
from core.track_filter import TrackFilter
from utils.logging_config import get_logger

logger = get_logger("mix_engine")

SINGLE_SOURCE_CHANNELS = (Channel.LIKED, Channel.SECONDARY, Channel.CURATED)

@dataclass
class EngineSettings:
    oversample_factor: int = 4
    request_timeout: Optional[float] = 20.0
    demo_mode: bool = False
    discovery_batch_size: int = 5
    discovery_batch_delay: float = 0.5
    per_artist_limit: int = 10
    seed_artist_limit: int = 5

    @classmethod
    def from_config(cls, engine_config: Dict[str, Any], discovery_config: Dict[str, Any],
                    demo_mode: bool = False) -> 'EngineSettings':
        return cls(
            oversample_factor=engine_config.get('oversample_factor', 4),
            request_timeout=engine_config.get('request_timeout', 20.0),
            demo_mode=demo_mode or bool(engine_config.get('demo_mode', False)),
            discovery_batch_size=discovery_config.get('batch_size', 5),
            discovery_batch_delay=discovery_config.get('batch_delay', 0.5),
            per_artist_limit=discovery_config.get('per_artist_limit', 10),
            seed_artist_limit=discovery_config.get('seed_artist_limit', 5),
        )

class MixEngine:
    """Turns a RunRequest into an ordered, de-duplicated RunResult"""

    def __init__(self, provider, config_store, block_store, cooldown_store=None, artist_cache=None,
                 search_provider=None, settings: Optional[EngineSettings] = None,
                 rng: Optional[random.Random] = None, sleep=asyncio.sleep):
        self.provider = provider
        self.search_provider = search_provider or provider
        self.config_store = config_store
        self.block_store = block_store
        self.cooldown_store = cooldown_store
        self.settings = settings or EngineSettings()
        self.rng = rng or random.Random()

        # Artist ids must come from the catalog that serves artist_radio sources
        provider_name = getattr(self.provider, 'name', 'catalog')
        self.artist_resolver = ArtistResolver(self.provider, cache=artist_cache, provider_name=provider_name)
        self.discovery_resolver = DiscoveryResolver(
            self.search_provider,
            scheduler=BatchScheduler(
                batch_size=self.settings.discovery_batch_size,
                delay=self.settings.discovery_batch_delay,
                timeout=self.settings.request_timeout,
                sleep=sleep
            ),
            rng=self.rng,
            per_artist_limit=self.settings.per_artist_limit,
            seed_artist_limit=self.settings.seed_artist_limit,
        )

    # ── Helpers ────────────────────────────────

    def _uses_cooldown(self, request: RunRequest) -> bool:
        return self.cooldown_store is not None and request.avoid_repeats and not self.settings.demo_mode

    def _build_filter(self, request: RunRequest) -> TrackFilter:
        return TrackFilter(
            block_store=self.block_store,
            cooldown_store=self.cooldown_store if self._uses_cooldown(request) else None,
            allow_explicit=request.allow_explicit,
        )

    def _build_fetcher(self, track_filter: TrackFilter) -> ChannelPoolFetcher:
        return ChannelPoolFetcher(
            self.provider,
            self.config_store,
            track_filter,
            artist_resolver=self.artist_resolver,
            rng=self.rng,
            oversample_factor=self.settings.oversample_factor,
            timeout=self.settings.request_timeout,
        )

    def _record_cooldown(self, request: RunRequest, tracks: List[Track]):
        if not tracks or not self._uses_cooldown(request):
            return
        try:
            self.cooldown_store.mark_used([track.id for track in tracks])
        except Exception as e:
            logger.error(f"Failed to record cooldown for {len(tracks)} tracks: {e}")

    def _summary(self, counts: Dict[str, int], labels: List[str]) -> str:
        summary = " • ".join(f"{label} {counts.get(label, 0)}" for label in labels)
        if counts.get(FALLBACK_LABEL):
            summary += f" • {FALLBACK_LABEL} {counts[FALLBACK_LABEL]}"
        if self.settings.demo_mode:
            summary = f"[DEMO] {summary}"
        return summary

    @staticmethod
    def _count_labels(selected: List[LabeledTrack]) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for label, _ in selected:
            counts[label] = counts.get(label, 0) + 1
        return counts

    # ── Smart Mix ──────────────────────────────

    async def generate(self, request: RunRequest) -> RunResult:
        """
        Build a Smart Mix.

        Raises:
            NoEligibleTracksError: when no channel, discovery or fallback
                track survives filtering
        """
        mood = self.rng.random() if request.lightning else request.mood
        recipe = calculate_mood_recipe(mood, request.target_length, request.discover_level)
        option_name = f"Lightning (Mood: {round(recipe.mood * 100)}%)" if request.lightning else request.option_name

        logger.info(f"Building '{option_name}': mood={recipe.mood:.2f} discover={request.discover_level:.2f} "
                    f"length={request.target_length}")
        logger.info(f"Recipe: {recipe.describe()}")

        track_filter = self._build_filter(request)
        pools = await self._build_fetcher(track_filter).fetch_all(recipe)

        discovery_tracks = await self._resolve_discovery(recipe, pools, track_filter)

        queues = [(channel.label, take(pools[channel].filtered, recipe.count(channel))) for channel in Channel]
        queues.append((DISCOVERY_LABEL, discovery_tracks[:recipe.discovery_count]))

        selected = interleave(queues, request.target_length)
        selected, fallback_added, warning = fill_from_fallback(
            selected,
            [pool.filtered for pool in pools.values()],
            request.target_length,
            rng=self.rng
        )
        if fallback_added or warning:
            logger.warning(warning)

        if not selected:
            raise NoEligibleTracksError(
                "No eligible tracks found",
                details="every channel was empty, blocked, or on cooldown",
                context={'option': option_name, 'recipe': recipe.describe()}
            )

        tracks = [track for _, track in selected]
        self._record_cooldown(request, tracks)

        counts = self._count_labels(selected)
        labels = [channel.label for channel in Channel] + [DISCOVERY_LABEL]
        result = RunResult(
            option_name=option_name,
            tracks=tracks,
            summary=self._summary(counts, labels),
            mood=recipe.mood,
            recipe=recipe,
            warning=warning,
            channel_counts=counts,
        )
        logger.info(f"Built '{option_name}' with {len(tracks)} tracks: {result.summary}")
        return result

    async def _resolve_discovery(self, recipe: Recipe, pools: Dict[Channel, ChannelPool],
                                 track_filter: TrackFilter) -> List[Track]:
        if recipe.discovery_count <= 0:
            return []

        known_tracks = pools[Channel.LIKED].tracks + pools[Channel.SECONDARY].tracks
        fetched_ids = {track.id for pool in pools.values() for track in pool.tracks}
        try:
            return await self.discovery_resolver.resolve(
                recipe.mood,
                recipe.discover_level,
                recipe.discovery_count,
                known_tracks,
                exclude_ids=fetched_ids,
                track_filter=track_filter,
            )
        except Exception as e:
            logger.error(f"Discovery fetch failed: {e}")
            return []

    # ── Single-source runs ─────────────────────

    async def _finish_single(self, request: RunRequest, option_name: str, tracks: List[Track], summary: str,
                             warning: Optional[str] = None, counts: Optional[Dict[str, int]] = None) -> RunResult:
        if not tracks:
            raise NoEligibleTracksError("No eligible tracks found", context={'option': option_name})

        self._record_cooldown(request, tracks)
        if self.settings.demo_mode:
            summary = f"[DEMO] {summary}"
        logger.info(f"Built '{option_name}' with {len(tracks)} tracks: {summary}")
        return RunResult(
            option_name=option_name,
            tracks=tracks,
            summary=summary,
            mood=request.mood,
            warning=warning,
            channel_counts=counts or {},
        )

    async def generate_single_source(self, channel: Channel, request: RunRequest) -> RunResult:
        """Pull purely from one personal channel, filtered and shuffled"""
        if channel not in SINGLE_SOURCE_CHANNELS:
            raise ValueError(f"{channel.label} is not a single-source channel")
        if not self.config_store.get_linked_source_id(channel.value):
            raise SourceNotConfiguredError(
                f"Source not configured for {channel.label}. Link it in the config.",
                channel_key=channel.value
            )

        fetcher = self._build_fetcher(self._build_filter(request))
        pool = await fetcher.fetch_channel(channel, request.target_length)
        tracks = take(pool.filtered, request.target_length)

        warning = None
        if len(tracks) < request.target_length:
            warning = f"Only {len(tracks)} tracks available from {channel.label}."

        return await self._finish_single(
            request, request.option_name or channel.label, tracks,
            f"{channel.label}: {len(tracks)} tracks", warning,
            counts={channel.label: len(tracks)}
        )

    async def generate_intensity_station(self, request: RunRequest) -> RunResult:
        """Balanced pull across every linked intensity source"""
        sources = self.config_store.get_intensity_sources()
        if not sources:
            raise SourceNotConfiguredError(
                "No intensity sources configured. Link them in the config.",
                channel_key=Channel.INTENSITY.value
            )

        fetcher = self._build_fetcher(self._build_filter(request))
        pool = await fetcher.fetch_channel(Channel.INTENSITY, request.target_length)
        tracks = take(pool.filtered, request.target_length)

        return await self._finish_single(
            request, request.option_name or Channel.INTENSITY.label, tracks,
            f"{Channel.INTENSITY.label}: {len(tracks)} tracks from {len(sources)} sources",
            counts={Channel.INTENSITY.label: len(tracks)}
        )

    async def generate_artist_station(self, request: RunRequest) -> RunResult:
        """Artist station plus similar artists at full intensity"""
        if not self.config_store.get_linked_source_id(Channel.ARTIST_STATION.value) \
                and not self.config_store.get_similar_artists():
            raise SourceNotConfiguredError(
                "Artist station not configured. Link an artist id or similar artists in the config.",
                channel_key=Channel.ARTIST_STATION.value
            )

        fetcher = self._build_fetcher(self._build_filter(request))
        core_pool, similar_pool = await asyncio.gather(
            fetcher.fetch_channel(Channel.ARTIST_STATION, request.target_length, intensity=1.0, shuffle=False),
            fetcher.fetch_channel(Channel.SIMILAR_ARTISTS, request.target_length, intensity=1.0, shuffle=False),
        )

        core_ids = {track.id for track in core_pool.filtered}
        combined = []
        seen = set()
        for track in core_pool.filtered + similar_pool.filtered:
            if track.id not in seen:
                seen.add(track.id)
                combined.append(track)
        self.rng.shuffle(combined)
        tracks = take(combined, request.target_length)

        core_count = sum(1 for track in tracks if track.id in core_ids)
        similar_count = len(tracks) - core_count
        return await self._finish_single(
            request, request.option_name or "Artist Radio", tracks,
            f"Artist Radio: {core_count} core + {similar_count} similar",
            counts={Channel.ARTIST_STATION.label: core_count, Channel.SIMILAR_ARTISTS.label: similar_count}
        )
