#!/usr/bin/env python3

"""
Discovery Resolver - finds catalog tracks the listener has not encountered.

Familiar territory (0 < discover <= 0.5)
    Seeds from artists already in the personal pools, so new tracks stay
    close to the listener's taste.

Outside the norm (discover > 0.5)
    Seeds from genre terms matched to the mood zone; the further the
    discovery slider goes past 0.5, the more seed terms are searched.
"""

import math
import random
from dataclasses import replace
from typing import List, Optional, Set, Iterable, Dict

from core.batch_scheduler import BatchScheduler
from core.mix_models import Track, DISCOVERY
from core.recipe import DISCOVERY_FAMILIAR_MAX, mood_zone
from utils.logging_config import get_logger

logger = get_logger("discovery_resolver")

DISCOVERY_SEEDS = {
    "zen": [
        "acoustic covers", "indie folk", "dream pop", "singer songwriter",
        "chamber pop", "slowcore", "ambient pop", "bossa nova"
    ],
    "focus": [
        "indie rock", "post-punk", "shoegaze", "britpop",
        "garage rock", "math rock", "new wave", "alternative rock"
    ],
    "chaos": [
        "metalcore", "post-hardcore", "thrash metal", "nu metal",
        "hardcore punk", "industrial", "drill", "grime"
    ],
}

# Known tracks scanned for seed artists (in pool order)
SEED_SCAN_DEPTH = 20


def normalize_artist_name(name: str) -> str:
    return " ".join(name.lower().split())


class ArtistResolver:
    """Resolves artist names to catalog artist ids, with a persistent cache"""

    def __init__(self, provider, cache=None, provider_name: str = "catalog"):
        self.provider = provider
        self.cache = cache
        self.provider_name = provider_name

    async def resolve(self, name: str) -> Optional[str]:
        key = normalize_artist_name(name)
        if not key:
            return None

        if self.cache is not None:
            cached_id = self.cache.get(self.provider_name, key)
            if cached_id:
                return cached_id

        candidates = await self.provider.search_artists(name, limit=3)
        if not candidates:
            logger.info(f"No catalog artist found for '{name}'")
            return None

        artist_id = None
        for candidate_id, candidate_name in candidates:
            if normalize_artist_name(candidate_name) == key:
                artist_id = candidate_id
                break
        if artist_id is None:
            artist_id = candidates[0][0]

        if self.cache is not None and artist_id:
            self.cache.set(self.provider_name, key, artist_id)
        logger.debug(f"Resolved artist '{name}' -> {artist_id}")
        return artist_id


class DiscoveryResolver:
    """Builds the discovery slice of a mix through batched catalog searches"""

    def __init__(self, provider, scheduler: Optional[BatchScheduler] = None, rng: Optional[random.Random] = None,
                 per_artist_limit: int = 10, seed_artist_limit: int = 5,
                 seeds: Optional[Dict[str, List[str]]] = None):
        self.provider = provider
        self.scheduler = scheduler or BatchScheduler()
        self.rng = rng or random.Random()
        self.per_artist_limit = per_artist_limit
        self.seed_artist_limit = seed_artist_limit
        self.seeds = seeds or DISCOVERY_SEEDS

    def seed_artists(self, known_tracks: List[Track]) -> List[str]:
        artists = []
        seen = set()
        for track in known_tracks[:SEED_SCAN_DEPTH]:
            name = track.primary_artist
            if not name:
                continue
            key = normalize_artist_name(name)
            if key in seen:
                continue
            seen.add(key)
            artists.append(name)
            if len(artists) >= self.seed_artist_limit:
                break
        return artists

    def seed_terms(self, mood: float, discover_level: float) -> List[str]:
        seeds = self.seeds[mood_zone(mood)]
        wildness = (discover_level - 0.5) * 2
        seed_count = math.ceil(1 + wildness * (len(seeds) - 1))
        seed_count = max(1, min(len(seeds), seed_count))
        return seeds[:seed_count]

    async def _search_all(self, terms: List[str], limit: int) -> List[Track]:
        factories = [
            (lambda term=term: self.provider.search_catalog(term, types="songs", limit=limit))
            for term in terms
        ]
        results = await self.scheduler.run(factories, labels=[f"search '{term}'" for term in terms], default=[])
        flattened = []
        for term, tracks in zip(terms, results):
            logger.debug(f"Discovery search '{term}' returned {len(tracks or [])} tracks")
            flattened.extend(tracks or [])
        return flattened

    async def resolve(self, mood: float, discover_level: float, count: int, known_tracks: List[Track],
                      exclude_ids: Iterable[str] = (), track_filter=None) -> List[Track]:
        """
        Find up to ``count`` tracks absent from the known pools.

        Args:
            mood: Effective mood of the run
            discover_level: Discovery slider position
            count: Size of the discovery slice from the recipe
            known_tracks: Personal-pool tracks used for artist seeding
            exclude_ids: Ids of every track already fetched this run
            track_filter: Optional predicate (blocked/explicit/cooldown)

        Returns:
            Shuffled discovery tracks tagged with provenance "discovery"
        """
        if count <= 0 or discover_level <= 0:
            return []

        if discover_level <= DISCOVERY_FAMILIAR_MAX:
            artists = self.seed_artists(known_tracks)
            if not artists:
                logger.info("Familiar discovery: no seed artists in known pools")
                return []
            logger.info(f"Familiar discovery: searching {len(artists)} seed artists for {count} tracks")
            candidates = await self._search_all(artists, self.per_artist_limit)
        else:
            terms = self.seed_terms(mood, discover_level)
            per_seed = math.ceil(count / len(terms)) + 5
            logger.info(f"Outside discovery ({mood_zone(mood)}): searching {len(terms)} seed terms, "
                        f"{per_seed} results each")
            candidates = await self._search_all(terms, per_seed)

        known_ids: Set[str] = {track.id for track in known_tracks}
        known_ids.update(exclude_ids)

        self.rng.shuffle(candidates)
        fresh = []
        seen = set()
        for track in candidates:
            if track.id in known_ids or track.id in seen:
                continue
            if track_filter is not None and not track_filter(track):
                continue
            seen.add(track.id)
            fresh.append(replace(track, provenance=DISCOVERY))
            if len(fresh) >= count:
                break

        logger.info(f"Discovery resolved {len(fresh)}/{count} new tracks from {len(candidates)} candidates")
        return fresh
