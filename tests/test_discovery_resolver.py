import random

import pytest

from core.batch_scheduler import BatchScheduler
from core.discovery_resolver import DISCOVERY_SEEDS, ArtistResolver, DiscoveryResolver
from core.track_filter import TrackFilter
from tests.fakes import FakeArtistCache, FakeBlockStore, FakeProvider, make_track, make_tracks, no_sleep


def build_resolver(provider, **kwargs):
    return DiscoveryResolver(
        provider,
        scheduler=BatchScheduler(batch_size=5, delay=0.5, sleep=no_sleep),
        rng=random.Random(3),
        **kwargs
    )


class TestFamiliarDiscovery:
    @pytest.mark.asyncio
    async def test_seeds_from_known_artists(self):
        provider = FakeProvider()
        known = make_tracks("liked", 20, artists=[f"Artist {i}" for i in range(8)])

        tracks = await build_resolver(provider).resolve(0.5, 0.3, 6, known)

        searched = [term for term, _ in provider.search_calls]
        assert searched == ["Artist 0", "Artist 1", "Artist 2", "Artist 3", "Artist 4"]
        assert all(limit == 10 for _, limit in provider.search_calls)
        assert len(tracks) == 6
        assert all(track.is_new for track in tracks)

    @pytest.mark.asyncio
    async def test_never_returns_known_or_excluded_tracks(self):
        provider = FakeProvider()
        known = [make_track("k-1", "Solo")]
        provider.search_results["Solo"] = [make_track("k-1", "Solo"), make_track("fetched", "Solo"),
                                           make_track("fresh", "Solo")]

        tracks = await build_resolver(provider).resolve(0.5, 0.3, 5, known, exclude_ids={"fetched"})

        assert [track.id for track in tracks] == ["fresh"]

    @pytest.mark.asyncio
    async def test_applies_track_filter(self):
        provider = FakeProvider()
        provider.search_results["Solo"] = [make_track("ok", "Solo"), make_track("nope", "Solo")]
        track_filter = TrackFilter(FakeBlockStore({"nope"}))

        tracks = await build_resolver(provider).resolve(0.5, 0.3, 5, [make_track("k", "Solo")],
                                                        track_filter=track_filter)

        assert [track.id for track in tracks] == ["ok"]

    @pytest.mark.asyncio
    async def test_no_known_artists_yields_nothing(self):
        provider = FakeProvider()

        assert await build_resolver(provider).resolve(0.5, 0.3, 5, []) == []
        assert provider.search_calls == []


class TestOutsideDiscovery:
    def test_seed_count_grows_with_wildness(self):
        resolver = build_resolver(FakeProvider())

        assert resolver.seed_terms(0.9, 1.0) == DISCOVERY_SEEDS["chaos"]
        assert resolver.seed_terms(0.9, 0.6) == DISCOVERY_SEEDS["chaos"][:3]
        assert resolver.seed_terms(0.1, 0.51) == DISCOVERY_SEEDS["zen"][:2]
        assert resolver.seed_terms(0.5, 0.75)[0] == DISCOVERY_SEEDS["focus"][0]

    @pytest.mark.asyncio
    async def test_per_seed_limit(self):
        provider = FakeProvider()

        tracks = await build_resolver(provider).resolve(0.9, 1.0, 14, [])

        assert len(provider.search_calls) == 8
        # ceil(14 / 8) + 5
        assert all(limit == 7 for _, limit in provider.search_calls)
        assert len(tracks) == 14
        assert len({track.id for track in tracks}) == 14

    @pytest.mark.asyncio
    async def test_failed_searches_degrade_to_empty(self):
        provider = FakeProvider()
        provider.search_error = RuntimeError("search down")

        assert await build_resolver(provider).resolve(0.9, 1.0, 10, []) == []

    @pytest.mark.asyncio
    async def test_zero_count_skips_search(self):
        provider = FakeProvider()

        assert await build_resolver(provider).resolve(0.9, 1.0, 0, []) == []
        assert provider.search_calls == []


class TestArtistResolver:
    @pytest.mark.asyncio
    async def test_prefers_exact_name_match(self):
        class Provider(FakeProvider):
            async def search_artists(self, term, limit=3):
                return [("tribute-id", "Avenged Sevenfold Tribute"), ("real-id", "Avenged  Sevenfold")]

        resolver = ArtistResolver(Provider())

        assert await resolver.resolve("avenged sevenfold") == "real-id"

    @pytest.mark.asyncio
    async def test_uses_cache_after_first_lookup(self):
        provider = FakeProvider()
        cache = FakeArtistCache()
        resolver = ArtistResolver(provider, cache=cache, provider_name="fake")

        first = await resolver.resolve("Band A")
        second = await resolver.resolve("band a")

        assert first == second == "band-a"
        assert provider.artist_calls == ["Band A"]
        assert cache.entries == {("fake", "band a"): "band-a"}

    @pytest.mark.asyncio
    async def test_unknown_artist(self):
        class Provider(FakeProvider):
            async def search_artists(self, term, limit=3):
                return []

        assert await ArtistResolver(Provider()).resolve("Nobody") is None
