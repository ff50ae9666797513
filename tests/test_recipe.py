import pytest

from core.mix_models import Channel
from core.recipe import (
    calculate_mood_recipe, channel_weights, discovery_count_for, mood_zone, round_half_up
)


class TestRecipeTotals:
    @pytest.mark.parametrize("mood", [0.0, 0.1, 0.25, 0.34, 0.5, 0.67, 0.8, 0.95, 1.0])
    @pytest.mark.parametrize("discover", [0.0, 0.2, 0.5, 0.75, 1.0])
    @pytest.mark.parametrize("length", [1, 5, 15, 35, 50, 100])
    def test_counts_sum_to_length_and_stay_non_negative(self, mood, discover, length):
        recipe = calculate_mood_recipe(mood, length, discover)

        assert recipe.total == length
        assert all(count >= 0 for count in recipe.counts.values())
        assert recipe.discovery_count >= 0

    def test_same_inputs_give_same_recipe(self):
        first = calculate_mood_recipe(0.42, 35, 0.3)
        second = calculate_mood_recipe(0.42, 35, 0.3)

        assert first.counts == second.counts
        assert first.discovery_count == second.discovery_count


class TestMoodShape:
    def test_zen_has_no_intensity_or_similar(self):
        recipe = calculate_mood_recipe(0.0, 35, 0.0)

        assert recipe.count(Channel.INTENSITY) == 0
        assert recipe.count(Channel.SIMILAR_ARTISTS) == 0
        assert recipe.count(Channel.LIKED) == 13
        assert recipe.count(Channel.CURATED) == 13
        assert recipe.count(Channel.SECONDARY) == 4
        assert recipe.count(Channel.ARTIST_STATION) == 5

    def test_chaos_drops_curated_and_is_led_by_intensity(self):
        weights = channel_weights(1.0)
        recipe = calculate_mood_recipe(1.0, 35, 0.0)

        assert weights[Channel.LIKED] == 0
        assert weights[Channel.CURATED] == 0
        assert recipe.count(Channel.CURATED) == 0
        # Only rounding drift lands in liked at full chaos
        assert recipe.count(Channel.LIKED) <= 1
        assert recipe.count(Channel.INTENSITY) == max(recipe.counts.values())
        assert recipe.count(Channel.SIMILAR_ARTISTS) > recipe.count(Channel.SECONDARY)

    def test_intensity_absent_below_mid_mood(self):
        for mood in (0.0, 0.2, 0.4):
            assert channel_weights(mood)[Channel.INTENSITY] == 0

    def test_mood_is_clamped(self):
        assert calculate_mood_recipe(-3, 35, 0).counts == calculate_mood_recipe(0, 35, 0).counts
        assert calculate_mood_recipe(7, 35, 0).counts == calculate_mood_recipe(1, 35, 0).counts

    def test_short_chaos_mix_moves_overdraft_off_liked(self):
        recipe = calculate_mood_recipe(1.0, 5, 0.0)

        assert recipe.count(Channel.LIKED) == 0
        assert recipe.total == 5


class TestDiscoveryCount:
    def test_zero_discovery_means_no_new_tracks(self):
        assert discovery_count_for(0.0, 35) == 0
        assert calculate_mood_recipe(0.5, 35, 0.0).discovery_count == 0

    def test_half_discovery_on_fifty_tracks(self):
        assert calculate_mood_recipe(0.5, 50, 0.5).discovery_count == 10

    def test_discovery_capped_at_forty_percent(self):
        assert discovery_count_for(1.0, 35) == 14
        assert discovery_count_for(1.0, 100) == 40

    def test_discover_level_is_clamped(self):
        recipe = calculate_mood_recipe(0.5, 35, 3.0)

        assert recipe.discovery_count == calculate_mood_recipe(0.5, 35, 1.0).discovery_count
        assert recipe.total == 35
        assert all(count >= 0 for count in recipe.counts.values())
        assert calculate_mood_recipe(0.5, 35, -2.0).discovery_count == 0


class TestHelpers:
    def test_round_half_up(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(3.5) == 4
        assert round_half_up(4.2) == 4
        assert round_half_up(0.49) == 0

    @pytest.mark.parametrize("mood,zone", [(0.0, "zen"), (0.33, "zen"), (0.34, "focus"),
                                           (0.66, "focus"), (0.67, "chaos"), (1.0, "chaos")])
    def test_mood_zone(self, mood, zone):
        assert mood_zone(mood) == zone
