#!/usr/bin/env python3

"""
Mood Recipe Calculator - turns the mood/discovery sliders and a playlist
length into an exact per-channel track allocation.

Each channel carries a weight that rises or falls across the mood range:

    mood 0.0  (zen)    liked + curated dominate, no intensity tracks
    mood 0.5  (focus)  every channel present, secondary peaks
    mood 1.0  (chaos)  similar artists + intensity dominate, curated gone

Weights are normalized against the non-discovery share of the mix and any
rounding residue is absorbed by the liked channel, so the allocation always
sums to the requested length.
"""

import math
from typing import Dict

from core.mix_models import Channel, Recipe
from utils.logging_config import get_logger

logger = get_logger("recipe")

# Discovery never takes more than this share of a mix
MAX_DISCOVERY_SHARE = 0.4

# Discovery slider zones
DISCOVERY_ZERO_CUTOFF = 0.0
DISCOVERY_FAMILIAR_MAX = 0.5

# Mood slider zones, used to pick discovery seeds
MOOD_ZEN_MAX = 0.34
MOOD_FOCUS_MAX = 0.67

# Channel that absorbs rounding drift
DRIFT_SINK = Channel.LIKED


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positives (Python's round() is banker's rounding)"""
    return int(math.floor(value + 0.5))


def clamp_unit(value: float) -> float:
    return max(0.0, min(1.0, value))


def channel_weights(mood: float) -> Dict[Channel, float]:
    """Weight of every non-discovery channel at a given mood position"""
    mood = clamp_unit(mood)
    return {
        # strong at zen, fades out by mood ~0.83
        Channel.LIKED: max(0.0, 1 - mood * 1.2),
        # heaviest at zen, gone by mood ~0.67
        Channel.CURATED: max(0.0, 1 - mood * 1.5),
        # present everywhere, peaks mid-range
        Channel.SECONDARY: 0.3 + math.sin(mood * math.pi) * 0.4,
        Channel.ARTIST_STATION: 0.35,
        Channel.SIMILAR_ARTISTS: mood * 0.9,
        # zero until the second half, then ramps fast
        Channel.INTENSITY: max(0.0, (mood - 0.4) * 2.0),
    }


def discovery_count_for(discover_level: float, target_length: int) -> int:
    if discover_level <= DISCOVERY_ZERO_CUTOFF:
        return 0
    return round_half_up(target_length * discover_level * MAX_DISCOVERY_SHARE)


def calculate_mood_recipe(mood: float, target_length: int, discover_level: float) -> Recipe:
    """
    Compute how many tracks each channel contributes.

    Args:
        mood: Mood slider position, clamped to [0, 1]
        target_length: Total number of tracks in the mix
        discover_level: Discovery slider position, clamped to [0, 1]

    Returns:
        Recipe whose channel counts plus discovery_count equal target_length
    """
    mood = clamp_unit(mood)
    discover_level = clamp_unit(discover_level)
    discovery_count = discovery_count_for(discover_level, target_length)
    source_total = target_length - discovery_count

    weights = channel_weights(mood)
    total_weight = sum(weights.values())

    counts = {
        channel: round_half_up(weight / total_weight * source_total)
        for channel, weight in weights.items()
    }

    drift = source_total - sum(counts.values())
    counts[DRIFT_SINK] += drift

    # Keeps every channel count non-negative. Negative drift can push the sink
    # below zero when its weight is ~0 (high mood, short mixes), so the
    # overdraft comes out of the largest channels instead.
    while counts[DRIFT_SINK] < 0:
        counts[DRIFT_SINK] += 1
        largest = max(counts, key=lambda channel: counts[channel])
        counts[largest] -= 1

    recipe = Recipe(
        counts=counts,
        discovery_count=discovery_count,
        mood=mood,
        discover_level=discover_level,
        target_length=target_length,
    )
    logger.debug(f"Recipe for mood={mood:.2f} discover={discover_level:.2f} length={target_length}: "
                 f"{recipe.describe()} (drift {drift:+d})")
    return recipe


def mood_zone(mood: float) -> str:
    """Name of the mood zone a slider position falls in"""
    if mood < MOOD_ZEN_MAX:
        return "zen"
    if mood < MOOD_FOCUS_MAX:
        return "focus"
    return "chaos"
