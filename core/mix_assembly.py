import random
from collections import deque
from typing import Iterable, List, Optional, Sequence, Tuple

from core.mix_models import Track, FALLBACK_LABEL

# (channel label, track) pairs keep track of where each selection came from
LabeledTrack = Tuple[str, Track]


def take(pool: Sequence[Track], count: int) -> List[Track]:
    """First ``count`` tracks of an already shuffled pool"""
    return list(pool[:max(0, count)])


def interleave(queues: Sequence[Tuple[str, Iterable[Track]]], target_length: int) -> List[LabeledTrack]:
    """
    Round-robin merge of per-channel selections.

    Each pass visits the queues in priority order and pops one track from
    every non-empty queue, skipping ids already placed. A pass stops early
    once the result is full. No channel can contribute more than one track
    per pass, so same-channel runs never exceed the number of channels.
    """
    pending = [(label, deque(tracks)) for label, tracks in queues]
    result: List[LabeledTrack] = []
    placed = set()

    while len(result) < target_length and any(queue for _, queue in pending):
        for label, queue in pending:
            if not queue:
                continue
            track = queue.popleft()
            if track.id not in placed:
                placed.add(track.id)
                result.append((label, track))
            if len(result) >= target_length:
                break

    return result


def fill_from_fallback(selected: List[LabeledTrack], pools: Iterable[Sequence[Track]], target_length: int,
                       rng: Optional[random.Random] = None) -> Tuple[List[LabeledTrack], int, Optional[str]]:
    """
    Top off a short selection from the union of every known-track pool.

    Returns:
        (tracks, number of fallback tracks added, warning or None)
    """
    if len(selected) >= target_length:
        return list(selected), 0, None

    rng = rng or random.Random()
    needed = target_length - len(selected)
    placed = {track.id for _, track in selected}

    union = []
    seen = set()
    for pool in pools:
        for track in pool:
            if track.id not in seen:
                seen.add(track.id)
                union.append(track)
    rng.shuffle(union)

    additions = [(FALLBACK_LABEL, track) for track in union if track.id not in placed][:needed]
    filled = list(selected) + additions

    warning = f"Some sources were limited. Added {len(additions)} fallback tracks."
    if len(filled) < target_length:
        warning += f" Only {len(filled)} of {target_length} tracks could be found."
    return filled, len(additions), warning
