from typing import Iterable, List, Optional

from core.mix_models import Track
from utils.logging_config import get_logger

logger = get_logger("track_filter")


class TrackFilter:
    """Per-track eligibility check applied to every candidate pool.

    Rejects tracks that are local-only, not playable remotely, blocked by the
    user, explicit when explicit content is disallowed, or still on cooldown.
    The cooldown check is skipped when ``cooldown_store`` is None (demo mode,
    or repeat avoidance switched off).
    """

    def __init__(self, block_store, cooldown_store=None,
                 allow_explicit: bool = True):
        self.block_store = block_store
        self.cooldown_store = cooldown_store
        self.allow_explicit = allow_explicit

    def __call__(self, track: Track) -> bool:
        return self.rejection_reason(track) is None

    def rejection_reason(self, track: Track) -> Optional[str]:
        if track.is_local:
            return "local"
        if not track.is_playable:
            return "unplayable"
        if self.block_store.is_blocked(track.id):
            return "blocked"
        if not self.allow_explicit and track.explicit:
            return "explicit"
        if self.cooldown_store is not None and self.cooldown_store.is_restricted(track.id):
            return "cooldown"
        return None

    def apply(self, tracks: Iterable[Track], label: str = "") -> List[Track]:
        kept = []
        rejected = {}
        for track in tracks:
            reason = self.rejection_reason(track)
            if reason is None:
                kept.append(track)
            else:
                rejected[reason] = rejected.get(reason, 0) + 1

        if rejected:
            details = ", ".join(f"{count} {reason}" for reason, count in sorted(rejected.items()))
            logger.debug(f"Filtered {label or 'pool'}: kept {len(kept)}, rejected {details}")
        return kept
