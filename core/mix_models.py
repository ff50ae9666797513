from typing import List, Dict, Optional, Any
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
import math

from core.exceptions import InvalidRunRequestError

KNOWN = "known"
DISCOVERY = "discovery"

# Source id of an artist's radio: top tracks plus album cuts
ARTIST_RADIO_PREFIX = "artist_radio:"

class Channel(Enum):
    """Content channels of a mix. Declaration order is the interleave priority."""
    LIKED = "liked"
    CURATED = "curated"
    SECONDARY = "secondary"
    ARTIST_STATION = "artist_station"
    SIMILAR_ARTISTS = "similar_artists"
    INTENSITY = "intensity"

    @property
    def label(self) -> str:
        return CHANNEL_LABELS[self]

CHANNEL_LABELS = {
    Channel.LIKED: "Liked",
    Channel.CURATED: "Curated",
    Channel.SECONDARY: "Secondary",
    Channel.ARTIST_STATION: "Artist",
    Channel.SIMILAR_ARTISTS: "Similar",
    Channel.INTENSITY: "Intensity",
}

DISCOVERY_LABEL = "New"
FALLBACK_LABEL = "Fallback"

@dataclass
class Track:
    id: str
    title: str
    artists: List[str]
    album: str = ""
    artwork_url: Optional[str] = None
    duration_ms: int = 0
    explicit: bool = False
    is_playable: bool = True
    is_local: bool = False
    uri: Optional[str] = None
    provenance: str = KNOWN

    @property
    def artist(self) -> str:
        return ", ".join(self.artists)

    @property
    def primary_artist(self) -> Optional[str]:
        return self.artists[0] if self.artists else None

    @property
    def is_new(self) -> bool:
        return self.provenance == DISCOVERY

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'uri': self.uri,
            'title': self.title,
            'artist': self.artist,
            'album': self.album,
            'image_url': self.artwork_url,
            'duration_ms': self.duration_ms,
            'explicit': self.explicit,
            'is_new': self.is_new,
        }

@dataclass
class ChannelPool:
    channel: Channel
    tracks: List[Track] = field(default_factory=list)
    filtered: List[Track] = field(default_factory=list)
    error: Optional[str] = None

    def __len__(self):
        return len(self.filtered)

@dataclass
class Recipe:
    counts: Dict[Channel, int]
    discovery_count: int
    mood: float
    discover_level: float
    target_length: int

    @property
    def total(self) -> int:
        return sum(self.counts.values()) + self.discovery_count

    def count(self, channel: Channel) -> int:
        return self.counts.get(channel, 0)

    def describe(self) -> str:
        parts = [f"{channel.value}={self.count(channel)}" for channel in Channel]
        parts.append(f"discovery={self.discovery_count}")
        return " ".join(parts)

@dataclass(frozen=True)
class RunRequest:
    """Immutable inputs of a single mix generation"""
    mood: float = 0.5
    discover_level: float = 0.3
    target_length: int = 35
    avoid_repeats: bool = True
    avoid_repeats_window_days: int = 7
    allow_explicit: bool = True
    option_name: str = "Smart Mix"
    lightning: bool = False

    def __post_init__(self):
        for name in ('mood', 'discover_level'):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)) or math.isnan(value):
                raise InvalidRunRequestError(f"{name} must be a number", field_name=name, value=value)
        if not 0.0 <= self.discover_level <= 1.0:
            raise InvalidRunRequestError("discover_level must be between 0 and 1",
                                         field_name='discover_level', value=self.discover_level)
        if isinstance(self.target_length, bool) or not isinstance(self.target_length, int) or self.target_length < 1:
            raise InvalidRunRequestError("target_length must be a positive integer",
                                         field_name='target_length', value=self.target_length)
        if self.avoid_repeats_window_days < 0:
            raise InvalidRunRequestError("avoid_repeats_window_days cannot be negative",
                                         field_name='avoid_repeats_window_days',
                                         value=self.avoid_repeats_window_days)

    @classmethod
    def from_rules(cls, rules: Dict[str, Any], **overrides) -> 'RunRequest':
        """Build a request from the ``rules`` config section, with explicit overrides"""
        values = {
            'mood': rules.get('mood_level', 0.5),
            'discover_level': rules.get('discover_level', 0.3),
            'target_length': rules.get('playlist_length', 35),
            'avoid_repeats': rules.get('avoid_repeats', True),
            'avoid_repeats_window_days': rules.get('avoid_repeats_window', 7),
            'allow_explicit': rules.get('allow_explicit', True),
        }
        values.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**values)

@dataclass
class RunResult:
    option_name: str
    tracks: List[Track]
    summary: str
    mood: float
    recipe: Optional[Recipe] = None
    warning: Optional[str] = None
    channel_counts: Dict[str, int] = field(default_factory=dict)
    created_at: datetime = field(default_factory=datetime.now)

    @property
    def playlist_name(self) -> str:
        return f"{self.option_name} • {self.created_at.strftime('%Y-%m-%d')}"

    @property
    def discovery_ids(self) -> List[str]:
        return [track.id for track in self.tracks if track.is_new]

    @property
    def track_ids(self) -> List[str]:
        return [track.id for track in self.tracks]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'option_name': self.option_name,
            'playlist_name': self.playlist_name,
            'created_at': self.created_at.isoformat(),
            'mood': self.mood,
            'summary': self.summary,
            'warning': self.warning,
            'channel_counts': dict(self.channel_counts),
            'tracks': [track.to_dict() for track in self.tracks],
        }
