"""
Exceptions raised by the mix engine.

Per-channel fetch failures and discovery search failures never surface as
exceptions; they degrade to empty pools. Only conditions the caller has to
act on are raised.
"""

from typing import Optional, Any, Dict


class MixError(Exception):
    """Base exception for mix generation errors."""

    def __init__(self, message: str, details: Optional[str] = None, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details
        self.context = context or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message}: {self.details}"
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        return {
            'type': self.__class__.__name__,
            'message': self.message,
            'details': self.details,
            'context': self.context,
        }


class NoEligibleTracksError(MixError):
    """Raised when a run ends with zero selected tracks."""

    def __init__(self, message: str = "No eligible tracks found", **kwargs):
        super().__init__(message, **kwargs)


class SourceNotConfiguredError(MixError):
    """Raised when a single-source run targets a channel with no linked source."""

    def __init__(self, message: str, channel_key: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.channel_key = channel_key
        self.context.setdefault('channel_key', channel_key)


class InvalidRunRequestError(MixError, ValueError):
    """Raised when a RunRequest is built with unusable values."""

    def __init__(self, message: str, field_name: Optional[str] = None, value: Any = None, **kwargs):
        super().__init__(message, **kwargs)
        self.field_name = field_name
        self.value = value
        self.context.setdefault('field', field_name)
        self.context.setdefault('value', repr(value))
