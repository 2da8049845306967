from .bus import Event, EventBus, Subscription
from .viewport_events import (
    ErrorOccurredEvent,
    ImageLoadedEvent,
    ImageLoadFailedEvent,
    MarkerHighlightedEvent,
    RotationChangedEvent,
    ViewportChangedEvent,
)

__all__ = [
    "ErrorOccurredEvent",
    "Event",
    "EventBus",
    "ImageLoadFailedEvent",
    "ImageLoadedEvent",
    "MarkerHighlightedEvent",
    "RotationChangedEvent",
    "Subscription",
    "ViewportChangedEvent",
]
