from .session import InteractiveSession
from .state import Event, EventKind, NavigationState, reduce, visible_window

__all__ = [
    "Event",
    "EventKind",
    "InteractiveSession",
    "NavigationState",
    "reduce",
    "visible_window",
]
