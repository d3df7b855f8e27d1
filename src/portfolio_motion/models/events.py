"""
Event bus events

Notifications published for observers (render layer, debugging tools).
They never drive the core: scopes and the state machine mutate themselves
first, then publish.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, Optional

from portfolio_motion.models.enums import SubmissionStatus


class EventType(Enum):
    # Animation
    SCOPE_REVEALED = auto()
    SCOPE_UNMOUNTED = auto()

    # Submission
    SUBMISSION_STATUS_CHANGED = auto()


class EventSource(Enum):
    """Event source identifiers"""
    STAGGER_ENGINE = auto()
    SUBMISSION_MACHINE = auto()


@dataclass(init=False)
class Event:
    """
    Base event class.

    - type: EventType
    - source: EventSource
    - timestamp: auto
    """

    type: EventType
    source: Optional[EventSource]
    timestamp: float = field(default_factory=time.time)

    def __init__(self, *, type: EventType, source: Optional[EventSource]):
        self.type = type
        self.source = source
        self.timestamp = time.time()

    def to_data(self) -> Dict[str, Any]:
        """Structured payload without metadata"""
        return {
            k: v for k, v in self.__dict__.items()
            if k not in ("type", "source", "timestamp")
        }


class ScopeRevealedEvent(Event):
    def __init__(self, scope_path: str, at_ms: float):
        super().__init__(type=EventType.SCOPE_REVEALED, source=EventSource.STAGGER_ENGINE)
        self.scope_path = scope_path
        self.at_ms = at_ms


class ScopeUnmountedEvent(Event):
    def __init__(self, scope_path: str, cancelled: int):
        super().__init__(type=EventType.SCOPE_UNMOUNTED, source=EventSource.STAGGER_ENGINE)
        self.scope_path = scope_path
        self.cancelled = cancelled


class SubmissionStatusChangedEvent(Event):
    def __init__(self, previous: SubmissionStatus, current: SubmissionStatus, message: str):
        super().__init__(type=EventType.SUBMISSION_STATUS_CHANGED, source=EventSource.SUBMISSION_MACHINE)
        self.previous = previous
        self.current = current
        self.message = message
