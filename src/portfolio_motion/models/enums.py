"""
Enums for the motion engine and the submission state machine
"""

from enum import Enum, auto


class Signal(Enum):
    """
    Logical visibility of an animation scope

    HIDDEN: scope rests on its variant's hidden style
    VISIBLE: scope has been revealed (targets its visible style)
    """
    HIDDEN = auto()
    VISIBLE = auto()


class SubmissionStatus(Enum):
    """Status of one form interaction"""
    IDLE = auto()        # Initial, re-entered after the reset timer
    LOADING = auto()     # Submit capability in flight
    SUCCESS = auto()     # Capability resolved
    ERROR = auto()       # Capability rejected


class FieldKind(Enum):
    """Input field kinds of a form"""
    TEXT = "text"
    EMAIL = "email"
    TEXTAREA = "textarea"


class LogLevel(Enum):
    """Log severity levels"""
    DEBUG = auto()
    INFO = auto()
    WARN = auto()
    ERROR = auto()


class LogCategory(Enum):
    """Log categories for grouping related events"""
    CONFIG = auto()      # Configuration loading, validation
    ANIMATION = auto()   # Scope enter/unmount
    SCHEDULER = auto()   # Timer facility
    TRANSITION = auto()  # Tweens and style transitions
    SUBMISSION = auto()  # Submission state machine
    FORM = auto()        # Form controller
    TRANSPORT = auto()   # Submit capabilities
    EVENT = auto()       # Event bus events and handling
    TASK = auto()
    SYSTEM = auto()      # Startup, shutdown, errors

    GENERAL = auto()    # Default general category
