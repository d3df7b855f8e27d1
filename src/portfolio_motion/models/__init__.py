"""Domain models"""

from .enums import Signal, SubmissionStatus, FieldKind, LogLevel, LogCategory
from .variant import AnimationVariant, StyleDescriptor, EASINGS, get_easing
from .submission import (
    FormPayload,
    FormField,
    SubmissionState,
    SubmissionMessages,
    SubmitAck,
    SubmitRequested,
    SubmitResolved,
    SubmitRejected,
    ResetTimerFired,
    DEFAULT_CONTACT_FIELDS,
)
from .config import MotionConfig, EmailTransportConfig

__all__ = [
    "Signal",
    "SubmissionStatus",
    "FieldKind",
    "LogLevel",
    "LogCategory",
    "AnimationVariant",
    "StyleDescriptor",
    "EASINGS",
    "get_easing",
    "FormPayload",
    "FormField",
    "SubmissionState",
    "SubmissionMessages",
    "SubmitAck",
    "SubmitRequested",
    "SubmitResolved",
    "SubmitRejected",
    "ResetTimerFired",
    "DEFAULT_CONTACT_FIELDS",
    "MotionConfig",
    "EmailTransportConfig",
]
