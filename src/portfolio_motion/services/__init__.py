"""Services layer"""

from .event_bus import EventBus
from .submit_capability import SubmitCapability, CallableSubmitCapability, EmailJSSubmitCapability
from .submission_machine import SubmissionStateMachine
from .contact_form import ContactFormController
from .render_sinks import RecordingStyleSink, ConsoleStyleSink, AnimatedStyleSink

__all__ = [
    "EventBus",
    "SubmitCapability",
    "CallableSubmitCapability",
    "EmailJSSubmitCapability",
    "SubmissionStateMachine",
    "ContactFormController",
    "RecordingStyleSink",
    "ConsoleStyleSink",
    "AnimatedStyleSink",
]
