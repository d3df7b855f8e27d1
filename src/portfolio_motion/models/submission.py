"""
Submission domain models

State, messages and the events accepted by SubmissionStateMachine.dispatch().
"""

from dataclasses import dataclass, field
from typing import Dict, Optional, Union

from portfolio_motion.errors import SubmissionFault
from portfolio_motion.models.enums import FieldKind, SubmissionStatus

FormPayload = Dict[str, str]


@dataclass(frozen=True)
class SubmissionState:
    """Status plus the user-facing message for that status"""
    status: SubmissionStatus = SubmissionStatus.IDLE
    message: str = ""

    @property
    def is_idle(self) -> bool:
        return self.status == SubmissionStatus.IDLE


IDLE_STATE = SubmissionState()


@dataclass(frozen=True)
class SubmissionMessages:
    """User-facing notices for each non-idle status"""
    pending: str = "Sending, please wait..."
    success: str = "Thank you! Your message has been sent successfully."
    failure: str = "Failed to send message. Please try again later."


@dataclass(frozen=True)
class SubmitAck:
    """Acknowledgement returned by a submit capability"""
    status_code: int = 200
    detail: str = "OK"


@dataclass(frozen=True)
class FormField:
    """Declared input of a form"""
    name: str
    kind: FieldKind = FieldKind.TEXT
    placeholder: str = ""
    required: bool = True


DEFAULT_CONTACT_FIELDS = (
    FormField("name", FieldKind.TEXT, "Your Name"),
    FormField("email", FieldKind.EMAIL, "Your Email"),
    FormField("message", FieldKind.TEXTAREA, "Your Message"),
)


# === Dispatch events ===
# Every cycle after SubmitRequested carries the token the machine issued for it.

@dataclass(frozen=True)
class SubmitRequested:
    payload: FormPayload = field(default_factory=dict)


@dataclass(frozen=True)
class SubmitResolved:
    token: int
    ack: Optional[SubmitAck] = None


@dataclass(frozen=True)
class SubmitRejected:
    token: int
    fault: Optional[SubmissionFault] = None


@dataclass(frozen=True)
class ResetTimerFired:
    token: int


SubmissionEvent = Union[SubmitRequested, SubmitResolved, SubmitRejected, ResetTimerFired]
