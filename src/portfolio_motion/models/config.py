"""
Configuration models

Plain dataclasses filled by ConfigManager from YAML. Everything that used
to come from the process environment is passed explicitly through these.
"""

from dataclasses import dataclass, field
from typing import Dict

from portfolio_motion.errors import ConfigurationError
from portfolio_motion.models.submission import SubmissionMessages
from portfolio_motion.models.variant import AnimationVariant

DEFAULT_RESET_DELAY_MS = 5000
EMAILJS_ENDPOINT = "https://api.emailjs.com/api/v1.0/email/send"


@dataclass(frozen=True)
class EmailTransportConfig:
    """Credentials and endpoint for the EmailJS REST transport"""
    service_id: str
    template_id: str
    public_key: str
    endpoint: str = EMAILJS_ENDPOINT
    timeout_s: float = 10.0

    def __repr__(self):
        # Keep the public key out of logs
        return (f"EmailTransportConfig(service_id={self.service_id!r}, "
                f"template_id={self.template_id!r}, endpoint={self.endpoint!r})")


@dataclass
class MotionConfig:
    """
    Timing knobs and variants

    Attributes:
        variants: name → AnimationVariant (section, list, form, item, status)
        reset_delay_ms: dwell time in SUCCESS/ERROR before returning to IDLE
        messages: user-facing submission notices
        tween_steps: frames per transition for TweenPlayer
    """
    variants: Dict[str, AnimationVariant] = field(default_factory=dict)
    reset_delay_ms: int = DEFAULT_RESET_DELAY_MS
    messages: SubmissionMessages = field(default_factory=SubmissionMessages)
    tween_steps: int = 12

    def variant(self, name: str) -> AnimationVariant:
        try:
            return self.variants[name]
        except KeyError:
            raise ConfigurationError(f"Variant '{name}' is not configured")
