"""
Contact Form Controller

Binds declared input fields to a SubmissionStateMachine and drives the
status-message scope of the stagger tree as a side effect of status changes.
"""

from typing import Dict, Iterable, List, Optional

from portfolio_motion.engine.scope import Scope
from portfolio_motion.engine.stagger_engine import StaggerEngine
from portfolio_motion.errors import ValidationError
from portfolio_motion.models.enums import LogCategory, SubmissionStatus
from portfolio_motion.models.submission import (
    DEFAULT_CONTACT_FIELDS,
    FormField,
    FormPayload,
    SubmissionState,
)
from portfolio_motion.services.submission_machine import SubmissionStateMachine
from portfolio_motion.utils.logger import get_logger

log = get_logger().for_category(LogCategory.FORM)

SEND_LABEL = "Send Message"
SENDING_LABEL = "Sending..."


class ContactFormController:
    """
    Form-side owner of one submission interaction

    - field values live here; writes are refused while controls are disabled
    - payload = exactly the declared fields
    - required fields must be non-blank before the machine is invoked
    - success clears every field
    - the status scope is mounted when status leaves IDLE and unmounted
      when it returns there

    Example:
        form = ContactFormController(machine, engine, status_scope)
        form.set_value("name", "A")
        form.set_value("email", "a@x.com")
        form.set_value("message", "hi")
        task = form.submit()
    """

    def __init__(
        self,
        machine: SubmissionStateMachine,
        engine: Optional[StaggerEngine] = None,
        status_scope: Optional[Scope] = None,
        fields: Iterable[FormField] = DEFAULT_CONTACT_FIELDS,
    ):
        self.machine = machine
        self.engine = engine
        self.status_scope = status_scope
        self.fields = tuple(fields)
        self._values: Dict[str, str] = {f.name: "" for f in self.fields}

        if len(self._values) != len(self.fields):
            raise ValueError("Form field names must be unique")

        machine.add_listener(self._on_state_changed)

    # ------------------------------------------------------------
    # Fields
    # ------------------------------------------------------------

    @property
    def values(self) -> Dict[str, str]:
        return dict(self._values)

    @property
    def inputs_disabled(self) -> bool:
        return self.machine.controls_disabled

    def set_value(self, name: str, value: str) -> bool:
        """Write a field; returns False while inputs are disabled"""
        if name not in self._values:
            raise KeyError(f"Unknown form field: {name}")
        if self.inputs_disabled:
            log.debug(f"Field '{name}' is disabled while sending")
            return False
        self._values[name] = value
        return True

    def clear(self) -> None:
        for name in self._values:
            self._values[name] = ""

    def collect_payload(self) -> FormPayload:
        """Current values of the declared fields only"""
        return {f.name: self._values[f.name] for f in self.fields}

    def missing_required(self) -> List[str]:
        return [
            f.name for f in self.fields
            if f.required and not self._values[f.name].strip()
        ]

    # ------------------------------------------------------------
    # Submit
    # ------------------------------------------------------------

    @property
    def button_label(self) -> str:
        return SENDING_LABEL if self.machine.controls_disabled else SEND_LABEL

    def submit(self):
        """
        Validate required fields and hand the payload to the machine.

        Raises:
            ValidationError: a required field is blank (machine not invoked)

        Returns:
            The submit task, or None if the machine dropped the submit
        """
        missing = self.missing_required()
        if missing:
            log.warn("Submit blocked by required fields", missing=missing)
            raise ValidationError(missing)

        return self.machine.submit(self.collect_payload())

    def close(self) -> None:
        """Tear down: stop listening, cancel timers and discard the status scope"""
        self.machine.remove_listener(self._on_state_changed)
        self.machine.teardown()
        if self.engine is not None and self.status_scope is not None and self.status_scope.mounted:
            self.engine.unmount(self.status_scope)

    # ------------------------------------------------------------
    # State machine side effects
    # ------------------------------------------------------------

    def _on_state_changed(self, previous: SubmissionState, current: SubmissionState) -> None:
        if current.status == SubmissionStatus.SUCCESS:
            self.clear()
            log.debug("Fields cleared after successful send")

        if self.engine is None or self.status_scope is None:
            return

        if previous.is_idle and not current.is_idle:
            self.engine.mount(self.status_scope)
        elif current.is_idle and not previous.is_idle:
            self.engine.unmount(self.status_scope)
