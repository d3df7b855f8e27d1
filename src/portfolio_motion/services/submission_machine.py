"""
Submission State Machine

idle → loading → (success | error) → idle, with the dwell in success/error
time-boxed by a cancelable reset timer.

Every submit starts a new cycle with a fresh token. Results and reset
timers carry the token of the cycle that produced them; anything carrying
an older token is ignored, so a resubmission always wins over a late
result or a pending reset.
"""

import asyncio
from functools import partial
from typing import Callable, List, Optional

from portfolio_motion.engine.scheduler import CancelHandle, Scheduler
from portfolio_motion.errors import SubmissionFault
from portfolio_motion.lifecycle.task_registry import TaskCategory, create_tracked_task
from portfolio_motion.models.config import DEFAULT_RESET_DELAY_MS
from portfolio_motion.models.enums import LogCategory, SubmissionStatus
from portfolio_motion.models.events import SubmissionStatusChangedEvent
from portfolio_motion.models.submission import (
    IDLE_STATE,
    FormPayload,
    ResetTimerFired,
    SubmissionEvent,
    SubmissionMessages,
    SubmissionState,
    SubmitRejected,
    SubmitRequested,
    SubmitResolved,
)
from portfolio_motion.services.submit_capability import SubmitCapability
from portfolio_motion.utils.logger import get_logger

log = get_logger().for_category(LogCategory.SUBMISSION)

StateListener = Callable[[SubmissionState, SubmissionState], None]


class SubmissionStateMachine:
    """
    Owns one SubmissionState; the only code allowed to change it.

    Example:
        machine = SubmissionStateMachine(capability, AsyncioScheduler())
        machine.add_listener(lambda prev, cur: print(prev.status, "→", cur.status))

        task = machine.submit({"name": "A", "email": "a@x.com", "message": "hi"})
        # machine.status is LOADING here
        await task
        # SUCCESS or ERROR; IDLE again after reset_delay_ms
    """

    def __init__(
        self,
        submit_capability: SubmitCapability,
        scheduler: Scheduler,
        reset_delay_ms: int = DEFAULT_RESET_DELAY_MS,
        messages: Optional[SubmissionMessages] = None,
        event_bus=None,
    ):
        if reset_delay_ms < 0:
            raise ValueError(f"reset_delay_ms must be non-negative, got {reset_delay_ms}")

        self.capability = submit_capability
        self.scheduler = scheduler
        self.reset_delay_ms = reset_delay_ms
        self.messages = messages or SubmissionMessages()
        self.event_bus = event_bus

        self._state: SubmissionState = IDLE_STATE
        self._token = 0
        self._reset_handle: Optional[CancelHandle] = None
        self._inflight: Optional[asyncio.Task] = None
        self._listeners: List[StateListener] = []
        self._closed = False

    # ------------------------------------------------------------
    # State access
    # ------------------------------------------------------------

    @property
    def state(self) -> SubmissionState:
        return self._state

    @property
    def status(self) -> SubmissionStatus:
        return self._state.status

    @property
    def message(self) -> str:
        return self._state.message

    @property
    def controls_disabled(self) -> bool:
        """Triggering controls stay disabled while a submission is in flight"""
        return self._state.status == SubmissionStatus.LOADING

    @property
    def reset_pending(self) -> bool:
        return self._reset_handle is not None and self._reset_handle.active

    @property
    def inflight(self) -> Optional[asyncio.Task]:
        return self._inflight

    def add_listener(self, listener: StateListener) -> None:
        """listener(previous, current) runs synchronously on every change"""
        self._listeners.append(listener)

    def remove_listener(self, listener: StateListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    # ------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------

    def submit(self, payload: FormPayload) -> Optional[asyncio.Task]:
        """
        User submit. Reaches LOADING before returning.

        Returns:
            Task running the submit capability, or None when the submit was
            dropped (already loading, or torn down)
        """
        if not self.dispatch(SubmitRequested(dict(payload))):
            return None
        return self._inflight

    def dispatch(self, event: SubmissionEvent) -> bool:
        """
        Apply one event.

        Returns:
            True if the event caused a transition
        """
        if isinstance(event, SubmitRequested):
            return self._on_submit_requested(event)
        if isinstance(event, SubmitResolved):
            return self._on_resolved(event)
        if isinstance(event, SubmitRejected):
            return self._on_rejected(event)
        if isinstance(event, ResetTimerFired):
            return self._on_reset_fired(event)
        raise TypeError(f"Unknown submission event: {event!r}")

    def teardown(self) -> None:
        """
        Owner is going away: cancel the reset timer and the in-flight call.

        Late results of the cancelled cycle are ignored.
        """
        if self._closed:
            return
        self._closed = True
        self._cancel_reset()
        self._token += 1

        if self._inflight is not None and not self._inflight.done():
            self._inflight.cancel()
        self._inflight = None

        if not self._state.is_idle:
            self._set_state(IDLE_STATE)
        log.debug("Submission machine torn down")

    # ------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------

    def _on_submit_requested(self, event: SubmitRequested) -> bool:
        if self._closed:
            log.warn("Submit after teardown ignored")
            return False
        if self._state.status == SubmissionStatus.LOADING:
            log.warn("Submission already in flight, ignoring submit", token=self._token)
            return False

        # New submit always wins over a pending reset
        self._cancel_reset()
        self._token += 1
        token = self._token

        self._set_state(SubmissionState(SubmissionStatus.LOADING, self.messages.pending))
        self._inflight = create_tracked_task(
            self._run_capability(token, event.payload),
            category=TaskCategory.SUBMISSION,
            description=f"submit #{token}",
        )
        return True

    def _on_resolved(self, event: SubmitResolved) -> bool:
        if not self._is_current_loading(event.token):
            log.debug("Ignoring stale resolve", token=event.token, current=self._token)
            return False

        self._inflight = None
        self._set_state(SubmissionState(SubmissionStatus.SUCCESS, self.messages.success))
        self._arm_reset(event.token)
        return True

    def _on_rejected(self, event: SubmitRejected) -> bool:
        if not self._is_current_loading(event.token):
            log.debug("Ignoring stale reject", token=event.token, current=self._token)
            return False

        self._inflight = None
        log.warn("Submission failed", token=event.token, fault=str(event.fault) if event.fault else "unknown")
        self._set_state(SubmissionState(SubmissionStatus.ERROR, self.messages.failure))
        self._arm_reset(event.token)
        return True

    def _on_reset_fired(self, event: ResetTimerFired) -> bool:
        if event.token != self._token or self._state.status not in (SubmissionStatus.SUCCESS, SubmissionStatus.ERROR):
            log.debug("Ignoring stale reset timer", token=event.token, current=self._token)
            return False

        self._reset_handle = None
        self._set_state(IDLE_STATE)
        return True

    # ------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------

    async def _run_capability(self, token: int, payload: FormPayload) -> None:
        try:
            ack = await self.capability.submit(payload)
        except asyncio.CancelledError:
            raise
        except SubmissionFault as fault:
            self.dispatch(SubmitRejected(token, fault))
            return
        except Exception as e:
            # Every failure collapses into the single error bucket
            self.dispatch(SubmitRejected(token, SubmissionFault(f"{type(e).__name__}: {e}", cause=e)))
            return

        self.dispatch(SubmitResolved(token, ack))

    def _is_current_loading(self, token: int) -> bool:
        return token == self._token and self._state.status == SubmissionStatus.LOADING

    def _arm_reset(self, token: int) -> None:
        self._cancel_reset()
        self._reset_handle = self.scheduler.schedule(
            self.reset_delay_ms,
            partial(self.dispatch, ResetTimerFired(token)),
            label=f"submission reset #{token}",
        )

    def _cancel_reset(self) -> None:
        if self._reset_handle is not None:
            self._reset_handle.cancel()
            self._reset_handle = None

    def _set_state(self, new_state: SubmissionState) -> None:
        previous = self._state
        self._state = new_state

        log.info(
            "Status changed",
            transition=f"{previous.status.name} → {new_state.status.name}",
            token=self._token,
        )

        for listener in list(self._listeners):
            try:
                listener(previous, new_state)
            except Exception as e:
                log.error(f"State listener failed: {getattr(listener, '__name__', listener)}", exception=e)

        if self.event_bus is not None:
            self.event_bus.emit(SubmissionStatusChangedEvent(previous.status, new_state.status, new_state.message))
