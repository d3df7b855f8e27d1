"""
Event Bus - Central event routing system

Implements pub-sub pattern:
- Publishers: publish(event) from coroutines, emit(event) from plain callbacks
- Subscribers: subscribe(event_type, handler, priority, filter_fn)
- Middleware: add_middleware(middleware_fn)
"""

import asyncio
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from portfolio_motion.lifecycle.task_registry import TaskCategory, create_tracked_task
from portfolio_motion.models.enums import LogCategory
from portfolio_motion.models.events import Event, EventType
from portfolio_motion.utils.logger import get_logger

log = get_logger().for_category(LogCategory.EVENT)


@dataclass
class EventHandler:
    """Event handler registration"""
    handler: Callable[[Event], None]
    priority: int
    filter_fn: Optional[Callable[[Event], bool]]


class EventBus:
    """
    Central event bus for pub-sub event handling

    Features:
    - Priority-based handler execution (high priority first)
    - Per-handler filtering
    - Middleware pipeline (logging, blocking)
    - Async/sync handler support (auto-detected)
    - Fault tolerance (one handler crash doesn't stop others)

    Example:
        bus = EventBus()

        bus.subscribe(
            EventType.SUBMISSION_STATUS_CHANGED,
            on_status,
            priority=10,
            filter_fn=lambda e: e.current == SubmissionStatus.ERROR
        )

        await bus.publish(SubmissionStatusChangedEvent(prev, cur, "..."))
    """

    def __init__(self):
        # Handlers organized by event type
        self._handlers: Dict[EventType, List[EventHandler]] = {}

        # Middleware pipeline (applied in registration order)
        self._middleware: List[Callable[[Event], Optional[Event]]] = []

        # Event history (circular buffer for debugging)
        self._event_history: List[Event] = []
        self._history_limit = 100

    def subscribe(
        self,
        event_type: EventType,
        handler: Callable[[Event], None],
        priority: int = 0,
        filter_fn: Optional[Callable[[Event], bool]] = None
    ) -> None:
        """
        Subscribe to event type

        Args:
            event_type: Which events to listen for
            handler: Function to call (can be async or sync)
            priority: Execution priority (higher = called first, default: 0)
            filter_fn: Optional filter (return True = handle, False = skip)
        """
        if event_type not in self._handlers:
            self._handlers[event_type] = []

        self._handlers[event_type].append(EventHandler(handler, priority, filter_fn))

        # Sort by priority (descending - highest first)
        self._handlers[event_type].sort(key=lambda h: h.priority, reverse=True)

        log.debug(
            "Event handler subscribed",
            event_type=event_type.name,
            handler=getattr(handler, "__name__", repr(handler)),
            priority=priority
        )

    def add_middleware(self, middleware: Callable[[Event], Optional[Event]]) -> None:
        """
        Add middleware to event processing pipeline

        Middleware can modify events (return modified event), block events
        (return None) or just observe them. Runs in registration order.
        """
        self._middleware.append(middleware)
        log.debug("Middleware registered", middleware=middleware.__name__)

    def _prepare(self, event: Event) -> Optional[Event]:
        """
        Run middleware and record history; None when blocked

        A crashing middleware is logged and skipped, the event goes on unchanged.
        """
        for middleware in self._middleware:
            try:
                processed_event = middleware(event)
            except Exception as e:
                log.error(
                    f"Middleware failed: {getattr(middleware, '__name__', middleware)} for {event.type.name}",
                    exception=e
                )
                continue
            if processed_event is None:
                return None
            event = processed_event

        self._event_history.append(event)
        if len(self._event_history) > self._history_limit:
            self._event_history.pop(0)
        return event

    def _matching_handlers(self, event: Event) -> List[EventHandler]:
        """Handlers whose filter accepts the event; a crashing filter skips its handler"""
        handlers = self._handlers.get(event.type, [])
        if not handlers:
            log.debug("No handlers for event", event_type=event.type.name)

        matching = []
        for h in handlers:
            if h.filter_fn is None:
                matching.append(h)
                continue
            try:
                accepted = h.filter_fn(event)
            except Exception as e:
                log.error(
                    f"Event filter failed: {getattr(h.handler, '__name__', h.handler)} for {event.type.name}",
                    exception=e
                )
                continue
            if accepted:
                matching.append(h)
        return matching

    async def publish(self, event: Event) -> None:
        """
        Publish event to all subscribers

        Flow:
        1. Apply middleware (can modify or block event)
        2. Save to event history
        3. Execute matching handlers by priority (high → low)
        4. Catch and log handler exceptions (fault tolerance)
        """
        event = self._prepare(event)
        if event is None:
            return

        for handler_entry in self._matching_handlers(event):
            try:
                if asyncio.iscoroutinefunction(handler_entry.handler):
                    await handler_entry.handler(event)
                else:
                    handler_entry.handler(event)
            except Exception as e:
                log.error(
                    f"Event handler failed: {handler_entry.handler.__name__} for {event.type.name}",
                    exception=e
                )

    def emit(self, event: Event) -> None:
        """
        Publish from synchronous code (timer callbacks, dispatch()).

        Sync handlers run inline. Async handlers are spawned as tracked tasks
        on the running loop; without a running loop they are skipped.
        """
        event = self._prepare(event)
        if event is None:
            return

        for handler_entry in self._matching_handlers(event):
            try:
                if asyncio.iscoroutinefunction(handler_entry.handler):
                    try:
                        asyncio.get_running_loop()
                    except RuntimeError:
                        log.warn(
                            f"No running loop, skipping async handler {handler_entry.handler.__name__}",
                            event_type=event.type.name
                        )
                        continue
                    create_tracked_task(
                        handler_entry.handler(event),
                        category=TaskCategory.EVENTBUS,
                        description=f"{handler_entry.handler.__name__} <- {event.type.name}"
                    )
                else:
                    handler_entry.handler(event)
            except Exception as e:
                log.error(
                    f"Event handler failed: {handler_entry.handler.__name__} for {event.type.name}",
                    exception=e
                )

    def get_event_history(self, limit: int = 10) -> List[Event]:
        """Recent events, newest last"""
        return self._event_history[-limit:]

    def clear_history(self) -> None:
        """Clear event history"""
        self._event_history.clear()
