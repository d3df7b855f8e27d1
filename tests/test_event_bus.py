"""
Tests for event bus functionality

Tests publishing, subscription, middleware, filtering and the sync emit path.
"""

import asyncio

import pytest

from portfolio_motion.lifecycle.task_registry import TaskCategory, TaskRegistry
from portfolio_motion.models.enums import SubmissionStatus
from portfolio_motion.models.events import (
    EventSource,
    EventType,
    ScopeRevealedEvent,
    ScopeUnmountedEvent,
    SubmissionStatusChangedEvent,
)
from portfolio_motion.services.event_bus import EventBus
from portfolio_motion.services.middleware import log_middleware


def status_event(current, previous=SubmissionStatus.IDLE):
    return SubmissionStatusChangedEvent(previous, current, "")


@pytest.mark.asyncio
async def test_basic_pub_sub():
    """Basic publish/subscribe"""
    bus = EventBus()
    received = []

    async def handler(event):
        received.append(event)

    bus.subscribe(EventType.SCOPE_REVEALED, handler)
    await bus.publish(ScopeRevealedEvent("page/contact", 150))

    assert len(received) == 1
    assert received[0].scope_path == "page/contact"
    assert received[0].source == EventSource.STAGGER_ENGINE
    assert received[0].to_data() == {"scope_path": "page/contact", "at_ms": 150}


@pytest.mark.asyncio
async def test_filtering():
    """Per-handler filtering"""
    bus = EventBus()
    errors = []
    everything = []

    async def error_handler(event):
        errors.append(event)

    async def all_handler(event):
        everything.append(event)

    bus.subscribe(
        EventType.SUBMISSION_STATUS_CHANGED,
        error_handler,
        filter_fn=lambda e: e.current == SubmissionStatus.ERROR
    )
    bus.subscribe(EventType.SUBMISSION_STATUS_CHANGED, all_handler)

    await bus.publish(status_event(SubmissionStatus.LOADING))
    await bus.publish(status_event(SubmissionStatus.ERROR, SubmissionStatus.LOADING))
    await bus.publish(status_event(SubmissionStatus.IDLE, SubmissionStatus.ERROR))

    assert len(errors) == 1
    assert len(everything) == 3


@pytest.mark.asyncio
async def test_middleware_blocking():
    """Middleware returning None blocks the event"""
    bus = EventBus()
    received = []

    def block_unmounts(event):
        if event.type == EventType.SCOPE_UNMOUNTED:
            return None
        return event

    bus.add_middleware(log_middleware)
    bus.add_middleware(block_unmounts)

    async def handler(event):
        received.append(event)

    bus.subscribe(EventType.SCOPE_REVEALED, handler)
    bus.subscribe(EventType.SCOPE_UNMOUNTED, handler)

    await bus.publish(ScopeRevealedEvent("page", 0))
    await bus.publish(ScopeUnmountedEvent("page", 3))

    assert [e.type for e in received] == [EventType.SCOPE_REVEALED]
    assert len(bus.get_event_history()) == 1


@pytest.mark.asyncio
async def test_priority():
    """Priority-based handler execution"""
    bus = EventBus()
    execution_order = []

    async def low_priority_handler(event):
        execution_order.append("low")

    async def high_priority_handler(event):
        execution_order.append("high")

    def medium_priority_handler(event):
        execution_order.append("medium")

    bus.subscribe(EventType.SCOPE_REVEALED, low_priority_handler, priority=0)
    bus.subscribe(EventType.SCOPE_REVEALED, high_priority_handler, priority=100)
    bus.subscribe(EventType.SCOPE_REVEALED, medium_priority_handler, priority=50)

    await bus.publish(ScopeRevealedEvent("page", 0))

    assert execution_order == ["high", "medium", "low"]


@pytest.mark.asyncio
async def test_failing_handler_does_not_stop_others():
    bus = EventBus()
    received = []

    async def broken(event):
        raise RuntimeError("handler bug")

    async def healthy(event):
        received.append(event)

    bus.subscribe(EventType.SCOPE_REVEALED, broken, priority=10)
    bus.subscribe(EventType.SCOPE_REVEALED, healthy)

    await bus.publish(ScopeRevealedEvent("page", 0))

    assert len(received) == 1


def test_emit_runs_sync_handlers_without_loop():
    bus = EventBus()
    received = []

    async def async_handler(event):
        received.append("async")

    bus.subscribe(EventType.SCOPE_REVEALED, lambda e: received.append("sync"))
    bus.subscribe(EventType.SCOPE_REVEALED, async_handler)

    bus.emit(ScopeRevealedEvent("page", 0))

    # No running loop: the async handler is skipped
    assert received == ["sync"]


@pytest.mark.asyncio
async def test_emit_spawns_tracked_tasks_for_async_handlers():
    bus = EventBus()
    done = asyncio.Event()

    async def async_handler(event):
        done.set()

    bus.subscribe(EventType.SCOPE_UNMOUNTED, async_handler)
    bus.emit(ScopeUnmountedEvent("page/contact/form/status", 0))

    await asyncio.wait_for(done.wait(), timeout=1.0)
    descriptions = [
        r.info.description for r in TaskRegistry.instance().list_all()
        if r.info.category == TaskCategory.EVENTBUS
    ]
    assert any("SCOPE_UNMOUNTED" in d for d in descriptions)


def test_history_limit():
    bus = EventBus()
    for i in range(150):
        bus.emit(ScopeRevealedEvent(f"s{i}", i))

    assert len(bus.get_event_history(limit=500)) == 100
    assert bus.get_event_history(limit=1)[0].scope_path == "s149"

    bus.clear_history()
    assert bus.get_event_history() == []


def test_crashing_middleware_is_skipped():
    bus = EventBus()
    received = []

    def broken_middleware(event):
        raise RuntimeError("middleware bug")

    bus.add_middleware(broken_middleware)
    bus.subscribe(EventType.SCOPE_REVEALED, received.append)

    bus.emit(ScopeRevealedEvent("page", 0))

    assert [e.scope_path for e in received] == ["page"]
    assert len(bus.get_event_history()) == 1


@pytest.mark.asyncio
async def test_crashing_filter_skips_only_its_handler():
    bus = EventBus()
    received = []

    bus.subscribe(EventType.SCOPE_REVEALED, lambda e: received.append("broken"), filter_fn=lambda e: 1 / 0)
    bus.subscribe(EventType.SCOPE_REVEALED, lambda e: received.append("healthy"))

    bus.emit(ScopeRevealedEvent("page", 0))
    await bus.publish(ScopeRevealedEvent("page", 0))

    assert received == ["healthy", "healthy"]
