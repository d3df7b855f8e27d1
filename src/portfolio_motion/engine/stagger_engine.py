"""
Stagger Engine

Drives the scope tree: reveals a root once, cascades the visible signal
top-down with per-container stagger delays, mounts/unmounts independently
triggered scopes and cancels pending reveals of discarded subtrees.

All state changes happen on the scheduler's single logical thread.
"""

from dataclasses import dataclass
from functools import partial
from typing import List, Optional, Protocol

from portfolio_motion.engine.scheduler import CancelHandle, Scheduler
from portfolio_motion.engine.scope import AnimationScope, Scope
from portfolio_motion.engine.tween import StyleTransition
from portfolio_motion.models.enums import LogCategory, Signal
from portfolio_motion.models.events import ScopeRevealedEvent, ScopeUnmountedEvent
from portfolio_motion.models.variant import StyleDescriptor
from portfolio_motion.utils.logger import get_logger

log = get_logger().for_category(LogCategory.ANIMATION)


class StyleSink(Protocol):
    """Render layer: receives one transition per scope signal change"""

    def apply(self, transition: StyleTransition) -> None:
        ...


@dataclass(frozen=True)
class RevealRecord:
    """One hidden → visible switch, for inspection"""
    scope_path: str
    at_ms: float


class StaggerEngine:
    """
    Hierarchical staggered-entrance engine

    Example:
        engine = StaggerEngine(AsyncioScheduler(), sink=ConsoleStyleSink())
        engine.reveal(page_root)          # once, from the page controller

        engine.mount(status_scope)        # feedback region appears
        engine.unmount(status_scope)      # ...and goes away, pending reveals cancelled
    """

    def __init__(self, scheduler: Scheduler, sink: Optional[StyleSink] = None, event_bus=None):
        self.scheduler = scheduler
        self.sink = sink
        self.event_bus = event_bus
        self._timeline: List[RevealRecord] = []

    # ============================================================
    # Entry points
    # ============================================================

    def reveal(self, root: Scope) -> bool:
        """
        Ancestor-controller entry point: make a tree visible once.

        Returns False when the root was already visible.
        """
        root.mounted = True
        log.info(f"Revealing {root.path}")
        return self.enter(root)

    def enter(self, scope: Scope) -> bool:
        """
        Transition a scope from hidden to visible.

        Applies the variant's visible style, then (containers only) schedules
        child i at i * stagger_delay_ms. No-op on visible or unmounted scopes.

        Returns:
            True when the scope switched to visible
        """
        if not scope.mounted:
            log.warn(f"Cannot enter unmounted scope {scope.path}")
            return False
        if scope.signal == Signal.VISIBLE:
            log.debug(f"Scope {scope.path} already visible")
            return False

        now = self.scheduler.now_ms()
        scope._signal = Signal.VISIBLE
        scope.revealed_at_ms = now
        scope._incoming = None
        self._timeline.append(RevealRecord(scope.path, now))

        self._apply(scope, scope.variant.hidden, scope.variant.visible, now)
        if self.event_bus is not None:
            self.event_bus.emit(ScopeRevealedEvent(scope.path, now))

        if isinstance(scope, AnimationScope):
            self._stagger_children(scope)

        return True

    def mount(self, scope: Scope) -> bool:
        """
        Mount a scope and run its entrance from hidden.

        Independent scopes enter immediately. Regular scopes enter
        immediately only if their parent is already visible; otherwise the
        parent's own stagger picks them up.
        """
        if scope.mounted and scope.signal == Signal.VISIBLE:
            return False

        scope.mounted = True
        log.debug(f"Mounted {scope.path}")

        parent = scope.parent
        if scope.independent or parent is None or parent.signal == Signal.VISIBLE:
            return self.enter(scope)
        return False

    def unmount(self, scope: Scope) -> int:
        """
        Discard a scope: cancel every pending reveal in its subtree and
        reset signals to hidden. Plays the variant's exit style if declared.

        Returns:
            Number of pending reveals cancelled
        """
        was_visible = scope.signal == Signal.VISIBLE
        cancelled = 0

        for node in scope.walk():
            if node._incoming is not None and node._incoming.cancel():
                cancelled += 1
            node._incoming = None
            node._signal = Signal.HIDDEN
            node.revealed_at_ms = None

        scope.mounted = False

        if was_visible and scope.variant.exit is not None:
            self._apply(scope, scope.variant.visible, scope.variant.exit, self.scheduler.now_ms())

        log.debug(f"Unmounted {scope.path}", cancelled=cancelled)
        if self.event_bus is not None:
            self.event_bus.emit(ScopeUnmountedEvent(scope.path, cancelled))
        return cancelled

    # ============================================================
    # Inspection
    # ============================================================

    def pending_handles(self, scope: Scope) -> List[CancelHandle]:
        """Reveals still waiting anywhere in the subtree (including the scope itself)"""
        return [
            node._incoming for node in scope.walk()
            if node._incoming is not None and node._incoming.active
        ]

    def pending_count(self, scope: Scope) -> int:
        return len(self.pending_handles(scope))

    def timeline(self) -> List[RevealRecord]:
        """Reveal starts in the order they happened"""
        return list(self._timeline)

    def offsets(self, root: Scope) -> dict:
        """scope path → reveal time relative to root's reveal (ms)"""
        if root.revealed_at_ms is None:
            return {}
        paths = {node.path for node in root.walk()}
        return {
            r.scope_path: r.at_ms - root.revealed_at_ms
            for r in self._timeline
            if r.scope_path in paths and r.at_ms >= root.revealed_at_ms
        }

    # ============================================================
    # Internals
    # ============================================================

    def _stagger_children(self, scope: AnimationScope) -> None:
        delay = scope.stagger_delay_ms
        children = scope.staggered_children()
        if not children:
            return

        for i, child in enumerate(children):
            child._incoming = self.scheduler.schedule(
                i * delay,
                partial(self._on_child_due, scope, child),
                label=child.path,
            )

        log.debug(f"Staggered {len(children)} children of {scope.path}", delay_ms=delay)

    def _on_child_due(self, parent: AnimationScope, child: Scope) -> None:
        # Parent or child discarded since scheduling
        if not parent.mounted or parent.signal != Signal.VISIBLE or not child.mounted:
            log.debug(f"Skipping stale reveal of {child.path}")
            return
        self.enter(child)

    def _apply(self, scope: Scope, from_style: StyleDescriptor, to_style: StyleDescriptor, now: float) -> None:
        if self.sink is None:
            return
        try:
            self.sink.apply(StyleTransition(scope.path, from_style, to_style, now))
        except Exception as e:
            log.error(f"Style sink failed for {scope.path}: {e}")
