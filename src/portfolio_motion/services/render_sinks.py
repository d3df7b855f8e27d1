"""
Render sinks

Stand-ins for the render layer. The engine hands each sink one
StyleTransition per signal change; how (and whether) frames are drawn is
up to the sink.
"""

import asyncio
from typing import Callable, Dict, List, Optional

from portfolio_motion.engine.tween import StyleFrame, StyleTransition, TweenPlayer
from portfolio_motion.lifecycle.task_registry import TaskCategory, create_tracked_task
from portfolio_motion.models.enums import LogCategory
from portfolio_motion.utils.logger import get_logger

log = get_logger().for_category(LogCategory.TRANSITION)


class RecordingStyleSink:
    """Keeps every transition it receives (tests, timeline dumps)"""

    def __init__(self):
        self.transitions: List[StyleTransition] = []

    def apply(self, transition: StyleTransition) -> None:
        self.transitions.append(transition)

    def for_scope(self, scope_path: str) -> List[StyleTransition]:
        return [t for t in self.transitions if t.scope_path == scope_path]

    def clear(self) -> None:
        self.transitions.clear()


class ConsoleStyleSink:
    """Logs transition starts through the category logger"""

    def apply(self, transition: StyleTransition) -> None:
        log.info(
            f"{transition.scope_path}",
            opacity=f"{transition.from_style.opacity} → {transition.to_style.opacity}",
            y=f"{transition.from_style.translate_y} → {transition.to_style.translate_y}",
            timing=f"{transition.duration_ms}ms {transition.easing}",
        )


class AnimatedStyleSink:
    """
    Plays each transition with a TweenPlayer on the running loop

    A new transition on a scope cancels the one still playing on it.
    Frames go to on_frame(scope_path, frame).
    """

    def __init__(self, on_frame: Callable[[str, StyleFrame], None], steps: int = 12):
        self.player = TweenPlayer(on_frame, steps=steps)
        self._playing: Dict[str, asyncio.Task] = {}

    def apply(self, transition: StyleTransition) -> None:
        previous = self._playing.pop(transition.scope_path, None)
        if previous is not None and not previous.done():
            previous.cancel()

        task = create_tracked_task(
            self.player.play(transition),
            category=TaskCategory.TWEEN,
            description=f"tween {transition.scope_path}",
        )
        self._playing[transition.scope_path] = task

    async def wait_idle(self, timeout: Optional[float] = None) -> None:
        """Wait until every started tween has finished"""
        tasks = [t for t in self._playing.values() if not t.done()]
        if tasks:
            await asyncio.wait(tasks, timeout=timeout)

    async def close(self) -> None:
        """Cancel everything still playing"""
        for task in self._playing.values():
            task.cancel()
        for task in self._playing.values():
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._playing.clear()
