"""
Tween - style interpolation

Explicit replacement for the motion library's implicit variant runtime:
a StyleTransition says "go from this style to that one, starting now";
interpolate()/Tween.sample() compute intermediate frames and TweenPlayer
steps through them on the event loop.
"""

import asyncio
from dataclasses import dataclass
from typing import Callable, Optional

from portfolio_motion.models.enums import LogCategory
from portfolio_motion.models.variant import StyleDescriptor, get_easing
from portfolio_motion.utils.logger import get_logger

log = get_logger().for_category(LogCategory.TRANSITION)


@dataclass(frozen=True)
class StyleFrame:
    """One interpolated frame of a transition"""
    opacity: float
    translate_y: float
    progress: float


@dataclass(frozen=True)
class StyleTransition:
    """
    A transition the render layer should perform

    Duration and easing come from the target style (the variant's
    visible style on enter, hidden/exit style on unmount).
    """
    scope_path: str
    from_style: StyleDescriptor
    to_style: StyleDescriptor
    started_at_ms: float

    @property
    def duration_ms(self) -> int:
        return self.to_style.duration_ms

    @property
    def easing(self) -> str:
        return self.to_style.easing


def interpolate(
    from_style: StyleDescriptor,
    to_style: StyleDescriptor,
    progress: float,
    easing: str = "linear"
) -> StyleFrame:
    """
    Interpolate opacity and translate_y between two styles

    Args:
        from_style: Style at progress 0
        to_style: Style at progress 1
        progress: 0.0 .. 1.0 (clamped)
        easing: Easing function name

    Returns:
        StyleFrame with eased values
    """
    progress = min(1.0, max(0.0, progress))
    factor = get_easing(easing)(progress)
    return StyleFrame(
        opacity=from_style.opacity + (to_style.opacity - from_style.opacity) * factor,
        translate_y=from_style.translate_y + (to_style.translate_y - from_style.translate_y) * factor,
        progress=progress,
    )


class Tween:
    """Time-based sampler over one StyleTransition"""

    def __init__(self, transition: StyleTransition):
        self.transition = transition

    def progress_at(self, elapsed_ms: float) -> float:
        duration = self.transition.duration_ms
        if duration <= 0:
            return 1.0
        return min(1.0, max(0.0, elapsed_ms / duration))

    def sample(self, elapsed_ms: float) -> StyleFrame:
        """Frame at elapsed_ms after the transition started"""
        return interpolate(
            self.transition.from_style,
            self.transition.to_style,
            self.progress_at(elapsed_ms),
            self.transition.easing,
        )

    def is_complete(self, elapsed_ms: float) -> bool:
        return self.progress_at(elapsed_ms) >= 1.0


FrameCallback = Callable[[str, StyleFrame], None]


class TweenPlayer:
    """
    Steps a transition on the event loop and pushes frames to a callback

    Example:
        player = TweenPlayer(lambda name, frame: print(name, frame), steps=10)
        await player.play(transition)
    """

    def __init__(self, on_frame: FrameCallback, steps: int = 12):
        self.on_frame = on_frame
        self.steps = max(1, steps)  # At least 1 step

    async def play(self, transition: StyleTransition) -> Optional[StyleFrame]:
        """
        Play the full transition.

        Zero-duration transitions emit the final frame only.
        Returns the last frame pushed.
        """
        tween = Tween(transition)
        duration = transition.duration_ms

        if duration <= 0:
            frame = tween.sample(0)
            self.on_frame(transition.scope_path, frame)
            return frame

        step_delay = duration / 1000 / self.steps
        log.debug(f"Tween {transition.scope_path}: {duration}ms, {self.steps} steps, "
                  f"{step_delay * 1000:.2f}ms per step")

        frame = None
        for step in range(self.steps + 1):
            frame = tween.sample(duration * step / self.steps)
            self.on_frame(transition.scope_path, frame)
            if step < self.steps:
                await asyncio.sleep(step_delay)

        return frame
