"""
Variant Models

Style descriptors and animation variants for the stagger tree.
A variant maps each Signal to the style a scope should rest on (HIDDEN) or
transition to (VISIBLE). Container variants also declare the delay between
successive children's reveal starts.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Mapping, Optional

from portfolio_motion.errors import ConfigurationError
from portfolio_motion.models.enums import Signal


# === Easing Functions ===
# t: progress 0.0-1.0 → factor 0.0-1.0

def ease_linear(t: float) -> float:
    """
    Linear easing (constant speed)

    Args:
        t: Progress (0.0 = start, 1.0 = end)

    Returns:
        Interpolation factor (0.0 to 1.0)
    """
    return t


def ease_in_quad(t: float) -> float:
    """Quadratic ease-in (slow start → fast end)"""
    return t * t


def ease_out_quad(t: float) -> float:
    """Quadratic ease-out (fast start → slow end)"""
    return 1 - (1 - t) * (1 - t)


def ease_in_out_quad(t: float) -> float:
    """Quadratic ease-in-out (slow start → fast middle → slow end)"""
    return 2 * t * t if t < 0.5 else 1 - (-2 * t + 2) ** 2 / 2


def ease_in_cubic(t: float) -> float:
    """Cubic ease-in (very slow start)"""
    return t * t * t


def ease_out_cubic(t: float) -> float:
    """Cubic ease-out (very slow end)"""
    return 1 - (1 - t) ** 3


def ease_in_out_cubic(t: float) -> float:
    """Cubic ease-in-out (very smooth acceleration/deceleration)"""
    return 4 * t ** 3 if t < 0.5 else 1 - (-2 * t + 2) ** 3 / 2


EASINGS: Dict[str, Callable[[float], float]] = {
    "linear": ease_linear,
    "easeIn": ease_in_quad,
    "easeOut": ease_out_quad,
    "easeInOut": ease_in_out_quad,
    "easeInCubic": ease_in_cubic,
    "easeOutCubic": ease_out_cubic,
    "easeInOutCubic": ease_in_out_cubic,
}


def get_easing(name: str) -> Callable[[float], float]:
    """Resolve an easing function by name, ConfigurationError if unknown"""
    try:
        return EASINGS[name]
    except KeyError:
        raise ConfigurationError(f"Unknown easing: {name!r}")


@dataclass(frozen=True)
class StyleDescriptor:
    """
    Target style of one signal

    Attributes:
        opacity: 0.0 (transparent) .. 1.0 (opaque)
        translate_y: vertical offset in px (positive = below rest position)
        duration_ms: how long the render layer takes to reach this style
        easing: name of a registered easing function
    """
    opacity: float = 1.0
    translate_y: float = 0.0
    duration_ms: int = 0
    easing: str = "linear"

    def __post_init__(self):
        if not 0.0 <= self.opacity <= 1.0:
            raise ConfigurationError(f"opacity must be within [0, 1], got {self.opacity}")
        if self.duration_ms < 0:
            raise ConfigurationError(f"duration_ms must be non-negative, got {self.duration_ms}")
        get_easing(self.easing)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "StyleDescriptor":
        """
        Build from a config mapping.

        Accepts both `translate_y` and the short `y` key used in variant files.
        """
        if not isinstance(data, Mapping):
            raise ConfigurationError(f"Style must be a mapping, got {type(data).__name__}")
        try:
            return cls(
                opacity=float(data.get("opacity", 1.0)),
                translate_y=float(data.get("translate_y", data.get("y", 0.0))),
                duration_ms=int(data.get("duration_ms", 0)),
                easing=str(data.get("easing", "linear")),
            )
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid style values: {e}") from e

    def __repr__(self):
        return (f"Style(opacity={self.opacity}, y={self.translate_y}, "
                f"{self.duration_ms}ms {self.easing})")


@dataclass(frozen=True)
class AnimationVariant:
    """
    Named transition between HIDDEN and VISIBLE styles

    Attributes:
        name: Variant name (e.g. "section", "item")
        hidden: Style at rest before reveal
        visible: Style the scope transitions to on enter
        stagger_delay_ms: Delay between successive children's reveal start;
            None for leaf variants
        exit: Optional style played when the scope is unmounted

    Examples:
        section = AnimationVariant.from_dict("section", {
            "hidden": {"opacity": 0},
            "visible": {"opacity": 1},
            "stagger_delay_ms": 150,
        })

        item = AnimationVariant.from_dict("item", {
            "hidden": {"opacity": 0, "y": 20},
            "visible": {"opacity": 1, "y": 0, "duration_ms": 500, "easing": "easeOut"},
        })
    """
    name: str
    hidden: StyleDescriptor
    visible: StyleDescriptor
    stagger_delay_ms: Optional[int] = None
    exit: Optional[StyleDescriptor] = field(default=None)

    def __post_init__(self):
        if self.hidden is None or self.visible is None:
            raise ConfigurationError(f"Variant '{self.name}' must define both hidden and visible")
        if self.stagger_delay_ms is not None and self.stagger_delay_ms < 0:
            raise ConfigurationError(
                f"Variant '{self.name}' has negative stagger_delay_ms: {self.stagger_delay_ms}"
            )

    @property
    def is_container(self) -> bool:
        """True when the variant declares how to stagger children (0 = simultaneous)"""
        return self.stagger_delay_ms is not None

    def style_for(self, signal: Signal) -> StyleDescriptor:
        return self.visible if signal == Signal.VISIBLE else self.hidden

    @classmethod
    def from_dict(cls, name: str, data: Mapping[str, Any]) -> "AnimationVariant":
        """
        Build a variant from a state-keyed mapping.

        Raises:
            ConfigurationError: hidden/visible missing or any value malformed
        """
        if not isinstance(data, Mapping):
            raise ConfigurationError(f"Variant '{name}' must be a mapping")

        missing = [state for state in ("hidden", "visible") if state not in data]
        if missing:
            raise ConfigurationError(f"Variant '{name}' is missing: {', '.join(missing)}")

        stagger = data.get("stagger_delay_ms")
        if stagger is not None:
            try:
                stagger = int(stagger)
            except (TypeError, ValueError) as e:
                raise ConfigurationError(f"Variant '{name}' has invalid stagger_delay_ms") from e

        exit_style = data.get("exit")
        return cls(
            name=name,
            hidden=StyleDescriptor.from_dict(data["hidden"]),
            visible=StyleDescriptor.from_dict(data["visible"]),
            stagger_delay_ms=stagger,
            exit=StyleDescriptor.from_dict(exit_style) if exit_style is not None else None,
        )
