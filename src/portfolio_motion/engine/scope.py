"""
Animation scopes - nodes of the stagger tree

AnimationScope is a container that staggers its mounted children; Leaf is a
terminal node with its own enter transform only. Scopes hold state, the
StaggerEngine drives it.
"""

from __future__ import annotations

from typing import Iterator, List, Optional

from portfolio_motion.engine.scheduler import CancelHandle
from portfolio_motion.errors import ConfigurationError
from portfolio_motion.models.enums import Signal
from portfolio_motion.models.variant import AnimationVariant, StyleDescriptor


class Scope:
    """
    Common scope state

    Attributes:
        name: Unique-ish label used in logs and by render sinks
        variant: Hidden/visible styles (and stagger for containers)
        independent: Signal is owned by a controller, not by the parent's
            stagger (status messages and other feedback regions)
        mounted: False while the owning UI region is not rendered
        revealed_at_ms: Scheduler time of the last hidden → visible switch
    """

    def __init__(self, name: str, variant: AnimationVariant, *, independent: bool = False):
        if not isinstance(variant, AnimationVariant):
            raise ConfigurationError(f"Scope '{name}' needs an AnimationVariant, got {type(variant).__name__}")
        self.name = name
        self.variant = variant
        self.independent = independent
        self.parent: Optional[AnimationScope] = None
        self.mounted = not independent
        self.revealed_at_ms: Optional[float] = None
        self._signal = Signal.HIDDEN
        # Handle that will reveal this scope, set by the parent on stagger
        self._incoming: Optional[CancelHandle] = None

    # ------------------------------------------------------------
    # Signal
    # ------------------------------------------------------------

    @property
    def signal(self) -> Signal:
        """Own signal, as last set by the engine"""
        return self._signal

    @property
    def effective_signal(self) -> Signal:
        """
        Signal the render layer should honor.

        Independent scopes answer with their own signal. Everything else is
        hidden while any ancestor is hidden.
        """
        if not self.mounted:
            return Signal.HIDDEN
        if self.independent or self.parent is None:
            return self._signal
        if self.parent.effective_signal == Signal.HIDDEN:
            return Signal.HIDDEN
        return self._signal

    def target_style(self) -> StyleDescriptor:
        """Declarative style for the current effective signal"""
        return self.variant.style_for(self.effective_signal)

    # ------------------------------------------------------------
    # Tree
    # ------------------------------------------------------------

    @property
    def children(self) -> List[Scope]:
        return []

    def walk(self) -> Iterator[Scope]:
        """Depth-first, declaration order, self first"""
        yield self

    @property
    def path(self) -> str:
        if self.parent is None:
            return self.name
        return f"{self.parent.path}/{self.name}"

    def __repr__(self):
        return f"{type(self).__name__}({self.name!r}, {self._signal.name})"


class Leaf(Scope):
    """Terminal scope: one enter transform, stagger is ignored"""


class AnimationScope(Scope):
    """
    Container scope

    On enter, child i (mounted, non-independent, declaration order) is
    revealed at i * stagger_delay_ms after this scope's own reveal start.
    A non-container variant on a container behaves as stagger 0.

    Example:
        section = AnimationScope("contact", section_variant)
        section.add(Leaf("header", item_variant))
        form = section.add(AnimationScope("form", form_variant))
        form.add(Leaf("status", item_variant, independent=True))
    """

    def __init__(self, name: str, variant: AnimationVariant, children=None, *, independent: bool = False):
        super().__init__(name, variant, independent=independent)
        self._children: List[Scope] = []
        for child in children or ():
            self.add(child)

    @property
    def stagger_delay_ms(self) -> int:
        return self.variant.stagger_delay_ms or 0

    @property
    def children(self) -> List[Scope]:
        return list(self._children)

    def add(self, child: Scope) -> Scope:
        """Append a child in declaration order; returns the child"""
        if child.parent is not None:
            raise ConfigurationError(f"Scope '{child.name}' already belongs to '{child.parent.name}'")
        child.parent = self
        self._children.append(child)
        return child

    def staggered_children(self) -> List[Scope]:
        """Children this scope reveals itself, in declaration order"""
        return [c for c in self._children if c.mounted and not c.independent]

    def walk(self) -> Iterator[Scope]:
        yield self
        for child in self._children:
            yield from child.walk()

    def find(self, name: str) -> Optional[Scope]:
        """First scope in the subtree with this name"""
        for scope in self.walk():
            if scope.name == name:
                return scope
        return None
