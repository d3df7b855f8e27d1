"""Stagger animation engine"""

from .scheduler import CancelHandle, Scheduler, AsyncioScheduler, VirtualScheduler
from .scope import Scope, Leaf, AnimationScope
from .tween import StyleTransition, StyleFrame, Tween, TweenPlayer, interpolate
from .stagger_engine import StaggerEngine, StyleSink, RevealRecord

__all__ = [
    "CancelHandle",
    "Scheduler",
    "AsyncioScheduler",
    "VirtualScheduler",
    "Scope",
    "Leaf",
    "AnimationScope",
    "StyleTransition",
    "StyleFrame",
    "Tween",
    "TweenPlayer",
    "interpolate",
    "StaggerEngine",
    "StyleSink",
    "RevealRecord",
]
