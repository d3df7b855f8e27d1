import asyncio

import pytest

from portfolio_motion.engine.scheduler import VirtualScheduler
from portfolio_motion.engine.stagger_engine import StaggerEngine
from portfolio_motion.models.variant import AnimationVariant
from portfolio_motion.services.render_sinks import RecordingStyleSink


@pytest.fixture
def section_variant():
    return AnimationVariant.from_dict("section", {
        "hidden": {"opacity": 0},
        "visible": {"opacity": 1},
        "stagger_delay_ms": 150,
    })


@pytest.fixture
def list_variant():
    return AnimationVariant.from_dict("list", {
        "hidden": {"opacity": 0},
        "visible": {"opacity": 1},
        "stagger_delay_ms": 100,
    })


@pytest.fixture
def item_variant():
    return AnimationVariant.from_dict("item", {
        "hidden": {"opacity": 0, "y": 20},
        "visible": {"opacity": 1, "y": 0, "duration_ms": 500, "easing": "easeOut"},
    })


@pytest.fixture
def status_variant():
    return AnimationVariant.from_dict("status", {
        "hidden": {"opacity": 0, "y": -10},
        "visible": {"opacity": 1, "y": 0, "duration_ms": 300},
        "exit": {"opacity": 0, "y": -10, "duration_ms": 300},
    })


@pytest.fixture
def scheduler():
    return VirtualScheduler()


@pytest.fixture
def sink():
    return RecordingStyleSink()


@pytest.fixture
def engine(scheduler, sink):
    return StaggerEngine(scheduler, sink=sink)


class ControlledCapability:
    """
    Submit capability whose calls stay pending until the test settles them.
    """

    def __init__(self):
        self.calls = []
        self.futures = []

    async def submit(self, payload):
        self.calls.append(dict(payload))
        future = asyncio.get_running_loop().create_future()
        self.futures.append(future)
        return await future

    def resolve(self, index=-1, ack=None):
        self.futures[index].set_result(ack)

    def reject(self, exc, index=-1):
        self.futures[index].set_exception(exc)


@pytest.fixture
def capability():
    return ControlledCapability()
