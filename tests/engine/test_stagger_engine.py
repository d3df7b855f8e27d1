"""
Tests for the stagger engine.

Covers:
- child i revealed at exactly i * stagger after its container
- nested containers stagger relative to their own reveal
- enter() idempotency
- unmount cancels every pending reveal in the subtree
- independently triggered (status) scopes
"""

import pytest

from portfolio_motion.engine.scope import AnimationScope, Leaf
from portfolio_motion.engine.stagger_engine import StaggerEngine
from portfolio_motion.errors import ConfigurationError
from portfolio_motion.models.enums import Signal
from portfolio_motion.models.events import EventType
from portfolio_motion.services.event_bus import EventBus


def make_list(list_variant, item_variant, count, name="list"):
    container = AnimationScope(name, list_variant)
    for i in range(count):
        container.add(Leaf(f"item{i}", item_variant))
    return container


class TestStaggerOffsets:

    @pytest.mark.parametrize("count", [1, 3, 7])
    def test_child_offsets_are_index_times_delay(self, engine, scheduler, list_variant, item_variant, count):
        container = make_list(list_variant, item_variant, count)

        engine.reveal(container)
        scheduler.run_all()

        offsets = engine.offsets(container)
        for i in range(count):
            assert offsets[f"list/item{i}"] == i * 100

    def test_offsets_relative_to_container_reveal_time(self, engine, scheduler, list_variant, item_variant):
        scheduler.advance(1234)
        container = make_list(list_variant, item_variant, 3)

        engine.reveal(container)
        scheduler.run_all()

        assert container.revealed_at_ms == 1234
        assert [c.revealed_at_ms for c in container.children] == [1234, 1334, 1434]

    def test_nested_containers_accumulate_per_level(
        self, engine, scheduler, section_variant, list_variant, item_variant
    ):
        section = AnimationScope("section", section_variant)
        section.add(Leaf("header", item_variant))
        grid = section.add(make_list(list_variant, item_variant, 3, name="grid"))

        engine.reveal(section)
        scheduler.run_all()

        offsets = engine.offsets(section)
        assert offsets["section"] == 0
        assert offsets["section/header"] == 0
        assert offsets["section/grid"] == 150
        assert offsets["section/grid/item0"] == 150
        assert offsets["section/grid/item1"] == 250
        assert offsets["section/grid/item2"] == 350
        assert grid.signal == Signal.VISIBLE

    def test_zero_stagger_preserves_declaration_order(self, engine, scheduler, item_variant):
        from portfolio_motion.models.variant import AnimationVariant

        together = AnimationVariant.from_dict("together", {
            "hidden": {"opacity": 0}, "visible": {"opacity": 1}, "stagger_delay_ms": 0,
        })
        container = make_list(together, item_variant, 5)

        engine.reveal(container)
        scheduler.advance(0)

        paths = [r.scope_path for r in engine.timeline()]
        assert paths == ["list"] + [f"list/item{i}" for i in range(5)]

    def test_children_are_not_revealed_synchronously(self, engine, scheduler, list_variant, item_variant):
        container = make_list(list_variant, item_variant, 3)

        engine.reveal(container)

        assert container.signal == Signal.VISIBLE
        assert all(c.signal == Signal.HIDDEN for c in container.children)
        assert engine.pending_count(container) == 3

    def test_visible_style_applied_with_variant_timing(self, engine, scheduler, sink, list_variant, item_variant):
        container = make_list(list_variant, item_variant, 1)

        engine.reveal(container)
        scheduler.run_all()

        transition = sink.for_scope("list/item0")[0]
        assert transition.from_style == item_variant.hidden
        assert transition.to_style == item_variant.visible
        assert transition.duration_ms == 500
        assert transition.easing == "easeOut"


class TestIdempotency:

    def test_enter_twice_schedules_nothing_new(self, engine, scheduler, list_variant, item_variant):
        container = make_list(list_variant, item_variant, 4)

        assert engine.enter(container) is True
        pending_before = len(scheduler.pending())

        assert engine.enter(container) is False
        assert engine.reveal(container) is False
        assert len(scheduler.pending()) == pending_before

    def test_enter_after_children_visible(self, engine, scheduler, sink, list_variant, item_variant):
        container = make_list(list_variant, item_variant, 2)
        engine.reveal(container)
        scheduler.run_all()
        applied = len(sink.transitions)

        engine.enter(container)
        engine.enter(container.children[0])
        scheduler.run_all()

        assert len(sink.transitions) == applied


class TestEdgeCases:

    def test_empty_container(self, engine, scheduler, list_variant):
        container = AnimationScope("empty", list_variant)

        assert engine.reveal(container) is True
        assert scheduler.pending() == []
        assert container.signal == Signal.VISIBLE

    def test_leaf_ignores_stagger(self, engine, scheduler, list_variant):
        leaf = Leaf("leaf", list_variant)

        engine.reveal(leaf)
        assert scheduler.pending() == []
        assert leaf.children == []

    def test_container_with_leaf_variant_reveals_children_together(self, engine, scheduler, item_variant):
        wrapper = make_list(item_variant, item_variant, 3, name="wrapper")

        engine.reveal(wrapper)
        scheduler.run_all()

        assert set(engine.offsets(wrapper).values()) == {0}

    def test_non_variant_is_rejected(self):
        with pytest.raises(ConfigurationError):
            Leaf("bad", {"hidden": {}, "visible": {}})

    def test_scope_cannot_have_two_parents(self, list_variant, item_variant):
        leaf = Leaf("x", item_variant)
        AnimationScope("a", list_variant).add(leaf)

        with pytest.raises(ConfigurationError):
            AnimationScope("b", list_variant).add(leaf)

    def test_effective_signal_follows_hidden_ancestor(self, engine, scheduler, section_variant, list_variant, item_variant):
        section = AnimationScope("section", section_variant)
        grid = section.add(make_list(list_variant, item_variant, 1, name="grid"))
        item = grid.children[0]

        # Force the leaf visible while its ancestors are hidden
        item._signal = Signal.VISIBLE
        assert item.effective_signal == Signal.HIDDEN
        assert item.target_style() == item_variant.hidden

        engine.reveal(section)
        scheduler.run_all()
        assert item.effective_signal == Signal.VISIBLE
        assert item.target_style() == item_variant.visible


class TestUnmount:

    def test_unmount_cancels_all_pending(self, engine, scheduler, sink, section_variant, list_variant, item_variant):
        section = AnimationScope("section", section_variant)
        section.add(Leaf("header", item_variant))
        section.add(make_list(list_variant, item_variant, 3, name="grid"))

        engine.reveal(section)
        assert engine.pending_count(section) == 2

        cancelled = engine.unmount(section)
        applied = len(sink.transitions)
        revealed = len(engine.timeline())

        assert cancelled == 2
        assert engine.pending_count(section) == 0

        scheduler.run_all()
        assert len(sink.transitions) == applied
        assert len(engine.timeline()) == revealed
        assert all(node.signal == Signal.HIDDEN for node in section.walk())

    def test_unmount_mid_cascade(self, engine, scheduler, section_variant, list_variant, item_variant):
        section = AnimationScope("section", section_variant)
        section.add(Leaf("header", item_variant))
        grid = section.add(make_list(list_variant, item_variant, 4, name="grid"))

        engine.reveal(section)
        scheduler.advance(250)  # grid at 150, item0 at 150, item1 at 250
        assert [c.signal for c in grid.children[:2]] == [Signal.VISIBLE, Signal.VISIBLE]
        assert engine.pending_count(grid) == 2

        engine.unmount(grid)
        scheduler.run_all()

        assert all(c.signal == Signal.HIDDEN for c in grid.children)
        assert engine.pending_count(section) == 0
        assert section.signal == Signal.VISIBLE

    def test_unmounted_child_is_skipped_on_later_reveal(self, engine, scheduler, list_variant, item_variant):
        container = make_list(list_variant, item_variant, 3)
        engine.unmount(container.children[1])

        engine.reveal(container)
        scheduler.run_all()

        offsets = engine.offsets(container)
        assert "list/item1" not in offsets
        assert offsets["list/item2"] == 100

    def test_unmount_publishes_event(self, scheduler, sink, list_variant, item_variant):
        bus = EventBus()
        seen = []
        bus.subscribe(EventType.SCOPE_UNMOUNTED, seen.append)
        engine = StaggerEngine(scheduler, sink=sink, event_bus=bus)
        container = make_list(list_variant, item_variant, 2)

        engine.reveal(container)
        engine.unmount(container)

        assert len(seen) == 1
        assert seen[0].scope_path == "list"
        assert seen[0].cancelled == 2


class TestIndependentScopes:

    def test_status_scope_is_not_staggered_by_parent(self, engine, scheduler, list_variant, item_variant, status_variant):
        form = AnimationScope("form", list_variant)
        status = form.add(Leaf("status", status_variant, independent=True))
        form.add(Leaf("name", item_variant))
        form.add(Leaf("email", item_variant))

        engine.reveal(form)
        scheduler.run_all()

        offsets = engine.offsets(form)
        assert "form/status" not in offsets
        assert offsets["form/name"] == 0
        assert offsets["form/email"] == 100
        assert status.effective_signal == Signal.HIDDEN

    def test_mount_enters_immediately_and_repeats(self, engine, scheduler, sink, list_variant, status_variant):
        form = AnimationScope("form", list_variant)
        status = form.add(Leaf("status", status_variant, independent=True))
        engine.reveal(form)

        for _ in range(3):
            assert engine.mount(status) is True
            assert status.effective_signal == Signal.VISIBLE
            engine.unmount(status)
            assert status.effective_signal == Signal.HIDDEN

        transitions = sink.for_scope("form/status")
        # enter + exit per cycle
        assert len(transitions) == 6
        assert transitions[0].to_style == status_variant.visible
        assert transitions[1].to_style == status_variant.exit

    def test_mount_twice_is_noop(self, engine, list_variant, status_variant):
        form = AnimationScope("form", list_variant)
        status = form.add(Leaf("status", status_variant, independent=True))

        assert engine.mount(status) is True
        assert engine.mount(status) is False

    def test_mount_regular_scope_waits_for_hidden_parent(self, engine, scheduler, list_variant, item_variant):
        container = make_list(list_variant, item_variant, 2)
        late = container.children[1]
        engine.unmount(late)

        assert engine.mount(late) is False
        engine.reveal(container)
        scheduler.run_all()
        assert late.signal == Signal.VISIBLE

    def test_unmount_independent_container_cancels_its_children(self, engine, scheduler, list_variant, item_variant):
        parent = AnimationScope("parent", list_variant)
        feedback = parent.add(make_list(list_variant, item_variant, 3, name="feedback"))
        feedback.independent = True

        engine.reveal(parent)
        engine.mount(feedback)
        assert engine.pending_count(feedback) == 3

        assert engine.unmount(feedback) == 3
        assert scheduler.run_all() == 0


class TestEventBusIsolation:

    def test_crashing_bus_filter_does_not_stop_cascade(self, scheduler, sink, list_variant, item_variant):
        bus = EventBus()
        bus.subscribe(EventType.SCOPE_REVEALED, lambda e: None, filter_fn=lambda e: 1 / 0)
        engine = StaggerEngine(scheduler, sink=sink, event_bus=bus)
        container = make_list(list_variant, item_variant, 3)

        assert engine.reveal(container) is True
        scheduler.run_all()

        assert all(c.signal == Signal.VISIBLE for c in container.children)
        assert engine.offsets(container)["list/item2"] == 200
