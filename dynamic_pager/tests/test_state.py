"""
Tests for the State class, computed properties and state effects.
"""

import pytest

from dynamic_pager import State, computed, effect
from dynamic_pager.reactive import Effect, Signal, flush_effects


class TestState:
    def test_annotated_attributes_are_reactive(self):
        class MyState(State):
            count: int = 0

        state = MyState()
        assert state.count == 0
        state.count = 5
        assert state.count == 5
        assert [s.name for s in state.properties()] == ["MyState.count"]

    def test_instances_do_not_share_signals(self):
        class MyState(State):
            count: int = 0

        a = MyState()
        b = MyState()
        a.count = 3
        assert b.count == 0

    def test_private_annotations_stay_plain(self):
        class MyState(State):
            _hidden: int = 5

        assert MyState.__dict__["_hidden"] == 5
        assert list(MyState().properties()) == []

    def test_computed_property(self):
        class MyState(State):
            count: int = 0

            @computed
            def double(self):
                return self.count * 2

        state = MyState()
        assert state.double == 0
        state.count = 5
        assert state.double == 10

        with pytest.raises(AttributeError):
            state.double = 3

    def test_state_effect_runs_after_init(self):
        class MyState(State):
            count: int = 0

            def __init__(self):
                self.seen = []

            @effect
            def record(self):
                self.seen.append(self.count)

        state = MyState()
        assert isinstance(state.record, Effect)
        flush_effects()
        assert state.seen == [0]

        state.count = 2
        flush_effects()
        assert state.seen == [0, 2]

    def test_immediate_state_effect(self):
        class MyState(State):
            count: int = 1

            def __init__(self):
                self.seen = []

            @effect(immediate=True)
            def record(self):
                self.seen.append(self.count)

        state = MyState()
        assert state.seen == [1]

    def test_effects_of_base_classes_are_initialized(self):
        class Base(State):
            count: int = 0

            def __init__(self):
                self.runs = 0

            @effect
            def count_runs(self):
                self.count
                self.runs += 1

        class Child(Base):
            label: str = "child"

        state = Child()
        flush_effects()
        assert state.runs == 1
        assert len(list(state.effects())) == 1

    def test_dispose_stops_effects(self):
        class MyState(State):
            count: int = 0

            def __init__(self):
                self.seen = []

            @effect
            def record(self):
                self.seen.append(self.count)

        state = MyState()
        flush_effects()
        state.dispose()
        state.count = 1
        flush_effects()
        assert state.seen == [0]

    def test_state_created_inside_an_effect_is_not_its_child(self):
        class MyState(State):
            count: int = 0

            @effect
            def noop(self):
                self.count

        trigger = Signal(0)
        created = []

        def parent():
            trigger()
            created.append(MyState())

        p = Effect(parent, name="parent")
        flush_effects()
        assert p.children == []

    def test_repr(self):
        class MyState(State):
            count: int = 3
            name: str = "pager"

        assert repr(MyState()) == "<MyState count=3 name='pager'>"
