"""
Unit tests for the hook primitives.
"""
import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..'))

from preview.errors import HookError
from preview.runtime.hooks import (
    HookFrame,
    Ref,
    deps_changed,
    rendering,
    same_value,
    use_callback,
    use_effect,
    use_memo,
    use_ref,
    use_state,
)


class Instance:
    """Drives a component function against one frame."""

    def __init__(self, component):
        self.component = component
        self.invalidations = 0
        self.frame = HookFrame(self._invalidate)

    def _invalidate(self):
        self.invalidations += 1

    def render(self):
        with rendering(self.frame):
            output = self.component()
        self.frame.run_effects()
        return output


class TestValueComparison:

    def test_same_value(self):
        assert same_value(1, 1)
        assert same_value("a", "a")
        assert not same_value(1, True)
        assert not same_value([1], [1])
        marker = []
        assert same_value(marker, marker)

    def test_deps_changed(self):
        assert deps_changed(None, [1])
        assert deps_changed([1], None)
        assert deps_changed([1], [1, 2])
        assert deps_changed([1], [2])
        assert not deps_changed([1, "a"], (1, "a"))
        assert not deps_changed([], [])


class TestUseState:

    def test_initial_value_and_update(self):
        instance = Instance(lambda: use_state(0))
        value, set_value = instance.render()
        assert value == 0
        set_value(5)
        assert instance.invalidations == 1
        value, _ = instance.render()
        assert value == 5

    def test_lazy_initializer_runs_once(self):
        calls = []

        def init():
            calls.append(1)
            return "x"

        instance = Instance(lambda: use_state(init))
        instance.render()
        instance.render()
        assert calls == [1]

    def test_functional_update(self):
        instance = Instance(lambda: use_state(1))
        _, set_value = instance.render()
        set_value(lambda n: n + 1)
        set_value(lambda n: n + 1)
        assert instance.render()[0] == 3

    def test_same_value_does_not_invalidate(self):
        instance = Instance(lambda: use_state("a"))
        _, set_value = instance.render()
        set_value("a")
        assert instance.invalidations == 0

    def test_setter_is_stable(self):
        instance = Instance(lambda: use_state(0))
        _, first = instance.render()
        _, second = instance.render()
        assert first is second

    def test_disposed_frame_ignores_updates(self):
        instance = Instance(lambda: use_state(0))
        _, set_value = instance.render()
        instance.frame.dispose()
        set_value(3)
        assert instance.invalidations == 0


class TestUseEffect:

    def test_runs_after_render_and_on_dependency_change(self):
        log = []
        deps = [1]

        def component():
            use_effect(lambda: log.append(("run", deps[0])), [deps[0]])

        instance = Instance(component)
        instance.render()
        instance.render()
        deps[0] = 2
        instance.render()
        assert log == [("run", 1), ("run", 2)]

    def test_cleanup_before_rerun_and_on_dispose(self):
        log = []
        counter = [0]

        def effect():
            counter[0] += 1
            n = counter[0]
            log.append(f"run {n}")
            return lambda: log.append(f"cleanup {n}")

        instance = Instance(lambda: use_effect(effect))
        instance.render()
        instance.render()
        instance.frame.dispose()
        assert log == ["run 1", "cleanup 1", "run 2", "cleanup 2"]

    def test_effects_wait_for_commit(self):
        log = []
        frame = HookFrame()
        with rendering(frame):
            use_effect(lambda: log.append("ran"), [])
        assert log == []
        frame.run_effects()
        assert log == ["ran"]


class TestRefAndMemo:

    def test_ref_persists(self):
        instance = Instance(lambda: use_ref(0))
        ref = instance.render()
        ref.current = 9
        assert instance.render() is ref
        assert isinstance(ref, Ref)
        assert ref.current == 9

    def test_memo_recomputes_on_change(self):
        calls = []
        key = ["a"]

        def component():
            return use_memo(lambda: calls.append(key[0]) or key[0].upper(), [key[0]])

        instance = Instance(component)
        assert instance.render() == "A"
        assert instance.render() == "A"
        key[0] = "b"
        assert instance.render() == "B"
        assert calls == ["a", "b"]

    def test_callback_identity(self):
        fns = [lambda: 1, lambda: 2]
        index = [0]
        instance = Instance(lambda: use_callback(fns[index[0]], []))
        first = instance.render()
        index[0] = 1
        assert instance.render() is first


class TestHookRules:

    def test_hooks_outside_render_raise(self):
        with pytest.raises(HookError, match="useState can only be called while a component is rendering"):
            use_state(0)
        with pytest.raises(HookError):
            use_effect(lambda: None)

    def test_changed_hook_order_raises(self):
        flag = [True]

        def component():
            if flag[0]:
                use_state(0)
            else:
                use_ref(None)

        instance = Instance(component)
        instance.render()
        flag[0] = False
        with pytest.raises(HookError, match="different order"):
            instance.render()

    def test_frame_is_cleared_after_render(self):
        frame = HookFrame()
        with rendering(frame):
            use_state(1)
        with pytest.raises(HookError):
            use_ref()
