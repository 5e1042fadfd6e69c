"""
State primitives available to function components.

Each component instance owns a HookFrame holding its slots in call order.
The renderer activates a frame around every component call; a hook used
outside of that window raises HookError.
"""
from contextlib import contextmanager
from contextvars import ContextVar

from preview.errors import HookError

_current_frame = ContextVar("current_hook_frame", default=None)

_PRIMITIVES = (int, float, str, bool, type(None))


def same_value(a, b):
    """Identity for objects, equality for primitive values."""
    if a is b:
        return True
    return isinstance(a, _PRIMITIVES) and type(a) is type(b) and a == b


def deps_changed(previous, deps):
    if deps is None or previous is None:
        return True
    deps = list(deps)
    if len(previous) != len(deps):
        return True
    return not all(same_value(a, b) for a, b in zip(previous, deps))


class Ref:
    """Mutable box returned by use_ref."""

    def __init__(self, current=None):
        self.current = current

    def __repr__(self):
        return f"Ref({self.current!r})"


class _StateSlot:
    def __init__(self, frame, value):
        self.value = value

        def set_state(value=None, *_):
            if callable(value):
                value = value(self.value)
            if same_value(self.value, value):
                return
            self.value = value
            frame.invalidate()

        self.setter = set_state


class _EffectSlot:
    def __init__(self):
        self.deps = None
        self.cleanup = None


class _MemoSlot:
    def __init__(self):
        self.deps = None
        self.value = None


class HookFrame:
    """Hook storage for one mounted component instance."""

    def __init__(self, invalidate=None):
        self.slots = []
        self.cursor = 0
        self.pending_effects = []
        self.active = True
        self._invalidate = invalidate

    def begin(self):
        self.cursor = 0
        self.pending_effects = []

    def next_slot(self, kind, factory):
        if self.cursor < len(self.slots):
            slot = self.slots[self.cursor]
            if not isinstance(slot, kind):
                raise HookError("Rendered hooks in a different order than the previous render")
        else:
            slot = factory()
            self.slots.append(slot)
        self.cursor += 1
        return slot

    def invalidate(self):
        if self.active and self._invalidate is not None:
            self._invalidate()

    def run_effects(self):
        """Run the effects queued by the last render, cleaning up first."""
        effects, self.pending_effects = self.pending_effects, []
        for slot, fn, deps in effects:
            if not self.active:
                return
            if callable(slot.cleanup):
                slot.cleanup()
            result = fn()
            slot.cleanup = result if callable(result) else None
            slot.deps = None if deps is None else list(deps)

    def dispose(self):
        """Run outstanding cleanups and stop accepting state updates."""
        self.active = False
        self.pending_effects = []
        for slot in self.slots:
            if isinstance(slot, _EffectSlot) and callable(slot.cleanup):
                cleanup, slot.cleanup = slot.cleanup, None
                cleanup()


@contextmanager
def rendering(frame):
    """Make frame the target of hook calls for the duration of a component call."""
    frame.begin()
    token = _current_frame.set(frame)
    try:
        yield frame
    finally:
        _current_frame.reset(token)


def _frame(name):
    frame = _current_frame.get()
    if frame is None:
        raise HookError(f"{name} can only be called while a component is rendering")
    return frame


def use_state(initial=None, *_):
    frame = _frame("useState")
    slot = frame.next_slot(_StateSlot, lambda: _StateSlot(frame, initial() if callable(initial) else initial))
    return [slot.value, slot.setter]


def use_effect(fn, deps=None, *_):
    frame = _frame("useEffect")
    slot = frame.next_slot(_EffectSlot, _EffectSlot)
    if deps_changed(slot.deps, deps):
        frame.pending_effects.append((slot, fn, deps))


def use_ref(initial=None, *_):
    frame = _frame("useRef")
    return frame.next_slot(Ref, lambda: Ref(initial))


def use_memo(fn, deps=None, *_):
    frame = _frame("useMemo")
    slot = frame.next_slot(_MemoSlot, _MemoSlot)
    if deps_changed(slot.deps, deps):
        slot.value = fn()
        slot.deps = None if deps is None else list(deps)
    return slot.value


def use_callback(fn, deps=None, *_):
    frame = _frame("useCallback")
    slot = frame.next_slot(_MemoSlot, _MemoSlot)
    if deps_changed(slot.deps, deps):
        slot.value = fn
        slot.deps = None if deps is None else list(deps)
    return slot.value
