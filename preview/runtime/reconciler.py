"""
Renderer - expands function components into a resolved element tree.

Component instances are identified by their position in the tree (and the
component type at that position), so hook state survives re-renders as long
as the tree shape does.
"""
from preview.log import debug_log
from preview.runtime.elements import FRAGMENT, Element, Props
from preview.runtime.hooks import HookFrame, rendering

MAX_RENDER_PASSES = 25


class Renderer:
    """Renders one element tree and owns the hook state of its components."""

    def __init__(self, on_invalidate=None):
        self.on_invalidate = on_invalidate
        self.dirty = False
        self._frames = {}  # path -> (component type, HookFrame)
        self._visited = set()
        self._effects = []
        self._rendering = False
        self._closed = False

    def _invalidate(self):
        if self._closed:
            return
        self.dirty = True
        if not self._rendering and self.on_invalidate is not None:
            self.on_invalidate()

    def render(self, element):
        """Resolve element, re-rendering while components update state mid-render."""
        for attempt in range(MAX_RENDER_PASSES):
            self.dirty = False
            self._visited = set()
            self._effects = []
            self._rendering = True
            try:
                tree = self._resolve(element, "0")
            finally:
                self._rendering = False
            if not self.dirty:
                self._sweep()
                return tree
            debug_log(f"State changed during render, pass {attempt + 1}")
        raise RuntimeError("Too many re-renders. A component updates its state on every render.")

    def commit(self):
        """Run the effects queued by the last render, children before parents."""
        effects, self._effects = self._effects, []
        for frame in effects:
            frame.run_effects()

    def unmount(self):
        """Clean up every mounted component."""
        self._closed = True
        frames, self._frames = self._frames, {}
        for _, frame in frames.values():
            frame.dispose()

    def _sweep(self):
        for path in [p for p in self._frames if p not in self._visited]:
            _, frame = self._frames.pop(path)
            frame.dispose()

    def _frame_for(self, path, component):
        entry = self._frames.get(path)
        if entry is not None and entry[0] is not component:
            entry[1].dispose()
            entry = None
        if entry is None:
            entry = (component, HookFrame(self._invalidate))
            self._frames[path] = entry
        self._visited.add(path)
        return entry[1]

    def _resolve_children(self, children, path):
        resolved = []
        for i, child in enumerate(children):
            key = child.key if isinstance(child, Element) and child.key is not None else i
            result = self._resolve(child, f"{path}.{key}")
            if isinstance(result, list):
                resolved.extend(result)
            elif result is not None:
                resolved.append(result)
        return resolved

    def _resolve(self, node, path):
        if node is None or isinstance(node, bool):
            return None
        if isinstance(node, (str, int, float)):
            return node
        if isinstance(node, (list, tuple)):
            return self._resolve_children(node, path)
        if not isinstance(node, Element):
            raise TypeError(
                f"Objects are not valid as a UI child (found: {type(node).__name__})")
        if node.type is FRAGMENT:
            return self._resolve_children(node.children, path)
        if isinstance(node.type, str):
            children = self._resolve_children(node.children, path)
            return Element(type=node.type, props=node.props, children=tuple(children), key=node.key)
        if callable(node.type):
            component = node.type
            frame = self._frame_for(path, component)
            props = node.props if isinstance(node.props, Props) else Props(node.props or {})
            with rendering(frame):
                output = component(props)
            result = self._resolve(output, f"{path}>")
            self._effects.append(frame)
            return result
        raise TypeError(
            "Element type is invalid: expected a string (for built-in tags) or a function "
            f"(for components) but got: {node.type!r}")
