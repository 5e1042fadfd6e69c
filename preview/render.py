"""
Render host: shows the placeholder, a diagnostic panel or the live component.

The mounted component runs under an ErrorBoundary. The first failure that
escapes the mount is latched: the boundary reports it to the controller once
and renders a "Runtime Error" panel for the rest of that mount's lifetime.
Only a new READY artifact (and therefore a new Mount) clears it.
"""
from preview.controller import PreviewState
from preview.errors import ComponentRuntimeError
from preview.log import debug_log
from preview.runtime.elements import create_element, to_html
from preview.runtime.reconciler import MAX_RENDER_PASSES, Renderer
from preview.runtime.result import Err, Ok

PANEL_STYLE = {
    "color": "red",
    "padding": "10px",
    "border": "1px solid red",
    "borderRadius": "4px",
}


def placeholder():
    return create_element("div", None, "Loading...")


def diagnostic_panel(label, message):
    """A labeled red box describing a compile or runtime failure."""
    return create_element(
        "div",
        {"style": PANEL_STYLE, "role": "alert"},
        create_element("h3", None, f"{label}:"),
        create_element("pre", None, message),
    )


class ErrorBoundary:
    """Runs render work as Ok/Err results and latches the first failure."""

    def __init__(self, on_error=None):
        self.on_error = on_error
        self.error = None

    @property
    def failed(self):
        return self.error is not None

    def run(self, fn, *args):
        if self.error is not None:
            return Err(self.error)
        try:
            return Ok(fn(*args))
        except Exception as e:
            if isinstance(e, ComponentRuntimeError):
                error = e
            else:
                error = ComponentRuntimeError.from_exception(e)
            self.error = error
            debug_log(f"Boundary caught: {error.message}")
            if self.on_error is not None:
                self.on_error(error)
            return Err(error)

    def fallback(self):
        return diagnostic_panel(self.error.label, self.error.summary())


class Mount:
    """One mounted instance of a compiled artifact."""

    def __init__(self, artifact, version, props=None, on_error=None, on_invalidate=None):
        self.artifact = artifact
        self.version = version
        self.props = dict(props or {})
        self.on_invalidate = on_invalidate
        self.renderer = Renderer(on_invalidate=self._invalidated)
        self.boundary = ErrorBoundary(on_error=on_error)
        self.output = None
        self._rendered = False
        self._closed = False

    @property
    def dirty(self):
        return not self._rendered or self.renderer.dirty

    def _invalidated(self):
        if self.on_invalidate is not None:
            self.on_invalidate(self)

    def _render_pass(self):
        element = create_element(self.artifact.factory, self.props)
        for _ in range(MAX_RENDER_PASSES):
            tree = self.renderer.render(element)
            self.renderer.commit()
            if not self.renderer.dirty:
                return tree
        raise RuntimeError("Too many re-renders. An effect updates state on every render.")

    def render(self):
        """Return the current output, re-rendering when state has changed."""
        if self._closed:
            return self.output
        if not self.boundary.failed and self.dirty:
            result = self.boundary.run(self._render_pass)
            if result.is_ok():
                self.output = result.value
                self._rendered = True
            else:
                self.renderer.unmount()
        if self.boundary.failed:
            self.output = self.boundary.fallback()
        return self.output

    def unmount(self):
        if not self._closed:
            self._closed = True
            self.renderer.unmount()


class RenderHost:
    """Displays the controller's current outcome, mounting artifacts as they arrive."""

    def __init__(self, controller, props=None, on_update=None):
        self.controller = controller
        self.props = props
        self.on_update = on_update
        self.mount = None
        self._unsubscribe = controller.subscribe(self._on_snapshot)
        self._on_snapshot(controller.snapshot)

    def _on_snapshot(self, snapshot):
        if snapshot.artifact is not None and snapshot.state in (PreviewState.READY,
                                                                PreviewState.RUNTIME_FAILED):
            if self.mount is None or self.mount.version != snapshot.version:
                self._replace_mount(Mount(
                    snapshot.artifact,
                    snapshot.version,
                    props=self.props,
                    on_error=self._report_failure,
                    on_invalidate=self._mount_invalidated,
                ))
        else:
            self._replace_mount(None)
        if self.on_update is not None:
            self.on_update(self)

    def _replace_mount(self, mount):
        if self.mount is not None:
            self.mount.unmount()
        self.mount = mount

    def _report_failure(self, error):
        if self.mount is not None:
            self.controller.report_runtime_failure(error, self.mount.version)

    def _mount_invalidated(self, mount):
        if mount is self.mount and self.on_update is not None:
            self.on_update(self)

    def view(self):
        """The element tree to display right now."""
        snapshot = self.controller.snapshot
        if snapshot.state == PreviewState.COMPILE_FAILED:
            return diagnostic_panel(snapshot.error.label, snapshot.error.summary())
        if snapshot.state in (PreviewState.IDLE, PreviewState.COMPILING) or self.mount is None:
            # Nothing is mounted before the first artifact or after close().
            return placeholder()
        return self.mount.render()

    def html(self):
        return to_html(self.view())

    def close(self):
        self._unsubscribe()
        self._replace_mount(None)
