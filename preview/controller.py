"""
Lifecycle controller: drives compilation attempts as the source changes.

Every call to set_source() bumps a version counter and starts an asyncio task
for that version. When a task finishes, its result is applied only if its
version is still the current one, so results land strictly in version order
even when attempts complete out of order.
"""
import asyncio
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict

from preview.compiler import build_component
from preview.errors import CompileError, PreviewError
from preview.log import debug_log


class PreviewState(str, Enum):
    IDLE = "idle"
    COMPILING = "compiling"
    READY = "ready"
    COMPILE_FAILED = "compile_failed"
    RUNTIME_FAILED = "runtime_failed"


class ControllerSnapshot(BaseModel):
    """The visible outcome at one point in time."""
    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    state: PreviewState
    version: int
    artifact: Optional[Any] = None
    error: Optional[Any] = None


async def default_compile(source, registry, config=None):
    # Parsing is CPU bound; run it on the loop's default executor so edits,
    # renders and stale-result checks keep flowing while it works.
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, build_component, source, registry, config)


class LifecycleController:
    """Single-threaded reactive driver for one preview pane."""

    def __init__(self, registry, compile_fn=None, config=None):
        self.registry = registry
        self.config = config
        self._compile = compile_fn or default_compile
        self._version = 0
        self._disposed = False
        self._tasks = set()
        self._listeners = []
        self._snapshot = ControllerSnapshot(state=PreviewState.IDLE, version=0)
        self.source = None

    @property
    def snapshot(self):
        return self._snapshot

    @property
    def state(self):
        return self._snapshot.state

    @property
    def version(self):
        return self._version

    @property
    def disposed(self):
        return self._disposed

    def subscribe(self, listener):
        """Call listener with every new snapshot; returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _publish(self, **fields):
        self._snapshot = ControllerSnapshot(**fields)
        debug_log(f"Preview state -> {self._snapshot.state.value} (version {self._snapshot.version})")
        for listener in list(self._listeners):
            listener(self._snapshot)

    def set_source(self, source):
        """
        Replace the source text and start a fresh compilation attempt.

        Must be called with a running event loop. Returns the attempt's task,
        or None once the controller is disposed.
        """
        if self._disposed:
            debug_log("Ignoring source change on a disposed controller")
            return None
        self._version += 1
        version = self._version
        self.source = source
        self._publish(state=PreviewState.COMPILING, version=version)
        task = asyncio.get_running_loop().create_task(self._attempt(source, version))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _attempt(self, source, version):
        try:
            result = await self._compile(source, self.registry, self.config)
        except PreviewError as e:
            result = None
            error = e
        except Exception as e:
            result = None
            error = CompileError(f"Compilation failed: {type(e).__name__}: {e}")
            error.__cause__ = e
        else:
            error = None

        if self._disposed or version != self._version:
            debug_log(f"Discarding stale result for version {version} (current {self._version})")
            return

        if result is not None and result.is_ok():
            self._publish(state=PreviewState.READY, version=version, artifact=result.value)
            return
        if error is None:
            error = result.error
        # A top-level throw keeps its ComponentRuntimeError class and label.
        self._publish(state=PreviewState.COMPILE_FAILED, version=version, error=error)

    def report_runtime_failure(self, error, version):
        """
        Record a render failure for the given version.

        Ignored unless the controller is READY for that same version; a
        failure never triggers recompilation.
        """
        if self._disposed or version != self._version or self.state != PreviewState.READY:
            debug_log(f"Ignoring runtime failure for version {version}")
            return False
        self._publish(state=PreviewState.RUNTIME_FAILED, version=version,
                      artifact=self._snapshot.artifact, error=error)
        return True

    def dispose(self):
        """Mark the controller permanently stale; pending results are discarded."""
        self._disposed = True
        self._listeners.clear()

    async def wait_idle(self):
        """Wait until every outstanding attempt has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))
