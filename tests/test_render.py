"""
Tests for the render host, mounts and the error boundary.
"""
import asyncio

import pytest

from preview.controller import LifecycleController, PreviewState
from preview.errors import ComponentRuntimeError
from preview.registry import default_registry
from preview.render import ErrorBoundary, RenderHost, diagnostic_panel, placeholder
from preview.runtime.elements import to_html

GREETING = 'export default function App() { return <div className="box"><p>Hello</p></div>; }'

THROWING = """
export default function App() {
  const data = null;
  return <p>{data.title}</p>;
}
"""

COUNTER = """
import { useState } from "react";

export default function Counter() {
  const [count, setCount] = useState(0);
  return <button onClick={() => setCount(count + 1)}>Count: {count}</button>;
}
"""

EFFECT = """
import { useState, useEffect } from "react";

export default function App() {
  const [msg, setMsg] = useState("loading");
  useEffect(() => { setMsg("done"); }, []);
  return <span>{msg}</span>;
}
"""


@pytest.fixture
def registry():
    return default_registry()


def load(controller, source):
    """Run one compilation attempt to completion."""
    async def scenario():
        controller.set_source(source)
        await controller.wait_idle()

    asyncio.run(scenario())


class TestPanels:

    def test_placeholder(self):
        assert to_html(placeholder()) == "<div>Loading...</div>"

    def test_diagnostic_panel(self):
        html = to_html(diagnostic_panel("Runtime Error", "x < y"))
        assert html.startswith('<div style="color:red;padding:10px;border:1px solid red;border-radius:4px" role="alert">')
        assert "<h3>Runtime Error:</h3>" in html
        assert "<pre>x &lt; y</pre>" in html


class TestErrorBoundary:

    def test_ok_result(self):
        boundary = ErrorBoundary()
        assert boundary.run(lambda: 5).value == 5
        assert not boundary.failed

    def test_first_failure_is_latched(self):
        reported = []
        boundary = ErrorBoundary(on_error=reported.append)

        def explode():
            raise ValueError("bad")

        first = boundary.run(explode)
        second = boundary.run(lambda: 5)
        assert first.is_err() and second.is_err()
        assert second.error is first.error
        assert first.error.message == "ValueError: bad"
        assert len(reported) == 1
        assert "Runtime Error:" in to_html(boundary.fallback())


class TestRenderHost:

    def test_placeholder_before_any_result(self, registry):
        host = RenderHost(LifecycleController(registry))
        assert host.html() == "<div>Loading...</div>"

    def test_live_component(self, registry):
        controller = LifecycleController(registry)
        host = RenderHost(controller)
        load(controller, GREETING)
        assert host.html() == '<div class="box"><p>Hello</p></div>'

    def test_props_reach_the_component(self, registry):
        controller = LifecycleController(registry)
        host = RenderHost(controller, props={"name": "Ada"})
        load(controller, 'export default function Hello({ name }) { return <p>Hello {name}</p>; }')
        assert host.html() == "<p>Hello Ada</p>"

    def test_compile_failure_panel(self, registry):
        controller = LifecycleController(registry)
        host = RenderHost(controller)
        load(controller, 'export default function App() { return <div>; }')
        html = host.html()
        assert "Compilation Error:" in html
        assert "Syntax error" in html

    def test_missing_import_fails_at_render(self, registry):
        controller = LifecycleController(registry)
        host = RenderHost(controller)
        load(controller, 'import { Missing } from "ui";\nexport default function App() { return <Missing />; }')
        assert controller.state == PreviewState.READY
        assert host.mount is not None

        html = host.html()
        assert "Runtime Error:" in html
        assert "Compilation Error:" not in html
        assert "ReferenceError: Missing is not defined" in html
        assert controller.state == PreviewState.RUNTIME_FAILED

    def test_top_level_throw_keeps_its_runtime_label(self, registry):
        controller = LifecycleController(registry)
        host = RenderHost(controller)
        load(controller, 'throw new Error("boom");\nexport default function App() { return null; }')
        assert controller.state == PreviewState.COMPILE_FAILED
        assert host.mount is None
        html = host.html()
        assert "<h3>Runtime Error:</h3>" in html
        assert "Error: boom" in html

    def test_thrown_error_during_render(self, registry):
        controller = LifecycleController(registry)
        host = RenderHost(controller)
        load(controller, """
        export default function App({ items }) {
          if (!items) {
            throw new Error("items are required");
          }
          return <p>{items.length}</p>;
        }
        """)
        assert "Error: items are required" in host.html()
        assert controller.state == PreviewState.RUNTIME_FAILED

    def test_one_attempt_cannot_affect_the_next(self, registry):
        controller = LifecycleController(registry)
        host = RenderHost(controller)
        load(controller, """
        import React from "react";
        import { Button } from "ui";
        React.createElement = null;
        Button.displayName = "hijacked";
        export default function A() { return null; }
        """)
        assert controller.state == PreviewState.COMPILE_FAILED
        assert "Cannot assign to read only property 'createElement'" in host.html()

        load(controller, 'export default function App() { return <p>hi</p>; }')
        assert controller.state == PreviewState.READY
        assert host.html() == "<p>hi</p>"

    def test_loop_closures_keep_their_iteration(self, registry):
        controller = LifecycleController(registry)
        host = RenderHost(controller)
        load(controller, """
        export default function App() {
          const out = [];
          for (const x of [1, 2, 3]) {
            out.push(() => x);
          }
          return <p>{out.map(f => f()).join(",")}</p>;
        }
        """)
        assert host.html() == "<p>1,2,3</p>"

    def test_render_failure_is_contained_and_latched(self, registry):
        controller = LifecycleController(registry)
        reports = []
        controller.subscribe(lambda snap: reports.append(snap.state))
        host = RenderHost(controller)
        load(controller, THROWING)

        html = host.html()
        assert "Runtime Error:" in html
        assert "Cannot read properties of null" in html
        assert controller.state == PreviewState.RUNTIME_FAILED
        assert isinstance(controller.snapshot.error, ComponentRuntimeError)

        assert host.html() == html
        assert reports.count(PreviewState.RUNTIME_FAILED) == 1

    def test_new_version_recovers_from_failure(self, registry):
        controller = LifecycleController(registry)
        host = RenderHost(controller)
        load(controller, THROWING)
        assert "Runtime Error:" in host.html()

        load(controller, GREETING)
        assert controller.state == PreviewState.READY
        assert host.html() == '<div class="box"><p>Hello</p></div>'

    def test_state_update_rerenders(self, registry):
        controller = LifecycleController(registry)
        updates = []
        host = RenderHost(controller, on_update=updates.append)
        load(controller, COUNTER)
        assert host.html().replace(" ", "") == "<button>Count:0</button>"

        button = host.view()
        updates.clear()
        button.props["onClick"]()
        assert updates == [host]
        assert host.html().replace(" ", "") == "<button>Count:1</button>"

    def test_effect_updates_before_display(self, registry):
        controller = LifecycleController(registry)
        host = RenderHost(controller)
        load(controller, EFFECT)
        assert host.html() == "<span>done</span>"

    def test_failure_in_one_host_leaves_another_untouched(self, registry):
        broken = LifecycleController(registry)
        healthy = LifecycleController(registry)
        broken_host = RenderHost(broken)
        healthy_host = RenderHost(healthy)
        load(broken, THROWING)
        load(healthy, GREETING)

        assert "Runtime Error:" in broken_host.html()
        assert healthy_host.html() == '<div class="box"><p>Hello</p></div>'
        assert healthy.state == PreviewState.READY

    def test_close_unmounts(self, registry):
        controller = LifecycleController(registry)
        host = RenderHost(controller)
        load(controller, GREETING)
        host.html()
        mount = host.mount
        host.close()
        assert host.mount is None
        assert mount.renderer._closed

    def test_view_after_close_is_the_placeholder(self, registry):
        controller = LifecycleController(registry)
        host = RenderHost(controller)
        load(controller, GREETING)
        host.html()
        host.close()
        assert controller.state == PreviewState.READY
        assert host.html() == "<div>Loading...</div>"
