"""
Sandbox executor: turns generated text into an invocable component factory.

The generated statements are wrapped in a unit whose only parameter is the
capability map. The unit is compiled and evaluated with empty builtins, so
the only names it can reach are the registry (via ``scope``), the unit's own
locals and the runtime intrinsics.
"""
import hashlib
import traceback
from typing import Any, Callable, Optional

from pydantic import BaseModel, ConfigDict

from preview.errors import CompileError, ComponentRuntimeError, ValidationError
from preview.runtime.intrinsics import INTRINSICS

UNIT_NAME = "__unit__"
UNIT_FILENAME = "<component>"


class CompiledArtifact(BaseModel):
    """The successfully extracted component factory."""
    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    factory: Callable
    name: str
    generated: str
    digest: str

    def __call__(self, props=None):
        return self.factory(props)


def wrap_unit(generated):
    """Wrap generated statements between the exports slot and its return."""
    body = "\n".join(("    " + line) if line else line for line in generated.split("\n"))
    return (f"def {UNIT_NAME}(scope):\n"
            f"    exports = {{}}\n"
            f"{body}\n"
            f"    return exports.get('default')\n")


def unit_globals():
    env = {"__builtins__": {}}
    env.update(INTRINSICS)
    return env


def _failing_line(exc, unit_source):
    """The generated line that raised, if the traceback passes through the unit."""
    frames = [f for f in traceback.extract_tb(exc.__traceback__) if f.filename == UNIT_FILENAME]
    if not frames:
        return None
    lines = unit_source.split("\n")
    lineno = frames[-1].lineno
    if lineno and 0 < lineno <= len(lines):
        return lines[lineno - 1].strip()
    return None


def execute(generated, registry, source_digest: Optional[str] = None) -> CompiledArtifact:
    """
    Build and run the unit for generated text against a registry.

    Raises:
        CompileError: the unit itself does not compile.
        ComponentRuntimeError: evaluating the unit raised.
        ValidationError: the default export is not callable.
    """
    unit_source = wrap_unit(generated)
    try:
        code = compile(unit_source, UNIT_FILENAME, "exec")
    except SyntaxError as e:
        raise CompileError(f"Generated code is invalid: {e.msg}", line_number=e.lineno,
                           context=(e.text or "").strip() or None,
                           suggestion="This construct is not supported by the previewer") from e

    env = unit_globals()
    exec(code, env)
    unit = env[UNIT_NAME]

    try:
        exported = unit(registry)
    except Exception as e:
        raise ComponentRuntimeError.from_exception(e, context=_failing_line(e, unit_source))

    if not callable(exported):
        kind = "nothing" if exported is None else type(exported).__name__
        raise ValidationError("The code did not produce a valid component.",
                              suggestion=f"The default export must be a function (got {kind})")

    return CompiledArtifact(
        factory=exported,
        name=getattr(exported, "__name__", "default"),
        generated=generated,
        digest=source_digest or hashlib.sha256(generated.encode("utf-8")).hexdigest(),
    )
