"""
Error handling utilities for the livepane preview pipeline.
"""
import re


class PreviewError(Exception):
    """Base exception for preview failures with line numbers and hints."""

    label = "Error"

    def __init__(self, message, line_number=None, column=None, context=None, suggestion=None):
        self.message = message
        self.line_number = line_number
        self.column = column
        self.context = context  # The offending line
        self.suggestion = suggestion  # How to fix it
        super().__init__(self._format_error())

    def _format_error(self):
        """Format the error message with context and suggestion."""
        lines = [f"\n❌ {self.label}"]
        if self.line_number:
            lines.append(f" at line {self.line_number}")
            if self.column:
                lines.append(f", column {self.column}")
        lines.append(":\n")

        lines.append(f"   {self.message}\n")

        if self.context:
            lines.append(f"   > {self.context}\n")

        if self.suggestion:
            lines.append(f"   💡 {self.suggestion}\n")

        return "".join(lines)

    def summary(self):
        """Plain one-paragraph description used by diagnostic panels."""
        text = self.message
        if self.line_number:
            text += f" (line {self.line_number}"
            if self.column:
                text += f", column {self.column}"
            text += ")"
        if self.context:
            text += f"\n> {self.context}"
        if self.suggestion:
            text += f"\nHint: {self.suggestion}"
        return text


class CompileError(PreviewError):
    """The source could not be turned into a component."""

    label = "Compilation Error"


class ParseError(CompileError):
    """The source is not valid component syntax."""


class ValidationError(CompileError):
    """The module evaluated, but its default export is not a component."""


class ComponentRuntimeError(PreviewError):
    """Evaluating the module or rendering the component raised."""

    label = "Runtime Error"

    @classmethod
    def from_exception(cls, exc, context=None):
        detail = str(exc) or type(exc).__name__
        if isinstance(exc, CapabilityNotFound):
            message = f"ReferenceError: {detail}"
        elif isinstance(exc, ScriptError):
            message = detail
        elif isinstance(exc, NameError):
            message = f"ReferenceError: {_reference_detail(exc, detail)}"
        else:
            message = f"{type(exc).__name__}: {detail}"
        error = cls(message, context=context)
        error.__cause__ = exc
        return error


def _reference_detail(exc, detail):
    """Reword a NameError the way a script engine reports an unknown identifier."""
    if isinstance(exc, UnboundLocalError):
        match = re.search(r"variable '([^']+)'", detail)
        if match:
            return f"Cannot access '{match.group(1)}' before initialization"
    name = getattr(exc, "name", None)
    if not name:
        match = re.search(r"name '([^']+)' is not defined", detail)
        name = match.group(1) if match else None
    return f"{name} is not defined" if name else detail


class ScriptError(Exception):
    """
    A value thrown by component code.

    ``new Error(message)`` builds one directly; ``throw`` wraps any other
    value so it can travel as a Python exception. ``name`` and ``message``
    are readable from component code, ``value`` holds what was thrown.
    """

    def __init__(self, message=None, name="Error", value=None, thrown=False):
        self.message = "" if message is None else message
        self.name = name
        self.value = self if value is None and not thrown else value
        self.thrown = thrown
        super().__init__(self.message)

    def __str__(self):
        if self.thrown:
            return f"Uncaught {self.message}"
        return f"{self.name}: {self.message}" if self.message else self.name


class CapabilityNotFound(KeyError):
    """A sandboxed module looked up a name the registry does not provide."""

    def __init__(self, name):
        super().__init__(name)
        self.name = name

    def __str__(self):
        return f"{self.name} is not defined"


class CapabilityConflictError(ValueError):
    """Two binding sets registered the same name in a strict registry."""


class HookError(Exception):
    """A hook primitive was used outside of a component render."""


class ConfigError(Exception):
    """The preview configuration file is malformed."""


def get_line_context(source_code, line_number):
    """Extract the line of code from source by line number (1-based)."""
    if not source_code or line_number is None:
        return None
    source_lines = source_code.split('\n')
    if 0 < line_number <= len(source_lines):
        return source_lines[line_number - 1].strip()
    return None


_OPEN_TAG = re.compile(r'<([A-Za-z][\w.-]*)(?:\s[^<>]*?)?(?<!/)>')
_CLOSE_TAG = re.compile(r'</([A-Za-z][\w.-]*)\s*>')


def detect_common_error_patterns(source_code):
    """Detect common mistakes and return helpful suggestions."""
    if len(re.findall(r'\bexport\s+default\b', source_code)) > 1:
        return "Only one 'export default' is allowed per module", "multiple_default_exports"

    opened = _OPEN_TAG.findall(source_code)
    closed = _CLOSE_TAG.findall(source_code)
    for name in set(opened):
        if opened.count(name) > closed.count(name):
            return f"Unterminated markup: <{name}> is never closed with </{name}>", "unterminated_tag"
    for name in set(closed):
        if closed.count(name) > opened.count(name):
            return f"Closing tag </{name}> has no matching <{name}>", "unmatched_closing_tag"

    open_braces = source_code.count('{')
    close_braces = source_code.count('}')
    if open_braces != close_braces:
        return f"Unmatched braces: found {open_braces} '{{' but {close_braces} '}}'", "unmatched_braces"

    open_parens = source_code.count('(')
    close_parens = source_code.count(')')
    if open_parens != close_parens:
        return f"Unmatched parentheses: found {open_parens} '(' but {close_parens} ')'", "unmatched_parens"

    return None, None
