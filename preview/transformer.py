"""
Component AST Transformer - Converts parsed component modules to Python code.

This module contains the ComponentTransformer class that transforms Lark parse
trees into Python statements meant to run inside the sandbox unit. Static
imports become lookups in the ``scope`` capability map, markup becomes calls
to the element-construction primitive and the default export becomes an
assignment into the local ``exports`` container.
"""

import ast
import html
import keyword
import re

from lark import Discard, Token, Transformer
from lark.exceptions import UnexpectedInput, VisitError

from preview.errors import ParseError

DEFAULT_PRAGMA = "React.createElement"
DEFAULT_PRAGMA_FRAG = "React.Fragment"

# Names the sandbox unit defines for itself; user identifiers are renamed.
UNIT_LOCALS = {"scope", "exports"}

_JS_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "b": "\b", "f": "\f", "v": "\v", "0": "\0"}
_COMPARISONS = {"===": "==", "!==": "!=", "==": "==", "!=": "!="}


class Code(str):
    """Generated statement text plus the names it binds and rebinds."""

    def __new__(cls, text, declared=(), assigned=(), block=False, name=None):
        obj = super().__new__(cls, text)
        obj.declared = frozenset(declared)
        obj.assigned = frozenset(assigned)
        obj.block = block
        obj.name = name
        return obj


class Name(str):
    """An identifier expression."""


class Member(str):
    """A lowered member access that remembers its receiver and key."""

    def __new__(cls, target, key, optional=False):
        text = f"__member__({target}, {key}, True)" if optional else f"__member__({target}, {key})"
        obj = super().__new__(cls, text)
        obj.target = target
        obj.key = key
        return obj


class Str(str):
    """An expression known to produce a string."""


def _indent(text):
    return "\n".join(("    " + line) if line else line for line in text.split("\n"))


# Operators whose script semantics differ from Python's go through intrinsics.
_OPERATOR_INTRINSICS = {"+": "__plus__", "/": "__divide__", "%": "__remainder__"}


def _binary(left, op, right):
    helper = _OPERATOR_INTRINSICS.get(op)
    if helper:
        return f"{helper}({left}, {right})"
    return f"({left} {op} {right})"


def _creates_closures(body):
    return re.search(r"\blambda\b|^\s*def ", body, re.M) is not None


def _decode_js_escapes(text):
    def replace(match):
        escape = match.group(1)
        if escape.startswith("u"):
            return chr(int(escape[1:], 16))
        if escape.startswith("x"):
            return chr(int(escape[1:], 16))
        return _JS_ESCAPES.get(escape, escape)

    return re.sub(r"\\(u[0-9a-fA-F]{4}|x[0-9a-fA-F]{2}|[\s\S])", replace, text)


def _clean_jsx_text(text):
    """Apply the JSX whitespace rules: lines are trimmed and joined by a space."""
    lines = re.split(r"\r\n|\n|\r", text.replace("\t", " "))
    last_non_empty = max((i for i, line in enumerate(lines) if line.strip()), default=-1)
    result = ""
    for i, line in enumerate(lines):
        if i != 0:
            line = line.lstrip(" ")
        if i != len(lines) - 1:
            line = line.rstrip(" ")
        if line:
            if i != last_non_empty:
                line += " "
            result += line
    return html.unescape(result)


def _split_template(body):
    """Split a template literal body into literal chunks and ${...} sources."""
    chunks, expressions = [], []
    current = []
    i = 0
    while i < len(body):
        char = body[i]
        if char == "\\" and i + 1 < len(body):
            current.append(body[i:i + 2])
            i += 2
            continue
        if char == "$" and body.startswith("${", i):
            depth, j, quote = 1, i + 2, None
            while j < len(body) and depth:
                c = body[j]
                if quote:
                    if c == "\\":
                        j += 1
                    elif c == quote:
                        quote = None
                elif c in "'\"`":
                    quote = c
                elif c == "{":
                    depth += 1
                elif c == "}":
                    depth -= 1
                j += 1
            if depth:
                raise ParseError("Unterminated ${ in template literal",
                                 suggestion="Close the interpolation with '}'")
            chunks.append("".join(current))
            expressions.append(body[i + 2:j - 1])
            current = []
            i = j
            continue
        current.append(char)
        i += 1
    chunks.append("".join(current))
    return chunks, expressions


class ComponentTransformer(Transformer):
    """
    Transforms component module AST nodes into Python code strings.

    Arrow functions with block bodies cannot be expressed as lambdas, so they
    are hoisted into nested ``def`` statements emitted just before the
    statement that uses them. A transformer instance holds that pending state
    and must be used for a single module.
    """

    def __init__(self, source="", pragma=DEFAULT_PRAGMA, pragma_frag=DEFAULT_PRAGMA_FRAG,
                 parse_expression=None):
        """
        Initialize the transformer.

        Args:
            source: The original source text, used to recover markup whitespace.
            pragma: Dotted path of the element-construction primitive.
            pragma_frag: Dotted path of the fragment marker.
            parse_expression: Callable parsing an expression string into a tree,
                used for template literal interpolations.
        """
        super().__init__()
        self._source = source
        self._pragma = self._dotted(pragma)
        self._pragma_frag = self._dotted(pragma_frag)
        self._parse_expression = parse_expression
        self._hoisted = []
        self._counter = 0
        self.default_exports = 0
        self.dropped_exports = []

    # --- Helpers ---

    def _error(self, message, token=None, suggestion=None):
        line = getattr(token, "line", None)
        column = getattr(token, "column", None)
        context = None
        if line and self._source:
            lines = self._source.split("\n")
            if 0 < line <= len(lines):
                context = lines[line - 1].strip()
        return ParseError(message, line_number=line, column=column, context=context,
                          suggestion=suggestion)

    def _ident(self, token):
        name = str(token)
        if name.startswith("__"):
            raise self._error(f"Identifier '{name}' is reserved", token,
                              "Names starting with '__' are used by the preview runtime")
        if not name.isidentifier():
            raise self._error(f"Unsupported identifier '{name}'", token)
        if keyword.iskeyword(name) or name in UNIT_LOCALS:
            return name + "_"
        return name

    def _dotted(self, path):
        # The factory root is read from the capability map, so markup works
        # without an explicit import of the framework namespace.
        parts = path.split(".")
        if not all(part.isidentifier() for part in parts):
            raise ValueError(f"Invalid element factory path: {path!r}")
        code = f"scope[{parts[0]!r}]"
        for part in parts[1:]:
            code = Member(code, repr(part))
        return code

    def _fresh(self, prefix):
        self._counter += 1
        return f"__{prefix}{self._counter}"

    def _take_hoisted(self, text):
        """Remove and return pending hoisted definitions referenced by text."""
        taken = [(name, code) for name, code in self._hoisted
                 if re.search(rf"\b{name}\b", text)]
        if taken:
            self._hoisted = [item for item in self._hoisted if item not in taken]
        return taken

    def _stmt(self, text, declared=(), assigned=(), block=False, name=None):
        """Build a statement, emitting the hoisted definitions it refers to first."""
        hoisted = self._take_hoisted(text)
        if hoisted:
            text = "\n".join([code for _, code in hoisted] + [text])
            declared = set(declared) | {hoisted_name for hoisted_name, _ in hoisted}
        return Code(text, declared, assigned, block, name)

    def _body(self, statements):
        statements = [s for s in statements if s]
        declared, assigned = set(), set()
        for statement in statements:
            declared |= statement.declared
            assigned |= statement.assigned
        return Code("\n".join(statements), declared, assigned, block=True)

    def _destructure(self, pattern, source):
        """Return (lines, names) binding a pattern against a source expression."""
        kind = pattern[0]
        if kind == "name":
            return [f"{pattern[1]} = {source}"], {pattern[1]}
        if kind == "array":
            elements = pattern[1]
            names = [name for _, name in elements]
            has_rest = bool(elements) and elements[-1][0] == "rest"
            if any(element_kind == "rest" for element_kind, _ in elements[:-1]):
                raise self._error("A rest element must be last in a destructuring pattern")
            count = len(elements) - 1 if has_rest else len(elements)
            if not names:
                return [], set()
            targets = ", ".join(names) + ("," if len(names) == 1 else "")
            rest_flag = ", True" if has_rest else ""
            return [f"{targets} = __items__({source}, {count}{rest_flag})"], set(names)
        # object pattern
        temp = self._fresh("obj")
        lines = [f"{temp} = {source}"]
        names = set()
        for key, local, default in pattern[1]:
            lines.append(f"{local} = __member__({temp}, {key!r})")
            if default is not None:
                lines.append(f"if {local} is None:\n    {local} = {default}")
            names.add(local)
        return lines, names

    def _signature(self, params):
        """Return (signature, prologue lines, bound names) for a parameter list."""
        parts, prologue, names = [], [], set()
        rest = None
        for kind, value, default in params:
            if kind == "rest":
                rest = value
                names.add(value)
                continue
            if kind == "name":
                target = value
            else:
                target = self._fresh("arg")
            parts.append(f"{target}=None")
            if default is not None:
                prologue.append(f"if {target} is None:\n    {target} = {default}")
            if kind == "name":
                names.add(value)
            else:
                lines, bound = self._destructure(value, target)
                prologue.extend(lines)
                names |= bound
        parts.append(f"*{rest}" if rest else "*__rest")
        return ", ".join(parts), prologue, names

    def _function(self, name, params, body):
        signature, prologue, param_names = self._signature(params)
        nonlocals = sorted(set(body.assigned) - set(body.declared) - param_names)
        lines = []
        if nonlocals:
            lines.append("nonlocal " + ", ".join(nonlocals))
        lines.extend(prologue)
        if body.strip():
            lines.append(body)
        if not lines:
            lines.append("pass")
        return f"def {name}({signature}):\n" + _indent("\n".join(lines))

    def _element(self, type_code, attributes, children):
        if attributes:
            entries = []
            for attribute in attributes:
                if attribute[0] == "spread":
                    entries.append(f"**__spread__({attribute[1]})")
                else:
                    entries.append(f"{attribute[1]!r}: {attribute[2]}")
            props = "{" + ", ".join(entries) + "}"
        else:
            props = "None"
        args = [type_code, props] + [child for child in children if child is not None]
        return f"{self._pragma}({', '.join(args)})"

    # --- Module ---

    def start(self, items):
        """Join all top-level statements into the unit body."""
        items = [i for i in items if i and i.strip()]
        leftovers = [code for _, code in self._hoisted]
        self._hoisted = []
        return "\n".join(leftovers + items)

    def import_decl(self, args):
        """
        Transform an import declaration into capability lookups.

        A name the registry lacks is bound to a placeholder, so the module
        still evaluates and the reference error surfaces on first use.
        """
        specifiers = args[0]
        lines, names = [], set()
        for kind, imported, local in specifiers:
            if kind == "namespace":
                lines.append(f"{local} = scope")
            else:
                lines.append(f"{local} = __binding__(scope, {imported!r})")
            names.add(local)
        return Code("\n".join(lines), declared=names)

    def bare_import(self, args):
        """Side-effect imports have nothing to bind."""
        return Code("")

    def import_clause(self, args):
        specifiers = []
        for part in args:
            if isinstance(part, list):
                specifiers.extend(part)
            else:
                specifiers.append(part)
        return specifiers

    def default_specifier(self, args):
        # Default imports are looked up by their local name.
        return ("default", str(args[0]), self._ident(args[0]))

    def namespace_specifier(self, args):
        return ("namespace", None, self._ident(args[0]))

    def named_specifiers(self, args):
        return list(args)

    def import_specifier(self, args):
        # Named imports are looked up by the imported name, even when aliased.
        imported = args[0]
        local = args[1] if len(args) > 1 else args[0]
        return ("named", str(imported), self._ident(local))

    def export_default_function(self, args):
        """Emit the function, then assign it to the default export slot."""
        function = args[0]
        self._count_default_export()
        return Code(f"{function}\nexports['default'] = {function.name}",
                    declared=function.declared | {function.name}, name=function.name)

    def export_default_expr(self, args):
        """Assign any other expression to the default export slot."""
        self._count_default_export()
        return self._stmt(f"exports['default'] = {args[0]}")

    def _count_default_export(self):
        self.default_exports += 1
        if self.default_exports > 1:
            raise ParseError("Only one default export allowed per module",
                             suggestion="Keep a single 'export default' and make the rest local")

    def anonymous_function(self, args):
        params = args[0] if len(args) > 1 else []
        body = args[-1]
        return self._stmt(self._function("default", params, body), declared={"default"},
                          name="default")

    def export_decl(self, args):
        """Named exports are not linked; the declaration stays module-local."""
        declaration = args[0]
        self.dropped_exports.extend(sorted(declaration.declared))
        return declaration

    def export_list(self, args):
        names = [spec for spec in args if isinstance(spec, str) and not isinstance(spec, Token)]
        self.dropped_exports.extend(names)
        return Code("")

    def export_specifier(self, args):
        return str(args[-1])

    # --- Statements ---

    def var_decl(self, args):
        """Transform const/let/var declarations to Python assignments."""
        lines, names = [], set()
        for pattern, init in args[1:]:
            if init is None:
                if pattern[0] != "name":
                    raise self._error("Missing initializer in destructuring declaration",
                                      args[0])
                init = "None"
            pattern_lines, bound = self._destructure(pattern, init)
            lines.extend(pattern_lines)
            names |= bound
        return self._stmt("\n".join(lines), declared=names)

    def declarator(self, args):
        return (args[0], args[1] if len(args) > 1 else None)

    def name_binding(self, args):
        return ("name", self._ident(args[0]))

    def rest_binding(self, args):
        return ("rest", self._ident(args[0]))

    def array_pattern(self, args):
        return ("array", list(args))

    def object_pattern(self, args):
        return ("object", list(args))

    def property_binding(self, args):
        key = str(args[0])
        local = self._ident(args[0])
        default = None
        for arg in args[1:]:
            if isinstance(arg, Token):
                local = self._ident(arg)
            else:
                default = arg
        return (key, local, default)

    def function_decl(self, args):
        """Transform a function declaration to a Python def."""
        name = self._ident(args[0])
        params = args[1] if len(args) > 2 else []
        body = args[-1]
        return self._stmt(self._function(name, params, body), declared={name}, name=name)

    def params(self, args):
        return list(args)

    def simple_param(self, args):
        return ("name", self._ident(args[0]), args[1] if len(args) > 1 else None)

    def pattern_param(self, args):
        return ("pattern", args[0], args[1] if len(args) > 1 else None)

    def rest_param(self, args):
        return ("rest", self._ident(args[0]), None)

    def block(self, args):
        """Transform a statement block."""
        return self._body(args)

    def return_stmt(self, args):
        if args:
            return self._stmt(f"return {args[0]}")
        return Code("return")

    def if_stmt(self, args):
        """Transform if/else statement."""
        cond, body_true = args[0], args[1]
        res = f"if {cond}:\n{_indent(body_true or 'pass')}"
        declared, assigned = set(body_true.declared), set(body_true.assigned)
        if len(args) > 2:
            body_false = args[2]
            res += f"\nelse:\n{_indent(body_false or 'pass')}"
            declared |= body_false.declared
            assigned |= body_false.assigned
        return self._stmt(res, declared, assigned)

    def _iteration(self, params, body):
        """
        Wrap a loop body in a function called once per iteration.

        Each call gets fresh bindings for params, so closures created in the
        body keep the values of their own iteration. A `return` in the body
        still leaves the enclosing function: the wrapper returns the
        ``__next_iteration__`` marker when the body falls off its end.
        Returns (definition, name, call).
        """
        name = self._fresh("iteration")
        statements = [body]
        returns = re.search(r"^\s*return\b", body, re.M) is not None
        if returns:
            statements.append(Code("return __next_iteration__"))
        definition = self._function(name, [("name", param, None) for param in params],
                                    self._body(statements))
        call = f"{name}({', '.join(params)})"
        if returns:
            result = self._fresh("result")
            call = (f"{result} = {call}\n"
                    f"if {result} is not __next_iteration__:\n"
                    f"    return {result}")
        return definition, name, call

    def for_of_stmt(self, args):
        """Transform a for...of loop."""
        pattern, iterable, body = args[1], args[2], args[3]
        prologue = []
        if pattern[0] == "name":
            target, params, names = pattern[1], [pattern[1]], {pattern[1]}
        elif pattern[0] == "array" and all(kind == "name" for kind, _ in pattern[1]):
            params = [name for _, name in pattern[1]]
            target = ", ".join(params) + ("," if len(params) == 1 else "")
            names = set(params)
        else:
            target = self._fresh("item")
            params = [target]
            prologue, names = self._destructure(pattern, target)
        if _creates_closures(body):
            inner = self._body([Code("\n".join(prologue), declared=names), body])
            definition, name, call = self._iteration(params, inner)
            return self._stmt(f"{definition}\nfor {target} in {iterable}:\n{_indent(call)}",
                              declared=set(params) | {name})
        inner = "\n".join(prologue + [body or ("pass" if not prologue else "")]).strip("\n")
        return self._stmt(f"for {target} in {iterable}:\n{_indent(inner)}",
                          declared=names | body.declared, assigned=body.assigned)

    def for_stmt(self, args):
        """Lower a classic for loop to its initializer followed by a while loop."""
        init, cond, update, body = args
        declared = set(init.declared) if init else set()
        assigned = set(init.assigned) if init else set()
        if update:
            assigned |= update.assigned
        if _creates_closures(body):
            # The counter is copied into each iteration unless the body rebinds it.
            params = sorted(declared - body.assigned)
            definition, name, call = self._iteration(params, body)
            prefix = [definition]
            steps = [call]
            declared.add(name)
        else:
            prefix = []
            steps = [body] if body else []
            declared |= body.declared
            assigned |= body.assigned
        if update:
            steps.append(update)
        steps = "\n".join(steps) or "pass"
        loop = f"while {'True' if cond is None else cond}:\n{_indent(steps)}"
        lines = ([init] if init else []) + prefix + [loop]
        return self._stmt("\n".join(lines), declared=declared, assigned=assigned)

    def for_decl(self, args):
        return self.var_decl(args)

    def for_assign(self, args):
        text, assigned = self._assignment(args[0], str(args[1]), args[2], args[1])
        return self._stmt(text, assigned=assigned)

    def while_stmt(self, args):
        cond, body = args
        return self._stmt(f"while {cond}:\n{_indent(body or 'pass')}",
                          declared=body.declared, assigned=body.assigned)

    def throw_stmt(self, args):
        return self._stmt(f"raise __throw__({args[0]})")

    def try_stmt(self, args):
        """Transform try/catch/finally; the catch binding receives the thrown value."""
        body = args[0]
        clauses = dict(args[1:])
        if not clauses:
            raise self._error("Missing catch or finally after try",
                              suggestion="Add a catch or finally block")
        text = f"try:\n{_indent(body or 'pass')}"
        declared, assigned = set(body.declared), set(body.assigned)
        if "catch" in clauses:
            name, handler = clauses["catch"]
            error = self._fresh("error")
            lines = []
            if name is not None:
                lines.append(f"{name} = __caught__({error})")
                declared.add(name)
            if handler:
                lines.append(handler)
            handler_text = "\n".join(lines) or "pass"
            text += f"\nexcept Exception as {error}:\n{_indent(handler_text)}"
            declared |= handler.declared
            assigned |= handler.assigned
        if "finally" in clauses:
            cleanup = clauses["finally"]
            text += f"\nfinally:\n{_indent(cleanup or 'pass')}"
            declared |= cleanup.declared
            assigned |= cleanup.assigned
        return self._stmt(text, declared, assigned)

    def catch_clause(self, args):
        name = self._ident(args[0]) if len(args) > 1 else None
        return ("catch", (name, args[-1]))

    def finally_clause(self, args):
        return ("finally", args[0])

    def _assignment(self, target, op, value, token):
        """Return (text, assigned names) for a plain or compound assignment."""
        if isinstance(target, Name):
            if op == "=":
                return f"{target} = {value}", {str(target)}
            if op in ("-=", "*="):
                return f"{target} {op} {value}", {str(target)}
            return f"{target} = {_binary(target, op[0], value)}", {str(target)}
        if isinstance(target, Member):
            if op != "=":
                value = _binary(target, op[0], value)
            return f"__assign__({target.target}, {target.key}, {value})", set()
        raise self._error("Invalid assignment target", token)

    def assign_stmt(self, args):
        """Transform plain and compound assignments."""
        text, assigned = self._assignment(args[0], str(args[1]), args[2], args[1])
        return self._stmt(text, assigned=assigned)

    def _update(self, target, op, token):
        """Lower ++ and -- to an in-place step of one."""
        if isinstance(target, Name):
            return Code(f"{target} {op[0]}= 1", assigned={str(target)})
        if isinstance(target, Member):
            return Code(f"__assign__({target.target}, {target.key}, ({target} {op[0]} 1))")
        raise self._error(f"Invalid left-hand side in {op} operation", token)

    def postfix_update(self, args):
        return self._update(args[0], str(args[1]), args[1])

    def prefix_update(self, args):
        return self._update(args[1], str(args[0]), args[0])

    def update_stmt(self, args):
        return self._stmt(args[0], assigned=args[0].assigned)

    def expr_stmt(self, args):
        return self._stmt(str(args[0]))

    def empty_stmt(self, args):
        return Code("")

    def missing_semicolon(self, args):
        return Discard

    # --- Functions ---

    def arrow_function(self, args):
        """Lower an arrow function to a lambda, or hoist it into a def."""
        params, body = args[0], args[1]
        if isinstance(body, Code) and body.block:
            name = self._fresh("arrow")
            self._hoisted.append((name, self._function(name, params, body)))
            return Name(name)
        inner = self._take_hoisted(body)
        simple = all(kind in ("name", "rest") and default is None
                     for kind, _, default in params)
        if simple and not inner:
            signature, _, _ = self._signature(params)
            return f"(lambda {signature}: {body})"
        name = self._fresh("arrow")
        statements = [Code(code, declared={hoisted_name}) for hoisted_name, code in inner]
        statements.append(Code(f"return {body}"))
        self._hoisted.append((name, self._function(name, params, self._body(statements))))
        return Name(name)

    def single_param(self, args):
        return [("name", self._ident(args[0]), None)]

    def arrow_params(self, args):
        return args[0] if args else []

    # --- Expressions ---

    def ternary(self, args):
        return f"({args[1]} if {args[0]} else {args[2]})"

    def nullish_expr(self, args):
        return f"__nullish__({args[0]}, lambda: {args[1]})"

    def or_expr(self, args):
        return f"({args[0]} or {args[1]})"

    def and_expr(self, args):
        return f"({args[0]} and {args[1]})"

    def compare(self, args):
        left, op, right = args
        op = _COMPARISONS.get(str(op), str(op))
        return f"({left} {op} {right})"

    def arith(self, args):
        """Transform arithmetic, coercing the other operand of string concatenation."""
        left, op, right = args
        op = str(op)
        if op == "+" and (isinstance(left, Str) or isinstance(right, Str)):
            if not isinstance(left, Str):
                left = f"__tostr__({left})"
            if not isinstance(right, Str):
                right = f"__tostr__({right})"
            return Str(f"({left} + {right})")
        return _binary(left, op, right)

    def not_expr(self, args):
        return f"(not {args[0]})"

    def negate(self, args):
        return f"(-{args[0]})"

    def unary_plus(self, args):
        return f"(+{args[0]})"

    def typeof_expr(self, args):
        return Str(f"__typeof__({args[0]})")

    def member(self, args):
        return Member(args[0], repr(str(args[1])))

    def optional_member(self, args):
        return Member(args[0], repr(str(args[1])), optional=True)

    def index(self, args):
        return Member(args[0], args[1])

    def call(self, args):
        callee = args[0]
        arguments = args[1] if len(args) > 1 else []
        return f"{callee}({', '.join(arguments)})"

    def new_expr(self, args):
        callee = args[0]
        arguments = args[1] if len(args) > 1 else []
        if callee == "Error":
            return f"__error__({', '.join(arguments)})"
        return self.call(args)

    def arguments(self, args):
        return list(args)

    def spread_argument(self, args):
        return f"*{args[0]}"

    def var_ref(self, args):
        return Name(self._ident(args[0]))

    def number(self, args):
        text = str(args[0])
        if re.fullmatch(r"\d+", text):
            return str(int(text))
        return repr(float(text))

    def string(self, args):
        token = args[0]
        return Str(repr(_decode_js_escapes(str(token)[1:-1])))

    def template(self, args):
        """Lower a template literal to str.format over coerced interpolations."""
        token = args[0]
        try:
            chunks, sources = _split_template(str(token)[1:-1])
        except ParseError as e:
            raise self._error(e.message, token, e.suggestion)
        if not sources:
            return Str(repr(_decode_js_escapes(chunks[0])))
        fmt = "{}".join(_decode_js_escapes(chunk).replace("{", "{{").replace("}", "}}")
                        for chunk in chunks)
        values = []
        for source in sources:
            if self._parse_expression is None:
                raise self._error("Template interpolation is not supported here", token)
            try:
                tree = self._parse_expression(source)
            except UnexpectedInput as e:
                raise self._error(f"Invalid expression in template literal: ${{{source}}}", token,
                                  "Check the syntax inside ${...}") from e
            try:
                value = self.transform(tree)
            except VisitError as e:
                raise e.orig_exc
            values.append(f"__tostr__({value})")
        return Str(f"{fmt!r}.format({', '.join(values)})")

    def template_expr(self, args):
        return args[0]

    def true(self, args):
        return "True"

    def false(self, args):
        return "False"

    def null(self, args):
        return "None"

    def undefined(self, args):
        return "None"

    def array_literal(self, args):
        return f"[{', '.join(args)}]"

    def object_literal(self, args):
        return "{" + ", ".join(args) + "}"

    def keyed_property(self, args):
        key, value = args
        if key.type == "STRING":
            key = _decode_js_escapes(str(key)[1:-1])
        return f"{str(key)!r}: {value}"

    def computed_property(self, args):
        return f"{args[0]}: {args[1]}"

    def shorthand_property(self, args):
        return f"{str(args[0])!r}: {self._ident(args[0])}"

    def spread_property(self, args):
        return f"**__spread__({args[0]})"

    # --- Markup ---

    def jsx_name(self, args):
        """Resolve a tag name: lower-case names are host tags, others are references."""
        raw = ".".join(str(part) for part in args)
        if len(args) == 1 and (raw[0].islower() or "-" in raw):
            return (raw, repr(raw), args[0])
        code = self._ident(args[0])
        for part in args[1:]:
            code = Member(code, repr(str(part)))
        return (raw, code, args[0])

    def jsx_self_closing(self, args):
        raw, type_code, _ = args[0]
        return self._element(type_code, args[1:], [])

    def jsx_element(self, args):
        """Transform a markup element with children into a factory call."""
        raw, type_code, _ = args[0]
        close_raw, _, close_token = args[-1]
        if close_raw != raw:
            raise self._error(f"Expected corresponding closing tag for <{raw}>", close_token,
                              f"Close the element with </{raw}>")
        attributes = [a for a in args[1:-1] if isinstance(a, tuple)]
        children = [c for c in args[1:-1] if not isinstance(c, tuple)]
        return self._element(type_code, attributes, children)

    def jsx_fragment(self, args):
        return self._element(self._pragma_frag, [], list(args))

    def jsx_attr(self, args):
        name = str(args[0])
        value = args[1] if len(args) > 1 else "True"
        return ("attr", name, value)

    def jsx_spread(self, args):
        return ("spread", args[0])

    def jsx_string(self, args):
        return Str(repr(html.unescape(str(args[0])[1:-1])))

    def jsx_text(self, args):
        token = args[0]
        text = str(token)
        start = getattr(token, "start_pos", None)
        if self._source and start is not None:
            # Same-line whitespace before the text was consumed by the ignore rule.
            i = start
            while i > 0 and self._source[i - 1] in " \t":
                i -= 1
            if i > 0 and self._source[i - 1] not in "\r\n":
                text = self._source[i:start] + text
        cleaned = _clean_jsx_text(text)
        return Str(repr(cleaned)) if cleaned else None

    def jsx_expression(self, args):
        return args[0] if args else None
