"""
Helpers injected into every sandbox unit.

Generated code never touches Python attributes directly: member reads,
writes, spreads and destructuring all go through these functions so that
component code sees script-like semantics (missing members read as None,
arrays expose map/filter/length, and so on). Source identifiers may not
start with a double underscore, so the names below cannot be shadowed.
"""
import functools
import inspect
import math
from collections.abc import Mapping

from preview.errors import CapabilityNotFound, ScriptError
from preview.runtime.hooks import Ref


class MissingBinding:
    """
    Stands in for an imported name the registry does not provide.

    Importing it succeeds; calling it, rendering it or reading a member from
    it raises the "is not defined" reference error.
    """

    __slots__ = ("name",)

    def __init__(self, name):
        self.name = name

    def __call__(self, *args, **kwargs):
        raise CapabilityNotFound(self.name)

    def __bool__(self):
        return False

    def __repr__(self):
        return f"MissingBinding({self.name!r})"


def binding(scope, name):
    """Resolve an imported name, deferring a missing one to first use."""
    try:
        return scope[name]
    except KeyError:
        return MissingBinding(name)


class _NextIteration:
    def __repr__(self):
        return "NextIteration"


# Returned by a loop body run as its own function when it finishes without `return`.
NEXT_ITERATION = _NextIteration()


def _arity(fn):
    try:
        signature = inspect.signature(fn)
    except (TypeError, ValueError):
        return None
    count = 0
    for param in signature.parameters.values():
        if param.kind == param.VAR_POSITIONAL:
            return None
        if param.kind in (param.POSITIONAL_ONLY, param.POSITIONAL_OR_KEYWORD):
            count += 1
    return count


def invoke(fn, *args):
    """Call a callback with as many positional arguments as it accepts."""
    if not callable(fn):
        raise TypeError(f"{to_string(fn)} is not a function")
    arity = _arity(fn)
    if arity is not None:
        args = args[:arity]
    return fn(*args)


def to_string(value):
    """String conversion used by concatenation and template literals."""
    if isinstance(value, str):
        return value
    if value is None or isinstance(value, MissingBinding):
        return "undefined"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        if value.is_integer():
            return str(int(value))
        return repr(value)
    if isinstance(value, (list, tuple)):
        return ",".join("" if item is None else to_string(item) for item in value)
    if isinstance(value, Mapping):
        return "[object Object]"
    if isinstance(value, ScriptError):
        return str(value)
    if callable(value):
        return f"function {getattr(value, '__name__', 'anonymous')}"
    return str(value)


def type_of(value):
    if value is None or isinstance(value, MissingBinding):
        return "undefined"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if callable(value):
        return "function"
    return "object"


def nullish(value, fallback):
    """Return value unless it is None, otherwise evaluate the fallback thunk."""
    return fallback() if value is None else value


# --- Operators ---

def _is_number(value):
    return isinstance(value, (int, float))


def plus(left, right):
    """The + operator: addition for numbers, concatenation once either side is not one."""
    if _is_number(left) and _is_number(right):
        return left + right
    if (left is None or _is_number(left)) and (right is None or _is_number(right)):
        return math.nan
    return to_string(left) + to_string(right)


def _numeric(value, op):
    if value is None:
        return math.nan
    if not _is_number(value):
        raise TypeError(f"Unsupported operand for {op}: {to_string(value)}")
    return value


def divide(left, right):
    """The / operator; division by zero gives Infinity or NaN."""
    left, right = _numeric(left, "/"), _numeric(right, "/")
    if right == 0:
        if left == 0 or math.isnan(left):
            return math.nan
        return math.copysign(math.inf, left) * math.copysign(1.0, right)
    return left / right


def remainder(left, right):
    """The % operator; the result takes the sign of the dividend."""
    left, right = _numeric(left, "%"), _numeric(right, "%")
    if right == 0 or math.isinf(left) or math.isnan(left) or math.isnan(right):
        return math.nan
    if isinstance(left, int) and isinstance(right, int):
        result = abs(left) % abs(right)
        return -result if left < 0 else result
    return math.fmod(left, right)


# --- Exceptions ---

def new_error(message=None, *_):
    """The Error constructor."""
    return ScriptError(None if message is None else to_string(message))


def throw(value):
    """Turn a thrown value into something `raise` accepts."""
    if isinstance(value, BaseException):
        return value
    return ScriptError(to_string(value), value=value, thrown=True)


def caught(exc):
    """The value a catch clause binds for an exception."""
    if isinstance(exc, ScriptError):
        return exc.value if exc.thrown else exc
    if isinstance(exc, CapabilityNotFound):
        return ScriptError(str(exc), name="ReferenceError")
    return ScriptError(str(exc) or type(exc).__name__, name=type(exc).__name__)


# --- Array methods ---

def _array_map(arr, fn, *_):
    return [invoke(fn, item, i, arr) for i, item in enumerate(arr)]


def _array_filter(arr, fn, *_):
    return [item for i, item in enumerate(arr) if invoke(fn, item, i, arr)]


def _array_for_each(arr, fn, *_):
    for i, item in enumerate(arr):
        invoke(fn, item, i, arr)


def _array_find(arr, fn, *_):
    for i, item in enumerate(arr):
        if invoke(fn, item, i, arr):
            return item
    return None


def _array_find_index(arr, fn, *_):
    for i, item in enumerate(arr):
        if invoke(fn, item, i, arr):
            return i
    return -1


def _array_some(arr, fn, *_):
    return any(invoke(fn, item, i, arr) for i, item in enumerate(arr))


def _array_every(arr, fn, *_):
    return all(invoke(fn, item, i, arr) for i, item in enumerate(arr))


def _array_reduce(arr, fn, *initial):
    items = list(enumerate(arr))
    if initial:
        accumulator = initial[0]
    elif items:
        accumulator = items.pop(0)[1]
    else:
        raise TypeError("Reduce of empty array with no initial value")
    for i, item in items:
        accumulator = invoke(fn, accumulator, item, i, arr)
    return accumulator


def _array_index_of(arr, value, *_):
    for i, item in enumerate(arr):
        if item == value:
            return i
    return -1


def _array_join(arr, separator=None, *_):
    separator = "," if separator is None else separator
    return separator.join("" if item is None else to_string(item) for item in arr)


def _array_concat(arr, *others):
    result = list(arr)
    for other in others:
        if isinstance(other, (list, tuple)):
            result.extend(other)
        else:
            result.append(other)
    return result


def _array_push(arr, *items):
    if not isinstance(arr, list):
        raise TypeError("Cannot add property, object is not extensible")
    arr.extend(items)
    return len(arr)


def _array_reverse(arr, *_):
    if isinstance(arr, list):
        arr.reverse()
        return arr
    return list(reversed(arr))


def _array_sort(arr, fn=None, *_):
    if fn is None:
        key = to_string
    else:
        key = functools.cmp_to_key(lambda a, b: invoke(fn, a, b))
    if isinstance(arr, list):
        arr.sort(key=key)
        return arr
    return sorted(arr, key=key)


def _slice(seq, start=None, end=None, *_):
    return seq[start:end] if isinstance(seq, str) else list(seq[start:end])


_ARRAY_METHODS = {
    "map": _array_map,
    "filter": _array_filter,
    "forEach": _array_for_each,
    "find": _array_find,
    "findIndex": _array_find_index,
    "some": _array_some,
    "every": _array_every,
    "reduce": _array_reduce,
    "includes": lambda arr, value, *_: value in arr,
    "indexOf": _array_index_of,
    "join": _array_join,
    "slice": _slice,
    "concat": _array_concat,
    "push": _array_push,
    "reverse": _array_reverse,
    "sort": _array_sort,
}


# --- String methods ---

def _string_split(text, separator=None, limit=None, *_):
    if separator is None:
        parts = [text]
    elif separator == "":
        parts = list(text)
    else:
        parts = text.split(separator)
    return parts if limit is None else parts[:limit]


def _string_char_at(text, index=0, *_):
    return text[index] if 0 <= index < len(text) else ""


_STRING_METHODS = {
    "toUpperCase": lambda text, *_: text.upper(),
    "toLowerCase": lambda text, *_: text.lower(),
    "trim": lambda text, *_: text.strip(),
    "split": _string_split,
    "includes": lambda text, part, *_: to_string(part) in text,
    "startsWith": lambda text, part, *_: text.startswith(to_string(part)),
    "endsWith": lambda text, part, *_: text.endswith(to_string(part)),
    "indexOf": lambda text, part, *_: text.find(to_string(part)),
    "slice": _slice,
    "replace": lambda text, old, new, *_: text.replace(to_string(old), to_string(new), 1),
    "charAt": _string_char_at,
    "toString": lambda text, *_: text,
}

_NUMBER_METHODS = {
    "toFixed": lambda number, digits=0, *_: f"{number:.{int(digits)}f}",
    "toString": lambda number, *_: to_string(number),
}


def _index(key):
    if isinstance(key, bool):
        return None
    if isinstance(key, float) and key.is_integer():
        key = int(key)
    return key if isinstance(key, int) else None


def member(obj, key, optional=False):
    """Read obj[key] / obj.key; missing members read as None."""
    if obj is None:
        if optional:
            return None
        raise TypeError(f"Cannot read properties of null (reading '{to_string(key)}')")
    if isinstance(obj, MissingBinding):
        if optional:
            return None
        raise CapabilityNotFound(obj.name)
    if isinstance(obj, Mapping):
        return obj.get(key)
    if isinstance(obj, (list, tuple, str)):
        index = _index(key)
        if index is not None:
            return obj[index] if 0 <= index < len(obj) else None
        if key == "length":
            return len(obj)
        methods = _STRING_METHODS if isinstance(obj, str) else _ARRAY_METHODS
        method = methods.get(key)
        return functools.partial(method, obj) if method else None
    if isinstance(obj, (int, float)) and not isinstance(obj, bool):
        method = _NUMBER_METHODS.get(key)
        return functools.partial(method, obj) if method else None
    if not isinstance(key, str) or key.startswith("_"):
        return None
    return getattr(obj, key, None)


def assign(obj, key, value):
    """
    Write obj[key] = value and return value.

    Only objects and arrays built by component code, plus a ref's
    ``current``, are writable. Registry bindings and everything else the
    runtime hands out are read-only.
    """
    if obj is None:
        raise TypeError(f"Cannot set properties of null (setting '{to_string(key)}')")
    if type(obj) is dict:
        obj[key] = value
    elif type(obj) is list and _index(key) is not None:
        index = _index(key)
        if index < 0:
            raise TypeError(f"Invalid array index {index}")
        obj.extend([None] * (index + 1 - len(obj)))
        obj[index] = value
    elif isinstance(obj, Ref) and key == "current":
        obj.current = value
    else:
        raise TypeError(f"Cannot assign to read only property '{to_string(key)}'")
    return value


def spread(value):
    """Convert a value to a dict for object and attribute spreads."""
    if value is None:
        return {}
    if isinstance(value, Mapping):
        return dict(value)
    if isinstance(value, (list, tuple, str)):
        return {str(i): item for i, item in enumerate(value)}
    if hasattr(value, "__dict__"):
        return {k: v for k, v in vars(value).items() if not k.startswith("_")}
    return {}


def items(value, count, rest=False):
    """Unpack the first count items of value, padding with None."""
    if value is None:
        raise TypeError(f"{to_string(value)} is not iterable")
    values = list(value)
    head = values[:count] + [None] * (count - len(values))
    if rest:
        head.append(values[count:])
    return tuple(head)


INTRINSICS = {
    "__member__": member,
    "__assign__": assign,
    "__spread__": spread,
    "__items__": items,
    "__tostr__": to_string,
    "__typeof__": type_of,
    "__nullish__": nullish,
    "__plus__": plus,
    "__divide__": divide,
    "__remainder__": remainder,
    "__binding__": binding,
    "__error__": new_error,
    "__throw__": throw,
    "__caught__": caught,
    "__next_iteration__": NEXT_ITERATION,
}
