# livepane Runtime Components
"""
Runtime modules that back compiled components:
- intrinsics: member access and coercion helpers injected into sandbox units
- elements: the element model and HTML serialization
- hooks: per-instance state primitives
- reconciler: expands function components into a resolved tree
- ui: the small component library behind the "ui" binding set
"""
from types import MappingProxyType

from .elements import FRAGMENT, Element, create_element, to_html
from .hooks import use_callback, use_effect, use_memo, use_ref, use_state
from .reconciler import Renderer
from .result import Err, Ok, Result
from .ui import UI_BINDINGS

# The hook primitives every registry pins, whatever the binding sets say.
PINNED_HOOKS = {
    "useState": use_state,
    "useEffect": use_effect,
    "useRef": use_ref,
}


def react_bindings():
    """The framework namespace, exposed both as React.* and as top-level names."""
    exports = {
        "createElement": create_element,
        "Fragment": FRAGMENT,
        "useState": use_state,
        "useEffect": use_effect,
        "useRef": use_ref,
        "useMemo": use_memo,
        "useCallback": use_callback,
    }
    bindings = dict(exports)
    bindings["React"] = MappingProxyType(exports)
    return bindings


BINDING_SETS = {
    "react": react_bindings,
    "ui": lambda: dict(UI_BINDINGS),
}

__all__ = [
    'BINDING_SETS',
    'Element',
    'Err',
    'FRAGMENT',
    'Ok',
    'PINNED_HOOKS',
    'Renderer',
    'Result',
    'create_element',
    'react_bindings',
    'to_html',
]
