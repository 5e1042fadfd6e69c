"""
Element model and HTML serialization.

Elements are immutable descriptions of UI produced by the element factory.
A resolved tree contains only host elements (string tag names), text and
numbers; it can be serialized with to_html().
"""
import html
import re
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict

from preview.runtime.intrinsics import to_string


class _Fragment:
    """Marker type for fragments."""

    def __repr__(self):
        return "Fragment"


FRAGMENT = _Fragment()


class Props(dict):
    """Read-only mapping handed to function components."""

    def _readonly(self, *args, **kwargs):
        raise TypeError("Cannot assign to read only property of props")

    __setitem__ = _readonly
    __delitem__ = _readonly
    update = _readonly
    pop = _readonly
    popitem = _readonly
    setdefault = _readonly
    clear = _readonly


class Element(BaseModel):
    """A single node of a UI description."""
    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    type: Any
    props: Any = None
    children: tuple = ()
    key: Optional[Any] = None

    def __repr__(self):
        name = self.type if isinstance(self.type, str) else getattr(self.type, "__name__", self.type)
        return f"<Element {name} props={dict(self.props or {})} children={len(self.children)}>"


def create_element(type, props=None, *children):
    """Build an element from a type, optional props and positional children."""
    props = dict(props or {})
    key = props.pop("key", None)
    props.pop("ref", None)
    if children:
        props["children"] = children[0] if len(children) == 1 else children
    return Element(type=type, props=Props(props), children=tuple(children), key=key)


def is_element(value):
    return isinstance(value, Element)


# ==========================================
# HTML SERIALIZATION
# ==========================================

VOID_TAGS = {
    "area", "base", "br", "col", "embed", "hr", "img", "input",
    "link", "meta", "param", "source", "track", "wbr",
}

UNITLESS_STYLES = {
    "opacity", "zIndex", "fontWeight", "lineHeight", "flex", "flexGrow",
    "flexShrink", "order", "zoom",
}

ATTRIBUTE_ALIASES = {"className": "class", "htmlFor": "for"}


def _css_name(name):
    return re.sub(r"([A-Z])", lambda m: "-" + m.group(1).lower(), name)


def style_to_css(style):
    """Convert a style mapping ({fontSize: 12}) into inline CSS."""
    parts = []
    for name, value in style.items():
        if value is None or value is False or value == "":
            continue
        if isinstance(value, (int, float)) and not isinstance(value, bool) \
                and name not in UNITLESS_STYLES and value != 0:
            value = f"{to_string(value)}px"
        parts.append(f"{_css_name(name)}:{to_string(value)}")
    return ";".join(parts)


def _attributes(props):
    rendered = []
    for name, value in props.items():
        if name == "children" or value is None or value is False or callable(value):
            continue
        name = ATTRIBUTE_ALIASES.get(name, name)
        if name == "style" and isinstance(value, dict):
            value = style_to_css(value)
            if not value:
                continue
        if value is True:
            rendered.append(f" {name}")
        else:
            rendered.append(f' {name}="{html.escape(to_string(value), quote=True)}"')
    return "".join(rendered)


def to_html(node):
    """Serialize a resolved element tree to an HTML string."""
    if node is None or isinstance(node, bool):
        return ""
    if isinstance(node, str):
        return html.escape(node, quote=False)
    if isinstance(node, (int, float)):
        return html.escape(to_string(node), quote=False)
    if isinstance(node, (list, tuple)):
        return "".join(to_html(child) for child in node)
    if isinstance(node, Element):
        if node.type is FRAGMENT:
            return to_html(node.children)
        if not isinstance(node.type, str):
            raise TypeError(f"Cannot serialize unresolved component {node.type!r}")
        tag = node.type
        attrs = _attributes(node.props or {})
        if tag in VOID_TAGS:
            return f"<{tag}{attrs}/>"
        return f"<{tag}{attrs}>{to_html(node.children)}</{tag}>"
    raise TypeError(f"Objects are not valid as a UI child (found: {type(node).__name__})")
