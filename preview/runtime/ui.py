"""
A small component library exposed to previews as the "ui" binding set.
"""
from preview.runtime.elements import create_element


def _children(props):
    children = props.get("children")
    if children is None:
        return ()
    return children if isinstance(children, tuple) else (children,)


def _class_name(base, props):
    extra = props.get("className")
    return f"{base} {extra}" if extra else base


def Button(props):
    """A styled button; variant selects the colour scheme."""
    variant = props.get("variant") or "primary"
    attrs = {
        "type": props.get("type") or "button",
        "className": _class_name(f"btn btn-{variant}", props),
        "onClick": props.get("onClick"),
        "disabled": props.get("disabled"),
    }
    return create_element("button", attrs, *_children(props))


def Card(props):
    """A bordered container with an optional title."""
    title = props.get("title")
    header = create_element("h3", {"className": "card-title"}, title) if title else None
    return create_element("div", {"className": _class_name("card", props)},
                          header, *_children(props))


def Badge(props):
    tone = props.get("tone") or "neutral"
    return create_element("span", {"className": _class_name(f"badge badge-{tone}", props)},
                          *_children(props))


def Input(props):
    attrs = {
        "className": _class_name("input", props),
        "value": props.get("value"),
        "placeholder": props.get("placeholder"),
        "onChange": props.get("onChange"),
        "type": props.get("type") or "text",
    }
    return create_element("input", attrs)


UI_BINDINGS = {
    "Button": Button,
    "Card": Card,
    "Badge": Badge,
    "Input": Input,
}
