"""
Unit tests for preview/transformer.py - ComponentTransformer class.
"""
import math

import pytest

from preview.compiler import parse_expression, parse_source, transform_source
from preview.errors import ParseError, ScriptError
from preview.registry import default_registry
from preview.runtime.elements import Element
from preview.sandbox import execute
from preview.transformer import ComponentTransformer


def evaluate(source):
    """Compile source and call its default export without props."""
    artifact = execute(transform_source(source), default_registry())
    return artifact.factory()


class TestModuleLinkage:
    """Imports and exports become scope lookups and the exports slot."""

    @pytest.fixture
    def transformer(self):
        return ComponentTransformer(parse_expression=parse_expression)

    def test_default_import(self, transformer):
        result = transformer.transform(parse_source('import React from "react";'))
        assert result == "React = __binding__(scope, 'React')"

    def test_named_import(self, transformer):
        result = transformer.transform(parse_source('import { Button } from "ui";'))
        assert result == "Button = __binding__(scope, 'Button')"

    def test_aliased_named_import_uses_imported_name(self, transformer):
        result = transformer.transform(parse_source('import { Button as Btn } from "ui";'))
        assert result == "Btn = __binding__(scope, 'Button')"

    def test_default_and_named_import(self, transformer):
        result = transformer.transform(parse_source('import React, { useState } from "react";'))
        assert result == "React = __binding__(scope, 'React')\nuseState = __binding__(scope, 'useState')"

    def test_namespace_import(self, transformer):
        result = transformer.transform(parse_source('import * as UI from "ui";'))
        assert result == "UI = scope"

    def test_side_effect_import_emits_nothing(self, transformer):
        result = transformer.transform(parse_source('import "./styles.css";'))
        assert result == ""

    def test_default_export_function(self, transformer):
        result = transformer.transform(parse_source('export default function App() { return null; }'))
        assert result == "def App(*__rest):\n    return None\nexports['default'] = App"

    def test_default_export_expression(self, transformer):
        result = transformer.transform(parse_source('export default 42;'))
        assert result == "exports['default'] = 42"

    def test_anonymous_default_function(self, transformer):
        result = transformer.transform(parse_source('export default function () { return 1 }'))
        assert "def default(*__rest):" in result
        assert result.endswith("exports['default'] = default")

    def test_named_exports_are_dropped(self, transformer):
        source = 'export const helper = 1;\nexport { helper };\nexport default function App() { return helper; }'
        result = transformer.transform(parse_source(source))
        assert "helper = 1" in result
        assert "export" not in result.replace("exports['default']", "")
        assert transformer.dropped_exports == ["helper", "helper"]

    def test_second_default_export_is_rejected(self):
        source = 'export default function A() {}\nexport default function B() {}'
        with pytest.raises(ParseError, match="Only one default export"):
            transform_source(source)


class TestMarkupLowering:
    """JSX becomes nested element factory calls."""

    def test_host_element(self):
        result = transform_source('const el = <div className="a">hi</div>;')
        assert result == "el = __member__(scope['React'], 'createElement')('div', {'className': 'a'}, 'hi')"

    def test_component_reference_and_boolean_attribute(self):
        result = transform_source('const el = <Button disabled />;')
        assert result == "el = __member__(scope['React'], 'createElement')(Button, {'disabled': True})"

    def test_fragment(self):
        result = transform_source('const el = <>x</>;')
        assert "(__member__(scope['React'], 'Fragment'), None, 'x')" in result

    def test_custom_pragma(self):
        result = transform_source('const el = <p />;', pragma="h", pragma_frag="Frag")
        assert result == "el = scope['h']('p', None)"

    def test_member_tag_is_a_reference(self):
        result = transform_source('const el = <UI.Card />;')
        assert "(__member__(UI, 'Card'), None)" in result

    def test_spread_attribute(self):
        result = transform_source('const el = <div {...rest} id="x" />;')
        assert "{**__spread__(rest), 'id': 'x'}" in result

    def test_multiline_text_is_collapsed(self):
        source = 'const el = <p>\n    Hello\n    world\n</p>;'
        result = transform_source(source)
        assert "'p', None, 'Hello world')" in result

    def test_leading_space_on_same_line_is_kept(self):
        result = transform_source('const el = <p>{a} and {b}</p>;')
        assert "a, ' and ', b)" in result

    def test_empty_expression_container_is_dropped(self):
        result = transform_source('const el = <p>{/* note */}</p>;')
        assert result.endswith("('p', None)")

    def test_entities_in_text_are_decoded(self):
        result = transform_source('const el = <p>a &amp; b</p>;')
        assert "'a & b'" in result

    def test_mismatched_closing_tag(self):
        with pytest.raises(ParseError, match="closing tag"):
            transform_source('const el = <div></span>;')


class TestIdentifiers:
    """Identifier handling."""

    def test_reserved_prefix_is_rejected(self):
        with pytest.raises(ParseError, match="reserved"):
            transform_source('const __member__ = 1;')

    def test_python_keywords_are_renamed(self):
        result = transform_source('const pass = 1;')
        assert result == "pass_ = 1"

    def test_unit_locals_are_renamed(self):
        result = transform_source('const exports = 1; const scope = 2;')
        assert result == "exports_ = 1\nscope_ = 2"


class TestStatementLowering:
    """Statements whose script semantics need more than a direct translation."""

    def test_update_statements(self):
        assert transform_source('count++;') == "count += 1"
        assert transform_source('--count;') == "count -= 1"
        assert transform_source('box.n++;') == "__assign__(box, 'n', (__member__(box, 'n') + 1))"

    def test_compound_addition_coerces(self):
        assert transform_source('label += 1;') == "label = __plus__(label, 1)"
        assert transform_source('total -= 1;') == "total -= 1"

    def test_division_and_remainder(self):
        assert transform_source('const r = a / b % c;') == "r = __remainder__(__divide__(a, b), c)"

    def test_throw(self):
        assert transform_source('throw new Error("boom");') == "raise __throw__(__error__('boom'))"

    def test_classic_for_becomes_while(self):
        result = transform_source('for (let i = 0; i < 3; i++) { log(i); }')
        assert result == "i = 0\nwhile (i < 3):\n    log(i)\n    i += 1"

    def test_loop_without_closures_stays_flat(self):
        result = transform_source('for (const x of xs) { log(x); }')
        assert result == "for x in xs:\n    log(x)"

    def test_loop_with_closures_runs_body_per_iteration(self):
        result = transform_source('for (const x of xs) { fns.push(() => x); }')
        assert result.startswith("def __iteration")
        assert "for x in xs:\n    __iteration" in result

    def test_try_without_handler_is_rejected(self):
        with pytest.raises(ParseError, match="Missing catch or finally"):
            transform_source('try { risky(); }')


class TestExecutionSemantics:
    """Generated code behaves like the source when run in the sandbox."""

    def test_block_arrow_is_hoisted(self):
        source = """
        export default function App() {
            const handle = () => { return 5; };
            return handle();
        }
        """
        assert evaluate(source) == 5

    def test_closure_assignment_uses_nonlocal(self):
        source = """
        export default function App() {
            let count = 0;
            const inc = () => { count += 1 };
            inc();
            inc();
            return count;
        }
        """
        assert evaluate(source) == 2

    def test_destructuring(self):
        source = """
        export default function App() {
            const [a, b] = [1, 2];
            const { x, y: z = 3 } = { x: 10 };
            const [first, ...rest] = [1, 2, 3];
            return [a, b, x, z, first, rest];
        }
        """
        assert evaluate(source) == [1, 2, 10, 3, 1, [2, 3]]

    def test_parameter_defaults_and_patterns(self):
        source = """
        function greet({ name }, greeting = "Hi") {
            return greeting + ", " + name;
        }
        export default function App() {
            return greet({ name: "Ada" });
        }
        """
        assert evaluate(source) == "Hi, Ada"

    def test_template_literal(self):
        source = """
        export default function App() {
            const name = "Ada";
            const n = 3;
            return `Hello ${name}, you have ${n + 1} {messages}`;
        }
        """
        assert evaluate(source) == "Hello Ada, you have 4 {messages}"

    def test_string_concatenation_coerces(self):
        assert evaluate('export default function App() { return "n=" + 5 + true; }') == "n=5true"

    def test_optional_chaining_and_nullish(self):
        source = """
        export default function App() {
            const user = null;
            return user?.name ?? "anonymous";
        }
        """
        assert evaluate(source) == "anonymous"

    def test_conditionals(self):
        source = """
        function size(n) {
            if (n > 10) {
                return "big";
            } else if (n > 5) {
                return "medium";
            } else {
                return "small";
            }
        }
        export default function App() {
            return [size(20), size(7), size(1)].join(",");
        }
        """
        assert evaluate(source) == "big,medium,small"

    def test_for_of_and_array_methods(self):
        source = """
        export default function App() {
            const out = [];
            for (const x of [1, 2, 3]) {
                out.push(x * 2);
            }
            return out.map(v => v + 1).filter(v => v > 3).join("-");
        }
        """
        assert evaluate(source) == "5-7"

    def test_object_spread_and_member_assignment(self):
        source = """
        export default function App() {
            const base = { a: 1 };
            const merged = { ...base, b: 2 };
            merged.c = merged.a + merged.b;
            merged["d"] = 4;
            return merged;
        }
        """
        assert evaluate(source) == {"a": 1, "b": 2, "c": 3, "d": 4}

    def test_logical_operators_return_values(self):
        source = 'export default function App() { return [0 || "x", 1 && "y", !0, typeof "s"]; }'
        assert evaluate(source) == ["x", "y", True, "string"]

    def test_strict_equality(self):
        assert evaluate('export default function App() { return 1 === 1 && 2 !== 3; }') is True

    def test_markup_evaluates_to_elements(self):
        source = """
        export default function App() {
            const items = ["a", "b"];
            return <ul>{items.map(i => <li key={i}>{i}</li>)}</ul>;
        }
        """
        element = evaluate(source)
        assert isinstance(element, Element)
        assert element.type == "ul"
        items = element.children[0]
        assert [item.key for item in items] == ["a", "b"]
        assert items[0].children == ("a",)

    def test_missing_arguments_default_to_none(self):
        source = """
        function pick(a, b) { return b ?? "none"; }
        export default function App() { return pick(1); }
        """
        assert evaluate(source) == "none"

    def test_loop_closures_capture_each_iteration(self):
        source = """
        export default function App() {
            const fns = [];
            for (const x of [1, 2, 3]) {
                fns.push(() => x);
            }
            for (const { id } of [{ id: "a" }, { id: "b" }]) {
                fns.push(() => id);
            }
            for (let i = 0; i < 2; i++) {
                fns.push(() => i * 10);
            }
            return fns.map(f => f()).join(",");
        }
        """
        assert evaluate(source) == "1,2,3,a,b,0,10"

    def test_return_from_loop_with_closures(self):
        source = """
        function firstAbove(xs, limit) {
            let seen = 0;
            for (const x of xs) {
                seen += 1;
                const above = () => x > limit;
                if (above()) {
                    return [x, seen];
                }
            }
            return [null, seen];
        }
        export default function App() {
            return [firstAbove([1, 5, 7], 2), firstAbove([1], 2)];
        }
        """
        assert evaluate(source) == [[5, 2], [None, 1]]

    def test_counters_and_loops(self):
        source = """
        export default function App() {
            let total = 0;
            for (let i = 0; i < 5; i++) {
                total += i;
            }
            let n = 10;
            n--;
            --n;
            ++n;
            const box = { count: 1 };
            box.count++;
            let k = 0;
            while (k < 3) {
                k++;
            }
            return [total, n, box.count, k];
        }
        """
        assert evaluate(source) == [10, 9, 2, 3]

    def test_throw_and_catch(self):
        source = """
        function risky(flag) {
            if (flag) {
                throw new Error("bad " + flag);
            }
            return "fine";
        }
        export default function App() {
            const out = [];
            try {
                out.push(risky(false));
                risky("x");
                out.push("unreached");
            } catch (e) {
                out.push(e.message);
                out.push(e.name);
            } finally {
                out.push("done");
            }
            try {
                const nothing = null;
                nothing.field;
            } catch (err) {
                out.push(err.name);
            }
            try {
                throw "plain";
            } catch (value) {
                out.push(value);
            }
            return out;
        }
        """
        assert evaluate(source) == ["fine", "bad x", "Error", "done", "TypeError", "plain"]

    def test_uncaught_throw_propagates(self):
        source = 'export default function App() { throw new Error("boom"); }'
        with pytest.raises(ScriptError) as excinfo:
            evaluate(source)
        assert str(excinfo.value) == "Error: boom"

    def test_compound_concatenation_and_division(self):
        source = """
        export default function App() {
            let s = "a";
            s += 1;
            s += true;
            const o = { label: "x" };
            o.label += 2;
            return [s, o.label, 1 / 0, -1 / 0, 7 % 3, -7 % 3, 6 / 4];
        }
        """
        assert evaluate(source) == ["a1true", "x2", math.inf, -math.inf, 1, -1, 1.5]
        assert math.isnan(evaluate('export default function App() { return 0 / 0; }'))
