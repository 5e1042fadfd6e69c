"""
Compile pipeline: source text -> generated text -> compiled artifact.
"""
import hashlib
from functools import lru_cache

from lark import Lark
from lark.exceptions import UnexpectedInput, VisitError

from preview.errors import (
    ParseError,
    PreviewError,
    detect_common_error_patterns,
    get_line_context,
)
from preview.grammar import component_grammar
from preview.log import debug_log
from preview.runtime.result import Err, Ok
from preview.sandbox import execute
from preview.transformer import DEFAULT_PRAGMA, DEFAULT_PRAGMA_FRAG, ComponentTransformer


@lru_cache(maxsize=None)
def get_parser():
    # Earley instead of LALR: markup, optional semicolons and arrow functions
    # make the grammar ambiguous without lookahead tricks.
    return Lark(component_grammar, parser='earley', start=['start', 'template_expr'],
                maybe_placeholders=True)


def parse_source(source_code):
    return get_parser().parse(source_code, start='start')


def parse_expression(source_code):
    return get_parser().parse(source_code, start='template_expr')


def _syntax_error(source_code, e):
    line_number = e.line if e.line and e.line > 0 else None
    column = e.column if e.column and e.column > 0 else None
    if line_number is None:
        # Unexpected end of input: point at the last line.
        line_number = max(len(source_code.rstrip().split('\n')), 1)

    context = get_line_context(source_code, line_number)

    suggestion_text, error_type = detect_common_error_patterns(source_code)
    if error_type:
        debug_log(f"Detected error pattern: {error_type}")

    # If no specific pattern matched, provide generic hint
    if not suggestion_text:
        suggestion_text = "Check syntax around this line"

    return ParseError(
        message="Syntax error",
        line_number=line_number,
        column=column,
        context=context,
        suggestion=suggestion_text,
    )


def transform_source(source_code, pragma=DEFAULT_PRAGMA, pragma_frag=DEFAULT_PRAGMA_FRAG,
                     filename="<component>"):
    """
    Rewrite component source into generated Python statements.

    Raises:
        ParseError: the source is not valid component syntax.
    """
    debug_log(f"Compiling source: {filename}")

    # STEP 1: PARSE
    try:
        tree = parse_source(source_code)
    except UnexpectedInput as e:
        raise _syntax_error(source_code, e) from None

    # STEP 2: TRANSFORM
    transformer = ComponentTransformer(
        source=source_code,
        pragma=pragma,
        pragma_frag=pragma_frag,
        parse_expression=parse_expression,
    )
    try:
        generated = transformer.transform(tree)
    except VisitError as e:
        if isinstance(e.orig_exc, PreviewError):
            raise e.orig_exc from None
        raise ParseError(
            message=f"Transformation error: {e.orig_exc}",
            suggestion="Check syntax and types",
        ) from e.orig_exc

    if transformer.dropped_exports:
        debug_log(f"Named exports are not linked and were dropped: "
                  f"{', '.join(transformer.dropped_exports)}")
    debug_log(f"Generated code:\n{generated}")
    return generated


def build_component(source_code, registry, config=None):
    """
    Run the full pipeline for one source text.

    Returns Ok(CompiledArtifact) or Err(PreviewError); compile, runtime and
    validation failures are never raised.
    """
    pragma = config.pragma if config is not None else DEFAULT_PRAGMA
    pragma_frag = config.pragma_frag if config is not None else DEFAULT_PRAGMA_FRAG
    digest = hashlib.sha256(source_code.encode("utf-8")).hexdigest()
    try:
        generated = transform_source(source_code, pragma=pragma, pragma_frag=pragma_frag)
        return Ok(execute(generated, registry, source_digest=digest))
    except PreviewError as e:
        debug_log(f"{e.label}: {e.message}")
        return Err(e)
