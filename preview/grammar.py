"""
Component Grammar Definition.

This module contains the Lark grammar for component modules: a JavaScript
subset with static imports, JSX markup and a single default export.
"""

component_grammar = r"""
    start: _item*

    _item: import_decl
         | export_default
         | export_decl
         | export_list
         | statement

    // --- Module linkage ---
    import_decl: _IMPORT import_clause _FROM STRING _end
               | _IMPORT STRING _end                           -> bare_import
    import_clause: default_specifier ("," (named_specifiers | namespace_specifier))?
                 | named_specifiers
                 | namespace_specifier
    default_specifier: NAME
    namespace_specifier: "*" _AS NAME
    named_specifiers: "{" (import_specifier ("," import_specifier)* ","?)? "}"
    import_specifier: PROP_NAME (_AS NAME)?

    ?export_default: _EXPORT _DEFAULT function_decl             -> export_default_function
                   | _EXPORT _DEFAULT anonymous_function        -> export_default_function
                   | _EXPORT _DEFAULT expr _end                 -> export_default_expr
    anonymous_function: _FUNCTION "(" params? ")" block
    export_decl: _EXPORT (var_decl | function_decl)
    export_list: _EXPORT "{" (export_specifier ("," export_specifier)* ","?)? "}" (_FROM STRING)? _end
    export_specifier: PROP_NAME (_AS PROP_NAME)?

    // --- Statements ---
    ?statement: var_decl
              | function_decl
              | return_stmt
              | if_stmt
              | for_of_stmt
              | for_stmt
              | while_stmt
              | throw_stmt
              | try_stmt
              | block
              | update_stmt
              | assign_stmt
              | expr_stmt
              | empty_stmt

    var_decl: DECL_KIND declarator ("," declarator)* _end
    declarator: binding ("=" expr)?
    ?binding: NAME                                  -> name_binding
            | array_pattern
            | object_pattern
    array_pattern: "[" (array_element ("," array_element)*)? "]"
    ?array_element: NAME                            -> name_binding
                  | "..." NAME                      -> rest_binding
    object_pattern: "{" (property_binding ("," property_binding)* ","?)? "}"
    property_binding: PROP_NAME (":" NAME)? ("=" expr)?

    function_decl: _FUNCTION NAME "(" params? ")" block
    params: param ("," param)* ","?
    ?param: NAME ("=" expr)?                        -> simple_param
          | array_pattern ("=" expr)?               -> pattern_param
          | object_pattern ("=" expr)?              -> pattern_param
          | "..." NAME                              -> rest_param

    block.2: "{" statement* "}"
    return_stmt: _RETURN expr? _end
    if_stmt: _IF "(" expr ")" statement (_ELSE statement)?
    for_of_stmt: _FOR "(" DECL_KIND binding _OF expr ")" statement
    for_stmt: _FOR "(" [for_init] ";" [expr] ";" [for_update] ")" statement
    ?for_init: DECL_KIND declarator ("," declarator)*   -> for_decl
             | postfix ASSIGN_OP expr                  -> for_assign
    ?for_update: update
               | postfix ASSIGN_OP expr                -> for_assign
    while_stmt: _WHILE "(" expr ")" statement
    throw_stmt: _THROW expr _end
    try_stmt: _TRY block catch_clause? finally_clause?
    catch_clause: _CATCH ("(" NAME ")")? block
    finally_clause: _FINALLY block
    assign_stmt: postfix ASSIGN_OP expr _end
    // `--x;` also parses as a double negation; the update wins.
    update_stmt.2: update _end
    update: postfix INCDEC                          -> postfix_update
          | INCDEC postfix                          -> prefix_update
    expr_stmt: expr _end
    empty_stmt: ";"

    // A statement may end without a semicolon; such parses lose ties.
    _end: ";" | missing_semicolon
    missing_semicolon.-1:

    // --- Expressions ---
    ?expr: arrow_function
         | conditional

    arrow_function: arrow_params "=>" (block | expr)
    arrow_params: NAME                              -> single_param
                | "(" params? ")"

    ?conditional: nullish
                | nullish "?" expr ":" expr         -> ternary
    ?nullish: logic_or
            | nullish "??" logic_or                 -> nullish_expr
    ?logic_or: logic_and
             | logic_or "||" logic_and              -> or_expr
    ?logic_and: equality
              | logic_and "&&" equality             -> and_expr
    ?equality: relational
             | equality EQ_OP relational            -> compare
    ?relational: additive
               | relational REL_OP additive         -> compare
    ?additive: multiplicative
             | additive ADD_OP multiplicative       -> arith
    ?multiplicative: unary
                   | multiplicative MUL_OP unary    -> arith
    ?unary: postfix
          | "!" unary                               -> not_expr
          | "-" unary                               -> negate
          | "+" unary                               -> unary_plus
          | _TYPEOF unary                           -> typeof_expr
    ?postfix: primary
            | postfix "." PROP_NAME                 -> member
            | postfix "?." PROP_NAME                -> optional_member
            | postfix "[" expr "]"                  -> index
            | postfix "(" arguments? ")"            -> call
            | _NEW primary "(" arguments? ")"       -> new_expr
    arguments: argument ("," argument)* ","?
    ?argument: expr
             | "..." expr                           -> spread_argument

    ?primary: NAME                                  -> var_ref
            | NUMBER                                -> number
            | STRING                                -> string
            | TEMPLATE                              -> template
            | _TRUE                                 -> true
            | _FALSE                                -> false
            | _NULL                                 -> null
            | _UNDEFINED                            -> undefined
            | array_literal
            | object_literal
            | "(" expr ")"
            | jsx_element
            | jsx_fragment

    array_literal: "[" (argument ("," argument)* ","?)? "]"
    object_literal: "{" (property ("," property)* ","?)? "}"
    ?property: (PROP_NAME | STRING) ":" expr        -> keyed_property
             | "[" expr "]" ":" expr                -> computed_property
             | NAME                                 -> shorthand_property
             | "..." expr                           -> spread_property

    // Entry point used for template literal interpolations
    template_expr: expr

    // --- Markup ---
    jsx_element: "<" jsx_name jsx_attribute* "/" ">"                            -> jsx_self_closing
               | "<" jsx_name jsx_attribute* ">" jsx_child* "<" "/" jsx_name ">"
    jsx_fragment: "<" ">" jsx_child* "<" "/" ">"
    jsx_name: JSX_IDENT ("." JSX_IDENT)*
    ?jsx_attribute: JSX_IDENT ("=" jsx_value)?      -> jsx_attr
                  | "{" "..." expr "}"              -> jsx_spread
    ?jsx_value: STRING                              -> jsx_string
              | "{" expr "}"
              | jsx_element
              | jsx_fragment
    ?jsx_child: JSX_TEXT                            -> jsx_text
              | "{" expr? "}"                       -> jsx_expression
              | jsx_element
              | jsx_fragment

    // --- Terminals ---
    // Keywords must not match a prefix of a longer identifier
    DECL_KIND: /(?:const|let|var)(?![\w$])/
    _IMPORT: /import(?![\w$])/
    _FROM: /from(?![\w$])/
    _AS: /as(?![\w$])/
    _EXPORT: /export(?![\w$])/
    _DEFAULT: /default(?![\w$])/
    _FUNCTION: /function(?![\w$])/
    _RETURN: /return(?![\w$])/
    _IF: /if(?![\w$])/
    _ELSE: /else(?![\w$])/
    _FOR: /for(?![\w$])/
    _OF: /of(?![\w$])/
    _NEW: /new(?![\w$])/
    _TYPEOF: /typeof(?![\w$])/
    _TRUE: /true(?![\w$])/
    _FALSE: /false(?![\w$])/
    _NULL: /null(?![\w$])/
    _UNDEFINED: /undefined(?![\w$])/
    _THROW: /throw(?![\w$])/
    _WHILE: /while(?![\w$])/
    _TRY: /try(?![\w$])/
    _CATCH: /catch(?![\w$])/
    _FINALLY: /finally(?![\w$])/

    ASSIGN_OP: "=" | "+=" | "-=" | "*=" | "/=" | "%="
    INCDEC: "++" | "--"
    EQ_OP: "===" | "!==" | "==" | "!="
    REL_OP: "<=" | ">=" | "<" | ">"
    ADD_OP: "+" | "-"
    MUL_OP: "*" | "/" | "%"

    NAME: /(?!(?:as|await|break|case|catch|class|const|continue|debugger|default|delete|do|else|enum|export|extends|false|finally|for|from|function|if|import|in|instanceof|let|new|null|of|return|super|switch|this|throw|true|try|typeof|undefined|var|void|while|with|yield)\b)[A-Za-z_]\w*/
    PROP_NAME: /[A-Za-z_$][\w$]*/
    JSX_IDENT: /[A-Za-z_][\w-]*/
    JSX_TEXT: /[^<>{}\s][^<>{}]*/
    STRING: /"(?:[^"\\\n]|\\.)*"|'(?:[^'\\\n]|\\.)*'/
    TEMPLATE: /`(?:[^`\\]|\\.)*`/s
    NUMBER: /(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?/

    COMMENT: /\/\/[^\n]*/
    BLOCK_COMMENT: /\/\*[\s\S]*?\*\//

    %import common.WS
    %ignore WS
    %ignore COMMENT
    %ignore BLOCK_COMMENT
"""
