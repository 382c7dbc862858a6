"""Parser for the supported JavaScript subset.

This module implements a two-stage parsing pipeline:

1. **Preprocessing**: comments are blanked out and a semicolon is inserted
   at each newline that logically terminates a statement, so the grammar
   can require semicolons everywhere. Newlines themselves are kept so that
   the line numbers reported by the parser match the original source.

2. **Parsing**: the preprocessed source is fed into a Lark LALR parser
   configured with a grammar for the subset. The resulting parse tree is
   transformed into the ESTree-shaped AST from :mod:`jstepper.ast`, with
   each node carrying its source location.

The `parse_program` function is the public entry point and returns a
`Program` AST node representing the entire source file.
"""

from __future__ import annotations

import re
from typing import List, Optional

from lark import Lark, Token, Transformer, v_args
from lark.exceptions import UnexpectedInput, VisitError

from .ast import (
    Program, Identifier, Literal, VariableDeclaration, VariableDeclarator,
    FunctionDeclaration, FunctionExpression, ArrowFunctionExpression,
    BlockStatement, ExpressionStatement, EmptyStatement, IfStatement,
    ForStatement, ReturnStatement, BinaryExpression, LogicalExpression,
    UnaryExpression, UpdateExpression, AssignmentExpression, CallExpression,
    MemberExpression, Loc, Node, FUNCTION_NODES,
)
from .errors import ConstructionError
from .types import UNDEFINED

# Characters after which a newline never ends a statement.
_CONTINUATION_CHARS = set(';{,([=+-*/%<>!&|?:.')
# Characters that, when they start the next line, continue the current statement.
_LEADING_CONTINUATION = set('{.,?:+-*/%<>=&|)]')
_CONTROL_KEYWORDS = ('if', 'for', 'while')

_ESCAPE = re.compile(r'\\(u\{([0-9A-Fa-f]+)\}|u([0-9A-Fa-f]{4})|x([0-9A-Fa-f]{2})|[ux]|.)', re.S)
_SIMPLE_ESCAPES = {'n': '\n', 't': '\t', 'r': '\r', 'b': '\b', 'f': '\f', 'v': '\v', '0': '\0'}


def _last_word(chars: List[str]) -> str:
    j = len(chars) - 1
    while j >= 0 and chars[j].isspace():
        j -= 1
    end = j + 1
    while j >= 0 and (chars[j].isalnum() or chars[j] in '_$'):
        j -= 1
    return ''.join(chars[j + 1:end])


def _tail(chars: List[str], n: int) -> str:
    """Return the last `n` characters before any trailing whitespace."""
    j = len(chars)
    while j > 0 and chars[j - 1].isspace():
        j -= 1
    return ''.join(chars[max(0, j - n):j])


def decode_string(raw: str, line: Optional[int] = None, column: Optional[int] = None) -> str:
    """Decode a quoted JavaScript string literal, escapes included."""

    def replace(match) -> str:
        code = match.group(2) or match.group(3) or match.group(4)
        if code is not None:
            point = int(code, 16)
            if point > 0x10FFFF:
                raise ConstructionError('Undefined Unicode code-point', line, column)
            return chr(point)
        ch = match.group(1)
        if ch in ('u', 'x'):
            raise ConstructionError('Invalid hexadecimal escape sequence', line, column)
        return _SIMPLE_ESCAPES.get(ch, ch)

    text = _ESCAPE.sub(replace, raw[1:-1])
    # surrogate pairs written as two \u escapes become one character
    return text.encode('utf-16-le', 'surrogatepass').decode('utf-16-le', 'surrogatepass')


def preprocess(source: str) -> str:
    """Insert semicolons at statement boundaries defined by newlines.

    Semicolons are optional in the accepted source. A newline ends a
    statement when the innermost open bracket is a brace (or there is
    none), the line does not end in an operator, the closing parenthesis
    of an ``if``/``for`` header, or the keyword ``else``, and the next line
    does not start with a token that continues the expression. A closing
    brace ends a statement only when it closes a function body.
    """
    result: List[str] = []
    stack: List[str] = []  # '(', '[', '{' and the control/function variants '(c', '{f'
    last_sig = ''  # last significant character copied to result
    closed_control = False  # last_sig is ')' closing an if/for/while header
    closed_function = False  # last_sig is '}' closing a function body
    i = 0
    length = len(source)

    def next_significant(pos: int) -> int:
        """Index of the next character that is not whitespace or comment."""
        while pos < length:
            c = source[pos]
            if c.isspace():
                pos += 1
                continue
            if source.startswith('//', pos):
                nl = source.find('\n', pos)
                if nl == -1:
                    return length
                pos = nl + 1
                continue
            if source.startswith('/*', pos):
                end = source.find('*/', pos + 2)
                if end == -1:
                    return length
                pos = end + 2
                continue
            return pos
        return length

    def ends_statement(pos: int) -> bool:
        if stack and stack[-1] not in ('{', '{f'):
            return False
        if not last_sig:
            return False
        if last_sig == '}':
            return closed_function
        if last_sig == ')' and closed_control:
            return False
        if last_sig in _CONTINUATION_CHARS:
            # `i++` and `i--` end a statement even though they end in an operator
            if last_sig not in '+-' or _tail(result, 2) != last_sig * 2:
                return False
        if _last_word(result) == 'else':
            return False
        nxt = next_significant(pos)
        # a line opening with `++` or `--` starts a new statement
        if source.startswith(('++', '--'), nxt):
            return True
        return source[nxt:nxt + 1] not in _LEADING_CONTINUATION

    while i < length:
        c = source[i]
        # Comments are blanked, newlines kept
        if source.startswith('//', i):
            while i < length and source[i] != '\n':
                result.append(' ')
                i += 1
            continue
        if source.startswith('/*', i):
            end = source.find('*/', i + 2)
            end = length if end == -1 else end + 2
            result.extend('\n' if ch == '\n' else ' ' for ch in source[i:end])
            i = end
            continue
        # Strings are copied verbatim
        if c in ('"', "'"):
            j = i + 1
            while j < length and source[j] != c and source[j] != '\n':
                j += 2 if source[j] == '\\' else 1
            j = min(j + 1, length)
            result.extend(source[i:j])
            last_sig, closed_control, closed_function = c, False, False
            i = j
            continue
        if c == '\n':
            if ends_statement(i + 1):
                result.append(';')
                last_sig, closed_control, closed_function = ';', False, False
            result.append(c)
            i += 1
            continue
        if c.isspace():
            result.append(c)
            i += 1
            continue
        after_control, after_function = closed_control, closed_function
        closed_control = closed_function = False
        if c == '}' and last_sig and last_sig not in ';{' and (last_sig != '}' or after_function):
            # the last statement of a one-line block needs its terminator too
            result.append(';')
        if c == '(':
            stack.append('(c' if _last_word(result) in _CONTROL_KEYWORDS else '(')
        elif c == '[':
            stack.append('[')
        elif c == '{':
            # a brace after `)` (outside a control header) or `=>` opens a function body
            opens_function = (last_sig == ')' and not after_control) or _tail(result, 2) == '=>'
            stack.append('{f' if opens_function else '{')
        elif c in ')]}':
            opener = stack.pop() if stack else ''
            closed_control = opener == '(c'
            closed_function = opener == '{f'
        result.append(c)
        last_sig = c
        i += 1
    if ends_statement(length):
        result.append(';')
    return ''.join(result)


JS_GRAMMAR = r"""
    ?start: program
    program: statement*

    // Statements
    ?statement: var_decl ";"
              | func_decl
              | if_stmt
              | for_stmt
              | return_stmt
              | block
              | expr_stmt
              | empty_stmt

    var_decl: var_kind declarator ("," declarator)*
    !var_kind: "var" | "let" | "const"
    declarator: IDENT ["=" value]

    func_decl: "function" IDENT "(" [params] ")" block
    params: IDENT ("," IDENT)*

    if_stmt: "if" "(" expression ")" statement ["else" statement]
    for_stmt: "for" "(" [for_init] ";" [expression] ";" [expression] ")" statement
    ?for_init: var_decl | expression
    return_stmt: "return" [value] ";"
    block: "{" statement* "}"
    expr_stmt: expression ";"
    empty_stmt: ";"

    // Function values may appear where a value is expected, never at statement start
    ?value: expression | function_expr | arrow_fn
    function_expr: "function" [IDENT] "(" [params] ")" block
    arrow_fn: "(" ")" "=>" arrow_body
            | "(" expression ("," expression)* ")" "=>" arrow_body
            | IDENT "=>" arrow_body
    ?arrow_body: block | value

    // Expressions with precedence
    ?expression: assign
    ?assign: logic_or
           | postfix assign_op value -> assignment
    !assign_op: "=" | "+=" | "-=" | "*=" | "/="
    !?logic_or: logic_and ("||" logic_and)*
    !?logic_and: equality ("&&" equality)*
    !?equality: compare (("===" | "!==" | "==" | "!=") compare)*
    !?compare: term (("<=" | ">=" | "<" | ">") term)*
    !?term: factor (("+" | "-") factor)*
    !?factor: unary (("*" | "/" | "%") unary)*
    !?unary: ("!" | "-" | "+" | "typeof") unary
           | ("++" | "--") unary -> prefix_update
           | update
    !?update: postfix ("++" | "--")?
    ?postfix: primary
            | postfix "." IDENT -> member
            | postfix "[" expression "]" -> index
            | postfix "(" [args] ")" -> call
    args: value ("," value)*
    ?primary: NUMBER -> number
            | STRING -> string
            | boolean
            | null_lit
            | undefined_lit
            | IDENT -> ident
            | "(" expression ")"
    !boolean: "true" | "false"
    !null_lit: "null"
    !undefined_lit: "undefined"

    // Tokens
    IDENT: /[A-Za-z_$][A-Za-z0-9_$]*/
    NUMBER: /(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?/
    STRING: /"(?:[^"\\\n]|\\.)*"|'(?:[^'\\\n]|\\.)*'/

    %import common.WS
    %ignore WS

    // Comments (normally blanked out by preprocess)
    LINE_COMMENT: /\/\/[^\n]*/
    %ignore LINE_COMMENT
    BLOCK_COMMENT: /\/\*[\s\S]*?\*\//
    %ignore BLOCK_COMMENT
"""


JS_PARSER = Lark(
    JS_GRAMMAR,
    parser='lalr',
    propagate_positions=True,
    maybe_placeholders=True,
)


def _loc(meta) -> Optional[Loc]:
    if getattr(meta, 'empty', True):
        return None
    return Loc(meta.line, meta.column - 1)


def _token_loc(token: Token) -> Loc:
    return Loc(token.line, token.column - 1)


def _ident(token: Token) -> Identifier:
    return Identifier(str(token), loc=_token_loc(token))


def _statements(items) -> List[Node]:
    return [item for item in items if not isinstance(item, EmptyStatement)]


def _binary(items, node_type=BinaryExpression):
    # items pattern: expr (op expr)*, folded left-associatively
    left = items[0]
    i = 1
    while i < len(items):
        op = str(items[i])
        right = items[i + 1]
        cls = LogicalExpression if op in ('&&', '||') else node_type
        left = cls(op, left, right, loc=getattr(left, 'loc', None))
        i += 2
    return left


@v_args(meta=True)
class ASTTransformer(Transformer):
    """Transforms the raw parse tree into an AST."""

    def program(self, meta, items):
        return Program(body=_statements(items), loc=_loc(meta) or Loc(1, 0))

    def var_kind(self, meta, items):
        return str(items[0])

    def var_decl(self, meta, items):
        return VariableDeclaration(kind=items[0], declarations=list(items[1:]), loc=_loc(meta))

    def declarator(self, meta, items):
        return VariableDeclarator(id=_ident(items[0]), init=items[1], loc=_loc(meta))

    def params(self, meta, items):
        return [_ident(token) for token in items]

    def func_decl(self, meta, items):
        name, params, body = items
        return FunctionDeclaration(id=_ident(name), params=params or [], body=body, loc=_loc(meta))

    def function_expr(self, meta, items):
        name, params, body = items
        return FunctionExpression(
            id=_ident(name) if name is not None else None,
            params=params or [], body=body, loc=_loc(meta))

    def arrow_fn(self, meta, items):
        *params, body = items
        idents = []
        for param in params:
            if isinstance(param, Token):
                idents.append(_ident(param))
            elif isinstance(param, Identifier):
                idents.append(param)
            else:
                line = getattr(getattr(param, 'loc', None), 'line', None)
                raise ConstructionError('Invalid arrow function parameter', line)
        return ArrowFunctionExpression(
            params=idents, body=body,
            expression=not isinstance(body, BlockStatement), loc=_loc(meta))

    def block(self, meta, items):
        return BlockStatement(body=_statements(items), loc=_loc(meta))

    def if_stmt(self, meta, items):
        test, consequent, alternate = items
        return IfStatement(test, consequent, alternate, loc=_loc(meta))

    def for_stmt(self, meta, items):
        init, test, update, body = items
        return ForStatement(init, test, update, body, loc=_loc(meta))

    def return_stmt(self, meta, items):
        return ReturnStatement(argument=items[0], loc=_loc(meta))

    def expr_stmt(self, meta, items):
        return ExpressionStatement(expression=items[0], loc=_loc(meta))

    def empty_stmt(self, meta, items):
        return EmptyStatement(loc=_loc(meta))

    # Expressions
    def assign_op(self, meta, items):
        return str(items[0])

    def assignment(self, meta, items):
        target, op, value = items
        if not isinstance(target, (Identifier, MemberExpression)):
            raise ConstructionError('Invalid left-hand side in assignment', *_line_col(meta))
        return AssignmentExpression(op, target, value, loc=_loc(meta))

    def logic_or(self, meta, items):
        return _binary(items)

    def logic_and(self, meta, items):
        return _binary(items)

    def equality(self, meta, items):
        return _binary(items)

    def compare(self, meta, items):
        return _binary(items)

    def term(self, meta, items):
        return _binary(items)

    def factor(self, meta, items):
        return _binary(items)

    def unary(self, meta, items):
        op, operand = items
        return UnaryExpression(str(op), operand, prefix=True, loc=_loc(meta))

    def prefix_update(self, meta, items):
        op, operand = items
        if not isinstance(operand, Identifier):
            raise ConstructionError('Invalid left-hand side expression in prefix operation', *_line_col(meta))
        return UpdateExpression(str(op), operand, prefix=True, loc=_loc(meta))

    def update(self, meta, items):
        operand, op = items
        if not isinstance(operand, Identifier):
            raise ConstructionError('Invalid left-hand side expression in postfix operation', *_line_col(meta))
        return UpdateExpression(str(op), operand, prefix=False, loc=_loc(meta))

    def member(self, meta, items):
        target, name = items
        return MemberExpression(target, _ident(name), computed=False, loc=_loc(meta))

    def index(self, meta, items):
        target, key = items
        return MemberExpression(target, key, computed=True, loc=_loc(meta))

    def call(self, meta, items):
        callee, args = items
        return CallExpression(callee, args or [], loc=_loc(meta))

    def args(self, meta, items):
        return list(items)

    def number(self, meta, items):
        raw = str(items[0])
        if any(ch in raw for ch in '.eE'):
            value = float(raw)
        else:
            value = int(raw)
        return Literal(value, raw, loc=_loc(meta))

    def string(self, meta, items):
        raw = str(items[0])
        line, column = _line_col(meta)
        return Literal(decode_string(raw, line, column), raw, loc=_loc(meta))

    def boolean(self, meta, items):
        raw = str(items[0])
        return Literal(raw == 'true', raw, loc=_loc(meta))

    def null_lit(self, meta, items):
        return Literal(None, 'null', loc=_loc(meta))

    def undefined_lit(self, meta, items):
        return Literal(UNDEFINED, 'undefined', loc=_loc(meta))

    def ident(self, meta, items):
        return _ident(items[0])


def _line_col(meta):
    if getattr(meta, 'empty', True):
        return None, None
    return meta.line, meta.column


def check_returns(nodes: List[Node]) -> None:
    """Reject `return` statements that are not inside a function body."""
    for node in nodes:
        if isinstance(node, ReturnStatement):
            loc = node.loc
            raise ConstructionError('Illegal return statement',
                                    loc.line if loc else None, loc.column + 1 if loc else None)
        if isinstance(node, FUNCTION_NODES):
            continue
        if isinstance(node, BlockStatement):
            check_returns(node.body)
        elif isinstance(node, IfStatement):
            check_returns([n for n in (node.consequent, node.alternate) if n is not None])
        elif isinstance(node, ForStatement):
            check_returns([node.body])


def parse_program(source: str) -> Program:
    """Parse JavaScript source code into an AST Program.

    The source is first preprocessed to normalize statement terminators.
    Syntax errors are raised as `ConstructionError` with the offending
    line and column.
    """
    pre = preprocess(source)
    try:
        tree = JS_PARSER.parse(pre)
        program = ASTTransformer().transform(tree)
    except UnexpectedInput as e:
        line = e.line if getattr(e, 'line', -1) and e.line > 0 else None
        column = e.column if line is not None else None
        message = str(e).strip().splitlines()[0]
        raise ConstructionError(message, line, column) from e
    except VisitError as e:
        if isinstance(e.orig_exc, ConstructionError):
            raise e.orig_exc from None
        line, column = _line_col(getattr(e.obj, 'meta', None))
        raise ConstructionError(f"{type(e.orig_exc).__name__}: {e.orig_exc}", line, column) from e
    check_returns(program.body)
    return program
