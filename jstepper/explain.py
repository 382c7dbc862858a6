"""Plain-English descriptions of pending statements.

`explain` looks only at the shape of a node; it never evaluates anything,
so it can describe a step before the step runs. Calls that learners meet
first (DOM lookups, dialogs, ``console.log``, listener registration and
calls to their own functions) get a sentence of their own; everything else
is described generically.
"""

import json
import logging
from typing import Any, List, Optional

from .ast import (
    Node, Program, Identifier, Literal, VariableDeclaration, FunctionDeclaration,
    FunctionExpression, ArrowFunctionExpression, ExpressionStatement, EmptyStatement,
    IfStatement, ForStatement, ForLoopCheck, ReturnStatement, BlockStatement,
    BinaryExpression, LogicalExpression, UnaryExpression, UpdateExpression,
    AssignmentExpression, CallExpression, MemberExpression,
)
from .types import UNDEFINED, format_number

logger = logging.getLogger(__name__)

_COMPOUND_VERBS = {
    '+=': 'Add {value} to {target}',
    '-=': 'Subtract {value} from {target}',
    '*=': 'Multiply {target} by {value}',
    '/=': 'Divide {target} by {value}',
}


def _literal(node: Literal) -> str:
    if node.raw:
        return node.raw
    value = node.value
    if value is None:
        return 'null'
    if value is UNDEFINED:
        return 'undefined'
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, str):
        return json.dumps(value, ensure_ascii=False)
    return format_number(value)


def _params(fn) -> str:
    return ', '.join(getattr(p, 'name', '?') for p in (getattr(fn, 'params', None) or []))


_PRECEDENCE = {
    '||': 2, '&&': 3,
    '==': 4, '!=': 4, '===': 4, '!==': 4,
    '<': 5, '>': 5, '<=': 5, '>=': 5,
    '+': 6, '-': 6,
    '*': 7, '/': 7, '%': 7,
}
_UNARY, _POSTFIX, _MEMBER, _ATOM = 8, 9, 10, 11


def _precedence(node: Any) -> int:
    if isinstance(node, (AssignmentExpression, ArrowFunctionExpression)):
        return 1
    if isinstance(node, (BinaryExpression, LogicalExpression)):
        return _PRECEDENCE.get(node.operator, _ATOM)
    if isinstance(node, UnaryExpression):
        return _UNARY
    if isinstance(node, UpdateExpression):
        return _UNARY if node.prefix else _POSTFIX
    if isinstance(node, (CallExpression, MemberExpression)):
        return _MEMBER
    return _ATOM


def _operand(node: Any, parent: int, tight: bool = False) -> str:
    """Describe ``node`` as an operand, in parentheses when it binds looser than its parent."""
    text = describe(node)
    prec = _precedence(node)
    if prec < parent or (tight and prec == parent):
        return f"({text})"
    return text


def describe(node: Any) -> str:
    """Render an expression roughly as it was written."""
    if node is None:
        return ''
    if isinstance(node, Literal):
        return _literal(node)
    if isinstance(node, Identifier):
        return node.name
    if isinstance(node, (BinaryExpression, LogicalExpression)):
        prec = _precedence(node)
        # operators are left-associative: a right operand of equal rank keeps its parentheses
        return f"{_operand(node.left, prec)} {node.operator} {_operand(node.right, prec, tight=True)}"
    if isinstance(node, UnaryExpression):
        sep = ' ' if node.operator.isalpha() else ''
        return f"{node.operator}{sep}{_operand(node.argument, _UNARY)}"
    if isinstance(node, UpdateExpression):
        arg = _operand(node.argument, _POSTFIX)
        return f"{node.operator}{arg}" if node.prefix else f"{arg}{node.operator}"
    if isinstance(node, AssignmentExpression):
        return f"{describe(node.left)} {node.operator} {describe(node.right)}"
    if isinstance(node, CallExpression):
        args = ', '.join(describe(a) for a in node.arguments)
        return f"{_operand(node.callee, _MEMBER)}({args})"
    if isinstance(node, MemberExpression):
        obj = _operand(node.object, _MEMBER)
        if node.computed:
            return f"{obj}[{describe(node.property)}]"
        return f"{obj}.{describe(node.property)}"
    if isinstance(node, ArrowFunctionExpression):
        return f"({_params(node)}) => ..."
    if isinstance(node, (FunctionExpression, FunctionDeclaration)):
        name = node.id.name if node.id is not None else ''
        return f"function {name}({_params(node)}) {{...}}".replace('function (', 'function(')
    if isinstance(node, VariableDeclaration):
        parts = []
        for decl in node.declarations:
            init = f" = {describe(decl.init)}" if decl.init is not None else ''
            parts.append(f"{decl.id.name}{init}")
        return f"{node.kind} {', '.join(parts)}"
    return getattr(node, 'type', type(node).__name__)


def _callee_parts(callee: Node) -> List[str]:
    """``document.getElementById`` -> ['document', 'getElementById']; empty when not a plain chain."""
    if isinstance(callee, Identifier):
        return [callee.name]
    if isinstance(callee, MemberExpression) and not callee.computed and isinstance(callee.property, Identifier):
        head = _callee_parts(callee.object)
        return head + [callee.property.name] if head else []
    return []


def _first_arg(call: CallExpression) -> str:
    return describe(call.arguments[0]) if call.arguments else ''


def explain_call(call: CallExpression) -> Optional[str]:
    """A friendly sentence for a recognised call pattern, or None."""
    parts = _callee_parts(call.callee)
    if not parts:
        return None
    method = parts[-1]
    args = ', '.join(describe(a) for a in call.arguments)
    if parts[:1] == ['document'] and len(parts) == 2:
        if method == 'getElementById':
            return f"Look up the element with id {_first_arg(call)} in the page"
        if method == 'querySelector':
            return f"Find the first element matching {_first_arg(call)}"
        if method == 'querySelectorAll':
            return f"Find every element matching {_first_arg(call)}"
    if parts[:1] == ['console'] and len(parts) == 2:
        return f"Print {args or 'an empty line'} to the console"
    if method == 'addEventListener' and len(parts) > 1:
        target = '.'.join(parts[:-1])
        event = _first_arg(call) or 'an event'
        return f"Tell {target} to run a function when the {event} event happens"
    if len(parts) == 1:
        if method == 'prompt':
            return f"Ask the user a question: {args}" if args else "Ask the user for input"
        if method == 'alert':
            return f"Show a pop-up message: {args}"
        if method in ('parseFloat', 'parseInt'):
            kind = 'decimal number' if method == 'parseFloat' else 'whole number'
            return f"Convert {_first_arg(call)} to a {kind}"
        if method == 'isNaN':
            return f"Check whether {_first_arg(call)} is not a number"
        return f"Call the function {method}({args})"
    return None


def _explain_expression(expr: Node) -> str:
    if isinstance(expr, CallExpression):
        return explain_call(expr) or f"Call {describe(expr)}"
    if isinstance(expr, AssignmentExpression):
        target, value = describe(expr.left), describe(expr.right)
        if isinstance(expr.right, CallExpression):
            phrase = explain_call(expr.right)
            if phrase and expr.operator == '=':
                return f"{phrase}, then store the result in {target}"
        template = _COMPOUND_VERBS.get(expr.operator)
        if template:
            return template.format(target=target, value=value)
        return f"Set {target} to {value}"
    if isinstance(expr, UpdateExpression):
        verb = 'Increase' if expr.operator == '++' else 'Decrease'
        return f"{verb} {describe(expr.argument)} by 1"
    return f"Evaluate {describe(expr)}"


def _explain(node: Node) -> str:
    if isinstance(node, VariableDeclaration):
        sentences = []
        for decl in node.declarations:
            name = decl.id.name
            init = decl.init
            if init is None:
                sentences.append(f"Create {node.kind} variable {name} with no value yet")
            elif isinstance(init, CallExpression) and explain_call(init):
                sentences.append(f"{explain_call(init)}, then store the result in {name}")
            elif isinstance(init, (FunctionExpression, ArrowFunctionExpression)):
                sentences.append(f"Store a function taking ({_params(init)}) in {name}")
            else:
                sentences.append(f"Create {node.kind} variable {name} and set it to {describe(init)}")
        return '; '.join(sentences)
    if isinstance(node, FunctionDeclaration):
        return f"Define the function {node.id.name}({_params(node)})"
    if isinstance(node, ExpressionStatement):
        return _explain_expression(node.expression)
    if isinstance(node, IfStatement):
        return f"Check whether {describe(node.test)}"
    if isinstance(node, ForStatement):
        init = describe(node.init)
        test = describe(node.test) or 'forever'
        return f"Start a for loop: {init + ', then ' if init else ''}repeat while {test}"
    if isinstance(node, ForLoopCheck):
        test = describe(node.original.test)
        return f"Check the loop condition {test}" if test else "Go around the loop again"
    if isinstance(node, ReturnStatement):
        if node.argument is None:
            return "Leave the function"
        return f"Return {describe(node.argument)} from the function"
    if isinstance(node, BlockStatement):
        return "Enter a block of statements"
    if isinstance(node, Program):
        return "Start the program"
    if isinstance(node, EmptyStatement):
        return "Nothing to do here"
    return f"Execute {getattr(node, 'type', type(node).__name__)}"


def explain(node: Any) -> str:
    """Describe what running ``node`` will do. Never raises."""
    try:
        return _explain(node)
    except Exception:
        # partially built or foreign nodes still get a description
        logger.debug('could not explain %r', node, exc_info=True)
        return f"Execute {getattr(node, 'type', type(node).__name__)}"
