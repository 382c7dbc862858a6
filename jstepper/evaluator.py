"""Expression evaluation.

Expressions are evaluated eagerly and recursively; only statements go
through the frame queues. The one exception is a call to an interpreted
function: it pushes a frame and yields ``undefined`` at the call site, the
function's return value reaching the caller only through the frame's
``on_return`` callback.
"""

from __future__ import annotations

import logging
import math
from typing import Any, List

from .ast import (
    Node, Identifier, Literal, BinaryExpression, LogicalExpression, UnaryExpression,
    UpdateExpression, AssignmentExpression, CallExpression, MemberExpression,
    FunctionExpression, ArrowFunctionExpression, FunctionDeclaration, is_function_node,
)
from .bridge import HostObject
from .environment import Environment
from .errors import ScriptError, reference_error, type_error
from .types import (
    UNDEFINED, is_number, is_truthy, to_number, to_string, stringify,
    strict_equals, loose_equals, type_of,
)

logger = logging.getLogger(__name__)


def _arith(op: str, left: Any, right: Any) -> Any:
    if op == '+':
        if isinstance(left, str) or isinstance(right, str):
            return to_string(left) + to_string(right)
    if not (is_number(left) and is_number(right)):
        left, right = to_number(left), to_number(right)
    if op == '+':
        return left + right
    if op == '-':
        return left - right
    if op == '*':
        return left * right
    if op == '/':
        if right == 0:
            if left == 0 or math.isnan(left):
                return math.nan
            return math.inf if (left > 0) == (math.copysign(1, right) > 0) else -math.inf
        result = left / right
        if isinstance(result, float) and result.is_integer() and isinstance(left, int) and isinstance(right, int):
            return int(result)
        return result
    if op == '%':
        if right == 0 or math.isinf(left) or math.isnan(left) or math.isnan(right):
            return math.nan
        if math.isinf(right):
            return left
        result = math.fmod(left, right)
        return int(result) if isinstance(left, int) and isinstance(right, int) else result
    raise type_error(f"Unsupported operator '{op}'")


def _compare(op: str, left: Any, right: Any) -> bool:
    if not (isinstance(left, str) and isinstance(right, str)):
        left, right = to_number(left), to_number(right)
        if math.isnan(left) or math.isnan(right):
            return False
    if op == '<':
        return left < right
    if op == '>':
        return left > right
    if op == '<=':
        return left <= right
    return left >= right


def apply_binary(op: str, left: Any, right: Any) -> Any:
    if op in ('+', '-', '*', '/', '%'):
        return _arith(op, left, right)
    if op == '===':
        return strict_equals(left, right)
    if op == '!==':
        return not strict_equals(left, right)
    if op == '==':
        return loose_equals(left, right)
    if op == '!=':
        return not loose_equals(left, right)
    if op in ('<', '>', '<=', '>='):
        return _compare(op, left, right)
    raise type_error(f"Unsupported operator '{op}'")


class Evaluator:
    def __init__(self, interpreter):
        self.interp = interpreter

    @property
    def globals(self) -> Environment:
        return self.interp.state.globals

    # -- identifiers -------------------------------------------------------
    def lookup(self, name: str, env: Environment) -> Any:
        """Resolve a free identifier: local scope, global scope, then the host bridge."""
        if name in env:
            return env.get(name)
        if name in self.globals:
            return self.globals.get(name)
        found, value = self.interp.bridge.lookup(name)
        if found:
            return value
        raise reference_error(name)

    def owning_env(self, name: str, env: Environment) -> Environment:
        if name in env:
            return env
        return self.globals

    def assign_name(self, name: str, value: Any, env: Environment):
        target = self.owning_env(name, env)
        target.set(name, value)
        target.refresh_label(name)

    # -- members -----------------------------------------------------------
    def get_member(self, obj: Any, key: Any) -> Any:
        if obj is None or obj is UNDEFINED:
            raise type_error(f"Cannot read properties of {to_string(obj)} (reading '{to_string(key)}')")
        if isinstance(obj, HostObject):
            return obj.get_member(to_string(key))
        if isinstance(obj, (str, list, tuple)):
            if key == 'length':
                return len(obj)
            if is_number(key) or (isinstance(key, str) and key.isdigit()):
                index = int(to_number(key))
                return obj[index] if 0 <= index < len(obj) else UNDEFINED
            return UNDEFINED
        if isinstance(obj, dict):
            return obj.get(to_string(key), UNDEFINED)
        # numbers, booleans and functions carry no readable properties
        return UNDEFINED

    def set_member(self, obj: Any, key: Any, value: Any):
        if obj is None or obj is UNDEFINED:
            raise type_error(f"Cannot set properties of {to_string(obj)} (setting '{to_string(key)}')")
        if isinstance(obj, HostObject):
            obj.set_member(to_string(key), value)
        elif isinstance(obj, dict):
            obj[to_string(key)] = value
        elif isinstance(obj, list) and is_number(key):
            index = int(key)
            while len(obj) <= index:
                obj.append(UNDEFINED)
            obj[index] = value
        else:
            raise type_error(f"Cannot set property '{to_string(key)}' of {type_of(obj)}")

    def member_key(self, node: MemberExpression, env: Environment) -> Any:
        if node.computed:
            return self.evaluate(node.property, env)
        return node.property.name

    # -- dispatch ----------------------------------------------------------
    def evaluate(self, node: Node, env: Environment) -> Any:
        if node is None:
            return UNDEFINED
        if isinstance(node, Literal):
            return node.value
        if isinstance(node, Identifier):
            return self.lookup(node.name, env)
        if isinstance(node, BinaryExpression):
            left = self.evaluate(node.left, env)
            right = self.evaluate(node.right, env)
            return apply_binary(node.operator, left, right)
        if isinstance(node, LogicalExpression):
            left = self.evaluate(node.left, env)
            if node.operator == '&&':
                return self.evaluate(node.right, env) if is_truthy(left) else left
            return left if is_truthy(left) else self.evaluate(node.right, env)
        if isinstance(node, UnaryExpression):
            return self.eval_unary(node, env)
        if isinstance(node, UpdateExpression):
            return self.eval_update(node, env)
        if isinstance(node, AssignmentExpression):
            return self.eval_assignment(node, env)
        if isinstance(node, CallExpression):
            return self.eval_call(node, env)
        if isinstance(node, MemberExpression):
            obj = self.evaluate(node.object, env)
            return self.get_member(obj, self.member_key(node, env))
        if isinstance(node, (FunctionExpression, ArrowFunctionExpression, FunctionDeclaration)):
            return node
        logger.warning('unsupported expression %s, evaluating to undefined', node.type)
        return UNDEFINED

    def eval_unary(self, node: UnaryExpression, env: Environment) -> Any:
        op = node.operator
        if op == 'typeof':
            # typeof never throws on an undeclared name
            if isinstance(node.argument, Identifier):
                try:
                    return type_of(self.evaluate(node.argument, env))
                except ScriptError as exc:
                    if exc.err.name != 'ReferenceError':
                        raise
                    return 'undefined'
            return type_of(self.evaluate(node.argument, env))
        value = self.evaluate(node.argument, env)
        if op == '!':
            return not is_truthy(value)
        if op == '-':
            return -to_number(value)
        if op == '+':
            return to_number(value)
        raise type_error(f"Unsupported unary operator '{op}'")

    def eval_update(self, node: UpdateExpression, env: Environment) -> Any:
        target = node.argument
        if not isinstance(target, Identifier):
            raise type_error('Invalid left-hand side expression in update operation')
        owner = self.owning_env(target.name, env)
        if target.name not in owner:
            raise reference_error(target.name)
        old = to_number(owner.get(target.name))
        new = old + 1 if node.operator == '++' else old - 1
        owner.set(target.name, new)
        if self.interp.debug_level >= 2:
            self.interp.debug(f"update {target.name}: {stringify(old)} -> {stringify(new)}")
        return new if node.prefix else old

    def eval_assignment(self, node: AssignmentExpression, env: Environment) -> Any:
        value = self.evaluate(node.right, env)
        if node.operator != '=':
            current = self.evaluate(node.left, env)
            value = apply_binary(node.operator[:-1], current, value)
        left = node.left
        if isinstance(left, MemberExpression):
            obj = self.evaluate(left.object, env)
            key = self.member_key(left, env)
            self.set_member(obj, key, value)
            self.interp.log(f"Set {to_string(key)} = {stringify(value)}")
            return value
        if isinstance(left, Identifier):
            self.assign_name(left.name, value, env)
            self.interp.log(f"Assigned {left.name} = {stringify(value)}")
            return value
        raise type_error('Invalid left-hand side in assignment')

    def eval_call(self, node: CallExpression, env: Environment) -> Any:
        callee = self.evaluate(node.callee, env)
        args: List[Any] = [self.evaluate(arg, env) for arg in node.arguments]
        if is_function_node(callee):
            self.interp.call_function(callee, args)
            return UNDEFINED
        if callable(callee):
            return callee(*args)
        raise type_error(f"{_callee_text(node.callee)} is not a function")


def _callee_text(node: Node) -> str:
    if isinstance(node, Identifier):
        return node.name
    if isinstance(node, MemberExpression) and not node.computed:
        return f"{_callee_text(node.object)}.{node.property.name}"
    return 'expression'
