"""Abstract Syntax Tree (AST) definitions for the supported JavaScript subset.

The node classes mirror the ESTree shapes (the layout produced by most
JavaScript parsers) so that a tree loaded from ESTree JSON and a tree built by
our own parser look the same to the interpreter. Every node may carry a
source location; the interpreter uses it to report the current line.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Any


@dataclass(frozen=True)
class Loc:
    line: int
    column: int = 0


@dataclass
class Node:
    """Base class for all AST nodes."""

    @property
    def type(self) -> str:
        return type(self).__name__


@dataclass
class Program(Node):
    body: List[Node]
    loc: Optional[Loc] = None


@dataclass
class Identifier(Node):
    name: str
    loc: Optional[Loc] = None


@dataclass
class Literal(Node):
    value: Any  # float/int, str, bool, None (null) or UNDEFINED
    raw: str = ''
    loc: Optional[Loc] = None


@dataclass
class VariableDeclarator(Node):
    id: Identifier
    init: Optional[Node]
    loc: Optional[Loc] = None


@dataclass
class VariableDeclaration(Node):
    kind: str  # 'var', 'let' or 'const'
    declarations: List[VariableDeclarator]
    loc: Optional[Loc] = None


@dataclass
class BlockStatement(Node):
    body: List[Node]
    loc: Optional[Loc] = None


@dataclass
class FunctionDeclaration(Node):
    id: Identifier
    params: List[Identifier]
    body: BlockStatement
    loc: Optional[Loc] = None


@dataclass
class FunctionExpression(Node):
    id: Optional[Identifier]
    params: List[Identifier]
    body: BlockStatement
    loc: Optional[Loc] = None


@dataclass
class ArrowFunctionExpression(Node):
    params: List[Identifier]
    body: Node  # BlockStatement or a bare expression
    expression: bool = False
    loc: Optional[Loc] = None

    @property
    def id(self) -> None:
        return None


@dataclass
class ExpressionStatement(Node):
    expression: Node
    loc: Optional[Loc] = None


@dataclass
class EmptyStatement(Node):
    loc: Optional[Loc] = None


@dataclass
class IfStatement(Node):
    test: Node
    consequent: Node
    alternate: Optional[Node]
    loc: Optional[Loc] = None


@dataclass
class ForStatement(Node):
    init: Optional[Node]  # VariableDeclaration, expression or None
    test: Optional[Node]
    update: Optional[Node]
    body: Node
    loc: Optional[Loc] = None


@dataclass
class ReturnStatement(Node):
    argument: Optional[Node]
    loc: Optional[Loc] = None


@dataclass
class BinaryExpression(Node):
    operator: str
    left: Node
    right: Node
    loc: Optional[Loc] = None


@dataclass
class LogicalExpression(Node):
    operator: str  # '&&' or '||'
    left: Node
    right: Node
    loc: Optional[Loc] = None


@dataclass
class UnaryExpression(Node):
    operator: str
    argument: Node
    prefix: bool = True
    loc: Optional[Loc] = None


@dataclass
class UpdateExpression(Node):
    operator: str  # '++' or '--'
    argument: Node
    prefix: bool
    loc: Optional[Loc] = None


@dataclass
class AssignmentExpression(Node):
    operator: str  # '=', '+=', '-=', '*=', '/='
    left: Node  # Identifier or MemberExpression
    right: Node
    loc: Optional[Loc] = None


@dataclass
class CallExpression(Node):
    callee: Node
    arguments: List[Node] = field(default_factory=list)
    loc: Optional[Loc] = None


@dataclass
class MemberExpression(Node):
    object: Node
    property: Node  # Identifier when not computed
    computed: bool = False
    loc: Optional[Loc] = None


@dataclass
class ForLoopCheck(Node):
    """Synthetic marker queued after each loop iteration to re-test the condition."""
    original: ForStatement
    loc: Optional[Loc] = None


@dataclass
class OpaqueNode(Node):
    """A node of a kind this subset does not model, as loaded from external ESTree JSON."""
    kind: str
    loc: Optional[Loc] = None

    @property
    def type(self) -> str:
        return self.kind


FUNCTION_NODES = (FunctionDeclaration, FunctionExpression, ArrowFunctionExpression)


def is_function_node(value: Any) -> bool:
    return isinstance(value, FUNCTION_NODES)


def function_name(fn: Node) -> Optional[str]:
    ident = getattr(fn, 'id', None)
    return ident.name if isinstance(ident, Identifier) else None
