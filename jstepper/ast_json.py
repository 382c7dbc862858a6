"""JSON serialization/deserialization for the AST.

Nodes are written in ESTree shape: a ``type`` key naming the node kind,
one key per child using the ESTree field names, and
``loc: {"start": {"line", "column"}}``. Reading accepts the same shape, so
trees emitted by other ESTree tools (for example ``acorn`` with
``locations: true``) can be loaded too. Keys we do not model are ignored, and
node kinds we do not model load as `OpaqueNode` placeholders.
"""

from __future__ import annotations

import dataclasses
from typing import Any, Dict, Optional

from . import ast as ast_nodes
from .ast import Loc, Node, Literal, OpaqueNode
from .types import UNDEFINED

NODE_TYPES: Dict[str, type] = {
    cls.__name__: cls
    for cls in vars(ast_nodes).values()
    if isinstance(cls, type) and issubclass(cls, Node) and cls not in (Node, OpaqueNode)
}


def loc_to_obj(loc: Optional[Loc]) -> Optional[Dict[str, Any]]:
    if loc is None:
        return None
    return {"start": {"line": loc.line, "column": loc.column}}


def loc_from_obj(o: Optional[Dict[str, Any]]) -> Optional[Loc]:
    if not o:
        return None
    start = o.get("start", o)
    return Loc(int(start["line"]), int(start.get("column", 0)))


def ast_to_obj(node: Any) -> Any:
    # Primitives
    if node is None or isinstance(node, (int, float, str, bool)):
        return node
    if isinstance(node, list):
        return [ast_to_obj(n) for n in node]

    # `undefined` is an identifier in ESTree
    if isinstance(node, Literal) and node.value is UNDEFINED:
        return {"type": "Identifier", "name": "undefined", "loc": loc_to_obj(node.loc)}

    if isinstance(node, OpaqueNode):
        return {"type": node.kind, "loc": loc_to_obj(node.loc)}

    if isinstance(node, Node):
        obj: Dict[str, Any] = {"type": node.type}
        for f in dataclasses.fields(node):
            value = getattr(node, f.name)
            obj[f.name] = loc_to_obj(value) if f.name == 'loc' else ast_to_obj(value)
        return obj
    raise TypeError(f"Cannot serialize object of type {type(node).__name__}")


def ast_from_obj(o: Any) -> Any:
    if o is None or isinstance(o, (int, float, str, bool)):
        return o
    if isinstance(o, list):
        return [ast_from_obj(x) for x in o]
    if not isinstance(o, dict) or "type" not in o:
        raise ValueError(f"Not an AST node: {o!r}")

    kind = o["type"]
    if kind == "Identifier" and o.get("name") == "undefined":
        return Literal(UNDEFINED, "undefined", loc=loc_from_obj(o.get("loc")))
    cls = NODE_TYPES.get(kind)
    if cls is None:
        # kept as a placeholder; running it is a no-op step
        return OpaqueNode(str(kind), loc=loc_from_obj(o.get("loc")))

    kwargs: Dict[str, Any] = {}
    for f in dataclasses.fields(cls):
        if f.name not in o:
            continue
        value = o[f.name]
        kwargs[f.name] = loc_from_obj(value) if f.name == 'loc' else ast_from_obj(value)
    if cls is Literal and "raw" not in kwargs:
        kwargs["raw"] = ""
    return cls(**kwargs)
