import json

import pytest

from jstepper import Interpreter
from jstepper.ast import Loc, OpaqueNode
from jstepper.ast_json import ast_from_obj, ast_to_obj
from jstepper.parser import parse_program


def test_emitted_json_is_estree_shaped():
    program = parse_program("const a = 5\nlet b")
    obj = ast_to_obj(program)
    decl = obj['body'][0]
    assert decl['type'] == 'VariableDeclaration'
    assert decl['kind'] == 'const'
    assert decl['loc'] == {'start': {'line': 1, 'column': 0}}
    assert decl['declarations'][0]['init'] == {
        'type': 'Literal', 'value': 5, 'raw': '5', 'loc': {'start': {'line': 1, 'column': 10}},
    }
    assert obj['body'][1]['declarations'][0]['init'] is None
    json.dumps(obj)


def test_reloaded_tree_equals_the_parsed_one():
    src = (
        "function f(x) {\n  return x === undefined\n}\n"
        "for (let i = 0; i < 2; i++) {\n  f(i)\n}\n"
        "const g = n => n * 2\n"
    )
    program = parse_program(src)
    assert ast_from_obj(json.loads(json.dumps(ast_to_obj(program)))) == program


def test_external_estree_input_runs():
    # the shape acorn produces with `locations: true`, trimmed
    data = {
        "type": "Program", "sourceType": "script", "start": 0, "end": 24,
        "body": [
            {
                "type": "VariableDeclaration", "kind": "let",
                "loc": {"start": {"line": 1, "column": 0}, "end": {"line": 1, "column": 10}},
                "declarations": [{
                    "type": "VariableDeclarator",
                    "id": {"type": "Identifier", "name": "a"},
                    "init": {"type": "Literal", "value": 2, "raw": "2"},
                }],
            },
            {
                "type": "ExpressionStatement",
                "loc": {"start": {"line": 2, "column": 0}},
                "expression": {
                    "type": "AssignmentExpression", "operator": "*=",
                    "left": {"type": "Identifier", "name": "a"},
                    "right": {"type": "Identifier", "name": "undefined"},
                },
            },
        ],
    }
    interp = Interpreter.from_ast(ast_from_obj(data))
    interp.step()
    assert interp.state.globals.values['a'] == 2
    interp.step()
    assert interp.state.current_line == 2
    assert interp.state.logs[-1] == 'Assigned a = null'


def test_unknown_node_types_load_as_placeholders():
    node = ast_from_obj({"type": "ClassDeclaration", "loc": {"start": {"line": 4, "column": 2}}})
    assert isinstance(node, OpaqueNode)
    assert node.type == 'ClassDeclaration'
    assert node.loc == Loc(4, 2)
    assert ast_to_obj(node) == {"type": "ClassDeclaration", "loc": {"start": {"line": 4, "column": 2}}}


def test_objects_without_a_type_are_rejected():
    with pytest.raises(ValueError, match='Not an AST node'):
        ast_from_obj({"foo": 1})
