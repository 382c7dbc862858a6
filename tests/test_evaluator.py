import math

import pytest

from jstepper import Interpreter
from jstepper.evaluator import apply_binary
from jstepper.types import UNDEFINED


def final(src, name):
    interp = Interpreter(src)
    interp.run()
    assert interp.state.error is None, interp.state.error
    return interp.state.globals.values[name]


@pytest.mark.parametrize('src, expected', [
    ("r = 1 + 2", 3),
    ("r = 'a' + 1", 'a1'),
    ("r = 1 + '2'", '12'),
    ("r = 2.5 + true", 3.5),
    ("r = 7 - '2'", 5),
    ("r = 6 / 3", 2),
    ("r = 7 / 2", 3.5),
    ("r = 7 % 3", 1),
    ("r = -7 % 3", -1),
    ("r = 2 * 3 + 4", 10),
    ("r = 'b' > 'a'", True),
    ("r = '10' < 9", False),
    ("r = null == undefined", True),
    ("r = null === undefined", False),
    ("r = 1 === 1.0", True),
    ("r = 1 == true", True),
    ("r = 1 === true", False),
    ("r = 'x' != 'y'", True),
    ("r = 0 || 'fallback'", 'fallback'),
    ("r = 'first' && 'second'", 'second'),
    ("r = !''", True),
    ("r = -'3'", -3),
    ("r = typeof 'a'", 'string'),
    ("r = typeof notDeclared", 'undefined'),
    ("r = typeof null", 'object'),
    ("r = 'hello'.length", 5),
    ("r = 'hello'[1]", 'e'),
])
def test_expressions(src, expected):
    assert final(src, 'r') == expected


def test_division_by_zero():
    assert final("r = 1 / 0", 'r') == math.inf
    assert final("r = -1 / 0", 'r') == -math.inf
    assert math.isnan(final("r = 0 / 0", 'r'))


def test_typeof_function_values():
    src = "function f() {\n}\nconst g = () => 1\na = typeof f\nb = typeof g\nc = typeof parseInt"
    interp = Interpreter(src)
    interp.run()
    values = interp.state.globals.values
    assert (values['a'], values['b'], values['c']) == ('function', 'function', 'function')


def test_logical_operators_short_circuit():
    interp = Interpreter("r = false && explode()\ns = true || explode()")
    interp.run()
    assert interp.state.error is None
    assert interp.state.globals.values['r'] is False
    assert interp.state.globals.values['s'] is True


def test_update_expression_prefix_and_postfix():
    interp = Interpreter("let i = 5\na = i++\nb = ++i\nc = i--")
    interp.run()
    values = interp.state.globals.values
    assert (values['a'], values['b'], values['c'], values['i']) == (5, 7, 7, 6)


def test_update_of_undeclared_name_is_a_reference_error():
    interp = Interpreter("ghost++")
    interp.run()
    assert interp.state.error == 'ReferenceError: ghost is not defined'


def test_compound_assignment_forms():
    interp = Interpreter("let a = 10\na -= 4\na *= 3\na /= 2\nlet s = 'x'\ns += 1")
    interp.run()
    assert interp.state.globals.values['a'] == 9
    assert interp.state.globals.values['s'] == 'x1'
    assert 'Assigned a = 9' in interp.state.logs


def test_reading_a_property_of_undefined():
    interp = Interpreter("let u\nr = u.size")
    interp.run()
    assert interp.state.error == "TypeError: Cannot read properties of undefined (reading 'size')"


def test_function_literal_evaluates_to_its_node():
    interp = Interpreter("const f = function named() {\n}\nconst g = f")
    interp.run()
    values = interp.state.globals.values
    assert values['f'] is values['g']
    assert values['f'].type == 'FunctionExpression'


def test_apply_binary_directly():
    assert apply_binary('+', UNDEFINED, 1) != apply_binary('+', UNDEFINED, 1)  # NaN
    assert apply_binary('<', 'a', 'b') is True
    assert apply_binary('<', UNDEFINED, 1) is False
    with pytest.raises(Exception):
        apply_binary('**', 2, 3)


def test_python_attributes_of_plain_values_are_hidden():
    src = "let n = 5\na = n.real\nb = true.numerator\nc = parseInt.fn\nd = typeof n.conjugate"
    interp = Interpreter(src)
    interp.run()
    assert interp.state.error is None
    values = interp.state.globals.values
    assert values['a'] is UNDEFINED
    assert values['b'] is UNDEFINED
    assert values['c'] is UNDEFINED
    assert values['d'] == 'undefined'
