import math

from jstepper.types import (
    UNDEFINED, format_log_args, is_nan, is_truthy, parse_float, parse_int, stringify,
    to_number, to_string, type_of,
)


def test_to_string():
    assert to_string(None) == 'null'
    assert to_string(UNDEFINED) == 'undefined'
    assert to_string(True) == 'true'
    assert to_string(3.0) == '3'
    assert to_string(0.5) == '0.5'
    assert to_string(math.inf) == 'Infinity'
    assert to_string(math.nan) == 'NaN'
    assert to_string({'a': 1}) == '[object Object]'


def test_to_number():
    assert to_number('  12 ') == 12
    assert to_number('') == 0
    assert to_number('0x1f') == 31
    assert to_number('1e3') == 1000
    assert to_number('-Infinity') == -math.inf
    assert math.isnan(to_number('12abc'))
    assert math.isnan(to_number('nan'))
    assert math.isnan(to_number(UNDEFINED))
    assert to_number(None) == 0
    assert to_number(False) == 0


def test_parse_helpers():
    assert parse_float('.5e1x') == 5
    assert parse_float('-Infinity!') == -math.inf
    assert math.isnan(parse_float('abc'))
    assert parse_int('  -17.9') == -17
    assert parse_int('0x1A', 16) == 26
    assert parse_int('101', 2) == 5
    assert math.isnan(parse_int(''))
    assert parse_int('0x1A') == 26
    assert parse_int('0x1A', 10) == 0
    assert parse_int('12', 'abc') == 12


def test_truthiness():
    falsy = [0, 0.0, '', None, UNDEFINED, False, math.nan]
    assert not any(is_truthy(v) for v in falsy)
    assert all(is_truthy(v) for v in ['0', 'false', 1, -1, {}, []])


def test_stringify_matches_json_rendering():
    assert stringify('say "hi"') == '"say \\"hi\\""'
    assert stringify(math.nan) == 'null'
    assert stringify(UNDEFINED) == 'undefined'
    assert stringify([1, 'a', None, UNDEFINED]) == '[1,"a",null,null]'
    assert stringify({'type': 'click', 'n': 2.0}) == '{"type":"click","n":2}'


def test_format_log_args():
    assert format_log_args('total', 3, [1, 2], {'a': True}) == 'total 3 [1,2] {"a":true}'


def test_type_of():
    assert type_of(1) == 'number'
    assert type_of(True) == 'boolean'
    assert type_of(len) == 'function'
    assert type_of({}) == 'object'


def test_to_number_accepts_only_javascript_numerals():
    assert math.isnan(to_number('1_000'))
    assert math.isnan(to_number('0x1_f'))
    assert math.isnan(to_number('١٢'))
    assert math.isnan(to_number('-0x1f'))
    assert to_number('0b101') == 5
    assert to_number('0O17') == 15
    assert to_number('.5') == 0.5
    assert to_number('+3.') == 3
    assert is_nan('1_000')
    assert math.isnan(parse_int('١٢', 16))
