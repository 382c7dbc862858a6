"""Runtime value helpers for the interpreter.

JavaScript values are represented with plain Python objects: numbers are
``int``/``float``, strings are ``str``, booleans are ``bool`` and ``null`` is
``None``. ``undefined`` needs its own marker, ``UNDEFINED``. Interpreted
functions are their AST nodes; host functions are Python callables.

The helpers below implement the handful of JavaScript conversions the
interpreter cannot borrow from Python: truthiness, ``String(x)``,
``Number(x)`` and the ``JSON.stringify`` rendering used in log lines.
"""

from __future__ import annotations

import json
import math
import re
from typing import Any

from .ast import is_function_node, function_name


class Undefined:
    """Marker object for the JavaScript ``undefined`` value."""
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return 'undefined'

    def __bool__(self) -> bool:
        return False


UNDEFINED = Undefined()

_NUMBER_PATTERN = r'[+-]?(?:Infinity|(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?)'
_NUMBER_LITERAL = re.compile(_NUMBER_PATTERN)
_FLOAT_PREFIX = re.compile('^' + _NUMBER_PATTERN)
_INT_PREFIX = re.compile(r'^[+-]?[0-9]+')
_RADIX_LITERAL = re.compile(r'0([xXoObB])([0-9A-Za-z]+)')
_RADIXES = {'x': 16, 'o': 8, 'b': 2}


def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def is_truthy(value: Any) -> bool:
    if value is None or value is UNDEFINED:
        return False
    if isinstance(value, bool):
        return value
    if is_number(value):
        return value != 0 and not math.isnan(value)
    if isinstance(value, str):
        return value != ''
    return True


def format_number(value: Any) -> str:
    if isinstance(value, float):
        if math.isnan(value):
            return 'NaN'
        if math.isinf(value):
            return 'Infinity' if value > 0 else '-Infinity'
        if value.is_integer() and abs(value) < 1e21:
            return str(int(value))
        return repr(value)
    return str(value)


def to_string(value: Any) -> str:
    """Convert a value the way ``String(value)`` does."""
    if value is None:
        return 'null'
    if value is UNDEFINED:
        return 'undefined'
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if is_number(value):
        return format_number(value)
    if isinstance(value, str):
        return value
    if isinstance(value, (list, tuple)):
        return ','.join('' if v is None or v is UNDEFINED else to_string(v) for v in value)
    if is_function_node(value):
        return f"function {function_name(value) or ''}() {{ [code] }}"
    if isinstance(value, dict):
        return '[object Object]'
    return str(value)


def to_number(value: Any) -> Any:
    """Convert a value the way ``Number(value)`` does."""
    if value is None:
        return 0
    if value is UNDEFINED:
        return math.nan
    if isinstance(value, bool):
        return 1 if value else 0
    if is_number(value):
        return value
    if isinstance(value, str):
        text = value.strip()
        if text == '':
            return 0
        match = _RADIX_LITERAL.fullmatch(text)
        if match:
            try:
                return int(match.group(2), _RADIXES[match.group(1).lower()])
            except ValueError:
                return math.nan
        if not _NUMBER_LITERAL.fullmatch(text):
            return math.nan
        if text.lstrip('+-') == 'Infinity':
            return -math.inf if text.startswith('-') else math.inf
        number = float(text)
        return int(number) if number.is_integer() and abs(number) < 1e21 else number
    return math.nan


def parse_float(value: Any) -> Any:
    """``parseFloat``: read the longest numeric prefix of ``String(value)``."""
    match = _FLOAT_PREFIX.match(to_string(value).strip())
    if not match:
        return math.nan
    text = match.group(0)
    if text.lstrip('+-') == 'Infinity':
        return -math.inf if text.startswith('-') else math.inf
    number = float(text)
    return int(number) if number.is_integer() and abs(number) < 1e21 else number


def parse_int(value: Any, radix: Any = UNDEFINED) -> Any:
    text = to_string(value).strip()
    number = math.nan if radix is UNDEFINED or radix is None else to_number(radix)
    default_radix = not math.isfinite(number) or int(number) == 0
    base = 10 if default_radix else int(number)
    if (base == 16 or default_radix) and text.lower().lstrip('+-').startswith('0x'):
        base = 16
        sign = '-' if text.startswith('-') else ''
        text = sign + text.lstrip('+-')[2:]
    if base == 10:
        match = _INT_PREFIX.match(text)
        return int(match.group(0)) if match else math.nan
    digits = ''
    for i, ch in enumerate(text):
        if i == 0 and ch in '+-':
            digits += ch
            continue
        if not ch.isascii():
            break
        try:
            int(ch, base)
        except ValueError:
            break
        digits += ch
    try:
        return int(digits, base)
    except ValueError:
        return math.nan


def is_nan(value: Any) -> bool:
    number = to_number(value)
    return isinstance(number, float) and math.isnan(number)


def type_of(value: Any) -> str:
    if value is UNDEFINED:
        return 'undefined'
    if value is None:
        return 'object'
    if isinstance(value, bool):
        return 'boolean'
    if is_number(value):
        return 'number'
    if isinstance(value, str):
        return 'string'
    if is_function_node(value) or callable(value):
        return 'function'
    return 'object'


def strict_equals(a: Any, b: Any) -> bool:
    if is_number(a) and is_number(b):
        return a == b
    if type(a) is not type(b):
        return False
    if isinstance(a, (str, bool)) or a is None or a is UNDEFINED:
        return a == b
    return a is b


def loose_equals(a: Any, b: Any) -> bool:
    nullish = (None, UNDEFINED)
    if a in nullish or b in nullish:
        return a in nullish and b in nullish
    return a == b


def stringify(value: Any) -> str:
    """Render a value the way ``JSON.stringify`` does for log lines."""
    if value is UNDEFINED or is_function_node(value) or callable(value):
        return 'undefined'
    if value is None:
        return 'null'
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if is_number(value):
        if isinstance(value, float) and (math.isnan(value) or math.isinf(value)):
            return 'null'
        return format_number(value)
    if isinstance(value, str):
        return json.dumps(value, ensure_ascii=False)
    if isinstance(value, (list, tuple)):
        return '[' + ','.join(
            'null' if item is UNDEFINED or is_function_node(item) else stringify(item)
            for item in value) + ']'
    if isinstance(value, dict):
        parts = [f'{json.dumps(str(k))}:{stringify(v)}' for k, v in value.items()
                 if v is not UNDEFINED and not is_function_node(v) and not callable(v)]
        return '{' + ','.join(parts) + '}'
    to_json = getattr(value, 'to_json', None)
    if callable(to_json):
        return stringify(to_json())
    return '{}'


def format_log_args(*messages: Any) -> str:
    """Join console-style arguments: objects as JSON, everything else as strings."""
    parts = []
    for message in messages:
        if isinstance(message, (dict, list, tuple)) or hasattr(message, 'to_json'):
            parts.append(stringify(message))
        else:
            parts.append(to_string(message))
    return ' '.join(parts)
