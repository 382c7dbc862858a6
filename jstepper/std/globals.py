from typing import Any, Dict

from jstepper.builtin_function import BuiltinFunction
from jstepper.types import UNDEFINED, is_nan, parse_float, parse_int


def populate_globals(interpreter, dialogs) -> Dict[str, Any]:
    """Build the built-in global bindings for one interpreter."""

    def js_is_nan(value: Any = UNDEFINED) -> bool:
        return is_nan(value)

    def js_parse_float(value: Any = UNDEFINED) -> Any:
        return parse_float(value)

    def js_parse_int(value: Any = UNDEFINED, radix: Any = UNDEFINED) -> Any:
        return parse_int(value, radix)

    def js_alert(message: Any = '') -> Any:
        interpreter.log("Alert:", message)
        dialogs.alert(message)
        return UNDEFINED

    def js_prompt(message: Any = '') -> Any:
        interpreter.log("Prompt:", message)
        result = dialogs.prompt(message)
        interpreter.log("Prompt Result:", result)
        return result

    return {
        'isNaN': BuiltinFunction('isNaN', js_is_nan),
        'parseFloat': BuiltinFunction('parseFloat', js_parse_float),
        'parseInt': BuiltinFunction('parseInt', js_parse_int),
        'alert': BuiltinFunction('alert', js_alert),
        'prompt': BuiltinFunction('prompt', js_prompt),
    }
