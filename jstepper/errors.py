from dataclasses import dataclass
from typing import Optional


@dataclass
class ErrorVal:
    """A script-level error: a JavaScript error name plus its message."""
    name: str
    message: str

    def __str__(self) -> str:
        return f"{self.name}: {self.message}"


class JSStepperError(Exception):
    """Base class for errors raised by the interpreter package."""


class ConstructionError(JSStepperError):
    """Raised when source text cannot be turned into an interpreter."""
    def __init__(self, message: str, line: Optional[int] = None, column: Optional[int] = None):
        where = f" (line {line}, column {column})" if line is not None else ''
        super().__init__(f"Parse Error: {message}{where}")
        self.line = line
        self.column = column


class ScriptError(JSStepperError):
    """Exception type used to propagate runtime errors out of a step's dispatch."""
    def __init__(self, err: ErrorVal):
        super().__init__(str(err))
        self.err = err


def reference_error(name: str) -> ScriptError:
    return ScriptError(ErrorVal('ReferenceError', f'{name} is not defined'))


def type_error(message: str) -> ScriptError:
    return ScriptError(ErrorVal('TypeError', message))
