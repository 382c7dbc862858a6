"""jstepper: a step-by-step interpreter for a small JavaScript subset."""

from .errors import ConstructionError, JSStepperError, ScriptError
from .interpreter import Interpreter
from .parser import parse_program
from .state import ExecutionState, Frame
from .surface import Surface

__all__ = [
    'ConstructionError', 'JSStepperError', 'ScriptError', 'Interpreter',
    'parse_program', 'ExecutionState', 'Frame', 'Surface',
]
