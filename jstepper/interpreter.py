"""Step-indexed interpreter for a small JavaScript subset.

Execution is driven one visible step at a time. Every frame on the call
stack owns a queue of nodes still to run; `Interpreter.step` takes the next
node from the active frame, explains it, and dispatches it. Blocks and the
program itself only expand into their statements and are never a step of
their own, and frames whose queue has run dry are popped on the way to the
next real node.

Calls to interpreted functions push a frame and return ``undefined`` at the
call site; the callee's statements then run as subsequent steps. Events
fired by a live surface enter through `HostBridge.fire`, which shares the
interpreter lock with `step`.
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from typing import Any, Callable, List, Optional, Union

from .ast import (
    Node, Program, BlockStatement, VariableDeclaration, FunctionDeclaration,
    ExpressionStatement, IfStatement, ForStatement, ForLoopCheck, ReturnStatement,
    EmptyStatement, ArrowFunctionExpression, function_name, is_function_node,
)
from .bridge import HostBridge
from .environment import Environment
from .errors import ScriptError, type_error
from .evaluator import Evaluator
from .explain import explain
from .parser import parse_program, check_returns
from .state import ExecutionState, Frame
from .std import Dialogs, populate_globals
from .types import UNDEFINED, format_log_args, is_truthy, stringify, to_string

logger = logging.getLogger(__name__)

TRANSPARENT = (Program, BlockStatement)

StepObserver = Callable[[ExecutionState], None]


def _hoist(env: Environment, statements: List[Node]):
    for stmt in statements:
        if isinstance(stmt, FunctionDeclaration):
            env.declare(stmt.id.name, stmt, 'func')


class Interpreter:
    """Interpreter for one program.

    ``source`` is JavaScript text or an already built `Program`. A
    ``surface`` (see `jstepper.surface.Surface`) gives ``document`` lookups
    something to find and lets its events call back into the program.
    """

    def __init__(self, source: Union[str, Program], surface=None, debug_level: int = 0,
                 prompt_fn: Optional[Callable[[str], Optional[str]]] = None):
        if isinstance(source, Program):
            check_returns(source.body)
            program = source
        else:
            program = parse_program(source)
        self.program = program
        self.surface = surface
        self.debug_level = debug_level
        self.lock = threading.RLock()
        self.steps = 0
        self._on_step: Optional[StepObserver] = None

        self.bridge = HostBridge(self, surface)
        self.dialogs = Dialogs(surface, prompt_fn)
        self.evaluator = Evaluator(self)

        globals_env = Environment(populate_globals(self, self.dialogs))
        _hoist(globals_env, program.body)
        self.state = ExecutionState(
            stack=[Frame(globals_env, deque([program]))],
            globals=globals_env,
        )

    @classmethod
    def from_ast(cls, program: Program, surface=None, **kwargs) -> 'Interpreter':
        return cls(program, surface, **kwargs)

    # -- diagnostics -------------------------------------------------------
    def debug(self, msg: str):
        if self.debug_level > 0:
            logger.debug(msg)

    def log(self, *messages: Any):
        """Append a console-style line to the execution log."""
        line = format_log_args(*messages)
        self.state.logs.append(line)
        if self.debug_level >= 2:
            self.debug(f"log: {line}")

    # -- observer ----------------------------------------------------------
    def set_on_step(self, observer: Optional[StepObserver]):
        self._on_step = observer

    def notify(self):
        if self._on_step is not None:
            self._on_step(self.state)

    def get_state(self) -> ExecutionState:
        return self.state

    # -- stepping ----------------------------------------------------------
    def step(self) -> ExecutionState:
        """Advance one visible step. Does nothing once execution has finished."""
        with self.lock:
            state = self.state
            if state.finished:
                return state
            while True:
                node = self._next_node()
                if node is None:
                    state.finished = True
                    self.debug('execution finished')
                    return state
                if node.loc is not None:
                    state.current_line = node.loc.line
                # explain first: loop dispatch rewrites the queue around the node
                state.explanation = explain(node)
                self._dispatch(node, state.current_frame)
                if not isinstance(node, TRANSPARENT) or state.finished:
                    break
            self.steps += 1
            if self.debug_level >= 1:
                self.debug(f"step {self.steps} [line {state.current_line}] {state.explanation}")
            self.notify()
            return state

    def run(self, max_steps: Optional[int] = None) -> int:
        """Step until finished (or ``max_steps`` visible steps); return the number of steps taken."""
        taken = 0
        while not self.state.finished:
            if max_steps is not None and taken >= max_steps:
                break
            before = self.steps
            self.step()
            taken += self.steps - before
        return taken

    def _next_node(self) -> Optional[Node]:
        state = self.state
        while True:
            frame = state.current_frame
            node = frame.next_node()
            if node is not None:
                return node
            if len(state.stack) == 1:
                return None
            state.pop()
            self.debug(f"frame {frame.display_name()} finished without return")

    def _fail(self, message: str):
        state = self.state
        state.error = message
        state.finished = True
        logger.info('execution stopped: %s', message)

    def _dispatch(self, node: Node, frame: Frame):
        try:
            self.execute(node, frame)
        except ScriptError as exc:
            self._fail(str(exc.err))
        except Exception as exc:
            # host code raising plain Python errors stops the program the same way
            logger.debug('host error during %s', node.type, exc_info=True)
            self._fail(f"{type(exc).__name__}: {exc}")

    # -- statements --------------------------------------------------------
    def execute(self, node: Node, frame: Frame):
        evaluate = self.evaluator.evaluate
        if isinstance(node, TRANSPARENT):
            frame.schedule(*node.body)
            return
        if isinstance(node, VariableDeclaration):
            for decl in node.declarations:
                value = evaluate(decl.init, frame.env) if decl.init is not None else UNDEFINED
                frame.env.declare(decl.id.name, value, node.kind)
                self.log(f"Declared {decl.id.name} = {stringify(value)}")
            return
        if isinstance(node, FunctionDeclaration):
            frame.env.declare(node.id.name, node, 'func')
            if self.debug_level >= 2:
                self.debug(f"define function {node.id.name}")
            return
        if isinstance(node, ExpressionStatement):
            evaluate(node.expression, frame.env)
            return
        if isinstance(node, IfStatement):
            test = evaluate(node.test, frame.env)
            truthy = is_truthy(test)
            if self.debug_level >= 3:
                self.debug(f"if condition {stringify(test)} -> {truthy}")
            if truthy:
                frame.schedule(node.consequent)
            elif node.alternate is not None:
                frame.schedule(node.alternate)
            return
        if isinstance(node, ForStatement):
            if isinstance(node.init, VariableDeclaration):
                self.execute(node.init, frame)
            elif node.init is not None:
                evaluate(node.init, frame.env)
            self._loop_iteration(node, frame)
            return
        if isinstance(node, ForLoopCheck):
            self._loop_iteration(node.original, frame, node)
            return
        if isinstance(node, ReturnStatement):
            value = evaluate(node.argument, frame.env)
            self.log(f"Returning {stringify(value)}")
            self._unwind(value)
            return
        if isinstance(node, EmptyStatement):
            return
        logger.warning('unhandled node type %s', node.type)

    def _loop_iteration(self, loop: ForStatement, frame: Frame, check: Optional[ForLoopCheck] = None):
        """Test the loop condition and, when it holds, queue body, update and the next check."""
        if loop.test is None:
            proceed = True
        else:
            test = self.evaluator.evaluate(loop.test, frame.env)
            proceed = is_truthy(test)
            if self.debug_level >= 3:
                self.debug(f"loop condition {stringify(test)} -> {proceed}")
        if not proceed:
            return
        if check is None:
            check = ForLoopCheck(loop, loc=(loop.test.loc if loop.test is not None else None) or loop.loc)
        pending: List[Node] = [loop.body]
        if loop.update is not None:
            pending.append(ExpressionStatement(loop.update, loc=loop.update.loc or loop.loc))
        pending.append(check)
        frame.schedule(*pending)

    def _unwind(self, value: Any):
        """Pop frames up to and including the innermost function frame."""
        stack = self.state.stack
        while len(stack) > 1:
            frame = self.state.pop()
            if frame.on_return is not None:
                frame.on_return(value)
            if frame.is_function:
                self.debug(f"returned from {frame.display_name()}")
                break

    # -- calls -------------------------------------------------------------
    def call_function(self, fn: Node, args: List[Any], on_return: Optional[Callable[[Any], None]] = None):
        """Push a frame that will run ``fn``'s body with ``args`` bound to its parameters."""
        name = function_name(fn)
        shown = ', '.join('' if a is None or a is UNDEFINED else to_string(a) for a in args)
        self.log(f"Calling {name or '(anonymous function)'}({shown})")

        env = Environment.snapshot(self.state.globals)
        for i, param in enumerate(fn.params):
            env.declare(param.name, args[i] if i < len(args) else UNDEFINED, 'param')

        if isinstance(fn, ArrowFunctionExpression) and fn.expression:
            body: Node = ReturnStatement(fn.body, loc=fn.body.loc)
        else:
            body = fn.body
            _hoist(env, body.body)

        self.state.push(Frame(env, deque([body]), is_function=True, name=name, on_return=on_return))
        self.state.finished = False
        if self.debug_level >= 2:
            self.debug(f"push frame {name or '(anonymous)'} depth={len(self.state.stack)}")

    def invoke(self, callee: Any, args: List[Any], on_return: Optional[Callable[[Any], None]] = None):
        """Call a value from outside a step, as event listeners do."""
        with self.lock:
            try:
                if is_function_node(callee):
                    self.call_function(callee, args, on_return)
                elif callable(callee):
                    result = callee(*args)
                    if on_return is not None:
                        on_return(result)
                else:
                    raise type_error(f"{to_string(callee)} is not a function")
            except ScriptError as exc:
                self._fail(str(exc.err))
