"""Execution frames, the call stack and the observable execution state.

A frame owns its scope and an explicit queue of AST nodes still to run.
The queue is the continuation of the frame: pushing to its front schedules
work to happen next, and an empty queue means the frame has finished.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import Any, Callable, Deque, List, Optional

from .ast import Node
from .environment import Environment


@dataclass
class Frame:
    env: Environment
    queue: Deque[Node] = field(default_factory=deque)
    is_function: bool = False
    name: Optional[str] = None
    on_return: Optional[Callable[[Any], None]] = None

    @property
    def scope(self):
        return self.env.values

    @property
    def meta(self):
        return self.env.meta

    def schedule(self, *nodes: Node):
        """Push nodes to the front of the queue, keeping their order."""
        self.queue.extendleft(reversed(nodes))

    def next_node(self) -> Optional[Node]:
        return self.queue.popleft() if self.queue else None

    def display_name(self) -> str:
        if self.is_function:
            return self.name or '(anonymous)'
        return 'Global'


@dataclass
class ExecutionState:
    stack: List[Frame]
    globals: Environment
    logs: List[str] = field(default_factory=list)
    finished: bool = False
    error: Optional[str] = None
    current_line: int = 1
    explanation: str = ''

    @property
    def current_frame(self) -> Frame:
        return self.stack[-1]

    @property
    def global_frame(self) -> Frame:
        return self.stack[0]

    def push(self, frame: Frame):
        self.stack.append(frame)

    def pop(self) -> Frame:
        if len(self.stack) <= 1:
            raise IndexError('the global frame cannot be popped')
        return self.stack.pop()
