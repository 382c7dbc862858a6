from dataclasses import dataclass
from typing import Any, Callable


@dataclass
class BuiltinFunction:
    """A host-provided function callable from interpreted code."""
    name: str
    fn: Callable[..., Any]

    def __call__(self, *args: Any) -> Any:
        return self.fn(*args)

    def __repr__(self) -> str:
        return f"<builtin {self.name}>"
