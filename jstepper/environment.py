from dataclasses import dataclass
from typing import Any, Dict, Optional

from .ast import is_function_node
from .bridge import ElementHandle, NodeListHandle

DECLARATION_KINDS = ('const', 'let', 'var', 'func', 'param')


@dataclass
class VarMeta:
    """Display metadata for a declared name."""
    kind: str
    label: Optional[str] = None


def label_for(value: Any) -> Optional[str]:
    """Describe the runtime shape of a bound value for display purposes."""
    if isinstance(value, ElementHandle):
        return 'DOM element'
    if isinstance(value, NodeListHandle):
        return f'DOM element list ({len(value)} items)'
    if isinstance(value, (list, tuple)):
        return f'list ({len(value)} items)'
    if is_function_node(value):
        return 'function'
    return None


class Environment:
    """A flat scope mapping identifiers to values, plus declaration metadata."""
    def __init__(self, values: Optional[Dict[str, Any]] = None):
        self.values: Dict[str, Any] = dict(values) if values else {}
        self.meta: Dict[str, VarMeta] = {}

    @classmethod
    def snapshot(cls, globals_env: 'Environment') -> 'Environment':
        """A call scope: a shallow copy of the global values, no metadata."""
        return cls(globals_env.values)

    def __contains__(self, name: str) -> bool:
        return name in self.values

    def get(self, name: str) -> Any:
        return self.values[name]

    def set(self, name: str, value: Any):
        self.values[name] = value

    def declare(self, name: str, value: Any, kind: str):
        if kind not in DECLARATION_KINDS:
            raise ValueError(f'unknown declaration kind {kind!r}')
        # redeclaring replaces any earlier metadata for the name
        self.values[name] = value
        self.meta[name] = VarMeta(kind, label_for(value))

    def refresh_label(self, name: str):
        meta = self.meta.get(name)
        if meta is not None:
            meta.label = label_for(self.values.get(name))
