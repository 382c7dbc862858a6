"""Host bridge between interpreted code and a live surface.

Two global identifiers are intercepted: ``console`` (logging into the
execution state) and ``document`` (element lookups against the surface).
Elements handed to interpreted code are wrapped in `ElementHandle`, which
forwards property reads and writes to the live element but intercepts
``addEventListener``: the listener it installs on the live element routes
the event back into the interpreter's call machinery.

Any other free identifier falls back to the surface's own namespace.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

from .builtin_function import BuiltinFunction
from .errors import type_error
from .surface import Element
from .types import UNDEFINED, to_string

logger = logging.getLogger(__name__)


class HostObject:
    """An object whose members are resolved by the bridge, not by Python attribute access."""

    def get_member(self, name: str) -> Any:
        if name.startswith('_') or name in ('get_member', 'set_member', 'to_json'):
            return UNDEFINED
        return getattr(self, name, UNDEFINED)

    def set_member(self, name: str, value: Any) -> None:
        raise type_error(f"Cannot assign to read only property '{name}' of object")


class ConsoleBridge(HostObject):
    def __init__(self, interpreter):
        self._interpreter = interpreter

    def log(self, *args: Any) -> Any:
        self._interpreter.log(*args)
        return UNDEFINED

    info = log
    warn = log
    error = log

    def to_json(self):
        return {}


class ElementHandle(HostObject):
    """Explicit wrapper around a live element.

    Reads and writes go straight to the element, except for the members in
    ``INTERCEPTED``, which the bridge implements itself. Element methods are
    handed out as host functions that unwrap handle arguments and wrap what
    they return, so the live tree only ever holds elements.
    """
    INTERCEPTED = ('addEventListener', 'removeEventListener')

    def __init__(self, element, bridge: 'HostBridge'):
        self._element = element
        self._bridge = bridge

    @property
    def element(self):
        return self._element

    def get_member(self, name: str) -> Any:
        if name == 'addEventListener':
            return BuiltinFunction('addEventListener', self._add_event_listener)
        if name == 'removeEventListener':
            return BuiltinFunction('removeEventListener', self._remove_event_listener)
        if name.startswith('_') or name not in dir(self._element):
            return UNDEFINED
        value = getattr(self._element, name)
        if callable(value):
            return self._bridge.host_function(name, value)
        return self._bridge.wrap(value)

    def set_member(self, name: str, value: Any) -> None:
        if name.startswith('_') or name in self.INTERCEPTED:
            raise type_error(f"Cannot assign to property '{name}' of element")
        setattr(self._element, name, self._bridge.unwrap(value))

    def _add_event_listener(self, event_type: Any, callback: Any = UNDEFINED, *_options: Any) -> Any:
        event_type = to_string(event_type)
        self._bridge.interpreter.log(f"Added {event_type} listener")
        self._element.addEventListener(event_type, self._bridge.listener_for(event_type, callback))
        return UNDEFINED

    def _remove_event_listener(self, event_type: Any, callback: Any = UNDEFINED, *_options: Any) -> Any:
        event_type = to_string(event_type)
        self._element.removeEventListener(event_type, self._bridge.listener_for(event_type, callback))
        self._bridge.interpreter.log(f"Removed {event_type} listener")
        return UNDEFINED

    def to_json(self):
        return {}

    def __repr__(self) -> str:
        return f"<ElementHandle {self._element!r}>"


class NodeListHandle(HostObject):
    """Wrapper for the element list returned by ``querySelectorAll``."""

    def __init__(self, handles: List[ElementHandle]):
        self._handles = list(handles)

    def __len__(self) -> int:
        return len(self._handles)

    def __iter__(self):
        return iter(self._handles)

    def __getitem__(self, index: int) -> Any:
        if 0 <= index < len(self._handles):
            return self._handles[index]
        return UNDEFINED

    def _item(self, index: Any = 0) -> Any:
        handle = self[int(index)]
        return None if handle is UNDEFINED else handle

    def get_member(self, name: str) -> Any:
        if name == 'length':
            return len(self._handles)
        if name == 'item':
            return BuiltinFunction('item', self._item)
        if name.isdigit():
            return self[int(name)]
        return UNDEFINED

    def to_json(self):
        return {str(i): {} for i in range(len(self._handles))}


class DocumentBridge(HostObject):
    """The ``document`` object seen by interpreted code."""

    def __init__(self, bridge: 'HostBridge'):
        self._bridge = bridge

    def _document(self):
        surface = self._bridge.surface
        return surface.document if surface is not None else None

    def getElementById(self, element_id: Any = UNDEFINED) -> Any:
        element_id = to_string(element_id)
        log = self._bridge.interpreter.log
        document = self._document()
        element = document.getElementById(element_id) if document is not None else None
        if element is None:
            log(f"Element with id {element_id} not found")
            return None
        log(f"Selected element with id: {element_id}")
        return self._bridge.wrap(element)

    def querySelector(self, selector: Any = UNDEFINED) -> Any:
        selector = to_string(selector)
        log = self._bridge.interpreter.log
        document = self._document()
        element = document.querySelector(selector) if document is not None else None
        if element is None:
            log(f"No element matches {selector}")
            return None
        log(f"Selected element matching: {selector}")
        return self._bridge.wrap(element)

    def querySelectorAll(self, selector: Any = UNDEFINED) -> NodeListHandle:
        selector = to_string(selector)
        document = self._document()
        elements = document.querySelectorAll(selector) if document is not None else []
        self._bridge.interpreter.log(f"Selected {len(elements)} elements matching: {selector}")
        return NodeListHandle([self._bridge.wrap(el) for el in elements])

    def createElement(self, tag: Any = UNDEFINED) -> ElementHandle:
        document = self._document()
        element = document.createElement(tag) if document is not None else Element(to_string(tag))
        self._bridge.interpreter.log(f"Created <{element.tagName.lower()}> element")
        return self._bridge.wrap(element)

    def to_json(self):
        return {}


class HostBridge:
    """Connects one interpreter to an optional live surface."""

    def __init__(self, interpreter, surface=None):
        self.interpreter = interpreter
        self.surface = surface
        self.console = ConsoleBridge(interpreter)
        self.document = DocumentBridge(self)
        self._handles: Dict[int, ElementHandle] = {}
        self._listeners: Dict[Tuple[str, int], Tuple[Any, Any]] = {}

    def lookup(self, name: str) -> Tuple[bool, Any]:
        """Resolve a free identifier: `console`, `document`, then the surface namespace."""
        if name == 'console':
            return True, self.console
        if name == 'document':
            return True, self.document
        if self.surface is not None and name in self.surface.namespace:
            return True, self.wrap(self.surface.namespace[name])
        return False, None

    def wrap(self, value: Any) -> Any:
        """Wrap live elements so that interpreted code only ever sees handles."""
        if isinstance(value, Element):
            handle = self._handles.get(id(value))
            if handle is None or handle.element is not value:
                handle = ElementHandle(value, self)
                self._handles[id(value)] = handle
            return handle
        if isinstance(value, (list, tuple)) and any(isinstance(v, Element) for v in value):
            if all(isinstance(v, Element) for v in value):
                return NodeListHandle([self.wrap(v) for v in value])
            # child lists mix text nodes in with elements
            return [self.wrap(v) for v in value]
        return value

    def unwrap(self, value: Any) -> Any:
        """The live object behind a handle, for values passed back into the surface."""
        if isinstance(value, ElementHandle):
            return value.element
        if isinstance(value, NodeListHandle):
            return [handle.element for handle in value]
        if isinstance(value, list):
            return [self.unwrap(v) for v in value]
        return value

    def host_function(self, name: str, method: Any) -> BuiltinFunction:
        def call(*args: Any) -> Any:
            return self.wrap(method(*[self.unwrap(a) for a in args]))
        return BuiltinFunction(name, call)

    def listener_for(self, event_type: str, callback: Any):
        """The surface-side listener for ``callback``; the same callback always maps to the same listener."""
        key = (event_type, id(callback))
        entry = self._listeners.get(key)
        if entry is None or entry[0] is not callback:
            def listener(event: Optional[Dict[str, Any]] = None):
                self.fire(event_type, callback, event)
            entry = self._listeners[key] = (callback, listener)
        return entry[1]

    def fire(self, event_type: str, callback: Any, event: Optional[Dict[str, Any]] = None):
        """Run a registered listener: the only way execution advances without a driver step."""
        interpreter = self.interpreter
        with interpreter.lock:
            if interpreter.state.error is not None:
                interpreter.log(f"Ignored {event_type} event: execution stopped after an error")
                return
            interpreter.log(f"Triggered {event_type} event")
            event_obj = {'type': event_type}
            if event:
                event_obj.update({k: self.wrap(v) for k, v in event.items()})
            logger.debug('event %s fired, invoking %r', event_type, callback)
            interpreter.invoke(callback, [event_obj])
            interpreter.notify()
