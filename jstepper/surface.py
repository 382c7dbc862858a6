"""A minimal live rendering surface.

The interpreter's host bridge needs something to look elements up in and to
fire events from. `Surface` plays the part of a preview page: it builds a
small element tree from HTML, keeps event listeners on its elements, and
answers ``alert``/``prompt`` the way a test harness or a GUI would.

Only what the bridge uses is modelled: ids, classes, attributes, text,
``innerHTML``, form ``value`` and event listeners. Nothing is rendered.
"""

from __future__ import annotations

import html
import logging
from collections import deque
from html.parser import HTMLParser
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

from .types import to_string

logger = logging.getLogger(__name__)

VOID_TAGS = {'area', 'base', 'br', 'col', 'embed', 'hr', 'img', 'input', 'link', 'meta', 'source', 'wbr'}

Child = Union['Element', str]


class Element:
    def __init__(self, tag: str, attrs: Optional[Dict[str, str]] = None):
        self.tagName = tag.upper()
        self.attrs: Dict[str, str] = dict(attrs or {})
        self.children: List[Child] = []
        self.parent: Optional[Element] = None
        self._listeners: Dict[str, List[Callable[..., Any]]] = {}
        self._value: Optional[str] = None

    # -- attributes --------------------------------------------------------
    @property
    def id(self) -> str:
        return self.attrs.get('id', '')

    @id.setter
    def id(self, value: Any) -> None:
        self.attrs['id'] = to_string(value)

    @property
    def className(self) -> str:
        return self.attrs.get('class', '')

    @className.setter
    def className(self, value: Any) -> None:
        self.attrs['class'] = to_string(value)

    @property
    def value(self) -> str:
        if self._value is not None:
            return self._value
        return self.attrs.get('value', '')

    @value.setter
    def value(self, value: Any) -> None:
        self._value = to_string(value)

    def getAttribute(self, name: str) -> Optional[str]:
        return self.attrs.get(to_string(name))

    def setAttribute(self, name: str, value: Any) -> None:
        self.attrs[to_string(name)] = to_string(value)

    def hasAttribute(self, name: str) -> bool:
        return to_string(name) in self.attrs

    def removeAttribute(self, name: str) -> None:
        self.attrs.pop(to_string(name), None)

    # -- content -----------------------------------------------------------
    @property
    def textContent(self) -> str:
        parts = []
        for child in self.children:
            parts.append(child if isinstance(child, str) else child.textContent)
        return ''.join(parts)

    @textContent.setter
    def textContent(self, value: Any) -> None:
        self._replace_children([to_string(value)])

    innerText = textContent

    @property
    def innerHTML(self) -> str:
        return ''.join(html.escape(c, quote=False) if isinstance(c, str) else c.outerHTML
                       for c in self.children)

    @innerHTML.setter
    def innerHTML(self, value: Any) -> None:
        self._replace_children(parse_fragment(to_string(value)))

    @property
    def outerHTML(self) -> str:
        tag = self.tagName.lower()
        attrs = ''.join(f' {k}="{html.escape(v)}"' for k, v in self.attrs.items())
        if tag in VOID_TAGS:
            return f'<{tag}{attrs}>'
        return f'<{tag}{attrs}>{self.innerHTML}</{tag}>'

    def _replace_children(self, children: Iterable[Child]) -> None:
        for child in self.children:
            if isinstance(child, Element):
                child.parent = None
        self.children = []
        for child in children:
            self.appendChild(child)

    def appendChild(self, child: Child) -> Child:
        if isinstance(child, Element):
            if child.parent is not None:
                child.parent.removeChild(child)
            child.parent = self
        self.children.append(child)
        return child

    def removeChild(self, child: Child) -> Child:
        self.children.remove(child)
        if isinstance(child, Element):
            child.parent = None
        return child

    # -- traversal ---------------------------------------------------------
    def iter_descendants(self):
        for child in self.children:
            if isinstance(child, Element):
                yield child
                yield from child.iter_descendants()

    def matches(self, selector: str) -> bool:
        """Match a simple selector: ``#id``, ``.class``, ``tag`` or ``tag.class``."""
        selector = selector.strip()
        if not selector:
            return False
        if selector.startswith('#'):
            return self.id == selector[1:]
        tag, _, cls = selector.partition('.')
        if tag and tag.upper() != self.tagName:
            return False
        return not cls or cls in self.className.split()

    # -- events ------------------------------------------------------------
    def addEventListener(self, event_type: str, handler: Callable[..., Any], *_options: Any) -> None:
        handlers = self._listeners.setdefault(to_string(event_type), [])
        if handler not in handlers:
            handlers.append(handler)

    def removeEventListener(self, event_type: str, handler: Callable[..., Any], *_options: Any) -> None:
        handlers = self._listeners.get(to_string(event_type), [])
        if handler in handlers:
            handlers.remove(handler)

    def listener_count(self, event_type: str) -> int:
        return len(self._listeners.get(event_type, []))

    def dispatchEvent(self, event: Union[str, Dict[str, Any]]) -> bool:
        """Call the listeners registered for the event type, in registration order."""
        if isinstance(event, dict):
            event_obj = dict(event)
            event_obj['type'] = to_string(event_obj.get('type', ''))
        else:
            event_obj = {'type': to_string(event)}
        event_obj['target'] = self
        handlers = list(self._listeners.get(event_obj['type'], []))
        logger.debug('dispatching %s to %d listener(s) on %r', event_obj['type'], len(handlers), self)
        for handler in handlers:
            handler(event_obj)
        return True

    def click(self) -> None:
        self.dispatchEvent('click')

    def __repr__(self) -> str:
        suffix = f'#{self.id}' if self.id else ''
        return f'<{self.tagName.lower()}{suffix}>'


class _FragmentBuilder(HTMLParser):
    """Builds a list of top-level nodes from an HTML fragment."""

    def __init__(self):
        super().__init__(convert_charrefs=True)
        self.roots: List[Child] = []
        self.stack: List[Element] = []

    def _append(self, node: Child) -> None:
        if self.stack:
            self.stack[-1].appendChild(node)
        else:
            self.roots.append(node)

    def handle_starttag(self, tag, attrs):
        element = Element(tag, {k: (v if v is not None else '') for k, v in attrs})
        self._append(element)
        if tag.lower() not in VOID_TAGS:
            self.stack.append(element)

    def handle_startendtag(self, tag, attrs):
        self._append(Element(tag, {k: (v if v is not None else '') for k, v in attrs}))

    def handle_endtag(self, tag):
        # pop up to the matching open tag; unmatched end tags are ignored
        for i in range(len(self.stack) - 1, -1, -1):
            if self.stack[i].tagName == tag.upper():
                del self.stack[i:]
                break

    def handle_data(self, data):
        if data:
            self._append(data)


def parse_fragment(markup: str) -> List[Child]:
    builder = _FragmentBuilder()
    builder.feed(markup)
    builder.close()
    return builder.roots


class Document:
    def __init__(self, markup: str = ''):
        self.body = Element('body')
        for node in parse_fragment(markup):
            self.body.appendChild(node)

    def createElement(self, tag: str) -> Element:
        return Element(to_string(tag))

    def getElementById(self, element_id: str) -> Optional[Element]:
        for element in self.body.iter_descendants():
            if element.id == element_id:
                return element
        return None

    def querySelector(self, selector: str) -> Optional[Element]:
        found = self.querySelectorAll(selector)
        return found[0] if found else None

    def querySelectorAll(self, selector: str) -> List[Element]:
        return [el for el in self.body.iter_descendants() if el.matches(selector)]


class Surface:
    """A live page the interpreter can be attached to.

    ``answers`` scripts the replies to ``prompt``; once they run out
    ``prompt`` returns ``None``, as a browser does when the dialog is
    cancelled. ``alert`` messages are recorded in ``alerts``.
    """

    def __init__(self, document: Optional[Document] = None, answers: Iterable[Optional[str]] = ()):
        self.document = document or Document()
        self.alerts: List[str] = []
        self.prompts: List[str] = []
        self._answers = deque(answers)
        self.namespace: Dict[str, Any] = {
            'innerWidth': 1024,
            'innerHeight': 768,
        }

    @classmethod
    def from_html(cls, markup: str, answers: Iterable[Optional[str]] = ()) -> 'Surface':
        return cls(Document(markup), answers)

    def alert(self, message: Any = '') -> None:
        self.alerts.append(to_string(message))

    def prompt(self, message: Any = '') -> Optional[str]:
        self.prompts.append(to_string(message))
        return self._answers.popleft() if self._answers else None

    def click(self, element_id: str) -> None:
        """Simulate a user click on the element with the given id."""
        element = self.document.getElementById(element_id)
        if element is None:
            raise KeyError(f'no element with id {element_id!r}')
        element.click()
