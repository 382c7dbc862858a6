import builtins
import logging
from typing import Any, Callable, Optional

from jstepper.types import to_string

logger = logging.getLogger(__name__)


class Dialogs:
    """Where ``alert`` and ``prompt`` end up.

    With a live surface the surface answers; otherwise ``prompt_fn`` (or the
    terminal) answers prompts and alerts are printed.
    """
    def __init__(self, surface=None, prompt_fn: Optional[Callable[[str], Optional[str]]] = None):
        self.surface = surface
        self.prompt_fn = prompt_fn

    def alert(self, message: Any) -> None:
        text = to_string(message)
        if self.surface is not None:
            self.surface.alert(text)
        else:
            print(f"[alert] {text}")

    def prompt(self, message: Any) -> Optional[str]:
        text = to_string(message)
        if self.surface is not None:
            return self.surface.prompt(text)
        if self.prompt_fn is not None:
            return self.prompt_fn(text)
        try:
            return builtins.input(f"{text} ")
        except EOFError:
            logger.debug('prompt %r got end of input, treating it as cancel', text)
            return None
