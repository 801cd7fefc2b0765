from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional, Tuple

from ..session import Component
from ..triggers import TriggerBus

logger = logging.getLogger(__name__)


class Subscriber(Component):
    """Component that reacts to triggers published on the bus.

    Subclasses list their handlers in `handlers()`; they are registered once
    in `enter()` and removed in `exit()`. A subscriber whose required
    collaborators are missing logs an error and stays disabled.
    """

    def __init__(self, bus: Optional[TriggerBus], session=None) -> None:
        super().__init__(session)
        self.bus = bus
        self.enabled = False
        self._registered: List[Tuple[str, Callable[[], None]]] = []

    @property
    def label(self) -> str:
        return type(self).__name__

    def check(self) -> Optional[str]:
        """Return an error message if the subscriber cannot run."""
        return None

    def handlers(self) -> Dict[str, List[Callable[[], None]]]:
        return {}

    def setup(self) -> None:
        """Called after handlers are registered."""
        return None

    def enter(self) -> None:
        if self.enabled:
            return
        problem = "trigger bus is not set" if self.bus is None else self.check()
        if problem:
            logger.error("%s: ERROR: %s", self.label, problem)
            return

        for name, callbacks in self.handlers().items():
            for callback in callbacks:
                self.bus.subscribe(name, callback)
                self._registered.append((name, callback))
        self.enabled = True
        self.setup()
        logger.info("%s: initialized", self.label)

    def exit(self) -> None:
        for name, callback in self._registered:
            self.bus.unsubscribe(name, callback)
        self._registered.clear()
        self.enabled = False

    def log(self, message: str, *args) -> None:
        logger.info("%s: " + message, self.label, *args)


def add_handler(
    mapping: Dict[str, List[Callable[[], None]]],
    name: Optional[str],
    callback: Callable[[], None],
) -> None:
    """Append callback under name; absent names and repeats are skipped."""
    if name is None:
        return
    callbacks = mapping.setdefault(name, [])
    if callback not in callbacks:
        callbacks.append(callback)
