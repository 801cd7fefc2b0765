"""Name-keyed trigger bus shared by the controller and its subscribers."""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING, Callable, Dict, Iterable, List, Optional, Set

if TYPE_CHECKING:
    from .config import SequenceConfig

logger = logging.getLogger(__name__)

Handler = Callable[[], None]


class SequenceTrigger(str, Enum):
    """Default names of the whole-sequence lifecycle triggers."""

    START = "SEQUENCE_START"
    COMPLETE = "SEQUENCE_COMPLETE"
    RESET = "SEQUENCE_RESET"


class TrackingTrigger(str, Enum):
    STARTED = "FULL_BODY_TRACKING_STARTED"
    LOST = "FULL_BODY_TRACKING_LOST"


class UnknownTriggerError(KeyError):
    """Raised when a closed bus is asked about a name it was not built with."""


def _name(name) -> str:
    return name.value if isinstance(name, Enum) else str(name)


class TriggerBus:
    """Synchronous publish/subscribe channel keyed by trigger name.

    Publishing a name invokes every handler registered for it, in
    registration order, before `publish` returns. When `names` is given the
    bus is closed over that set and any other name raises
    `UnknownTriggerError` at subscribe or publish time.
    """

    def __init__(self, names: Optional[Iterable[str]] = None) -> None:
        self._handlers: Dict[str, List[Handler]] = {}
        self._names: Optional[Set[str]] = None
        if names is not None:
            self._names = set()
            self.declare(names)

    @property
    def closed(self) -> bool:
        return self._names is not None

    @property
    def names(self) -> Optional[frozenset]:
        return frozenset(self._names) if self._names is not None else None

    def declare(self, names: Iterable[str]) -> None:
        """Add names to a closed bus. No effect on an open bus."""
        if self._names is None:
            return
        for name in names:
            self._names.add(_name(name))

    def _check(self, name) -> str:
        key = _name(name)
        if not key:
            raise UnknownTriggerError("empty trigger name")
        if self._names is not None and key not in self._names:
            raise UnknownTriggerError(key)
        return key

    def subscribe(self, name, handler: Handler) -> None:
        key = self._check(name)
        self._handlers.setdefault(key, []).append(handler)

    def unsubscribe(self, name, handler: Handler) -> None:
        key = _name(name)
        handlers = self._handlers.get(key, [])
        if handler in handlers:
            handlers.remove(handler)

    def handlers(self, name) -> List[Handler]:
        return list(self._handlers.get(_name(name), []))

    def publish(self, name) -> None:
        key = self._check(name)
        logger.debug("TriggerBus: publish %s", key)
        # copy so a handler may (un)subscribe while we iterate
        for handler in list(self._handlers.get(key, [])):
            try:
                handler()
            except Exception:
                logger.exception("TriggerBus: handler for %s failed", key)

    def clear(self) -> None:
        self._handlers.clear()


def build_trigger_bus(config: "SequenceConfig") -> TriggerBus:
    """Create a bus closed over every name the given config can publish."""
    names = set(config.trigger_names())
    names.update(t.value for t in TrackingTrigger)
    return TriggerBus(names)
