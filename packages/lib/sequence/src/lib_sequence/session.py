"""Session manager and Component interface for lib_sequence.

A lens session owns the trigger bus and a set of components (the pose
sequence controller, the tracking watcher and the subscribers). Unlike a
scene manager, every registered component is active at once: the session
forwards each frame's update/render/event calls to all of them in
registration order.
"""

from __future__ import annotations

import abc
import logging
from typing import Any, Dict, List, Optional

import pygame

from .triggers import TriggerBus

logger = logging.getLogger(__name__)


class Component(abc.ABC):
    """Base class for anything driven by the session's frame loop.

    Subclasses override the lifecycle hooks they need; the defaults do
    nothing.
    """

    def __init__(self, session: Optional["LensSession"] = None) -> None:
        self.session = session

    def enter(self) -> None:
        """Called once when the session starts."""
        return None

    def exit(self) -> None:
        """Called once when the session shuts down."""
        return None

    def update(self, dt: float) -> None:
        """Per-frame logic. dt is seconds since the previous frame."""
        return None

    def render(self, surface: Optional[pygame.Surface]) -> None:
        """Draw onto the given pygame.Surface.

        surface may be None in non-graphical tests.
        """
        return None

    def handle_event(self, event: Optional[pygame.event.Event]) -> None:
        """Handle an input event (pygame.Event or similar)."""
        return None


class LensSession:
    """Runs a set of components against one injected trigger bus.

    Responsibilities:
    - register components by name
    - enter them in registration order, exit them in reverse
    - forward update/render/event calls to every component
    """

    def __init__(self, bus: TriggerBus) -> None:
        self.bus = bus
        self._components: Dict[str, Component] = {}
        self.running: bool = False

    def register(self, name: str, component: Component) -> Component:
        """Register a component instance under a name."""
        if name in self._components:
            raise ValueError(f"component {name!r} is already registered")
        component.session = self
        self._components[name] = component
        if self.running:
            component.enter()
        return component

    def get(self, name: str) -> Optional[Component]:
        return self._components.get(name)

    @property
    def components(self) -> List[Component]:
        return list(self._components.values())

    def initialize(self) -> None:
        """Enter every registered component. Call before starting the loop."""
        self.running = True
        for name, component in self._components.items():
            logger.debug("LensSession: enter %s", name)
            component.enter()

    def update(self, dt: float) -> None:
        for component in list(self._components.values()):
            component.update(dt)

    def render(self, surface: Any) -> None:
        for component in list(self._components.values()):
            component.render(surface)

    def handle_event(self, event: Any) -> None:
        for component in list(self._components.values()):
            component.handle_event(event)

    def shutdown(self) -> None:
        """Exit components in reverse registration order."""
        for name, component in reversed(list(self._components.items())):
            logger.debug("LensSession: exit %s", name)
            component.exit()
        self.running = False
