from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

from ..scheduler import ScheduledCall, Scheduler
from ..widgets import ImageWidget
from .base import Subscriber, add_handler

DEFAULT_RIDDLE_COUNT = 3


class RiddleProgressImage(Subscriber):
    """Shows a riddle panel per pose and a solved panel when it is completed.

    Panels are named ``riddle{n}`` and ``riddle{n}f`` (solved), 1-based.
    Completing riddle n shows ``riddle{n}f`` for `completion_display_time`
    seconds, then ``riddle{n+1}``; the solved panel of the last riddle stays.
    """

    def __init__(
        self,
        bus,
        controller,
        image: Optional[ImageWidget],
        textures: Dict[str, Any],
        scheduler: Optional[Scheduler],
        riddle_triggers: Optional[Sequence[str]] = None,
        completion_display_time: float = 2.0,
        session=None,
    ) -> None:
        super().__init__(bus, session)
        self.controller = controller
        self.image = image
        self.textures = dict(textures)
        self.scheduler = scheduler
        self.completion_display_time = completion_display_time
        self._riddle_triggers = list(riddle_triggers) if riddle_triggers is not None else None
        self.panel = "riddle1"
        self.completed_poses = 0
        self._pending: Optional[ScheduledCall] = None

    @property
    def riddle_triggers(self) -> List[str]:
        if self._riddle_triggers is not None:
            return self._riddle_triggers
        steps = self.controller.config.steps[:DEFAULT_RIDDLE_COUNT]
        return [s.complete_trigger for s in steps if s.complete_trigger is not None]

    @property
    def is_showing_completion(self) -> bool:
        return self._pending is not None and self._pending.active

    def check(self) -> Optional[str]:
        if self.controller is None:
            return "PoseSequenceController not set"
        if self.image is None:
            return "Riddle Image component not set"
        if self.scheduler is None:
            return "scheduler not set"
        return None

    def handlers(self):
        config = self.controller.config
        mapping = {}
        add_handler(mapping, config.sequence_start_trigger, self.on_sequence_start)
        add_handler(mapping, config.sequence_complete_trigger, self.on_sequence_complete)
        add_handler(mapping, config.sequence_reset_trigger, self.on_sequence_reset)
        for number, trigger in enumerate(self.riddle_triggers, start=1):
            add_handler(mapping, trigger, lambda n=number: self.on_riddle_complete(n))
        return mapping

    def setup(self) -> None:
        self.panel = "riddle1"
        self.show_panel()

    def show_panel(self) -> None:
        texture = self.textures.get(self.panel, self.textures.get("riddle1"))
        self.log("showing %s", self.panel)
        if texture is not None:
            self.image.texture = texture

    def _cancel_pending(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    def on_riddle_complete(self, number: int) -> None:
        self.log("riddle %d solved", number)
        self.completed_poses = number
        self._cancel_pending()
        self.panel = f"riddle{number}f"
        self.show_panel()
        self._pending = self.scheduler.call_later(
            self.completion_display_time, lambda: self._advance(number)
        )

    def _advance(self, number: int) -> None:
        self._pending = None
        if number >= len(self.riddle_triggers):
            self.log("final riddle solved, keeping %s on screen", self.panel)
            return
        self.panel = f"riddle{number + 1}"
        self.show_panel()

    def _restart(self) -> None:
        self._cancel_pending()
        self.completed_poses = 0
        self.panel = "riddle1"
        self.show_panel()

    def on_sequence_start(self) -> None:
        self._restart()

    def on_sequence_complete(self) -> None:
        self.log("sequence completed")

    def on_sequence_reset(self) -> None:
        self._restart()

    def exit(self) -> None:
        self._cancel_pending()
        super().exit()

    def render(self, surface) -> None:
        if self.enabled:
            self.image.render(surface)
