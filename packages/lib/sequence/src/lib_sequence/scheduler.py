"""Frame-driven timing helpers: one-shot delayed callbacks and alpha tweens.

Nothing here blocks or uses wall-clock time; everything advances when the
owner calls `update(dt)` from the frame loop.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from .session import Component

logger = logging.getLogger(__name__)

FADE_IN = "FADEIN"
FADE_OUT = "FADEOUT"

DEFAULT_TWEEN_DURATION = 0.3


@dataclass
class ScheduledCall:
    delay: float
    callback: Callable[[], None]
    elapsed: float = 0.0
    cancelled: bool = False
    fired: bool = False

    def cancel(self) -> None:
        self.cancelled = True

    @property
    def active(self) -> bool:
        return not (self.cancelled or self.fired)


class Scheduler(Component):
    """Runs callbacks once after a delay, measured in frame time."""

    def __init__(self, session=None) -> None:
        super().__init__(session)
        self._calls: List[ScheduledCall] = []

    def call_later(self, delay: float, callback: Callable[[], None]) -> ScheduledCall:
        call = ScheduledCall(delay=max(0.0, float(delay)), callback=callback)
        self._calls.append(call)
        return call

    @property
    def pending(self) -> int:
        return sum(1 for call in self._calls if call.active)

    def cancel_all(self) -> None:
        for call in self._calls:
            call.cancel()
        self._calls.clear()

    def update(self, dt: float) -> None:
        due = []
        for call in self._calls:
            if not call.active:
                continue
            call.elapsed += dt
            if call.elapsed >= call.delay:
                due.append(call)

        for call in due:
            if not call.active:
                continue
            call.fired = True
            try:
                call.callback()
            except Exception:
                logger.exception("Scheduler: delayed callback failed")

        self._calls = [call for call in self._calls if call.active]

    def exit(self) -> None:
        self.cancel_all()


@dataclass
class Tween:
    """Interpolates `target.alpha` from `start` to `end` over `duration`."""

    target: Any
    name: str
    start: float
    end: float
    duration: float
    on_complete: Optional[Callable[[], None]] = None
    elapsed: float = 0.0
    done: bool = False

    def step(self, dt: float) -> bool:
        self.elapsed += dt
        if self.duration <= 0:
            t = 1.0
        else:
            t = min(1.0, self.elapsed / self.duration)
        self.target.alpha = self.start + (self.end - self.start) * t
        if t >= 1.0:
            self.done = True
        return self.done


@dataclass
class TweenPreset:
    start: Optional[float]
    end: float
    duration: float = DEFAULT_TWEEN_DURATION


class TweenManager(Component):
    """Starts named tweens on targets and completes them frame by frame.

    Starting a tween on a target that already has one replaces it without
    calling the replaced tween's callback.
    """

    def __init__(self, session=None, presets: Optional[Dict[str, TweenPreset]] = None) -> None:
        super().__init__(session)
        self.presets: Dict[str, TweenPreset] = {
            FADE_IN: TweenPreset(start=0.0, end=1.0),
            FADE_OUT: TweenPreset(start=None, end=0.0),
        }
        if presets:
            self.presets.update(presets)
        self._active: Dict[int, Tween] = {}

    def start_tween(
        self, target: Any, name: str, callback: Optional[Callable[[], None]] = None
    ) -> Tween:
        preset = self.presets.get(name)
        if preset is None:
            raise KeyError(f"unknown tween {name!r}")
        start = preset.start if preset.start is not None else getattr(target, "alpha", 1.0)
        tween = Tween(
            target=target,
            name=name,
            start=start,
            end=preset.end,
            duration=preset.duration,
            on_complete=callback,
        )
        target.alpha = start
        self._active[id(target)] = tween
        return tween

    def is_tweening(self, target: Any) -> bool:
        return id(target) in self._active

    def update(self, dt: float) -> None:
        finished = []
        for key, tween in list(self._active.items()):
            if tween.step(dt):
                finished.append((key, tween))

        for key, tween in finished:
            if self._active.get(key) is tween:
                del self._active[key]
            if tween.on_complete is not None:
                try:
                    tween.on_complete()
                except Exception:
                    logger.exception("TweenManager: completion callback for %s failed", tween.name)

    def exit(self) -> None:
        self._active.clear()
