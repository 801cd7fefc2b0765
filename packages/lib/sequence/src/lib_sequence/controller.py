"""Pose sequence state machine.

The controller walks the user through the configured poses in order. Each
pose goes NOT_DETECTED -> DETECTED -> HOLDING and counts as completed once
it has been matched continuously for `minimum_hold_time` seconds while
HOLDING. Any mismatch during the hold discards the accumulated time; losing
body tracking drops the current pose back to NOT_DETECTED without touching
the rest of the sequence.

Triggers published (names come from the config):

- sequence start / reset from `start_sequence` / `reset_sequence`
- a pose's start trigger when it is first detected
- a pose's end trigger whenever it is lost, and after it completes
- a pose's complete trigger, then its end trigger, when it completes
- the sequence complete trigger after the last pose's end trigger
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, List, Optional, Protocol, Sequence, Tuple

from .config import PoseStep, SequenceConfig
from .session import Component
from .triggers import TrackingTrigger, TriggerBus

logger = logging.getLogger(__name__)


class SequenceState(IntEnum):
    WAITING_FOR_START = 0
    IN_PROGRESS = 1
    COMPLETED = 2


class PoseState(IntEnum):
    NOT_DETECTED = 0
    DETECTED = 1
    HOLDING = 2
    COMPLETED = 3


class PoseMatcherLike(Protocol):
    def lookup_pose_frames(self, ids: Sequence[str]) -> List[Any]: ...

    def matches_pose(self, frame: Any, threshold: float) -> bool: ...


class TrackingSignal(Protocol):
    def is_tracking(self) -> bool: ...


@dataclass
class SequenceRuntime:
    """Mutable progress through the sequence. Written only by the controller."""

    sequence_state: SequenceState = SequenceState.WAITING_FOR_START
    current_pose_index: int = 0
    pose_state: PoseState = PoseState.NOT_DETECTED
    hold_timer: float = 0.0

    def rewind(self, state: SequenceState) -> None:
        self.sequence_state = state
        self.current_pose_index = 0
        self.pose_state = PoseState.NOT_DETECTED
        self.hold_timer = 0.0


class PoseSequenceController(Component):
    """Drives the pose sequence and publishes its lifecycle triggers.

    The controller resolves every configured pose in `enter()`. If any pose
    cannot be found, or a collaborator is missing, it logs the problem and
    stays disabled for the rest of the session: `update` does nothing and
    the sequence can never leave WAITING_FOR_START.
    """

    def __init__(
        self,
        config: SequenceConfig,
        bus: Optional[TriggerBus],
        matcher: Optional[PoseMatcherLike],
        tracking: Optional[TrackingSignal] = None,
        session=None,
    ) -> None:
        super().__init__(session)
        self._config = config
        self._bus = bus
        self._matcher = matcher
        self._tracking = tracking if tracking is not None else matcher
        self._runtime = SequenceRuntime()
        self._frames: List[Any] = []
        self._enabled = False
        self._initialized = False

    # -- lifecycle ---------------------------------------------------------

    def enter(self) -> None:
        if self._initialized:
            return
        self._initialized = True

        if self._bus is None:
            self._log_error("trigger bus is not set")
            return
        if self._matcher is None or not hasattr(self._matcher, "lookup_pose_frames"):
            self._log_error("pose matcher is not set")
            return
        if self._tracking is None or not hasattr(self._tracking, "is_tracking"):
            self._log_error("body tracking signal is not set")
            return

        if not self._load_pose_frames():
            self._log_error("failed to initialize, pose detection disabled")
            return

        self._enabled = True
        self._debug("initialized with %d poses", len(self._frames))

        if self._config.auto_start_on_tracking:
            self._bus.subscribe(TrackingTrigger.STARTED, self.start_sequence)
            self._bus.subscribe(TrackingTrigger.LOST, self.reset_sequence)

    def exit(self) -> None:
        if self._enabled and self._config.auto_start_on_tracking:
            self._bus.unsubscribe(TrackingTrigger.STARTED, self.start_sequence)
            self._bus.unsubscribe(TrackingTrigger.LOST, self.reset_sequence)

    def _load_pose_frames(self) -> bool:
        frames = []
        for pose_id in self._config.poses:
            found = self._matcher.lookup_pose_frames([pose_id])
            if not found:
                self._log_error("could not load pose: %s", pose_id)
                return False
            frames.append(found[0])
            self._debug("loaded pose: %s", pose_id)
        self._frames = frames
        return True

    # -- commands ----------------------------------------------------------

    def start_sequence(self) -> None:
        if not self._enabled:
            self._log_error("cannot start sequence, controller is disabled")
            return
        if self._runtime.sequence_state == SequenceState.IN_PROGRESS:
            logger.warning(
                "PoseSequenceController: restarting sequence from the first pose "
                "while already in progress"
            )
        self._debug("starting pose sequence")
        self._runtime.rewind(SequenceState.IN_PROGRESS)
        self._publish(self._config.sequence_start_trigger)

    def reset_sequence(self) -> None:
        self._debug("resetting pose sequence")
        self._runtime.rewind(SequenceState.WAITING_FOR_START)
        self._publish(self._config.sequence_reset_trigger)

    # -- queries -----------------------------------------------------------

    @property
    def config(self) -> SequenceConfig:
        return self._config

    @property
    def poses(self) -> Tuple[str, ...]:
        return self._config.poses

    @property
    def minimum_hold_time(self) -> float:
        return self._config.minimum_hold_time

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def current_pose_index(self) -> int:
        return self._runtime.current_pose_index

    @property
    def pose_state(self) -> PoseState:
        return self._runtime.pose_state

    @property
    def hold_timer(self) -> float:
        return self._runtime.hold_timer

    def get_current_pose(self) -> Optional[str]:
        index = self._runtime.current_pose_index
        poses = self._config.poses
        return poses[index] if index < len(poses) else None

    def get_current_pose_progress(self) -> float:
        """Hold time over minimum hold time. Not clamped."""
        return self._runtime.hold_timer / self._config.minimum_hold_time

    def get_sequence_state(self) -> SequenceState:
        return self._runtime.sequence_state

    def is_sequence_complete(self) -> bool:
        return self._runtime.sequence_state == SequenceState.COMPLETED

    # -- frame update ------------------------------------------------------

    def update(self, dt: float) -> None:
        if not self._enabled:
            return

        rt = self._runtime
        if rt.sequence_state != SequenceState.IN_PROGRESS:
            return

        step = self._current_step()

        if not self._tracking.is_tracking():
            if rt.pose_state == PoseState.HOLDING:
                self._debug("tracking lost, resetting current pose progress")
                rt.pose_state = PoseState.NOT_DETECTED
                rt.hold_timer = 0.0
                self._publish(step.end_trigger)
            return

        matched = bool(
            self._matcher.matches_pose(
                self._frames[rt.current_pose_index], self._config.match_threshold
            )
        )

        if rt.pose_state == PoseState.NOT_DETECTED:
            if matched:
                self._debug("detected pose: %s", step.pose_id)
                rt.pose_state = PoseState.DETECTED
                rt.hold_timer = 0.0
                self._publish(step.start_trigger)

        elif rt.pose_state == PoseState.DETECTED:
            if matched:
                rt.pose_state = PoseState.HOLDING
                rt.hold_timer = 0.0
                self._debug("holding pose: %s", step.pose_id)
            else:
                rt.pose_state = PoseState.NOT_DETECTED
                self._debug("lost pose: %s", step.pose_id)
                self._publish(step.end_trigger)

        elif rt.pose_state == PoseState.HOLDING:
            if matched:
                rt.hold_timer += dt
                if rt.hold_timer >= self._config.minimum_hold_time:
                    rt.pose_state = PoseState.COMPLETED
                    self._complete_pose(step)
            else:
                self._debug(
                    "lost pose while holding: %s (held for %.2fs)",
                    step.pose_id,
                    rt.hold_timer,
                )
                rt.pose_state = PoseState.NOT_DETECTED
                rt.hold_timer = 0.0
                self._publish(step.end_trigger)

    def _current_step(self) -> PoseStep:
        return self._config.steps[self._runtime.current_pose_index]

    def _complete_pose(self, step: PoseStep) -> None:
        rt = self._runtime
        self._debug("completed pose: %s (held for %.2fs)", step.pose_id, rt.hold_timer)

        self._publish(step.complete_trigger)
        self._publish(step.end_trigger)

        rt.current_pose_index += 1
        if rt.current_pose_index >= len(self._config.steps):
            self._complete_sequence()
            return

        rt.pose_state = PoseState.NOT_DETECTED
        rt.hold_timer = 0.0
        self._debug("next pose: %s", self._current_step().pose_id)

    def _complete_sequence(self) -> None:
        self._debug("sequence completed")
        self._runtime.sequence_state = SequenceState.COMPLETED
        self._publish(self._config.sequence_complete_trigger)

    # -- helpers -----------------------------------------------------------

    def _publish(self, name: Optional[str]) -> None:
        if name is None or self._bus is None:
            return
        self._bus.publish(name)

    def _debug(self, message: str, *args: Any) -> None:
        level = logging.INFO if self._config.print_debug_log else logging.DEBUG
        logger.log(level, "PoseSequenceController: " + message, *args)

    def _log_error(self, message: str, *args: Any) -> None:
        logger.error("PoseSequenceController: " + message, *args)
