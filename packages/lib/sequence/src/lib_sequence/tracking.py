from __future__ import annotations

import logging

from .session import Component
from .triggers import TrackingTrigger, TriggerBus

logger = logging.getLogger(__name__)

DEFAULT_LOSS_GRACE_TIME = 1.0


class BodyTrackingWatcher(Component):
    """Publishes tracking started/lost triggers on edges of the tracking signal.

    Started is published on the first tracked frame. Lost is published only
    once tracking has been absent for `loss_grace_time` seconds in a row, so
    a dropout of a few frames is seen by the controller as a plain tracking
    loss and never resets the sequence.

    Register it before the controller so that a tracking edge is handled in
    the same frame the controller evaluates.
    """

    def __init__(
        self,
        bus: TriggerBus,
        tracking,
        session=None,
        loss_grace_time: float = DEFAULT_LOSS_GRACE_TIME,
    ) -> None:
        super().__init__(session)
        self.bus = bus
        self.tracking = tracking
        self.loss_grace_time = max(0.0, float(loss_grace_time))
        self._was_tracking = False
        self._lost_for = 0.0

    @property
    def tracking_now(self) -> bool:
        return bool(self._was_tracking)

    @property
    def lost_for(self) -> float:
        """Seconds tracking has been missing while still reported as tracked."""
        return self._lost_for

    def update(self, dt: float) -> None:
        if self.tracking is None:
            return
        if self.tracking.is_tracking():
            self._lost_for = 0.0
            if not self._was_tracking:
                self._was_tracking = True
                logger.info("BodyTrackingWatcher: full body tracking started")
                self.bus.publish(TrackingTrigger.STARTED)
            return

        if not self._was_tracking:
            return
        self._lost_for += dt
        if self._lost_for >= self.loss_grace_time:
            self._was_tracking = False
            self._lost_for = 0.0
            logger.info("BodyTrackingWatcher: full body tracking lost")
            self.bus.publish(TrackingTrigger.LOST)

    def exit(self) -> None:
        self._was_tracking = False
        self._lost_for = 0.0
