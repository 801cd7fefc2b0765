from __future__ import annotations

import logging
from typing import Optional

from ..controller import SequenceState
from ..session import Component
from ..widgets import TextWidget

logger = logging.getLogger(__name__)


class FinalPoseReveal(Component):
    """Reveals a number once every pose in the sequence is completed.

    Polls the controller each frame; hides the number again when the
    sequence goes back to waiting for start.
    """

    def __init__(
        self,
        controller,
        number_text: Optional[TextWidget],
        number_to_show: str = "5",
        session=None,
    ) -> None:
        super().__init__(session)
        self.controller = controller
        self.number_text = number_text
        self.number_to_show = number_to_show
        self.is_number_shown = False

    def enter(self) -> None:
        if self.number_text is None:
            logger.error("FinalPose: ERROR: Number Text component not assigned!")
        else:
            self.number_text.enabled = False
        if self.controller is None:
            logger.error("FinalPose: ERROR: Pose Sequence Controller not assigned!")
        logger.info("FinalPose: initialized")

    def show_number(self) -> None:
        if self.is_number_shown or self.number_text is None:
            return
        self.number_text.text = self.number_to_show
        self.number_text.enabled = True
        self.is_number_shown = True
        logger.info("FinalPose: showing number %s, all poses completed", self.number_to_show)

    def hide_number(self) -> None:
        if self.number_text is None:
            return
        self.number_text.enabled = False
        self.is_number_shown = False
        logger.info("FinalPose: number hidden, sequence reset")

    def update(self, dt: float) -> None:
        if self.controller is None:
            return
        if self.controller.is_sequence_complete() and not self.is_number_shown:
            self.show_number()
        if (
            self.controller.get_sequence_state() == SequenceState.WAITING_FOR_START
            and self.is_number_shown
        ):
            self.hide_number()

    def render(self, surface) -> None:
        if self.number_text is not None:
            self.number_text.render(surface)
