from __future__ import annotations

from typing import Any, List, Optional, Sequence

from ..controller import SequenceState
from ..widgets import ImageWidget
from .base import Subscriber, add_handler


class PoseProgressImage(Subscriber):
    """Swaps an image according to how many poses have been completed.

    `textures[n]` is shown after n poses; the last texture is shown once the
    whole sequence is complete. A pose id that recurs in the sequence only
    counts once.
    """

    def __init__(
        self,
        bus,
        controller,
        image: Optional[ImageWidget],
        textures: Sequence[Any],
        session=None,
    ) -> None:
        super().__init__(bus, session)
        self.controller = controller
        self.image = image
        self.textures = list(textures)
        self.completed_poses: List[str] = []
        self._shown_count = -1

    def check(self) -> Optional[str]:
        if self.controller is None:
            return "PoseSequenceController not set"
        if self.image is None:
            return "Progress Image component not set"
        if not self.textures:
            return "no progress textures configured"
        return None

    def handlers(self):
        config = self.controller.config
        mapping = {}
        add_handler(mapping, config.sequence_start_trigger, self.on_sequence_start)
        add_handler(mapping, config.sequence_complete_trigger, self.on_sequence_complete)
        add_handler(mapping, config.sequence_reset_trigger, self.on_sequence_reset)
        for step in config.steps:
            add_handler(mapping, step.complete_trigger, self.on_pose_complete)
        return mapping

    def setup(self) -> None:
        self._shown_count = -1
        self.refresh()

    def completed_count(self) -> int:
        state = self.controller.get_sequence_state()
        if state == SequenceState.COMPLETED:
            return len(self.textures) - 1
        if state == SequenceState.IN_PROGRESS:
            return len(self.completed_poses)
        return 0

    def refresh(self) -> None:
        if not self.enabled:
            return
        count = self.completed_count()
        if count == self._shown_count:
            return
        self._shown_count = count

        if 0 <= count < len(self.textures):
            texture = self.textures[count]
        else:
            texture = self.textures[0]
        self.log("switching to image for %d completed poses", count)
        if texture is not None:
            self.image.texture = texture

    def on_pose_complete(self) -> None:
        pose = self.controller.get_current_pose()
        if pose is not None and pose not in self.completed_poses:
            self.completed_poses.append(pose)
            self.log("added %s, total completed: %d", pose, len(self.completed_poses))
        self.refresh()

    def on_sequence_start(self) -> None:
        self.completed_poses = []
        self.refresh()

    def on_sequence_complete(self) -> None:
        self.refresh()

    def on_sequence_reset(self) -> None:
        self.completed_poses = []
        self._shown_count = -1
        self.refresh()

    def update(self, dt: float) -> None:
        self.refresh()

    def render(self, surface) -> None:
        if self.enabled:
            self.image.render(surface)
