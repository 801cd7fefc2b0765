from __future__ import annotations

from typing import Optional, Sequence

from ..controller import SequenceState
from ..widgets import Color, ProgressBar, TextWidget
from .base import Subscriber, add_handler

DEFAULT_POSE_INSTRUCTIONS = ("Hold T-Pose", "Raise Your Arms Up")
DEFAULT_WAITING_INSTRUCTION = "Get ready to follow the pose sequence!"
DEFAULT_COMPLETED_INSTRUCTION = "Sequence Complete! Great job!"


class PoseSequenceUI(Subscriber):
    """Instruction text, hold countdown and progress bar for the sequence.

    Everything is recomputed from the controller on every frame; trigger
    handlers only force an immediate refresh.
    """

    def __init__(
        self,
        bus,
        controller,
        instruction_text: Optional[TextWidget] = None,
        progress_text: Optional[TextWidget] = None,
        progress_bar: Optional[ProgressBar] = None,
        pose_instructions: Sequence[str] = DEFAULT_POSE_INSTRUCTIONS,
        waiting_instruction: str = DEFAULT_WAITING_INSTRUCTION,
        completed_instruction: str = DEFAULT_COMPLETED_INSTRUCTION,
        show_progress_bar: bool = True,
        show_timer: bool = True,
        progress_color: Color = (255, 255, 0, 255),
        completed_color: Color = (0, 255, 0, 255),
        session=None,
    ) -> None:
        super().__init__(bus, session)
        self.controller = controller
        self.instruction_text = instruction_text
        self.progress_text = progress_text
        self.progress_bar = progress_bar
        self.pose_instructions = list(pose_instructions)
        self.waiting_instruction = waiting_instruction
        self.completed_instruction = completed_instruction
        self.show_progress_bar = show_progress_bar
        self.show_timer = show_timer
        self.progress_color = progress_color
        self.completed_color = completed_color

    def check(self) -> Optional[str]:
        if self.controller is None:
            return "PoseSequenceController not set"
        return None

    def handlers(self):
        config = self.controller.config
        mapping = {}
        add_handler(mapping, config.sequence_start_trigger, self.on_sequence_start)
        add_handler(mapping, config.sequence_complete_trigger, self.on_sequence_complete)
        add_handler(mapping, config.sequence_reset_trigger, self.on_sequence_reset)
        for step in config.steps:
            add_handler(mapping, step.start_trigger, self.on_pose_start)
            add_handler(mapping, step.end_trigger, self.on_pose_end)
            add_handler(mapping, step.complete_trigger, self.on_pose_complete)
        return mapping

    def setup(self) -> None:
        if self.progress_bar is not None:
            self.progress_bar.enabled = False
        self.refresh()

    def instruction(self) -> str:
        state = self.controller.get_sequence_state()
        if state == SequenceState.WAITING_FOR_START:
            return self.waiting_instruction
        if state == SequenceState.COMPLETED:
            return self.completed_instruction
        index = self.controller.current_pose_index
        if 0 <= index < len(self.pose_instructions):
            return self.pose_instructions[index]
        return f"Hold the pose: {self.controller.get_current_pose()}"

    def timer_text(self) -> str:
        state = self.controller.get_sequence_state()
        progress = self.controller.get_current_pose_progress()
        if state == SequenceState.IN_PROGRESS and progress > 0:
            hold = self.controller.minimum_hold_time
            return f"{hold - progress * hold:.1f}s"
        return ""

    def refresh(self) -> None:
        if not self.enabled:
            return
        state = self.controller.get_sequence_state()
        progress = self.controller.get_current_pose_progress()

        if self.instruction_text is not None:
            self.instruction_text.text = self.instruction()

        if self.progress_text is not None and self.show_timer:
            self.progress_text.text = self.timer_text()

        if self.progress_bar is not None and self.show_progress_bar:
            if state == SequenceState.IN_PROGRESS:
                self.progress_bar.enabled = True
                self.progress_bar.fill = progress
                self.progress_bar.color = (
                    self.completed_color if progress >= 1.0 else self.progress_color
                )
            else:
                self.progress_bar.enabled = False

    def on_sequence_start(self) -> None:
        self.log("sequence started")
        self.refresh()

    def on_sequence_complete(self) -> None:
        self.log("sequence completed")
        self.refresh()
        if self.progress_bar is not None:
            self.progress_bar.enabled = False

    def on_sequence_reset(self) -> None:
        self.log("sequence reset")
        self.refresh()

    def on_pose_start(self) -> None:
        self.log("pose started")
        self.refresh()

    def on_pose_end(self) -> None:
        self.log("pose ended")
        self.refresh()

    def on_pose_complete(self) -> None:
        self.log("pose completed")
        self.refresh()

    def update(self, dt: float) -> None:
        self.refresh()

    def render(self, surface) -> None:
        if not self.enabled:
            return
        for widget in (self.instruction_text, self.progress_text, self.progress_bar):
            if widget is not None:
                widget.render(surface)
