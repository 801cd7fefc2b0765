from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from ..config import SequenceConfig
from ..scheduler import FADE_IN, FADE_OUT, ScheduledCall, Scheduler, TweenManager
from ..widgets import set_enabled
from .base import Subscriber, add_handler

logger = logging.getLogger(__name__)


@dataclass
class EffectGroup:
    """Everything switched on together for one pose or for the finale.

    objects: SceneObject-like items with an `enabled` flag
    tweens: targets with an `alpha` attribute, faded in and out
    textures: AnimatedTexture-like items with play()/stop()
    particles: ParticleBurst-like items with start_particles()/stop_particles()
    """

    objects: List[Any] = field(default_factory=list)
    tweens: List[Any] = field(default_factory=list)
    textures: List[Any] = field(default_factory=list)
    particles: List[Any] = field(default_factory=list)

    def animated(self) -> List[Any]:
        return [*self.textures, *self.particles]


class SequenceEffectsController(Subscriber):
    """Plays per-pose effects between a pose's start and end triggers, and a
    timed finale when the whole sequence completes."""

    def __init__(
        self,
        bus,
        config: Optional[SequenceConfig],
        scheduler: Optional[Scheduler],
        tweens: Optional[TweenManager],
        effects: Dict[str, EffectGroup],
        sequence_complete: Optional[EffectGroup] = None,
        sequence_complete_effect_duration: float = 3.0,
        fade_in_tween: str = FADE_IN,
        fade_out_tween: str = FADE_OUT,
        session=None,
    ) -> None:
        super().__init__(bus, session)
        self.config = config
        self.scheduler = scheduler
        self.tweens = tweens
        self.effects = dict(effects)
        self.sequence_complete = sequence_complete or EffectGroup()
        self.sequence_complete_effect_duration = sequence_complete_effect_duration
        self.fade_in_tween = fade_in_tween
        self.fade_out_tween = fade_out_tween
        self.active_poses: List[str] = []
        self.finale_active = False
        self._finale_stop: Optional[ScheduledCall] = None

    def check(self) -> Optional[str]:
        if self.config is None:
            return "sequence config not set"
        if self.scheduler is None:
            return "scheduler not set"
        return None

    def handlers(self):
        mapping = {}
        seen = set()
        for step in self.config.steps:
            pose = step.pose_id
            key = (pose, step.triggers())
            if pose not in self.effects or key in seen:
                continue
            seen.add(key)
            add_handler(mapping, step.start_trigger, lambda p=pose: self.on_pose_start(p))
            add_handler(mapping, step.end_trigger, lambda p=pose: self.on_pose_end(p))
            add_handler(mapping, step.complete_trigger, lambda p=pose: self.on_pose_complete(p))
        add_handler(mapping, self.config.sequence_complete_trigger, self.on_sequence_complete)
        add_handler(mapping, self.config.sequence_reset_trigger, self.on_sequence_reset)
        return mapping

    def setup(self) -> None:
        if self.tweens is None:
            logger.warning("%s: no tween manager, effects will not fade", self.label)
        self.disable_all_objects()

    def disable_all_objects(self) -> None:
        for group in self.effects.values():
            set_enabled(group.objects, False)
        set_enabled(self.sequence_complete.objects, False)

    # -- group playback ------------------------------------------------------

    def _start_group(self, group: EffectGroup) -> None:
        set_enabled(group.objects, True)
        if self.tweens is not None:
            for target in group.tweens:
                if target is not None:
                    self.tweens.start_tween(target, self.fade_in_tween)
        for texture in group.textures:
            if texture is not None:
                texture.play(-1, 0)
        for burst in group.particles:
            if burst is not None:
                burst.start_particles()

    def _halt_group(self, group: EffectGroup) -> None:
        set_enabled(group.objects, False)
        for texture in group.textures:
            if texture is not None:
                texture.stop()
        for burst in group.particles:
            if burst is not None:
                burst.stop_particles()

    def _stop_group(self, group: EffectGroup) -> None:
        """Fade the group's tweens out, then halt it."""
        targets = [t for t in group.tweens if t is not None]
        if not targets or self.tweens is None:
            self._halt_group(group)
            return
        self._stop_tweens(targets, lambda: self._halt_group(group))

    def _stop_tweens(self, targets: List[Any], callback: Callable[[], None]) -> None:
        remaining = [len(targets)]

        def one_done() -> None:
            remaining[0] -= 1
            if remaining[0] == 0:
                callback()

        for target in targets:
            self.tweens.start_tween(target, self.fade_out_tween, one_done)

    # -- trigger responses ---------------------------------------------------

    def on_pose_start(self, pose: str) -> None:
        group = self.effects.get(pose)
        if group is None:
            self.log("no effects configured for pose: %s", pose)
            return
        self.log("starting effects for pose: %s", pose)
        if pose not in self.active_poses:
            self.active_poses.append(pose)
        self._start_group(group)

    def on_pose_end(self, pose: str) -> None:
        group = self.effects.get(pose)
        if group is None:
            return
        self.log("ending effects for pose: %s", pose)
        if pose in self.active_poses:
            self.active_poses.remove(pose)
        self._stop_group(group)

    def on_pose_complete(self, pose: str) -> None:
        # effects keep running until the pose's end trigger
        self.log("pose completed: %s", pose)

    def _end_all_poses(self) -> None:
        for pose in list(self.effects):
            self.on_pose_end(pose)

    def _cancel_finale_stop(self) -> None:
        if self._finale_stop is not None:
            self._finale_stop.cancel()
            self._finale_stop = None

    def on_sequence_complete(self) -> None:
        self.log("sequence completed, starting completion effects")
        self._end_all_poses()
        self._cancel_finale_stop()
        self._start_group(self.sequence_complete)
        self.finale_active = True
        self._finale_stop = self.scheduler.call_later(
            self.sequence_complete_effect_duration, self._stop_finale
        )

    def _stop_finale(self) -> None:
        self.log("stopping sequence complete effects")
        self._finale_stop = None
        self.finale_active = False
        self._stop_group(self.sequence_complete)

    def on_sequence_reset(self) -> None:
        self.log("sequence reset, stopping all effects")
        self._end_all_poses()
        self._cancel_finale_stop()
        self.finale_active = False
        self._halt_group(self.sequence_complete)

    # -- frame loop ----------------------------------------------------------

    def _groups(self) -> List[EffectGroup]:
        return [*self.effects.values(), self.sequence_complete]

    def update(self, dt: float) -> None:
        if not self.enabled:
            return
        for group in self._groups():
            for item in group.animated():
                if item is not None:
                    item.update(dt)

    def render(self, surface) -> None:
        if not self.enabled or surface is None:
            return
        for group in self._groups():
            for obj in group.objects:
                if obj is not None and hasattr(obj, "render"):
                    obj.render(surface)
            for item in group.animated():
                if item is not None:
                    item.render(surface)

    def exit(self) -> None:
        self._cancel_finale_stop()
        super().exit()
