"""lib_sequence package exports.

The pose sequence controller, the trigger bus it publishes on, and the
components (session, scheduler, subscribers) that make up a lens session.
"""

from .config import ConfigError, PoseStep, SequenceConfig, load_config
from .controller import PoseSequenceController, PoseState, SequenceRuntime, SequenceState
from .scheduler import FADE_IN, FADE_OUT, ScheduledCall, Scheduler, TweenManager, TweenPreset
from .session import Component, LensSession
from .subscribers import (
    EffectGroup,
    FinalPoseReveal,
    PoseProgressImage,
    PoseSequenceUI,
    RiddleProgressImage,
    SequenceEffectsController,
)
from .tracking import BodyTrackingWatcher
from .triggers import (
    SequenceTrigger,
    TrackingTrigger,
    TriggerBus,
    UnknownTriggerError,
    build_trigger_bus,
)

__all__ = [
    "ConfigError",
    "PoseStep",
    "SequenceConfig",
    "load_config",
    "PoseSequenceController",
    "PoseState",
    "SequenceRuntime",
    "SequenceState",
    "FADE_IN",
    "FADE_OUT",
    "ScheduledCall",
    "Scheduler",
    "TweenManager",
    "TweenPreset",
    "Component",
    "LensSession",
    "EffectGroup",
    "FinalPoseReveal",
    "PoseProgressImage",
    "PoseSequenceUI",
    "RiddleProgressImage",
    "SequenceEffectsController",
    "BodyTrackingWatcher",
    "SequenceTrigger",
    "TrackingTrigger",
    "TriggerBus",
    "UnknownTriggerError",
    "build_trigger_bus",
]
