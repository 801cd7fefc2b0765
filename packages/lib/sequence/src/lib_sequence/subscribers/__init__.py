from .base import Subscriber
from .effects import EffectGroup, SequenceEffectsController
from .final_pose import FinalPoseReveal
from .progress_image import PoseProgressImage
from .riddle_image import RiddleProgressImage
from .ui import PoseSequenceUI

__all__ = [
    "Subscriber",
    "EffectGroup",
    "SequenceEffectsController",
    "FinalPoseReveal",
    "PoseProgressImage",
    "RiddleProgressImage",
    "PoseSequenceUI",
]
