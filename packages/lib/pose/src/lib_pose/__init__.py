from .data import BODY_JOINTS, POSE_LANDMARKS, PoseData
from .library import PoseLibrary, PoseTemplate
from .matcher import PoseMatcher
from .similarity import compute_disparity

__all__ = [
    "PoseData",
    "POSE_LANDMARKS",
    "BODY_JOINTS",
    "PoseTemplate",
    "PoseLibrary",
    "PoseMatcher",
    "compute_disparity",
]
