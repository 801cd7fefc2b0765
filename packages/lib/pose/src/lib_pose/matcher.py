"""ライブ姿勢と参照ポーズの照合、および全身トラッキングの有無判定"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional

import numpy as np

from .data import BODY_JOINT_INDICES, PoseData, select_body_joints
from .library import PoseLibrary, PoseTemplate
from .similarity import compute_disparity

logger = logging.getLogger(__name__)


class PoseMatcher:
    """毎フレーム与えられる PoseData を保持し、テンプレートとの一致を判定する。

    `matches_pose(template, threshold)` は Procrustes disparity が
    threshold 以下のとき True を返す。トラッキングしていないフレームでは常に False。
    """

    def __init__(self, library: PoseLibrary, min_visibility: float = 0.5) -> None:
        self.library = library
        self.min_visibility = min_visibility
        self._pose: Optional[PoseData] = None
        self._query: Optional[np.ndarray] = None
        self.last_score: Optional[float] = None

    def update_pose(self, pose: Optional[PoseData]) -> None:
        """最新フレームの姿勢を設定する（検出なしは None か空の PoseData）。"""
        self._pose = pose
        self._query = None
        if pose is not None and pose.has_landmarks:
            try:
                self._query = select_body_joints(pose.keypoints)[:, :2]
            except ValueError:
                logger.warning("PoseMatcher: pose has too few landmarks")
                self._query = None

    @property
    def pose(self) -> Optional[PoseData]:
        return self._pose

    def is_tracking(self) -> bool:
        if self._query is None or self._pose is None:
            return False
        visibility = self._pose.visibility
        if visibility is None or visibility.shape[0] <= max(BODY_JOINT_INDICES):
            return True
        body_visibility = visibility[list(BODY_JOINT_INDICES)]
        return float(np.mean(body_visibility)) >= self.min_visibility

    def lookup_pose_frames(self, ids: Iterable[str]) -> List[PoseTemplate]:
        return self.library.lookup_pose_frames(ids)

    def matches_pose(self, template: PoseTemplate, threshold: float) -> bool:
        if not self.is_tracking():
            self.last_score = None
            return False

        disparity = compute_disparity(template.keypoints, self._query)
        self.last_score = disparity
        if disparity is None:
            return False
        return disparity <= threshold
