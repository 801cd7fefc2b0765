"""MediaPipe Pose Landmarker による姿勢検出"""

from __future__ import annotations

import time
from typing import Optional, Tuple

import cv2
import numpy as np
from mediapipe import Image, ImageFormat
from mediapipe.tasks.python.core.base_options import BaseOptions
from mediapipe.tasks.python.vision.core.vision_task_running_mode import (
    VisionTaskRunningMode as RunningMode,
)
from mediapipe.tasks.python.vision.pose_landmarker import (
    PoseLandmarker,
    PoseLandmarkerOptions,
    PoseLandmarkerResult,
)

from .data import PoseData


def _landmarks_to_keypoints(
    landmarks: "PoseLandmarkerResult", image_size: Tuple[int, int]
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """MediaPipe の landmarks を (N,3) の配列と visibility に変換する内部ヘルパー。
    画像座標, ワールド座標, 可視性スコアを返す。

    image_size: (width, height)
    """
    width, height = image_size
    lm_list = []
    lm_world_list = []
    v_list = []
    for lm in landmarks.pose_landmarks[0]:
        x = float(lm.x) * width
        y = float(lm.y) * height
        z = float(lm.z) * width  # MediaPipe は z を正規化 x スケールで返す
        lm_list.append((x, y, z))
        v_list.append(float(lm.visibility))
    for lm in landmarks.pose_world_landmarks[0]:
        lm_world_list.append((float(lm.x), float(lm.y), float(lm.z)))

    return (
        np.array(lm_list, dtype=float),
        np.array(lm_world_list, dtype=float),
        np.array(v_list, dtype=float),
    )


class PoseEstimator:
    """長寿命の MediaPipe Pose ラッパー。

    with 文で使用でき、`process_frame(frame)` を呼んで各フレームごとに
    `PoseData` を返します。人物が検出されなければ空の PoseData を返します。

    video=True の場合は VIDEO モードで動作し、前フレームの結果を使って
    ランドマークを追跡する（カメラ入力向け）。タイムスタンプは単調増加で
    なければならないため、省略時は内部の時計から生成する。
    """

    def __init__(
        self,
        model_asset_path: str = "pose_landmarker_full.task",
        min_detection_confidence: float = 0.5,
        min_presence_confidence: float = 0.5,
        min_tracking_confidence: float = 0.5,
        video: bool = False,
    ):
        base_options = BaseOptions(model_asset_path=model_asset_path)
        options = PoseLandmarkerOptions(
            base_options=base_options,
            running_mode=RunningMode.VIDEO if video else RunningMode.IMAGE,
            num_poses=1,
            min_pose_detection_confidence=min_detection_confidence,
            min_pose_presence_confidence=min_presence_confidence,
            min_tracking_confidence=min_tracking_confidence,
            output_segmentation_masks=False,
        )
        self.video = video
        self._detector: Optional[PoseLandmarker] = PoseLandmarker.create_from_options(options)
        self._started = time.monotonic()
        self._last_timestamp_ms = -1

    def _next_timestamp(self, timestamp_ms: Optional[int]) -> int:
        if timestamp_ms is None:
            timestamp_ms = int((time.monotonic() - self._started) * 1000)
        # VIDEO モードは同じ/過去のタイムスタンプを受け付けない
        timestamp_ms = max(int(timestamp_ms), self._last_timestamp_ms + 1)
        self._last_timestamp_ms = timestamp_ms
        return timestamp_ms

    def process_frame(self, frame: np.ndarray, timestamp_ms: Optional[int] = None) -> PoseData:
        """BGR フレームを入力に取り、PoseData を返す（検出無ければ空配列を返す）。"""
        if frame is None:
            return PoseData.empty()
        if self._detector is None:
            raise RuntimeError("PoseEstimator is closed")

        height, width = frame.shape[:2]
        image_rgb = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
        mp_image = Image(image_format=ImageFormat.SRGB, data=image_rgb)
        if self.video:
            results = self._detector.detect_for_video(mp_image, self._next_timestamp(timestamp_ms))
        else:
            results = self._detector.detect(mp_image)

        if not results.pose_landmarks:
            return PoseData.empty((width, height))

        keypoints, keypoints_world, visibility = _landmarks_to_keypoints(
            results, (width, height)
        )
        return PoseData(
            keypoints=keypoints,
            keypoints_world=keypoints_world,
            visibility=visibility,
            image_size=(width, height),
        )

    def close(self) -> None:
        if self._detector is None:
            return
        detector, self._detector = self._detector, None
        detector.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
