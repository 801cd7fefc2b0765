from __future__ import annotations

from typing import Optional, Tuple

import cv2
import numpy as np

from .data import POSE_CONNECTIONS, PoseData


def _visibility_color(v: float) -> Tuple[int, int, int]:
    if v <= 0.0:
        return (150, 150, 150)
    v = max(0.0, min(1.0, v))
    return (0, int(v * 255), int((1.0 - v) * 255))


def draw_keypoints_on_frame(
    frame: np.ndarray, pose: Optional[PoseData], min_visibility: float = 0.1
) -> None:
    """フレーム上にキーポイントと骨格を描画する補助関数。

    引数:
            frame: BGR 画像（描画はこの配列に行われる）
            pose: PoseData インスタンス
            min_visibility: これ未満の可視性の点・骨は描かない

    返り値: なし（frame がインプレースで変更される）
    """
    if pose is None or not pose.has_landmarks:
        return

    n = pose.keypoints.shape[0]
    visibility = pose.visibility if pose.visibility is not None else np.ones((n,))

    for k1, k2 in POSE_CONNECTIONS:
        if k1 < n and k2 < n:
            if visibility[k1] < min_visibility or visibility[k2] < min_visibility:
                continue
            x1, y1 = pose.keypoints[k1, :2]
            x2, y2 = pose.keypoints[k2, :2]
            cv2.line(frame, (int(x1), int(y1)), (int(x2), int(y2)), (255, 0, 0), 2)

    for i in range(n):
        if visibility[i] < min_visibility:
            continue
        x, y = pose.keypoints[i, :2]
        cv2.circle(frame, (int(x), int(y)), 5, _visibility_color(visibility[i]), -1)


def draw_status_on_frame(
    frame: np.ndarray,
    pose_name: Optional[str],
    disparity: Optional[float],
    threshold: float,
    location: Tuple[int, int] = (10, 40),
) -> None:
    """フレーム上に照合中のポーズ名と disparity を描画する補助関数。

    disparity が threshold 以下なら緑、2 倍以内なら黄、それ以外は赤で描く。
    """
    x, y = location
    if pose_name is None:
        text = "-"
        color = (200, 200, 200)
    elif disparity is None:
        text = f"{pose_name}: no body"
        color = (0, 0, 200)
    else:
        text = f"{pose_name}: {disparity:.3f}"
        if disparity <= threshold:
            color = (0, 200, 0)
        elif disparity <= threshold * 2.0:
            color = (0, 200, 200)
        else:
            color = (0, 0, 200)

    cv2.putText(
        frame, text, (x, y), cv2.FONT_HERSHEY_SIMPLEX, 1.0, color, 3, cv2.LINE_AA
    )
