"""
カメラ映像から MediaPipe Pose で姿勢を推定し、参照ポーズとしてライブラリに記録するツール。

実行:
        python record_pose.py TPOSE --library poses.json

SPACE で現在の姿勢を記録、q で終了します。既存のライブラリファイルがあれば追記します。
"""

from __future__ import annotations

import argparse
import logging
import os
import sys

import cv2
from lib_pose import PoseLibrary, PoseTemplate
from lib_pose.detect import PoseEstimator
from lib_pose.util_2d import draw_keypoints_on_frame

logger = logging.getLogger(__name__)


def run(
    pose_name: str,
    library_path: str = "poses.json",
    camera_index: int = 0,
    model_path: str = "pose_landmarker_full.task",
) -> int:
    """ライブ映像を表示し、SPACE で pose_name として姿勢を保存する。"""
    if os.path.exists(library_path):
        try:
            library = PoseLibrary.load(library_path, include_builtin=False)
        except (OSError, ValueError) as e:
            logger.error("could not load pose library %s: %s", library_path, e)
            return 2
    else:
        library = PoseLibrary()

    cap = cv2.VideoCapture(camera_index)
    if not cap.isOpened():
        logger.error("could not open camera (index=%d)", camera_index)
        return 3

    saved = 0
    with PoseEstimator(model_asset_path=model_path, video=True) as estimator:
        try:
            while True:
                ret, frame = cap.read()
                if not ret:
                    logger.warning("could not read a frame from the camera")
                    break

                frame = cv2.flip(frame, 1)
                pose = estimator.process_frame(frame)
                draw_keypoints_on_frame(frame, pose)
                cv2.putText(
                    frame,
                    f"{pose_name}: SPACE to record, q to quit",
                    (10, 30),
                    cv2.FONT_HERSHEY_SIMPLEX,
                    0.8,
                    (0, 200, 0),
                    2,
                    cv2.LINE_AA,
                )
                cv2.imshow("Record Pose", frame)

                key = cv2.waitKey(5) & 0xFF
                if key == ord("q"):
                    break
                if key == ord(" "):
                    if not pose.has_landmarks:
                        logger.warning("no pose detected, nothing recorded")
                        continue
                    library.register(PoseTemplate.from_pose(pose_name, pose))
                    library.save(library_path)
                    saved += 1
                    logger.info("recorded %s into %s", pose_name, library_path)
        finally:
            cap.release()
            cv2.destroyAllWindows()

    return 0 if saved else 1


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Record a reference pose")
    parser.add_argument("name", help="pose id, e.g. TPOSE")
    parser.add_argument("--library", default="poses.json")
    parser.add_argument("--camera", type=int, default=0)
    parser.add_argument("--model", default="pose_landmarker_full.task")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")
    return run(args.name, args.library, args.camera, args.model)


if __name__ == "__main__":
    sys.exit(main())
