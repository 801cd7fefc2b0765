"""参照ポーズ（テンプレート）のライブラリ"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

import numpy as np

from .data import BODY_JOINT_INDICES, BODY_JOINTS, PoseData, select_body_joints

logger = logging.getLogger(__name__)

LIBRARY_FORMAT_VERSION = 1


@dataclass(frozen=True)
class PoseTemplate:
    """名前付きの参照ポーズ。

    keypoints は BODY_JOINTS の順に並んだ画像平面座標 (13, 2)。
    単位は任意（照合は Procrustes で拡大縮小・平行移動を除去する）。
    """

    name: str
    keypoints: np.ndarray

    def __post_init__(self) -> None:
        points = np.asarray(self.keypoints, dtype=float)
        if points.shape != (len(BODY_JOINTS), 2):
            raise ValueError(
                f"PoseTemplate {self.name!r}: keypoints must have shape "
                f"({len(BODY_JOINTS)}, 2), got {points.shape}"
            )
        object.__setattr__(self, "keypoints", points)

    @classmethod
    def from_pose(cls, name: str, pose: PoseData) -> "PoseTemplate":
        """検出済みの PoseData からテンプレートを作る。"""
        if not pose.has_landmarks:
            raise ValueError(f"PoseTemplate {name!r}: pose has no landmarks")
        return cls(name=name, keypoints=select_body_joints(pose.keypoints)[:, :2])

    @classmethod
    def from_joints(cls, name: str, joints: Dict[str, tuple]) -> "PoseTemplate":
        missing = [joint for joint in BODY_JOINTS if joint not in joints]
        if missing:
            raise ValueError(f"PoseTemplate {name!r}: missing joints {missing}")
        return cls(name=name, keypoints=np.array([joints[j] for j in BODY_JOINTS]))

    def to_pose(self, image_size=(0, 0)) -> PoseData:
        """テンプレートを 33 点の PoseData に展開する（未使用の点は 0、可視性 0）。"""
        keypoints = np.zeros((33, 3))
        visibility = np.zeros((33,))
        for row, index in enumerate(BODY_JOINT_INDICES):
            keypoints[index, :2] = self.keypoints[row]
            visibility[index] = 1.0
        return PoseData(
            keypoints=keypoints,
            keypoints_world=keypoints.copy(),
            visibility=visibility,
            image_size=image_size,
        )


# 組み込みの参照ポーズ。x は右、y は下向き、腰の中心が原点。
_LEGS = {
    "left_hip": (0.25, 0.0),
    "right_hip": (-0.25, 0.0),
    "left_knee": (0.25, 0.9),
    "right_knee": (-0.25, 0.9),
    "left_ankle": (0.25, 1.8),
    "right_ankle": (-0.25, 1.8),
}

_TORSO = {
    "nose": (0.0, -1.6),
    "left_shoulder": (0.4, -1.2),
    "right_shoulder": (-0.4, -1.2),
}

BUILTIN_POSES = {
    "TPOSE": {
        **_TORSO,
        "left_elbow": (1.0, -1.2),
        "right_elbow": (-1.0, -1.2),
        "left_wrist": (1.6, -1.2),
        "right_wrist": (-1.6, -1.2),
        **_LEGS,
    },
    "ARMS_UP": {
        **_TORSO,
        "left_elbow": (0.5, -1.9),
        "right_elbow": (-0.5, -1.9),
        "left_wrist": (0.55, -2.6),
        "right_wrist": (-0.55, -2.6),
        **_LEGS,
    },
    # 腕を体側に下ろした直立姿勢
    "THIRD_POSE_NO_ARMS": {
        **_TORSO,
        "left_elbow": (0.45, -0.6),
        "right_elbow": (-0.45, -0.6),
        "left_wrist": (0.5, 0.0),
        "right_wrist": (-0.5, 0.0),
        **_LEGS,
    },
}


class PoseLibrary:
    """参照ポーズを名前で管理する。

    `lookup_pose_frames(ids)` は見つかったテンプレートだけを順に返すので、
    呼び出し側は戻り値が空かどうかで未登録の ID を判定できる。
    """

    def __init__(self, templates: Optional[Iterable[PoseTemplate]] = None) -> None:
        self._templates: Dict[str, PoseTemplate] = {}
        for template in templates or ():
            self.register(template)

    @classmethod
    def default(cls) -> "PoseLibrary":
        return cls(
            PoseTemplate.from_joints(name, joints)
            for name, joints in BUILTIN_POSES.items()
        )

    def register(self, template: PoseTemplate) -> None:
        if template.name in self._templates:
            logger.info("PoseLibrary: replacing template %s", template.name)
        self._templates[template.name] = template

    def get(self, name: str) -> Optional[PoseTemplate]:
        return self._templates.get(name)

    def names(self) -> List[str]:
        return list(self._templates)

    def lookup_pose_frames(self, ids: Iterable[str]) -> List[PoseTemplate]:
        return [self._templates[i] for i in ids if i in self._templates]

    def __contains__(self, name: object) -> bool:
        return name in self._templates

    def __len__(self) -> int:
        return len(self._templates)

    def save(self, path: Union[str, Path]) -> None:
        """ライブラリを JSON ファイルに書き出す。"""
        data = {
            "version": LIBRARY_FORMAT_VERSION,
            "joints": list(BODY_JOINTS),
            "poses": {
                name: template.keypoints.round(6).tolist()
                for name, template in self._templates.items()
            },
        }
        Path(path).write_text(json.dumps(data, indent=2), encoding="utf-8")

    @classmethod
    def load(cls, path: Union[str, Path], *, include_builtin: bool = True) -> "PoseLibrary":
        """JSON ファイルからライブラリを読み込む。

        include_builtin が True の場合、組み込みポーズの上にファイルの内容を重ねる。
        ファイルを読めない場合は OSError、内容が不正な場合は ValueError を送出する。
        """
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
        if not isinstance(raw, dict):
            raise ValueError(f"Pose library {path}: top-level JSON value must be an object")
        if raw.get("version") != LIBRARY_FORMAT_VERSION:
            raise ValueError(
                f"Unsupported pose library version {raw.get('version')!r} in {path}"
            )
        if raw.get("joints", list(BODY_JOINTS)) != list(BODY_JOINTS):
            raise ValueError(f"Pose library {path} uses a different joint layout")
        poses = raw.get("poses", {})
        if not isinstance(poses, dict):
            raise ValueError(f"Pose library {path}: 'poses' must be an object")

        library = cls.default() if include_builtin else cls()
        for name, points in poses.items():
            try:
                template = PoseTemplate(name=name, keypoints=np.array(points, dtype=float))
            except (TypeError, ValueError) as e:
                raise ValueError(f"Pose library {path}: invalid pose {name!r}: {e}") from e
            library.register(template)
        logger.info("PoseLibrary: loaded %d poses from %s", len(poses), path)
        return library
