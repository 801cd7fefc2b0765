import json

import numpy as np
import pytest
from lib_pose import (
    BODY_JOINTS,
    PoseData,
    PoseLibrary,
    PoseMatcher,
    PoseTemplate,
    compute_disparity,
)


@pytest.fixture
def library():
    return PoseLibrary.default()


def live_pose(template, scale=200.0, offset=(320.0, 240.0), visibility=1.0):
    """Template expanded to a 33-landmark pose in pixel coordinates."""
    pose = template.to_pose(image_size=(640, 480))
    pose.keypoints[:, :2] = pose.keypoints[:, :2] * scale + np.asarray(offset)
    pose.visibility = pose.visibility * visibility
    return pose


def test_default_library_has_builtin_poses(library):
    assert set(library.names()) == {"TPOSE", "ARMS_UP", "THIRD_POSE_NO_ARMS"}
    assert "TPOSE" in library
    assert len(library) == 3
    assert library.get("TPOSE").keypoints.shape == (len(BODY_JOINTS), 2)


def test_lookup_returns_only_known_ids(library):
    frames = library.lookup_pose_frames(["TPOSE", "NOPE", "ARMS_UP"])
    assert [f.name for f in frames] == ["TPOSE", "ARMS_UP"]
    assert library.lookup_pose_frames(["NOPE"]) == []


def test_template_shape_is_validated():
    with pytest.raises(ValueError):
        PoseTemplate("bad", np.zeros((5, 2)))
    with pytest.raises(ValueError):
        PoseTemplate.from_joints("partial", {"nose": (0, 0)})
    with pytest.raises(ValueError):
        PoseTemplate.from_pose("empty", PoseData.empty())


def test_template_from_detected_pose(library):
    template = library.get("ARMS_UP")
    rebuilt = PoseTemplate.from_pose("COPY", template.to_pose())
    np.testing.assert_allclose(rebuilt.keypoints, template.keypoints)


def test_library_save_and_load(tmp_path, library):
    custom = PoseTemplate("WAVE", library.get("TPOSE").keypoints + 0.1)
    saved = PoseLibrary([custom])
    path = tmp_path / "poses.json"
    saved.save(path)

    raw = json.loads(path.read_text())
    assert raw["version"] == 1
    assert raw["joints"] == list(BODY_JOINTS)

    loaded = PoseLibrary.load(path)
    assert "WAVE" in loaded and "TPOSE" in loaded
    np.testing.assert_allclose(loaded.get("WAVE").keypoints, custom.keypoints)

    only_file = PoseLibrary.load(path, include_builtin=False)
    assert only_file.names() == ["WAVE"]


def test_library_load_rejects_other_versions(tmp_path):
    path = tmp_path / "poses.json"
    path.write_text(json.dumps({"version": 99, "poses": {}}))
    with pytest.raises(ValueError):
        PoseLibrary.load(path)


def test_disparity_ignores_scale_and_translation(library):
    ref = library.get("TPOSE").keypoints
    assert compute_disparity(ref, ref * 300.0 + 42.0) == pytest.approx(0.0, abs=1e-9)


def test_disparity_separates_different_poses(library):
    tpose = library.get("TPOSE").keypoints
    arms_up = library.get("ARMS_UP").keypoints
    assert compute_disparity(tpose, arms_up) > 0.05


def test_disparity_unavailable_for_bad_input():
    points = np.random.default_rng(0).normal(size=(13, 2))
    assert compute_disparity(points, points[:5]) is None
    assert compute_disparity(np.ones((13, 2)), points) is None
    bad = points.copy()
    bad[0, 0] = np.nan
    assert compute_disparity(points, bad) is None
    assert compute_disparity(None, points) is None


def test_matcher_accepts_same_pose(library):
    matcher = PoseMatcher(library)
    matcher.update_pose(live_pose(library.get("TPOSE")))

    assert matcher.is_tracking()
    assert matcher.matches_pose(library.get("TPOSE"), 0.01)
    assert matcher.last_score == pytest.approx(0.0, abs=1e-9)


def test_matcher_rejects_other_pose(library):
    matcher = PoseMatcher(library)
    matcher.update_pose(live_pose(library.get("TPOSE")))

    assert not matcher.matches_pose(library.get("ARMS_UP"), 0.05)
    assert matcher.last_score > 0.05


def test_matcher_threshold_is_inclusive(library):
    matcher = PoseMatcher(library)
    matcher.update_pose(live_pose(library.get("TPOSE")))
    matcher.matches_pose(library.get("ARMS_UP"), 0.0)
    score = matcher.last_score

    assert matcher.matches_pose(library.get("ARMS_UP"), score)


def test_matcher_without_pose_is_not_tracking(library):
    matcher = PoseMatcher(library)
    assert not matcher.is_tracking()

    matcher.update_pose(PoseData.empty((640, 480)))
    assert not matcher.is_tracking()
    assert not matcher.matches_pose(library.get("TPOSE"), 1.0)
    assert matcher.last_score is None

    matcher.update_pose(None)
    assert matcher.pose is None
    assert not matcher.is_tracking()


def test_matcher_low_visibility_is_not_tracking(library):
    matcher = PoseMatcher(library, min_visibility=0.5)
    matcher.update_pose(live_pose(library.get("TPOSE"), visibility=0.2))

    assert not matcher.is_tracking()
    assert not matcher.matches_pose(library.get("TPOSE"), 1.0)


def test_matcher_lookup_delegates_to_library(library):
    matcher = PoseMatcher(library)
    assert [t.name for t in matcher.lookup_pose_frames(["ARMS_UP"])] == ["ARMS_UP"]


@pytest.mark.parametrize(
    "content",
    [
        "[]",
        '"poses"',
        '{"version": 1, "poses": []}',
        '{"version": 1, "joints": 3}',
        '{"version": 1, "poses": {"BAD": [[0, 0]]}}',
        '{"version": 1, "poses": {"BAD": {"x": 1}}}',
        "{not json",
    ],
)
def test_library_load_rejects_malformed_files(tmp_path, content):
    path = tmp_path / "poses.json"
    path.write_text(content)
    with pytest.raises(ValueError):
        PoseLibrary.load(path)


def test_library_load_unreadable_path_is_os_error(tmp_path):
    with pytest.raises(OSError):
        PoseLibrary.load(tmp_path)
