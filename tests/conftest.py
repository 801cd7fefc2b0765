import os

os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
os.environ.setdefault("SDL_AUDIODRIVER", "dummy")

import pytest
from lib_sequence import PoseSequenceController, SequenceConfig, TriggerBus


class RecordingBus(TriggerBus):
    """TriggerBus that remembers every published name in order."""

    def __init__(self, names=None):
        super().__init__(names)
        self.published = []

    def publish(self, name):
        self.published.append(getattr(name, "value", name))
        super().publish(name)

    def count(self, name):
        return self.published.count(name)


class ScriptedMatcher:
    """Pose matcher / tracking signal whose verdicts the test sets per frame."""

    def __init__(self, known=None):
        self.known = set(known) if known is not None else None
        self.matched = False
        self.tracking = True
        self.queries = []

    def lookup_pose_frames(self, ids):
        return [f"frame:{i}" for i in ids if self.known is None or i in self.known]

    def matches_pose(self, frame, threshold):
        self.queries.append((frame, threshold))
        return self.matched

    def is_tracking(self):
        return self.tracking


@pytest.fixture
def bus():
    return RecordingBus()


@pytest.fixture
def matcher():
    return ScriptedMatcher()


def make_controller(bus, matcher, poses=("TPOSE",), **kwargs):
    kwargs.setdefault("auto_start_on_tracking", False)
    kwargs.setdefault("print_debug_log", False)
    config = SequenceConfig.from_lists(
        poses,
        [f"{p}_START" for p in poses],
        [f"{p}_END" for p in poses],
        [f"{p}_COMPLETE" for p in poses],
        **kwargs,
    )
    controller = PoseSequenceController(config, bus, matcher)
    controller.enter()
    return controller


def run_frames(controller, frames, dt=0.125):
    for _ in range(frames):
        controller.update(dt)


def hold_until_complete(controller, matcher, dt=0.125, limit=1000):
    """Feed matched frames until the current pose index advances."""
    matcher.matched = True
    start = controller.current_pose_index
    for n in range(1, limit + 1):
        controller.update(dt)
        if controller.current_pose_index != start:
            return n
    raise AssertionError("pose never completed")
