import pytest
from conftest import RecordingBus, ScriptedMatcher
from lib_sequence import (
    BodyTrackingWatcher,
    Component,
    LensSession,
    PoseSequenceController,
    PoseState,
    SequenceConfig,
    SequenceState,
    build_trigger_bus,
)


class JournalComponent(Component):
    def __init__(self, name, journal):
        super().__init__()
        self.name = name
        self.journal = journal

    def enter(self):
        self.journal.append(("enter", self.name))

    def exit(self):
        self.journal.append(("exit", self.name))

    def update(self, dt):
        self.journal.append(("update", self.name))

    def render(self, surface):
        self.journal.append(("render", self.name))

    def handle_event(self, event):
        self.journal.append(("event", self.name, event))


def test_session_drives_components_in_order():
    journal = []
    session = LensSession(RecordingBus())
    first = session.register("first", JournalComponent("first", journal))
    session.register("second", JournalComponent("second", journal))
    assert first.session is session

    session.initialize()
    session.update(0.1)
    session.render(None)
    session.handle_event("key")
    session.shutdown()

    assert journal == [
        ("enter", "first"),
        ("enter", "second"),
        ("update", "first"),
        ("update", "second"),
        ("render", "first"),
        ("render", "second"),
        ("event", "first", "key"),
        ("event", "second", "key"),
        ("exit", "second"),
        ("exit", "first"),
    ]
    assert not session.running


def test_session_rejects_duplicate_names():
    session = LensSession(RecordingBus())
    session.register("a", JournalComponent("a", []))
    with pytest.raises(ValueError):
        session.register("a", JournalComponent("a", []))


def test_late_registration_enters_immediately():
    journal = []
    session = LensSession(RecordingBus())
    session.initialize()

    session.register("late", JournalComponent("late", journal))

    assert journal == [("enter", "late")]
    assert session.get("late") is not None
    assert session.get("missing") is None
    assert len(session.components) == 1


def test_watcher_publishes_on_edges_only():
    bus = RecordingBus()
    tracker = ScriptedMatcher()
    tracker.tracking = False
    watcher = BodyTrackingWatcher(bus, tracker, loss_grace_time=0.0)

    watcher.update(0.1)
    assert bus.published == []

    tracker.tracking = True
    watcher.update(0.1)
    watcher.update(0.1)
    assert watcher.tracking_now
    tracker.tracking = False
    watcher.update(0.1)

    assert bus.published == ["FULL_BODY_TRACKING_STARTED", "FULL_BODY_TRACKING_LOST"]


def test_watcher_waits_out_short_dropouts():
    bus = RecordingBus()
    tracker = ScriptedMatcher()
    watcher = BodyTrackingWatcher(bus, tracker, loss_grace_time=1.0)
    watcher.update(0.125)

    tracker.tracking = False
    for _ in range(7):
        watcher.update(0.125)
    assert watcher.tracking_now
    assert watcher.lost_for == pytest.approx(0.875)

    tracker.tracking = True
    watcher.update(0.125)
    assert watcher.lost_for == 0.0

    tracker.tracking = False
    for _ in range(7):
        watcher.update(0.125)
    assert bus.published == ["FULL_BODY_TRACKING_STARTED"]

    watcher.update(0.125)
    assert not watcher.tracking_now
    assert bus.published == ["FULL_BODY_TRACKING_STARTED", "FULL_BODY_TRACKING_LOST"]


def test_watcher_exit_forgets_state():
    bus = RecordingBus()
    tracker = ScriptedMatcher()
    watcher = BodyTrackingWatcher(bus, tracker)
    watcher.update(0.1)
    watcher.exit()
    watcher.update(0.1)

    assert bus.count("FULL_BODY_TRACKING_STARTED") == 2


def build_lens(config, matcher, **watcher_kwargs):
    bus = build_trigger_bus(config)
    session = LensSession(bus)
    session.register("tracking", BodyTrackingWatcher(bus, matcher, **watcher_kwargs))
    controller = session.register(
        "controller", PoseSequenceController(config, bus, matcher)
    )
    session.initialize()
    return bus, session, controller


def test_tracking_drives_sequence_through_session():
    config = SequenceConfig.from_lists(
        ["TPOSE"],
        ["TPOSE_START"],
        ["TPOSE_END"],
        ["TPOSE_COMPLETE"],
        print_debug_log=False,
    )
    matcher = ScriptedMatcher()
    matcher.tracking = False
    bus, session, controller = build_lens(config, matcher)

    session.update(0.125)
    assert controller.get_sequence_state() == SequenceState.WAITING_FOR_START

    matcher.tracking = True
    matcher.matched = True
    for _ in range(10):
        session.update(0.125)
    assert controller.is_sequence_complete()

    matcher.tracking = False
    for _ in range(8):
        session.update(0.125)
    assert controller.get_sequence_state() == SequenceState.WAITING_FOR_START

    session.shutdown()
    assert bus.handlers("FULL_BODY_TRACKING_STARTED") == []


def test_single_frame_dropout_keeps_sequence_progress():
    config = SequenceConfig.default()
    matcher = ScriptedMatcher()
    bus, session, controller = build_lens(config, matcher)

    matcher.matched = True
    for _ in range(100):
        if controller.current_pose_index == 3:
            break
        session.update(0.125)
    for _ in range(3):
        session.update(0.125)
    assert controller.current_pose_index == 3
    assert controller.pose_state == PoseState.HOLDING
    assert controller.hold_timer == pytest.approx(0.125)

    matcher.tracking = False
    session.update(1 / 60)

    assert controller.get_sequence_state() == SequenceState.IN_PROGRESS
    assert controller.current_pose_index == 3
    assert controller.pose_state == PoseState.NOT_DETECTED
    assert controller.hold_timer == 0.0
    assert bus.handlers("FULL_BODY_TRACKING_LOST")

    matcher.tracking = True
    session.update(1 / 60)
    assert controller.get_sequence_state() == SequenceState.IN_PROGRESS
    assert controller.current_pose_index == 3
    assert controller.pose_state == PoseState.DETECTED


def test_sustained_tracking_loss_resets_sequence():
    config = SequenceConfig.default()
    matcher = ScriptedMatcher()
    _, session, controller = build_lens(config, matcher)
    matcher.matched = True
    for _ in range(12):
        session.update(0.125)
    assert controller.current_pose_index == 1

    matcher.tracking = False
    for _ in range(7):
        session.update(0.125)
    assert controller.current_pose_index == 1

    session.update(0.125)
    assert controller.get_sequence_state() == SequenceState.WAITING_FOR_START
    assert controller.current_pose_index == 0
