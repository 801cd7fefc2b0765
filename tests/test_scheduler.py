import pytest
from lib_sequence import FADE_IN, FADE_OUT, Scheduler, TweenManager, TweenPreset
from lib_sequence.widgets import SceneObject, TextWidget


class Target:
    def __init__(self, alpha=1.0):
        self.alpha = alpha


def test_call_later_fires_once_when_due():
    scheduler = Scheduler()
    calls = []
    scheduler.call_later(0.5, lambda: calls.append("x"))

    scheduler.update(0.25)
    assert calls == []
    assert scheduler.pending == 1

    scheduler.update(0.25)
    scheduler.update(0.25)
    assert calls == ["x"]
    assert scheduler.pending == 0


def test_cancelled_call_never_fires():
    scheduler = Scheduler()
    calls = []
    handle = scheduler.call_later(0.1, lambda: calls.append("x"))

    handle.cancel()
    scheduler.update(1.0)

    assert calls == []
    assert not handle.active


def test_zero_delay_fires_on_next_update():
    scheduler = Scheduler()
    calls = []
    scheduler.call_later(0, lambda: calls.append("x"))
    assert calls == []
    scheduler.update(0.0)
    assert calls == ["x"]


def test_callback_may_schedule_another():
    scheduler = Scheduler()
    calls = []
    scheduler.call_later(0.1, lambda: scheduler.call_later(0.1, lambda: calls.append("second")))

    scheduler.update(0.125)
    assert scheduler.pending == 1
    scheduler.update(0.125)
    assert calls == ["second"]


def test_failing_callback_is_logged(caplog):
    scheduler = Scheduler()
    calls = []

    def broken():
        raise RuntimeError("boom")

    scheduler.call_later(0.1, broken)
    scheduler.call_later(0.1, lambda: calls.append("ok"))
    scheduler.update(0.5)

    assert calls == ["ok"]
    assert "delayed callback failed" in caplog.text


def test_cancel_all_and_exit():
    scheduler = Scheduler()
    scheduler.call_later(1.0, lambda: None)
    scheduler.call_later(2.0, lambda: None)

    scheduler.exit()

    assert scheduler.pending == 0


def test_fade_in_runs_from_zero_to_one():
    tweens = TweenManager()
    target = Target(alpha=0.7)
    done = []

    tweens.start_tween(target, FADE_IN, lambda: done.append(True))
    assert target.alpha == 0.0
    assert tweens.is_tweening(target)

    tweens.update(0.15)
    assert target.alpha == pytest.approx(0.5)
    assert done == []

    tweens.update(0.15)
    assert target.alpha == pytest.approx(1.0)
    assert done == [True]
    assert not tweens.is_tweening(target)


def test_fade_out_starts_from_current_alpha():
    tweens = TweenManager()
    target = Target(alpha=0.6)

    tweens.start_tween(target, FADE_OUT)
    tweens.update(0.15)

    assert target.alpha == pytest.approx(0.3)


def test_restarting_a_tween_replaces_the_old_one():
    tweens = TweenManager()
    target = Target()
    calls = []

    tweens.start_tween(target, FADE_OUT, lambda: calls.append("out"))
    tweens.update(0.1)
    tweens.start_tween(target, FADE_IN, lambda: calls.append("in"))
    tweens.update(1.0)

    assert calls == ["in"]
    assert target.alpha == pytest.approx(1.0)


def test_unknown_tween_name_raises():
    with pytest.raises(KeyError):
        TweenManager().start_tween(Target(), "WOBBLE")


def test_custom_presets():
    tweens = TweenManager(presets={"HALF": TweenPreset(start=1.0, end=0.5, duration=0.0)})
    target = Target()
    tweens.start_tween(target, "HALF")
    tweens.update(0.01)
    assert target.alpha == pytest.approx(0.5)


def test_fading_a_scene_object_fades_its_child():
    tweens = TweenManager()
    label = TextWidget("hello")
    obj = SceneObject("label", child=label)
    obj.alpha = 0.6

    tweens.start_tween(obj, FADE_OUT)
    tweens.update(0.15)

    assert label.alpha == pytest.approx(0.3)
    assert obj.alpha == pytest.approx(0.3)


def test_scene_object_without_child_keeps_own_alpha():
    tweens = TweenManager()
    obj = SceneObject("empty")
    assert obj.alpha == 1.0

    tweens.start_tween(obj, FADE_IN)
    tweens.update(0.15)
    assert obj.alpha == pytest.approx(0.5)

    tweens.update(0.15)
    assert obj.alpha == pytest.approx(1.0)
    assert not tweens.is_tweening(obj)
