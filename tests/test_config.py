import json

import pytest
from lib_sequence import ConfigError, PoseStep, SequenceConfig, load_config


def test_default_sequence():
    config = SequenceConfig.default()

    assert config.poses == ("TPOSE", "ARMS_UP", "THIRD_POSE_NO_ARMS", "TPOSE")
    assert config.steps[0].complete_trigger == "TPOSE_COMPLETE"
    assert config.steps[3].complete_trigger == "TPOSE_2_COMPLETE"
    assert config.sequence_start_trigger == "SEQUENCE_START"
    assert config.sequence_complete_trigger == "SEQUENCE_COMPLETE"
    assert config.sequence_reset_trigger == "SEQUENCE_RESET"
    assert config.minimum_hold_time == 1.0
    assert config.match_threshold == 0.15
    assert config.print_debug_log is True
    assert config.auto_start_on_tracking is True


def test_default_accepts_overrides():
    config = SequenceConfig.default(minimum_hold_time=2.5, print_debug_log=False)
    assert config.minimum_hold_time == 2.5
    assert config.print_debug_log is False


def test_from_lists_pairs_by_index():
    config = SequenceConfig.from_lists(
        ["A", "B"],
        start_triggers=["A_S", "B_S"],
        end_triggers=["A_E"],
        complete_triggers=[],
    )

    assert config.steps == (
        PoseStep("A", "A_S", "A_E", None),
        PoseStep("B", "B_S", None, None),
    )


def test_trigger_names_skip_unset():
    config = SequenceConfig.from_lists(["A"], start_triggers=["A_S"])
    assert config.trigger_names() == frozenset(
        {"A_S", "SEQUENCE_START", "SEQUENCE_COMPLETE", "SEQUENCE_RESET"}
    )


def test_config_is_immutable():
    config = SequenceConfig.default()
    with pytest.raises(AttributeError):
        config.minimum_hold_time = 3.0


@pytest.mark.parametrize(
    "kwargs",
    [
        {"steps": ()},
        {"steps": (PoseStep(""),)},
        {"steps": (PoseStep("A", start_trigger=""),)},
        {"steps": ("A",)},
        {"steps": (PoseStep("A"),), "minimum_hold_time": 0.0},
        {"steps": (PoseStep("A"),), "minimum_hold_time": -1.0},
        {"steps": (PoseStep("A"),), "match_threshold": 1.5},
        {"steps": (PoseStep("A"),), "sequence_start_trigger": ""},
    ],
)
def test_invalid_configs_are_rejected(kwargs):
    with pytest.raises(ConfigError):
        SequenceConfig(**kwargs)


def test_from_dict_mixes_plain_and_detailed_entries():
    config = SequenceConfig.from_dict(
        {
            "poses": [
                "TPOSE",
                {"id": "ARMS_UP", "complete_trigger": "ARMS_DONE"},
            ],
            "minimum_hold_time": "2",
            "auto_start_on_tracking": False,
        }
    )

    assert config.steps[0] == PoseStep.with_default_triggers("TPOSE")
    assert config.steps[1] == PoseStep("ARMS_UP", complete_trigger="ARMS_DONE")
    assert config.minimum_hold_time == 2.0
    assert config.auto_start_on_tracking is False


@pytest.mark.parametrize(
    "data",
    [
        {},
        {"poses": "TPOSE"},
        {"poses": [42]},
        {"poses": [{"start_trigger": "X"}]},
        {"poses": ["TPOSE"], "hold": 1.0},
        {"poses": ["TPOSE"], "match_threshold": "tight"},
    ],
)
def test_from_dict_rejects_bad_input(data):
    with pytest.raises(ConfigError):
        SequenceConfig.from_dict(data)


def test_load_config_reads_json(tmp_path):
    path = tmp_path / "sequence.json"
    path.write_text(json.dumps({"poses": ["TPOSE", "ARMS_UP"], "match_threshold": 0.2}))

    config = load_config(path)

    assert config.poses == ("TPOSE", "ARMS_UP")
    assert config.match_threshold == 0.2


def test_load_config_missing_file(tmp_path):
    with pytest.raises(ConfigError, match="not found"):
        load_config(tmp_path / "nope.json")


def test_load_config_bad_json(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{not json")
    with pytest.raises(ConfigError, match="invalid JSON"):
        load_config(path)


def test_load_config_requires_object(tmp_path):
    path = tmp_path / "list.json"
    path.write_text("[]")
    with pytest.raises(ConfigError):
        load_config(str(path))


def test_load_config_directory_is_a_config_error(tmp_path):
    with pytest.raises(ConfigError, match="could not read"):
        load_config(tmp_path)


def test_load_config_non_utf8_is_a_config_error(tmp_path):
    path = tmp_path / "latin1.json"
    path.write_bytes(b'{"poses": ["\xff\xfe"]}')
    with pytest.raises(ConfigError, match="not UTF-8"):
        load_config(path)
