"""Pose sequence configuration.

The sequence is an ordered tuple of `PoseStep` records, one per required
pose, each naming the triggers published for that pose. Configs are
immutable once built; load them from JSON with `load_config`.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from .triggers import SequenceTrigger

DEFAULT_MINIMUM_HOLD_TIME = 1.0
DEFAULT_MATCH_THRESHOLD = 0.15


class ConfigError(ValueError):
    pass


@dataclass(frozen=True)
class PoseStep:
    """One required pose and the triggers published for it.

    A trigger left as None is skipped silently.
    """

    pose_id: str
    start_trigger: Optional[str] = None
    end_trigger: Optional[str] = None
    complete_trigger: Optional[str] = None

    @classmethod
    def with_default_triggers(cls, pose_id: str, prefix: Optional[str] = None) -> "PoseStep":
        prefix = prefix or pose_id
        return cls(
            pose_id=pose_id,
            start_trigger=f"{prefix}_START",
            end_trigger=f"{prefix}_END",
            complete_trigger=f"{prefix}_COMPLETE",
        )

    def triggers(self) -> Tuple[str, ...]:
        return tuple(
            t
            for t in (self.start_trigger, self.end_trigger, self.complete_trigger)
            if t is not None
        )


@dataclass(frozen=True)
class SequenceConfig:
    steps: Tuple[PoseStep, ...]
    sequence_start_trigger: str = SequenceTrigger.START.value
    sequence_complete_trigger: str = SequenceTrigger.COMPLETE.value
    sequence_reset_trigger: str = SequenceTrigger.RESET.value
    minimum_hold_time: float = DEFAULT_MINIMUM_HOLD_TIME
    match_threshold: float = DEFAULT_MATCH_THRESHOLD
    print_debug_log: bool = True
    # start on FULL_BODY_TRACKING_STARTED, reset on FULL_BODY_TRACKING_LOST
    auto_start_on_tracking: bool = True

    def __post_init__(self) -> None:
        object.__setattr__(self, "steps", tuple(self.steps))
        if not self.steps:
            raise ConfigError("pose sequence must contain at least one pose")
        for index, step in enumerate(self.steps):
            if not isinstance(step, PoseStep):
                raise ConfigError(f"step {index} is not a PoseStep: {step!r}")
            if not step.pose_id:
                raise ConfigError(f"step {index} has an empty pose id")
            for trigger in (step.start_trigger, step.end_trigger, step.complete_trigger):
                if trigger is not None and not trigger:
                    raise ConfigError(f"step {index} ({step.pose_id}) has an empty trigger name")
        for attr in (
            "sequence_start_trigger",
            "sequence_complete_trigger",
            "sequence_reset_trigger",
        ):
            if not getattr(self, attr):
                raise ConfigError(f"{attr} must not be empty")
        if not self.minimum_hold_time > 0:
            raise ConfigError(
                f"minimum_hold_time must be positive, got {self.minimum_hold_time}"
            )
        if not 0.0 <= self.match_threshold <= 1.0:
            raise ConfigError(
                f"match_threshold must be within [0, 1], got {self.match_threshold}"
            )

    @property
    def poses(self) -> Tuple[str, ...]:
        return tuple(step.pose_id for step in self.steps)

    def trigger_names(self) -> frozenset:
        """Every trigger name this config can publish."""
        names = {
            self.sequence_start_trigger,
            self.sequence_complete_trigger,
            self.sequence_reset_trigger,
        }
        for step in self.steps:
            names.update(step.triggers())
        return frozenset(names)

    @classmethod
    def from_lists(
        cls,
        poses: Sequence[str],
        start_triggers: Sequence[str] = (),
        end_triggers: Sequence[str] = (),
        complete_triggers: Sequence[str] = (),
        **kwargs: Any,
    ) -> "SequenceConfig":
        """Build a config from index-parallel lists.

        Trigger lists shorter than `poses` leave the missing triggers unset.
        """

        def at(values: Sequence[str], index: int) -> Optional[str]:
            return values[index] if index < len(values) else None

        steps = tuple(
            PoseStep(
                pose_id=pose,
                start_trigger=at(start_triggers, i),
                end_trigger=at(end_triggers, i),
                complete_trigger=at(complete_triggers, i),
            )
            for i, pose in enumerate(poses)
        )
        return cls(steps=steps, **kwargs)

    @classmethod
    def default(cls, **kwargs: Any) -> "SequenceConfig":
        return cls(
            steps=(
                PoseStep.with_default_triggers("TPOSE"),
                PoseStep.with_default_triggers("ARMS_UP"),
                PoseStep.with_default_triggers("THIRD_POSE_NO_ARMS"),
                PoseStep.with_default_triggers("TPOSE", prefix="TPOSE_2"),
            ),
            **kwargs,
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SequenceConfig":
        raw_poses = data.get("poses")
        if not isinstance(raw_poses, list):
            raise ConfigError("'poses' must be a list")

        steps: List[PoseStep] = []
        for index, entry in enumerate(raw_poses):
            if isinstance(entry, str):
                steps.append(PoseStep.with_default_triggers(entry))
            elif isinstance(entry, dict) and "id" in entry:
                steps.append(
                    PoseStep(
                        pose_id=str(entry["id"]),
                        start_trigger=entry.get("start_trigger"),
                        end_trigger=entry.get("end_trigger"),
                        complete_trigger=entry.get("complete_trigger"),
                    )
                )
            else:
                raise ConfigError(f"invalid pose entry at index {index}: {entry!r}")

        known = {
            "sequence_start_trigger",
            "sequence_complete_trigger",
            "sequence_reset_trigger",
            "minimum_hold_time",
            "match_threshold",
            "print_debug_log",
            "auto_start_on_tracking",
        }
        unknown = set(data) - known - {"poses"}
        if unknown:
            raise ConfigError(f"unknown config keys: {sorted(unknown)}")

        kwargs = {key: data[key] for key in known if key in data}
        for key in ("minimum_hold_time", "match_threshold"):
            if key in kwargs:
                try:
                    kwargs[key] = float(kwargs[key])
                except (TypeError, ValueError) as e:
                    raise ConfigError(f"{key} must be a number") from e
        return cls(steps=tuple(steps), **kwargs)


def load_config(path: Union[str, Path]) -> SequenceConfig:
    """Load a `SequenceConfig` from a JSON file."""
    p = Path(path)
    try:
        raw = json.loads(p.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise ConfigError(f"config file not found: {p}") from e
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid JSON in {p}: {e}") from e
    except UnicodeDecodeError as e:
        raise ConfigError(f"{p} is not UTF-8 text: {e}") from e
    except OSError as e:
        raise ConfigError(f"could not read config file {p}: {e}") from e
    if not isinstance(raw, dict):
        raise ConfigError(f"{p}: top-level JSON value must be an object")
    return SequenceConfig.from_dict(raw)

