# pipeline.py
from __future__ import annotations

from pathlib import Path
from typing import Any, List, Sequence, Tuple

import yaml

from .errors import ConfigParseError
from .model import SCALAR_TYPES, Pipeline, Step

STAGE_KEYS = ("smoke_test", "build", "deploy", "validation_test")
ENVIRONMENT_KEYS = ("trivial_deploy_environments", "cautious_deploy_environments")


# ----------------------------------------------------------------------
# Validation
# ----------------------------------------------------------------------

def _check_value(value: Any, location: str) -> None:
    if isinstance(value, SCALAR_TYPES):
        return
    if isinstance(value, list):
        for i, item in enumerate(value):
            _check_value(item, f"{location}[{i}]")
        return
    if isinstance(value, dict):
        for k, item in value.items():
            if not isinstance(k, SCALAR_TYPES):
                raise ConfigParseError(
                    f"{location}: unsupported key {k!r} of type {type(k).__name__} "
                    f"(quote it if it should be a string)"
                )
            _check_value(item, f"{location}.{k}")
        return
    raise ConfigParseError(
        f"{location}: unsupported value of type {type(value).__name__} "
        f"(quote it if it should be a string)"
    )


def _stage_steps(data: dict, key: str) -> Tuple[Step, ...]:
    raw = data.get(key)
    if raw is None:
        return ()
    if not isinstance(raw, list):
        raise ConfigParseError(f"{key}: expected a list of steps, got {type(raw).__name__}")

    steps: List[Step] = []
    for i, step in enumerate(raw):
        location = f"{key}[{i}]"
        if not isinstance(step, dict):
            raise ConfigParseError(f"{location}: expected a step mapping, got {step!r}")
        _check_value(step, location)
        steps.append(step)
    return tuple(steps)


def _environment_names(data: dict, key: str) -> Tuple[str, ...]:
    raw = data.get(key)
    if raw is None:
        return ()
    if not isinstance(raw, list) or not all(isinstance(n, str) and n for n in raw):
        raise ConfigParseError(f"{key}: expected a list of environment names")
    return tuple(raw)


# ----------------------------------------------------------------------
# Loading / dumping
# ----------------------------------------------------------------------

def parse_pipeline(data: Any) -> Pipeline:
    """Build a Pipeline from an already-parsed YAML document."""
    if data is None:
        return Pipeline()
    if not isinstance(data, dict):
        raise ConfigParseError(f"pipeline must be a mapping, got {type(data).__name__}")

    unknown = sorted(str(k) for k in data if k not in STAGE_KEYS + ENVIRONMENT_KEYS)
    if unknown:
        raise ConfigParseError(
            f"unknown pipeline keys: {unknown}. "
            f"Known keys: {list(STAGE_KEYS + ENVIRONMENT_KEYS)}"
        )

    return Pipeline(
        smoke_test=_stage_steps(data, "smoke_test"),
        build=_stage_steps(data, "build"),
        deploy=_stage_steps(data, "deploy"),
        validation_test=_stage_steps(data, "validation_test"),
        trivial_deploy_environments=_environment_names(data, "trivial_deploy_environments"),
        cautious_deploy_environments=_environment_names(data, "cautious_deploy_environments"),
    )


def load_pipeline(path: str | Path) -> Pipeline:
    """
    Load a pipeline definition from a YAML file.

    Raises:
        ConfigParseError: the file is missing, isn't YAML, or doesn't
            describe a pipeline.
    """
    p = Path(path).expanduser()
    try:
        text = p.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigParseError(f"could not read pipeline file {p}: {e}") from e

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigParseError(f"parse error in {p}: {e}") from e

    return parse_pipeline(data)


def dump_steps(steps: Sequence[Any]) -> str:
    """Serialize lowered steps as a Buildkite pipeline document."""
    return yaml.safe_dump({"steps": list(steps)}, sort_keys=False, default_flow_style=False)
