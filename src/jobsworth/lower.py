# lower.py
from __future__ import annotations

import copy
from typing import Iterable, List

from .context import RunContext, StageContext
from .errors import InterpolationError, LoweringError
from .interpolate import build_scope, interpolate
from .model import (
    AGENTS_KEY,
    COMMAND_KEY,
    CONCURRENCY_GROUP_KEY,
    CONCURRENCY_KEY,
    CONCURRENCY_METHOD_KEY,
    ENV_KEY,
    LABEL_KEY,
    NAME_KEY,
    Step,
    is_wait_marker,
)


def _ensure_mapping(step: Step, key: str) -> dict:
    value = step.get(key)
    if not isinstance(value, dict):
        value = {}
        step[key] = value
    return value


def _display_name_key(step: Step) -> str:
    # Buildkite accepts either; only fall back to `label` when it's the one in use.
    if LABEL_KEY in step and NAME_KEY not in step:
        return LABEL_KEY
    return NAME_KEY


def lower_step(template: Step, run: RunContext, stage: StageContext) -> Step:
    """
    Produce the Buildkite form of one step template for one stage/environment.

    The template is never modified; the result shares no mutable structure
    with it or with any other lowered variant.
    """
    step = copy.deepcopy(template)
    step = interpolate(step, build_scope(run, stage))

    if is_wait_marker(step):
        return step

    agents = _ensure_mapping(step, AGENTS_KEY)
    agents["queue"] = stage.queue
    agents["environment"] = stage.environment

    env = _ensure_mapping(step, ENV_KEY)
    env["JOBSWORTH_CAUTIOUS"] = stage.cautious_str
    env["JOBSWORTH_CODEBASE"] = run.codebase
    env["JOBSWORTH_CODE_VERSION"] = run.code_version
    env["JOBSWORTH_SOURCE_GIT_COMMIT_ID"] = run.source_git_commit_id
    env["JOBSWORTH_ENVIRONMENT"] = stage.environment

    name_key = _display_name_key(step)
    name = step.get(name_key)
    if not isinstance(name, str):
        name = ""
    step[name_key] = f":{stage.emoji}: {name}".strip()

    if (
        step.get(COMMAND_KEY) is not None
        and stage.prevent_concurrency
        and step.get(CONCURRENCY_KEY) is None
        and step.get(CONCURRENCY_GROUP_KEY) is None
    ):
        step[CONCURRENCY_GROUP_KEY] = f"{stage.environment}/{run.pipeline_slug}"
        step[CONCURRENCY_KEY] = 1
        if step.get(CONCURRENCY_METHOD_KEY) is None:
            step[CONCURRENCY_METHOD_KEY] = "eager"

    return step


def lower_steps(
    templates: Iterable[Step],
    run: RunContext,
    stage: StageContext,
    *,
    stage_name: str = "",
) -> List[Step]:
    """Lower a whole stage; the first failing step aborts the batch."""
    lowered: List[Step] = []
    for i, template in enumerate(templates):
        try:
            lowered.append(lower_step(template, run, stage))
        except InterpolationError as e:
            raise LoweringError(index=i, message=str(e), stage=stage_name) from e
    return lowered
