# orchestrator.py
from __future__ import annotations

from typing import List, Sequence, Tuple, Union

from .context import RunContext, StageContext
from .lower import lower_step, lower_steps
from .model import WAIT, Pipeline, Step

PRIMARY_BRANCH = "master"

# Queue and emoji for each kind of stage expansion
SMOKE_TEST = ("smoke_test", "interrobang")
PLAN_PIPELINE = ("plan_pipeline", "repeat")
BUILD = ("build", "package")
DEPLOY = ("deploy", "truck")
VALIDATION_TEST = ("validation_test", "curly_loop")

PlanEntry = Union[str, Step]


def _stage(kind: Tuple[str, str], environment: str, **flags: bool) -> StageContext:
    queue, emoji = kind
    return StageContext(environment=environment, queue=queue, emoji=emoji, **flags)


def artifact_reuse_step(build_number: str) -> Step:
    """
    Synthetic build step for a rollback/redeploy: instead of building, pull
    the artifact metadata of an earlier build into this one.
    """
    return {
        "command": f'jobsworth copy-artifact-meta "{build_number}"',
        "label": f"Artifacts from #{build_number}",
    }


def effective_environments(pipeline: Pipeline, run: RunContext) -> Tuple[Sequence[str], Sequence[str]]:
    """(trivial, cautious) deploy environments, after any deploy-override directive."""
    if run.override_deploy_environment:
        return (), (run.override_deploy_environment,)
    return pipeline.trivial_deploy_environments, pipeline.cautious_deploy_environments


def lower_pipeline(pipeline: Pipeline, run: RunContext) -> List[PlanEntry]:
    """
    Lower the staged pipeline into Buildkite's level of abstraction: a flat
    list of steps with "wait" sync points between them.

    `run` must already have its directive and code version resolved.
    """
    out: List[PlanEntry] = []

    # ---- smoke test ----
    if not run.reuses_artifacts and pipeline.smoke_test:
        stage = _stage(SMOKE_TEST, run.build_environment)
        out.append(WAIT)
        out.extend(lower_steps(pipeline.smoke_test, run, stage, stage_name="smoke_test"))

    if run.branch != PRIMARY_BRANCH:
        return out

    # ---- build, or reuse an earlier build's artifacts ----
    if run.reuses_artifacts:
        stage = _stage(PLAN_PIPELINE, run.build_environment)
        out.append(WAIT)
        out.append(lower_step(artifact_reuse_step(run.artifacts_from_build_number), run, stage))
    elif pipeline.build:
        stage = _stage(BUILD, run.build_environment)
        out.append(WAIT)
        out.extend(lower_steps(pipeline.build, run, stage, stage_name="build"))

    if not pipeline.deploy:
        return out

    trivial_envs, cautious_envs = effective_environments(pipeline, run)

    # ---- trivial deploys: all environments at once ----
    if trivial_envs:
        out.append(WAIT)
        for env_name in trivial_envs:
            stage = _stage(DEPLOY, env_name, prevent_concurrency=True)
            out.extend(lower_steps(pipeline.deploy, run, stage, stage_name="deploy"))

        if pipeline.validation_test:
            out.append(WAIT)
            for env_name in trivial_envs:
                stage = _stage(VALIDATION_TEST, env_name, prevent_concurrency=True)
                out.extend(lower_steps(
                    pipeline.validation_test, run, stage, stage_name="validation_test",
                ))

    # ---- cautious deploys: one environment at a time ----
    # They may contain block steps, so each gets its own sync points.
    for env_name in cautious_envs:
        deploy_stage = _stage(DEPLOY, env_name, cautious=True, prevent_concurrency=True)
        out.append(WAIT)
        out.extend(lower_steps(pipeline.deploy, run, deploy_stage, stage_name="deploy"))

        if pipeline.validation_test:
            validate_stage = _stage(VALIDATION_TEST, env_name, prevent_concurrency=True)
            out.append(WAIT)
            out.extend(lower_steps(
                pipeline.validation_test, run, validate_stage, stage_name="validation_test",
            ))

    return out
