# driver.py
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Tuple

from .buildkite.models import MetadataClient, PipelineUploader
from .context import RunContext
from .directives import Directive, parse_directive
from .model import Pipeline
from .orchestrator import PlanEntry, lower_pipeline
from .pipeline import load_pipeline
from .ui.console import get_console
from .version import (
    CommitResolver,
    forwarded_metadata,
    resolve_code_version,
    resolve_reused_version,
    version_metadata,
)


@dataclass
class Plan:
    """The result of one planning pass: what to upload and what to record."""
    run: RunContext
    steps: List[PlanEntry] = field(default_factory=list)
    metadata: Dict[str, str] = field(default_factory=dict)


def resolve_run_context(
    run: RunContext,
    metadata_client: MetadataClient,
    commit_resolver: CommitResolver,
) -> Tuple[RunContext, Dict[str, str]]:
    """
    Apply the build-message directive and settle the code version.

    Returns the completed context and the metadata this build must publish.
    When reusing artifacts the version comes from the earlier build and its
    "build:"/"artifact_" keys are carried over; otherwise the version is
    derived from the checked-out commit.
    """
    run = run.with_directive(parse_directive(run.build_message))
    metadata: Dict[str, str] = {}

    if run.reuses_artifacts:
        other = metadata_client.read_other_build_metadata(run.artifacts_from_build_number)
        run = resolve_reused_version(run, other)
        metadata.update(forwarded_metadata(other))
    else:
        run = resolve_code_version(run, commit_resolver)

    metadata.update(version_metadata(run))
    return run, metadata


def generate_steps(
    run: RunContext,
    pipeline: Pipeline,
    metadata_client: MetadataClient,
    commit_resolver: CommitResolver,
) -> Plan:
    run, metadata = resolve_run_context(run, metadata_client, commit_resolver)
    return Plan(run=run, steps=lower_pipeline(pipeline, run), metadata=metadata)


def run(
    run_context: RunContext,
    pipeline_path: str | Path,
    client: MetadataClient | PipelineUploader,
    commit_resolver: CommitResolver,
) -> Plan:
    """
    Plan the build and hand it to Buildkite: write metadata, then upload
    the steps. Nothing is written unless planning succeeded as a whole.
    """
    console = get_console()

    pipeline = load_pipeline(pipeline_path)
    plan = generate_steps(run_context, pipeline, client, commit_resolver)

    directive = plan.run.directive
    console.print_directive(
        directive.kind,
        directive.artifacts_from_build_number,
        directive.override_deploy_environment,
    )
    console.print_code_version(plan.run.code_version, plan.run.source_git_commit_id)
    console.print_plan(plan.steps)

    client.write_metadata(plan.metadata)
    console.print_debug(f"wrote {len(plan.metadata)} metadata key(s)")
    client.insert_pipeline_steps(plan.steps)
    console.print_debug(f"uploaded {len(plan.steps)} step(s)")

    return plan


def copy_artifact_meta(
    run_context: RunContext,
    build_number: str,
    client: MetadataClient,
) -> Dict[str, str]:
    """
    Copy the artifact metadata of an earlier build into this one.

    This is what the synthetic "Artifacts from #N" step runs.
    """
    other = client.read_other_build_metadata(build_number)
    reused = resolve_reused_version(
        run_context.with_directive(Directive(artifacts_from_build_number=build_number)),
        other,
    )
    metadata = forwarded_metadata(other)
    metadata.update(version_metadata(reused))
    client.write_metadata(metadata)
    return metadata
