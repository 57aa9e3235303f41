# cli.py
from __future__ import annotations

import os
import sys
from pathlib import Path

import click
import yaml

from jobsworth.buildkite import BuildkiteClient, DryRunClient
from jobsworth.driver import copy_artifact_meta, run as run_pipeline
from jobsworth.errors import (
    BuildkiteAPIError,
    ConfigParseError,
    JobsworthError,
    LoweringError,
    ReuseMetadataError,
    SettingsError,
)
from jobsworth.git_facts.git import GitCommitResolver
from jobsworth.interpolate import SCOPE_VARIABLES
from jobsworth.pipeline import dump_steps
from jobsworth.settings import Settings
from jobsworth.ui.console import Console, get_console, set_console

EXIT_USAGE = 1
EXIT_FAILED = 2


def _require_buildkite(environ) -> None:
    """Refuse to talk to Buildkite from outside a Buildkite job."""
    if environ.get("BUILDKITE") != "true":
        get_console().print_error(
            "Not running in Buildkite",
            "This tool is intended to run within a Buildkite job.",
            suggestion="To preview the generated steps locally, use:\n  jobsworth plan --dry-run <pipeline-file>",
        )
        sys.exit(EXIT_USAGE)


def _load_settings(environ) -> Settings:
    try:
        return Settings.from_environ(environ)
    except SettingsError as e:
        get_console().print_error("Invalid environment", str(e))
        sys.exit(EXIT_USAGE)


def _load_fake_builds(path: str | None) -> dict:
    if path is None:
        return {}
    try:
        data = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigParseError(f"could not read fake build metadata {path}: {e}") from e
    if not isinstance(data, dict) or not all(isinstance(v, dict) for v in data.values()):
        raise ConfigParseError(f"{path}: expected a mapping of build number -> metadata mapping")
    return {
        str(number): {str(k): str(v) for k, v in metadata.items()}
        for number, metadata in data.items()
    }


def _report_failure(e: JobsworthError, debug: bool) -> None:
    console = get_console()

    if isinstance(e, ConfigParseError):
        console.print_error(
            "Invalid pipeline",
            str(e),
            suggestion="The pipeline file may contain smoke_test, build, deploy, validation_test,\n"
                       "trivial_deploy_environments and cautious_deploy_environments.",
        )
    elif isinstance(e, LoweringError):
        console.print_error(
            "Could not lower pipeline",
            str(e),
            details=["Available variables: " + ", ".join(f"${{{v}}}" for v in SCOPE_VARIABLES)],
        )
    elif isinstance(e, ReuseMetadataError):
        console.print_error(
            "Cannot reuse artifacts",
            str(e),
            suggestion="Only builds planned by jobsworth can be rolled back to.",
        )
    elif isinstance(e, BuildkiteAPIError):
        console.print_error(
            "Buildkite API request failed",
            str(e),
            suggestion="Check BUILDKITE_API_ACCESS_TOKEN and the build number."
            if e.status in (401, 404) else None,
        )
    else:
        console.print_error("jobsworth failed", str(e))

    if debug:
        console.print_exception(e)


@click.group()
@click.option(
    "--debug",
    is_flag=True,
    default=False,
    help="Enable debug mode (show stack traces and detailed output)",
)
@click.pass_context
def cli(ctx, debug):
    """jobsworth: lowers a staged pipeline into Buildkite steps."""
    console = Console(debug=debug)
    set_console(console)
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug


@cli.command()
@click.argument("pipeline_file", type=click.Path(dir_okay=False))
@click.option("--dry-run", is_flag=True, default=False, help="Print the steps instead of uploading them")
@click.option("--branch", default=None, help="Override BUILDKITE_BRANCH")
@click.option("--message", default=None, help="Override BUILDKITE_MESSAGE")
@click.option("--build-number", default=None, type=int, help="Override BUILDKITE_BUILD_NUMBER")
@click.option("--environment", default=None, help="Override JOBSWORTH_ENVIRONMENT")
@click.option(
    "--fake-build-metadata",
    default=None,
    type=click.Path(exists=True, dir_okay=False),
    help="Dry run only: YAML mapping of build number -> metadata, served for rollbacks",
)
@click.pass_context
def plan(ctx, pipeline_file, dry_run, branch, message, build_number, environment, fake_build_metadata):
    """Generate the steps for this build and upload them to Buildkite."""
    console = get_console()
    debug = ctx.obj.get("debug", False)

    environ = dict(os.environ)
    if not dry_run:
        _require_buildkite(environ)

    overrides = {
        "BUILDKITE_BRANCH": branch,
        "BUILDKITE_MESSAGE": message,
        "BUILDKITE_BUILD_NUMBER": None if build_number is None else str(build_number),
        "JOBSWORTH_ENVIRONMENT": environment,
    }
    environ.update({k: v for k, v in overrides.items() if v is not None})
    if dry_run:
        environ.setdefault("BUILDKITE_BUILD_NUMBER", "0")

    settings = _load_settings(environ)

    try:
        settings.require_build_environment()
        if dry_run:
            client = DryRunClient(builds=_load_fake_builds(fake_build_metadata))
        else:
            settings.require_buildkite_credentials()
            client = BuildkiteClient.from_settings(settings)

        console.print_run_started(
            pipeline_file=pipeline_file,
            branch=settings.branch,
            build_number=settings.build_number,
            dry_run=dry_run,
        )

        result = run_pipeline(
            settings.run_context(),
            pipeline_file,
            client,
            GitCommitResolver(),
        )
    except SettingsError as e:
        console.print_error("Invalid environment", str(e))
        sys.exit(EXIT_USAGE)
    except JobsworthError as e:
        _report_failure(e, debug)
        sys.exit(EXIT_FAILED)
    except KeyboardInterrupt:
        console.print_info("\nInterrupted by user")
        sys.exit(130)

    if dry_run:
        click.echo(dump_steps(result.steps), nl=False)
    else:
        console.print_info(f"Uploaded {len(result.steps)} step(s) to job {settings.job_id}")


@cli.command("copy-artifact-meta")
@click.argument("build_number")
@click.pass_context
def copy_artifact_meta_command(ctx, build_number):
    """Copy the artifact metadata of an earlier build into this one."""
    console = get_console()
    environ = dict(os.environ)
    _require_buildkite(environ)
    settings = _load_settings(environ)

    try:
        settings.require_buildkite_credentials()
        client = BuildkiteClient.from_settings(settings)
        copied = copy_artifact_meta(settings.run_context(), build_number, client)
    except SettingsError as e:
        console.print_error("Invalid environment", str(e))
        sys.exit(EXIT_USAGE)
    except JobsworthError as e:
        _report_failure(e, ctx.obj.get("debug", False))
        sys.exit(EXIT_FAILED)

    for key in sorted(copied):
        console.print_info(f"  {key}={copied[key]}")
    console.print_info(f"Copied {len(copied)} metadata key(s) from build #{build_number}")


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
