# context.py
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional

from .directives import Directive
from .errors import JobsworthError


def codebase_name(repo_url: str) -> str:
    """
    Infer a codebase name from a repository URL.

    Takes the final slash-separated part of the URL and drops a ".git"
    suffix, so "git@github.com:example/foo.git" gives "foo".
    """
    last_part = repo_url.rsplit("/", 1)[-1]
    if last_part.endswith(".git"):
        last_part = last_part[: -len(".git")]
    return last_part


@dataclass(frozen=True)
class RunContext:
    """
    Everything about the current build that lowering needs.

    Built once from the environment, then completed in two steps before any
    step is lowered: `with_directive()` (exactly once) and
    `with_code_version()`.
    """
    branch: str = ""
    build_message: str = ""
    build_number: int = 0
    repo_url: str = ""
    pipeline_slug: str = ""
    build_environment: str = ""

    code_version: str = ""
    source_git_commit_id: str = ""

    # Filled from the build message (see directives.py)
    artifacts_from_build_number: Optional[str] = None
    override_deploy_environment: Optional[str] = None
    directive_applied: bool = False

    @property
    def codebase(self) -> str:
        return codebase_name(self.repo_url)

    @property
    def reuses_artifacts(self) -> bool:
        return bool(self.artifacts_from_build_number)

    @property
    def directive(self) -> Directive:
        return Directive(
            artifacts_from_build_number=self.artifacts_from_build_number,
            override_deploy_environment=self.override_deploy_environment,
        )

    def with_directive(self, directive: Directive) -> RunContext:
        if self.directive_applied:
            raise JobsworthError("build message directive has already been applied")
        return replace(
            self,
            artifacts_from_build_number=directive.artifacts_from_build_number,
            override_deploy_environment=directive.override_deploy_environment,
            directive_applied=True,
        )

    def with_code_version(self, code_version: str, source_git_commit_id: str) -> RunContext:
        return replace(
            self,
            code_version=code_version,
            source_git_commit_id=source_git_commit_id,
        )


@dataclass(frozen=True)
class StageContext:
    """Per-(stage, environment) settings for one batch of lowered steps."""
    environment: str
    queue: str
    emoji: str
    cautious: bool = False
    # Ask Buildkite to run at most one of these jobs per environment at a time
    prevent_concurrency: bool = False

    def __post_init__(self) -> None:
        if not self.environment or not self.queue:
            raise JobsworthError(
                f"every step needs an agent queue and environment "
                f"(queue={self.queue!r}, environment={self.environment!r})"
            )

    @property
    def cautious_str(self) -> str:
        return "1" if self.cautious else "0"
