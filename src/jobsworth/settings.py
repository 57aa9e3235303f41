# settings.py
from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Mapping, Optional

from .buildkite.retry import RetryPolicy
from .context import RunContext
from .errors import SettingsError

DEFAULT_AGENT_ENDPOINT = "https://agent.buildkite.com/v3"
DEFAULT_API_ENDPOINT = "https://api.buildkite.com/v2"


def _int_env(environ: Mapping[str, str], name: str, default: Optional[int] = None) -> int:
    raw = environ.get(name, "")
    if raw == "" and default is not None:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise SettingsError(f"{name} invalid: {raw!r} is not an integer") from None
    if value < 0:
        raise SettingsError(f"{name} invalid: {value} is negative")
    return value


def _float_env(environ: Mapping[str, str], name: str, default: float) -> float:
    raw = environ.get(name, "")
    if raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise SettingsError(f"{name} invalid: {raw!r} is not a number") from None


@dataclass(frozen=True)
class Settings:
    """Everything jobsworth reads from the process environment of a Buildkite job."""
    branch: str = ""
    build_message: str = ""
    build_number: int = 0
    repo_url: str = ""
    build_environment: str = ""

    pipeline_slug: str = ""
    organization_slug: str = ""
    job_id: str = ""
    agent_access_token: str = ""
    agent_endpoint: str = DEFAULT_AGENT_ENDPOINT
    api_access_token: str = ""
    api_endpoint: str = DEFAULT_API_ENDPOINT

    retry: RetryPolicy = field(default_factory=RetryPolicy)

    @classmethod
    def from_environ(cls, environ: Optional[Mapping[str, str]] = None) -> Settings:
        env = os.environ if environ is None else environ

        retry = RetryPolicy(
            maximum=_int_env(env, "JOBSWORTH_RETRY_MAXIMUM", RetryPolicy.maximum),
            interval=_float_env(env, "JOBSWORTH_RETRY_INTERVAL", RetryPolicy.interval),
        )
        if retry.maximum < 1:
            raise SettingsError("JOBSWORTH_RETRY_MAXIMUM must be at least 1")

        return cls(
            branch=env.get("BUILDKITE_BRANCH", ""),
            build_message=env.get("BUILDKITE_MESSAGE", ""),
            build_number=_int_env(env, "BUILDKITE_BUILD_NUMBER"),
            repo_url=env.get("BUILDKITE_REPO", ""),
            build_environment=env.get("JOBSWORTH_ENVIRONMENT", ""),
            pipeline_slug=env.get("BUILDKITE_PIPELINE_SLUG", ""),
            organization_slug=env.get("BUILDKITE_ORGANIZATION_SLUG", ""),
            job_id=env.get("BUILDKITE_JOB_ID", ""),
            agent_access_token=env.get("BUILDKITE_AGENT_ACCESS_TOKEN", ""),
            agent_endpoint=env.get("BUILDKITE_AGENT_ENDPOINT") or DEFAULT_AGENT_ENDPOINT,
            api_access_token=(
                env.get("BUILDKITE_API_ACCESS_TOKEN")
                or env.get("JOBSWORTH_BUILDKITE_API_TOKEN", "")
            ),
            retry=retry,
        )

    def require_buildkite_credentials(self) -> None:
        """Fail early, with every missing variable named, before talking to Buildkite."""
        required = {
            "BUILDKITE_JOB_ID": self.job_id,
            "BUILDKITE_AGENT_ACCESS_TOKEN": self.agent_access_token,
            "BUILDKITE_PIPELINE_SLUG": self.pipeline_slug,
        }
        missing = [name for name, value in required.items() if not value]
        if missing:
            raise SettingsError(f"missing environment variables: {', '.join(missing)}")

    def require_build_environment(self) -> None:
        """Smoke test and build steps run on agents tagged with this environment."""
        if not self.build_environment:
            raise SettingsError(
                "JOBSWORTH_ENVIRONMENT is not set; it names the agent environment "
                "for smoke test and build steps"
            )

    def run_context(self) -> RunContext:
        return RunContext(
            branch=self.branch,
            build_message=self.build_message,
            build_number=self.build_number,
            repo_url=self.repo_url,
            pipeline_slug=self.pipeline_slug,
            build_environment=self.build_environment,
        )
