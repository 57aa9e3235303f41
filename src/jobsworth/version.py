# version.py
from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, Mapping, Protocol, Tuple

from .context import RunContext
from .errors import ReuseMetadataError

CODE_VERSION_KEY = "jobsworth:code_version"
SOURCE_COMMIT_ID_KEY = "jobsworth:source_commit_id"

# Metadata keys a reused build hands on to the build that reuses it.
# "artifact_" is the old spelling, still honoured.
FORWARDED_KEY_PREFIXES = ("build:", "artifact_")

TIMESTAMP_FORMAT = "%Y-%m-%d-%H%M%S"


class CommitResolver(Protocol):
    def current_commit(self) -> Tuple[str, datetime]:
        """(full commit id, committer timestamp) of the checked-out revision."""
        ...


def build_code_version(commit_id: str, committed_at: datetime, build_number: int) -> str:
    """
    Format the code version: commit time (UTC), short commit id, build number.

        >>> build_code_version("0123456789abcdef", datetime(2021, 3, 4, 5, 6, 7), 42)
        '2021-03-04-050607-0123456-000042'
    """
    if committed_at.tzinfo is None:
        committed_at = committed_at.replace(tzinfo=timezone.utc)
    committed_at = committed_at.astimezone(timezone.utc)
    return f"{committed_at.strftime(TIMESTAMP_FORMAT)}-{commit_id[:7]}-{build_number:06d}"


def resolve_code_version(run: RunContext, resolver: CommitResolver) -> RunContext:
    commit_id, committed_at = resolver.current_commit()
    return run.with_code_version(
        build_code_version(commit_id, committed_at, run.build_number),
        commit_id,
    )


def forwarded_metadata(metadata: Mapping[str, str]) -> Dict[str, str]:
    return {
        k: v for k, v in metadata.items()
        if k.startswith(FORWARDED_KEY_PREFIXES)
    }


def resolve_reused_version(run: RunContext, metadata: Mapping[str, str]) -> RunContext:
    """
    Take the code version and commit id verbatim from the build whose
    artifacts are being reused. Recomputing them would name a different
    artifact.
    """
    missing = [
        k for k in (CODE_VERSION_KEY, SOURCE_COMMIT_ID_KEY)
        if not metadata.get(k)
    ]
    if missing:
        raise ReuseMetadataError(
            build_number=run.artifacts_from_build_number or "",
            missing_keys=missing,
        )
    return run.with_code_version(metadata[CODE_VERSION_KEY], metadata[SOURCE_COMMIT_ID_KEY])


def version_metadata(run: RunContext) -> Dict[str, str]:
    """The keys every successful run publishes so later builds can reuse it."""
    return {
        CODE_VERSION_KEY: run.code_version,
        SOURCE_COMMIT_ID_KEY: run.source_git_commit_id,
    }
