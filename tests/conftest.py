from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import pytest

from jobsworth.context import RunContext, StageContext
from jobsworth.ui.console import Console, set_console

TESTDATA = Path(__file__).parent / "testdata"

COMMIT_ID = "0123456789abcdef0123"
COMMITTED_AT = datetime(2021, 3, 4, 5, 6, 7, tzinfo=timezone.utc)
CODE_VERSION = "2021-03-04-050607-0123456-000042"


class FakeCommitResolver:
    def __init__(self, commit_id: str = COMMIT_ID, committed_at: datetime = COMMITTED_AT):
        self.commit_id = commit_id
        self.committed_at = committed_at
        self.calls = 0

    def current_commit(self):
        self.calls += 1
        return self.commit_id, self.committed_at


@pytest.fixture(autouse=True)
def fresh_console():
    # Debug flag and stream must not leak between tests
    set_console(Console())
    yield


@pytest.fixture
def testdata() -> Path:
    return TESTDATA


@pytest.fixture
def commit_resolver() -> FakeCommitResolver:
    return FakeCommitResolver()


def make_run(**overrides) -> RunContext:
    """A fully-resolved run context, as the orchestrator expects it."""
    fields = dict(
        branch="master",
        build_number=42,
        repo_url="git@github.com:example/shop.git",
        pipeline_slug="shop",
        build_environment="ci",
        code_version=CODE_VERSION,
        source_git_commit_id=COMMIT_ID,
        directive_applied=True,
    )
    fields.update(overrides)
    return RunContext(**fields)


def make_stage(**overrides) -> StageContext:
    fields = dict(environment="myenv", queue="deploy", emoji="truck")
    fields.update(overrides)
    return StageContext(**fields)
