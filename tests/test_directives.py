import pytest

from jobsworth.context import RunContext
from jobsworth.directives import NO_DIRECTIVE, Directive, parse_directive
from jobsworth.errors import JobsworthError


@pytest.mark.parametrize("message, build_number, environment, kind", [
    ("Roll back to #482", "482", None, "rollback"),
    ("rollback 12", "12", None, "rollback"),
    ("Rollback to 7: bad migration", "7", None, "rollback"),
    ("Deploy to staging", None, "staging", "deploy"),
    ("deploy staging", None, "staging", "deploy"),
    ("Deploy #17 to prod", "17", "prod", "deploy"),
    ("Deploy 17 to prod", "17", "prod", "deploy"),
])
def test_directives(message, build_number, environment, kind):
    d = parse_directive(message)
    assert d.artifacts_from_build_number == build_number
    assert d.override_deploy_environment == environment
    assert d.kind == kind
    assert d


@pytest.mark.parametrize("message", [
    "Fix typo in README",
    "",
    "Please roll back to #482",
    "Roll back the migration",
])
def test_no_directive(message):
    d = parse_directive(message)
    assert d == NO_DIRECTIVE
    assert d.artifacts_from_build_number is None
    assert d.override_deploy_environment is None
    assert d.kind == "none"
    assert not d


def test_rollback_wins_over_deploy():
    # Both patterns are anchored, so only the first word decides.
    assert parse_directive("Roll back to #3 then deploy to prod").kind == "rollback"


def test_directive_applies_once():
    run = RunContext(build_message="Deploy to staging")
    resolved = run.with_directive(parse_directive(run.build_message))

    assert resolved.override_deploy_environment == "staging"
    assert resolved.artifacts_from_build_number is None
    assert not resolved.reuses_artifacts
    assert run.override_deploy_environment is None

    with pytest.raises(JobsworthError):
        resolved.with_directive(Directive(override_deploy_environment="prod"))
