import pytest

from jobsworth.errors import SettingsError
from jobsworth.settings import DEFAULT_AGENT_ENDPOINT, Settings

BASE = {
    "BUILDKITE_BRANCH": "master",
    "BUILDKITE_MESSAGE": "Roll back to #12",
    "BUILDKITE_BUILD_NUMBER": "42",
    "BUILDKITE_REPO": "git@github.com:example/shop.git",
    "BUILDKITE_PIPELINE_SLUG": "shop",
    "BUILDKITE_ORGANIZATION_SLUG": "acme",
    "BUILDKITE_JOB_ID": "job-1",
    "BUILDKITE_AGENT_ACCESS_TOKEN": "secret",
    "JOBSWORTH_ENVIRONMENT": "ci",
}


def _env(**kw):
    env = dict(BASE)
    env.update(kw)
    return {k: v for k, v in env.items() if v is not None}


def test_from_environ():
    s = Settings.from_environ(_env())

    assert s.branch == "master"
    assert s.build_number == 42
    assert s.build_environment == "ci"
    assert s.agent_endpoint == DEFAULT_AGENT_ENDPOINT
    assert s.retry.maximum == 10


def test_run_context_leaves_directive_unapplied():
    run = Settings.from_environ(_env()).run_context()

    assert run.build_message == "Roll back to #12"
    assert run.codebase == "shop"
    assert run.pipeline_slug == "shop"
    assert not run.directive_applied
    assert run.artifacts_from_build_number is None


@pytest.mark.parametrize("value", [None, "", "forty-two", "-1"])
def test_build_number_is_required(value):
    with pytest.raises(SettingsError, match="BUILDKITE_BUILD_NUMBER"):
        Settings.from_environ(_env(BUILDKITE_BUILD_NUMBER=value))


def test_api_token_fallback():
    s = Settings.from_environ(_env(JOBSWORTH_BUILDKITE_API_TOKEN="fallback"))
    assert s.api_access_token == "fallback"

    s = Settings.from_environ(_env(JOBSWORTH_BUILDKITE_API_TOKEN="fallback", BUILDKITE_API_ACCESS_TOKEN="main"))
    assert s.api_access_token == "main"


def test_retry_overrides():
    s = Settings.from_environ(_env(JOBSWORTH_RETRY_MAXIMUM="3", JOBSWORTH_RETRY_INTERVAL="0.25"))
    assert s.retry.maximum == 3
    assert s.retry.interval == 0.25


@pytest.mark.parametrize("name, value", [
    ("JOBSWORTH_RETRY_MAXIMUM", "0"),
    ("JOBSWORTH_RETRY_MAXIMUM", "lots"),
    ("JOBSWORTH_RETRY_INTERVAL", "soon"),
])
def test_bad_retry_settings(name, value):
    with pytest.raises(SettingsError, match="JOBSWORTH_RETRY"):
        Settings.from_environ(_env(**{name: value}))


def test_require_buildkite_credentials_names_every_missing_variable():
    s = Settings.from_environ(_env(BUILDKITE_JOB_ID=None, BUILDKITE_AGENT_ACCESS_TOKEN=""))

    with pytest.raises(SettingsError) as excinfo:
        s.require_buildkite_credentials()

    assert "BUILDKITE_JOB_ID" in str(excinfo.value)
    assert "BUILDKITE_AGENT_ACCESS_TOKEN" in str(excinfo.value)
    assert "BUILDKITE_PIPELINE_SLUG" not in str(excinfo.value)


def test_credentials_present():
    Settings.from_environ(_env()).require_buildkite_credentials()


@pytest.mark.parametrize("value", [None, ""])
def test_build_environment_is_required_for_planning(value):
    s = Settings.from_environ(_env(JOBSWORTH_ENVIRONMENT=value))
    with pytest.raises(SettingsError, match="JOBSWORTH_ENVIRONMENT"):
        s.require_build_environment()


def test_build_environment_present():
    Settings.from_environ(_env()).require_build_environment()
