import pytest
import yaml

from jobsworth.buildkite import DryRunClient
from jobsworth.context import RunContext
from jobsworth.driver import generate_steps
from jobsworth.errors import ConfigParseError
from jobsworth.model import Pipeline
from jobsworth.pipeline import dump_steps, load_pipeline, parse_pipeline

from conftest import FakeCommitResolver


def test_load_pipeline(testdata):
    p = load_pipeline(testdata / "basic.in.yaml")

    assert [s["name"] for s in p.smoke_test] == ["Unit tests"]
    assert p.build[0]["agents"] == {"docker": "true"}
    assert p.validation_test == ({"command": "./validate.sh ${environment}"},)
    assert p.trivial_deploy_environments == ("qa",)
    assert p.cautious_deploy_environments == ("production",)


def test_empty_document_is_an_empty_pipeline():
    assert parse_pipeline(None) == Pipeline()


def test_missing_sections_default_to_empty():
    p = parse_pipeline({"build": [{"command": "make"}]})
    assert p.smoke_test == ()
    assert p.deploy == ()
    assert p.trivial_deploy_environments == ()


@pytest.mark.parametrize("data, match", [
    (["not", "a", "mapping"], "must be a mapping"),
    ({"biuld": []}, "unknown pipeline keys"),
    ({"build": {"command": "make"}}, "expected a list of steps"),
    ({"build": ["make"]}, r"build\[0\]: expected a step mapping"),
    ({"trivial_deploy_environments": "qa"}, "expected a list of environment names"),
    ({"cautious_deploy_environments": ["prod", ""]}, "expected a list of environment names"),
])
def test_schema_errors(data, match):
    with pytest.raises(ConfigParseError, match=match):
        parse_pipeline(data)


def test_unquoted_dates_are_rejected():
    data = yaml.safe_load("build:\n  - command: make\n    env:\n      RELEASED: 2021-03-04\n")
    with pytest.raises(ConfigParseError, match=r"build\[0\]\.env\.RELEASED.*quote it"):
        parse_pipeline(data)


def test_unquoted_date_keys_are_rejected():
    data = yaml.safe_load("build:\n  - command: make\n    env:\n      2021-03-04: released\n")
    with pytest.raises(ConfigParseError, match=r"build\[0\]\.env: unsupported key datetime.date\(2021, 3, 4\)"):
        parse_pipeline(data)


def test_scalar_keys_are_accepted():
    p = parse_pipeline({"build": [{"command": "make", "env": {1: "one", None: "none"}}]})
    assert p.build[0]["env"] == {1: "one", None: "none"}


def test_missing_file(tmp_path):
    with pytest.raises(ConfigParseError, match="could not read"):
        load_pipeline(tmp_path / "nope.yaml")


def test_invalid_yaml(tmp_path):
    path = tmp_path / "pipeline.yaml"
    path.write_text("build: [\n")
    with pytest.raises(ConfigParseError, match="parse error"):
        load_pipeline(path)


def test_dump_steps_keeps_order_and_wait_markers():
    text = dump_steps(["wait", {"name": "b", "command": "x"}, {"wait": None}])
    assert yaml.safe_load(text) == {"steps": ["wait", {"name": "b", "command": "x"}, {"wait": None}]}
    assert text.index("name: b") < text.index("command: x")


# ----------------------------------------------------------------------
# End to end, against checked-in expectations
# ----------------------------------------------------------------------

@pytest.mark.parametrize("branch, expected", [
    ("master", "basic_master.out.yaml"),
    ("feature/login", "basic_non_master.out.yaml"),
])
def test_basic_pipeline(testdata, branch, expected):
    run = RunContext(
        branch=branch,
        build_number=42,
        repo_url="git@github.com:example/shop.git",
        pipeline_slug="shop",
        build_environment="ci",
    )
    plan = generate_steps(run, load_pipeline(testdata / "basic.in.yaml"), DryRunClient(), FakeCommitResolver())

    got = yaml.safe_load(dump_steps(plan.steps))
    want = yaml.safe_load((testdata / expected).read_text())
    assert got == want
