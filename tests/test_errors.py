import pytest

from jobsworth.errors import BuildkiteAPIError, InterpolationError, LoweringError, ReuseMetadataError


@pytest.mark.parametrize("err", [
    InterpolationError(variable="x", location="command", message="unknown variable accessed: x"),
    LoweringError(index=1, message="boom", stage="deploy"),
    ReuseMetadataError(build_number="12", missing_keys=["jobsworth:code_version"]),
    BuildkiteAPIError(503, "unavailable"),
])
def test_structured_errors_behave_like_exceptions(err):
    assert err.args == (str(err),)
    assert {err: "seen"}[err] == "seen"


def test_errors_with_equal_fields_stay_distinct():
    first = BuildkiteAPIError(None, "reset")
    second = BuildkiteAPIError(None, "reset")
    assert first != second
    assert len({first, second}) == 2


def test_structured_error_message():
    err = LoweringError(index=2, message="command: unknown variable accessed: nope", stage="build")
    assert str(err) == "build step 2, command: unknown variable accessed: nope"
    assert err.args[0] == str(err)
