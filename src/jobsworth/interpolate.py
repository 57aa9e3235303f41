# interpolate.py
from __future__ import annotations

import re
from types import MappingProxyType
from typing import Any, Mapping

from .context import RunContext, StageContext
from .errors import InterpolationError
from .model import SCALAR_TYPES, Value

# "${" opens a marker; "$${" is an escaped literal "${".
_MARKER = re.compile(r"\$(\$)?\{")
_IDENTIFIER = re.compile(r"[A-Za-z_][A-Za-z0-9_]*\Z")

SCOPE_VARIABLES = (
    "environment",
    "branch",
    "codebase",
    "code_version",
    "source_git_commit",
    "cautious",
)


def build_scope(run: RunContext, stage: StageContext) -> Mapping[str, str]:
    """The variables a step template may reference, for one stage expansion."""
    return MappingProxyType({
        "environment": stage.environment,
        "branch": run.branch,
        "codebase": run.codebase,
        "code_version": run.code_version,
        "source_git_commit": run.source_git_commit_id,
        "cautious": stage.cautious_str,
    })


def _child_location(location: str, key: Any) -> str:
    if not location:
        return str(key)
    return f"{location}.{key}"


def interpolate_string(text: str, scope: Mapping[str, str], location: str = "") -> str:
    """Replace every `${name}` in text with its value from scope."""
    out: list[str] = []
    pos = 0

    while True:
        m = _MARKER.search(text, pos)
        if m is None:
            out.append(text[pos:])
            break

        out.append(text[pos:m.start()])

        if m.group(1):
            out.append("${")
            pos = m.end()
            continue

        end = text.find("}", m.end())
        if end == -1:
            raise InterpolationError(
                variable=text[m.end():],
                location=location,
                message="unterminated interpolation",
            )

        expr = text[m.end():end].strip()
        if not _IDENTIFIER.match(expr):
            raise InterpolationError(
                variable=expr,
                location=location,
                message=f"unsupported expression: {expr}",
            )
        if expr not in scope:
            raise InterpolationError(
                variable=expr,
                location=location,
                message=f"unknown variable accessed: {expr}",
            )

        out.append(scope[expr])
        pos = end + 1

    return "".join(out)


def interpolate(value: Value, scope: Mapping[str, str], location: str = "") -> Value:
    """
    Return a copy of value with every string leaf interpolated.

    Mapping keys are left alone. Raises InterpolationError on the first
    marker that can't be resolved, so a caller never sees a half-done tree.
    """
    if isinstance(value, str):
        return interpolate_string(value, scope, location)
    if isinstance(value, SCALAR_TYPES):
        return value
    if isinstance(value, list):
        return [
            interpolate(item, scope, f"{location}[{i}]")
            for i, item in enumerate(value)
        ]
    if isinstance(value, dict):
        return {
            key: interpolate(item, scope, _child_location(location, key))
            for key, item in value.items()
        }
    raise TypeError(
        f"{location or '<root>'}: unsupported value of type {type(value).__name__}"
    )
