# model.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Tuple, Union

# A step is free-form YAML: the only leaves are these scalar types, and the
# only containers are lists and mappings. Anything else is a bug upstream.
Scalar = Union[str, int, float, bool, None]
Value = Union[Scalar, List["Value"], Dict[Any, "Value"]]
Step = Dict[str, Value]

SCALAR_TYPES = (str, int, float, bool, type(None))

# Buildkite models a sync point as the literal string "wait" in the step list.
WAIT = "wait"

# Keys of a step that jobsworth reads or writes.
WAIT_KEY = "wait"
COMMAND_KEY = "command"
NAME_KEY = "name"
LABEL_KEY = "label"
AGENTS_KEY = "agents"
ENV_KEY = "env"
CONCURRENCY_KEY = "concurrency"
CONCURRENCY_GROUP_KEY = "concurrency_group"
CONCURRENCY_METHOD_KEY = "concurrency_method"


def is_wait_marker(step: Step) -> bool:
    """A template step spelled as `- wait: ~` is a sync marker, not a job."""
    return WAIT_KEY in step


@dataclass(frozen=True)
class Pipeline:
    """
    The declarative pipeline: four stages of step templates plus the
    environments the deploy/validation stages fan out to.
    """
    smoke_test: Tuple[Step, ...] = ()
    build: Tuple[Step, ...] = ()
    deploy: Tuple[Step, ...] = ()
    validation_test: Tuple[Step, ...] = ()

    trivial_deploy_environments: Tuple[str, ...] = ()
    cautious_deploy_environments: Tuple[str, ...] = ()
