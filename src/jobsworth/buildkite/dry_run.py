# buildkite/dry_run.py
from __future__ import annotations

import copy
from typing import Any, Dict, List, Mapping, Optional

from jobsworth.errors import BuildkiteAPIError


class DryRunClient:
    """
    In-memory stand-in for BuildkiteClient.

    Serves canned metadata for "other" builds and records everything
    written or uploaded, so a whole run can be checked without a network.
    """

    def __init__(self, builds: Optional[Mapping[str, Mapping[str, str]]] = None):
        self.builds: Dict[str, Dict[str, str]] = {
            str(number): dict(metadata) for number, metadata in (builds or {}).items()
        }
        self.metadata: Dict[str, str] = {}
        self.uploads: List[List[Any]] = []

    def read_other_build_metadata(self, build_number: str) -> Dict[str, str]:
        try:
            return dict(self.builds[str(build_number)])
        except KeyError:
            raise BuildkiteAPIError(404, f"build #{build_number} not found") from None

    def write_metadata(self, metadata: Dict[str, str]) -> None:
        self.metadata.update(metadata)

    def insert_pipeline_steps(self, steps: List[Any]) -> None:
        self.uploads.append(copy.deepcopy(list(steps)))

    @property
    def steps(self) -> List[Any]:
        """Every uploaded step, in upload order."""
        return [step for upload in self.uploads for step in upload]
