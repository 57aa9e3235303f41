# buildkite/models.py
from __future__ import annotations

from typing import Any, Dict, List, Optional, Protocol

from pydantic import BaseModel, ConfigDict, Field


# -------------------- Schemas --------------------

class BuildResponse(BaseModel):
    """The parts of a REST API build that jobsworth reads."""
    model_config = ConfigDict(extra="ignore")

    id: Optional[str] = None
    number: int
    meta_data: Dict[str, str] = Field(default_factory=dict)


class MetaDataRequest(BaseModel):
    key: str
    value: str


class PipelineUploadRequest(BaseModel):
    uuid: str
    pipeline: Dict[str, Any]
    replace: bool = False


# -------------------- Collaborator interfaces --------------------

class MetadataClient(Protocol):
    def read_other_build_metadata(self, build_number: str) -> Dict[str, str]:
        ...

    def write_metadata(self, metadata: Dict[str, str]) -> None:
        ...


class PipelineUploader(Protocol):
    def insert_pipeline_steps(self, steps: List[Any]) -> None:
        ...
