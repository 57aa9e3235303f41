# errors.py
from __future__ import annotations

from dataclasses import dataclass, field


class JobsworthError(Exception):
    """Base class for every error that ends a jobsworth run."""
    pass


class SettingsError(JobsworthError):
    """Raised when the process environment is missing or malformed."""
    pass


class ConfigParseError(JobsworthError):
    """Raised when the pipeline document can't be read or doesn't fit the schema."""
    pass


class _StructuredError(JobsworthError):
    # Dataclass subclasses skip Exception.__init__; keep args populated
    def __post_init__(self) -> None:
        super().__init__(str(self))


@dataclass(eq=False)
class InterpolationError(_StructuredError):
    """
    An interpolation marker that couldn't be resolved.

    `location` is the field path inside the step (e.g. "plugins[0].docker.image").
    `variable` is the offending name, or the raw expression when it isn't a
    bare variable reference.
    """
    variable: str
    location: str
    message: str

    def __str__(self) -> str:
        if self.location:
            return f"{self.location}: {self.message}"
        return self.message


@dataclass(eq=False)
class LoweringError(_StructuredError):
    """A step in a stage batch failed to lower; nothing from the batch is emitted."""
    index: int
    message: str
    stage: str = ""

    def __str__(self) -> str:
        if self.stage:
            return f"{self.stage} step {self.index}, {self.message}"
        return f"step {self.index}, {self.message}"


@dataclass(eq=False)
class ReuseMetadataError(_StructuredError):
    """The build we were asked to reuse artifacts from never published its version keys."""
    build_number: str
    missing_keys: list[str] = field(default_factory=list)

    def __str__(self) -> str:
        keys = ", ".join(self.missing_keys)
        return (
            f"build #{self.build_number} has no usable artifact metadata "
            f"(missing: {keys}); was it built by jobsworth?"
        )


@dataclass(eq=False)
class BuildkiteAPIError(_StructuredError):
    """
    A Buildkite API call failed.

    `status` is the HTTP status code, or None for network-level failures.
    """
    status: int | None
    message: str

    def __str__(self) -> str:
        if self.status is None:
            return f"Buildkite API error: {self.message}"
        return f"Buildkite API error ({self.status}): {self.message}"


class MetadataWriteError(JobsworthError):
    """Raised when build metadata couldn't be written after retrying."""
    pass


class UploadError(JobsworthError):
    """Raised when the lowered steps couldn't be uploaded after retrying."""
    pass
