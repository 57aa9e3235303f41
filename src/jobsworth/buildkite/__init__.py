from .api_client import BuildkiteClient
from .dry_run import DryRunClient
from .models import MetadataClient, PipelineUploader
from .retry import RetryPolicy, with_retries

__all__ = [
    "BuildkiteClient",
    "DryRunClient",
    "MetadataClient",
    "PipelineUploader",
    "RetryPolicy",
    "with_retries",
]
