# buildkite/api_client.py
from __future__ import annotations

import http.client
import json
import urllib.error
import urllib.request
import uuid
from typing import Any, Dict, List, Optional
from urllib.parse import quote

from pydantic import ValidationError

from jobsworth.errors import BuildkiteAPIError, MetadataWriteError, UploadError
from jobsworth.ui.console import get_console

from .models import BuildResponse, MetaDataRequest, PipelineUploadRequest
from .retry import RetryPolicy, with_retries


class BuildkiteClient:
    """
    HTTP client for the two Buildkite APIs jobsworth talks to.

    - The agent API acts on the job that is running us: metadata and
      pipeline upload. It authenticates with the job's agent token.
    - The REST API reads earlier builds of the same pipeline. It needs a
      separate API access token.
    """

    def __init__(
        self,
        *,
        agent_endpoint: str,
        agent_access_token: str,
        job_id: str,
        api_endpoint: str,
        api_access_token: str,
        organization_slug: str,
        pipeline_slug: str,
        retry: Optional[RetryPolicy] = None,
        timeout: float = 30.0,
    ):
        # Ensure endpoints don't end with /
        self.agent_endpoint = agent_endpoint.rstrip("/")
        self.agent_access_token = agent_access_token
        self.job_id = job_id
        self.api_endpoint = api_endpoint.rstrip("/")
        self.api_access_token = api_access_token
        self.organization_slug = organization_slug
        self.pipeline_slug = pipeline_slug
        self.retry = retry or RetryPolicy()
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings) -> BuildkiteClient:
        return cls(
            agent_endpoint=settings.agent_endpoint,
            agent_access_token=settings.agent_access_token,
            job_id=settings.job_id,
            api_endpoint=settings.api_endpoint,
            api_access_token=settings.api_access_token,
            organization_slug=settings.organization_slug,
            pipeline_slug=settings.pipeline_slug,
            retry=settings.retry,
        )

    def _request(
        self,
        method: str,
        url: str,
        authorization: str,
        data: Optional[dict] = None,
    ) -> dict:
        """
        Make one HTTP request and return the parsed JSON body.

        Raises:
            BuildkiteAPIError: with the HTTP status when there is one, or
                status None for network and decoding failures.
        """
        req_headers = {
            "Authorization": authorization,
            "Content-Type": "application/json",
        }

        req_data = None
        if data is not None:
            req_data = json.dumps(data).encode("utf-8")

        req = urllib.request.Request(url, data=req_data, headers=req_headers, method=method)

        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as response:
                response_data = response.read().decode("utf-8")
                if response_data:
                    return json.loads(response_data)
                return {}
        except urllib.error.HTTPError as e:
            error_body = e.read().decode("utf-8", errors="replace") if e.fp else ""
            raise BuildkiteAPIError(e.code, f"{method} {url}: {e.reason}. {error_body}".strip())
        except urllib.error.URLError as e:
            raise BuildkiteAPIError(None, f"network error: {e.reason}")
        except TimeoutError:
            raise BuildkiteAPIError(None, f"{method} {url}: timed out after {self.timeout}s")
        except (OSError, http.client.HTTPException) as e:
            # Dropped connections surface from getresponse() unwrapped
            raise BuildkiteAPIError(None, f"{method} {url}: {e!r}")
        except json.JSONDecodeError as e:
            raise BuildkiteAPIError(None, f"invalid JSON response: {e}")

    def _agent_request(self, path: str, data: dict) -> dict:
        url = f"{self.agent_endpoint}/jobs/{quote(self.job_id)}/{path}"
        return self._request("POST", url, f"Token {self.agent_access_token}", data)

    def _with_retries(self, fn, what: str):
        console = get_console()

        def on_retry(attempt: int, err: BuildkiteAPIError) -> None:
            console.print_retry(what, attempt, self.retry.maximum, err)

        return with_retries(fn, self.retry, on_retry=on_retry)

    # ------------------------------------------------------------------
    # MetadataClient
    # ------------------------------------------------------------------

    def read_other_build_metadata(self, build_number: str) -> Dict[str, str]:
        url = "/".join([
            self.api_endpoint,
            "organizations", quote(self.organization_slug),
            "pipelines", quote(self.pipeline_slug),
            "builds", quote(str(build_number)),
        ])

        raw = self._with_retries(
            lambda: self._request("GET", url, f"Bearer {self.api_access_token}"),
            f"reading build #{build_number}",
        )
        try:
            build = BuildResponse.model_validate(raw)
        except ValidationError as e:
            raise BuildkiteAPIError(None, f"unexpected build response for #{build_number}: {e}") from e
        return dict(build.meta_data)

    def write_metadata(self, metadata: Dict[str, str]) -> None:
        for key, value in metadata.items():
            body = MetaDataRequest(key=key, value=value).model_dump()
            try:
                self._with_retries(
                    lambda: self._agent_request("data/set", body),
                    f"setting metadata {key}",
                )
            except BuildkiteAPIError as e:
                raise MetadataWriteError(f"error setting metadata {key}: {e}") from e

    # ------------------------------------------------------------------
    # PipelineUploader
    # ------------------------------------------------------------------

    def insert_pipeline_steps(self, steps: List[Any]) -> None:
        # Same UUID on every attempt
        body = PipelineUploadRequest(
            uuid=str(uuid.uuid4()),
            pipeline={"steps": steps},
        ).model_dump()
        try:
            self._with_retries(
                lambda: self._agent_request("pipelines", body),
                "uploading pipeline",
            )
        except BuildkiteAPIError as e:
            raise UploadError(f"error uploading pipeline: {e}") from e
