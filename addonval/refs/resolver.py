"""Reference resolution client.

Resolves batches of configuration reference strings (ref:/configs/...)
against the reference resolver service for one project. Used before
reconciliation to decide whether stuck configurations are waiting on
something that will never resolve.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional
from urllib.parse import quote_plus

import httpx
from pydantic import BaseModel, ConfigDict, Field

from addonval.catalog.retry import REF_RESOLUTION_RETRY, RetryConfig, retry_async
from addonval.core.config import HTTP_TIMEOUT_SECONDS, REF_RESOLVER_API_BASE, REFERENCE_PREFIX
from addonval.exceptions import ReferenceResolutionError

logger = logging.getLogger("addonval.refs")

_CONFIG_PATH_RE = re.compile(r"^ref:/configs/([^/]+)(/(?:inputs|outputs|authorizations)/.*)?$")


class Reference(BaseModel):
    reference: str
    context: Optional[str] = None


class ResolvedReference(BaseModel):
    """Resolution status for one reference."""
    model_config = ConfigDict(extra="ignore")

    reference: str
    state: str = ""
    code: int = 0
    value: Optional[str] = None
    message: Optional[str] = None
    state_code: Optional[str] = None
    content_type: Optional[str] = None

    @property
    def is_resolved(self) -> bool:
        return self.code == 200


class ResolveResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    correlation_id: Optional[str] = None
    request_id: Optional[str] = None
    references: List[ResolvedReference] = Field(default_factory=list)

    def unresolved(self) -> List[ResolvedReference]:
        return [r for r in self.references if not r.is_resolved]


@dataclass
class ProjectInfo:
    """Project context needed to qualify relative references."""
    id: str
    name: str
    configs: Dict[str, str] = field(default_factory=dict)  # config ID -> name


def normalize_reference(reference: str) -> str:
    return reference if reference.startswith("ref:") else "ref:" + reference


def qualify_reference(reference: str, project: ProjectInfo) -> str:
    """Rewrite a project-relative reference to ref://project.{name}/...

    Config IDs are replaced by config names when the project knows them.
    """
    ref = normalize_reference(reference)
    if ref.startswith("ref://project."):
        return ref

    project_name = quote_plus(project.name)

    if ref.startswith(REFERENCE_PREFIX):
        m = _CONFIG_PATH_RE.match(ref)
        if m:
            config = project.configs.get(m.group(1), m.group(1))
            return f"ref://project.{project_name}/configs/{config}{m.group(2) or ''}"
        return f"ref://project.{project_name}/configs/{ref[len(REFERENCE_PREFIX):]}"

    if ref.startswith("ref:./"):
        return f"ref://project.{project_name}/{ref[len('ref:./'):]}"

    return ref


def should_retry(status_code: int, body: str) -> bool:
    """Transient resolver failures.

    404 is retried only for freshly created projects the resolver does not
    know yet ("Specified provider ... project ... could not be found").
    """
    if status_code == 404 and "could not be found" in body:
        return "Specified provider" in body and "project" in body
    if status_code == 429:
        return True
    return 500 <= status_code < 600


class _RetryableResponse(Exception):
    def __init__(self, status_code: int, body: str):
        self.status_code = status_code
        self.body = body
        super().__init__(f"HTTP {status_code}: {body[:200]}")


class ReferenceResolver:
    """Async batch client for the reference resolver service."""

    def __init__(
        self,
        base_url: str = REF_RESOLVER_API_BASE,
        token: Optional[str] = None,
        timeout: float = HTTP_TIMEOUT_SECONDS,
        retry: RetryConfig = REF_RESOLUTION_RETRY,
        client: Optional[httpx.AsyncClient] = None,
    ):
        headers = {"Accept": "application/json", "Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout, headers=headers)
        self._retry = retry

    async def aclose(self) -> None:
        await self._client.aclose()

    async def resolve(self, project: ProjectInfo, references: List[str]) -> ResolveResponse:
        """Resolve `references` within `project`.

        Raises:
            ReferenceResolutionError: Non-retryable HTTP status, or retries
                exhausted.
        """
        if not references:
            return ResolveResponse()

        payload = {
            "references": [
                Reference(reference=qualify_reference(r, project)).model_dump(exclude_none=True)
                for r in references
            ]
        }
        logger.info(f"Resolving {len(references)} references for project {project.name} ({project.id})")

        async def do_post() -> dict:
            response = await self._client.post("/resolve", json=payload)
            if response.status_code != 200:
                if should_retry(response.status_code, response.text):
                    raise _RetryableResponse(response.status_code, response.text)
                raise ReferenceResolutionError(
                    f"reference resolution failed with HTTP {response.status_code}: {response.text[:200]}"
                )
            return response.json()

        try:
            data = await retry_async(
                do_post,
                self._retry,
                retryable=(httpx.TransportError, _RetryableResponse),
                operation="resolve references",
            )
        except (httpx.TransportError, _RetryableResponse) as e:
            raise ReferenceResolutionError(f"reference resolution failed after retries: {e}") from e

        return ResolveResponse.model_validate(data)
