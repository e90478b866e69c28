"""Attempt store interface and its HTTP client."""
import logging
from dataclasses import dataclass
from typing import Protocol

import httpx
from pydantic import ValidationError

from simtrack.core.config import get_settings
from simtrack.engine.errors import RemoteStoreError
from simtrack.schemas.attempt import AttemptProgressOutSchema

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RemoteProgress:
    completed_task_indices: tuple[int, ...]
    total_task_count: int


class AttemptStore(Protocol):
    async def read_progress(self, attempt_id: str) -> RemoteProgress: ...

    async def write_completion(self, attempt_id: str, task_index: int) -> None: ...


class HttpAttemptStore:
    """Talks to ``/api/attempt/progress``.

    The client carries identity (auth or guest session cookie) and base URL.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        progress_path: str = "/api/attempt/progress",
        timeout: float | None = None,
    ):
        self.client = client
        self.progress_path = progress_path
        self.timeout = get_settings().remote_timeout_seconds if timeout is None else timeout

    async def read_progress(self, attempt_id: str) -> RemoteProgress:
        response = await self._request("GET", params={"attempt_id": attempt_id})
        try:
            body = AttemptProgressOutSchema.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise RemoteStoreError(f"unreadable progress payload: {exc}") from exc
        return RemoteProgress(
            completed_task_indices=tuple(sorted(set(body.completed_task_indices))),
            total_task_count=body.total_task_count,
        )

    async def write_completion(self, attempt_id: str, task_index: int) -> None:
        await self._request("POST", json={"attempt_id": attempt_id, "task_index": task_index})

    async def _request(self, method: str, **kwargs) -> httpx.Response:
        try:
            response = await self.client.request(method, self.progress_path, timeout=self.timeout, **kwargs)
        except httpx.HTTPError as exc:
            raise RemoteStoreError(f"{method} {self.progress_path} failed: {exc}") from exc
        if response.status_code >= 400:
            raise RemoteStoreError(
                f"{method} {self.progress_path} returned {response.status_code}",
                status_code=response.status_code,
            )
        return response


def remote_client(cookies: dict[str, str] | None = None) -> httpx.AsyncClient:
    """Client for the attempt store at ``api_base_url``; the caller closes it."""
    settings = get_settings()
    return httpx.AsyncClient(
        base_url=settings.api_base_url,
        timeout=settings.remote_timeout_seconds,
        cookies=cookies,
    )
