"""HTTP caller for the agent runner API."""

import asyncio
from typing import Any

import httpx

from agentcore.logging_config import get_logger

logger = get_logger(__name__)

RETRY_STATUSES = frozenset({502, 503, 504})


class RunClientError(Exception):
    """A request failed permanently (4xx or retries exhausted)."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class RunClient:
    """Async client with linear-backoff retries on transient failures.

    The first attempt is followed by up to ``max_retries`` retries, only on
    transport errors and 502/503/504. Other error statuses, including 409
    for a task that is already running, are raised immediately.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        max_retries: int = 3,
        timeout: float = 120.0,
        backoff: float = 1.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._max_retries = max(max_retries, 0)
        self._backoff = backoff
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "RunClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def close(self) -> None:
        await self._client.aclose()

    async def run(
        self,
        prompt: str,
        agent_id: str | None = None,
        task_id: str | None = None,
        parameters: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """POST /run and return the result JSON."""
        body: dict[str, Any] = {"prompt": prompt}
        if agent_id:
            body["agentId"] = agent_id
        if task_id:
            body["taskId"] = task_id
        if parameters:
            body["parameters"] = parameters
        return await self._request("POST", "/run", json=body)

    async def list_agents(self, **filters: str) -> list[dict[str, Any]]:
        params = {key: value for key, value in filters.items() if value is not None}
        return await self._request("GET", "/agents", params=params)

    async def get_logs(self, task_id: str | None, source: str = "auto") -> dict[str, Any]:
        params = {"source": source}
        if task_id:
            params["taskId"] = task_id
        return await self._request("GET", "/agent/logs", params=params)

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        attempts = self._max_retries + 1
        last_error = "no attempt made"
        for attempt in range(1, attempts + 1):
            try:
                response = await self._client.request(method, path, **kwargs)
            except httpx.TransportError as e:
                last_error = f"{e.__class__.__name__}: {e}"
            else:
                if response.status_code in RETRY_STATUSES:
                    last_error = f"HTTP {response.status_code}"
                elif response.status_code >= 400:
                    raise RunClientError(_detail(response), status_code=response.status_code)
                else:
                    return response.json()

            if attempt < attempts:
                delay = self._backoff * attempt
                logger.warning(
                    "%s %s failed (%s); retry %s/%s in %.1fs",
                    method,
                    path,
                    last_error,
                    attempt,
                    self._max_retries,
                    delay,
                )
                await asyncio.sleep(delay)

        raise RunClientError(f"{method} {path} failed after {attempts} attempts: {last_error}")


def _detail(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return f"HTTP {response.status_code}: {response.text}"
    if isinstance(payload, dict) and "detail" in payload:
        return f"HTTP {response.status_code}: {payload['detail']}"
    return f"HTTP {response.status_code}: {payload}"
