"""Client for the agent runner HTTP API."""

from .client import RETRY_STATUSES, RunClient, RunClientError

__all__ = ["RETRY_STATUSES", "RunClient", "RunClientError"]
