"""OpenAI Assistants API client (threads, messages, runs)."""

import logging
from typing import Any, Dict, Optional

import httpx

from .config import Config
from .errors import ConfigurationError, TransportError

logger = logging.getLogger(__name__)


class AssistantClient:
    """
    Async client for the thread + run Assistants protocol.

    Each method issues exactly one authenticated request and returns the
    parsed JSON body. Interpreting fields is left to the caller.

    Handles:
    - Bearer auth and the protocol-version header on every request
    - Mapping network failures, non-2xx responses and bad JSON
      to TransportError
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.openai.com/v1",
        beta_header: str = "assistants=v2",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if not api_key:
            raise ConfigurationError("AssistantClient requires an API key")

        self.base_url = base_url.rstrip("/")
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={
                "Authorization": f"Bearer {api_key}",
                "OpenAI-Beta": beta_header,
                "Content-Type": "application/json",
            },
            timeout=httpx.Timeout(timeout, connect=10.0),
            transport=transport,
        )

    @classmethod
    def from_config(
        cls,
        config: Config,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "AssistantClient":
        """Build a client from service configuration."""
        return cls(
            api_key=config.api_key,
            base_url=config.base_url,
            beta_header=config.beta_header,
            timeout=config.request_timeout,
            transport=transport,
        )

    async def close(self):
        """Close HTTP client."""
        await self.client.aclose()

    async def create_thread(self) -> Dict[str, Any]:
        """Create a new conversation thread."""
        return await self._request("create-conversation", "POST", "/threads", json={})

    async def post_message(self, thread_id: str, text: str) -> Dict[str, Any]:
        """Append a user message to a thread."""
        return await self._request(
            "post-message",
            "POST",
            f"/threads/{thread_id}/messages",
            json={"role": "user", "content": text},
        )

    async def start_run(self, thread_id: str, assistant_id: str) -> Dict[str, Any]:
        """Start a run of the assistant over a thread."""
        return await self._request(
            "start-run",
            "POST",
            f"/threads/{thread_id}/runs",
            json={"assistant_id": assistant_id},
        )

    async def get_run(self, thread_id: str, run_id: str) -> Dict[str, Any]:
        """Fetch the current snapshot of a run."""
        return await self._request(
            "get-run-status",
            "GET",
            f"/threads/{thread_id}/runs/{run_id}",
        )

    async def latest_message(self, thread_id: str) -> Dict[str, Any]:
        """List the single most recent message on a thread."""
        return await self._request(
            "list-latest-message",
            "GET",
            f"/threads/{thread_id}/messages",
            params={"order": "desc", "limit": 1},
        )

    async def cancel_run(self, thread_id: str, run_id: str) -> Dict[str, Any]:
        """Ask the service to cancel an in-flight run."""
        return await self._request(
            "cancel-run",
            "POST",
            f"/threads/{thread_id}/runs/{run_id}/cancel",
        )

    async def _request(
        self,
        operation: str,
        method: str,
        path: str,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        logger.debug(f"{operation}: {method} {path}")

        try:
            resp = await self.client.request(method, path, json=json, params=params)
        except httpx.TransportError as e:
            logger.warning(f"{operation}: network error: {e}")
            raise TransportError(operation, str(e) or type(e).__name__, network=True) from e
        except (httpx.RequestError, httpx.InvalidURL) as e:
            # not a connectivity failure
            logger.warning(f"{operation}: request error: {e}")
            raise TransportError(operation, str(e) or type(e).__name__) from e

        if resp.is_error:
            message = _remote_error_message(resp)
            logger.warning(f"{operation}: HTTP {resp.status_code}: {message}")
            raise TransportError(operation, message, status_code=resp.status_code)

        try:
            return resp.json()
        except ValueError as e:
            logger.warning(f"{operation}: malformed JSON response")
            raise TransportError(operation, "Malformed JSON response", status_code=resp.status_code) from e


def _remote_error_message(resp: httpx.Response) -> str:
    """Remote-provided error message when present, else the HTTP reason phrase."""
    try:
        body = resp.json()
    except ValueError:
        body = None

    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            return error["message"]

    return resp.reason_phrase or f"HTTP {resp.status_code}"
