"""
Shared fixtures.

ScriptedAssistantAPI stands in for the Assistants API behind an
httpx.MockTransport, so the real AssistantClient is exercised end to end
without network access.
"""

from typing import Any, Callable, Dict, List, Optional, Union

import httpx
import pytest
import pytest_asyncio

from profile_chat.assistant_client import AssistantClient
from profile_chat.config import Config
from profile_chat.orchestrator import ChatOrchestrator
from profile_chat.state import Session

BASE_URL = "https://api.test/v1"

Scripted = Union[httpx.Response, Callable[[httpx.Request], httpx.Response], List[Any]]


def run_payload(status: str, run_id: str = "run_1", last_error: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    payload = {"id": run_id, "object": "thread.run", "status": status}
    if last_error is not None:
        payload["last_error"] = last_error
    return payload


def messages_payload(text: str) -> Dict[str, Any]:
    return {
        "object": "list",
        "data": [
            {
                "id": "msg_1",
                "role": "assistant",
                "content": [{"type": "text", "text": {"value": text, "annotations": []}}],
            }
        ],
    }


class ScriptedAssistantAPI:
    """
    Fake Assistants API.

    Responses are scripted per operation. A list is consumed one entry
    per call, the last entry repeating once the list runs out. Every
    call is recorded as (operation, request).
    """

    def __init__(self):
        self.calls: List[tuple] = []
        self.on_call: Optional[Callable[[str], None]] = None
        self.responses: Dict[str, Scripted] = {
            "create-conversation": httpx.Response(200, json={"id": "t1", "object": "thread"}),
            "post-message": httpx.Response(200, json={"id": "msg_user", "object": "thread.message"}),
            "start-run": httpx.Response(200, json=run_payload("queued")),
            "get-run-status": httpx.Response(200, json=run_payload("completed")),
            "list-latest-message": httpx.Response(200, json=messages_payload("Hello from the assistant.")),
            "cancel-run": httpx.Response(200, json=run_payload("cancelling")),
        }

    def script(self, operation: str, response: Scripted):
        self.responses[operation] = response

    def script_runs(self, *statuses: str, **kwargs):
        self.responses["get-run-status"] = [
            httpx.Response(200, json=run_payload(s, **kwargs)) for s in statuses
        ]

    def operations(self) -> List[str]:
        return [op for op, _ in self.calls]

    def requests_for(self, operation: str) -> List[httpx.Request]:
        return [req for op, req in self.calls if op == operation]

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def handle(self, request: httpx.Request) -> httpx.Response:
        operation = self._classify(request)
        self.calls.append((operation, request))
        if self.on_call:
            self.on_call(operation)

        scripted = self.responses[operation]
        if isinstance(scripted, list):
            scripted = scripted.pop(0) if len(scripted) > 1 else scripted[0]
        if callable(scripted):
            return scripted(request)
        return httpx.Response(scripted.status_code, headers=scripted.headers, content=scripted.content)

    @staticmethod
    def _classify(request: httpx.Request) -> str:
        parts = request.url.path.split("/v1/", 1)[1].strip("/").split("/")
        if parts == ["threads"]:
            return "create-conversation"
        if len(parts) == 3 and parts[2] == "messages":
            return "post-message" if request.method == "POST" else "list-latest-message"
        if len(parts) == 3 and parts[2] == "runs":
            return "start-run"
        if len(parts) == 4 and parts[2] == "runs":
            return "get-run-status"
        if len(parts) == 5 and parts[4] == "cancel":
            return "cancel-run"
        raise AssertionError(f"Unexpected request: {request.method} {request.url}")


class RecordingSleep:
    """Async sleep replacement that records requested delays."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, seconds: float):
        self.delays.append(seconds)


@pytest.fixture
def config() -> Config:
    return Config(
        api_key="sk-test",
        assistant_id="asst_test",
        base_url=BASE_URL,
        poll_interval=1.0,
        poll_timeout=60.0,
        poll_max_attempts=10,
        greeting="Hi! Ask me anything.",
    )


@pytest.fixture
def api() -> ScriptedAssistantAPI:
    return ScriptedAssistantAPI()


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest_asyncio.fixture
async def client(config, api):
    client = AssistantClient.from_config(config, transport=api.transport)
    yield client
    await client.close()


@pytest.fixture
def orchestrator(config, client, sleep) -> ChatOrchestrator:
    return ChatOrchestrator(config, client=client, sleep=sleep)


@pytest.fixture
def session(config) -> Session:
    return Session.new(config.greeting, session_id="sess_test")
