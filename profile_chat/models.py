"""Data models for the chat service."""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import ProtocolShapeError


# ============================================================================
# Session Log Models
# ============================================================================

class Sender(str, Enum):
    """Author of a message in the session log."""
    USER = "user"
    ASSISTANT = "assistant"


class Message(BaseModel):
    """One entry in the session log. Immutable once created."""
    model_config = ConfigDict(frozen=True)

    sender: Sender
    text: str


class TurnState(str, Enum):
    """
    Where a session is within one submit call.

    FAILED only lasts while a failed turn is cleaned up (cancelling a
    timed out run); the session returns to IDLE before submit returns.
    """
    IDLE = "idle"
    CREATING_CONVERSATION = "creating_conversation"
    POSTING_MESSAGE = "posting_message"
    CREATING_RUN = "creating_run"
    POLLING = "polling"
    RESOLVING = "resolving"
    FAILED = "failed"


# ============================================================================
# Assistants API Payload Models
# ============================================================================

class RunStatus(str, Enum):
    """Run statuses reported by the Assistants API."""
    QUEUED = "queued"
    IN_PROGRESS = "in_progress"
    REQUIRES_ACTION = "requires_action"
    CANCELLING = "cancelling"
    CANCELLED = "cancelled"
    FAILED = "failed"
    COMPLETED = "completed"
    INCOMPLETE = "incomplete"
    EXPIRED = "expired"


ACTIVE_RUN_STATUSES = frozenset({RunStatus.QUEUED.value, RunStatus.IN_PROGRESS.value})


class ThreadInfo(BaseModel):
    """Created thread (remote conversation)."""
    id: str


class RunError(BaseModel):
    """Structured last_error attached to a run."""
    code: Optional[str] = None
    message: Optional[str] = None


class RunSnapshot(BaseModel):
    """
    Point-in-time view of a remote run.

    Only ``queued`` and ``in_progress`` are active; every other status,
    including ones this client does not know, is terminal.
    """
    id: str
    status: str
    last_error: Optional[RunError] = None

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_RUN_STATUSES

    @property
    def is_completed(self) -> bool:
        return self.status == RunStatus.COMPLETED.value

    @property
    def error_message(self) -> Optional[str]:
        if self.last_error and self.last_error.message:
            return self.last_error.message
        return None


class TextValue(BaseModel):
    value: str


class ContentPart(BaseModel):
    type: str = "text"
    text: Optional[TextValue] = None


class ThreadMessage(BaseModel):
    id: Optional[str] = None
    role: Optional[str] = None
    content: List[ContentPart] = Field(default_factory=list)


class MessageList(BaseModel):
    data: List[ThreadMessage] = Field(default_factory=list)


# ============================================================================
# Payload Parsing
# ============================================================================

def _validate(model: type, payload: Any, what: str):
    try:
        return model.model_validate(payload)
    except ValidationError as e:
        raise ProtocolShapeError(f"Unexpected {what} payload: {e.error_count()} invalid field(s)") from e


def parse_thread(payload: Dict[str, Any]) -> ThreadInfo:
    """Parse a create-thread response."""
    return _validate(ThreadInfo, payload, "thread")


def parse_run(payload: Dict[str, Any]) -> RunSnapshot:
    """Parse a run object from start-run or get-run."""
    return _validate(RunSnapshot, payload, "run")


def extract_latest_text(payload: Dict[str, Any]) -> str:
    """
    Pull the reply text out of a list-messages response.

    Takes the first text segment of the first (most recent) message.
    Raises ProtocolShapeError when the list or content is empty.
    """
    messages = _validate(MessageList, payload, "message list")
    if not messages.data:
        raise ProtocolShapeError("Assistant returned no messages")

    latest = messages.data[0]
    if not latest.content:
        raise ProtocolShapeError("Latest message has no content")

    first = latest.content[0]
    if first.text is None:
        raise ProtocolShapeError(f"Latest message content is {first.type!r}, not text")

    return first.text.value


# ============================================================================
# HTTP Request/Response Models
# ============================================================================

class SubmitRequest(BaseModel):
    """Body of a submit call from the widget."""
    text: str


class SessionView(BaseModel):
    """Session state as rendered by the widget."""
    session_id: str
    conversation_id: Optional[str] = None
    busy: bool = False
    state: TurnState = TurnState.IDLE
    messages: List[Message]
