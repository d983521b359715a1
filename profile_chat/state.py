"""Session state and session lifecycle management."""

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from .models import Message, Sender, SessionView, TurnState

logger = logging.getLogger(__name__)


@dataclass
class Session:
    """
    In-memory state of one chat widget instance.

    Tracks:
    - The remote conversation (thread) id, set once and then reused
    - The append-only message log rendered to the visitor
    - The busy flag and turn state for the submit in flight
    """
    session_id: str
    conversation_id: Optional[str] = None
    log: List[Message] = field(default_factory=list)
    busy: bool = False
    input_buffer: str = ""
    state: TurnState = TurnState.IDLE
    created_at: datetime = field(default_factory=datetime.now)
    last_access: datetime = field(default_factory=datetime.now)

    @classmethod
    def new(cls, greeting: str, session_id: Optional[str] = None) -> "Session":
        """Create an empty session seeded with the assistant greeting."""
        session = cls(session_id=session_id or f"sess_{uuid.uuid4().hex[:12]}")
        session.log.append(Message(sender=Sender.ASSISTANT, text=greeting))
        return session

    def append(self, sender: Sender, text: str) -> Message:
        message = Message(sender=sender, text=text)
        self.log.append(message)
        return message

    def view(self) -> SessionView:
        return SessionView(
            session_id=self.session_id,
            conversation_id=self.conversation_id,
            busy=self.busy,
            state=self.state,
            messages=list(self.log),
        )


class SessionManager:
    """
    Manages live sessions across requests.

    Handles:
    - Session creation, lookup and teardown
    - TTL cleanup of idle sessions
    """

    def __init__(self, ttl: int = 1800, cleanup_interval: float = 60.0):
        self.ttl = ttl
        self.cleanup_interval = cleanup_interval
        self._sessions: Dict[str, Session] = {}
        self._lock = asyncio.Lock()
        self._cleanup_task: Optional[asyncio.Task] = None

    async def start(self):
        """Start background cleanup task."""
        self._cleanup_task = asyncio.create_task(self._cleanup_loop())
        logger.info("Session manager started")

    async def stop(self):
        """Stop cleanup task."""
        if self._cleanup_task:
            self._cleanup_task.cancel()
            try:
                await self._cleanup_task
            except asyncio.CancelledError:
                pass
            self._cleanup_task = None
        logger.info("Session manager stopped")

    async def create(self, greeting: str) -> Session:
        """Create and register a new session."""
        session = Session.new(greeting)
        async with self._lock:
            self._sessions[session.session_id] = session
        logger.info(f"Created new session: {session.session_id}")
        return session

    async def get(self, session_id: str) -> Optional[Session]:
        """Look up a session, refreshing its last access time."""
        async with self._lock:
            session = self._sessions.get(session_id)
            if session:
                session.last_access = datetime.now()
            return session

    async def remove(self, session_id: str) -> bool:
        """Discard a session (widget torn down)."""
        async with self._lock:
            session = self._sessions.pop(session_id, None)
        if session:
            logger.info(f"Removed session: {session_id}")
        return session is not None

    async def expire(self, now: Optional[datetime] = None) -> List[str]:
        """Drop idle sessions older than the TTL. Busy sessions are kept."""
        now = now or datetime.now()
        ttl = timedelta(seconds=self.ttl)

        async with self._lock:
            expired = [
                sid for sid, session in self._sessions.items()
                if not session.busy and now - session.last_access > ttl
            ]
            for sid in expired:
                del self._sessions[sid]
                logger.info(f"Expired session: {sid}")

        return expired

    async def _cleanup_loop(self):
        """Remove expired sessions periodically."""
        while True:
            await asyncio.sleep(self.cleanup_interval)
            await self.expire()

    @property
    def session_count(self) -> int:
        """Number of active sessions."""
        return len(self._sessions)
