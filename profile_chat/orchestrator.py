"""
Conversation orchestration: one visitor message in, one reply out.

A submit call drives the thread + run protocol:
- create the remote thread once per session
- post the visitor's message
- start a run and poll it to a terminal status
- append the latest assistant message, or a synthetic error message

Every failure after the optimistic append becomes exactly one
assistant message; nothing but SessionBusyError escapes to the caller.
"""

import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional

import httpx

from .assistant_client import AssistantClient
from .config import Config
from .errors import (
    ConfigurationError,
    ProfileChatError,
    RemoteRunError,
    RunFailedError,
    RunTimedOutError,
    SessionBusyError,
    TransportError,
)
from .models import RunStatus, Sender, TurnState, extract_latest_text, parse_run, parse_thread
from .run_poller import RunPoller
from .state import Session

logger = logging.getLogger(__name__)

CONFIGURATION_MESSAGE = (
    "Please configure OPENAI_API_KEY environment variable to enable chat functionality."
)
NETWORK_ERROR_MESSAGE = "Network error. Please check your connection."
API_ERROR_MESSAGE = "Error contacting OpenAI Assistant API"
TIMEOUT_MESSAGE = "The assistant took too long to respond. Please try again."


class ChatOrchestrator:
    """
    Turns visitor messages into assistant replies for a session.

    Credential and assistant id come from the Config passed in; nothing
    is read from the environment at call time.
    """

    def __init__(
        self,
        config: Config,
        client: Optional[AssistantClient] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.config = config
        if client is None and config.has_credential:
            client = AssistantClient.from_config(config)
        self.client = client
        self._sleep = sleep
        self._clock = clock

    async def close(self):
        """Close the underlying HTTP client."""
        if self.client:
            await self.client.close()

    async def submit(self, session: Session, text: str) -> Session:
        """
        Process one visitor message against the session.

        Raises SessionBusyError if a submit is already in flight for
        this session. Every other outcome is reported in the log.
        """
        if session.busy:
            raise SessionBusyError(f"Session {session.session_id} is already processing a message")

        if not text or not text.strip():
            return session

        try:
            self._check_configuration()
        except ConfigurationError as e:
            logger.warning(f"Session {session.session_id}: no API key configured")
            session.append(Sender.USER, text)
            session.append(Sender.ASSISTANT, describe_error(e))
            session.input_buffer = ""
            return session

        session.append(Sender.USER, text)
        session.input_buffer = ""
        session.busy = True

        try:
            reply = await self._run_turn(session, text)
            session.append(Sender.ASSISTANT, reply)
        except ProfileChatError as e:
            session.state = TurnState.FAILED
            logger.error(f"Session {session.session_id}: turn failed: {e}")
            if isinstance(e, RunTimedOutError):
                await self._cancel_run(session.conversation_id, e.run_id)
            session.append(Sender.ASSISTANT, describe_error(e))
        finally:
            session.busy = False
            session.state = TurnState.IDLE

        return session

    def _check_configuration(self):
        if not self.config.has_credential or self.client is None:
            raise ConfigurationError(CONFIGURATION_MESSAGE)

    async def _run_turn(self, session: Session, text: str) -> str:
        thread_id = await self._ensure_conversation(session)

        session.state = TurnState.POSTING_MESSAGE
        await self.client.post_message(thread_id, text)

        session.state = TurnState.CREATING_RUN
        run = await self._start_run(thread_id)
        logger.info(f"Session {session.session_id}: started run {run.id} ({run.status})")

        session.state = TurnState.POLLING
        poller = RunPoller(
            self.client,
            thread_id,
            run,
            interval=self.config.poll_interval,
            timeout=self.config.poll_timeout,
            max_attempts=self.config.poll_max_attempts,
            sleep=self._sleep,
            clock=self._clock,
        )
        run = await poller.wait()

        session.state = TurnState.RESOLVING
        if not run.is_completed:
            if run.status == RunStatus.REQUIRES_ACTION.value:
                logger.warning(
                    f"Run {run.id} requires action; tool outputs are not supported, "
                    "reporting as failed"
                )
            raise RunFailedError(run.id, run.status, run.error_message)

        payload = await self.client.latest_message(thread_id)
        reply = extract_latest_text(payload)
        logger.info(f"Session {session.session_id}: run {run.id} completed after {poller.attempts} polls")
        return reply

    async def _ensure_conversation(self, session: Session) -> str:
        if session.conversation_id:
            return session.conversation_id

        session.state = TurnState.CREATING_CONVERSATION
        thread = parse_thread(await self.client.create_thread())
        session.conversation_id = thread.id
        logger.info(f"Session {session.session_id}: created conversation {thread.id}")
        return thread.id

    async def _start_run(self, thread_id: str):
        try:
            payload = await self.client.start_run(thread_id, self.config.assistant_id)
        except TransportError as e:
            if e.network:
                raise
            raise RemoteRunError(f"Failed to create run: {e.message}") from e
        return parse_run(payload)

    async def _cancel_run(self, thread_id: Optional[str], run_id: str):
        if not thread_id:
            return
        try:
            await self.client.cancel_run(thread_id, run_id)
            logger.info(f"Cancelled timed out run {run_id}")
        except (TransportError, httpx.HTTPError) as e:
            logger.warning(f"Failed to cancel run {run_id}: {e}")


def describe_error(error: ProfileChatError) -> str:
    """Render a turn failure as the assistant message shown to the visitor."""
    if isinstance(error, ConfigurationError):
        return CONFIGURATION_MESSAGE
    if isinstance(error, TransportError) and error.network:
        return NETWORK_ERROR_MESSAGE
    if isinstance(error, RunTimedOutError):
        return TIMEOUT_MESSAGE
    if isinstance(error, RunFailedError):
        return f"{error}. Please try again."
    if isinstance(error, TransportError):
        return f"{API_ERROR_MESSAGE}: {error.message}"
    return f"{API_ERROR_MESSAGE}: {error}"
