"""
Chat widget endpoints.

The widget creates a session when it mounts, submits visitor messages
to it and deletes it when torn down. Every response carries the full
session view so the widget can re-render the log.
"""

import logging

from fastapi import APIRouter, HTTPException, Request, Response, status

from .errors import SessionBusyError
from .models import SessionView, SubmitRequest
from .orchestrator import ChatOrchestrator
from .state import Session, SessionManager

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/sessions")


def _sessions(request: Request) -> SessionManager:
    return request.app.state.sessions


def _orchestrator(request: Request) -> ChatOrchestrator:
    return request.app.state.orchestrator


async def _get_session(request: Request, session_id: str) -> Session:
    session = await _sessions(request).get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail=f"Session {session_id} not found")
    return session


@router.post("", response_model=SessionView, status_code=status.HTTP_201_CREATED)
async def create_session(request: Request):
    """Create a session seeded with the assistant greeting."""
    orchestrator = _orchestrator(request)
    session = await _sessions(request).create(orchestrator.config.greeting)
    return session.view()


@router.get("/{session_id}", response_model=SessionView)
async def get_session(session_id: str, request: Request):
    """Current session state."""
    session = await _get_session(request, session_id)
    return session.view()


@router.post("/{session_id}/messages", response_model=SessionView)
async def submit_message(session_id: str, body: SubmitRequest, request: Request):
    """
    Submit one visitor message and wait for the reply.

    Returns 409 while a previous message on the same session is still
    being processed.
    """
    session = await _get_session(request, session_id)

    try:
        session = await _orchestrator(request).submit(session, body.text)
    except SessionBusyError as e:
        logger.info(f"Rejected submit: {e}")
        raise HTTPException(status_code=409, detail=str(e))

    return session.view()


@router.delete("/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_session(session_id: str, request: Request):
    """Tear down a session."""
    removed = await _sessions(request).remove(session_id)
    if not removed:
        raise HTTPException(status_code=404, detail=f"Session {session_id} not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
