"""
Profile Chat - Main Entry Point

HTTP backend for the profile page chat widget. Visitor messages are
answered by a hosted assistant via the OpenAI Assistants API.

Usage:
    python -m profile_chat.main

Environment Variables:
    OPENAI_API_KEY     - Assistants API key (chat is disabled without it)
    ASSISTANT_ID       - Assistant to run for every message
    OPENAI_BASE_URL    - API base URL (default: https://api.openai.com/v1)
    POLL_INTERVAL      - Seconds between run status polls (default: 1.0)
    POLL_TIMEOUT       - Seconds before a run is given up on (default: 120)
    POLL_MAX_ATTEMPTS  - Maximum run status polls (default: 120)
    CHAT_HOST          - Server host (default: 0.0.0.0)
    CHAT_PORT          - Server port (default: 8000)
    SESSION_TTL        - Idle session TTL in seconds (default: 1800)
    LOG_LEVEL          - Log level (default: INFO)
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .api import router as sessions_router
from .config import Config, config as default_config
from .orchestrator import ChatOrchestrator
from .state import SessionManager

# Configure logging
logging.basicConfig(
    level=getattr(logging, default_config.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger(__name__)


def create_app(
    config: Optional[Config] = None,
    orchestrator: Optional[ChatOrchestrator] = None,
    sessions: Optional[SessionManager] = None,
) -> FastAPI:
    """Build the FastAPI app. Collaborators not passed in are built at startup."""
    config = config or default_config

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application startup and shutdown lifecycle."""
        logger.info("=" * 60)
        logger.info("Profile Chat Starting")
        logger.info("=" * 60)

        app.state.orchestrator = orchestrator or ChatOrchestrator(config)
        app.state.sessions = sessions or SessionManager(ttl=config.session_ttl)
        await app.state.sessions.start()

        if config.has_credential:
            logger.info(f"Assistant: {config.assistant_id}")
            logger.info(f"API base URL: {config.base_url}")
        else:
            logger.warning("No OPENAI_API_KEY configured - chat will reply with setup instructions")

        logger.info(f"Poll interval: {config.poll_interval}s, timeout: {config.poll_timeout}s")
        logger.info(f"Session TTL: {config.session_ttl}s")
        logger.info("-" * 60)
        logger.info(f"Server ready at http://{config.host}:{config.port}")
        logger.info("=" * 60)

        yield

        logger.info("Shutting down...")
        await app.state.sessions.stop()
        await app.state.orchestrator.close()
        logger.info("Shutdown complete")

    app = FastAPI(
        title="Profile Chat",
        description=(
            "Chat backend for a personal profile page. "
            "Each visitor message is answered by a hosted assistant "
            "through the thread + run Assistants API."
        ),
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(sessions_router)

    @app.get("/health")
    async def health(request: Request):
        """Health check endpoint."""
        return {
            "status": "healthy",
            "chat_enabled": config.has_credential,
            "assistant_id": config.assistant_id,
            "session_count": request.app.state.sessions.session_count,
        }

    @app.get("/")
    async def root():
        """Root endpoint with basic info."""
        return {
            "name": "Profile Chat",
            "version": __version__,
            "endpoints": {
                "sessions": "/v1/sessions",
                "messages": "/v1/sessions/{session_id}/messages",
                "health": "/health",
            },
        }

    return app


app = create_app()


def main():
    """Run the chat server."""
    uvicorn.run(
        "profile_chat.main:app",
        host=default_config.host,
        port=default_config.port,
        reload=False,
        log_level=default_config.log_level.lower(),
    )


if __name__ == "__main__":
    main()
