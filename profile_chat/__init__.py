"""
Profile Chat

Backend for the chat widget on a personal profile page. Visitor
questions are answered by a hosted assistant over the OpenAI
Assistants thread + run protocol.

Components:
- orchestrator: One message in, one reply out, per session
- run_poller: Bounded polling of a run to a terminal status
- assistant_client: Assistants API HTTP client
- state: Session state and lifecycle
- api: Widget endpoints
"""

__version__ = "0.1.0"
