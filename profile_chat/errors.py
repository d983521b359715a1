"""Error taxonomy for a chat turn."""

from typing import Optional


class ProfileChatError(Exception):
    """Base class for chat service errors."""


class ConfigurationError(ProfileChatError):
    """No API key configured; the remote service is never contacted."""


class TransportError(ProfileChatError):
    """
    A single remote call failed.

    Raised for network failures, non-2xx responses and response bodies
    that are not valid JSON. ``network`` is True only when the host could
    not be reached at all.
    """

    def __init__(
        self,
        operation: str,
        message: str,
        status_code: Optional[int] = None,
        network: bool = False,
    ):
        self.operation = operation
        self.message = message
        self.status_code = status_code
        self.network = network
        super().__init__(f"{operation} failed: {message}")


class RemoteRunError(ProfileChatError):
    """The run could not be created or ended in a non-completed status."""


class ProtocolShapeError(RemoteRunError):
    """A remote payload is missing a field the protocol guarantees."""


class RunFailedError(RemoteRunError):
    """The run reached a terminal status other than completed."""

    def __init__(self, run_id: str, status: str, detail: Optional[str] = None):
        self.run_id = run_id
        self.status = status
        self.detail = detail
        suffix = f" - {detail}" if detail else ""
        super().__init__(f"Assistant error: {status}{suffix}")


class RunTimedOutError(ProfileChatError):
    """The run did not reach a terminal status before the poll deadline."""

    def __init__(self, run_id: str, attempts: int, elapsed: float):
        self.run_id = run_id
        self.attempts = attempts
        self.elapsed = elapsed
        super().__init__(
            f"Run {run_id} still active after {attempts} polls ({elapsed:.1f}s)"
        )


class SessionBusyError(ProfileChatError):
    """A submit was attempted while another is in flight for the same session."""
