"""Chat service configuration."""

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

load_dotenv()

DEFAULT_ASSISTANT_ID = "asst_SAWgJNTGMIoidRR5FbUV4ATK"

DEFAULT_GREETING = (
    "Hello! I'm a digital assistant for this profile. "
    "Ask me anything about my experience, projects or achievements."
)


@dataclass
class Config:
    """Configuration loaded from environment variables."""

    # Server
    host: str = field(default_factory=lambda: os.getenv("CHAT_HOST", "0.0.0.0"))
    port: int = field(default_factory=lambda: int(os.getenv("CHAT_PORT", "8000")))
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))

    # Assistants API
    api_key: str = field(default_factory=lambda: os.getenv("OPENAI_API_KEY", ""))
    assistant_id: str = field(default_factory=lambda: os.getenv("ASSISTANT_ID", DEFAULT_ASSISTANT_ID))
    base_url: str = field(default_factory=lambda: os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1"))
    beta_header: str = field(default_factory=lambda: os.getenv("OPENAI_BETA_HEADER", "assistants=v2"))
    request_timeout: float = field(default_factory=lambda: float(os.getenv("REQUEST_TIMEOUT", "30")))

    # Run polling
    poll_interval: float = field(default_factory=lambda: float(os.getenv("POLL_INTERVAL", "1.0")))
    poll_timeout: float = field(default_factory=lambda: float(os.getenv("POLL_TIMEOUT", "120")))
    poll_max_attempts: int = field(default_factory=lambda: int(os.getenv("POLL_MAX_ATTEMPTS", "120")))

    # Sessions
    greeting: str = field(default_factory=lambda: os.getenv("CHAT_GREETING", DEFAULT_GREETING))
    session_ttl: int = field(default_factory=lambda: int(os.getenv("SESSION_TTL", "1800")))

    @property
    def has_credential(self) -> bool:
        """Whether an API key is configured."""
        return bool(self.api_key.strip())


# Global config instance
config = Config()
