"""Chat client configuration with environment variable loading.

Pydantic-based configuration for the UI-side completion client and
readiness polling.
"""

import os

import httpx
from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator, model_validator

# Load environment variables from .env file
load_dotenv()


def _models_from_env() -> list[str]:
    raw = os.getenv("CHAT_MODELS", "")
    return [m.strip() for m in raw.split(",") if m.strip()]


class ChatClientConfig(BaseModel):
    """Configuration for the streaming chat client.

    Attributes:
        api_base_url: Base URL of the completion service.
        default_model: Model requested when the user has not picked one.
        available_models: Models offered in the model selector.
        request_timeout: Seconds before a completion request times out.
        readiness_poll_interval: Seconds between health probes at startup.
    """

    api_base_url: str = Field(
        default_factory=lambda: os.getenv("API_BASE_URL", "http://localhost:8000"),
        description="Completion service base URL",
    )
    default_model: str = Field(
        default_factory=lambda: os.getenv("CHAT_MODEL", "gpt-4o-mini"),
        description="Model used for new submissions",
    )
    available_models: list[str] = Field(
        default_factory=_models_from_env,
        description="Models offered in the UI",
    )
    request_timeout: float = Field(
        default=120.0,
        gt=0.0,
        description="Completion request timeout in seconds",
    )
    readiness_poll_interval: float = Field(
        default=0.1,
        gt=0.0,
        description="Delay between readiness probes in seconds",
    )

    @field_validator("api_base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        """Normalize the base URL so paths can be appended, and check it parses."""
        v = v.strip().rstrip("/")
        if not v:
            raise ValueError("API base URL required. Set API_BASE_URL in .env")
        try:
            httpx.URL(v)
        except httpx.InvalidURL as e:
            raise ValueError(f"Invalid API_BASE_URL: {e}") from e
        return v

    @model_validator(mode="after")
    def include_default_model(self) -> "ChatClientConfig":
        """Make sure the default model is always selectable."""
        if self.default_model not in self.available_models:
            self.available_models.insert(0, self.default_model)
        return self


def get_chat_client_config() -> ChatClientConfig:
    """Create chat client configuration from environment.

    Returns:
        Configured ChatClientConfig instance.
    """
    return ChatClientConfig()
