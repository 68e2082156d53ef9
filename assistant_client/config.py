"""Client configuration with environment variable loading.

Pydantic-based configuration for the chat client. Values default to
environment variables so a `.env` file next to the app is enough to point
the client at a different backend or identity provider.
"""

import os

import httpx
from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator

# Load environment variables from .env file
load_dotenv()


def _env_flag(name: str) -> bool:
    return os.getenv(name, "").strip().lower() in {"1", "true", "yes", "on"}


def origin_of(url: str) -> str:
    """Return the scheme://host[:port] origin of an absolute URL."""
    parsed = httpx.URL(url)
    origin = f"{parsed.scheme}://{parsed.host}"
    if parsed.port is not None:
        origin += f":{parsed.port}"
    return origin


class ClientConfig(BaseModel):
    """Configuration for the chat client.

    Attributes:
        api_base_url: Base URL of the chat backend, including any `/api` prefix.
        page_origin: Origin the user interface is served from.
        supabase_url: Identity provider URL (empty disables the provider).
        supabase_anon_key: Public API key sent to the identity provider.
        request_timeout: Seconds before an idle request is abandoned.
        cookie_ttl_days: Lifetime of published credential cookies.
        cancel_on_switch: Cancel an in-flight turn when the conversation changes.
    """

    # Environment-sourced defaults go through the same validators
    model_config = ConfigDict(validate_default=True)

    api_base_url: str = Field(
        default_factory=lambda: os.getenv("API_BASE_URL", "http://localhost:8000/api"),
        description="Chat backend base URL",
    )
    page_origin: str = Field(
        default_factory=lambda: os.getenv("PAGE_ORIGIN", "http://localhost:8080"),
        description="Origin serving the user interface",
    )
    supabase_url: str = Field(
        default_factory=lambda: os.getenv("SUPABASE_URL", ""),
        description="Identity provider URL",
    )
    supabase_anon_key: str = Field(
        default_factory=lambda: os.getenv("SUPABASE_ANON_KEY", ""),
        description="Identity provider public key",
    )
    request_timeout: float = Field(
        default=120.0,
        ge=1.0,
        le=600.0,
        description="Request timeout in seconds",
    )
    cookie_ttl_days: int = Field(
        default=7,
        ge=1,
        le=365,
        description="Expiry of published credential cookies",
    )
    cancel_on_switch: bool = Field(
        default_factory=lambda: _env_flag("CANCEL_ON_SWITCH"),
        description="Cancel in-flight turns on conversation switch",
    )

    @field_validator("api_base_url", "page_origin")
    @classmethod
    def validate_http_url(cls, v: str) -> str:
        """Require an absolute http(s) URL and drop any trailing slash."""
        v = v.strip().rstrip("/")
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"Expected an absolute http(s) URL, got {v!r}")
        return v

    @field_validator("supabase_url")
    @classmethod
    def strip_provider_url(cls, v: str) -> str:
        return v.strip().rstrip("/")

    @property
    def api_origin(self) -> str:
        """Origin of the chat backend, used for cross-origin decisions."""
        base = self.api_base_url
        if base.endswith("/api"):
            base = base[: -len("/api")]
        return origin_of(base)

    @property
    def provider_ref(self) -> str:
        """Project reference of the identity provider (first host label)."""
        if "//" not in self.supabase_url:
            return "default"
        host = httpx.URL(self.supabase_url).host
        return host.split(".", 1)[0] or "default"

    @property
    def is_cross_origin(self) -> bool:
        return origin_of(self.page_origin) != self.api_origin


def get_client_config() -> ClientConfig:
    """Create client configuration from environment.

    Returns:
        Configured ClientConfig instance.

    Raises:
        ValidationError: If a configured URL is malformed.
    """
    return ClientConfig()
