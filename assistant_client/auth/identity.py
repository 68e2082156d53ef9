"""Identity provider boundary and the sign-in service built on it.

The provider issues one-time passcodes by email and exchanges a verified
passcode for a session. `SupabaseOtpProvider` speaks the GoTrue REST API
with httpx; anything implementing `IdentityProvider` can replace it.
`AuthService` keeps the current session and republishes every new access
token through the credential bridge.
"""

import logging
import re
from typing import Any, Protocol

import httpx
from pydantic import BaseModel, ValidationError

from assistant_client.auth.credentials import CredentialBridge
from assistant_client.client.errors import IdentityError
from assistant_client.config import ClientConfig

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class AuthSession(BaseModel):
    """Session issued by the identity provider.

    Attributes:
        access_token: Bearer token for backend calls.
        refresh_token: Token the provider uses to renew the session.
        email: Signed-in user's email.
        user_id: Provider's user identifier.
        expires_in: Seconds until the access token expires.
    """

    access_token: str
    refresh_token: str | None = None
    email: str | None = None
    user_id: str | None = None
    expires_in: int | None = None

    @property
    def display_name(self) -> str:
        if self.email:
            return self.email.split("@", 1)[0]
        return "there"


class IdentityProvider(Protocol):
    async def request_code(self, email: str) -> None: ...

    async def verify_code(self, email: str, code: str) -> AuthSession: ...

    async def sign_out(self, session: AuthSession) -> None: ...


def validate_email(email: str) -> str:
    """Return the trimmed email or raise IdentityError."""
    email = email.strip()
    if not email:
        raise IdentityError("Email is required.", title="Email is required")
    if not EMAIL_PATTERN.match(email):
        raise IdentityError("Enter a valid email address.", title="Invalid email")
    return email


def _provider_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return f"Identity provider returned {response.status_code}"
    if isinstance(body, dict):
        for key in ("msg", "error_description", "message", "error"):
            if isinstance(body.get(key), str):
                return body[key]
    return f"Identity provider returned {response.status_code}"


class SupabaseOtpProvider:
    """Email one-time passcode flow against a Supabase (GoTrue) project.

    Args:
        config: Supplies the project URL and anon key.
        transport: Optional httpx transport, used by tests.
    """

    def __init__(
        self,
        config: ClientConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not config.supabase_url:
            raise ValueError("SUPABASE_URL is required for passcode sign-in")
        self._client = httpx.AsyncClient(
            base_url=f"{config.supabase_url}/auth/v1",
            headers={"apikey": config.supabase_anon_key},
            timeout=30.0,
            transport=transport,
        )

    async def _post(self, path: str, json: dict[str, Any], token: str | None = None) -> httpx.Response:
        headers = {"Authorization": f"Bearer {token}"} if token else None
        try:
            response = await self._client.post(path, json=json, headers=headers)
        except httpx.RequestError as e:
            raise IdentityError(f"Unable to reach identity provider: {e}") from e
        if response.is_error:
            raise IdentityError(_provider_message(response))
        return response

    async def request_code(self, email: str) -> None:
        # Existing users only; sign-up happens elsewhere
        await self._post("/otp", {"email": email, "create_user": False})

    async def verify_code(self, email: str, code: str) -> AuthSession:
        response = await self._post(
            "/verify", {"type": "email", "email": email, "token": code.strip()}
        )
        try:
            body = response.json()
        except ValueError as e:
            raise IdentityError("Identity provider returned an invalid response.") from e
        if not isinstance(body, dict):
            raise IdentityError("Identity provider returned an invalid response.")
        session = body.get("session") if isinstance(body.get("session"), dict) else body
        if not session.get("access_token"):
            raise IdentityError("Verification succeeded but no session was returned.")
        user = session.get("user") or body.get("user")
        if not isinstance(user, dict):
            user = {}
        try:
            return AuthSession(
                access_token=session["access_token"],
                refresh_token=session.get("refresh_token"),
                expires_in=session.get("expires_in"),
                email=user.get("email", email),
                user_id=user.get("id"),
            )
        except ValidationError as e:
            raise IdentityError("Identity provider returned an invalid session.") from e

    async def sign_out(self, session: AuthSession) -> None:
        await self._post("/logout", {}, token=session.access_token)

    async def aclose(self) -> None:
        await self._client.aclose()


class AuthService:
    """Current session plus credential publishing.

    Args:
        provider: Identity provider.
        bridge: Credential bridge that receives every new access token.
    """

    def __init__(self, provider: IdentityProvider, bridge: CredentialBridge) -> None:
        self._provider = provider
        self._bridge = bridge
        self._pending_email: str | None = None
        self.session: AuthSession | None = None

    @property
    def code_requested(self) -> bool:
        return self._pending_email is not None

    @property
    def is_authenticated(self) -> bool:
        """True with an in-memory session or a published token."""
        return self.session is not None or self._bridge.has_token()

    async def request_code(self, email: str) -> str:
        """Ask the provider to email a passcode.

        Returns:
            The normalized email the code was sent to.
        """
        email = validate_email(email)
        await self._provider.request_code(email)
        self._pending_email = email
        logger.info("Passcode requested")
        return email

    async def verify_code(self, code: str) -> AuthSession:
        if self._pending_email is None:
            raise IdentityError(
                "Please request a passcode before attempting to verify.",
                title="Request a passcode first",
            )
        session = await self._provider.verify_code(self._pending_email, code)
        self._pending_email = None
        self.update_session(session)
        logger.info("Signed in")
        return session

    def update_session(self, session: AuthSession | None) -> bool:
        """Adopt a new or refreshed session and republish its token.

        Returns:
            Whether the token was persisted; the in-memory session is kept
            either way.
        """
        self.session = session
        if session is None:
            return False
        return self._bridge.publish(session.access_token)

    async def sign_out(self) -> None:
        session, self.session = self.session, None
        self._pending_email = None
        if session is not None:
            try:
                await self._provider.sign_out(session)
            except IdentityError as e:
                logger.warning(f"Provider sign-out failed: {e}")
        self._bridge.clear()
        logger.info("Signed out")
