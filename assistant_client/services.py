"""Client services: process-wide configuration and per-browser credentials.

Configuration, the backend transport, and the identity provider are shared
by the whole process. Everything that holds a credential (cookie jar,
credential bridge, authenticated API client, auth session) lives in a
`UserContext` scoped to one browser, so one user's sign-in or sign-out
never affects another. Page-level state (`ChatSession`) is created per view
on top of a user context.
"""

import logging
from collections.abc import MutableMapping
from typing import Any

import httpx

from assistant_client.auth.credentials import CookieJar, CredentialBridge
from assistant_client.auth.identity import AuthService, IdentityProvider, SupabaseOtpProvider
from assistant_client.client.http import ApiClient
from assistant_client.client.stream import StreamClient
from assistant_client.config import ClientConfig, get_client_config
from assistant_client.notifications import Notifier
from assistant_client.state.directory import ConversationDirectory
from assistant_client.state.session import ChatSession

logger = logging.getLogger(__name__)


class UserContext:
    """Credentials and backend clients for one user agent.

    Args:
        config: Client configuration.
        notifier: Receives credential storage warnings.
        store: Per-browser mapping backing the cookie jar.
        transport: Optional httpx transport for the backend.
        identity: Identity provider; None disables sign-in.
    """

    def __init__(
        self,
        config: ClientConfig,
        notifier: Notifier,
        store: MutableMapping[str, Any] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        identity: IdentityProvider | None = None,
    ) -> None:
        self.config = config
        self.notifier = notifier
        self.jar = CookieJar(store=store)
        self.bridge = CredentialBridge(
            self.jar,
            api_origin=config.api_origin,
            page_origin=config.page_origin,
            provider_ref=config.provider_ref,
            ttl_days=config.cookie_ttl_days,
            notifier=notifier,
        )
        self.api = ApiClient(config, self.bridge, transport=transport)
        self.stream = StreamClient(self.api)
        self.auth = AuthService(identity, self.bridge) if identity is not None else None

    @property
    def sign_in_required(self) -> bool:
        return self.auth is not None and not self.auth.is_authenticated

    def create_session(self, notifier: Notifier | None = None) -> ChatSession:
        """Create chat state for one view."""
        notifier = notifier or self.notifier
        return ChatSession(
            self.api,
            self.stream,
            ConversationDirectory(self.api, notifier),
            notifier,
            cancel_on_switch=self.config.cancel_on_switch,
        )

    async def aclose(self) -> None:
        await self.api.aclose()


class ClientServices:
    """Shared services and the user contexts built on them.

    Args:
        config: Client configuration. Loads from environment if not provided.
        transport: Optional httpx transport for the backend, used by tests
            and by the integrated development server.
        identity: Identity provider; built from config when a provider URL
            is configured, otherwise sign-in is disabled.
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        identity: IdentityProvider | None = None,
    ) -> None:
        self.config = config or get_client_config()
        self.notifier = Notifier()
        self._transport = transport
        self._contexts: dict[str, UserContext] = {}

        if identity is None and self.config.supabase_url:
            identity = SupabaseOtpProvider(self.config)
        self._identity = identity
        if identity is None:
            logger.warning("No identity provider configured; sign-in is disabled")

    def context_for(
        self,
        key: str,
        store: MutableMapping[str, Any] | None = None,
        notifier: Notifier | None = None,
    ) -> UserContext:
        """Return the context of one user agent, creating it on first use.

        Args:
            key: Stable identifier of the user agent (browser id).
            store: Per-browser mapping backing the cookie jar.
            notifier: Notifier for the new context; defaults to the shared one.
        """
        context = self._contexts.get(key)
        if context is None:
            context = UserContext(
                self.config,
                notifier or self.notifier,
                store=store,
                transport=self._transport,
                identity=self._identity,
            )
            self._contexts[key] = context
            logger.debug(f"Created user context ({len(self._contexts)} active)")
        return context

    async def release(self, key: str) -> None:
        """Drop a user context and close its clients."""
        context = self._contexts.pop(key, None)
        if context is not None:
            await context.aclose()

    async def aclose(self) -> None:
        for key in list(self._contexts):
            await self.release(key)
        if isinstance(self._identity, SupabaseOtpProvider):
            await self._identity.aclose()


# Module-level singleton instance
_services: ClientServices | None = None


def get_services() -> ClientServices:
    """Get or create the global client services.

    Returns:
        The ClientServices instance.
    """
    global _services
    if _services is None:
        _services = ClientServices()
    return _services


def set_services(services: ClientServices | None) -> None:
    """Install the global services (integrated server and tests)."""
    global _services
    _services = services
