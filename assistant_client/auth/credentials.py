"""Credential bridge: republishes the session token for cross-origin calls.

The chat backend usually lives on a different origin than the page and the
identity provider, so its requests cannot count on cookies the provider
set. The bridge mirrors the active access token into two cookies (a
canonical `auth_token` and a provider-patterned `sb-<ref>-auth-token`) and
turns whichever survives into an `Authorization: Bearer` header.

Lifecycle: one bridge per user agent, created on its first page visit.
`publish` on every token the identity provider emits, `clear` at sign-out.
Writes are last-write-wins.
"""

import logging
from collections.abc import Callable, MutableMapping
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any
from urllib.parse import quote, unquote

from pydantic import BaseModel

from assistant_client.client.errors import StorageUnavailableError
from assistant_client.config import origin_of
from assistant_client.notifications import Notifier

logger = logging.getLogger(__name__)

AUTH_TOKEN_COOKIE = "auth_token"
PROVIDER_COOKIE_PREFIX = "sb-"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SameSite(str, Enum):
    LAX = "lax"
    STRICT = "strict"
    NONE = "none"


class StoredCookie(BaseModel):
    """A cookie as held by the jar. `value` is percent-encoded."""

    name: str
    value: str
    expires: datetime | None = None
    path: str = "/"
    secure: bool = False
    same_site: SameSite = SameSite.LAX

    def is_expired(self, now: datetime) -> bool:
        return self.expires is not None and self.expires <= now


class CookieJar:
    """Cookie storage with expiry for one user agent.

    Cookies are kept as plain JSON-compatible dicts in `store`, so any
    per-browser mapping (such as NiceGUI's `app.storage.user`) can back
    the jar and keep cookies across page reloads.

    Args:
        enabled: When False every write raises StorageUnavailableError,
            mirroring a browser with cookies blocked.
        clock: Source of the current time (UTC).
        store: Mapping that holds the cookies. A private dict by default.
        namespace: Key under which the cookies live in `store`.
    """

    def __init__(
        self,
        enabled: bool = True,
        clock: Callable[[], datetime] = _utcnow,
        store: MutableMapping[str, Any] | None = None,
        namespace: str = "cookies",
    ) -> None:
        self.enabled = enabled
        self._clock = clock
        self._store = store if store is not None else {}
        self._namespace = namespace

    def _load(self) -> dict[str, StoredCookie]:
        raw = self._store.get(self._namespace) or {}
        return {name: StoredCookie.model_validate(data) for name, data in raw.items()}

    def _save(self, cookies: dict[str, StoredCookie]) -> None:
        # Reassign the whole entry so observable stores persist the change
        self._store[self._namespace] = {
            name: cookie.model_dump(mode="json") for name, cookie in cookies.items()
        }

    def set(self, cookie: StoredCookie) -> None:
        if not self.enabled:
            raise StorageUnavailableError(f"Cookie storage is disabled; cannot set {cookie.name}")
        cookies = self._load()
        cookies[cookie.name] = cookie
        self._save(cookies)

    def get(self, name: str) -> str | None:
        cookie = self._load().get(name)
        if cookie is None or cookie.is_expired(self._clock()):
            return None
        return cookie.value

    def cookies(self) -> list[StoredCookie]:
        """Return live cookies in insertion order."""
        now = self._clock()
        return [c for c in self._load().values() if not c.is_expired(now)]

    def delete(self, name: str) -> None:
        cookies = self._load()
        if cookies.pop(name, None) is not None:
            self._save(cookies)


def _is_provider_token_cookie(name: str) -> bool:
    return name.startswith(PROVIDER_COOKIE_PREFIX) and "-auth-token" in name


def _is_provider_access_cookie(name: str) -> bool:
    return name.startswith(PROVIDER_COOKIE_PREFIX) and "access_token" in name


class CredentialBridge:
    """Single owner of one user agent's republished bearer credential.

    Args:
        jar: Cookie storage shared with outbound request code.
        api_origin: Origin of the chat backend.
        page_origin: Origin the page is served from, or a callable returning
            it. Evaluated once per `publish` call.
        provider_ref: Identity provider project reference used in the
            provider-patterned cookie name.
        ttl_days: Cookie lifetime, independent of the token's own expiry.
        notifier: Receives a warning when publishing fails.
    """

    def __init__(
        self,
        jar: CookieJar,
        api_origin: str,
        page_origin: str | Callable[[], str],
        provider_ref: str = "default",
        ttl_days: int = 7,
        notifier: Notifier | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._jar = jar
        self._api_origin = origin_of(api_origin)
        self._page_origin = page_origin
        self._provider_ref = provider_ref
        self._ttl = timedelta(days=ttl_days)
        self._notifier = notifier or Notifier()
        self._clock = clock

    @property
    def provider_cookie_name(self) -> str:
        return f"{PROVIDER_COOKIE_PREFIX}{self._provider_ref}-auth-token"

    @property
    def cookie_names(self) -> tuple[str, str]:
        return (self.provider_cookie_name, AUTH_TOKEN_COOKIE)

    def current_page_origin(self) -> str:
        page = self._page_origin() if callable(self._page_origin) else self._page_origin
        return origin_of(page)

    def publish(self, token: str) -> bool:
        """Store the token under both cookie names.

        The cross-site policy is decided here, against the page origin at
        this moment, and is not revisited on read.

        Returns:
            True if both cookies were written, False if storage failed.
        """
        page_origin = self.current_page_origin()
        cross_origin = page_origin != self._api_origin
        secure = cross_origin or page_origin.startswith("https://")
        same_site = SameSite.NONE if cross_origin else SameSite.LAX
        expires = self._clock() + self._ttl
        encoded = quote(token, safe="")

        try:
            for name in self.cookie_names:
                self._jar.set(
                    StoredCookie(
                        name=name,
                        value=encoded,
                        expires=expires,
                        secure=secure,
                        same_site=same_site,
                    )
                )
                stored = self._jar.get(name)
                if stored is None or unquote(stored) != token:
                    logger.warning(f"Cookie {name} did not persist after write")
        except StorageUnavailableError as e:
            logger.error(f"Failed to publish auth token: {e}")
            self._notifier.warning(e.title, "Your session may not persist across page reloads.")
            return False

        logger.debug(
            f"Published auth token (cross_origin={cross_origin}, same_site={same_site.value})"
        )
        return True

    def read(self) -> str | None:
        """Return the most recently published token, if any survives."""
        canonical = self._jar.get(AUTH_TOKEN_COOKIE)
        if canonical:
            return unquote(canonical)

        cookies = self._jar.cookies()
        for matcher in (_is_provider_token_cookie, _is_provider_access_cookie):
            for cookie in cookies:
                if matcher(cookie.name) and cookie.value:
                    return unquote(cookie.value)
        return None

    def has_token(self) -> bool:
        return self.read() is not None

    def attach(self, headers: MutableMapping[str, str]) -> MutableMapping[str, str]:
        """Set a bearer Authorization header from the stored token.

        Leaves the headers untouched, with a warning, when no token is found;
        unauthenticated requests can still be legitimate.
        """
        token = self.read()
        if token:
            headers["Authorization"] = f"Bearer {token}"
        else:
            logger.warning("No auth token found in credential storage; sending request without Authorization")
        return headers

    def cookie_header(self, target_origin: str) -> str | None:
        """Build the Cookie header a browser would send to `target_origin`.

        Same-origin targets receive every live cookie. Cross-origin targets
        only receive cookies published as SameSite=None and Secure, and only
        over https.
        """
        target = origin_of(target_origin)
        same_origin = target == self.current_page_origin()
        pairs = []
        for cookie in self._jar.cookies():
            if not same_origin:
                if cookie.same_site is not SameSite.NONE or not cookie.secure:
                    continue
                if not target.startswith("https://"):
                    continue
            pairs.append(f"{cookie.name}={cookie.value}")
        return "; ".join(pairs) or None

    def clear(self) -> None:
        """Remove every credential cookie (sign-out)."""
        for cookie in self._jar.cookies():
            if cookie.name == AUTH_TOKEN_COOKIE or cookie.name.startswith(PROVIDER_COOKIE_PREFIX):
                self._jar.delete(cookie.name)
        logger.info("Cleared published auth token")
