"""Pytest fixtures and shared test configuration.

Fixtures:
    - config: ClientConfig pointing at http://test
    - notifier / jar / bridge: credential bridge wiring
    - backend_app: fresh development backend per test
    - services: ClientServices talking to backend_app over ASGITransport
    - user: one browser's UserContext from services
    - make_stream_api: ApiClient whose transport replays scripted byte chunks
"""

from collections.abc import AsyncGenerator, Callable, Iterable

import httpx
import pytest
from fastapi import FastAPI
from httpx import ASGITransport

from assistant_client.api.app import create_app
from assistant_client.auth.credentials import CookieJar, CredentialBridge
from assistant_client.client.http import ApiClient
from assistant_client.config import ClientConfig
from assistant_client.notifications import Notifier
from assistant_client.services import ClientServices, UserContext
from tests.helpers import ChunkedStream


@pytest.fixture
def config() -> ClientConfig:
    """Same-origin configuration against the test host."""
    return ClientConfig(
        api_base_url="http://test/api",
        page_origin="http://test",
        supabase_url="https://proj.supabase.co",
        supabase_anon_key="anon-key",
    )


@pytest.fixture
def notifier() -> Notifier:
    return Notifier()


@pytest.fixture
def jar() -> CookieJar:
    return CookieJar()


@pytest.fixture
def bridge(jar: CookieJar, config: ClientConfig, notifier: Notifier) -> CredentialBridge:
    return CredentialBridge(
        jar,
        api_origin=config.api_origin,
        page_origin=config.page_origin,
        provider_ref=config.provider_ref,
        notifier=notifier,
    )


@pytest.fixture
def backend_app() -> FastAPI:
    """Fresh development backend with an empty store."""
    return create_app(require_auth=False)


@pytest.fixture
async def services(
    config: ClientConfig, backend_app: FastAPI
) -> AsyncGenerator[ClientServices, None]:
    """Client services wired to the development backend.

    Yields:
        ClientServices without an identity provider.
    """
    config = config.model_copy(update={"supabase_url": ""})
    services = ClientServices(config, transport=ASGITransport(app=backend_app))
    yield services
    await services.aclose()


@pytest.fixture
def user(services: ClientServices) -> UserContext:
    """Context of a single browser."""
    return services.context_for("browser-a")


@pytest.fixture
async def make_stream_api(
    config: ClientConfig, bridge: CredentialBridge
) -> AsyncGenerator[Callable[..., tuple[ApiClient, ChunkedStream, list[httpx.Request]]], None]:
    """Factory for an ApiClient whose stream endpoint replays chunks.

    Yields:
        Callable returning (api client, response stream, captured requests).
    """
    clients: list[ApiClient] = []

    def factory(
        chunks: Iterable[bytes],
        status_code: int = 200,
        error: Exception | None = None,
        body: dict | None = None,
    ) -> tuple[ApiClient, ChunkedStream, list[httpx.Request]]:
        stream = ChunkedStream(chunks, error=error)
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            if body is not None:
                return httpx.Response(status_code, json=body)
            return httpx.Response(
                status_code,
                stream=stream,
                headers={"content-type": "text/event-stream"},
            )

        api = ApiClient(config, bridge, transport=httpx.MockTransport(handler))
        clients.append(api)
        return api, stream, requests

    yield factory
    for api in clients:
        await api.aclose()
