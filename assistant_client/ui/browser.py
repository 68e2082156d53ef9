"""Per-browser client state for NiceGUI pages."""

from nicegui import app

from assistant_client.services import UserContext, get_services
from assistant_client.ui.notifier import UiNotifier


def current_user() -> UserContext:
    """Return the user context of the browser requesting the current page.

    Credential cookies live in `app.storage.user`, which NiceGUI keeps per
    browser (requires a storage secret), so they survive reloads without
    being visible to any other browser.
    """
    return get_services().context_for(
        app.storage.browser["id"],
        store=app.storage.user,
        notifier=UiNotifier(),
    )
