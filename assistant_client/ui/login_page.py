"""Passcode sign-in page."""

from nicegui import ui

from assistant_client.client.errors import IdentityError
from assistant_client.ui.browser import current_user
from assistant_client.ui.notifier import UiNotifier
from assistant_client.ui.theme import CUSTOM_CSS


@ui.page("/")
def login_page() -> None:
    """Email + one-time passcode sign-in."""
    user = current_user()
    auth = user.auth
    if auth is None or auth.is_authenticated:
        ui.navigate.to("/chat")
        return

    ui.add_head_html(CUSTOM_CSS)
    notifier = UiNotifier()

    async def request_code() -> None:
        request_btn.disable()
        try:
            email = await auth.request_code(email_input.value or "")
        except IdentityError as e:
            notifier.from_error(e, "Failed to send passcode")
            return
        finally:
            request_btn.enable()
        email_input.value = email
        notifier.success("Passcode sent!", "Check your email inbox for the 8-digit code.")
        passcode_row.set_visibility(True)

    async def verify_code() -> None:
        verify_btn.disable()
        try:
            await auth.verify_code(passcode_input.value or "")
        except IdentityError as e:
            notifier.from_error(e, "Verification failed")
            return
        finally:
            verify_btn.enable()
        passcode_input.value = ""
        if not user.bridge.has_token():
            notifier.warning(
                "Failed to save authentication",
                "Your session may not persist across page reloads.",
            )
        notifier.success("Signed in successfully!", "Redirecting to your chat...")
        ui.navigate.to("/chat")

    with ui.column().classes("w-full min-h-screen items-center justify-center p-4"):
        with ui.card().classes("w-full max-w-md app-container p-6 gap-4"):
            ui.label("Sign in").classes("text-2xl font-semibold")
            ui.label(
                "We'll email you a one-time passcode to verify it's really you."
            ).classes("text-sm text-gray-500")
            email_input = ui.input("Email", placeholder="you@example.com").props(
                "outlined type=email"
            ).classes("w-full")
            request_btn = ui.button("Send passcode", on_click=request_code).classes("w-full")
            with ui.column().classes("w-full gap-2") as passcode_row:
                passcode_input = ui.input("Passcode").props("outlined").classes("w-full")
                verify_btn = ui.button("Verify and continue", on_click=verify_code).classes(
                    "w-full"
                )
            passcode_row.set_visibility(auth.code_requested)
