"""Notifier that shows toasts in the browser."""

from nicegui import ui

from assistant_client.notifications import Notification, Notifier


class UiNotifier(Notifier):
    """Displays notifications with `ui.notify` in the current page."""

    def show(self, notification: Notification) -> None:
        ui.notify(
            notification.title,
            type=notification.level.value,
            caption=notification.description,
            position="top-right",
        )
