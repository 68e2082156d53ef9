"""NiceGUI chat view with streamed assistant replies."""

import html
from datetime import datetime

from nicegui import ui

from assistant_client.state.directory import conversation_title
from assistant_client.state.session import SessionState
from assistant_client.ui.browser import current_user
from assistant_client.ui.markdown import markdown_to_html
from assistant_client.ui.notifier import UiNotifier
from assistant_client.ui.theme import CUSTOM_CSS


def _render_chat(conversation_id: str | None) -> None:
    user = current_user()
    if user.sign_in_required:
        ui.navigate.to("/")
        return

    ui.add_head_html(CUSTOM_CSS)
    notifier = UiNotifier()
    session = user.create_session(notifier)

    messages_container: ui.column
    history_container: ui.column
    input_field: ui.textarea
    send_btn: ui.button

    def render_avatar(is_user: bool) -> None:
        icon = "person" if is_user else "smart_toy"
        with ui.element("div").classes(
            "w-9 h-9 rounded-full flex items-center justify-center bg-gray-500"
        ):
            ui.icon(icon).classes("text-white text-lg")

    def render_typing() -> None:
        with ui.row().classes("w-full justify-start gap-3 items-end"):
            render_avatar(False)
            with ui.element("div").classes("message-assistant px-4 py-3"):
                with ui.row().classes("gap-1"):
                    for _ in range(3):
                        ui.element("div").classes("typing-dot")

    def render_message(role: str, content: str, time: str) -> None:
        is_user = role == "user"
        align = "justify-end" if is_user else "justify-start"
        bubble = "message-user" if is_user else "message-assistant"

        with ui.row().classes(f"w-full {align} gap-3 items-end"):
            if not is_user:
                render_avatar(False)
            with ui.column().classes("max-w-[70%] gap-1"):
                with ui.element("div").classes(f"px-4 py-3 {bubble}"):
                    # Markdown for the assistant, escaped plain text for the user
                    if is_user:
                        body = html.escape(content).replace("\n", "<br>")
                    else:
                        body = markdown_to_html(content)
                    ui.html(body, sanitize=False).classes("text-sm leading-relaxed")
                ui.label(time).classes(
                    f"text-[10px] text-gray-400 {'self-end' if is_user else 'self-start'}"
                )
            if is_user:
                render_avatar(True)

    def refresh_messages() -> None:
        messages_container.clear()
        with messages_container:
            messages = session.timeline.messages
            if not messages:
                with ui.column().classes("w-full h-64 items-center justify-center gap-3"):
                    ui.icon("forum").classes("text-5xl text-gray-300")
                    text = "Loading conversation..." if session.state is SessionState.LOADING else (
                        "Start a conversation" if session.active_id else "Select or start a chat"
                    )
                    ui.label(text).classes("text-lg text-gray-400")
                return
            for message in messages:
                if not message.sealed and not message.content:
                    render_typing()
                    continue
                render_message(
                    message.role.value,
                    message.content,
                    message.created_at.strftime("%I:%M %p"),
                )

    def refresh_history() -> None:
        directory = session.directory
        history_container.clear()
        with history_container:
            if directory.loading:
                ui.label("Loading conversations...").classes("text-sm text-white/50 py-8")
            elif directory.error:
                ui.label(directory.error).classes("text-xs text-red-400")
            elif not directory.conversations:
                ui.label("No conversations yet").classes("text-sm text-white/50 py-8")
            for conversation in directory.conversations:
                active = conversation.matches(session.active_id)
                ui.button(
                    conversation_title(conversation),
                    on_click=lambda c=conversation: open_conversation(c.key),
                ).props("flat no-caps align=left").classes(
                    "w-full rounded-2xl text-left truncate "
                    + ("chat-item-active font-medium" if active else "text-white/70")
                )

    def refresh() -> None:
        refresh_messages()
        refresh_history()
        if session.is_streaming:
            send_btn.disable()
        else:
            send_btn.enable()

    def replace_url(cid: str) -> None:
        ui.run_javascript(f"history.replaceState(null, '', '/chat/{cid}')")

    async def open_conversation(cid: str | None) -> None:
        if not cid:
            return
        replace_url(cid)
        await session.select_conversation(cid)

    def new_chat() -> None:
        replace_url(session.new_chat())
        input_field.value = ""

    async def send_message() -> None:
        text = (input_field.value or "").strip()
        if not text or session.is_streaming:
            return
        input_field.value = ""
        await session.send(text)

    async def download() -> None:
        result = await session.download_active()
        if result is not None:
            ui.download(result.content, result.filename)

    async def sign_out() -> None:
        if user.auth is not None:
            await user.auth.sign_out()
        notifier.success("Signed out successfully")
        ui.navigate.to("/")

    async def initial_load() -> None:
        await session.directory.load_once()
        if conversation_id:
            await session.select_conversation(conversation_id)
        refresh()

    auth_session = user.auth.session if user.auth is not None else None
    greeting = (
        f"Hi, {auth_session.display_name}"
        if auth_session is not None
        else datetime.now().strftime("%A")
    )

    # === UI Layout ===
    with ui.row().classes("w-full h-screen no-wrap gap-0"):
        with ui.column().classes("sidebar w-72 h-full p-4 gap-2"):
            ui.label(greeting).classes("text-white text-lg font-semibold")
            ui.button("New chat", icon="add_comment", on_click=new_chat).props(
                "unelevated no-caps"
            ).classes("w-full")
            ui.label("Chat History").classes("text-xs uppercase tracking-widest text-white/40 mt-4")
            with ui.scroll_area().classes("flex-grow w-full"):
                history_container = ui.column().classes("w-full gap-1")

        with ui.column().classes("flex-grow h-full p-4 md:p-8"):
            with ui.column().classes("w-full max-w-3xl mx-auto app-container h-full gap-0"):
                with ui.row().classes("w-full header px-5 py-4 items-center justify-between"):
                    with ui.row().classes("items-center gap-3"):
                        ui.icon("smart_toy").classes("text-white text-3xl")
                        ui.label("Assistant").classes("text-lg font-semibold text-white")
                    with ui.row().classes("items-center gap-1"):
                        ui.label().bind_text_from(
                            session, "active_id", lambda s: (s or "")[:8].upper()
                        ).classes("text-xs text-white/80 font-mono mr-2")
                        ui.button(icon="download", on_click=download).props("flat round color=white")
                        ui.button(icon="logout", on_click=sign_out).props("flat round color=white")

                with ui.scroll_area().classes("flex-grow w-full bg-gray-50"):
                    messages_container = ui.column().classes("w-full gap-4 p-5")

                with ui.row().classes("w-full p-4 gap-3 items-end bg-white border-t"):
                    input_field = (
                        ui.textarea(placeholder="Type a message...")
                        .props("autogrow outlined dense rows=1")
                        .classes("flex-grow")
                        .on("keydown.enter.prevent", send_message)
                    )
                    send_btn = ui.button(icon="send", on_click=send_message).props(
                        "round unelevated color=primary"
                    )

    session.add_listener(refresh)
    refresh()
    ui.timer(0.1, initial_load, once=True)


@ui.page("/chat")
def chat_page() -> None:
    """Chat view without a selected conversation."""
    _render_chat(None)


@ui.page("/chat/{conversation_id}")
def conversation_page(conversation_id: str) -> None:
    """Chat view for one conversation."""
    _render_chat(conversation_id)
