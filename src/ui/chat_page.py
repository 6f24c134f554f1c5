"""NiceGUI chat interface driving the streaming chat controller."""

import logging

from nicegui import ui

from src.chat.config import get_chat_client_config
from src.chat.controller import ChatController
from src.chat.reconciler import ERROR_MARKER
from src.models.schemas import Message, Role, Session

logger = logging.getLogger(__name__)

ENTER_BEHAVIORS = {"send": "Enter sends", "newline": "Enter adds a line"}

CUSTOM_CSS = """
<style>
    .message-user {
        background: linear-gradient(135deg, #667eea 0%, #764ba2 100%);
        color: white;
        border-radius: 18px 18px 4px 18px;
    }
    .message-assistant {
        background: #f3f4f6;
        color: #1f2937;
        border-radius: 18px 18px 18px 4px;
    }
    .session-active { background: #eef2ff; }
</style>
"""


class PageState:
    """Per-page input state that is not part of the chat core."""

    def __init__(self) -> None:
        self.draft: str = ""
        self.enter_behavior: str = "send"


@ui.page("/")
def chat_page() -> None:
    """Main chat page."""
    ui.add_head_html(CUSTOM_CSS)
    config = get_chat_client_config()
    state = PageState()
    controller = ChatController(config=config)

    # message id -> (element, rendered content)
    rendered: dict[str, tuple[ui.element, str]] = {}
    rendered_session: dict[str, str | None] = {"id": None}

    scroll_area: ui.scroll_area
    send_btn: ui.button
    stop_btn: ui.button
    status_label: ui.label

    def render_message(msg: Message) -> None:
        is_user = msg.role == Role.USER.value
        align = "justify-end" if is_user else "justify-start"
        bubble = "message-user" if is_user else "message-assistant"
        with ui.row().classes(f"w-full {align}"):
            with ui.element("div").classes(f"max-w-[75%] px-4 py-3 {bubble}"):
                if is_user:
                    element = ui.label(msg.content).classes("text-sm whitespace-pre-wrap")
                elif not msg.content:
                    element = ui.spinner("dots", size="md")
                else:
                    element = ui.markdown(msg.content).classes("text-sm")
        rendered[msg.id] = (element, msg.content)

    @ui.refreshable
    def message_list() -> None:
        rendered.clear()
        session = controller.displayed
        rendered_session["id"] = session.id if session else None
        if session is None or not session.messages:
            with ui.column().classes("w-full h-64 items-center justify-center gap-3"):
                ui.icon("forum").classes("text-5xl text-gray-300")
                ui.label("Start a conversation").classes("text-lg text-gray-400")
            return
        for msg in session.messages:
            render_message(msg)

    def show_session(session: Session | None) -> None:
        """Patch streamed content in place, or rebuild when messages changed."""
        same_layout = (
            session is not None
            and session.id == rendered_session["id"]
            and [m.id for m in session.messages] == list(rendered)
        )
        if not same_layout:
            message_list.refresh()
            return
        for msg in session.messages:
            element, content = rendered[msg.id]
            if content == msg.content:
                continue
            if isinstance(element, ui.markdown):
                element.set_content(msg.content)
                rendered[msg.id] = (element, msg.content)
            else:
                message_list.refresh()
                return

    async def rename_session(session: Session) -> None:
        with ui.dialog() as dialog, ui.card():
            title_input = ui.input("Title", value=session.title)
            with ui.row():
                ui.button("Cancel", on_click=lambda: dialog.submit(None)).props("flat")
                ui.button("Save", on_click=lambda: dialog.submit(title_input.value))
        new_title = await dialog
        if new_title and new_title.strip():
            controller.rename_session(session.id, new_title.strip())

    @ui.refreshable
    def session_list() -> None:
        for session in controller.sessions:
            active = "session-active" if session.id == controller.view.session_id else ""
            with ui.row().classes(f"w-full items-center gap-1 rounded px-2 {active}"):
                ui.button(
                    session.title,
                    on_click=lambda s=session: controller.select_session(s.id),
                ).props("flat no-caps align=left").classes("flex-grow")
                ui.button(
                    icon="edit", on_click=lambda s=session: rename_session(s)
                ).props("flat round dense size=sm")
                ui.button(
                    icon="delete",
                    on_click=lambda s=session: controller.delete_session(s.id),
                ).props("flat round dense size=sm")

    def update_controls(*_: object) -> None:
        can_send = controller.is_ready and controller.displayed is not None
        send_btn.set_enabled(can_send and not controller.loading)
        stop_btn.set_visibility(controller.loading)
        status_label.set_text("Ready" if controller.is_ready else "Connecting...")

    def scroll_to_latest() -> None:
        scroll_area.scroll_to(percent=1.0)

    async def send_message() -> None:
        text = state.draft.strip()
        if not text or controller.loading or not controller.is_ready:
            return
        state.draft = ""
        await controller.submit(text)
        session = controller.displayed
        if session and session.messages and session.messages[-1].content == ERROR_MARKER:
            ui.notify("Unable to fetch response", type="negative")

    def stop_streaming() -> None:
        if controller.view.session_id:
            controller.cancel(controller.view.session_id)

    @ui.refreshable
    def input_box() -> None:
        field = (
            ui.textarea(placeholder="Type a message...")
            .bind_value(state, "draft")
            .props("autogrow borderless dense rows=1")
            .classes("w-full")
        )
        if state.enter_behavior == "send":
            field.on("keydown.enter.exact.prevent", send_message)

    def set_enter_behavior(value: str) -> None:
        state.enter_behavior = value
        input_box.refresh()

    # === UI Layout ===
    with ui.row().classes("w-full h-screen no-wrap gap-0"):
        with ui.column().classes("w-64 h-full border-r p-3 gap-2 bg-gray-50"):
            ui.button("New chat", icon="add", on_click=controller.new_session).classes("w-full")
            with ui.scroll_area().classes("flex-grow w-full"):
                session_list()

        with ui.column().classes("flex-grow h-full gap-0"):
            with ui.row().classes("w-full px-5 py-3 items-center justify-between border-b"):
                ui.label("Chat").classes("text-lg font-semibold")
                with ui.row().classes("items-center gap-3"):
                    ui.select(
                        controller.available_models,
                        value=controller.model,
                        on_change=lambda e: controller.set_model(e.value),
                    ).props("dense outlined")
                    ui.select(
                        ENTER_BEHAVIORS,
                        value=state.enter_behavior,
                        on_change=lambda e: set_enter_behavior(e.value),
                    ).props("dense outlined")
                    status_label = ui.label().classes("text-xs text-gray-500")

            scroll_area = ui.scroll_area().classes("flex-grow w-full bg-white")
            with scroll_area, ui.column().classes("w-full p-5 gap-4"):
                message_list()

            with ui.row().classes("w-full p-4 gap-3 items-end border-t"):
                with ui.element("div").classes("flex-grow border rounded-xl px-3 py-2"):
                    input_box()
                stop_btn = ui.button(icon="stop", on_click=stop_streaming).props(
                    "round unelevated color=negative"
                )
                send_btn = ui.button(icon="send", on_click=send_message).props(
                    "round unelevated"
                )

    controller.on_sessions = lambda _sessions: session_list.refresh()
    controller.on_display = show_session
    controller.on_loading = update_controls
    controller.on_ready = update_controls
    controller.on_scroll = scroll_to_latest
    update_controls()

    ui.timer(0.1, controller.readiness.start, once=True)
    ui.context.client.on_disconnect(controller.readiness.stop)


def main() -> None:
    ui.run(title="Streaming Chat", port=8080, reload=False)


if __name__ == "__main__":
    main()
