"""Chat controller: the operations the presentation layer calls.

Owns the session store, the displayed view and the per-session in-flight
registry, and notifies the presentation layer through plain callbacks.
"""

import asyncio
import logging
from collections.abc import Callable

from src.chat.completion import CompletionClient
from src.chat.config import ChatClientConfig, get_chat_client_config
from src.chat.history import build_history
from src.chat.readiness import ReadinessGate
from src.chat.reconciler import StreamReconciler
from src.chat.store import SessionStore
from src.chat.view import DisplayedView
from src.models.schemas import CompletionOptions, Session

logger = logging.getLogger(__name__)


class ChatController:
    """Coordinates sessions, submissions and presentation notifications.

    Callbacks:
        on_sessions: Receives the full session list after it changes.
        on_display: Receives the displayed session (or None) after it changes.
        on_loading: Receives whether the displayed session is in flight.
        on_ready: Receives True once the completion service is ready.
        on_scroll: Called once per submission, after its state settles.
    """

    def __init__(
        self,
        client: CompletionClient | None = None,
        readiness: ReadinessGate | None = None,
        config: ChatClientConfig | None = None,
        *,
        create_initial_session: bool = True,
        on_sessions: Callable[[list[Session]], None] | None = None,
        on_display: Callable[[Session | None], None] | None = None,
        on_loading: Callable[[bool], None] | None = None,
        on_ready: Callable[[bool], None] | None = None,
        on_scroll: Callable[[], None] | None = None,
    ) -> None:
        self._config = config or get_chat_client_config()
        self._client = client or CompletionClient(self._config)
        self.readiness = readiness or ReadinessGate(
            self._client.probe, self._config.readiness_poll_interval
        )
        self.readiness.add_listener(self._notify_ready)

        self.store = SessionStore()
        self.view = DisplayedView()
        self.model = self._config.default_model
        self._in_flight: dict[str, asyncio.Task | None] = {}
        self._reconcilers: dict[str, StreamReconciler] = {}

        self.on_sessions = on_sessions
        self.on_display = on_display
        self.on_loading = on_loading
        self.on_ready = on_ready
        self.on_scroll = on_scroll

        if create_initial_session:
            self.new_session()

    # --- state accessors -------------------------------------------------

    @property
    def sessions(self) -> list[Session]:
        return list(self.store.sessions)

    @property
    def displayed(self) -> Session | None:
        return self.view.session

    @property
    def is_ready(self) -> bool:
        return self.readiness.is_ready()

    @property
    def loading(self) -> bool:
        session_id = self.view.session_id
        return session_id is not None and self.is_in_flight(session_id)

    @property
    def available_models(self) -> list[str]:
        return list(self._config.available_models)

    def is_in_flight(self, session_id: str) -> bool:
        return session_id in self._in_flight

    # --- notifications ---------------------------------------------------

    def _notify_sessions(self) -> None:
        if self.on_sessions:
            self.on_sessions(self.sessions)

    def _notify_display(self) -> None:
        if self.on_display:
            self.on_display(self.view.session)

    def _notify_loading(self) -> None:
        if self.on_loading:
            self.on_loading(self.loading)

    def _notify_ready(self) -> None:
        if self.on_ready:
            self.on_ready(True)

    def _scroll_to_latest(self) -> None:
        if self.on_scroll:
            self.on_scroll()

    def _refresh_view(self) -> None:
        """Show the store's selected session and notify everything.

        A session with a reply in flight gets its running text back, since
        the store entry still holds the blank placeholder.
        """
        self.view.show(self.store.selected)
        reconciler = self._reconcilers.get(self.view.session_id)
        if reconciler is not None:
            reconciler.restore_view()
        self._notify_sessions()
        self._notify_display()
        self._notify_loading()

    # --- session operations ----------------------------------------------

    def new_session(self) -> Session:
        session = self.store.create_session()
        self._refresh_view()
        return session

    def select_session(self, session_id: str) -> None:
        self.store.select_session(session_id)
        self._refresh_view()

    def rename_session(self, session_id: str, new_title: str) -> None:
        self.store.rename_session(session_id, new_title)
        self._refresh_view()

    def delete_session(self, session_id: str) -> None:
        self.cancel(session_id)
        self.store.delete_session(session_id)
        self._refresh_view()

    def set_model(self, model: str) -> None:
        self.model = model

    # --- submissions -----------------------------------------------------

    async def submit(self, text: str) -> bool:
        """Send ``text`` in the displayed session and stream the reply.

        Rejected without any state change when the text is blank, no
        session is displayed, the service is not ready yet, or the session
        already has a reply in flight.

        Returns:
            True once an accepted submission has settled, False if rejected.
        """
        session = self.view.session
        if not text.strip() or session is None:
            return False
        if not self.readiness.is_ready():
            logger.debug("Ignoring submission: completion service not ready")
            return False
        if self.is_in_flight(session.id):
            logger.debug(f"Ignoring submission: session {session.id} already in flight")
            return False

        reconciler = StreamReconciler(
            self.store,
            self.view,
            session.id,
            on_view_change=self._notify_display,
            on_store_change=self._notify_sessions,
        )
        if reconciler.begin(text) is None:
            return False

        self._in_flight[session.id] = asyncio.current_task()
        self._reconcilers[session.id] = reconciler
        self._notify_loading()
        try:
            outgoing = build_history(self.store.get(session.id))
            stream = self._client.start_completion(
                outgoing, CompletionOptions(model=self.model)
            )
            await reconciler.consume(stream)
        finally:
            self._in_flight.pop(session.id, None)
            self._reconcilers.pop(session.id, None)
            self._notify_loading()
            self._scroll_to_latest()
        return True

    def cancel(self, session_id: str) -> bool:
        """Stop the in-flight submission of a session.

        The reply is marked as canceled once the submission task unwinds.

        Returns:
            True if a running submission was asked to stop.
        """
        task = self._in_flight.get(session_id)
        if task is None or task.done():
            return False
        logger.info(f"Canceling submission for session {session_id}")
        task.cancel()
        return True
