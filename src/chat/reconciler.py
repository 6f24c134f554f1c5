"""Stream reconciler: applies a streamed reply to both chat state views.

One reconciler handles one submission and moves through an explicit
state machine::

    PENDING -> STREAMING -> SUCCEEDED
                        \\-> FAILED

While streaming, only the displayed view is updated, once per fragment.
The session store is written when the submission reaches a terminal
state, and the displayed view is then reconciled to the store entry so
both hold identical values.
"""

import asyncio
import logging
from collections.abc import AsyncGenerator, Callable
from contextlib import aclosing
from enum import Enum

from src.chat.completion import TransportError
from src.chat.store import SessionStore
from src.chat.view import DisplayedView
from src.models.schemas import Fragment, Message, Role, Session

logger = logging.getLogger(__name__)

ERROR_MARKER = "Error: Unable to fetch response."
CANCELED_MARKER = "Canceled: Response generation stopped."


class SubmissionState(str, Enum):
    """Lifecycle states of a single submission."""

    PENDING = "pending"
    STREAMING = "streaming"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


TERMINAL_STATES = frozenset({SubmissionState.SUCCEEDED, SubmissionState.FAILED})


class StreamReconciler:
    """Applies one streamed assistant reply to the store and displayed view."""

    def __init__(
        self,
        store: SessionStore,
        view: DisplayedView,
        session_id: str,
        on_view_change: Callable[[], None] | None = None,
        on_store_change: Callable[[], None] | None = None,
    ) -> None:
        self._store = store
        self._view = view
        self._session_id = session_id
        self._on_view_change = on_view_change
        self._on_store_change = on_store_change

        self.state: SubmissionState | None = None
        self.text = ""
        self.baseline: list[Message] = []
        self.user_message: Message | None = None
        self.assistant_message: Message | None = None

    @property
    def session_id(self) -> str:
        return self._session_id

    def _require(self, *allowed: SubmissionState | None) -> None:
        if self.state not in allowed:
            raise RuntimeError(f"Invalid transition from state {self.state}")

    def _view_changed(self) -> None:
        if self._on_view_change:
            self._on_view_change()

    def _store_changed(self) -> None:
        if self._on_store_change:
            self._on_store_change()

    def _reconcile_view(self) -> None:
        """Copy the store's entry into the displayed view if it is shown."""
        entry = self._store.get(self._session_id)
        if entry is not None and self._view.shows(self._session_id):
            self._view.show(entry)
        self._store_changed()
        self._view_changed()

    def begin(self, text: str) -> Session | None:
        """Append the user message and a blank assistant placeholder.

        Both views receive the two messages in one synchronous step.

        Args:
            text: The submitted user text.

        Returns:
            The updated session, or None if the session no longer exists.
        """
        self._require(None)
        session = self._store.get(self._session_id)
        if session is None:
            return None

        self.baseline = list(session.messages)
        self.user_message = Message(role=Role.USER.value, content=text)
        self.assistant_message = Message(role=Role.ASSISTANT.value, content="")
        appended = [self.user_message, self.assistant_message]

        updated = self._store.apply_to_session(
            self._session_id,
            lambda s: s.model_copy(update={"messages": [*s.messages, *appended]}),
        )
        if self._view.shows(self._session_id):
            self._view.show(updated)
        self.state = SubmissionState.PENDING
        logger.debug(f"Submission pending for session {self._session_id}")
        self._store_changed()
        self._view_changed()
        return updated

    def apply(self, fragment: Fragment) -> None:
        """Accumulate one fragment and show the running total."""
        self._require(SubmissionState.PENDING, SubmissionState.STREAMING)
        self.state = SubmissionState.STREAMING
        if not fragment.delta:
            return

        self.text += fragment.delta
        if self._view.replace_message_content(
            self._session_id, self.assistant_message.id, self.text
        ):
            self._view_changed()

    def restore_view(self) -> None:
        """Re-apply the running reply after the view was reset from the store.

        The store only holds the blank placeholder until a terminal state, so
        reshowing the session from it would otherwise hide the streamed text.
        """
        if self.state is not SubmissionState.STREAMING or not self.text:
            return
        self._view.replace_message_content(
            self._session_id, self.assistant_message.id, self.text
        )

    def succeed(self) -> None:
        """Write the final reply into the store and reconcile the view."""
        self._require(SubmissionState.PENDING, SubmissionState.STREAMING)
        final = self.assistant_message.model_copy(update={"content": self.text})
        messages = [*self.baseline, self.user_message, final]
        self._store.apply_to_session(
            self._session_id,
            lambda s: s.model_copy(update={"messages": messages}),
        )
        self.state = SubmissionState.SUCCEEDED
        logger.info(
            f"Completion finished for session {self._session_id} ({len(self.text)} chars)"
        )
        self._reconcile_view()

    def fail(self, marker: str = ERROR_MARKER) -> None:
        """Replace the assistant reply with ``marker`` in both views.

        Any partial text is discarded. The user message stays.
        """
        self._require(SubmissionState.PENDING, SubmissionState.STREAMING)
        assistant_id = self.assistant_message.id

        def mark(session: Session) -> Session:
            return session.model_copy(
                update={
                    "messages": [
                        m.model_copy(update={"content": marker})
                        if m.id == assistant_id
                        else m
                        for m in session.messages
                    ]
                }
            )

        self._store.apply_to_session(self._session_id, mark)
        self.state = SubmissionState.FAILED
        self._reconcile_view()

    async def consume(
        self, fragments: AsyncGenerator[Fragment, None]
    ) -> SubmissionState:
        """Drive the submission to a terminal state.

        Args:
            fragments: Fragment stream from the completion client.

        Returns:
            SUCCEEDED or FAILED.

        Raises:
            asyncio.CancelledError: Re-raised after the reply is marked
                as canceled.
        """
        try:
            async with aclosing(fragments):
                async for fragment in fragments:
                    self.apply(fragment)
        except TransportError as e:
            logger.warning(f"Completion stream failed for session {self._session_id}: {e}")
            self.fail(ERROR_MARKER)
        except asyncio.CancelledError:
            logger.info(f"Completion canceled for session {self._session_id}")
            self.fail(CANCELED_MARKER)
            raise
        except Exception:
            logger.exception(f"Unexpected completion failure for session {self._session_id}")
            self.fail(ERROR_MARKER)
        else:
            self.succeed()
        return self.state
