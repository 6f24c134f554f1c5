"""In-memory session store.

Single source of truth for every chat session and for which one is selected.
Sessions are frozen models; the only way to change one is to replace it
through :meth:`SessionStore.apply_to_session`.
"""

import logging
from collections.abc import Callable

from src.models.schemas import Session

logger = logging.getLogger(__name__)


class SessionStore:
    """Ordered collection of chat sessions plus the selected session id."""

    def __init__(self) -> None:
        self._sessions: list[Session] = []
        self._selected_id: str | None = None

    def __len__(self) -> int:
        return len(self._sessions)

    @property
    def sessions(self) -> tuple[Session, ...]:
        return tuple(self._sessions)

    @property
    def selected_id(self) -> str | None:
        return self._selected_id

    @property
    def selected(self) -> Session | None:
        if self._selected_id is None:
            return None
        return self.get(self._selected_id)

    def get(self, session_id: str) -> Session | None:
        for session in self._sessions:
            if session.id == session_id:
                return session
        return None

    def create_session(self) -> Session:
        """Append a new empty session and select it.

        Returns:
            The created session, titled after the current session count.
        """
        session = Session(title=f"New Chat {len(self._sessions) + 1}")
        self._sessions.append(session)
        self._selected_id = session.id
        logger.info(f"Created session {session.id} ({session.title})")
        return session

    def rename_session(self, session_id: str, new_title: str) -> None:
        """Replace the title of a session. Unknown ids are ignored."""
        self.apply_to_session(
            session_id, lambda s: s.model_copy(update={"title": new_title})
        )

    def delete_session(self, session_id: str) -> None:
        """Remove a session.

        If the removed session was selected, selection falls back to the
        first remaining session, or to none when the store becomes empty.
        """
        remaining = [s for s in self._sessions if s.id != session_id]
        if len(remaining) == len(self._sessions):
            return
        self._sessions = remaining
        logger.info(f"Deleted session {session_id}")
        if self._selected_id == session_id:
            self._selected_id = remaining[0].id if remaining else None

    def select_session(self, session_id: str) -> None:
        if self.get(session_id) is None:
            logger.debug(f"Ignoring selection of unknown session {session_id}")
            return
        self._selected_id = session_id

    def apply_to_session(
        self,
        session_id: str,
        updater: Callable[[Session], Session],
    ) -> Session | None:
        """Atomically replace a session with ``updater(session)``.

        The order of every other session is preserved.

        Args:
            session_id: Identifier of the session to replace.
            updater: Pure function computing the replacement from the
                current value.

        Returns:
            The replacement session, or None if no session matched.
        """
        for index, session in enumerate(self._sessions):
            if session.id == session_id:
                updated = updater(session)
                if updated.id != session_id:
                    raise ValueError("Session updater must not change the session id")
                self._sessions[index] = updated
                return updated
        return None
