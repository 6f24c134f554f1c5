"""Displayed conversation view.

A denormalized copy of the selected session, kept live while a reply
streams. The session store stays authoritative; this view is reconciled
to it whenever a submission settles or the selection changes.
"""

from src.models.schemas import Session


class DisplayedView:
    """Holds the session currently shown to the user."""

    def __init__(self) -> None:
        self.session: Session | None = None

    @property
    def session_id(self) -> str | None:
        return self.session.id if self.session else None

    def show(self, session: Session | None) -> None:
        self.session = session

    def shows(self, session_id: str) -> bool:
        return self.session is not None and self.session.id == session_id

    def replace_message_content(
        self, session_id: str, message_id: str, content: str
    ) -> bool:
        """Set the content of one message, located by id.

        Reads the latest view value, so consecutive calls never overwrite
        each other with stale state. Other messages keep their identity.

        Returns:
            True if the view showed the session and the message was found.
        """
        current = self.session
        if current is None or current.id != session_id:
            return False

        messages = list(current.messages)
        for index, message in enumerate(messages):
            if message.id == message_id:
                messages[index] = message.model_copy(update={"content": content})
                self.session = current.model_copy(update={"messages": messages})
                return True
        return False
