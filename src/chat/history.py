"""Outgoing history construction for completion requests."""

from src.models.schemas import Message, Role, Session

ALLOWED_ROLES = frozenset(role.value for role in Role)


def build_history(session: Session) -> list[Message]:
    """Derive the ordered message list to send to the completion service.

    Keeps user and assistant messages with non-blank content. The blank
    placeholder reply being streamed into, and any message with a role the
    service does not accept, are dropped.

    Args:
        session: Session whose stored messages are filtered.

    Returns:
        Messages in their original order.
    """
    return [
        message
        for message in session.messages
        if message.role in ALLOWED_ROLES and message.content.strip()
    ]
