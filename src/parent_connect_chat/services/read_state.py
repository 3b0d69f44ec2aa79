"""Write path for send, view-open and join."""

from typing import Optional

import structlog

from ..domain.errors import ValidationError
from ..domain.models import Message, Participant, utcnow
from .conversation_index import ConversationIndex
from .message_log import MessageLog

logger = structlog.get_logger()

UNKNOWN_SENDER = Participant(id="unknown", name="Someone", avatar="👤")


class ReadStateController:
    """Mutates unread counts and membership around the message log."""

    def __init__(self, log: MessageLog, index: ConversationIndex, current_user: Participant) -> None:
        self.log = log
        self.index = index
        self.current_user = current_user

    async def on_send(
        self,
        conversation_id: str,
        text: str,
        sender_is_current_user: bool,
        sender: Optional[Participant] = None,
    ) -> Message:
        """Append a message; messages from others count as unread.

        The unread counter is shared: the store is single-device and does not
        track per-recipient state.
        """
        if not text.strip():
            raise ValidationError("Message text must not be empty")
        author = self.current_user if sender_is_current_user else (sender or UNKNOWN_SENDER)
        message = Message(
            conversation_id=conversation_id,
            sender_id=author.id,
            sender_name=author.name,
            sender_avatar=author.avatar,
            text=text,
            sent_at=utcnow(),
            is_from_current_user=sender_is_current_user,
        )
        async with self.log.storage.transaction():
            stored = await self.log.append(conversation_id, message)
            if not sender_is_current_user:
                await self.index.increment_unread(conversation_id)
        logger.info(
            "message_sent",
            conversation_id=conversation_id,
            from_current_user=sender_is_current_user,
        )
        return stored

    async def on_open_conversation(self, conversation_id: str) -> None:
        """Call once per view-open; there is no per-message read tracking."""
        await self.index.reset_unread(conversation_id)

    async def on_join_conversation(self, conversation_id: str) -> None:
        await self.index.mark_member(conversation_id)
