"""Append-only message log, one ordered sequence per conversation."""

from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List

import structlog

from ..domain.errors import ValidationError
from ..domain.models import Message
from ..repositories.base import KeyValueStorage
from .conversation_index import ConversationIndex

logger = structlog.get_logger()

MESSAGES = "messages:"
SEEDED = "seeded:"


def _to_record(message: Message) -> Dict[str, Any]:
    return {
        "id": message.id,
        "sender_id": message.sender_id,
        "sender_name": message.sender_name,
        "sender_avatar": message.sender_avatar,
        "text": message.text,
        "sent_at": message.sent_at.timestamp(),
        "is_from_current_user": message.is_from_current_user,
    }


def _from_record(conversation_id: str, record: Dict[str, Any]) -> Message:
    return Message(
        id=record["id"],
        conversation_id=conversation_id,
        sender_id=record["sender_id"],
        sender_name=record["sender_name"],
        sender_avatar=record.get("sender_avatar", ""),
        text=record["text"],
        sent_at=datetime.fromtimestamp(record["sent_at"], tz=timezone.utc),
        is_from_current_user=record.get("is_from_current_user", False),
    )


class MessageLog:
    """Durable source of truth for chat content.

    Order is append order. ``sent_at`` is descriptive only, so a backfilled
    message with an older timestamp still lands at the end of the log.
    """

    def __init__(self, storage: KeyValueStorage, index: ConversationIndex) -> None:
        self.storage = storage
        self.index = index

    async def append(self, conversation_id: str, message: Message) -> Message:
        """Append a message and update the conversation preview together.

        Raises:
            ValidationError: if the text is empty after trimming.
            PersistenceError: if storage fails; nothing is applied.
        """
        if not message.text.strip():
            logger.warning("empty_message_rejected", conversation_id=conversation_id)
            raise ValidationError("Message text must not be empty")
        if message.conversation_id != conversation_id:
            message = message.model_copy(update={"conversation_id": conversation_id})

        async with self.storage.transaction():
            length = await self.storage.append(MESSAGES + conversation_id, _to_record(message))
            await self.index.record_new_message(conversation_id, message.text, message.sent_at)

        logger.info(
            "message_appended",
            conversation_id=conversation_id,
            message_id=message.id,
            log_length=length,
        )
        return message

    async def load_all(self, conversation_id: str) -> List[Message]:
        """All messages of a conversation, oldest first."""
        records = await self.storage.get_list(MESSAGES + conversation_id)
        return [_from_record(conversation_id, record) for record in records]

    async def seed(self, conversation_id: str, messages: Iterable[Message]) -> bool:
        """Persist a demonstration history once per conversation.

        Returns False without writing if the conversation was seeded before
        or already has history.
        """
        async with self.storage.transaction():
            if await self.storage.get(SEEDED + conversation_id, False):
                return False
            existing = await self.storage.get_list(MESSAGES + conversation_id)
            if not existing:
                for message in messages:
                    await self.append(conversation_id, message)
            await self.storage.set(SEEDED + conversation_id, True)

        if existing:
            logger.info("seed_skipped_existing_history", conversation_id=conversation_id)
            return False
        logger.info("conversation_seeded", conversation_id=conversation_id)
        return True
