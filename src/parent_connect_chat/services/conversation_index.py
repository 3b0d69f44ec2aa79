"""Conversation index: per-conversation registries kept beside the message log."""

from datetime import datetime, timezone

import structlog

from ..domain.models import EPOCH, ConversationState
from ..repositories.base import KeyValueStorage

logger = structlog.get_logger()

LAST_MESSAGE_TEXT = "last_message_text:"
LAST_MESSAGE_AT = "last_message_at:"
UNREAD_COUNT = "unread_count:"
IS_MEMBER = "is_member:"


class ConversationIndex:
    """Four independent registries, read back as one ConversationState.

    Each registry write is a single storage call. The registries are only
    consistent with each other when the caller groups writes in a
    ``storage.transaction()``.
    """

    def __init__(self, storage: KeyValueStorage) -> None:
        self.storage = storage

    async def record_new_message(self, conversation_id: str, text: str, at: datetime) -> None:
        """Overwrite the last-message preview."""
        async with self.storage.transaction():
            await self.storage.set(LAST_MESSAGE_TEXT + conversation_id, text)
            await self.storage.set(LAST_MESSAGE_AT + conversation_id, at.timestamp())

    async def increment_unread(self, conversation_id: str) -> int:
        count = await self.storage.increment(UNREAD_COUNT + conversation_id)
        logger.debug("unread_incremented", conversation_id=conversation_id, unread_count=count)
        return count

    async def reset_unread(self, conversation_id: str) -> None:
        await self.storage.set(UNREAD_COUNT + conversation_id, 0)
        logger.debug("unread_reset", conversation_id=conversation_id)

    async def mark_member(self, conversation_id: str) -> None:
        await self.storage.set(IS_MEMBER + conversation_id, True)
        logger.info("conversation_joined", conversation_id=conversation_id)

    async def materialize(
        self, conversation_id: str, text: str, at: datetime, unread_count: int
    ) -> ConversationState:
        """Persist a complete placeholder state in one write."""
        async with self.storage.transaction():
            await self.record_new_message(conversation_id, text, at)
            await self.storage.set(UNREAD_COUNT + conversation_id, unread_count)
        logger.info(
            "conversation_state_materialized",
            conversation_id=conversation_id,
            unread_count=unread_count,
        )
        return await self.get(conversation_id)

    async def get(self, conversation_id: str) -> ConversationState:
        """Current state, or the zero value for an untouched conversation."""
        text = await self.storage.get(LAST_MESSAGE_TEXT + conversation_id, "")
        at = await self.storage.get(LAST_MESSAGE_AT + conversation_id)
        unread = await self.storage.get(UNREAD_COUNT + conversation_id, 0)
        is_member = await self.storage.get(IS_MEMBER + conversation_id, False)
        return ConversationState(
            last_message_text=text,
            last_message_at=EPOCH if at is None else datetime.fromtimestamp(at, tz=timezone.utc),
            unread_count=max(int(unread), 0),
            is_member=bool(is_member),
        )
