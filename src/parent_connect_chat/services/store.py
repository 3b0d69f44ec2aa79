"""Chat store: the components wired over one storage backend."""

import random
from typing import Iterable, Optional

import structlog

from ..config import Settings
from ..demo import PLACEHOLDER_TEXTS
from ..domain.models import Participant
from ..repositories.base import KeyValueStorage
from ..repositories.memory import InMemoryStorage
from ..repositories.sqlite import SQLiteStorage
from .chat_list import ChatListBuilder
from .conversation_index import ConversationIndex
from .message_log import MessageLog
from .read_state import ReadStateController

logger = structlog.get_logger()


class ChatStore:
    """Sole owner and mutator of the chat storage."""

    def __init__(
        self,
        storage: KeyValueStorage,
        current_user: Participant,
        bootstrap_ids: Iterable[str] = (),
        max_unread: int = 5,
        max_age_hours: int = 72,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.storage = storage
        self.index = ConversationIndex(storage)
        self.log = MessageLog(storage, self.index)
        self.read_state = ReadStateController(self.log, self.index, current_user)
        self.chat_list = ChatListBuilder(
            self.index,
            bootstrap_ids=bootstrap_ids,
            placeholder_texts=PLACEHOLDER_TEXTS,
            max_unread=max_unread,
            max_age_hours=max_age_hours,
            rng=rng,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "ChatStore":
        if settings.store_backend == "memory":
            storage: KeyValueStorage = InMemoryStorage()
        else:
            storage = SQLiteStorage(settings.store_path)
        logger.info("chat_store_created", backend=settings.store_backend)
        return cls(
            storage,
            current_user=settings.current_user,
            bootstrap_ids=settings.bootstrap_conversation_ids,
            max_unread=settings.placeholder_max_unread,
            max_age_hours=settings.placeholder_max_age_hours,
        )

    async def close(self) -> None:
        await self.storage.close()
