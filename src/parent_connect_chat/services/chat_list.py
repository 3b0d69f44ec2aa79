"""Chat list read path."""

import random
from datetime import datetime, timedelta
from typing import Callable, Iterable, List, Optional, Sequence

import structlog

from ..domain.models import ChatCandidate, ChatListEntry, ConversationState, utcnow
from .conversation_index import ConversationIndex

logger = structlog.get_logger()


class ChatListBuilder:
    """Joins conversation state with static catalog metadata.

    A candidate is listed when the user joined it or when its id is in
    ``bootstrap_ids``. Listed conversations that have no preview yet get a
    placeholder state, which is persisted so later builds do not re-roll it.
    """

    def __init__(
        self,
        index: ConversationIndex,
        bootstrap_ids: Iterable[str] = (),
        placeholder_texts: Sequence[str] = ("New message",),
        max_unread: int = 5,
        max_age_hours: int = 72,
        rng: Optional[random.Random] = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        if not placeholder_texts:
            raise ValueError("placeholder_texts must not be empty")
        self.index = index
        self.bootstrap_ids = frozenset(bootstrap_ids)
        self.placeholder_texts = list(placeholder_texts)
        self.max_unread = max_unread
        self.max_age_hours = max(max_age_hours, 1)
        self.rng = rng or random.Random()
        self.clock = clock

    async def build(self, candidates: Iterable[ChatCandidate]) -> List[ChatListEntry]:
        """Build the list, most recent conversation first.

        Ties keep their input order.
        """
        entries: List[ChatListEntry] = []
        for candidate in candidates:
            state = await self.index.get(candidate.id)
            bootstrapped = candidate.id in self.bootstrap_ids
            if not (state.is_member or bootstrapped):
                continue
            if not state.is_member:
                await self.index.mark_member(candidate.id)
            if not state.has_last_message:
                state = await self._materialize(candidate.id)
            entries.append(
                ChatListEntry(
                    conversation_id=candidate.id,
                    title=candidate.title,
                    last_message_text=state.last_message_text,
                    last_message_at=state.last_message_at,
                    participant_count=candidate.participant_count,
                    unread_count=state.unread_count,
                )
            )

        entries.sort(key=lambda entry: entry.last_message_at, reverse=True)
        logger.debug("chat_list_built", listed=len(entries))
        return entries

    async def _materialize(self, conversation_id: str) -> ConversationState:
        hours = self.rng.randint(1, self.max_age_hours)
        return await self.index.materialize(
            conversation_id,
            text=self.rng.choice(self.placeholder_texts),
            at=self.clock() - timedelta(hours=hours),
            unread_count=self.rng.randint(0, self.max_unread),
        )
