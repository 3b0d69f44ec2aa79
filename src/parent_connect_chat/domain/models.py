"""Domain models for the chat store."""

from datetime import datetime, timezone
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

EPOCH = datetime.fromtimestamp(0, tz=timezone.utc)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Participant(BaseModel):
    """Identity used to tag the sender of a message."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    avatar: str = ""


class Message(BaseModel):
    """Message model."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid4()))
    conversation_id: str
    sender_id: str
    sender_name: str
    sender_avatar: str = ""
    text: str
    sent_at: datetime = Field(default_factory=utcnow)
    is_from_current_user: bool = False


class ConversationState(BaseModel):
    """Index state of one conversation.

    The zero value is what a conversation that was never touched looks like.
    """

    last_message_text: str = ""
    last_message_at: datetime = EPOCH
    unread_count: int = Field(default=0, ge=0)
    is_member: bool = False

    @property
    def has_last_message(self) -> bool:
        return bool(self.last_message_text) or self.last_message_at != EPOCH


class ChatCandidate(BaseModel):
    """Static catalog entry a chat list is built from."""

    id: str
    title: str
    participant_count: int = 0


class ChatListEntry(BaseModel):
    """Chat list row. Recomputed on every build, never persisted."""

    conversation_id: str
    title: str
    last_message_text: str
    last_message_at: datetime
    participant_count: int
    unread_count: int
