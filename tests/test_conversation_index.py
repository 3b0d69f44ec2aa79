"""Test suite for the conversation index."""

from datetime import datetime, timezone

import pytest

from parent_connect_chat.domain.models import EPOCH, ConversationState
from parent_connect_chat.repositories.memory import InMemoryStorage
from parent_connect_chat.services.conversation_index import ConversationIndex


@pytest.fixture
def index():
    return ConversationIndex(InMemoryStorage())


@pytest.mark.asyncio
async def test_get_untouched_returns_zero_value(index):
    """Test get never fails and returns the zero value."""
    state = await index.get("unknown")
    assert state == ConversationState()
    assert state.last_message_text == ""
    assert state.last_message_at == EPOCH
    assert state.unread_count == 0
    assert state.is_member is False


@pytest.mark.asyncio
async def test_record_new_message_overwrites(index):
    """Test the preview is a plain overwrite."""
    later = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
    earlier = datetime(2024, 4, 1, 12, 0, tzinfo=timezone.utc)
    await index.record_new_message("evt1", "first", later)
    await index.record_new_message("evt1", "second", earlier)

    state = await index.get("evt1")
    assert state.last_message_text == "second"
    assert state.last_message_at == earlier


@pytest.mark.asyncio
async def test_unread_increment_and_reset(index):
    """Test unread counting, and that reset is idempotent."""
    for _ in range(3):
        await index.increment_unread("evt1")
    assert (await index.get("evt1")).unread_count == 3

    await index.reset_unread("evt1")
    assert (await index.get("evt1")).unread_count == 0
    await index.reset_unread("evt1")
    assert (await index.get("evt1")).unread_count == 0


@pytest.mark.asyncio
async def test_mark_member_is_idempotent(index):
    """Test membership only ever goes from false to true."""
    await index.mark_member("evt1")
    once = await index.get("evt1")
    await index.mark_member("evt1")
    twice = await index.get("evt1")
    assert once.is_member is True
    assert twice == once

    await index.reset_unread("evt1")
    assert (await index.get("evt1")).is_member is True


@pytest.mark.asyncio
async def test_registries_are_independent(index):
    """Test conversations do not share state."""
    await index.increment_unread("evt1")
    await index.mark_member("evt2")
    assert (await index.get("evt1")).is_member is False
    assert (await index.get("evt2")).unread_count == 0


@pytest.mark.asyncio
async def test_materialize_writes_full_state(index):
    """Test placeholder state is persisted in one go."""
    at = datetime(2024, 5, 1, 9, 30, tzinfo=timezone.utc)
    state = await index.materialize("1", "What time should we arrive?", at, 4)
    assert state.last_message_text == "What time should we arrive?"
    assert state.last_message_at == at
    assert state.unread_count == 4
    assert await index.get("1") == state
