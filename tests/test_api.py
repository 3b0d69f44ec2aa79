"""Test suite for the API endpoints."""

import random

import pytest
from httpx import ASGITransport, AsyncClient

from parent_connect_chat.api.app import app, get_store
from parent_connect_chat.domain.models import Participant
from parent_connect_chat.repositories.memory import InMemoryStorage
from parent_connect_chat.services.store import ChatStore


@pytest.fixture
def store():
    store = ChatStore(
        InMemoryStorage(),
        current_user=Participant(id="me", name="You", avatar="👩‍👦"),
        bootstrap_ids=["1", "2", "101", "202"],
        rng=random.Random(11),
    )
    app.dependency_overrides[get_store] = lambda: store
    yield store
    app.dependency_overrides.clear()


def client():
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


@pytest.mark.asyncio
async def test_chat_list_bootstraps_demo_chats(store):
    """Test the first chat list holds the allow-listed chats, newest first."""
    async with client() as c:
        response = await c.get("/chats")
        assert response.status_code == 200
        chats = response.json()
        assert {chat["conversation_id"] for chat in chats["events"]} == {"1", "2"}
        assert {chat["conversation_id"] for chat in chats["playdates"]} == {"101", "202"}
        for section in ("events", "playdates"):
            stamps = [chat["last_message_at"] for chat in chats[section]]
            assert stamps == sorted(stamps, reverse=True)

        again = await c.get("/chats")
        assert again.json() == chats


@pytest.mark.asyncio
async def test_join_adds_chat_to_list(store):
    """Test joining a catalog chat lists it."""
    async with client() as c:
        response = await c.post("/conversations/3/join")
        assert response.status_code == 200
        assert response.json()["is_member"] is True

        response = await c.post("/conversations/3/messages", json={"text": "Who is coming?"})
        assert response.status_code == 200

        chats = (await c.get("/chats")).json()["events"]
        art_class = next(chat for chat in chats if chat["conversation_id"] == "3")
        assert art_class["title"] == "Kids Art Class"
        assert art_class["last_message_text"] == "Who is coming?"
        assert chats[0]["conversation_id"] == "3"


@pytest.mark.asyncio
async def test_open_seeds_once_and_clears_unread(store):
    """Test opening a chat seeds demo history once and resets unread."""
    async with client() as c:
        response = await c.post("/conversations/1/open")
        assert response.status_code == 200
        seeded = response.json()
        assert len(seeded) == 5

        response = await c.post(
            "/conversations/1/messages",
            json={"text": "Running late!", "sender": {"id": "p2", "name": "Mike Thompson"}},
        )
        assert response.status_code == 200
        assert response.json()["is_from_current_user"] is False

        state = (await c.get("/conversations/1/state")).json()
        assert state["unread_count"] == 1
        assert state["last_message_text"] == "Running late!"

        response = await c.post("/conversations/1/open")
        messages = response.json()
        assert len(messages) == 6
        assert messages[-1]["text"] == "Running late!"
        assert (await c.get("/conversations/1/state")).json()["unread_count"] == 0


@pytest.mark.asyncio
async def test_send_as_current_user(store):
    """Test sends without a sender are tagged as the current user."""
    async with client() as c:
        response = await c.post("/conversations/evt2/messages", json={"text": "Hello"})
        assert response.status_code == 200
        data = response.json()
        assert data["sender_name"] == "You"
        assert data["is_from_current_user"] is True
        assert data["conversation_id"] == "evt2"

        messages = (await c.get("/conversations/evt2/messages")).json()
        assert [m["text"] for m in messages] == ["Hello"]


@pytest.mark.asyncio
async def test_error_handling(store):
    """Test validation and storage failures."""
    async with client() as c:
        response = await c.post("/conversations/evt1/messages", json={"text": "   "})
        assert response.status_code == 422
        assert (await c.get("/conversations/evt1/messages")).json() == []

        response = await c.post("/conversations/evt1/messages", json={})
        assert response.status_code == 422

        await store.close()
        response = await c.get("/conversations/evt1/state")
        assert response.status_code == 500
        assert response.json() == {"detail": "Storage failure"}


@pytest.mark.asyncio
async def test_metrics_endpoint(store):
    """Test Prometheus metrics are exposed."""
    async with client() as c:
        await c.get("/chats")
        response = await c.get("/metrics")
        assert response.status_code == 200
        assert "requests_total" in response.text


@pytest.mark.asyncio
async def test_playdate_join_stays_in_its_section(store):
    """Test a joined playdate chat is listed under playdates only."""
    async with client() as c:
        await c.post("/conversations/303/join")
        await c.post("/conversations/303/messages", json={"text": "Bring buckets!"})

        chats = (await c.get("/chats")).json()
        assert chats["playdates"][0]["conversation_id"] == "303"
        assert chats["playdates"][0]["title"] == "Library Play Corner"
        assert "303" not in {chat["conversation_id"] for chat in chats["events"]}


@pytest.mark.asyncio
async def test_seeded_history_uses_current_user():
    """Test the demo history tags the configured user's message as theirs."""
    dad = Participant(id="u42", name="Alex", avatar="👨‍👧")
    store = ChatStore(InMemoryStorage(), current_user=dad)
    app.dependency_overrides[get_store] = lambda: store
    try:
        async with client() as c:
            messages = (await c.post("/conversations/2/open")).json()
    finally:
        app.dependency_overrides.clear()

    mine = [m for m in messages if m["is_from_current_user"]]
    assert len(mine) == 1
    assert (mine[0]["sender_id"], mine[0]["sender_name"], mine[0]["sender_avatar"]) == ("u42", "Alex", "👨‍👧")
    assert all(m["sender_id"] != "u42" for m in messages if not m["is_from_current_user"])
