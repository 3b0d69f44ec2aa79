"""
FastAPI Application Module

Local HTTP surface over the chat store. It plays the part of the app's chat
screens: it lists chats, opens a thread, sends messages and joins group chats.

Key Features:
- Chat list built from the event and playdate catalog
- One-time demo history on first open
- Structured logging and metrics
- CORS and OpenTelemetry support
"""

from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import Depends, FastAPI, HTTPException, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from prometheus_client import CollectorRegistry, Counter, generate_latest
from pydantic import BaseModel
from structlog import get_logger

from ..config import get_settings
from ..demo import SECTIONS, seed_messages
from ..domain.errors import PersistenceError, ValidationError
from ..domain.models import ChatListEntry, ConversationState, Message, Participant
from ..services.store import ChatStore

# Registry for isolated metric collection
CUSTOM_REGISTRY = CollectorRegistry()

REQUESTS = Counter("requests_total", "Total requests", registry=CUSTOM_REGISTRY)
ERRORS = Counter("errors_total", "Total failed requests", registry=CUSTOM_REGISTRY)
MESSAGES_SENT = Counter("messages_sent_total", "Messages appended through the API", registry=CUSTOM_REGISTRY)

logger = get_logger()


class MessageCreate(BaseModel):
    """Defines the structure for message creation requests"""
    text: str
    sender: Optional[Participant] = None


class ChatSections(BaseModel):
    """Chat list, one independently sorted section per chat kind"""
    events: List[ChatListEntry]
    playdates: List[ChatListEntry]


_store: Optional[ChatStore] = None


def get_store() -> ChatStore:
    """Returns the process-wide chat store, creating it on first use"""
    global _store
    if _store is None:
        _store = ChatStore.from_settings(get_settings())
    return _store


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handles app startup/shutdown and resource management"""
    logger.info("application_startup_complete")

    yield

    global _store
    if _store is not None:
        await _store.close()
        _store = None
    logger.info("application_shutdown_complete")


app = FastAPI(
    title="Parent Connect Chat API",
    description="Local conversation store with unread tracking",
    version="0.1.0",
    lifespan=lifespan
)

# Enable cross-origin requests
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Set up request tracing
FastAPIInstrumentor.instrument_app(app)


@app.middleware("http")
async def logging_middleware(request: Request, call_next):
    """Tracks requests"""
    REQUESTS.inc()
    logger.info("request_started", path=request.url.path)
    try:
        return await call_next(request)
    except Exception as e:
        ERRORS.inc()
        logger.error("request_failed", path=request.url.path, error=str(e))
        raise


@app.exception_handler(PersistenceError)
async def persistence_error_handler(request: Request, exc: PersistenceError) -> JSONResponse:
    ERRORS.inc()
    logger.error("persistence_error", path=request.url.path, error=str(exc))
    return JSONResponse(status_code=500, content={"detail": "Storage failure"})


@app.get("/chats", response_model=ChatSections)
async def list_chats(store: ChatStore = Depends(get_store)) -> ChatSections:
    """Chats the user takes part in, each section most recent first"""
    return ChatSections(
        events=await store.chat_list.build(SECTIONS["events"]),
        playdates=await store.chat_list.build(SECTIONS["playdates"]),
    )


@app.get("/conversations/{conversation_id}/state", response_model=ConversationState)
async def get_state(conversation_id: str, store: ChatStore = Depends(get_store)) -> ConversationState:
    """Preview, unread count and membership of a conversation"""
    return await store.index.get(conversation_id)


@app.get("/conversations/{conversation_id}/messages", response_model=List[Message])
async def get_messages(conversation_id: str, store: ChatStore = Depends(get_store)) -> List[Message]:
    """Message history, oldest first"""
    return await store.log.load_all(conversation_id)


@app.post("/conversations/{conversation_id}/open", response_model=List[Message])
async def open_conversation(conversation_id: str, store: ChatStore = Depends(get_store)) -> List[Message]:
    """
    Opens a chat thread.
    Seeds demo history the first time and clears the unread count.
    """
    await store.log.seed(conversation_id, seed_messages(conversation_id, store.read_state.current_user))
    await store.read_state.on_open_conversation(conversation_id)
    return await store.log.load_all(conversation_id)


@app.post("/conversations/{conversation_id}/messages", response_model=Message)
async def send_message(
    conversation_id: str,
    message: MessageCreate,
    store: ChatStore = Depends(get_store)
) -> Message:
    """Sends a message as the current user, or as ``sender`` when given"""
    try:
        stored = await store.read_state.on_send(
            conversation_id,
            message.text,
            sender_is_current_user=message.sender is None,
            sender=message.sender,
        )
    except ValidationError as e:
        logger.warning("message_rejected", conversation_id=conversation_id, error=str(e))
        raise HTTPException(status_code=422, detail=str(e))
    MESSAGES_SENT.inc()
    return stored


@app.post("/conversations/{conversation_id}/join", response_model=ConversationState)
async def join_conversation(conversation_id: str, store: ChatStore = Depends(get_store)) -> ConversationState:
    """Joins a group chat"""
    await store.read_state.on_join_conversation(conversation_id)
    return await store.index.get(conversation_id)


@app.get("/metrics")
async def metrics():
    """Provides Prometheus metrics for system monitoring"""
    return Response(generate_latest(CUSTOM_REGISTRY), media_type="text/plain")
