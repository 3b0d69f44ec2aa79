"""Errors raised by the chat store."""


class ChatStoreError(Exception):
    """Base class for chat store errors."""


class ValidationError(ChatStoreError):
    """Input was rejected before touching storage."""


class PersistenceError(ChatStoreError):
    """The underlying storage failed to read or write."""
