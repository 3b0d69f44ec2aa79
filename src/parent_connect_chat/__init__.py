"""Local conversation store with unread tracking for group chats."""
