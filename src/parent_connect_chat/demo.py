"""Demonstration data fed into the store by the service layer.

The catalog stands in for the event and playdate system; the seed history is
what a group chat shows the first time it is opened.
"""

from datetime import timedelta
from typing import List

from .domain.models import ChatCandidate, Message, Participant, utcnow

EVENT_CHATS = [
    ChatCandidate(id="1", title="Storytime at Library", participant_count=12),
    ChatCandidate(id="2", title="Park Playdate", participant_count=8),
    ChatCandidate(id="3", title="Kids Art Class", participant_count=15),
    ChatCandidate(id="4", title="Family Movie Night", participant_count=20),
    ChatCandidate(id="5", title="Swimming Lessons", participant_count=6),
]

PLAYDATE_CHATS = [
    ChatCandidate(id="101", title="Playground Meetup", participant_count=5),
    ChatCandidate(id="202", title="Swimming Pool Fun", participant_count=4),
    ChatCandidate(id="303", title="Library Play Corner", participant_count=7),
    ChatCandidate(id="404", title="Nature Walk & Play", participant_count=9),
    ChatCandidate(id="505", title="Indoor Playground Meetup", participant_count=3),
]

# The chat screen lists and sorts each section on its own
SECTIONS = {
    "events": EVENT_CHATS,
    "playdates": PLAYDATE_CHATS,
}

PLACEHOLDER_TEXTS = [
    "Is anyone bringing snacks to the event?",
    "What time should we arrive?",
    "Looking forward to seeing everyone!",
    "Can someone recommend parking nearby?",
    "My kids are so excited for this!",
    "Does anyone know if it's indoors or outdoors?",
]

# (sender_id, name, avatar, text, minutes ago); a None sender is the current user
_SEED_MESSAGES = [
    ("p1", "Sarah Johnson", "👩‍👧", "Hi everyone! Is anyone planning to bring snacks to the event?", 180),
    ("p2", "Mike Thompson", "👨‍👦", "I can bring some fruit and juice boxes for the kids.", 120),
    ("p3", "Emma Roberts", "👩‍👧‍👦", "Great! I'll bring some veggie sticks and dip.", 60),
    (None, None, None, "Sounds good! I'll bring some cookies then.", 30),
    ("p5", "David Wilson", "👨‍👧", "Looking forward to meeting everyone's kids!", 0),
]


def seed_messages(conversation_id: str, current_user: Participant) -> List[Message]:
    now = utcnow()
    messages = []
    for n, (sender_id, name, avatar, text, minutes) in enumerate(_SEED_MESSAGES, start=1):
        mine = sender_id is None
        if mine:
            sender_id, name, avatar = current_user.id, current_user.name, current_user.avatar
        messages.append(
            Message(
                id=f"{conversation_id}-seed-{n}",
                conversation_id=conversation_id,
                sender_id=sender_id,
                sender_name=name,
                sender_avatar=avatar,
                text=text,
                sent_at=now - timedelta(minutes=minutes),
                is_from_current_user=mine,
            )
        )
    return messages
