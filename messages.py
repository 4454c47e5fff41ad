import time
import uuid
from typing import AsyncIterator, List, Optional

from backend import KeyValueStore
from constants import MAX_CONTENT_LENGTH
from errors import Forbidden, InvalidInput
from logging_config import get_logger
from models import Conversation, Message
from redis_keys import CONV_MSG_KEY, CONV_MSG_PREFIX

logger = get_logger(__name__)


class MillisecondClock:
    """Wall clock in milliseconds that never goes backwards within a process."""

    def __init__(self, time_ns=time.time_ns):
        self._time_ns = time_ns
        self._last = 0

    def __call__(self) -> int:
        now = self._time_ns() // 1_000_000
        if now < self._last:
            now = self._last
        self._last = now
        return now


def parse_message_key(prefix: str, key: str):
    """Split `{prefix}{ts20}:{message_id}` into (timestamp, message_id)."""
    timestamp, _, message_id = key[len(prefix):].partition(":")
    return int(timestamp), message_id


class MessageLog:
    """Append-only log per conversation.

    Keys embed the zero-padded timestamp followed by the message id, so a
    sorted prefix listing is chronological, with same-millisecond messages
    ordered by id.
    """

    def __init__(self, store: KeyValueStore, clock=None):
        self.store = store
        self.clock = clock or MillisecondClock()

    async def append(self, conversation: Conversation, sender_faction: str, content: str) -> Message:
        if sender_faction not in conversation.participants:
            logger.warning(f"Faction {sender_faction} is not a participant of conversation {conversation.conversation_id}")
            raise Forbidden("Sender is not a participant")
        size = len(content.encode("utf-8"))
        if size == 0 or size > MAX_CONTENT_LENGTH:
            raise InvalidInput(f"content must be 1-{MAX_CONTENT_LENGTH} bytes")

        message = Message(
            message_id=str(uuid.uuid4()),
            room_id=conversation.room_id,
            conversation_id=conversation.conversation_id,
            sender_faction=sender_faction,
            content=content,
            timestamp=self.clock(),
        )
        key = CONV_MSG_KEY.format(
            conversation_id=message.conversation_id,
            timestamp=message.timestamp,
            message_id=message.message_id,
        )
        await self.store.put(key, message.to_dict())
        logger.info(f"Message {message.message_id} appended to conversation {message.conversation_id} by {sender_faction} ({size} bytes)")
        return message

    async def iter_since(self, conversation_id: str, since: Optional[int] = 0) -> AsyncIterator[Message]:
        since = since or 0
        prefix = CONV_MSG_PREFIX.format(conversation_id=conversation_id)
        for key in await self.store.list_keys(prefix):
            try:
                timestamp, _ = parse_message_key(prefix, key)
            except ValueError:
                logger.warning(f"Skipping malformed message key in conversation {conversation_id}")
                continue
            if timestamp <= since:
                continue
            data = await self.store.get(key)
            if data is None:
                continue
            yield Message.from_dict(data)

    async def list_since(self, conversation_id: str, since: Optional[int] = 0, limit: Optional[int] = None) -> List[Message]:
        """Messages newer than `since`, oldest first.

        With a limit, the page may run past it to finish the last
        millisecond, so a follow-up call with since=<last timestamp> never
        skips a message.
        """
        messages = []
        async for message in self.iter_since(conversation_id, since):
            if limit is not None and len(messages) >= limit:
                if not messages or message.timestamp != messages[-1].timestamp:
                    break
            messages.append(message)
        logger.debug(f"Conversation {conversation_id}: {len(messages)} messages since {since}")
        return messages
