import hashlib
import time
from typing import Iterable, List

from backend import KeyValueStore
from constants import FACTIONS
from errors import Forbidden, InvalidInput, NotFound
from logging_config import get_logger
from models import Conversation
from redis_keys import CONV_META_KEY, ROOM_CONVERSATIONS_KEY, ROOM_MEMBER_KEY, ROOM_MEMBER_PREFIX

logger = get_logger(__name__)

CONVERSATION_ID_LENGTH = 16


def derive_conversation_id(room_id: str, participants: Iterable[str]) -> str:
    """Hash of the room and the sorted participant set, truncated to 16 hex chars.

    Sorting makes identity depend on set equality, not on the order the
    caller listed the factions in.
    """
    canonical = f"{room_id}:{':'.join(sorted(set(participants)))}"
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:CONVERSATION_ID_LENGTH]


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


class ConversationDirectory:
    def __init__(self, store: KeyValueStore):
        self.store = store

    def validate_participants(self, requester: str, others: Iterable[str]) -> frozenset:
        others = list(others)
        if requester not in FACTIONS:
            raise InvalidInput("Invalid faction")
        if len(others) not in (1, 2):
            raise InvalidInput("Select 1 or 2 other factions")
        if len(set(others)) != len(others):
            raise InvalidInput("Duplicate participant")
        for faction in others:
            if faction not in FACTIONS:
                raise InvalidInput("Invalid participant faction")
            if faction == requester:
                raise InvalidInput("Other participants must not include the requester")
        return frozenset(others) | {requester}

    async def create(self, room_id: str, requester: str, others: Iterable[str]) -> str:
        participants = self.validate_participants(requester, others)
        conversation = Conversation(
            conversation_id=derive_conversation_id(room_id, participants),
            room_id=room_id,
            participants=participants,
        )
        conversation_id = conversation.conversation_id
        meta_key = CONV_META_KEY.format(conversation_id=conversation_id)
        member_key = ROOM_MEMBER_KEY.format(room_id=room_id, conversation_id=conversation_id)

        existing = await self.store.get(meta_key)
        if existing is not None:
            # A previous create may have died between its writes; restore the
            # membership key without touching anything that already exists.
            if await self.store.get(member_key) is None:
                logger.warning(f"Repairing missing index entry for conversation {conversation_id} in room {room_id}")
                await self.store.put(member_key, {"conversation_id": conversation_id, "created_at": _now_ms()})
            logger.debug(f"Conversation {conversation_id} already exists in room {room_id}")
            return conversation_id

        await self.store.put(meta_key, conversation.to_meta())
        await self.store.put(member_key, {"conversation_id": conversation_id, "created_at": _now_ms()})
        await self._append_legacy_index(room_id, conversation_id)
        logger.info(f"Conversation {conversation_id} created in room {room_id} for {conversation.sorted_participants()}")
        return conversation_id

    async def _append_legacy_index(self, room_id: str, conversation_id: str):
        # Kept for readers that only know the single-key array. This is a
        # non-atomic read-modify-write and may lose entries under concurrent
        # creates; listing never depends on it alone.
        key = ROOM_CONVERSATIONS_KEY.format(room_id=room_id)
        ids = await self.store.get(key) or []
        if conversation_id not in ids:
            ids.append(conversation_id)
            await self.store.put(key, ids)

    async def conversation_ids(self, room_id: str) -> List[str]:
        """Every conversation id known for the room, deduplicated, in creation order."""
        prefix = ROOM_MEMBER_PREFIX.format(room_id=room_id)
        entries = []
        for key in await self.store.list_keys(prefix):
            record = await self.store.get(key)
            if record is None:
                continue
            entries.append((record.get("created_at", 0), key[len(prefix):]))
        entries.sort()
        ordered = [conversation_id for _, conversation_id in entries]

        seen = set(ordered)
        for conversation_id in await self.store.get(ROOM_CONVERSATIONS_KEY.format(room_id=room_id)) or []:
            if conversation_id not in seen:
                seen.add(conversation_id)
                ordered.append(conversation_id)
        return ordered

    async def list(self, room_id: str, faction: str) -> List[Conversation]:
        result = []
        for conversation_id in await self.conversation_ids(room_id):
            meta = await self.store.get(CONV_META_KEY.format(conversation_id=conversation_id))
            if meta is None or meta.get("room_id") != room_id:
                continue
            conversation = Conversation.from_meta(conversation_id, meta)
            if faction in conversation.participants:
                result.append(conversation)
        logger.debug(f"Room {room_id} has {len(result)} conversations for {faction}")
        return result

    async def get(self, conversation_id: str) -> Conversation:
        meta = await self.store.get(CONV_META_KEY.format(conversation_id=conversation_id))
        if meta is None:
            raise NotFound("Conversation not found")
        return Conversation.from_meta(conversation_id, meta)

    async def authorize(self, conversation_id: str, room_id: str, faction: str) -> Conversation:
        """Load a conversation the caller is allowed to read and write."""
        conversation = await self.get(conversation_id)
        if conversation.room_id != room_id or faction not in conversation.participants:
            logger.warning(f"Faction {faction} of room {room_id} denied access to conversation {conversation_id}")
            raise Forbidden()
        return conversation
