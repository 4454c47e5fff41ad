from dataclasses import asdict, dataclass
from typing import FrozenSet


@dataclass(frozen=True)
class Identity:
    room_id: str
    faction: str


@dataclass(frozen=True)
class Conversation:
    conversation_id: str
    room_id: str
    participants: FrozenSet[str]

    def sorted_participants(self) -> list:
        return sorted(self.participants)

    def to_meta(self) -> dict:
        return {"room_id": self.room_id, "participants": self.sorted_participants()}

    @classmethod
    def from_meta(cls, conversation_id: str, meta: dict) -> "Conversation":
        return cls(
            conversation_id=conversation_id,
            room_id=meta["room_id"],
            participants=frozenset(meta["participants"]),
        )


@dataclass(frozen=True)
class Message:
    message_id: str
    room_id: str
    conversation_id: str
    sender_faction: str
    content: str
    timestamp: int

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "Message":
        # Records written by the first deployment used sender_country.
        sender = data.get("sender_faction", data.get("sender_country"))
        return cls(
            message_id=data["message_id"],
            room_id=data["room_id"],
            conversation_id=data["conversation_id"],
            sender_faction=sender,
            content=data["content"],
            timestamp=int(data["timestamp"]),
        )
