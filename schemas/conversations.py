from pydantic import BaseModel
from typing import Optional


class CreateConversationRequest(BaseModel):
    participants: list[str]
    room_id: Optional[str] = None

class CreateConversationResponse(BaseModel):
    conversation_id: str

class ConversationSummary(BaseModel):
    conversation_id: str
    participants: list[str]
