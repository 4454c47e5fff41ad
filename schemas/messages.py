from pydantic import BaseModel


class SendMessageRequest(BaseModel):
    conversation_id: str
    content: str

class SendMessageResponse(BaseModel):
    message_id: str

class MessageResponse(BaseModel):
    message_id: str
    room_id: str
    conversation_id: str
    sender_faction: str
    content: str
    timestamp: int
