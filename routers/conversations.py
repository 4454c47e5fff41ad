from typing import Optional

from fastapi import APIRouter, Depends, Query

from conversations import ConversationDirectory
from dependencies import get_directory, get_identity
from errors import Forbidden, InvalidInput
from logging_config import get_logger
from models import Identity
from schemas.conversations import ConversationSummary, CreateConversationRequest, CreateConversationResponse

logger = get_logger(__name__)

conversations_router = APIRouter(prefix="/api/conversations", tags=["conversations"])


def check_room(identity: Identity, room_id: Optional[str]):
    if room_id is not None and room_id != identity.room_id:
        logger.warning(f"Faction {identity.faction} of room {identity.room_id} asked for room {room_id}")
        raise Forbidden("Room does not match token")


@conversations_router.get("", response_model=list[ConversationSummary])
async def list_conversations(
    room_id: Optional[str] = Query(None),
    identity: Identity = Depends(get_identity),
    directory: ConversationDirectory = Depends(get_directory),
):
    check_room(identity, room_id)
    conversations = await directory.list(identity.room_id, identity.faction)
    return [
        ConversationSummary(conversation_id=c.conversation_id, participants=c.sorted_participants())
        for c in conversations
    ]


@conversations_router.post("", response_model=CreateConversationResponse)
async def create_conversation(
    body: CreateConversationRequest,
    identity: Identity = Depends(get_identity),
    directory: ConversationDirectory = Depends(get_directory),
):
    # POST /api/conversations Body: { "participants": ["france"] }
    # The caller's own faction is implied and may also be listed.
    check_room(identity, body.room_id)
    if len(set(body.participants)) != len(body.participants):
        raise InvalidInput("Duplicate participant")
    others = [p for p in body.participants if p != identity.faction]
    conversation_id = await directory.create(identity.room_id, identity.faction, others)
    return CreateConversationResponse(conversation_id=conversation_id)
