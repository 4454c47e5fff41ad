from fastapi import APIRouter, Depends, Query

from constants import MAX_MSG_FETCH
from conversations import ConversationDirectory
from dependencies import get_directory, get_identity, get_message_log
from logging_config import get_logger
from messages import MessageLog
from models import Identity
from schemas.messages import MessageResponse, SendMessageRequest, SendMessageResponse

logger = get_logger(__name__)

messages_router = APIRouter(prefix="/api/messages", tags=["messages"])


@messages_router.get("", response_model=list[MessageResponse])
async def list_messages(
    conversation_id: str = Query(...),
    since: int = Query(0, ge=0),
    identity: Identity = Depends(get_identity),
    directory: ConversationDirectory = Depends(get_directory),
    log: MessageLog = Depends(get_message_log),
):
    # Clients poll with since=<timestamp of the newest message they hold>.
    await directory.authorize(conversation_id, identity.room_id, identity.faction)
    messages = await log.list_since(conversation_id, since, limit=MAX_MSG_FETCH)
    return [MessageResponse(**m.to_dict()) for m in messages]


@messages_router.post("", response_model=SendMessageResponse)
async def send_message(
    body: SendMessageRequest,
    identity: Identity = Depends(get_identity),
    directory: ConversationDirectory = Depends(get_directory),
    log: MessageLog = Depends(get_message_log),
):
    conversation = await directory.authorize(body.conversation_id, identity.room_id, identity.faction)
    message = await log.append(conversation, identity.faction, body.content)
    return SendMessageResponse(message_id=message.message_id)
