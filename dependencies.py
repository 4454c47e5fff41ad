from typing import Optional

from fastapi import Header, Request

from conversations import ConversationDirectory
from errors import Unauthorized
from logging_config import get_logger
from messages import MessageLog
from models import Identity
from seats import SeatRegistry
from tokens import IdentityTokenService

logger = get_logger(__name__)

BEARER_PREFIX = "Bearer "


def get_token_service(request: Request) -> IdentityTokenService:
    return request.app.state.token_service


def get_directory(request: Request) -> ConversationDirectory:
    return request.app.state.directory


def get_message_log(request: Request) -> MessageLog:
    return request.app.state.message_log


def get_seat_registry(request: Request) -> Optional[SeatRegistry]:
    return request.app.state.seat_registry


def get_identity(request: Request, authorization: Optional[str] = Header(None)) -> Identity:
    """Resolve `Authorization: Bearer <token>` into the caller's room and faction."""
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        client_host = request.client.host if request.client else "unknown"
        logger.warning(f"Missing bearer token on {request.method} {request.url.path} from {client_host}")
        raise Unauthorized()
    token = authorization[len(BEARER_PREFIX):].strip()
    return get_token_service(request).verify(token)
