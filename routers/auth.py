from typing import Optional

from fastapi import APIRouter, Depends, Request

from dependencies import get_seat_registry, get_token_service
from logging_config import get_logger
from schemas.auth import AuthRequest, AuthResponse
from seats import SeatRegistry
from tokens import IdentityTokenService, validate_faction, validate_room_id

logger = get_logger(__name__)

auth_router = APIRouter(prefix="/api", tags=["auth"])


@auth_router.post("/auth", response_model=AuthResponse)
async def issue_token(
    body: AuthRequest,
    request: Request,
    tokens: IdentityTokenService = Depends(get_token_service),
    seats: Optional[SeatRegistry] = Depends(get_seat_registry),
):
    # POST /api/auth Body: { "room_id": "spring-1901", "faction": "england" }
    # Response 200: { "access_token": "spring-1901|england|<hmac hex>" }
    client_host = request.client.host if request.client else "unknown"
    logger.info(f"Token request for faction {body.faction} in room {body.room_id} from {client_host}")

    validate_faction(body.faction)
    validate_room_id(body.room_id)
    if seats is not None:
        await seats.claim(body.room_id, body.faction)

    return AuthResponse(access_token=tokens.issue(body.room_id, body.faction))
