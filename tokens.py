import hashlib
import hmac

from constants import FACTIONS, MAX_ROOM_ID_LENGTH
from errors import InvalidInput, Unauthorized
from logging_config import get_logger
from models import Identity

logger = get_logger(__name__)

TOKEN_SEPARATOR = "|"


def validate_room_id(room_id: str):
    if not isinstance(room_id, str) or not room_id or len(room_id.encode("utf-8")) > MAX_ROOM_ID_LENGTH:
        raise InvalidInput(f"room_id must be 1-{MAX_ROOM_ID_LENGTH} bytes of UTF-8")


def validate_faction(faction: str):
    if faction not in FACTIONS:
        raise InvalidInput("Invalid faction")


class IdentityTokenService:
    """Issues and verifies `room_id|faction|hmac_hex` bearer tokens.

    Tokens are verified by recomputing the HMAC, so nothing is stored per
    token and there is no expiry: a token lives as long as the secret.
    """

    def __init__(self, secret: str):
        if not secret:
            raise ValueError("HMAC secret must not be empty")
        self._secret = secret.encode("utf-8")

    def _sign(self, room_id: str, faction: str) -> str:
        payload = f"{room_id}:{faction}".encode("utf-8")
        return hmac.new(self._secret, payload, hashlib.sha256).hexdigest()

    def issue(self, room_id: str, faction: str) -> str:
        validate_faction(faction)
        validate_room_id(room_id)
        logger.info(f"Issuing token for faction {faction} in room {room_id}")
        return TOKEN_SEPARATOR.join((room_id, faction, self._sign(room_id, faction)))

    def verify(self, token: str) -> Identity:
        # room_id is caller supplied and may contain the separator, so the
        # token is split from the right.
        if not token or not isinstance(token, str):
            raise Unauthorized()
        rest, sep, signature = token.rpartition(TOKEN_SEPARATOR)
        if not sep:
            raise Unauthorized()
        room_id, sep, faction = rest.rpartition(TOKEN_SEPARATOR)
        if not sep or faction not in FACTIONS:
            raise Unauthorized()

        expected = self._sign(room_id, faction)
        if not hmac.compare_digest(expected.encode("ascii"), signature.encode("utf-8", "replace")):
            logger.warning(f"Rejected token with bad signature for faction {faction}")
            raise Unauthorized()
        return Identity(room_id=room_id, faction=faction)
