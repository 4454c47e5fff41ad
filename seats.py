from backend import KeyValueStore
from errors import SeatTaken
from logging_config import get_logger
from redis_keys import ROOM_SEAT_KEY

logger = get_logger(__name__)


class SeatRegistry:
    """Remembers which factions of a room have already been handed a token.

    The check and the claim are two separate store calls, so two first-time
    requests arriving together can both succeed. That window is accepted.
    """

    def __init__(self, store: KeyValueStore):
        self.store = store

    async def claim(self, room_id: str, faction: str):
        key = ROOM_SEAT_KEY.format(room_id=room_id, faction=faction)
        if await self.store.get(key) is not None:
            logger.warning(f"Seat {faction} in room {room_id} is already taken")
            raise SeatTaken()
        await self.store.put(key, True)
        logger.info(f"Seat {faction} claimed in room {room_id}")
