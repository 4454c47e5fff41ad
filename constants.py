import os

REDIS_HOST = os.getenv("REDIS_HOST", "localhost")
REDIS_PORT = int(os.getenv("REDIS_PORT", 6379))
REDIS_PASSWORD = os.getenv("REDIS_PASSWORD", None)
REDIS_DB = int(os.getenv("REDIS_DB", 0))

REDIS_URL = f"redis://:{REDIS_PASSWORD}@{REDIS_HOST}:{REDIS_PORT}/{REDIS_DB}"

# Signing key for access tokens. Tokens stay valid for as long as this value does.
HMAC_SECRET = os.getenv("HMAC_SECRET", "")

# When enabled, a (room, faction) seat can only be handed a token once.
CLAIM_SEATS = os.getenv("CLAIM_SEATS", "false").lower() in ("1", "true", "yes")

ALLOWED_ORIGINS = [o.strip() for o in os.getenv("ALLOWED_ORIGINS", "*").split(",") if o.strip()]

FACTIONS = ("england", "france", "germany", "italy", "austria", "russia", "turkey")

MAX_CONTENT_LENGTH = 4096  # bytes, UTF-8
MAX_ROOM_ID_LENGTH = 64  # bytes, UTF-8
MAX_MSG_FETCH = 200

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", 8000))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("LOG_FILE", None)
