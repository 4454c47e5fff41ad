import sys

import uvicorn

from constants import HMAC_SECRET, HOST, LOG_FILE, LOG_LEVEL, PORT
from logging_config import get_logger, setup_logging

# Logging is configured before the app module builds its routers
setup_logging(log_level=LOG_LEVEL, log_file=LOG_FILE)
logger = get_logger(__name__)


def main():
    if not HMAC_SECRET:
        logger.error("HMAC_SECRET is not set; refusing to start without a token signing key")
        sys.exit(1)

    from app import app

    logger.info(f"Starting Council Chat server on {HOST}:{PORT}")
    uvicorn.run(app, host=HOST, port=PORT, log_config=None)


if __name__ == "__main__":
    main()
