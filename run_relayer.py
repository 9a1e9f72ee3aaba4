import uvicorn
import logging
import os
from dotenv import dotenv_values

# Uvicorn logs through the govrelay handler; keep only its errors
uvicorn_loggers = [
    logging.getLogger("uvicorn"),
    logging.getLogger("uvicorn.error"),
    logging.getLogger("uvicorn.access"),
    logging.getLogger("uvicorn.asgi"),
]

for uvicorn_logger in uvicorn_loggers:
    uvicorn_logger.setLevel(logging.ERROR)
    uvicorn_logger.handlers = []

config = dotenv_values(".env")

# Process environment wins over .env
GOVRELAY_HOST = os.getenv("GOVRELAY_HOST", config.get("GOVRELAY_HOST", "127.0.0.1"))
GOVRELAY_PORT = int(os.getenv("GOVRELAY_PORT", config.get("GOVRELAY_PORT", "3010")))

if __name__ == "__main__":
    uvicorn.run(
        "govrelay.api.app:create_app",
        factory=True,
        host=GOVRELAY_HOST,
        port=GOVRELAY_PORT,
        reload=False,
        access_log=False,
        log_config=None
    )
