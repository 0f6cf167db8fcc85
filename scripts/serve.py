# scripts/serve.py
from __future__ import annotations

import logging
import sys

import uvicorn

from src.config import API_HOST, API_PORT, LOG_LEVEL

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    stream=sys.stdout,
)

if __name__ == "__main__":
    uvicorn.run(
        "src.api.app:app",
        host=API_HOST,
        port=API_PORT,
        log_config=None,
    )
