"""
Entry point for running the narration control API.

Usage:
    python -m control_api

Serves http://CONTROL_API_HOST:CONTROL_API_PORT (default 0.0.0.0:8000).
"""
import uvicorn

from logging_setup import setup_logging
from narration.config import get_config

if __name__ == "__main__":
    config = get_config()
    setup_logging(level=config.log_level, use_json=config.log_json)

    uvicorn.run(
        "control_api.server:app",
        host=config.api_host,
        port=config.api_port,
        log_level=config.log_level.lower(),
    )
