"""
Entry point — start the study timer service.

Usage:
    python -m studytimer.main
    uvicorn studytimer.api.app:app --host 127.0.0.1 --port 8740 --reload
"""

import logging

import uvicorn
from .config import config


def main():
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(
        "studytimer.api.app:app",
        host=config.api_host,
        port=config.api_port,
        reload=False,
        log_level="info",
    )


if __name__ == "__main__":
    main()
