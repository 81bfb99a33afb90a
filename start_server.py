#!/usr/bin/env python3
"""
Startup script for the Task Tracker Backend
This script starts the FastAPI server with proper configuration
"""

import logging

import uvicorn

from app.config.settings import settings

logger = logging.getLogger(__name__)


def main():
    logging.basicConfig(level=logging.INFO)
    logger.info(f"Starting Task Tracker Backend on {settings.HOST}:{settings.PORT} (reload={settings.RELOAD})")

    # Start the server
    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.RELOAD,
        log_level="info"
    )

if __name__ == "__main__":
    main()
