#!/usr/bin/env python3
"""
Start the concierge API with the project logging setup
"""

import os

import uvicorn

from logging_config import setup_logging


def start_server():
    """Start uvicorn serving concierge.main:app"""
    setup_logging()

    print("🚀 Starting Lending Concierge API...")
    print("-" * 50)

    uvicorn.run(
        "concierge.main:app",
        host=os.getenv("CONCIERGE_HOST", "0.0.0.0"),
        port=int(os.getenv("CONCIERGE_PORT", "8000")),
        log_level="info",
        access_log=True,
    )


if __name__ == "__main__":
    start_server()
