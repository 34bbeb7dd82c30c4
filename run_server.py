#!/usr/bin/env python3
"""
Run the sift HTTP service.

Usage:
    python run_server.py
    python run_server.py --port 8080

Host, port and log level default to SIFT_HOST, SIFT_PORT and
SIFT_LOG_LEVEL (a .env file is read first).
"""

import argparse

from dotenv import load_dotenv
load_dotenv()

import uvicorn

from sift.config import get_settings
from sift.logger import setup_logger
from sift.server import create_app


def main():
    settings = get_settings()

    parser = argparse.ArgumentParser(description="Run the sift HTTP service")
    parser.add_argument("--host", default=settings.host, help="Bind address")
    parser.add_argument("--port", "-p", type=int, default=settings.port, help="Bind port")
    args = parser.parse_args()

    setup_logger(level=settings.log_level)

    uvicorn.run(
        create_app(settings=settings),
        host=args.host,
        port=args.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
