"""
Main entry point for the News Aggregator API
"""

import argparse

import uvicorn

from src.utils.logger import setup_logging
from src.web.config import settings


def parse_args():
    parser = argparse.ArgumentParser(description="News Aggregator API server")
    parser.add_argument("--host", default="0.0.0.0", help="Interface to bind")
    parser.add_argument("--port", type=int, default=3000, help="Port to listen on")
    parser.add_argument("--reload", action="store_true", help="Reload on code changes")
    parser.add_argument("--log-level", default=settings.log_level, help="Log level")
    return parser.parse_args()


def main():
    args = parse_args()
    setup_logging(args.log_level.upper(), settings.log_file)

    uvicorn.run(
        "src.web.app:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_config=None,
    )


if __name__ == "__main__":
    main()
