#!/usr/bin/env python
"""
Serve Photogram with uvicorn.

    python run.py --create-tables --no-reload
"""

import argparse
import asyncio
import logging

import uvicorn

from photogram.utils.create_tables import create_database_tables

logger = logging.getLogger("photogram")


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the Photogram API server")
    parser.add_argument("--host", default="127.0.0.1", help="Interface to listen on")
    parser.add_argument("--port", type=int, default=8000, help="Port to listen on")
    parser.add_argument("--no-reload", action="store_false", dest="reload", help="Disable auto-reload")
    parser.add_argument("--workers", type=int, default=1, help="Worker processes (ignored with reload)")
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    parser.add_argument("--create-tables", action="store_true", help="Create the schema before serving")
    return parser.parse_args(argv)


def main(argv=None) -> None:
    args = parse_args(argv)
    logging.basicConfig(
        level=args.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if args.create_tables:
        asyncio.run(create_database_tables())

    logger.info("Serving photogram.main:app on %s:%s", args.host, args.port)
    uvicorn.run(
        "photogram.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        workers=None if args.reload else args.workers,
        log_level=args.log_level.lower(),
    )


if __name__ == "__main__":
    main()
