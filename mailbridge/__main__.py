"""
mailbridge.__main__ - CLI entry point for the API server

Usage:
    python -m mailbridge --host 0.0.0.0 --port 3000
"""

import argparse
import logging

import uvicorn

from mailbridge.settings import get_settings


def main() -> None:
    """Parse arguments and serve the API."""
    settings = get_settings()

    parser = argparse.ArgumentParser(
        prog="mailbridge",
        description="Serve the unified email provider gateway",
    )
    parser.add_argument(
        "--host",
        default=settings.api_host,
        help=f"Interface to bind (default: {settings.api_host})",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=settings.api_port,
        help=f"Port to listen on (default: {settings.api_port})",
    )
    parser.add_argument(
        "--log-level",
        default=settings.log_level.upper(),
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help=f"Logging level (default: {settings.log_level.upper()})",
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )
    logging.getLogger(__name__).info(f"Listening on {args.host}:{args.port}")

    uvicorn.run(
        "mailbridge.api.main:app",
        host=args.host,
        port=args.port,
        log_level=args.log_level.lower(),
        log_config=None,
    )


if __name__ == "__main__":
    main()
