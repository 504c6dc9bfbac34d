#!/usr/bin/env python3
"""
Bookman -- book catalog service with user accounts.

Usage:
  python main.py
  python main.py --port 9000
  python main.py --host 127.0.0.1 --reload

Environment variables (see core/config.py for the full list):
  DATABASE_HOST, DATABASE_PORT, DATABASE_NAME,
  DATABASE_USERNAME, DATABASE_PASSWORD   PostgreSQL connection (defaults: localhost:5432/book_manager, admin/admin)
  DATABASE_URL                           Full SQLAlchemy URL; overrides the five above
  TOKEN_EXPIRE_SECONDS                   Access token lifetime (default 600 = 10 minutes)
  SECRET_KEY                             Token signing key; random per process when unset
"""

import argparse

import uvicorn


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Run the Bookman HTTP API.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--host", default="0.0.0.0", help="Interface to bind (default: 0.0.0.0)")  # nosec B104
    parser.add_argument("--port", type=int, default=8080, help="Port to listen on (default: 8080)")
    parser.add_argument("--reload", action="store_true", help="Restart on code changes (development only)")
    parser.add_argument(
        "--log-level",
        default="info",
        choices=["critical", "error", "warning", "info", "debug"],
        help="uvicorn log level (default: info)",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    args = _build_parser().parse_args(argv)
    uvicorn.run(
        "api.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=args.log_level,
    )


if __name__ == "__main__":
    main()
