#!/usr/bin/env python3
"""
Members Portal -- sign up, log in, and visit the members area.

Usage:
  python main.py serve
  python main.py serve --host 0.0.0.0 --port 8000
  python main.py serve --reload
  python main.py purge-sessions

Environment variables (see core/config.py for the full list):
  SECRET_KEY     Required unless DEBUG=true. At least 32 characters.
  DEBUG          true to auto-generate a throwaway SECRET_KEY for local use.
  DATABASE_URL   SQLAlchemy URL for users and sessions. Default: sqlite file
                 portal.db next to this script.
"""

import argparse
import sys

from core.config import get_settings


def _serve(args: argparse.Namespace) -> int:
    import uvicorn

    uvicorn.run("asgi:app", host=args.host, port=args.port, reload=args.reload)
    return 0


def _purge_sessions(args: argparse.Namespace) -> int:
    """Delete expired session rows once and report how many were removed."""
    from auth.errors import StoreUnavailableError
    from auth.sessions import SessionStore

    settings = get_settings()
    try:
        store = SessionStore(settings.database_url, ttl=settings.session_ttl_seconds)
    except StoreUnavailableError as exc:
        print(f"  [!] {exc.message}", file=sys.stderr)
        return 1
    try:
        removed = store.purge_expired()
    except StoreUnavailableError as exc:
        print(f"  [!] {exc.message}", file=sys.stderr)
        return 1
    finally:
        store.close()
    print(f"  Purged {removed} expired session(s).")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="portal",
        description="Members Portal -- session-authenticated members area.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the web server with uvicorn.")
    serve.add_argument("--host", default="127.0.0.1", help="Bind address (default: 127.0.0.1)")
    serve.add_argument("--port", type=int, default=3000, help="Port (default: 3000)")
    serve.add_argument("--reload", action="store_true", help="Restart on code changes (development only)")
    serve.set_defaults(func=_serve)

    purge = sub.add_parser("purge-sessions", help="Delete expired sessions from the store.")
    purge.set_defaults(func=_purge_sessions)
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
