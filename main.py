#!/usr/bin/env python3
"""
SessionGate -- operator command line.

Usage:
  python main.py serve
  python main.py serve --host 127.0.0.1 --port 9000 --reload
  python main.py create-admin --email admin@example.com --name "Site Admin"

Environment variables (see core/config.py for the full list):
  NODE_ENV             "production" enables Secure + SameSite=Strict cookies.
  JWT_SECRET           Access-token signing secret (>= 32 chars).
  JWT_REFRESH_SECRET   Refresh-token signing secret (>= 32 chars, different).
  DATABASE_URL         SQLAlchemy URL of the identity store.
"""

import argparse
import getpass
import sys

from auth.errors import AuthError
from auth.policy import password_violation
from auth.service import AuthService
from auth.store import UserStore
from auth.tokens import SigningKeys
from core.config import get_settings


def _serve(args: argparse.Namespace) -> int:
    import uvicorn

    settings = get_settings()
    uvicorn.run("asgi:app", host=args.host, port=args.port or settings.server_port, reload=args.reload)
    return 0


def _create_admin(args: argparse.Namespace) -> int:
    """Seed a super_admin identity. Prompts for the password so it never lands in shell history."""
    password = args.password or getpass.getpass("Password: ")
    violation = password_violation(password)
    if violation:
        print(f"  [!] {violation}")
        return 1

    settings = get_settings()
    store = UserStore(settings.database_url)
    try:
        service = AuthService(store, SigningKeys.from_settings(settings))
        identity = service.ensure_super_admin(args.name, args.email, password)
    except AuthError as exc:
        print(f"  [!] {exc.message}")
        return 1
    finally:
        store.close()

    print(f"  Super admin ready: {identity.email} ({identity.id})")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="sessiongate",
        description="Credential authentication service with rotating JWT sessions.",
    )
    sub = parser.add_subparsers(dest="command", metavar="COMMAND")

    serve = sub.add_parser("serve", help="Run the HTTP API with uvicorn")
    serve.add_argument("--host", default="0.0.0.0", help="Bind address (default: 0.0.0.0)")
    serve.add_argument("--port", type=int, default=None, help="Port (default: SERVER_PORT or 8000)")
    serve.add_argument("--reload", action="store_true", help="Reload on code changes (development only)")
    serve.set_defaults(func=_serve)

    admin = sub.add_parser("create-admin", help="Create a super_admin identity if it does not exist")
    admin.add_argument("--email", required=True)
    admin.add_argument("--name", default="Super Admin")
    admin.add_argument("--password", default=None, help="Omit to be prompted")
    admin.set_defaults(func=_create_admin)

    args = parser.parse_args(argv)
    if not getattr(args, "func", None):
        parser.print_help()
        return 0
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
