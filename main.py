#!/usr/bin/env python3
"""
SmartPlatform -- token-authenticated platform API and its admin tool.

Usage:
  python main.py serve
  python main.py serve --host 0.0.0.0 --port 8080
  python main.py create-role ADMIN
  python main.py create-user alice --password s3cret --role ADMIN --role USER
  python main.py create-user bob --password s3cret --disabled
  python main.py set-enabled bob true

Environment variables (see core/config.py for the full list):
  SECRET_KEY    JWT signing key, at least 32 characters. Required unless DEBUG=true.
  DATABASE_URL  SQLAlchemy URL of the account database. Defaults to ./smartplatform.db.
"""

import argparse
import sys

from sqlalchemy.exc import IntegrityError

from auth.models import Role, User, UserRole
from auth.store import UserStore
from auth.tokens import hash_password
from auth.user_roles import UserRoleStore


def _serve(args: argparse.Namespace) -> int:
    import uvicorn

    uvicorn.run("api.main:app", host=args.host, port=args.port, reload=args.reload)
    return 0


def _create_role(args: argparse.Namespace) -> int:
    store = UserStore()
    try:
        role_id = store.create_role(Role(name=args.name))
    except IntegrityError:
        print(f"  [!] Role '{args.name}' already exists.")
        return 1
    finally:
        store.close()
    print(f"Created role '{args.name}' (id={role_id}).")
    return 0


def _create_user(args: argparse.Namespace) -> int:
    """Create an account and grant each --role, creating missing roles on the way."""
    store = UserStore()
    grants = UserRoleStore()
    try:
        try:
            user_id = store.create_user(
                User(
                    username=args.username,
                    hashed_password=hash_password(args.password),
                    enabled=not args.disabled,
                )
            )
        except IntegrityError:
            print(f"  [!] User '{args.username}' already exists.")
            return 1

        for name in dict.fromkeys(args.role):
            role = store.get_role_by_name(name)
            role_id = role.id if role is not None else store.create_role(Role(name=name))
            grants.save(UserRole(user_id=user_id, role_id=role_id))
    finally:
        grants.close()
        store.close()

    state = "disabled" if args.disabled else "enabled"
    roles = ", ".join(dict.fromkeys(args.role)) or "none"
    print(f"Created user '{args.username}' (id={user_id}, {state}, roles: {roles}).")
    return 0


def _set_enabled(args: argparse.Namespace) -> int:
    store = UserStore()
    try:
        found = store.set_enabled(args.username, args.enabled == "true")
    finally:
        store.close()
    if not found:
        print(f"  [!] No such user '{args.username}'.")
        return 1
    print(f"User '{args.username}' is now {'enabled' if args.enabled == 'true' else 'disabled'}.")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="SmartPlatform -- token-authenticated platform API.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    sub = parser.add_subparsers(dest="command")

    serve = sub.add_parser("serve", help="Run the HTTP API with uvicorn.")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)
    serve.add_argument("--reload", action="store_true", help="Reload on code changes (development).")
    serve.set_defaults(func=_serve)

    role = sub.add_parser("create-role", help="Create a role.")
    role.add_argument("name")
    role.set_defaults(func=_create_role)

    user = sub.add_parser("create-user", help="Create a local account.")
    user.add_argument("username")
    user.add_argument("--password", required=True)
    user.add_argument("--role", action="append", default=[], metavar="NAME", help="Grant a role (repeatable).")
    user.add_argument("--disabled", action="store_true", help="Create the account disabled.")
    user.set_defaults(func=_create_user)

    enabled = sub.add_parser("set-enabled", help="Enable or disable an account.")
    enabled.add_argument("username")
    enabled.add_argument("enabled", choices=["true", "false"])
    enabled.set_defaults(func=_set_enabled)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not getattr(args, "func", None):
        parser.print_help()
        return 0
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
