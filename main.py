"""Command-line interface for the userhub service."""

from __future__ import annotations
import argparse
import logging
import sqlite3
import sys
from getpass import getpass
from typing import Sequence

from userhub.config import ConfigurationError, Settings, load_settings
from userhub.database import Database

logger = logging.getLogger("userhub.main")

_MIN_PASSWORD_LENGTH = 6
_MAX_PASSWORD_LENGTH = 72
_COMMANDS = ("serve", "init-db", "create-admin")


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="userhub service utilities")
    subparsers = parser.add_subparsers(dest="command")

    serve_parser = subparsers.add_parser("serve", help="Start the HTTP API (default)")
    serve_parser.add_argument("--host", default="0.0.0.0", help="Bind address for the API")
    serve_parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Listen port (default: USERHUB_PORT or 5300)",
    )

    subparsers.add_parser("init-db", help="Create the admin and user tables")

    admin_parser = subparsers.add_parser("create-admin", help="Create an admin account")
    admin_parser.add_argument("name", help="Display name for the admin")
    admin_parser.add_argument("email", help="Unique email address used to log in")

    args = list(sys.argv[1:] if argv is None else argv)
    # Bare options belong to serve; a leading -h still shows the top-level help.
    if not args or (args[0] not in _COMMANDS and args[0] not in ("-h", "--help")):
        args.insert(0, "serve")
    return parser.parse_args(args)


def _initialise_database(settings: Settings) -> Database:
    database = Database(settings.database_path, bcrypt_rounds=settings.bcrypt_rounds)
    try:
        database.initialize()
    except (OSError, sqlite3.Error) as exc:
        logger.error("Unable to open database at %s: %s", settings.database_path, exc)
        raise SystemExit(1) from exc
    logger.info("Database initialised at %s", settings.database_path)
    return database


def _serve(*, database: Database, settings: Settings, host: str, port: int) -> None:
    from userhub.api import create_app
    import uvicorn

    logger.info("Starting userhub API on http://%s:%s", host, port)
    app = create_app(database=database, settings=settings)
    uvicorn.run(app, host=host, port=port, log_level="info")


def _password_problem(password: str, confirmation: str) -> str | None:
    if len(password) < _MIN_PASSWORD_LENGTH:
        return f"Password must be at least {_MIN_PASSWORD_LENGTH} characters."
    if len(password) > _MAX_PASSWORD_LENGTH:
        return f"Password must be at most {_MAX_PASSWORD_LENGTH} characters."
    if password != confirmation:
        return "Passwords do not match."
    return None


def _prompt_for_password(attempts: int = 3) -> str | None:
    """Ask for the admin password, applying the same bounds as registration."""

    for _ in range(attempts):
        password = getpass("Password: ")
        problem = _password_problem(password, getpass("Confirm password: "))
        if problem is None:
            return password
        print(problem, file=sys.stderr)
    return None


def _create_admin(database: Database, name: str, email: str) -> int:
    password = _prompt_for_password()
    if password is None:
        print("No valid password entered; admin not created.", file=sys.stderr)
        return 1

    try:
        admin = database.create_admin(name, email, password)
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    print(f"Created admin {admin.id}: {admin.name} <{admin.email}>")
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for CLI usage."""

    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(message)s")

    args = _parse_args(argv)
    try:
        settings = load_settings()
    except ConfigurationError as exc:
        logger.error("%s", exc)
        return 1

    database = _initialise_database(settings)

    if args.command == "serve":
        _serve(
            database=database,
            settings=settings,
            host=args.host,
            port=args.port or settings.port,
        )
    elif args.command == "create-admin":
        return _create_admin(database, args.name, args.email)
    elif args.command == "init-db":
        print("Database initialisation complete.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
