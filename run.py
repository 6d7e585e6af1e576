"""Bestiary CLI entry point.

Provides subcommands for running the JSON API server, creating the database
schema, loading the default catalog and creating user accounts. Accepts
configuration via flags and environment variables, with optional .env
loading.

Run `python run.py --help` for details.
"""

import argparse
import os
import signal
import sys
from pathlib import Path
from textwrap import dedent

from colorama import Fore, Style
from colorama import init as _color_init
from dotenv import load_dotenv

_color_init()

# Disable colors if output is not a real terminal (e.g., during pytest capture)
_COLOR_ENABLED = sys.stdout.isatty()

VERSION_FILE = Path(__file__).resolve().parent / "VERSION"


def _load_version() -> str:
    try:
        return VERSION_FILE.read_text(encoding="utf-8").strip()
    except OSError:
        return "0.0.0"


__version__ = _load_version()


def parse_args(argv: list[str]) -> argparse.Namespace:
    description = """
    Bestiary API Server

    Serve the creature/equipment JSON API, prepare the database or manage
    accounts. Configuration can be provided via CLI flags or environment
    variables. If both are present, CLI flags take precedence.
    """

    epilog = dedent(
        """
        Environment variables:
          HOST                 Bind address for the web server (default: 0.0.0.0)
          PORT                 Port for the web server (default: 5000)
          DATABASE_URL         SQLAlchemy database URI (default: sqlite:///instance/bestiary.db)
          BESTIARY_LOG_LEVEL   debug | info | warn | error (default: info)

        Examples:
          # Run the server on the default host and port
          python run.py server

          # Create tables and load the default armors, weapons, spells and goblin
          python run.py init-db
          python run.py seed

          # Create an account for API writes
          python run.py create-user gm@example.com 'S3cret!pass'
        """
    )

    parser = argparse.ArgumentParser(
        prog="Bestiary",
        description=dedent(description),
        epilog=epilog,
        formatter_class=argparse.RawTextHelpFormatter,
    )

    parser.add_argument(
        "--env-file",
        dest="env_file",
        help="Path to a .env file to load before processing flags",
    )
    parser.add_argument(
        "--db",
        dest="db_uri",
        default=None,
        help="Database URI (default: env DATABASE_URL or sqlite:///instance/bestiary.db)",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"Bestiary {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command")

    server_parser = subparsers.add_parser(
        "server",
        help="Run the JSON API server",
        formatter_class=argparse.RawTextHelpFormatter,
    )
    server_parser.add_argument(
        "--host",
        default=None,
        help="Host interface to bind (default: env HOST or 0.0.0.0)",
    )
    server_parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port to listen on (default: env PORT or 5000)",
    )
    server_parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable Flask debug mode with verbose error pages",
    )

    subparsers.add_parser("init-db", help="Create missing database tables")
    subparsers.add_parser("seed", help="Insert the default catalog (skips rows that already exist)")

    user_parser = subparsers.add_parser("create-user", help="Create a user account")
    user_parser.add_argument("email", help="Login email")
    user_parser.add_argument("password", help="Password (8+ chars, upper, lower, digit and symbol)")

    # If no subcommand provided, default to server
    if len(argv) == 0:
        argv = ["server"]

    args = parser.parse_args(argv)
    if args.command is None:
        args.command = "server"
    return args


def _banner(mode: str, host: str, port: int, db_banner: str) -> str:
    def paint(color: str, text) -> str:
        return f"{color}{text}{Style.RESET_ALL}" if _COLOR_ENABLED else str(text)

    divider = paint(Fore.MAGENTA, "=" * 40)
    lines = [
        divider,
        f"  {paint(Fore.CYAN + Style.BRIGHT, 'Bestiary ' + __version__)}",
        divider,
        f"  {paint(Fore.YELLOW, 'Mode:'):12} {paint(Fore.GREEN, mode.upper())}",
        f"  {paint(Fore.YELLOW, 'Host:'):12} {paint(Fore.GREEN, host)}",
        f"  {paint(Fore.YELLOW, 'Port:'):12} {paint(Fore.GREEN, port)}",
        f"  {paint(Fore.YELLOW, 'Database:'):12} {paint(Fore.GREEN, db_banner)}",
        divider,
        "",
    ]
    return "\n".join(lines)


def main(argv: list[str]) -> int:
    args = parse_args(argv)
    if args.env_file:
        load_dotenv(args.env_file)
    else:
        load_dotenv()

    host = getattr(args, "host", None) or os.getenv("HOST", "0.0.0.0")
    port = int(getattr(args, "port", None) or os.getenv("PORT", "5000"))

    # Make DATABASE_URL available to the Flask app BEFORE importing it
    if args.db_uri:
        os.environ["DATABASE_URL"] = args.db_uri
    db_banner = os.getenv("DATABASE_URL") or "auto (instance/bestiary.db)"

    def handle_sigint(sig, frame):
        print("\n[INFO] Shutting down...")
        sys.exit(0)

    signal.signal(signal.SIGINT, handle_sigint)

    mode = args.command

    # Import app modules only after the environment is ready
    from bestiary import app
    from bestiary.errors import ServiceError
    from bestiary.logging_utils import log
    from bestiary.server import init_db, seed_db, start_server

    print(_banner(mode, host, port, db_banner))
    log.info(event="startup", mode=mode, db=db_banner)

    if mode == "server":
        start_server(host=host, port=port, debug=args.debug)
        return 0
    if mode == "init-db":
        init_db()
        print("[INFO] Database ready")
        return 0
    if mode == "seed":
        counts = seed_db()
        print("[INFO] Seeded " + ", ".join(f"{kind}={n}" for kind, n in counts.items()))
        return 0
    if mode == "create-user":
        from bestiary.services.user_service import create_user

        init_db()
        with app.app_context():
            try:
                user = create_user({"email": args.email, "password": args.password})
            except ServiceError as exc:
                print(f"[ERROR] {exc}")
                return 1
            print(f"[INFO] Created user {user.email} (id={user.id})")
        return 0
    print(f"[ERROR] Unknown command: {mode}")
    return 2


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main(sys.argv[1:]))
