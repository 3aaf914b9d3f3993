"""CLI entry point and argument parsing"""

import argparse
import asyncio
import sys

from rich.console import Console

from cli import auth_handlers
from cli.debug_setup import setup_logging
from session import SessionClient


console = Console()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Community site session client")
    parser.add_argument("--debug", "-d", action="store_true", help="Enable debug logging")
    parser.add_argument("--api", default=None, help="Override API base URL (default: from config)")

    commands = parser.add_subparsers(dest="command", required=True)

    login_parser = commands.add_parser("login", help="Log in with email and password")
    login_parser.add_argument("--email", default=None, help="Email address (prompted if omitted)")

    commands.add_parser("signup", help="Create an account and log in")
    commands.add_parser("logout", help="Log out and remove the stored credential")
    commands.add_parser("whoami", help="Restore the stored session and show the current user")
    commands.add_parser("status", help="Show stored-credential details")
    commands.add_parser("delete-account", help="Delete the logged-in account")

    google_parser = commands.add_parser("google-login", help="Sign in with Google")
    google_parser.add_argument(
        "--paste",
        action="store_true",
        help="Paste the redirected URL instead of running a local callback server"
    )
    google_parser.add_argument("--no-browser", action="store_true", help="Print the URL instead of opening it")

    return parser


async def run_command(args: argparse.Namespace, console) -> int:
    async with SessionClient(base_url=args.api) as session:
        session.on_session_expired(lambda error: console.print("[yellow]Session expired, please log in again[/yellow]"))

        if args.command == "login":
            return await auth_handlers.login(session, console, email=args.email)
        if args.command == "signup":
            return await auth_handlers.signup(session, console)
        if args.command == "logout":
            return await auth_handlers.logout(session, console)
        if args.command == "whoami":
            return await auth_handlers.whoami(session, console)
        if args.command == "status":
            return auth_handlers.status(session, console)
        if args.command == "delete-account":
            return await auth_handlers.delete_account(session, console)
        if args.command == "google-login":
            return await auth_handlers.google_login(
                session, console, paste=args.paste, open_browser=not args.no_browser
            )

    raise ValueError(f"Unknown command: {args.command}")


def main(argv=None):
    """Entry point for the CLI"""
    global console

    args = build_parser().parse_args(argv)
    console = setup_logging(args.debug)

    try:
        exit_code = asyncio.run(run_command(args, console))
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        exit_code = 130
    except Exception as e:
        console.print(f"\n[red]Fatal error:[/red] {e}")
        if args.debug:
            import traceback
            traceback.print_exc()
        exit_code = 1

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
