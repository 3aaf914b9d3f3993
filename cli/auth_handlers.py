"""Authentication handlers for CLI

Each handler runs one command against a SessionClient and returns a process
exit code.
"""

import logging
from typing import Optional
from urllib.parse import parse_qsl, urlparse

from rich.prompt import Confirm, Prompt

import settings
from oauth import ExchangeStatus, GoogleOAuthManager, OAuthStateManager
from session import SessionClient, SessionError
from cli.status_display import show_session, show_token_status

logger = logging.getLogger(__name__)


def _print_error(console, error: SessionError):
    console.print(f"[red]ERROR:[/red] {error}")
    if error.detail:
        console.print(f"[dim]{error.detail}[/dim]")


async def login(session: SessionClient, console, email: Optional[str] = None) -> int:
    """Prompt for email and password and log in"""
    email = email or Prompt.ask("Email")
    password = Prompt.ask("Password", password=True)

    try:
        user = await session.login(email, password)
    except SessionError as e:
        _print_error(console, e)
        return 1

    console.print(f"[green]Logged in as {user.username}[/green]")
    return 0


async def signup(session: SessionClient, console) -> int:
    """Create an account and log in"""
    username = Prompt.ask("Username")
    email = Prompt.ask("Email")
    password = Prompt.ask("Password", password=True)
    confirm = Prompt.ask("Confirm password", password=True)
    if password != confirm:
        console.print("[red]Passwords do not match[/red]")
        return 1

    try:
        user = await session.signup(username, email, password)
    except SessionError as e:
        _print_error(console, e)
        return 1

    console.print(f"[green]Account created, logged in as {user.username}[/green]")
    return 0


async def logout(session: SessionClient, console) -> int:
    """Log out; local credentials are removed even if the server is unreachable"""
    await session.logout()
    console.print("[green]Logged out[/green]")
    return 0


async def whoami(session: SessionClient, console) -> int:
    """Restore the stored session and show who is logged in"""
    state = await session.restore()
    show_session(state, console)
    return 0 if state.is_authenticated else 1


def status(session: SessionClient, console) -> int:
    """Show stored-credential details"""
    show_token_status(session.token_store, console)
    return 0


async def delete_account(session: SessionClient, console) -> int:
    """Delete the logged-in account after confirmation"""
    state = await session.restore()
    if not state.is_authenticated:
        console.print("[yellow]Not logged in[/yellow]")
        return 1

    if not Confirm.ask(f"Delete account {state.user.username}? This cannot be undone"):
        console.print("Cancelled")
        return 1

    try:
        await session.delete_me()
    except SessionError as e:
        _print_error(console, e)
        return 1

    console.print("[green]Account deleted[/green]")
    return 0


async def google_login(session: SessionClient, console, paste: bool = False, open_browser: bool = True) -> int:
    """
    Run the Google authorization-code flow

    Args:
        session: SessionClient instance
        console: Rich console for output
        paste: Ask for the redirected URL instead of running a callback server
        open_browser: Whether to open the authorization URL automatically
    """
    if not settings.GOOGLE_CLIENT_ID:
        console.print("[red]GOOGLE_CLIENT_ID is not configured[/red]")
        return 1

    oauth = GoogleOAuthManager(session, state_manager=OAuthStateManager(settings.OAUTH_STATE_FILE))

    def navigate(path: str):
        logger.debug(f"[CLI] Navigation requested: {path}")

    if paste:
        handler = oauth.create_callback_handler(navigate, error_redirect_delay=0)
        server = None
    else:
        server = oauth.create_callback_server(navigate)
        handler = server.handler
        await server.start()

    try:
        console.print("\n[bold]Step 1:[/bold] Sign in with Google in your browser")
        if open_browser:
            auth_url = oauth.start_login_flow()
            console.print(f"If your browser did not open, visit this URL:\n{auth_url}")
        else:
            auth_url = oauth.get_authorize_url()
            console.print(f"Please open this URL manually:\n{auth_url}")

        if paste:
            console.print("\n[bold]Step 2:[/bold] Paste the URL your browser was redirected to")
            callback_url = Prompt.ask("Callback URL").strip()
            result = await handler.handle_callback(dict(parse_qsl(urlparse(callback_url).query)))
        else:
            console.print("\n[bold]Step 2:[/bold] Waiting for Google to redirect back...")
            result = await server.wait_for_callback(timeout=settings.OAUTH_CALLBACK_TIMEOUT)
    finally:
        if server is not None:
            await server.stop()

    if result is ExchangeStatus.SUCCESS:
        show_session(session.state, console)
        return 0

    if result is None:
        console.print("[red]Timed out waiting for Google sign-in[/red]")
    else:
        console.print(f"[red]Google sign-in failed:[/red] {handler.error_message}")
    return 1
