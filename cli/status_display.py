"""Status display functionality for CLI"""

from rich.table import Table

from session.models import SessionState
from utils.storage import TokenStorage


def show_token_status(storage: TokenStorage, console):
    """
    Display stored-token details without revealing the token

    Args:
        storage: TokenStorage instance
        console: Rich console for output
    """
    status = storage.get_status()

    table = Table(title="Stored Credential")
    table.add_column("Property", style="cyan")
    table.add_column("Value")

    table.add_row("Has Token", "Yes" if status["has_token"] else "No")
    if status["saved_at"]:
        table.add_row("Saved At", status["saved_at"])
    if status["expires_at"]:
        table.add_row("Expires At", status["expires_at"])
        table.add_row("Time Until Expiry", status["time_until_expiry"])
    table.add_row("Token File", status["token_file"])

    console.print(table)


def show_session(state: SessionState, console):
    """
    Display the current session

    Args:
        state: Session state to display
        console: Rich console for output
    """
    if not state.is_authenticated or state.user is None:
        console.print("[yellow]Not logged in[/yellow]")
        return

    user = state.user
    table = Table(title="Current User")
    table.add_column("Property", style="cyan")
    table.add_column("Value")
    table.add_row("ID", str(user.id))
    table.add_row("Username", user.username)
    table.add_row("Email", user.email)
    table.add_row("Name", user.display_name or "-")
    console.print(table)
