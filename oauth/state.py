"""Anti-forgery state nonce for the OAuth redirect"""

import json
import logging
import secrets
from pathlib import Path
from typing import Optional

from settings import OAUTH_STATE_FILE

logger = logging.getLogger(__name__)


class OAuthStateManager:
    """Generates, stores and consumes the single-use OAuth state nonce

    The nonce is persisted to a transient file so that the process handling
    the provider's redirect can verify it even if it is not the one that
    started the flow.
    """

    def __init__(self, state_file: Optional[str] = None):
        self.state_file = Path(state_file if state_file else OAUTH_STATE_FILE)

    def generate_state(self) -> str:
        """Create a fresh nonce and store it, replacing any previous one"""
        state = secrets.token_urlsafe(32)
        self.save_state(state)
        return state

    def save_state(self, state: str):
        self.state_file.write_text(json.dumps({"state": state}))
        try:
            self.state_file.chmod(0o600)
        except OSError:
            logger.debug(f"Could not restrict permissions on {self.state_file}")

    def load_state(self) -> Optional[str]:
        """Load the stored nonce, or None if there is none"""
        if self.state_file.exists():
            try:
                data = json.loads(self.state_file.read_text())
                return data.get("state")
            except (json.JSONDecodeError, OSError, AttributeError):
                logger.warning("Stored OAuth state is unreadable")
        return None

    def clear_state(self):
        if self.state_file.exists():
            self.state_file.unlink()

    def consume(self, returned_state: Optional[str]) -> bool:
        """Compare the provider's nonce with the stored one

        The stored nonce is discarded whatever the outcome.

        Returns:
            True if both are present and equal
        """
        expected = self.load_state()
        self.clear_state()

        if not expected or not returned_state:
            return False
        return secrets.compare_digest(expected, returned_state)
