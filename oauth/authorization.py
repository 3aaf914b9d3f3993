"""Google OAuth authorization URL construction"""

import webbrowser
from typing import Optional
from urllib.parse import urlencode

from settings import GOOGLE_AUTHORIZE_URL, GOOGLE_CLIENT_ID, GOOGLE_REDIRECT_URI, GOOGLE_SCOPES
from .state import OAuthStateManager


class AuthorizationURLBuilder:
    """Builds the provider authorization URL with a fresh state nonce"""

    def __init__(
        self,
        state_manager: OAuthStateManager,
        client_id: Optional[str] = None,
        redirect_uri: Optional[str] = None
    ):
        self.state_manager = state_manager
        self.client_id = client_id if client_id is not None else GOOGLE_CLIENT_ID
        self.redirect_uri = redirect_uri or GOOGLE_REDIRECT_URI

    def get_authorize_url(self) -> str:
        """Construct the Google authorization-code URL

        Returns:
            Full authorization URL
        """
        state = self.state_manager.generate_state()

        params = {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "scope": GOOGLE_SCOPES,
            "state": state,
            "access_type": "offline",
            "prompt": "select_account",
        }

        return f"{GOOGLE_AUTHORIZE_URL}?{urlencode(params)}"

    def start_login_flow(self) -> str:
        """Start the OAuth login flow by opening browser

        Returns:
            Authorization URL that was opened
        """
        auth_url = self.get_authorize_url()
        webbrowser.open(auth_url)
        return auth_url
