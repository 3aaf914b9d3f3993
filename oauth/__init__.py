"""Google OAuth sign-in for the community session client"""

from typing import Optional

from session.errors import SessionError
from session.models import User

from .state import OAuthStateManager
from .authorization import AuthorizationURLBuilder
from .token_exchange import exchange_code, exchange_id_token
from .callback_handler import ExchangeStatus, OAuthExchangeHandler, Navigate
from .callback_server import OAuthCallbackServer


class GoogleOAuthManager:
    """Google authorization-code flow orchestration

    This class ties together:
    - state nonce generation and storage
    - authorization URL construction
    - a callback handler bound to a session client
    """

    def __init__(self, session_client, state_manager: Optional[OAuthStateManager] = None,
                 redirect_uri: Optional[str] = None):
        self.session = session_client
        self.state_manager = state_manager or OAuthStateManager()
        self.redirect_uri = redirect_uri
        self.auth_builder = AuthorizationURLBuilder(self.state_manager, redirect_uri=redirect_uri)

    def get_authorize_url(self) -> str:
        """Construct the provider URL with a fresh state nonce"""
        return self.auth_builder.get_authorize_url()

    def start_login_flow(self) -> str:
        """Open the provider URL in the system browser"""
        return self.auth_builder.start_login_flow()

    async def login_with_id_token(self, id_token: str) -> User:
        """One-shot sign-in with a Google ID token obtained by the host

        Raises:
            OAuthExchangeFailed: The backend rejected the ID token
        """
        session_store = self.session.session_store
        session_store.begin_loading()
        try:
            access_token = await exchange_id_token(self.session.client, id_token)
            user = await self.session.auth.establish(access_token)
        except SessionError as e:
            session_store.fail(e.kind)
            raise
        return user

    def create_callback_handler(self, navigate: Navigate,
                                error_redirect_delay: Optional[float] = None) -> OAuthExchangeHandler:
        """Create the handler for one arrival at the redirect URI"""
        return OAuthExchangeHandler(
            client=self.session.client,
            token_store=self.session.token_store,
            state_manager=self.state_manager,
            restorer=self.session.restorer,
            session_store=self.session.session_store,
            navigate=navigate,
            redirect_uri=self.redirect_uri,
            error_redirect_delay=error_redirect_delay,
        )

    def create_callback_server(self, navigate: Navigate) -> OAuthCallbackServer:
        """Create a local server bound to the redirect URI"""
        return OAuthCallbackServer(self.create_callback_handler(navigate), redirect_uri=self.redirect_uri)


__all__ = [
    "GoogleOAuthManager",
    "OAuthStateManager",
    "AuthorizationURLBuilder",
    "exchange_code",
    "exchange_id_token",
    "ExchangeStatus",
    "OAuthExchangeHandler",
    "OAuthCallbackServer",
]
