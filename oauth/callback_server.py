"""
Local HTTP server that receives the Google OAuth redirect
"""
import asyncio
import html
import logging
from typing import Optional
from urllib.parse import urlparse

from aiohttp import web

from settings import GOOGLE_REDIRECT_URI
from .callback_handler import ExchangeStatus, OAuthExchangeHandler

logger = logging.getLogger(__name__)


class OAuthCallbackServer:
    """Serves the redirect URI and hands the query to an OAuthExchangeHandler"""

    def __init__(self, handler: OAuthExchangeHandler, redirect_uri: Optional[str] = None):
        parsed = urlparse(redirect_uri or GOOGLE_REDIRECT_URI)
        self.host = parsed.hostname or "localhost"
        self.port = parsed.port or 80
        self.path = parsed.path or "/"

        self.handler = handler
        self.status: Optional[ExchangeStatus] = None
        self.app = web.Application()
        self.runner: Optional[web.AppRunner] = None
        self._event = asyncio.Event()

        self.app.router.add_get(self.path, self._handle_callback)

    async def _handle_callback(self, request: web.Request) -> web.Response:
        """Handle OAuth callback request"""
        status = await self.handler.handle_callback(request.query)
        self.status = status
        self._event.set()

        if status is ExchangeStatus.SUCCESS:
            return web.Response(
                text="""
                <html>
                    <body>
                        <h1>Signed in</h1>
                        <p>You can now close this window and return to the terminal.</p>
                    </body>
                </html>
                """,
                content_type="text/html",
            )

        message = html.escape(self.handler.error_message or "Sign-in failed")
        return web.Response(
            text=f"""
            <html>
                <body>
                    <h1>Sign-in failed</h1>
                    <p>{message}</p>
                    <p>Returning to the login page...</p>
                </body>
            </html>
            """,
            content_type="text/html",
            status=400,
        )

    async def start(self) -> None:
        """Start the callback server"""
        self.runner = web.AppRunner(self.app)
        await self.runner.setup()

        site = web.TCPSite(self.runner, host=self.host, port=self.port)
        await site.start()
        logger.info(f"OAuth callback server listening on {self.host}:{self.port}{self.path}")

    async def wait_for_callback(self, timeout: float = 300) -> Optional[ExchangeStatus]:
        """
        Wait for the provider to redirect back.

        Args:
            timeout: Maximum time to wait in seconds

        Returns:
            Terminal exchange status, or None on timeout
        """
        try:
            await asyncio.wait_for(self._event.wait(), timeout=timeout)
        except asyncio.TimeoutError:
            logger.error(f"OAuth callback timeout after {timeout} seconds")
            return None
        return self.status

    async def stop(self) -> None:
        """Stop the callback server"""
        if self.runner:
            await self.runner.cleanup()
            self.runner = None
