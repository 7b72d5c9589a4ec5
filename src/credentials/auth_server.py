"""
OAuth callback server for the X authorization-code flow.

Listens on the host/port/path of the registered redirect URI (normally a
loopback address such as http://127.0.0.1:8765/callback), captures the
authorization code, and shuts down after one callback. The ``state`` echoed
by X must match the one the PKCE verifier was stored under.

IMPORTANT: This server is designed for single-user, personal use during
manual authorization only. The scheduled bot never runs it.
"""

import logging
import threading
import time
import webbrowser
from dataclasses import dataclass
from html import escape
from typing import Optional
from urllib.parse import urlparse

from flask import Flask, Response, request

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

_PAGE = """<html>
<head><title>{title}</title></head>
<body style="font-family: Arial, sans-serif; max-width: 600px; margin: 50px auto; padding: 20px;">
    <h1>{title}</h1>
    <p>{message}</p>
    <p style="margin-top: 30px; color: #666;">You can close this window.</p>
</body>
</html>"""


@dataclass
class AuthorizationResult:
    """
    Result of OAuth authorization flow.

    Attributes:
        success: Whether authorization succeeded
        authorization_code: Authorization code from callback (if successful)
        state: State echoed back by the provider
        error: Error code from OAuth provider (if failed)
        error_description: Human-readable error description (if failed)
    """

    success: bool
    authorization_code: Optional[str] = None
    state: Optional[str] = None
    error: Optional[str] = None
    error_description: Optional[str] = None


class OAuthCallbackServer:
    """
    Local HTTP server to handle the OAuth redirect.

    The server:
    1. Binds to the redirect URI's host and port
    2. Waits for the provider's redirect
    3. Verifies state and records the code or error
    4. Signals the waiting thread
    """

    def __init__(self, redirect_uri: str, expected_state: str):
        """
        Initialize callback server.

        Args:
            redirect_uri: Registered redirect URI to listen on
            expected_state: State the authorization URL was built with

        Raises:
            ConfigurationError: If the redirect URI has no usable host/port
        """
        parsed = urlparse(redirect_uri)
        if parsed.scheme != "http" or not parsed.hostname:
            raise ConfigurationError(
                f"Cannot listen on {redirect_uri!r}; use an http://127.0.0.1:<port>/... redirect URI"
            )

        self.host = parsed.hostname
        self.port = parsed.port or 80
        self.path = parsed.path or "/"
        self.expected_state = expected_state

        self.app = Flask(__name__)
        self.app.logger.setLevel(logging.WARNING)
        self.server: Optional[threading.Thread] = None
        self.result: Optional[AuthorizationResult] = None
        self._shutdown_event = threading.Event()

        self.app.add_url_rule(self.path, "oauth_callback", self._handle_callback, methods=["GET"])

    def _finish(self, result: AuthorizationResult, title: str, message: str, status: int) -> Response:
        self.result = result
        self._shutdown_event.set()
        return Response(
            _PAGE.format(title=escape(title), message=escape(message)),
            status=status,
            content_type="text/html",
        )

    def _handle_callback(self) -> Response:
        """Handle OAuth redirect from X."""
        logger.info("Received OAuth callback")
        state = request.args.get("state")

        error = request.args.get("error")
        if error:
            error_desc = request.args.get("error_description", "Unknown error")
            logger.error(f"OAuth error: {error} - {error_desc}")
            return self._finish(
                AuthorizationResult(
                    success=False, state=state, error=error, error_description=error_desc
                ),
                "Authorization Failed",
                f"{error}: {error_desc}",
                400,
            )

        if state != self.expected_state:
            logger.error("OAuth callback state does not match the pending authorization")
            return self._finish(
                AuthorizationResult(
                    success=False,
                    state=state,
                    error="state_mismatch",
                    error_description="Callback state does not match the pending authorization",
                ),
                "Authorization Failed",
                "The callback state does not match. Start the authorization again.",
                400,
            )

        code = request.args.get("code")
        if not code:
            logger.error("No authorization code in callback")
            return self._finish(
                AuthorizationResult(
                    success=False,
                    state=state,
                    error="missing_code",
                    error_description="No authorization code received",
                ),
                "Authorization Failed",
                "No authorization code received from X.",
                400,
            )

        logger.info("Authorization code received successfully")
        return self._finish(
            AuthorizationResult(success=True, authorization_code=code, state=state),
            "Authorization Successful",
            "The bot has been authorized. Return to the terminal.",
            200,
        )

    def start(self) -> None:
        """Start the callback server in a background thread."""
        logger.info(f"Starting OAuth callback server on {self.host}:{self.port}{self.path}")

        def run_server():
            try:
                self.app.run(
                    host=self.host,
                    port=self.port,
                    debug=False,
                    use_reloader=False,
                    threaded=True,
                )
            except OSError as e:
                logger.error(f"Server error: {e}")
                self.result = AuthorizationResult(
                    success=False,
                    error="server_error",
                    error_description=f"Server failed to start: {e}",
                )
                self._shutdown_event.set()

        self.server = threading.Thread(target=run_server, daemon=True)
        self.server.start()

        # Give server a moment to start
        time.sleep(1)

    def wait_for_callback(self, timeout: int = 300) -> AuthorizationResult:
        """
        Wait for OAuth callback.

        Args:
            timeout: Maximum seconds to wait (default: 300 = 5 minutes)

        Returns:
            AuthorizationResult with code or error
        """
        logger.info(f"Waiting for OAuth callback (timeout: {timeout}s)")

        if self._shutdown_event.wait(timeout=timeout):
            return self.result or AuthorizationResult(
                success=False,
                error="unknown",
                error_description="Server shutdown without result",
            )

        logger.warning(f"Timeout waiting for callback after {timeout}s")
        return AuthorizationResult(
            success=False,
            error="timeout",
            error_description=f"No callback received within {timeout} seconds.",
        )

    def stop(self) -> None:
        """
        Stop the callback server.

        Flask's development server has no graceful shutdown; the daemon thread
        ends with the process.
        """
        if self.server:
            logger.info("OAuth callback server shutting down")
            self._shutdown_event.set()


def run_authorization_flow(
    authorization_url: str,
    redirect_uri: str,
    state: str,
    open_browser: bool = True,
    timeout: int = 300,
) -> AuthorizationResult:
    """
    Open the authorization URL and wait for the redirect.

    Args:
        authorization_url: URL built by build_authorization_url
        redirect_uri: Redirect URI to listen on
        state: State the URL was built with
        open_browser: Whether to automatically open browser (default: True)
        timeout: Seconds to wait for callback (default: 300)

    Returns:
        AuthorizationResult with authorization code or error
    """
    server = OAuthCallbackServer(redirect_uri, state)

    try:
        server.start()

        print("\n" + "=" * 70)
        print("X OAUTH 2.0 AUTHORIZATION")
        print("=" * 70)
        print("\nPlease authorize the bot account by visiting:")
        print(f"\n  {authorization_url}\n")

        if open_browser:
            try:
                webbrowser.open(authorization_url)
            except webbrowser.Error as e:
                logger.warning(f"Could not open browser automatically: {e}")
                print("Copy the URL above and paste it in your browser.")

        print("Waiting for authorization...")
        print("=" * 70 + "\n")

        result = server.wait_for_callback(timeout)

        if not result.success:
            logger.error(
                f"Authorization flow failed: {result.error} - {result.error_description}"
            )
        return result

    finally:
        server.stop()
