#!/usr/bin/env python3
"""
X OAuth 2.0 PKCE Helper

Generates a PKCE code verifier/challenge pair, stores the verifier in the
PKCE file keyed by ``state``, and prints the authorization URL to open as
the bot account.

After approving the app, X redirects to X_REDIRECT_URI with ?code=...
Exchange it with:
    python scripts/exchange_code.py "<AUTHORIZATION_CODE>" --state <STATE>

Or let this script listen on a loopback redirect URI and exchange the code
immediately:
    python scripts/pkce_helper.py --listen

Usage:
    X_CLIENT_ID=... X_REDIRECT_URI=... python scripts/pkce_helper.py

Optional environment variables:
    X_SCOPES   (default: tweet.write tweet.read users.read offline.access)
    STATE      (default: random)
"""

import argparse
import logging
import os
import sys
from pathlib import Path

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.credentials.authorization import complete_authorization
from src.credentials.config import XOAuthConfig
from src.credentials.exceptions import ConfigurationError, CredentialError
from src.credentials.pkce import (
    PKCERecord,
    PKCEStore,
    build_authorization_url,
    generate_pkce_pair,
    generate_state,
)

# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def listen_and_exchange(config: XOAuthConfig, state: str, url: str, open_browser: bool) -> int:
    """
    Capture the redirect locally and exchange the code right away.

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    from src.credentials.auth_server import run_authorization_flow

    result = run_authorization_flow(url, config.redirect_uri, state, open_browser=open_browser)
    if not result.success:
        logger.error(f"❌ Authorization failed: {result.error} - {result.error_description}")
        return 1

    token_pair = complete_authorization(config, result.authorization_code, state)
    logger.info(f"✅ Tokens saved to {config.token_file}")
    if token_pair.refresh_token:
        logger.info("Store the refresh_token from that file as the X_OAUTH2_REFRESH_TOKEN secret.")
    else:
        logger.warning("No refresh token returned; request the offline.access scope.")
    return 0


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Generate a PKCE pair and X authorization URL",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--silent",
        action="store_true",
        help="Only save the verifier, do not print the URL",
    )
    parser.add_argument(
        "--listen",
        action="store_true",
        help="Listen on X_REDIRECT_URI for the callback and exchange the code",
    )
    parser.add_argument(
        "--no-browser",
        action="store_true",
        help="With --listen, don't open a browser (display URL only)",
    )
    args = parser.parse_args()

    try:
        config = XOAuthConfig.from_env()
        if not config.redirect_uri:
            raise ConfigurationError("Missing env: X_REDIRECT_URI is required")

        state = os.environ.get("STATE") or generate_state()
        pair = generate_pkce_pair()
        PKCEStore(config.pkce_file).save(
            PKCERecord(
                state=state,
                code_verifier=pair.verifier,
                client_id=config.client_id,
                redirect_uri=config.redirect_uri,
                scope=config.scope,
            )
        )
        url = build_authorization_url(
            client_id=config.client_id,
            redirect_uri=config.redirect_uri,
            scope=config.scope,
            state=state,
            code_challenge=pair.challenge,
            authorization_url=config.authorization_url,
        )

        if args.listen:
            return listen_and_exchange(config, state, url, open_browser=not args.no_browser)

    except CredentialError as e:
        logger.error(f"❌ {e}")
        return 1

    if args.silent:
        print(f"Saved PKCE verifier to {config.pkce_file}")
        return 0

    print("code_challenge:")
    print(pair.challenge)
    print("\nauthorize URL:")
    print(url)
    print(f"\nstate: {state}")
    print(f"(verifier saved to {config.pkce_file})")
    print("\nNext: open the URL as the bot account, then run:")
    print(f'  python scripts/exchange_code.py "<AUTHORIZATION_CODE>" --state {state}')
    return 0


if __name__ == "__main__":
    sys.exit(main())
