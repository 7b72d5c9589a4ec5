#!/usr/bin/env python3
"""
X OAuth 2.0 Code Exchange

Exchanges the authorization code from the X redirect for an access token
and refresh token, using the PKCE verifier saved by pkce_helper.py. Tokens
are written to X_TOKEN_FILE (default: .x_tokens.json, mode 600) and the
verifier is discarded.

Usage:
    python scripts/exchange_code.py "<AUTHORIZATION_CODE>" [--state STATE]

Prerequisites:
    export X_CLIENT_ID='your_client_id'
    export X_REDIRECT_URI='your_redirect_uri'
    export X_CLIENT_SECRET='your_client_secret'   # confidential apps only
"""

import argparse
import logging
import sys
from pathlib import Path

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.credentials.authorization import complete_authorization
from src.credentials.config import XOAuthConfig
from src.credentials.exceptions import ConfigurationError, CredentialError, TokenEndpointError

# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Exchange an X authorization code for tokens",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("code", help="Authorization code from the redirect URL")
    parser.add_argument(
        "--state",
        help="State from the redirect URL (default: most recent pending authorization)",
    )
    args = parser.parse_args()

    try:
        config = XOAuthConfig.from_env()
        logger.info(f"Using {config.mode.value} client authentication")
        token_pair = complete_authorization(config, args.code, args.state)

    except ConfigurationError as e:
        logger.error(f"❌ Configuration error: {e}")
        return 1
    except TokenEndpointError as e:
        logger.error(f"❌ {e}")
        if e.error == "invalid_request":
            logger.error("   Check that X_REDIRECT_URI and the client type match the X app settings.")
        return 1
    except CredentialError as e:
        logger.error(f"❌ {e}")
        return 1

    logger.info("✅ Authorization complete!")
    logger.info(f"   Tokens saved to: {config.token_file}")
    if token_pair.refresh_token:
        logger.info("   Store the refresh_token as the X_OAUTH2_REFRESH_TOKEN repository secret.")
    else:
        logger.warning("   No refresh token returned; request the offline.access scope.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
