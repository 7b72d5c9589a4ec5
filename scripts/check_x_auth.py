#!/usr/bin/env python3
"""
X OAuth Authorization Check

Refreshes the access token from X_OAUTH2_REFRESH_TOKEN, publishes a
rotated refresh token to the repository secret (unless ROTATION_DRY_RUN is
set), and confirms the token works by looking up the bot account.

Running this consumes the stored refresh token exactly like a bot run.

Usage:
    python scripts/check_x_auth.py
"""

import argparse
import logging
import sys
from pathlib import Path

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.credentials.exceptions import ConfigurationError, TokenEndpointError
from src.credentials.rotation import PublishStatus
from src.credentials.session import CredentialSession
from src.x.exceptions import XAPIError

# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def check_authorization() -> int:
    """
    Refresh, publish and verify.

    Returns:
        Exit code (0 if authorized, 1 if not, 2 if authorized but the
        rotated refresh token could not be published)
    """
    try:
        session = CredentialSession.from_env()
        client = session.get_client()
        user = client.get_me()
    except ConfigurationError as e:
        logger.error(f"❌ Configuration error: {e}")
        return 1
    except TokenEndpointError as e:
        logger.error(f"❌ {e}")
        logger.error("   Re-authorize with scripts/pkce_helper.py and update the secret.")
        return 1
    except XAPIError as e:
        logger.error(f"❌ X API error: {e}")
        return 1

    logger.info(f"✅ Authorized as @{user.get('username', '?')}")

    outcome = session.publish_outcome
    if outcome is not None:
        logger.info(f"   Refresh token rotation: {outcome.status.value} ({outcome.reason})")
        if outcome.status is PublishStatus.FAILED:
            return 2
    return 0


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Check X OAuth authorization (refreshes the token once)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args()

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    return check_authorization()


if __name__ == "__main__":
    sys.exit(main())
