"""
Configuration management for the Messenger transport.

Loads environment variables from .env file and provides typed access to configuration.
"""

import logging
import os
from pathlib import Path
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# Load environment variables from .env file
env_path = Path(__file__).parent / ".env"
load_dotenv(env_path)


class Config:
    """Configuration class for the Messenger transport."""

    # Facebook App / Page credentials
    FACEBOOK_VERIFY_TOKEN = os.getenv("FACEBOOK_VERIFY_TOKEN", "")
    FACEBOOK_APP_SECRET = os.getenv("FACEBOOK_APP_SECRET", "")
    FACEBOOK_ACCESS_TOKEN = os.getenv("FACEBOOK_ACCESS_TOKEN", "")

    # Graph API
    FACEBOOK_API_HOST = os.getenv("FACEBOOK_API_HOST", "graph.facebook.com")
    FACEBOOK_API_VERSION = os.getenv("FACEBOOK_API_VERSION", "v3.2")

    # Server
    PORT = int(os.getenv("PORT", "8000"))
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # Environment
    ENVIRONMENT = os.getenv("ENVIRONMENT", "development")

    @classmethod
    def missing(cls) -> list[str]:
        """Names of required settings that are empty."""
        required = ["FACEBOOK_APP_SECRET", "FACEBOOK_VERIFY_TOKEN"]
        return [key for key in required if not getattr(cls, key)]

    @classmethod
    def validate(cls) -> bool:
        """Validate that required configuration is set."""
        missing = cls.missing()

        if missing:
            logger.warning(
                f"Missing required environment variables: {', '.join(missing)}",
                extra={"missing": missing},
            )
            return False

        return True


if __name__ == "__main__":
    # Test configuration loading
    print("Configuration loaded:")
    print(f"  App Secret: {'✓ Set' if Config.FACEBOOK_APP_SECRET else '✗ Missing'}")
    print(f"  Verify Token: {'✓ Set' if Config.FACEBOOK_VERIFY_TOKEN else '✗ Missing'}")
    print(f"  Access Token: {'✓ Set' if Config.FACEBOOK_ACCESS_TOKEN else '✗ Missing (per-page tokens)'}")
    print(f"  Graph API: https://{Config.FACEBOOK_API_HOST}/{Config.FACEBOOK_API_VERSION}")
    print(f"  Environment: {Config.ENVIRONMENT}")
    print(f"\n  Validation: {'✓ PASSED' if Config.validate() else '✗ FAILED'}")
