"""
Messenger Transport Errors

Raised by the outbound client and account resolution.
Signature mismatch is NOT an error - verify_signature returns False.
"""


class FacebookTransportError(Exception):
    """Base class for Messenger transport failures."""
    pass


class ConfigurationError(FacebookTransportError):
    """Client constructed without usable configuration."""
    pass


class InvalidReference(FacebookTransportError):
    """Inbound activity has no resolvable recipient/page id."""
    pass


class MissingCredential(FacebookTransportError):
    """Access token or app secret is empty."""
    pass
