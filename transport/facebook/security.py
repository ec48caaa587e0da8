"""
Messenger Signature Verification

SECURITY BOUNDARY - Verify x-hub-signature, compute appsecret_proof,
answer the webhook registration handshake.
Pure functions. No network. No retries.
"""

import hashlib
import hmac
import logging
from typing import Optional

from fastapi import status

from .errors import MissingCredential
from .schemas import ChallengeResponse

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "x-hub-signature"
SIGNATURE_PREFIX = "SHA1="


def encode_non_ascii(value: str) -> str:
    """
    Escape every character above 127 as a lower-case \\uXXXX sequence.

    Reproduces the text the platform signs: its JSON encoder escapes
    non-ASCII as UTF-16 code units, so characters outside the BMP become
    a surrogate pair of escapes.
    """
    parts = []
    for char in value:
        code_point = ord(char)
        if code_point <= 127:
            parts.append(char)
        elif code_point <= 0xFFFF:
            parts.append(f"\\u{code_point:04x}")
        else:
            offset = code_point - 0x10000
            high = 0xD800 + (offset >> 10)
            low = 0xDC00 + (offset & 0x3FF)
            parts.append(f"\\u{high:04x}\\u{low:04x}")
    return "".join(parts)


def compute_signature(body: bytes, app_secret: str) -> str:
    """
    Expected x-hub-signature value for a raw body.

    Returns:
        "SHA1=" + upper-case hex HMAC-SHA1 of the escaped body

    Raises:
        UnicodeDecodeError: body is not UTF-8
    """
    payload = encode_non_ascii(body.decode("utf-8"))
    digest = hmac.new(
        key=app_secret.encode("utf-8"),
        msg=payload.encode("utf-8"),
        digestmod=hashlib.sha1,
    ).hexdigest()
    return SIGNATURE_PREFIX + digest.upper()


def verify_signature(
    body: bytes,
    signature: Optional[str],
    app_secret: str,
) -> bool:
    """
    Verify the x-hub-signature header against the raw request body.

    Must run before JSON decoding: re-serialized JSON is not
    byte-identical to what the platform signed.

    Args:
        body: Raw request body bytes
        signature: Header value, e.g. "sha1=0a1b..."
        app_secret: Facebook app secret

    Returns:
        True only if the header matches (case-insensitive, constant-time)
    """

    if not signature:
        logger.debug("Missing x-hub-signature header")
        return False

    try:
        expected = compute_signature(body, app_secret)
    except UnicodeDecodeError:
        logger.warning("Webhook body is not valid UTF-8")
        return False

    return hmac.compare_digest(
        signature.upper().encode("utf-8"),
        expected.encode("utf-8"),
    )


def compute_appsecret_proof(app_secret: str, access_token: str) -> str:
    """
    Generate the appsecret_proof sent with every Graph API call.

    HMAC-SHA256 of the access token keyed by the app secret, lower-case hex.

    Raises:
        MissingCredential: either secret is empty
    """
    if not app_secret:
        raise MissingCredential("app_secret is required to sign requests")
    if not access_token:
        raise MissingCredential("access_token is required to sign requests")

    return hmac.new(
        key=app_secret.encode("utf-8"),
        msg=access_token.encode("utf-8"),
        digestmod=hashlib.sha256,
    ).hexdigest()


def verify_webhook_challenge(
    hub_verify_token: Optional[str],
    hub_challenge: Optional[str],
    verify_token: str,
) -> ChallengeResponse:
    """
    Verify webhook subscription challenge from Messenger.

    Messenger calls GET /webhook with:
    - hub.mode=subscribe
    - hub.challenge=random_string
    - hub.verify_token=configured_token

    Args:
        hub_verify_token: Token sent by the platform
        hub_challenge: Random string to echo back
        verify_token: Token configured for this app

    Returns:
        200 + challenge verbatim if the token matches, else 401 + empty body
    """

    if verify_token and hub_verify_token is not None and hmac.compare_digest(
        hub_verify_token.encode("utf-8"), verify_token.encode("utf-8")
    ):
        return ChallengeResponse(
            status_code=status.HTTP_200_OK,
            body=hub_challenge or "",
        )

    logger.warning("Webhook verification rejected: verify_token mismatch")
    return ChallengeResponse(status_code=status.HTTP_401_UNAUTHORIZED)
