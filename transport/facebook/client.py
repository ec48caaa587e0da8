"""
Graph API Client

Sends signed requests to the Messenger platform and resolves which
page credential applies to an inbound activity.
No retries. No status interpretation. No timeouts - callers cancel.
"""

import logging
from typing import Any, Awaitable, Callable, Optional, Union

import httpx
from pydantic import BaseModel

from .errors import ConfigurationError, InvalidReference, MissingCredential
from .schemas import Activity, ChallengeResponse, ClientConfig, FacebookMessage, FacebookRecipient
from .security import compute_appsecret_proof, verify_signature, verify_webhook_challenge

logger = logging.getLogger(__name__)

# async (page_id) -> page access token
TokenResolver = Callable[[str], Awaitable[str]]

MessagePayload = Union[FacebookMessage, BaseModel, dict[str, Any]]


class FacebookClient:
    """
    Thin Graph API client bound to one page credential.

    Stateless between calls: the appsecret_proof is recomputed for
    every request, so a rotated token is never signed with a stale proof.
    The httpx.AsyncClient, when given, is shared and owned by the caller.
    """

    def __init__(
        self,
        config: ClientConfig,
        http_client: Optional[httpx.AsyncClient] = None,
        token_resolver: Optional[TokenResolver] = None,
    ):
        if config is None:
            raise ConfigurationError("ClientConfig is required")

        self.config = config
        self.http_client = http_client
        self.token_resolver = token_resolver

    # ------------------------------------------------------------------
    # Signing / verification
    # ------------------------------------------------------------------

    def get_appsecret_proof(self) -> str:
        """HMAC-SHA256(app_secret, access_token) as lower-case hex."""
        return compute_appsecret_proof(self.config.app_secret, self.config.access_token)

    def verify_signature(self, body: bytes, signature: Optional[str]) -> bool:
        """Check an inbound webhook body against its x-hub-signature."""
        return verify_signature(body, signature, self.config.app_secret)

    def verify_webhook(
        self,
        hub_verify_token: Optional[str],
        hub_challenge: Optional[str],
    ) -> ChallengeResponse:
        """Answer the webhook registration handshake."""
        return verify_webhook_challenge(
            hub_verify_token, hub_challenge, self.config.verify_token
        )

    # ------------------------------------------------------------------
    # Outbound
    # ------------------------------------------------------------------

    def build_url(self, path: str) -> str:
        """Base URL for an API path, e.g. /me/messages (no query string)."""
        return f"https://{self.config.api_host}/{self.config.api_version}{path}"

    async def send_message(
        self,
        path: str,
        payload: MessagePayload,
        method: Optional[str] = None,
    ) -> httpx.Response:
        """
        Call one of the Graph APIs.

        Args:
            path: API endpoint, for example /me/messages
            payload: Body, serialized to JSON
            method: HTTP method, POST when omitted

        Returns:
            The raw httpx.Response - status handling is the caller's job

        Raises:
            MissingCredential: app secret or access token is empty
            httpx.HTTPError: transport failure (propagated as-is)
        """

        proof = self.get_appsecret_proof()
        method = (method or "POST").upper()

        if isinstance(payload, BaseModel):
            body = payload.model_dump(exclude_none=True, by_alias=True)
        else:
            body = payload

        # access_token first, then appsecret_proof
        params = {
            "access_token": self.config.access_token,
            "appsecret_proof": proof,
        }
        headers = {"Content-Type": "application/json"}
        url = self.build_url(path)

        logger.debug(
            f"Graph API {method} {path}",
            extra={"method": method, "path": path},
        )

        if self.http_client is not None:
            response = await self.http_client.request(
                method, url, params=params, json=body, headers=headers
            )
        else:
            async with httpx.AsyncClient(timeout=None) as client:
                response = await client.request(
                    method, url, params=params, json=body, headers=headers
                )

        logger.debug(
            f"Graph API {method} {path} -> {response.status_code}",
            extra={"method": method, "path": path, "status_code": response.status_code},
        )
        return response

    async def send_text(self, recipient_id: str, text: str) -> httpx.Response:
        """Send a plain text message to a user (PSID) via /me/messages."""
        message = FacebookMessage(
            recipient=FacebookRecipient(id=recipient_id),
            message={"text": text},
        )
        return await self.send_message("/me/messages", message)

    # ------------------------------------------------------------------
    # Account resolution
    # ------------------------------------------------------------------

    async def get_api(self, activity: Activity) -> "FacebookClient":
        """
        Get a client carrying the credential for the page in an activity.

        Single-tenant: a globally configured access token is used as-is.
        Multi-tenant: the page id is the activity recipient - or the
        sender for echoes, where the roles are swapped - and its token
        comes from the token resolver.

        Raises:
            InvalidReference: no recipient id on the activity
            MissingCredential: resolver returned an empty token
            ConfigurationError: no global token and no resolver
        """

        if activity is None:
            raise InvalidReference("Unable to create API client: activity is None")

        if self.config.access_token.strip():
            return FacebookClient(self.config, self.http_client, self.token_resolver)

        recipient_id = activity.recipient.id if activity.recipient else ""
        if not recipient_id or not recipient_id.strip():
            raise InvalidReference(
                f"Unable to create API client based on activity: {activity.id}"
            )

        page_id = recipient_id
        if activity.is_echo:
            page_id = activity.from_.id if activity.from_ else ""
            if not page_id.strip():
                raise InvalidReference(
                    f"Echo activity {activity.id} has no sender id"
                )

        if self.token_resolver is None:
            raise ConfigurationError(
                "No access token configured and no token resolver supplied"
            )

        token = await self.token_resolver(page_id)

        if not token or not token.strip():
            raise MissingCredential(f"No access token for page {page_id}")

        logger.debug(
            f"Resolved page credential for {page_id}",
            extra={"page_id": page_id, "is_echo": activity.is_echo},
        )

        return FacebookClient(
            self.config.with_access_token(token),
            self.http_client,
            self.token_resolver,
        )
