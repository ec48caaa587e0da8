"""
Messenger Transport Layer - Pydantic Schemas

PURE DATA MODELS - NO LOGIC
Defines the contract between the Graph API / Messenger webhooks and the client.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field

from config import Config as AppConfig


# ============================================================================
# CLIENT CONFIGURATION
# ============================================================================

class ClientConfig(BaseModel):
    """
    Credentials and Graph API location for one client instance.

    Immutable. Token rotation means building a new instance
    (see with_access_token). Secrets never appear in repr().
    """

    api_host: str = Field("graph.facebook.com", description="Graph API host")
    api_version: str = Field("v3.2", description="Graph API version segment")
    app_secret: str = Field("", repr=False, description="App secret, signing only")
    access_token: str = Field(
        "",
        repr=False,
        description="Page access token. Empty when tokens are resolved per page.",
    )
    verify_token: str = Field("", repr=False, description="Webhook handshake token")

    class Config:
        """Pydantic config."""
        frozen = True

    @classmethod
    def from_env(cls) -> "ClientConfig":
        """Build from the process-wide Config (.env / environment)."""
        return cls(
            api_host=AppConfig.FACEBOOK_API_HOST,
            api_version=AppConfig.FACEBOOK_API_VERSION,
            app_secret=AppConfig.FACEBOOK_APP_SECRET,
            access_token=AppConfig.FACEBOOK_ACCESS_TOKEN,
            verify_token=AppConfig.FACEBOOK_VERIFY_TOKEN,
        )

    def with_access_token(self, access_token: str) -> "ClientConfig":
        """Copy of this config scoped to another page token."""
        return self.model_copy(update={"access_token": access_token})


# ============================================================================
# OUTBOUND MESSAGE (SEND API)
# ============================================================================

class FacebookRecipient(BaseModel):
    """Send API recipient reference."""
    id: str


class FacebookMessage(BaseModel):
    """
    Send API payload.

    Opaque to the client - serialized as-is, None fields dropped.
    ref: https://developers.facebook.com/docs/messenger-platform/reference/send-api
    """

    recipient: FacebookRecipient
    message: Optional[dict[str, Any]] = None  # {"text": "..."} or {"attachment": {...}}
    sender_action: Optional[str] = None  # typing_on, typing_off, mark_seen
    messaging_type: str = Field(default="RESPONSE")
    tag: Optional[str] = None
    notification_type: Optional[str] = None

    class Config:
        extra = "allow"


# ============================================================================
# WEBHOOK PAYLOAD (INPUT)
# ============================================================================

class ChannelAccount(BaseModel):
    """A page or a user (PSID)."""
    id: str = ""
    name: Optional[str] = None


class FacebookEventMessage(BaseModel):
    """The `message` object of a messaging event."""

    mid: Optional[str] = None
    text: Optional[str] = None
    is_echo: bool = False  # True when this is the page's own outbound message
    app_id: Optional[int] = None
    attachments: Optional[list[dict[str, Any]]] = None
    quick_reply: Optional[dict[str, Any]] = None

    class Config:
        extra = "allow"


class FacebookEvent(BaseModel):
    """
    A single entry of `entry[].messaging[]`.

    Also carried verbatim as Activity.channel_data.
    """

    sender: Optional[ChannelAccount] = None
    recipient: Optional[ChannelAccount] = None
    timestamp: Optional[int] = None  # epoch milliseconds
    message: Optional[FacebookEventMessage] = None
    postback: Optional[dict[str, Any]] = None
    delivery: Optional[dict[str, Any]] = None
    read: Optional[dict[str, Any]] = None

    class Config:
        extra = "allow"  # Messenger may add fields


class FacebookEntry(BaseModel):
    """One page's batch of events."""
    id: str
    time: Optional[int] = None
    messaging: list[FacebookEvent] = Field(default_factory=list)
    standby: list[FacebookEvent] = Field(default_factory=list)

    class Config:
        extra = "allow"


class FacebookWebhookPayload(BaseModel):
    """
    Full Messenger webhook payload.

    ref: https://developers.facebook.com/docs/messenger-platform/webhooks
    """

    object: str = Field(..., description="Always 'page' for Messenger")
    entry: list[FacebookEntry] = Field(..., description="Webhook entries")

    class Config:
        extra = "allow"


# ============================================================================
# ACTIVITY (NORMALIZED INBOUND EVENT)
# ============================================================================

class Activity(BaseModel):
    """
    Inbound conversational event handed to the application.

    The application decides what to do with it; account resolution
    (FacebookClient.get_api) only reads from/recipient/channel_data.
    """

    type: str = Field("message", description="message or event")
    id: Optional[str] = None
    timestamp: Optional[datetime] = None
    channel_id: Literal["facebook"] = "facebook"
    from_: Optional[ChannelAccount] = Field(None, alias="from")
    recipient: Optional[ChannelAccount] = None
    conversation: Optional[ChannelAccount] = None
    text: Optional[str] = None
    name: Optional[str] = None  # event name: postback, delivery, read
    value: Optional[dict[str, Any]] = None
    channel_data: Optional[FacebookEvent] = None

    class Config:
        populate_by_name = True

    @property
    def is_echo(self) -> bool:
        """True when the event is the platform's copy of our own message."""
        return bool(
            self.channel_data is not None
            and self.channel_data.message is not None
            and self.channel_data.message.is_echo
        )


# ============================================================================
# RAW WEBHOOK REQUEST / HANDSHAKE RESULT
# ============================================================================

@dataclass(frozen=True)
class WebhookRequest:
    """
    Raw inbound body plus the x-hub-signature header value.

    Captured before any JSON decoding - verification is byte-exact.
    """

    body: bytes
    signature: Optional[str] = None


@dataclass(frozen=True)
class ChallengeResponse:
    """Outcome of the webhook registration handshake."""

    status_code: int
    body: str = ""

    @property
    def accepted(self) -> bool:
        return self.status_code == 200
