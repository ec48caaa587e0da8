"""Messenger Transport Layer - Module Exports"""

from .client import FacebookClient, TokenResolver
from .errors import (
    ConfigurationError,
    FacebookTransportError,
    InvalidReference,
    MissingCredential,
)
from .normalize import NormalizationError, activities_from_payload, activity_from_event
from .schemas import (
    Activity,
    ChallengeResponse,
    ChannelAccount,
    ClientConfig,
    FacebookEntry,
    FacebookEvent,
    FacebookEventMessage,
    FacebookMessage,
    FacebookRecipient,
    FacebookWebhookPayload,
    WebhookRequest,
)
from .security import (
    compute_appsecret_proof,
    compute_signature,
    encode_non_ascii,
    verify_signature,
    verify_webhook_challenge,
)
from .webhook import ActivityHandler, router

__all__ = [
    # Schemas
    "ClientConfig",
    "FacebookMessage",
    "FacebookRecipient",
    "Activity",
    "ChannelAccount",
    "FacebookEvent",
    "FacebookEventMessage",
    "FacebookEntry",
    "FacebookWebhookPayload",
    "WebhookRequest",
    "ChallengeResponse",
    # Client
    "FacebookClient",
    "TokenResolver",
    # Errors
    "FacebookTransportError",
    "ConfigurationError",
    "InvalidReference",
    "MissingCredential",
    # Normalization
    "activities_from_payload",
    "activity_from_event",
    "NormalizationError",
    # Security
    "encode_non_ascii",
    "compute_signature",
    "verify_signature",
    "compute_appsecret_proof",
    "verify_webhook_challenge",
    # Router
    "router",
    "ActivityHandler",
]
