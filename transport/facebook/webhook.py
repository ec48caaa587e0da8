"""
Messenger Webhook Receiver

FastAPI router for the registration handshake and inbound events.
Signature is checked on the raw body before any JSON decoding.
The FacebookClient and the activity handler live on app.state,
set up by the application (see main.create_app).
"""

import json
import logging
from typing import Awaitable, Callable, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import PlainTextResponse

from .client import FacebookClient
from .errors import FacebookTransportError
from .normalize import NormalizationError, activities_from_payload
from .schemas import Activity, WebhookRequest
from .security import SIGNATURE_HEADER

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhook", tags=["Messenger Transport"])

# (activity, client scoped to the activity's page) -> None
ActivityHandler = Callable[[Activity, FacebookClient], Awaitable[None]]


async def log_activity(activity: Activity, api: FacebookClient) -> None:
    """Default handler: log and drop."""
    logger.info(
        f"Activity received: {activity.type}",
        extra={
            "activity_id": activity.id,
            "activity_type": activity.type,
            "sender_id": activity.from_.id if activity.from_ else None,
            "is_echo": activity.is_echo,
        },
    )


def get_facebook_client(request: Request) -> FacebookClient:
    """Dependency: the application's FacebookClient."""
    client = getattr(request.app.state, "facebook_client", None)
    if client is None:
        logger.error("Messenger transport not configured on app.state")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Messenger transport not configured",
        )
    return client


def get_activity_handler(request: Request) -> ActivityHandler:
    """Dependency: the application's activity handler."""
    return getattr(request.app.state, "activity_handler", None) or log_activity


# ============================================================================
# WEBHOOK CHALLENGE (Setup only)
# ============================================================================

@router.get("/facebook", response_class=PlainTextResponse)
async def facebook_webhook_challenge(
    hub_mode: Optional[str] = Query(None, alias="hub.mode"),
    hub_challenge: Optional[str] = Query(None, alias="hub.challenge"),
    hub_verify_token: Optional[str] = Query(None, alias="hub.verify_token"),
    client: FacebookClient = Depends(get_facebook_client),
) -> PlainTextResponse:
    """
    Verify webhook subscription challenge from Messenger.

    Returns:
        200 with the challenge echoed as plain text, or 401 with an empty body
    """

    result = client.verify_webhook(hub_verify_token, hub_challenge)
    logger.info(
        f"Webhook handshake {'accepted' if result.accepted else 'rejected'}",
        extra={"hub_mode": hub_mode, "status_code": result.status_code},
    )
    return PlainTextResponse(content=result.body, status_code=result.status_code)


# ============================================================================
# WEBHOOK RECEIVER (Event processing)
# ============================================================================

@router.post("/facebook")
async def facebook_webhook_receiver(
    request: Request,
    client: FacebookClient = Depends(get_facebook_client),
    handler: ActivityHandler = Depends(get_activity_handler),
) -> dict[str, str]:
    """
    Receive Messenger events via webhook.

    Flow:
    1. Read raw body
    2. Verify x-hub-signature (401 if missing, 403 if invalid)
    3. Decode JSON and convert events to Activity objects (400 if invalid)
    4. Resolve the page credential and hand each activity to the handler

    Handler failures are logged; the platform still gets 200 so it
    does not redeliver.
    """

    # Step 1: Raw body - verification is byte-exact
    raw = WebhookRequest(
        body=await request.body(),
        signature=request.headers.get(SIGNATURE_HEADER),
    )

    # Step 2: Verify signature (security boundary)
    if not raw.signature:
        logger.warning("Webhook rejected: missing signature header")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing signature",
        )

    if not client.verify_signature(raw.body, raw.signature):
        logger.warning("Webhook rejected: signature mismatch")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid signature",
        )

    # Step 3: Decode and normalize
    try:
        payload = json.loads(raw.body)
        activities = activities_from_payload(payload)
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid JSON payload",
        )
    except NormalizationError as e:
        logger.error(f"Normalization failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid webhook payload",
        )

    logger.info(
        f"Webhook accepted with {len(activities)} event(s)",
        extra={"event_count": len(activities)},
    )

    # Step 4: Dispatch
    for activity in activities:
        try:
            api = await client.get_api(activity)
            await handler(activity, api)
        except FacebookTransportError as e:
            logger.error(
                f"Cannot resolve page credential: {e}",
                extra={"activity_id": activity.id},
            )
        except Exception as e:
            logger.error(
                f"Activity handler failed: {e}",
                exc_info=True,
                extra={"activity_id": activity.id},
            )

    # Always acknowledge once verified
    return {"status": "ok"}
