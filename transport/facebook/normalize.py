"""
Messenger Input Normalization

PURE CONVERSION - NO LOGIC, NO NETWORK

Converts Messenger webhook events into Activity objects.
- message: text + attachments kept as channel_data, is_echo preserved
- postback / delivery / read: event activities, payload in value
The raw event always rides along as channel_data.
"""

import logging
from datetime import datetime, timezone
from typing import Any

from pydantic import ValidationError

from .schemas import Activity, ChannelAccount, FacebookEvent, FacebookWebhookPayload

logger = logging.getLogger(__name__)


class NormalizationError(Exception):
    """Input normalization failed."""
    pass


def parse_payload(payload: dict[str, Any] | FacebookWebhookPayload) -> FacebookWebhookPayload:
    """Validate a decoded webhook body."""
    if isinstance(payload, FacebookWebhookPayload):
        return payload

    try:
        return FacebookWebhookPayload.model_validate(payload)
    except ValidationError as e:
        raise NormalizationError(f"Invalid payload structure: {e}")


def activities_from_payload(
    payload: dict[str, Any] | FacebookWebhookPayload,
) -> list[Activity]:
    """
    Convert every event of a webhook payload into an Activity.

    Both `messaging` and `standby` (handover protocol) events are
    converted, in payload order. Events that cannot be converted
    (e.g. checkbox-plugin optins without a sender) are logged and skipped.

    Raises:
        NormalizationError: payload does not match the webhook schema
    """

    parsed = parse_payload(payload)

    activities = []
    for entry in parsed.entry:
        for event in [*entry.messaging, *entry.standby]:
            try:
                activities.append(activity_from_event(event))
            except NormalizationError as e:
                logger.warning(
                    f"Skipping webhook event: {e}",
                    extra={"page_id": entry.id, "event_timestamp": event.timestamp},
                )
    return activities


def activity_from_event(event: FacebookEvent) -> Activity:
    """
    Convert one messaging event.

    Raises:
        NormalizationError: event has no sender
    """

    if event.sender is None or not event.sender.id:
        raise NormalizationError("Event missing 'sender.id'")

    activity = Activity(
        type="message",
        from_=ChannelAccount(id=event.sender.id),
        recipient=ChannelAccount(id=event.recipient.id if event.recipient else ""),
        conversation=ChannelAccount(id=event.sender.id),
        timestamp=_from_epoch_ms(event.timestamp),
        channel_data=event,
    )

    if event.message is not None:
        return activity.model_copy(
            update={"id": event.message.mid, "text": event.message.text}
        )

    if event.postback is not None:
        return activity.model_copy(
            update={"type": "event", "name": "postback", "value": event.postback}
        )

    if event.delivery is not None:
        return activity.model_copy(
            update={"type": "event", "name": "delivery", "value": event.delivery}
        )

    if event.read is not None:
        return activity.model_copy(
            update={"type": "event", "name": "read", "value": event.read}
        )

    # Unknown event kind (reactions, referrals, ...) - keep it as a bare event
    return activity.model_copy(update={"type": "event"})


def _from_epoch_ms(timestamp: int | None) -> datetime | None:
    if timestamp is None:
        return None
    try:
        return datetime.fromtimestamp(timestamp / 1000, tz=timezone.utc)
    except (OverflowError, ValueError, OSError):
        logger.warning(
            f"Out of range event timestamp: {timestamp}",
            extra={"event_timestamp": timestamp},
        )
        return None
