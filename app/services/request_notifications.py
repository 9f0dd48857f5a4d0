from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from sqlalchemy.orm import Session

from app.db.session import SessionLocal
from app.services.email_service import (
    notify_client_of_acceptance,
    notify_client_of_rejection,
    notify_lawyer_of_new_request,
)
from app.services.request_queries import build_notification_parties_statement
from app.services.request_store import coerce_request_id

_LOG = logging.getLogger("app.notifications")

EVENT_REQUEST_CREATED = "REQUEST_CREATED"
EVENT_REQUEST_ACCEPTED = "REQUEST_ACCEPTED"
EVENT_REQUEST_REJECTED = "REQUEST_REJECTED"

SUPPORTED_EVENTS = {EVENT_REQUEST_CREATED, EVENT_REQUEST_ACCEPTED, EVENT_REQUEST_REJECTED}


@dataclass(frozen=True)
class RequestNotification:
    event: str
    request_id: str


def _full_name(first: str | None, last: str | None) -> str:
    return " ".join(part for part in (first, last) if part).strip()


def _skipped(notification: RequestNotification, reason: str) -> dict[str, Any]:
    _LOG.info(
        "notification skipped event=%s request_id=%s reason=%s",
        notification.event,
        notification.request_id,
        reason,
    )
    return {"event": notification.event, "request_id": notification.request_id, "sent": False, "skipped": reason}


def _send(notification: RequestNotification, parties: dict[str, Any]) -> dict[str, Any]:
    client_name = _full_name(parties.get("client_first_name"), parties.get("client_last_name")) or "A client"
    lawyer_name = _full_name(parties.get("lawyer_first_name"), parties.get("lawyer_last_name")) or "Your lawyer"

    if notification.event == EVENT_REQUEST_CREATED:
        if not parties.get("lawyer_email"):
            return _skipped(notification, "lawyer_email_missing")
        return notify_lawyer_of_new_request(
            lawyer_email=parties["lawyer_email"],
            lawyer_first_name=parties.get("lawyer_first_name"),
            client_name=client_name,
            title=parties.get("title") or "",
            description=parties.get("description"),
            urgency=parties.get("urgency"),
            case_category=parties.get("case_category"),
        )

    if not parties.get("client_email"):
        return _skipped(notification, "client_email_missing")
    sender = notify_client_of_acceptance if notification.event == EVENT_REQUEST_ACCEPTED else notify_client_of_rejection
    return sender(
        client_email=parties["client_email"],
        client_first_name=parties.get("client_first_name"),
        lawyer_name=lawyer_name,
        title=parties.get("title") or "",
    )


def deliver_request_notification(db: Session, notification: RequestNotification) -> dict[str, Any]:
    """Look up both parties of the request and send one email to the counterparty.

    Never raises: a failed lookup or delivery is logged and reported in the
    returned outcome only.
    """
    if notification.event not in SUPPORTED_EVENTS:
        return _skipped(notification, "unsupported_event")
    try:
        request_uuid = coerce_request_id(notification.request_id)
        result = db.execute(build_notification_parties_statement(request_uuid)).first()
        if result is None:
            return _skipped(notification, "parties_not_found")
        outcome = dict(_send(notification, dict(result._mapping)))
    except Exception:
        _LOG.exception(
            "notification delivery failed event=%s request_id=%s",
            notification.event,
            notification.request_id,
        )
        return {"event": notification.event, "request_id": notification.request_id, "sent": False, "error": True}

    outcome.setdefault("event", notification.event)
    outcome.setdefault("request_id", notification.request_id)
    _LOG.info(
        "notification delivered event=%s request_id=%s provider=%s",
        notification.event,
        notification.request_id,
        outcome.get("provider"),
    )
    return outcome


def deliver_request_notification_detached(notification: RequestNotification) -> dict[str, Any]:
    db = SessionLocal()
    try:
        return deliver_request_notification(db, notification)
    finally:
        db.close()
