from __future__ import annotations

import logging
from typing import Any, Mapping

from sqlalchemy.orm import Session

from app.core.config import settings
from app.models.client_request import ClientRequest
from app.services.lawyer_resolver import resolve_lawyer_id, resolve_lawyer_id_optional
from app.services.request_errors import (
    RequestConflict,
    RequestForbidden,
    RequestNotFound,
    RequestValidationFailed,
)
from app.services.request_store import UPDATABLE_FIELDS, ClientRequestStore
from app.services.status_flow import (
    STATUS_ACCEPTED,
    STATUS_CANCELLED,
    STATUS_PENDING,
    STATUS_REJECTED,
    is_terminal,
)

_LOG = logging.getLogger("app.requests")

REQUEST_TYPES = ("consultation", "new_case", "second_opinion", "urgent")
URGENCY_LEVELS = ("low", "medium", "high", "urgent")
URGENCY_ALIASES = {"normal": "medium"}

CANCEL_FAILED_DETAIL = "Request not found or cannot be cancelled"

# Explicit nulls are rejected for these on update; omit a field to keep it.
NON_NULLABLE_UPDATES = ("lawyer_id", "request_type", "title", "urgency")


def _clean_text(value: Any) -> str | None:
    text = str(value or "").strip()
    return text or None


def normalize_urgency(value: str | None) -> str:
    code = str(value or "").strip().lower()
    if not code:
        code = str(settings.REQUEST_DEFAULT_URGENCY or "medium").strip().lower()
    code = URGENCY_ALIASES.get(code, code)
    if code not in URGENCY_LEVELS:
        raise RequestValidationFailed(f"Unknown urgency: {value}")
    return code


def normalize_request_type(value: str | None) -> str:
    code = str(value or "").strip().lower() or REQUEST_TYPES[0]
    if code not in REQUEST_TYPES:
        raise RequestValidationFailed(f"Unknown request type: {value}")
    return code


def get_request_or_404(db: Session, request_id: Any) -> ClientRequest:
    row = ClientRequestStore(db).get(request_id)
    if row is None:
        raise RequestNotFound("Request not found")
    return row


def create_request(db: Session, data: Mapping[str, Any]) -> ClientRequest:
    client_id = _clean_text(data.get("client_id"))
    title = _clean_text(data.get("title"))
    missing = [name for name, value in (("client_id", client_id), ("title", title)) if not value]
    if missing:
        raise RequestValidationFailed("Missing required fields: " + ", ".join(missing))

    # Resolution happens once, before the insert; an unknown lawyer writes nothing.
    lawyer_id = resolve_lawyer_id_optional(db, data.get("lawyer_id"))

    row = ClientRequestStore(db).insert(
        {
            "client_id": client_id,
            "lawyer_id": lawyer_id,
            "request_type": normalize_request_type(data.get("request_type")),
            "title": title,
            "description": data.get("description"),
            "case_category": _clean_text(data.get("case_category")),
            "urgency": normalize_urgency(data.get("urgency")),
            "budget_min": data.get("budget_min"),
            "budget_max": data.get("budget_max"),
            "preferred_date": data.get("preferred_date"),
        }
    )
    _LOG.info("request created id=%s client_id=%s lawyer_id=%s", row.id, row.client_id, row.lawyer_id)
    return row


def _lawyer_decision(db: Session, request_id: Any, to_status: str, *, lawyer_id: str | None) -> ClientRequest:
    store = ClientRequestStore(db)
    affected = store.transition(request_id, to_status, lawyer_id=lawyer_id)
    if affected == 0:
        current = store.get(request_id)
        if current is None:
            raise RequestNotFound("Request not found")
        if lawyer_id is not None and current.lawyer_id != lawyer_id:
            raise RequestForbidden("Request is addressed to another lawyer")
        if is_terminal(current.status):
            raise RequestConflict(f"Request is already {current.status}")
        raise RequestConflict("Request was modified concurrently")
    row = store.get(request_id)
    if row is None:
        raise RequestNotFound("Request not found")
    _LOG.info("request %s id=%s lawyer_id=%s", to_status, row.id, row.lawyer_id)
    return row


def accept_request(db: Session, request_id: Any, *, lawyer_id: str | None = None) -> ClientRequest:
    return _lawyer_decision(db, request_id, STATUS_ACCEPTED, lawyer_id=lawyer_id)


def reject_request(db: Session, request_id: Any, *, lawyer_id: str | None = None) -> ClientRequest:
    return _lawyer_decision(db, request_id, STATUS_REJECTED, lawyer_id=lawyer_id)


def cancel_request(db: Session, request_id: Any, client_id: str) -> ClientRequest:
    owner = _clean_text(client_id)
    if not owner:
        raise RequestNotFound(CANCEL_FAILED_DETAIL)
    store = ClientRequestStore(db)
    try:
        affected = store.transition(request_id, STATUS_CANCELLED, client_id=owner)
    except RequestNotFound:
        raise RequestNotFound(CANCEL_FAILED_DETAIL)
    row = store.get(request_id) if affected else None
    if row is None:
        raise RequestNotFound(CANCEL_FAILED_DETAIL)
    _LOG.info("request cancelled id=%s client_id=%s", row.id, owner)
    return row


def update_request(db: Session, request_id: Any, changes: Mapping[str, Any]) -> ClientRequest:
    values: dict[str, Any] = {}
    for key, value in changes.items():
        if key not in UPDATABLE_FIELDS:
            continue
        if value is None and key in NON_NULLABLE_UPDATES:
            raise RequestValidationFailed(f"{key} cannot be null")
        if key == "title":
            title = _clean_text(value)
            if not title:
                raise RequestValidationFailed("Title cannot be empty")
            values[key] = title
        elif key == "urgency":
            values[key] = normalize_urgency(value)
        elif key == "request_type":
            values[key] = normalize_request_type(value)
        elif key == "lawyer_id":
            values[key] = resolve_lawyer_id(db, value)
        elif key == "case_category":
            values[key] = _clean_text(value)
        else:
            values[key] = value

    store = ClientRequestStore(db)
    # Retargeting is only possible while the request still awaits a decision.
    only_statuses = (STATUS_PENDING,) if "lawyer_id" in values else None
    row = store.update_fields(request_id, values, only_statuses=only_statuses)
    if row is None:
        current = store.get(request_id)
        if current is None:
            raise RequestNotFound("Request not found")
        raise RequestConflict(f"Lawyer cannot be changed, request is already {current.status}")
    if values:
        _LOG.info("request updated id=%s fields=%s", row.id, ",".join(sorted(values)))
    return row


def delete_request(db: Session, request_id: Any) -> None:
    if not ClientRequestStore(db).delete(request_id):
        raise RequestNotFound("Request not found")
    _LOG.info("request deleted id=%s", request_id)
