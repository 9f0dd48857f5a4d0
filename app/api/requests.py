from __future__ import annotations

import math
from typing import NoReturn

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.deps import get_current_user, is_admin, is_lawyer_user
from app.db.session import get_db
from app.schemas.requests import (
    ClientRequestCreate,
    ClientRequestPage,
    ClientRequestPatch,
    ClientRequestRead,
    ClientRequestStats,
)
from app.services.notification_dispatch import schedule_request_notification
from app.services.request_errors import ClientRequestError
from app.services.request_notifications import (
    EVENT_REQUEST_ACCEPTED,
    EVENT_REQUEST_CREATED,
    EVENT_REQUEST_REJECTED,
)
from app.services.request_stats import ROLE_CLIENT, ROLE_LAWYER, request_stats
from app.services.request_status import (
    accept_request,
    cancel_request,
    create_request,
    delete_request,
    get_request_or_404,
    reject_request,
    update_request,
)
from app.services.request_store import ClientRequestStore, clamp_page, serialize_client_request

router = APIRouter()


def _raise_http(exc: ClientRequestError) -> NoReturn:
    raise HTTPException(status_code=exc.status_code, detail=exc.detail)


def _subject(user: dict) -> str:
    return str(user.get("sub") or "").strip()


def _ensure_subject_access_or_403(user: dict, *subject_ids: str | None) -> None:
    if is_admin(user):
        return
    subject = _subject(user)
    if subject and subject in {str(value) for value in subject_ids if value}:
        return
    raise HTTPException(status_code=403, detail="No access to these requests")


def _acting_lawyer_or_403(user: dict) -> str | None:
    if is_admin(user):
        return None
    if not is_lawyer_user(user):
        raise HTTPException(status_code=403, detail="Only lawyers can answer requests")
    if not settings.REQUEST_ENFORCE_LAWYER_OWNERSHIP:
        return None
    return _subject(user)


def _page_payload(rows: list[dict], total: int, limit: int, offset: int) -> dict:
    return {
        "rows": rows,
        "total": int(total),
        "limit": limit,
        "offset": offset,
        "page": offset // limit + 1,
        "total_pages": math.ceil(total / limit) if total else 0,
    }


@router.post("", response_model=ClientRequestRead, status_code=201)
def create_client_request(
    payload: ClientRequestCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user: dict = Depends(get_current_user),
):
    data = payload.model_dump()
    if not data.get("client_id") and not is_admin(user):
        data["client_id"] = _subject(user)
    missing = [key for key in ("client_id", "lawyer_id", "title") if not str(data.get(key) or "").strip()]
    if missing:
        raise HTTPException(status_code=400, detail="Missing required fields: " + ", ".join(missing))
    _ensure_subject_access_or_403(user, data["client_id"])

    try:
        row = create_request(db, data)
    except ClientRequestError as exc:
        _raise_http(exc)

    if row.lawyer_id:
        schedule_request_notification(background_tasks, EVENT_REQUEST_CREATED, row.id)
    return serialize_client_request(row)


@router.get("/client/{client_id}", response_model=ClientRequestPage)
def list_client_requests(
    client_id: str,
    status: str | None = None,
    limit: int | None = None,
    offset: int = 0,
    db: Session = Depends(get_db),
    user: dict = Depends(get_current_user),
):
    _ensure_subject_access_or_403(user, client_id)
    safe_limit, safe_offset = clamp_page(limit, offset)
    try:
        rows, total = ClientRequestStore(db).list_for_client(
            client_id, status=status, limit=safe_limit, offset=safe_offset
        )
    except ClientRequestError as exc:
        _raise_http(exc)
    return _page_payload(rows, total, safe_limit, safe_offset)


@router.get("/client/{client_id}/stats", response_model=ClientRequestStats)
def client_request_stats(
    client_id: str,
    db: Session = Depends(get_db),
    user: dict = Depends(get_current_user),
):
    _ensure_subject_access_or_403(user, client_id)
    return request_stats(db, client_id, ROLE_CLIENT)


@router.get("/lawyer/{lawyer_id}", response_model=ClientRequestPage)
def list_lawyer_requests(
    lawyer_id: str,
    status: str | None = None,
    limit: int | None = None,
    offset: int = 0,
    db: Session = Depends(get_db),
    user: dict = Depends(get_current_user),
):
    _ensure_subject_access_or_403(user, lawyer_id)
    safe_limit, safe_offset = clamp_page(limit, offset)
    try:
        rows, total = ClientRequestStore(db).list_for_lawyer(
            lawyer_id, status=status, limit=safe_limit, offset=safe_offset
        )
    except ClientRequestError as exc:
        _raise_http(exc)
    return _page_payload(rows, total, safe_limit, safe_offset)


@router.get("/lawyer/{lawyer_id}/stats", response_model=ClientRequestStats)
def lawyer_request_stats(
    lawyer_id: str,
    db: Session = Depends(get_db),
    user: dict = Depends(get_current_user),
):
    _ensure_subject_access_or_403(user, lawyer_id)
    return request_stats(db, lawyer_id, ROLE_LAWYER)


@router.get("/{request_id}", response_model=ClientRequestRead)
def get_client_request(
    request_id: str,
    db: Session = Depends(get_db),
    user: dict = Depends(get_current_user),
):
    try:
        payload = ClientRequestStore(db).get_detail(request_id)
    except ClientRequestError as exc:
        _raise_http(exc)
    if payload is None:
        raise HTTPException(status_code=404, detail="Request not found")
    _ensure_subject_access_or_403(user, payload["client_id"], payload["lawyer_id"])
    return payload


@router.patch("/{request_id}", response_model=ClientRequestRead)
def patch_client_request(
    request_id: str,
    payload: ClientRequestPatch,
    db: Session = Depends(get_db),
    user: dict = Depends(get_current_user),
):
    try:
        current = get_request_or_404(db, request_id)
        _ensure_subject_access_or_403(user, current.client_id)
        row = update_request(db, request_id, payload.model_dump(exclude_unset=True))
    except ClientRequestError as exc:
        _raise_http(exc)
    return serialize_client_request(row)


@router.post("/{request_id}/accept", response_model=ClientRequestRead)
def accept_client_request(
    request_id: str,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user: dict = Depends(get_current_user),
):
    lawyer_id = _acting_lawyer_or_403(user)
    try:
        row = accept_request(db, request_id, lawyer_id=lawyer_id)
    except ClientRequestError as exc:
        _raise_http(exc)
    schedule_request_notification(background_tasks, EVENT_REQUEST_ACCEPTED, row.id)
    return serialize_client_request(row)


@router.post("/{request_id}/reject", response_model=ClientRequestRead)
def reject_client_request(
    request_id: str,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user: dict = Depends(get_current_user),
):
    lawyer_id = _acting_lawyer_or_403(user)
    try:
        row = reject_request(db, request_id, lawyer_id=lawyer_id)
    except ClientRequestError as exc:
        _raise_http(exc)
    schedule_request_notification(background_tasks, EVENT_REQUEST_REJECTED, row.id)
    return serialize_client_request(row)


@router.post("/{request_id}/cancel", response_model=ClientRequestRead)
def cancel_client_request(
    request_id: str,
    db: Session = Depends(get_db),
    user: dict = Depends(get_current_user),
):
    try:
        row = cancel_request(db, request_id, _subject(user))
    except ClientRequestError as exc:
        _raise_http(exc)
    return serialize_client_request(row)


@router.delete("/{request_id}")
def delete_client_request(
    request_id: str,
    db: Session = Depends(get_db),
    user: dict = Depends(get_current_user),
):
    try:
        current = get_request_or_404(db, request_id)
        _ensure_subject_access_or_403(user, current.client_id)
        delete_request(db, request_id)
    except ClientRequestError as exc:
        _raise_http(exc)
    return {"status": "ok", "deleted": True, "id": str(current.id)}
