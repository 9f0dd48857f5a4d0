from __future__ import annotations

import uuid
from typing import Any, Mapping

from sqlalchemy import delete, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.models.client_request import ClientRequest
from app.models.common import utcnow
from app.services.request_errors import RequestNotFound, RequestValidationFailed
from app.services.request_queries import (
    IDENTITY_COLUMNS,
    RequestScope,
    build_count_statement,
    build_detail_statement,
    build_list_statement,
    client_scope,
    lawyer_scope,
)
from app.services.status_flow import STATUS_PENDING, is_known_status, normalize_status, source_statuses_for

UPDATABLE_FIELDS = (
    "lawyer_id",
    "request_type",
    "title",
    "description",
    "case_category",
    "urgency",
    "budget_min",
    "budget_max",
    "preferred_date",
)
_IDENTITY_KEYS = tuple(column.key for column in IDENTITY_COLUMNS)


def coerce_request_id(value: Any) -> uuid.UUID:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError):
        raise RequestNotFound("Request not found")


def clamp_page(limit: int | None, offset: int | None) -> tuple[int, int]:
    default_limit = int(settings.REQUEST_PAGE_LIMIT_DEFAULT)
    max_limit = int(settings.REQUEST_PAGE_LIMIT_MAX)
    safe_limit = default_limit if limit is None else int(limit)
    safe_limit = min(max(safe_limit, 1), max_limit)
    safe_offset = max(int(offset or 0), 0)
    return safe_limit, safe_offset


def status_filter_or_400(status: str | None) -> str | None:
    if status is None or not str(status).strip():
        return None
    code = normalize_status(status)
    if not is_known_status(code):
        raise RequestValidationFailed(f"Unknown request status: {status}")
    return code


def _to_iso(value) -> str | None:
    return value.isoformat() if value is not None else None


def _to_float(value) -> float | None:
    return float(value) if value is not None else None


def _full_name(first: str | None, last: str | None) -> str | None:
    name = " ".join(part for part in (first, last) if part).strip()
    return name or None


def serialize_client_request(row: ClientRequest, identity: Mapping[str, Any] | None = None) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "id": str(row.id),
        "client_id": row.client_id,
        "lawyer_id": row.lawyer_id,
        "request_type": row.request_type,
        "title": row.title,
        "description": row.description,
        "case_category": row.case_category,
        "urgency": row.urgency,
        "budget_min": _to_float(row.budget_min),
        "budget_max": _to_float(row.budget_max),
        "preferred_date": _to_iso(row.preferred_date),
        "status": row.status,
        "created_at": _to_iso(row.created_at),
        "updated_at": _to_iso(row.updated_at),
    }
    if identity is not None:
        for key in _IDENTITY_KEYS:
            payload[key] = identity.get(key)
        payload["client_name"] = _full_name(identity.get("client_first_name"), identity.get("client_last_name"))
        payload["lawyer_name"] = _full_name(identity.get("lawyer_first_name"), identity.get("lawyer_last_name"))
    return payload


class ClientRequestStore:
    """Persistence for the client_requests table.

    Every write commits on its own; the row is the unit of mutation. The
    session is supplied by the caller and is never closed here.
    """

    def __init__(self, db: Session):
        self.db = db

    def _commit(self) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise

    def get(self, request_id: Any) -> ClientRequest | None:
        return self.db.get(ClientRequest, coerce_request_id(request_id))

    def get_detail(self, request_id: Any) -> dict[str, Any] | None:
        result = self.db.execute(build_detail_statement(coerce_request_id(request_id))).first()
        if result is None:
            return None
        return serialize_client_request(result[0], result._mapping)

    def insert(self, values: Mapping[str, Any]) -> ClientRequest:
        row = ClientRequest(**dict(values), status=STATUS_PENDING)
        self.db.add(row)
        self._commit()
        self.db.refresh(row)
        return row

    def _list(self, scope: RequestScope, *, limit: int | None, offset: int | None) -> tuple[list[dict[str, Any]], int]:
        safe_limit, safe_offset = clamp_page(limit, offset)
        result = self.db.execute(build_list_statement(scope, limit=safe_limit, offset=safe_offset))
        rows = [serialize_client_request(item[0], item._mapping) for item in result]
        total = int(self.db.execute(build_count_statement(scope)).scalar_one())
        return rows, total

    def list_for_client(
        self,
        client_id: str,
        *,
        status: str | None = None,
        limit: int | None = None,
        offset: int | None = None,
    ) -> tuple[list[dict[str, Any]], int]:
        return self._list(client_scope(client_id, status_filter_or_400(status)), limit=limit, offset=offset)

    def list_for_lawyer(
        self,
        lawyer_id: str,
        *,
        status: str | None = None,
        limit: int | None = None,
        offset: int | None = None,
    ) -> tuple[list[dict[str, Any]], int]:
        return self._list(lawyer_scope(lawyer_id, status_filter_or_400(status)), limit=limit, offset=offset)

    def count_for_client(self, client_id: str, *, status: str | None = None) -> int:
        scope = client_scope(client_id, status_filter_or_400(status))
        return int(self.db.execute(build_count_statement(scope)).scalar_one())

    def count_for_lawyer(self, lawyer_id: str, *, status: str | None = STATUS_PENDING) -> int:
        scope = lawyer_scope(lawyer_id, status_filter_or_400(status))
        return int(self.db.execute(build_count_statement(scope)).scalar_one())

    def transition(
        self,
        request_id: Any,
        to_status: str,
        *,
        client_id: str | None = None,
        lawyer_id: str | None = None,
    ) -> int:
        """Conditionally move a row to ``to_status``; returns the affected row count.

        The WHERE clause carries the allowed source statuses, so a concurrent
        writer that got there first leaves this call with zero rows.
        """
        target = normalize_status(to_status)
        stmt = (
            update(ClientRequest)
            .where(
                ClientRequest.id == coerce_request_id(request_id),
                ClientRequest.status.in_(sorted(source_statuses_for(target))),
            )
            .values(status=target, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        if client_id is not None:
            stmt = stmt.where(ClientRequest.client_id == client_id)
        if lawyer_id is not None:
            stmt = stmt.where(ClientRequest.lawyer_id == lawyer_id)
        try:
            result = self.db.execute(stmt)
        except SQLAlchemyError:
            self.db.rollback()
            raise
        self._commit()
        return int(result.rowcount or 0)

    def update_fields(
        self,
        request_id: Any,
        values: Mapping[str, Any],
        *,
        only_statuses: tuple[str, ...] | None = None,
    ) -> ClientRequest | None:
        """Apply allow-listed content changes; ``None`` when no row matched.

        With ``only_statuses`` the row must currently be in one of them.
        """
        changes = {key: value for key, value in values.items() if key in UPDATABLE_FIELDS}
        if not changes:
            return self.get(request_id)
        stmt = (
            update(ClientRequest)
            .where(ClientRequest.id == coerce_request_id(request_id))
            .values(**changes, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        if only_statuses is not None:
            stmt = stmt.where(ClientRequest.status.in_(only_statuses))
        try:
            result = self.db.execute(stmt)
        except SQLAlchemyError:
            self.db.rollback()
            raise
        self._commit()
        if not result.rowcount:
            return None
        return self.get(request_id)

    def delete(self, request_id: Any) -> bool:
        try:
            result = self.db.execute(
                delete(ClientRequest)
                .where(ClientRequest.id == coerce_request_id(request_id))
                .execution_options(synchronize_session=False)
            )
        except SQLAlchemyError:
            self.db.rollback()
            raise
        self._commit()
        return bool(result.rowcount)
