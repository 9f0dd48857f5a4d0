from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from sqlalchemy import Select, func, select
from sqlalchemy.orm import aliased

from app.models.client_request import ClientRequest
from app.models.user import User

ClientUser = aliased(User, name="client_user")
LawyerUser = aliased(User, name="lawyer_user")

IDENTITY_COLUMNS = (
    ClientUser.first_name.label("client_first_name"),
    ClientUser.last_name.label("client_last_name"),
    ClientUser.email.label("client_email"),
    ClientUser.phone.label("client_phone"),
    LawyerUser.first_name.label("lawyer_first_name"),
    LawyerUser.last_name.label("lawyer_last_name"),
    LawyerUser.email.label("lawyer_email"),
)


@dataclass(frozen=True)
class RequestScope:
    """Filter for one paginated listing.

    The list and count statements are both built from this object so the
    total reported next to a page always counts the same rows.
    """

    predicates: tuple[Any, ...]
    require_client_identity: bool = False


def request_filter_predicates(
    *,
    client_id: str | None = None,
    lawyer_id: str | None = None,
    status: str | None = None,
) -> tuple[Any, ...]:
    predicates: list[Any] = []
    if client_id is not None:
        predicates.append(ClientRequest.client_id == client_id)
    if lawyer_id is not None:
        predicates.append(ClientRequest.lawyer_id == lawyer_id)
    if status is not None:
        predicates.append(ClientRequest.status == status)
    return tuple(predicates)


def client_scope(client_id: str, status: str | None = None) -> RequestScope:
    return RequestScope(predicates=request_filter_predicates(client_id=client_id, status=status))


def lawyer_scope(lawyer_id: str, status: str | None = None) -> RequestScope:
    # Lawyer inbox only shows requests whose requester still exists.
    return RequestScope(
        predicates=request_filter_predicates(lawyer_id=lawyer_id, status=status),
        require_client_identity=True,
    )


def _scoped(stmt: Select, scope: RequestScope) -> Select:
    if scope.require_client_identity:
        stmt = stmt.join(ClientUser, ClientUser.id == ClientRequest.client_id)
    return stmt.where(*scope.predicates)


def build_list_statement(scope: RequestScope, *, limit: int, offset: int) -> Select:
    stmt = _scoped(select(ClientRequest, *IDENTITY_COLUMNS).select_from(ClientRequest), scope)
    if not scope.require_client_identity:
        stmt = stmt.outerjoin(ClientUser, ClientUser.id == ClientRequest.client_id)
    stmt = stmt.outerjoin(LawyerUser, LawyerUser.id == ClientRequest.lawyer_id)
    return (
        stmt.order_by(ClientRequest.created_at.desc(), ClientRequest.id.desc())
        .limit(limit)
        .offset(offset)
    )


def build_count_statement(scope: RequestScope) -> Select:
    return _scoped(select(func.count(ClientRequest.id)).select_from(ClientRequest), scope)


def build_detail_statement(request_id) -> Select:
    return (
        select(ClientRequest, *IDENTITY_COLUMNS)
        .select_from(ClientRequest)
        .outerjoin(ClientUser, ClientUser.id == ClientRequest.client_id)
        .outerjoin(LawyerUser, LawyerUser.id == ClientRequest.lawyer_id)
        .where(ClientRequest.id == request_id)
    )


def build_status_breakdown_statement(*, client_id: str | None = None, lawyer_id: str | None = None) -> Select:
    return (
        select(ClientRequest.status, func.count(ClientRequest.id))
        .where(*request_filter_predicates(client_id=client_id, lawyer_id=lawyer_id))
        .group_by(ClientRequest.status)
    )


def build_notification_parties_statement(request_id) -> Select:
    """Requester and target lawyer of a request; no row unless both users exist."""
    return (
        select(
            ClientRequest.title,
            ClientRequest.description,
            ClientRequest.urgency,
            ClientRequest.case_category,
            *IDENTITY_COLUMNS,
        )
        .select_from(ClientRequest)
        .join(ClientUser, ClientUser.id == ClientRequest.client_id)
        .join(LawyerUser, LawyerUser.id == ClientRequest.lawyer_id)
        .where(ClientRequest.id == request_id)
    )
