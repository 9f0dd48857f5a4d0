from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.orm import Session

from app.models.lawyer_profile import LawyerProfile
from app.models.user import User
from app.services.request_errors import LawyerNotFound, RequestValidationFailed

_LOG = logging.getLogger("app.lawyer_resolver")

LAWYER_ROLES = ("lawyer", "avocat")

MATCHED_BY_USER = "user"
MATCHED_BY_LAWYER_PROFILE = "lawyer_profile"


@dataclass(frozen=True)
class LawyerResolution:
    """A lawyer reference mapped onto the users table.

    Callers may hand in either a users.id of a lawyer account or a lawyers.id
    profile key; ``user_id`` is always the users.id.
    """

    user_id: str
    matched_by: str
    profile_id: str | None = None


def _normalize_reference(value: str | None) -> str:
    return str(value or "").strip()


def resolve_lawyer_reference(db: Session, reference: str | None) -> LawyerResolution:
    ref = _normalize_reference(reference)
    if not ref:
        raise RequestValidationFailed("Lawyer ID is required")

    user_id = (
        db.query(User.id)
        .filter(User.id == ref, User.role.in_(LAWYER_ROLES))
        .scalar()
    )
    if user_id is not None:
        _LOG.debug("lawyer reference %s matched a lawyer user", ref)
        return LawyerResolution(user_id=str(user_id), matched_by=MATCHED_BY_USER)

    linked_user_id = db.query(LawyerProfile.user_id).filter(LawyerProfile.id == ref).scalar()
    if linked_user_id is not None:
        _LOG.info("lawyer profile %s resolved to user %s", ref, linked_user_id)
        return LawyerResolution(
            user_id=str(linked_user_id),
            matched_by=MATCHED_BY_LAWYER_PROFILE,
            profile_id=ref,
        )

    raise LawyerNotFound(ref)


def resolve_lawyer_id(db: Session, reference: str | None) -> str:
    return resolve_lawyer_reference(db, reference).user_id


def resolve_lawyer_id_optional(db: Session, reference: str | None) -> str | None:
    if not _normalize_reference(reference):
        return None
    return resolve_lawyer_id(db, reference)


def lawyer_profile_id_for_user(db: Session, user_id: str) -> str | None:
    value = db.query(LawyerProfile.id).filter(LawyerProfile.user_id == _normalize_reference(user_id)).scalar()
    return str(value) if value is not None else None


def is_lawyer(db: Session, user_id: str) -> bool:
    role = db.query(User.role).filter(User.id == _normalize_reference(user_id)).scalar()
    return str(role or "").strip().lower() in LAWYER_ROLES
