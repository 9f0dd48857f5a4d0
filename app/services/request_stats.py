from __future__ import annotations

from sqlalchemy.orm import Session

from app.services.request_errors import RequestValidationFailed
from app.services.request_queries import build_status_breakdown_statement
from app.services.status_flow import ALL_STATUSES, normalize_status

ROLE_CLIENT = "client"
ROLE_LAWYER = "lawyer"


def request_stats(db: Session, subject_id: str, role: str) -> dict[str, int]:
    subject_role = str(role or "").strip().lower()
    if subject_role == ROLE_CLIENT:
        stmt = build_status_breakdown_statement(client_id=subject_id)
    elif subject_role == ROLE_LAWYER:
        stmt = build_status_breakdown_statement(lawyer_id=subject_id)
    else:
        raise RequestValidationFailed(f"Unknown stats subject role: {role}")

    stats = {"total": 0, **{status: 0 for status in ALL_STATUSES}}
    for status, count in db.execute(stmt).all():
        code = normalize_status(status)
        stats["total"] += int(count)
        if code in stats:
            stats[code] += int(count)
    return stats
