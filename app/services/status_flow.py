from __future__ import annotations

STATUS_PENDING = "pending"
STATUS_ACCEPTED = "accepted"
STATUS_REJECTED = "rejected"
STATUS_CANCELLED = "cancelled"

ALL_STATUSES = (STATUS_PENDING, STATUS_ACCEPTED, STATUS_REJECTED, STATUS_CANCELLED)
TERMINAL_STATUSES = frozenset({STATUS_ACCEPTED, STATUS_REJECTED, STATUS_CANCELLED})

ALLOWED_TRANSITIONS: dict[str, frozenset[str]] = {
    STATUS_PENDING: frozenset({STATUS_ACCEPTED, STATUS_REJECTED, STATUS_CANCELLED}),
    STATUS_ACCEPTED: frozenset(),
    STATUS_REJECTED: frozenset(),
    STATUS_CANCELLED: frozenset(),
}


def normalize_status(value: str | None) -> str:
    return str(value or "").strip().lower()


def is_known_status(value: str | None) -> bool:
    return normalize_status(value) in ALLOWED_TRANSITIONS


def is_terminal(status: str | None) -> bool:
    return normalize_status(status) in TERMINAL_STATUSES


def transition_allowed(from_status: str | None, to_status: str | None) -> bool:
    from_code = normalize_status(from_status)
    to_code = normalize_status(to_status)
    if not from_code or not to_code:
        return False
    return to_code in ALLOWED_TRANSITIONS.get(from_code, frozenset())


def source_statuses_for(to_status: str) -> set[str]:
    """Statuses from which ``to_status`` may be reached; used as the UPDATE guard."""
    target = normalize_status(to_status)
    return {source for source, targets in ALLOWED_TRANSITIONS.items() if target in targets}
