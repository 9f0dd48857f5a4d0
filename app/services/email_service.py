from __future__ import annotations

import logging
import smtplib
from email.message import EmailMessage
from typing import Any
import httpx

from app.core.config import settings


class EmailDeliveryError(Exception):
    pass


logger = logging.getLogger("app.email")

URGENCY_LABELS = {
    "low": "Low",
    "medium": "Medium",
    "high": "High",
    "urgent": "Urgent",
}


def _normalize_email(value: str | None) -> str:
    return str(value or "").strip().lower()


def _frontend_url(path: str) -> str:
    base = str(settings.FRONTEND_URL or "").strip().rstrip("/")
    return f"{base}{path}"


def _mock_send(*, email: str, subject: str, body: str) -> dict[str, Any]:
    logger.warning("[EMAIL MOCK] to=%s subject=%s\n%s", email, subject, body)
    return {
        "provider": "mock_email",
        "status": "accepted",
        "message": "Email provider response mocked",
        "sent": False,
        "mocked": True,
    }


def _send_smtp(*, email: str, subject: str, body: str) -> dict[str, Any]:
    host = str(settings.SMTP_HOST or "").strip()
    port = int(settings.SMTP_PORT or 0)
    username = str(settings.SMTP_USER or "").strip()
    password = str(settings.SMTP_PASSWORD or "").strip()
    sender = str(settings.SMTP_FROM or "").strip()
    use_tls = bool(getattr(settings, "SMTP_USE_TLS", True))
    use_ssl = bool(getattr(settings, "SMTP_USE_SSL", False))

    if not host or not port or not sender:
        raise EmailDeliveryError("SMTP_HOST/SMTP_PORT/SMTP_FROM are not configured")
    if use_tls and use_ssl:
        raise EmailDeliveryError("SMTP_USE_TLS and SMTP_USE_SSL cannot both be enabled")

    msg = EmailMessage()
    msg["From"] = sender
    msg["To"] = email
    msg["Subject"] = subject
    msg.set_content(body)

    try:
        if use_ssl:
            smtp = smtplib.SMTP_SSL(host=host, port=port, timeout=15)
        else:
            smtp = smtplib.SMTP(host=host, port=port, timeout=15)
        with smtp as client:
            client.ehlo()
            if use_tls:
                client.starttls()
                client.ehlo()
            if username:
                client.login(username, password)
            client.send_message(msg)
    except Exception as exc:
        raise EmailDeliveryError(f"SMTP delivery failed: {exc}") from exc

    return {
        "provider": "smtp",
        "status": "accepted",
        "message": "Email sent",
        "sent": True,
    }


def _send_via_email_service(*, email: str, subject: str, body: str) -> dict[str, Any]:
    base_url = str(settings.EMAIL_SERVICE_URL or "").strip().rstrip("/")
    token = str(settings.INTERNAL_SERVICE_TOKEN or "").strip()
    if not base_url:
        raise EmailDeliveryError("EMAIL_SERVICE_URL is not configured")
    if not token:
        raise EmailDeliveryError("INTERNAL_SERVICE_TOKEN is not configured")
    try:
        with httpx.Client(timeout=15.0) as client:
            response = client.post(
                f"{base_url}/internal/send-email",
                headers={"X-Internal-Token": token, "Content-Type": "application/json"},
                json={"email": email, "subject": subject, "body": body},
            )
    except Exception as exc:
        raise EmailDeliveryError(f"email-service request failed: {exc}") from exc
    payload: dict[str, Any] = {}
    try:
        payload = response.json() if response.content else {}
    except Exception:
        payload = {}
    if response.status_code >= 400:
        detail = str(payload.get("detail") or payload.get("error") or response.text or response.status_code)
        raise EmailDeliveryError(f"email-service error: {detail}")
    return {
        "provider": "email-service",
        "status": "accepted",
        "message": "Email sent through email-service",
        "sent": True,
        "response": payload,
    }


def send_email_message(*, email: str, subject: str, body: str) -> dict[str, Any]:
    normalized_email = _normalize_email(email)
    if not normalized_email:
        raise EmailDeliveryError("Recipient email is missing")

    provider = str(settings.EMAIL_PROVIDER or "dummy").strip().lower()
    if provider in {"", "dummy", "mock", "console"}:
        return _mock_send(email=normalized_email, subject=subject, body=body)
    if provider in {"service", "email_service"}:
        return _send_via_email_service(email=normalized_email, subject=subject, body=body)
    if provider == "smtp":
        return _send_smtp(email=normalized_email, subject=subject, body=body)

    raise EmailDeliveryError(f"Unknown EMAIL_PROVIDER: {provider}")


def notify_lawyer_of_new_request(
    *,
    lawyer_email: str,
    lawyer_first_name: str | None,
    client_name: str,
    title: str,
    description: str | None,
    urgency: str | None,
    case_category: str | None,
) -> dict[str, Any]:
    urgency_label = URGENCY_LABELS.get(str(urgency or "").lower(), str(urgency or "-"))
    greeting = f"Hello {lawyer_first_name}," if lawyer_first_name else "Hello,"
    body = "\n".join(
        [
            greeting,
            "",
            f"{client_name} has sent you a new request.",
            "",
            f"Title: {title}",
            f"Category: {case_category or '-'}",
            f"Urgency: {urgency_label}",
            "",
            str(description or "").strip() or "(no description)",
            "",
            f"Review the request: {_frontend_url('/lawyer/requests')}",
        ]
    )
    return send_email_message(email=lawyer_email, subject=f"New client request: {title}", body=body)


def notify_client_of_acceptance(
    *,
    client_email: str,
    client_first_name: str | None,
    lawyer_name: str,
    title: str,
) -> dict[str, Any]:
    greeting = f"Hello {client_first_name}," if client_first_name else "Hello,"
    body = "\n".join(
        [
            greeting,
            "",
            f'{lawyer_name} has accepted your request "{title}".',
            "Your lawyer will contact you shortly to agree on the next steps.",
            "",
            f"Open your cases: {_frontend_url('/cases')}",
        ]
    )
    return send_email_message(email=client_email, subject=f"Request accepted: {title}", body=body)


def notify_client_of_rejection(
    *,
    client_email: str,
    client_first_name: str | None,
    lawyer_name: str,
    title: str,
) -> dict[str, Any]:
    greeting = f"Hello {client_first_name}," if client_first_name else "Hello,"
    body = "\n".join(
        [
            greeting,
            "",
            f'{lawyer_name} is unfortunately unable to take on your request "{title}".',
            "You can contact another lawyer on the platform.",
            "",
            f"Find a lawyer: {_frontend_url('/lawyers')}",
        ]
    )
    return send_email_message(email=client_email, subject=f"Update on your request: {title}", body=body)


def email_provider_health() -> dict[str, Any]:
    provider = str(settings.EMAIL_PROVIDER or "dummy").strip().lower()
    if provider in {"", "dummy", "mock", "console"}:
        return {
            "provider": "dummy",
            "status": "ok",
            "mode": "mock",
            "can_send": True,
            "checks": {"mock_mode": True},
            "issues": [],
        }

    if provider in {"service", "email_service"}:
        base_url = str(settings.EMAIL_SERVICE_URL or "").strip().rstrip("/")
        token = str(settings.INTERNAL_SERVICE_TOKEN or "").strip()
        checks = {"email_service_url_configured": bool(base_url), "internal_service_token_configured": bool(token)}
        issues: list[str] = []
        if not checks["email_service_url_configured"]:
            issues.append("EMAIL_SERVICE_URL is not configured")
        if not checks["internal_service_token_configured"]:
            issues.append("INTERNAL_SERVICE_TOKEN is not configured")
        can_send = all(checks.values())
        if can_send:
            try:
                with httpx.Client(timeout=5.0) as client:
                    response = client.get(f"{base_url}/health")
                if response.status_code >= 400:
                    can_send = False
                    issues.append(f"email-service unavailable: HTTP {response.status_code}")
            except Exception as exc:
                can_send = False
                issues.append(f"email-service unavailable: {exc}")
        return {
            "provider": "email-service",
            "status": "ok" if can_send else "degraded",
            "mode": "service",
            "can_send": can_send,
            "checks": checks,
            "issues": issues,
        }

    if provider == "smtp":
        host = str(settings.SMTP_HOST or "").strip()
        sender = str(settings.SMTP_FROM or "").strip()
        checks = {"smtp_host_configured": bool(host), "smtp_from_configured": bool(sender)}
        issues = []
        if not checks["smtp_host_configured"]:
            issues.append("SMTP_HOST is not configured")
        if not checks["smtp_from_configured"]:
            issues.append("SMTP_FROM is not configured")
        return {
            "provider": "smtp",
            "status": "ok" if all(checks.values()) else "degraded",
            "mode": "real",
            "can_send": all(checks.values()),
            "checks": checks,
            "issues": issues,
        }

    return {
        "provider": provider,
        "status": "error",
        "mode": "unknown",
        "can_send": False,
        "checks": {"provider_supported": False},
        "issues": [f"Unknown EMAIL_PROVIDER: {provider}"],
    }
