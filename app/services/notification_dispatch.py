from __future__ import annotations

import logging
from typing import Any, Protocol

from fastapi import BackgroundTasks

from app.core.config import settings
from app.services.request_notifications import RequestNotification, deliver_request_notification_detached
from app.workers.tasks.notify import deliver_request_notification

_LOG = logging.getLogger("app.notifications")


class NotificationDispatcher(Protocol):
    def submit(self, notification: RequestNotification) -> None:
        ...


class LocalNotificationDispatcher:
    def submit(self, notification: RequestNotification) -> None:
        deliver_request_notification_detached(notification)


class CeleryNotificationDispatcher:
    def submit(self, notification: RequestNotification) -> None:
        deliver_request_notification.delay(notification.event, notification.request_id)


_cached_dispatcher: NotificationDispatcher | None = None


def _build_dispatcher() -> NotificationDispatcher:
    mode = str(settings.NOTIFICATION_DISPATCH_MODE or "local").strip().lower()
    if mode == "celery":
        return CeleryNotificationDispatcher()
    if mode != "local":
        _LOG.warning("Unknown NOTIFICATION_DISPATCH_MODE=%s; using local dispatch", mode)
    return LocalNotificationDispatcher()


def get_notification_dispatcher() -> NotificationDispatcher:
    global _cached_dispatcher
    if _cached_dispatcher is None:
        _cached_dispatcher = _build_dispatcher()
    return _cached_dispatcher


def reset_notification_dispatcher_for_tests() -> None:
    global _cached_dispatcher
    _cached_dispatcher = None


def submit_notification(notification: RequestNotification) -> None:
    try:
        get_notification_dispatcher().submit(notification)
    except Exception:
        _LOG.exception(
            "notification dispatch failed event=%s request_id=%s",
            notification.event,
            notification.request_id,
        )


def schedule_request_notification(background_tasks: BackgroundTasks, event: str, request_id: Any) -> RequestNotification:
    """Queue a notification to run after the response has been sent."""
    notification = RequestNotification(event=event, request_id=str(request_id))
    background_tasks.add_task(submit_notification, notification)
    return notification
