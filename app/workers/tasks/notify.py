from __future__ import annotations

from app.services.request_notifications import RequestNotification, deliver_request_notification_detached
from app.workers.celery_app import celery_app


@celery_app.task(name="app.workers.tasks.notify.deliver_request_notification")
def deliver_request_notification(event: str, request_id: str):
    return deliver_request_notification_detached(RequestNotification(event=event, request_id=request_id))
