from celery import Celery
from app.core.config import settings

celery_app = Celery("lawyer_requests", broker=settings.REDIS_URL, backend=settings.REDIS_URL)

celery_app.conf.task_routes = {
    "app.workers.tasks.notify.*": {"queue": "notifications"},
}
celery_app.conf.task_ignore_result = True
celery_app.conf.imports = ("app.workers.tasks.notify",)
celery_app.conf.timezone = "UTC"
