from celery import Celery
from celery.schedules import crontab

from portfolio_tracker.core.config import settings

REFRESH_TASK = "portfolio_tracker.tasks.refresh.refresh_market_data_task"

celery = Celery(
    "portfolio_tracker",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
    include=["portfolio_tracker.tasks.refresh"],
)

celery.conf.update(
    timezone=settings.CELERY_TIMEZONE,
    enable_utc=True,
    worker_concurrency=settings.CELERY_WORKER_CONCURRENCY,
    broker_connection_retry_on_startup=True,
    task_acks_late=True,
    result_expires=24 * 3600,
)

if settings.CELERY_BEAT_ENABLED:
    # hourly, just after the quote cache window rolls over
    celery.conf.beat_schedule = {
        "refresh-held-assets-hourly": {
            "task": REFRESH_TASK,
            "schedule": crontab(minute=settings.REFRESH_MINUTE),
            "kwargs": {"update_history": True},
        },
    }
