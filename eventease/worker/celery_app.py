from celery import Celery
from celery.schedules import crontab

from eventease.core.config import settings
from eventease.core.logging import configure_logging

# Sweeps log through structlog; the worker does not import main.
configure_logging(settings.log_level, json=settings.env != "local")

celery_app = Celery(
    "eventease",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=["eventease.worker.tasks"],
)

celery_app.conf.update(
    timezone="UTC",
    enable_utc=True,
    task_acks_late=False,
    worker_prefetch_multiplier=1,
    task_time_limit=settings.sweep_lock_timeout_seconds * 2,
    # Per-minute ticks expire before the next one is due so a stalled worker drops them.
    beat_schedule={
        "send-event-reminders": {
            "task": "sweep_reminders",
            "schedule": crontab(minute=0),
        },
        "mark-events-live": {
            "task": "sweep_live_transition",
            "schedule": crontab(),
            "options": {"expires": 55},
        },
        "mark-events-completed": {
            "task": "sweep_completion",
            "schedule": crontab(),
            "options": {"expires": 55},
        },
    },
)
