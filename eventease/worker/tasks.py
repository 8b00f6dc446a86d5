from dataclasses import asdict
from functools import lru_cache

from celery.utils.log import get_task_logger
from redis.exceptions import RedisError

from eventease.core.config import settings
from eventease.db import SessionLocal
from eventease.mail import get_mailer
from eventease.redis_client import get_redis
from eventease.scheduler import SweepSupervisor, build_supervisor
from eventease.worker.celery_app import celery_app

logger = get_task_logger(__name__)


@lru_cache(maxsize=1)
def get_supervisor() -> SweepSupervisor:
    return build_supervisor(
        SessionLocal,
        get_mailer(),
        send_attempts=settings.notification_send_attempts,
        max_workers=settings.notify_max_workers,
    )


def run_sweep(name: str) -> dict:
    """Run one sweep under a cross-process Redis lock.

    The lock fails open: with Redis down the sweep still runs, guarded only by
    its in-process running flag.
    """
    lock = get_redis().lock(
        f"eventease:sweep:{name}",
        timeout=settings.sweep_lock_timeout_seconds,
        blocking=False,
    )
    try:
        acquired = lock.acquire(blocking=False)
    except RedisError as exc:
        logger.warning("sweep lock unavailable for %s, running unlocked: %s", name, exc)
        acquired, lock = True, None

    if not acquired:
        logger.info("sweep %s already running on another worker, skipping", name)
        return {"name": name, "skipped": True}

    try:
        result = get_supervisor().run(name)
    finally:
        if lock is not None:
            try:
                lock.release()
            except RedisError as exc:
                logger.warning("failed to release sweep lock for %s: %s", name, exc)

    logger.info(
        "sweep %s done examined=%s transitioned=%s sent=%s failed=%s errors=%s",
        name,
        result.examined,
        result.transitioned,
        result.sent,
        result.failed,
        result.errors,
    )
    return asdict(result)


@celery_app.task(name="sweep_reminders")
def sweep_reminders() -> dict:
    return run_sweep("reminders")


@celery_app.task(name="sweep_live_transition")
def sweep_live_transition() -> dict:
    return run_sweep("live_transition")


@celery_app.task(name="sweep_completion")
def sweep_completion() -> dict:
    return run_sweep("completion")
