"""Celery application configuration."""

from celery import Celery

from grocery.config import get_settings

settings = get_settings()

app = Celery(
    "grocery_list",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=["grocery.tasks.notifications"],
)

# Celery configuration
app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_ignore_result=True,  # push fan-out is fire-and-forget
    task_time_limit=120,
    task_soft_time_limit=90,
)
