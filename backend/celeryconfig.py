"""
Celery configuration for the storage import worker.

Loaded by `celery_app.config_from_object("celeryconfig")` in
storage_import/tasks/__init__.py.  Broker and backend URLs come from the
environment and default to a local Redis.

Run the regeneration worker with:
    celery -A storage_import.tasks worker -Q regeneration
"""

import os

# ═══════════════════════════════════════════════════════════
#  Broker & Result Backend
# ═══════════════════════════════════════════════════════════

broker_url = os.getenv("CELERY_BROKER_URL", "redis://localhost:6379/0")
result_backend = os.getenv("CELERY_RESULT_BACKEND", "redis://localhost:6379/1")

# Task arguments are plain ids; JSON is enough
task_serializer = "json"
result_serializer = "json"
accept_content = ["json"]

timezone = "UTC"
enable_utc = True

# ═══════════════════════════════════════════════════════════
#  Delivery
# ═══════════════════════════════════════════════════════════

# A regeneration lost with its worker is redelivered
task_acks_late = True
task_reject_on_worker_lost = True
worker_prefetch_multiplier = 1

# One POST to the actions service; anything longer is stuck
task_soft_time_limit = 60
task_time_limit = 90

# Retries and backoff are declared on the task itself
task_default_retry_delay = 30

# Outcomes are only read while debugging
result_expires = 6 * 3600

worker_max_tasks_per_child = 500
worker_send_task_events = False

# ═══════════════════════════════════════════════════════════
#  Routing
# ═══════════════════════════════════════════════════════════

task_routes = {
    "storage_import.tasks.regeneration_tasks.*": {"queue": "regeneration"},
}
task_default_queue = "default"
