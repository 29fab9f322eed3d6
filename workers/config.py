# =============================================================================
# workers/config.py - Celery Worker Configuration
# =============================================================================
# Broker, time limits and routing for agent runs. Time limits follow the
# longest backend call an agent can make (an n8n workflow).
# =============================================================================

from app.config import settings

AI_QUEUE = "ai_tasks"
DEFAULT_QUEUE = "default"

# Tasks that call OpenAI, n8n or edge functions
AI_TASKS = (
    "workers.tasks.execute_agent",
    "workers.tasks.run_company_webhooks",
)

# Seconds a task may outlive the n8n webhook timeout (usage log + credits)
TASK_TIME_MARGIN = 300


class CeleryConfig:
    """
    Applied to the Celery app via app.config_from_object().
    """

    broker_url = settings.REDIS_URL
    result_backend = settings.REDIS_URL
    broker_connection_retry_on_startup = True

    # -------------------------------------------------------------------------
    # Delivery
    # -------------------------------------------------------------------------

    # Ack on receipt; a redelivered agent run would be billed twice
    task_acks_late = False
    task_reject_on_worker_lost = False
    worker_prefetch_multiplier = 1

    task_time_limit = settings.N8N_DEFAULT_TIMEOUT_MS // 1000 + TASK_TIME_MARGIN
    task_soft_time_limit = task_time_limit - 60

    # -------------------------------------------------------------------------
    # Results (polled by GET /agents/tasks/{task_id})
    # -------------------------------------------------------------------------

    result_expires = 3600
    result_extended = True
    task_track_started = True

    task_serializer = "json"
    result_serializer = "json"
    accept_content = ["json"]

    # -------------------------------------------------------------------------
    # Routing
    # -------------------------------------------------------------------------

    task_queues = {
        DEFAULT_QUEUE: {"exchange": DEFAULT_QUEUE, "routing_key": DEFAULT_QUEUE},
        AI_QUEUE: {"exchange": AI_QUEUE, "routing_key": AI_QUEUE},
    }
    task_routes = {name: {"queue": AI_QUEUE} for name in AI_TASKS}
    task_default_queue = DEFAULT_QUEUE

    worker_send_task_events = True
    task_send_sent_event = True

    timezone = "UTC"
    enable_utc = True
