"""Redis queue configuration and job management."""

from typing import Any
from uuid import UUID

from rq import Queue
from rq.exceptions import NoSuchJobError
from rq.job import Job, JobStatus

from app.core.redis import get_redis

# Lazy initialized queues cache
_queues: dict[str, Queue] = {}


def get_queue(name: str = "default") -> Queue:
    """Get RQ queue with specified name.

    Uses cached queue instances to avoid creating multiple connections.

    Args:
        name: Queue name. Defaults to "default".

    Returns:
        RQ Queue instance.
    """
    if name not in _queues:
        _queues[name] = Queue(name=name, connection=get_redis())
    return _queues[name]


def enqueue_job(
    func: Any,
    *args: Any,
    queue_name: str = "default",
    job_timeout: int = 600,
    job_id: str | UUID | None = None,
    **kwargs: Any,
) -> Job:
    """Enqueue a job to the Redis queue.

    Args:
        func: The function to execute.
        *args: Positional arguments for the function.
        queue_name: Name of the queue. Defaults to "default".
        job_timeout: Job timeout in seconds. Defaults to 600 (10 minutes).
        job_id: Optional custom job ID (string or UUID).
        **kwargs: Keyword arguments for the function.

    Returns:
        RQ Job instance with job_id.
    """
    queue = get_queue(queue_name)
    job_id_str = str(job_id) if job_id is not None else None
    return queue.enqueue(func, *args, job_timeout=job_timeout, job_id=job_id_str, **kwargs)


def get_job(job_id: str | UUID) -> Job | None:
    """Get job by ID.

    Args:
        job_id: The job ID to look up (string or UUID).

    Returns:
        Job instance or None if not found.
    """
    job_id_str = str(job_id) if isinstance(job_id, UUID) else job_id
    try:
        return Job.fetch(job_id_str, connection=get_redis())
    except NoSuchJobError:
        return None


def job_status_value(job: Job) -> str:
    """Status of a fetched job as a plain string ('queued', 'finished', ...)."""
    status = job.get_status()
    if status is None:
        return "unknown"
    return JobStatus(status).value


def reset_queue_cache() -> None:
    """Forget cached queue instances without touching the jobs they hold."""
    _queues.clear()


# Queue names for different job types
QUEUE_NAMES = {
    "compliance": "compliance_scoring",
}
