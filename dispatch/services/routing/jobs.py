"""
Background batch optimization.

Large batches can be optimized outside the request: the job runs the same
RouteOptimizer transaction in its own session and reports back through a
completion callback. Job state lives in this process only; finished jobs are
kept for a while and then pruned.
"""
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Awaitable, Callable, Dict, List, Optional, Union
import inspect
import logging
import uuid

from fastapi import BackgroundTasks

from dispatch.core.config import settings
from dispatch.services.routing.route_optimizer import RouteOptimizer
from dispatch.utils.timezones import utcnow_naive

log = logging.getLogger(__name__)

LIVE_STATUSES = ("queued", "running")


@dataclass
class OptimizationJob:
    batch_id: str
    tenant_id: int
    actor_id: Optional[str] = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    status: str = "queued"  # queued, running, succeeded, failed
    route_ids: List[str] = field(default_factory=list)
    error: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow_naive)
    finished_at: Optional[datetime] = None

    @property
    def is_live(self) -> bool:
        return self.status in LIVE_STATUSES


CompletionCallback = Callable[[OptimizationJob], Union[None, Awaitable[None]]]

_jobs: Dict[str, OptimizationJob] = {}


def get_job(job_id: str) -> Optional[OptimizationJob]:
    return _jobs.get(job_id)


def trim_jobs(now: Optional[datetime] = None):
    """Drop finished jobs past retention, then the oldest ones over the cap"""
    now = now or utcnow_naive()
    retention = timedelta(seconds=settings.job_retention_seconds)

    live = 0
    finished = []
    for job_id, job in list(_jobs.items()):
        if job.is_live:
            live += 1
            continue
        finished_at = job.finished_at or now
        if now - finished_at > retention:
            _jobs.pop(job_id, None)
        else:
            finished.append((finished_at, job_id))

    finished.sort()
    while finished and live + len(finished) > settings.job_max_entries:
        _, stale_id = finished.pop(0)
        _jobs.pop(stale_id, None)


def live_job_for(batch_id: str, tenant_id: int) -> Optional[OptimizationJob]:
    for job in _jobs.values():
        if job.batch_id == batch_id and job.tenant_id == tenant_id and job.is_live:
            return job
    return None


async def run_optimization_job(
    job: OptimizationJob,
    session_factory,
    on_complete: Optional[CompletionCallback] = None,
) -> OptimizationJob:
    job.status = "running"

    async with session_factory() as db:
        try:
            routes = await RouteOptimizer(db).optimize_batch(job.batch_id, job.tenant_id, actor_id=job.actor_id)
        except Exception as exc:
            # no caller to raise to; the failure is reported on the job
            log.exception("optimization job %s failed for batch %s", job.id, job.batch_id)
            job.status = "failed"
            job.error = str(exc)
        else:
            job.status = "succeeded"
            job.route_ids = [route.id for route in routes]

    job.finished_at = utcnow_naive()
    log.info("optimization job %s %s: batch=%s routes=%s", job.id, job.status, job.batch_id, len(job.route_ids))

    if on_complete is not None:
        outcome = on_complete(job)
        if inspect.isawaitable(outcome):
            await outcome
    return job


def enqueue_optimization(
    background_tasks: BackgroundTasks,
    batch_id: str,
    tenant_id: int,
    session_factory,
    actor_id: str = None,
    on_complete: Optional[CompletionCallback] = None,
) -> OptimizationJob:
    """Queue a job for the batch, or hand back the one already queued or running"""
    trim_jobs()

    existing = live_job_for(batch_id, tenant_id)
    if existing:
        log.info("optimization already %s for batch %s (job %s)", existing.status, batch_id, existing.id)
        return existing

    job = OptimizationJob(batch_id=batch_id, tenant_id=tenant_id, actor_id=actor_id)
    _jobs[job.id] = job
    background_tasks.add_task(run_optimization_job, job, session_factory, on_complete)
    return job
