#!/usr/bin/env python3
"""
Pipeline service - runs fleet rescoring in a background thread.
"""

import uuid
import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, List, Optional
from threading import Lock, Event

from core.exceptions import PipelineLockedError
from pipeline.control import PipelineController
from pipeline.runner import run_fleet_rescoring, FleetRunResult

logger = logging.getLogger(__name__)

ACTIVE_STATUSES = ("pending", "running")


@dataclass
class PipelineTask:
    """Represents a fleet rescoring task."""
    task_id: str
    status: str  # "pending", "running", "completed", "failed"
    step: Optional[str] = None
    result: Optional[FleetRunResult] = None
    error: Optional[str] = None
    created_at: datetime = field(default_factory=datetime.now)
    stop_event: Event = field(default_factory=Event)


class PipelineTaskManager:
    """Manages fleet rescoring task execution and state."""

    def __init__(
        self,
        context_provider: Callable,
        controller: Optional[PipelineController] = None,
        runner: Callable[..., FleetRunResult] = run_fleet_rescoring
    ):
        self._tasks: Dict[str, PipelineTask] = {}
        self._lock = Lock()
        self._context_provider = context_provider
        self._controller = controller or PipelineController()
        self._runner = runner

    def create_task(
        self,
        job_ids: Optional[List[str]] = None,
        candidate_limit: Optional[int] = None
    ) -> str:
        """
        Start a fleet rescoring task, or return the one already running.

        Raises:
            PipelineLockedError: If another process holds the rescore lock.
        """
        with self._lock:
            for tid, task in self._tasks.items():
                if task.status in ACTIVE_STATUSES:
                    return tid

        if not self._controller.acquire_lock("web"):
            lock_info = self._controller.get_lock_info()
            owner = lock_info.get("source", "unknown") if lock_info else "unknown"
            raise PipelineLockedError(
                f"Fleet rescoring is locked by another process ({owner}). Please try again later."
            )

        task_id = str(uuid.uuid4())
        with self._lock:
            self._tasks[task_id] = PipelineTask(task_id=task_id, status="pending", step="initializing")

        thread = threading.Thread(
            target=self._run_background,
            args=(task_id, job_ids, candidate_limit),
            daemon=True
        )
        thread.start()
        return task_id

    def get_task(self, task_id: str) -> Optional[PipelineTask]:
        with self._lock:
            return self._tasks.get(task_id)

    def get_active_task(self) -> Optional[PipelineTask]:
        with self._lock:
            for task in self._tasks.values():
                if task.status in ACTIVE_STATUSES:
                    return task
        return None

    def stop_active_task(self) -> Optional[str]:
        """
        Request cancellation of the running task.

        Returns:
            Task ID if a stop was requested, None if nothing is running.
        """
        with self._lock:
            for tid, task in self._tasks.items():
                if task.status in ACTIVE_STATUSES:
                    task.stop_event.set()
                    return tid
        return None

    def update_task_status(self, task_id: str, status: str, **kwargs) -> None:
        with self._lock:
            task = self._tasks.get(task_id)
            if task is None:
                return
            task.status = status
            for key, value in kwargs.items():
                setattr(task, key, value)
            if status in ("completed", "failed"):
                self._cleanup_completed_tasks()

    def _cleanup_completed_tasks(self, keep_count: int = 5) -> None:
        finished = sorted(
            (t for t in self._tasks.values() if t.status not in ACTIVE_STATUSES),
            key=lambda t: t.created_at,
            reverse=True
        )
        for task in finished[keep_count:]:
            del self._tasks[task.task_id]

    def _run_background(self, task_id: str, job_ids, candidate_limit) -> None:
        task = self.get_task(task_id)
        try:
            self.update_task_status(task_id, "running", step="starting")
            ctx = self._context_provider()
            result = self._runner(
                ctx,
                stop_event=task.stop_event,
                status_callback=lambda step: self.update_task_status(task_id, "running", step=step),
                job_ids=job_ids,
                candidate_limit=candidate_limit
            )
            if result.success:
                self.update_task_status(task_id, "completed", step="done", result=result)
            else:
                self.update_task_status(task_id, "failed", step="done", result=result, error=result.error)
        except Exception as e:
            logger.exception(f"Fleet rescoring task {task_id} crashed")
            self.update_task_status(task_id, "failed", error=str(e))
        finally:
            self._controller.release_lock()


_pipeline_manager: Optional[PipelineTaskManager] = None
_manager_lock = Lock()


def get_pipeline_manager() -> PipelineTaskManager:
    """Get the global pipeline manager instance."""
    global _pipeline_manager
    with _manager_lock:
        if _pipeline_manager is None:
            from ..dependencies import get_app_context
            _pipeline_manager = PipelineTaskManager(get_app_context)
    return _pipeline_manager
