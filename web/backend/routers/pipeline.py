#!/usr/bin/env python3
"""
Pipeline endpoints - trigger and monitor fleet rescoring.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from ..services.pipeline_service import PipelineTask, PipelineTaskManager, get_pipeline_manager
from ..models.requests import FleetRescoreRequest
from ..models.responses import PipelineTaskResponse, PipelineStatusResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/pipeline", tags=["pipeline"])


def _status_response(task: PipelineTask) -> PipelineStatusResponse:
    response = PipelineStatusResponse(
        task_id=task.task_id,
        status=task.status,
        step=task.step
    )

    result = task.result
    if result:
        if result.stats:
            response.candidates_total = result.stats.candidates_total
            response.candidates_processed = result.stats.candidates_processed
            response.candidates_failed = result.stats.candidates_failed
            response.total_matches = result.stats.total_matches
        response.notified_count = result.notified_count
        response.execution_time = result.execution_time
        response.error = result.error
    elif task.error:
        response.error = task.error

    return response


@router.post("/rescore-all", response_model=PipelineTaskResponse)
def run_fleet_rescoring_endpoint(
    payload: Optional[FleetRescoreRequest] = None,
    manager: PipelineTaskManager = Depends(get_pipeline_manager)
):
    """
    Rescore every active candidate in the background.

    Returns immediately with a task_id that can be polled at
    /api/pipeline/status/{task_id}. A second request while a run is in
    progress returns the running task.
    """
    payload = payload or FleetRescoreRequest()

    active = manager.get_active_task()
    if active:
        return PipelineTaskResponse(
            success=True,
            task_id=active.task_id,
            message="Fleet rescoring is already running. Returning existing task."
        )

    task_id = manager.create_task(job_ids=payload.job_ids, candidate_limit=payload.candidate_limit)
    return PipelineTaskResponse(
        success=True,
        task_id=task_id,
        message="Fleet rescoring started. Use /api/pipeline/status/{task_id} to check progress."
    )


@router.get("/status/{task_id}", response_model=PipelineStatusResponse)
def get_pipeline_status(
    task_id: str,
    manager: PipelineTaskManager = Depends(get_pipeline_manager)
):
    """
    Get the status of a fleet rescoring task.

    Status values:
    - pending: Task created but not yet started
    - running: Rescoring is in progress
    - completed: Finished (possibly cancelled; see ``error``)
    - failed: Aborted on a storage failure or crash
    """
    task = manager.get_task(task_id)
    if not task:
        raise HTTPException(status_code=404, detail="Task not found")
    return _status_response(task)


@router.get("/active", response_model=Optional[PipelineStatusResponse])
def get_active_pipeline_task(manager: PipelineTaskManager = Depends(get_pipeline_manager)):
    task = manager.get_active_task()
    if not task:
        return None
    return _status_response(task)


@router.post("/stop", response_model=PipelineTaskResponse)
def stop_fleet_rescoring(manager: PipelineTaskManager = Depends(get_pipeline_manager)):
    """
    Stop the running task. Candidates already being scored finish first.
    """
    task_id = manager.stop_active_task()

    if not task_id:
        return PipelineTaskResponse(
            success=False,
            task_id="",
            message="No active fleet rescoring to stop."
        )

    return PipelineTaskResponse(
        success=True,
        task_id=task_id,
        message="Fleet rescoring cancellation requested."
    )
