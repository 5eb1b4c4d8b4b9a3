#!/usr/bin/env python3
"""
Admission endpoints - quota checks before gated actions.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request

from core.admission import AdmissionDecision
from core.app_context import AppContext
from ..dependencies import get_app_context, get_current_candidate_id
from ..models.requests import AdmissionRequest
from ..models.responses import AdmissionResponse, UsageResponse
from ..utils import safe_datetime_iso

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admission", tags=["admission"])


def _client_ip(request: Request) -> Optional[str]:
    return request.client.host if request.client else None


def _to_response(decision: AdmissionDecision) -> AdmissionResponse:
    return AdmissionResponse(
        success=True,
        allowed=decision.allowed,
        reason=decision.reason,
        remaining=decision.remaining,
        reset_date=safe_datetime_iso(decision.reset_date),
        tier=decision.tier,
        bypass=decision.bypass
    )


def _deny(decision: AdmissionDecision) -> HTTPException:
    return HTTPException(
        status_code=403,
        detail={
            "error": decision.reason,
            "allowed": False,
            "remaining": 0,
            "reset_date": safe_datetime_iso(decision.reset_date),
            "tier": decision.tier,
        }
    )


@router.post("/check", response_model=AdmissionResponse)
def check_permission(
    body: AdmissionRequest,
    candidate_id: str = Depends(get_current_candidate_id),
    ctx: AppContext = Depends(get_app_context)
):
    """Report whether the caller may take the action now, without recording it."""
    return _to_response(ctx.gate.check_permission(candidate_id, body.job_id, body.action))


@router.post("/record", response_model=AdmissionResponse)
def record_action(
    body: AdmissionRequest,
    request: Request,
    candidate_id: str = Depends(get_current_candidate_id),
    ctx: AppContext = Depends(get_app_context)
):
    """
    Admit and record a gated action.

    Returns 403 with the reset date when the caller is over quota.
    """
    ip_address = _client_ip(request)

    if ctx.config.quota.atomic_reservation:
        decision = ctx.gate.reserve_action(candidate_id, body.job_id, body.action, ip_address)
        if not decision.allowed:
            raise _deny(decision)
        return _to_response(decision)

    decision = ctx.gate.check_permission(candidate_id, body.job_id, body.action)
    if not decision.allowed:
        raise _deny(decision)
    ctx.gate.record_action(candidate_id, body.job_id, body.action, ip_address)
    if decision.remaining is not None:
        decision.remaining = max(0, decision.remaining - 1)
    return _to_response(decision)


@router.get("/usage", response_model=UsageResponse)
def get_usage(
    candidate_id: str = Depends(get_current_candidate_id),
    ctx: AppContext = Depends(get_app_context)
):
    usage = ctx.gate.get_usage_stats(candidate_id)
    return UsageResponse(
        success=True,
        tier=usage.tier,
        used_actions=usage.used_actions,
        max_actions=usage.max_actions,
        remaining=usage.remaining,
        reset_date=safe_datetime_iso(usage.reset_date),
        window_days=usage.window_days
    )
