"""Admission gate for quota-controlled candidate actions."""

from core.admission.gate import (
    ActionKind,
    AdmissionDecision,
    AdmissionGate,
    UsageStats,
)

__all__ = ['ActionKind', 'AdmissionDecision', 'AdmissionGate', 'UsageStats']
