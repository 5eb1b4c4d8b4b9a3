#!/usr/bin/env python3
"""
Utility functions for the web application.
"""

from decimal import Decimal
from typing import Optional, Any, List
from datetime import datetime

from database.models import as_utc


def safe_float(value: Optional[Any], default: float = 0.0) -> float:
    """
    Safely convert value to float.

    Args:
        value: Value to convert (can be Decimal, int, float, or None).
        default: Default value if conversion fails or value is None.

    Returns:
        Float value.
    """
    if value is None:
        return default

    if isinstance(value, Decimal):
        return float(value)

    try:
        return float(value)
    except (ValueError, TypeError):
        return default


def safe_list(value: Optional[Any]) -> List[str]:
    """JSON list column to a list of strings; anything else becomes []."""
    if not isinstance(value, (list, tuple)):
        return []
    return [str(item) for item in value if item is not None]


def safe_datetime_iso(dt: Optional[datetime]) -> Optional[str]:
    """
    Safely convert datetime to ISO format string (UTC).

    Args:
        dt: Datetime object.

    Returns:
        ISO format string or None.
    """
    if dt is None:
        return None
    return as_utc(dt).isoformat()
