from __future__ import annotations

import logging
import math
from datetime import date, timedelta
from typing import Any, Mapping, Optional

from .models import BusinessProfile

log = logging.getLogger(__name__)


def _offset_days(value: Any) -> int:
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return 0
    if isinstance(value, (int, float)) and math.isfinite(value):
        return int(value)
    return 0


def _as_date(value: Any) -> Optional[date]:
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value.strip():
        try:
            return date.fromisoformat(value.strip())
        except ValueError:
            return None
    return None


def compute_due_date(conditions: Optional[Mapping[str, Any]], profile: BusinessProfile) -> Optional[str]:
    """Return ``profile[dueFrom] + dueInDays`` as YYYY-MM-DD, or None.

    ``dueFrom`` may name the profile field by its form name (``firstPayrollDate``)
    or its attribute name (``first_payroll_date``).
    """
    if not conditions:
        return None
    due_from = conditions.get("dueFrom")
    if not isinstance(due_from, str) or not due_from.strip():
        return None

    field_name = BusinessProfile.resolve_field(due_from.strip())
    if field_name is None:
        return None
    raw = getattr(profile, field_name, None)
    if raw is None or raw == "":
        return None

    base = _as_date(raw)
    if base is None:
        log.warning("Cannot compute due date: %s=%r is not an ISO date", due_from, raw)
        return None

    offset = _offset_days(conditions.get("dueInDays"))
    try:
        return (base + timedelta(days=offset)).isoformat()
    except (OverflowError, ValueError):
        log.warning("Cannot compute due date: %s=%s + %d days is out of range", due_from, base.isoformat(), offset)
        return None
