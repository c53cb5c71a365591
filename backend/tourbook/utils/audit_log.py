from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Literal, Optional

from .request_id import get_request_id

AuditAction = Literal[
    "reservation.submitted",
    "reservation.submit_failed",
    "reservation.completed",
    "reservation.payment_redirect",
    "reservation.payment_failed",
    "customer_request.created",
    "customer_request.rejected",
]

_audit_logger = logging.getLogger("tourbook.audit")
_audit_logger.setLevel(logging.INFO)
if not _audit_logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(message)s"))
    _audit_logger.addHandler(handler)
_audit_logger.propagate = False


def _plain(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, Decimal):
        return float(value)
    if hasattr(value, "value"):
        return str(value.value)
    return value


def emit_audit_log(
    *,
    action: AuditAction,
    activity_id: Optional[int],
    flow_id: Optional[str] = None,
    reservation_id: Optional[int] = None,
    step_from: Optional[Any] = None,
    step_to: Optional[Any] = None,
    amount: Optional[Decimal] = None,
    payment_type: Optional[Any] = None,
    message: Optional[str] = None,
    extra: Optional[dict[str, Any]] = None,
) -> None:
    """Emit one compact JSON audit line. Raises RuntimeError if logging fails."""
    payload: dict[str, Any] = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "level": "info",
        "action": action,
        "request_id": get_request_id(),
        "flow_id": flow_id,
        "activity_id": activity_id,
        "reservation_id": reservation_id,
        "step_from": _plain(step_from),
        "step_to": _plain(step_to),
        "amount": _plain(amount),
        "payment_type": _plain(payment_type),
    }
    if message is not None:
        payload["message"] = message
    if extra:
        payload.update({key: _plain(value) for key, value in extra.items()})

    compact_payload = {k: v for k, v in payload.items() if v is not None}
    try:
        _audit_logger.info(json.dumps(compact_payload, ensure_ascii=True))
    except Exception as exc:
        raise RuntimeError("failed to emit audit log") from exc
