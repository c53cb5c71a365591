from __future__ import annotations

import asyncio
import logging
import secrets
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Callable

from ..domain.errors import FlowNotFoundError
from ..domain.flow import ReservationFlow
from ..models import FlowStep

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class _Entry:
    flow: ReservationFlow
    touched_at: datetime = field(default_factory=_utc_now)


class InMemoryFlowStore:
    """
    Process-local registry of reservation flows, one per browsing session.

    Drafts live only here. An entry is dropped on explicit discard or once idle
    longer than `ttl`; a flow that is mid-submit is never evicted.
    """

    def __init__(self, ttl: timedelta, *, clock: Callable[[], datetime] = _utc_now) -> None:
        self.ttl = ttl
        self._clock = clock
        self._entries: dict[str, _Entry] = {}
        self._lock = asyncio.Lock()

    async def add(self, flow: ReservationFlow) -> str:
        async with self._lock:
            self._evict_expired()
            flow_id = secrets.token_urlsafe(16)
            self._entries[flow_id] = _Entry(flow=flow, touched_at=self._clock())
            logger.info("flow %s started for activity %s", flow_id, flow.activity.id)
            return flow_id

    async def get(self, flow_id: str) -> ReservationFlow:
        async with self._lock:
            self._evict_expired()
            entry = self._entries.get(flow_id)
            if entry is None:
                raise FlowNotFoundError(f"reservation session {flow_id} not found or expired")
            entry.touched_at = self._clock()
            return entry.flow

    async def discard(self, flow_id: str) -> bool:
        async with self._lock:
            return self._entries.pop(flow_id, None) is not None

    def __len__(self) -> int:
        return len(self._entries)

    def _evict_expired(self) -> None:
        cutoff = self._clock() - self.ttl
        expired = [
            key for key, entry in self._entries.items()
            if entry.touched_at < cutoff and entry.flow.step != FlowStep.SUBMITTING
        ]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.info("evicted %d idle reservation flow(s)", len(expired))
