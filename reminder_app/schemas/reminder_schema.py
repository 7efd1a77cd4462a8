import datetime as dt
from enum import Enum
from typing import Optional

from pydantic import BaseModel


class DispatchStatus(str, Enum):
    SENT = "SENT"
    ALREADY_SENT = "ALREADY_SENT"
    DELIVERY_FAILED = "DELIVERY_FAILED"
    NOT_FOUND = "NOT_FOUND"


class DispatchResult(BaseModel):
    """Outcome of a manual "send now" request."""

    event_id: int
    status: DispatchStatus
    reason: Optional[str] = None

    @property
    def sent(self) -> bool:
        return self.status == DispatchStatus.SENT


class CycleReport(BaseModel):
    """Summary of one dispatch cycle.

    ``attempted`` counts events a send was tried for (``sent + failed``);
    ``skipped`` are due events left pending because the cycle deadline hit;
    ``committed`` is the number of rows the sent-state commit changed.
    """

    started_at: dt.datetime
    due: int = 0
    attempted: int = 0
    sent: int = 0
    failed: int = 0
    skipped: int = 0
    committed: int = 0


class ReminderCounters(BaseModel):
    sent: int
    pending: int
