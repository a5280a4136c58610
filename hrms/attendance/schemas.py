"""Attendance Pydantic v2 schemas."""

import uuid
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from hrms.common.constants import AttendanceSource


class ClockRequest(BaseModel):
    """Optional body for clock-in / clock-out."""

    source: AttendanceSource = AttendanceSource.web
    notes: Optional[str] = Field(None, max_length=500)


class AttendanceRecordOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    employee_id: uuid.UUID
    date: date
    clock_in: Optional[datetime] = None
    clock_out: Optional[datetime] = None
    total_minutes: int = 0
    total_hours: float = 0.0
    source: AttendanceSource
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime
