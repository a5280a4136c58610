"""Leave Pydantic v2 schemas: request / response validation.

Naming conventions:
  - *Create   -> request bodies (write)
  - *Out      -> response bodies (read)
"""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from hrms.common.constants import LeaveCategory, LeaveStatus


class LeaveRequestCreate(BaseModel):
    """Payload for requesting leave.

    ``employee_id`` is honoured only for HR/Admin callers; Staff always
    file for themselves.
    """

    category: LeaveCategory
    start_date: date = Field(..., description="Leave start date (inclusive)")
    end_date: date = Field(..., description="Leave end date (inclusive)")
    reason: Optional[str] = Field(None, max_length=1000)
    employee_id: Optional[uuid.UUID] = None

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def truncate_to_day(cls, value: Any) -> Any:
        # Timestamps are reduced to their calendar day
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, str) and "T" in value:
            return datetime.fromisoformat(value.replace("Z", "+00:00")).date()
        return value


class LeaveRequestOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    employee_id: uuid.UUID
    category: LeaveCategory
    start_date: date
    end_date: date
    days: int
    reason: Optional[str] = None
    status: LeaveStatus
    decided_by: Optional[uuid.UUID] = None
    decided_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
