"""Shift Pydantic v2 schemas."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Annotated, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, model_validator

from hrms.common.constants import DEFAULT_SHIFT_DAYS, TIME_OF_DAY_PATTERN

TimeOfDay = Annotated[str, Field(pattern=TIME_OF_DAY_PATTERN, examples=["09:00"])]
Weekday = Annotated[int, Field(ge=0, le=6)]
# Duplicates collapse, order is ascending
Weekdays = Annotated[list[Weekday], AfterValidator(lambda days: sorted(set(days)))]


class ShiftCreate(BaseModel):
    employee_id: uuid.UUID
    name: str = Field("Default", min_length=1, max_length=100)
    start_time: TimeOfDay
    end_time: TimeOfDay
    days_of_week: Weekdays = Field(
        default_factory=lambda: list(DEFAULT_SHIFT_DAYS),
        description="0=Sun .. 6=Sat",
    )
    effective_from: Optional[date] = None
    effective_to: Optional[date] = None

    @model_validator(mode="after")
    def check_effective_range(self) -> ShiftCreate:
        if self.effective_from and self.effective_to and self.effective_to < self.effective_from:
            raise ValueError("effective_to must not be before effective_from")
        return self


class ShiftUpdate(BaseModel):
    """Partial update. ``employee_id`` cannot be changed."""

    name: Optional[str] = Field(None, min_length=1, max_length=100)
    start_time: Optional[TimeOfDay] = None
    end_time: Optional[TimeOfDay] = None
    days_of_week: Optional[Weekdays] = None
    effective_from: Optional[date] = None
    effective_to: Optional[date] = None


class ShiftOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    employee_id: uuid.UUID
    name: str
    start_time: str
    end_time: str
    days_of_week: list[int]
    effective_from: date
    effective_to: Optional[date] = None
    created_at: datetime
    updated_at: datetime
