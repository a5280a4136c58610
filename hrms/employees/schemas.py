"""Employee Pydantic v2 schemas: request / response validation.

Naming conventions:
  - *Create / *Update  -> request bodies (write)
  - *Out               -> response bodies (read)

Leave balances are never accepted from clients; only the leave service
moves them.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from hrms.common.constants import ContractType, EmploymentStatus, UserRole


# ── Write schemas ───────────────────────────────────────────────────

class EmployeeCreate(BaseModel):
    """Payload for creating an employee, optionally with a login account."""

    employee_code: Optional[str] = Field(None, min_length=1, max_length=50)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    phone: Optional[str] = Field(None, max_length=30)
    location: Optional[str] = Field(None, max_length=150)
    department: str = Field(..., min_length=1, max_length=100)
    job_role: str = Field(..., min_length=1, max_length=100)
    status: EmploymentStatus = EmploymentStatus.active
    date_of_joining: Optional[date] = None
    contract_type: ContractType = ContractType.full_time
    contract_end_date: Optional[date] = None

    # Login account (created only when a password is supplied)
    password: Optional[str] = Field(None, min_length=8, max_length=72)
    role: UserRole = UserRole.staff


class EmployeeUpdate(BaseModel):
    """HR/Admin partial update. All fields optional."""

    employee_code: Optional[str] = Field(None, min_length=1, max_length=50)
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=30)
    location: Optional[str] = Field(None, max_length=150)
    department: Optional[str] = Field(None, min_length=1, max_length=100)
    job_role: Optional[str] = Field(None, min_length=1, max_length=100)
    status: Optional[EmploymentStatus] = None
    date_of_joining: Optional[date] = None
    contract_type: Optional[ContractType] = None
    contract_end_date: Optional[date] = None


class ProfileUpdate(BaseModel):
    """Self-service fields an employee may change on their own record."""

    phone: Optional[str] = Field(None, max_length=30)
    location: Optional[str] = Field(None, max_length=150)


# ── Read schemas ────────────────────────────────────────────────────

class LeaveBalanceOut(BaseModel):
    annual: int
    sick: int
    personal: int
    maternity: int
    paternity: int


class EmployeeOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    employee_code: str
    first_name: str
    last_name: str
    email: str
    phone: Optional[str] = None
    location: Optional[str] = None
    department: str
    job_role: str
    status: EmploymentStatus
    date_of_joining: date
    contract_type: ContractType
    contract_end_date: Optional[date] = None
    leave_balance: LeaveBalanceOut
    last_profile_update: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class EmployeeBalanceOut(BaseModel):
    employee_id: uuid.UUID
    employee_code: str
    leave_balance: LeaveBalanceOut
