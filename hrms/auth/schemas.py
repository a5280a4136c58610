"""Auth request/response schemas."""

from __future__ import annotations

import uuid
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from hrms.common.constants import UserRole


class SignupRequest(BaseModel):
    """Employee self-registration. Always creates a Staff account."""

    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=72)
    department: Optional[str] = Field(None, max_length=100)
    job_role: Optional[str] = Field(None, max_length=100)
    employee_code: Optional[str] = Field(None, max_length=50)


class SigninRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    email: str
    role: UserRole
    employee_id: Optional[uuid.UUID] = None


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserOut


class VerifyResponse(BaseModel):
    user_id: uuid.UUID
    email: str
    role: UserRole
    employee_id: Optional[uuid.UUID] = None
