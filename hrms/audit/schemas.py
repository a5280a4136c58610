"""Audit log response schema."""

import uuid
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict

from hrms.common.constants import AuditCategory, AuditSeverity


class AuditLogOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    action: str
    user: str
    user_id: Optional[uuid.UUID] = None
    target: Optional[str] = None
    target_id: Optional[uuid.UUID] = None
    details: Optional[dict[str, Any]] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    category: AuditCategory
    severity: AuditSeverity
    timestamp: datetime
