"""Organization audit feed I/O models."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from .common import CamelModel


class AuditEntryRead(CamelModel):
    """One audit entry rendered for the organization admin feed."""

    id: str
    action: str
    message: str
    category: str
    icon: str
    user_id: Optional[str] = None
    user_name: str
    entity_type: Optional[str] = None
    entity_id: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None
    created_at: datetime
