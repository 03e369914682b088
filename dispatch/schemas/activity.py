from pydantic import BaseModel
from typing import Any, Dict, Optional
from datetime import datetime


class ActivityRead(BaseModel):
    id: str
    actor_id: Optional[str] = None
    action: str
    description: str
    details: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
