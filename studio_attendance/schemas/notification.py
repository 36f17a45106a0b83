from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class NotificationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: int
    type: str
    title: str
    message: str
    metadata: Optional[Dict[str, Any]] = Field(default=None, validation_alias="meta")
    read: bool
    created_by: Optional[int] = Field(default=None, serialization_alias="createdBy")
    created_at: Optional[datetime] = Field(default=None, serialization_alias="createdAt")
