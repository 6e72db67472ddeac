from pydantic import BaseModel, Field, model_validator
from typing import Optional, Literal, List, Dict, Any
from datetime import datetime


NotificationType = Literal["info", "success", "warning", "error", "system"]


class NotificationCreate(BaseModel):
    title: str = Field(min_length=1)
    message: str = Field(min_length=1)
    type: NotificationType = "info"
    user_ids: Optional[List[str]] = None
    site_id: Optional[str] = None
    data: Optional[Dict[str, Any]] = None
    related_entity_type: Optional[str] = None
    related_entity_id: Optional[str] = None
    action_url: Optional[str] = None

    @model_validator(mode="after")
    def check_recipients(self):
        if not self.user_ids and not self.site_id:
            raise ValueError("Either user_ids or site_id is required")
        return self


class NotificationResponse(BaseModel):
    id: str
    user_id: str
    type: str = "info"
    title: str
    message: str
    data: Optional[Dict[str, Any]] = None
    read: bool = False
    read_at: Optional[datetime] = None
    created_by: Optional[str] = None
    related_entity_type: Optional[str] = None
    related_entity_id: Optional[str] = None
    action_url: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class NotificationStats(BaseModel):
    total: int
    unread: int
    by_type: Dict[str, int]


class NotificationFanoutResponse(BaseModel):
    sent: int
    notifications: List[NotificationResponse]


class ReadAllResponse(BaseModel):
    updated: int
