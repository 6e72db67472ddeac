from pydantic import BaseModel, Field, model_validator
from typing import Optional, Literal, Dict, Any
from datetime import datetime, date


SiteStatus = Literal["active", "inactive", "completed"]
AssignmentRole = Literal["worker", "site_manager", "supervisor"]


class SiteBase(BaseModel):
    address: Optional[str] = None
    description: Optional[str] = None
    organization_id: Optional[str] = None
    work_process: Optional[str] = None
    work_section: Optional[str] = None
    component_name: Optional[str] = None
    manager_name: Optional[str] = None
    construction_manager_phone: Optional[str] = None
    safety_manager_name: Optional[str] = None
    safety_manager_phone: Optional[str] = None
    accommodation_name: Optional[str] = None
    accommodation_address: Optional[str] = None
    end_date: Optional[date] = None


class SiteCreate(SiteBase):
    name: str = Field(min_length=1, max_length=200)
    address: str = Field(min_length=1)
    start_date: date
    status: SiteStatus = "active"

    @model_validator(mode="after")
    def check_dates(self):
        if self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class SiteUpdate(SiteBase):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    start_date: Optional[date] = None
    status: Optional[SiteStatus] = None


class SiteStatusUpdate(BaseModel):
    status: SiteStatus


class SiteResponse(SiteBase):
    id: str
    name: str
    status: Optional[str] = "active"
    start_date: Optional[date] = None
    created_by: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SiteAssignmentCreate(BaseModel):
    user_id: str
    role: AssignmentRole = "worker"


class SiteAssignmentResponse(BaseModel):
    id: str
    site_id: str
    user_id: str
    role: Optional[str] = "worker"
    assigned_date: date
    unassigned_date: Optional[date] = None
    is_active: bool
    created_at: datetime
    updated_at: Optional[datetime] = None
    profile: Optional[Dict[str, Any]] = None
    site: Optional[Dict[str, Any]] = None

    class Config:
        from_attributes = True
