from pydantic import BaseModel, Field
from typing import Optional, Literal, Dict, Any
from datetime import datetime, date


ReportStatus = Literal["draft", "submitted", "approved", "rejected"]


class DailyReportCreate(BaseModel):
    site_id: str
    work_date: date
    member_name: str = Field(min_length=1)
    process_type: str = Field(min_length=1)
    total_workers: Optional[int] = Field(default=None, ge=0)
    npc1000_incoming: Optional[float] = Field(default=None, ge=0)
    npc1000_used: Optional[float] = Field(default=None, ge=0)
    npc1000_remaining: Optional[float] = Field(default=None, ge=0)
    issues: Optional[str] = None


class DailyReportUpdate(BaseModel):
    member_name: Optional[str] = Field(default=None, min_length=1)
    process_type: Optional[str] = Field(default=None, min_length=1)
    total_workers: Optional[int] = Field(default=None, ge=0)
    npc1000_incoming: Optional[float] = Field(default=None, ge=0)
    npc1000_used: Optional[float] = Field(default=None, ge=0)
    npc1000_remaining: Optional[float] = Field(default=None, ge=0)
    issues: Optional[str] = None


class DailyReportApproval(BaseModel):
    approve: bool
    comments: Optional[str] = None


class DailyReportResponse(BaseModel):
    id: str
    site_id: Optional[str] = None
    work_date: date
    member_name: Optional[str] = None
    process_type: Optional[str] = None
    total_workers: Optional[int] = None
    npc1000_incoming: Optional[float] = None
    npc1000_used: Optional[float] = None
    npc1000_remaining: Optional[float] = None
    issues: Optional[str] = None
    notes: Optional[str] = None
    status: Optional[str] = "draft"
    created_by: Optional[str] = None
    submitted_at: Optional[datetime] = None
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
    site: Optional[Dict[str, Any]] = None

    class Config:
        from_attributes = True


class ReportWorkerCreate(BaseModel):
    worker_name: str = Field(min_length=1)
    work_hours: float = Field(gt=0, le=24)


class ReportWorkerResponse(BaseModel):
    id: str
    daily_report_id: str
    worker_name: str
    work_hours: float
    created_at: datetime

    class Config:
        from_attributes = True
