from pydantic import BaseModel, Field, field_validator
from typing import Optional, Literal, List
from datetime import datetime, date

from app.core.time_utils import parse_time_of_day


CalendarDate = date

AttendanceStatus = Literal["present", "absent", "late", "half_day", "holiday"]


def _check_time(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    parse_time_of_day(value)
    return value


class GeoLocation(BaseModel):
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    accuracy: Optional[float] = None
    address: Optional[str] = None
    device_info: Optional[str] = None


class CheckInRequest(BaseModel):
    site_id: str
    location: Optional[GeoLocation] = None


class CheckOutRequest(BaseModel):
    attendance_id: str
    location: Optional[GeoLocation] = None


class AttendanceUpdate(BaseModel):
    status: Optional[AttendanceStatus] = None
    check_in_time: Optional[str] = None
    check_out_time: Optional[str] = None
    work_type: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("check_in_time", "check_out_time")
    @classmethod
    def validate_times(cls, v):
        return _check_time(v)


class BulkAttendanceWorker(BaseModel):
    user_id: str
    check_in_time: str
    check_out_time: Optional[str] = None
    status: AttendanceStatus = "present"
    work_type: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("check_in_time", "check_out_time")
    @classmethod
    def validate_times(cls, v):
        return _check_time(v)


class BulkAttendanceCreate(BaseModel):
    site_id: str
    work_date: date
    workers: List[BulkAttendanceWorker] = Field(min_length=1)


class AttendanceResponse(BaseModel):
    id: str
    user_id: str
    site_id: Optional[str] = None
    work_date: date
    check_in_time: Optional[str] = None
    check_out_time: Optional[str] = None
    status: Optional[str] = "present"
    work_hours: Optional[float] = 0
    overtime_hours: Optional[float] = 0
    labor_hours: Optional[float] = 0
    work_type: Optional[str] = None
    notes: Optional[str] = None
    created_by: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class MonthlyAttendanceRecord(AttendanceResponse):
    # Calendar views key rows on `date`
    date: CalendarDate


class AttendanceSummary(BaseModel):
    total_days: int
    total_hours: float
    total_overtime: float
    total_labor_hours: float
    days_present: int
    days_absent: int
    days_holiday: int


class MyAttendanceResponse(BaseModel):
    records: List[AttendanceResponse]
    summary: AttendanceSummary


class WorkerAttendanceSummary(BaseModel):
    user_id: str
    full_name: Optional[str] = None
    days_worked: int
    total_hours: float
    total_overtime: float
    total_labor_hours: float
