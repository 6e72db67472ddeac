from fastapi import APIRouter, Depends, Request
from app.database.supabase_client import get_supabase
from app.modules.attendance.schemas import (
    CheckInRequest, CheckOutRequest, AttendanceUpdate, BulkAttendanceCreate,
    AttendanceResponse, MonthlyAttendanceRecord, MyAttendanceResponse, WorkerAttendanceSummary
)
from app.modules.attendance.service import AttendanceService
from app.core.dependencies import require_permission, is_manager, check_site_member
from app.core.security import get_client_ip
from supabase import Client
from typing import List, Dict, Optional

router = APIRouter(prefix="/attendance", tags=["attendance"])


def get_attendance_service(supabase: Client = Depends(get_supabase)) -> AttendanceService:
    return AttendanceService(supabase)


@router.post("/check-in", response_model=AttendanceResponse, status_code=201)
async def check_in(
    request: Request,
    data: CheckInRequest,
    current: Dict = Depends(require_permission("attendance:self")),
    service: AttendanceService = Depends(get_attendance_service),
    supabase: Client = Depends(get_supabase)
):
    """Check in at a site for today"""
    check_site_member(data.site_id, current, supabase)
    return service.check_in(data, current["id"], get_client_ip(request))


@router.post("/check-out", response_model=AttendanceResponse)
async def check_out(
    request: Request,
    data: CheckOutRequest,
    current: Dict = Depends(require_permission("attendance:self")),
    service: AttendanceService = Depends(get_attendance_service)
):
    """Check out of the caller's own record"""
    return service.check_out(data, current["id"], get_client_ip(request))


@router.get("/today", response_model=List[AttendanceResponse])
async def get_today_attendance(
    site_id: Optional[str] = None,
    current: Dict = Depends(require_permission("attendance:self")),
    service: AttendanceService = Depends(get_attendance_service)
):
    """Today's attendance; managers see everyone, workers themselves"""
    user_id = None if is_manager(current) else current["id"]
    return service.get_today(site_id=site_id, user_id=user_id)


@router.get("/me", response_model=MyAttendanceResponse)
async def get_my_attendance(
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    site_id: Optional[str] = None,
    current: Dict = Depends(require_permission("attendance:self")),
    service: AttendanceService = Depends(get_attendance_service)
):
    """Caller's records with totals"""
    return service.get_my_attendance(current["id"], start_date, end_date, site_id)


@router.get("/monthly", response_model=List[MonthlyAttendanceRecord])
async def get_monthly_attendance(
    year: int,
    month: int,
    current: Dict = Depends(require_permission("attendance:self")),
    service: AttendanceService = Depends(get_attendance_service)
):
    """Caller's records for a calendar month"""
    return service.get_monthly(current["id"], year, month)


@router.get("/summary", response_model=List[WorkerAttendanceSummary])
async def get_attendance_summary(
    start_date: str,
    end_date: str,
    site_id: Optional[str] = None,
    current: Dict = Depends(require_permission("attendance:manage")),
    service: AttendanceService = Depends(get_attendance_service)
):
    """Per-worker totals for a date range"""
    return service.get_summary(start_date, end_date, site_id)


@router.post("/bulk", response_model=List[AttendanceResponse], status_code=201)
async def add_bulk_attendance(
    data: BulkAttendanceCreate,
    current: Dict = Depends(require_permission("attendance:manage")),
    service: AttendanceService = Depends(get_attendance_service),
    supabase: Client = Depends(get_supabase)
):
    """Record attendance for several workers at once"""
    check_site_member(data.site_id, current, supabase)
    return service.add_bulk(data, current["id"])


@router.put("/{record_id}", response_model=AttendanceResponse)
async def update_attendance(
    record_id: str,
    data: AttendanceUpdate,
    current: Dict = Depends(require_permission("attendance:manage")),
    service: AttendanceService = Depends(get_attendance_service)
):
    """Correct an attendance record"""
    return service.update_record(record_id, data)
