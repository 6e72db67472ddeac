from fastapi import APIRouter, Depends
from app.database.supabase_client import get_supabase
from app.modules.daily_reports.schemas import (
    DailyReportCreate, DailyReportUpdate, DailyReportApproval, DailyReportResponse,
    ReportWorkerCreate, ReportWorkerResponse
)
from app.modules.daily_reports.service import DailyReportService
from app.modules.sites.service import SiteAssignmentService
from app.core.dependencies import require_permission, is_admin, is_manager, check_site_member
from supabase import Client
from typing import List, Dict, Optional

router = APIRouter(prefix="/daily-reports", tags=["daily-reports"])

_ALL_SITES_ROLES = ("admin", "system_admin", "customer_manager")


def get_daily_report_service(supabase: Client = Depends(get_supabase)) -> DailyReportService:
    return DailyReportService(supabase)


def _check_report_site(report_id: str, current: Dict, service: DailyReportService, supabase: Client):
    """Non-admins may only act on reports of sites they are assigned to"""
    report = service.get_report(report_id)
    if current.get("role") not in _ALL_SITES_ROLES and report.site_id:
        check_site_member(report.site_id, current, supabase)
    return report


@router.get("", response_model=List[DailyReportResponse])
async def list_daily_reports(
    site_id: Optional[str] = None,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    status: Optional[str] = None,
    limit: int = 20,
    offset: int = 0,
    current: Dict = Depends(require_permission("daily_reports:read")),
    service: DailyReportService = Depends(get_daily_report_service),
    supabase: Client = Depends(get_supabase)
):
    """List daily reports for the sites the caller can see"""
    site_ids = None
    if current.get("role") not in _ALL_SITES_ROLES:
        site_ids = SiteAssignmentService(supabase).get_user_site_ids(current["id"])
    return service.list_reports(
        site_id=site_id, site_ids=site_ids, start_date=start_date, end_date=end_date,
        status=status, limit=limit, offset=offset
    )


@router.post("", response_model=DailyReportResponse, status_code=201)
async def create_daily_report(
    report_data: DailyReportCreate,
    current: Dict = Depends(require_permission("daily_reports:write")),
    service: DailyReportService = Depends(get_daily_report_service),
    supabase: Client = Depends(get_supabase)
):
    """Create a draft report for a site the caller is assigned to"""
    check_site_member(report_data.site_id, current, supabase)
    return service.create_report(report_data, current["id"])


@router.get("/{report_id}", response_model=DailyReportResponse)
async def get_daily_report(
    report_id: str,
    current: Dict = Depends(require_permission("daily_reports:read")),
    service: DailyReportService = Depends(get_daily_report_service),
    supabase: Client = Depends(get_supabase)
):
    """Get a daily report"""
    return _check_report_site(report_id, current, service, supabase)


@router.put("/{report_id}", response_model=DailyReportResponse)
async def update_daily_report(
    report_id: str,
    report_data: DailyReportUpdate,
    current: Dict = Depends(require_permission("daily_reports:write")),
    service: DailyReportService = Depends(get_daily_report_service),
    supabase: Client = Depends(get_supabase)
):
    """Edit a report (rejected reports go back to draft)"""
    _check_report_site(report_id, current, service, supabase)
    return service.update_report(report_id, report_data, current["id"], is_manager(current))


@router.post("/{report_id}/submit", response_model=DailyReportResponse)
async def submit_daily_report(
    report_id: str,
    current: Dict = Depends(require_permission("daily_reports:write")),
    service: DailyReportService = Depends(get_daily_report_service),
    supabase: Client = Depends(get_supabase)
):
    """Submit a draft report for approval"""
    _check_report_site(report_id, current, service, supabase)
    return service.submit_report(report_id, current["id"], is_manager(current))


@router.post("/{report_id}/approve", response_model=DailyReportResponse)
async def approve_daily_report(
    report_id: str,
    approval: DailyReportApproval,
    current: Dict = Depends(require_permission("daily_reports:approve")),
    service: DailyReportService = Depends(get_daily_report_service),
    supabase: Client = Depends(get_supabase)
):
    """Approve or reject a submitted report"""
    _check_report_site(report_id, current, service, supabase)
    return service.review_report(report_id, approval.approve, current["id"], approval.comments)


@router.delete("/{report_id}", status_code=204)
async def delete_daily_report(
    report_id: str,
    current: Dict = Depends(require_permission("daily_reports:write")),
    service: DailyReportService = Depends(get_daily_report_service)
):
    """Delete a draft report"""
    service.delete_report(report_id, current["id"], is_admin(current))
    return None


@router.get("/{report_id}/workers", response_model=List[ReportWorkerResponse])
async def list_report_workers(
    report_id: str,
    current: Dict = Depends(require_permission("daily_reports:read")),
    service: DailyReportService = Depends(get_daily_report_service),
    supabase: Client = Depends(get_supabase)
):
    _check_report_site(report_id, current, service, supabase)
    return service.list_workers(report_id)


@router.post("/{report_id}/workers", response_model=ReportWorkerResponse, status_code=201)
async def add_report_worker(
    report_id: str,
    worker: ReportWorkerCreate,
    current: Dict = Depends(require_permission("daily_reports:write")),
    service: DailyReportService = Depends(get_daily_report_service),
    supabase: Client = Depends(get_supabase)
):
    """Record a worker's hours on a report"""
    _check_report_site(report_id, current, service, supabase)
    return service.add_worker(report_id, worker)
