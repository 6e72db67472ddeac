from supabase import Client
from app.modules.daily_reports.schemas import (
    DailyReportCreate, DailyReportUpdate, DailyReportResponse,
    ReportWorkerCreate, ReportWorkerResponse
)
from app.core.time_utils import utc_now_iso
from typing import List, Optional, Dict, Any
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)


class DailyReportService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def _get_raw(self, report_id: str) -> Dict[str, Any]:
        try:
            result = self.supabase.table("daily_reports")\
                .select("*")\
                .eq("id", report_id)\
                .maybe_single()\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        if not result or not result.data:
            raise HTTPException(status_code=404, detail="Daily report not found")
        return result.data

    def create_report(self, report_data: DailyReportCreate, user_id: str) -> DailyReportResponse:
        """Create a draft report; one report per site and work date"""
        try:
            work_date = report_data.work_date.isoformat()
            existing = self.supabase.table("daily_reports")\
                .select("id")\
                .eq("site_id", report_data.site_id)\
                .eq("work_date", work_date)\
                .execute()
            if existing.data:
                raise HTTPException(status_code=409, detail="Report already exists for this date")

            result = self.supabase.table("daily_reports").insert({
                **report_data.model_dump(mode="json"),
                "status": "draft",
                "created_by": user_id
            }).execute()

            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create daily report")

            return DailyReportResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error creating daily report: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def get_report(self, report_id: str) -> DailyReportResponse:
        """Get report with its site"""
        report = self._get_raw(report_id)
        site = self.supabase.table("sites")\
            .select("id, name, address")\
            .eq("id", report.get("site_id"))\
            .maybe_single()\
            .execute()
        report["site"] = site.data if site else None
        return DailyReportResponse(**report)

    def list_reports(
        self,
        site_id: Optional[str] = None,
        site_ids: Optional[List[str]] = None,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        status: Optional[str] = None,
        created_by: Optional[str] = None,
        limit: int = 20,
        offset: int = 0
    ) -> List[DailyReportResponse]:
        """List reports, newest work date first"""
        try:
            if site_ids is not None and not site_ids:
                return []
            query = self.supabase.table("daily_reports").select("*")
            if site_ids is not None:
                query = query.in_("site_id", site_ids)
            if site_id:
                query = query.eq("site_id", site_id)
            if start_date:
                query = query.gte("work_date", start_date)
            if end_date:
                query = query.lte("work_date", end_date)
            if status:
                query = query.eq("status", status)
            if created_by:
                query = query.eq("created_by", created_by)
            result = query.order("work_date", desc=True).limit(limit).offset(offset).execute()
            return [DailyReportResponse(**r) for r in result.data]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def update_report(self, report_id: str, report_data: DailyReportUpdate, user_id: str, is_manager: bool) -> DailyReportResponse:
        """Edit a report; approved reports are locked, submitted ones only editable by managers"""
        report = self._get_raw(report_id)
        status = report.get("status")
        if status == "approved":
            raise HTTPException(status_code=400, detail="Approved reports cannot be modified")
        if report.get("created_by") != user_id and not is_manager:
            raise HTTPException(status_code=403, detail="Only the author or a manager can edit this report")
        if status == "submitted" and not is_manager:
            raise HTTPException(status_code=400, detail="Submitted reports can only be edited by managers")

        changes = report_data.model_dump(mode="json", exclude_unset=True)
        if status == "rejected":
            changes["status"] = "draft"
        return self._write(report_id, changes, expected_status=status)

    def submit_report(self, report_id: str, user_id: str, is_manager: bool) -> DailyReportResponse:
        """draft -> submitted"""
        report = self._get_raw(report_id)
        if report.get("created_by") != user_id and not is_manager:
            raise HTTPException(status_code=403, detail="Only the author or a manager can submit this report")
        if report.get("status") != "draft":
            raise HTTPException(status_code=400, detail="Report not found or already submitted")
        return self._write(report_id, {"status": "submitted", "submitted_at": utc_now_iso()}, expected_status="draft")

    def review_report(self, report_id: str, approve: bool, reviewer_id: str, comments: Optional[str] = None) -> DailyReportResponse:
        """submitted -> approved | rejected"""
        report = self._get_raw(report_id)
        if report.get("status") != "submitted":
            raise HTTPException(status_code=400, detail="Report not found or not in submitted status")
        changes: Dict[str, Any] = {
            "status": "approved" if approve else "rejected",
            "approved_by": reviewer_id,
            "approved_at": utc_now_iso(),
        }
        if comments:
            changes["notes"] = comments
        updated = self._write(report_id, changes, expected_status="submitted")
        logger.info(f"Daily report {report_id} {changes['status']} by {reviewer_id}")
        return updated

    def delete_report(self, report_id: str, user_id: str, is_admin: bool) -> bool:
        """Delete a draft report (author or admin)"""
        report = self._get_raw(report_id)
        if report.get("created_by") != user_id and not is_admin:
            raise HTTPException(status_code=403, detail="Only the author can delete this report")
        if report.get("status") != "draft":
            raise HTTPException(status_code=400, detail="Only draft reports can be deleted")
        try:
            self.supabase.table("daily_report_workers").delete().eq("daily_report_id", report_id).execute()
            result = self.supabase.table("daily_reports").delete().eq("id", report_id).execute()
            return len(result.data) > 0
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def _write(self, report_id: str, changes: Dict[str, Any], expected_status: Optional[str] = None) -> DailyReportResponse:
        try:
            query = self.supabase.table("daily_reports")\
                .update({**changes, "updated_at": utc_now_iso()})\
                .eq("id", report_id)
            # Guard against a concurrent status change between read and write
            if expected_status:
                query = query.eq("status", expected_status)
            result = query.execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        if not result.data:
            raise HTTPException(status_code=409, detail="Report was modified concurrently")
        return DailyReportResponse(**result.data[0])

    def add_worker(self, report_id: str, worker: ReportWorkerCreate) -> ReportWorkerResponse:
        report = self._get_raw(report_id)
        if report.get("status") == "approved":
            raise HTTPException(status_code=400, detail="Approved reports cannot be modified")
        try:
            result = self.supabase.table("daily_report_workers").insert({
                "daily_report_id": report_id,
                "worker_name": worker.worker_name,
                "work_hours": worker.work_hours
            }).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to add worker")
            return ReportWorkerResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def list_workers(self, report_id: str) -> List[ReportWorkerResponse]:
        self._get_raw(report_id)
        try:
            result = self.supabase.table("daily_report_workers")\
                .select("*")\
                .eq("daily_report_id", report_id)\
                .order("created_at")\
                .execute()
            return [ReportWorkerResponse(**w) for w in result.data]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
