from supabase import Client
from app.modules.attendance.schemas import (
    CheckInRequest, CheckOutRequest, AttendanceUpdate, BulkAttendanceCreate,
    AttendanceResponse, MonthlyAttendanceRecord, AttendanceSummary,
    MyAttendanceResponse, WorkerAttendanceSummary, GeoLocation
)
from app.core.time_utils import (
    today_iso, current_time_str, utc_now_iso, compute_work_hours, month_bounds
)
from typing import List, Optional, Dict, Any
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)


def summarize_records(records: List[Dict[str, Any]]) -> AttendanceSummary:
    """Totals over a list of attendance rows"""
    return AttendanceSummary(
        total_days=len(records),
        total_hours=round(sum(r.get("work_hours") or 0 for r in records), 2),
        total_overtime=round(sum(r.get("overtime_hours") or 0 for r in records), 2),
        total_labor_hours=round(sum(r.get("labor_hours") or 0 for r in records), 2),
        days_present=sum(1 for r in records if r.get("status") == "present"),
        days_absent=sum(1 for r in records if r.get("status") == "absent"),
        days_holiday=sum(1 for r in records if r.get("status") == "holiday"),
    )


class AttendanceService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def _record_location(self, record_id: str, check_type: str, location: GeoLocation, ip_address: Optional[str]):
        # Location is auxiliary; the attendance row stands without it
        try:
            self.supabase.table("attendance_locations").insert({
                "attendance_record_id": record_id,
                "check_type": check_type,
                **location.model_dump(),
                "ip_address": ip_address
            }).execute()
        except Exception as e:
            logger.error(f"Error creating location record for {record_id}: {e}")

    def _get_raw(self, record_id: str) -> Dict[str, Any]:
        try:
            result = self.supabase.table("attendance_records")\
                .select("*")\
                .eq("id", record_id)\
                .maybe_single()\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        if not result or not result.data:
            raise HTTPException(status_code=404, detail="Attendance record not found")
        return result.data

    def check_in(self, data: CheckInRequest, user_id: str, ip_address: Optional[str] = None) -> AttendanceResponse:
        """Record today's check-in for the user on a site"""
        work_date = today_iso()
        try:
            existing = self.supabase.table("attendance_records")\
                .select("id")\
                .eq("user_id", user_id)\
                .eq("site_id", data.site_id)\
                .eq("work_date", work_date)\
                .execute()
            if existing.data:
                raise HTTPException(status_code=409, detail="Already checked in today")

            result = self.supabase.table("attendance_records").insert({
                "user_id": user_id,
                "site_id": data.site_id,
                "work_date": work_date,
                "check_in_time": current_time_str(),
                "status": "present",
                "created_by": user_id
            }).execute()

            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to check in")
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error checking in {user_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

        record = result.data[0]
        if data.location:
            self._record_location(record["id"], "in", data.location, ip_address)
        logger.info(f"User {user_id} checked in at site {data.site_id}")
        return AttendanceResponse(**record)

    def check_out(self, data: CheckOutRequest, user_id: str, ip_address: Optional[str] = None) -> AttendanceResponse:
        """Close the user's own record and compute worked hours"""
        record = self._get_raw(data.attendance_id)
        if record.get("user_id") != user_id:
            raise HTTPException(status_code=404, detail="Attendance record not found")
        if record.get("check_out_time"):
            raise HTTPException(status_code=400, detail="Already checked out")

        check_out_time = current_time_str()
        hours, overtime, labor = compute_work_hours(record.get("check_in_time") or check_out_time, check_out_time)
        try:
            result = self.supabase.table("attendance_records")\
                .update({
                    "check_out_time": check_out_time,
                    "work_hours": hours,
                    "overtime_hours": overtime,
                    "labor_hours": labor,
                    "updated_at": utc_now_iso()
                })\
                .eq("id", data.attendance_id)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to check out")
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

        if data.location:
            self._record_location(data.attendance_id, "out", data.location, ip_address)
        return AttendanceResponse(**result.data[0])

    def get_today(self, site_id: Optional[str] = None, user_id: Optional[str] = None) -> List[AttendanceResponse]:
        """Today's records, earliest check-in first"""
        try:
            query = self.supabase.table("attendance_records")\
                .select("*")\
                .eq("work_date", today_iso())
            if site_id:
                query = query.eq("site_id", site_id)
            if user_id:
                query = query.eq("user_id", user_id)
            result = query.order("check_in_time").execute()
            return [AttendanceResponse(**r) for r in result.data]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def _query_user_records(
        self,
        user_id: str,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        site_id: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        try:
            query = self.supabase.table("attendance_records").select("*").eq("user_id", user_id)
            if start_date:
                query = query.gte("work_date", start_date)
            if end_date:
                query = query.lte("work_date", end_date)
            if site_id:
                query = query.eq("site_id", site_id)
            result = query.order("work_date", desc=True).execute()
            return result.data or []
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_my_attendance(
        self,
        user_id: str,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        site_id: Optional[str] = None
    ) -> MyAttendanceResponse:
        records = self._query_user_records(user_id, start_date, end_date, site_id)
        return MyAttendanceResponse(
            records=[AttendanceResponse(**r) for r in records],
            summary=summarize_records(records)
        )

    def get_monthly(self, user_id: str, year: int, month: int) -> List[MonthlyAttendanceRecord]:
        """The user's records for one calendar month, oldest first"""
        try:
            first, last = month_bounds(year, month)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        records = self._query_user_records(user_id, first, last)
        records.sort(key=lambda r: r["work_date"])
        return [MonthlyAttendanceRecord(**r, date=r["work_date"]) for r in records]

    def update_record(self, record_id: str, data: AttendanceUpdate) -> AttendanceResponse:
        """Manager correction; hours follow the times"""
        record = self._get_raw(record_id)
        changes = data.model_dump(exclude_unset=True)
        check_in = changes.get("check_in_time", record.get("check_in_time"))
        check_out = changes.get("check_out_time", record.get("check_out_time"))
        if "check_in_time" in changes or "check_out_time" in changes:
            if check_in and check_out:
                hours, overtime, labor = compute_work_hours(check_in, check_out)
            else:
                hours, overtime, labor = 0.0, 0.0, 0.0
            changes.update({"work_hours": hours, "overtime_hours": overtime, "labor_hours": labor})
        try:
            result = self.supabase.table("attendance_records")\
                .update({**changes, "updated_at": utc_now_iso()})\
                .eq("id", record_id)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="Attendance record not found")
            return AttendanceResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def add_bulk(self, data: BulkAttendanceCreate, created_by: str) -> List[AttendanceResponse]:
        """Insert records for many workers on one site and day"""
        user_ids = [w.user_id for w in data.workers]
        if len(set(user_ids)) != len(user_ids):
            raise HTTPException(status_code=409, detail="A worker appears more than once in the batch")
        try:
            existing = self.supabase.table("attendance_records")\
                .select("user_id")\
                .eq("site_id", data.site_id)\
                .eq("work_date", data.work_date.isoformat())\
                .in_("user_id", user_ids)\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        if existing.data:
            taken = sorted({r["user_id"] for r in existing.data})
            raise HTTPException(status_code=409, detail=f"Attendance already recorded for: {', '.join(taken)}")

        rows = []
        for worker in data.workers:
            hours, overtime, labor = compute_work_hours(worker.check_in_time, worker.check_out_time)
            rows.append({
                "user_id": worker.user_id,
                "site_id": data.site_id,
                "work_date": data.work_date.isoformat(),
                "check_in_time": worker.check_in_time,
                "check_out_time": worker.check_out_time,
                "status": worker.status,
                "work_hours": hours,
                "overtime_hours": overtime,
                "labor_hours": labor,
                "work_type": worker.work_type,
                "notes": worker.notes,
                "created_by": created_by
            })
        try:
            result = self.supabase.table("attendance_records").insert(rows).execute()
            logger.info(f"Bulk attendance: {len(result.data)} records for site {data.site_id} on {data.work_date}")
            return [AttendanceResponse(**r) for r in result.data]
        except Exception as e:
            logger.error(f"Error adding bulk attendance: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def get_summary(
        self,
        start_date: str,
        end_date: str,
        site_id: Optional[str] = None
    ) -> List[WorkerAttendanceSummary]:
        """Per-worker totals over a date range"""
        try:
            query = self.supabase.table("attendance_records")\
                .select("*")\
                .gte("work_date", start_date)\
                .lte("work_date", end_date)
            if site_id:
                query = query.eq("site_id", site_id)
            result = query.execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

        by_user: Dict[str, List[Dict[str, Any]]] = {}
        for r in result.data or []:
            by_user.setdefault(r["user_id"], []).append(r)
        if not by_user:
            return []

        profiles = self.supabase.table("profiles")\
            .select("id, full_name")\
            .in_("id", list(by_user))\
            .execute()
        names = {p["id"]: p.get("full_name") for p in (profiles.data or [])}

        summaries = []
        for uid, records in by_user.items():
            totals = summarize_records(records)
            summaries.append(WorkerAttendanceSummary(
                user_id=uid,
                full_name=names.get(uid),
                days_worked=sum(1 for r in records if r.get("status") != "absent"),
                total_hours=totals.total_hours,
                total_overtime=totals.total_overtime,
                total_labor_hours=totals.total_labor_hours
            ))
        summaries.sort(key=lambda s: (s.full_name or "", s.user_id))
        return summaries
