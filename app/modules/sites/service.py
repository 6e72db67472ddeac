from supabase import Client
from app.modules.sites.schemas import (
    SiteCreate, SiteUpdate, SiteResponse, SiteAssignmentCreate, SiteAssignmentResponse
)
from app.core.time_utils import today_iso, utc_now_iso
from typing import List, Optional, Dict, Any
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)

_PROFILE_FIELDS = "id, full_name, email, role, phone"


class SiteService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def create_site(self, site_data: SiteCreate, user_id: str) -> SiteResponse:
        """Create a new site"""
        try:
            result = self.supabase.table("sites").insert({
                **site_data.model_dump(mode="json"),
                "created_by": user_id
            }).execute()

            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create site")

            logger.info(f"Site created: {result.data[0]['id']} ({site_data.name})")
            return SiteResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_site_by_id(self, site_id: str) -> SiteResponse:
        """Get site by ID"""
        try:
            result = self.supabase.table("sites")\
                .select("*")\
                .eq("id", site_id)\
                .maybe_single()\
                .execute()

            if not result or not result.data:
                raise HTTPException(status_code=404, detail="Site not found")

            return SiteResponse(**result.data)
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def list_sites(
        self,
        status: Optional[str] = None,
        search: Optional[str] = None,
        organization_id: Optional[str] = None,
        site_ids: Optional[List[str]] = None,
        limit: int = 20,
        offset: int = 0
    ) -> List[SiteResponse]:
        """List sites; site_ids restricts to a user's assigned sites"""
        try:
            if site_ids is not None and not site_ids:
                return []
            query = self.supabase.table("sites").select("*")
            if site_ids is not None:
                query = query.in_("id", site_ids)
            if status:
                query = query.eq("status", status)
            if organization_id:
                query = query.eq("organization_id", organization_id)
            if search:
                query = query.ilike("name", f"%{search}%")
            result = query.order("created_at", desc=True).limit(limit).offset(offset).execute()
            return [SiteResponse(**s) for s in result.data]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def update_site(self, site_id: str, site_data: SiteUpdate) -> SiteResponse:
        """Update site"""
        changes = site_data.model_dump(mode="json", exclude_unset=True)
        if not changes:
            return self.get_site_by_id(site_id)
        if "end_date" in changes or "start_date" in changes:
            current = self.get_site_by_id(site_id)
            start = changes.get("start_date") or (current.start_date.isoformat() if current.start_date else None)
            end = changes.get("end_date") if "end_date" in changes else (current.end_date.isoformat() if current.end_date else None)
            if start and end and end < start:
                raise HTTPException(status_code=400, detail="end_date must not be before start_date")
        try:
            result = self.supabase.table("sites")\
                .update({**changes, "updated_at": utc_now_iso()})\
                .eq("id", site_id)\
                .execute()

            if not result.data:
                raise HTTPException(status_code=404, detail="Site not found")

            return SiteResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def set_status(self, site_id: str, status: str) -> SiteResponse:
        changes: Dict[str, Any] = {"status": status, "updated_at": utc_now_iso()}
        if status == "completed":
            current = self.get_site_by_id(site_id)
            if not current.end_date:
                changes["end_date"] = today_iso()
        try:
            result = self.supabase.table("sites").update(changes).eq("id", site_id).execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="Site not found")
            return SiteResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def deactivate_site(self, site_id: str) -> bool:
        """Soft delete: mark the site inactive and close its assignments"""
        self.set_status(site_id, "inactive")
        try:
            self.supabase.table("site_assignments")\
                .update({"is_active": False, "unassigned_date": today_iso(), "updated_at": utc_now_iso()})\
                .eq("site_id", site_id)\
                .eq("is_active", True)\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        return True


class SiteAssignmentService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def _attach_profiles(self, rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        user_ids = list({r["user_id"] for r in rows})
        if not user_ids:
            return rows
        profiles = self.supabase.table("profiles")\
            .select(_PROFILE_FIELDS)\
            .in_("id", user_ids)\
            .execute()
        by_id = {p["id"]: p for p in (profiles.data or [])}
        return [{**r, "profile": by_id.get(r["user_id"])} for r in rows]

    def _attach_sites(self, rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        site_ids = list({r["site_id"] for r in rows})
        if not site_ids:
            return rows
        sites = self.supabase.table("sites")\
            .select("*")\
            .in_("id", site_ids)\
            .execute()
        by_id = {s["id"]: s for s in (sites.data or [])}
        return [{**r, "site": by_id.get(r["site_id"])} for r in rows]

    def list_site_assignments(self, site_id: str, include_inactive: bool = False) -> List[SiteAssignmentResponse]:
        """Assignments for a site with the assigned user's profile"""
        try:
            query = self.supabase.table("site_assignments").select("*").eq("site_id", site_id)
            if not include_inactive:
                query = query.eq("is_active", True)
            result = query.order("assigned_date", desc=True).execute()
            return [SiteAssignmentResponse(**r) for r in self._attach_profiles(result.data or [])]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def assign_user(self, site_id: str, assignment: SiteAssignmentCreate) -> SiteAssignmentResponse:
        """Assign a user to a site, closing any other active assignment first"""
        try:
            site = self.supabase.table("sites").select("id, status").eq("id", site_id).maybe_single().execute()
            if not site or not site.data:
                raise HTTPException(status_code=404, detail="Site not found")
            if site.data.get("status") != "active":
                raise HTTPException(status_code=400, detail="Users can only be assigned to active sites")

            profile = self.supabase.table("profiles").select("id, status").eq("id", assignment.user_id).maybe_single().execute()
            if not profile or not profile.data:
                raise HTTPException(status_code=404, detail="User not found")
            if profile.data.get("status") not in (None, "active"):
                raise HTTPException(status_code=400, detail="Inactive users cannot be assigned")

            today = today_iso()
            self.supabase.table("site_assignments")\
                .update({"is_active": False, "unassigned_date": today, "updated_at": utc_now_iso()})\
                .eq("user_id", assignment.user_id)\
                .eq("is_active", True)\
                .execute()

            result = self.supabase.table("site_assignments").insert({
                "site_id": site_id,
                "user_id": assignment.user_id,
                "role": assignment.role,
                "assigned_date": today,
                "is_active": True
            }).execute()

            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to assign user to site")

            logger.info(f"User {assignment.user_id} assigned to site {site_id} as {assignment.role}")
            return SiteAssignmentResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def unassign_user(self, site_id: str, user_id: str) -> bool:
        """Close the user's active assignment on the site"""
        try:
            result = self.supabase.table("site_assignments")\
                .update({"is_active": False, "unassigned_date": today_iso(), "updated_at": utc_now_iso()})\
                .eq("site_id", site_id)\
                .eq("user_id", user_id)\
                .eq("is_active", True)\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        if not result.data:
            raise HTTPException(status_code=404, detail="No active assignment for this user on this site")
        return True

    def get_current_assignment(self, user_id: str) -> SiteAssignmentResponse:
        """The user's active assignment together with the site"""
        try:
            result = self.supabase.table("site_assignments")\
                .select("*")\
                .eq("user_id", user_id)\
                .eq("is_active", True)\
                .order("assigned_date", desc=True)\
                .limit(1)\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        if not result.data:
            raise HTTPException(status_code=404, detail="No active site assignment")
        return SiteAssignmentResponse(**self._attach_sites(result.data)[0])

    def get_assignment_history(self, user_id: str) -> List[SiteAssignmentResponse]:
        """All of the user's assignments, newest first"""
        try:
            result = self.supabase.table("site_assignments")\
                .select("*")\
                .eq("user_id", user_id)\
                .order("assigned_date", desc=True)\
                .execute()
            return [SiteAssignmentResponse(**r) for r in self._attach_sites(result.data or [])]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_user_site_ids(self, user_id: str) -> List[str]:
        result = self.supabase.table("site_assignments")\
            .select("site_id")\
            .eq("user_id", user_id)\
            .eq("is_active", True)\
            .execute()
        return [r["site_id"] for r in (result.data or [])]
