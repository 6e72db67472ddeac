from supabase import Client
from app.modules.organizations.schemas import OrganizationCreate, OrganizationUpdate, OrganizationResponse
from app.core.time_utils import utc_now_iso
from typing import List, Optional
from fastapi import HTTPException


class OrganizationService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def create_organization(self, org_data: OrganizationCreate) -> OrganizationResponse:
        """Create a new organization"""
        try:
            if org_data.parent_id:
                self.get_organization_by_id(org_data.parent_id)
            result = self.supabase.table("organizations").insert({
                **org_data.model_dump(),
                "is_active": True
            }).execute()

            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create organization")

            return OrganizationResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_organization_by_id(self, org_id: str) -> OrganizationResponse:
        """Get organization by ID"""
        try:
            result = self.supabase.table("organizations")\
                .select("*")\
                .eq("id", org_id)\
                .maybe_single()\
                .execute()

            if not result or not result.data:
                raise HTTPException(status_code=404, detail="Organization not found")

            return OrganizationResponse(**result.data)
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def list_organizations(
        self,
        org_type: Optional[str] = None,
        include_inactive: bool = False,
        limit: int = 50,
        offset: int = 0
    ) -> List[OrganizationResponse]:
        """List organizations, active ones only unless include_inactive"""
        try:
            query = self.supabase.table("organizations").select("*")
            if not include_inactive:
                query = query.eq("is_active", True)
            if org_type:
                query = query.eq("type", org_type)
            result = query.order("name").limit(limit).offset(offset).execute()
            return [OrganizationResponse(**o) for o in result.data]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def update_organization(self, org_id: str, org_data: OrganizationUpdate) -> OrganizationResponse:
        """Update organization"""
        changes = org_data.model_dump(exclude_unset=True)
        if changes.get("parent_id") == org_id:
            raise HTTPException(status_code=400, detail="An organization cannot be its own parent")
        try:
            result = self.supabase.table("organizations")\
                .update({**changes, "updated_at": utc_now_iso()})\
                .eq("id", org_id)\
                .execute()

            if not result.data:
                raise HTTPException(status_code=404, detail="Organization not found")

            return OrganizationResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def deactivate_organization(self, org_id: str) -> bool:
        """Soft delete: organizations are referenced by profiles and sites"""
        self.update_organization(org_id, OrganizationUpdate(is_active=False))
        return True
