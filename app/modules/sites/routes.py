from fastapi import APIRouter, Depends
from app.database.supabase_client import get_supabase
from app.modules.sites.schemas import (
    SiteCreate, SiteUpdate, SiteStatusUpdate, SiteResponse,
    SiteAssignmentCreate, SiteAssignmentResponse
)
from app.modules.sites.service import SiteService, SiteAssignmentService
from app.core.dependencies import require_permission, get_current_profile, is_admin, check_site_member
from supabase import Client
from typing import List, Dict, Optional

router = APIRouter(prefix="/sites", tags=["sites"])

# Roles that see every site rather than only their assigned one
_ALL_SITES_ROLES = ("admin", "system_admin", "customer_manager")


def get_site_service(supabase: Client = Depends(get_supabase)) -> SiteService:
    return SiteService(supabase)


def get_assignment_service(supabase: Client = Depends(get_supabase)) -> SiteAssignmentService:
    return SiteAssignmentService(supabase)


@router.get("", response_model=List[SiteResponse])
async def list_sites(
    status: Optional[str] = None,
    search: Optional[str] = None,
    organization_id: Optional[str] = None,
    limit: int = 20,
    offset: int = 0,
    current: Dict = Depends(require_permission("sites:read")),
    service: SiteService = Depends(get_site_service),
    assignments: SiteAssignmentService = Depends(get_assignment_service)
):
    """List sites: admins and customer managers see all, others their assigned sites"""
    site_ids = None
    if current.get("role") not in _ALL_SITES_ROLES:
        site_ids = assignments.get_user_site_ids(current["id"])
    return service.list_sites(
        status=status, search=search, organization_id=organization_id,
        site_ids=site_ids, limit=limit, offset=offset
    )


@router.post("", response_model=SiteResponse, status_code=201)
async def create_site(
    site_data: SiteCreate,
    current: Dict = Depends(require_permission("sites:manage")),
    service: SiteService = Depends(get_site_service)
):
    """Create a new site"""
    return service.create_site(site_data, current["id"])


@router.get("/me/current", response_model=SiteAssignmentResponse)
async def get_my_current_site(
    current: Dict = Depends(get_current_profile),
    assignments: SiteAssignmentService = Depends(get_assignment_service)
):
    """Caller's active site assignment"""
    return assignments.get_current_assignment(current["id"])


@router.get("/me/history", response_model=List[SiteAssignmentResponse])
async def get_my_site_history(
    current: Dict = Depends(get_current_profile),
    assignments: SiteAssignmentService = Depends(get_assignment_service)
):
    """Caller's site assignment history"""
    return assignments.get_assignment_history(current["id"])


@router.get("/{site_id}", response_model=SiteResponse)
async def get_site(
    site_id: str,
    current: Dict = Depends(require_permission("sites:read")),
    service: SiteService = Depends(get_site_service),
    supabase: Client = Depends(get_supabase)
):
    """Get site by ID"""
    site = service.get_site_by_id(site_id)
    if current.get("role") not in _ALL_SITES_ROLES:
        check_site_member(site_id, current, supabase)
    return site


@router.put("/{site_id}", response_model=SiteResponse)
async def update_site(
    site_id: str,
    site_data: SiteUpdate,
    current: Dict = Depends(require_permission("sites:manage")),
    service: SiteService = Depends(get_site_service)
):
    """Update site"""
    return service.update_site(site_id, site_data)


@router.patch("/{site_id}/status", response_model=SiteResponse)
async def update_site_status(
    site_id: str,
    status_data: SiteStatusUpdate,
    current: Dict = Depends(require_permission("sites:manage")),
    service: SiteService = Depends(get_site_service)
):
    """Change site status (active, inactive, completed)"""
    return service.set_status(site_id, status_data.status)


@router.delete("/{site_id}", status_code=204)
async def delete_site(
    site_id: str,
    current: Dict = Depends(require_permission("sites:manage")),
    service: SiteService = Depends(get_site_service)
):
    """Deactivate site and close its assignments"""
    service.deactivate_site(site_id)
    return None


@router.get("/{site_id}/assignments", response_model=List[SiteAssignmentResponse])
async def list_site_assignments(
    site_id: str,
    include_inactive: bool = False,
    current: Dict = Depends(require_permission("site_assignments:read")),
    assignments: SiteAssignmentService = Depends(get_assignment_service),
    supabase: Client = Depends(get_supabase)
):
    """Workers assigned to a site"""
    if not is_admin(current):
        check_site_member(site_id, current, supabase)
    return assignments.list_site_assignments(site_id, include_inactive=include_inactive)


@router.post("/{site_id}/assignments", response_model=SiteAssignmentResponse, status_code=201)
async def assign_user_to_site(
    site_id: str,
    assignment: SiteAssignmentCreate,
    current: Dict = Depends(require_permission("site_assignments:manage")),
    assignments: SiteAssignmentService = Depends(get_assignment_service)
):
    """Assign a user to a site (closes their previous active assignment)"""
    return assignments.assign_user(site_id, assignment)


@router.delete("/{site_id}/assignments/{user_id}", status_code=204)
async def unassign_user_from_site(
    site_id: str,
    user_id: str,
    current: Dict = Depends(require_permission("site_assignments:manage")),
    assignments: SiteAssignmentService = Depends(get_assignment_service)
):
    """Remove a user from a site"""
    assignments.unassign_user(site_id, user_id)
    return None
