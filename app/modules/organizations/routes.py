from fastapi import APIRouter, Depends
from app.database.supabase_client import get_supabase
from app.modules.organizations.schemas import OrganizationCreate, OrganizationUpdate, OrganizationResponse
from app.modules.organizations.service import OrganizationService
from app.core.dependencies import require_permission
from supabase import Client
from typing import List, Dict, Optional

router = APIRouter(prefix="/organizations", tags=["organizations"])


def get_organization_service(supabase: Client = Depends(get_supabase)) -> OrganizationService:
    return OrganizationService(supabase)


@router.get("", response_model=List[OrganizationResponse])
async def list_organizations(
    type: Optional[str] = None,
    include_inactive: bool = False,
    limit: int = 50,
    offset: int = 0,
    current: Dict = Depends(require_permission("organizations:read")),
    service: OrganizationService = Depends(get_organization_service)
):
    """List organizations"""
    return service.list_organizations(org_type=type, include_inactive=include_inactive, limit=limit, offset=offset)


@router.post("", response_model=OrganizationResponse, status_code=201)
async def create_organization(
    org_data: OrganizationCreate,
    current: Dict = Depends(require_permission("organizations:manage")),
    service: OrganizationService = Depends(get_organization_service)
):
    """Create a new organization"""
    return service.create_organization(org_data)


@router.get("/{org_id}", response_model=OrganizationResponse)
async def get_organization(
    org_id: str,
    current: Dict = Depends(require_permission("organizations:read")),
    service: OrganizationService = Depends(get_organization_service)
):
    """Get organization by ID"""
    return service.get_organization_by_id(org_id)


@router.put("/{org_id}", response_model=OrganizationResponse)
async def update_organization(
    org_id: str,
    org_data: OrganizationUpdate,
    current: Dict = Depends(require_permission("organizations:manage")),
    service: OrganizationService = Depends(get_organization_service)
):
    """Update organization"""
    return service.update_organization(org_id, org_data)


@router.delete("/{org_id}", status_code=204)
async def delete_organization(
    org_id: str,
    current: Dict = Depends(require_permission("organizations:manage")),
    service: OrganizationService = Depends(get_organization_service)
):
    """Deactivate organization"""
    service.deactivate_organization(org_id)
    return None
