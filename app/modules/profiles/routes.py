from fastapi import APIRouter, Depends, HTTPException, status
from app.database.supabase_client import get_supabase, get_admin_supabase
from app.modules.profiles.schemas import (
    ProfileUpdate, ProfileCreate, ProfileResponse, ProfileCreatedResponse, RoleUpdate, StatusUpdate,
    PasswordResetResponse, SignupRequestResponse, SignupRejectRequest, SignupApprovalResponse
)
from app.modules.profiles.service import ProfileService, SignupRequestService
from app.core.dependencies import require_permission, get_current_profile, is_admin
from supabase import Client
from typing import List, Dict, Optional

router = APIRouter(prefix="/profiles", tags=["profiles"])
signup_router = APIRouter(prefix="/signup-requests", tags=["profiles"])


def get_profile_service(supabase: Client = Depends(get_supabase)) -> ProfileService:
    return ProfileService(supabase)


def get_admin_profile_service(
    supabase: Client = Depends(get_supabase),
    admin_client: Client = Depends(get_admin_supabase)
) -> ProfileService:
    return ProfileService(supabase, admin_client)


def get_signup_service(
    supabase: Client = Depends(get_supabase),
    admin_client: Client = Depends(get_admin_supabase)
) -> SignupRequestService:
    return SignupRequestService(supabase, admin_client)


def get_signup_read_service(supabase: Client = Depends(get_supabase)) -> SignupRequestService:
    return SignupRequestService(supabase)


@router.get("", response_model=List[ProfileResponse])
async def list_profiles(
    role: Optional[str] = None,
    status: Optional[str] = None,
    organization_id: Optional[str] = None,
    search: Optional[str] = None,
    limit: int = 20,
    offset: int = 0,
    current: Dict = Depends(require_permission("profiles:read")),
    service: ProfileService = Depends(get_profile_service)
):
    """List users (managers and admins)"""
    return service.list_profiles(
        role=role, status=status, organization_id=organization_id,
        search=search, limit=limit, offset=offset
    )


@router.post("", response_model=ProfileCreatedResponse, status_code=201)
async def create_profile(
    user_data: ProfileCreate,
    current: Dict = Depends(require_permission("profiles:manage")),
    service: ProfileService = Depends(get_admin_profile_service)
):
    """Create a user account with a temporary password"""
    return service.create_user(user_data)


@router.get("/{profile_id}", response_model=ProfileResponse)
async def get_profile(
    profile_id: str,
    current: Dict = Depends(get_current_profile),
    service: ProfileService = Depends(get_profile_service)
):
    """Get a profile (self, managers and admins)"""
    if profile_id != current["id"] and current.get("role") not in ("site_manager", "admin", "system_admin"):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="User not accessible")
    return service.get_profile(profile_id)


@router.put("/{profile_id}", response_model=ProfileResponse)
async def update_profile(
    profile_id: str,
    profile_data: ProfileUpdate,
    current: Dict = Depends(get_current_profile),
    service: ProfileService = Depends(get_profile_service)
):
    """Update a profile; users edit their own contact details, admins edit anything"""
    admin = is_admin(current)
    if profile_id != current["id"] and not admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="User not accessible")
    return service.update_profile(profile_id, profile_data, allow_admin_fields=admin)


@router.patch("/{profile_id}/role", response_model=ProfileResponse)
async def update_role(
    profile_id: str,
    role_data: RoleUpdate,
    current: Dict = Depends(require_permission("profiles:manage")),
    service: ProfileService = Depends(get_profile_service)
):
    """Change a user's role"""
    if role_data.role == "system_admin" and current.get("role") != "system_admin":
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only system administrators can grant system_admin")
    return service.set_role(profile_id, role_data.role)


@router.patch("/{profile_id}/status", response_model=ProfileResponse)
async def update_status(
    profile_id: str,
    status_data: StatusUpdate,
    current: Dict = Depends(require_permission("profiles:manage")),
    service: ProfileService = Depends(get_profile_service)
):
    """Activate, deactivate or suspend a user"""
    if profile_id == current["id"] and status_data.status != "active":
        raise HTTPException(status_code=400, detail="You cannot deactivate your own account")
    return service.set_status(profile_id, status_data.status)


@router.delete("/{profile_id}", status_code=204)
async def delete_profile(
    profile_id: str,
    current: Dict = Depends(require_permission("profiles:manage")),
    service: ProfileService = Depends(get_profile_service)
):
    """Soft-delete a user (status becomes inactive)"""
    service.deactivate(profile_id, current["id"])
    return None


@router.post("/{profile_id}/reset-password", response_model=PasswordResetResponse)
async def reset_password(
    profile_id: str,
    current: Dict = Depends(require_permission("profiles:manage")),
    service: ProfileService = Depends(get_admin_profile_service)
):
    """Reset a user's password to a generated temporary one"""
    return service.reset_password(profile_id)


@signup_router.get("", response_model=List[SignupRequestResponse])
async def list_signup_requests(
    status: Optional[str] = "pending",
    limit: int = 50,
    offset: int = 0,
    current: Dict = Depends(require_permission("signup_requests:manage")),
    service: SignupRequestService = Depends(get_signup_read_service)
):
    """List signup requests (status=all for every request)"""
    return service.list_requests(status=None if status == "all" else status, limit=limit, offset=offset)


@signup_router.post("/{request_id}/approve", response_model=SignupApprovalResponse)
async def approve_signup_request(
    request_id: str,
    current: Dict = Depends(require_permission("signup_requests:manage")),
    service: SignupRequestService = Depends(get_signup_service)
):
    """Approve a pending signup request and create the account"""
    return service.approve(request_id, current["id"])


@signup_router.post("/{request_id}/reject", response_model=SignupRequestResponse)
async def reject_signup_request(
    request_id: str,
    reject_data: SignupRejectRequest,
    current: Dict = Depends(require_permission("signup_requests:manage")),
    service: SignupRequestService = Depends(get_signup_read_service)
):
    """Reject a pending signup request"""
    return service.reject(request_id, current["id"], reject_data.reason)
