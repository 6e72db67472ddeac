from fastapi import APIRouter, Depends, Request
from app.config import settings
from app.config.permissions_config import get_role_permissions
from app.core.dependencies import get_auth_service, get_current_token, get_current_profile
from app.core.rate_limit import limiter
from app.modules.auth.schemas import (
    LoginRequest, TokenResponse, SignupRequestCreate, SignupRequestAccepted, MeResponse
)
from app.modules.auth.service import AuthService
from typing import Dict

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=TokenResponse)
@limiter.limit(settings.auth_rate_limit)
async def login(
    request: Request,
    login_data: LoginRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Login and get access token"""
    return service.login(login_data)


@router.post("/signup-request", response_model=SignupRequestAccepted, status_code=201)
@limiter.limit(settings.auth_rate_limit)
async def signup_request(
    request: Request,
    request_data: SignupRequestCreate,
    service: AuthService = Depends(get_auth_service)
):
    """Request an account; an administrator approves it from the admin screens"""
    return service.create_signup_request(request_data)


@router.post("/logout", status_code=200)
async def logout(
    token: str = Depends(get_current_token),
    service: AuthService = Depends(get_auth_service)
):
    """Logout and invalidate token"""
    service.logout(token)
    return {"message": "Logged out successfully"}


@router.get("/me", response_model=MeResponse)
async def get_me(profile: Dict = Depends(get_current_profile)):
    """Get current user profile and their permissions (for frontend UI)."""
    return MeResponse(
        id=profile["id"],
        email=profile.get("email"),
        full_name=profile.get("full_name"),
        role=profile.get("role", ""),
        status=profile.get("status"),
        organization_id=profile.get("organization_id"),
        permissions=get_role_permissions(profile.get("role", "")),
    )
