"""
Core dependencies for route protection and role checking
"""

from fastapi import Depends, HTTPException, Request, status
from app.database.supabase_client import get_supabase
from app.modules.auth.service import AuthService
from app.config.permissions_config import ADMIN_ROLES, MANAGER_ROLES, role_has_permission
from app.core.security import get_request_token, log_security_event
from supabase import Client
from typing import Dict, Any, Optional
import logging

logger = logging.getLogger(__name__)


def get_auth_service(supabase: Client = Depends(get_supabase)) -> AuthService:
    return AuthService(supabase)


def get_current_token(request: Request) -> str:
    """Extract the access token from the Authorization header or the session cookie"""
    token = get_request_token(request)
    if not token:
        log_security_event("unauthorized_access", "low", request, reason="missing_token")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return token


def get_current_user_id(
    token: str = Depends(get_current_token),
    auth_service: AuthService = Depends(get_auth_service)
) -> dict:
    """Extract current user info from JWT token"""
    return auth_service.get_current_user(token)


def fetch_profile(user_id: str, supabase: Client) -> Optional[Dict[str, Any]]:
    try:
        result = supabase.table("profiles")\
            .select("*")\
            .eq("id", user_id)\
            .maybe_single()\
            .execute()
        return result.data if result else None
    except Exception as e:
        logger.error(f"Error fetching profile {user_id}: {e}")
        return None


def get_current_profile(
    request: Request,
    user_data: dict = Depends(get_current_user_id),
    supabase: Client = Depends(get_supabase)
) -> dict:
    """Resolve the caller's profile (role, status); cached on the request"""
    cached = getattr(request.state, "profile", None)
    if cached is not None and cached.get("id") == user_data["id"]:
        return cached
    profile = fetch_profile(user_data["id"], supabase)
    if not profile:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Profile not found")
    if profile.get("status") not in (None, "active"):
        log_security_event(
            "unauthorized_access", "medium", request,
            user_id=user_data["id"], reason="inactive_account", status=profile.get("status"),
        )
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account is not active")
    profile = {**profile, "email": profile.get("email") or user_data.get("email")}
    request.state.profile = profile
    return profile


def is_admin(profile: dict) -> bool:
    return profile.get("role") in ADMIN_ROLES


def is_manager(profile: dict) -> bool:
    return profile.get("role") in MANAGER_ROLES


def require_permission(required_permission: str):
    """Factory function to create permission check dependency"""
    def check_permission(
        request: Request,
        profile: dict = Depends(get_current_profile)
    ) -> dict:
        """Dependency to check if the caller's role grants the permission"""
        if not role_has_permission(profile.get("role", ""), required_permission):
            log_security_event(
                "unauthorized_access", "medium", request,
                user_id=profile["id"], user_role=profile.get("role"),
                required=required_permission, reason="insufficient_permissions",
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Insufficient permissions. Required: {required_permission}"
            )
        return profile
    return check_permission


def get_active_site_id(user_id: str, supabase: Client) -> Optional[str]:
    """Return the site id of the user's active assignment, if any"""
    try:
        result = supabase.table("site_assignments")\
            .select("site_id")\
            .eq("user_id", user_id)\
            .eq("is_active", True)\
            .limit(1)\
            .execute()
        return result.data[0]["site_id"] if result.data else None
    except Exception as e:
        logger.error(f"Error getting active site for {user_id}: {e}")
        return None


def check_site_member(site_id: str, profile: dict, supabase: Client) -> dict:
    """Allow admins, or users with an active assignment on the site"""
    if is_admin(profile):
        return profile
    result = supabase.table("site_assignments")\
        .select("id")\
        .eq("site_id", site_id)\
        .eq("user_id", profile["id"])\
        .eq("is_active", True)\
        .execute()
    if result.data:
        return profile
    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail="You must be assigned to this site"
    )
