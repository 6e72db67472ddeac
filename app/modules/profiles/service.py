from supabase import Client
from app.modules.profiles.schemas import (
    ProfileUpdate, ProfileCreate, ProfileResponse, ProfileCreatedResponse,
    PasswordResetResponse, SignupRequestResponse, SignupApprovalResponse
)
from app.core.time_utils import utc_now_iso
from typing import List, Optional, Dict, Any
from fastapi import HTTPException
import secrets
import logging

logger = logging.getLogger(__name__)

_ADMIN_ONLY_FIELDS = ("role", "status", "organization_id")


def generate_temporary_password() -> str:
    """Random password that satisfies the Supabase default policy (letters, digit, symbol)."""
    return secrets.token_urlsafe(9) + "A1!"


def _escape_like(term: str) -> str:
    return term.replace(",", " ").replace("(", " ").replace(")", " ").strip()


class ProfileService:
    def __init__(self, supabase: Client, admin_client: Optional[Client] = None):
        self.supabase = supabase
        self.admin_client = admin_client

    def _require_admin_client(self) -> Client:
        if self.admin_client is None:
            raise HTTPException(status_code=500, detail="Service role key not configured. Cannot manage auth users.")
        return self.admin_client

    def get_profile(self, profile_id: str) -> ProfileResponse:
        """Get profile by ID"""
        try:
            result = self.supabase.table("profiles")\
                .select("*")\
                .eq("id", profile_id)\
                .maybe_single()\
                .execute()

            if not result or not result.data:
                raise HTTPException(status_code=404, detail="User not found")

            return ProfileResponse(**result.data)
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def list_profiles(
        self,
        role: Optional[str] = None,
        status: Optional[str] = None,
        organization_id: Optional[str] = None,
        search: Optional[str] = None,
        limit: int = 20,
        offset: int = 0
    ) -> List[ProfileResponse]:
        """List profiles with optional role/status/organization filters and name/email search"""
        try:
            query = self.supabase.table("profiles").select("*")
            if role:
                query = query.eq("role", role)
            if status:
                query = query.eq("status", status)
            if organization_id:
                query = query.eq("organization_id", organization_id)
            if search:
                term = _escape_like(search)
                if term:
                    query = query.or_(f"full_name.ilike.%{term}%,email.ilike.%{term}%")
            result = query.order("created_at", desc=True).limit(limit).offset(offset).execute()
            return [ProfileResponse(**p) for p in result.data]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def update_profile(self, profile_id: str, profile_data: ProfileUpdate, allow_admin_fields: bool = False) -> ProfileResponse:
        """Update profile fields; role/status/organization only when allow_admin_fields"""
        changes = profile_data.model_dump(exclude_unset=True)
        forbidden = [f for f in _ADMIN_ONLY_FIELDS if f in changes]
        if forbidden and not allow_admin_fields:
            raise HTTPException(status_code=403, detail=f"Only administrators can change: {', '.join(forbidden)}")
        if not changes:
            return self.get_profile(profile_id)
        return self._update(profile_id, changes)

    def set_role(self, profile_id: str, role: str) -> ProfileResponse:
        return self._update(profile_id, {"role": role})

    def set_status(self, profile_id: str, status: str) -> ProfileResponse:
        return self._update(profile_id, {"status": status})

    def deactivate(self, profile_id: str, acting_user_id: str) -> bool:
        """Soft-delete a user; their reports and attendance stay attached"""
        if profile_id == acting_user_id:
            raise HTTPException(status_code=400, detail="You cannot deactivate your own account")
        self._update(profile_id, {"status": "inactive"})
        try:
            self.supabase.table("site_assignments")\
                .update({"is_active": False, "unassigned_date": utc_now_iso()[:10]})\
                .eq("user_id", profile_id)\
                .eq("is_active", True)\
                .execute()
        except Exception as e:
            logger.error(f"Failed to close site assignments for {profile_id}: {e}")
        return True

    def _update(self, profile_id: str, changes: Dict[str, Any]) -> ProfileResponse:
        try:
            update_data = {**changes, "updated_at": utc_now_iso()}
            result = self.supabase.table("profiles")\
                .update(update_data)\
                .eq("id", profile_id)\
                .execute()

            if not result.data:
                raise HTTPException(status_code=404, detail="User not found")

            return ProfileResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def create_user(self, user_data: ProfileCreate) -> ProfileCreatedResponse:
        """Create the auth user with a temporary password, then its profile"""
        admin = self._require_admin_client()
        existing = self.supabase.table("profiles").select("id").eq("email", user_data.email).execute()
        if existing.data:
            raise HTTPException(status_code=409, detail="A user with this email already exists")

        temp_password = generate_temporary_password()
        try:
            auth_response = admin.auth.admin.create_user({
                "email": user_data.email,
                "password": temp_password,
                "email_confirm": True,
                "user_metadata": {"full_name": user_data.full_name}
            })
        except Exception as e:
            logger.error(f"Error creating auth user {user_data.email}: {e}")
            raise HTTPException(status_code=500, detail="Failed to create user account")
        if not auth_response or not auth_response.user:
            raise HTTPException(status_code=500, detail="Failed to create user account")

        user_id = auth_response.user.id
        try:
            result = admin.table("profiles").insert({
                "id": user_id,
                "email": user_data.email,
                "full_name": user_data.full_name,
                "phone": user_data.phone,
                "role": user_data.role,
                "status": user_data.status,
                "organization_id": user_data.organization_id,
            }).execute()
            if not result.data:
                raise RuntimeError("profile insert returned no rows")
        except Exception as e:
            logger.error(f"Error creating profile for {user_id}, removing auth user: {e}")
            try:
                admin.auth.admin.delete_user(user_id)
            except Exception as cleanup_error:
                logger.error(f"Failed to remove orphaned auth user {user_id}: {cleanup_error}")
            raise HTTPException(status_code=500, detail="Failed to create user profile")

        logger.info(f"Created user {user_id} ({user_data.role})")
        return ProfileCreatedResponse(profile=ProfileResponse(**result.data[0]), temporary_password=temp_password)

    def reset_password(self, profile_id: str) -> PasswordResetResponse:
        """Replace the user's password with a generated temporary one"""
        admin = self._require_admin_client()
        self.get_profile(profile_id)
        temp_password = generate_temporary_password()
        try:
            admin.auth.admin.update_user_by_id(profile_id, {"password": temp_password})
        except Exception as e:
            logger.error(f"Error resetting password for {profile_id}: {e}")
            raise HTTPException(status_code=500, detail="Failed to reset password")
        return PasswordResetResponse(user_id=profile_id, temporary_password=temp_password)


class SignupRequestService:
    def __init__(self, supabase: Client, admin_client: Optional[Client] = None):
        self.supabase = supabase
        self.admin_client = admin_client

    def list_requests(self, status: Optional[str] = "pending", limit: int = 50, offset: int = 0) -> List[SignupRequestResponse]:
        """List signup requests; status=None returns all"""
        try:
            query = self.supabase.table("signup_requests").select("*")
            if status:
                query = query.eq("status", status)
            result = query.order("created_at", desc=True).limit(limit).offset(offset).execute()
            return [SignupRequestResponse(**r) for r in result.data]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def _get_pending(self, request_id: str) -> Dict[str, Any]:
        result = self.supabase.table("signup_requests")\
            .select("*")\
            .eq("id", request_id)\
            .maybe_single()\
            .execute()
        if not result or not result.data:
            raise HTTPException(status_code=404, detail="Signup request not found")
        if result.data["status"] != "pending":
            raise HTTPException(status_code=400, detail="Request has already been processed")
        return result.data

    def approve(self, request_id: str, approver_id: str) -> SignupApprovalResponse:
        """Create the account for a pending request and mark it approved"""
        request = self._get_pending(request_id)
        profile_service = ProfileService(self.supabase, self.admin_client)
        created = profile_service.create_user(ProfileCreate(
            email=request["email"],
            full_name=request["full_name"],
            phone=request.get("phone"),
            role=request.get("requested_role") or "worker",
        ))
        try:
            self.supabase.table("signup_requests")\
                .update({"status": "approved", "approved_by": approver_id, "approved_at": utc_now_iso()})\
                .eq("id", request_id)\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        logger.info(f"Signup request {request_id} approved by {approver_id}")
        return SignupApprovalResponse(
            request_id=request_id,
            user_id=created.profile.id,
            email=created.profile.email,
            temporary_password=created.temporary_password,
            message=f"Signup for {request['full_name']} approved"
        )

    def reject(self, request_id: str, approver_id: str, reason: str) -> SignupRequestResponse:
        self._get_pending(request_id)
        try:
            result = self.supabase.table("signup_requests")\
                .update({
                    "status": "rejected",
                    "rejection_reason": reason,
                    "approved_by": approver_id,
                    "approved_at": utc_now_iso(),
                })\
                .eq("id", request_id)\
                .execute()
            return SignupRequestResponse(**result.data[0])
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
