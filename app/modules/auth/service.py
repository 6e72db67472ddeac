import hashlib
import time
import logging
from supabase import Client
from app.modules.auth.schemas import LoginRequest, TokenResponse, SignupRequestCreate, SignupRequestAccepted
from fastapi import HTTPException
from typing import Dict, Any

logger = logging.getLogger(__name__)

# In-memory cache for get_current_user to reduce Supabase auth calls (e.g. many parallel requests with same token)
_AUTH_USER_CACHE: Dict[str, tuple] = {}
_AUTH_CACHE_TTL_SEC = 60
_AUTH_CACHE_MAX_SIZE = 500


def clear_auth_cache():
    _AUTH_USER_CACHE.clear()


class AuthService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def login(self, login_data: LoginRequest) -> TokenResponse:
        """Authenticate user using Supabase Auth"""
        try:
            auth_response = self.supabase.auth.sign_in_with_password({
                "email": login_data.email,
                "password": login_data.password
            })

            if not auth_response.user or not auth_response.session:
                raise HTTPException(status_code=401, detail="Invalid email or password")

            user_id = auth_response.user.id
            profile = self.supabase.table("profiles")\
                .select("role, status")\
                .eq("id", user_id)\
                .maybe_single()\
                .execute()
            profile_data = profile.data if profile else None

            if profile_data and profile_data.get("status") not in (None, "active"):
                raise HTTPException(status_code=403, detail="Account is not active")

            # Best-effort login bookkeeping; the login itself already succeeded
            try:
                self.supabase.table("profiles")\
                    .update({"last_login_at": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())})\
                    .eq("id", user_id)\
                    .execute()
            except Exception as e:
                logger.warning(f"Failed to record last login for {user_id}: {e}")

            return TokenResponse(
                access_token=auth_response.session.access_token,
                refresh_token=getattr(auth_response.session, "refresh_token", None),
                token_type="bearer",
                user_id=user_id,
                email=auth_response.user.email or login_data.email,
                role=profile_data.get("role") if profile_data else None,
            )
        except HTTPException:
            raise
        except Exception as e:
            error_message = str(e)
            if "invalid" in error_message.lower() or "credentials" in error_message.lower():
                raise HTTPException(status_code=401, detail="Invalid email or password")
            logger.error(f"Login failed: {error_message}")
            raise HTTPException(status_code=500, detail=f"Login failed: {error_message}")

    def create_signup_request(self, request_data: SignupRequestCreate) -> SignupRequestAccepted:
        """File a signup request for an administrator to approve"""
        try:
            existing = self.supabase.table("signup_requests")\
                .select("id")\
                .eq("email", request_data.email)\
                .eq("status", "pending")\
                .execute()
            if existing.data:
                raise HTTPException(status_code=409, detail="A signup request for this email is already pending")

            profile = self.supabase.table("profiles")\
                .select("id")\
                .eq("email", request_data.email)\
                .execute()
            if profile.data:
                raise HTTPException(status_code=409, detail="User already exists")

            result = self.supabase.table("signup_requests").insert({
                "full_name": request_data.full_name,
                "email": request_data.email,
                "phone": request_data.phone,
                "company_name": request_data.company_name,
                "requested_role": request_data.requested_role,
                "status": "pending",
            }).execute()

            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create signup request")

            row = result.data[0]
            return SignupRequestAccepted(
                id=row["id"],
                email=row["email"],
                status=row["status"],
                message="Signup request submitted. An administrator will review it."
            )
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_current_user(self, token: str) -> Dict[str, Any]:
        """Get current user details from Supabase Auth token. Uses short TTL cache to reduce auth API calls."""
        try:
            cache_key = hashlib.sha256(token.encode()).hexdigest()
            now = time.monotonic()
            if cache_key in _AUTH_USER_CACHE:
                user_data, expiry = _AUTH_USER_CACHE[cache_key]
                if now < expiry:
                    return user_data
                del _AUTH_USER_CACHE[cache_key]
            user_response = self.supabase.auth.get_user(jwt=token)
            if not user_response or not user_response.user:
                raise HTTPException(status_code=401, detail="Invalid or expired token")
            user = user_response.user
            user_data = {
                "id": user.id,
                "email": user.email,
                "user_metadata": user.user_metadata or {},
                "app_metadata": user.app_metadata or {},
            }
            if len(_AUTH_USER_CACHE) < _AUTH_CACHE_MAX_SIZE:
                _AUTH_USER_CACHE[cache_key] = (user_data, now + _AUTH_CACHE_TTL_SEC)
            return user_data
        except HTTPException:
            raise
        except Exception as e:
            error_msg = str(e)
            if "JWT" in error_msg or "expired" in error_msg.lower() or "invalid" in error_msg.lower():
                raise HTTPException(status_code=401, detail="Invalid or expired token")
            raise HTTPException(status_code=401, detail="Authentication failed")

    def logout(self, token: str) -> bool:
        """Logout user using Supabase Auth"""
        _AUTH_USER_CACHE.pop(hashlib.sha256(token.encode()).hexdigest(), None)
        try:
            # Supabase access tokens are stateless JWTs; sign_out revokes the refresh token
            self.supabase.auth.sign_out()
            return True
        except Exception as e:
            logger.warning(f"Sign out failed: {e}")
            return False
