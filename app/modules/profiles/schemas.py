from pydantic import BaseModel, EmailStr, Field
from typing import Optional, Dict, Any, Literal
from datetime import datetime


UserRole = Literal["worker", "site_manager", "customer_manager", "admin", "system_admin"]
UserStatus = Literal["active", "inactive", "suspended"]


class ProfileUpdate(BaseModel):
    full_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    phone: Optional[str] = None
    avatar_url: Optional[str] = None
    notification_preferences: Optional[Dict[str, Any]] = None
    # Admin-only fields
    role: Optional[UserRole] = None
    status: Optional[UserStatus] = None
    organization_id: Optional[str] = None


class ProfileCreate(BaseModel):
    email: EmailStr
    full_name: str = Field(min_length=1, max_length=100)
    phone: Optional[str] = None
    role: UserRole = "worker"
    status: UserStatus = "active"
    organization_id: Optional[str] = None


class RoleUpdate(BaseModel):
    role: UserRole


class StatusUpdate(BaseModel):
    status: UserStatus


class ProfileResponse(BaseModel):
    id: str
    email: str
    full_name: Optional[str] = None
    phone: Optional[str] = None
    role: str
    status: Optional[str] = None
    organization_id: Optional[str] = None
    company_name: Optional[str] = None
    avatar_url: Optional[str] = None
    notification_preferences: Optional[Dict[str, Any]] = None
    last_login_at: Optional[datetime] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ProfileCreatedResponse(BaseModel):
    profile: ProfileResponse
    temporary_password: str


class PasswordResetResponse(BaseModel):
    user_id: str
    temporary_password: str


class SignupRequestResponse(BaseModel):
    id: str
    full_name: str
    email: str
    phone: Optional[str] = None
    company_name: Optional[str] = None
    requested_role: str
    status: str
    rejection_reason: Optional[str] = None
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True


class SignupRejectRequest(BaseModel):
    reason: str = Field(min_length=1)


class SignupApprovalResponse(BaseModel):
    request_id: str
    user_id: str
    email: str
    temporary_password: str
    message: str
