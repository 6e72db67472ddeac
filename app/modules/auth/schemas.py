from pydantic import BaseModel, EmailStr, Field
from typing import Optional, List, Literal


RequestableRole = Literal["worker", "site_manager", "customer_manager"]


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: Optional[str] = None
    token_type: str = "bearer"
    user_id: str
    email: str
    role: Optional[str] = None


class SignupRequestCreate(BaseModel):
    full_name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    phone: Optional[str] = None
    company_name: Optional[str] = None
    requested_role: RequestableRole = "worker"


class SignupRequestAccepted(BaseModel):
    id: str
    email: str
    status: str
    message: str


class MeResponse(BaseModel):
    id: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    role: str
    status: Optional[str] = None
    organization_id: Optional[str] = None
    permissions: List[str]
