from pydantic import BaseModel, Field
from typing import Optional, Literal
from datetime import datetime


OrganizationType = Literal["head_office", "branch_office", "department"]


class OrganizationCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    type: OrganizationType
    parent_id: Optional[str] = None
    description: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None


class OrganizationUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    type: Optional[OrganizationType] = None
    parent_id: Optional[str] = None
    description: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    is_active: Optional[bool] = None


class OrganizationResponse(BaseModel):
    id: str
    name: str
    type: str
    parent_id: Optional[str] = None
    description: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    is_active: Optional[bool] = True
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
