from pydantic import BaseModel, Field
from typing import Optional, Literal
from datetime import datetime


DocumentType = Literal["personal", "shared", "blueprint", "report", "certificate", "other"]


class DocumentUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    document_type: Optional[DocumentType] = None
    folder_path: Optional[str] = None
    site_id: Optional[str] = None
    is_public: Optional[bool] = None


class DocumentResponse(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    file_url: str
    file_path: Optional[str] = None
    file_name: str
    file_size: Optional[int] = None
    mime_type: Optional[str] = None
    document_type: Optional[str] = None
    folder_path: Optional[str] = None
    owner_id: Optional[str] = None
    site_id: Optional[str] = None
    is_public: bool = False
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
