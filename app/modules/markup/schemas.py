from pydantic import BaseModel, Field
from typing import Optional, Literal, List, Dict, Any
from datetime import datetime

from app.modules.markup.editor import EditOperation


MarkupLocation = Literal["personal", "shared"]


class MarkupDocumentCreate(BaseModel):
    # Required fields are checked by the service so a missing one is a 400
    title: Optional[str] = None
    description: Optional[str] = None
    original_blueprint_url: Optional[str] = None
    original_blueprint_filename: Optional[str] = None
    markup_data: Optional[List[Dict[str, Any]]] = None
    location: MarkupLocation = "personal"
    preview_image_url: Optional[str] = None


class MarkupDocumentUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    markup_data: Optional[List[Dict[str, Any]]] = None
    location: Optional[MarkupLocation] = None
    preview_image_url: Optional[str] = None


class MarkupDocumentResponse(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    original_blueprint_url: str
    original_blueprint_filename: str
    markup_data: List[Dict[str, Any]] = []
    markup_count: int = 0
    location: str = "personal"
    preview_image_url: Optional[str] = None
    created_by: Optional[str] = None
    created_by_name: Optional[str] = None
    site_id: Optional[str] = None
    file_size: Optional[int] = 0
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    totalPages: int


class MarkupDocumentListResponse(BaseModel):
    success: bool = True
    data: List[MarkupDocumentResponse]
    pagination: Pagination


class MarkupDocumentEnvelope(BaseModel):
    success: bool = True
    data: MarkupDocumentResponse


class MarkupEditRequest(BaseModel):
    operations: List[EditOperation] = Field(min_length=1)
    selected_objects: List[str] = []
    clipboard: List[Dict[str, Any]] = []


class EditorSnapshot(BaseModel):
    selected_objects: List[str]
    clipboard: List[Dict[str, Any]]
    can_undo: bool
    can_redo: bool


class MarkupEditResponse(BaseModel):
    success: bool = True
    data: MarkupDocumentResponse
    editor: EditorSnapshot
