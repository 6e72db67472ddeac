from fastapi import APIRouter, Depends, Query
from app.database.supabase_client import get_supabase
from app.modules.markup.schemas import (
    MarkupDocumentCreate, MarkupDocumentUpdate, MarkupDocumentListResponse,
    MarkupDocumentEnvelope, MarkupEditRequest, MarkupEditResponse, MarkupLocation
)
from app.modules.markup.service import MarkupDocumentService
from app.core.dependencies import require_permission, is_admin
from supabase import Client
from typing import Dict, Optional

router = APIRouter(prefix="/markup-documents", tags=["markup"])


def get_markup_service(supabase: Client = Depends(get_supabase)) -> MarkupDocumentService:
    return MarkupDocumentService(supabase)


@router.get("", response_model=MarkupDocumentListResponse)
async def list_markup_documents(
    location: MarkupLocation = "personal",
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    search: Optional[str] = None,
    site: Optional[str] = None,
    current: Dict = Depends(require_permission("markup:read")),
    service: MarkupDocumentService = Depends(get_markup_service)
):
    """Personal or shared markup documents, paginated"""
    return service.list_documents(current["id"], location, page, limit, search, site)


@router.post("", response_model=MarkupDocumentEnvelope, status_code=201)
async def create_markup_document(
    data: MarkupDocumentCreate,
    current: Dict = Depends(require_permission("markup:write")),
    service: MarkupDocumentService = Depends(get_markup_service)
):
    """Save a marked-up blueprint"""
    return MarkupDocumentEnvelope(data=service.create_document(data, current["id"]))


@router.get("/{document_id}", response_model=MarkupDocumentEnvelope)
async def get_markup_document(
    document_id: str,
    current: Dict = Depends(require_permission("markup:read")),
    service: MarkupDocumentService = Depends(get_markup_service)
):
    return MarkupDocumentEnvelope(data=service.get_document(document_id, current["id"]))


@router.put("/{document_id}", response_model=MarkupDocumentEnvelope)
async def update_markup_document(
    document_id: str,
    data: MarkupDocumentUpdate,
    current: Dict = Depends(require_permission("markup:write")),
    service: MarkupDocumentService = Depends(get_markup_service)
):
    return MarkupDocumentEnvelope(data=service.update_document(document_id, data, current["id"]))


@router.delete("/{document_id}", status_code=204)
async def delete_markup_document(
    document_id: str,
    current: Dict = Depends(require_permission("markup:write")),
    service: MarkupDocumentService = Depends(get_markup_service)
):
    """Soft-delete a markup document"""
    service.delete_document(document_id, current["id"], is_admin(current))
    return None


@router.post("/{document_id}/edits", response_model=MarkupEditResponse)
async def apply_markup_edits(
    document_id: str,
    edit: MarkupEditRequest,
    current: Dict = Depends(require_permission("markup:write")),
    service: MarkupDocumentService = Depends(get_markup_service)
):
    """Apply editor operations (add, update, delete, copy/paste, undo/redo) and save"""
    return service.apply_edits(document_id, edit, current["id"])
