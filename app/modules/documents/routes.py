from fastapi import APIRouter, Depends, Request, UploadFile, File, Form
from app.config import settings
from app.core.rate_limit import limiter
from app.database.supabase_client import get_supabase
from app.modules.documents.schemas import DocumentUpdate, DocumentResponse, DocumentType
from app.modules.documents.service import DocumentService
from app.modules.sites.service import SiteAssignmentService
from app.core.dependencies import require_permission, is_admin
from supabase import Client
from typing import List, Dict, Optional

router = APIRouter(prefix="/documents", tags=["documents"])


def get_document_service(supabase: Client = Depends(get_supabase)) -> DocumentService:
    return DocumentService(supabase)


@router.post("", response_model=DocumentResponse, status_code=201)
@limiter.limit(settings.upload_rate_limit)
async def upload_document(
    request: Request,
    file: UploadFile = File(...),
    title: str = Form(...),
    description: Optional[str] = Form(None),
    document_type: Optional[DocumentType] = Form(None),
    folder_path: Optional[str] = Form(None),
    site_id: Optional[str] = Form(None),
    is_public: bool = Form(False),
    current: Dict = Depends(require_permission("documents:write")),
    service: DocumentService = Depends(get_document_service)
):
    """Upload a file and register it as a document"""
    return await service.upload_document(
        file, title, current["id"],
        description=description, document_type=document_type,
        folder_path=folder_path, site_id=site_id, is_public=is_public
    )


@router.get("", response_model=List[DocumentResponse])
async def list_documents(
    document_type: Optional[str] = None,
    site_id: Optional[str] = None,
    folder_path: Optional[str] = None,
    search: Optional[str] = None,
    limit: int = 50,
    offset: int = 0,
    current: Dict = Depends(require_permission("documents:read")),
    service: DocumentService = Depends(get_document_service)
):
    """List documents the caller owns or that are public (admins see all)"""
    return service.list_documents(
        user_id=None if is_admin(current) else current["id"],
        document_type=document_type, site_id=site_id, folder_path=folder_path,
        search=search, limit=limit, offset=offset
    )


@router.get("/me", response_model=List[DocumentResponse])
async def list_my_documents(
    document_type: Optional[str] = None,
    current: Dict = Depends(require_permission("documents:read")),
    service: DocumentService = Depends(get_document_service)
):
    return service.list_my_documents(current["id"], document_type)


@router.get("/shared", response_model=List[DocumentResponse])
async def list_shared_documents(
    document_type: Optional[str] = None,
    current: Dict = Depends(require_permission("documents:read")),
    service: DocumentService = Depends(get_document_service),
    supabase: Client = Depends(get_supabase)
):
    """Public documents and documents shared on the caller's sites"""
    site_ids = SiteAssignmentService(supabase).get_user_site_ids(current["id"])
    return service.list_shared_documents(site_ids, document_type)


@router.get("/{document_id}", response_model=DocumentResponse)
async def get_document(
    document_id: str,
    current: Dict = Depends(require_permission("documents:read")),
    service: DocumentService = Depends(get_document_service),
    supabase: Client = Depends(get_supabase)
):
    site_ids = SiteAssignmentService(supabase).get_user_site_ids(current["id"])
    return service.get_document(document_id, current["id"], site_ids, is_admin(current))


@router.put("/{document_id}", response_model=DocumentResponse)
async def update_document(
    document_id: str,
    data: DocumentUpdate,
    current: Dict = Depends(require_permission("documents:write")),
    service: DocumentService = Depends(get_document_service)
):
    """Update document metadata (owner or admin)"""
    return service.update_document(document_id, data, current["id"], is_admin(current))


@router.delete("/{document_id}", status_code=204)
async def delete_document(
    document_id: str,
    current: Dict = Depends(require_permission("documents:write")),
    service: DocumentService = Depends(get_document_service)
):
    """Delete a document (owner or admin)"""
    service.delete_document(document_id, current["id"], is_admin(current))
    return None
