from supabase import Client
from app.modules.documents.schemas import DocumentUpdate, DocumentResponse
from app.core.file_validation import FileValidator, DOCUMENT_MIME_TYPES
from app.core.time_utils import utc_now_iso
from app.config import settings
from typing import List, Optional, Dict, Any
from fastapi import HTTPException, UploadFile
import os
import secrets
import time
import logging

logger = logging.getLogger(__name__)


def build_storage_path(user_id: str, filename: str) -> str:
    """Object key "<user_id>/<epoch ms>-<random>.<ext>" for an upload"""
    ext = os.path.splitext(filename)[1].lstrip(".").lower() or "bin"
    return f"{user_id}/{int(time.time() * 1000)}-{secrets.token_hex(4)}.{ext}"


def storage_path_from_url(file_url: str, bucket: str) -> Optional[str]:
    parts = file_url.split(f"/storage/v1/object/public/{bucket}/")
    return parts[1] if len(parts) > 1 else None


class DocumentService:
    def __init__(self, supabase: Client):
        self.supabase = supabase
        self.bucket = settings.documents_bucket

    def _get_raw(self, document_id: str) -> Dict[str, Any]:
        try:
            result = self.supabase.table("documents")\
                .select("*")\
                .eq("id", document_id)\
                .eq("is_deleted", False)\
                .maybe_single()\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        if not result or not result.data:
            raise HTTPException(status_code=404, detail="Document not found")
        return result.data

    async def upload_document(
        self,
        file: UploadFile,
        title: str,
        owner_id: str,
        description: Optional[str] = None,
        document_type: Optional[str] = None,
        folder_path: Optional[str] = None,
        site_id: Optional[str] = None,
        is_public: bool = False
    ) -> DocumentResponse:
        """Validate, store the object, then insert the documents row"""
        if not title or not title.strip():
            raise HTTPException(status_code=400, detail="File and title are required")

        content = await file.read()
        is_valid, errors = FileValidator.validate(
            file.filename, len(content), file.content_type, allowed_types=DOCUMENT_MIME_TYPES
        )
        if not is_valid:
            raise HTTPException(status_code=400, detail="; ".join(errors))

        path = build_storage_path(owner_id, file.filename)
        storage = self.supabase.storage.from_(self.bucket)
        try:
            storage.upload(
                path,
                content,
                file_options={"content-type": file.content_type, "cache-control": "3600", "upsert": "false"}
            )
        except Exception as e:
            logger.error(f"Storage upload failed for {path}: {e}")
            raise HTTPException(status_code=500, detail="Failed to upload file")

        file_url = storage.get_public_url(path)
        try:
            result = self.supabase.table("documents").insert({
                "title": title.strip(),
                "description": description,
                "file_url": file_url,
                "file_path": path,
                "file_name": file.filename,
                "file_size": len(content),
                "mime_type": file.content_type,
                "document_type": document_type or "personal",
                "folder_path": folder_path,
                "owner_id": owner_id,
                "site_id": site_id,
                "is_public": is_public,
                "is_deleted": False
            }).execute()
            if not result.data:
                raise RuntimeError("document insert returned no rows")
        except Exception as e:
            logger.error(f"Error creating document record, removing {path}: {e}")
            try:
                storage.remove([path])
            except Exception as cleanup_error:
                logger.error(f"Failed to remove orphaned object {path}: {cleanup_error}")
            raise HTTPException(status_code=500, detail="Failed to create document record")

        logger.info(f"Document uploaded: {result.data[0]['id']} by {owner_id}")
        return DocumentResponse(**result.data[0])

    def list_documents(
        self,
        user_id: Optional[str] = None,
        document_type: Optional[str] = None,
        site_id: Optional[str] = None,
        folder_path: Optional[str] = None,
        search: Optional[str] = None,
        limit: int = 50,
        offset: int = 0
    ) -> List[DocumentResponse]:
        """Documents visible to user_id (own or public); user_id=None lists everything"""
        try:
            query = self.supabase.table("documents").select("*").eq("is_deleted", False)
            if user_id:
                query = query.or_(f"owner_id.eq.{user_id},is_public.eq.true")
            if document_type:
                query = query.eq("document_type", document_type)
            if site_id:
                query = query.eq("site_id", site_id)
            if folder_path:
                query = query.eq("folder_path", folder_path)
            if search:
                query = query.ilike("title", f"%{search}%")
            result = query.order("created_at", desc=True).limit(limit).offset(offset).execute()
            return [DocumentResponse(**d) for d in result.data]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def list_my_documents(self, user_id: str, document_type: Optional[str] = None) -> List[DocumentResponse]:
        try:
            query = self.supabase.table("documents")\
                .select("*")\
                .eq("owner_id", user_id)\
                .eq("is_deleted", False)
            if document_type:
                query = query.eq("document_type", document_type)
            result = query.order("created_at", desc=True).execute()
            return [DocumentResponse(**d) for d in result.data]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def list_shared_documents(self, site_ids: List[str], document_type: Optional[str] = None) -> List[DocumentResponse]:
        """Public documents plus documents shared on the given sites"""
        try:
            query = self.supabase.table("documents").select("*").eq("is_deleted", False)
            if site_ids:
                query = query.or_(f"is_public.eq.true,site_id.in.({','.join(site_ids)})")
            else:
                query = query.eq("is_public", True)
            if document_type:
                query = query.eq("document_type", document_type)
            result = query.order("created_at", desc=True).execute()
            return [DocumentResponse(**d) for d in result.data]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_document(self, document_id: str, user_id: str, site_ids: List[str], is_admin: bool) -> DocumentResponse:
        document = self._get_raw(document_id)
        visible = (
            is_admin
            or document.get("owner_id") == user_id
            or document.get("is_public")
            or (document.get("site_id") and document["site_id"] in site_ids)
        )
        if not visible:
            raise HTTPException(status_code=404, detail="Document not found")
        return DocumentResponse(**document)

    def update_document(self, document_id: str, data: DocumentUpdate, user_id: str, is_admin: bool) -> DocumentResponse:
        """Owner or admin edits document metadata"""
        document = self._get_raw(document_id)
        if document.get("owner_id") != user_id and not is_admin:
            raise HTTPException(status_code=403, detail="Unauthorized to modify this document")
        changes = data.model_dump(exclude_unset=True)
        if not changes:
            return DocumentResponse(**document)
        try:
            result = self.supabase.table("documents")\
                .update({**changes, "updated_at": utc_now_iso()})\
                .eq("id", document_id)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="Document not found")
            return DocumentResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def delete_document(self, document_id: str, user_id: str, is_admin: bool) -> bool:
        """Soft delete the row, then try to remove the stored object"""
        document = self._get_raw(document_id)
        if document.get("owner_id") != user_id and not is_admin:
            raise HTTPException(status_code=403, detail="Unauthorized to delete this document")
        try:
            self.supabase.table("documents")\
                .update({"is_deleted": True, "updated_at": utc_now_iso()})\
                .eq("id", document_id)\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

        path = document.get("file_path") or storage_path_from_url(document.get("file_url") or "", self.bucket)
        if path:
            try:
                self.supabase.storage.from_(self.bucket).remove([path])
            except Exception as e:
                logger.error(f"Error deleting file from storage ({path}): {e}")
        return True
