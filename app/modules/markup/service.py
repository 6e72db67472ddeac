from supabase import Client
from app.modules.markup.schemas import (
    MarkupDocumentCreate, MarkupDocumentUpdate, MarkupDocumentResponse,
    MarkupDocumentListResponse, Pagination, MarkupEditRequest, MarkupEditResponse, EditorSnapshot
)
from app.modules.markup.editor import MarkupEditorState, ToolState, apply_operations, build_object
from app.core.dependencies import get_active_site_id
from app.core.time_utils import utc_now_iso
from typing import List, Optional, Dict, Any
from fastapi import HTTPException
import math
import logging

logger = logging.getLogger(__name__)

_REQUIRED_FIELDS = ("title", "original_blueprint_url", "original_blueprint_filename")


class MarkupDocumentService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def _with_creator_names(self, rows: List[Dict[str, Any]]) -> List[MarkupDocumentResponse]:
        creator_ids = list({r["created_by"] for r in rows if r.get("created_by")})
        names = {}
        if creator_ids:
            profiles = self.supabase.table("profiles")\
                .select("id, full_name")\
                .in_("id", creator_ids)\
                .execute()
            names = {p["id"]: p.get("full_name") for p in (profiles.data or [])}
        return [
            MarkupDocumentResponse(**{**r, "created_by_name": names.get(r.get("created_by")) or "Unknown"})
            for r in rows
        ]

    def _get_raw(self, document_id: str) -> Dict[str, Any]:
        try:
            result = self.supabase.table("markup_documents")\
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

    def _get_visible(self, document_id: str, user_id: str) -> Dict[str, Any]:
        """Personal documents do not exist for anyone but their creator"""
        document = self._get_raw(document_id)
        if document.get("location") == "personal" and document.get("created_by") != user_id:
            raise HTTPException(status_code=404, detail="Document not found")
        return document

    def _get_owned(self, document_id: str, user_id: str) -> Dict[str, Any]:
        document = self._get_visible(document_id, user_id)
        if document.get("created_by") != user_id:
            raise HTTPException(status_code=403, detail="Only the creator can modify this document")
        return document

    def list_documents(
        self,
        user_id: str,
        location: str = "personal",
        page: int = 1,
        limit: int = 20,
        search: Optional[str] = None,
        site: Optional[str] = None
    ) -> MarkupDocumentListResponse:
        """Page of markup documents; personal means the caller's own"""
        offset = (page - 1) * limit
        try:
            query = self.supabase.table("markup_documents")\
                .select("*", count="exact")\
                .eq("is_deleted", False)
            if location == "personal":
                query = query.eq("created_by", user_id).eq("location", "personal")
            elif location == "shared":
                query = query.eq("location", "shared")
            if search:
                query = query.ilike("title", f"%{search}%")
            if site and site != "all":
                query = query.eq("site_id", site)
            result = query.order("created_at", desc=True).range(offset, offset + limit - 1).execute()
        except Exception as e:
            logger.error(f"Error fetching markup documents: {e}")
            raise HTTPException(status_code=500, detail="Failed to fetch documents")

        total = result.count or 0
        return MarkupDocumentListResponse(
            data=self._with_creator_names(result.data or []),
            pagination=Pagination(page=page, limit=limit, total=total, totalPages=math.ceil(total / limit))
        )

    def create_document(self, data: MarkupDocumentCreate, user_id: str) -> MarkupDocumentResponse:
        missing = [f for f in _REQUIRED_FIELDS if not getattr(data, f)]
        if missing:
            raise HTTPException(status_code=400, detail=f"Missing required fields: {', '.join(missing)}")

        markup_data = data.markup_data or []
        try:
            result = self.supabase.table("markup_documents").insert({
                **data.model_dump(),
                "markup_data": markup_data,
                "markup_count": len(markup_data),
                "created_by": user_id,
                "site_id": get_active_site_id(user_id, self.supabase),
                "file_size": 0,
                "is_deleted": False
            }).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create document")
            return self._with_creator_names(result.data)[0]
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error creating markup document: {e}")
            raise HTTPException(status_code=500, detail="Failed to create document")

    def get_document(self, document_id: str, user_id: str) -> MarkupDocumentResponse:
        document = self._get_visible(document_id, user_id)
        return self._with_creator_names([document])[0]

    def update_document(self, document_id: str, data: MarkupDocumentUpdate, user_id: str) -> MarkupDocumentResponse:
        self._get_owned(document_id, user_id)
        changes = data.model_dump(exclude_unset=True)
        if "markup_data" in changes:
            changes["markup_data"] = changes["markup_data"] or []
            changes["markup_count"] = len(changes["markup_data"])
        return self._write(document_id, changes)

    def delete_document(self, document_id: str, user_id: str, is_admin: bool) -> bool:
        document = self._get_raw(document_id) if is_admin else self._get_visible(document_id, user_id)
        if document.get("created_by") != user_id and not is_admin:
            raise HTTPException(status_code=403, detail="Only the creator can delete this document")
        self._write(document_id, {"is_deleted": True})
        return True

    def apply_edits(self, document_id: str, edit: MarkupEditRequest, user_id: str) -> MarkupEditResponse:
        """Run a batch of editor operations against the stored markup and save the result"""
        document = self._get_owned(document_id, user_id)
        try:
            objects = [build_object(o) for o in (document.get("markup_data") or [])]
            clipboard = [build_object(o) for o in edit.clipboard]
        except ValueError as e:
            raise HTTPException(status_code=400, detail=f"Invalid markup data: {e}")

        state = MarkupEditorState(
            markup_objects=objects,
            selected_objects=edit.selected_objects,
            tool_state=ToolState(clipboard=clipboard)
        )
        try:
            state = apply_operations(state, edit.operations)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=f"Invalid edit operation: {e}")

        markup_data = [o.model_dump(by_alias=True, exclude_none=True) for o in state.markup_objects]
        if markup_data != (document.get("markup_data") or []):
            updated = self._write(document_id, {"markup_data": markup_data, "markup_count": len(markup_data)})
        else:
            updated = self._with_creator_names([document])[0]

        return MarkupEditResponse(
            data=updated,
            editor=EditorSnapshot(
                selected_objects=state.selected_objects,
                clipboard=[o.model_dump(by_alias=True, exclude_none=True) for o in state.tool_state.clipboard],
                can_undo=bool(state.undo_stack),
                can_redo=bool(state.redo_stack)
            )
        )

    def _write(self, document_id: str, changes: Dict[str, Any]) -> MarkupDocumentResponse:
        try:
            result = self.supabase.table("markup_documents")\
                .update({**changes, "updated_at": utc_now_iso()})\
                .eq("id", document_id)\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        if not result.data:
            raise HTTPException(status_code=404, detail="Document not found")
        return self._with_creator_names(result.data)[0]
