from supabase import Client
from app.modules.notifications.schemas import (
    NotificationCreate, NotificationResponse, NotificationStats, NotificationFanoutResponse
)
from app.core.time_utils import utc_now_iso
from typing import List, Optional
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)


class NotificationService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def list_notifications(
        self,
        user_id: str,
        is_read: Optional[bool] = None,
        notification_type: Optional[str] = None,
        limit: int = 20,
        offset: int = 0
    ) -> List[NotificationResponse]:
        """Caller's notifications, newest first"""
        try:
            query = self.supabase.table("notifications").select("*").eq("user_id", user_id)
            if is_read is not None:
                query = query.eq("read", is_read)
            if notification_type:
                query = query.eq("type", notification_type)
            result = query.order("created_at", desc=True).limit(limit).offset(offset).execute()
            return [NotificationResponse(**n) for n in result.data]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_stats(self, user_id: str) -> NotificationStats:
        try:
            result = self.supabase.table("notifications")\
                .select("type, read")\
                .eq("user_id", user_id)\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        rows = result.data or []
        by_type = {}
        for row in rows:
            kind = row.get("type") or "info"
            by_type[kind] = by_type.get(kind, 0) + 1
        return NotificationStats(
            total=len(rows),
            unread=sum(1 for r in rows if not r.get("read")),
            by_type=by_type
        )

    def mark_as_read(self, notification_id: str, user_id: str) -> NotificationResponse:
        """Mark one of the caller's notifications read"""
        try:
            result = self.supabase.table("notifications")\
                .update({"read": True, "read_at": utc_now_iso()})\
                .eq("id", notification_id)\
                .eq("user_id", user_id)\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        if not result.data:
            raise HTTPException(status_code=404, detail="Notification not found")
        return NotificationResponse(**result.data[0])

    def mark_all_as_read(self, user_id: str) -> int:
        try:
            result = self.supabase.table("notifications")\
                .update({"read": True, "read_at": utc_now_iso()})\
                .eq("user_id", user_id)\
                .eq("read", False)\
                .execute()
            return len(result.data or [])
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def delete_notification(self, notification_id: str, user_id: str) -> bool:
        try:
            result = self.supabase.table("notifications")\
                .delete()\
                .eq("id", notification_id)\
                .eq("user_id", user_id)\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        if not result.data:
            raise HTTPException(status_code=404, detail="Notification not found")
        return True

    def _site_recipients(self, site_id: str) -> List[str]:
        result = self.supabase.table("site_assignments")\
            .select("user_id")\
            .eq("site_id", site_id)\
            .eq("is_active", True)\
            .execute()
        return [r["user_id"] for r in (result.data or [])]

    def create_notifications(self, data: NotificationCreate, created_by: str) -> NotificationFanoutResponse:
        """Send one notification row per recipient (explicit users and/or a site's active workers)"""
        recipients = list(dict.fromkeys((data.user_ids or []) + (self._site_recipients(data.site_id) if data.site_id else [])))
        if not recipients:
            return NotificationFanoutResponse(sent=0, notifications=[])

        payload = data.model_dump(exclude={"user_ids", "site_id"})
        rows = [{**payload, "user_id": uid, "read": False, "created_by": created_by} for uid in recipients]
        try:
            result = self.supabase.table("notifications").insert(rows).execute()
        except Exception as e:
            logger.error(f"Error creating notifications: {e}")
            raise HTTPException(status_code=500, detail=str(e))
        logger.info(f"Notification '{data.title}' sent to {len(result.data)} users by {created_by}")
        return NotificationFanoutResponse(
            sent=len(result.data),
            notifications=[NotificationResponse(**n) for n in result.data]
        )
