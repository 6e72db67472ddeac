from fastapi import APIRouter, Depends
from app.database.supabase_client import get_supabase
from app.modules.notifications.schemas import (
    NotificationCreate, NotificationResponse, NotificationStats,
    NotificationFanoutResponse, ReadAllResponse
)
from app.modules.notifications.service import NotificationService
from app.core.dependencies import require_permission
from supabase import Client
from typing import List, Dict, Optional

router = APIRouter(prefix="/notifications", tags=["notifications"])


def get_notification_service(supabase: Client = Depends(get_supabase)) -> NotificationService:
    return NotificationService(supabase)


@router.get("", response_model=List[NotificationResponse])
async def list_notifications(
    is_read: Optional[bool] = None,
    type: Optional[str] = None,
    limit: int = 20,
    offset: int = 0,
    current: Dict = Depends(require_permission("notifications:read")),
    service: NotificationService = Depends(get_notification_service)
):
    """Caller's notifications"""
    return service.list_notifications(current["id"], is_read, type, limit, offset)


@router.get("/stats", response_model=NotificationStats)
async def get_notification_stats(
    current: Dict = Depends(require_permission("notifications:read")),
    service: NotificationService = Depends(get_notification_service)
):
    return service.get_stats(current["id"])


@router.post("/read-all", response_model=ReadAllResponse)
async def mark_all_notifications_read(
    current: Dict = Depends(require_permission("notifications:read")),
    service: NotificationService = Depends(get_notification_service)
):
    return ReadAllResponse(updated=service.mark_all_as_read(current["id"]))


@router.post("/{notification_id}/read", response_model=NotificationResponse)
async def mark_notification_read(
    notification_id: str,
    current: Dict = Depends(require_permission("notifications:read")),
    service: NotificationService = Depends(get_notification_service)
):
    return service.mark_as_read(notification_id, current["id"])


@router.delete("/{notification_id}", status_code=204)
async def delete_notification(
    notification_id: str,
    current: Dict = Depends(require_permission("notifications:read")),
    service: NotificationService = Depends(get_notification_service)
):
    service.delete_notification(notification_id, current["id"])
    return None


@router.post("", response_model=NotificationFanoutResponse, status_code=201)
async def create_notification(
    data: NotificationCreate,
    current: Dict = Depends(require_permission("notifications:send")),
    service: NotificationService = Depends(get_notification_service)
):
    """Send a notification to users or to everyone assigned to a site"""
    return service.create_notifications(data, current["id"])
