from fastapi import APIRouter, Depends, HTTPException, Request
from app.database.supabase_client import get_supabase
from app.modules.materials.schemas import (
    MaterialCategoryResponse, MaterialCreate, MaterialUpdate, MaterialResponse,
    StockUpdate, InventoryResponse, TransactionCreate, TransactionResponse,
    MaterialRequestCreate, MaterialRequestStatusUpdate, MaterialRequestResponse
)
from app.modules.materials.service import MaterialService
from app.config.permissions_config import role_has_permission
from app.core.dependencies import require_permission, check_site_member
from app.core.security import log_security_event
from supabase import Client
from typing import List, Dict, Optional

router = APIRouter(prefix="/materials", tags=["materials"])


def get_material_service(supabase: Client = Depends(get_supabase)) -> MaterialService:
    return MaterialService(supabase)


@router.get("/categories", response_model=List[MaterialCategoryResponse])
async def list_categories(
    include_inactive: bool = False,
    current: Dict = Depends(require_permission("materials:read")),
    service: MaterialService = Depends(get_material_service)
):
    """NPC-1000 material categories"""
    return service.list_categories(include_inactive)


@router.get("", response_model=List[MaterialResponse])
async def list_materials(
    search: Optional[str] = None,
    category_id: Optional[str] = None,
    include_inactive: bool = False,
    limit: int = 50,
    offset: int = 0,
    current: Dict = Depends(require_permission("materials:read")),
    service: MaterialService = Depends(get_material_service)
):
    return service.list_materials(search, category_id, include_inactive, limit, offset)


@router.post("", response_model=MaterialResponse, status_code=201)
async def create_material(
    data: MaterialCreate,
    current: Dict = Depends(require_permission("materials:manage")),
    service: MaterialService = Depends(get_material_service)
):
    """Add a material to the catalog"""
    return service.create_material(data)


@router.put("/{material_id}", response_model=MaterialResponse)
async def update_material(
    material_id: str,
    data: MaterialUpdate,
    current: Dict = Depends(require_permission("materials:manage")),
    service: MaterialService = Depends(get_material_service)
):
    return service.update_material(material_id, data)


@router.get("/inventory/{site_id}", response_model=List[InventoryResponse])
async def get_site_inventory(
    site_id: str,
    low_stock_only: bool = False,
    current: Dict = Depends(require_permission("materials:read")),
    service: MaterialService = Depends(get_material_service),
    supabase: Client = Depends(get_supabase)
):
    """Stock levels on a site"""
    if current.get("role") != "customer_manager":
        check_site_member(site_id, current, supabase)
    return service.get_site_inventory(site_id, low_stock_only)


@router.put("/inventory/{site_id}/{material_id}", response_model=InventoryResponse)
async def update_stock(
    site_id: str,
    material_id: str,
    data: StockUpdate,
    current: Dict = Depends(require_permission("inventory:manage")),
    service: MaterialService = Depends(get_material_service),
    supabase: Client = Depends(get_supabase)
):
    """Set stock levels for a material on a site"""
    check_site_member(site_id, current, supabase)
    return service.update_stock(site_id, material_id, data)


@router.post("/transactions", response_model=TransactionResponse, status_code=201)
async def create_transaction(
    data: TransactionCreate,
    current: Dict = Depends(require_permission("inventory:manage")),
    service: MaterialService = Depends(get_material_service),
    supabase: Client = Depends(get_supabase)
):
    """Record a stock movement (in, out, return, waste, adjustment)"""
    check_site_member(data.site_id, current, supabase)
    return service.create_transaction(data, current["id"])


@router.get("/transactions", response_model=List[TransactionResponse])
async def list_transactions(
    site_id: Optional[str] = None,
    material_id: Optional[str] = None,
    transaction_type: Optional[str] = None,
    date_from: Optional[str] = None,
    date_to: Optional[str] = None,
    limit: int = 50,
    offset: int = 0,
    current: Dict = Depends(require_permission("materials:read")),
    service: MaterialService = Depends(get_material_service)
):
    return service.list_transactions(site_id, material_id, transaction_type, date_from, date_to, limit, offset)


@router.post("/requests", response_model=MaterialRequestResponse, status_code=201)
async def create_material_request(
    data: MaterialRequestCreate,
    current: Dict = Depends(require_permission("material_requests:write")),
    service: MaterialService = Depends(get_material_service),
    supabase: Client = Depends(get_supabase)
):
    """Request materials for a site"""
    check_site_member(data.site_id, current, supabase)
    return service.create_request(data, current["id"])


@router.get("/requests", response_model=List[MaterialRequestResponse])
async def list_material_requests(
    site_id: Optional[str] = None,
    status: Optional[str] = None,
    priority: Optional[str] = None,
    mine: bool = False,
    limit: int = 50,
    offset: int = 0,
    current: Dict = Depends(require_permission("materials:read")),
    service: MaterialService = Depends(get_material_service)
):
    return service.list_requests(
        site_id=site_id, status=status, priority=priority,
        requested_by=current["id"] if mine else None, limit=limit, offset=offset
    )


@router.patch("/requests/{request_id}/status", response_model=MaterialRequestResponse)
async def update_material_request_status(
    request: Request,
    request_id: str,
    data: MaterialRequestStatusUpdate,
    current: Dict = Depends(require_permission("inventory:manage")),
    service: MaterialService = Depends(get_material_service)
):
    """Approve, reject, order or receive a material request"""
    if data.status in ("approved", "rejected") and not role_has_permission(current.get("role", ""), "material_requests:approve"):
        log_security_event(
            "unauthorized_access", "medium", request,
            user_id=current["id"], user_role=current.get("role"),
            required="material_requests:approve", reason="insufficient_permissions",
        )
        raise HTTPException(status_code=403, detail="Insufficient permissions. Required: material_requests:approve")
    return service.update_request_status(request_id, data.status, current["id"], data.notes)
