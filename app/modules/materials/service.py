from supabase import Client
from app.modules.materials.schemas import (
    MaterialCategoryResponse, MaterialCreate, MaterialUpdate, MaterialResponse,
    StockUpdate, InventoryResponse, TransactionCreate, TransactionResponse,
    MaterialRequestCreate, MaterialRequestResponse
)
from app.core.time_utils import utc_now_iso
from typing import List, Optional, Dict, Any
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)

_INBOUND_TYPES = ("in", "return")
_OUTBOUND_TYPES = ("out", "waste")

REQUEST_TRANSITIONS = {
    "pending": ("approved", "rejected"),
    "approved": ("ordered",),
    "ordered": ("delivered",),
}


def transaction_delta(transaction_type: str, quantity: float) -> float:
    """Signed stock change for a transaction"""
    if transaction_type in _INBOUND_TYPES:
        return abs(quantity)
    if transaction_type in _OUTBOUND_TYPES:
        return -abs(quantity)
    return quantity


def is_low_stock(row: Dict[str, Any]) -> bool:
    minimum = row.get("minimum_stock")
    return minimum is not None and (row.get("current_stock") or 0) <= minimum


def validate_stock_levels(current: Optional[float], minimum: Optional[float], maximum: Optional[float]):
    if current is not None and current < 0:
        raise HTTPException(status_code=400, detail="Stock cannot be negative")
    if (minimum is not None and minimum < 0) or (maximum is not None and maximum < 0):
        raise HTTPException(status_code=400, detail="Stock limits cannot be negative")
    if minimum is not None and maximum is not None and minimum > maximum:
        raise HTTPException(status_code=400, detail="minimum_stock cannot exceed maximum_stock")


class MaterialService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    # Catalog

    def list_categories(self, include_inactive: bool = False) -> List[MaterialCategoryResponse]:
        try:
            query = self.supabase.table("material_categories").select("*")
            if not include_inactive:
                query = query.eq("is_active", True)
            result = query.order("code").execute()
            return [MaterialCategoryResponse(**c) for c in result.data]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def list_materials(
        self,
        search: Optional[str] = None,
        category_id: Optional[str] = None,
        include_inactive: bool = False,
        limit: int = 50,
        offset: int = 0
    ) -> List[MaterialResponse]:
        """Materials with their category name"""
        try:
            query = self.supabase.table("materials").select("*")
            if not include_inactive:
                query = query.eq("is_active", True)
            if category_id:
                query = query.eq("category_id", category_id)
            if search:
                query = query.or_(f"name.ilike.%{search}%,material_code.ilike.%{search}%")
            result = query.order("material_code").limit(limit).offset(offset).execute()
            rows = result.data or []
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

        category_ids = list({m["category_id"] for m in rows if m.get("category_id")})
        categories = {}
        if category_ids:
            cats = self.supabase.table("material_categories").select("id, name").in_("id", category_ids).execute()
            categories = {c["id"]: c for c in (cats.data or [])}
        return [MaterialResponse(**m, category=categories.get(m.get("category_id"))) for m in rows]

    def get_material(self, material_id: str) -> Dict[str, Any]:
        try:
            result = self.supabase.table("materials")\
                .select("*")\
                .eq("id", material_id)\
                .maybe_single()\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        if not result or not result.data:
            raise HTTPException(status_code=404, detail="Material not found")
        return result.data

    def create_material(self, data: MaterialCreate) -> MaterialResponse:
        try:
            existing = self.supabase.table("materials")\
                .select("id")\
                .eq("material_code", data.material_code)\
                .execute()
            if existing.data:
                raise HTTPException(status_code=409, detail=f"Material code '{data.material_code}' already exists")

            result = self.supabase.table("materials").insert(data.model_dump()).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create material")
            return MaterialResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def update_material(self, material_id: str, data: MaterialUpdate) -> MaterialResponse:
        self.get_material(material_id)
        try:
            result = self.supabase.table("materials")\
                .update({**data.model_dump(exclude_unset=True), "updated_at": utc_now_iso()})\
                .eq("id", material_id)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="Material not found")
            return MaterialResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    # Inventory

    def _get_inventory_row(self, site_id: str, material_id: str) -> Optional[Dict[str, Any]]:
        result = self.supabase.table("material_inventory")\
            .select("*")\
            .eq("site_id", site_id)\
            .eq("material_id", material_id)\
            .maybe_single()\
            .execute()
        return result.data if result else None

    def get_site_inventory(self, site_id: str, low_stock_only: bool = False) -> List[InventoryResponse]:
        """Site inventory with material details and a low-stock flag"""
        try:
            result = self.supabase.table("material_inventory")\
                .select("*")\
                .eq("site_id", site_id)\
                .execute()
            rows = result.data or []
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

        material_ids = list({r["material_id"] for r in rows})
        materials = {}
        if material_ids:
            mats = self.supabase.table("materials")\
                .select("id, name, material_code, unit")\
                .in_("id", material_ids)\
                .execute()
            materials = {m["id"]: m for m in (mats.data or [])}

        items = [
            InventoryResponse(**r, is_low_stock=is_low_stock(r), material=materials.get(r["material_id"]))
            for r in rows
        ]
        if low_stock_only:
            items = [i for i in items if i.is_low_stock]
        items.sort(key=lambda i: (i.material or {}).get("material_code") or "")
        return items

    def update_stock(self, site_id: str, material_id: str, data: StockUpdate) -> InventoryResponse:
        """Set stock levels for a material on a site, creating the row if needed"""
        self.get_material(material_id)
        existing = self._get_inventory_row(site_id, material_id)
        minimum = data.minimum_stock if data.minimum_stock is not None else (existing or {}).get("minimum_stock")
        maximum = data.maximum_stock if data.maximum_stock is not None else (existing or {}).get("maximum_stock")
        validate_stock_levels(data.current_stock, minimum, maximum)

        values = {
            "current_stock": data.current_stock,
            "minimum_stock": minimum,
            "maximum_stock": maximum,
            "last_updated": utc_now_iso()
        }
        try:
            if existing:
                result = self.supabase.table("material_inventory")\
                    .update(values)\
                    .eq("id", existing["id"])\
                    .execute()
            else:
                result = self.supabase.table("material_inventory")\
                    .insert({"site_id": site_id, "material_id": material_id, **values})\
                    .execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to update stock")
            row = result.data[0]
            return InventoryResponse(**row, is_low_stock=is_low_stock(row))
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    # Transactions

    def _guard_stock(self, query, stored: Optional[float]):
        """Only match the inventory row while it still holds the stock we read"""
        if stored is None:
            return query.is_("current_stock", "null")
        return query.eq("current_stock", stored)

    def create_transaction(self, data: TransactionCreate, performed_by: str) -> TransactionResponse:
        """Record a stock movement and apply it to the site inventory"""
        self.get_material(data.material_id)
        existing = self._get_inventory_row(data.site_id, data.material_id)
        stored = (existing or {}).get("current_stock")
        current = stored or 0
        new_stock = round(current + transaction_delta(data.transaction_type, data.quantity), 4)
        if new_stock < 0:
            raise HTTPException(
                status_code=400,
                detail=f"Insufficient stock: {current} available, transaction needs {abs(data.quantity)}"
            )

        try:
            if existing:
                query = self.supabase.table("material_inventory")\
                    .update({"current_stock": new_stock, "last_updated": utc_now_iso()})\
                    .eq("id", existing["id"])
                applied = self._guard_stock(query, stored).execute()
            else:
                applied = self.supabase.table("material_inventory").insert({
                    "site_id": data.site_id,
                    "material_id": data.material_id,
                    "current_stock": new_stock,
                    "last_updated": utc_now_iso()
                }).execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        if not applied.data:
            raise HTTPException(status_code=409, detail="Stock was modified concurrently, please retry")
        inventory_id = applied.data[0]["id"]

        try:
            result = self.supabase.table("material_transactions").insert({
                **data.model_dump(),
                "performed_by": performed_by
            }).execute()
            if not result.data:
                raise RuntimeError("transaction insert returned no rows")
        except Exception as e:
            logger.error(f"Error recording transaction, restoring stock for {data.material_id}@{data.site_id}: {e}")
            if existing:
                self.supabase.table("material_inventory")\
                    .update({"current_stock": stored})\
                    .eq("id", inventory_id)\
                    .eq("current_stock", new_stock)\
                    .execute()
            else:
                self.supabase.table("material_inventory")\
                    .delete()\
                    .eq("id", inventory_id)\
                    .execute()
            raise HTTPException(status_code=500, detail="Failed to record material transaction")

        logger.info(
            f"Material {data.transaction_type} {data.quantity} of {data.material_id} at site {data.site_id}: "
            f"{current} -> {new_stock}"
        )
        return TransactionResponse(**result.data[0])

    def _reverse_transaction(self, transaction: TransactionResponse):
        """Take a posted movement back out of inventory and drop its ledger row"""
        row = self._get_inventory_row(transaction.site_id, transaction.material_id)
        if row:
            restored = round((row.get("current_stock") or 0) - transaction_delta(transaction.transaction_type, transaction.quantity), 4)
            self.supabase.table("material_inventory")\
                .update({"current_stock": restored, "last_updated": utc_now_iso()})\
                .eq("id", row["id"])\
                .execute()
        self.supabase.table("material_transactions")\
            .delete()\
            .eq("id", transaction.id)\
            .execute()

    def list_transactions(
        self,
        site_id: Optional[str] = None,
        material_id: Optional[str] = None,
        transaction_type: Optional[str] = None,
        date_from: Optional[str] = None,
        date_to: Optional[str] = None,
        limit: int = 50,
        offset: int = 0
    ) -> List[TransactionResponse]:
        try:
            query = self.supabase.table("material_transactions").select("*")
            if site_id:
                query = query.eq("site_id", site_id)
            if material_id:
                query = query.eq("material_id", material_id)
            if transaction_type:
                query = query.eq("transaction_type", transaction_type)
            if date_from:
                query = query.gte("created_at", date_from)
            if date_to:
                query = query.lte("created_at", f"{date_to}T23:59:59.999999" if len(date_to) == 10 else date_to)
            result = query.order("created_at", desc=True).limit(limit).offset(offset).execute()
            return [TransactionResponse(**t) for t in result.data]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    # Requests

    def _attach_items(self, requests: List[Dict[str, Any]]) -> List[MaterialRequestResponse]:
        request_ids = [r["id"] for r in requests]
        items_by_request: Dict[str, List[Dict[str, Any]]] = {}
        if request_ids:
            items = self.supabase.table("material_request_items")\
                .select("*")\
                .in_("request_id", request_ids)\
                .execute()
            for item in items.data or []:
                items_by_request.setdefault(item["request_id"], []).append(item)
        return [MaterialRequestResponse(**r, items=items_by_request.get(r["id"], [])) for r in requests]

    def create_request(self, data: MaterialRequestCreate, requested_by: str) -> MaterialRequestResponse:
        """File a pending request with its items"""
        try:
            result = self.supabase.table("material_requests").insert({
                "site_id": data.site_id,
                "requested_by": requested_by,
                "required_date": data.required_date.isoformat(),
                "priority": data.priority,
                "notes": data.notes,
                "status": "pending"
            }).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create material request")
            request = result.data[0]

            try:
                items = self.supabase.table("material_request_items").insert([
                    {"request_id": request["id"], **item.model_dump()} for item in data.items
                ]).execute()
            except Exception as e:
                logger.error(f"Error adding items to material request {request['id']}, removing it: {e}")
                self.supabase.table("material_requests")\
                    .delete()\
                    .eq("id", request["id"])\
                    .execute()
                raise HTTPException(status_code=500, detail="Failed to create material request items")
            return MaterialRequestResponse(**request, items=items.data or [])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error creating material request: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def get_request(self, request_id: str) -> MaterialRequestResponse:
        try:
            result = self.supabase.table("material_requests")\
                .select("*")\
                .eq("id", request_id)\
                .maybe_single()\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        if not result or not result.data:
            raise HTTPException(status_code=404, detail="Material request not found")
        return self._attach_items([result.data])[0]

    def list_requests(
        self,
        site_id: Optional[str] = None,
        status: Optional[str] = None,
        priority: Optional[str] = None,
        requested_by: Optional[str] = None,
        limit: int = 50,
        offset: int = 0
    ) -> List[MaterialRequestResponse]:
        try:
            query = self.supabase.table("material_requests").select("*")
            if site_id:
                query = query.eq("site_id", site_id)
            if status:
                query = query.eq("status", status)
            if priority:
                query = query.eq("priority", priority)
            if requested_by:
                query = query.eq("requested_by", requested_by)
            result = query.order("created_at", desc=True).limit(limit).offset(offset).execute()
            return self._attach_items(result.data or [])
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def _revert_delivery(self, request_id: str, previous_status: str, posted: List[TransactionResponse]):
        for transaction in reversed(posted):
            try:
                self._reverse_transaction(transaction)
            except Exception as e:
                logger.error(f"Could not reverse transaction {transaction.id} of request {request_id}: {e}")
        try:
            self.supabase.table("material_requests")\
                .update({"status": previous_status, "updated_at": utc_now_iso()})\
                .eq("id", request_id)\
                .eq("status", "delivered")\
                .execute()
        except Exception as e:
            logger.error(f"Could not restore status '{previous_status}' on request {request_id}: {e}")

    def update_request_status(
        self,
        request_id: str,
        status: str,
        user_id: str,
        notes: Optional[str] = None
    ) -> MaterialRequestResponse:
        """Move a request along pending -> approved|rejected, approved -> ordered -> delivered"""
        request = self.get_request(request_id)
        if status not in REQUEST_TRANSITIONS.get(request.status, ()):
            raise HTTPException(
                status_code=400,
                detail=f"Cannot change request status from '{request.status}' to '{status}'"
            )

        changes: Dict[str, Any] = {"status": status, "updated_at": utc_now_iso()}
        if status in ("approved", "rejected"):
            changes.update({"approved_by": user_id, "approved_at": utc_now_iso()})
        if notes:
            changes["notes"] = notes
        try:
            result = self.supabase.table("material_requests")\
                .update(changes)\
                .eq("id", request_id)\
                .eq("status", request.status)\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        if not result.data:
            raise HTTPException(status_code=409, detail="Request was modified concurrently")

        if status == "delivered":
            posted: List[TransactionResponse] = []
            try:
                for item in request.items:
                    posted.append(self.create_transaction(TransactionCreate(
                        site_id=request.site_id,
                        material_id=item["material_id"],
                        transaction_type="in",
                        quantity=item["requested_quantity"],
                        reference_type="material_request",
                        reference_id=request_id
                    ), user_id))
            except Exception as e:
                logger.error(f"Stock posting failed for request {request_id}, reverting to '{request.status}': {e}")
                self._revert_delivery(request_id, request.status, posted)
                raise

        logger.info(f"Material request {request_id}: {request.status} -> {status}")
        return self._attach_items(result.data)[0]
