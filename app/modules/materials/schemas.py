from pydantic import BaseModel, Field, model_validator
from typing import Optional, Literal, List, Dict, Any
from datetime import datetime, date


TransactionType = Literal["in", "out", "return", "waste", "adjustment"]
RequestPriority = Literal["urgent", "high", "normal", "low"]
RequestStatus = Literal["pending", "approved", "rejected", "ordered", "delivered"]


class MaterialCategoryResponse(BaseModel):
    id: str
    name: str
    code: Optional[str] = None
    description: Optional[str] = None
    level: Optional[int] = 1
    parent_id: Optional[str] = None
    is_active: bool = True

    class Config:
        from_attributes = True


class MaterialCreate(BaseModel):
    category_id: str
    name: str = Field(min_length=1)
    material_code: str = Field(min_length=1)
    unit: str = Field(min_length=1)
    description: Optional[str] = None
    unit_price: Optional[float] = Field(default=None, ge=0)
    supplier: Optional[str] = None
    is_active: bool = True


class MaterialUpdate(BaseModel):
    category_id: Optional[str] = None
    name: Optional[str] = Field(default=None, min_length=1)
    unit: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    unit_price: Optional[float] = Field(default=None, ge=0)
    supplier: Optional[str] = None
    is_active: Optional[bool] = None


class MaterialResponse(BaseModel):
    id: str
    category_id: Optional[str] = None
    name: str
    material_code: str
    unit: str
    description: Optional[str] = None
    unit_price: Optional[float] = None
    supplier: Optional[str] = None
    is_active: bool = True
    category: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class StockUpdate(BaseModel):
    current_stock: float
    minimum_stock: Optional[float] = None
    maximum_stock: Optional[float] = None


class InventoryResponse(BaseModel):
    id: str
    site_id: str
    material_id: str
    current_stock: float
    minimum_stock: Optional[float] = None
    maximum_stock: Optional[float] = None
    is_low_stock: bool = False
    material: Optional[Dict[str, Any]] = None
    last_updated: Optional[datetime] = None

    class Config:
        from_attributes = True


class TransactionCreate(BaseModel):
    site_id: str
    material_id: str
    transaction_type: TransactionType
    quantity: float
    reference_type: Optional[str] = None
    reference_id: Optional[str] = None
    notes: Optional[str] = None

    @model_validator(mode="after")
    def check_quantity(self):
        if self.transaction_type == "adjustment":
            if self.quantity == 0:
                raise ValueError("Adjustment quantity must not be zero")
        elif self.quantity <= 0:
            raise ValueError("Quantity must be positive")
        return self


class TransactionResponse(BaseModel):
    id: str
    site_id: str
    material_id: str
    transaction_type: str
    quantity: float
    reference_type: Optional[str] = None
    reference_id: Optional[str] = None
    notes: Optional[str] = None
    performed_by: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class MaterialRequestItem(BaseModel):
    material_id: str
    requested_quantity: float = Field(gt=0)
    notes: Optional[str] = None


class MaterialRequestCreate(BaseModel):
    site_id: str
    required_date: date
    priority: RequestPriority = "normal"
    notes: Optional[str] = None
    items: List[MaterialRequestItem] = Field(min_length=1)


class MaterialRequestStatusUpdate(BaseModel):
    status: RequestStatus
    notes: Optional[str] = None


class MaterialRequestResponse(BaseModel):
    id: str
    site_id: str
    requested_by: Optional[str] = None
    required_date: Optional[date] = None
    priority: Optional[str] = "normal"
    status: str = "pending"
    notes: Optional[str] = None
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    items: List[Dict[str, Any]] = []
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
