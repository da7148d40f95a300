"""
Pydantic schemas for subscription billing.
"""
from typing import List, Optional
from pydantic import BaseModel, Field
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from .models import BillingCycle


# ===== PLAN SCHEMAS =====

class PlanCreate(BaseModel):
    """Schema para crear plan."""
    name: str = Field(..., description="Nombre del plan")
    price: Decimal = Field(..., description="Precio del plan")


class PlanUpdate(BaseModel):
    """Schema para actualizar plan. Los campos omitidos conservan su valor."""
    name: Optional[str] = None
    price: Optional[Decimal] = None


class PlanOut(BaseModel):
    """Schema de salida para planes."""
    id: UUID
    name: str
    price: Decimal
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


# ===== SUBSCRIPTION SCHEMAS =====

class SubscriptionCreate(BaseModel):
    """Schema para crear suscripción."""
    name: str = Field(..., description="Nombre de la suscripción")
    team_id: UUID = Field(..., description="ID del equipo")
    plan_id: UUID = Field(..., description="ID del plan")
    billing_cycle: str = Field(..., description="Ciclo de facturación: monthly o yearly")


class SubscriptionOut(BaseModel):
    """Schema de salida para suscripciones."""
    id: UUID
    name: str
    team_id: UUID
    plan_id: UUID
    billing_cycle: BillingCycle
    start_date: datetime
    end_date: datetime
    is_active: bool
    created_by: Optional[UUID]
    created_at: datetime

    class Config:
        from_attributes = True


# ===== ORDER SCHEMAS =====

class OrderCreate(BaseModel):
    """Schema para crear orden."""
    subscription_id: UUID = Field(..., description="ID de la suscripción")
    amount: Decimal = Field(..., description="Monto cobrado")


class OrderOut(BaseModel):
    """Schema de salida para órdenes."""
    id: UUID
    subscription_id: UUID
    amount: Decimal
    payment_date: datetime
    created_at: datetime

    class Config:
        from_attributes = True


# ===== ACTIVATION SCHEMAS =====

class ActivationCreate(BaseModel):
    """Schema para registrar la activación de una orden."""
    order_id: UUID = Field(..., description="ID de la orden")


class ActivationOut(BaseModel):
    id: UUID
    order_id: UUID
    activation_date: datetime
    created_at: datetime

    class Config:
        from_attributes = True


# ===== UPGRADE SCHEMAS =====

class UpgradePriceRequest(BaseModel):
    """Schema para calcular el cobro prorrateado de un cambio de plan."""
    current_plan_id: UUID = Field(..., description="Plan actual")
    new_plan_id: UUID = Field(..., description="Plan destino")
    subscription_id: UUID = Field(..., description="Suscripción a la que se carga la orden")
    period_start: datetime = Field(..., description="Inicio del período a prorratear")
    period_end: datetime = Field(..., description="Fin del período a prorratear")


# ===== RESPONSE SCHEMAS =====

class BillingResponse(BaseModel):
    """Respuesta base: todas las operaciones devuelven `success`."""
    success: bool = True


class PlanResponse(BillingResponse):
    plan: PlanOut


class PlanListResponse(BillingResponse):
    plans: List[PlanOut]
    total: int
    limit: int
    offset: int


class SubscriptionCreateResponse(BillingResponse):
    """Respuesta de creación de suscripción con su primera orden."""
    subscription: SubscriptionOut
    order: OrderOut


class SubscriptionResponse(BillingResponse):
    subscription: SubscriptionOut


class OrderResponse(BillingResponse):
    order: OrderOut


class OrderListResponse(BillingResponse):
    orders: List[OrderOut]
    total: int


class ActivationResponse(BillingResponse):
    activation: ActivationOut


class UpgradePriceResponse(BillingResponse):
    amount: Decimal
    order: OrderOut


class ErrorResponse(BaseModel):
    success: bool = False
    message: str
    error_code: Optional[str] = None
