"""
API Router for subscription billing.

Los errores de negocio (`BillingError`) se traducen a
`{"success": false, "message": ...}` en los manejadores registrados en
`app.main`.
"""
from uuid import UUID
from fastapi import APIRouter, Depends, Query, status

from app.core.config import settings
from app.dependencies.dbDependecies import db_dependency, clock_dependency
from app.modules.auth.dependencies import AuthDependencies
from app.modules.auth.schemas import AuthContext

from . import schemas
from .service import (
    PlanService, SubscriptionService, OrderService, ActivationService, BillingService
)

router = APIRouter(
    prefix="/billing",
    tags=["Billing"],
    responses={
        404: {"model": schemas.ErrorResponse, "description": "Not found"},
        403: {"model": schemas.ErrorResponse, "description": "Forbidden"},
        400: {"model": schemas.ErrorResponse, "description": "Invalid input"},
    }
)


# ===== PLAN ENDPOINTS =====

@router.post("/plans", response_model=schemas.PlanResponse, status_code=status.HTTP_201_CREATED)
def create_plan(
    plan_data: schemas.PlanCreate,
    db: db_dependency,
    auth_context: AuthContext = Depends(AuthDependencies.get_auth_context)
):
    """
    Crear un plan.

    Solo usuarios administradores.
    """
    plan = PlanService(db).create_plan(plan_data, auth_context.user_id)
    return schemas.PlanResponse(plan=plan)


@router.patch("/plans/{plan_id}", response_model=schemas.PlanResponse)
def update_plan(
    plan_id: UUID,
    plan_data: schemas.PlanUpdate,
    db: db_dependency,
    auth_context: AuthContext = Depends(AuthDependencies.get_auth_context)
):
    """
    Actualizar nombre y/o precio de un plan.

    Solo usuarios administradores. Los campos omitidos conservan su valor.
    """
    plan = PlanService(db).update_plan(plan_id, plan_data, auth_context.user_id)
    return schemas.PlanResponse(plan=plan)


@router.get("/plans", response_model=schemas.PlanListResponse)
def list_plans(
    db: db_dependency,
    skip: int = Query(0, ge=0, description="Número de registros a omitir"),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE, description="Número máximo de registros")
):
    """
    Obtener lista de planes disponibles.

    Este endpoint es público y no requiere autenticación.
    """
    plans, total = PlanService(db).list_plans(skip=skip, limit=limit)
    return schemas.PlanListResponse(plans=plans, total=total, limit=limit, offset=skip)


@router.get("/plans/{plan_id}", response_model=schemas.PlanResponse)
def read_plan(plan_id: UUID, db: db_dependency):
    """
    Obtener un plan.

    Este endpoint es público y no requiere autenticación.
    """
    return schemas.PlanResponse(plan=PlanService(db).get_plan(plan_id))


# ===== SUBSCRIPTION ENDPOINTS =====

@router.post(
    "/subscriptions",
    response_model=schemas.SubscriptionCreateResponse,
    status_code=status.HTTP_201_CREATED
)
def create_subscription(
    subscription_data: schemas.SubscriptionCreate,
    db: db_dependency,
    clock: clock_dependency,
    auth_context: AuthContext = Depends(AuthDependencies.get_auth_context)
):
    """
    Crear una suscripción para un equipo.

    Calcula el período según el ciclo (`monthly` = 30 días, `yearly` = 365
    días) y registra la primera orden por el precio vigente del plan.
    """
    subscription, order = BillingService(db, clock).create_subscription(
        subscription_data, auth_context.user_id
    )
    return schemas.SubscriptionCreateResponse(subscription=subscription, order=order)


@router.get("/subscriptions/{subscription_id}", response_model=schemas.SubscriptionResponse)
def read_subscription(
    subscription_id: UUID,
    db: db_dependency,
    clock: clock_dependency,
    auth_context: AuthContext = Depends(AuthDependencies.get_auth_context)
):
    subscription = SubscriptionService(db, clock).get_subscription(subscription_id)
    return schemas.SubscriptionResponse(subscription=subscription)


@router.get("/subscriptions/{subscription_id}/orders", response_model=schemas.OrderListResponse)
def list_subscription_orders(
    subscription_id: UUID,
    db: db_dependency,
    clock: clock_dependency,
    auth_context: AuthContext = Depends(AuthDependencies.get_auth_context)
):
    """Historial de cobros de una suscripción."""
    orders = OrderService(db, clock).list_orders(subscription_id)
    return schemas.OrderListResponse(orders=orders, total=len(orders))


# ===== ORDER ENDPOINTS =====

@router.post("/orders", response_model=schemas.OrderResponse, status_code=status.HTTP_201_CREATED)
def create_order(
    order_data: schemas.OrderCreate,
    db: db_dependency,
    clock: clock_dependency,
    auth_context: AuthContext = Depends(AuthDependencies.get_auth_context)
):
    """Registrar un cobro contra una suscripción existente. El monto no puede ser negativo."""
    order = OrderService(db, clock).create_order(order_data)
    return schemas.OrderResponse(order=order)


@router.get("/orders/{order_id}", response_model=schemas.OrderResponse)
def read_order(
    order_id: UUID,
    db: db_dependency,
    clock: clock_dependency,
    auth_context: AuthContext = Depends(AuthDependencies.get_auth_context)
):
    return schemas.OrderResponse(order=OrderService(db, clock).get_order(order_id))


# ===== ACTIVATION ENDPOINTS =====

@router.post("/activations", response_model=schemas.ActivationResponse, status_code=status.HTTP_201_CREATED)
def create_subscription_activation(
    activation_data: schemas.ActivationCreate,
    db: db_dependency,
    clock: clock_dependency,
    auth_context: AuthContext = Depends(AuthDependencies.get_auth_context)
):
    """Registrar que el efecto de una orden ya se aplicó."""
    activation = ActivationService(db, clock).create_activation(activation_data)
    return schemas.ActivationResponse(activation=activation)


@router.get("/activations/{activation_id}", response_model=schemas.ActivationResponse)
def read_activation(
    activation_id: UUID,
    db: db_dependency,
    clock: clock_dependency,
    auth_context: AuthContext = Depends(AuthDependencies.get_auth_context)
):
    activation = ActivationService(db, clock).get_activation(activation_id)
    return schemas.ActivationResponse(activation=activation)


# ===== UPGRADE ENDPOINTS =====

@router.post("/upgrade-price", response_model=schemas.UpgradePriceResponse, status_code=status.HTTP_201_CREATED)
def calculate_upgrade_price(
    upgrade_data: schemas.UpgradePriceRequest,
    db: db_dependency,
    clock: clock_dependency,
    auth_context: AuthContext = Depends(AuthDependencies.get_auth_context)
):
    """
    Calcular el cobro prorrateado de un cambio de plan y registrar la orden.

    **Nota:** la suscripción conserva su plan actual; reasignarlo es
    responsabilidad de quien llama.
    """
    amount, order = BillingService(db, clock).calculate_upgrade_price(upgrade_data)
    return schemas.UpgradePriceResponse(amount=amount, order=order)
