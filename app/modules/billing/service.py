"""
Servicios de negocio para el módulo de facturación

Implementa la lógica de:
- Catálogo de planes (solo administradores pueden crear o modificar)
- Suscripciones con su período derivado del ciclo de facturación
- Órdenes de pago, siempre ligadas a una suscripción existente
- Activaciones, siempre ligadas a una orden existente
- Cobros prorrateados por cambio de plan

Cada operación de escritura es una sola transacción: o se confirman todos
los registros o ninguno.
"""

import logging
from contextlib import contextmanager
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.dependencies.dbDependecies import Clock, utcnow
from app.modules.auth.models import User
from app.modules.billing.exceptions import (
    BillingError, NotFoundError, ForbiddenError, InvalidInputError, InternalError
)
from app.modules.billing.models import (
    Plan, Subscription, Order, SubscriptionActivation, BillingCycle
)
from app.modules.billing.proration import (
    MONEY_QUANTUM, remaining_days, prorated_upgrade_amount
)
from app.modules.billing.schemas import (
    PlanCreate, PlanUpdate, SubscriptionCreate, OrderCreate,
    ActivationCreate, UpgradePriceRequest
)

logger = logging.getLogger(__name__)

# Primer valor que no cabe en las columnas DECIMAL(10,2)
MAX_MONEY_AMOUNT = Decimal("100000000")


@contextmanager
def write_transaction(db: Session, action: str):
    """Confirma al salir; ante cualquier error revierte todo lo escrito."""
    try:
        yield
        db.commit()
    except BillingError:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error {action}: {e}")
        raise InternalError(f"Error interno {action}") from e
    except Exception:
        db.rollback()
        raise


def resolve_requester(db: Session, requester_id: UUID) -> User:
    user = db.get(User, requester_id)
    if user is None or not user.is_active:
        raise NotFoundError("Usuario no encontrado", {"user_id": str(requester_id)})
    return user


def parse_billing_cycle(value) -> BillingCycle:
    """Normaliza el ciclo ('Monthly', ' YEARLY ') y rechaza valores desconocidos."""
    if isinstance(value, BillingCycle):
        return value
    normalized = str(value or "").strip().lower()
    try:
        return BillingCycle(normalized)
    except ValueError:
        allowed = ", ".join(cycle.value for cycle in BillingCycle)
        raise InvalidInputError(
            f"Ciclo de facturación inválido '{value}'. Valores permitidos: {allowed}"
        )


def to_money(value, field: str) -> Decimal:
    """Monto no negativo con 2 decimales (ROUND_HALF_UP) que cabe en DECIMAL(10,2)."""
    try:
        amount = Decimal(str(value))
        if not amount.is_finite():
            raise InvalidInputError(f"El campo {field} debe ser numérico")
        if amount < 0:
            raise InvalidInputError(f"El campo {field} no puede ser negativo")
        if amount >= MAX_MONEY_AMOUNT:
            raise InvalidInputError(f"El campo {field} debe ser menor que {MAX_MONEY_AMOUNT}")
        amount = amount.quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError):
        raise InvalidInputError(f"El campo {field} debe ser numérico")
    # 99999999.995 rounds up to the limit
    if amount >= MAX_MONEY_AMOUNT:
        raise InvalidInputError(f"El campo {field} debe ser menor que {MAX_MONEY_AMOUNT}")
    return amount


def require_name(value: Optional[str], field: str = "name") -> str:
    name = (value or "").strip()
    if not name:
        raise InvalidInputError(f"El campo {field} no puede estar vacío")
    return name


class PlanService:
    """Catálogo de planes"""

    def __init__(self, db: Session):
        self.db = db

    def _require_admin(self, requester_id: UUID) -> User:
        # Requester checks run before any plan lookup so non-admins
        # cannot probe which plan ids exist.
        user = resolve_requester(self.db, requester_id)
        if not user.is_admin:
            raise ForbiddenError("Se requiere acceso de administrador")
        return user

    def create_plan(self, plan_data: PlanCreate, requester_id: UUID) -> Plan:
        """Crear plan (solo administradores)"""
        self._require_admin(requester_id)
        name = require_name(plan_data.name)
        price = to_money(plan_data.price, "price")

        with write_transaction(self.db, "creando plan"):
            plan = Plan(name=name, price=price)
            self.db.add(plan)

        self.db.refresh(plan)
        logger.info(f"Plan {plan.id} creado por {requester_id}")
        return plan

    def update_plan(self, plan_id: UUID, plan_data: PlanUpdate, requester_id: UUID) -> Plan:
        """Actualizar plan; los campos no enviados conservan su valor"""
        self._require_admin(requester_id)

        update_data = {
            field: value
            for field, value in plan_data.model_dump(exclude_unset=True).items()
            if value is not None
        }
        if "name" in update_data:
            update_data["name"] = require_name(update_data["name"])
        if "price" in update_data:
            update_data["price"] = to_money(update_data["price"], "price")

        with write_transaction(self.db, "actualizando plan"):
            plan = self.db.query(Plan).filter(Plan.id == plan_id).with_for_update().first()
            if not plan:
                raise NotFoundError("Plan no encontrado", {"plan_id": str(plan_id)})
            for field, value in update_data.items():
                setattr(plan, field, value)

        self.db.refresh(plan)
        logger.info(f"Plan {plan.id} actualizado por {requester_id}: {sorted(update_data)}")
        return plan

    def get_plan(self, plan_id: UUID) -> Plan:
        plan = self.db.get(Plan, plan_id)
        if not plan:
            raise NotFoundError("Plan no encontrado", {"plan_id": str(plan_id)})
        return plan

    def list_plans(self, skip: int = 0, limit: int = 20) -> Tuple[List[Plan], int]:
        query = self.db.query(Plan)
        total = query.count()
        plans = query.order_by(Plan.created_at.asc(), Plan.name.asc()).offset(skip).limit(limit).all()
        return plans, total

    def lock_plan(self, plan_id: UUID, label: str = "Plan") -> Plan:
        """Lee el plan dentro de la transacción en curso (FOR SHARE donde exista)."""
        plan = self.db.query(Plan).filter(Plan.id == plan_id).with_for_update(read=True).first()
        if not plan:
            raise NotFoundError(f"{label} no encontrado", {"plan_id": str(plan_id)})
        return plan


class OrderService:
    """Libro de órdenes de pago"""

    def __init__(self, db: Session, clock: Clock = utcnow):
        self.db = db
        self.clock = clock

    def add_order(self, subscription_id: UUID, amount) -> Order:
        """
        Agrega una orden a la transacción en curso sin confirmarla.
        Quien llama es responsable de validar la suscripción y de confirmar.
        """
        order = Order(
            subscription_id=subscription_id,
            amount=to_money(amount, "amount"),
            payment_date=self.clock()
        )
        self.db.add(order)
        self.db.flush()
        return order

    def create_order(self, order_data: OrderCreate) -> Order:
        amount = to_money(order_data.amount, "amount")

        with write_transaction(self.db, "creando orden"):
            SubscriptionService(self.db, self.clock).get_subscription(order_data.subscription_id)
            order = self.add_order(order_data.subscription_id, amount)

        self.db.refresh(order)
        logger.info(f"Orden {order.id} por {order.amount} para suscripción {order.subscription_id}")
        return order

    def get_order(self, order_id: UUID) -> Order:
        order = self.db.get(Order, order_id)
        if not order:
            raise NotFoundError("Orden no encontrada", {"order_id": str(order_id)})
        return order

    def list_orders(self, subscription_id: UUID) -> List[Order]:
        """Historial de cobros de una suscripción, del más antiguo al más reciente"""
        SubscriptionService(self.db, self.clock).get_subscription(subscription_id)
        return (
            self.db.query(Order)
            .filter(Order.subscription_id == subscription_id)
            .order_by(Order.payment_date.asc(), Order.created_at.asc())
            .all()
        )


class SubscriptionService:
    """Libro de suscripciones"""

    def __init__(self, db: Session, clock: Clock = utcnow):
        self.db = db
        self.clock = clock

    def create_subscription(
        self,
        subscription_data: SubscriptionCreate,
        requester_id: UUID
    ) -> Tuple[Subscription, Order]:
        """
        Crear suscripción y su primera orden por el precio del plan.

        Ambas filas se escriben en la misma transacción: si la orden falla
        la suscripción no se persiste.
        """
        billing_cycle = parse_billing_cycle(subscription_data.billing_cycle)
        name = require_name(subscription_data.name)

        with write_transaction(self.db, "creando suscripción"):
            resolve_requester(self.db, requester_id)
            plan = PlanService(self.db).lock_plan(subscription_data.plan_id)

            start_date = self.clock()
            subscription = Subscription(
                name=name,
                team_id=subscription_data.team_id,
                plan_id=plan.id,
                billing_cycle=billing_cycle.value,
                start_date=start_date,
                end_date=start_date + billing_cycle.duration,
                is_active=True,
                created_by=requester_id
            )
            self.db.add(subscription)
            self.db.flush()  # Para obtener el ID

            order = OrderService(self.db, self.clock).add_order(subscription.id, plan.price)

        self.db.refresh(subscription)
        self.db.refresh(order)
        logger.info(
            f"Suscripción {subscription.id} ({billing_cycle.value}) creada para equipo "
            f"{subscription.team_id} con orden inicial {order.id}"
        )
        return subscription, order

    def get_subscription(self, subscription_id: UUID) -> Subscription:
        subscription = self.db.get(Subscription, subscription_id)
        if not subscription:
            raise NotFoundError("Suscripción no encontrada", {"subscription_id": str(subscription_id)})
        return subscription


class ActivationService:
    """Libro de activaciones"""

    def __init__(self, db: Session, clock: Clock = utcnow):
        self.db = db
        self.clock = clock

    def create_activation(self, activation_data: ActivationCreate) -> SubscriptionActivation:
        with write_transaction(self.db, "registrando activación"):
            order = OrderService(self.db, self.clock).get_order(activation_data.order_id)
            activation = SubscriptionActivation(
                order_id=order.id,
                activation_date=self.clock()
            )
            self.db.add(activation)

        self.db.refresh(activation)
        logger.info(f"Activación {activation.id} registrada para orden {activation.order_id}")
        return activation

    def get_activation(self, activation_id: UUID) -> SubscriptionActivation:
        activation = self.db.get(SubscriptionActivation, activation_id)
        if not activation:
            raise NotFoundError("Activación no encontrada", {"activation_id": str(activation_id)})
        return activation


class BillingService:
    """Orquesta las operaciones que combinan varios libros"""

    def __init__(self, db: Session, clock: Clock = utcnow):
        self.db = db
        self.clock = clock

    def create_subscription(
        self,
        subscription_data: SubscriptionCreate,
        requester_id: UUID
    ) -> Tuple[Subscription, Order]:
        return SubscriptionService(self.db, self.clock).create_subscription(
            subscription_data, requester_id
        )

    def calculate_upgrade_price(self, upgrade_data: UpgradePriceRequest) -> Tuple[Decimal, Order]:
        """
        Calcular y registrar el cobro prorrateado de un cambio de plan.

        Los días se miden entre `period_start` y `period_end` tal como los
        envía quien llama. La suscripción conserva su plan: solo se registra
        la orden.
        """
        if (upgrade_data.period_start.tzinfo is None) != (upgrade_data.period_end.tzinfo is None):
            raise InvalidInputError("period_start y period_end deben indicar ambas, o ninguna, zona horaria")
        if upgrade_data.period_end < upgrade_data.period_start:
            raise InvalidInputError("period_end no puede ser anterior a period_start")
        days = remaining_days(upgrade_data.period_start, upgrade_data.period_end)

        with write_transaction(self.db, "calculando cambio de plan"):
            plans = PlanService(self.db)
            current_plan = plans.lock_plan(upgrade_data.current_plan_id, "Plan actual")
            new_plan = plans.lock_plan(upgrade_data.new_plan_id, "Nuevo plan")
            SubscriptionService(self.db, self.clock).get_subscription(upgrade_data.subscription_id)

            amount = prorated_upgrade_amount(current_plan.price, new_plan.price, days)
            order = OrderService(self.db, self.clock).add_order(upgrade_data.subscription_id, amount)

        self.db.refresh(order)
        logger.info(
            f"Cambio de plan {current_plan.id} -> {new_plan.id} en suscripción "
            f"{upgrade_data.subscription_id}: {days} días, monto {amount}"
        )
        return amount, order
