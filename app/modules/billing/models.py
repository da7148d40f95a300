"""
Models for subscription billing.
"""
from sqlalchemy import Column, String, Boolean, DateTime, DECIMAL, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.dialects.postgresql import UUID
from app.database.database import Base
from app.common.mixins import TimestampMixin, CreatedAtMixin
import uuid
from datetime import timedelta
from enum import Enum


class BillingCycle(str, Enum):
    """Ciclos de facturación."""
    MONTHLY = "monthly"
    YEARLY = "yearly"

    @property
    def duration(self) -> timedelta:
        return BILLING_CYCLE_DURATIONS[self]


# Duraciones fijas, no calendario
BILLING_CYCLE_DURATIONS = {
    BillingCycle.MONTHLY: timedelta(days=30),
    BillingCycle.YEARLY: timedelta(days=365),
}


class Plan(Base, TimestampMixin):
    """
    Modelo para planes de suscripción.
    Un plan es un nivel de precio con nombre; no se elimina.
    """
    __tablename__ = "plans"
    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_plans_price_non_negative"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, index=True, default=uuid.uuid4)
    name = Column(String(100), nullable=False)
    price = Column(DECIMAL(10, 2), nullable=False, default=0)

    # Relaciones
    subscriptions = relationship("Subscription", back_populates="plan")

    def __str__(self):
        return f"{self.name} ({self.price})"


class Subscription(Base, TimestampMixin):
    """
    Modelo para suscripciones de equipos.
    Cada evento de facturación genera una suscripción con su período.
    """
    __tablename__ = "subscriptions"
    __table_args__ = (
        CheckConstraint("end_date > start_date", name="ck_subscriptions_period"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, index=True, default=uuid.uuid4)
    name = Column(String(200), nullable=False)
    team_id = Column(UUID(as_uuid=True), nullable=False, index=True)  # equipo externo
    plan_id = Column(UUID(as_uuid=True), ForeignKey("plans.id"), nullable=False, index=True)
    billing_cycle = Column(String(20), nullable=False, default=BillingCycle.MONTHLY.value)

    # Período
    start_date = Column(DateTime(timezone=True), nullable=False)
    end_date = Column(DateTime(timezone=True), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)

    # Audit fields
    created_by = Column(UUID(as_uuid=True), nullable=True)

    # Relaciones
    plan = relationship("Plan", back_populates="subscriptions")
    orders = relationship("Order", back_populates="subscription", order_by="Order.payment_date")

    def __str__(self):
        return f"Subscription {self.name} - {self.billing_cycle}"


class Order(Base, CreatedAtMixin):
    """
    Cargo monetario registrado contra una suscripción.
    Inmutable una vez creado.
    """
    __tablename__ = "orders"
    __table_args__ = (
        CheckConstraint("amount >= 0", name="ck_orders_amount_non_negative"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, index=True, default=uuid.uuid4)
    subscription_id = Column(UUID(as_uuid=True), ForeignKey("subscriptions.id"), nullable=False, index=True)
    amount = Column(DECIMAL(10, 2), nullable=False)
    payment_date = Column(DateTime(timezone=True), nullable=False)

    # Relaciones
    subscription = relationship("Subscription", back_populates="orders")
    activations = relationship("SubscriptionActivation", back_populates="order")


class SubscriptionActivation(Base, CreatedAtMixin):
    """Confirmación de que el efecto de una orden ya se aplicó."""
    __tablename__ = "subscription_activations"

    id = Column(UUID(as_uuid=True), primary_key=True, index=True, default=uuid.uuid4)
    order_id = Column(UUID(as_uuid=True), ForeignKey("orders.id"), nullable=False, index=True)
    activation_date = Column(DateTime(timezone=True), nullable=False)

    # Relaciones
    order = relationship("Order", back_populates="activations")
