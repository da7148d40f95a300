"""
Tests para el módulo de Facturación

Cubren:
- Cálculo de días restantes y monto prorrateado
- Catálogo de planes y control de acceso de administrador
- Suscripciones: período por ciclo y orden inicial atómica
- Órdenes y activaciones ligadas a registros existentes
- Cobro por cambio de plan
- Respuestas uniformes `{success, message}` en la API HTTP
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import SQLAlchemyError

from app.dependencies.dbDependecies import get_clock
from app.main import create_app

from app.modules.billing.exceptions import (
    NotFoundError, ForbiddenError, InvalidInputError, InternalError
)
from app.modules.billing.models import Plan, Subscription, Order, SubscriptionActivation
from app.modules.billing.proration import remaining_days, prorated_upgrade_amount
from app.modules.billing.schemas import (
    PlanCreate, PlanUpdate, SubscriptionCreate, OrderCreate,
    ActivationCreate, UpgradePriceRequest
)
from app.modules.billing.service import (
    PlanService, SubscriptionService, OrderService, ActivationService,
    BillingService, parse_billing_cycle
)

START = datetime(2024, 3, 1, 0, 0, tzinfo=timezone.utc)
DAY_MS = 86_400_000


def naive(value: datetime) -> datetime:
    return value.replace(tzinfo=None)


# ===== FIXTURES =====

@pytest.fixture
def basic_plan(db_session, admin_user):
    return PlanService(db_session).create_plan(
        PlanCreate(name="Basic Plan", price=Decimal("30")), admin_user.id
    )


@pytest.fixture
def advanced_plan(db_session, admin_user):
    return PlanService(db_session).create_plan(
        PlanCreate(name="Advance Plan", price=Decimal("70")), admin_user.id
    )


@pytest.fixture
def subscription_with_order(db_session, regular_user, basic_plan, fixed_clock):
    return SubscriptionService(db_session, fixed_clock).create_subscription(
        SubscriptionCreate(
            name="Equipo Norte",
            team_id=uuid4(),
            plan_id=basic_plan.id,
            billing_cycle="monthly"
        ),
        regular_user.id
    )


# ===== TESTS DE PRORRATEO =====

class TestRemainingDays:
    """Tests para el cálculo de días restantes"""

    def test_exact_days(self):
        assert remaining_days(START, START + timedelta(days=5)) == 5

    def test_partial_day_rounds_up(self):
        assert remaining_days(START, START + timedelta(days=4, hours=12)) == 5
        assert remaining_days(START, START + timedelta(milliseconds=1)) == 1

    def test_same_instant(self):
        assert remaining_days(START, START) == 0

    def test_matches_millisecond_formula(self):
        end = START + timedelta(days=29, hours=23, minutes=59, seconds=59, milliseconds=999)
        elapsed_ms = int((end - START) / timedelta(milliseconds=1))
        assert remaining_days(START, end) == -(-elapsed_ms // DAY_MS) == 30


class TestProratedUpgradeAmount:
    """Tests para el monto prorrateado"""

    def test_upgrade_full_month(self):
        assert prorated_upgrade_amount(20, 70, 30) == Decimal("50.00")

    def test_downgrade_is_zero(self):
        assert prorated_upgrade_amount(70, 20, 30) == Decimal("0.00")

    def test_partial_month(self):
        assert prorated_upgrade_amount(Decimal("30"), Decimal("70"), 15) == Decimal("20.00")

    def test_always_thirty_day_base(self):
        # 365 días restantes de un ciclo anual siguen dividiéndose entre 30
        assert prorated_upgrade_amount(0, 30, 365) == Decimal("365.00")

    def test_rounds_half_up_to_cents(self):
        assert prorated_upgrade_amount(0, Decimal("0.75"), 1) == Decimal("0.03")
        assert prorated_upgrade_amount(0, 10, 1) == Decimal("0.33")

    def test_same_price_is_zero(self):
        assert prorated_upgrade_amount(45, 45, 12) == Decimal("0.00")


# ===== TESTS DE PLANES =====

class TestPlanService:
    """Tests para el catálogo de planes"""

    def test_admin_creates_plan(self, db_session, admin_user):
        plan = PlanService(db_session).create_plan(
            PlanCreate(name="Basic Plan", price=Decimal("20")), admin_user.id
        )

        assert plan.id is not None
        assert plan.name == "Basic Plan"
        assert plan.price == Decimal("20")
        assert plan.created_at is not None

    def test_non_admin_cannot_create_plan(self, db_session, regular_user):
        with pytest.raises(ForbiddenError):
            PlanService(db_session).create_plan(
                PlanCreate(name="Basic Plan", price=Decimal("20")), regular_user.id
            )

        assert db_session.query(Plan).count() == 0

    def test_unknown_requester_is_not_found(self, db_session):
        with pytest.raises(NotFoundError) as exc_info:
            PlanService(db_session).create_plan(
                PlanCreate(name="Basic Plan", price=Decimal("20")), uuid4()
            )

        assert exc_info.value.message == "Usuario no encontrado"
        assert db_session.query(Plan).count() == 0

    def test_negative_price_rejected(self, db_session, admin_user):
        with pytest.raises(InvalidInputError):
            PlanService(db_session).create_plan(
                PlanCreate(name="Broken", price=Decimal("-1")), admin_user.id
            )

        assert db_session.query(Plan).count() == 0

    def test_oversized_price_rejected(self, db_session, admin_user, basic_plan):
        service = PlanService(db_session)

        with pytest.raises(InvalidInputError):
            service.create_plan(PlanCreate(name="Huge", price=Decimal("1e30")), admin_user.id)
        with pytest.raises(InvalidInputError):
            service.update_plan(basic_plan.id, PlanUpdate(price=Decimal("1e10")), admin_user.id)

        db_session.expire_all()
        assert db_session.query(Plan).count() == 1
        assert service.get_plan(basic_plan.id).price == Decimal("30")

    def test_blank_name_rejected(self, db_session, admin_user):
        with pytest.raises(InvalidInputError):
            PlanService(db_session).create_plan(
                PlanCreate(name="   ", price=Decimal("5")), admin_user.id
            )

    def test_update_keeps_omitted_fields(self, db_session, admin_user, basic_plan):
        plan = PlanService(db_session).update_plan(
            basic_plan.id, PlanUpdate(price=Decimal("45")), admin_user.id
        )

        assert plan.name == "Basic Plan"
        assert plan.price == Decimal("45")

    def test_update_price_to_zero(self, db_session, admin_user, basic_plan):
        plan = PlanService(db_session).update_plan(
            basic_plan.id, PlanUpdate(price=Decimal("0")), admin_user.id
        )

        assert plan.price == Decimal("0")

    def test_update_missing_plan(self, db_session, admin_user):
        with pytest.raises(NotFoundError) as exc_info:
            PlanService(db_session).update_plan(uuid4(), PlanUpdate(name="X"), admin_user.id)

        assert exc_info.value.message == "Plan no encontrado"

    def test_non_admin_update_does_not_reveal_existence(self, db_session, regular_user, basic_plan):
        service = PlanService(db_session)

        with pytest.raises(ForbiddenError):
            service.update_plan(basic_plan.id, PlanUpdate(name="Hacked"), regular_user.id)
        with pytest.raises(ForbiddenError):
            service.update_plan(uuid4(), PlanUpdate(name="Hacked"), regular_user.id)

        db_session.expire_all()
        assert service.get_plan(basic_plan.id).name == "Basic Plan"

    def test_read_plan(self, db_session, basic_plan):
        service = PlanService(db_session)

        first = service.get_plan(basic_plan.id)
        second = service.get_plan(basic_plan.id)

        assert (first.id, first.name, first.price) == (second.id, second.name, second.price)

    def test_read_missing_plan(self, db_session):
        with pytest.raises(NotFoundError):
            PlanService(db_session).get_plan(uuid4())

    def test_list_plans(self, db_session, basic_plan, advanced_plan):
        plans, total = PlanService(db_session).list_plans(skip=0, limit=10)

        assert total == 2
        assert {plan.name for plan in plans} == {"Basic Plan", "Advance Plan"}


# ===== TESTS DE SUSCRIPCIONES =====

class TestSubscriptionService:
    """Tests para suscripciones y su orden inicial"""

    def test_monthly_period_and_initial_order(self, db_session, subscription_with_order, basic_plan):
        subscription, order = subscription_with_order

        assert subscription.is_active is True
        assert subscription.billing_cycle == "monthly"
        assert subscription.end_date - subscription.start_date == timedelta(days=30)
        assert (subscription.end_date - subscription.start_date) / timedelta(milliseconds=1) == 30 * DAY_MS
        assert order.subscription_id == subscription.id
        assert order.amount == basic_plan.price
        assert db_session.query(Order).filter(Order.subscription_id == subscription.id).count() == 1

    def test_yearly_period(self, db_session, regular_user, basic_plan, fixed_clock):
        subscription, _ = SubscriptionService(db_session, fixed_clock).create_subscription(
            SubscriptionCreate(
                name="Equipo Sur", team_id=uuid4(), plan_id=basic_plan.id, billing_cycle="yearly"
            ),
            regular_user.id
        )

        assert subscription.end_date - subscription.start_date == timedelta(days=365)

    def test_start_is_clock_now(self, subscription_with_order, fixed_clock):
        subscription, order = subscription_with_order

        assert naive(subscription.start_date) == naive(fixed_clock())
        assert naive(order.payment_date) == naive(fixed_clock())

    def test_billing_cycle_is_case_insensitive(self, db_session, regular_user, basic_plan, fixed_clock):
        subscription, _ = SubscriptionService(db_session, fixed_clock).create_subscription(
            SubscriptionCreate(
                name="Equipo Este", team_id=uuid4(), plan_id=basic_plan.id, billing_cycle=" MONTHLY "
            ),
            regular_user.id
        )

        assert subscription.billing_cycle == "monthly"

    def test_unknown_billing_cycle_rejected(self, db_session, regular_user, basic_plan, fixed_clock):
        with pytest.raises(InvalidInputError):
            SubscriptionService(db_session, fixed_clock).create_subscription(
                SubscriptionCreate(
                    name="Equipo Oeste", team_id=uuid4(), plan_id=basic_plan.id, billing_cycle="weekly"
                ),
                regular_user.id
            )

        assert db_session.query(Subscription).count() == 0

    def test_missing_plan(self, db_session, regular_user, fixed_clock):
        with pytest.raises(NotFoundError):
            SubscriptionService(db_session, fixed_clock).create_subscription(
                SubscriptionCreate(
                    name="Equipo", team_id=uuid4(), plan_id=uuid4(), billing_cycle="monthly"
                ),
                regular_user.id
            )

        assert db_session.query(Subscription).count() == 0
        assert db_session.query(Order).count() == 0

    def test_failed_order_rolls_back_subscription(
        self, db_session, regular_user, basic_plan, fixed_clock, monkeypatch
    ):
        def failing_add_order(self, subscription_id, amount):
            raise SQLAlchemyError("insert into orders failed")

        monkeypatch.setattr(OrderService, "add_order", failing_add_order)

        with pytest.raises(InternalError):
            SubscriptionService(db_session, fixed_clock).create_subscription(
                SubscriptionCreate(
                    name="Equipo", team_id=uuid4(), plan_id=basic_plan.id, billing_cycle="monthly"
                ),
                regular_user.id
            )

        assert db_session.query(Subscription).count() == 0
        assert db_session.query(Order).count() == 0

    def test_initial_order_keeps_price_at_creation(
        self, db_session, admin_user, subscription_with_order, basic_plan
    ):
        subscription, order = subscription_with_order

        PlanService(db_session).update_plan(basic_plan.id, PlanUpdate(price=Decimal("99")), admin_user.id)
        db_session.expire_all()

        assert OrderService(db_session).get_order(order.id).amount == Decimal("30")

    def test_read_subscription(self, db_session, subscription_with_order):
        subscription, _ = subscription_with_order
        service = SubscriptionService(db_session)

        assert service.get_subscription(subscription.id).name == "Equipo Norte"
        with pytest.raises(NotFoundError):
            service.get_subscription(uuid4())

    def test_parse_billing_cycle(self):
        assert parse_billing_cycle("Yearly").value == "yearly"
        with pytest.raises(InvalidInputError):
            parse_billing_cycle(None)


# ===== TESTS DE ÓRDENES Y ACTIVACIONES =====

class TestOrderService:
    """Tests para el libro de órdenes"""

    def test_create_order(self, db_session, subscription_with_order, fixed_clock):
        subscription, _ = subscription_with_order

        order = OrderService(db_session, fixed_clock).create_order(
            OrderCreate(subscription_id=subscription.id, amount=Decimal("12.50"))
        )

        assert order.amount == Decimal("12.50")
        assert naive(order.payment_date) == naive(fixed_clock())

    def test_zero_amount_allowed(self, db_session, subscription_with_order):
        subscription, _ = subscription_with_order

        order = OrderService(db_session).create_order(
            OrderCreate(subscription_id=subscription.id, amount=Decimal("0"))
        )

        assert order.amount == Decimal("0")

    def test_negative_amount_rejected(self, db_session, subscription_with_order):
        subscription, _ = subscription_with_order

        with pytest.raises(InvalidInputError):
            OrderService(db_session).create_order(
                OrderCreate(subscription_id=subscription.id, amount=Decimal("-5"))
            )

        assert db_session.query(Order).count() == 1

    @pytest.mark.parametrize("amount", [Decimal("1e30"), Decimal("1e10"), Decimal("100000000"), Decimal("99999999.995")])
    def test_amount_beyond_column_rejected(self, db_session, subscription_with_order, amount):
        subscription, _ = subscription_with_order

        with pytest.raises(InvalidInputError):
            OrderService(db_session).create_order(
                OrderCreate(subscription_id=subscription.id, amount=amount)
            )

        assert db_session.query(Order).count() == 1

    def test_largest_amount_accepted(self, db_session, subscription_with_order):
        subscription, _ = subscription_with_order

        order = OrderService(db_session).create_order(
            OrderCreate(subscription_id=subscription.id, amount=Decimal("99999999.99"))
        )

        assert order.amount == Decimal("99999999.99")

    def test_missing_subscription(self, db_session):
        with pytest.raises(NotFoundError):
            OrderService(db_session).create_order(
                OrderCreate(subscription_id=uuid4(), amount=Decimal("10"))
            )

        assert db_session.query(Order).count() == 0

    def test_list_orders(self, db_session, subscription_with_order):
        subscription, initial_order = subscription_with_order
        service = OrderService(db_session)
        service.create_order(OrderCreate(subscription_id=subscription.id, amount=Decimal("5")))

        orders = service.list_orders(subscription.id)

        assert len(orders) == 2
        assert initial_order.id in {order.id for order in orders}


class TestActivationService:
    """Tests para el libro de activaciones"""

    def test_create_activation(self, db_session, subscription_with_order, fixed_clock):
        _, order = subscription_with_order
        service = ActivationService(db_session, fixed_clock)

        activation = service.create_activation(ActivationCreate(order_id=order.id))

        assert activation.order_id == order.id
        assert naive(activation.activation_date) == naive(fixed_clock())
        assert service.get_activation(activation.id).id == activation.id

    def test_missing_order(self, db_session):
        with pytest.raises(NotFoundError):
            ActivationService(db_session).create_activation(ActivationCreate(order_id=uuid4()))

        assert db_session.query(SubscriptionActivation).count() == 0


# ===== TESTS DE CAMBIO DE PLAN =====

class TestUpgradePrice:
    """Tests para el cobro prorrateado de cambio de plan"""

    def _request(self, current_plan, new_plan, subscription, days=30, **overrides):
        data = dict(
            current_plan_id=current_plan.id,
            new_plan_id=new_plan.id,
            subscription_id=subscription.id,
            period_start=START,
            period_end=START + timedelta(days=days)
        )
        data.update(overrides)
        return UpgradePriceRequest(**data)

    def test_upgrade_creates_prorated_order(
        self, db_session, fixed_clock, subscription_with_order, basic_plan, advanced_plan
    ):
        subscription, _ = subscription_with_order

        amount, order = BillingService(db_session, fixed_clock).calculate_upgrade_price(
            self._request(basic_plan, advanced_plan, subscription)
        )

        assert amount == Decimal("40.00")
        assert order.amount == Decimal("40.00")
        assert order.subscription_id == subscription.id
        assert db_session.query(Order).filter(
            Order.subscription_id == subscription.id,
            Order.amount == Decimal("40.00")
        ).count() == 1

    def test_downgrade_records_zero_order(
        self, db_session, subscription_with_order, basic_plan, advanced_plan
    ):
        subscription, _ = subscription_with_order

        amount, order = BillingService(db_session).calculate_upgrade_price(
            self._request(advanced_plan, basic_plan, subscription)
        )

        assert amount == Decimal("0.00")
        assert order.amount == Decimal("0")

    def test_subscription_keeps_its_plan(
        self, db_session, subscription_with_order, basic_plan, advanced_plan
    ):
        subscription, _ = subscription_with_order

        BillingService(db_session).calculate_upgrade_price(
            self._request(basic_plan, advanced_plan, subscription)
        )
        db_session.expire_all()

        assert SubscriptionService(db_session).get_subscription(subscription.id).plan_id == basic_plan.id

    def test_missing_plans_are_distinguished(
        self, db_session, subscription_with_order, basic_plan
    ):
        subscription, _ = subscription_with_order
        ghost = Plan(id=uuid4(), name="ghost", price=Decimal("1"))
        service = BillingService(db_session)

        with pytest.raises(NotFoundError) as current_missing:
            service.calculate_upgrade_price(self._request(ghost, basic_plan, subscription))
        with pytest.raises(NotFoundError) as new_missing:
            service.calculate_upgrade_price(self._request(basic_plan, ghost, subscription))

        assert current_missing.value.message == "Plan actual no encontrado"
        assert new_missing.value.message == "Nuevo plan no encontrado"
        assert db_session.query(Order).count() == 1

    def test_missing_subscription(self, db_session, basic_plan, advanced_plan):
        ghost = Subscription(id=uuid4())

        with pytest.raises(NotFoundError):
            BillingService(db_session).calculate_upgrade_price(
                self._request(basic_plan, advanced_plan, ghost)
            )

        assert db_session.query(Order).count() == 0

    def test_inverted_period_rejected(
        self, db_session, subscription_with_order, basic_plan, advanced_plan
    ):
        subscription, _ = subscription_with_order

        with pytest.raises(InvalidInputError):
            BillingService(db_session).calculate_upgrade_price(
                self._request(basic_plan, advanced_plan, subscription, days=-1)
            )

        assert db_session.query(Order).count() == 1

    def test_mixed_timezone_bounds_rejected(
        self, db_session, subscription_with_order, basic_plan, advanced_plan
    ):
        subscription, _ = subscription_with_order

        with pytest.raises(InvalidInputError):
            BillingService(db_session).calculate_upgrade_price(
                self._request(
                    basic_plan, advanced_plan, subscription,
                    period_end=naive(START + timedelta(days=30))
                )
            )

        assert db_session.query(Order).count() == 1


# ===== TESTS DE API =====

class TestBillingApi:
    """Tests de los endpoints HTTP"""

    def test_admin_creates_plan(self, client, admin_headers):
        response = client.post(
            "/billing/plans", json={"name": "Basic Plan", "price": 20}, headers=admin_headers
        )

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["plan"]["name"] == "Basic Plan"
        assert Decimal(body["plan"]["price"]) == Decimal("20")

    def test_non_admin_gets_forbidden(self, client, user_headers, db_session):
        response = client.post(
            "/billing/plans", json={"name": "Basic Plan", "price": 20}, headers=user_headers
        )

        assert response.status_code == 403
        body = response.json()
        assert body["success"] is False
        assert body["error_code"] == "FORBIDDEN"
        assert body["message"] == "Se requiere acceso de administrador"
        assert db_session.query(Plan).count() == 0

    def test_unknown_user_gets_not_found(self, client, headers_for):
        response = client.post(
            "/billing/plans", json={"name": "Basic Plan", "price": 20}, headers=headers_for(uuid4())
        )

        assert response.status_code == 404
        assert response.json()["error_code"] == "NOT_FOUND"

    def test_missing_token(self, client):
        response = client.post("/billing/plans", json={"name": "Basic Plan", "price": 20})

        assert response.status_code in (401, 403)
        assert response.json()["success"] is False

    def test_invalid_token(self, client):
        response = client.post(
            "/billing/plans",
            json={"name": "Basic Plan", "price": 20},
            headers={"Authorization": "Bearer not-a-token"}
        )

        assert response.status_code == 401
        assert response.json()["success"] is False

    def test_read_and_update_plan(self, client, admin_headers):
        created = client.post(
            "/billing/plans", json={"name": "Basic Plan", "price": 20}, headers=admin_headers
        ).json()["plan"]

        updated = client.patch(
            f"/billing/plans/{created['id']}", json={"name": "Starter"}, headers=admin_headers
        )
        first = client.get(f"/billing/plans/{created['id']}")
        second = client.get(f"/billing/plans/{created['id']}")

        assert updated.status_code == 200
        assert updated.json()["plan"]["name"] == "Starter"
        assert Decimal(updated.json()["plan"]["price"]) == Decimal("20")
        assert first.json() == second.json()
        assert first.json()["plan"]["name"] == "Starter"

    def test_read_missing_plan(self, client):
        response = client.get(f"/billing/plans/{uuid4()}")

        assert response.status_code == 404
        assert response.json() == {
            "success": False, "message": "Plan no encontrado", "error_code": "NOT_FOUND"
        }

    def test_list_plans_is_public(self, client, admin_headers):
        client.post("/billing/plans", json={"name": "Basic Plan", "price": 20}, headers=admin_headers)

        response = client.get("/billing/plans")

        assert response.status_code == 200
        assert response.json()["total"] == 1

    def test_subscription_lifecycle(self, client, admin_headers, user_headers):
        basic = client.post(
            "/billing/plans", json={"name": "Basic Plan", "price": 30}, headers=admin_headers
        ).json()["plan"]
        advanced = client.post(
            "/billing/plans", json={"name": "Advance Plan", "price": 70}, headers=admin_headers
        ).json()["plan"]

        created = client.post(
            "/billing/subscriptions",
            json={
                "name": "Equipo Norte",
                "team_id": str(uuid4()),
                "plan_id": basic["id"],
                "billing_cycle": "Monthly"
            },
            headers=user_headers
        )
        assert created.status_code == 201
        subscription = created.json()["subscription"]
        initial_order = created.json()["order"]
        start = datetime.fromisoformat(subscription["start_date"])
        end = datetime.fromisoformat(subscription["end_date"])
        assert end - start == timedelta(days=30)
        assert subscription["billing_cycle"] == "monthly"
        assert Decimal(initial_order["amount"]) == Decimal("30")

        upgrade = client.post(
            "/billing/upgrade-price",
            json={
                "current_plan_id": basic["id"],
                "new_plan_id": advanced["id"],
                "subscription_id": subscription["id"],
                "period_start": subscription["start_date"],
                "period_end": subscription["end_date"]
            },
            headers=user_headers
        )
        assert upgrade.status_code == 201
        assert Decimal(upgrade.json()["amount"]) == Decimal("40")
        upgrade_order = upgrade.json()["order"]
        assert upgrade_order["subscription_id"] == subscription["id"]

        activation = client.post(
            "/billing/activations", json={"order_id": upgrade_order["id"]}, headers=user_headers
        )
        assert activation.status_code == 201
        activation_id = activation.json()["activation"]["id"]

        orders = client.get(f"/billing/subscriptions/{subscription['id']}/orders", headers=user_headers)
        assert orders.json()["total"] == 2

        for path in (
            f"/billing/subscriptions/{subscription['id']}",
            f"/billing/orders/{upgrade_order['id']}",
            f"/billing/activations/{activation_id}",
        ):
            first = client.get(path, headers=user_headers)
            second = client.get(path, headers=user_headers)
            assert first.status_code == 200
            assert first.json() == second.json()

    def test_unknown_billing_cycle(self, client, admin_headers, user_headers):
        plan = client.post(
            "/billing/plans", json={"name": "Basic Plan", "price": 30}, headers=admin_headers
        ).json()["plan"]

        response = client.post(
            "/billing/subscriptions",
            json={"name": "X", "team_id": str(uuid4()), "plan_id": plan["id"], "billing_cycle": "weekly"},
            headers=user_headers
        )

        assert response.status_code == 400
        assert response.json()["error_code"] == "INVALID_INPUT"

    def test_negative_order_amount(self, client, user_headers):
        response = client.post(
            "/billing/orders",
            json={"subscription_id": str(uuid4()), "amount": -10},
            headers=user_headers
        )

        assert response.status_code == 400
        assert response.json()["success"] is False

    @pytest.mark.parametrize("amount", [1e30, 1e10])
    def test_oversized_order_amount(self, client, user_headers, amount):
        response = client.post(
            "/billing/orders",
            json={"subscription_id": str(uuid4()), "amount": amount},
            headers=user_headers
        )

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["error_code"] == "INVALID_INPUT"

    def test_unexpected_error_is_uniform(self, database, user_headers):
        def broken_clock():
            raise RuntimeError("clock unavailable")

        app = create_app(database)
        app.dependency_overrides[get_clock] = broken_clock

        with TestClient(app, raise_server_exceptions=False) as broken_client:
            response = broken_client.get(f"/billing/orders/{uuid4()}", headers=user_headers)

        assert response.status_code == 500
        assert response.json() == {
            "success": False, "message": "Error interno", "error_code": "INTERNAL"
        }

    def test_order_for_missing_subscription(self, client, user_headers):
        response = client.post(
            "/billing/orders",
            json={"subscription_id": str(uuid4()), "amount": 10},
            headers=user_headers
        )

        assert response.status_code == 404
        assert response.json()["message"] == "Suscripción no encontrada"

    def test_malformed_body(self, client, user_headers):
        response = client.post("/billing/orders", json={"amount": 10}, headers=user_headers)

        assert response.status_code == 422
        body = response.json()
        assert body["success"] is False
        assert "subscription_id" in body["message"]
