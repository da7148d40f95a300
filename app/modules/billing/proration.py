"""
Cálculos de prorrateo para cambios de plan a mitad de período.

Funciones puras: sin estado ni acceso a base de datos.
"""

from datetime import datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP

ONE_DAY = timedelta(days=1)
# El prorrateo siempre usa un mes fijo de 30 días, sin importar el ciclo
PRORATION_BASE_DAYS = Decimal("30")
MONEY_QUANTUM = Decimal("0.01")


def remaining_days(start: datetime, end: datetime) -> int:
    """
    Días entre `start` y `end`, redondeados hacia arriba.

    5 días exactos -> 5; 4.5 días -> 5. Se espera `end >= start`.
    """
    # Integer microseconds avoid float error on the ceiling
    elapsed = (end - start) // timedelta(microseconds=1)
    per_day = ONE_DAY // timedelta(microseconds=1)
    return -(-elapsed // per_day)


def prorated_upgrade_amount(current_price, new_price, days: int) -> Decimal:
    """
    Monto a cobrar por pasar de `current_price` a `new_price` con `days`
    días restantes.

    Un cambio a un plan más barato nunca genera reembolso: devuelve 0.
    Se redondea a 2 decimales con ROUND_HALF_UP (redondeo comercial).
    """
    difference = Decimal(str(new_price)) - Decimal(str(current_price))
    prorated = difference * Decimal(days) / PRORATION_BASE_DAYS
    if prorated < 0:
        prorated = Decimal("0")
    return prorated.quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP)
