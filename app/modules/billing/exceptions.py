"""
Excepciones del módulo de facturación.

Los servicios las lanzan en el punto de detección; `app.main` las traduce a
`{"success": false, "message": ...}` en el borde HTTP.
"""

from typing import Any, Dict, Optional


class BillingError(Exception):
    """
    Error base de facturación.

    Attributes:
        message: Mensaje legible para el cliente
        error_code: Código estable para la respuesta
        status_code: Código HTTP asociado
        context: Datos adicionales del error
    """

    error_code = "BILLING_ERROR"
    status_code = 400

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": False,
            "message": self.message,
            "error_code": self.error_code,
        }


class NotFoundError(BillingError):
    """Plan, suscripción, orden o usuario inexistente."""
    error_code = "NOT_FOUND"
    status_code = 404


class ForbiddenError(BillingError):
    """El solicitante no tiene la capacidad requerida."""
    error_code = "FORBIDDEN"
    status_code = 403


class InvalidInputError(BillingError):
    """Monto negativo, ciclo desconocido o fechas inválidas."""
    error_code = "INVALID_INPUT"
    status_code = 400


class InternalError(BillingError):
    """Fallo del almacén subyacente."""
    error_code = "INTERNAL"
    status_code = 500
