"""
Domain errors raised by the billing services.
Views map each `code` to an HTTP status; management commands print the message.
"""


class BillingError(Exception):
    code = "billing_error"
    default_message = "Error de cobranza."

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ConfigurationError(BillingError):
    code = "configuration_error"
    default_message = "Configuración de cuota o tasa de cambio inválida."


class NotFoundError(BillingError):
    code = "not_found"
    default_message = "Registro no encontrado."


class AlreadyProcessedError(BillingError):
    code = "already_processed"
    default_message = "Este pago ya fue procesado."


class PaymentValidationError(BillingError):
    code = "validation_error"
    default_message = "Datos de pago inválidos."


class ConcurrencyConflict(BillingError):
    """The database rejected the transaction; retry it from scratch."""
    code = "concurrency_conflict"
    default_message = "Conflicto de concurrencia. Intente nuevamente."


class ReversalConflictError(ConcurrencyConflict):
    code = "reversal_conflict"
    default_message = "El saldo del propietario no alcanza para revertir el pago."
