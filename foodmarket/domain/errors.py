# foodmarket/domain/errors.py
"""
Bledy domenowe. Kazdy niesie kod HTTP, pod ktorym wychodzi z API.
"""


class ServiceError(Exception):
    status_code = 500

    def __init__(self, message: str, error: str | None = None):
        super().__init__(message)
        self.message = message
        self.error = error


class ValidationError(ServiceError):
    status_code = 400


class EmptyCart(ServiceError):
    status_code = 400


class InvalidAmount(ServiceError):
    status_code = 400


class PaymentNotCompleted(ServiceError):
    status_code = 400

    def __init__(self, message: str, gateway_status: str | None = None):
        super().__init__(message, error=gateway_status)
        self.gateway_status = gateway_status


class InvalidSession(ServiceError):
    status_code = 401


class NotFound(ServiceError):
    status_code = 404


class Conflict(ServiceError):
    status_code = 409


class InvalidState(ServiceError):
    status_code = 409


class GatewayError(ServiceError):
    status_code = 502


class InternalError(ServiceError):
    status_code = 500
