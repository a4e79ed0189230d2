# storefront/utils/errors.py

class AppError(Exception):
    """
    Base error of the cart/order core.
    Every subclass carries the HTTP status it is reported with.
    """

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(AppError):
    status_code = 400


class NotFoundError(AppError):
    status_code = 404


class ConflictError(AppError):
    status_code = 409


class ExpiredError(AppError):
    status_code = 400


class LimitExceededError(AppError):
    status_code = 400


class InsufficientInventoryError(AppError):
    status_code = 400


class UnavailableError(AppError):
    status_code = 404


class UpstreamError(AppError):
    """Product service could not be reached or answered with garbage."""

    status_code = 502
