class DashboardError(Exception):
    """Base class for failures the API reports as a typed, discriminated result."""

    status_code: int = 400
    error: str = "error"
    retryable: bool = False

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason

    def to_dict(self) -> dict:
        return {
            "success": False,
            "error": self.error,
            "reason": self.reason,
            "retryable": self.retryable,
        }


class ValidationFailure(DashboardError):
    status_code = 400
    error = "validation_error"


class CurrencyConfigurationError(ValidationFailure):
    error = "currency_configuration_error"


class AuthenticationFailure(DashboardError):
    status_code = 401
    error = "not_authenticated"


class AuthorizationFailure(DashboardError):
    status_code = 403
    error = "forbidden"


class NotFound(DashboardError):
    status_code = 404
    error = "not_found"


class LifecycleConflict(DashboardError):
    status_code = 409
    error = "lifecycle_conflict"


class BackendUnavailable(DashboardError):
    status_code = 503
    error = "data_unavailable"
    retryable = True
