class ServiceError(RuntimeError):
    """Recoverable service error (validation/lookup/etc.)."""


class ReportInputError(ServiceError, ValueError):
    """Rejected request input: bad date, unknown page name, invalid row limit."""


class NotFoundError(ServiceError):
    """Target row of a manual update does not exist."""


class WeatherFetchError(ServiceError):
    """Upstream forecast unreachable or malformed. Never escapes WeatherSync."""
