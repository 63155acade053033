from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Union


class FailureKind(str, Enum):
    SERVER_ERROR = "SERVER_ERROR"
    OVER_QUERY_LIMIT = "OVER_QUERY_LIMIT"
    REQUEST_DENIED = "REQUEST_DENIED"
    INVALID_REQUEST = "INVALID_REQUEST"
    NETWORK_ERROR = "NETWORK_ERROR"
    UNAUTHORIZED = "UNAUTHORIZED"
    UNKNOWN = "UNKNOWN"


DEFAULT_RETRYABLE: dict[FailureKind, bool] = {
    FailureKind.SERVER_ERROR: True,
    FailureKind.OVER_QUERY_LIMIT: True,
    FailureKind.REQUEST_DENIED: False,
    FailureKind.INVALID_REQUEST: False,
    FailureKind.NETWORK_ERROR: True,
    FailureKind.UNAUTHORIZED: False,
    FailureKind.UNKNOWN: True,
}

SUCCESS_STATUSES = frozenset({"OK", "ZERO_RESULTS"})


class ValidationError(ValueError):
    """Caller input rejected before any network I/O."""


class GeoApiError(Exception):
    kind: FailureKind = FailureKind.UNKNOWN

    def __init__(self, message: str, status: str | None = None, http_status: int | None = None):
        super().__init__(message)
        self.status = status
        self.http_status = http_status


class ServerError(GeoApiError):
    kind = FailureKind.SERVER_ERROR


class OverQueryLimitError(GeoApiError):
    kind = FailureKind.OVER_QUERY_LIMIT


class RequestDeniedError(GeoApiError):
    kind = FailureKind.REQUEST_DENIED


class OverDailyLimitError(RequestDeniedError):
    pass


class AccessNotConfiguredError(RequestDeniedError):
    pass


class InvalidRequestError(GeoApiError):
    kind = FailureKind.INVALID_REQUEST


class NotFoundError(InvalidRequestError):
    pass


class MaxElementsExceededError(InvalidRequestError):
    pass


class UnknownError(GeoApiError):
    kind = FailureKind.UNKNOWN


class NetworkError(GeoApiError):
    kind = FailureKind.NETWORK_ERROR


class MalformedResponseError(NetworkError):
    """Transport succeeded but the body could not be decoded."""


class UnauthorizedError(GeoApiError):
    kind = FailureKind.UNAUTHORIZED


# API status field -> exception class
_STATUS_ERRORS: dict[str, type[GeoApiError]] = {
    "OVER_QUERY_LIMIT": OverQueryLimitError,
    "REQUEST_DENIED": RequestDeniedError,
    "INVALID_REQUEST": InvalidRequestError,
    "UNKNOWN_ERROR": UnknownError,
    "NOT_FOUND": NotFoundError,
    "MAX_ELEMENTS_EXCEEDED": MaxElementsExceededError,
    "MAX_WAYPOINTS_EXCEEDED": MaxElementsExceededError,
    "OVER_DAILY_LIMIT": OverDailyLimitError,
    "ACCESS_NOT_CONFIGURED": AccessNotConfiguredError,
}


@dataclass(frozen=True)
class FailureVerdict:
    kind: FailureKind
    retryable: bool
    error: BaseException


def coerce_kind(key: Union[FailureKind, str, type]) -> FailureKind:
    """Turn FailureKind | its string value | GeoApiError subclass into a FailureKind."""
    if isinstance(key, FailureKind):
        return key
    if isinstance(key, str):
        try:
            return FailureKind(key.upper())
        except ValueError:
            raise ValueError(f"Unknown failure kind: {key!r}") from None
    if isinstance(key, type) and issubclass(key, GeoApiError):
        # Subclasses sharing a parent's kind would silently toggle the whole kind.
        if key is GeoApiError or "kind" not in vars(key):
            raise ValueError(
                f"{key.__name__} shares its kind with a parent class; "
                f"toggle {key.kind.value} explicitly instead"
            )
        return key.kind
    raise TypeError("retry toggle keys must be FailureKind, str, or a GeoApiError subclass")


class ErrorClassifier:
    """Maps HTTP status, API status field and transport exceptions to verdicts.

    The API ``status`` field takes precedence over the HTTP status code. Retryability per
    kind comes from ``DEFAULT_RETRYABLE`` unless overridden in ``toggles``.
    """

    def __init__(self, toggles: Union[Mapping, None] = None):
        self._retryable = dict(DEFAULT_RETRYABLE)
        for key, allowed in (toggles or {}).items():
            self._retryable[coerce_kind(key)] = bool(allowed)

    def is_retryable(self, kind: FailureKind) -> bool:
        return self._retryable[kind]

    def verdict(self, error: BaseException) -> FailureVerdict:
        kind = error.kind if isinstance(error, GeoApiError) else FailureKind.NETWORK_ERROR
        return FailureVerdict(kind, self.is_retryable(kind), error)

    def classify(
        self,
        http_status: int | None,
        status: str | None = None,
        error_message: str | None = None,
        reason: str = "",
    ) -> FailureVerdict:
        return self.verdict(self.error_for(http_status, status, error_message, reason))

    def classify_exception(self, exc: BaseException) -> FailureVerdict:
        if not isinstance(exc, GeoApiError):
            wrapped = NetworkError(f"{exc.__class__.__name__}: {exc}")
            wrapped.__cause__ = exc
            exc = wrapped
        return self.verdict(exc)

    @staticmethod
    def error_for(
        http_status: int | None,
        status: str | None,
        error_message: str | None,
        reason: str = "",
    ) -> GeoApiError:
        if status:
            cls = _STATUS_ERRORS.get(status, UnknownError)
            message = error_message or status
            return cls(message, status=status, http_status=http_status)
        if http_status is None:
            return NetworkError(error_message or "request failed", http_status=None)
        line = f"{http_status} {reason}".strip()
        if http_status >= 500:  # noqa: PLR2004, http status code can be constant
            return ServerError(f"Server Error: {line}", http_status=http_status)
        if http_status in (401, 403):
            return UnauthorizedError(
                error_message or f"Unauthorized: {line}", http_status=http_status
            )
        if http_status == 429:  # noqa: PLR2004, http status code can be constant
            return OverQueryLimitError(
                error_message or f"Too Many Requests: {line}", http_status=http_status
            )
        if http_status >= 400:  # noqa: PLR2004, http status code can be constant
            return InvalidRequestError(
                error_message or f"Client Error: {line}", http_status=http_status
            )
        return UnknownError(error_message or f"Unexpected response: {line}", http_status=http_status)
