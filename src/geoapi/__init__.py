from ._version import __version__
from .adapters import HttpxTransport, RequestsTransport
from .builder import ApiRequest
from .context import GeoApiContext, parse_json
from .env import load_credentials_from_env
from .errors import (
    AccessNotConfiguredError,
    ErrorClassifier,
    FailureKind,
    FailureVerdict,
    GeoApiError,
    InvalidRequestError,
    MalformedResponseError,
    MaxElementsExceededError,
    NetworkError,
    NotFoundError,
    OverDailyLimitError,
    OverQueryLimitError,
    RequestDeniedError,
    ServerError,
    UnauthorizedError,
    UnknownError,
    ValidationError,
)
from .places import (
    PhotoRequest,
    PlaceDetailsRequest,
    QueryAutocompleteRequest,
    TextSearchRequest,
    photo,
    place_details,
    query_autocomplete,
    text_search_next_page,
    text_search_query,
)
from .policies import (
    ExponentialBackoffPolicy,
    FunctionalRetryPolicy,
    NoRetryPolicy,
    RetryAfter,
    RetryPolicy,
    Stop,
    coerce_policy,
)
from .ratelimit import RateLimiter
from .result import PendingResult, ResultState
from .signing import RequestSigner, sign_path
from .state import RetryState
from .types import Credentials, RawResponse, RequestDescriptor, RetryConfig, TimeoutConfig

__all__ = [
    "__version__",
    "GeoApiContext",
    "PendingResult",
    "ResultState",
    "RequestDescriptor",
    "Credentials",
    "RetryConfig",
    "TimeoutConfig",
    "RawResponse",
    "RetryState",
    "RateLimiter",
    "RequestSigner",
    "sign_path",
    "RetryPolicy",
    "ExponentialBackoffPolicy",
    "NoRetryPolicy",
    "FunctionalRetryPolicy",
    "Stop",
    "RetryAfter",
    "coerce_policy",
    "ErrorClassifier",
    "FailureKind",
    "FailureVerdict",
    "GeoApiError",
    "ServerError",
    "OverQueryLimitError",
    "RequestDeniedError",
    "OverDailyLimitError",
    "AccessNotConfiguredError",
    "InvalidRequestError",
    "NotFoundError",
    "MaxElementsExceededError",
    "UnknownError",
    "NetworkError",
    "MalformedResponseError",
    "UnauthorizedError",
    "ValidationError",
    "RequestsTransport",
    "HttpxTransport",
    "ApiRequest",
    "parse_json",
    "TextSearchRequest",
    "PlaceDetailsRequest",
    "QueryAutocompleteRequest",
    "PhotoRequest",
    "text_search_query",
    "text_search_next_page",
    "place_details",
    "query_autocomplete",
    "photo",
    "load_credentials_from_env",
]
