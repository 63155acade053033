from dataclasses import dataclass, field
from urllib.parse import urlencode

from .errors import FailureKind, ValidationError


@dataclass(frozen=True)
class Credentials:
    api_key: str | None = None
    client_id: str | None = None
    client_secret: str | None = None
    # Optional: usage-reporting channel, only sent alongside client/signature.
    channel: str | None = None

    def __post_init__(self):
        signed = self.client_id is not None or self.client_secret is not None
        if self.api_key and signed:
            raise ValidationError("Use either an API key or a client id + secret, not both.")
        if signed and not (self.client_id and self.client_secret):
            raise ValidationError("Signed requests need both client_id and client_secret.")
        if not self.api_key and not signed:
            raise ValidationError("Must provide either an API key or a client id + secret.")

    @property
    def signed(self) -> bool:
        return self.client_id is not None


@dataclass(frozen=True)
class RetryConfig:
    # Bounds; None disables that bound.
    max_retries: int | None = 5
    retry_timeout: float | None = 60.0

    # Backoff between attempts
    backoff_base: float = 0.5
    backoff_growth: float = 1.5
    backoff_cap: float = 10.0
    jitter: float = 0.5

    # Per-kind overrides of the default retryable table
    retry_toggles: dict[FailureKind, bool] = field(default_factory=dict)
    disable_retries: bool = False


@dataclass(frozen=True)
class TimeoutConfig:
    connect: float | None = 10.0
    read: float | None = 30.0
    write: float | None = 30.0


@dataclass(frozen=True)
class RequestDescriptor:
    path: str
    params: tuple[tuple[str, str], ...] = ()
    response_shape: str | None = None

    @classmethod
    def of(cls, path: str, *pairs: str, response_shape: str | None = None):
        """Build from a flat ``name, value, name, value`` sequence."""
        if len(pairs) % 2 != 0:
            raise ValidationError("Params must be matching key/value pairs.")
        it = iter(pairs)
        return cls(path, tuple((str(k), str(v)) for k, v in zip(it, it)), response_shape)

    def with_params(self, *pairs: tuple[str, str]) -> "RequestDescriptor":
        return RequestDescriptor(
            self.path,
            self.params + tuple((str(k), str(v)) for k, v in pairs),
            self.response_shape,
        )

    def query_string(self) -> str:
        return urlencode(self.params)

    def path_and_query(self) -> str:
        query = self.query_string()
        return f"{self.path}?{query}" if query else self.path


@dataclass(frozen=True)
class RawResponse:
    status_code: int
    body: bytes
    reason: str = ""
    headers: dict[str, str] = field(default_factory=dict)

    def header(self, name: str) -> str | None:
        """Case-insensitive header lookup."""
        name = name.lower()
        for k, v in self.headers.items():
            if k.lower() == name:
                return v
        return None
