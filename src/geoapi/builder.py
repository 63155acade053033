from collections.abc import Mapping
from typing import Any, Callable, Generic, TypeVar, Union

from .errors import ValidationError
from .result import PendingResult
from .types import RequestDescriptor

T = TypeVar("T")


def latlng(value: Union[str, tuple[float, float]]) -> str:
    """Format a (lat, lng) pair the way the API expects; strings pass through."""
    if isinstance(value, str):
        return value
    try:
        lat, lng = value
        return f"{float(lat):.8f},{float(lng):.8f}"
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Not a (lat, lng) pair: {value!r}") from e


class ApiRequest(Generic[T]):
    """Base for per-endpoint request builders.

    Setters only record parameters; ``validate()`` runs once, when the request is built,
    so checks do not depend on the order the setters were called in.
    """

    path: str = "/"
    response_shape: Union[str, None] = None
    # Hand convert() the RawResponse of a 2xx reply instead of a parsed JSON body.
    raw_response: bool = False

    def __init__(self, context):
        self.context = context
        self._params: list[tuple[str, str]] = []

    # ---------- parameters ----------
    def param(self, name: str, value: Any):
        """Set ``name`` to ``value``, replacing any earlier values for it."""
        self._params = [(k, v) for k, v in self._params if k != name]
        self._params.append((name, str(value)))
        return self

    def add_param(self, name: str, value: Any):
        """Append another value for ``name``; earlier values are kept, in order."""
        self._params.append((name, str(value)))
        return self

    def get_param(self, name: str) -> Union[str, None]:
        for k, v in self._params:
            if k == name:
                return v
        return None

    def has_param(self, name: str) -> bool:
        return any(k == name for k, _ in self._params)

    @property
    def params(self) -> list[tuple[str, str]]:
        return list(self._params)

    def language(self, language: str):
        return self.param("language", language)

    def custom(self, name: str, value: Any):
        return self.param(name, value)

    # ---------- hooks ----------
    def validate(self) -> None:
        """Raise ValidationError if the parameters do not form a valid request."""

    def convert(self, response: Mapping[str, Any]) -> T:
        return response  # type: ignore[return-value]

    # ---------- execution ----------
    def build(self) -> RequestDescriptor:
        self.validate()
        return RequestDescriptor(self.path, tuple(self._params), self.response_shape)

    def execute(self) -> PendingResult[T]:
        return self.context.get(self.build(), convert=self.convert, raw=self.raw_response)

    def wait(self, timeout: Union[float, None] = None) -> T:
        return self.execute().wait(timeout)

    def wait_ignore_error(self, timeout: Union[float, None] = None) -> Union[T, None]:
        return self.execute().wait_ignore_error(timeout)

    def set_callback(
        self,
        on_success: Callable[[T], object],
        on_failure: Union[Callable[[BaseException], object], None] = None,
    ) -> PendingResult[T]:
        pending = self.execute()
        pending.set_callback(on_success, on_failure)
        return pending


def _int_param(req: ApiRequest, name: str) -> Union[int, None]:
    raw = req.get_param(name)
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError:
        raise ValidationError(f"'{name}' must be an integer, got {raw!r}") from None


def check_range(req: ApiRequest, name: str, low: int, high: int, message: str) -> None:
    value = _int_param(req, name)
    if value is not None and not (low <= value <= high):
        raise ValidationError(message)
