import contextlib
import json
import logging
import time
from collections.abc import Mapping
from concurrent.futures import CancelledError, ThreadPoolExecutor
from typing import Any, Callable, Union

from ._version import __version__
from .env import load_credentials_from_env
from .errors import (
    SUCCESS_STATUSES,
    ErrorClassifier,
    FailureKind,
    MalformedResponseError,
)
from .policies import NoRetryPolicy, RetryAfter, RetryPolicy, coerce_policy
from .ratelimit import DEFAULT_QUERIES_PER_SECOND, RateLimiter
from .result import PendingResult
from .signing import RequestSigner
from .types import Credentials, RawResponse, RequestDescriptor, RetryConfig, TimeoutConfig

DEFAULT_BASE_URL = "https://maps.googleapis.com"
USER_AGENT = f"GeoApiClientPython/{__version__}"
DEFAULT_MAX_WORKERS = 8


def parse_json(body: bytes) -> Mapping[str, Any]:
    """Decode a response body into a JSON object; anything else is malformed."""
    try:
        decoded = json.loads(body.decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as e:
        raise MalformedResponseError(f"Malformed response body: {e}") from e
    if not isinstance(decoded, Mapping):
        raise MalformedResponseError("Malformed response body: not a JSON object")
    return decoded


def _identity(response: Mapping[str, Any]) -> Mapping[str, Any]:
    return response


class GeoApiContext:
    def __init__(
        self,
        api_key: Union[str, None] = None,
        client_id: Union[str, None] = None,
        client_secret: Union[str, None] = None,
        queries_per_second: float = DEFAULT_QUERIES_PER_SECOND,
        log_level: Union[int, None] = None,
        **kwargs,
    ):
        """Initialize a GeoApiContext.

        Args:
            api_key (str | None): API key; mutually exclusive with client_id/client_secret
            client_id (str | None): client id for signed requests
            client_secret (str | None): URL-safe base64 signing secret
            queries_per_second (float): request rate across all callers; <= 0 disables
            log_level (int | None): level for the "geoapi" logger
            kwargs:
            - credentials: Credentials object (overrides the arguments above)
            - channel: str
            - retry_config: RetryConfig object
            - max_retries: int | None
            - retry_timeout: float | None (seconds)
            - retry_toggles: dict[FailureKind | str | exception class, bool]
            - disable_retries: bool
            - retry_policy: None | "exponential" | "none" | RetryPolicy | callable
            - timeout_config: TimeoutConfig object
            - connect_timeout / read_timeout / write_timeout: float
            - base_url: str
            - transport: object with get(url, headers) -> RawResponse and close()
            - max_workers: int
            - clock / sleep: time source and sleep function (tests)

        Raises:
            ValidationError: if the credentials are missing or ambiguous
        """
        self._logger = logging.getLogger("geoapi")
        if log_level is not None:
            with contextlib.suppress(Exception):
                self._logger.setLevel(log_level)

        # Resolve credentials (prefer Credentials if provided)
        if kwargs.get("credentials") is not None:
            self.credentials: Credentials = kwargs["credentials"]
        else:
            self.credentials = Credentials(
                api_key=api_key,
                client_id=client_id,
                client_secret=client_secret,
                channel=kwargs.get("channel"),
            )

        # Resolve retry settings (prefer RetryConfig if provided)
        if kwargs.get("retry_config") is not None:
            self.retry_config: RetryConfig = kwargs["retry_config"]
        else:
            defaults = RetryConfig()
            self.retry_config = RetryConfig(
                max_retries=kwargs.get("max_retries", defaults.max_retries),
                retry_timeout=kwargs.get("retry_timeout", defaults.retry_timeout),
                retry_toggles=dict(kwargs.get("retry_toggles") or {}),
                disable_retries=bool(kwargs.get("disable_retries", False)),
            )

        # Resolve timeouts (prefer TimeoutConfig if provided)
        if kwargs.get("timeout_config") is not None:
            self.timeout_config: TimeoutConfig = kwargs["timeout_config"]
        else:
            defaults = TimeoutConfig()
            self.timeout_config = TimeoutConfig(
                connect=kwargs.get("connect_timeout", defaults.connect),
                read=kwargs.get("read_timeout", defaults.read),
                write=kwargs.get("write_timeout", defaults.write),
            )

        self._clock: Callable[[], float] = kwargs.get("clock", time.monotonic)
        self._sleep: Callable[[float], None] = kwargs.get("sleep", time.sleep)
        # With the real sleep, backoff waits can be cut short by cancel().
        self._interruptible_backoff = "sleep" not in kwargs
        self.base_url = kwargs.get("base_url", DEFAULT_BASE_URL).rstrip("/")

        self.rate_limiter = RateLimiter(queries_per_second, clock=self._clock, sleep=self._sleep)
        self.signer = RequestSigner(self.credentials)
        self.classifier = ErrorClassifier(self.retry_config.retry_toggles)
        if self.retry_config.disable_retries:
            self.retry_policy: RetryPolicy = NoRetryPolicy()
        else:
            self.retry_policy = coerce_policy(
                kwargs.get("retry_policy"), self.retry_config, clock=self._clock
            )

        transport = kwargs.get("transport")
        if transport is None:
            from .adapters import RequestsTransport  # noqa: PLC0415

            transport = RequestsTransport(timeouts=self.timeout_config)
            self._own_transport = True
        else:
            self._own_transport = False
        self.transport = transport

        self._executor = ThreadPoolExecutor(
            max_workers=kwargs.get("max_workers", DEFAULT_MAX_WORKERS),
            thread_name_prefix="geoapi",
        )
        self._closed = False

    # ---------- lifecycle ----------
    def close(self):
        self._closed = True
        self._executor.shutdown(wait=True)
        if self._own_transport:
            with contextlib.suppress(Exception):
                self.transport.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    # ---------- convenience: build credentials from env ----------
    @classmethod
    def from_env(cls, env_path: Union[str, None] = None, prefix: str = "GEOAPI_", **kwargs):
        """Create a GeoApiContext with credentials read from environment variables.

        Reads ``<prefix>API_KEY`` or ``<prefix>CLIENT_ID`` + ``<prefix>CLIENT_SECRET``
        (and optionally ``<prefix>CHANNEL``). Values from ``env_path`` fill in anything
        the real environment does not set.
        """
        creds = load_credentials_from_env(prefix=prefix, env_path=env_path)
        return cls(credentials=creds, **kwargs)

    # ---------- public API ----------
    def get(
        self,
        descriptor: RequestDescriptor,
        convert: Union[Callable[[Mapping[str, Any]], Any], None] = None,
        parse: Union[Callable[[bytes], Mapping[str, Any]], None] = None,
        raw: bool = False,
    ) -> PendingResult:
        """Submit one GET call and return its PendingResult immediately.

        With ``raw=True`` the body of a 2xx response is not required to be JSON:
        ``convert`` receives the RawResponse itself (photos, other binary payloads).
        Error responses are still parsed with ``parse`` for a status field.
        """
        if self._closed:
            raise RuntimeError("GeoApiContext is closed")
        pending = PendingResult(descriptor)
        check = self._check_raw if raw else self._check
        self._executor.submit(
            self._run, pending, convert or _identity, parse or parse_json, check
        )
        return pending

    def url_for(self, descriptor: RequestDescriptor) -> str:
        return f"{self.base_url}{self.signer.sign(descriptor).path_and_query()}"

    # ---------- internal ----------
    def _run(self, pending: PendingResult, convert, parse, check) -> None:
        future = pending.future
        if not future.set_running_or_notify_cancel():
            self._logger.debug(f"path={pending.descriptor.path} cancelled before dispatch")
            return
        try:
            value = self._execute(pending, convert, parse, check)
        except BaseException as e:  # noqa: BLE001, always resolve the future
            future.set_exception(e)
        else:
            future.set_result(value)

    def _execute(self, pending: PendingResult, convert, parse, check):
        state = pending.retry_state
        path = pending.descriptor.path
        url = self.url_for(pending.descriptor)
        headers = {"User-Agent": USER_AGENT}
        while True:
            if pending.cancel_requested:
                raise CancelledError()
            self.rate_limiter.acquire()
            state.record_attempt(self._clock())
            self._logger.debug(f"req start path={path} attempt={state.attempts}")
            try:
                raw = self.transport.get(url, headers)
                self._logger.debug(f"req done path={path} status={raw.status_code}")
                return convert(check(raw, parse))
            except Exception as e:
                verdict = self.classifier.classify_exception(e)
                if verdict.kind is FailureKind.NETWORK_ERROR:
                    self._logger.warning(f"request error on path={path}: {e}")
            state.record_failure(verdict)

            if pending.cancel_requested:
                raise CancelledError()
            decision = self.retry_policy.should_retry(state, verdict)
            if not isinstance(decision, RetryAfter):
                self._logger.debug(
                    f"path={path} giving up after {state.attempts} attempt(s): {verdict.kind.value}"
                )
                raise decision.error
            self._logger.info(
                f"{verdict.kind.value} on path={path}; retrying in {decision.delay:.2f}s"
            )
            if self._interruptible_backoff:
                pending.wait_for_cancel(decision.delay)
            else:
                self._sleep(decision.delay)

    def _check(self, raw: RawResponse, parse) -> Mapping[str, Any]:
        """Return the parsed body of a successful response or raise the classified error."""
        ok_http = 200 <= raw.status_code < 300  # noqa: PLR2004, http status code can be constant
        try:
            body = parse(raw.body)
        except MalformedResponseError:
            if ok_http:
                raise
            body = None
        status = body.get("status") if body is not None else None
        if ok_http and status in SUCCESS_STATUSES:
            return body
        if ok_http and body is not None and status is None:
            raise MalformedResponseError("Malformed response body: missing 'status' field")
        error_message = body.get("error_message") if body is not None else None
        raise self.classifier.error_for(raw.status_code, status, error_message, raw.reason)

    def _check_raw(self, raw: RawResponse, parse) -> RawResponse:
        """Return a 2xx response untouched; classify anything else like ``_check``."""
        if 200 <= raw.status_code < 300:  # noqa: PLR2004, http status code can be constant
            return raw
        return self._check(raw, parse)
