import contextlib

from .errors import NetworkError
from .types import RawResponse, TimeoutConfig


# ---------- requests (default) ----------
class RequestsTransport:
    """GET over a ``requests.Session``.

    requests has no write timeout; ``TimeoutConfig.write`` is ignored here.
    """

    def __init__(self, session=None, timeouts: TimeoutConfig | None = None):
        self.timeouts = timeouts or TimeoutConfig()
        if session is None:
            import requests  # noqa: PLC0415

            self.session = requests.Session()
            self._own_session = True
        else:
            self.session = session
            self._own_session = False

    def get(self, url: str, headers: dict[str, str]) -> RawResponse:
        import requests  # noqa: PLC0415

        try:
            resp = self.session.get(
                url,
                headers=headers,
                timeout=(self.timeouts.connect, self.timeouts.read),
                allow_redirects=True,
            )
        except requests.RequestException as e:
            raise NetworkError(f"{e.__class__.__name__}: {e}") from e
        return RawResponse(
            status_code=resp.status_code,
            body=resp.content,
            reason=resp.reason or "",
            headers=dict(resp.headers),
        )

    def close(self):
        if self._own_session:
            with contextlib.suppress(Exception):
                self.session.close()


# ---------- httpx ----------
class HttpxTransport:
    def __init__(self, client=None, timeouts: TimeoutConfig | None = None):
        import httpx  # noqa: PLC0415

        self.timeouts = timeouts or TimeoutConfig()
        timeout = httpx.Timeout(
            connect=self.timeouts.connect,
            read=self.timeouts.read,
            write=self.timeouts.write,
            pool=None,
        )
        if client is None:
            self.client = httpx.Client(timeout=timeout, follow_redirects=True)
            self._own_client = True
        else:
            self.client = client
            self._own_client = False
        self._timeout = timeout

    def get(self, url: str, headers: dict[str, str]) -> RawResponse:
        import httpx  # noqa: PLC0415

        try:
            resp = self.client.get(
                url, headers=headers, timeout=self._timeout, follow_redirects=True
            )
        except httpx.TransportError as e:
            raise NetworkError(f"{e.__class__.__name__}: {e}") from e
        return RawResponse(
            status_code=resp.status_code,
            body=resp.content,
            reason=resp.reason_phrase or "",
            headers=dict(resp.headers),
        )

    def close(self):
        if self._own_client:
            with contextlib.suppress(Exception):
                self.client.close()
