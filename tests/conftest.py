import json
import threading

import httpx
import pytest

from geoapi import GeoApiContext, HttpxTransport

GOOD_BODY = {
    "results": [
        {
            "formatted_address": "1600 Amphitheatre Parkway, Mountain View, CA 94043, USA",
            "geometry": {"location": {"lat": 37.4220033, "lng": -122.0839778}},
            "types": ["street_address"],
        }
    ],
    "status": "OK",
}


class FakeServer:
    """Serves queued responses through httpx.MockTransport and records requests.

    Once the queue is drained the last response is repeated.
    """

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self._queue: list = []
        self._last = None
        self._lock = threading.Lock()
        self.client = httpx.Client(transport=httpx.MockTransport(self._handle))
        self._contexts: list[GeoApiContext] = []

    def enqueue(self, status=200, body=None, reason=None):
        if isinstance(body, (dict, list)):
            body = json.dumps(body)
        self._queue.append((status, (body or "").encode("utf-8"), reason))

    def enqueue_server_error(self):
        self.enqueue(500, "Uh-oh. Server Error.", reason="Internal server error")

    def enqueue_good(self):
        self.enqueue(200, GOOD_BODY)

    def enqueue_handler(self, fn):
        self._queue.append(fn)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        with self._lock:
            self.requests.append(request)
            item = self._queue.pop(0) if self._queue else self._last
            self._last = item
        if callable(item):
            return item(request)
        if item is None:
            return httpx.Response(404, request=request)
        status, body, reason = item
        extensions = {"reason_phrase": reason.encode("ascii")} if reason else {}
        return httpx.Response(status, content=body, request=request, extensions=extensions)

    @property
    def request_count(self) -> int:
        return len(self.requests)

    def context(self, **kwargs) -> GeoApiContext:
        kwargs.setdefault("api_key", "AIza-test")
        kwargs.setdefault("queries_per_second", 500)
        kwargs.setdefault("sleep", lambda seconds: None)
        ctx = GeoApiContext(
            base_url="http://127.0.0.1:8080",
            transport=HttpxTransport(client=self.client),
            **kwargs,
        )
        self._contexts.append(ctx)
        return ctx

    def close(self):
        for ctx in self._contexts:
            ctx.close()
        self.client.close()


@pytest.fixture
def server():
    s = FakeServer()
    yield s
    s.close()
