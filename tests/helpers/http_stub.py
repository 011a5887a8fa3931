"""Test helpers to stub the HTTP services the pipeline talks to.

Each stub wraps an ``httpx.MockTransport`` and records every request so tests
can make lightweight assertions about URLs, query parameters, and bodies
without any network access.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import Any

import httpx

RATES_URL = "https://rates.test"
DUPLICATES_URL = "https://dedupe.test/check"
SINK_URL = "https://sheet.test/exec"


class RecordingTransport:
    """Route requests to ``handler`` and keep them in :attr:`requests`."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self._handler = handler
        self.requests: list[httpx.Request] = []

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self._handler(request)

    def client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self._handle))

    def json_bodies(self) -> list[Any]:
        return [json.loads(r.content) for r in self.requests]


def rates_handler(
    rates: dict[tuple[str, str], float], *, status: int = 200
) -> Callable[[httpx.Request], httpx.Response]:
    """Serve ``{"rates": {quote: rate}}`` keyed by ``(base, date)``.

    Unknown ``(base, date)`` pairs get a body without the requested rate.
    """

    def handler(request: httpx.Request) -> httpx.Response:
        if status != 200:
            return httpx.Response(status, json={"message": "unavailable"})
        date = request.url.path.rsplit("/", 1)[-1]
        base = request.url.params["from"]
        quote = request.url.params["to"]
        rate = rates.get((base, date))
        body: dict[str, Any] = {"amount": 1.0, "base": base, "date": date, "rates": {}}
        if rate is not None:
            body["rates"][quote] = rate
        return httpx.Response(200, json=body)

    return handler


def duplicates_handler(
    verdicts: Callable[[dict[str, Any]], tuple[bool, str | None]],
) -> Callable[[httpx.Request], httpx.Response]:
    """Echo each submitted transaction annotated with ``verdicts(tx)``."""

    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        out = []
        for tx in body["transactions"]:
            is_dup, note = verdicts(tx)
            out.append({**tx, "isDuplicate": is_dup, "duplicateNote": note})
        return httpx.Response(200, json={"transactions": out})

    return handler


def status_handler(status: int, body: Any = None) -> Callable[[httpx.Request], httpx.Response]:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status, json=body if body is not None else {})

    return handler


def raising_handler(exc: Exception) -> Callable[[httpx.Request], httpx.Response]:
    def handler(request: httpx.Request) -> httpx.Response:
        raise exc

    return handler


def raw_handler(status: int, content: bytes) -> Callable[[httpx.Request], httpx.Response]:
    """Serve ``content`` verbatim, for bodies ``json.dumps`` refuses to write."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            status, content=content, headers={"content-type": "application/json"}
        )

    return handler
