"""Import sinks: where a committed selection of transactions is sent."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

import httpx

from .config import DEFAULT_HTTP_TIMEOUT
from .errors import ImportSinkError
from .logging_setup import get_logger
from .models import Transaction, TransactionKind

_logger = get_logger("statement_import.sink")


class ImportSink(Protocol):
    def __call__(self, transactions: Sequence[Transaction], kind: TransactionKind) -> None:
        """Persist ``transactions``; raise ``ImportSinkError`` on failure."""
        ...


class SpreadsheetSink:
    """Append rows to a spreadsheet backend through its HTTP relay.

    Each transaction is sent as its own request::

        {"key": <api key>, "action": "append", "type": <kind>, "row": {...}}

    The first failing request raises :class:`ImportSinkError`; rows already
    appended before it are not rolled back.
    """

    def __init__(
        self,
        url: str,
        api_key: str | None = None,
        *,
        timeout: float = DEFAULT_HTTP_TIMEOUT,
        client: httpx.Client | None = None,
    ) -> None:
        self._url = url
        self._api_key = api_key
        self._owns_client = client is None
        self._client = client if client is not None else httpx.Client(timeout=timeout)

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> SpreadsheetSink:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def __call__(self, transactions: Sequence[Transaction], kind: TransactionKind) -> None:
        for idx, tx in enumerate(transactions):
            body = {
                "key": self._api_key,
                "action": "append",
                "type": str(kind),
                "row": tx.to_payload(),
            }
            try:
                resp = self._client.post(self._url, json=body)
            except httpx.HTTPError as e:
                raise ImportSinkError(f"append failed at row {idx}: {e}") from e
            if not resp.is_success:
                raise ImportSinkError(f"append failed at row {idx}: HTTP {resp.status_code}")
        _logger.info("sink:appended kind=%s count=%d", kind, len(transactions))


__all__ = ["ImportSink", "SpreadsheetSink"]
