"""Runtime configuration read from the environment (and a local ``.env``)."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

DEFAULT_RATE_API_URL = "https://api.frankfurter.app"
DEFAULT_HTTP_TIMEOUT = 15.0


def _load_env(dotenv_path: Path | None = None) -> None:
    """Load the ``.env`` file once per process without overriding set vars."""

    if getattr(_load_env, "_loaded", False):  # type: ignore[attr-defined]
        return
    load_dotenv(dotenv_path, override=False)
    setattr(_load_env, "_loaded", True)  # type: ignore[attr-defined]


def _opt(name: str) -> str | None:
    val = os.getenv(name)
    if val is None or not val.strip():
        return None
    return val.strip()


def _positive_float(name: str, default: float) -> float:
    raw = _opt(name)
    if raw is None:
        return default
    try:
        val = float(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be a number, got {raw!r}") from e
    if val <= 0:
        raise ValueError(f"{name} must be positive, got {raw!r}")
    return val


def _positive_int(name: str, default: int) -> int:
    raw = _opt(name)
    if raw is None:
        return default
    try:
        val = int(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from e
    if val < 1:
        raise ValueError(f"{name} must be >= 1, got {raw!r}")
    return val


@dataclass(frozen=True)
class Settings:
    """Endpoints and tunables for one import run.

    ``duplicate_api_url`` and ``sink_url`` are optional: without a detector
    the duplicate stage fails open, and without a sink nothing can be
    committed.
    """

    rate_api_url: str = DEFAULT_RATE_API_URL
    duplicate_api_url: str | None = None
    sink_url: str | None = None
    sink_api_key: str | None = None
    http_timeout: float = DEFAULT_HTTP_TIMEOUT
    conversion_concurrency: int = 1

    @classmethod
    def from_env(cls) -> Settings:
        """Instantiate settings using environment overrides when present."""

        _load_env()
        defaults = cls()
        return cls(
            rate_api_url=_opt("SI_RATE_API_URL") or defaults.rate_api_url,
            duplicate_api_url=_opt("SI_DUPLICATE_API_URL"),
            sink_url=_opt("SI_SINK_URL"),
            sink_api_key=_opt("SI_SINK_API_KEY"),
            http_timeout=_positive_float("SI_HTTP_TIMEOUT", defaults.http_timeout),
            conversion_concurrency=_positive_int(
                "SI_CONVERSION_CONCURRENCY", defaults.conversion_concurrency
            ),
        )


__all__ = ["DEFAULT_HTTP_TIMEOUT", "DEFAULT_RATE_API_URL", "Settings"]
