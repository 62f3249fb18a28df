"""Runtime settings from environment variables; loads .env locally via python-dotenv."""

from __future__ import annotations

import os
import threading
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from pack_optimizer.packing.budget import SearchBudget

ENV_MAX_SECONDS = "PACK_OPTIMIZER_MAX_SECONDS"
ENV_MAX_ITERATIONS = "PACK_OPTIMIZER_MAX_ITERATIONS"
ENV_LOG_LEVEL = "PACK_OPTIMIZER_LOG_LEVEL"


@dataclass(frozen=True)
class Settings:
    max_seconds: Optional[float] = None
    max_iterations: Optional[int] = None
    log_level: str = "INFO"


def _read_float(name: str) -> Optional[float]:
    raw = os.getenv(name, "").strip()
    if not raw:
        return None
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None
    if value < 0:
        raise ValueError(f"{name} must be >= 0, got {raw!r}")
    return value


def _read_int(name: str) -> Optional[int]:
    raw = os.getenv(name, "").strip()
    if not raw:
        return None
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None
    if value < 0:
        raise ValueError(f"{name} must be >= 0, got {raw!r}")
    return value


def load_settings(dotenv: bool = True) -> Settings:
    """
    Read settings from the environment.

    A local .env is loaded first when present; it never overrides variables
    already set. Unset budget variables mean "unlimited".
    """
    if dotenv:
        load_dotenv()
    return Settings(
        max_seconds=_read_float(ENV_MAX_SECONDS),
        max_iterations=_read_int(ENV_MAX_ITERATIONS),
        log_level=os.getenv(ENV_LOG_LEVEL, "INFO").strip().upper() or "INFO",
    )


def make_budget(
    settings: Settings,
    max_seconds: Optional[float] = None,
    max_iterations: Optional[int] = None,
    cancel_event: Optional[threading.Event] = None,
) -> SearchBudget:
    """Fresh per-call budget; explicit arguments override the settings."""
    return SearchBudget(
        max_seconds=max_seconds if max_seconds is not None else settings.max_seconds,
        max_iterations=max_iterations if max_iterations is not None else settings.max_iterations,
        cancel_event=cancel_event,
    )
