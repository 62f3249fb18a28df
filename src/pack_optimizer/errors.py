"""Error taxonomy raised by the packing engine."""

from __future__ import annotations

from typing import Any


class PackingError(Exception):
    """Base class for every error the engine raises."""


class InvalidInputError(PackingError, ValueError):
    """
    Input violated a positivity / non-empty / shape constraint.

    Raised before any placement attempt; no partial result exists.

    Attributes:
        field: dotted path of the first offending field, e.g. ``packages[2].quantity``
        index: package type index when the fault belongs to one package, else None
        details: every violation found, as ``{"field", "index", "message"}`` dicts
    """

    def __init__(
        self,
        message: str,
        field: str | None = None,
        index: int | None = None,
        details: list[dict[str, Any]] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.field = field
        self.index = index
        self.details = details if details is not None else [
            {"field": field, "index": index, "message": message}
        ]

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "INVALID_INPUT",
            "field": self.field,
            "index": self.index,
            "details": self.details,
        }


class InternalConsistencyError(PackingError, RuntimeError):
    """The feasibility validator rejected the engine's own output."""

    def __init__(self, violations: list[str]) -> None:
        super().__init__(f"{len(violations)} invariant violation(s): " + "; ".join(violations[:5]))
        self.violations = violations

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "INTERNAL_CONSISTENCY_FAULT",
            "violations": self.violations,
        }
