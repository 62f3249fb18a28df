"""Entry point for one optimization call: parse, pack, verify, score, assemble."""

from __future__ import annotations

import logging
from typing import Any

from pack_optimizer.models import PackingRequest, PackingResult, parse_request
from pack_optimizer.packing.budget import SearchBudget
from pack_optimizer.packing.extreme_points import pack_instances
from pack_optimizer.report import assemble_result
from pack_optimizer.validation import ensure_feasible

logger = logging.getLogger(__name__)


def optimize_packing(
    request: PackingRequest | dict[str, Any],
    budget: SearchBudget | None = None,
) -> PackingResult:
    """
    Pack one container.

    Args:
        request: PackingRequest, or a raw dict using the wire names
            (containerDimensions, packages, allowRotation)
        budget: optional time / iteration limits and cancel event. When hit,
            the result is partial but complete: remaining instances are
            reported unpacked and stopReason says why.

    Returns:
        PackingResult (validated against bounds and overlap before return)

    Raises:
        InvalidInputError: before any placement attempt
        InternalConsistencyError: the engine produced an infeasible placement set
    """
    req = parse_request(request)
    container, packages = req.container, req.packages

    outcome = pack_instances(container, packages, req.allow_rotation, budget=budget)

    ensure_feasible(container, packages, outcome.placements, req.allow_rotation)

    result = assemble_result(
        container,
        packages,
        req.allow_rotation,
        outcome.placements,
        outcome.unplaced,
        stop_reason=outcome.stop_reason,
        iterations=outcome.iterations,
    )

    logger.info(
        f"packed={result.packed_instances}, "
        f"unpacked={result.requested_instances - result.packed_instances}, "
        f"used_pct={result.total_volume_used_percentage:.2f}, "
        f"stop_reason={result.stop_reason.value}"
    )
    return result
