"""Feasibility validator: re-checks committed placements independently of the engine."""

from __future__ import annotations

import logging
from collections import Counter
from typing import Sequence

from pack_optimizer.errors import InternalConsistencyError
from pack_optimizer.geometry import (
    EPS,
    IDENTITY,
    Bounds,
    boxes_overlap,
    is_orientation,
    oriented_extents,
    placement_bounds,
    within_bounds,
)
from pack_optimizer.models import ContainerSpec, PackageType, Placement

logger = logging.getLogger(__name__)


def find_violations(
    container: ContainerSpec,
    packages: Sequence[PackageType],
    placements: Sequence[Placement],
    allow_rotation: bool,
) -> list[str]:
    """
    Return every invariant violation in `placements` (empty list when feasible).

    Checks type index, orientation, containment, pairwise non-overlap and
    that no type is packed beyond its requested quantity.
    """
    violations: list[str] = []
    boxes: list[tuple[Bounds, int]] = []

    for i, p in enumerate(placements):
        if not 0 <= p.package_type < len(packages):
            violations.append(f"placement {i}: unknown package type {p.package_type}")
            continue
        if not is_orientation(p.orientation):
            violations.append(f"placement {i}: orientation {list(p.orientation)} is not a permutation")
            continue
        if not allow_rotation and tuple(p.orientation) != IDENTITY:
            violations.append(f"placement {i}: orientation {list(p.orientation)} with rotation disabled")

        extents = oriented_extents(packages[p.package_type].dims, p.orientation)
        bounds = placement_bounds(p.position, extents)
        if not within_bounds(bounds, container):
            violations.append(f"placement {i}: box {bounds} leaves the container")
        boxes.append((bounds, i))

    # Sort-and-sweep on x: only boxes whose x-intervals intersect are compared.
    boxes.sort(key=lambda b: (b[0][0], b[1]))
    for a in range(len(boxes)):
        bounds_a, i = boxes[a]
        for b in range(a + 1, len(boxes)):
            bounds_b, j = boxes[b]
            if bounds_b[0] >= bounds_a[3] - EPS:
                break
            if boxes_overlap(bounds_a, bounds_b):
                violations.append(f"placements {min(i, j)} and {max(i, j)} overlap")

    packed = Counter(p.package_type for p in placements)
    for type_index, count in sorted(packed.items()):
        if 0 <= type_index < len(packages) and count > packages[type_index].quantity:
            violations.append(
                f"type {type_index}: {count} packed but only {packages[type_index].quantity} requested"
            )

    return violations


def ensure_feasible(
    container: ContainerSpec,
    packages: Sequence[PackageType],
    placements: Sequence[Placement],
    allow_rotation: bool,
) -> None:
    """Raise InternalConsistencyError if any invariant is violated. Never repairs."""
    violations = find_violations(container, packages, placements, allow_rotation)
    if violations:
        logger.error(f"feasibility check failed: {len(violations)} violation(s), first: {violations[0]}")
        raise InternalConsistencyError(violations)
