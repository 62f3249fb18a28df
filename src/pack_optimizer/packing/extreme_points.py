# src/pack_optimizer/packing/extreme_points.py

from __future__ import annotations

import bisect
import logging
from dataclasses import dataclass, field
from typing import Iterator, Sequence

from pack_optimizer.geometry import (
    EPS,
    Bounds,
    Orientation,
    allowed_orientations,
    boxes_overlap,
    fits_in_container,
    placement_bounds,
    point_in_box,
    within_bounds,
)
from pack_optimizer.models import (
    ContainerSpec,
    PackageType,
    Placement,
    StopReason,
    UnplacedRun,
    UnplacedReason,
)
from pack_optimizer.packing.budget import SearchBudget

logger = logging.getLogger(__name__)

Point = tuple[float, float, float]


def type_priority(packages: Sequence[PackageType]) -> list[int]:
    """Type indices by descending unit volume; ties keep input order."""
    return sorted(range(len(packages)), key=lambda i: (-packages[i].volume, i))


class Frontier:
    """
    Candidate anchor points ordered by (z, y, x) ascending:
    floor first, then depth, then left-to-right.
    """

    def __init__(self) -> None:
        self._keys: list[tuple[float, float, float]] = []
        self._members: set[tuple[float, float, float]] = set()

    def __len__(self) -> int:
        return len(self._keys)

    def __contains__(self, point: Point) -> bool:
        x, y, z = point
        return (z, y, x) in self._members

    def __iter__(self) -> Iterator[Point]:
        # Snapshot: callers commit (and mutate the frontier) mid-iteration.
        return iter([(x, y, z) for (z, y, x) in self._keys])

    def add(self, point: Point) -> None:
        x, y, z = point
        key = (float(z), float(y), float(x))
        if key in self._members:
            return
        self._members.add(key)
        bisect.insort(self._keys, key)

    def discard_covered(self, bounds: Bounds) -> int:
        """Drop points no box can use any more because `bounds` now covers them."""
        kept = []
        dropped = 0
        for key in self._keys:
            z, y, x = key
            if point_in_box((x, y, z), bounds):
                self._members.discard(key)
                dropped += 1
            else:
                kept.append(key)
        self._keys = kept
        return dropped


@dataclass
class EngineOutcome:
    """Raw engine output, before validation and scoring."""

    placements: list[Placement] = field(default_factory=list)
    unplaced: list[UnplacedRun] = field(default_factory=list)
    stop_reason: StopReason = StopReason.COMPLETED
    iterations: int = 0


def _inside_container(point: Point, container: ContainerSpec) -> bool:
    x, y, z = point
    return (
        x < float(container.length) - EPS
        and y < float(container.width) - EPS
        and z < float(container.height) - EPS
    )


def _find_first_fit(
    container: ContainerSpec,
    frontier: Frontier,
    orientations: list[tuple[Orientation, tuple[float, float, float]]],
    committed: list[Bounds],
    budget: SearchBudget,
) -> tuple[Point, Orientation, Bounds] | None:
    """FIRST feasible (point, orientation) in frontier order, then canonical orientation order."""
    for point in frontier:
        for orientation, extents in orientations:
            budget.charge()
            bounds = placement_bounds(point, extents)
            if not within_bounds(bounds, container):
                continue
            if any(boxes_overlap(bounds, other) for other in committed):
                continue
            return point, orientation, bounds
    return None


def pack_instances(
    container: ContainerSpec,
    packages: Sequence[PackageType],
    allow_rotation: bool,
    budget: SearchBudget | None = None,
) -> EngineOutcome:
    """
    Greedy extreme-point packer.

    - Types are packed largest unit volume first (ties by input index)
    - Every instance takes the FIRST feasible (point, orientation) pair
    - Committed placements are never revoked (no backtracking)
    - An instance that fits nowhere ends its type: nothing is committed before
      the next attempt, so every remaining instance of the type fails the same way
    - Unplaced instances are recorded as runs (first instance, count), one per
      type and reason
    - Types that fit the empty container in no orientation skip the search
    - Deterministic (no randomness); the budget only decides where to stop
    """
    if budget is None:
        budget = SearchBudget()
    budget.start()

    outcome = EngineOutcome()
    frontier = Frontier()
    frontier.add((0.0, 0.0, 0.0))
    committed: list[Bounds] = []
    stop: StopReason | None = None

    for type_index in type_priority(packages):
        package = packages[type_index]

        if not fits_in_container(package.dims, container, allow_rotation):
            logger.debug(f"type {type_index} exceeds the container in every allowed orientation")
            outcome.unplaced.append(
                UnplacedRun(
                    package_type=type_index,
                    first_instance=0,
                    count=package.quantity,
                    reason=UnplacedReason.OVERSIZE,
                )
            )
            continue

        orientations = allowed_orientations(package.dims, allow_rotation)

        for instance in range(package.quantity):
            remaining = package.quantity - instance
            if stop is None:
                stop = budget.stop_reason()
                if stop is not None:
                    logger.info(
                        f"search stopped ({stop.value}) after {budget.iterations} evaluations, "
                        f"{len(outcome.placements)} placed"
                    )
            if stop is not None:
                outcome.unplaced.append(
                    UnplacedRun(
                        package_type=type_index,
                        first_instance=instance,
                        count=remaining,
                        reason=UnplacedReason(stop.value),
                    )
                )
                break

            found = _find_first_fit(container, frontier, orientations, committed, budget)
            if found is None:
                outcome.unplaced.append(
                    UnplacedRun(
                        package_type=type_index,
                        first_instance=instance,
                        count=remaining,
                        reason=UnplacedReason.NO_FIT,
                    )
                )
                logger.debug(f"type {type_index}: instances {instance}..{package.quantity - 1} unplaced")
                break

            point, orientation, bounds = found
            outcome.placements.append(
                Placement(package_type=type_index, orientation=orientation, position=point)
            )
            committed.append(bounds)
            frontier.discard_covered(bounds)

            x1, y1, z1, x2, y2, z2 = bounds
            for extreme in ((x2, y1, z1), (x1, y2, z1), (x1, y1, z2)):
                if not _inside_container(extreme, container):
                    continue
                if any(point_in_box(extreme, other) for other in committed):
                    continue
                frontier.add(extreme)

            logger.debug(f"type {type_index} instance {instance} placed at {point} orientation {orientation}")

    outcome.stop_reason = stop if stop is not None else StopReason.COMPLETED
    outcome.iterations = budget.iterations
    return outcome
