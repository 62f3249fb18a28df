"""Result assembly: output configurations, shortfall accounting and diagnostic notes."""

from __future__ import annotations

from collections import Counter
from typing import Any, Sequence

from pack_optimizer.geometry import oriented_extents
from pack_optimizer.metrics import compute_metrics, packed_counts
from pack_optimizer.models import (
    ContainerSpec,
    PackageType,
    PackingConfiguration,
    PackingResult,
    Placement,
    StopReason,
    UnplacedRun,
    UnplacedReason,
)
from pack_optimizer.packing.extreme_points import type_priority


def build_configurations(placements: Sequence[Placement]) -> list[PackingConfiguration]:
    """
    One configuration per physical instance (quantity=1), in commit order.
    """
    return [
        PackingConfiguration(
            package_type=p.package_type,
            quantity=1,
            orientation=list(p.orientation),
            position=[float(c) for c in p.position],
        )
        for p in placements
    ]


def shortfall_counts(packages: Sequence[PackageType], packed: dict[int, int]) -> dict[int, int]:
    """{type index: requested - packed} for every type with a positive shortfall."""
    out: dict[int, int] = {}
    for i, package in enumerate(packages):
        short = package.quantity - packed.get(i, 0)
        if short > 0:
            out[i] = short
    return out


def _plural(n: int, word: str) -> str:
    return f"{n} {word}" if n == 1 else f"{n} {word}s"


def build_notes(
    container: ContainerSpec,
    packages: Sequence[PackageType],
    unplaced: Sequence[UnplacedRun],
    used_volume: float,
    used_pct: float,
    allow_rotation: bool,
    stop_reason: StopReason,
    iterations: int,
) -> str:
    """Deterministic summary; every sentence is derived from counts and geometry."""
    requested = sum(p.quantity for p in packages)
    packed_total = requested - sum(u.count for u in unplaced)
    free_volume = max(0.0, container.volume - used_volume)

    sentences = [
        f"Container volume utilization: {used_pct:.2f}%.",
        f"Packed {packed_total} of {_plural(requested, 'instance')} across {_plural(len(packages), 'package type')}.",
        "Packing order by unit volume: types " + ", ".join(str(i) for i in type_priority(packages)) + ".",
    ]
    if allow_rotation:
        sentences.append("Rotation allowed: each instance was tried in every distinct orientation.")
    else:
        sentences.append("Rotation disabled: every instance keeps its given orientation.")

    by_type: dict[int, Counter] = {}
    for u in unplaced:
        by_type.setdefault(u.package_type, Counter())[u.reason] += u.count

    for type_index in sorted(by_type):
        package = packages[type_index]
        reasons = by_type[type_index]
        quantity = package.quantity
        for reason in UnplacedReason:
            n = reasons.get(reason, 0)
            if not n:
                continue
            head = f"{n} of {_plural(quantity, 'instance')} of type {type_index}"
            if reason is UnplacedReason.OVERSIZE:
                sentences.append(
                    f"{head} could not be placed: larger than the container in every allowed orientation."
                )
            elif reason is UnplacedReason.NO_FIT:
                if free_volume + 1e-9 < package.volume:
                    sentences.append(
                        f"{head} could not be placed: remaining free volume ({free_volume:.2f} cm3) "
                        f"is smaller than one unit ({package.volume:.2f} cm3)."
                    )
                else:
                    sentences.append(
                        f"{head} could not be placed: remaining free volume too fragmented for their footprint."
                    )
            elif reason is UnplacedReason.BUDGET_EXHAUSTED:
                sentences.append(f"{head} were not attempted: search budget exhausted.")
            else:
                sentences.append(f"{head} were not attempted: optimization cancelled.")

    if stop_reason is StopReason.BUDGET_EXHAUSTED:
        sentences.append(f"Search stopped early after {iterations} candidate evaluations: budget exhausted.")
    elif stop_reason is StopReason.CANCELLED:
        sentences.append(f"Search stopped early after {iterations} candidate evaluations: cancelled by caller.")

    if not unplaced:
        sentences.append("All requested instances were placed.")

    return " ".join(sentences)


def assemble_result(
    container: ContainerSpec,
    packages: Sequence[PackageType],
    allow_rotation: bool,
    placements: Sequence[Placement],
    unplaced: Sequence[UnplacedRun],
    stop_reason: StopReason = StopReason.COMPLETED,
    iterations: int = 0,
) -> PackingResult:
    used_volume, _, used_pct = compute_metrics(container, packages, placements)
    packed = packed_counts(packages, placements)
    shortfall = shortfall_counts(packages, packed)

    return PackingResult(
        packing_configurations=build_configurations(placements),
        total_volume_used_percentage=used_pct,
        unpacked_packages=sorted(shortfall),
        packing_notes=build_notes(
            container, packages, unplaced, used_volume, used_pct, allow_rotation, stop_reason, iterations
        ),
        unpacked_counts=shortfall,
        packed_counts=packed,
        packed_instances=len(placements),
        requested_instances=sum(p.quantity for p in packages),
        stop_reason=stop_reason,
    )


def render_boxes(packages: Sequence[PackageType], result: PackingResult) -> list[dict[str, Any]]:
    """
    Lightweight boxes for a 3D viewer (JSON primitives only).

    dims are the package dims permuted by the configuration's orientation;
    (x, y, z) is the minimum corner.
    """
    boxes = []
    for config in result.packing_configurations:
        dims = oriented_extents(packages[config.package_type].dims, config.orientation)
        x, y, z = config.position
        boxes.append({
            "packageType": config.package_type,
            "x": float(x),
            "y": float(y),
            "z": float(z),
            "dims": [float(d) for d in dims],
        })
    return boxes


def container_render(container: ContainerSpec) -> dict[str, float]:
    return {"L": float(container.length), "W": float(container.width), "H": float(container.height)}
