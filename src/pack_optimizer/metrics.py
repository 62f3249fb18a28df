from __future__ import annotations

from typing import Sequence

from pack_optimizer.models import ContainerSpec, PackageType, Placement


def placement_volume(p: Placement, packages: Sequence[PackageType]) -> float:
    # Orientation permutes the axes; volume is unchanged.
    return packages[p.package_type].volume


def used_volume_percent(used_volume: float, container_volume: float) -> float:
    """100 * used / container, clamped to [0, 100] and rounded to two decimals."""
    if container_volume <= 0.0:
        return 0.0
    pct = 100.0 * used_volume / container_volume
    return round(min(100.0, max(0.0, pct)), 2)


def compute_metrics(
    container: ContainerSpec,
    packages: Sequence[PackageType],
    placements: Sequence[Placement],
) -> tuple[float, float, float]:
    used_volume = sum(placement_volume(p, packages) for p in placements)
    container_volume = container.volume
    return used_volume, container_volume, used_volume_percent(used_volume, container_volume)


def packed_counts(packages: Sequence[PackageType], placements: Sequence[Placement]) -> dict[int, int]:
    """Packed instances per type index; every type appears, zero included."""
    counts = {i: 0 for i in range(len(packages))}
    for p in placements:
        counts[p.package_type] += 1
    return counts
