"""Geometry primitives: orientations, bounds, containment and overlap."""

from __future__ import annotations

from itertools import permutations
from typing import TYPE_CHECKING, Sequence

from pack_optimizer.errors import InvalidInputError

if TYPE_CHECKING:
    from pack_optimizer.models import ContainerSpec

Bounds = tuple[float, float, float, float, float, float]
Orientation = tuple[int, int, int]

# Absorbs float rounding from summed coordinates (x + ex + ...). Containment and
# non-overlap hold to within EPS: a far face may end up to EPS past the container
# wall (0.1 + 0.1 + 0.1 ends at 0.30000000000000004 in a 0.3 container).
EPS = 1e-9

IDENTITY: Orientation = (0, 1, 2)

# Canonical (lexicographic) order; the engine tries orientations in this order.
ORIENTATIONS: tuple[Orientation, ...] = tuple(permutations((0, 1, 2)))


def is_orientation(orientation: Sequence[int]) -> bool:
    try:
        items = list(orientation)
    except TypeError:
        return False
    if any(isinstance(a, bool) or not isinstance(a, int) for a in items):
        return False
    return sorted(items) == [0, 1, 2]


def oriented_extents(dims: Sequence[float], orientation: Sequence[int]) -> tuple[float, float, float]:
    """
    Map package dims (L, W, H) onto container axes (x, y, z).

    orientation[i] names the package axis laid along container axis i,
    so (1, 0, 2) swaps length and width on the floor.
    """
    if not is_orientation(orientation):
        raise InvalidInputError(
            f"orientation {list(orientation)!r} is not a permutation of [0, 1, 2]",
            field="orientation",
        )
    return (
        float(dims[orientation[0]]),
        float(dims[orientation[1]]),
        float(dims[orientation[2]]),
    )


def placement_bounds(position: Sequence[float], extents: Sequence[float]) -> Bounds:
    x, y, z = float(position[0]), float(position[1]), float(position[2])
    ex, ey, ez = extents
    return (x, y, z, x + ex, y + ey, z + ez)


def boxes_overlap(a: Bounds, b: Bounds) -> bool:
    """
    Axis-aligned bounding box (AABB) overlap test.

    a, b are bounds: (x1, y1, z1, x2, y2, z2)

    Overlap exists only if they overlap on ALL 3 axes with positive volume.
    Touching faces/edges (ax2 == bx1) is NOT considered overlap.
    """
    ax1, ay1, az1, ax2, ay2, az2 = a
    bx1, by1, bz1, bx2, by2, bz2 = b

    return (
        (ax1 < bx2 - EPS and ax2 > bx1 + EPS)
        and (ay1 < by2 - EPS and ay2 > by1 + EPS)
        and (az1 < bz2 - EPS and az2 > bz1 + EPS)
    )


def within_bounds(bounds: Bounds, container: "ContainerSpec") -> bool:
    """Inside the container up to EPS on every face; positions are not snapped."""
    x1, y1, z1, x2, y2, z2 = bounds
    if x1 < -EPS or y1 < -EPS or z1 < -EPS:
        return False
    return (
        x2 <= float(container.length) + EPS
        and y2 <= float(container.width) + EPS
        and z2 <= float(container.height) + EPS
    )


def point_in_box(point: Sequence[float], bounds: Bounds) -> bool:
    """True if a box anchored at `point` would necessarily intersect `bounds`."""
    x, y, z = point
    x1, y1, z1, x2, y2, z2 = bounds
    return (
        x1 - EPS <= x < x2 - EPS
        and y1 - EPS <= y < y2 - EPS
        and z1 - EPS <= z < z2 - EPS
    )


def allowed_orientations(
    dims: Sequence[float], allow_rotation: bool
) -> list[tuple[Orientation, tuple[float, float, float]]]:
    """
    Orientations to try, with their extents, in canonical order.

    Without rotation only the identity is legal. With rotation, orientations
    that produce the same extents as an earlier one (cubes, square faces)
    are dropped; the earlier canonical one is kept.
    """
    if not allow_rotation:
        return [(IDENTITY, oriented_extents(dims, IDENTITY))]

    seen = set()
    out: list[tuple[Orientation, tuple[float, float, float]]] = []
    for orientation in ORIENTATIONS:
        extents = oriented_extents(dims, orientation)
        if extents not in seen:
            seen.add(extents)
            out.append((orientation, extents))
    return out


def fits_in_container(dims: Sequence[float], container: "ContainerSpec", allow_rotation: bool) -> bool:
    """Whether some allowed orientation fits the empty container."""
    return any(
        within_bounds(placement_bounds((0.0, 0.0, 0.0), extents), container)
        for _, extents in allowed_orientations(dims, allow_rotation)
    )
