"""End-to-end tests for optimize_packing: scenarios, invariants, determinism, input rejection."""

from __future__ import annotations

import random

import pytest

from pack_optimizer.errors import InternalConsistencyError, InvalidInputError
from pack_optimizer.geometry import IDENTITY, boxes_overlap, is_orientation, oriented_extents, placement_bounds
from pack_optimizer.models import PackingRequest, Placement, StopReason
from pack_optimizer.optimizer import optimize_packing
from pack_optimizer.packing.extreme_points import EngineOutcome


def make_request(container, packages, allow_rotation=True) -> dict:
    length, width, height = container
    return {
        "containerDimensions": {"length": length, "width": width, "height": height},
        "packages": [
            {"length": l, "width": w, "height": h, "quantity": q} for (l, w, h, q) in packages
        ],
        "allowRotation": allow_rotation,
    }


def boxes_of(request: dict, result) -> list[tuple]:
    packages = request["packages"]
    out = []
    for config in result.packing_configurations:
        pkg = packages[config.package_type]
        extents = oriented_extents((pkg["length"], pkg["width"], pkg["height"]), config.orientation)
        out.append(placement_bounds(config.position, extents))
    return out


def assert_invariants(request: dict, result) -> None:
    container = request["containerDimensions"]
    packages = request["packages"]
    boxes = boxes_of(request, result)

    # Containment
    for x1, y1, z1, x2, y2, z2 in boxes:
        assert x1 >= 0 and y1 >= 0 and z1 >= 0
        assert x2 <= container["length"] + 1e-9
        assert y2 <= container["width"] + 1e-9
        assert z2 <= container["height"] + 1e-9

    # Non-overlap
    for i in range(len(boxes)):
        for j in range(i + 1, len(boxes)):
            assert not boxes_overlap(boxes[i], boxes[j])

    # Orientation validity
    for config in result.packing_configurations:
        assert is_orientation(config.orientation)
        if not request["allowRotation"]:
            assert tuple(config.orientation) == IDENTITY

    # Quantity conservation
    for i, pkg in enumerate(packages):
        packed = sum(c.quantity for c in result.packing_configurations if c.package_type == i)
        assert packed + result.unpacked_counts.get(i, 0) == pkg["quantity"]
        assert (i in result.unpacked_packages) == (packed < pkg["quantity"])

    # Utilization
    container_volume = container["length"] * container["width"] * container["height"]
    used = sum(
        packages[c.package_type]["length"] * packages[c.package_type]["width"] * packages[c.package_type]["height"]
        for c in result.packing_configurations
    )
    assert result.total_volume_used_percentage == pytest.approx(100.0 * used / container_volume, abs=0.005)


def test_octants_scenario() -> None:
    request = make_request((100, 100, 100), [(50, 50, 50, 10)])

    result = optimize_packing(request)

    assert len(result.packing_configurations) == 8
    assert result.unpacked_packages == [0]
    assert result.unpacked_counts == {0: 2}
    assert result.total_volume_used_percentage == 100.0
    assert_invariants(request, result)


def test_package_larger_than_container() -> None:
    request = make_request((10, 10, 10), [(20, 20, 20, 1)])

    result = optimize_packing(request)

    assert result.packing_configurations == []
    assert result.unpacked_packages == [0]
    assert result.unpacked_counts == {0: 1}
    assert result.total_volume_used_percentage == 0.0
    assert "larger than the container" in result.packing_notes


def test_exact_fill_scenario() -> None:
    request = make_request((30, 20, 10), [(30, 20, 10, 2)])

    result = optimize_packing(request)

    assert len(result.packing_configurations) == 1
    assert result.packing_configurations[0].position == [0.0, 0.0, 0.0]
    assert result.unpacked_counts == {0: 1}
    assert result.total_volume_used_percentage == 100.0


def test_zero_quantity_names_package_index() -> None:
    request = make_request((10, 10, 10), [(1, 1, 1, 2), (1, 1, 1, 0)])

    with pytest.raises(InvalidInputError) as exc_info:
        optimize_packing(request)

    assert exc_info.value.index == 1
    assert exc_info.value.field == "packages[1].quantity"
    assert exc_info.value.to_dict()["error"] == "INVALID_INPUT"


@pytest.mark.parametrize(
    "mutate, field, index",
    [
        (lambda r: r.update(packages=[]), "packages", None),
        (lambda r: r["containerDimensions"].update(length=0), "containerDimensions.length", None),
        (lambda r: r["containerDimensions"].update(height=-5), "containerDimensions.height", None),
        (lambda r: r["packages"][0].update(width=-1), "packages[0].width", 0),
        (lambda r: r["packages"][0].update(length="10"), "packages[0].length", 0),
        (lambda r: r["packages"][0].update(quantity=2.5), "packages[0].quantity", 0),
        (lambda r: r["packages"][0].update(quantity=True), "packages[0].quantity", 0),
        (lambda r: r["packages"][0].update(height=float("nan")), "packages[0].height", 0),
        (lambda r: r.update(allowRotation="yes"), "allowRotation", None),
        (lambda r: r.pop("containerDimensions"), "containerDimensions", None),
    ],
)
def test_invalid_input_is_rejected_not_coerced(mutate, field, index) -> None:
    request = make_request((10, 10, 10), [(1, 1, 1, 1)])
    mutate(request)

    with pytest.raises(InvalidInputError) as exc_info:
        optimize_packing(request)

    assert exc_info.value.field == field
    assert exc_info.value.index == index


def test_invalid_input_reports_every_violation() -> None:
    request = make_request((10, 10, 10), [(1, 1, 1, 0), (-1, 1, 1, 1)])

    with pytest.raises(InvalidInputError) as exc_info:
        optimize_packing(request)

    assert [d["index"] for d in exc_info.value.details] == [0, 1]


def test_accepts_parsed_request() -> None:
    request = PackingRequest.model_validate(make_request((10, 10, 10), [(5, 5, 5, 8)]))

    result = optimize_packing(request)

    assert result.total_volume_used_percentage == 100.0
    assert result.unpacked_packages == []
    assert result.stop_reason is StopReason.COMPLETED


def test_rotation_disabled_scenario() -> None:
    request = make_request((30, 20, 10), [(10, 30, 20, 1), (10, 10, 10, 6)], allow_rotation=False)

    result = optimize_packing(request)

    assert result.unpacked_counts == {0: 1}
    assert result.packed_counts == {0: 0, 1: 6}
    assert_invariants(request, result)


def test_random_requests_keep_invariants() -> None:
    rng = random.Random(1234)
    for _ in range(25):
        container = (rng.randint(10, 60), rng.randint(10, 60), rng.randint(10, 60))
        packages = [
            (rng.randint(2, 30), rng.randint(2, 30), rng.randint(2, 30), rng.randint(1, 12))
            for _ in range(rng.randint(1, 4))
        ]
        request = make_request(container, packages, allow_rotation=rng.random() < 0.7)

        result = optimize_packing(request)

        assert_invariants(request, result)


def test_fractional_dimensions_keep_invariants() -> None:
    request = make_request((1.0, 0.7, 0.3), [(0.1, 0.2, 0.1, 40), (0.3, 0.1, 0.1, 7)])

    result = optimize_packing(request)

    assert result.packed_instances > 0
    assert_invariants(request, result)


def test_float_sums_stay_within_tolerance_of_the_wall() -> None:
    # 0.1 + 0.1 + 0.1 == 0.30000000000000004: the third cube still counts as inside.
    request = make_request((0.3, 0.1, 0.1), [(0.1, 0.1, 0.1, 3)], allow_rotation=False)

    result = optimize_packing(request)

    assert result.packed_instances == 3
    assert result.unpacked_packages == []
    far_faces = [box[3] for box in boxes_of(request, result)]
    assert max(far_faces) > 0.3
    assert max(far_faces) <= 0.3 + 1e-9
    assert_invariants(request, result)


def test_output_is_deterministic() -> None:
    request = make_request((120, 80, 90), [(30, 20, 10, 25), (40, 40, 40, 3), (15, 15, 60, 6)])

    first = optimize_packing(request).model_dump_json(by_alias=True)
    second = optimize_packing(request).model_dump_json(by_alias=True)

    assert first == second


def test_package_order_is_the_identity() -> None:
    """Equal-volume types keep input order; output indices follow the input."""
    request = make_request((10, 10, 2), [(5, 10, 2, 1), (10, 5, 2, 2)], allow_rotation=True)

    result = optimize_packing(request)

    # Type 1 first would have filled the floor with two unrotated units.
    assert [c.package_type for c in result.packing_configurations] == [0, 1]
    assert result.packing_configurations[1].orientation == [1, 0, 2]
    assert result.unpacked_counts == {1: 1}


def test_engine_fault_is_never_returned(monkeypatch) -> None:
    def broken_engine(container, packages, allow_rotation, budget=None):
        p = Placement(package_type=0, orientation=(0, 1, 2), position=(0.0, 0.0, 0.0))
        return EngineOutcome(placements=[p, p])

    monkeypatch.setattr("pack_optimizer.optimizer.pack_instances", broken_engine)

    with pytest.raises(InternalConsistencyError) as exc_info:
        optimize_packing(make_request((10, 10, 10), [(5, 5, 5, 2)]))

    assert exc_info.value.violations == ["placements 0 and 1 overlap"]
