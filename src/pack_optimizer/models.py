from __future__ import annotations

from enum import Enum
from typing import Any, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from pack_optimizer.errors import InvalidInputError


class ContainerSpec(BaseModel):
    """Container model with inner dimensions (cm)."""

    model_config = ConfigDict(frozen=True)

    length: float = Field(gt=0, strict=True, allow_inf_nan=False, description="Container length (x axis) in cm")
    width: float = Field(gt=0, strict=True, allow_inf_nan=False, description="Container width (y axis) in cm")
    height: float = Field(gt=0, strict=True, allow_inf_nan=False, description="Container height (z axis) in cm")

    @property
    def dims(self) -> tuple[float, float, float]:
        return float(self.length), float(self.width), float(self.height)

    @property
    def volume(self) -> float:
        return float(self.length) * float(self.width) * float(self.height)


class PackageType(BaseModel):
    """Package type with dimensions (cm) and requested quantity. Identified by its input index."""

    model_config = ConfigDict(frozen=True)

    length: float = Field(gt=0, strict=True, allow_inf_nan=False, description="Package length in cm")
    width: float = Field(gt=0, strict=True, allow_inf_nan=False, description="Package width in cm")
    height: float = Field(gt=0, strict=True, allow_inf_nan=False, description="Package height in cm")
    quantity: int = Field(gt=0, strict=True, description="Number of instances requested")

    @property
    def dims(self) -> tuple[float, float, float]:
        return float(self.length), float(self.width), float(self.height)

    @property
    def volume(self) -> float:
        return float(self.length) * float(self.width) * float(self.height)


class PackingRequest(BaseModel):
    """Input contract: container, package types and rotation flag."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    container: ContainerSpec = Field(alias="containerDimensions")
    packages: list[PackageType] = Field(min_length=1, description="Package types; the index is the identity")
    allow_rotation: bool = Field(alias="allowRotation", strict=True)


class Placement(BaseModel):
    """One committed instance: type, orientation permutation and minimum corner."""

    model_config = ConfigDict(frozen=True)

    package_type: int = Field(ge=0, description="Index into the request's packages")
    orientation: Tuple[int, int, int] = Field(
        description="orientation[i] is the package axis laid along container axis i"
    )
    position: Tuple[float, float, float] = Field(description="Minimum corner (x, y, z) in cm")


class UnplacedReason(str, Enum):
    OVERSIZE = "oversize"
    NO_FIT = "no_fit"
    BUDGET_EXHAUSTED = "budget_exhausted"
    CANCELLED = "cancelled"


class UnplacedRun(BaseModel):
    """Consecutive instances of one type left unplaced for the same reason."""

    model_config = ConfigDict(frozen=True)

    package_type: int
    first_instance: int = Field(ge=0, description="0-based ordinal of the first instance in the run")
    count: int = Field(1, ge=1)
    reason: UnplacedReason


class StopReason(str, Enum):
    COMPLETED = "completed"
    BUDGET_EXHAUSTED = "budget_exhausted"
    CANCELLED = "cancelled"


class PackingConfiguration(BaseModel):
    """Output entry consumed by the results display and the 3D renderer."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    package_type: int = Field(alias="packageType")
    quantity: int = Field(ge=1)
    orientation: list[int]
    position: list[float]


class PackingResult(BaseModel):
    """
    Output contract returned for one optimization call.

    Positions are raw float sums of extents; every box lies in the container
    and clear of the others to within geometry.EPS.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    packing_configurations: list[PackingConfiguration] = Field(
        default_factory=list, alias="packingConfigurations"
    )
    total_volume_used_percentage: float = Field(ge=0, le=100, alias="totalVolumeUsedPercentage")
    unpacked_packages: list[int] = Field(default_factory=list, alias="unpackedPackages")
    packing_notes: str = Field(alias="packingNotes")

    unpacked_counts: dict[int, int] = Field(default_factory=dict, alias="unpackedCounts")
    packed_counts: dict[int, int] = Field(default_factory=dict, alias="packedCounts")
    packed_instances: int = Field(0, alias="packedInstances")
    requested_instances: int = Field(0, alias="requestedInstances")
    stop_reason: StopReason = Field(StopReason.COMPLETED, alias="stopReason")

    def to_payload(self) -> dict[str, Any]:
        """JSON-ready dict using the camelCase wire names."""
        return self.model_dump(mode="json", by_alias=True)


def _format_loc(loc: tuple[Any, ...]) -> str:
    out = ""
    for part in loc:
        if isinstance(part, int):
            out += f"[{part}]"
        else:
            out += f".{part}" if out else str(part)
    return out


def parse_request(payload: Any) -> PackingRequest:
    """
    Validate a raw request (dict, or an existing PackingRequest).

    Raises:
        InvalidInputError: naming the first offending field and, for package
            faults, the package type index. All violations are in ``details``.
    """
    if isinstance(payload, PackingRequest):
        return payload
    try:
        return PackingRequest.model_validate(payload)
    except ValidationError as e:
        details = []
        for err in e.errors():
            loc = tuple(err.get("loc", ()))
            index = None
            if len(loc) >= 2 and loc[0] == "packages" and isinstance(loc[1], int):
                index = loc[1]
            details.append({
                "field": _format_loc(loc) or None,
                "index": index,
                "message": err.get("msg", "invalid value"),
            })
        first = details[0]
        where = first["field"] or "request"
        raise InvalidInputError(
            f"Invalid input at {where}: {first['message']}",
            field=first["field"],
            index=first["index"],
            details=details,
        ) from e
