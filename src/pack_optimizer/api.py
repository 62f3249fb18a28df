"""FastAPI endpoint for the packing optimizer."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import Body, FastAPI, HTTPException, Query

from pack_optimizer.config import load_settings, make_budget
from pack_optimizer.errors import InternalConsistencyError, InvalidInputError
from pack_optimizer.models import parse_request
from pack_optimizer.optimizer import optimize_packing
from pack_optimizer.report import container_render, render_boxes

logger = logging.getLogger(__name__)

settings = load_settings()

app = FastAPI(
    title="Pack Optimizer API",
    description="Deterministic 3D container loading",
)


# Sync handler: runs in FastAPI's threadpool.
@app.post("/optimize")
def optimize(
    request: Any = Body(...),
    render: int = Query(0, description="Include rendering data (1) or not (0)"),
) -> dict[str, Any]:
    """
    Optimize one container load.

    Input (request body):
        {
            "containerDimensions": {"length": 100, "width": 100, "height": 100},
            "packages": [{"length": 50, "width": 50, "height": 50, "quantity": 10}],
            "allowRotation": true
        }

    Returns:
        packingConfigurations, totalVolumeUsedPercentage, unpackedPackages,
        packingNotes (+ placementsRender / containerRender when render=1)
    """
    try:
        req = parse_request(request)
        result = optimize_packing(req, budget=make_budget(settings))
    except InvalidInputError as e:
        logger.info(f"rejected /optimize input: field={e.field} index={e.index}")
        raise HTTPException(status_code=422, detail=e.to_dict())
    except InternalConsistencyError as e:
        logger.error(f"internal consistency fault in /optimize: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=e.to_dict())

    response = result.to_payload()
    if render == 1:
        response["placementsRender"] = render_boxes(req.packages, result)
        response["containerRender"] = container_render(req.container)
    return response


@app.get("/health")
def health() -> dict[str, Any]:
    """Health check endpoint."""
    return {"ok": True}
