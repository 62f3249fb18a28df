from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Any, Sequence

from pack_optimizer.config import load_settings, make_budget
from pack_optimizer.errors import InternalConsistencyError, InvalidInputError
from pack_optimizer.models import PackingResult, StopReason, parse_request
from pack_optimizer.optimizer import optimize_packing
from pack_optimizer.report import container_render, render_boxes

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_INVALID_INPUT = 2
EXIT_INTERNAL_FAULT = 3


def load_input(path: Path) -> Any:
    return json.loads(path.read_text(encoding="utf-8"))


def print_summary(result: PackingResult) -> None:
    unpacked = result.requested_instances - result.packed_instances
    print("=" * 60)
    print(f"📦 Volume used : {result.total_volume_used_percentage:.2f}%")
    print(f"✅ Packed      : {result.packed_instances} / {result.requested_instances}")
    print(f"❌ Unpacked    : {unpacked}")
    for type_index, short in result.unpacked_counts.items():
        print(f"   type {type_index}: {short} short")
    if result.stop_reason is not StopReason.COMPLETED:
        print(f"⏱️ Stopped     : {result.stop_reason.value}")
    print(f"📝 {result.packing_notes}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="pack-optimizer", description="3D container packing optimizer")
    parser.add_argument("--input", required=True, help="Request JSON (containerDimensions, packages, allowRotation)")
    parser.add_argument("--output", help="Write the result JSON here")
    parser.add_argument("--max-seconds", type=float, default=None, help="Wall-clock search budget")
    parser.add_argument("--max-iterations", type=int, default=None, help="Candidate evaluation budget")
    parser.add_argument("--render", action="store_true", help="Include placementsRender/containerRender in the output")
    parser.add_argument("--log-level", default=None, help="Logging level (default from PACK_OPTIMIZER_LOG_LEVEL)")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = load_settings()
    logging.basicConfig(
        level=(args.log_level or settings.log_level).upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        req = parse_request(load_input(Path(args.input)))
    except (OSError, json.JSONDecodeError) as e:
        logger.error(f"cannot read {args.input}: {e}")
        return EXIT_INVALID_INPUT
    except InvalidInputError as e:
        logger.error(f"invalid input: {e} (field={e.field}, index={e.index})")
        return EXIT_INVALID_INPUT

    budget = make_budget(settings, max_seconds=args.max_seconds, max_iterations=args.max_iterations)
    try:
        result = optimize_packing(req, budget=budget)
    except InternalConsistencyError as e:
        logger.error(f"internal consistency fault: {e}")
        return EXIT_INTERNAL_FAULT

    print_summary(result)

    if args.output:
        payload = result.to_payload()
        if args.render:
            payload["placementsRender"] = render_boxes(req.packages, result)
            payload["containerRender"] = container_render(req.container)
        out_path = Path(args.output)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        print(f"💾 Result written to {out_path}")

    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
