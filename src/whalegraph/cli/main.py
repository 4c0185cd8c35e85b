from __future__ import annotations

import argparse
import logging
import sys
import time
from decimal import Decimal, InvalidOperation
from typing import Optional

from whalegraph.config import settings
from whalegraph.core.depth import DEPTH_STRATEGIES
from whalegraph.core.errors import ConfigError, WhaleGraphError
from whalegraph.core.models import SolscanConfig, TraceConfig
from whalegraph.services.explorer import RelationExplorer
from whalegraph.services.fetcher import RateLimitedFetcher
from whalegraph.services.analysis_service import HolderAnalysisService
from whalegraph.io.output_writer import write_json
from whalegraph.io.schemas import holder_analysis_to_dict, holder_transactions_to_dict, trace_result_to_dict

from whalegraph.adapters.chain.solscan_transfer_adapter import SolscanTransferAdapter
from whalegraph.adapters.chain.static_transfer_adapter import StaticTransferAdapter
from whalegraph.adapters.holders.dune_holder_adapter import DuneHolderAdapter
from whalegraph.adapters.holders.static_holder_adapter import StaticHolderAdapter

LOGGER = logging.getLogger(__name__)


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="whalegraph", description="Fund-flow relations between a token's largest holders")
    target = p.add_mutually_exclusive_group(required=True)
    target.add_argument("--address", help="Trace the relation graph of one address")
    target.add_argument("--token", help="Analyze the top holders of a token")
    p.add_argument("--top", type=int, default=settings.TOP_HOLDERS, help="Number of top holders to analyze")
    p.add_argument("--shallow", action="store_true", help="Token mode: one inbound lookup per holder instead of full traces")
    p.add_argument("--min-amount", type=str, default=None, help="Ignore transfers below this amount (SOL)")
    p.add_argument("--max-depth", type=int, default=settings.TRACE_MAX_DEPTH, help="Traversal depth bound")
    p.add_argument("--delay", type=float, default=None, help="Seconds to wait before each API call")
    p.add_argument("--max-runtime", type=float, default=0, help="Wall clock budget per trace in seconds (0=unlimited)")
    p.add_argument("--depth-strategy", choices=DEPTH_STRATEGIES, default="bfs", help="How addresses get their depth labels")
    p.add_argument("--workers", type=int, default=settings.BATCH_MAX_WORKERS, help="Concurrent lookups for --shallow")
    p.add_argument("--out", default="out", help="Output folder")
    p.add_argument("--use-static", action="store_true", help="Use static adapters (dev/testing)")
    p.add_argument("--log-level", default="INFO", help="Logging level")
    return p


def _make_progress_reporter(max_depth: int):
    started = time.monotonic()

    def progress(event: str, data: dict) -> None:
        if event == "start":
            print(f"Tracing {data['address']} (max depth {max_depth})")
        elif event == "visit":
            LOGGER.debug(
                "depth %d/%d: %d pending, %d visited, %d edges",
                data["depth"], max_depth, data["queue"], data["processed"], data["edges"],
            )
        elif event == "done":
            print(
                f"Done in {time.monotonic() - started:.1f}s: "
                f"{data['addresses']} addresses, {data['edges']} edges, {data['calls']} API calls"
            )
        elif event == "error":
            print(f"Error: {data.get('message', 'Unknown error')}", file=sys.stderr)

    return progress


def _parse_amount(raw: Optional[str], default: Decimal) -> Decimal:
    if raw is None:
        return default
    try:
        return Decimal(raw)
    except InvalidOperation:
        raise ValueError(f"Invalid amount: {raw!r}") from None


def main(argv: Optional[list] = None) -> int:
    args = build_arg_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    default_min = settings.SHALLOW_MIN_AMOUNT if (args.token and args.shallow) else settings.TRACE_MIN_AMOUNT
    try:
        min_amount = _parse_amount(args.min_amount, default_min)
    except ValueError as exc:
        print(str(exc), file=sys.stderr)
        return 2
    progress = _make_progress_reporter(args.max_depth)

    # Ports
    try:
        if args.use_static:
            source = StaticTransferAdapter()
            holders = StaticHolderAdapter()
            delay = 0.0 if args.delay is None else args.delay
        else:
            solscan_cfg = SolscanConfig.from_settings()
            source = SolscanTransferAdapter(solscan_cfg)
            holders = DuneHolderAdapter() if args.token else StaticHolderAdapter()
            delay = solscan_cfg.call_delay_sec if args.delay is None else args.delay
    except ConfigError as exc:
        progress("error", {"message": str(exc)})
        return 2

    fetcher = RateLimitedFetcher(source, delay_sec=delay)
    explorer = RelationExplorer(fetcher, max_depth=args.max_depth)

    try:
        if args.address:
            cfg = TraceConfig(
                address=args.address,
                min_amount=min_amount,
                max_depth=args.max_depth,
                max_runtime_sec=args.max_runtime,
                depth_strategy=args.depth_strategy,
            )
            result = explorer.trace(cfg, on_progress=progress)
            payload = trace_result_to_dict(result)
            filename = "graph.json"
        else:
            svc = HolderAnalysisService(holders=holders, explorer=explorer)
            if args.shallow:
                shallow = svc.analyze_transactions(args.token, top_n=args.top, min_amount=min_amount, max_workers=args.workers)
                payload = holder_transactions_to_dict(shallow)
            else:
                analysis = svc.analyze_related_addresses(
                    args.token,
                    top_n=args.top,
                    min_amount=min_amount,
                    max_depth=args.max_depth,
                    depth_strategy=args.depth_strategy,
                    max_runtime_sec=args.max_runtime,
                    on_progress=progress,
                )
                payload = holder_analysis_to_dict(analysis)
            filename = "analysis.json"
    except (WhaleGraphError, ValueError) as exc:
        progress("error", {"message": f"{exc.__class__.__name__}: {exc}"})
        return 1

    path = write_json(payload, args.out, filename)
    print(f"Wrote: {path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
