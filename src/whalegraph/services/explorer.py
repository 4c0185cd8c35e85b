from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Callable, Dict, List, Optional, Sequence, Set, Tuple, Union

from whalegraph.core.depth import classify_depths, layers
from whalegraph.core.dto import RawTransfer
from whalegraph.core.enums import FlowType
from whalegraph.core.errors import DataSourceError
from whalegraph.core.models import TraceConfig, TraceResult, TransferGraph, merge_graphs
from whalegraph.core.normalizer import normalize_transfer
from whalegraph.services.fetcher import RateLimitedFetcher

LOGGER = logging.getLogger(__name__)

ProgressFn = Callable[[str, dict], None]
TxKey = Tuple[str, str, int]


@dataclass(frozen=True)
class _expandItem:
    address: str
    depth: int


@dataclass(frozen=True)
class _acceptItem:
    address: str
    depth: int
    flow_type: FlowType
    record: Optional[RawTransfer]


@dataclass
class TraversalSession:
    """State owned by exactly one top-level traversal."""

    root: str
    min_amount: Decimal
    max_depth: int
    graph: TransferGraph = field(default_factory=TransferGraph)
    visited: Dict[str, None] = field(default_factory=dict)   # ordered set
    seen_tx_keys: Set[TxKey] = field(default_factory=set)
    deadline: Optional[float] = None
    truncated: bool = False

    def expired(self) -> bool:
        return self.deadline is not None and time.monotonic() >= self.deadline


class RelationExplorer:
    """
    Builds the relation graph around an address.

    - Traversal: depth-first, bounded by max_depth
    - Data: the single largest inbound and outbound transfer per address
    - Guards: visited set (no re-expansion), transaction keys (no duplicate edges)

    The work stack reproduces recursive order exactly: a node's inbound
    branch is fully explored before its outbound edge is even considered.
    """

    def __init__(self, fetcher: RateLimitedFetcher, max_depth: int = 2) -> None:
        self.fetcher = fetcher
        self.max_depth = max_depth

    def trace(self, cfg: TraceConfig, on_progress: Optional[ProgressFn] = None) -> TraceResult:
        result = self.explore(
            cfg.address,
            cfg.min_amount,
            max_depth=cfg.max_depth,
            max_runtime_sec=cfg.max_runtime_sec,
            on_progress=on_progress,
        )
        result.depths = classify_depths(result.graph, cfg.address, strategy=cfg.depth_strategy)
        self._log_layers(result)
        return result

    def explore(
        self,
        address: str,
        min_amount: Union[Decimal, int, float, str],
        max_depth: Optional[int] = None,
        max_runtime_sec: float = 0,
        on_progress: Optional[ProgressFn] = None,
    ) -> TraceResult:
        if not address:
            raise ValueError("address must be non-empty")

        emit = on_progress or (lambda event, data: None)
        session = TraversalSession(
            root=address,
            min_amount=Decimal(str(min_amount)),
            max_depth=self.max_depth if max_depth is None else int(max_depth),
        )
        if max_runtime_sec and max_runtime_sec > 0:
            session.deadline = time.monotonic() + float(max_runtime_sec)

        self.fetcher.reset_call_count()
        LOGGER.info("Starting relation trace for %s (min amount %s, max depth %d)", address, session.min_amount, session.max_depth)
        emit("start", {"address": address, "max_depth": session.max_depth})

        stack: List[Union[_expandItem, _acceptItem]] = [_expandItem(address, 0)]
        while stack:
            if session.expired():
                session.truncated = True
                LOGGER.warning("Trace for %s stopped at its time budget with %d task(s) pending", address, len(stack))
                break

            item = stack.pop()
            if isinstance(item, _expandItem):
                stack.extend(self._expand(session, item, emit))
                emit("visit", {
                    "depth": item.depth,
                    "queue": len(stack),
                    "processed": len(session.visited),
                    "edges": session.graph.edge_count,
                })
            else:
                stack.extend(self._accept(session, item))

        result = TraceResult(
            root_addresses=[address],
            graph=session.graph,
            call_count=self.fetcher.call_count,
            visited=list(session.visited),
            truncated=session.truncated,
        )
        LOGGER.info(
            "Trace for %s done: %d address(es) expanded, %d edge(s), %d API call(s)",
            address, len(result.visited), result.graph.edge_count, result.call_count,
        )
        emit("done", {"edges": result.graph.edge_count, "addresses": len(result.graph.addresses()), "calls": result.call_count})
        return result

    # -------------------------
    # Work items
    # -------------------------

    def _expand(self, session: TraversalSession, item: _expandItem, emit: ProgressFn) -> List[_acceptItem]:
        addr, depth = item.address, item.depth
        if addr in session.visited:
            LOGGER.debug("Address already visited: %s", addr)
            return []
        session.visited[addr] = None

        if depth >= session.max_depth:
            LOGGER.debug("Max depth reached (%d) at %s", session.max_depth, addr)
            return []

        LOGGER.debug("Analyzing depth %d for address %s", depth, addr)
        emit("fetch", {"address": addr, "phase": "in"})
        in_rec = self._first(addr, FlowType.IN, session.min_amount)
        emit("fetch", {"address": addr, "phase": "out"})
        out_rec = self._first(addr, FlowType.OUT, session.min_amount)

        # popped in reverse: inbound first
        return [
            _acceptItem(addr, depth, FlowType.OUT, out_rec),
            _acceptItem(addr, depth, FlowType.IN, in_rec),
        ]

    def _accept(self, session: TraversalSession, item: _acceptItem) -> List[_expandItem]:
        rec = item.record
        if rec is None:
            return []

        addr = item.address
        if item.flow_type == FlowType.IN:
            counterparty = rec.from_address
            origin = counterparty
            edge = normalize_transfer(rec, FlowType.IN, to=addr)
            key = (counterparty, addr, edge.timestamp)
        else:
            counterparty = rec.to_address
            origin = addr
            edge = normalize_transfer(rec, FlowType.OUT, to=counterparty)
            key = (addr, counterparty, edge.timestamp)

        if edge.amount < session.min_amount:
            return []
        if key in session.seen_tx_keys:
            LOGGER.debug("Skipping already recorded transfer %s -> %s at %d", key[0], key[1], key[2])
            return []
        session.seen_tx_keys.add(key)
        session.graph.add_edge(origin, edge)

        if item.depth < session.max_depth - 1:
            return [_expandItem(counterparty, item.depth + 1)]
        return []

    def _first(self, address: str, flow_type: FlowType, min_amount: Decimal) -> Optional[RawTransfer]:
        try:
            return self.fetcher.first(address, flow_type, min_amount)
        except DataSourceError as e:
            LOGGER.warning("Treating %s transfers of %s as empty after error: %s", flow_type.value, address, e)
            return None

    # -------------------------
    # Batch (shallow) graph
    # -------------------------

    def transaction_graph(
        self,
        addresses: Sequence[str],
        min_amount: Union[Decimal, int, float, str] = Decimal("0.5"),
        max_workers: int = 8,
    ) -> TraceResult:
        """
        One inbound lookup per seed address, fetched concurrently, merged in
        seed order once every lookup has resolved.
        """
        threshold = Decimal(str(min_amount))
        self.fetcher.reset_call_count()
        if not addresses:
            return TraceResult(root_addresses=[])

        workers = max(1, min(int(max_workers), len(addresses)))
        with ThreadPoolExecutor(max_workers=workers) as pool:
            graphs = list(pool.map(lambda a: self._latest_inbound(a, threshold), addresses))

        merged = merge_graphs(graphs)
        LOGGER.info(
            "Transaction graph over %d address(es): %d sender(s), %d edge(s), %d API call(s)",
            len(addresses), len(merged), merged.edge_count, self.fetcher.call_count,
        )
        return TraceResult(
            root_addresses=list(addresses),
            graph=merged,
            call_count=self.fetcher.call_count,
            visited=list(addresses),
        )

    def _latest_inbound(self, address: str, min_amount: Decimal) -> TransferGraph:
        g = TransferGraph()
        rec = self._first(address, FlowType.IN, min_amount)
        if rec is None:
            return g
        edge = normalize_transfer(rec, FlowType.IN, to=rec.to_address)
        if edge.amount >= min_amount:
            g.add_edge(rec.from_address, edge)
        return g

    # -------------------------
    # Helpers
    # -------------------------

    @staticmethod
    def _log_layers(result: TraceResult) -> None:
        if not result.depths or not LOGGER.isEnabledFor(logging.DEBUG):
            return
        for depth, addrs in layers(result.depths).items():
            for addr in addrs:
                if addr not in result.graph:
                    continue
                for e in result.graph[addr]:
                    LOGGER.debug(
                        "depth %d: %s -> %s %s SOL at %s (%s)",
                        depth, addr, e.to, e.amount, e.formatted_time, e.flow_type.value,
                    )
