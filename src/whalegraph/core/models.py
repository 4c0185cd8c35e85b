from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from whalegraph.config import settings
from whalegraph.core.dto import Holder
from whalegraph.core.enums import FlowType
from whalegraph.core.errors import ConfigError


# Configuration models

@dataclass(frozen=True)
class TraceConfig:
    """
    User input / run configuration for a relation trace.
    """

    address: str
    min_amount: Decimal | int | float = Decimal("10")
    max_depth: int = 2

    # optional knobs
    max_runtime_sec: float = 0      # 0 = unlimited
    depth_strategy: str = "bfs"


@dataclass(frozen=True)
class SolscanConfig:
    api_key: str
    base_url: str
    token_address: str
    timeout_sec: int = 15
    call_delay_sec: float = 0.1
    page_size: int = 10
    activity_type: str = "ACTIVITY_SPL_TRANSFER"

    @classmethod
    def from_settings(cls) -> "SolscanConfig":
        if not settings.SOLSCAN_API_KEY:
            raise ConfigError("Missing SOLSCAN_API_KEY environment variable")
        if not settings.SOLSCAN_API_URL:
            raise ConfigError("Missing SOLSCAN_API_URL environment variable")
        return cls(
            api_key=settings.SOLSCAN_API_KEY,
            base_url=settings.SOLSCAN_API_URL,
            token_address=settings.SOL_TOKEN_ADDRESS,
            timeout_sec=settings.SOLSCAN_TIMEOUT_SEC,
            call_delay_sec=settings.SOLSCAN_CALL_DELAY_SEC,
            page_size=settings.SOLSCAN_PAGE_SIZE,
            activity_type=settings.SOLSCAN_ACTIVITY_TYPE,
        )


@dataclass(frozen=True)
class DuneConfig:
    api_key: str
    base_url: str
    query_id: int
    timeout_sec: int = 30
    poll_interval_sec: float = 2.0
    max_polls: int = 90
    max_retries: int = 3
    excluded_names: Tuple[str, ...] = ("raydiumpool.sol",)

    @classmethod
    def from_settings(cls) -> "DuneConfig":
        if not settings.DUNE_API_KEY:
            raise ConfigError("Missing DUNE_API_KEY environment variable")
        return cls(
            api_key=settings.DUNE_API_KEY,
            base_url=settings.DUNE_API_URL,
            query_id=settings.DUNE_QUERY_ID,
            timeout_sec=settings.DUNE_TIMEOUT_SEC,
            poll_interval_sec=settings.DUNE_POLL_INTERVAL_SEC,
            max_polls=settings.DUNE_MAX_POLLS,
            max_retries=settings.DUNE_MAX_RETRIES,
            excluded_names=tuple(settings.EXCLUDED_HOLDER_NAMES),
        )


# Graph models

@dataclass(frozen=True)
class TransferEdge:

    to: str
    amount: Decimal
    timestamp: int              # unix seconds, source of truth
    flow_type: FlowType

    @property
    def formatted_time(self) -> str:
        return dt.datetime.fromtimestamp(self.timestamp, tz=dt.timezone.utc).strftime("%Y-%m-%d %H:%M:%S")


class TransferGraph:
    """
    Insertion-ordered multimap: origin address -> edges, in traversal order.

    For an IN edge the origin is the counterparty that sent funds to
    ``edge.to``; for an OUT edge the origin is the address that sent them.
    Either way the origin is the sender.
    """

    def __init__(self) -> None:
        self._adj: Dict[str, List[TransferEdge]] = {}

    def add_edge(self, origin: str, edge: TransferEdge) -> None:
        self._adj.setdefault(origin, []).append(edge)

    def extend(self, other: "TransferGraph") -> None:
        for origin, edges in other.items():
            self._adj.setdefault(origin, []).extend(edges)

    def items(self) -> Iterator[Tuple[str, List[TransferEdge]]]:
        return iter(self._adj.items())

    def edges(self) -> Iterator[Tuple[str, TransferEdge]]:
        for origin, edges in self._adj.items():
            for e in edges:
                yield origin, e

    def addresses(self) -> List[str]:
        """Every address touched by an edge, first-seen order."""
        seen: Dict[str, None] = {}
        for origin, e in self.edges():
            seen.setdefault(origin, None)
            seen.setdefault(e.to, None)
        return list(seen)

    @property
    def edge_count(self) -> int:
        return sum(len(v) for v in self._adj.values())

    def to_dict(self) -> Dict[str, List[TransferEdge]]:
        return {k: list(v) for k, v in self._adj.items()}

    def __getitem__(self, origin: str) -> List[TransferEdge]:
        return self._adj[origin]

    def __contains__(self, origin: object) -> bool:
        return origin in self._adj

    def __len__(self) -> int:
        return len(self._adj)

    def __bool__(self) -> bool:
        return bool(self._adj)

    def __repr__(self) -> str:
        return f"TransferGraph({self._adj!r})"


def merge_graphs(graphs: Iterable[TransferGraph]) -> TransferGraph:
    merged = TransferGraph()
    for g in graphs:
        merged.extend(g)
    return merged


@dataclass
class TraceResult:

    root_addresses: List[str]
    graph: TransferGraph = field(default_factory=TransferGraph)
    depths: Optional[Dict[str, int]] = None
    call_count: int = 0
    visited: List[str] = field(default_factory=list)
    truncated: bool = False


# Holder analysis models

@dataclass(frozen=True)
class RelationTransaction:
    from_address: str
    to: str
    amount: Decimal
    timestamp: int
    flow_type: FlowType


@dataclass
class HolderRelations:

    address: str
    incoming_addresses: List[str] = field(default_factory=list)
    outgoing_addresses: List[str] = field(default_factory=list)
    total_in_amount: Decimal = Decimal("0")
    total_out_amount: Decimal = Decimal("0")
    transactions: List[RelationTransaction] = field(default_factory=list)


@dataclass
class WhaleGroup:

    holders: List[str]
    shared_addresses: List[str]


@dataclass
class HolderAnalysis:

    token_address: str
    top_holders: List[Holder]
    relations: Dict[str, HolderRelations] = field(default_factory=dict)
    graphs: Dict[str, TraceResult] = field(default_factory=dict)
    groups: List[WhaleGroup] = field(default_factory=list)

    total_holders: int = 0
    total_related_addresses: int = 0
    total_transactions: int = 0


@dataclass
class HolderTransactionsResult:

    top_holders: List[Holder]
    graph: TraceResult
