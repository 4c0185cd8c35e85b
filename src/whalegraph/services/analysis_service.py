from __future__ import annotations

import logging
from decimal import Decimal
from typing import Dict, List, Optional, Union

from whalegraph.core.dto import Holder
from whalegraph.core.enums import FlowType
from whalegraph.core.grouping import find_whale_groups
from whalegraph.core.models import (
    HolderAnalysis,
    HolderRelations,
    HolderTransactionsResult,
    RelationTransaction,
    TraceConfig,
    TransferGraph,
)
from whalegraph.ports.holder_source_port import HolderSourcePort
from whalegraph.services.explorer import ProgressFn, RelationExplorer

LOGGER = logging.getLogger(__name__)


class HolderAnalysisService:
    """
    Looks at how a token's largest holders move funds between each other.

    Two modes:
    - transaction graph: one inbound lookup per top holder, fetched concurrently
    - related addresses: a full relation trace per top holder, summarized and
      grouped into whale groups
    """

    def __init__(self, holders: HolderSourcePort, explorer: RelationExplorer) -> None:
        self.holders = holders
        self.explorer = explorer

    def top_holders(self, token_address: str, top_n: int = 10) -> List[Holder]:
        if top_n <= 0:
            raise ValueError("top_n must be > 0")
        holders = self.holders.fetch_holders(token_address)
        LOGGER.info("Fetched %d holder(s) for %s", len(holders), token_address)

        top = sorted(holders, key=lambda h: h.pct_of_supply, reverse=True)[:top_n]
        for i, h in enumerate(top, start=1):
            LOGGER.info("%d. %s (%s) %.2f%%", i, h.address, h.display_name or "N/A", h.pct_of_supply * 100)
        return top

    def analyze_transactions(
        self,
        token_address: str,
        top_n: int = 10,
        min_amount: Union[Decimal, int, float, str] = Decimal("0.5"),
        max_workers: int = 8,
    ) -> HolderTransactionsResult:
        top = self.top_holders(token_address, top_n)
        result = self.explorer.transaction_graph(
            [h.address for h in top],
            min_amount=min_amount,
            max_workers=max_workers,
        )
        return HolderTransactionsResult(top_holders=top, graph=result)

    def analyze_related_addresses(
        self,
        token_address: str,
        top_n: int = 10,
        min_amount: Union[Decimal, int, float, str] = Decimal("10"),
        max_depth: int = 2,
        depth_strategy: str = "bfs",
        max_runtime_sec: float = 0,
        on_progress: Optional[ProgressFn] = None,
    ) -> HolderAnalysis:
        top = self.top_holders(token_address, top_n)
        analysis = HolderAnalysis(token_address=token_address, top_holders=top)

        for h in top:
            cfg = TraceConfig(
                address=h.address,
                min_amount=Decimal(str(min_amount)),
                max_depth=max_depth,
                max_runtime_sec=max_runtime_sec,
                depth_strategy=depth_strategy,
            )
            result = self.explorer.trace(cfg, on_progress=on_progress)
            analysis.graphs[h.address] = result

            relations = summarize_relations(h.address, result.graph)
            analysis.relations[h.address] = relations
            analysis.total_related_addresses += len(relations.incoming_addresses) + len(relations.outgoing_addresses)
            analysis.total_transactions += len(relations.transactions)
            LOGGER.info(
                "Holder %s: %d incoming, %d outgoing, %d transfer(s)",
                h.address, len(relations.incoming_addresses), len(relations.outgoing_addresses), len(relations.transactions),
            )

        analysis.total_holders = len(top)
        analysis.groups = find_whale_groups({a: r.graph for a, r in analysis.graphs.items()})
        LOGGER.info(
            "Analysis of %s done: %d holder(s), %d related address(es), %d transfer(s), %d whale group(s)",
            token_address, analysis.total_holders, analysis.total_related_addresses,
            analysis.total_transactions, len(analysis.groups),
        )
        return analysis


def summarize_relations(address: str, graph: TransferGraph) -> HolderRelations:
    incoming: Dict[str, None] = {}
    outgoing: Dict[str, None] = {}
    rel = HolderRelations(address=address)

    for origin, e in graph.edges():
        rel.transactions.append(
            RelationTransaction(
                from_address=origin,
                to=e.to,
                amount=e.amount,
                timestamp=e.timestamp,
                flow_type=e.flow_type,
            )
        )
        if e.flow_type == FlowType.IN:
            incoming.setdefault(origin, None)
            rel.total_in_amount += e.amount
        else:
            outgoing.setdefault(e.to, None)
            rel.total_out_amount += e.amount

    rel.incoming_addresses = list(incoming)
    rel.outgoing_addresses = list(outgoing)
    return rel
