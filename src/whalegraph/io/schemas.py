from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, List

from whalegraph.core.dto import Holder
from whalegraph.core.models import (
    HolderAnalysis,
    HolderRelations,
    HolderTransactionsResult,
    TraceResult,
    TransferEdge,
    TransferGraph,
)


def _dec_to_str(x: Decimal) -> str:
    # keep as string for JSON precision safety
    return format(x, "f")


def edge_to_dict(e: TransferEdge) -> Dict[str, Any]:
    return {
        "to": e.to,
        "amount": _dec_to_str(e.amount),
        "timestamp": e.timestamp,
        "time": e.formatted_time,
        "type": e.flow_type.value,
    }


def graph_to_dict(g: TransferGraph) -> Dict[str, List[Dict[str, Any]]]:
    return {origin: [edge_to_dict(e) for e in edges] for origin, edges in g.items()}


def trace_result_to_dict(r: TraceResult) -> Dict[str, Any]:
    return {
        "root_addresses": list(r.root_addresses),
        "graph": graph_to_dict(r.graph),
        "depths": dict(r.depths) if r.depths is not None else None,
        "call_count": r.call_count,
        "visited": list(r.visited),
        "truncated": r.truncated,
    }


def holder_to_dict(h: Holder) -> Dict[str, Any]:
    return {
        "address": h.address,
        "display_name": h.display_name,
        "pct_of_supply": _dec_to_str(h.pct_of_supply),
    }


def relations_to_dict(rel: HolderRelations) -> Dict[str, Any]:
    return {
        "incoming_addresses": list(rel.incoming_addresses),
        "outgoing_addresses": list(rel.outgoing_addresses),
        "total_in_amount": _dec_to_str(rel.total_in_amount),
        "total_out_amount": _dec_to_str(rel.total_out_amount),
        "transactions": [
            {
                "from": t.from_address,
                "to": t.to,
                "amount": _dec_to_str(t.amount),
                "timestamp": t.timestamp,
                "type": t.flow_type.value,
            }
            for t in rel.transactions
        ],
    }


def holder_analysis_to_dict(a: HolderAnalysis) -> Dict[str, Any]:
    return {
        "token_address": a.token_address,
        "top_holders": [holder_to_dict(h) for h in a.top_holders],
        "related_addresses": {addr: relations_to_dict(rel) for addr, rel in a.relations.items()},
        "graphs": {addr: trace_result_to_dict(r) for addr, r in a.graphs.items()},
        "groups": [
            {"holders": list(g.holders), "shared_addresses": list(g.shared_addresses)}
            for g in a.groups
        ],
        "summary": {
            "total_holders": a.total_holders,
            "total_related_addresses": a.total_related_addresses,
            "total_transactions": a.total_transactions,
        },
    }


def holder_transactions_to_dict(r: HolderTransactionsResult) -> Dict[str, Any]:
    return {
        "top_holders": [holder_to_dict(h) for h in r.top_holders],
        "transaction_graph": trace_result_to_dict(r.graph),
    }
