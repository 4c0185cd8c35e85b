from __future__ import annotations

from decimal import Decimal

from whalegraph.core.dto import RawTransfer
from whalegraph.core.enums import FlowType
from whalegraph.core.models import TransferEdge


def normalize_amount(raw_amount: int, decimals: int) -> Decimal:
    # token amount normalization
    return Decimal(raw_amount) / (Decimal(10) ** Decimal(decimals))


def normalize_transfer(raw: RawTransfer, flow_type: FlowType, to: str) -> TransferEdge:
    """
    Shape one raw ledger record into an edge.

    The direction comes from the query that produced the record, and ``to`` is
    chosen by the caller (the queried address for inbound transfers, the
    counterparty for outbound ones).
    """
    return TransferEdge(
        to=to,
        amount=normalize_amount(raw.raw_amount, raw.decimals),
        timestamp=int(raw.block_time),
        flow_type=FlowType(flow_type),
    )
