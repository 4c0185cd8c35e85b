from whalegraph.core.dto import RawTransfer
from whalegraph.core.enums import FlowType
from whalegraph.core.errors import DataSourceError
from whalegraph.core.normalizer import normalize_amount
from whalegraph.ports.transfer_source_port import TransferSourcePort
from typing import Iterable, List, Optional, Set, Tuple

class StaticTransferAdapter(TransferSourcePort):
    def __init__(self,
                 transfers: Optional[List[RawTransfer]] = None,
                 failing: Optional[Iterable[Tuple[str, FlowType]]] = None,
                 filter_amount: bool = True,
                 ):
        self._transfers = transfers or []
        self._failing: Set[Tuple[str, FlowType]] = {(a, FlowType(f)) for a, f in (failing or [])}
        self._filter_amount = filter_amount
        self.calls: List[Tuple[str, FlowType]] = []

    def get_transfers(self, address, flow_type, min_amount, page = 1, page_size = None):
        flow = FlowType(flow_type)
        self.calls.append((address, flow))
        if (address, flow) in self._failing:
            raise DataSourceError(f"static failure for {address} ({flow.value})")

        if flow == FlowType.IN:
            items = [t for t in self._transfers if t.to_address == address]
        else:
            items = [t for t in self._transfers if t.from_address == address]
        if self._filter_amount:
            items = [t for t in items if normalize_amount(t.raw_amount, t.decimals) >= min_amount]

        # largest first, like the amount-filtered upstream query
        items.sort(key=lambda x: (normalize_amount(x.raw_amount, x.decimals), x.block_time), reverse=True)
        page_size = page_size or 10
        start = (page - 1) * page_size
        return items[start:start + page_size]
