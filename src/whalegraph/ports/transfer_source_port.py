from __future__ import annotations

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import List, Optional

from whalegraph.core.dto import RawTransfer
from whalegraph.core.enums import FlowType


class TransferSourcePort(ABC):
    """
    Abstract Class for querying an address's largest transfers.
    """

    @abstractmethod
    def get_transfers(
        self,
        address: str,
        flow_type: FlowType,
        min_amount: Decimal,
        page: int = 1,
        page_size: Optional[int] = None,
    ) -> List[RawTransfer]:
        raise NotImplementedError
