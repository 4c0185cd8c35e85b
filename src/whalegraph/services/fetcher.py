from __future__ import annotations

import logging
import threading
from decimal import Decimal
from typing import List, Optional

from whalegraph.adapters.chain.rate_limiter import FixedDelayLimiter
from whalegraph.core.dto import RawTransfer
from whalegraph.core.enums import FlowType
from whalegraph.core.errors import DataSourceError
from whalegraph.ports.transfer_source_port import TransferSourcePort

LOGGER = logging.getLogger(__name__)


class RateLimitedFetcher:
    """
    Single entry point to the transfer source.

    Every call waits a fixed delay first, then bumps the call counter. The
    counter is telemetry only; callers reset it at the start of a traversal.
    Failures are never retried here.
    """

    def __init__(self, source: TransferSourcePort, delay_sec: float = 0.1) -> None:
        self._source = source
        self._rl = FixedDelayLimiter(delay_sec)
        self._lock = threading.Lock()
        self._call_count = 0

    @property
    def call_count(self) -> int:
        return self._call_count

    def reset_call_count(self) -> None:
        with self._lock:
            self._call_count = 0

    def call(
        self,
        address: str,
        flow_type: FlowType,
        min_amount: Decimal,
        page: int = 1,
        page_size: Optional[int] = None,
    ) -> List[RawTransfer]:
        flow = FlowType(flow_type)
        self._rl.wait()
        with self._lock:
            self._call_count += 1
            n = self._call_count
        LOGGER.debug("API call #%d: %s (%s)", n, address, flow.value)

        try:
            return self._source.get_transfers(address, flow, min_amount, page=page, page_size=page_size)
        except DataSourceError as e:
            LOGGER.warning("Transfer query failed for %s (%s): %s", address, flow.value, e)
            raise
        except Exception as e:
            LOGGER.warning("Transfer query failed for %s (%s): %s", address, flow.value, e)
            raise DataSourceError(f"Transfer query failed for {address} ({flow.value}): {e}") from e

    def first(self, address: str, flow_type: FlowType, min_amount: Decimal) -> Optional[RawTransfer]:
        """Largest qualifying transfer for one direction, or None."""
        page = self.call(address, flow_type, min_amount)
        return page[0] if page else None
