import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional

import requests

from whalegraph.core.dto import RawTransfer
from whalegraph.core.enums import FlowType
from whalegraph.core.errors import DataSourceError, MalformedResponseError, RateLimitError
from whalegraph.core.models import SolscanConfig
from whalegraph.ports.transfer_source_port import TransferSourcePort

LOGGER = logging.getLogger(__name__)


class SolscanTransferAdapter(TransferSourcePort):
    """
    Queries Solscan's ``account/transfer`` endpoint for SOL transfers.

    One request per call, no retries: throttling is handled upstream of this
    adapter by the fetcher's fixed delay.
    """

    def __init__(self, cfg: Optional[SolscanConfig] = None, session: Optional[requests.Session] = None) -> None:
        cfg = cfg or SolscanConfig.from_settings()
        self._url = f"{cfg.base_url.rstrip('/')}/account/transfer"
        self._api_key = cfg.api_key
        self._token = cfg.token_address
        self._activity_type = cfg.activity_type
        self._timeout = cfg.timeout_sec
        self._page_size = cfg.page_size
        self._session = session or requests.Session()

    # ---------- internal ----------

    def _call(self, params: Dict[str, Any]) -> Dict[str, Any]:
        try:
            resp = self._session.get(
                self._url,
                params=params,
                headers={"token": self._api_key},
                timeout=self._timeout,
            )
        except requests.RequestException as e:
            raise DataSourceError(f"Solscan request failed: {e}") from e

        if resp.status_code == 429:
            raise RateLimitError("Solscan rate limit reached")
        try:
            resp.raise_for_status()
            data = resp.json()
        except (requests.RequestException, ValueError) as e:
            raise DataSourceError(f"Solscan request failed: {e}") from e

        if not isinstance(data, dict):
            raise MalformedResponseError(f"Invalid Solscan response: {data!r}")
        if data.get("success") is not True:
            raise DataSourceError(f"Solscan returned failure: {data.get('errors') or data}")
        return data

    @staticmethod
    def _to_raw(r: Any) -> RawTransfer:
        try:
            return RawTransfer(
                from_address=str(r["from_address"]),
                to_address=str(r["to_address"]),
                raw_amount=int(r["amount"]),
                decimals=int(r["token_decimals"]),
                block_time=int(r["block_time"]),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise MalformedResponseError(f"Invalid transfer record: {r!r}") from e

    # ---------- port methods ----------

    def get_transfers(
        self,
        address: str,
        flow_type: FlowType,
        min_amount: Decimal,
        page: int = 1,
        page_size: Optional[int] = None,
    ) -> List[RawTransfer]:
        data = self._call({
            "address": address,
            "activity_type[]": self._activity_type,
            "token": self._token,
            "amount[]": str(min_amount),
            "flow": FlowType(flow_type).value,
            "page": page,
            "page_size": page_size or self._page_size,
        })

        rows = data.get("data")
        if not isinstance(rows, list):
            raise MalformedResponseError(f"Solscan response has no transfer list: {data!r}")

        LOGGER.debug("Solscan returned %d %s transfer(s) for %s", len(rows), FlowType(flow_type).value, address)
        out: List[RawTransfer] = []
        for r in rows:
            try:
                out.append(self._to_raw(r))
            except MalformedResponseError as e:
                LOGGER.debug("Skipping %s", e)
        if rows and not out:
            raise MalformedResponseError(f"No valid transfer record in Solscan response for {address}")
        return out
