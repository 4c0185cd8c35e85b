from __future__ import annotations

import logging
import time
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional

import requests

from whalegraph.adapters.chain.rate_limiter import backoff_sleep
from whalegraph.core.dto import Holder
from whalegraph.core.errors import DataSourceError
from whalegraph.core.models import DuneConfig
from whalegraph.ports.holder_source_port import HolderSourcePort

LOGGER = logging.getLogger(__name__)

_DONE = "QUERY_STATE_COMPLETED"
_FAILED = {"QUERY_STATE_FAILED", "QUERY_STATE_CANCELLED", "QUERY_STATE_EXPIRED"}


class DuneHolderAdapter(HolderSourcePort):
    """
    Runs the saved holder query on Dune and maps its rows to holders.

    Rows carry ``current_holders``, ``domains_owned`` and ``pct_of_supply``.
    Liquidity-pool holders (by name) are dropped.
    """

    def __init__(self, cfg: Optional[DuneConfig] = None, session: Optional[requests.Session] = None) -> None:
        cfg = cfg or DuneConfig.from_settings()
        self._cfg = cfg
        self._base_url = cfg.base_url.rstrip("/")
        self._session = session or requests.Session()

    def _call(self, method: str, path: str, **kwargs: Any) -> Dict[str, Any]:
        url = f"{self._base_url}/{path.lstrip('/')}"
        headers = {"X-Dune-API-Key": self._cfg.api_key}
        last_err: Optional[Exception] = None
        for attempt in range(self._cfg.max_retries):
            try:
                resp = self._session.request(method, url, headers=headers, timeout=self._cfg.timeout_sec, **kwargs)
                resp.raise_for_status()
                data = resp.json()
                if not isinstance(data, dict):
                    raise DataSourceError(f"Invalid Dune response: {data}")
                return data
            except (requests.RequestException, ValueError, DataSourceError) as e:
                last_err = e
                LOGGER.warning("Dune %s %s failed (attempt %d/%d): %s", method, path, attempt + 1, self._cfg.max_retries, e)
                if attempt < self._cfg.max_retries - 1:
                    backoff_sleep(attempt)
        raise DataSourceError(f"Dune failed after retries: {last_err}")

    def _execute(self, token_address: str) -> str:
        data = self._call(
            "POST",
            f"query/{self._cfg.query_id}/execute",
            json={"query_parameters": {"token_address": token_address}},
        )
        execution_id = data.get("execution_id")
        if not execution_id:
            raise DataSourceError(f"Dune did not return an execution id: {data}")
        return str(execution_id)

    def _wait_for_rows(self, execution_id: str) -> List[Dict[str, Any]]:
        for _ in range(self._cfg.max_polls):
            data = self._call("GET", f"execution/{execution_id}/results")
            state = str(data.get("state", ""))
            if state == _DONE:
                rows = (data.get("result") or {}).get("rows")
                return rows if isinstance(rows, list) else []
            if state in _FAILED:
                raise DataSourceError(f"Dune execution {execution_id} ended in {state}: {data.get('error')}")
            time.sleep(self._cfg.poll_interval_sec)
        raise DataSourceError(f"Dune execution {execution_id} did not complete in time")

    @staticmethod
    def _pct(val: Any) -> Decimal:
        try:
            d = Decimal(str(val))
        except (InvalidOperation, ValueError):
            return Decimal("0")
        return d if d.is_finite() else Decimal("0")

    @staticmethod
    def _name(val: Any) -> Optional[str]:
        # domains_owned comes back as a string or a list of names
        if isinstance(val, (list, tuple)):
            val = ", ".join(str(v) for v in val if v)
        return str(val) if val else None

    def filter_holders(self, holders: List[Holder]) -> List[Holder]:
        excluded = [n.lower() for n in self._cfg.excluded_names]
        kept: List[Holder] = []
        for h in holders:
            name = (h.display_name or "").lower()
            if name and any(x in name for x in excluded):
                continue
            kept.append(h)
        return kept

    def fetch_holders(self, token_address: str) -> List[Holder]:
        LOGGER.info("Running Dune query %s for token %s", self._cfg.query_id, token_address)
        execution_id = self._execute(token_address)
        rows = self._wait_for_rows(execution_id)
        if not rows:
            raise DataSourceError(f"No holder data returned from Dune for {token_address}")

        holders = [
            Holder(
                address=str(r.get("current_holders") or ""),
                display_name=self._name(r.get("domains_owned")),
                pct_of_supply=self._pct(r.get("pct_of_supply")),
            )
            for r in rows
            if r.get("current_holders")
        ]
        kept = self.filter_holders(holders)
        LOGGER.info("Filtered from %d to %d holders", len(holders), len(kept))
        return kept
