from whalegraph.core.dto import Holder
from whalegraph.ports.holder_source_port import HolderSourcePort
from typing import Dict, List, Optional

class StaticHolderAdapter(HolderSourcePort):
    def __init__(self, holders: Optional[Dict[str, List[Holder]]] = None):
        self._holders = holders or {}

    def fetch_holders(self, token_address):
        return list(self._holders.get(token_address, []))
