from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List

from whalegraph.core.dto import Holder


class HolderSourcePort(ABC):

    @abstractmethod
    def fetch_holders(self, token_address: str) -> List[Holder]:
        raise NotImplementedError
