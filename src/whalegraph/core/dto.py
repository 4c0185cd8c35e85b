from dataclasses import dataclass
from decimal import Decimal
from typing import Optional


@dataclass(frozen=True)
class RawTransfer:
    from_address: str
    to_address: str
    raw_amount: int         # amount in raw units (before decimals)
    decimals: int
    block_time: int         # unix seconds


@dataclass(frozen=True)
class Holder:
    address: str
    display_name: Optional[str]
    pct_of_supply: Decimal
