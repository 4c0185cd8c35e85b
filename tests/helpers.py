from decimal import Decimal

from whalegraph.core.dto import RawTransfer

LAMPORTS = 9


def tx(frm: str, to: str, amount, ts: int, decimals: int = LAMPORTS) -> RawTransfer:
    raw = int(Decimal(str(amount)) * (Decimal(10) ** decimals))
    return RawTransfer(from_address=frm, to_address=to, raw_amount=raw, decimals=decimals, block_time=ts)
