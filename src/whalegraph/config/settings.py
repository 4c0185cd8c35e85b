from decimal import Decimal
import os
from dotenv import load_dotenv
load_dotenv()
# ---- Solscan ----
SOLSCAN_API_KEY = os.environ.get("SOLSCAN_API_KEY")
SOLSCAN_API_URL = os.environ.get("SOLSCAN_API_URL", "https://pro-api.solscan.io/v2.0")
SOL_TOKEN_ADDRESS = os.environ.get(
    "SOL_TOKEN_ADDRESS", "So11111111111111111111111111111111111111112"
)

SOLSCAN_TIMEOUT_SEC = 15
SOLSCAN_CALL_DELAY_SEC = float(os.environ.get("SOLSCAN_CALL_DELAY_SEC", "0.1"))
SOLSCAN_PAGE_SIZE = 10
SOLSCAN_ACTIVITY_TYPE = "ACTIVITY_SPL_TRANSFER"

# ---- Dune (holder source) ----
DUNE_API_KEY = os.environ.get("DUNE_API_KEY")
DUNE_API_URL = os.environ.get("DUNE_API_URL", "https://api.dune.com/api/v1")
DUNE_QUERY_ID = int(os.environ.get("DUNE_QUERY_ID", "4196813"))
DUNE_TIMEOUT_SEC = 30
DUNE_POLL_INTERVAL_SEC = 2.0
DUNE_MAX_POLLS = 90
DUNE_MAX_RETRIES = 3

# Holders whose name contains one of these are liquidity pools, not whales. Lowercase.
EXCLUDED_HOLDER_NAMES = (
    "raydiumpool.sol",
)

# ----- Traversal -----
TRACE_MAX_DEPTH = int(os.environ.get("TRACE_MAX_DEPTH", "2"))
TRACE_MIN_AMOUNT = Decimal(os.environ.get("TRACE_MIN_AMOUNT", "10"))
SHALLOW_MIN_AMOUNT = Decimal(os.environ.get("SHALLOW_MIN_AMOUNT", "0.5"))
TOP_HOLDERS = int(os.environ.get("TOP_HOLDERS", "10"))
BATCH_MAX_WORKERS = int(os.environ.get("BATCH_MAX_WORKERS", "8"))
