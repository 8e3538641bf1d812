"""Internal constants shared across the library."""

USER_AGENT = "curl/7.79.1"

#: Seconds between the end of one poll cycle and the start of the next.
DEFAULT_POLL_INTERVAL: float = 15.0
#: Upper bound for one whole poll cycle across all sources.
DEFAULT_CYCLE_TIMEOUT: float = 30.0
#: Floor for the per-chain re-check threshold of the rate limiter.
DEFAULT_MIN_CHECK_INTERVAL: float = 45.0
#: Pending events kept per subscriber before the oldest are dropped.
DEFAULT_SUBSCRIBER_BUFFER: int = 1000
#: Per-request timeout for source HTTP calls.
DEFAULT_HTTP_TIMEOUT: float = 10.0

# ------------------------------------------------------------------
# Hedera has no blocks; a pseudo height is derived from the consensus
# timestamp of the latest transaction.
# ------------------------------------------------------------------

HEDERA_GENESIS_TS: float = 1596139200.0
HEDERA_PSEUDO_BLOCK_SECS: float = 5.0
