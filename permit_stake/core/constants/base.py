MANTISSA = 10**18
SECONDS_PER_YEAR = 365 * 24 * 60 * 60
MAX_UINT256 = 2**256 - 1

GAS_BUFFER_MULTIPLIER = 1.1

# Safety cap for the combined permit + stake call, not an estimate.
STAKE_WITH_PERMIT_GAS_LIMIT = 300_000

PERMIT_VERSION = "1"
BRIDGE_PERMIT_EXPIRY_S = 60 * 60

DEFAULT_RECEIPT_POLL_INTERVAL_S = 1.0

DEFAULT_TOKEN_SYMBOL = "NODE"
DEFAULT_BRIDGED_TOKEN_SYMBOL = "xNODE"
