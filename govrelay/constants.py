"""
govrelay Constants

This module consolidates global constants and .env configuration used
throughout the codebase. Contract endpoints and the relayer key are loaded
by govrelay.config; this module covers logging, the HTTP server and the
protocol constants shared with the on-chain contracts.
"""
import ast
from dotenv import dotenv_values

# =============================================================================
# ENVIRONMENT CONFIGURATION
# =============================================================================
# Load environment variables once at module import
_config = dotenv_values(".env")

SERVER_DEFAULTS = {
    'GOVRELAY_HOST':                   '127.0.0.1',
    'GOVRELAY_PORT':                   '3010',
    'RELAY_RATE_LIMIT':                '60/minute',
}

LOGGER_DEFAULTS = {
    'LOG_LEVEL':                       'INFO',
    'LOG_FORMAT':                      '%(asctime)s - %(levelname)s - %(name)s - %(message)s',
    'LOG_DATE_FORMAT':                 '%Y-%m-%dT%H:%M:%S',
    'LOG_CONSOLE_HIGHLIGHTING':        'True',
    'LOG_FILE_OUTPUT':                 'False',
}

LOG_MAX_FILE_SIZE = 10 * 1024 * 1024 # 10MB
LOG_BACKUP_COUNT = 5


# ==================================================================================
# FORWARDER (EIP-712) DOMAIN
# ==================================================================================
# Must match the deployed MinimalForwarder, otherwise every signature fails verification.
FORWARDER_DOMAIN_NAME = 'MinimalForwarder'
FORWARDER_DOMAIN_VERSION = '1'

FORWARD_REQUEST_FIELDS = ('from', 'to', 'value', 'gas', 'nonce', 'data')

# Gas limit the browser client attaches to vote requests
DEFAULT_FORWARD_GAS = 1_000_000


# ==================================================================================
# LEDGER DEFAULTS
# ==================================================================================
DEFAULT_RPC_URL = 'http://127.0.0.1:8545'
DEFAULT_CHAIN_ID = 31337  # local hardhat / anvil

RPC_TIMEOUT = 10.0  # seconds per JSON-RPC call
RECEIPT_TIMEOUT = 120.0  # seconds to wait for inclusion
RECEIPT_POLL_INTERVAL = 1.0

# Sweeps are sequential unless configured otherwise
SWEEP_CONCURRENCY = 1

# Parallel proposal reads behind GET /proposals
PROPOSAL_READ_CONCURRENCY = 8


# ==================================================================================
# CONFIGURATION WRAPPERS
# ==================================================================================
class ConfigString(str):
    """
    String subclass that stores a default value.
    """
    def __new__(cls, value, default):
        obj = str.__new__(cls, value)
        obj._default = default
        return obj

    def default(self):
        return self._default

class ConfigBool(int):
    """
    Int subclass acting as a boolean that stores a default value.
    """
    def __new__(cls, value, default):
        obj = int.__new__(cls, bool(value))
        obj._default = default
        return obj

    def default(self):
        return self._default

    def __repr__(self):
        return str(bool(self))

    def __str__(self):
        return str(bool(self))

    def __eq__(self, other):
        return bool(self) == other

    def __hash__(self):
        return hash(bool(self))


# ==================================================================================
# DYNAMIC CONFIGURATION LOADING
# ==================================================================================
DEFAULTS = SERVER_DEFAULTS | LOGGER_DEFAULTS
namespace = globals()

def parse_bool(v):
    """
    Convert "True"/"False" (any casing, with surrounding whitespace) into bool.
    Avoids exceptions by only calling ast.literal_eval for known literals.
    """
    if not isinstance(v, str):
        return v
    s = v.strip()
    if not s:
        return v
    if s.casefold() in {"true", "false"}:
        return ast.literal_eval(s.title())
    return v

for key, default_raw in DEFAULTS.items():
    # dotenv_values returns strings or None. None is treated as missing.
    raw = _config.get(key)
    value_raw = default_raw if raw is None else raw

    value = parse_bool(value_raw)
    default_val = parse_bool(default_raw)

    if isinstance(value, bool):
        namespace[key] = ConfigBool(value, default_val)
    else:
        namespace[key] = ConfigString(value_raw, default_val)
