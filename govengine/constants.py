"""
govengine Constants

This module consolidates global constants and environment configuration
used throughout the codebase. Values under ENVIRONMENT CONFIGURATION may be
overridden from a `.env` file in the working directory.
"""
import ast

from dotenv import dotenv_values

# =============================================================================
# ENVIRONMENT CONFIGURATION
# =============================================================================
# Load environment variables once at module import
_config = dotenv_values(".env")

GOVERNANCE_DEFAULTS = {
    'GOVERNANCE_QUORUM_BP':            '1000',
    'GOVERNANCE_VOTING_PERIOD':        '259200',
    'GOVERNANCE_SNAPSHOT_LAG':         '1',
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
# PROTOCOL CONSTANTS
# ==================================================================================
# Quorum thresholds are expressed in basis points of the snapshot total supply.
BASIS_POINTS = 10_000

# Length of the operation discriminator at the head of every payload.
SELECTOR_SIZE = 4

# The null identity. Never a valid whitelist entry.
ZERO_ADDRESS = '0x0000000000000000000000000000000000000000'

# Administrative operations the engine may invoke on itself.
ALLOW_TARGET_SIGNATURE = 'allowTarget(address)'
DISALLOW_TARGET_SIGNATURE = 'disallowTarget(address)'

# Deployer used when a contract is registered without an explicit one.
GENESIS_DEPLOYER = '0x000000000000000000000000000000000000dEaD'


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

    __hash__ = int.__hash__


# ==================================================================================
# DYNAMIC CONFIGURATION LOADING
# ==================================================================================
DEFAULTS = GOVERNANCE_DEFAULTS | LOGGER_DEFAULTS
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
        # ast.literal_eval expects "True"/"False"
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


# ==================================================================================
# GOVERNANCE PARAMETERS
# ==================================================================================
# Integer views of the governance settings, used as engine defaults.
DEFAULT_QUORUM_BP = int(namespace['GOVERNANCE_QUORUM_BP'])
DEFAULT_VOTING_PERIOD = int(namespace['GOVERNANCE_VOTING_PERIOD'])
DEFAULT_SNAPSHOT_LAG = int(namespace['GOVERNANCE_SNAPSHOT_LAG'])
