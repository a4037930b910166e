"""
govengine Contracts

Provides:
  - Contract / external / ExternalFunction   (base.py)
  - ContractHost                             (host.py)
"""

from .base import Contract, ExternalFunction, UnknownSelectorError, external
from .host import (
    MAX_CALL_DEPTH,
    CallDepthExceededError,
    ContractHost,
    ContractNotFoundError,
)

__all__ = [
    "Contract",
    "ExternalFunction",
    "UnknownSelectorError",
    "external",
    "MAX_CALL_DEPTH",
    "CallDepthExceededError",
    "ContractHost",
    "ContractNotFoundError",
]
