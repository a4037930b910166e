"""
govengine Crypto Module

Hashing, address handling and call data encoding shared by the engine and
the call host.
"""

from .hashing import keccak256, keccak256_hex, hash_description
from .address import (
    generate_contract_address,
    is_valid_address,
    is_zero_address,
    normalize_address,
)
from .contract import (
    CallDataError,
    decode_arguments,
    encode_call,
    function_selector,
    signature_types,
    split_call,
)

__all__ = [
    # Hashing
    "keccak256",
    "keccak256_hex",
    "hash_description",
    # Addresses
    "generate_contract_address",
    "is_valid_address",
    "is_zero_address",
    "normalize_address",
    # Call data
    "CallDataError",
    "decode_arguments",
    "encode_call",
    "function_selector",
    "signature_types",
    "split_call",
]
