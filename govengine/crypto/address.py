"""
govengine Crypto Address Module

Identities are Ethereum-style 20-byte addresses rendered in EIP-55
checksum form. Every address entering the engine is normalized here, so
two spellings of the same address always compare equal.
"""

from typing import Any

import rlp
from eth_utils import (
    is_address,
    is_checksum_address,
    is_checksum_formatted_address,
    keccak,
    to_canonical_address,
    to_checksum_address,
)

from ..constants import ZERO_ADDRESS
from ..exceptions import InvalidAddressError

# Address lengths (without prefix)
TRADITIONAL_PREFIX = "0x"
TRADITIONAL_LENGTH = 40  # 20 bytes = 40 hex chars


def is_valid_address(address: Any) -> bool:
    """
    Check if address is a valid 20-byte hex address.

    Mixed-case input must carry a correct EIP-55 checksum.
    """
    if not isinstance(address, str):
        return False
    if not address.startswith(TRADITIONAL_PREFIX):
        return False
    if len(address) != len(TRADITIONAL_PREFIX) + TRADITIONAL_LENGTH:
        return False
    if not is_address(address):
        return False
    if is_checksum_formatted_address(address) and not is_checksum_address(address):
        return False
    return True


def normalize_address(address: str) -> str:
    """
    Normalize an address to EIP-55 checksum format.

    Args:
        address: Hex address with 0x prefix

    Returns:
        Checksum address

    Raises:
        InvalidAddressError: if *address* is not a valid address
    """
    if not is_valid_address(address):
        raise InvalidAddressError(f"Invalid address: {address!r}")
    return to_checksum_address(address)


def is_zero_address(address: str) -> bool:
    """Check whether *address* is the null identity."""
    return normalize_address(address) == ZERO_ADDRESS


def generate_contract_address(sender: str, nonce: int) -> str:
    """
    Generate contract address using CREATE opcode logic.

    Address = keccak256(rlp([sender, nonce]))[-20:]

    Args:
        sender: Deployer address
        nonce: Deployer nonce

    Returns:
        Contract address (checksum format)
    """
    sender_bytes = to_canonical_address(normalize_address(sender))
    rlp_encoded = rlp.encode([sender_bytes, nonce])
    address_bytes = keccak(rlp_encoded)[-20:]
    return to_checksum_address('0x' + address_bytes.hex())
