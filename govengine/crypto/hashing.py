"""
govengine Crypto Hashing Module

Provides the hash functions used by the engine:
- keccak256: selectors, contract addresses and description hashes
"""

from typing import Union

from eth_utils import keccak


def keccak256(data: Union[bytes, str]) -> bytes:
    """
    Compute Keccak-256 hash (Ethereum standard).

    Args:
        data: Input bytes or hex string

    Returns:
        32-byte hash
    """
    if isinstance(data, str):
        if data.startswith('0x') or data.startswith('0X'):
            data = bytes.fromhex(data[2:])
        else:
            data = bytes.fromhex(data)

    return keccak(data)


def keccak256_hex(data: Union[bytes, str]) -> str:
    """
    Compute Keccak-256 hash and return as hex string.

    Args:
        data: Input bytes or hex string

    Returns:
        Hex string with 0x prefix
    """
    return '0x' + keccak256(data).hex()


def hash_description(text: str) -> bytes:
    """
    Content hash of a proposal description.

    Only the hash is stored by the engine; the text lives elsewhere.
    """
    return keccak(text=text)
