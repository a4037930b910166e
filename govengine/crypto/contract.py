"""
Call Data Encoding

Ethereum ABI-compatible selector computation and call data encoding. A
proposal payload is `selector || abi.encode(args)`; the engine only ever
looks at the leading 4-byte selector, targets decode the rest.
"""

from typing import Any, List, Sequence, Tuple

from eth_abi import decode, encode
from eth_utils import function_signature_to_4byte_selector

from ..constants import SELECTOR_SIZE
from ..exceptions import InputValidationError


class CallDataError(InputValidationError):
    """Call data does not match the expected signature."""


def function_selector(function_signature: str) -> bytes:
    """
    Compute function selector (first 4 bytes of keccak256(sig)).

    Args:
        function_signature: Function signature like "allowTarget(address)"

    Returns:
        4-byte function selector
    """
    return function_signature_to_4byte_selector(function_signature)


def signature_types(function_signature: str) -> List[str]:
    """
    Parse argument types from a signature.

    E.g., "transfer(address,uint256)" -> ['address', 'uint256']
    """
    try:
        args_start = function_signature.index('(') + 1
        args_end = function_signature.rindex(')')
    except ValueError:
        raise CallDataError(f"Malformed function signature: {function_signature!r}")
    arg_types_str = function_signature[args_start:args_end]
    if not arg_types_str:
        return []
    return [t.strip() for t in arg_types_str.split(',')]


def encode_call(function_signature: str, *args: Any) -> bytes:
    """
    Encode function call data (selector + ABI-encoded arguments).

    Args:
        function_signature: Function signature
        *args: Function arguments

    Returns:
        Encoded call data
    """
    selector = function_selector(function_signature)
    arg_types = signature_types(function_signature)
    if len(arg_types) != len(args):
        raise CallDataError(
            f"{function_signature} takes {len(arg_types)} arguments, got {len(args)}"
        )
    encoded_args = encode(arg_types, list(args)) if arg_types else b''
    return selector + encoded_args


def split_call(data: bytes) -> Tuple[bytes, bytes]:
    """
    Split call data into selector and arguments.

    Raises:
        CallDataError: if *data* is shorter than a selector
    """
    if len(data) < SELECTOR_SIZE:
        raise CallDataError(
            f"Call data is {len(data)} bytes, need at least {SELECTOR_SIZE}"
        )
    return bytes(data[:SELECTOR_SIZE]), bytes(data[SELECTOR_SIZE:])


def decode_arguments(arg_types: Sequence[str], data: bytes) -> Tuple[Any, ...]:
    """ABI-decode *data* as a tuple of *arg_types*."""
    if not arg_types:
        return ()
    try:
        return tuple(decode(list(arg_types), data))
    except Exception as e:
        # eth_abi raises several unrelated decoding error types
        raise CallDataError(f"Cannot decode arguments {list(arg_types)}: {e}") from e
