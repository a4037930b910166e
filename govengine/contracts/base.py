"""
Contract base class

A Contract is any Python object reachable through the ContractHost by
address. Methods decorated with @external are callable by 4-byte selector;
their arguments are ABI-decoded from the call data and the immediate caller
is passed as the first argument.

    class Counter(Contract):
        state_fields = ("value",)

        def __init__(self):
            self.value = 0

        @external("increment(uint256)")
        def increment(self, sender, amount):
            self.value += amount
"""

from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, Tuple

from ..crypto.contract import decode_arguments, function_selector, signature_types, split_call
from ..exceptions import GovernanceError

if TYPE_CHECKING:
    from .host import ContractHost


class UnknownSelectorError(GovernanceError):
    """Call data selector does not match any external function."""


@dataclass(frozen=True)
class ExternalFunction:
    """ABI entry for one @external method."""
    name: str
    signature: str
    selector: bytes
    arg_types: Tuple[str, ...]


def external(signature: str) -> Callable:
    """Mark a method as callable through the host under *signature*."""
    def decorator(fn: Callable) -> Callable:
        fn.__external_signature__ = signature
        return fn
    return decorator


class Contract:
    """
    Base class for everything deployed on a ContractHost.

    Subclasses list the attribute names that make up their persistent state
    in `state_fields`; the host journals those around every call so a failed
    call leaves no trace.
    """

    state_fields: Tuple[str, ...] = ()
    _externals: Dict[bytes, ExternalFunction] = {}

    address: Optional[str] = None
    host: Optional["ContractHost"] = None

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        table: Dict[bytes, ExternalFunction] = {}
        # Walk base classes first so overrides in subclasses win
        for klass in reversed(cls.__mro__):
            for name, attr in vars(klass).items():
                signature = getattr(attr, "__external_signature__", None)
                if signature is None:
                    continue
                selector = function_selector(signature)
                existing = table.get(selector)
                if existing is not None and existing.signature != signature:
                    raise TypeError(
                        f"{cls.__name__}: selector 0x{selector.hex()} of {signature} "
                        f"collides with {existing.signature}"
                    )
                table[selector] = ExternalFunction(
                    name=name,
                    signature=signature,
                    selector=selector,
                    arg_types=tuple(signature_types(signature)),
                )
        cls._externals = table

    # ── Host binding ──────────────────────────────────────────────────

    def bind(self, host: "ContractHost", address: str) -> None:
        """Called by the host on deployment."""
        if self.address is not None:
            raise GovernanceError(f"{type(self).__name__} already deployed at {self.address}")
        self.host = host
        self.address = address

    # ── ABI ───────────────────────────────────────────────────────────

    @classmethod
    def abi(cls) -> List[ExternalFunction]:
        return sorted(cls._externals.values(), key=lambda f: f.signature)

    @classmethod
    def supports(cls, selector: bytes) -> bool:
        return bytes(selector) in cls._externals

    def dispatch(self, sender: str, payload: bytes) -> Any:
        """Decode *payload* and invoke the matching external method."""
        selector, args_data = split_call(payload)
        fn = self._externals.get(selector)
        if fn is None:
            raise UnknownSelectorError(
                f"{type(self).__name__} has no function for selector 0x{selector.hex()}"
            )
        args = decode_arguments(fn.arg_types, args_data)
        return getattr(self, fn.name)(sender, *args)

    # ── Journaling ────────────────────────────────────────────────────

    def snapshot_state(self) -> Dict[str, Any]:
        """Capture state for potential revert."""
        return {name: copy.deepcopy(getattr(self, name)) for name in self.state_fields}

    def restore_state(self, snapshot: Dict[str, Any]) -> None:
        """Restore state from snapshot."""
        for name, value in snapshot.items():
            setattr(self, name, value)
