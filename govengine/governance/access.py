"""
Access Policy (target whitelist)

Decides which targets a proposal may invoke. Two sets of state:

  - AllowedTarget:         external addresses a proposal may call. Starts
                           empty and only changes through allow/disallow.
  - AllowedSelfOperation:  (engine, selector) pairs a proposal may call on
                           the engine itself. Fixed at construction to the
                           two whitelist-mutation operations.

allow/disallow accept only the engine as caller, and the engine only calls
itself while executing a passed proposal. So the whitelist can only change
through propose → vote → quorum → execute, with no admin key.
"""

from typing import Any, Dict, FrozenSet, List, Tuple

from ..constants import (
    ALLOW_TARGET_SIGNATURE,
    DISALLOW_TARGET_SIGNATURE,
    SELECTOR_SIZE,
    ZERO_ADDRESS,
)
from ..crypto.address import normalize_address
from ..crypto.contract import function_selector
from ..exceptions import AuthorizationError, InputValidationError, StateConflictError
from ..logger import get_logger
from .hooks import CreationContext

logger = get_logger(__name__)

ALLOW_TARGET_SELECTOR = function_selector(ALLOW_TARGET_SIGNATURE)
DISALLOW_TARGET_SELECTOR = function_selector(DISALLOW_TARGET_SIGNATURE)


# ══════════════════════════════════════════════════════════════════════
#  EXCEPTIONS
# ══════════════════════════════════════════════════════════════════════

class PayloadTooShortError(InputValidationError):
    """Payload does not contain a 4-byte operation selector."""


class SelectorNotAllowedError(AuthorizationError):
    """Self-targeted payload uses a selector outside the admin set."""


class TargetNotWhitelistedError(AuthorizationError):
    """Target is not in the whitelist."""


class CallerNotSelfError(AuthorizationError):
    """Admin operation invoked by someone other than the engine."""


class ZeroTargetRejectedError(StateConflictError):
    """The null address cannot be whitelisted."""


class SelfTargetRejectedError(StateConflictError):
    """The engine cannot whitelist itself."""


class UnknownOrAlreadyDisallowedError(StateConflictError):
    """Target is not currently whitelisted."""


# ══════════════════════════════════════════════════════════════════════
#  POLICY
# ══════════════════════════════════════════════════════════════════════

class AccessPolicy:
    """
    Target/selector access control for proposal creation.

    Args:
        owner: address of the engine this policy guards
    """

    def __init__(self, owner: str):
        self.owner = normalize_address(owner)
        self._allowed_targets: Dict[str, bool] = {}
        self._self_operations: FrozenSet[Tuple[str, bytes]] = frozenset({
            (self.owner, ALLOW_TARGET_SELECTOR),
            (self.owner, DISALLOW_TARGET_SELECTOR),
        })

    # ── Gate ──────────────────────────────────────────────────────────

    def check_access(self, target: str, payload: bytes) -> None:
        """
        Raises:
            PayloadTooShortError:      payload shorter than a selector
            SelectorNotAllowedError:   self-target with a non-admin selector
            TargetNotWhitelistedError: external target not whitelisted
        """
        if len(payload) < SELECTOR_SIZE:
            raise PayloadTooShortError(
                f"Payload is {len(payload)} bytes, need at least {SELECTOR_SIZE}"
            )
        target = normalize_address(target)
        selector = bytes(payload[:SELECTOR_SIZE])
        if target == self.owner:
            if (target, selector) not in self._self_operations:
                raise SelectorNotAllowedError(
                    f"Selector 0x{selector.hex()} is not an allowed self-operation"
                )
            return
        if not self._allowed_targets.get(target, False):
            raise TargetNotWhitelistedError(f"Target {target} is not whitelisted")

    def before_create(self, ctx: CreationContext) -> None:
        self.check_access(ctx.target, ctx.payload)

    # ── Admin (self-call only) ────────────────────────────────────────

    def _require_self(self, caller: str) -> None:
        if normalize_address(caller) != self.owner:
            raise CallerNotSelfError(
                f"Only the engine itself may change the whitelist (caller={caller})"
            )

    def allow(self, caller: str, target: str) -> str:
        self._require_self(caller)
        target = normalize_address(target)
        if target == ZERO_ADDRESS:
            raise ZeroTargetRejectedError("Cannot whitelist the zero address")
        if target == self.owner:
            raise SelfTargetRejectedError("Cannot whitelist the engine itself")
        self._allowed_targets[target] = True
        logger.info(f"Whitelist: allowed {target}")
        return target

    def disallow(self, caller: str, target: str) -> str:
        self._require_self(caller)
        target = normalize_address(target)
        if not self._allowed_targets.get(target, False):
            raise UnknownOrAlreadyDisallowedError(f"Target {target} is not whitelisted")
        self._allowed_targets[target] = False
        logger.info(f"Whitelist: disallowed {target}")
        return target

    # ── Queries ───────────────────────────────────────────────────────

    def is_target_allowed(self, target: str) -> bool:
        return self._allowed_targets.get(normalize_address(target), False)

    def is_self_operation_allowed(self, target: str, selector: bytes) -> bool:
        return (normalize_address(target), bytes(selector)) in self._self_operations

    def allowed_targets(self) -> List[str]:
        return sorted(t for t, allowed in self._allowed_targets.items() if allowed)

    # ── Snapshot / restore (for revert) ───────────────────────────────

    def snapshot(self) -> Dict[str, bool]:
        return dict(self._allowed_targets)

    def restore(self, snapshot: Dict[str, bool]) -> None:
        self._allowed_targets = dict(snapshot)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "owner": self.owner,
            "allowedTargets": self.allowed_targets(),
            "selfOperations": sorted(
                "0x" + selector.hex() for _, selector in self._self_operations
            ),
        }
