"""
govengine Exceptions

Base exception classes for the governance engine. Every failure of a
state-mutating call raises one of these and leaves no partial state behind.
Concrete errors live next to the component that raises them.
"""


class GovernanceError(Exception):
    """Base exception for govengine."""
    pass


class InputValidationError(GovernanceError):
    """Malformed input (bad proposal id, truncated payload)."""
    pass


class AuthorizationError(GovernanceError):
    """Caller or target is not permitted to perform the operation."""
    pass


class TemporalError(GovernanceError):
    """Operation attempted outside its time window."""
    pass


class StateConflictError(GovernanceError):
    """A write-once fact was already set, or a precondition on state failed."""
    pass


class ProposalRejectedError(GovernanceError):
    """Proposal did not meet a business rule (quorum, majority)."""
    pass


class DownstreamError(GovernanceError):
    """An external component failed during execution."""
    pass


class ConcurrencyError(GovernanceError):
    """Nested re-entry into a guarded operation."""
    pass


class ConfigurationError(GovernanceError):
    """Configuration error."""
    pass


class InvalidAddressError(InputValidationError):
    """Invalid address format."""
    pass
