"""
govengine - proposal governance engine

Core imports are lazily loaded so that importing a submodule does not pull
in the whole engine. For direct module access, import from submodules:

    from govengine.governance import GovernanceEngine, CheckpointVotePowerOracle
    from govengine.contracts import ContractHost, Contract, external
    from govengine.config import load_config
"""

__version__ = "0.1.0"


def __getattr__(name):
    """Lazy module loading."""
    if name == 'GovernanceEngine':
        from .governance.engine import GovernanceEngine
        return GovernanceEngine
    elif name == 'ContractHost':
        from .contracts.host import ContractHost
        return ContractHost
    elif name == 'GovernanceError':
        from .exceptions import GovernanceError
        return GovernanceError
    elif name == 'load_config':
        from .config.loader import load_config
        return load_config
    raise AttributeError(f"module 'govengine' has no attribute {name!r}")

__all__ = ['GovernanceEngine', 'ContractHost', 'GovernanceError', 'load_config']
