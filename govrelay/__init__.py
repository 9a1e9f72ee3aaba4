"""
govrelay - gasless DAO voting relay and proposal execution daemon

Core imports are lazily loaded so that importing a submodule does not pull in
the HTTP stack. For direct module access, import from submodules:

    from govrelay.relay import RelayService, ForwardRequest
    from govrelay.governance import ExecutionScheduler, classify
    from govrelay.ledger import LedgerClient
"""

__version__ = "1.0.0"


def __getattr__(name):
    """Lazy module loading."""
    if name == 'create_app':
        from .api.app import create_app
        return create_app
    elif name == 'load_config':
        from .config import load_config
        return load_config
    elif name == 'RelayService':
        from .relay.service import RelayService
        return RelayService
    elif name == 'ExecutionScheduler':
        from .governance.scheduler import ExecutionScheduler
        return ExecutionScheduler
    elif name == 'LedgerClient':
        from .ledger.client import LedgerClient
        return LedgerClient
    raise AttributeError(f"module 'govrelay' has no attribute {name!r}")

__all__ = ['create_app', 'load_config', 'RelayService', 'ExecutionScheduler', 'LedgerClient']
