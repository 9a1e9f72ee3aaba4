"""
govrelay HTTP API (FastAPI)
"""

from .app import create_app, default_ledger_factory, limiter, router

__all__ = ["create_app", "default_ledger_factory", "limiter", "router"]
