"""
govrelay command-line interface (click). Entry point: govrelay.cli.main:main
"""

from .main import cli

__all__ = ["cli"]
