"""
Plugin Download History

Rebuilds a plugin's download counter history from version-control snapshots
and derives per-release growth statistics.
"""

__version__ = "0.1.0"

from .cli import main

__all__ = ["main"]
