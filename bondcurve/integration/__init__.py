"""
Client-facing views of an engine
"""

from .snapshot import CurveSnapshot, ledger_from_snapshot, snapshot

__all__ = [
    "CurveSnapshot",
    "ledger_from_snapshot",
    "snapshot",
]
