"""
Persistence — The append-only audit ledger.
"""

from .audit import AuditWriter

__all__ = ["AuditWriter"]
