"""
Termination log: append-only audit trail of run reports.
"""

from winstance_slayer.termination_log.store import TerminationLog

__all__ = ["TerminationLog"]
