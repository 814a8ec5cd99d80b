"""
Utility modules for Presetarr.
"""
from presetarr.utils.logger import setup_logger
from presetarr.utils.locks import AdvisoryLocks

__all__ = [
    "setup_logger",
    "AdvisoryLocks",
]
