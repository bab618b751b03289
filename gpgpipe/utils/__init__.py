"""
Utility modules for gpgpipe.
"""

from .logging_config import PassphraseFilter, setup_logging

__all__ = [
    "PassphraseFilter",
    "setup_logging",
]
