"""
GnuPG adapters: command building, key listing parsing, executable discovery
and the high-level Gpg facade.

Execution is handled by gpgpipe.core.process.
"""

from .enums import TrustModel, Validity, Algorithm, RecordType, KeyCapabilities
from .command import GpgCommand
from .keys import GpgKey, GpgKeyReader
from .configuration import GpgSettings, ConfigurationLoader, load_settings
from .path_finder import find_gpg_path
from .executor import GpgCommandExecutor
from .api import Gpg

__all__ = [
    "TrustModel",
    "Validity",
    "Algorithm",
    "RecordType",
    "KeyCapabilities",
    "GpgCommand",
    "GpgKey",
    "GpgKeyReader",
    "GpgSettings",
    "ConfigurationLoader",
    "load_settings",
    "find_gpg_path",
    "GpgCommandExecutor",
    "Gpg",
]
