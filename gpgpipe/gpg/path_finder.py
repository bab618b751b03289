"""
Locate the gpg executable.

Priority: GPGPIPE_GPG_PATH -> PATH search -> Windows registry -> static install locations.
"""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path
from typing import Iterator, List, Optional, Tuple

logger = logging.getLogger(__name__)

GPG_PATH_ENV = "GPGPIPE_GPG_PATH"

if os.name == "nt":
    EXECUTABLE_NAMES = ("gpg.exe", "gpg2.exe")
    FALLBACK_DIRECTORIES = (
        Path(r"C:\Program Files\GNU\GnuPG\bin"),
        Path(r"C:\Program Files\GNU\GnuPG"),
        Path(r"C:\Program Files (x86)\GnuPG\bin"),
        Path(r"C:\Program Files (x86)\GNU\GnuPG"),
    )
else:
    EXECUTABLE_NAMES = ("gpg", "gpg2")
    FALLBACK_DIRECTORIES = (
        Path("/usr/bin"),
        Path("/usr/local/bin"),
        Path("/opt/homebrew/bin"),
        Path("/opt/local/bin"),
    )

# (subkey, value name) under HKEY_LOCAL_MACHINE holding the install directory
REGISTRY_LOCATIONS: Tuple[Tuple[str, str], ...] = (
    (r"SOFTWARE\GNU\GnuPG", "Install Directory"),
    (r"SOFTWARE\Microsoft\Windows\CurrentVersion\Uninstall\GnuPG", "InstallLocation"),
    (r"SOFTWARE\Microsoft\Windows\CurrentVersion\Uninstall\GPG4Win", "InstallLocation"),
    (r"SOFTWARE\Wow6432Node\GNU\GnuPG", "Install Directory"),
    (r"SOFTWARE\Wow6432Node\Microsoft\Windows\CurrentVersion\Uninstall\GnuPG", "InstallLocation"),
    (r"SOFTWARE\Wow6432Node\Microsoft\Windows\CurrentVersion\Uninstall\GPG4Win", "InstallLocation"),
)

_cached_path: Optional[str] = None


def _is_executable(p: Path) -> bool:
    try:
        return p.is_file() and os.access(p, os.X_OK)
    except OSError:
        return False


def _registry_directories() -> Iterator[Path]:
    if os.name != "nt":
        return
    import winreg

    for subkey, name in REGISTRY_LOCATIONS:
        try:
            with winreg.OpenKey(winreg.HKEY_LOCAL_MACHINE, subkey) as key:
                value, _ = winreg.QueryValueEx(key, name)
        except OSError:
            # missing key or access denied
            continue
        if isinstance(value, str) and value:
            yield Path(value)
            yield Path(value) / "bin"


def candidate_paths() -> List[Path]:
    """All locations checked, in priority order (PATH hits excluded)."""
    dirs: List[Path] = list(_registry_directories()) + list(FALLBACK_DIRECTORIES)
    return [d / name for d in dirs for name in EXECUTABLE_NAMES]


def discover_gpg_path() -> Optional[str]:
    env = os.environ.get(GPG_PATH_ENV)
    if env:
        if _is_executable(Path(env)):
            return env
        logger.warning(f"{GPG_PATH_ENV}={env} is not an executable file; ignoring")

    for name in EXECUTABLE_NAMES:
        found = shutil.which(name)
        if found:
            return found

    for c in candidate_paths():
        if _is_executable(c):
            return str(c)
    return None


def find_gpg_path() -> Optional[str]:
    """Return the gpg executable path, or None when it cannot be found. Cached."""
    global _cached_path
    if _cached_path is None:
        _cached_path = discover_gpg_path()
        if _cached_path:
            logger.debug(f"Using gpg at {_cached_path}")
    return _cached_path


def reset_cache() -> None:
    global _cached_path
    _cached_path = None
