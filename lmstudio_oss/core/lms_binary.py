"""Locate the `lms` command-line tool shipped with LM Studio."""

from __future__ import annotations

import shutil
from pathlib import Path
from typing import Optional

from lmstudio_oss.core.errors import LMS_INSTALL_URL, BinaryNotInstalledError
from lmstudio_oss.utils.log import get_logger
from lmstudio_oss.utils.platform import executable_name, resolve_home_dir

logger = get_logger()

LMS_BINARY = "lms"


def fallback_lms_path(home_dir: Optional[Path] = None) -> Path:
    """Where LM Studio installs `lms` when it is not on PATH."""
    home = home_dir if home_dir is not None else resolve_home_dir()
    return home / ".lmstudio" / "bin" / executable_name(LMS_BINARY)


def locate_lms_binary(home_dir: Optional[Path] = None) -> str:
    """Return something `lms` can be spawned with.

    PATH wins and yields the bare name; otherwise the per-user install
    location under ``home_dir`` (resolved from the environment when None).

    Raises:
        BinaryNotInstalledError: Neither location has the executable.
    """
    if shutil.which(LMS_BINARY):
        logger.debug("[lms] Found lms on PATH")
        return LMS_BINARY

    fallback = fallback_lms_path(home_dir)
    if fallback.exists():
        logger.debug("[lms] Found lms at fallback location", extra={"path": str(fallback)})
        return str(fallback)

    raise BinaryNotInstalledError(
        "LM Studio not found. Please install LM Studio from " f"{LMS_INSTALL_URL}",
        install_url=LMS_INSTALL_URL,
    )
