"""Platform detection utilities.

Use these helpers instead of direct checks like `sys.platform == "win32"` so
tests can patch a single place.
"""

import os
import sys
from pathlib import Path
from typing import Final, Mapping, Optional


WINDOWS: Final = "win32"


def is_windows() -> bool:
    """Check if running on Windows."""
    return sys.platform == WINDOWS


def executable_name(base: str) -> str:
    """Return `base` with the platform executable suffix (`.exe` on Windows)."""
    return f"{base}.exe" if is_windows() else base


def home_env_var() -> str:
    """Name of the environment variable holding the user's home directory."""
    return "USERPROFILE" if is_windows() else "HOME"


def resolve_home_dir(env: Optional[Mapping[str, str]] = None) -> Path:
    """Resolve the user's home directory from the environment.

    Args:
        env: Mapping to read from. Defaults to ``os.environ``.

    Returns:
        The home directory, falling back to ``Path.home()`` when the
        platform variable is unset or empty.
    """
    source = os.environ if env is None else env
    value = source.get(home_env_var())
    if value:
        return Path(value)
    return Path.home()
