"""Utility functions for omnibar."""

import os
from pathlib import Path


def ensure_dir(path: Path) -> Path:
    """Ensure a directory exists, creating it if necessary."""
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_path() -> Path:
    """Get the omnibar data directory.

    Respects OMNIBAR_HOME environment variable; falls back to ~/.omnibar.
    """
    omnibar_home = os.environ.get("OMNIBAR_HOME", "").strip()
    if omnibar_home:
        return ensure_dir(Path(omnibar_home).expanduser())
    return ensure_dir(Path.home() / ".omnibar")


def get_var_path() -> Path:
    """Get the ephemeral state directory (~/.omnibar/var)."""
    return ensure_dir(get_data_path() / "var")


def get_cache_path() -> Path:
    """Get the cache directory (~/.omnibar/var/cache)."""
    return ensure_dir(get_var_path() / "cache")


def get_operational_data_path() -> Path:
    """Get the long-lived operational data directory (~/.omnibar/data)."""
    return ensure_dir(get_data_path() / "data")


def get_history_path() -> Path:
    """Get the action history file path."""
    return get_operational_data_path() / "history.json"


def safe_filename(name: str) -> str:
    """Convert a string to a safe filename."""
    unsafe = '<>:"/\\|?*'
    for char in unsafe:
        name = name.replace(char, "_")
    return name.strip()


def truncate_string(s: str, max_len: int = 100, suffix: str = "...") -> str:
    """Truncate a string to max length, adding suffix if truncated."""
    if len(s) <= max_len:
        return s
    return s[: max_len - len(suffix)] + suffix
