"""Utilities for locating the site directory and built-in system assets."""

from __future__ import annotations

import os
from pathlib import Path

_ENV_VAR = "INKPRESS_SITE_DIR"
_PACKAGE_ROOT = Path(__file__).resolve().parents[1]
_SYSTEM_DIR = _PACKAGE_ROOT / "system"


def get_site_dir() -> Path:
    """Return the configured site directory.

    Honors the INKPRESS_SITE_DIR environment variable; otherwise defaults
    to the current working directory.
    """
    override = os.getenv(_ENV_VAR)
    if override is not None and override.strip():
        return Path(override.strip()).expanduser().resolve()
    return Path.cwd().resolve()


def resolve_site_path(*relative: str, site_dir: str | Path | None = None, ensure_parent: bool = False) -> Path:
    """Resolve a path underneath the site directory."""
    base = Path(site_dir).expanduser().resolve() if site_dir else get_site_dir()
    full_path = base.joinpath(*relative)
    if ensure_parent:
        full_path.parent.mkdir(parents=True, exist_ok=True)
    return full_path


def resolve_site_file(path: str | Path, site_dir: str | Path | None = None, ensure_parent: bool = False) -> Path:
    """Resolve a configured file path against the site directory.

    Absolute paths are used as-is. Relative paths are interpreted relative to
    the site directory.
    """
    candidate = Path(path).expanduser()
    if candidate.is_absolute():
        if ensure_parent:
            candidate.parent.mkdir(parents=True, exist_ok=True)
        return candidate
    return resolve_site_path(*candidate.parts, site_dir=site_dir, ensure_parent=ensure_parent)


def get_system_dir() -> Path:
    """Return the package's bundled system directory."""
    return _SYSTEM_DIR


def get_system_path(*relative: str) -> Path:
    """Return a path inside the package's system directory."""
    return _SYSTEM_DIR.joinpath(*relative)


__all__ = [
    "get_site_dir",
    "resolve_site_path",
    "resolve_site_file",
    "get_system_dir",
    "get_system_path",
]
