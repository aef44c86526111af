"""
Version information for PrintBridge.

Single source of truth: pyproject.toml
Runtime access via importlib.metadata with fallback.
"""

from __future__ import annotations

import os
import sys
from datetime import UTC, datetime
from functools import lru_cache
from importlib.metadata import PackageNotFoundError, version
from typing import Any

# Fallback version if package metadata unavailable (dev mode)
_FALLBACK_VERSION = "1.0.0"


def get_version() -> str:
    """Get the package version from metadata or fallback."""
    try:
        return version("printbridge")
    except PackageNotFoundError:
        return _FALLBACK_VERSION


VERSION = get_version()


@lru_cache(maxsize=1)
def get_build_info() -> dict[str, str | None]:
    """
    Get build metadata from environment.

    Returns:
        dict with git commit, build_date and build_number
    """
    commit = os.environ.get("GIT_COMMIT")
    return {
        "git_commit": commit[:8] if commit else None,
        "build_date": os.environ.get("BUILD_DATE"),
        "build_number": os.environ.get("BUILD_NUMBER"),
    }


def version_info(environment: str | None = None) -> dict[str, Any]:
    """
    Get comprehensive version information.

    Returns:
        dict with version, python_version and build info
    """
    build = get_build_info()
    return {
        "version": VERSION,
        "python_version": f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}",
        "git_commit": build["git_commit"],
        "build_date": build["build_date"] or datetime.now(UTC).strftime("%Y-%m-%dT%H:%M:%SZ"),
        "build_number": build["build_number"],
        "environment": environment or os.environ.get("ENVIRONMENT", "development"),
    }


def version_string() -> str:
    """Get formatted version string for display."""
    commit = get_build_info()["git_commit"]
    return f"v{VERSION}" + (f" ({commit})" if commit else "")
