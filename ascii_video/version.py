#!/usr/bin/env python3
# ascii_video/version.py
"""
Version and build metadata for ASCII Video.
"""

__version__ = "1.0.0"
__build__ = "2026-10-19"
__license__ = "MIT"

def version_info() -> str:
    """Return human-readable version string."""
    return f"ASCII Video v{__version__} (build {__build__})"
