"""
Version helpers for the mpc-beacon package.

Resolution order:
1) importlib.metadata, when the distribution is installed,
2) the static BASE_VERSION with a ``+source`` local label.

The beacon transcript format does not depend on this value; it is reported by
``mpc-beacon --version`` and recorded in debug logs only.
"""
from __future__ import annotations

from functools import lru_cache
from importlib.metadata import PackageNotFoundError, version as _pkg_version

# Bump this when making intentional, source-level releases.
BASE_VERSION = "0.1.0"

_DIST_NAME = "mpc-beacon"


@lru_cache(maxsize=1)
def get_version() -> str:
    try:
        return _pkg_version(_DIST_NAME)
    except PackageNotFoundError:
        return f"{BASE_VERSION}+source"


__version__ = get_version()
__all__ = ["__version__", "get_version", "BASE_VERSION"]
